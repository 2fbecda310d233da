#!/usr/bin/env python3
"""
GTA Driving AI - Main Entry Point
=================================

Usage:
    # Supervised training from recorded sessions res/dataset/out0..out4.json
    python main.py --train --videos 0 5

    # Genetic training, scored on how well each car imitates the recordings
    python main.py --evolve --videos 0 5 --generations 30

    # One driving decision for a screenshot (or a blank frame)
    python main.py --simulate screenshot.png --model models/best.pth
    python main.py --simulate

    # Inspect a saved model
    python main.py --inspect models/best.pth
"""

# Suppress pygame's pkg_resources deprecation warning (pygame issue #4557)
import warnings
warnings.filterwarnings("ignore", category=UserWarning, module="pygame.pkgdata")

import argparse
import os
import sys
from typing import Optional

import pygame

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from config import Config
from gtadrive.ai import GradientTrainer, IACar, Population
from gtadrive.maths import seed
from gtadrive.recording import Recording, load_driving_data
from gtadrive.utils.logger import LogLevel, get_logger, setup_logging


_logger = get_logger(__name__)


def load_dataset(config: Config, start: int, end: int):
    """Recorded videos out{start}..out{end - 1} as (X, Y)."""
    recording = Recording(config)
    recording.load_videos(start, end)
    return load_driving_data(recording.video, config.INPUT_SIZE)


def load_agent(config: Config, model_path: Optional[str]) -> IACar:
    car = IACar(config=config)
    if model_path:
        if car.load(model_path) is None:
            _logger.warning(f"Could not load {model_path}, using a fresh network")
    return car


def run_train(config: Config, args: argparse.Namespace) -> None:
    """Gradient training on recorded sessions."""
    X, Y = load_dataset(config, args.videos[0], args.videos[1])
    if X.rows == 0:
        print("❌ No recorded images found. Record some driving first.")
        return

    car = load_agent(config, args.model)
    metrics = car.train_ia(X, Y)

    path = os.path.join(config.MODEL_DIR, 'trained.pth')
    car.save(path, save_reason='final', final_loss=metrics.epochs[-1].loss if metrics.epochs else None)
    print(f"✅ Trained on {X.rows} images, best loss {metrics.get_best_loss():.5f} -> {path}")


def run_evolve(config: Config, args: argparse.Namespace) -> None:
    """Genetic training; fitness is the negative loss on the recorded sessions."""
    X, Y = load_dataset(config, args.videos[0], args.videos[1])
    if X.rows == 0:
        print("❌ No recorded images found. Record some driving first.")
        return

    def fitness(car: IACar) -> float:
        return -GradientTrainer(car.nn, config.LOSS, config).evaluate(X, Y)

    population = Population(fitness, config)
    best_nn, best_fitness = population.run(args.generations, checkpoint_dir=config.MODEL_DIR)
    if best_nn is not None:
        print(f"✅ Best fitness {best_fitness:.5f} after {population.generation} generations")


def run_simulate(config: Config, args: argparse.Namespace) -> None:
    """Print the driving command for one frame."""
    car = load_agent(config, args.model)
    if args.simulate:
        frame = pygame.image.load(args.simulate)
        command = car.drive(frame)
    else:
        prediction = car.simulate()
        command = (prediction.get_at(0, 0), prediction.get_at(0, 1))
    print(f"🚗 acceleration={command[0]:+.4f}  direction={command[1]:+.4f}")


def inspect_model(filepath: str) -> None:
    """Inspect a model file and display its metadata."""
    info = IACar.inspect_model(filepath)
    if not info:
        return

    print("\n" + "=" * 60)
    print(f"🔍 Model Inspection: {info['filename']}")
    print("=" * 60)
    print(f"   File Size:   {info['file_size_bytes'] / 1024:.1f} KB")
    print(f"   Modified:    {info['file_modified']}")
    print(f"   Dimensions:  {info['dimensions']}")
    print(f"   Activations: {info['activations']}")
    print(f"   Parameters:  {info['parameters']:,}")

    meta = info.get('metadata')
    if meta:
        print(f"\n   📊 Training Metadata:")
        print(f"   Save Reason:   {meta.get('save_reason', 'unknown')}")
        print(f"   Generation:    {meta.get('generation', 'unknown')}")
        print(f"   Best Fitness:  {meta.get('best_fitness')}")
        print(f"   Final Loss:    {meta.get('final_loss')}")
        print(f"   Capture:       {meta.get('capture_width')}x{meta.get('capture_height')}")
    print("=" * 60 + "\n")


def parse_args(argv=None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="GTA Driving AI - drive from captured frames with a small neural network",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    mode_group = parser.add_mutually_exclusive_group(required=True)
    mode_group.add_argument(
        '--train', action='store_true',
        help='Gradient training on recorded sessions'
    )
    mode_group.add_argument(
        '--evolve', action='store_true',
        help='Genetic training scored against recorded sessions'
    )
    mode_group.add_argument(
        '--simulate', nargs='?', const='', metavar='FRAME',
        help='Predict the command for an image file (blank frame if omitted)'
    )
    mode_group.add_argument(
        '--inspect', type=str, metavar='MODEL_PATH',
        help='Inspect a model file and show its metadata'
    )

    parser.add_argument('--model', type=str, default=None, help='Model to start from')
    parser.add_argument(
        '--videos', type=int, nargs=2, default=[0, 1], metavar=('FROM', 'TO'),
        help='Recorded videos outFROM..outTO-1 to use (default: 0 1)'
    )
    parser.add_argument('--generations', type=int, default=None, help='Generations for --evolve')
    parser.add_argument('--epochs', type=int, default=None, help='Epochs for --train')
    parser.add_argument('--lr', type=float, default=None, help='Learning rate for --train')
    parser.add_argument('--seed', type=int, default=None, help='Random seed')
    parser.add_argument('--log-level', type=str, default=None,
                        choices=[level.name for level in LogLevel], help='Console log level')

    return parser.parse_args(argv)


def main(argv=None):
    """Main entry point."""
    args = parse_args(argv)

    if args.inspect:
        inspect_model(args.inspect)
        return

    config = Config()
    if args.epochs is not None:
        config.EPOCHS = args.epochs
    if args.lr is not None:
        config.LEARNING_RATE = args.lr
    if args.log_level is not None:
        config.LOG_LEVEL = args.log_level
    if args.seed is not None:
        seed(args.seed)
        config.SEED = args.seed

    setup_logging(config.LOG_DIR, LogLevel[config.LOG_LEVEL])

    if args.train:
        run_train(config, args)
    elif args.evolve:
        run_evolve(config, args)
    else:
        run_simulate(config, args)


if __name__ == "__main__":
    main()
