"""
Configuration file for the GTA driving AI
=========================================

All hyperparameters, capture settings and paths are centralized here.
Modify these values to experiment with different training configurations.

Usage:
    from config import Config
    cfg = Config()
    print(cfg.DIMENSIONS)
"""

from dataclasses import dataclass, field
from typing import List, Optional


@dataclass
class Config:
    """
    Central configuration for the entire project.

    Sections:
    1. Capture - Frame size fed to the network
    2. Neural Network - Architecture configuration
    3. Gradient Training - Supervised learning from recordings
    4. Evolution - Population-based training
    5. Recording - Episode capture on disk
    6. System - Paths, logging and seeding
    """

    # =========================================================================
    # CAPTURE SETTINGS
    # =========================================================================

    # Captured frames are scaled down to this resolution (grayscale)
    # One input neuron per pixel
    CAPTURE_WIDTH: int = 64
    CAPTURE_HEIGHT: int = 36

    # =========================================================================
    # NEURAL NETWORK ARCHITECTURE
    # =========================================================================

    # Hidden layer sizes between the input and the output
    HIDDEN_LAYERS: List[int] = field(default_factory=lambda: [10])

    # Outputs: acceleration, direction
    OUTPUT_SIZE: int = 2

    # One activation per layer (hidden layers + output layer)
    # Options: 'relu', 'hypertan', 'sigmoid', 'linear'
    # HyperTan on the output keeps both commands in (-1, 1)
    ACTIVATIONS: List[str] = field(default_factory=lambda: ['relu', 'hypertan'])

    @property
    def INPUT_SIZE(self) -> int:
        """One input per captured pixel."""
        return self.CAPTURE_WIDTH * self.CAPTURE_HEIGHT

    @property
    def DIMENSIONS(self) -> List[int]:
        """Full layer size list, input first."""
        return [self.INPUT_SIZE] + list(self.HIDDEN_LAYERS) + [self.OUTPUT_SIZE]

    # =========================================================================
    # GRADIENT TRAINING
    # =========================================================================

    # Plain SGD: W <- W - LEARNING_RATE * dW
    LEARNING_RATE: float = 1e-4

    # Passes over the recorded dataset
    EPOCHS: int = 250

    # Frames per gradient step
    BATCH_SIZE: int = 10

    # Loss function: 'mse'
    LOSS: str = 'mse'

    # Log every N epochs
    LOG_EVERY: int = 10

    # =========================================================================
    # EVOLUTION
    # =========================================================================

    # Agents per generation
    POPULATION_SIZE: int = 20

    # Best agents copied unchanged into the next generation
    ELITE_COUNT: int = 2

    # Contestants per tournament when picking parents
    TOURNAMENT_SIZE: int = 3

    # Probability that a weight gets Gaussian noise
    MUTATION_RATE: float = 0.1

    # Standard deviation of that noise
    MUTATION_SCALE: float = 0.5

    # Crossover operator: 'uniform', 'average', 'blend'
    CROSSOVER: str = 'uniform'

    # Generations to run (main.py and Population.run default)
    GENERATIONS: int = 50

    # Parallel fitness evaluations (1 = sequential)
    EVAL_WORKERS: int = 1

    # =========================================================================
    # RECORDING
    # =========================================================================

    # Frames buffered before a recording file is written
    MAX_IMAGES: int = 500

    # Where recording files (out0.json, out1.json, ...) live
    DATASET_DIR: str = 'res/dataset'

    # =========================================================================
    # SYSTEM SETTINGS
    # =========================================================================

    # Paths
    MODEL_DIR: str = 'models'
    LOG_DIR: str = 'logs'

    # 'DEBUG', 'INFO', 'WARNING', 'ERROR'
    LOG_LEVEL: str = 'INFO'

    # Random seed for reproducibility (None for random)
    SEED: Optional[int] = None

    def __post_init__(self):
        """Validation and derived calculations."""
        assert self.CAPTURE_WIDTH > 0 and self.CAPTURE_HEIGHT > 0, "Capture size must be positive"
        assert all(h > 0 for h in self.HIDDEN_LAYERS), "Hidden layer sizes must be positive"
        assert self.OUTPUT_SIZE > 0, "Output size must be positive"
        assert len(self.ACTIVATIONS) == len(self.HIDDEN_LAYERS) + 1, \
            "Need exactly one activation per layer"
        assert self.LEARNING_RATE > 0, "Learning rate must be positive"
        assert self.EPOCHS > 0, "Epochs must be positive"
        assert self.BATCH_SIZE > 0, "Batch size must be positive"
        assert self.POPULATION_SIZE >= 2, "Population needs at least two agents"
        assert 0 <= self.ELITE_COUNT < self.POPULATION_SIZE, "Elite count must be in [0, POPULATION_SIZE)"
        assert self.TOURNAMENT_SIZE > 0, "Tournament size must be positive"
        assert 0.0 <= self.MUTATION_RATE <= 1.0, "Mutation rate must be in [0, 1]"
        assert self.MUTATION_SCALE >= 0, "Mutation scale must be >= 0"
        assert self.CROSSOVER in ('uniform', 'average', 'blend'), f"Unknown crossover: {self.CROSSOVER}"
        assert self.EVAL_WORKERS > 0, "Eval workers must be positive"
        assert self.MAX_IMAGES > 0, "MAX_IMAGES must be positive"


# Global config instance for easy importing
config = Config()


if __name__ == "__main__":
    # Print configuration summary
    cfg = Config()
    print("=" * 60)
    print("GTA Driving AI - Configuration Summary")
    print("=" * 60)
    print(f"\nCapture: {cfg.CAPTURE_WIDTH}x{cfg.CAPTURE_HEIGHT} = {cfg.INPUT_SIZE} inputs")
    print(f"\nNeural Network:")
    print(f"   Dimensions: {cfg.DIMENSIONS}")
    print(f"   Activations: {cfg.ACTIVATIONS}")
    print(f"\nGradient Training:")
    print(f"   Learning rate: {cfg.LEARNING_RATE}")
    print(f"   Epochs: {cfg.EPOCHS} | Batch size: {cfg.BATCH_SIZE}")
    print(f"\nEvolution:")
    print(f"   Population: {cfg.POPULATION_SIZE} (elite {cfg.ELITE_COUNT})")
    print(f"   Mutation: rate={cfg.MUTATION_RATE}, scale={cfg.MUTATION_SCALE}")
    print(f"   Crossover: {cfg.CROSSOVER}")
    print("=" * 60)
