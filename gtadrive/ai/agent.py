"""
Driving Agent
=============

The AI car: one neural network that turns a captured frame into driving
commands.

    frame -> 1 x (W*H) pixels -> normalize() -> NeuralNetwork.predict -> 1 x 2
                                                       |
                                  (acceleration, direction), each in (-1, 1)

The agent is a thin facade. Mutation and crossover are forwarded to the
network's apply_function() and return a new network; the caller decides
whether to adopt it with set_nn(). Never call set_nn() on an agent while a
simulate() on that same agent is in flight.

Checkpoints are written with torch.save (weights stored as tensors) together
with a SaveMetadata record.
"""

import os
from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Any, Dict, List, NamedTuple, Optional, Union

import numpy as np
import torch

from config import Config
from gtadrive.capture.frames import Frame, frame_to_matrix
from gtadrive.maths.matrix import Matrix
from gtadrive.utils.logger import get_logger, log_model_event

from .network import MatrixCombiner, MatrixTransform, NeuralNetwork
from .trainer import GradientTrainer, TrainingMetrics


_logger = get_logger(__name__)


class DriveCommand(NamedTuple):
    """Network output interpreted for the actuator."""
    acceleration: float
    direction: float

    @classmethod
    def from_prediction(cls, prediction: Matrix) -> 'DriveCommand':
        return cls(acceleration=prediction.get_at(0, 0), direction=prediction.get_at(0, 1))


@dataclass
class SaveMetadata:
    """Rich metadata stored with each model checkpoint."""
    # Timing
    timestamp: str
    save_reason: str  # 'best', 'periodic', 'manual', 'final', 'interrupted'

    # Progress
    generation: int
    best_fitness: Optional[float]
    final_loss: Optional[float]

    # Architecture
    dimensions: List[int]
    activations: List[str]

    # Config snapshot
    capture_width: int
    capture_height: int
    learning_rate: float
    population_size: int
    mutation_rate: float
    mutation_scale: float
    crossover: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'SaveMetadata':
        return cls(**data)


class IACar:
    """
    Neural-network driver.

    Attributes:
        config: Configuration object
        nn: The network currently driving (replace with set_nn)

    Example:
        >>> car = IACar()
        >>> command = car.drive(frame)
        >>> child = car.apply_nn_function(lambda a, b: a.plus(b).mul(0.5), other_car)
        >>> car.set_nn(child)
    """

    def __init__(self, nn: Optional[NeuralNetwork] = None, config: Optional[Config] = None):
        """
        Args:
            nn: Network to drive with (a fresh one from config when omitted)
            config: Configuration object
        """
        self.config = config or Config()
        self._nn = nn if nn is not None else NeuralNetwork(
            self.config.DIMENSIONS, self.config.ACTIVATIONS
        )

    @property
    def nn(self) -> NeuralNetwork:
        return self._nn

    def set_nn(self, nn: NeuralNetwork) -> None:
        """Swap the driving network (single reference replace)."""
        self._nn = nn

    def get_copy_nn(self) -> NeuralNetwork:
        """Deep copy of the current network, safe to store or inspect."""
        return self._nn.copy()

    # =========================================================================
    # DRIVING
    # =========================================================================

    def simulate(self, data: Optional[Matrix] = None) -> Matrix:
        """
        Run the network on one input row.

        Args:
            data: 1 x input_size Matrix; a blank frame when omitted

        Returns:
            1 x 2 prediction (acceleration, direction)
        """
        if data is None:
            data = Matrix(1, self._nn.input_size)
        return self._nn.predict(data.normalize())

    def drive(self, frame: Frame) -> DriveCommand:
        """Preprocess a captured frame and return the driving command."""
        data = frame_to_matrix(frame, self.config.CAPTURE_WIDTH, self.config.CAPTURE_HEIGHT)
        return DriveCommand.from_prediction(self.simulate(data))

    # =========================================================================
    # PARAMETER TRANSFORMATION
    # =========================================================================

    def apply_nn_function(
        self,
        func: Union[MatrixTransform, MatrixCombiner],
        other: Optional['IACar'] = None
    ) -> NeuralNetwork:
        """
        Transform this agent's network (or combine it with other's).

        Returns:
            The resulting network; this agent keeps driving with the old one
        """
        if other is None:
            return self._nn.apply_function(func)
        return self._nn.apply_function(func, other.nn)

    def train_ia(
        self,
        X: Matrix,
        Y: Matrix,
        learning_rate: Optional[float] = None,
        epochs: Optional[int] = None,
        batch_size: Optional[int] = None
    ) -> TrainingMetrics:
        """Supervised training on recorded frames; adopts the trained network."""
        trainer = GradientTrainer(self._nn, self.config.LOSS, self.config)
        self.set_nn(trainer.train(X, Y, learning_rate, epochs, batch_size))
        return trainer.metrics

    # =========================================================================
    # CHECKPOINTS
    # =========================================================================

    def save(
        self,
        filepath: str,
        save_reason: str = "manual",
        generation: int = 0,
        best_fitness: Optional[float] = None,
        final_loss: Optional[float] = None
    ) -> Optional[SaveMetadata]:
        """
        Save the network to file with metadata.

        Returns:
            SaveMetadata if the save succeeded, None on failure
        """
        dir_path = os.path.dirname(filepath)
        if dir_path:
            os.makedirs(dir_path, exist_ok=True)

        state = self._nn.state_dict()
        metadata = SaveMetadata(
            timestamp=datetime.now().isoformat(),
            save_reason=save_reason,
            generation=generation,
            best_fitness=best_fitness,
            final_loss=final_loss,
            dimensions=state['dimensions'],
            activations=state['activations'],
            capture_width=self.config.CAPTURE_WIDTH,
            capture_height=self.config.CAPTURE_HEIGHT,
            learning_rate=self.config.LEARNING_RATE,
            population_size=self.config.POPULATION_SIZE,
            mutation_rate=self.config.MUTATION_RATE,
            mutation_scale=self.config.MUTATION_SCALE,
            crossover=self.config.CROSSOVER,
        )

        checkpoint = {
            'network_state_dict': {
                'dimensions': state['dimensions'],
                'activations': state['activations'],
                'weights': [torch.from_numpy(w) for w in state['weights']],
            },
            'input_size': self._nn.input_size,
            'output_size': self._nn.output_size,
            'metadata': metadata.to_dict(),
        }

        try:
            torch.save(checkpoint, filepath)
        except Exception as e:
            _logger.error(f"Save FAILED for {filepath}: {e}")
            return None

        log_model_event('save', filepath, reason=save_reason, generation=generation)
        return metadata

    def load(self, filepath: str) -> Optional[SaveMetadata]:
        """
        Load a network saved with save() and adopt it.

        Returns:
            SaveMetadata on success; None if the file is missing, unreadable or
            built for a different architecture (the current network is kept)
        """
        checkpoint = self._read_checkpoint(filepath)
        if checkpoint is None:
            return None

        saved_input = checkpoint.get('input_size')
        saved_output = checkpoint.get('output_size')
        if saved_input != self._nn.input_size or saved_output != self._nn.output_size:
            _logger.warning(
                f"Model incompatible: saved {saved_input}->{saved_output}, "
                f"current {self._nn.input_size}->{self._nn.output_size}"
            )
            return None

        state = checkpoint['network_state_dict']
        self.set_nn(NeuralNetwork.from_state_dict({
            'dimensions': state['dimensions'],
            'activations': state['activations'],
            'weights': [w.numpy() for w in state['weights']],
        }))

        metadata = None
        if 'metadata' in checkpoint:
            metadata = SaveMetadata.from_dict(checkpoint['metadata'])
        log_model_event('load', filepath)
        return metadata

    @staticmethod
    def _read_checkpoint(filepath: str) -> Optional[Dict[str, Any]]:
        if not os.path.exists(filepath):
            _logger.error(f"Model file not found: {filepath}")
            return None
        try:
            checkpoint = torch.load(filepath, map_location='cpu', weights_only=False)
        except Exception as e:
            _logger.error(f"Failed to load model {filepath}: {e}")
            return None
        if not isinstance(checkpoint, dict) or 'network_state_dict' not in checkpoint:
            _logger.error(f"Not a model checkpoint: {filepath}")
            return None
        return checkpoint

    @staticmethod
    def inspect_model(filepath: str) -> Optional[Dict[str, Any]]:
        """
        Inspect a model file without loading it into an agent.

        Returns:
            Dictionary with model info, or None on error
        """
        checkpoint = IACar._read_checkpoint(filepath)
        if checkpoint is None:
            return None

        state = checkpoint.get('network_state_dict', {})
        file_size = os.path.getsize(filepath)
        info = {
            'filepath': filepath,
            'filename': os.path.basename(filepath),
            'file_size_bytes': file_size,
            'file_modified': datetime.fromtimestamp(os.path.getmtime(filepath)).isoformat(),
            'dimensions': state.get('dimensions', 'unknown'),
            'activations': state.get('activations', 'unknown'),
            'parameters': int(sum(np.prod(tuple(w.shape)) for w in state.get('weights', []))),
        }
        if 'metadata' in checkpoint:
            info['metadata'] = checkpoint['metadata']
        return info
