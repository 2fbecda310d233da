"""
Gradient Training
=================

Supervised training from recorded driving data.

Algorithm (mini-batch SGD):
    1. Shuffle the dataset (X and Y with the same permutation)
    2. Split it into batches of BATCH_SIZE rows
    3. Backpropagate the loss through the network to get dW for every layer
    4. Package the gradients as a network with the same structure
    5. network <- network.apply_function(sgd_update(lr), gradients)

Step 5 is the same two-network primitive the genetic trainer uses for
crossover; only the combining function differs.

Backpropagation, with z_l = a_{l-1} @ W_l and a_l = act_l(z_l):
    delta_L = loss'(a_L, Y) * act_L'(z_L)
    dW_l    = a_{l-1}^T @ delta_l
    delta_l = (delta_{l+1} @ W_{l+1}^T) * act_l'(z_l)

The loss derivative already averages over the batch, so the learning rate
is the only scaling applied at the update.
"""

import time
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple, Union

import numpy as np

from config import Config
from gtadrive.errors import LengthMismatchError, ShapeMismatchError
from gtadrive.maths.matrix import Matrix
from gtadrive.utils.logger import get_logger, log_epoch_metrics

from .losses import Loss, get_loss
from .network import NeuralNetwork


_logger = get_logger(__name__)


def sgd_update(learning_rate: float) -> Callable[[Matrix, Matrix], Matrix]:
    """Combiner for apply_function: W, dW -> W - learning_rate * dW."""
    def update(weights: Matrix, gradient: Matrix) -> Matrix:
        return weights.sub(gradient.mul(learning_rate))
    return update


@dataclass
class EpochStats:
    """Statistics for a single epoch."""
    epoch: int
    loss: float
    batches: int
    duration: float


class TrainingMetrics:
    """Loss history over epochs."""

    def __init__(self):
        self.epochs: List[EpochStats] = []

    def add(self, stats: EpochStats) -> None:
        self.epochs.append(stats)

    @property
    def losses(self) -> List[float]:
        return [s.loss for s in self.epochs]

    def get_best_loss(self) -> float:
        return min(self.losses) if self.epochs else float('inf')


class GradientTrainer:
    """
    Trains a NeuralNetwork by backpropagation.

    The trainer never mutates a network: every step replaces self.network
    with the result of apply_function().

    Example:
        >>> trainer = GradientTrainer(NeuralNetwork([4, 3, 2], ['relu', 'hypertan']))
        >>> trained = trainer.train(X, Y, learning_rate=0.05, epochs=100, batch_size=8)
    """

    def __init__(
        self,
        network: NeuralNetwork,
        loss: Union[str, Loss] = 'mse',
        config: Optional[Config] = None,
        rng: Optional[np.random.Generator] = None
    ):
        """
        Args:
            network: Network to start from (left untouched)
            loss: Loss name or instance
            config: Default hyperparameters
            rng: Generator for the per-epoch shuffles
        """
        self.config = config or Config()
        self.network = network
        self.loss = get_loss(loss)
        self.rng = rng if rng is not None else np.random.default_rng(self.config.SEED)
        self.metrics = TrainingMetrics()

    @staticmethod
    def _check_data(network: NeuralNetwork, X: Matrix, Y: Matrix) -> None:
        if X.rows != Y.rows:
            raise LengthMismatchError(f"X has {X.rows} samples but Y has {Y.rows}")
        if X.cols != network.input_size:
            raise ShapeMismatchError(f"X has {X.cols} columns, network expects {network.input_size}")
        if Y.cols != network.output_size:
            raise ShapeMismatchError(f"Y has {Y.cols} columns, network outputs {network.output_size}")

    def _backprop(self, X: Matrix, Y: Matrix) -> Tuple[float, NeuralNetwork]:
        self._check_data(self.network, X, Y)
        layers = self.network.layers
        outputs = self.network.feed_forward(X)

        z_last, a_last = outputs[-1]
        batch_loss = self.loss.func(a_last, Y)
        delta = self.loss.derivative(a_last, Y).mul(layers[-1].activation.derivative(z_last))

        gradients: List[Matrix] = []
        for l in range(len(layers) - 1, -1, -1):
            a_prev = X if l == 0 else outputs[l - 1][1]
            gradients.insert(0, a_prev.transpose().matmul(delta))
            if l > 0:
                z_prev = outputs[l - 1][0]
                back = delta.matmul(layers[l].weights.transpose())
                delta = back.mul(layers[l - 1].activation.derivative(z_prev))

        return batch_loss, NeuralNetwork.from_weights(gradients, self.network.activations)

    def compute_gradients(self, X: Matrix, Y: Matrix) -> NeuralNetwork:
        """
        Gradient of the loss w.r.t. every weight matrix.

        Returns:
            Network of the same structure whose weights are the gradients
        """
        return self._backprop(X, Y)[1]

    def step(self, X: Matrix, Y: Matrix, learning_rate: float) -> float:
        """One SGD update on a batch. Returns the batch loss before the update."""
        batch_loss, gradients = self._backprop(X, Y)
        self.network = self.network.apply_function(sgd_update(learning_rate), gradients)
        return batch_loss

    def evaluate(self, X: Matrix, Y: Matrix) -> float:
        """Loss of the current network on (X, Y), no update."""
        self._check_data(self.network, X, Y)
        prediction = self.network.feed_forward(X)[-1][1]
        return self.loss.func(prediction, Y)

    def train(
        self,
        X: Matrix,
        Y: Matrix,
        learning_rate: Optional[float] = None,
        epochs: Optional[int] = None,
        batch_size: Optional[int] = None,
        log_every: Optional[int] = None
    ) -> NeuralNetwork:
        """
        Run mini-batch SGD over the dataset.

        Args:
            X: Inputs, one sample per row
            Y: Targets, one sample per row
            learning_rate: Defaults to config.LEARNING_RATE
            epochs: Defaults to config.EPOCHS
            batch_size: Defaults to config.BATCH_SIZE
            log_every: Log every N epochs (defaults to config.LOG_EVERY, 0 = never)

        Returns:
            The trained network (also kept in self.network)
        """
        self._check_data(self.network, X, Y)
        lr = learning_rate if learning_rate is not None else self.config.LEARNING_RATE
        epochs = epochs if epochs is not None else self.config.EPOCHS
        batch_size = batch_size if batch_size is not None else self.config.BATCH_SIZE
        log_every = log_every if log_every is not None else self.config.LOG_EVERY

        if X.rows == 0:
            _logger.warning("Empty dataset, nothing to train on")
            return self.network

        _logger.info(f"Training on {X.rows} samples: lr={lr}, epochs={epochs}, batch={batch_size}")

        for epoch in range(1, epochs + 1):
            start = time.time()
            order = self.rng.permutation(X.rows)
            X_shuffled = X.shuffle_rows(order)
            Y_shuffled = Y.shuffle_rows(order)

            total, batches = 0.0, 0
            for a in range(0, X.rows, batch_size):
                b = min(a + batch_size, X.rows)
                total += self.step(X_shuffled.select_rows(a, b), Y_shuffled.select_rows(a, b), lr)
                batches += 1

            stats = EpochStats(
                epoch=epoch,
                loss=total / batches,
                batches=batches,
                duration=time.time() - start,
            )
            self.metrics.add(stats)

            if log_every and (epoch % log_every == 0 or epoch == epochs):
                log_epoch_metrics(epoch, stats.loss, stats.duration)

        return self.network
