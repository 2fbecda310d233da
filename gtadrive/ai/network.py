"""
Feedforward Neural Network
==========================

Maps a normalized captured frame to two driving commands.

Architecture (default):
    Input (CAPTURE_WIDTH * CAPTURE_HEIGHT) -> ReLU(10) -> HyperTan(2)

Each layer holds one (d_in, d_out) weight Matrix and a shared activation:

    h <- activation_i(h @ W_i)

so a 1 x d0 input row becomes a 1 x dn output row. There is no bias term.

Parameters are changed only through apply_function(), which always returns a
new network:
    - apply_function(f)         -> layer i weight is f(W_i)
      (mutation, gradient steps with a captured gradient, scaling, ...)
    - apply_function(f, other)  -> layer i weight is f(W_i, other.W_i)
      (crossover, or a gradient step with gradients packaged as a network)

Forward passes never write to the network, so several readers may share
one instance.
"""

from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple, Union

import numpy as np

from gtadrive.errors import ShapeMismatchError, StructureMismatchError
from gtadrive.maths.matrix import Matrix
from gtadrive.utils.logger import get_logger

from .activations import ActivationFunc, get_activation


_logger = get_logger(__name__)

MatrixTransform = Callable[[Matrix], Matrix]
MatrixCombiner = Callable[[Matrix, Matrix], Matrix]


class Layer:
    """One weight matrix and its activation."""

    def __init__(self, weights: Matrix, activation: ActivationFunc):
        self.weights = weights
        self.activation = activation

    @property
    def in_features(self) -> int:
        return self.weights.rows

    @property
    def out_features(self) -> int:
        return self.weights.cols

    def forward(self, x: Matrix) -> Tuple[Matrix, Matrix]:
        """Return (pre_activation, activation) for a batch x of shape (b, in_features)."""
        z = x.matmul(self.weights)
        return z, self.activation.forward(z)

    def copy(self) -> 'Layer':
        return Layer(self.weights.copy(), self.activation)

    def __repr__(self) -> str:
        return f"Layer({self.in_features} -> {self.out_features}, {self.activation.name})"


class NeuralNetwork:
    """
    Ordered sequence of layers with contiguous dimensions.

    Attributes:
        layers: The layers, first to last

    Example:
        >>> nn = NeuralNetwork([4, 3, 2], ['relu', 'hypertan'])
        >>> out = nn.predict(Matrix(1, 4))   # shape (1, 2)
        >>> noisy = nn.apply_function(lambda w: w.plus(Matrix.gen_random_gaussian(w.rows, w.cols).mul(0.1)))
    """

    def __init__(
        self,
        dimensions: Sequence[int],
        activations: Sequence[Union[str, ActivationFunc]],
        rng: Optional[np.random.Generator] = None
    ):
        """
        Create a network with Gaussian-initialized weights.

        Args:
            dimensions: [d0, d1, ..., dn] layer sizes, input first
            activations: n activations (instances or registry names)
            rng: Generator for the weight initialization

        Raises:
            ValueError: Inconsistent dimension / activation lists
        """
        dims = [int(d) for d in dimensions]
        if len(dims) < 2:
            raise ValueError(f"Need at least input and output dimensions, got {dims}")
        if any(d <= 0 for d in dims):
            raise ValueError(f"Dimensions must be positive, got {dims}")
        if len(activations) != len(dims) - 1:
            raise ValueError(
                f"Expected {len(dims) - 1} activations for dimensions {dims}, got {len(activations)}"
            )

        funcs = [get_activation(a) for a in activations]
        self.layers: List[Layer] = [
            Layer(Matrix.gen_random_gaussian(dims[i], dims[i + 1], rng=rng), funcs[i])
            for i in range(len(funcs))
        ]
        _logger.debug(f"Created network {dims} ({', '.join(f.name for f in funcs)})")

    @classmethod
    def _from_layers(cls, layers: List[Layer]) -> 'NeuralNetwork':
        net = cls.__new__(cls)
        net.layers = layers
        return net

    @classmethod
    def from_weights(
        cls,
        weights: Sequence[Matrix],
        activations: Sequence[Union[str, ActivationFunc]]
    ) -> 'NeuralNetwork':
        """
        Build a network from explicit weight matrices (deep-copied).

        Raises:
            ValueError: Weight and activation counts differ, or no layers
            ShapeMismatchError: Consecutive weights do not chain
        """
        if len(weights) == 0 or len(weights) != len(activations):
            raise ValueError(f"Got {len(weights)} weight matrices for {len(activations)} activations")
        for prev, nxt in zip(weights, weights[1:]):
            if prev.cols != nxt.rows:
                raise ShapeMismatchError(f"Layer shapes {prev.shape} and {nxt.shape} do not chain")
        return cls._from_layers([
            Layer(w.copy(), get_activation(a)) for w, a in zip(weights, activations)
        ])

    def copy(self) -> 'NeuralNetwork':
        """Deep copy: no weight matrix is shared with the result."""
        return NeuralNetwork._from_layers([layer.copy() for layer in self.layers])

    # =========================================================================
    # STRUCTURE
    # =========================================================================

    @property
    def dimensions(self) -> List[int]:
        return [self.layers[0].in_features] + [layer.out_features for layer in self.layers]

    @property
    def activations(self) -> List[ActivationFunc]:
        return [layer.activation for layer in self.layers]

    @property
    def input_size(self) -> int:
        return self.layers[0].in_features

    @property
    def output_size(self) -> int:
        return self.layers[-1].out_features

    def same_structure(self, other: 'NeuralNetwork') -> bool:
        """True if both networks have the same dimensions and activation layout."""
        return (
            self.dimensions == other.dimensions
            and [a.name for a in self.activations] == [a.name for a in other.activations]
        )

    # =========================================================================
    # INFERENCE
    # =========================================================================

    def predict(self, x: Matrix) -> Matrix:
        """
        Forward pass for a single input row.

        Args:
            x: Input of shape (1, d0)

        Returns:
            Freshly allocated output of shape (1, dn)
        """
        if x.shape != (1, self.input_size):
            raise ShapeMismatchError(f"Expected input of shape (1, {self.input_size}), got {x.shape}")
        h = x
        for layer in self.layers:
            _, h = layer.forward(h)
        return h

    def feed_forward(self, batch: Matrix) -> List[Tuple[Matrix, Matrix]]:
        """
        Forward pass for a batch, keeping every intermediate result.

        Args:
            batch: Inputs of shape (b, d0)

        Returns:
            One (pre_activation, activation) pair per layer
        """
        if batch.cols != self.input_size:
            raise ShapeMismatchError(f"Expected {self.input_size} input columns, got {batch.cols}")
        outputs = []
        h = batch
        for layer in self.layers:
            z, h = layer.forward(h)
            outputs.append((z, h))
        return outputs

    # =========================================================================
    # PARAMETER TRANSFORMATION
    # =========================================================================

    def apply_function(
        self,
        func: Union[MatrixTransform, MatrixCombiner],
        other: Optional['NeuralNetwork'] = None
    ) -> 'NeuralNetwork':
        """
        Build a new network by transforming every weight matrix.

        Args:
            func: f(W) when other is None, otherwise f(W, other_W)
            other: Network with identical structure to combine with

        Returns:
            New network with the same dimensions and activations

        Raises:
            StructureMismatchError: other has a different layout
            ShapeMismatchError: func changed the shape of a weight matrix
        """
        if other is None:
            new_weights = [func(layer.weights) for layer in self.layers]
        else:
            if not self.same_structure(other):
                raise StructureMismatchError(
                    f"Cannot combine {self.dimensions} with {other.dimensions}"
                )
            new_weights = [
                func(mine.weights, theirs.weights)
                for mine, theirs in zip(self.layers, other.layers)
            ]

        layers = []
        for layer, w in zip(self.layers, new_weights):
            if w.shape != layer.weights.shape:
                raise ShapeMismatchError(
                    f"Transformed weights have shape {w.shape}, expected {layer.weights.shape}"
                )
            # A func returning its argument would otherwise alias storage
            if w is layer.weights or (other is not None and any(w is l.weights for l in other.layers)):
                w = w.copy()
            layers.append(Layer(w, layer.activation))
        return NeuralNetwork._from_layers(layers)

    # =========================================================================
    # INSPECTION
    # =========================================================================

    def get_weights(self) -> List[Matrix]:
        """Copies of all weight matrices."""
        return [layer.weights.copy() for layer in self.layers]

    def get_layer_info(self) -> List[Dict[str, Any]]:
        """Information about each layer, input first."""
        info: List[Dict[str, Any]] = [{
            'name': 'Input',
            'neurons': self.input_size,
            'type': 'input',
        }]
        for i, layer in enumerate(self.layers):
            last = i == len(self.layers) - 1
            info.append({
                'name': 'Output' if last else f'Hidden {i + 1}',
                'neurons': layer.out_features,
                'activation': layer.activation.name,
                'type': 'output' if last else 'hidden',
            })
        return info

    def count_parameters(self) -> int:
        return sum(layer.weights.size for layer in self.layers)

    # =========================================================================
    # SERIALIZATION
    # =========================================================================

    def state_dict(self) -> Dict[str, Any]:
        """Plain representation (activation names + numpy weights)."""
        return {
            'dimensions': self.dimensions,
            'activations': [a.name for a in self.activations],
            'weights': [layer.weights.to_numpy() for layer in self.layers],
        }

    @classmethod
    def from_state_dict(cls, state: Dict[str, Any]) -> 'NeuralNetwork':
        net = cls.from_weights(
            [Matrix.from_numpy(np.asarray(w)) for w in state['weights']],
            state['activations'],
        )
        if 'dimensions' in state and list(state['dimensions']) != net.dimensions:
            raise ShapeMismatchError(
                f"Stored dimensions {state['dimensions']} do not match weights {net.dimensions}"
            )
        return net

    def __repr__(self) -> str:
        names = ', '.join(a.name for a in self.activations)
        return f"NeuralNetwork(dimensions={self.dimensions}, activations=[{names}])"
