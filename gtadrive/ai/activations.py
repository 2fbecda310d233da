"""
Activation Functions
====================

Each activation is a named pair of pure ``Matrix -> Matrix`` callables:
the forward transform and its derivative (the derivative is only needed by
the gradient trainer, never by inference).

Activations are stateless and shared by reference across layers and networks.
New ones are added by building another ActivationFunc; the network never
special-cases an activation by name.
"""

import math
from typing import Callable, Dict, NamedTuple, Union

from gtadrive.maths.matrix import Matrix


MatrixFn = Callable[[Matrix], Matrix]


class ActivationFunc(NamedTuple):
    """Forward transform and derivative, both applied to a whole matrix."""
    name: str
    forward: MatrixFn
    derivative: MatrixFn


def elementwise(fn: Callable[[float], float]) -> MatrixFn:
    """Lift a scalar function to a Matrix -> Matrix function."""
    def apply(m: Matrix) -> Matrix:
        return m.apply_func(lambda res, i, j: fn(m.get_at(i, j)))
    return apply


def _sigmoid(x: float) -> float:
    # Split on sign so exp() never overflows
    if x >= 0:
        return 1.0 / (1.0 + math.exp(-x))
    z = math.exp(x)
    return z / (1.0 + z)


ReLU = ActivationFunc(
    name='relu',
    forward=elementwise(lambda x: x if x > 0 else 0.0),
    derivative=elementwise(lambda x: 1.0 if x > 0 else 0.0),
)

HyperTan = ActivationFunc(
    name='hypertan',
    forward=elementwise(math.tanh),
    derivative=elementwise(lambda x: 1.0 - math.tanh(x) ** 2),
)

Sigmoid = ActivationFunc(
    name='sigmoid',
    forward=elementwise(_sigmoid),
    derivative=elementwise(lambda x: _sigmoid(x) * (1.0 - _sigmoid(x))),
)

Linear = ActivationFunc(
    name='linear',
    forward=elementwise(lambda x: x),
    derivative=elementwise(lambda x: 1.0),
)


ACTIVATIONS: Dict[str, ActivationFunc] = {
    'relu': ReLU,
    'hypertan': HyperTan,
    'tanh': HyperTan,
    'sigmoid': Sigmoid,
    'linear': Linear,
}


def get_activation(activation: Union[str, ActivationFunc]) -> ActivationFunc:
    """
    Resolve an activation by name (case-insensitive) or pass one through.

    Raises:
        ValueError: Unknown activation name
    """
    if isinstance(activation, ActivationFunc):
        return activation
    key = str(activation).lower()
    if key not in ACTIVATIONS:
        raise ValueError(
            f"Unsupported activation: {activation} (available: {', '.join(sorted(ACTIVATIONS))})"
        )
    return ACTIVATIONS[key]
