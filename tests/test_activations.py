"""
Tests for activation and loss functions.
"""

import math
import os
import sys

import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from gtadrive.ai.activations import HyperTan, Linear, ReLU, Sigmoid, get_activation
from gtadrive.ai.losses import MSE, get_loss
from gtadrive.errors import ShapeMismatchError
from gtadrive.maths import Matrix


@pytest.fixture
def values():
    return Matrix.from_rows([[-2.0, -0.5, 0.0, 0.5, 2.0]])


class TestActivations:
    """Forward and derivative of each activation."""

    def test_relu(self, values):
        assert ReLU.forward(values).tolist() == [[0, 0, 0, 0.5, 2.0]]
        assert ReLU.derivative(values).tolist() == [[0, 0, 0, 1, 1]]

    def test_hypertan(self, values):
        out = HyperTan.forward(values)
        for j in range(values.cols):
            x = values.get_at(0, j)
            assert out.get_at(0, j) == pytest.approx(math.tanh(x))
            assert HyperTan.derivative(values).get_at(0, j) == pytest.approx(1 - math.tanh(x) ** 2)

    def test_sigmoid_no_overflow(self):
        out = Sigmoid.forward(Matrix.from_rows([[-1000.0, 0.0, 1000.0]]))
        assert out.tolist() == [[pytest.approx(0.0), 0.5, pytest.approx(1.0)]]

    def test_linear(self, values):
        assert Linear.forward(values).allclose(values)
        assert Linear.derivative(values).sum() == values.cols

    def test_forward_does_not_mutate(self, values):
        before = values.tolist()
        HyperTan.forward(values)
        assert values.tolist() == before


class TestRegistry:
    """Lookup by name."""

    def test_names(self):
        assert get_activation('relu') is ReLU
        assert get_activation('HyperTan') is HyperTan
        assert get_activation('tanh') is HyperTan

    def test_passthrough(self):
        assert get_activation(Sigmoid) is Sigmoid

    def test_unknown(self):
        with pytest.raises(ValueError):
            get_activation('softmax')


class TestMSE:
    """Mean squared error."""

    def test_value(self):
        pred = Matrix.from_rows([[1.0, 2.0], [3.0, 4.0]])
        target = Matrix.from_rows([[1.0, 0.0], [3.0, 0.0]])
        assert MSE.func(pred, target) == pytest.approx((4 + 16) / 4)

    def test_derivative_is_averaged(self):
        pred = Matrix.from_rows([[1.0, 2.0]])
        target = Matrix.from_rows([[0.0, 0.0]])
        assert MSE.derivative(pred, target).tolist() == [[1.0, 2.0]]

    def test_shape_mismatch(self):
        with pytest.raises(ShapeMismatchError):
            MSE.func(Matrix(1, 2), Matrix(2, 1))

    def test_lookup(self):
        assert get_loss('mse') is MSE
        with pytest.raises(ValueError):
            get_loss('huber')
