"""
Tests for the feedforward NeuralNetwork.

These tests verify:
    - Construction and validation
    - predict / feed_forward shapes and value ranges
    - apply_function for mutation and crossover
    - Copies never share weights
"""

import os
import sys

import numpy as np
import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from gtadrive.ai.network import NeuralNetwork
from gtadrive.errors import ShapeMismatchError, StructureMismatchError
from gtadrive.maths import Matrix


@pytest.fixture
def network(rng):
    return NeuralNetwork([4, 3, 2], ['relu', 'hypertan'], rng=rng)


class TestConstruction:
    """Test network creation."""

    def test_dimensions(self, network):
        assert network.dimensions == [4, 3, 2]
        assert network.input_size == 4
        assert network.output_size == 2
        assert [l.weights.shape for l in network.layers] == [(4, 3), (3, 2)]

    def test_parameter_count(self, network):
        assert network.count_parameters() == 4 * 3 + 3 * 2

    def test_activation_count_mismatch(self):
        with pytest.raises(ValueError):
            NeuralNetwork([4, 3, 2], ['relu'])

    def test_too_few_dimensions(self):
        with pytest.raises(ValueError):
            NeuralNetwork([4], [])

    def test_from_weights_must_chain(self):
        with pytest.raises(ShapeMismatchError):
            NeuralNetwork.from_weights([Matrix(4, 3), Matrix(2, 2)], ['relu', 'linear'])

    def test_layer_info(self, network):
        info = network.get_layer_info()
        assert [i['type'] for i in info] == ['input', 'hidden', 'output']
        assert info[-1]['activation'] == 'hypertan'


class TestInference:
    """Test forward passes."""

    def test_zero_input_in_range(self, rng):
        """HyperTan output keeps every cell in (-1, 1)."""
        for _ in range(10):
            nn = NeuralNetwork([4, 3, 2], ['relu', 'hypertan'], rng=rng)
            out = nn.predict(Matrix(1, 4))
            assert out.shape == (1, 2)
            assert all(-1 < v < 1 for v in out.get_row(0))

    def test_predict_wrong_shape(self, network):
        with pytest.raises(ShapeMismatchError):
            network.predict(Matrix(1, 5))
        with pytest.raises(ShapeMismatchError):
            network.predict(Matrix(2, 4))

    def test_predict_matches_numpy(self, network, rng):
        x = Matrix.gen_random_gaussian(1, 4, rng=rng)
        w1, w2 = [w.to_numpy() for w in network.get_weights()]
        expected = np.tanh(np.maximum(x.to_numpy() @ w1, 0) @ w2)
        assert np.allclose(network.predict(x).to_numpy(), expected)

    def test_feed_forward_batch(self, network, rng):
        outputs = network.feed_forward(Matrix.gen_random_gaussian(5, 4, rng=rng))
        assert [a.shape for _, a in outputs] == [(5, 3), (5, 2)]

    def test_predict_does_not_change_weights(self, network):
        before = [w.to_numpy() for w in network.get_weights()]
        network.predict(Matrix(1, 4))
        after = [w.to_numpy() for w in network.get_weights()]
        assert all(np.array_equal(x, y) for x, y in zip(before, after))


class TestApplyFunction:
    """Test the parameter transformation primitive."""

    def test_crossover_identity(self, network, rng):
        """(a, b) -> a returns a value-equal network."""
        other = NeuralNetwork([4, 3, 2], ['relu', 'hypertan'], rng=rng)
        child = network.apply_function(lambda a, b: a, other)
        assert child.same_structure(network)
        for mine, theirs in zip(child.layers, network.layers):
            assert mine.weights.allclose(theirs.weights, atol=0.0)
            assert mine.weights is not theirs.weights

    def test_crossover_average(self, network, rng):
        other = NeuralNetwork([4, 3, 2], ['relu', 'hypertan'], rng=rng)
        child = network.apply_function(lambda a, b: a.plus(b).mul(0.5), other)
        expected = network.layers[0].weights.plus(other.layers[0].weights).mul(0.5)
        assert child.layers[0].weights.allclose(expected)

    def test_structure_mismatch(self, network, rng):
        other = NeuralNetwork([4, 5, 2], ['relu', 'hypertan'], rng=rng)
        with pytest.raises(StructureMismatchError):
            network.apply_function(lambda a, b: a, other)

    def test_activation_mismatch(self, network, rng):
        other = NeuralNetwork([4, 3, 2], ['relu', 'sigmoid'], rng=rng)
        with pytest.raises(StructureMismatchError):
            network.apply_function(lambda a, b: a, other)

    def test_shape_change_rejected(self, network):
        with pytest.raises(ShapeMismatchError):
            network.apply_function(lambda w: w.transpose())

    def test_mutation_leaves_receiver(self, network):
        before = network.get_weights()
        mutated = network.apply_function(lambda w: w.plus(1.0))
        for old, new, kept in zip(before, mutated.get_weights(), network.get_weights()):
            assert new.allclose(old.plus(1.0))
            assert kept.allclose(old, atol=0.0)

    def test_copy_not_aliased(self, network):
        """Mutating the original after copy() leaves the copy alone."""
        snapshot = network.copy()
        network.layers[0].weights.set_at(0, 0, 1234.0)
        network.apply_function(lambda w: w.mul(0))
        assert snapshot.layers[0].weights.get_at(0, 0) != 1234.0


class TestStateDict:
    """Test plain serialization."""

    def test_round_trip(self, network, rng):
        restored = NeuralNetwork.from_state_dict(network.state_dict())
        x = Matrix.gen_random_gaussian(1, 4, rng=rng)
        assert restored.predict(x).allclose(network.predict(x))
        assert [a.name for a in restored.activations] == ['relu', 'hypertan']

    def test_dimension_mismatch(self, network):
        state = network.state_dict()
        state['dimensions'] = [4, 4, 2]
        with pytest.raises(ShapeMismatchError):
            NeuralNetwork.from_state_dict(state)
