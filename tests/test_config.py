"""
Tests for Config validation.

These tests verify that invalid configurations are caught early
rather than causing cryptic runtime errors during training.
"""

import os
import sys

import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from config import Config


class TestConfigValidation:
    """Test Config.__post_init__ validation."""

    def test_valid_config_passes(self):
        """Default config should validate without errors."""
        cfg = Config()
        assert cfg is not None

    def test_derived_dimensions(self):
        cfg = Config()
        assert cfg.INPUT_SIZE == 64 * 36
        assert cfg.DIMENSIONS == [64 * 36, 10, 2]

    def test_invalid_learning_rate_zero(self):
        cfg = Config()
        cfg.LEARNING_RATE = 0
        with pytest.raises(AssertionError):
            cfg.__post_init__()

    def test_activation_count_must_match_layers(self):
        """One activation per layer: adding a hidden layer needs another one."""
        cfg = Config()
        cfg.HIDDEN_LAYERS = [10, 5]
        with pytest.raises(AssertionError):
            cfg.__post_init__()
        cfg.ACTIVATIONS = ['relu', 'relu', 'hypertan']
        cfg.__post_init__()

    def test_unknown_crossover(self):
        cfg = Config()
        cfg.CROSSOVER = 'single-point'
        with pytest.raises(AssertionError):
            cfg.__post_init__()

    def test_elite_count_below_population(self):
        cfg = Config()
        cfg.ELITE_COUNT = cfg.POPULATION_SIZE
        with pytest.raises(AssertionError):
            cfg.__post_init__()

    def test_mutation_rate_range(self):
        cfg = Config()
        cfg.MUTATION_RATE = 1.5
        with pytest.raises(AssertionError):
            cfg.__post_init__()

    def test_zero_capture_size(self):
        cfg = Config()
        cfg.CAPTURE_WIDTH = 0
        with pytest.raises(AssertionError):
            cfg.__post_init__()
