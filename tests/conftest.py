"""
Pytest configuration for the test suite.

This file is automatically loaded by pytest and applies configuration
to all tests in the tests/ directory.
"""

import os
import sys

# Headless pygame for frame preprocessing tests
os.environ.setdefault('SDL_VIDEODRIVER', 'dummy')

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import numpy as np
import pytest

from config import Config
from gtadrive.utils.logger import setup_logging


def pytest_configure(config):
    """Configure pytest with custom markers and settings."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    # Console only, never write log files from tests
    setup_logging(file_output=False)


@pytest.fixture
def small_config(tmp_path):
    """A 2x2 capture so networks stay tiny."""
    cfg = Config()
    cfg.CAPTURE_WIDTH = 2
    cfg.CAPTURE_HEIGHT = 2
    cfg.HIDDEN_LAYERS = [3]
    cfg.POPULATION_SIZE = 6
    cfg.ELITE_COUNT = 1
    cfg.TOURNAMENT_SIZE = 2
    cfg.MAX_IMAGES = 3
    cfg.DATASET_DIR = str(tmp_path / 'dataset')
    cfg.MODEL_DIR = str(tmp_path / 'models')
    cfg.LOG_EVERY = 0
    cfg.SEED = 1234
    return cfg


@pytest.fixture
def rng():
    return np.random.default_rng(42)
