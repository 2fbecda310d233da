"""
AI Module
=========

Neural network driver and the two ways of training it.

Classes:
    NeuralNetwork    - Feedforward network with functional parameter updates
    IACar            - Driving agent facade around one network
    GradientTrainer  - Mini-batch SGD from recorded driving data
    Population       - Genetic training over a set of agents
"""

from .activations import ActivationFunc, get_activation
from .losses import Loss, get_loss
from .network import NeuralNetwork
from .agent import IACar, DriveCommand, SaveMetadata
from .trainer import GradientTrainer, sgd_update
from .evolution import Population, GenerationStats

__all__ = [
    'ActivationFunc', 'get_activation',
    'Loss', 'get_loss',
    'NeuralNetwork',
    'IACar', 'DriveCommand', 'SaveMetadata',
    'GradientTrainer', 'sgd_update',
    'Population', 'GenerationStats',
]
