"""
Maths Module
============

Dense 2D numeric engine used by the neural network.

Classes:
    Matrix     - Dense float64 matrix with functional application
    MaxElement - Result of Matrix.max()
"""

from .matrix import Matrix, MaxElement, seed

__all__ = ['Matrix', 'MaxElement', 'seed']
