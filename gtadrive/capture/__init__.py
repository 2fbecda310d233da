"""
Capture Module
==============

Boundary between captured game frames and the network input.

Functions:
    frame_to_matrix - Frame -> 1 x (width * height) Matrix
    frame_to_pixels - Frame -> (height, width) grayscale array
"""

from .frames import frame_to_matrix, frame_to_pixels

__all__ = ['frame_to_matrix', 'frame_to_pixels']
