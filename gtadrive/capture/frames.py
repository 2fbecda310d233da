"""
Frame Preprocessing
===================

Turns a captured game frame into the network's input row.

    frame (any size, RGB or grayscale)
        -> smooth-scaled to CAPTURE_WIDTH x CAPTURE_HEIGHT (pygame)
        -> luminance
        -> 1 x (CAPTURE_WIDTH * CAPTURE_HEIGHT) Matrix, row-major

Pixel intensities are left raw (0-255); IACar.simulate() normalizes them.
Grabbing the frame from the game window is the caller's business.
"""

from typing import Union

import numpy as np
import pygame

from gtadrive.errors import ShapeMismatchError
from gtadrive.maths.matrix import Matrix


# ITU-R BT.601 luma weights
LUMA_WEIGHTS = np.array([0.299, 0.587, 0.114])

Frame = Union[pygame.Surface, np.ndarray]


def _to_surface(frame: Frame) -> pygame.Surface:
    if isinstance(frame, pygame.Surface):
        return frame

    arr = np.asarray(frame)
    if arr.ndim == 2:
        arr = np.stack([arr, arr, arr], axis=-1)
    if arr.ndim != 3 or arr.shape[2] < 3:
        raise ShapeMismatchError(f"Expected an HxW or HxWx3 frame, got shape {arr.shape}")

    rgb = np.clip(arr[:, :, :3], 0, 255).astype(np.uint8)
    # surfarray is indexed (x, y), numpy frames are (row, col)
    return pygame.surfarray.make_surface(rgb.transpose(1, 0, 2))


def frame_to_pixels(frame: Frame, width: int, height: int) -> np.ndarray:
    """
    Scale a frame and convert it to grayscale.

    Args:
        frame: pygame Surface, HxWx3 RGB array or HxW grayscale array
        width: Target width in pixels
        height: Target height in pixels

    Returns:
        (height, width) float64 array of luminance values
    """
    surface = _to_surface(frame)
    if surface.get_size() != (width, height):
        if surface.get_bitsize() in (24, 32):
            surface = pygame.transform.smoothscale(surface, (width, height))
        else:
            surface = pygame.transform.scale(surface, (width, height))

    rgb = pygame.surfarray.array3d(surface).transpose(1, 0, 2).astype(np.float64)
    return rgb @ LUMA_WEIGHTS


def frame_to_matrix(frame: Frame, width: int, height: int) -> Matrix:
    """Flatten a preprocessed frame into a 1 x (width * height) input row."""
    pixels = frame_to_pixels(frame, width, height)
    return Matrix.from_numpy(pixels.reshape(1, width * height))
