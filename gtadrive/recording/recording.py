"""
Driving Recordings
==================

Captured frames paired with the commands a human driver gave at that
moment. They are the supervised dataset for GradientTrainer.

On disk a video is one JSON file:

    {"images": [{"image": [[...], ...], "acceleration": 1, "direction": -1}, ...]}

Recording buffers frames and writes out0.json, out1.json, ... into
DATASET_DIR each time MAX_IMAGES frames are buffered.
"""

import json
import os
from collections import deque
from dataclasses import dataclass
from typing import Any, Deque, Dict, Iterator, List, Optional, Tuple

import numpy as np

from config import Config
from gtadrive.errors import ShapeMismatchError
from gtadrive.maths.matrix import Matrix
from gtadrive.utils.logger import get_logger


_logger = get_logger(__name__)


@dataclass
class TrainingImage:
    """One grayscale frame and the driver's commands."""
    image: np.ndarray
    acceleration: float
    direction: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            'image': np.asarray(self.image).tolist(),
            'acceleration': self.acceleration,
            'direction': self.direction,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'TrainingImage':
        return cls(
            image=np.asarray(data['image'], dtype=np.float64),
            acceleration=data['acceleration'],
            direction=data['direction'],
        )


class TrainingVideo:
    """FIFO sequence of TrainingImage."""

    def __init__(self, images: Optional[List[TrainingImage]] = None):
        self._images: Deque[TrainingImage] = deque(images or [])

    def add_image(self, image: TrainingImage) -> None:
        self._images.append(image)

    def pop_image(self) -> Optional[TrainingImage]:
        """Remove and return the oldest image, or None when empty."""
        return self._images.popleft() if self._images else None

    @property
    def size(self) -> int:
        return len(self._images)

    def __len__(self) -> int:
        return len(self._images)

    def __iter__(self) -> Iterator[TrainingImage]:
        return iter(self._images)


def write_video(video: TrainingVideo, path: str) -> None:
    """Write a video to a JSON file, creating parent directories."""
    dir_path = os.path.dirname(path)
    if dir_path:
        os.makedirs(dir_path, exist_ok=True)
    with open(path, 'w') as f:
        json.dump({'images': [img.to_dict() for img in video]}, f)


def read_video(path: str) -> TrainingVideo:
    """Read a video written by write_video()."""
    with open(path, 'r') as f:
        data = json.load(f)
    return TrainingVideo([TrainingImage.from_dict(d) for d in data.get('images', [])])


class Recording:
    """
    Buffer of recorded frames with automatic saving.

    Example:
        >>> rec = Recording(config)
        >>> rec.add_image(pixels, acceleration=1, direction=0)
        >>> rec.load_videos(0, 3)   # appends out0..out2 from DATASET_DIR
    """

    def __init__(self, config: Optional[Config] = None, start_index: int = 0):
        """
        Args:
            config: Configuration object (MAX_IMAGES, DATASET_DIR)
            start_index: Number used for the next file written
        """
        self.config = config or Config()
        self.video = TrainingVideo()
        self._next_index = start_index

    def video_path(self, index: int) -> str:
        return os.path.join(self.config.DATASET_DIR, f"out{index}.json")

    def add_image(self, image: np.ndarray, acceleration: float, direction: float) -> Optional[str]:
        """
        Buffer one frame.

        Returns:
            Path of the file written if this frame filled the buffer, else None
        """
        self.video.add_image(TrainingImage(np.asarray(image, dtype=np.float64), acceleration, direction))
        if self.video.size >= self.config.MAX_IMAGES:
            return self.flush()
        return None

    def add_video(self, video: TrainingVideo) -> None:
        """Move every image of video into the buffer (video ends up empty)."""
        image = video.pop_image()
        while image is not None:
            self.video.add_image(image)
            image = video.pop_image()

    def load_videos(self, start: int, end: int) -> None:
        """Append the saved videos out{start} .. out{end - 1}."""
        for i in range(start, end):
            path = self.video_path(i)
            self.add_video(read_video(path))
            _logger.debug(f"Loaded {path}")
        _logger.info(f"Loaded videos {start}..{end - 1}: {self.video.size} images buffered")

    def flush(self) -> Optional[str]:
        """Write the buffer to the next outN.json and start a fresh one."""
        if self.video.size == 0:
            return None
        path = self.video_path(self._next_index)
        write_video(self.video, path)
        _logger.info(f"Saved {self.video.size} images to {path}")
        self._next_index += 1
        self.video = TrainingVideo()
        return path


def load_driving_data(video: TrainingVideo, input_size: int) -> Tuple[Matrix, Matrix]:
    """
    Build a supervised dataset from a video.

    Each image is flattened row-major and normalized into one row of X;
    [acceleration, direction] becomes the matching row of Y.

    Raises:
        ShapeMismatchError: An image does not have input_size pixels
    """
    inputs, targets = [], []
    for img in video:
        pixels = np.asarray(img.image, dtype=np.float64).reshape(-1)
        if pixels.size != input_size:
            raise ShapeMismatchError(f"Image has {pixels.size} pixels, expected {input_size}")
        inputs.append(Matrix.from_numpy(pixels.reshape(1, -1)).normalize().to_numpy()[0])
        targets.append([img.acceleration, img.direction])

    if not inputs:
        return Matrix(0, input_size), Matrix(0, 2)
    return Matrix.from_numpy(np.array(inputs)), Matrix.from_numpy(np.array(targets, dtype=np.float64))
