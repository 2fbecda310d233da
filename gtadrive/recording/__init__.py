"""Recorded driving sessions used as training data."""

from .recording import (
    Recording,
    TrainingImage,
    TrainingVideo,
    load_driving_data,
    read_video,
    write_video,
)

__all__ = [
    'Recording',
    'TrainingImage',
    'TrainingVideo',
    'load_driving_data',
    'read_video',
    'write_video',
]
