"""
Centralized logging infrastructure for the driving AI.

Usage:
    from gtadrive.utils.logger import get_logger

    logger = get_logger(__name__)
    logger.info("Evolution started")
    logger.debug("Mutation rate: 0.1")
    logger.warning("Dataset file missing")
    logger.error("Failed to save model")

Configuration:
    Set LOG_LEVEL in config.py to control verbosity:
    - DEBUG: All messages including debug info
    - INFO: Normal operation messages (default)
    - WARNING: Warnings and errors only
    - ERROR: Errors only
"""

import logging
import sys
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Optional


class LogLevel(Enum):
    """Log levels for configuration."""
    DEBUG = logging.DEBUG
    INFO = logging.INFO
    WARNING = logging.WARNING
    ERROR = logging.ERROR


ROOT_LOGGER_NAME = 'gtadrive'

# Module-level state
_initialized = False
_defaults_only = False  # set when get_logger() initialized logging implicitly


class ColoredFormatter(logging.Formatter):
    """Formatter that adds colors to console output."""

    COLORS = {
        'DEBUG': '\033[36m',     # Cyan
        'INFO': '\033[32m',      # Green
        'WARNING': '\033[33m',   # Yellow
        'ERROR': '\033[31m',     # Red
        'CRITICAL': '\033[35m',  # Magenta
        'RESET': '\033[0m',
    }

    def __init__(self, fmt: str, use_colors: bool = True):
        super().__init__(fmt)
        self.use_colors = use_colors and sys.stdout.isatty()

    def format(self, record: logging.LogRecord) -> str:
        if self.use_colors:
            color = self.COLORS.get(record.levelname, self.COLORS['RESET'])
            record.levelname = f"{color}{record.levelname}{self.COLORS['RESET']}"
        return super().format(record)


def setup_logging(
    log_dir: str = 'logs',
    level: LogLevel = LogLevel.INFO,
    console_output: bool = True,
    file_output: bool = True,
    log_filename: Optional[str] = None,
) -> None:
    """
    Initialize the logging system.

    Args:
        log_dir: Directory for log files
        level: Minimum log level to capture
        console_output: Whether to output to console
        file_output: Whether to output to file
        log_filename: Custom log filename (default: gtadrive_YYYYMMDD_HHMMSS.log)
    """
    global _initialized, _defaults_only

    # An explicit call replaces the console-only defaults from get_logger()
    if _initialized and not _defaults_only:
        return
    _defaults_only = False

    root_logger = logging.getLogger(ROOT_LOGGER_NAME)
    root_logger.setLevel(level.value)
    root_logger.handlers.clear()

    # Console handler with colors
    if console_output:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(level.value)
        console_fmt = ColoredFormatter(
            '%(asctime)s | %(levelname)-8s | %(name)s | %(message)s',
            use_colors=True
        )
        console_handler.setFormatter(console_fmt)
        root_logger.addHandler(console_handler)

    # File handler without colors
    if file_output:
        log_path_dir = Path(log_dir)
        log_path_dir.mkdir(parents=True, exist_ok=True)

        if log_filename is None:
            timestamp = datetime.now().strftime('%Y%m%d_%H%M%S')
            log_filename = f'gtadrive_{timestamp}.log'

        log_path = log_path_dir / log_filename
        file_handler = logging.FileHandler(log_path, mode='a', encoding='utf-8')
        file_handler.setLevel(logging.DEBUG)  # Capture everything in file
        file_fmt = logging.Formatter(
            '%(asctime)s | %(levelname)-8s | %(name)s | %(message)s'
        )
        file_handler.setFormatter(file_fmt)
        root_logger.addHandler(file_handler)

    _initialized = True
    root_logger.debug(f"Logging initialized (level={level.name}, file={file_output})")


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance for a module.

    Args:
        name: Module name (typically __name__)

    Returns:
        Logger instance configured with project settings

    Example:
        logger = get_logger(__name__)
        logger.info("Message")
    """
    global _defaults_only

    # Console-only defaults until setup_logging() is called explicitly
    if not _initialized:
        setup_logging(file_output=False)
        _defaults_only = True

    # Strip package prefix for cleaner names
    prefix = f'{ROOT_LOGGER_NAME}.'
    if name.startswith(prefix):
        name = name[len(prefix):]

    return logging.getLogger(f'{ROOT_LOGGER_NAME}.{name}')


def log_generation_metrics(
    generation: int,
    best_fitness: float,
    mean_fitness: float,
    std_fitness: Optional[float] = None,
    duration: Optional[float] = None,
) -> None:
    """
    Log evolution metrics in a consistent format.

    Args:
        generation: Generation number
        best_fitness: Best fitness of the generation
        mean_fitness: Mean fitness of the generation
        std_fitness: Fitness standard deviation (if available)
        duration: Seconds spent on the generation (if available)
    """
    logger = get_logger('evolution')

    metrics = [
        f"gen={generation}",
        f"best={best_fitness:.3f}",
        f"mean={mean_fitness:.3f}",
    ]

    if std_fitness is not None:
        metrics.append(f"std={std_fitness:.3f}")
    if duration is not None:
        metrics.append(f"time={duration:.2f}s")

    logger.info(" | ".join(metrics))


def log_epoch_metrics(epoch: int, loss: float, duration: Optional[float] = None) -> None:
    """Log gradient training metrics for one epoch."""
    logger = get_logger('training')

    metrics = [f"epoch={epoch}", f"loss={loss:.6f}"]
    if duration is not None:
        metrics.append(f"time={duration:.2f}s")

    logger.info(" | ".join(metrics))


def log_model_event(event: str, path: str, **kwargs) -> None:
    """
    Log model-related events (save/load).

    Args:
        event: Event type ('save', 'load', 'checkpoint')
        path: Model file path
        **kwargs: Additional context (e.g., generation, fitness)
    """
    logger = get_logger('model')

    extra = " | ".join(f"{k}={v}" for k, v in kwargs.items())
    if extra:
        logger.info(f"{event.upper()} | {path} | {extra}")
    else:
        logger.info(f"{event.upper()} | {path}")
