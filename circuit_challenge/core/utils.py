"""
Utility functions for the Circuit Challenge generator.
"""

import logging
from pathlib import Path
from typing import List, Optional, Dict, Any, Sequence, TypeVar
import time
from functools import wraps
import numpy as np
import yaml

from .. import config
from .difficulty import DifficultySettings, create_custom_difficulty, get_difficulty_by_level

T = TypeVar('T')


def setup_logger(name: str, log_file: Optional[Path] = None, level: str = config.LOG_LEVEL) -> logging.Logger:
    """
    Set up a logger with console and optional file output.

    Args:
        name: Logger name
        log_file: Optional log file path
        level: Logging level

    Returns:
        Configured logger
    """
    logger = logging.getLogger(name)
    logger.setLevel(getattr(logging, level.upper()))

    # Remove existing handlers
    logger.handlers = []

    # Console handler
    console_handler = logging.StreamHandler()
    console_handler.setLevel(getattr(logging, level.upper()))

    # Formatter
    formatter = logging.Formatter(config.LOG_FORMAT, datefmt='%Y-%m-%d %H:%M:%S')
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    # File handler
    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(getattr(logging, level.upper()))
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger


def timer(func):
    """Decorator to time function execution"""
    @wraps(func)
    def wrapper(*args, **kwargs):
        start_time = time.time()
        result = func(*args, **kwargs)
        execution_time = time.time() - start_time

        # Try to get logger from first argument (usually self)
        if args and hasattr(args[0], 'logger'):
            args[0].logger.debug(f"{func.__name__} took {execution_time:.3f} seconds")
        else:
            logging.getLogger(func.__module__).debug(
                f"{func.__name__} took {execution_time:.3f} seconds")

        return result
    return wrapper


# Random source helpers. Every generator stage takes a numpy Generator so
# that a single seed reproduces a whole puzzle.

def make_rng(seed: Optional[int] = None) -> np.random.Generator:
    """Create a random source, seeded when a seed is given"""
    return np.random.default_rng(seed)


def spawn_rngs(seed: Optional[int], count: int) -> List[np.random.Generator]:
    """Independent random sources for parallel workers"""
    children = np.random.SeedSequence(seed).spawn(count)
    return [np.random.default_rng(child) for child in children]


def random_int(rng: np.random.Generator, low: int, high: int) -> int:
    """Uniform integer in [low, high] (both inclusive)"""
    return int(rng.integers(low, high + 1))


def random_choice(rng: np.random.Generator, items: Sequence[T]) -> T:
    """Pick one element of a non-empty sequence"""
    return items[int(rng.integers(len(items)))]


def shuffled(rng: np.random.Generator, items: Sequence[T]) -> List[T]:
    """Shuffled copy of a sequence (input left untouched)"""
    return [items[int(i)] for i in rng.permutation(len(items))]


def load_settings_file(path: Path) -> DifficultySettings:
    """
    Load difficulty settings from a YAML file.

    The file either names a preset level, or lists overrides merged onto
    one (Level 5 when no level is given):

        level: 7
        overrides:
          grid_rows: 6
          division_enabled: true
    """
    with open(path, 'r') as f:
        data = yaml.safe_load(f) or {}

    if not isinstance(data, dict):
        raise ValueError(f"Settings file {path} must contain a mapping")

    level = data.get('level')
    overrides: Dict[str, Any] = data.get('overrides') or {}

    if level is not None and not overrides:
        return get_difficulty_by_level(int(level))

    base = get_difficulty_by_level(int(level)) if level is not None else None
    return create_custom_difficulty(overrides, base=base)
