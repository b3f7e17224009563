"""
Core data structures and utilities for Circuit Challenge puzzles.
"""

from .puzzle import (
    Coordinate, DiagonalDirection, ConnectorType,
    Connector, Cell, Solution, Puzzle
)
from .expression import Operation, Expression, evaluate_expression
from .difficulty import (
    DifficultySettings, OperationWeights, DIFFICULTY_PRESETS,
    get_difficulty_by_level, get_difficulty_by_name,
    create_custom_difficulty, validate_difficulty_settings,
    calculate_min_path_length, calculate_max_path_length
)
from .story import StoryLevel, ChapterConfig, CHAPTERS, all_story_levels, story_settings
from .results import FailureKind, GenerationResult, BatchResult
from .validator import PuzzleValidator, ValidationResult, get_puzzle_statistics
from .utils import (
    setup_logger, timer,
    make_rng, spawn_rngs, random_int, random_choice, shuffled,
    load_settings_file
)

__all__ = [
    # Data structures
    'Coordinate', 'DiagonalDirection', 'ConnectorType',
    'Connector', 'Cell', 'Solution', 'Puzzle',

    # Expressions
    'Operation', 'Expression', 'evaluate_expression',

    # Difficulty
    'DifficultySettings', 'OperationWeights', 'DIFFICULTY_PRESETS',
    'get_difficulty_by_level', 'get_difficulty_by_name',
    'create_custom_difficulty', 'validate_difficulty_settings',
    'calculate_min_path_length', 'calculate_max_path_length',

    # Story mode
    'StoryLevel', 'ChapterConfig', 'CHAPTERS', 'all_story_levels', 'story_settings',

    # Results
    'FailureKind', 'GenerationResult', 'BatchResult',

    # Validation
    'PuzzleValidator', 'ValidationResult', 'get_puzzle_statistics',

    # Utilities
    'setup_logger', 'timer',
    'make_rng', 'spawn_rngs', 'random_int', 'random_choice', 'shuffled',
    'load_settings_file'
]
