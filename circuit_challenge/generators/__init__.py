"""
Puzzle generation pipeline for Circuit Challenge.
"""

from .path_finder import (
    PathFinder, PathFinderConfig, PathResult,
    are_adjacent, get_adjacent, manhattan_distance, chebyshev_distance,
    is_diagonal_move, get_diagonal_key, get_diagonal_direction,
    count_direction_changes, is_interesting_path
)
from .connector_builder import (
    ConnectorBuilder, ConnectorBuilderConfig, ValueAssignmentResult,
    UnvaluedConnector, get_connector, get_connectors
)
from .expression_generator import ExpressionGenerator, ExpressionFillResult
from .puzzle_generator import PuzzleGenerator, PuzzleGeneratorConfig

__all__ = [
    # Main generator
    'PuzzleGenerator', 'PuzzleGeneratorConfig',

    # Path search
    'PathFinder', 'PathFinderConfig', 'PathResult',
    'are_adjacent', 'get_adjacent', 'manhattan_distance', 'chebyshev_distance',
    'is_diagonal_move', 'get_diagonal_key', 'get_diagonal_direction',
    'count_direction_changes', 'is_interesting_path',

    # Connectors
    'ConnectorBuilder', 'ConnectorBuilderConfig', 'ValueAssignmentResult',
    'UnvaluedConnector', 'get_connector', 'get_connectors',

    # Expressions
    'ExpressionGenerator', 'ExpressionFillResult'
]
