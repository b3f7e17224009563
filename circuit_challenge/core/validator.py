"""
Validator for Circuit Challenge puzzle constraints.

Works only from the finished puzzle: it builds its own connector index and
evaluates expressions with the core evaluator, so it shares no state with
the generation code it checks.
"""

from collections import Counter, defaultdict
from typing import List, Optional, Dict, Any, FrozenSet
import numpy as np

from .puzzle import Puzzle, Coordinate, Connector, ConnectorType, DiagonalDirection
from .expression import Operation, evaluate_expression
from .difficulty import DifficultySettings


class ValidationResult:
    """Result of puzzle validation"""

    def __init__(self):
        self.is_valid = True
        self.errors: List[str] = []
        self.warnings: List[str] = []

    @property
    def valid(self) -> bool:
        return self.is_valid

    def add_error(self, error: str):
        """Add an error message"""
        self.errors.append(error)
        self.is_valid = False

    def add_warning(self, warning: str):
        """Add a warning message"""
        self.warnings.append(warning)

    def merge(self, other: 'ValidationResult'):
        """Fold another result into this one"""
        for error in other.errors:
            self.add_error(error)
        self.warnings.extend(other.warnings)

    def __bool__(self):
        return self.is_valid

    def __repr__(self):
        status = "Valid" if self.is_valid else "Invalid"
        return f"ValidationResult({status}, {len(self.errors)} errors, {len(self.warnings)} warnings)"


def _index_connectors(connectors) -> Dict[FrozenSet[Coordinate], List[Connector]]:
    index = defaultdict(list)
    for connector in connectors:
        index[frozenset((connector.cell_a, connector.cell_b))].append(connector)
    return index


def _grid_is_usable(puzzle: Puzzle) -> bool:
    """Whether cells can be looked up by position at all"""
    if puzzle.rows == 0 or puzzle.cols == 0:
        return False
    return all(len(row) == puzzle.cols for row in puzzle.grid)


class PuzzleValidator:
    """Validates Circuit Challenge puzzle constraints"""

    @staticmethod
    def validate_path(path: List[Coordinate], rows: int, cols: int) -> ValidationResult:
        """Check the path runs START to FINISH through adjacent, distinct cells"""
        result = ValidationResult()

        if not path:
            result.add_error("Solution path is empty")
            return result

        if path[0] != Coordinate(0, 0):
            result.add_error(f"Path starts at {path[0]}, expected (0,0)")
        finish = Coordinate(rows - 1, cols - 1)
        if path[-1] != finish:
            result.add_error(f"Path ends at {path[-1]}, expected {finish}")

        seen = set()
        for cell in path:
            if not (0 <= cell.row < rows and 0 <= cell.col < cols):
                result.add_error(f"Path cell {cell} is out of bounds")
            if cell in seen:
                result.add_error(f"Path visits {cell} more than once")
            seen.add(cell)

        for a, b in zip(path, path[1:]):
            if not a.is_adjacent_to(b):
                result.add_error(f"Path cells {a} and {b} are not adjacent")

        return result

    @staticmethod
    def validate_grid(puzzle: Puzzle) -> ValidationResult:
        """Check grid shape and START/FINISH markers"""
        result = ValidationResult()

        if puzzle.rows == 0 or puzzle.cols == 0:
            result.add_error("Puzzle grid is empty")
            return result

        for r, row in enumerate(puzzle.grid):
            if len(row) != puzzle.cols:
                result.add_error(f"Row {r} has {len(row)} cells, expected {puzzle.cols}")
            for c, cell in enumerate(row):
                if (cell.row, cell.col) != (r, c):
                    result.add_error(f"Cell at ({r},{c}) claims position ({cell.row},{cell.col})")
                if cell.is_start != (cell.coordinate == puzzle.start):
                    result.add_error(f"Cell {cell.coordinate} has wrong START marker")
                if cell.is_finish != (cell.coordinate == puzzle.finish):
                    result.add_error(f"Cell {cell.coordinate} has wrong FINISH marker")

        return result

    @staticmethod
    def validate_connectors(puzzle: Puzzle,
                            settings: Optional[DifficultySettings] = None) -> ValidationResult:
        """Check connector layout, per-cell distinctness and value range"""
        result = ValidationResult()
        rows, cols = puzzle.rows, puzzle.cols

        counts = Counter(c.type for c in puzzle.connectors)
        expected = {
            ConnectorType.HORIZONTAL: rows * (cols - 1),
            ConnectorType.VERTICAL: (rows - 1) * cols,
            ConnectorType.DIAGONAL: (rows - 1) * (cols - 1),
        }
        for connector_type, count in expected.items():
            if counts[connector_type] != count:
                result.add_error(f"Expected {count} {connector_type.value} connectors, "
                                 f"found {counts[connector_type]}")

        index = _index_connectors(puzzle.connectors)
        for cells, found in index.items():
            if len(found) > 1:
                a, b = sorted(cells)
                result.add_error(f"{len(found)} connectors join {a} and {b}")

        blocks = Counter()
        for connector in puzzle.connectors:
            a, b = connector.cell_a, connector.cell_b
            for cell in (a, b):
                if not (0 <= cell.row < rows and 0 <= cell.col < cols):
                    result.add_error(f"{connector} references out-of-bounds cell {cell}")

            dr, dc = abs(a.row - b.row), abs(a.col - b.col)
            geometry = {
                (0, 1): ConnectorType.HORIZONTAL,
                (1, 0): ConnectorType.VERTICAL,
                (1, 1): ConnectorType.DIAGONAL,
            }.get((dr, dc))
            if geometry is None:
                result.add_error(f"{connector} joins non-adjacent cells")
                continue
            if geometry != connector.type:
                result.add_error(f"{connector} is labelled {connector.type.value} but is {geometry.value}")

            if connector.type == ConnectorType.DIAGONAL:
                blocks[Coordinate(min(a.row, b.row), min(a.col, b.col))] += 1
                falling = (b.row - a.row) * (b.col - a.col) > 0
                actual = DiagonalDirection.DR if falling else DiagonalDirection.DL
                if connector.direction != actual:
                    result.add_error(f"{connector} has direction {connector.direction}, expected {actual.value}")

        for block, count in blocks.items():
            if count != 1:
                result.add_error(f"Block at {block} has {count} diagonal connectors")

        # No cell may see the same value twice
        by_cell = defaultdict(list)
        for connector in puzzle.connectors:
            by_cell[connector.cell_a].append(connector.value)
            by_cell[connector.cell_b].append(connector.value)
        for cell, values in sorted(by_cell.items()):
            duplicates = sorted(v for v, n in Counter(values).items() if n > 1)
            if duplicates:
                result.add_error(f"Cell {cell} has duplicate connector values {duplicates}")

        if settings is not None:
            for connector in puzzle.connectors:
                if not settings.connector_min <= connector.value <= settings.connector_max:
                    result.add_error(f"{connector} value outside "
                                     f"{settings.connector_min}-{settings.connector_max}")

        return result

    @staticmethod
    def validate_cells(puzzle: Puzzle) -> ValidationResult:
        """Check answers, expressions and the FINISH cell"""
        result = ValidationResult()
        index = _index_connectors(puzzle.connectors)
        incident = defaultdict(list)
        for cells, found in index.items():
            for cell in cells:
                incident[cell].extend(found)

        for row in puzzle.grid:
            for cell in row:
                coord = cell.coordinate
                if cell.is_finish:
                    if cell.expression != "":
                        result.add_error(f"FINISH cell has expression {cell.expression!r}")
                    if cell.answer is not None:
                        result.add_error(f"FINISH cell has answer {cell.answer}")
                    continue

                if cell.answer is None:
                    result.add_error(f"Cell {coord} has no answer")
                    continue
                if not cell.expression:
                    result.add_error(f"Cell {coord} has no expression")
                    continue

                matches = [c for c in incident[coord] if c.value == cell.answer]
                if len(matches) != 1:
                    result.add_error(f"Cell {coord} answer {cell.answer} matches "
                                     f"{len(matches)} connectors, expected 1")

                value = evaluate_expression(cell.expression)
                if value is None:
                    result.add_error(f"Cell {coord} expression {cell.expression!r} cannot be evaluated")
                elif value != cell.answer:
                    result.add_error(f"Cell {coord} expression {cell.expression!r} = {value}, "
                                     f"answer is {cell.answer}")

        return result

    @staticmethod
    def validate_solution(puzzle: Puzzle,
                          settings: Optional[DifficultySettings] = None) -> ValidationResult:
        """Check the solution path and that its answers lead along it"""
        result = PuzzleValidator.validate_path(list(puzzle.solution.path), puzzle.rows, puzzle.cols)

        path = puzzle.solution.path
        if settings is not None and not (settings.min_path_length <= len(path) <= settings.max_path_length):
            result.add_error(f"Path length {len(path)} outside "
                             f"{settings.min_path_length}-{settings.max_path_length}")

        index = _index_connectors(puzzle.connectors)
        for current, nxt in zip(path, path[1:]):
            found = index.get(frozenset((current, nxt)))
            if not found:
                result.add_error(f"No connector between path cells {current} and {nxt}")
                continue
            cell = puzzle.cell_at(current)
            if cell is not None and cell.answer != found[0].value:
                result.add_error(f"Cell {current} answer {cell.answer} does not lead to {nxt} "
                                 f"(connector value {found[0].value})")

        return result

    @staticmethod
    def validate_puzzle(puzzle: Puzzle,
                        settings: Optional[DifficultySettings] = None) -> ValidationResult:
        """
        Run every check and collect all errors.

        With settings, also checks path-length bounds and the connector
        value range.
        """
        result = PuzzleValidator.validate_grid(puzzle)
        if not _grid_is_usable(puzzle):
            return result

        result.merge(PuzzleValidator.validate_connectors(puzzle, settings))
        result.merge(PuzzleValidator.validate_cells(puzzle))
        result.merge(PuzzleValidator.validate_solution(puzzle, settings))

        start = puzzle.cell_at(puzzle.start)
        if start is not None and start.expression.strip() == "START":
            result.add_error("START cell shows the START label instead of an expression")

        if len(puzzle.solution.path) < puzzle.rows * puzzle.cols * 0.3:
            result.add_warning(f"Short solution path ({len(puzzle.solution.path)} cells)")

        return result


def get_puzzle_statistics(puzzle: Puzzle) -> Dict[str, Any]:
    """Summary numbers for a puzzle"""
    values = np.array([c.value for c in puzzle.connectors], dtype=int)
    operations = Counter()
    for row in puzzle.grid:
        for cell in row:
            for operation in Operation:
                if operation.symbol in cell.expression:
                    operations[operation.name.lower()] += 1
                    break

    path_cells = set(puzzle.solution.path)
    diagonals = Counter(c.direction.value for c in puzzle.connectors
                        if c.type == ConnectorType.DIAGONAL and c.direction is not None)

    return {
        'rows': puzzle.rows,
        'cols': puzzle.cols,
        'difficulty_level': puzzle.difficulty_level,
        'path_length': len(puzzle.solution.path),
        'steps': puzzle.solution.steps,
        'path_coverage': len(path_cells) / (puzzle.rows * puzzle.cols),
        'connectors': len(puzzle.connectors),
        'min_value': int(values.min()) if values.size else 0,
        'max_value': int(values.max()) if values.size else 0,
        'mean_value': float(values.mean()) if values.size else 0.0,
        'distinct_values': int(np.unique(values).size),
        'operations': dict(operations),
        'diagonals': dict(diagonals),
    }
