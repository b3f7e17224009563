"""
Core data structures for Circuit Challenge puzzles.
"""

from dataclasses import dataclass
from typing import List, Tuple, Optional, Dict, Any
from enum import Enum


@dataclass(frozen=True, order=True)
class Coordinate:
    """Grid coordinate (row, col)"""
    row: int
    col: int

    @property
    def key(self) -> str:
        """String key "row,col" """
        return f"{self.row},{self.col}"

    @classmethod
    def from_key(cls, key: str) -> 'Coordinate':
        """Parse a "row,col" key"""
        parts = key.split(',')
        if len(parts) != 2:
            raise ValueError(f"Invalid coordinate key: {key!r}")
        return cls(int(parts[0]), int(parts[1]))

    def is_adjacent_to(self, other: 'Coordinate') -> bool:
        """Chebyshev distance of exactly 1"""
        row_diff = abs(self.row - other.row)
        col_diff = abs(self.col - other.col)
        return row_diff <= 1 and col_diff <= 1 and (row_diff + col_diff) > 0

    def __repr__(self):
        return f"({self.row},{self.col})"


class DiagonalDirection(Enum):
    """Diagonal inside a 2x2 block"""
    DR = "DR"  # (row, col) to (row+1, col+1)
    DL = "DL"  # (row, col+1) to (row+1, col)


class ConnectorType(Enum):
    """Orientation of a connector"""
    HORIZONTAL = "horizontal"
    VERTICAL = "vertical"
    DIAGONAL = "diagonal"


@dataclass(frozen=True)
class Connector:
    """Valued edge between two adjacent cells"""
    type: ConnectorType
    cell_a: Coordinate
    cell_b: Coordinate
    value: int
    direction: Optional[DiagonalDirection] = None

    def touches(self, cell: Coordinate) -> bool:
        return self.cell_a == cell or self.cell_b == cell

    def other_cell(self, cell: Coordinate) -> Coordinate:
        return self.cell_b if cell == self.cell_a else self.cell_a

    def connects(self, a: Coordinate, b: Coordinate) -> bool:
        """Order of a and b does not matter"""
        return ((self.cell_a == a and self.cell_b == b) or
                (self.cell_a == b and self.cell_b == a))

    def __repr__(self):
        return f"Connector({self.cell_a}<->{self.cell_b}, {self.type.value}, value={self.value})"


@dataclass(frozen=True)
class Cell:
    """A cell in the puzzle grid"""
    row: int
    col: int
    expression: str = ""
    answer: Optional[int] = None
    is_start: bool = False
    is_finish: bool = False

    @property
    def coordinate(self) -> Coordinate:
        return Coordinate(self.row, self.col)


@dataclass(frozen=True)
class Solution:
    """Solution path from START to FINISH"""
    path: Tuple[Coordinate, ...]

    @property
    def steps(self) -> int:
        return len(self.path) - 1


@dataclass(frozen=True)
class Puzzle:
    """Complete, immutable puzzle definition"""
    id: str
    difficulty_level: int
    grid: Tuple[Tuple[Cell, ...], ...]
    connectors: Tuple[Connector, ...]
    solution: Solution

    @property
    def rows(self) -> int:
        return len(self.grid)

    @property
    def cols(self) -> int:
        return len(self.grid[0]) if self.grid else 0

    @property
    def start(self) -> Coordinate:
        return Coordinate(0, 0)

    @property
    def finish(self) -> Coordinate:
        return Coordinate(self.rows - 1, self.cols - 1)

    def cell_at(self, coord: Coordinate) -> Optional[Cell]:
        """Get cell at coordinate, None when out of bounds"""
        if not (0 <= coord.row < self.rows and 0 <= coord.col < self.cols):
            return None
        return self.grid[coord.row][coord.col]

    def connectors_for(self, cell: Coordinate) -> List[Connector]:
        """All connectors touching a cell"""
        return [c for c in self.connectors if c.touches(cell)]

    def connector_between(self, a: Coordinate, b: Coordinate) -> Optional[Connector]:
        """Connector joining two cells, if any"""
        for connector in self.connectors:
            if connector.connects(a, b):
                return connector
        return None

    def to_dict(self) -> Dict[str, Any]:
        """Convert puzzle to a plain dictionary"""
        return {
            'id': self.id,
            'difficulty_level': self.difficulty_level,
            'rows': self.rows,
            'cols': self.cols,
            'grid': [
                [
                    {
                        'row': cell.row,
                        'col': cell.col,
                        'expression': cell.expression,
                        'answer': cell.answer,
                        'is_start': cell.is_start,
                        'is_finish': cell.is_finish
                    }
                    for cell in row
                ]
                for row in self.grid
            ],
            'connectors': [
                {
                    'type': c.type.value,
                    'cell_a': [c.cell_a.row, c.cell_a.col],
                    'cell_b': [c.cell_b.row, c.cell_b.col],
                    'value': c.value,
                    'direction': c.direction.value if c.direction else None
                }
                for c in self.connectors
            ],
            'solution': {
                'path': [[p.row, p.col] for p in self.solution.path],
                'steps': self.solution.steps
            }
        }

    def __str__(self):
        """Text view of the grid (useful for debugging)"""
        width = max((len(cell.expression) for row in self.grid for cell in row), default=0)
        width = max(width, len("FINISH"))
        path_cells = set(self.solution.path)

        lines = []
        for row in self.grid:
            labels = []
            for cell in row:
                label = "FINISH" if cell.is_finish else cell.expression
                marker = '*' if cell.coordinate in path_cells else ' '
                labels.append(f"{marker}{label:^{width}}")
            lines.append(' |'.join(labels))
        return '\n'.join(lines)

    def __repr__(self):
        return (f"Puzzle({self.rows}x{self.cols}, level={self.difficulty_level}, "
                f"steps={self.solution.steps}, connectors={len(self.connectors)})")
