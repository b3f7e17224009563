"""
Solution path search for Circuit Challenge puzzles.

The path runs from START (0, 0) to FINISH (rows-1, cols-1) over the
8-connected grid. Every diagonal step fixes the diagonal of the 2x2 block
it crosses, since a block can only hold one diagonal connector.
"""

from collections import deque
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Dict, Optional, Callable, Tuple, Set
import numpy as np

from .. import config
from ..core.puzzle import Coordinate, DiagonalDirection
from ..core.utils import setup_logger, timer

_NEIGHBOUR_OFFSETS = [
    (-1, -1), (-1, 0), (-1, 1),
    (0, -1), (0, 1),
    (1, -1), (1, 0), (1, 1),
]


# Grid geometry helpers

def are_adjacent(a: Coordinate, b: Coordinate) -> bool:
    """True if two cells touch horizontally, vertically or diagonally"""
    return a.is_adjacent_to(b)


def get_adjacent(pos: Coordinate, rows: int, cols: int) -> List[Coordinate]:
    """In-bounds neighbours of a cell (3 in a corner, 5 on an edge, 8 inside)"""
    neighbours = []
    for dr, dc in _NEIGHBOUR_OFFSETS:
        row, col = pos.row + dr, pos.col + dc
        if 0 <= row < rows and 0 <= col < cols:
            neighbours.append(Coordinate(row, col))
    return neighbours


def manhattan_distance(a: Coordinate, b: Coordinate) -> int:
    return abs(a.row - b.row) + abs(a.col - b.col)


def chebyshev_distance(a: Coordinate, b: Coordinate) -> int:
    """Fewest king moves between two cells"""
    return max(abs(a.row - b.row), abs(a.col - b.col))


def is_diagonal_move(a: Coordinate, b: Coordinate) -> bool:
    return abs(a.row - b.row) == 1 and abs(a.col - b.col) == 1


def get_diagonal_key(a: Coordinate, b: Coordinate) -> Coordinate:
    """Top-left cell of the 2x2 block crossed by a diagonal move"""
    return Coordinate(min(a.row, b.row), min(a.col, b.col))


def get_diagonal_direction(start: Coordinate, end: Coordinate) -> DiagonalDirection:
    """
    Diagonal used by a move. The result does not depend on which way the
    move is travelled.
    """
    dr = end.row - start.row
    dc = end.col - start.col
    if (dr > 0 and dc > 0) or (dr < 0 and dc < 0):
        return DiagonalDirection.DR
    return DiagonalDirection.DL


def count_direction_changes(path: List[Coordinate]) -> int:
    """Number of times consecutive steps change direction"""
    changes = 0
    previous = None
    for a, b in zip(path, path[1:]):
        step = (b.row - a.row, b.col - a.col)
        if previous is not None and step != previous:
            changes += 1
        previous = step
    return changes


def is_interesting_path(path: List[Coordinate]) -> bool:
    """
    Reject paths that are too straight.

    Short paths need one turn, medium paths two, longer paths three.
    """
    if len(path) < 6:
        required = 1
    elif len(path) < 8:
        required = 2
    else:
        required = 3
    return count_direction_changes(path) >= required


@dataclass
class PathFinderConfig:
    """Configuration for the path search"""
    max_restarts: int = config.PATH_MAX_RESTARTS
    max_iterations: int = config.PATH_MAX_ITERATIONS  # per restart
    verbose: bool = False
    log_file: Optional[Path] = None


@dataclass
class PathResult:
    """Result from the path search"""
    success: bool
    path: List[Coordinate] = field(default_factory=list)
    diagonal_commitments: Dict[Coordinate, DiagonalDirection] = field(default_factory=dict)
    message: str = ""
    restarts: int = 0
    iterations: int = 0

    def __repr__(self):
        status = "Success" if self.success else "Failed"
        return f"PathResult({status}, length={len(self.path)}, restarts={self.restarts})"


class PathFinder:
    """
    Randomised backtracking search for a START to FINISH path.

    The search keeps an explicit stack of candidate frames, one per path
    cell, so long paths never hit the recursion limit.
    """

    def __init__(self, config: Optional[PathFinderConfig] = None,
                 interest_fn: Optional[Callable[[List[Coordinate]], bool]] = None):
        self.config = config or PathFinderConfig()
        self.interest_fn = interest_fn or is_interesting_path
        self.logger = setup_logger(
            self.__class__.__name__,
            self.config.log_file,
            "DEBUG" if self.config.verbose else "INFO"
        )

    @timer
    def generate_path(self, rows: int, cols: int, min_length: int, max_length: int,
                      rng: np.random.Generator,
                      allowed_diagonal: Optional[DiagonalDirection] = None) -> PathResult:
        """
        Find a path whose length (in cells) lies in [min_length, max_length].

        Args:
            rows: Grid rows
            cols: Grid columns
            min_length: Minimum number of cells on the path
            max_length: Maximum number of cells on the path
            rng: Random source
            allowed_diagonal: When set, only diagonal moves of this direction
                are allowed

        Returns:
            PathResult with the path and the diagonal commitments it made
        """
        start = Coordinate(0, 0)
        finish = Coordinate(rows - 1, cols - 1)

        if min_length > max_length:
            return PathResult(False, message=f"min_length {min_length} exceeds max_length {max_length}")
        if max_length > rows * cols:
            return PathResult(False, message=f"max_length {max_length} exceeds {rows * cols} cells")
        if chebyshev_distance(start, finish) + 1 > max_length:
            return PathResult(False, message="FINISH cannot be reached within max_length")

        total_iterations = 0
        for restart in range(self.config.max_restarts):
            found, iterations = self._search(rows, cols, min_length, max_length, rng, allowed_diagonal)
            total_iterations += iterations
            if found is not None:
                path, commitments = found
                self.logger.debug(f"Found path of length {len(path)} after {restart + 1} restart(s)")
                return PathResult(True, path, commitments,
                                  message="Path found",
                                  restarts=restart + 1,
                                  iterations=total_iterations)

        self.logger.debug(f"No path for {rows}x{cols} grid with length "
                          f"{min_length}-{max_length} after {self.config.max_restarts} restarts")
        return PathResult(False,
                          message=f"No path found after {self.config.max_restarts} restarts",
                          restarts=self.config.max_restarts,
                          iterations=total_iterations)

    def _search(self, rows: int, cols: int, min_length: int, max_length: int,
                rng: np.random.Generator,
                allowed_diagonal: Optional[DiagonalDirection]):
        """One bounded search. Returns ((path, commitments) or None, iterations)"""
        start = Coordinate(0, 0)
        finish = Coordinate(rows - 1, cols - 1)

        path = [start]
        visited = {start}
        commitments: Dict[Coordinate, DiagonalDirection] = {}
        # Block committed when each path cell was entered (None for straight moves)
        entered_with: List[Optional[Coordinate]] = [None]

        stack = [self._candidates(start, path, visited, commitments, rows, cols,
                                  min_length, max_length, rng, allowed_diagonal)]
        iterations = 0

        while stack:
            iterations += 1
            if iterations > self.config.max_iterations:
                return None, iterations

            candidates = stack[-1]
            if not candidates:
                # Dead end: step back
                stack.pop()
                cell = path.pop()
                visited.discard(cell)
                block = entered_with.pop()
                if block is not None:
                    del commitments[block]
                continue

            current = path[-1]
            nxt = candidates.pop()

            block = None
            if is_diagonal_move(current, nxt):
                key = get_diagonal_key(current, nxt)
                if key not in commitments:
                    commitments[key] = get_diagonal_direction(current, nxt)
                    block = key

            path.append(nxt)
            visited.add(nxt)
            entered_with.append(block)

            if nxt == finish:
                if min_length <= len(path) <= max_length and self.interest_fn(path):
                    return (list(path), dict(commitments)), iterations
                # FINISH is terminal, undo the move
                path.pop()
                visited.discard(nxt)
                entered_with.pop()
                if block is not None:
                    del commitments[block]
                continue

            stack.append(self._candidates(nxt, path, visited, commitments, rows, cols,
                                          min_length, max_length, rng, allowed_diagonal))

        return None, iterations

    def _candidates(self, current: Coordinate, path: List[Coordinate], visited: Set[Coordinate],
                    commitments: Dict[Coordinate, DiagonalDirection],
                    rows: int, cols: int, min_length: int, max_length: int,
                    rng: np.random.Generator,
                    allowed_diagonal: Optional[DiagonalDirection]) -> List[Coordinate]:
        """
        Legal, non-hopeless moves from the current cell, ordered so that the
        best-scored move is last (popped first).
        """
        finish = Coordinate(rows - 1, cols - 1)
        new_length = len(path) + 1
        deficit = min_length - new_length
        span = max(rows, cols)

        scored: List[Tuple[float, Coordinate]] = []
        for neighbour in get_adjacent(current, rows, cols):
            if neighbour in visited:
                continue

            if is_diagonal_move(current, neighbour):
                direction = get_diagonal_direction(current, neighbour)
                if allowed_diagonal is not None and direction != allowed_diagonal:
                    continue
                committed = commitments.get(get_diagonal_key(current, neighbour))
                if committed is not None and committed != direction:
                    continue

            if neighbour == finish:
                if min_length <= new_length <= max_length:
                    scored.append((2.0, neighbour))
                continue

            distance = chebyshev_distance(neighbour, finish)
            if new_length + distance > max_length:
                continue

            finish_reachable, reachable = self._reachable_region(neighbour, visited, finish, rows, cols)
            if not finish_reachable or new_length + reachable < min_length:
                continue

            if deficit > 0:
                # Still too short: wander away from FINISH
                score = float(rng.random()) + 0.3 * distance / span
            else:
                score = float(rng.random()) - 0.5 * distance / span
            scored.append((score, neighbour))

        scored.sort(key=lambda item: item[0])
        return [cell for _, cell in scored]

    @staticmethod
    def _reachable_region(origin: Coordinate, visited: Set[Coordinate], finish: Coordinate,
                          rows: int, cols: int) -> Tuple[bool, int]:
        """
        Flood fill from origin through unvisited cells.

        Returns:
            Whether FINISH is reachable, and how many cells other than
            origin can be reached
        """
        seen = {origin}
        queue = deque([origin])
        while queue:
            cell = queue.popleft()
            for neighbour in get_adjacent(cell, rows, cols):
                if neighbour in seen or neighbour in visited:
                    continue
                seen.add(neighbour)
                queue.append(neighbour)
        return finish in seen, len(seen) - 1
