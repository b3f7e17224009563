"""
Connector construction and value assignment.

Every pair of orthogonally adjacent cells is joined by a connector, and
every 2x2 block holds exactly one diagonal connector. Values are assigned
so that no cell sees the same value on two of its connectors, which makes
every move in the puzzle unambiguous.
"""

import math
from collections import defaultdict
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Dict, Optional, Tuple, FrozenSet
import numpy as np
import networkx as nx

from .. import config
from ..core.puzzle import Coordinate, Connector, ConnectorType, DiagonalDirection
from ..core.utils import setup_logger, timer, shuffled, random_choice

# Every cell has at most 8 connectors; narrower value ranges need a grid
# whose diagonals all run the same way (at most 6 connectors per cell).
MAX_CELL_DEGREE = 8
UNIFORM_DIAGONAL_DEGREE = 6


@dataclass(frozen=True)
class UnvaluedConnector:
    """Connector position before a value is assigned"""
    type: ConnectorType
    cell_a: Coordinate
    cell_b: Coordinate
    direction: Optional[DiagonalDirection] = None

    @property
    def cells(self) -> FrozenSet[Coordinate]:
        return frozenset((self.cell_a, self.cell_b))

    def with_value(self, value: int) -> Connector:
        return Connector(self.type, self.cell_a, self.cell_b, value, self.direction)


@dataclass
class ConnectorBuilderConfig:
    """Configuration for connector value assignment"""
    max_attempts: int = config.CONNECTOR_MAX_ATTEMPTS
    max_backtracks: int = config.CONNECTOR_MAX_BACKTRACKS  # per attempt
    division_ratio: float = config.DIVISION_CONNECTOR_RATIO
    verbose: bool = False
    log_file: Optional[Path] = None


@dataclass
class ValueAssignmentResult:
    """Result from connector value assignment"""
    success: bool
    connectors: List[Connector] = field(default_factory=list)
    division_connector_indices: List[int] = field(default_factory=list)
    message: str = ""
    method: str = ""  # greedy, backtracking or lattice

    def __repr__(self):
        status = "Success" if self.success else "Failed"
        return f"ValueAssignmentResult({status}, connectors={len(self.connectors)}, method={self.method or '-'})"


def diagonal_cells(block: Coordinate, direction: DiagonalDirection) -> Tuple[Coordinate, Coordinate]:
    """Endpoints of a block's diagonal"""
    if direction == DiagonalDirection.DR:
        return block, Coordinate(block.row + 1, block.col + 1)
    return Coordinate(block.row, block.col + 1), Coordinate(block.row + 1, block.col)


def orthogonal_degree(cell: Coordinate, rows: int, cols: int) -> int:
    """Horizontal and vertical connectors at a cell (2, 3 or 4)"""
    degree = 0
    if cell.row > 0:
        degree += 1
    if cell.row < rows - 1:
        degree += 1
    if cell.col > 0:
        degree += 1
    if cell.col < cols - 1:
        degree += 1
    return degree


def get_connector(a: Coordinate, b: Coordinate, connectors: List[Connector]) -> Optional[Connector]:
    """Connector between two cells in either order"""
    for connector in connectors:
        if connector.connects(a, b):
            return connector
    return None


def get_connectors(cell: Coordinate, connectors: List[Connector]) -> List[Connector]:
    """All connectors touching a cell"""
    return [c for c in connectors if c.touches(cell)]


def cell_incidence(connectors) -> Dict[Coordinate, List[int]]:
    """Map each cell to the indices of its connectors"""
    incidence = defaultdict(list)
    for index, connector in enumerate(connectors):
        incidence[connector.cell_a].append(index)
        incidence[connector.cell_b].append(index)
    return dict(incidence)


def needs_uniform_diagonals(min_value: int, max_value: int) -> bool:
    """True when the value range cannot cover a cell with 8 connectors"""
    return max_value - min_value + 1 < MAX_CELL_DEGREE


class ConnectorBuilder:
    """Builds the connector layout and assigns distinct-per-cell values"""

    def __init__(self, config: Optional[ConnectorBuilderConfig] = None):
        self.config = config or ConnectorBuilderConfig()
        self.logger = setup_logger(
            self.__class__.__name__,
            self.config.log_file,
            "DEBUG" if self.config.verbose else "INFO"
        )

    def build_diagonal_grid(self, rows: int, cols: int,
                            commitments: Dict[Coordinate, DiagonalDirection],
                            rng: np.random.Generator,
                            uniform_direction: Optional[DiagonalDirection] = None
                            ) -> List[List[DiagonalDirection]]:
        """
        Choose one diagonal per 2x2 block.

        Committed blocks keep their commitment. The rest are visited in random
        order and take the diagonal whose endpoints currently carry fewer
        connectors (ties broken randomly), or uniform_direction when given.
        """
        grid: List[List[Optional[DiagonalDirection]]] = [
            [None] * (cols - 1) for _ in range(rows - 1)
        ]
        degree = {
            Coordinate(r, c): orthogonal_degree(Coordinate(r, c), rows, cols)
            for r in range(rows) for c in range(cols)
        }

        for block, direction in commitments.items():
            grid[block.row][block.col] = direction
            for cell in diagonal_cells(block, direction):
                degree[cell] += 1

        open_blocks = [Coordinate(r, c)
                       for r in range(rows - 1) for c in range(cols - 1)
                       if grid[r][c] is None]

        for block in shuffled(rng, open_blocks):
            if uniform_direction is not None:
                direction = uniform_direction
            else:
                load = {}
                for option in (DiagonalDirection.DR, DiagonalDirection.DL):
                    a, b = diagonal_cells(block, option)
                    load[option] = (max(degree[a], degree[b]), degree[a] + degree[b])
                if load[DiagonalDirection.DR] == load[DiagonalDirection.DL]:
                    direction = random_choice(rng, [DiagonalDirection.DR, DiagonalDirection.DL])
                else:
                    direction = min(load, key=load.get)

            grid[block.row][block.col] = direction
            for cell in diagonal_cells(block, direction):
                degree[cell] += 1

        return grid

    @staticmethod
    def build_connector_graph(rows: int, cols: int,
                              diagonal_grid: List[List[DiagonalDirection]]) -> List[UnvaluedConnector]:
        """All horizontals, then all verticals, then one diagonal per block"""
        connectors = []

        for r in range(rows):
            for c in range(cols - 1):
                connectors.append(UnvaluedConnector(
                    ConnectorType.HORIZONTAL, Coordinate(r, c), Coordinate(r, c + 1)))

        for r in range(rows - 1):
            for c in range(cols):
                connectors.append(UnvaluedConnector(
                    ConnectorType.VERTICAL, Coordinate(r, c), Coordinate(r + 1, c)))

        for r in range(rows - 1):
            for c in range(cols - 1):
                direction = diagonal_grid[r][c]
                a, b = diagonal_cells(Coordinate(r, c), direction)
                connectors.append(UnvaluedConnector(ConnectorType.DIAGONAL, a, b, direction))

        return connectors

    @staticmethod
    def build_constraint_graph(connectors) -> nx.Graph:
        """
        Graph over connector indices. Two connectors are joined when they
        share a cell, so they must take different values.
        """
        graph = nx.Graph()
        for index, connector in enumerate(connectors):
            graph.add_node(index, connector=connector)

        for indices in cell_incidence(connectors).values():
            for i, a in enumerate(indices):
                for b in indices[i + 1:]:
                    graph.add_edge(a, b)

        return graph

    @timer
    def assign_connector_values(self, connectors: List[UnvaluedConnector],
                                min_value: int, max_value: int,
                                rng: np.random.Generator,
                                division_enabled: bool = False,
                                solution_path: Optional[List[Coordinate]] = None,
                                mult_div_range: int = 12) -> ValueAssignmentResult:
        """
        Give every connector a value in [min_value, max_value] so that the
        connectors of each cell carry pairwise distinct values.

        Args:
            connectors: Connector layout from build_connector_graph
            min_value: Smallest connector value
            max_value: Largest connector value
            rng: Random source
            division_enabled: Reserve some solution-path connectors for
                division expressions
            solution_path: Solution path, needed for division reservations
            mult_div_range: Largest quotient a division expression may produce

        Returns:
            ValueAssignmentResult with valued connectors in input order
        """
        if min_value > max_value:
            return ValueAssignmentResult(False, message=f"Invalid value range {min_value}-{max_value}")

        incidence = cell_incidence(connectors)
        max_degree = max((len(indices) for indices in incidence.values()), default=0)
        value_range = list(range(min_value, max_value + 1))
        if max_degree > len(value_range):
            return ValueAssignmentResult(
                False,
                message=f"Value range {min_value}-{max_value} too small for cell degree {max_degree}")

        graph = self.build_constraint_graph(connectors)
        path_indices = self._path_connector_indices(connectors, solution_path)
        no_slack = max_degree >= len(value_range)

        for attempt in range(self.config.max_attempts):
            values: Dict[int, int] = {}
            division_indices = []
            if division_enabled and path_indices:
                division_indices = self._reserve_division(
                    graph, path_indices, values, value_range, mult_div_range, rng)

            if self._greedy_fill(graph, values, value_range, rng):
                return self._result(connectors, values, division_indices, "greedy")

            if no_slack:
                continue

            fixed = {index: values[index] for index in division_indices}
            repaired = self._backtrack(graph, fixed, value_range, rng)
            if repaired is not None:
                self.logger.debug(f"Backtracking repaired assignment on attempt {attempt + 1}")
                return self._result(connectors, repaired, division_indices, "backtracking")

        lattice = self._lattice_fill(connectors, value_range, rng)
        if lattice is not None:
            division_indices = []
            if division_enabled and path_indices:
                limit = max(1, math.floor(self.config.division_ratio * len(path_indices)))
                division_indices = [i for i in path_indices
                                    if 1 <= lattice[i] <= mult_div_range][:limit]
            self.logger.debug("Assigned values along grid lines")
            return self._result(connectors, lattice, division_indices, "lattice")

        return ValueAssignmentResult(
            False,
            message=f"No valid assignment in {min_value}-{max_value} after {self.config.max_attempts} attempts")

    @staticmethod
    def _result(connectors, values: Dict[int, int], division_indices: List[int],
                method: str) -> ValueAssignmentResult:
        valued = [connector.with_value(values[i]) for i, connector in enumerate(connectors)]
        return ValueAssignmentResult(True, valued, sorted(division_indices),
                                     message="Values assigned", method=method)

    @staticmethod
    def _path_connector_indices(connectors, solution_path: Optional[List[Coordinate]]) -> List[int]:
        """Indices of the connectors walked by the solution path"""
        if not solution_path or len(solution_path) < 2:
            return []
        by_cells = {connector.cells: i for i, connector in enumerate(connectors)}
        indices = []
        for a, b in zip(solution_path, solution_path[1:]):
            index = by_cells.get(frozenset((a, b)))
            if index is not None:
                indices.append(index)
        return indices

    def _reserve_division(self, graph: nx.Graph, path_indices: List[int], values: Dict[int, int],
                          value_range: List[int], mult_div_range: int,
                          rng: np.random.Generator) -> List[int]:
        """Value a share of the path connectors with small quotients"""
        count = max(1, math.floor(self.config.division_ratio * len(path_indices)))
        low = max(1, value_range[0])
        high = min(mult_div_range, value_range[-1])

        reserved = []
        for index in shuffled(rng, path_indices)[:count]:
            used = {values[n] for n in graph.neighbors(index) if n in values}
            pool = [v for v in range(low, high + 1) if v not in used]
            if not pool:
                pool = [v for v in value_range if v not in used]
            if not pool:
                continue
            values[index] = random_choice(rng, pool)
            reserved.append(index)
        return reserved

    @staticmethod
    def _greedy_fill(graph: nx.Graph, values: Dict[int, int], value_range: List[int],
                     rng: np.random.Generator) -> bool:
        """Randomised greedy pass over the unvalued connectors (mutates values)"""
        for index in shuffled(rng, [i for i in graph.nodes if i not in values]):
            used = {values[n] for n in graph.neighbors(index) if n in values}
            pool = [v for v in value_range if v not in used]
            if not pool:
                return False
            values[index] = random_choice(rng, pool)
        return True

    def _backtrack(self, graph: nx.Graph, fixed: Dict[int, int], value_range: List[int],
                   rng: np.random.Generator) -> Optional[Dict[int, int]]:
        """
        Depth-first search with forward checking, most constrained connector
        first. Gives up after max_backtracks dead ends.
        """
        assignment = dict(fixed)
        domains = {}
        for index in graph.nodes:
            if index in fixed:
                continue
            taken = {fixed[n] for n in graph.neighbors(index) if n in fixed}
            domains[index] = set(value_range) - taken
            if not domains[index]:
                return None

        unassigned = set(domains)
        if not unassigned:
            return assignment

        def select():
            return min(unassigned, key=lambda i: (len(domains[i]), -graph.degree(i), i))

        def open_frame(index):
            # [index, remaining candidates, (value, pruned neighbours) of the current trial]
            return [index, shuffled(rng, sorted(domains[index])), None]

        stack = [open_frame(select())]
        backtracks = 0

        while stack:
            frame = stack[-1]
            index, candidates, trial = frame

            if trial is not None:
                value, pruned = trial
                for n in pruned:
                    domains[n].add(value)
                del assignment[index]
                unassigned.add(index)
                frame[2] = None

            if not candidates:
                stack.pop()
                backtracks += 1
                if backtracks > self.config.max_backtracks:
                    return None
                continue

            value = candidates.pop()
            pruned = []
            consistent = True
            for n in graph.neighbors(index):
                if n in unassigned and value in domains[n]:
                    domains[n].discard(value)
                    pruned.append(n)
                    if not domains[n]:
                        consistent = False

            assignment[index] = value
            unassigned.discard(index)
            frame[2] = (value, pruned)

            if not consistent:
                continue
            if not unassigned:
                return assignment

            stack.append(open_frame(select()))

        return None

    @staticmethod
    def _lattice_fill(connectors, value_range: List[int],
                      rng: np.random.Generator) -> Optional[Dict[int, int]]:
        """
        Assignment for grids whose diagonals all run the same way.

        Horizontals, verticals and diagonals then each form straight lines in
        which a cell touches at most two consecutive connectors. Each family
        draws from its own third of the value range and consecutive
        connectors on a line differ.
        """
        directions = {c.direction for c in connectors if c.type == ConnectorType.DIAGONAL}
        if len(directions) > 1 or len(value_range) < UNIFORM_DIAGONAL_DEGREE:
            return None

        values = shuffled(rng, value_range)
        third = len(values) // 3
        families = {
            ConnectorType.HORIZONTAL: values[:third],
            ConnectorType.VERTICAL: values[third:2 * third],
            ConnectorType.DIAGONAL: values[2 * third:],
        }

        lines: Dict[Tuple, List[int]] = defaultdict(list)
        for index, connector in enumerate(connectors):
            a = connector.cell_a
            if connector.type == ConnectorType.HORIZONTAL:
                key = (connector.type, a.row)
            elif connector.type == ConnectorType.VERTICAL:
                key = (connector.type, a.col)
            elif connector.direction == DiagonalDirection.DR:
                key = (connector.type, a.col - a.row)
            else:
                key = (connector.type, a.col + a.row)
            lines[key].append(index)

        def position(index):
            connector = connectors[index]
            return min(connector.cell_a, connector.cell_b)

        assignment = {}
        for (family, _), indices in lines.items():
            previous = None
            for index in sorted(indices, key=position):
                pool = [v for v in families[family] if v != previous]
                previous = random_choice(rng, pool)
                assignment[index] = previous
        return assignment
