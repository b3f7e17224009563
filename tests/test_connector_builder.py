from collections import Counter, defaultdict

import pytest

from circuit_challenge.core.puzzle import Coordinate, ConnectorType, DiagonalDirection
from circuit_challenge.generators.connector_builder import (
    ConnectorBuilder, get_connector, get_connectors, diagonal_cells
)
from circuit_challenge.generators.path_finder import PathFinder


def layout(builder, rows, cols, rng, commitments=None, uniform=None):
    grid = builder.build_diagonal_grid(rows, cols, commitments or {}, rng, uniform_direction=uniform)
    return builder.build_connector_graph(rows, cols, grid)


def values_by_cell(connectors):
    by_cell = defaultdict(list)
    for connector in connectors:
        by_cell[connector.cell_a].append(connector.value)
        by_cell[connector.cell_b].append(connector.value)
    return by_cell


@pytest.fixture
def builder():
    return ConnectorBuilder()


class TestLayout:

    @pytest.mark.parametrize("rows,cols,counts", [
        (4, 5, (16, 15, 12)),
        (3, 4, (9, 8, 6)),
    ])
    def test_connector_counts(self, builder, rng, rows, cols, counts):
        connectors = layout(builder, rows, cols, rng)
        by_type = Counter(c.type for c in connectors)
        assert (by_type[ConnectorType.HORIZONTAL],
                by_type[ConnectorType.VERTICAL],
                by_type[ConnectorType.DIAGONAL]) == counts

    def test_connectors_are_ordered_by_type(self, builder, rng):
        connectors = layout(builder, 4, 5, rng)
        types = [c.type for c in connectors]
        assert types == sorted(types, key=[ConnectorType.HORIZONTAL,
                                           ConnectorType.VERTICAL,
                                           ConnectorType.DIAGONAL].index)

    def test_one_diagonal_per_block(self, builder, rng):
        connectors = layout(builder, 4, 5, rng)
        blocks = Counter(
            Coordinate(min(c.cell_a.row, c.cell_b.row), min(c.cell_a.col, c.cell_b.col))
            for c in connectors if c.type == ConnectorType.DIAGONAL)
        assert len(blocks) == 12
        assert set(blocks.values()) == {1}

    def test_commitments_are_kept(self, builder, rng):
        commitments = {
            Coordinate(0, 0): DiagonalDirection.DL,
            Coordinate(2, 3): DiagonalDirection.DR,
        }
        grid = builder.build_diagonal_grid(4, 5, commitments, rng)
        assert grid[0][0] == DiagonalDirection.DL
        assert grid[2][3] == DiagonalDirection.DR

    def test_uniform_direction_fills_open_blocks(self, builder, rng):
        grid = builder.build_diagonal_grid(4, 5, {}, rng, uniform_direction=DiagonalDirection.DR)
        assert all(d == DiagonalDirection.DR for row in grid for d in row)

    def test_diagonal_endpoints(self):
        assert diagonal_cells(Coordinate(1, 2), DiagonalDirection.DR) == (Coordinate(1, 2), Coordinate(2, 3))
        assert diagonal_cells(Coordinate(1, 2), DiagonalDirection.DL) == (Coordinate(1, 3), Coordinate(2, 2))

    def test_constraint_graph_joins_connectors_sharing_a_cell(self, builder, rng):
        connectors = layout(builder, 3, 4, rng)
        graph = builder.build_constraint_graph(connectors)
        assert graph.number_of_nodes() == len(connectors)
        for a, b in graph.edges:
            assert connectors[a].cells & connectors[b].cells
        # Two horizontals in the same row that share (0,1)
        assert graph.has_edge(0, 1)


class TestValueAssignment:

    def test_values_in_range_and_distinct_per_cell(self, builder, rng):
        for _ in range(10):
            connectors = layout(builder, 4, 5, rng)
            result = builder.assign_connector_values(connectors, 10, 40, rng)
            assert result.success
            assert len(result.connectors) == len(connectors)
            for unvalued, valued in zip(connectors, result.connectors):
                assert (unvalued.cell_a, unvalued.cell_b) == (valued.cell_a, valued.cell_b)
                assert 10 <= valued.value <= 40
            for cell, values in values_by_cell(result.connectors).items():
                assert len(values) == len(set(values)), cell

    def test_invalid_range_fails(self, builder, rng):
        connectors = layout(builder, 4, 5, rng)
        assert not builder.assign_connector_values(connectors, 20, 10, rng).success

    def test_range_smaller_than_degree_fails(self, builder, rng):
        connectors = layout(builder, 4, 5, rng)
        result = builder.assign_connector_values(connectors, 5, 7, rng)
        assert not result.success
        assert "too small" in result.message

    def test_division_connectors_lie_on_path(self, builder, rng):
        path_result = PathFinder().generate_path(5, 6, 15, 25, rng)
        connectors = layout(builder, 5, 6, rng, path_result.diagonal_commitments)
        result = builder.assign_connector_values(
            connectors, 5, 36, rng,
            division_enabled=True, solution_path=path_result.path, mult_div_range=6)
        assert result.success
        assert result.division_connector_indices

        path_pairs = {frozenset(pair) for pair in zip(path_result.path, path_result.path[1:])}
        for index in result.division_connector_indices:
            connector = result.connectors[index]
            assert frozenset((connector.cell_a, connector.cell_b)) in path_pairs

    def test_narrow_range_with_uniform_diagonals(self, builder, rng):
        # Six values for cells with six connectors
        for direction in DiagonalDirection:
            connectors = layout(builder, 6, 7, rng, uniform=direction)
            result = builder.assign_connector_values(connectors, 5, 10, rng)
            assert result.success
            for values in values_by_cell(result.connectors).values():
                assert len(values) == len(set(values))
                assert all(5 <= v <= 10 for v in values)


class TestLookups:

    def test_get_connector_in_either_order(self, builder, rng):
        connectors = builder.assign_connector_values(layout(builder, 3, 4, rng), 10, 40, rng).connectors
        a, b = Coordinate(1, 1), Coordinate(1, 2)
        found = get_connector(a, b, connectors)
        assert found is not None
        assert get_connector(b, a, connectors) == found
        assert get_connector(Coordinate(0, 0), Coordinate(2, 2), connectors) is None

    def test_get_connectors_counts(self, builder, rng):
        connectors = builder.assign_connector_values(layout(builder, 3, 4, rng), 10, 40, rng).connectors
        # A corner has two orthogonal connectors and at most one diagonal
        assert len(get_connectors(Coordinate(0, 0), connectors)) in (2, 3)
        assert 4 <= len(get_connectors(Coordinate(1, 1), connectors)) <= 8
