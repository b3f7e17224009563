import pytest

from circuit_challenge.core.puzzle import Coordinate, DiagonalDirection
from circuit_challenge.core.utils import make_rng
from circuit_challenge.generators.path_finder import (
    PathFinder, PathFinderConfig,
    are_adjacent, get_adjacent, manhattan_distance, chebyshev_distance,
    is_diagonal_move, get_diagonal_key, get_diagonal_direction,
    count_direction_changes, is_interesting_path
)


def C(row, col):
    return Coordinate(row, col)


def assert_valid_path(result, rows, cols, min_length, max_length):
    path = result.path
    assert result.success
    assert path[0] == C(0, 0)
    assert path[-1] == C(rows - 1, cols - 1)
    assert len(set(path)) == len(path)
    assert min_length <= len(path) <= max_length
    for a, b in zip(path, path[1:]):
        assert chebyshev_distance(a, b) == 1


class TestGeometry:

    def test_distances(self):
        assert manhattan_distance(C(0, 0), C(3, 4)) == 7
        assert chebyshev_distance(C(0, 0), C(3, 4)) == 4

    def test_adjacency(self):
        assert are_adjacent(C(1, 1), C(2, 2))
        assert are_adjacent(C(1, 1), C(1, 2))
        assert not are_adjacent(C(1, 1), C(1, 1))
        assert not are_adjacent(C(0, 0), C(0, 2))

    @pytest.mark.parametrize("cell,expected", [
        (C(0, 0), 3),
        (C(3, 4), 3),
        (C(0, 2), 5),
        (C(2, 0), 5),
        (C(1, 2), 8),
    ])
    def test_neighbour_counts(self, cell, expected):
        assert len(get_adjacent(cell, 4, 5)) == expected

    def test_diagonal_direction_ignores_travel_order(self):
        assert get_diagonal_direction(C(0, 0), C(1, 1)) == DiagonalDirection.DR
        assert get_diagonal_direction(C(1, 1), C(0, 0)) == DiagonalDirection.DR
        assert get_diagonal_direction(C(0, 1), C(1, 0)) == DiagonalDirection.DL
        assert get_diagonal_direction(C(1, 0), C(0, 1)) == DiagonalDirection.DL

    def test_diagonal_key_is_block_top_left(self):
        assert get_diagonal_key(C(1, 1), C(0, 2)) == C(0, 1)
        assert get_diagonal_key(C(2, 3), C(3, 4)) == C(2, 3)
        assert is_diagonal_move(C(1, 1), C(0, 2))
        assert not is_diagonal_move(C(1, 1), C(1, 2))

    def test_direction_changes(self):
        straight = [C(0, 0), C(0, 1), C(0, 2), C(0, 3)]
        bent = [C(0, 0), C(0, 1), C(1, 1), C(2, 2)]
        assert count_direction_changes(straight) == 0
        assert count_direction_changes(bent) == 2
        assert not is_interesting_path(straight)


class TestPathFinder:

    @pytest.mark.parametrize("rows,cols,min_length,max_length", [
        (3, 4, 6, 10),
        (4, 5, 11, 17),
        (5, 6, 15, 25),
        (6, 8, 21, 40),
    ])
    def test_paths_satisfy_bounds(self, rows, cols, min_length, max_length):
        finder = PathFinder()
        for seed in range(10):
            result = finder.generate_path(rows, cols, min_length, max_length, make_rng(seed))
            assert_valid_path(result, rows, cols, min_length, max_length)
            assert is_interesting_path(result.path)

    def test_commitments_match_diagonal_moves(self, rng):
        finder = PathFinder()
        for _ in range(10):
            result = finder.generate_path(5, 6, 15, 25, rng)
            diagonal_moves = [(a, b) for a, b in zip(result.path, result.path[1:])
                              if is_diagonal_move(a, b)]
            blocks = {get_diagonal_key(a, b) for a, b in diagonal_moves}
            assert set(result.diagonal_commitments) == blocks
            for a, b in diagonal_moves:
                assert result.diagonal_commitments[get_diagonal_key(a, b)] == get_diagonal_direction(a, b)

    def test_allowed_diagonal_restricts_moves(self, rng):
        finder = PathFinder()
        for direction in DiagonalDirection:
            result = finder.generate_path(4, 5, 11, 17, rng, allowed_diagonal=direction)
            assert result.success
            assert all(d == direction for d in result.diagonal_commitments.values())

    def test_invalid_bounds_fail(self, rng):
        finder = PathFinder()
        assert not finder.generate_path(4, 5, 12, 10, rng).success
        assert not finder.generate_path(4, 5, 4, 30, rng).success
        # FINISH is 4 steps away, so 4 cells cannot reach it
        assert not finder.generate_path(4, 5, 2, 4, rng).success

    def test_rejecting_interest_function_exhausts_restarts(self, rng):
        finder = PathFinder(PathFinderConfig(max_restarts=2, max_iterations=200),
                            interest_fn=lambda path: False)
        result = finder.generate_path(3, 4, 6, 10, rng)
        assert not result.success
        assert result.restarts == 2
        assert result.path == []

    def test_custom_interest_function_is_used(self, rng):
        seen = []

        def accept(path):
            seen.append(len(path))
            return True

        result = PathFinder(interest_fn=accept).generate_path(4, 5, 11, 17, rng)
        assert result.success
        assert seen and seen[-1] == len(result.path)
