import logging

import pytest

from circuit_challenge.core.difficulty import (
    DIFFICULTY_PRESETS, DifficultySettings, OperationWeights,
    get_difficulty_by_level, get_difficulty_by_name,
    create_custom_difficulty, validate_difficulty_settings,
    calculate_min_path_length, calculate_max_path_length
)
from circuit_challenge.core.expression import Operation
from circuit_challenge.core.utils import (
    setup_logger, make_rng, spawn_rngs, random_int, random_choice, shuffled,
    load_settings_file
)


class TestPresets:

    def test_ten_presets(self):
        assert len(DIFFICULTY_PRESETS) == 10
        assert [p.name for p in DIFFICULTY_PRESETS][:2] == ["Tiny Tot", "Beginner"]

    @pytest.mark.parametrize("level,grid,path_bounds", [
        (1, (3, 4), (6, 10)),
        (5, (4, 5), (11, 17)),
        (10, (6, 8), (21, 40)),
    ])
    def test_grid_and_path_bounds(self, level, grid, path_bounds):
        settings = get_difficulty_by_level(level)
        assert (settings.grid_rows, settings.grid_cols) == grid
        assert (settings.min_path_length, settings.max_path_length) == path_bounds
        assert settings.level_number == level

    def test_all_presets_are_valid(self):
        for level in range(1, 11):
            assert validate_difficulty_settings(get_difficulty_by_level(level)) == []

    def test_level_is_clamped(self):
        assert get_difficulty_by_level(0).name == "Tiny Tot"
        assert get_difficulty_by_level(99).name == "Expert"

    def test_lookup_by_name(self):
        expert = get_difficulty_by_name("Expert")
        assert (expert.grid_rows, expert.grid_cols) == (6, 8)
        assert expert.enabled_operations == list(Operation)
        assert get_difficulty_by_name("Impossible") is None

    def test_operation_gating(self):
        times_tables = get_difficulty_by_level(5)
        assert times_tables.enabled_operations == [
            Operation.ADDITION, Operation.SUBTRACTION, Operation.MULTIPLICATION]
        assert times_tables.weights.for_operation(Operation.DIVISION) == 0

    def test_settings_are_immutable(self):
        with pytest.raises(Exception):
            get_difficulty_by_level(1).grid_rows = 10


class TestPathLengths:

    @pytest.mark.parametrize("rows,cols,expected", [
        (3, 4, 6),    # 12 cells at 50%
        (4, 5, 11),   # 20 cells at 55%
        (6, 7, 21),   # 42 cells at 50%
        (8, 9, 32),   # 72 cells at 45%
        (2, 2, 4),    # never below 4
    ])
    def test_min_path_length(self, rows, cols, expected):
        assert calculate_min_path_length(rows, cols) == expected

    def test_max_path_length(self):
        assert calculate_max_path_length(4, 5) == 17
        assert calculate_max_path_length(8, 9) == 61


class TestCustomDifficulty:

    def test_defaults_to_level_five(self):
        custom = create_custom_difficulty()
        assert custom.name == "Custom"
        assert (custom.grid_rows, custom.grid_cols) == (4, 5)
        assert custom.level_number == 0

    def test_grid_override_recomputes_path_lengths(self):
        custom = create_custom_difficulty({'grid_rows': 6, 'grid_cols': 6})
        assert (custom.min_path_length, custom.max_path_length) == (18, 30)

    def test_explicit_path_lengths_are_kept(self):
        custom = create_custom_difficulty(grid_rows=6, grid_cols=6, min_path_length=10, max_path_length=20)
        assert (custom.min_path_length, custom.max_path_length) == (10, 20)

    def test_equal_weights_for_enabled_operations(self):
        custom = create_custom_difficulty(division_enabled=True, mult_div_range=12)
        assert custom.weights == OperationWeights(25, 25, 25, 25)

    def test_partial_weight_override(self):
        custom = create_custom_difficulty(weights={'multiplication': 50})
        assert custom.weights == OperationWeights(40, 35, 50, 0)

    def test_named_custom(self):
        assert create_custom_difficulty(name="Practice").name == "Practice"

    def test_unknown_field(self):
        with pytest.raises(ValueError):
            create_custom_difficulty(colour="blue")

    def test_dict_round_trip(self):
        settings = get_difficulty_by_level(8)
        assert DifficultySettings.from_dict(settings.to_dict()) == settings


class TestValidateSettings:

    def test_no_operations(self):
        settings = create_custom_difficulty(
            addition_enabled=False, subtraction_enabled=False,
            multiplication_enabled=False, division_enabled=False)
        assert "At least one operation must be enabled" in validate_difficulty_settings(settings)

    def test_range_and_grid_errors(self):
        settings = create_custom_difficulty(
            connector_min=0, connector_max=0, grid_rows=2, grid_cols=3, mult_div_range=1,
            seconds_per_step=0)
        errors = validate_difficulty_settings(settings)
        assert "Minimum connector value must be at least 1" in errors
        assert "Maximum connector value must be greater than minimum" in errors
        assert "Grid must have at least 3 rows" in errors
        assert "Grid must have at least 4 columns" in errors
        assert "Multiplication/division range must be at least 2" in errors
        assert "Seconds per step must be at least 1" in errors

    def test_path_bounds(self):
        settings = create_custom_difficulty(min_path_length=3, max_path_length=2)
        errors = validate_difficulty_settings(settings)
        assert "Minimum path length must be at least 4" in errors
        assert "Maximum path length must be at least equal to minimum" in errors

    def test_zero_weight_for_enabled_operation(self):
        settings = create_custom_difficulty(weights={'subtraction': 0})
        assert "Subtraction weight must be positive when enabled" in validate_difficulty_settings(settings)


class TestUtils:

    def test_random_helpers(self):
        rng = make_rng(3)
        draws = {random_int(rng, 1, 3) for _ in range(200)}
        assert draws == {1, 2, 3}
        items = list(range(10))
        mixed = shuffled(rng, items)
        assert sorted(mixed) == items
        assert items == list(range(10))
        assert random_choice(rng, ["only"]) == "only"

    def test_seeded_rngs_repeat(self):
        assert make_rng(9).integers(1000) == make_rng(9).integers(1000)
        streams = spawn_rngs(9, 3)
        assert len(streams) == 3
        assert len({int(s.integers(1 << 30)) for s in streams}) == 3

    def test_setup_logger(self):
        logger = setup_logger("circuit_challenge.test", level="DEBUG")
        setup_logger("circuit_challenge.test", level="DEBUG")
        assert logger.level == logging.DEBUG
        assert len(logger.handlers) == 1

    def test_load_preset_level(self, tmp_path):
        path = tmp_path / "settings.yaml"
        path.write_text("level: 7\n")
        assert load_settings_file(path).name == "Adventurous"

    def test_load_overrides(self, tmp_path):
        path = tmp_path / "settings.yaml"
        path.write_text("level: 3\noverrides:\n  grid_rows: 5\n  name: Mine\n")
        settings = load_settings_file(path)
        assert settings.name == "Mine"
        assert settings.grid_rows == 5
        assert settings.enabled_operations == [Operation.ADDITION, Operation.SUBTRACTION]

    def test_load_rejects_non_mapping(self, tmp_path):
        path = tmp_path / "settings.yaml"
        path.write_text("- 1\n- 2\n")
        with pytest.raises(ValueError):
            load_settings_file(path)
