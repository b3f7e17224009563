"""
Difficulty settings and the ten preset levels.
"""

import math
from dataclasses import dataclass, field, fields, replace, asdict
from typing import List, Optional, Dict, Any

from .expression import Operation


@dataclass(frozen=True)
class OperationWeights:
    """Relative selection weights for each operation"""
    addition: int = 0
    subtraction: int = 0
    multiplication: int = 0
    division: int = 0

    @property
    def total(self) -> int:
        return self.addition + self.subtraction + self.multiplication + self.division

    def for_operation(self, operation: Operation) -> int:
        return {
            Operation.ADDITION: self.addition,
            Operation.SUBTRACTION: self.subtraction,
            Operation.MULTIPLICATION: self.multiplication,
            Operation.DIVISION: self.division,
        }[operation]


@dataclass(frozen=True)
class DifficultySettings:
    """Configuration for puzzle generation"""
    name: str

    # Operations enabled
    addition_enabled: bool
    subtraction_enabled: bool
    multiplication_enabled: bool
    division_enabled: bool

    # Ranges
    add_sub_range: int   # Max operand for + and −
    mult_div_range: int  # Max factor / divisor for × and ÷

    # Connector values
    connector_min: int
    connector_max: int

    # Grid size
    grid_rows: int
    grid_cols: int

    # Path constraints (0 means "derive from grid area")
    min_path_length: int = 0
    max_path_length: int = 0

    weights: OperationWeights = field(default_factory=OperationWeights)

    hidden_mode: bool = False
    seconds_per_step: int = 5

    def is_enabled(self, operation: Operation) -> bool:
        return {
            Operation.ADDITION: self.addition_enabled,
            Operation.SUBTRACTION: self.subtraction_enabled,
            Operation.MULTIPLICATION: self.multiplication_enabled,
            Operation.DIVISION: self.division_enabled,
        }[operation]

    @property
    def enabled_operations(self) -> List[Operation]:
        """Enabled operations in the fixed order + − × ÷"""
        return [op for op in Operation if self.is_enabled(op)]

    @property
    def level_number(self) -> int:
        """Preset level number (1-10), 0 for custom settings"""
        for level, preset in enumerate(DIFFICULTY_PRESETS, start=1):
            if preset.name == self.name:
                return level
        return 0

    def with_path_lengths(self) -> 'DifficultySettings':
        """Copy with path-length bounds derived from the grid area"""
        return replace(
            self,
            min_path_length=calculate_min_path_length(self.grid_rows, self.grid_cols),
            max_path_length=calculate_max_path_length(self.grid_rows, self.grid_cols)
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'DifficultySettings':
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise ValueError(f"Unknown difficulty settings: {sorted(unknown)}")
        values = dict(data)
        if isinstance(values.get('weights'), dict):
            values['weights'] = OperationWeights(**values['weights'])
        return cls(**values)


def calculate_min_path_length(rows: int, cols: int) -> int:
    """
    Minimum path length for a grid.

    Larger grids use lower percentages so generation stays reliable.
    """
    total_cells = rows * cols
    if total_cells <= 16:
        percentage = 0.50
    elif total_cells <= 25:
        percentage = 0.55
    elif total_cells <= 42:
        percentage = 0.50
    else:
        percentage = 0.45
    return max(4, math.floor(total_cells * percentage))


def calculate_max_path_length(rows: int, cols: int) -> int:
    """Maximum path length (~85% of cells)"""
    return math.floor(rows * cols * 0.85)


DIFFICULTY_PRESETS: List[DifficultySettings] = [
    DifficultySettings(
        name="Tiny Tot",
        addition_enabled=True, subtraction_enabled=False,
        multiplication_enabled=False, division_enabled=False,
        add_sub_range=10, mult_div_range=0,
        connector_min=5, connector_max=10,
        grid_rows=3, grid_cols=4,
        weights=OperationWeights(addition=100),
        seconds_per_step=10
    ),
    DifficultySettings(
        name="Beginner",
        addition_enabled=True, subtraction_enabled=False,
        multiplication_enabled=False, division_enabled=False,
        add_sub_range=15, mult_div_range=0,
        connector_min=5, connector_max=15,
        grid_rows=4, grid_cols=4,
        weights=OperationWeights(addition=100),
        seconds_per_step=9
    ),
    DifficultySettings(
        name="Easy",
        addition_enabled=True, subtraction_enabled=True,
        multiplication_enabled=False, division_enabled=False,
        add_sub_range=15, mult_div_range=0,
        connector_min=5, connector_max=15,
        grid_rows=4, grid_cols=5,
        weights=OperationWeights(addition=60, subtraction=40),
        seconds_per_step=8
    ),
    DifficultySettings(
        name="Getting There",
        addition_enabled=True, subtraction_enabled=True,
        multiplication_enabled=False, division_enabled=False,
        add_sub_range=20, mult_div_range=0,
        connector_min=5, connector_max=20,
        grid_rows=4, grid_cols=5,
        weights=OperationWeights(addition=55, subtraction=45),
        seconds_per_step=7
    ),
    DifficultySettings(
        name="Times Tables",
        addition_enabled=True, subtraction_enabled=True,
        multiplication_enabled=True, division_enabled=False,
        add_sub_range=20, mult_div_range=5,
        connector_min=5, connector_max=25,
        grid_rows=4, grid_cols=5,
        weights=OperationWeights(addition=40, subtraction=35, multiplication=25),
        seconds_per_step=7
    ),
    DifficultySettings(
        name="Confident",
        addition_enabled=True, subtraction_enabled=True,
        multiplication_enabled=True, division_enabled=False,
        add_sub_range=25, mult_div_range=6,
        connector_min=5, connector_max=36,
        grid_rows=5, grid_cols=5,
        weights=OperationWeights(addition=35, subtraction=30, multiplication=35),
        seconds_per_step=6
    ),
    DifficultySettings(
        name="Adventurous",
        addition_enabled=True, subtraction_enabled=True,
        multiplication_enabled=True, division_enabled=False,
        add_sub_range=30, mult_div_range=8,
        connector_min=5, connector_max=64,
        grid_rows=5, grid_cols=6,
        weights=OperationWeights(addition=30, subtraction=30, multiplication=40),
        seconds_per_step=6
    ),
    DifficultySettings(
        name="Division Intro",
        addition_enabled=True, subtraction_enabled=True,
        multiplication_enabled=True, division_enabled=True,
        add_sub_range=30, mult_div_range=6,
        connector_min=5, connector_max=36,
        grid_rows=5, grid_cols=6,
        weights=OperationWeights(addition=30, subtraction=25, multiplication=30, division=15),
        seconds_per_step=6
    ),
    DifficultySettings(
        name="Challenge",
        addition_enabled=True, subtraction_enabled=True,
        multiplication_enabled=True, division_enabled=True,
        add_sub_range=50, mult_div_range=10,
        connector_min=5, connector_max=100,
        grid_rows=6, grid_cols=7,
        weights=OperationWeights(addition=25, subtraction=25, multiplication=30, division=20),
        seconds_per_step=5
    ),
    DifficultySettings(
        name="Expert",
        addition_enabled=True, subtraction_enabled=True,
        multiplication_enabled=True, division_enabled=True,
        add_sub_range=100, mult_div_range=12,
        connector_min=5, connector_max=144,
        grid_rows=6, grid_cols=8,
        weights=OperationWeights(addition=25, subtraction=25, multiplication=30, division=20),
        seconds_per_step=5
    ),
]


def get_difficulty_by_level(level: int) -> DifficultySettings:
    """Get preset by level number (1-10), clamped to the valid range"""
    index = max(0, min(len(DIFFICULTY_PRESETS) - 1, level - 1))
    return DIFFICULTY_PRESETS[index].with_path_lengths()


def get_difficulty_by_name(name: str) -> Optional[DifficultySettings]:
    """Get preset by name, None if there is no such preset"""
    for preset in DIFFICULTY_PRESETS:
        if preset.name == name:
            return preset.with_path_lengths()
    return None


def equal_weights(settings: DifficultySettings) -> OperationWeights:
    """Spread 100 evenly over the enabled operations"""
    enabled = settings.enabled_operations
    per_op = 100 // len(enabled) if enabled else 0
    return OperationWeights(
        addition=per_op if settings.addition_enabled else 0,
        subtraction=per_op if settings.subtraction_enabled else 0,
        multiplication=per_op if settings.multiplication_enabled else 0,
        division=per_op if settings.division_enabled else 0
    )


def create_custom_difficulty(overrides: Optional[Dict[str, Any]] = None,
                             base: Optional[DifficultySettings] = None,
                             **kwargs) -> DifficultySettings:
    """
    Create custom settings by merging overrides onto a base.

    Args:
        overrides: Field values to change; ``weights`` may be a partial dict
        base: Settings to start from (Level 5 when omitted)
        **kwargs: Additional overrides

    Returns:
        New settings. Weights are split evenly over the enabled operations
        unless given, and path-length bounds are recomputed from the grid
        area unless given explicitly.
    """
    overrides = dict(overrides or {})
    overrides.update(kwargs)
    base = base or get_difficulty_by_level(5)

    known = {f.name for f in fields(DifficultySettings)}
    unknown = set(overrides) - known
    if unknown:
        raise ValueError(f"Unknown difficulty settings: {sorted(unknown)}")

    weights_override = overrides.pop('weights', None)
    settings = replace(base, **overrides)
    settings = replace(settings, name=overrides.get('name', 'Custom'))

    if weights_override is None:
        settings = replace(settings, weights=equal_weights(settings))
    elif isinstance(weights_override, OperationWeights):
        settings = replace(settings, weights=weights_override)
    else:
        settings = replace(settings, weights=replace(base.weights, **weights_override))

    # Path bounds always follow the grid unless pinned by the caller
    min_length = overrides.get('min_path_length')
    max_length = overrides.get('max_path_length')
    settings = replace(
        settings,
        min_path_length=min_length or calculate_min_path_length(settings.grid_rows, settings.grid_cols),
        max_path_length=max_length or calculate_max_path_length(settings.grid_rows, settings.grid_cols)
    )
    return settings


def validate_difficulty_settings(settings: DifficultySettings) -> List[str]:
    """
    Check settings for values generation cannot work with.

    Returns:
        List of error messages (empty when the settings are usable)
    """
    errors = []

    if not settings.enabled_operations:
        errors.append("At least one operation must be enabled")

    if settings.add_sub_range < 1:
        errors.append("Addition/subtraction range must be at least 1")

    if ((settings.multiplication_enabled or settings.division_enabled)
            and settings.mult_div_range < 2):
        errors.append("Multiplication/division range must be at least 2")

    if settings.connector_min < 1:
        errors.append("Minimum connector value must be at least 1")

    if settings.connector_max <= settings.connector_min:
        errors.append("Maximum connector value must be greater than minimum")

    if settings.grid_rows < 3:
        errors.append("Grid must have at least 3 rows")

    if settings.grid_cols < 4:
        errors.append("Grid must have at least 4 columns")

    if settings.min_path_length < 4:
        errors.append("Minimum path length must be at least 4")

    if settings.max_path_length < settings.min_path_length:
        errors.append("Maximum path length must be at least equal to minimum")

    if settings.max_path_length > settings.grid_rows * settings.grid_cols:
        errors.append("Maximum path length cannot exceed the number of cells")

    for operation in Operation:
        if settings.is_enabled(operation) and settings.weights.for_operation(operation) <= 0:
            errors.append(f"{operation.name.capitalize()} weight must be positive when enabled")

    if settings.seconds_per_step < 1:
        errors.append("Seconds per step must be at least 1")

    return errors
