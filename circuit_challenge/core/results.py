"""
Generation outcomes.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional

from .puzzle import Puzzle


class FailureKind(Enum):
    """Stage at which a generation attempt failed"""
    PATH_GENERATION_FAILED = "path_generation_failed"
    CONNECTOR_ASSIGNMENT_FAILED = "connector_assignment_failed"
    EXPRESSION_GENERATION_FAILED = "expression_generation_failed"
    VALIDATION_FAILED = "validation_failed"


@dataclass
class GenerationResult:
    """Result from puzzle generation"""
    success: bool
    puzzle: Optional[Puzzle] = None
    failure: Optional[FailureKind] = None
    message: str = ""
    attempts: int = 0
    generation_time: float = 0.0

    # Failed attempts per stage
    failure_counts: Dict[FailureKind, int] = field(default_factory=dict)

    def __repr__(self):
        status = "Success" if self.success else f"Failed ({self.failure.value if self.failure else '-'})"
        return f"GenerationResult({status}, attempts={self.attempts}, time={self.generation_time:.3f}s)"


@dataclass
class BatchResult:
    """Result from batch generation"""
    puzzles: List[Puzzle]
    requested: int
    failures: List[GenerationResult] = field(default_factory=list)

    @property
    def shortfall(self) -> int:
        return self.requested - len(self.puzzles)

    def __len__(self):
        return len(self.puzzles)

    def __repr__(self):
        return f"BatchResult({len(self.puzzles)}/{self.requested} puzzles)"
