"""
Puzzle generator for Circuit Challenge.

Runs the pipeline path search -> connector layout -> value assignment ->
expression fill -> self-check, restarting the whole pipeline when a stage
fails.
"""

import time
import uuid
from collections import Counter
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Set
import numpy as np

from .. import config
from ..core.puzzle import Puzzle, Cell, Coordinate, Solution, DiagonalDirection
from ..core.difficulty import DifficultySettings, validate_difficulty_settings
from ..core.results import FailureKind, GenerationResult, BatchResult
from ..core.validator import PuzzleValidator
from ..core.utils import setup_logger, timer, make_rng, random_choice
from .path_finder import PathFinder, PathFinderConfig
from .connector_builder import ConnectorBuilder, ConnectorBuilderConfig, needs_uniform_diagonals
from .expression_generator import ExpressionGenerator


class PuzzleGeneratorConfig:
    """Configuration for puzzle generator"""

    def __init__(self, **kwargs):
        self.max_attempts: int = kwargs.get('max_attempts', config.GENERATOR_MAX_ATTEMPTS)
        self.validate_result: bool = kwargs.get('validate_result', True)
        self.batch_retries: int = kwargs.get('batch_retries', 1)
        self.verbose: bool = kwargs.get('verbose', False)
        self.log_file: Optional[Path] = kwargs.get('log_file', None)

        # Stage configurations
        self.path_finder: PathFinderConfig = kwargs.get('path_finder', PathFinderConfig())
        self.connector_builder: ConnectorBuilderConfig = kwargs.get(
            'connector_builder', ConnectorBuilderConfig())


@dataclass
class AttemptOutcome:
    """Outcome of one pass through the pipeline"""
    puzzle: Optional[Puzzle] = None
    failure: Optional[FailureKind] = None
    message: str = ""


class PuzzleGenerator:
    """Generate Circuit Challenge puzzles from difficulty settings"""

    def __init__(self, config: Optional[PuzzleGeneratorConfig] = None):
        self.config = config or PuzzleGeneratorConfig()
        self.logger = setup_logger(
            self.__class__.__name__,
            self.config.log_file,
            "DEBUG" if self.config.verbose else "INFO"
        )

        self.path_finder = PathFinder(self.config.path_finder)
        self.connector_builder = ConnectorBuilder(self.config.connector_builder)
        self.expression_generator = ExpressionGenerator()

    @staticmethod
    def prepare_settings(difficulty: DifficultySettings) -> DifficultySettings:
        """
        Fill in path-length bounds and check the settings.

        Raises:
            ValueError: If the settings cannot produce a puzzle
        """
        if difficulty.min_path_length == 0 or difficulty.max_path_length == 0:
            difficulty = difficulty.with_path_lengths()

        errors = validate_difficulty_settings(difficulty)
        if errors:
            raise ValueError(f"Invalid difficulty settings: {'; '.join(errors)}")
        return difficulty

    @timer
    def generate_puzzle(self, difficulty: DifficultySettings,
                        rng: Optional[np.random.Generator] = None) -> GenerationResult:
        """
        Generate a puzzle.

        Args:
            difficulty: Difficulty settings
            rng: Random source (a fresh unseeded one when omitted)

        Returns:
            GenerationResult holding the puzzle, or the last failure kind and
            per-stage failure counts once all attempts are used up
        """
        difficulty = self.prepare_settings(difficulty)
        rng = rng if rng is not None else make_rng()

        start_time = time.time()
        failures = Counter()
        last_failure = None

        for attempt in range(1, self.config.max_attempts + 1):
            outcome = self._attempt(difficulty, rng)
            if outcome.puzzle is None:
                failures[outcome.failure] += 1
                last_failure = outcome
                self.logger.debug(f"Attempt {attempt} failed: {outcome.failure.value}: {outcome.message}")
                continue

            if attempt > 1:
                self.logger.debug(f"Generated puzzle on attempt {attempt}")
            return GenerationResult(
                success=True,
                puzzle=outcome.puzzle,
                message="Puzzle generated",
                attempts=attempt,
                generation_time=time.time() - start_time,
                failure_counts=dict(failures)
            )

        self.logger.warning(
            f"Failed to generate {difficulty.grid_rows}x{difficulty.grid_cols} puzzle "
            f"({difficulty.name}) after {self.config.max_attempts} attempts: {last_failure.message}")
        return GenerationResult(
            success=False,
            failure=last_failure.failure,
            message=last_failure.message,
            attempts=self.config.max_attempts,
            generation_time=time.time() - start_time,
            failure_counts=dict(failures)
        )

    def _attempt(self, difficulty: DifficultySettings, rng: np.random.Generator) -> AttemptOutcome:
        """One pass through the pipeline"""
        rows, cols = difficulty.grid_rows, difficulty.grid_cols

        # Narrow value ranges need every diagonal running the same way
        uniform = None
        if needs_uniform_diagonals(difficulty.connector_min, difficulty.connector_max):
            uniform = random_choice(rng, [DiagonalDirection.DR, DiagonalDirection.DL])

        path_result = self.path_finder.generate_path(
            rows, cols, difficulty.min_path_length, difficulty.max_path_length, rng,
            allowed_diagonal=uniform)
        if not path_result.success:
            return AttemptOutcome(failure=FailureKind.PATH_GENERATION_FAILED, message=path_result.message)
        path = path_result.path

        diagonal_grid = self.connector_builder.build_diagonal_grid(
            rows, cols, path_result.diagonal_commitments, rng, uniform_direction=uniform)
        layout = self.connector_builder.build_connector_graph(rows, cols, diagonal_grid)

        assignment = self.connector_builder.assign_connector_values(
            layout, difficulty.connector_min, difficulty.connector_max, rng,
            division_enabled=difficulty.division_enabled,
            solution_path=path,
            mult_div_range=difficulty.mult_div_range)
        if not assignment.success:
            return AttemptOutcome(failure=FailureKind.CONNECTOR_ASSIGNMENT_FAILED, message=assignment.message)
        connectors = assignment.connectors

        grid, division_cells = self._assign_answers(
            rows, cols, path, connectors, assignment.division_connector_indices, rng)

        filled = self.expression_generator.apply_expressions(grid, difficulty, rng, division_cells)
        if not filled.success:
            return AttemptOutcome(failure=FailureKind.EXPRESSION_GENERATION_FAILED,
                                  message=filled.message)

        puzzle = Puzzle(
            id=str(uuid.UUID(bytes=rng.bytes(16), version=4)),
            difficulty_level=difficulty.level_number,
            grid=tuple(tuple(row) for row in filled.grid),
            connectors=tuple(connectors),
            solution=Solution(tuple(path))
        )

        if self.config.validate_result:
            validation = PuzzleValidator.validate_puzzle(puzzle, difficulty)
            if not validation:
                return AttemptOutcome(failure=FailureKind.VALIDATION_FAILED,
                                      message="; ".join(validation.errors[:3]))

        return AttemptOutcome(puzzle=puzzle)

    @staticmethod
    def _assign_answers(rows: int, cols: int, path: List[Coordinate], connectors,
                        division_indices: List[int], rng: np.random.Generator):
        """
        Answers for every cell.

        Path cells point along the path; other cells point at a random
        connector of their own. Returns the grid and the cells whose answer
        leads over a division connector.
        """
        finish = Coordinate(rows - 1, cols - 1)
        division_connectors = {connectors[i] for i in division_indices}

        answers = {}
        division_cells: Set[Coordinate] = set()
        for current, nxt in zip(path, path[1:]):
            connector = next(c for c in connectors if c.connects(current, nxt))
            answers[current] = connector.value
            if connector in division_connectors:
                division_cells.add(current)

        grid = []
        for r in range(rows):
            row = []
            for c in range(cols):
                coord = Coordinate(r, c)
                if coord == finish:
                    row.append(Cell(r, c, "", None, is_start=False, is_finish=True))
                    continue
                answer = answers.get(coord)
                if answer is None:
                    answer = random_choice(rng, [x for x in connectors if x.touches(coord)]).value
                row.append(Cell(r, c, "", answer, is_start=(r == 0 and c == 0), is_finish=False))
            grid.append(row)

        return grid, division_cells

    def generate_batch(self, count: int, difficulty: DifficultySettings,
                       rng: Optional[np.random.Generator] = None) -> BatchResult:
        """
        Generate up to count puzzles.

        Each slot is retried batch_retries times after a failure; slots that
        still fail are logged and left out.
        """
        difficulty = self.prepare_settings(difficulty)
        rng = rng if rng is not None else make_rng()

        puzzles = []
        failures = []
        for _ in range(count):
            for _retry in range(1 + self.config.batch_retries):
                result = self.generate_puzzle(difficulty, rng)
                if result.success:
                    puzzles.append(result.puzzle)
                    break
                failures.append(result)

        shortfall = count - len(puzzles)
        if shortfall:
            self.logger.warning(f"Batch short by {shortfall}: generated {len(puzzles)}/{count} "
                                f"{difficulty.name} puzzles")
        else:
            self.logger.info(f"Generated {count} {difficulty.name} puzzles")

        return BatchResult(puzzles, count, failures)
