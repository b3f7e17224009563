"""
Generation benchmark: reliability and timing of puzzle generation across
preset levels and story levels.
"""

import time
import json
import pandas as pd
from pathlib import Path
from typing import List, Dict, Any, Optional, Tuple
from dataclasses import dataclass, asdict
from datetime import datetime
import multiprocessing as mp
from functools import partial
import numpy as np
from tqdm import tqdm

from .. import config as project_config
from ..core.difficulty import DifficultySettings, DIFFICULTY_PRESETS, get_difficulty_by_level
from ..core.story import all_story_levels, story_settings
from ..core.utils import setup_logger
from ..generators.puzzle_generator import PuzzleGenerator, PuzzleGeneratorConfig

# Highest acceptable failure rate for any configuration
MAX_FAILURE_RATE = 0.05


@dataclass
class BenchmarkResult:
    """Result from a single generation run"""
    target: str
    iteration: int
    success: bool
    generation_time: float
    attempts: int

    # Settings characteristics
    rows: int
    cols: int
    connector_min: int
    connector_max: int

    # Puzzle characteristics
    path_length: int = 0
    failure: str = ""
    message: str = ""

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization"""
        return asdict(self)


def preset_targets() -> List[Tuple[str, DifficultySettings]]:
    """The ten preset levels"""
    return [(f"Level {level}", get_difficulty_by_level(level))
            for level in range(1, len(DIFFICULTY_PRESETS) + 1)]


def story_targets() -> List[Tuple[str, DifficultySettings]]:
    """All 50 story levels"""
    return [(f"Story {story_level.label}", story_settings(story_level))
            for story_level in all_story_levels()]


class BenchmarkConfig:
    """Configuration for generation benchmarks"""

    def __init__(self, **kwargs):
        # Test parameters
        self.targets: List[Tuple[str, DifficultySettings]] = kwargs.get(
            'targets', preset_targets() + story_targets())
        self.iterations: int = kwargs.get('iterations', 100)
        self.seed: Optional[int] = kwargs.get('seed', None)
        self.max_failure_rate: float = kwargs.get('max_failure_rate', MAX_FAILURE_RATE)

        # Generator parameters
        self.generator_config: Dict[str, Any] = kwargs.get('generator_config', {})

        # Execution parameters
        self.parallel: bool = kwargs.get('parallel', True)
        self.num_workers: int = kwargs.get('num_workers', max(1, mp.cpu_count() - 1))
        self.show_progress: bool = kwargs.get('show_progress', True)

        # Output parameters
        self.output_dir: Path = Path(kwargs.get('output_dir', project_config.RESULTS_BENCHMARKS_DIR))
        self.save_results: bool = kwargs.get('save_results', False)


def run_target(generator_config: Dict[str, Any], iterations: int,
               task: Tuple[str, DifficultySettings, np.random.SeedSequence]) -> List[BenchmarkResult]:
    """Generate `iterations` puzzles for one target (runs in a worker)"""
    label, settings, seed = task
    generator = PuzzleGenerator(PuzzleGeneratorConfig(**generator_config))
    rng = np.random.default_rng(seed)

    results = []
    for iteration in range(iterations):
        generation = generator.generate_puzzle(settings, rng)
        results.append(BenchmarkResult(
            target=label,
            iteration=iteration,
            success=generation.success,
            generation_time=generation.generation_time,
            attempts=generation.attempts,
            rows=settings.grid_rows,
            cols=settings.grid_cols,
            connector_min=settings.connector_min,
            connector_max=settings.connector_max,
            path_length=len(generation.puzzle.solution.path) if generation.puzzle else 0,
            failure=generation.failure.value if generation.failure else "",
            message=generation.message
        ))
    return results


class GenerationBenchmark:
    """Measure how reliably and quickly puzzles generate"""

    def __init__(self, config: Optional[BenchmarkConfig] = None):
        self.config = config or BenchmarkConfig()
        self.logger = setup_logger(self.__class__.__name__)
        self.results: List[BenchmarkResult] = []

    def run(self) -> pd.DataFrame:
        """
        Run every target.

        Returns:
            DataFrame with one row per generation run
        """
        self.logger.info(f"Benchmarking {len(self.config.targets)} configurations "
                         f"x {self.config.iterations} iterations")
        start_time = time.time()

        # One independent stream per target
        seeds = np.random.SeedSequence(self.config.seed).spawn(len(self.config.targets))
        tasks = [(label, settings, seed)
                 for (label, settings), seed in zip(self.config.targets, seeds)]

        worker = partial(run_target, self.config.generator_config, self.config.iterations)
        self.results = []
        progress = tqdm(total=len(tasks), desc="Benchmarking",
                        disable=not self.config.show_progress)

        if self.config.parallel and self.config.num_workers > 1:
            with mp.Pool(processes=self.config.num_workers) as pool:
                for results in pool.imap_unordered(worker, tasks):
                    self.results.extend(results)
                    progress.update(1)
        else:
            for task in tasks:
                self.results.extend(worker(task))
                progress.update(1)
        progress.close()

        results_df = pd.DataFrame([r.to_dict() for r in self.results])
        self.logger.info(f"Benchmark completed in {time.time() - start_time:.2f} seconds")

        if self.config.save_results:
            self._save(results_df)

        return results_df

    @staticmethod
    def summarize(results_df: pd.DataFrame) -> pd.DataFrame:
        """Per-target failure rate and timing"""
        summary = results_df.groupby('target', sort=False).agg(
            runs=('success', 'count'),
            successes=('success', 'sum'),
            mean_time=('generation_time', 'mean'),
            max_time=('generation_time', 'max'),
            mean_attempts=('attempts', 'mean'),
            mean_path_length=('path_length', 'mean')
        )
        summary['failures'] = summary['runs'] - summary['successes']
        summary['failure_rate'] = summary['failures'] / summary['runs']
        return summary.round(4)

    def failing_targets(self, summary: pd.DataFrame) -> List[str]:
        """Targets whose failure rate exceeds the acceptable maximum"""
        return list(summary.index[summary['failure_rate'] > self.config.max_failure_rate])

    def _save(self, results_df: pd.DataFrame):
        """Write raw results (CSV) and the summary (JSON)"""
        self.config.output_dir.mkdir(parents=True, exist_ok=True)
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")

        results_file = self.config.output_dir / f"generation_results_{timestamp}.csv"
        results_df.to_csv(results_file, index=False)

        summary = self.summarize(results_df)
        json_file = self.config.output_dir / f"generation_summary_{timestamp}.json"
        with open(json_file, 'w') as f:
            json.dump({
                'config': {
                    'targets': [label for label, _ in self.config.targets],
                    'iterations': self.config.iterations,
                    'seed': self.config.seed,
                    'max_failure_rate': self.config.max_failure_rate
                },
                'summary': summary.reset_index().to_dict(orient='records'),
                'failing_targets': self.failing_targets(summary)
            }, f, indent=2, default=str)

        self.logger.info(f"Results saved to {results_file}")
