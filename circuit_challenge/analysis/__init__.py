"""
Benchmarking tools for puzzle generation.
"""

from .benchmark import (
    GenerationBenchmark, BenchmarkConfig, BenchmarkResult,
    preset_targets, story_targets, MAX_FAILURE_RATE
)

__all__ = [
    'GenerationBenchmark', 'BenchmarkConfig', 'BenchmarkResult',
    'preset_targets', 'story_targets', 'MAX_FAILURE_RATE'
]
