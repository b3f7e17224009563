import pytest

from circuit_challenge.analysis.benchmark import (
    GenerationBenchmark, BenchmarkConfig, MAX_FAILURE_RATE, preset_targets, story_targets
)


def run(targets, iterations, seed=5):
    benchmark = GenerationBenchmark(BenchmarkConfig(
        targets=targets, iterations=iterations, seed=seed,
        parallel=False, show_progress=False))
    results_df = benchmark.run()
    return benchmark, results_df, benchmark.summarize(results_df)


def test_targets():
    assert len(preset_targets()) == 10
    labels = [label for label, _ in story_targets()]
    assert len(labels) == 50
    assert labels[0] == "Story 1-A"
    assert labels[-1] == "Story 10-E"


def test_benchmark_summary():
    benchmark, results_df, summary = run(preset_targets()[:2], iterations=3)
    assert len(results_df) == 6
    assert list(summary.index) == ["Level 1", "Level 2"]
    assert (summary['runs'] == 3).all()
    assert (summary['failure_rate'] == 0).all()
    assert benchmark.failing_targets(summary) == []


def test_saved_results(tmp_path):
    benchmark = GenerationBenchmark(BenchmarkConfig(
        targets=preset_targets()[:1], iterations=1, seed=1,
        parallel=False, show_progress=False,
        save_results=True, output_dir=tmp_path))
    benchmark.run()
    assert len(list(tmp_path.glob("generation_results_*.csv"))) == 1
    assert len(list(tmp_path.glob("generation_summary_*.json"))) == 1


def test_story_levels_quick():
    """A few runs of every story level"""
    _, _, summary = run(story_targets(), iterations=3)
    total_failure_rate = summary['failures'].sum() / summary['runs'].sum()
    assert total_failure_rate < MAX_FAILURE_RATE


@pytest.mark.slow
def test_story_levels_full():
    """400 runs of every story level, each under the failure threshold"""
    benchmark = GenerationBenchmark(BenchmarkConfig(
        targets=story_targets(), iterations=400, seed=2024, show_progress=False))
    summary = benchmark.summarize(benchmark.run())
    assert benchmark.failing_targets(summary) == []


@pytest.mark.slow
def test_presets_full():
    benchmark = GenerationBenchmark(BenchmarkConfig(
        targets=preset_targets(), iterations=400, seed=2025, show_progress=False))
    summary = benchmark.summarize(benchmark.run())
    assert benchmark.failing_targets(summary) == []
