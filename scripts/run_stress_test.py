#!/usr/bin/env python3
"""
Script to stress-test puzzle generation across all configurations.

Usage:
    python scripts/run_stress_test.py --suite quick
    python scripts/run_stress_test.py --suite story --iterations 400
    python scripts/run_stress_test.py --suite full --seed 7 --save
"""

import click
import sys
from pathlib import Path

# Add parent directory to path
sys.path.append(str(Path(__file__).parent.parent))

from circuit_challenge.analysis.benchmark import (
    GenerationBenchmark, BenchmarkConfig, preset_targets, story_targets
)


# Predefined stress suites
STRESS_SUITES = {
    'quick': {
        'targets': lambda: preset_targets(),
        'iterations': 20
    },
    'story': {
        'targets': lambda: story_targets(),
        'iterations': 400
    },
    'full': {
        'targets': lambda: preset_targets() + story_targets(),
        'iterations': 400
    }
}


@click.command()
@click.option('--suite', type=click.Choice(list(STRESS_SUITES)), default='quick',
              help='Configurations to test')
@click.option('--iterations', '-n', type=int, default=None,
              help='Generation runs per configuration (overrides the suite)')
@click.option('--seed', type=int, default=None,
              help='Random seed for reproducibility')
@click.option('--parallel/--sequential', default=True,
              help='Run configurations in parallel')
@click.option('--workers', '-w', type=int, default=None,
              help='Number of parallel workers')
@click.option('--save', is_flag=True,
              help='Save raw results and summary')
@click.option('--output-dir', '-o', type=click.Path(), default='results/benchmarks',
              help='Output directory for results')
def main(suite, iterations, seed, parallel, workers, save, output_dir):
    """Stress-test Circuit Challenge puzzle generation."""

    click.echo("=" * 60)
    click.echo("Circuit Challenge Generation Stress Test")
    click.echo("=" * 60)

    suite_config = STRESS_SUITES[suite]
    kwargs = {
        'targets': suite_config['targets'](),
        'iterations': iterations or suite_config['iterations'],
        'seed': seed,
        'parallel': parallel,
        'save_results': save,
        'output_dir': output_dir
    }
    if workers:
        kwargs['num_workers'] = workers

    config = BenchmarkConfig(**kwargs)
    click.echo(f"\n{len(config.targets)} configurations x {config.iterations} iterations\n")

    benchmark = GenerationBenchmark(config)
    results_df = benchmark.run()
    summary = benchmark.summarize(results_df)

    click.echo("\n" + summary[['runs', 'failures', 'failure_rate', 'mean_time', 'mean_attempts']].to_string())

    failing = benchmark.failing_targets(summary)
    total_runs = int(summary['runs'].sum())
    total_failures = int(summary['failures'].sum())

    click.echo("\n" + "=" * 60)
    click.echo(f"Total: {total_runs - total_failures}/{total_runs} succeeded "
               f"({total_failures / max(total_runs, 1):.2%} failed)")

    if failing:
        click.echo(f"Configurations above {config.max_failure_rate:.0%} failure rate:")
        for target in failing:
            click.echo(f"  - {target}: {summary.loc[target, 'failure_rate']:.2%}")
        sys.exit(1)

    click.echo("All configurations within the acceptable failure rate")


if __name__ == '__main__':
    main()
