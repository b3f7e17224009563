#!/usr/bin/env python3
"""
Script to generate Circuit Challenge puzzles.

Usage:
    python scripts/generate_puzzles.py --level 5 --count 10
    python scripts/generate_puzzles.py --story 3-B --show
    python scripts/generate_puzzles.py --config my_settings.yaml --seed 42 -o results/puzzles
    python scripts/generate_puzzles.py --batch 1:5 --batch 10:3
"""

import click
import sys
from pathlib import Path
from datetime import datetime
import json

# Add parent directory to path
sys.path.append(str(Path(__file__).parent.parent))

from circuit_challenge import config
from circuit_challenge.core.difficulty import get_difficulty_by_level, DIFFICULTY_PRESETS
from circuit_challenge.core.story import StoryLevel, story_settings
from circuit_challenge.core.utils import make_rng, load_settings_file
from circuit_challenge.core.validator import get_puzzle_statistics
from circuit_challenge.generators.puzzle_generator import PuzzleGenerator, PuzzleGeneratorConfig


@click.command()
@click.option('--count', '-n', type=int, default=1,
              help='Number of puzzles to generate')
@click.option('--level', '-l', type=click.IntRange(1, len(DIFFICULTY_PRESETS)), default=None,
              help='Preset difficulty level (1-10)')
@click.option('--story', type=str, default=None,
              help='Story level label, e.g. 3-B')
@click.option('--config', '-c', 'config_file', type=click.Path(exists=True), default=None,
              help='YAML file with difficulty settings')
@click.option('--batch', '-b', multiple=True,
              help='Batch generation (format: LEVEL:COUNT)')
@click.option('--output-dir', '-o', type=click.Path(), default=None,
              help='Write each puzzle as JSON into this directory')
@click.option('--show', '-s', is_flag=True,
              help='Print each puzzle grid')
@click.option('--seed', type=int, default=None,
              help='Random seed for reproducibility')
@click.option('--max-attempts', type=int, default=config.GENERATOR_MAX_ATTEMPTS,
              help='Pipeline attempts per puzzle')
@click.option('--verbose', '-v', is_flag=True,
              help='Debug logging')
def main(count, level, story, config_file, batch, output_dir, show, seed, max_attempts, verbose):
    """Generate Circuit Challenge puzzles."""

    click.echo("=" * 60)
    click.echo("Circuit Challenge Puzzle Generator")
    click.echo("=" * 60)

    # Determine what to generate
    generation_tasks = []

    try:
        if batch:
            for entry in batch:
                parts = entry.split(':')
                if len(parts) != 2:
                    raise click.BadParameter(f"'{entry}' (format should be LEVEL:COUNT)", param_hint='--batch')
                generation_tasks.append((get_difficulty_by_level(int(parts[0])), int(parts[1])))
        elif story:
            generation_tasks.append((story_settings(StoryLevel.from_label(story)), count))
        elif config_file:
            generation_tasks.append((load_settings_file(Path(config_file)), count))
        else:
            generation_tasks.append((get_difficulty_by_level(level or 1), count))
    except ValueError as e:
        click.echo(f"Error: {e}")
        sys.exit(1)

    for settings, num in generation_tasks:
        click.echo(f"  - {num} x {settings.name} ({settings.grid_rows}x{settings.grid_cols}, "
                   f"values {settings.connector_min}-{settings.connector_max})")

    output_path = None
    if output_dir:
        output_path = Path(output_dir)
        output_path.mkdir(parents=True, exist_ok=True)

    generator = PuzzleGenerator(PuzzleGeneratorConfig(max_attempts=max_attempts, verbose=verbose))
    try:
        generation_tasks = [(generator.prepare_settings(settings), num) for settings, num in generation_tasks]
    except ValueError as e:
        click.echo(f"Error: {e}")
        sys.exit(1)

    rng = make_rng(seed)
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")

    total_puzzles = sum(num for _, num in generation_tasks)
    generated = []
    shortfall = 0

    with click.progressbar(generation_tasks, label='Generating puzzles') as tasks:
        for settings, num in tasks:
            batch_result = generator.generate_batch(num, settings, rng)
            shortfall += batch_result.shortfall

            for puzzle in batch_result.puzzles:
                generated.append((settings, puzzle))
                if output_path is not None:
                    name = settings.name.lower().replace(' ', '_')
                    puzzle_file = output_path / f"{name}_{timestamp}_{len(generated):04d}.json"
                    with open(puzzle_file, 'w') as f:
                        json.dump(puzzle.to_dict(), f, indent=2)

    if show:
        for settings, puzzle in generated:
            click.echo(f"\n{settings.name} - {puzzle.solution.steps} steps")
            click.echo(str(puzzle))

    # Summary
    click.echo("\n" + "=" * 60)
    click.echo(f"Generated {len(generated)}/{total_puzzles} puzzles")
    if shortfall:
        click.echo(f"Short by {shortfall} after retries")
    if generated:
        stats = [get_puzzle_statistics(puzzle) for _, puzzle in generated]
        mean_steps = sum(s['steps'] for s in stats) / len(stats)
        mean_coverage = sum(s['path_coverage'] for s in stats) / len(stats)
        click.echo(f"Average steps: {mean_steps:.1f}")
        click.echo(f"Average path coverage: {mean_coverage:.1%}")
    if output_path is not None:
        click.echo(f"Puzzles saved to: {output_path}")


if __name__ == '__main__':
    main()
