"""
gp_evolution/cli.py - Command-line interface
"""
import logging
import time

import click
from pydantic import ValidationError

from .archive import EvolutionArchive
from .breeder import Evolver
from .config import EvolutionConfig
from .events import EndGeneration, default_bus
from .exceptions import ConfigurationError
from .individual import Individual
from .primitives import FUNCTIONS
from .problems import even_parity, quartic_regression
from .stats import GenerationStatistics, RunStatistics


@click.group()
@click.option('--verbose', '-v', is_flag=True, help='Verbose (debug) logging')
def cli(verbose):
    """GP Evolution - typed genetic programming"""
    logging.basicConfig(level=logging.DEBUG if verbose else logging.INFO,
                        format='%(asctime)s %(levelname)s %(name)s: %(message)s')


@cli.command()
@click.option('--problem', type=click.Choice(['parity', 'regression']), default='parity',
              help='Built-in problem to evolve programs for')
@click.option('--bits', default=2, help='Number of inputs for the parity problem')
@click.option('--generations', '-g', default=50, help='Maximum generations per run')
@click.option('--population', '-p', default=100, help='Population size')
@click.option('--runs', '-r', default=1, help='Number of independent runs')
@click.option('--seed', type=int, default=None, help='Random seed for reproducible runs')
@click.option('--max-depth', default=17, help='Maximum depth of any program')
@click.option('--max-initial-depth', default=6, help='Maximum depth of initial programs')
@click.option('--crossover-rate', default=0.9, help='Crossover probability (0.0-1.0)')
@click.option('--mutation-rate', default=0.1, help='Mutation probability (0.0-1.0)')
@click.option('--elitism', default=1, help='Number of elite individuals to preserve')
@click.option('--selection', type=click.Choice(['tournament', 'random', 'fitness_proportionate']),
              default='tournament', help='Parent selection strategy')
@click.option('--tournament-size', default=7, help='Tournament size')
@click.option('--max-seconds', type=float, default=None, help='Wall-clock limit per run')
@click.option('--workers', default=1, help='Threads for fitness evaluation')
@click.option('--out', '-o', default=None, help='Archive directory (optional)')
def evolve(problem, bits, generations, population, runs, seed, max_depth, max_initial_depth,
           crossover_rate, mutation_rate, elitism, selection, tournament_size, max_seconds,
           workers, out):
    """Evolve programs for a built-in problem"""
    task = even_parity(bits) if problem == 'parity' else quartic_regression()

    try:
        config = EvolutionConfig(
            population_size=population, max_generations=generations, runs=runs, seed=seed,
            max_depth=max_depth, max_initial_depth=max_initial_depth,
            crossover_probability=crossover_rate, mutation_probability=mutation_rate,
            elitism=elitism, selection=selection, tournament_size=tournament_size,
            termination_fitness=task.perfect_fitness, max_seconds=max_seconds,
            evaluation_workers=workers)
    except ValidationError as error:
        raise click.UsageError(str(error))

    click.echo(f"Evolving {task.name}: {runs} run(s), {generations} generations, "
               f"population {population}")

    bus = default_bus()
    bus.clear()
    stats = GenerationStatistics(config.order).attach(bus)
    run_stats = RunStatistics().attach(bus)
    if out:
        EvolutionArchive(out, config.order).attach(bus)

    def progress(event):
        entry = stats.latest
        if event.generation % 10 == 0 and entry is not None:
            click.echo(f"Run {event.run_index} gen {event.generation:3d}: "
                       f"best={entry['best_fitness']:.4f} "
                       f"avg={entry['fitness']['mean']:.4f} "
                       f"depth={entry['depth']['mean']:.1f}")

    bus.subscribe(EndGeneration, progress)

    start_time = time.time()
    try:
        result = Evolver(config, task.syntax, task.evaluator, task.return_type, bus=bus).run()
    except ConfigurationError as error:
        raise click.ClickException(f"Configuration error: {error}")

    click.echo("")
    for run in result.runs:
        if run.succeeded:
            click.echo(f"Run {run.run_index}: fitness {run.best_fitness} after "
                       f"{run.generations} generations: {run.best}")
        else:
            click.echo(f"Run {run.run_index}: FAILED - {run.error}")
    if result.best is not None:
        click.echo(f"\nBest of all runs (fitness {result.best_fitness}): {result.best}")
    summary = run_stats.summary()
    click.echo(f"{summary['successful']}/{summary['runs']} runs succeeded "
               f"in {time.time() - start_time:.1f}s")
    if out:
        click.echo(f"Archive saved to {out}")


@cli.command()
@click.option('--individual', '-i', required=True, help='Path to an archived individual JSON file')
def show(individual):
    """Print an archived program"""
    try:
        program = Individual.from_json(FUNCTIONS, filename=individual)
    except (OSError, ValueError, KeyError) as error:
        raise click.ClickException(f"Error loading individual: {error}")

    click.echo(f"Program: {program}")
    click.echo(f"Fitness: {program.fitness}")
    click.echo(f"Type: {program.data_type}, Length: {program.get_length()}, "
               f"Depth: {program.get_depth()}")


if __name__ == '__main__':
    cli()
