"""
gp_evolution/breeder.py - Generational breeding loop and batches of runs

A run goes Initialise -> Evaluate -> {SelectAndBreed -> Evaluate}*, checking
the termination criteria after every evaluation. Each generation first copies
the elites, then fills the remaining slots with crossover, mutation or
reproduction chosen by probability. Offspring deeper than ``max_depth`` or
vetoed by an operator-event listener are discarded and the slot is bred again.
"""
import logging
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Callable, List, Optional, Sequence, Tuple, Union

from .config import EvolutionConfig
from .crossover import Crossover, OnePointCrossover, SubtreeCrossover
from .events import (CrossoverEvent, EndBatch, EndGeneration, EndInitialisation, EndRun, EventBus,
                     FitnessEvaluated, MutationEvent, Rejected, ReproductionEvent, StartBatch,
                     StartGeneration, StartInitialisation, StartRun)
from .exceptions import ConfigurationError, RunFailedError
from .fitness import FitnessEvaluator, as_evaluator
from .individual import Individual
from .initialisation import (FullInitialiser, GrowInitialiser, Initialiser,
                             RampedHalfAndHalfInitialiser, validate_syntax)
from .mutation import Mutation, PointMutation, SubtreeMutation
from .population import Population
from .random_source import MersenneTwister, RandomSource
from .selection import Selector, create_selector
from .termination import (FitnessThreshold, MaxGenerations, MaxWallClock, RunState,
                          TerminationCriterion, should_terminate)
from .types import DataType

logger = logging.getLogger(__name__)

Evaluator = Union[FitnessEvaluator, Callable[[Individual], float]]


@dataclass
class RunResult:
    """Outcome of a single run"""
    run_index: int
    best: Optional[Individual]
    generations: int
    duration: float
    error: Optional[RunFailedError] = None

    @property
    def succeeded(self) -> bool:
        return self.error is None

    @property
    def best_fitness(self) -> Optional[float]:
        return self.best.fitness if self.best is not None else None


@dataclass
class BatchResult:
    """Outcome of all runs; ``best`` is the best individual over successful runs"""
    runs: List[RunResult] = field(default_factory=list)
    best: Optional[Individual] = None

    @property
    def failures(self) -> List[RunResult]:
        return [run for run in self.runs if not run.succeeded]

    @property
    def best_fitness(self) -> Optional[float]:
        return self.best.fitness if self.best is not None else None


class GenerationalStrategy:
    """Runs one evolutionary run at a time with the configured operators"""

    def __init__(self, config: EvolutionConfig, syntax: Sequence[Any], evaluator: Evaluator,
                 return_type: DataType, bus: Optional[EventBus] = None,
                 rng: Optional[RandomSource] = None, initialiser: Optional[Initialiser] = None,
                 selector: Optional[Selector] = None, crossover: Optional[Crossover] = None,
                 mutation: Optional[Mutation] = None,
                 termination: Optional[Sequence[TerminationCriterion]] = None):
        self.config = config
        self.syntax = validate_syntax(syntax)
        try:
            self.evaluator = as_evaluator(evaluator)
        except TypeError as error:
            raise ConfigurationError(str(error)) from error
        if rng is None:
            rng = MersenneTwister(config.seed)
        if not isinstance(rng, RandomSource):
            raise ConfigurationError(f"Not a random source: {rng!r}")
        self.rng = rng
        self.bus = bus if bus is not None else EventBus()
        self.return_type = return_type
        self.order = config.order

        self.initialiser = initialiser or self._create_initialiser()
        self.selector = selector or create_selector(config.selection, rng, self.order,
                                                    config.tournament_size, config.over_selection)
        self.crossover = crossover or self._create_crossover()
        self.mutation = mutation or self._create_mutation()
        self.termination = list(termination) if termination is not None else self._create_termination()
        self.state: Optional[RunState] = None

    def _create_initialiser(self) -> Initialiser:
        config = self.config
        options = dict(allow_duplicates=config.allow_duplicates, max_attempts=config.max_init_attempts)
        if config.initialiser == 'full':
            return FullInitialiser(self.syntax, self.return_type, self.rng,
                                   depth=config.max_initial_depth, **options)
        if config.initialiser == 'grow':
            return GrowInitialiser(self.syntax, self.return_type, self.rng,
                                   max_depth=config.max_initial_depth, **options)
        return RampedHalfAndHalfInitialiser(self.syntax, self.return_type, self.rng,
                                            end_depth=config.max_initial_depth,
                                            start_depth=config.ramping_start_depth, **options)

    def _create_crossover(self) -> Crossover:
        if self.config.crossover == 'one_point':
            return OnePointCrossover(self.rng)
        return SubtreeCrossover(self.rng, self.config.function_bias, self.config.crossover_attempts)

    def _create_mutation(self) -> Mutation:
        if self.config.mutation == 'point':
            return PointMutation(self.syntax, self.rng, self.config.point_probability)
        return SubtreeMutation(self.syntax, self.rng, self.config.subtree_mutation_depth)

    def _create_termination(self) -> List[TerminationCriterion]:
        criteria: List[TerminationCriterion] = [MaxGenerations(self.config.max_generations)]
        if self.config.termination_fitness is not None:
            criteria.append(FitnessThreshold(self.config.termination_fitness, self.order))
        if self.config.max_seconds is not None:
            criteria.append(MaxWallClock(self.config.max_seconds))
        return criteria

    def run(self, run_index: int = 0) -> RunResult:
        """Execute one run; raises RunFailedError if fitness evaluation fails"""
        state = self.state = RunState(run_index)
        self.bus.publish(StartRun, StartRun(run_index))
        logger.info("Starting run %d", run_index)

        try:
            population = self.initialise(state)
            while not should_terminate(self.termination, state):
                state.generation += 1
                population = self.generation(population, state)
        except RunFailedError as error:
            logger.error("Run %d failed at generation %d: %s", run_index, state.generation, error.cause)
            self.bus.publish(EndRun, EndRun(run_index, state.best, state.generation,
                                            state.elapsed, error))
            raise

        duration = state.elapsed
        logger.info("Run %d finished after %d generations, best fitness %s",
                    run_index, state.generation, state.best_fitness)
        self.bus.publish(EndRun, EndRun(run_index, state.best, state.generation, duration))
        return RunResult(run_index, state.best, state.generation, duration)

    def initialise(self, state: RunState) -> Population:
        self.bus.publish(StartInitialisation, StartInitialisation(state.run_index))
        population = self.initialiser.create_population(self.config.population_size)
        self.evaluate(population, state)
        self._update_best(population, state)
        self.bus.publish(EndInitialisation, EndInitialisation(state.run_index, population))
        return population

    def generation(self, population: Population, state: RunState) -> Population:
        """Breed, evaluate and return the next population"""
        start = time.perf_counter()
        self.bus.publish(StartGeneration, StartGeneration(state.run_index, state.generation, population))

        size = self.config.population_size
        # Elites keep their cached fitness and skip evaluation
        next_population = Population(elite.copy() for elite in
                                     population.get_top(self.config.elitism, self.order))
        if self.config.pool_size is not None:
            pool = self.selector.select_pool(population, self.config.pool_size)
        else:
            pool = population.individuals
        self.selector.set_pool(pool)

        while len(next_population) < size:
            for child in self.breed(pool, state):
                if len(next_population) < size:
                    next_population.add(child)

        self.evaluate(next_population, state)
        self._update_best(next_population, state)
        duration = time.perf_counter() - start
        logger.info("Run %d generation %d: best %s", state.run_index, state.generation,
                     state.best_fitness)
        self.bus.publish(EndGeneration, EndGeneration(state.run_index, state.generation,
                                                      next_population, duration))
        return next_population

    def breed(self, pool: Sequence[Individual], state: RunState) -> Tuple[Individual, ...]:
        """Offspring for the next population; falls back to reproduction after too many rejections"""
        crossover_probability = self.config.crossover_probability
        mutation_probability = self.config.mutation_probability

        for attempt in range(self.config.max_breeding_attempts):
            choice = self.rng.next_double()
            if choice < crossover_probability:
                parents = (self.selector.select_parent(pool), self.selector.select_parent(pool))
                children = self.crossover.crossover(*parents)
                event_type, operator = CrossoverEvent, self.crossover.name
            elif choice < crossover_probability + mutation_probability:
                parents = (self.selector.select_parent(pool),)
                children = (self.mutation.mutate(parents[0]),)
                event_type, operator = MutationEvent, self.mutation.name
            else:
                return (self._reproduce(pool, state),)

            children = tuple(children)
            if any(child.get_depth() > self.config.max_depth for child in children):
                logger.debug("Discarded %s offspring deeper than %d", operator, self.config.max_depth)
                continue
            outcome = self.bus.review(event_type, event_type(operator, parents, children,
                                                             state.generation))
            if outcome is Rejected or not outcome.children:
                continue
            return tuple(outcome.children)

        logger.debug("No acceptable offspring after %d attempts, reproducing instead",
                     self.config.max_breeding_attempts)
        return (self._reproduce(pool, state),)

    def _reproduce(self, pool: Sequence[Individual], state: RunState) -> Individual:
        parent = self.selector.select_parent(pool)
        child = parent.copy()
        self.bus.publish(ReproductionEvent, ReproductionEvent('reproduction', (parent,), (child,),
                                                              state.generation))
        return child

    def evaluate(self, population: Population, state: RunState) -> None:
        """Assign fitness to every unevaluated individual"""
        pending = population.unevaluated()
        try:
            if self.config.evaluation_workers > 1 and len(pending) > 1:
                with ThreadPoolExecutor(max_workers=self.config.evaluation_workers) as executor:
                    results = list(executor.map(self._assess, pending))
            else:
                results = [self._assess(individual) for individual in pending]
        except Exception as error:
            raise RunFailedError(state.run_index, error) from error

        for individual, (fitness, duration) in zip(pending, results):
            individual.fitness = fitness
            self.bus.publish(FitnessEvaluated, FitnessEvaluated(individual, fitness, duration))

    def _assess(self, individual: Individual) -> Tuple[float, float]:
        start = time.perf_counter()
        fitness = float(self.evaluator(individual))
        return fitness, time.perf_counter() - start

    def _update_best(self, population: Population, state: RunState) -> None:
        candidate = population.get_best(self.order)
        if state.best is None or self.order.is_better(candidate.fitness, state.best.fitness):
            state.best = candidate


class Evolver:
    """Runs ``config.runs`` independent runs and tracks the best of all of them.

    Everything is validated on construction. A run whose fitness evaluation
    raises is recorded as failed and the batch carries on with the next run.
    """

    def __init__(self, config: EvolutionConfig, syntax: Sequence[Any], evaluator: Evaluator,
                 return_type: DataType, bus: Optional[EventBus] = None,
                 rng: Optional[RandomSource] = None, **components):
        self.config = config
        self.bus = bus if bus is not None else EventBus()
        self.strategy = GenerationalStrategy(config, syntax, evaluator, return_type,
                                             bus=self.bus, rng=rng, **components)

    def run(self) -> BatchResult:
        order = self.config.order
        batch = BatchResult()
        self.bus.publish(StartBatch, StartBatch(self.config.runs))

        for run_index in range(self.config.runs):
            try:
                result = self.strategy.run(run_index)
            except RunFailedError as error:
                state = self.strategy.state
                result = RunResult(run_index, None, state.generation, state.elapsed, error)
            batch.runs.append(result)
            if result.best is not None and (batch.best is None or
                                            order.is_better(result.best.fitness, batch.best.fitness)):
                batch.best = result.best

        failed = tuple(run.run_index for run in batch.failures)
        if failed:
            logger.warning("%d of %d runs failed: %s", len(failed), self.config.runs, failed)
        self.bus.publish(EndBatch, EndBatch(batch.best, failed))
        return batch
