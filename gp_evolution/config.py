"""
gp_evolution/config.py - Run configuration

All options are validated when the configuration is built or assigned, so
invalid settings fail before the first generation.
"""
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .fitness import FitnessOrder


class EvolutionConfig(BaseModel):
    """Parameters of a batch of generational GP runs"""

    model_config = ConfigDict(validate_assignment=True)

    # Population
    population_size: int = Field(default=100, gt=0, description="Individuals per generation")
    max_generations: int = Field(default=50, ge=0, description="Generations bred per run")
    runs: int = Field(default=1, ge=1, description="Number of independent runs")

    # Tree size
    max_initial_depth: int = Field(default=6, ge=0, description="Depth bound of initial trees")
    max_depth: int = Field(default=17, ge=0, description="Depth bound of any offspring")
    ramping_start_depth: int = Field(default=2, ge=0,
                                     description="Smallest depth used by ramped half-and-half")
    initialiser: Literal["ramped_half_and_half", "full", "grow"] = "ramped_half_and_half"
    allow_duplicates: bool = Field(default=True,
                                   description="Whether the initial population may repeat programs")
    max_init_attempts: int = Field(default=1000, ge=1,
                                   description="Attempts to find a distinct program before failing")

    # Operators
    crossover_probability: float = Field(default=0.9, ge=0.0, le=1.0)
    mutation_probability: float = Field(default=0.1, ge=0.0, le=1.0)
    crossover: Literal["subtree", "one_point"] = "subtree"
    mutation: Literal["point", "subtree"] = "subtree"
    function_bias: Optional[float] = Field(default=0.9, ge=0.0, le=1.0,
                                           description="Chance a crossover point is an internal "
                                                       "node; None picks points uniformly")
    point_probability: float = Field(default=0.01, ge=0.0, le=1.0,
                                     description="Per-node chance of point mutation")
    subtree_mutation_depth: int = Field(default=4, ge=0)
    crossover_attempts: int = Field(default=10, ge=1,
                                    description="Type-compatible point draws before giving up")
    max_breeding_attempts: int = Field(default=100, ge=1,
                                       description="Vetoed or oversized offspring tolerated per slot")

    # Selection
    selection: Literal["tournament", "random", "fitness_proportionate"] = "tournament"
    tournament_size: int = Field(default=7, ge=1)
    over_selection: bool = False
    pool_size: Optional[int] = Field(default=None, ge=1,
                                     description="Breeding pool size; None breeds from the population")
    elitism: int = Field(default=1, ge=0, description="Best individuals copied unchanged")

    # Fitness and termination
    minimise: bool = Field(default=True, description="Lower fitness is better")
    termination_fitness: Optional[float] = Field(default=None,
                                                 description="Stop a run once this fitness is reached")
    max_seconds: Optional[float] = Field(default=None, gt=0, description="Wall-clock bound per run")

    # Execution
    seed: Optional[int] = None
    evaluation_workers: int = Field(default=1, ge=1,
                                    description="Threads used for fitness evaluation")

    @model_validator(mode='after')
    def validate_consistency(self) -> 'EvolutionConfig':
        if self.crossover_probability + self.mutation_probability > 1.0 + 1e-9:
            raise ValueError('crossover_probability + mutation_probability must not exceed 1.0')
        if self.max_depth < self.max_initial_depth:
            raise ValueError('max_depth must be at least max_initial_depth')
        if self.initialiser == 'ramped_half_and_half' and self.ramping_start_depth > self.max_initial_depth:
            raise ValueError('ramping_start_depth must not exceed max_initial_depth')
        if self.elitism >= self.population_size:
            raise ValueError('elitism must be less than population_size')
        return self

    @property
    def reproduction_probability(self) -> float:
        return max(0.0, 1.0 - self.crossover_probability - self.mutation_probability)

    @property
    def order(self) -> FitnessOrder:
        return FitnessOrder(minimise=self.minimise)
