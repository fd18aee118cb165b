"""
Genetic Algorithm Solver for explicit-cost TSP instances.
Fixed start city, elitism of one, pluggable selection/crossover/mutation,
generation-count and time-limit termination.
"""

import random
import time
from collections import namedtuple
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional, Tuple

import numpy as np

from tsp_core import (
    ConfigError,
    CityIndex,
    CostMatrix,
    SolverStateError,
    Tour,
    check_tour,
)
from operators import (
    CROSSOVER_STRATEGIES,
    MUTATION_STRATEGIES,
    SELECTION_STRATEGIES,
    make_crossover,
    make_mutation,
    make_selection,
)

GenerationStats = namedtuple("GenerationStats", ["generation", "worst", "mean", "best"])


class SolverState(Enum):
    UNINITIALIZED = "uninitialized"
    INITIALIZED = "initialized"
    EVALUATED = "evaluated"
    ADVANCING = "advancing"
    TERMINATED = "terminated"


@dataclass
class GAConfig:
    """Solver parameters. Strategies are registry names or callables."""

    population_size: int = 150
    generations: int = 5000
    tournament_size: int = 5
    mutation_chance: int = 5  # percent
    selection: object = "tournament"
    crossover: object = "cycle"
    mutation: object = "inversion"
    start_city: CityIndex = 0
    seed: Optional[int] = None
    time_limit: Optional[float] = None

    def validate(self, size: Optional[int] = None):
        if self.population_size <= 0:
            raise ConfigError(f"Population size must be positive, got {self.population_size}")
        if self.generations < 0:
            raise ConfigError(f"Generation count must not be negative, got {self.generations}")
        if not 1 <= self.tournament_size <= self.population_size:
            raise ConfigError(
                f"Tournament size must be in [1, {self.population_size}], got {self.tournament_size}"
            )
        if not 0 <= self.mutation_chance <= 100:
            raise ConfigError(f"Mutation chance must be in [0, 100], got {self.mutation_chance}")
        if self.time_limit is not None and self.time_limit < 0:
            raise ConfigError(f"Time limit must not be negative, got {self.time_limit}")
        _check_strategy("selection", self.selection, SELECTION_STRATEGIES)
        _check_strategy("crossover", self.crossover, CROSSOVER_STRATEGIES)
        _check_strategy("mutation", self.mutation, MUTATION_STRATEGIES)
        if size is not None and not 0 <= self.start_city < size:
            raise ConfigError(f"Start city must be in [0, {size}), got {self.start_city}")


def _check_strategy(kind, strategy, registry):
    if isinstance(strategy, str):
        if strategy not in registry:
            raise ConfigError(
                f"Unknown {kind} strategy {strategy!r}; choose from {sorted(registry)}"
            )
    elif not callable(strategy):
        raise ConfigError(f"{kind} strategy must be a name or a callable, got {strategy!r}")


class Population:
    """P tours plus a parallel list of their fitness values."""

    def __init__(self, tours: List[Tour] = None):
        self.tours: List[Tour] = tours if tours else []
        self.fitness: List[int] = []

    def evaluate(self, cost_matrix: CostMatrix):
        self.fitness = [tour.evaluate(cost_matrix) for tour in self.tours]

    def best_index(self) -> int:
        # linear scan, first minimum wins
        best = 0
        for i in range(1, len(self.fitness)):
            if self.fitness[i] < self.fitness[best]:
                best = i
        return best

    def get_fittest(self) -> Tour:
        return self.tours[self.best_index()]

    def stats(self, generation: int) -> GenerationStats:
        values = np.asarray(self.fitness, dtype=np.int64)
        return GenerationStats(
            generation=generation,
            worst=int(values.max()),
            mean=int(values.sum() // len(values)),
            best=int(values.min()),
        )

    def __len__(self):
        return len(self.tours)


class GeneticAlgorithmSolver:
    """
    Generational GA over a fixed-start permutation encoding.

    Lifecycle: UNINITIALIZED -> INITIALIZED -> EVALUATED
    -> (ADVANCING -> EVALUATED)* -> TERMINATED.
    """

    def __init__(
        self,
        cost_matrix: CostMatrix,
        config: GAConfig = None,
        rng: random.Random = None,
        report_every: int = 100,
    ):
        self.cost_matrix = cost_matrix
        self.n_cities = cost_matrix.size
        self.config = config or GAConfig()
        self.config.validate(self.n_cities)

        self.rng = rng or random.Random(self.config.seed)
        self.select = make_selection(self.config.selection, self.config.tournament_size)
        self.crossover = make_crossover(self.config.crossover)
        self.mutate = make_mutation(self.config.mutation)
        self.report_every = report_every

        # GA state
        self.population: Optional[Population] = None
        self.generation = 0
        self.history: List[GenerationStats] = []
        self.state = SolverState.UNINITIALIZED

    @property
    def start_city(self) -> CityIndex:
        return self.config.start_city

    # ---------------------------------------
    # Initialization and evaluation
    # ---------------------------------------

    def random_tour(self) -> Tour:
        """Start city first, the rest in uniformly random order."""
        others = [c for c in range(self.n_cities) if c != self.start_city]
        return Tour([self.start_city] + self.rng.sample(others, len(others)))

    def initialize(self):
        self.population = Population(
            [self.random_tour() for _ in range(self.config.population_size)]
        )
        self.generation = 0
        self.history = []
        self.state = SolverState.INITIALIZED

    def evaluate(self):
        if self.population is None:
            raise SolverStateError("evaluate() called before initialize()")
        self.population.evaluate(self.cost_matrix)
        self.state = SolverState.EVALUATED
        self.history.append(self.population.stats(self.generation))

    # ---------------------------------------
    # Single generation evolution
    # ---------------------------------------

    def _child(self, cities: List[CityIndex]) -> Tour:
        check_tour(cities, self.n_cities, self.start_city)
        return Tour(cities)

    def next_generation(self) -> Population:
        """Build (without installing) the population that follows the current one."""
        current = self.population
        size = self.config.population_size
        tours = [current.get_fittest().clone()]

        while len(tours) < size:
            first = current.tours[self.select(current.fitness, self.rng)].cities
            second = current.tours[self.select(current.fitness, self.rng)].cities

            crossover = self.rng.randrange(100) >= self.config.mutation_chance
            if crossover and len(tours) < size - 1:
                child1, child2 = self.crossover(first, second, self.rng)
                tours.append(self._child(child1))
                tours.append(self._child(child2))
            else:
                tours.append(self._child(self.mutate(first, self.rng)))

        return Population(tours)

    def evolve_generation(self):
        if self.state is not SolverState.EVALUATED:
            raise SolverStateError(
                f"evolve_generation() needs an evaluated population, state is {self.state.value}"
            )
        self.state = SolverState.ADVANCING
        new_pop = self.next_generation()

        self.population = new_pop
        self.generation += 1
        self.evaluate()

    # ---------------------------------------
    # Main loop
    # ---------------------------------------

    def solve(
        self,
        generations: Optional[int] = None,
        time_limit: Optional[float] = None,
        verbose: bool = False,
        callback: Callable = None,
    ) -> Tuple[Tour, List[GenerationStats]]:
        """
        Run a complete GA from a fresh population.

        Returns:
            best_tour
            history = [GenerationStats per generation, generation 0 first]
        """
        if generations is None:
            generations = self.config.generations
        if time_limit is None:
            time_limit = self.config.time_limit

        start = time.time()
        self.initialize()
        self.evaluate()

        for gen in range(generations):
            # bounds are only checked between generations
            if time_limit is not None and time.time() - start >= time_limit:
                break

            self.evolve_generation()

            if callback:
                callback(self, self.generation)

            if verbose and self.generation % self.report_every == 0:
                s = self.history[-1]
                print(f"Gen {s.generation} | {s.worst}:{s.mean}:{s.best}")

        self.state = SolverState.TERMINATED
        best = self.get_best_tour()

        if verbose:
            print(f"Best Route: {best.fitness}")
            print(best.route_string())

        return best, self.history

    def best_index(self) -> int:
        return self.population.best_index()

    def get_best_tour(self) -> Optional[Tour]:
        return self.population.get_fittest().clone() if self.population else None

    def generation_stats(self) -> GenerationStats:
        if self.state in (SolverState.UNINITIALIZED, SolverState.INITIALIZED):
            raise SolverStateError("Population has not been evaluated yet")
        return self.population.stats(self.generation)
