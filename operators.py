"""
Genetic operators for permutation tours.

Every operator works on plain lists of city indices whose first element is
the fixed start city. Position 0 is never touched, so all of them preserve
"permutation of all cities, start city first".

Strategies are small callables so the solver can be handed any of them:

    selection(fitness, rng) -> index
    crossover(parent1, parent2, rng) -> (child1, child2)
    mutation(parent, rng) -> child
"""

import random
import numpy as np
from typing import Dict, List, Sequence, Tuple

from tsp_core import CityIndex, ConfigError


def draw_segment(n: int, rng: random.Random) -> Tuple[int, int]:
    """Two positions 1 <= p1 < p2 <= n - 1. Needs n >= 3."""
    p1 = rng.randrange(1, n - 1)
    p2 = p1 + rng.randrange(n - 1 - p1)
    if p1 == p2:
        p2 += 1
    return p1, p2


# ---------------------------------------
# Selection
# ---------------------------------------

class TournamentSelection:
    """Best of `size` uniform draws (with replacement); ties go to the earliest draw."""

    name = "tournament"

    def __init__(self, size: int = 5):
        if size < 1:
            raise ConfigError(f"Tournament size must be at least 1, got {size}")
        self.size = size

    def __call__(self, fitness: Sequence[int], rng: random.Random) -> int:
        pop_size = len(fitness)
        if self.size > pop_size:
            raise ConfigError(
                f"Tournament size {self.size} exceeds population size {pop_size}"
            )
        best = rng.randrange(pop_size)
        for _ in range(self.size - 1):
            contender = rng.randrange(pop_size)
            if fitness[contender] < fitness[best]:
                best = contender
        return best


class RouletteSelection:
    """
    Fitness-proportionate selection, inverted for minimisation.

    Each fitness f becomes (max + min) - f, so the shortest tour gets the
    largest slice while the proportions between tours are kept.
    """

    name = "roulette"

    def __call__(self, fitness: Sequence[int], rng: random.Random) -> int:
        values = np.asarray(fitness, dtype=np.float64)
        inverted = (values.max() + values.min()) - values
        total = inverted.sum()
        if total <= 0:
            # Every tour costs nothing; any pick is as good as another.
            return rng.randrange(len(values))

        wheel = np.cumsum(inverted / total)
        wheel[-1] = 1.0
        return int(np.searchsorted(wheel, rng.random(), side="left"))


# ---------------------------------------
# Crossover
# ---------------------------------------

def cycle_crossover(parent1: Sequence[CityIndex], parent2: Sequence[CityIndex], start: int) -> Tuple[List[CityIndex], List[CityIndex]]:
    """Swap the cycle that contains position `start` between the two parents."""
    child1 = list(parent1)
    child2 = list(parent2)
    position_in_p1 = {city: i for i, city in enumerate(parent1)}

    index = start
    while True:
        child1[index] = parent2[index]
        child2[index] = parent1[index]
        index = position_in_p1[parent2[index]]
        if index == start:
            break
    return child1, child2


def _pmx_child(donor: Sequence[CityIndex], mapped_from: Sequence[CityIndex], p1: int, p2: int) -> List[CityIndex]:
    # `mapped_from` supplies the section, `donor` fills everything else
    child = list(donor)
    mapping = {}
    for i in range(p1, p2 + 1):
        child[i] = mapped_from[i]
        mapping[mapped_from[i]] = donor[i]

    for i in range(1, len(donor)):
        if p1 <= i <= p2:
            continue
        value = donor[i]
        while value in mapping:
            value = mapping[value]
        child[i] = value
    return child


def partially_mapped_crossover(parent1: Sequence[CityIndex], parent2: Sequence[CityIndex],
                               p1: int, p2: int) -> Tuple[List[CityIndex], List[CityIndex]]:
    """PMX with mapped section [p1, p2] (inclusive). Position 0 is copied as is."""
    child1 = _pmx_child(parent1, parent2, p1, p2)
    child2 = _pmx_child(parent2, parent1, p1, p2)
    return child1, child2


class CycleCrossover:
    name = "cycle"

    def __call__(self, parent1: Sequence[CityIndex], parent2: Sequence[CityIndex],
                 rng: random.Random) -> Tuple[List[CityIndex], List[CityIndex]]:
        n = len(parent1)
        if n < 3:
            return list(parent1), list(parent2)
        return cycle_crossover(parent1, parent2, rng.randrange(1, n - 1))


class PartiallyMappedCrossover:
    name = "pmx"

    def __call__(self, parent1: Sequence[CityIndex], parent2: Sequence[CityIndex],
                 rng: random.Random) -> Tuple[List[CityIndex], List[CityIndex]]:
        n = len(parent1)
        if n < 3:
            return list(parent1), list(parent2)
        p1, p2 = draw_segment(n, rng)
        return partially_mapped_crossover(parent1, parent2, p1, p2)


# ---------------------------------------
# Mutation
# ---------------------------------------

def exchange(parent: Sequence[CityIndex], p1: int, p2: int) -> List[CityIndex]:
    child = list(parent)
    child[p1], child[p2] = child[p2], child[p1]
    return child


def invert(parent: Sequence[CityIndex], p1: int, p2: int) -> List[CityIndex]:
    """Reverse positions p1..p2 inclusive."""
    child = list(parent)
    child[p1:p2 + 1] = child[p1:p2 + 1][::-1]
    return child


class ExchangeMutation:
    name = "exchange"

    def __call__(self, parent: Sequence[CityIndex], rng: random.Random) -> List[CityIndex]:
        if len(parent) < 3:
            return list(parent)
        return exchange(parent, *draw_segment(len(parent), rng))


class InversionMutation:
    name = "inversion"

    def __call__(self, parent: Sequence[CityIndex], rng: random.Random) -> List[CityIndex]:
        if len(parent) < 3:
            return list(parent)
        return invert(parent, *draw_segment(len(parent), rng))


# ---------------------------------------
# Registries
# ---------------------------------------

SELECTION_STRATEGIES: Dict[str, type] = {
    "tournament": TournamentSelection,
    "roulette": RouletteSelection,
}

CROSSOVER_STRATEGIES: Dict[str, type] = {
    "cycle": CycleCrossover,
    "pmx": PartiallyMappedCrossover,
    "partially-mapped": PartiallyMappedCrossover,
}

MUTATION_STRATEGIES: Dict[str, type] = {
    "exchange": ExchangeMutation,
    "inversion": InversionMutation,
}


def make_selection(strategy, tournament_size: int = 5):
    if callable(strategy):
        return strategy
    try:
        cls = SELECTION_STRATEGIES[strategy]
    except KeyError:
        raise ConfigError(f"Unknown selection strategy: {strategy!r}")
    if cls is TournamentSelection:
        return cls(tournament_size)
    return cls()


def make_crossover(strategy):
    if callable(strategy):
        return strategy
    try:
        return CROSSOVER_STRATEGIES[strategy]()
    except KeyError:
        raise ConfigError(f"Unknown crossover strategy: {strategy!r}")


def make_mutation(strategy):
    if callable(strategy):
        return strategy
    try:
        return MUTATION_STRATEGIES[strategy]()
    except KeyError:
        raise ConfigError(f"Unknown mutation strategy: {strategy!r}")
