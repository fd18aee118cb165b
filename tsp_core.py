"""
TSP Solver - Core Module
Contains the fundamental data structures for representing an explicit-cost TSP.
"""

import numpy as np
from typing import List, NewType, Sequence

CityIndex = NewType("CityIndex", int)


# ---------------------------------------
# Errors
# ---------------------------------------

class TSPError(Exception):
    """Base class for every error raised by the solver."""


class LoadError(TSPError, ValueError):
    """The instance could not be turned into a cost matrix."""


class FormatError(LoadError):
    """Unsupported or malformed instance format."""


class SizeError(LoadError):
    """Missing, non-positive or inconsistent dimension."""


class ConfigError(TSPError, ValueError):
    """Invalid solver configuration."""


class InvariantViolation(TSPError, AssertionError):
    """An operator produced an invalid tour. Always a bug."""


class SolverStateError(TSPError, RuntimeError):
    """A solver method was called in the wrong lifecycle state."""


class CostMatrix:
    """Immutable N x N symmetric matrix of integer travel costs."""

    def __init__(self, matrix):
        try:
            raw = np.array(matrix)
        except ValueError as e:
            raise SizeError(f"Cost matrix rows must all have the same length: {e}") from e

        if raw.dtype.kind == "f":
            if not np.isfinite(raw).all() or (raw != np.round(raw)).any():
                raise FormatError("Cost matrix must contain integer costs")
        elif raw.size and raw.dtype.kind not in "iu":
            raise FormatError(f"Cost matrix must contain integer costs, got {raw.dtype}")
        data = raw.astype(np.int64)

        if data.ndim != 2 or data.shape[0] != data.shape[1]:
            raise SizeError(f"Cost matrix must be square, got shape {data.shape}")
        if data.shape[0] == 0:
            raise SizeError("Cost matrix must have at least one city")
        if not np.array_equal(data, data.T):
            raise FormatError("Cost matrix must be symmetric")
        if (data < 0).any():
            raise FormatError("Cost matrix must not contain negative costs")

        data.setflags(write=False)
        self._matrix = data
        self.n = data.shape[0]

    @property
    def size(self) -> int:
        return self.n

    def cost(self, i: CityIndex, j: CityIndex) -> int:
        """Cost of travelling between two cities."""
        return int(self._matrix[i, j])

    def tour_cost(self, cities: Sequence[CityIndex]) -> int:
        """Total cost of the closed tour, including the edge back to the start."""
        if len(cities) == 0:
            return 0
        order = np.asarray(cities, dtype=np.intp)
        return int(self._matrix[order, np.roll(order, -1)].sum())

    def as_array(self) -> np.ndarray:
        """Read-only view of the underlying numpy array."""
        return self._matrix

    def __len__(self):
        return self.n

    def __repr__(self):
        return f"CostMatrix(n={self.n})"


class Tour:
    """One candidate solution: a permutation of city indices with a pinned start."""

    def __init__(self, cities: List[CityIndex] = None, fitness: int = None):
        self.cities = cities if cities else []
        self.fitness = fitness

    def evaluate(self, cost_matrix: CostMatrix) -> int:
        """Recompute and store the fitness against the given matrix."""
        self.fitness = cost_matrix.tour_cost(self.cities)
        return self.fitness

    def clone(self) -> 'Tour':
        """Create an independent copy of the tour (fitness included)."""
        return Tour(self.cities.copy(), self.fitness)

    @property
    def start_city(self) -> CityIndex:
        return self.cities[0]

    def display_route(self) -> List[int]:
        """1-based route that returns to the start city."""
        if not self.cities:
            return []
        return [c + 1 for c in self.cities] + [self.cities[0] + 1]

    def route_string(self, sep: str = ":") -> str:
        return sep.join(str(c) for c in self.display_route())

    def __len__(self):
        return len(self.cities)

    def __eq__(self, other):
        if not isinstance(other, Tour):
            return False
        return self.cities == other.cities

    def __repr__(self):
        return f"Tour(cities={len(self.cities)}, fitness={self.fitness})"

    def __getitem__(self, index):
        return self.cities[index]


def check_tour(cities: Sequence[CityIndex], size: int, start_city: CityIndex = 0):
    """
    Raise InvariantViolation unless `cities` is a permutation of range(size)
    starting with `start_city`.
    """
    if len(cities) != size:
        raise InvariantViolation(
            f"Tour has {len(cities)} cities, expected {size}: {list(cities)}"
        )
    if size and cities[0] != start_city:
        raise InvariantViolation(
            f"Tour starts at city {cities[0]}, expected {start_city}: {list(cities)}"
        )
    if sorted(cities) != list(range(size)):
        raise InvariantViolation(f"Tour is not a permutation: {list(cities)}")
