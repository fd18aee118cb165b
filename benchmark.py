import os
import time
import random
from dataclasses import dataclass, replace
from typing import Optional

import numpy as np
import pandas as pd
from tqdm import tqdm

from tsp_core import ConfigError, CostMatrix, Tour
from genetic_algorithm import GAConfig, GeneticAlgorithmSolver


# ================================
# CONFIGURATION
# ================================
RUNS_PER_INSTANCE = 10
OUTPUT_DIR = "benchmarks"


@dataclass
class GoalResult:
    reached: bool
    runs: int
    average: float
    seconds: float
    best_tour: Optional[Tour]


def _solver(cost_matrix: CostMatrix, config: GAConfig, rng: random.Random):
    return GeneticAlgorithmSolver(cost_matrix, config, rng=rng)


def run_for(cost_matrix: CostMatrix, config: GAConfig = None, runs: int = RUNS_PER_INSTANCE,
            progress: bool = True, rng: random.Random = None) -> pd.DataFrame:
    """
    Run the GA `runs` times from scratch.

    Returns a DataFrame with one row per run: run, best, seconds, route.
    """
    if runs <= 0:
        raise ConfigError(f"Number of runs must be positive, got {runs}")
    config = config or GAConfig()
    rng = rng or random.Random(config.seed)
    solver = _solver(cost_matrix, config, rng)

    rows = []
    for run in tqdm(range(runs), desc="GA runs", disable=not progress):
        start = time.time()
        best, _ = solver.solve()
        rows.append({
            "run": run,
            "best": best.fitness,
            "seconds": time.time() - start,
            "route": best.route_string(),
        })

    return pd.DataFrame(rows, columns=["run", "best", "seconds", "route"])


def summarize(results: pd.DataFrame) -> dict:
    """Best, average and spread of a run_for table."""
    return {
        "runs": int(len(results)),
        "best": int(results["best"].min()),
        "average": float(np.mean(results["best"])),
        "std": float(np.std(results["best"])),
        "seconds": float(results["seconds"].sum()),
    }


def run_until(cost_matrix: CostMatrix, goal: int, config: GAConfig = None,
              max_runs: Optional[int] = None, time_budget: Optional[float] = None,
              progress: bool = True, rng: random.Random = None) -> GoalResult:
    """
    Repeat complete runs (fresh population each time) until a run's best
    fitness is at or below `goal`.

    Without max_runs or time_budget this keeps going for as long as the
    goal is out of reach.
    """
    if max_runs is not None and max_runs <= 0:
        raise ConfigError(f"max_runs must be positive, got {max_runs}")
    if time_budget is not None and time_budget < 0:
        raise ConfigError(f"time_budget must not be negative, got {time_budget}")

    config = config or GAConfig()
    rng = rng or random.Random(config.seed)
    solver = _solver(cost_matrix, config, rng)

    start = time.time()
    runs = 0
    total = 0
    best_tour = None
    reached = False

    with tqdm(desc=f"Until {goal}", disable=not progress) as bar:
        while True:
            tour, _ = solver.solve()
            runs += 1
            total += tour.fitness
            bar.update(1)
            bar.set_postfix(best=tour.fitness)

            if best_tour is None or tour.fitness < best_tour.fitness:
                best_tour = tour

            # a zero-cost tour is not accepted as reaching the goal
            if 0 < tour.fitness <= goal:
                reached = True
                break
            if max_runs is not None and runs >= max_runs:
                break
            if time_budget is not None and time.time() - start >= time_budget:
                break

    return GoalResult(
        reached=reached,
        runs=runs,
        average=total / runs,
        seconds=time.time() - start,
        best_tour=best_tour,
    )


def compare_strategies(cost_matrix: CostMatrix, config: GAConfig = None, runs: int = RUNS_PER_INSTANCE,
                       progress: bool = False) -> pd.DataFrame:
    """run_for over every selection/crossover/mutation combination."""
    config = config or GAConfig()
    rows = []
    for selection in ("tournament", "roulette"):
        for crossover in ("cycle", "pmx"):
            for mutation in ("exchange", "inversion"):
                variant = replace(config, selection=selection, crossover=crossover, mutation=mutation)
                summary = summarize(run_for(cost_matrix, variant, runs, progress=progress))
                rows.append({"selection": selection, "crossover": crossover,
                             "mutation": mutation, **summary})
    return pd.DataFrame(rows).sort_values(by=["average", "best"]).reset_index(drop=True)


def save_results(results: pd.DataFrame, path: str):
    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    results.to_csv(path, index=False)
