"""
TSP Solver - Main Application
Genetic algorithm for explicit-cost (LOWER_DIAG_ROW) TSP instances.
"""

import argparse
import os
import sys
import time

from tsp_core import ConfigError, LoadError
from data_generator import load_tsp_file
from genetic_algorithm import GAConfig, GeneticAlgorithmSolver
from operators import CROSSOVER_STRATEGIES, MUTATION_STRATEGIES, SELECTION_STRATEGIES
import benchmark


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="TSP Solver - Genetic Algorithm for explicit-cost TSP instances",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Single run with default settings
  python main.py gr21.tsp

  # Print stats for every generation, PMX + exchange mutation
  python main.py gr21.tsp --crossover pmx --mutation exchange --verbose --report-every 1

  # Ten independent runs, results saved to CSV
  python main.py gr21.tsp --run-for 10 --save-results

  # Repeat runs until a tour of cost 2707 or better is found
  python main.py gr21.tsp --run-until 2707 --max-runs 50
        """
    )

    parser.add_argument('instance', help='Path to an EXPLICIT / LOWER_DIAG_ROW .tsp file')

    parser.add_argument('--population', type=int, default=150,
                        help='Population size (default: 150)')
    parser.add_argument('--generations', type=int, default=5000,
                        help='Number of generations (default: 5000)')
    parser.add_argument('--tournament', type=int, default=5,
                        help='Tournament size (default: 5)')
    parser.add_argument('--mutation-chance', type=int, default=5,
                        help='Percentage of offspring produced by mutation (default: 5)')
    parser.add_argument('--selection', choices=sorted(SELECTION_STRATEGIES), default='tournament')
    parser.add_argument('--crossover', choices=sorted(CROSSOVER_STRATEGIES), default='cycle')
    parser.add_argument('--mutation', choices=sorted(MUTATION_STRATEGIES), default='inversion')
    parser.add_argument('--start-city', type=int, default=1,
                        help='Fixed start city, 1-based (default: 1)')
    parser.add_argument('--seed', type=int, default=None, help='Random seed')
    parser.add_argument('--time-limit', type=float, default=None,
                        help='Stop a run after this many seconds (checked between generations)')

    mode = parser.add_mutually_exclusive_group()
    mode.add_argument('--run-for', type=int, metavar='RUNS',
                      help='Run the GA RUNS times and report best/average')
    mode.add_argument('--run-until', type=int, metavar='GOAL',
                      help='Repeat complete runs until a tour costing GOAL or less is found')

    parser.add_argument('--max-runs', type=int, default=None,
                        help='Upper bound on runs for --run-until')
    parser.add_argument('--time-budget', type=float, default=None,
                        help='Wall-clock budget in seconds for --run-until')
    parser.add_argument('--verbose', action='store_true', help='Print per-generation stats')
    parser.add_argument('--report-every', type=int, default=100,
                        help='Generations between verbose reports (default: 100)')
    parser.add_argument('--plot', action='store_true', help='Plot convergence / run distribution')
    parser.add_argument('--save-plot', default=None, help='Save the plot to this path')
    parser.add_argument('--save-results', action='store_true',
                        help=f'Write --run-for results to {benchmark.OUTPUT_DIR}/')
    return parser


def config_from_args(args) -> GAConfig:
    return GAConfig(
        population_size=args.population,
        generations=args.generations,
        tournament_size=args.tournament,
        mutation_chance=args.mutation_chance,
        selection=args.selection,
        crossover=args.crossover,
        mutation=args.mutation,
        start_city=args.start_city - 1,
        seed=args.seed,
        time_limit=args.time_limit,
    )


def single_run(cost_matrix, config, args):
    solver = GeneticAlgorithmSolver(cost_matrix, config, report_every=max(1, args.report_every))

    start_time = time.time()
    best, history = solver.solve(verbose=args.verbose)
    elapsed = time.time() - start_time

    if not args.verbose:
        print(f"Best Route: {best.fitness}")
        print(best.route_string())
    print(f"Generations: {solver.generation} | Time: {elapsed:.3f}s")

    if args.plot or args.save_plot:
        from visualization import TSPVisualizer
        TSPVisualizer().plot_convergence(history, save_path=args.save_plot, show=args.plot)


def repeated_runs(cost_matrix, config, args):
    print(f"RUNNING FOR {args.run_for}")
    results = benchmark.run_for(cost_matrix, config, args.run_for)
    summary = benchmark.summarize(results)

    print(f"Best result in {summary['runs']} runs: {summary['best']}")
    print(f"Average result: {summary['average']:.1f} (std {summary['std']:.1f})")
    print(f"Execution time: {summary['seconds'] * 1000:.0f}ms")

    if args.save_results:
        name = os.path.splitext(os.path.basename(args.instance))[0]
        path = os.path.join(benchmark.OUTPUT_DIR, f"{name}_runs.csv")
        benchmark.save_results(results, path)
        print(f"Saved: {path}")

    if args.plot or args.save_plot:
        from visualization import TSPVisualizer
        TSPVisualizer().plot_run_distribution(results["best"], save_path=args.save_plot, show=args.plot)


def goal_runs(cost_matrix, config, args):
    print(f"RUNNING UNTIL {args.run_until}")
    result = benchmark.run_until(
        cost_matrix, args.run_until, config,
        max_runs=args.max_runs, time_budget=args.time_budget,
    )

    if result.reached:
        print(f"Found value ({args.run_until}) after {result.runs} runs")
    else:
        print(f"Goal ({args.run_until}) not reached after {result.runs} runs")
    print(f"Average result: {result.average:.1f}")
    print(f"Execution time: {result.seconds * 1000:.0f}ms")
    print(f"Best Route: {result.best_tour.fitness}")
    print(result.best_tour.route_string())
    return 0 if result.reached else 2


def main(argv=None) -> int:
    """Main entry point for the TSP solver application."""
    args = build_parser().parse_args(argv)

    try:
        cost_matrix = load_tsp_file(args.instance)
        config = config_from_args(args)
        config.validate(cost_matrix.size)
    except (LoadError, ConfigError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print("##### TSP #####")
    print(f"Matrix File: {args.instance}")
    print(f"No. Cities: {cost_matrix.size}")

    if args.run_for is not None:
        try:
            repeated_runs(cost_matrix, config, args)
        except ConfigError as e:
            print(f"Error: {e}", file=sys.stderr)
            return 1
        return 0
    if args.run_until is not None:
        try:
            return goal_runs(cost_matrix, config, args)
        except ConfigError as e:
            print(f"Error: {e}", file=sys.stderr)
            return 1

    single_run(cost_matrix, config, args)
    return 0


if __name__ == "__main__":
    sys.exit(main())
