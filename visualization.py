"""
TSP Solver - Visualization Module
Plots of solver progress for explicit-cost instances (no coordinates to draw).
"""

import matplotlib.pyplot as plt
import numpy as np
from typing import Sequence

from genetic_algorithm import GenerationStats


class TSPVisualizer:
    """Visualize GA convergence and repeated-run results."""

    def __init__(self, figsize=(12, 8)):
        self.figsize = figsize

    def plot_convergence(
        self,
        history: Sequence[GenerationStats],
        title: str = "GA Convergence",
        save_path: str = None,
        show: bool = True,
    ):
        """
        Plot worst, mean and best fitness for every generation.

        Args:
            history: GenerationStats as returned by GeneticAlgorithmSolver.solve
            title: Plot title
            save_path: Optional path to save the figure
            show: Call plt.show() once drawn
        """
        fig, ax = plt.subplots(figsize=self.figsize)

        if len(history) == 0:
            ax.text(0.5, 0.5, 'No generations recorded',
                    ha='center', va='center', fontsize=16)
        else:
            gens = [s.generation for s in history]
            ax.plot(gens, [s.worst for s in history], 'r-', linewidth=1, alpha=0.5, label='Worst')
            ax.plot(gens, [s.mean for s in history], 'b-', linewidth=1.5, alpha=0.7, label='Mean')
            ax.plot(gens, [s.best for s in history], 'g-', linewidth=2, label='Best')

            best = history[-1].best
            ax.set_title(f"{title}\nFinal Best: {best}", fontsize=14, weight='bold')
            ax.legend()

        ax.set_xlabel('Generation', fontsize=12)
        ax.set_ylabel('Tour Cost', fontsize=12)
        ax.grid(True, alpha=0.3)

        plt.tight_layout()
        self._finish(fig, save_path, show)
        return fig

    def plot_run_distribution(
        self,
        best_values: Sequence[int],
        title: str = "Best Cost per Run",
        save_path: str = None,
        show: bool = True,
    ):
        """Histogram of the best cost reached by each independent run."""
        fig, ax = plt.subplots(figsize=self.figsize)
        values = np.asarray(best_values)

        bins = min(20, max(1, len(np.unique(values))))
        ax.hist(values, bins=bins, color='steelblue', edgecolor='black', alpha=0.8)
        ax.axvline(values.mean(), color='red', linestyle='--', label=f"Mean {values.mean():.1f}")
        ax.axvline(values.min(), color='green', linestyle='-', label=f"Best {values.min()}")

        ax.set_title(title, fontsize=14, weight='bold')
        ax.set_xlabel('Tour Cost', fontsize=12)
        ax.set_ylabel('Runs', fontsize=12)
        ax.legend()
        ax.grid(True, alpha=0.3)

        plt.tight_layout()
        self._finish(fig, save_path, show)
        return fig

    def _finish(self, fig, save_path, show):
        if save_path:
            fig.savefig(save_path, dpi=150, bbox_inches='tight')
            print(f"Figure saved to {save_path}")
        if show:
            plt.show()
        else:
            plt.close(fig)

