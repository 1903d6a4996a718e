"""
Monitoring utilities for solver runs
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional

import numpy as np
from tabulate import tabulate

from .board import Action


@dataclass
class StepStats:
    """Statistics of the value/policy tables at one time step"""
    t: int
    mean_value: float
    max_value: float
    won_share: float
    action_counts: Dict[Action, int] = field(default_factory=dict)

    def get_progress_description(self, horizon: int) -> str:
        moves = sum(n for a, n in self.action_counts.items() if a != Action.NONE)
        return (f"t={self.t}/{horizon} | mean value: {self.mean_value:.4f} | "
                f"won: {self.won_share:.1%} | states moving: {moves}")


class SolveMonitor:
    """Solver listener that keeps one ``StepStats`` per time step.

    Usage:
        monitor = SolveMonitor()
        solver.add_listener(monitor)
        solver.solve()
        print(monitor.summary_table())
    """

    def __init__(self):
        self.boundary: Optional[StepStats] = None
        self.steps: List[StepStats] = []
        self.horizon = 0

    # --- solver listener methods ---
    def on_boundary(self, values: np.ndarray):
        self.boundary = self._value_stats(-1, values)
        self.steps = []

    def on_step(self, t: int, values: np.ndarray, policy_t: np.ndarray):
        stats = self._value_stats(t, values)
        counts = np.bincount(policy_t.astype(np.int64), minlength=len(Action))
        stats.action_counts = {a: int(counts[a]) for a in Action}
        self.steps.append(stats)

    def on_complete(self, solution):
        self.horizon = solution.horizon
        if self.boundary is not None:
            self.boundary.t = self.horizon

    @staticmethod
    def _value_stats(t: int, values: np.ndarray) -> StepStats:
        return StepStats(
            t=t,
            mean_value=float(values.mean()),
            max_value=float(values.max()),
            won_share=float(np.count_nonzero(values >= 1.0) / values.size),
        )

    def summary_table(self) -> str:
        """Per time step statistics, most recent (t=0) last"""
        table_data = []
        rows = ([self.boundary] if self.boundary is not None else []) + self.steps
        for stats in rows:
            counts = [stats.action_counts.get(a, "-") for a in Action]
            table_data.append([
                stats.t,
                f"{stats.mean_value:.4f}",
                f"{stats.won_share * 100:.1f}%",
                *counts,
            ])
        headers = ["t", "Mean value", "Value 1.0"] + [a.label for a in Action]
        return tabulate(table_data, headers=headers, tablefmt="grid")


def print_solve_summary(monitor: SolveMonitor):
    """Print the per-step table and the time-0 line of a finished run"""
    print("\nValue and policy by time step:")
    print(monitor.summary_table())
    if monitor.steps:
        print(monitor.steps[-1].get_progress_description(monitor.horizon))
