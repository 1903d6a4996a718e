import numpy as np
import pytest

from mdp2048 import BackwardInductionSolver


class StepRecorder:
    """Solver listener keeping a copy of every value/policy generation"""

    def __init__(self):
        self.boundary = None
        self.values = {}
        self.policies = {}
        self.completed = None

    def on_boundary(self, values):
        self.boundary = values.copy()

    def on_step(self, t, values, policy_t):
        self.values[t] = values.copy()
        self.policies[t] = policy_t.copy()

    def on_complete(self, solution):
        self.completed = solution


@pytest.fixture(scope="session")
def small_run():
    """2x3 board, goal tile 32, four steps: the reference configuration"""
    solver = BackwardInductionSolver(rows=2, cols=3, win_exponent=5, horizon=4, progress=False)
    recorder = StepRecorder()
    solver.add_listener(recorder)
    solution = solver.solve()
    return solver, solution, recorder


@pytest.fixture
def rng():
    return np.random.default_rng(2048)
