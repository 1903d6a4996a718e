"""
Tests for the backward-induction solver.
"""
from functools import lru_cache

import numpy as np
import pytest

from mdp2048 import (
    Action,
    BackwardInductionSolver,
    DIRECTIONS,
    WinReward,
    apply,
    as_board,
    final_reward,
    legal_actions,
    spawn_successors,
)
from mdp2048.solver import _expected_value


def reference_values(rows, cols, win_exponent, win_max, horizon):
    """Plain recursive expectimax over the same model, for cross-checking"""

    @lru_cache(maxsize=None)
    def value(t, cells):
        board = as_board(np.array(cells).reshape(rows, cols))
        if t == horizon:
            return final_reward(board, win_exponent)
        if not board.any():
            return 0.0
        best = value(t + 1, cells)
        for direction in DIRECTIONS:
            moved, legal = apply(board, direction)
            if not legal:
                continue
            total = 0.0
            for child, p in spawn_successors(moved):
                if child.max() > win_max:
                    total += p * final_reward(child, win_exponent)
                else:
                    total += p * value(t + 1, tuple(child.ravel().tolist()))
            best = max(best, total)
        return best

    return value


class TestEndToEnd:
    """2x3 board, goal 32, horizon 4"""

    def test_table_sizes(self, small_run):
        _, solution, _ = small_run
        n_states = 6 ** 6
        assert solution.values.shape == (n_states,)
        assert solution.policy.shape == (4, n_states)
        assert solution.horizon == 4

    def test_listener_saw_every_step(self, small_run):
        _, solution, recorder = small_run
        assert sorted(recorder.values) == [0, 1, 2, 3]
        assert recorder.completed is solution
        assert np.array_equal(recorder.values[0], solution.values)
        for t in range(4):
            assert np.array_equal(recorder.policies[t], solution.policy[t])

    def test_boundary_is_terminal_reward(self, small_run):
        solver, _, recorder = small_run
        boards = solver.codec.decode_batch(np.arange(solver.codec.num_states))
        expected = WinReward(5).batch(boards)
        assert np.array_equal(recorder.boundary, expected)
        for state_id in [0, 1, 5, 6 ** 5 * 5, 12345, 6 ** 6 - 1]:
            board = solver.codec.decode(state_id)
            assert recorder.boundary[state_id] == final_reward(board, 5)

    def test_zero_state_fixed_point(self, small_run):
        _, solution, recorder = small_run
        assert recorder.boundary[0] == 0.0
        for t in range(4):
            assert recorder.values[t][0] == 0.0
            assert solution.policy[t, 0] == Action.NONE

    def test_values_are_probabilities(self, small_run):
        _, _, recorder = small_run
        for values in recorder.values.values():
            assert values.min() >= 0.0
            assert values.max() <= 1.0 + 1e-12

    def test_more_time_never_hurts(self, small_run):
        """NONE keeps the later value, so values can only grow going back in time"""
        _, _, recorder = small_run
        later = recorder.boundary
        for t in [3, 2, 1, 0]:
            assert np.all(recorder.values[t] >= later)
            later = recorder.values[t]

    def test_won_states_keep_value_one(self, small_run):
        _, _, recorder = small_run
        won = recorder.boundary == 1.0
        for values in recorder.values.values():
            assert np.all(values[won] == 1.0)

    def test_policy_only_picks_legal_moves(self, small_run, rng):
        solver, solution, _ = small_run
        for state_id in rng.integers(1, solver.codec.num_states, size=300):
            board = solver.codec.decode(state_id)
            for t in range(solution.horizon):
                action = solution.action(t, state_id)
                if action != Action.NONE:
                    _, legal = apply(board, action)
                    assert legal


class TestAgainstReference:

    @pytest.mark.parametrize("rows, cols, win_exponent, win_max, horizon", [
        (1, 3, 3, 3, 3),
        (2, 2, 3, 3, 2),
        (1, 2, 2, 3, 4),
    ])
    def test_matches_recursive_expectimax(self, rows, cols, win_exponent, win_max, horizon):
        solver = BackwardInductionSolver(rows, cols, win_exponent, horizon,
                                         win_max=win_max, progress=False)
        solution = solver.solve()
        value = reference_values(rows, cols, win_exponent, win_max, horizon)
        for state_id in range(solver.codec.num_states):
            board = solver.codec.decode(state_id)
            expected = value(0, tuple(board.ravel().tolist()))
            assert solution.values[state_id] == pytest.approx(expected, abs=1e-12)


class TestTieBreak:

    def test_first_maximal_direction_wins(self):
        """A won board scores 1.0 for every legal move and for NONE"""
        solver = BackwardInductionSolver(2, 2, 3, 2, progress=False)
        solution = solver.solve()
        state_id = solver.codec.encode([[0, 0], [3, 0]])
        for t in range(2):
            assert solution.action(t, state_id) == Action.UP

    def test_all_won_successors_average_to_exactly_one(self):
        solver = BackwardInductionSolver(2, 2, 3, 1, progress=False)
        codec = solver.codec
        moved, legal = apply([[0, 0], [3, 0]], Action.UP)
        assert legal
        current = solver.boundary_values()
        term = _expected_value(moved, current, codec.radix, codec.win_max, 3)
        assert term == 1.0
        assert moved.tolist() == [[3, 0], [0, 0]]

    def test_won_boards_take_first_legal_direction(self):
        """Every legal move and NONE tie at 1.0, so the earliest direction wins"""
        solver = BackwardInductionSolver(2, 2, 3, 2, progress=False)
        solution = solver.solve()
        checked = 0
        for state_id in range(solver.codec.num_states):
            board = solver.codec.decode(state_id)
            if final_reward(board, 3) != 1.0:
                continue
            legal = legal_actions(board)
            expected = legal[0] if legal else Action.NONE
            for t in range(solution.horizon):
                assert solution.action(t, state_id) == expected
            checked += 1
        assert checked > 0

    def test_stuck_board_waits(self):
        solver = BackwardInductionSolver(1, 2, 3, 2, progress=False)
        solution = solver.solve()
        state_id = solver.codec.encode([[1, 2]])
        assert solution.action(0, state_id) == Action.NONE
        assert solution.values[state_id] == 0.0

    def test_single_direction_on_won_row(self):
        solver = BackwardInductionSolver(1, 3, 3, 1, progress=False)
        solution = solver.solve()
        assert solution.action(0, solver.codec.encode([[3, 0, 0]])) == Action.RIGHT


class TestOverflowSuccessors:

    def test_fusion_beyond_bound_counts_as_win(self):
        """Two goal tiles fuse past win_max; the result is a win, not the empty board"""
        solver = BackwardInductionSolver(1, 3, 2, 1, progress=False)
        solution = solver.solve()
        state_id = solver.codec.encode([[2, 2, 0]])
        assert solution.values[state_id] == 1.0
        # aliasing the fused board to the empty one would leave only NONE at 1.0
        assert solution.action(0, state_id) == Action.LEFT

    def test_solution_lookups_for_over_bound_board(self):
        solver = BackwardInductionSolver(1, 3, 2, 2, progress=False)
        solution = solver.solve()
        board = as_board([[3, 0, 0]])
        assert solution.value(board) == 1.0
        assert solution.suggest(0, board) == Action.NONE

    def test_suggest_past_horizon(self):
        solver = BackwardInductionSolver(1, 3, 2, 2, progress=False)
        solution = solver.solve()
        assert solution.suggest(2, [[1, 0, 0]]) == Action.NONE
        with pytest.raises(ValueError):
            solution.suggest(-1, [[1, 0, 0]])


class TestSolverConfiguration:

    def test_zero_horizon_is_boundary(self):
        solver = BackwardInductionSolver(1, 2, 2, 0, progress=False)
        solution = solver.solve()
        assert solution.policy.shape == (0, solver.codec.num_states)
        assert np.array_equal(solution.values, solver.boundary_values())

    def test_win_max_below_goal_rejected(self):
        with pytest.raises(ValueError):
            BackwardInductionSolver(2, 2, 4, 3, win_max=3)

    def test_negative_horizon_rejected(self):
        with pytest.raises(ValueError):
            BackwardInductionSolver(2, 2, 3, -1)

    def test_remove_listener(self):
        class Counter:
            calls = 0

            def on_step(self, t, values, policy_t):
                self.calls += 1

        solver = BackwardInductionSolver(1, 2, 2, 3, progress=False)
        counter = Counter()
        solver.add_listener(counter)
        solver.add_listener(counter)
        solver.solve()
        assert counter.calls == 3
        solver.remove_listener(counter)
        solver.solve()
        assert counter.calls == 3
