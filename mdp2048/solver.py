"""Exact backward induction over every board of the reduced game.

The value table is seeded with the terminal reward at the horizon ``T`` and
then rolled back one step at a time down to ``t = 0``. At each step a state's
value is the best of:

* ``NONE``: keep the value the same state has one step later;
* a legal direction: the expected next-step value over all nature spawns.

Illegal directions get a sentinel below any reachable value so they never win
a tie. Among equal terms the first action in ``Action`` order wins.
"""

from __future__ import annotations

import logging
import time
from typing import Any, List, NamedTuple, Optional

import numba
import numpy as np
from tqdm import tqdm

from .board import Action, BoardLike
from .codec import StateCodec, _decode_into, _encode_kernel
from .moves import _player_move_kernel
from .nature import SPAWN_EXPONENTS
from .reward import WinReward, _board_reward, final_reward

logger = logging.getLogger(__name__)

__all__ = [
    "Solution",
    "BackwardInductionSolver",
]

_ILLEGAL = -1.0
_NONE = int(Action.NONE)
_NUM_DIRECTIONS = 4
_SPAWNS = np.array(SPAWN_EXPONENTS, dtype=np.int8)

# States decoded per chunk when seeding the boundary values.
_BOUNDARY_CHUNK = 1 << 16


@numba.njit(cache=True)
def _expected_value(moved, current, radix, win_max, win_exponent):
    """Mean of ``current`` over every nature spawn on ``moved``.

    ``moved`` is used as scratch space and restored before returning. A spawn
    result with a cell above ``win_max`` has no id; it is worth its terminal
    reward, which is final since a won board stays won.
    """
    rows, cols = moved.shape
    empties = 0
    for i in range(rows):
        for j in range(cols):
            if moved[i, j] == 0:
                empties += 1
    if empties == 0:
        return 0.0
    total = 0.0
    for i in range(rows):
        for j in range(cols):
            if moved[i, j] != 0:
                continue
            for k in range(_SPAWNS.shape[0]):
                moved[i, j] = _SPAWNS[k]
                succ = _encode_kernel(moved, radix, win_max)
                if succ < 0:
                    total += _board_reward(moved, win_exponent)
                else:
                    total += current[succ]
            moved[i, j] = 0
    # one division keeps an all-equal mean exact, so ties with NONE stay ties
    return total / (_SPAWNS.shape[0] * empties)


@numba.njit(cache=True)
def _bellman_step(current, nxt, policy_t, rows, cols, radix, win_max, win_exponent):
    """Fill ``nxt`` and ``policy_t`` for one time step from ``current``."""
    n_states = current.shape[0]
    board = np.zeros((rows, cols), dtype=np.int8)
    moved = np.zeros((rows, cols), dtype=np.int8)

    # the empty board has no legal move
    nxt[0] = 0.0
    policy_t[0] = _NONE

    for s in range(1, n_states):
        _decode_into(s, radix, board)
        best = _ILLEGAL
        best_action = _NONE
        for a in range(_NUM_DIRECTIONS):
            moved[:, :] = board
            if _player_move_kernel(moved, a):
                term = _expected_value(moved, current, radix, win_max, win_exponent)
            else:
                term = _ILLEGAL
            if term > best:
                best = term
                best_action = a
        # NONE comes last in the tie-break order
        if current[s] > best:
            best = current[s]
            best_action = _NONE
        nxt[s] = best
        policy_t[s] = best_action


class Solution(NamedTuple):
    """Output of a solver run.

    ``values`` is the value table at time 0 and ``policy[t, s]`` the optimal
    action for state id ``s`` after ``t`` elapsed steps.
    """
    values: np.ndarray
    policy: np.ndarray
    codec: StateCodec
    win_exponent: int

    @property
    def horizon(self) -> int:
        return int(self.policy.shape[0])

    def action(self, t: int, state_id: int) -> Action:
        return Action(int(self.policy[t, state_id]))

    def suggest(self, t: int, board: BoardLike) -> Action:
        """Optimal action for ``board`` after ``t`` steps.

        ``Action.NONE`` once the horizon is used up or when the board is
        beyond the encodable range.
        """
        if t < 0:
            raise ValueError(f"Elapsed time must be non-negative, got {t}")
        if t >= self.horizon or not self.codec.fits(board):
            return Action.NONE
        return self.action(t, self.codec.encode(board))

    def value(self, board: BoardLike) -> float:
        """Time-0 value of ``board``; its terminal reward if it cannot be encoded."""
        if not self.codec.fits(board):
            return final_reward(board, self.win_exponent)
        return float(self.values[self.codec.encode(board)])


class BackwardInductionSolver:
    """Computes the optimal finite-horizon policy over the full state space.

    Listeners may implement ``on_boundary(values)``,
    ``on_step(t, values, policy_t)`` and ``on_complete(solution)``. The arrays
    they receive are reused by the solver, so a listener that keeps them must
    copy.
    """

    def __init__(
        self,
        rows: int,
        cols: int,
        win_exponent: int,
        horizon: int,
        win_max: Optional[int] = None,
        progress: bool = True,
    ):
        if win_max is None:
            win_max = win_exponent
        if horizon < 0:
            raise ValueError(f"horizon must be non-negative, got {horizon}")
        if win_max < win_exponent:
            raise ValueError(f"win_max ({win_max}) must be at least win_exponent ({win_exponent})")

        self.reward = WinReward(win_exponent)
        self.codec = StateCodec(rows, cols, win_max)
        self.win_exponent = win_exponent
        self.horizon = horizon
        self.progress = progress
        self.listeners: List[Any] = []

    def add_listener(self, listener: Any) -> None:
        if listener not in self.listeners:
            self.listeners.append(listener)

    def remove_listener(self, listener: Any) -> None:
        self.listeners.remove(listener)

    def _notify(self, event_name: str, *args, **kwargs) -> None:
        for listener in self.listeners:
            if hasattr(listener, event_name):
                getattr(listener, event_name)(*args, **kwargs)

    def boundary_values(self) -> np.ndarray:
        """Terminal reward of every state id (the values at ``t = T``)."""
        values = np.empty(self.codec.num_states, dtype=np.float64)
        for start in range(0, self.codec.num_states, _BOUNDARY_CHUNK):
            stop = min(start + _BOUNDARY_CHUNK, self.codec.num_states)
            boards = self.codec.decode_batch(np.arange(start, stop, dtype=np.int64))
            values[start:stop] = self.reward.batch(boards)
        return values

    def solve(self) -> Solution:
        codec = self.codec
        n_states = codec.num_states
        logger.info(
            f"Solving {codec.rows}x{codec.cols} board: {n_states} states, "
            f"horizon {self.horizon}, goal tile {1 << self.win_exponent}"
        )
        policy_bytes = n_states * self.horizon
        if policy_bytes > 1 << 30:
            logger.warning(f"Policy tables need {policy_bytes / (1 << 30):.1f} GiB of memory")

        started = time.perf_counter()
        current = self.boundary_values()
        self._notify("on_boundary", current)

        nxt = np.empty_like(current)
        policy = np.full((self.horizon, n_states), _NONE, dtype=np.int8)

        steps = range(self.horizon - 1, -1, -1)
        for t in tqdm(steps, desc="Backward induction", disable=not self.progress):
            _bellman_step(
                current, nxt, policy[t],
                codec.rows, codec.cols, codec.radix, codec.win_max, self.win_exponent,
            )
            # step t is final: it becomes the "next step" of t - 1
            current, nxt = nxt, current
            logger.debug(f"t={t}: mean value {current.mean():.6f}")
            self._notify("on_step", t, current, policy[t])

        solution = Solution(current, policy, codec, self.win_exponent)
        logger.info(
            f"Solved in {time.perf_counter() - started:.2f}s, "
            f"value of the empty board after one spawn: {self.opening_value(solution):.4f}"
        )
        self._notify("on_complete", solution)
        return solution

    @staticmethod
    def opening_value(solution: Solution) -> float:
        """Expected time-0 value right after nature's first spawn on an empty board."""
        codec = solution.codec
        board = np.zeros((codec.rows, codec.cols), dtype=np.int8)
        total = 0.0
        cells = codec.num_cells * len(SPAWN_EXPONENTS)
        for i in range(codec.rows):
            for j in range(codec.cols):
                for exponent in SPAWN_EXPONENTS:
                    board[i, j] = exponent
                    total += solution.value(board)
                board[i, j] = 0
        return total / cells
