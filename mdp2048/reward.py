"""Terminal reward for the finite-horizon model.

The only reward is an indicator that the goal tile has been reached. Tiles
never shrink (a fused tile grows and its consumed neighbour migrates into it),
so once the indicator is 1.0 on a board it stays 1.0 on every later board.
"""

from typing import Any

import numba
import numpy as np

from .board import BoardLike, as_board

__all__ = [
    "final_reward",
    "RewardFunction",
    "WinReward",
]


@numba.njit(cache=True)
def _board_reward(board: np.ndarray, win_exponent: int) -> float:
    rows, cols = board.shape
    for i in range(rows):
        for j in range(cols):
            if board[i, j] >= win_exponent:
                # certificate of winning found
                return 1.0
    return 0.0


def final_reward(board: BoardLike, win_exponent: int) -> float:
    """1.0 if any cell reaches ``win_exponent``, else 0.0."""
    return float(_board_reward(as_board(board), win_exponent))


class RewardFunction:
    """Base class for terminal rewards used to seed the value table"""

    def __init__(self, name: str):
        self.name = name

    def __call__(self, board: BoardLike) -> float:
        raise NotImplementedError("Reward function must be implemented")

    def batch(self, boards: Any) -> np.ndarray:
        """Rewards for a stack of boards of shape ``(n, rows, cols)``."""
        return np.array([self(b) for b in np.asarray(boards)], dtype=np.float64)

    def __str__(self) -> str:
        return f"RewardFunction({self.name})"


class WinReward(RewardFunction):
    """Indicator of a tile with exponent at least ``win_exponent``"""

    def __init__(self, win_exponent: int):
        super().__init__("win")
        if win_exponent < 1:
            raise ValueError(f"win_exponent must be at least 1, got {win_exponent}")
        self.win_exponent = win_exponent

    def __call__(self, board: BoardLike) -> float:
        return final_reward(board, self.win_exponent)

    def batch(self, boards: Any) -> np.ndarray:
        stack = np.asarray(boards)
        won = (stack >= self.win_exponent).reshape(len(stack), -1).any(axis=1)
        return won.astype(np.float64)

    def __str__(self) -> str:
        return f"WinReward(2**{self.win_exponent})"
