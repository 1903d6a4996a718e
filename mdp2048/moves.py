"""Deterministic player moves.

Every row (LEFT/RIGHT) or column (UP/DOWN) is read oriented toward the end the
tiles are pushed to and scanned from that end. Empty cells are collapsed out of
the line and equal neighbours fuse once per move. The kernels are compiled with
numba because the solver calls them for every state at every time step.
"""

from __future__ import annotations

from typing import List, Tuple

import numba
import numpy as np

from .board import Action, BoardLike, BoardType, BOARD_DTYPE, DIRECTIONS, as_board

__all__ = [
    "apply",
    "player_move",
    "legal_actions",
    "can_move",
]

_UP = int(Action.UP)
_DOWN = int(Action.DOWN)
_LEFT = int(Action.LEFT)
_RIGHT = int(Action.RIGHT)


@numba.njit(cache=True)
def _collapse(line: np.ndarray, i: int) -> bool:
    """Drop ``line[i]``, pull the rest one step toward index 0, pad with 0.

    Returns True if a non-empty value was shifted.
    """
    n = line.shape[0]
    moved_non_zero = False
    for k in range(i, n - 1):
        v = line[k + 1]
        line[k] = v
        if v != 0:
            moved_non_zero = True
    line[n - 1] = 0
    return moved_non_zero


@numba.njit(cache=True)
def _compact_line(line: np.ndarray) -> bool:
    """Compact ``line`` toward index 0 in place; True if anything moved or fused."""
    n = line.shape[0]
    legal = False
    i = 0
    collapsed_zeros = 0
    prev = 0
    prev_idx = -1
    while i < n and collapsed_zeros < n:
        v = line[i]
        if v != 0:
            if v == prev:
                line[prev_idx] += 1
                _collapse(line, i)
                # a fused tile cannot fuse again this move
                prev = 0
                legal = True
            else:
                prev = v
                prev_idx = i
                i += 1
        else:
            if _collapse(line, i):
                legal = True
            collapsed_zeros += 1
    return legal


@numba.njit(cache=True)
def _player_move_kernel(board: np.ndarray, direction: int) -> bool:
    rows, cols = board.shape
    legal = False
    if direction == _UP or direction == _DOWN:
        line = np.empty(rows, dtype=np.int8)
        for j in range(cols):
            for k in range(rows):
                src = k if direction == _UP else rows - 1 - k
                line[k] = board[src, j]
            if _compact_line(line):
                legal = True
            for k in range(rows):
                dst = k if direction == _UP else rows - 1 - k
                board[dst, j] = line[k]
    elif direction == _LEFT or direction == _RIGHT:
        line = np.empty(cols, dtype=np.int8)
        for i in range(rows):
            for k in range(cols):
                src = k if direction == _LEFT else cols - 1 - k
                line[k] = board[i, src]
            if _compact_line(line):
                legal = True
            for k in range(cols):
                dst = k if direction == _LEFT else cols - 1 - k
                board[i, dst] = line[k]
    return legal


def player_move(board: BoardType, action: Action) -> bool:
    """Apply ``action`` to ``board`` in place and return whether it was legal.

    The caller must own ``board`` exclusively for the duration of the call.
    An illegal move leaves the board unchanged; ``Action.NONE`` is never a
    legal move.
    """
    action = Action(action)
    if not isinstance(board, np.ndarray) or board.dtype != BOARD_DTYPE or board.ndim != 2:
        raise ValueError("player_move needs a 2-D int8 board, build one with as_board()")
    if action == Action.NONE:
        return False
    return bool(_player_move_kernel(board, int(action)))


def apply(board: BoardLike, action: Action) -> Tuple[BoardType, bool]:
    """Return ``(new_board, legal)`` without touching ``board``."""
    new = as_board(board)
    legal = player_move(new, action)
    return new, legal


def legal_actions(board: BoardLike) -> List[Action]:
    """Directions that would change ``board``, in enumeration order."""
    original = as_board(board)
    valid: List[Action] = []
    for direction in DIRECTIONS:
        if player_move(original.copy(), direction):
            valid.append(direction)
    return valid


def can_move(board: BoardLike) -> bool:
    original = as_board(board)
    return any(player_move(original.copy(), d) for d in DIRECTIONS)
