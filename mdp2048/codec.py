"""Dense integer ids for boards.

A board whose cells are all ``<= win_max`` maps to the mixed-radix number

    id = sum(cell[i, j] * (win_max + 1) ** (i * cols + j))

so cell (0, 0) is the least significant digit and the empty board is id 0.
"""

from __future__ import annotations

from typing import Any

import numba
import numpy as np

from .board import BoardLike, BoardType, BOARD_DTYPE, as_board

__all__ = [
    "TileOverflowError",
    "StateCodec",
]

# Largest state space whose ids still fit comfortably in int64.
_MAX_ENCODABLE_STATES = 2 ** 62


class TileOverflowError(ValueError):
    """A board holds a cell above the codec's ``win_max`` and has no id."""

    def __init__(self, tile: int, win_max: int):
        super().__init__(f"Tile exponent {tile} exceeds the encodable maximum {win_max}")
        self.tile = tile
        self.win_max = win_max


@numba.njit(cache=True)
def _encode_kernel(board: np.ndarray, radix: int, win_max: int) -> int:
    """Mixed-radix id of ``board``, or -1 if a cell is above ``win_max``."""
    rows, cols = board.shape
    state_id = 0
    for i in range(rows - 1, -1, -1):
        for j in range(cols - 1, -1, -1):
            v = board[i, j]
            if v > win_max:
                return -1
            state_id = state_id * radix + v
    return state_id


@numba.njit(cache=True)
def _decode_into(state_id: int, radix: int, board: np.ndarray) -> None:
    rows, cols = board.shape
    rest = state_id
    for i in range(rows):
        for j in range(cols):
            board[i, j] = rest % radix
            rest //= radix


class StateCodec:
    """Bijection between ``rows x cols`` boards bounded by ``win_max`` and ids."""

    def __init__(self, rows: int, cols: int, win_max: int):
        if rows <= 0 or cols <= 0:
            raise ValueError(f"Board dimensions must be positive, got {rows}x{cols}")
        if win_max < 1:
            raise ValueError(f"win_max must be at least 1, got {win_max}")
        self.rows = rows
        self.cols = cols
        self.win_max = win_max
        self.radix = win_max + 1
        self.num_cells = rows * cols
        self.num_states = self.radix ** self.num_cells
        if self.num_states > _MAX_ENCODABLE_STATES:
            raise ValueError(
                f"{self.num_states} states do not fit in 64-bit ids "
                f"({rows}x{cols} board, win_max={win_max})"
            )
        self._powers = self.radix ** np.arange(self.num_cells, dtype=np.int64)

    def __repr__(self) -> str:
        return f"StateCodec(rows={self.rows}, cols={self.cols}, win_max={self.win_max})"

    def _check_shape(self, board: BoardType) -> None:
        if board.shape != (self.rows, self.cols):
            raise ValueError(f"Expected a {self.rows}x{self.cols} board, got shape {board.shape}")

    def fits(self, board: BoardLike) -> bool:
        """True if every cell of ``board`` is within ``win_max``."""
        grid = as_board(board)
        self._check_shape(grid)
        return int(grid.max()) <= self.win_max

    def encode(self, board: BoardLike) -> int:
        """Return the id of ``board``.

        Raises:
            TileOverflowError: a cell exceeds ``win_max``; such boards have no id.
        """
        grid = as_board(board)
        self._check_shape(grid)
        state_id = int(_encode_kernel(grid, self.radix, self.win_max))
        if state_id < 0:
            raise TileOverflowError(int(grid.max()), self.win_max)
        return state_id

    def decode(self, state_id: int) -> BoardType:
        """Return the board with id ``state_id``."""
        state_id = int(state_id)
        if not 0 <= state_id < self.num_states:
            raise ValueError(f"State id {state_id} outside [0, {self.num_states})")
        board = np.zeros((self.rows, self.cols), dtype=BOARD_DTYPE)
        _decode_into(state_id, self.radix, board)
        return board

    def encode_batch(self, boards: Any) -> np.ndarray:
        """Ids for a stack of boards of shape ``(n, rows, cols)``."""
        stack = np.asarray(boards, dtype=np.int64)
        if stack.ndim != 3 or stack.shape[1:] != (self.rows, self.cols):
            raise ValueError(f"Expected shape (n, {self.rows}, {self.cols}), got {stack.shape}")
        if stack.size and int(stack.max()) > self.win_max:
            raise TileOverflowError(int(stack.max()), self.win_max)
        return stack.reshape(len(stack), self.num_cells) @ self._powers

    def decode_batch(self, state_ids: Any) -> np.ndarray:
        """Boards of shape ``(n, rows, cols)`` for an array of ids."""
        ids = np.asarray(state_ids, dtype=np.int64).reshape(-1)
        if ids.size and (ids.min() < 0 or ids.max() >= self.num_states):
            raise ValueError(f"State ids must lie in [0, {self.num_states})")
        digits = (ids[:, None] // self._powers[None, :]) % self.radix
        return digits.astype(BOARD_DTYPE).reshape(len(ids), self.rows, self.cols)
