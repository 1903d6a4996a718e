"""Board primitives for the reduced 2048 model.

A board is a small ``int8`` NumPy grid of *exponents*: 0 is an empty cell and
``k`` stands for the tile ``2**k``.
"""

from __future__ import annotations

from enum import IntEnum
from typing import Any, List, Sequence, Union

import numpy as np

BoardType = np.ndarray[Any, np.dtype[np.int8]]
BoardLike = Union[BoardType, Sequence[Sequence[int]]]

BOARD_DTYPE = np.int8

__all__ = [
    "Action",
    "DIRECTIONS",
    "BoardType",
    "BoardLike",
    "BOARD_DTYPE",
    "new_board",
    "as_board",
    "tile_value",
    "render_ascii",
]


class Action(IntEnum):
    # Enumeration order doubles as the solver's tie-break order.
    UP = 0
    DOWN = 1
    LEFT = 2
    RIGHT = 3
    NONE = 4

    @property
    def label(self) -> str:
        return self.name.capitalize()


DIRECTIONS: List[Action] = [Action.UP, Action.DOWN, Action.LEFT, Action.RIGHT]


def new_board(rows: int, cols: int) -> BoardType:
    """Return an empty ``rows x cols`` board."""
    if rows <= 0 or cols <= 0:
        raise ValueError(f"Board dimensions must be positive, got {rows}x{cols}")
    return np.zeros((rows, cols), dtype=BOARD_DTYPE)


def as_board(cells: BoardLike) -> BoardType:
    """Copy ``cells`` (nested lists or an array) into a fresh board array."""
    board = np.array(cells, dtype=BOARD_DTYPE)
    if board.ndim != 2 or board.size == 0:
        raise ValueError(f"A board must be a non-empty 2-D grid, got shape {board.shape}")
    if np.any(board < 0):
        raise ValueError("Board cells must be non-negative exponents")
    return board


def tile_value(exponent: int) -> int:
    """Displayed tile magnitude for an exponent (0 stays 0)."""
    return 0 if exponent == 0 else 1 << int(exponent)


def render_ascii(board: BoardLike, cell_width: int = 6) -> str:
    """Return an ASCII grid of the board showing tile magnitudes."""
    grid = as_board(board)
    rows, cols = grid.shape
    separator = "+" + ("-" * cell_width + "+") * cols
    output: List[str] = [separator]
    for r in range(rows):
        row_str: List[str] = ["|"]
        for c in range(cols):
            val = int(grid[r, c])
            cell_str = str(tile_value(val)) if val != 0 else "."
            row_str.append(cell_str.center(cell_width))
            row_str.append("|")
        output.append("".join(row_str))
        output.append(separator)
    return "\n".join(output)
