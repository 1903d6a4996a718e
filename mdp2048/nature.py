"""Nature's turn: a new 2 or 4 tile on a uniformly chosen empty cell."""

from __future__ import annotations

import random
from typing import List, Optional, Tuple

from .board import BoardLike, BoardType, as_board

__all__ = [
    "SPAWN_EXPONENTS",
    "empty_cells",
    "spawn_successors",
    "NatureModel",
]

# Exponents nature may place, each equally likely (tiles 2 and 4).
SPAWN_EXPONENTS: Tuple[int, ...] = (1, 2)

Coord = Tuple[int, int]


def empty_cells(board: BoardLike) -> List[Coord]:
    """Coordinates of empty cells in row-major order."""
    grid = as_board(board)
    rows, cols = grid.shape
    return [(r, c) for r in range(rows) for c in range(cols) if grid[r, c] == 0]


def spawn_successors(board: BoardLike) -> List[Tuple[BoardType, float]]:
    """Every board nature can produce from ``board`` with its probability.

    Returns an empty list when no cell is free.
    """
    grid = as_board(board)
    spots = empty_cells(grid)
    if not spots:
        return []
    p = 1.0 / (len(SPAWN_EXPONENTS) * len(spots))
    res: List[Tuple[BoardType, float]] = []
    for r, c in spots:
        for exponent in SPAWN_EXPONENTS:
            child = grid.copy()
            child[r, c] = exponent
            res.append((child, p))
    return res


class NatureModel:
    """Random tile spawner with an explicitly owned random source."""

    def __init__(self, seed: Optional[int] = None, rng: Optional[random.Random] = None):
        if rng is not None and seed is not None:
            raise ValueError("Pass either seed or rng, not both")
        self._rng = rng if rng is not None else random.Random(seed)
        self._last_spawn: Optional[Tuple[int, int, int]] = None

    @property
    def last_spawn(self) -> Optional[Tuple[int, int, int]]:
        """``(row, col, exponent)`` of the latest spawned tile, if any."""
        return self._last_spawn

    def sample(self, board: BoardType) -> bool:
        """Spawn one tile into ``board`` in place.

        Returns False, leaving the board untouched, when it is full.
        """
        spots = empty_cells(board)
        if not spots:
            return False
        r, c = self._rng.choice(spots)
        exponent = self._rng.choice(SPAWN_EXPONENTS)
        board[r, c] = exponent
        self._last_spawn = (r, c, exponent)
        return True
