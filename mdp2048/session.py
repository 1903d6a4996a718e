"""
Play the reduced game against nature with the solved policy as an advisor.

Each turn nature spawns a tile, the session shows the board, its value and the
optimal action for the elapsed time, then waits for a legal direction (or, in
autoplay mode, plays the optimal action itself). The game ends when nature
finds no empty cell or the optimal action is to stop.
"""

from __future__ import annotations

import logging
from collections import deque
from typing import Callable, Deque, Dict, NamedTuple, Optional

import numpy as np

from .board import Action, BoardType, new_board, render_ascii
from .moves import player_move
from .nature import NatureModel
from .reward import final_reward
from .solver import Solution

logger = logging.getLogger(__name__)

__all__ = [
    "KEY_BINDINGS",
    "parse_key",
    "SessionSummary",
    "InteractiveSession",
]

KEY_BINDINGS: Dict[str, Action] = {
    "w": Action.UP,
    "a": Action.LEFT,
    "s": Action.DOWN,
    "d": Action.RIGHT,
}

PROMPT = "To play, use w, a, s and d as directions Up, Left, Down, Right"


def parse_key(key: str) -> Action:
    """Map a single typed key to a direction; anything unrecognised is ``Action.NONE``."""
    key = key.strip().lower()
    return KEY_BINDINGS.get(key[:1], Action.NONE)


class SessionSummary(NamedTuple):
    turns: int
    board: BoardType
    won: bool


class InteractiveSession:
    """One game on a fresh board.

    Args:
        solution: solver output providing values and the time-indexed policy
        nature: tile spawner; a fresh unseeded one if omitted
        read_key: returns the next line typed by the player; every character
            of a line is used as one key, so "ddd" plays three moves
        write: receives every line of output
        autoplay: play the suggested action instead of asking for keys
    """

    def __init__(
        self,
        solution: Solution,
        nature: Optional[NatureModel] = None,
        read_key: Callable[[], str] = input,
        write: Callable[[str], None] = print,
        autoplay: bool = False,
    ):
        self.solution = solution
        self.nature = nature if nature is not None else NatureModel()
        self.read_key = read_key
        self.write = write
        self.autoplay = autoplay
        codec = solution.codec
        self.board = new_board(codec.rows, codec.cols)
        self.elapsed = 0
        self._pending: Deque[str] = deque()

    def _choose(self, suggested: Action) -> Action:
        if self.autoplay:
            return suggested
        if not self._pending:
            # an empty line still counts as one (unrecognised) key
            self._pending.extend(self.read_key().strip() or " ")
        return parse_key(self._pending.popleft())

    def play(self) -> SessionSummary:
        suggested = Action.UP
        while suggested != Action.NONE and self.nature.sample(self.board):
            self.write(render_ascii(self.board))
            suggested = self.solution.suggest(self.elapsed, self.board)
            self.write(f"Value= {self.solution.value(self.board):.4f}")
            self.write(f"Optimal policy= {suggested.label}")
            if suggested == Action.NONE:
                break

            # retry until the player supplies a legal move
            while not player_move(self.board, self._choose(suggested)):
                assert not self.autoplay, f"policy suggested illegal move {suggested.label}"
            self.elapsed += 1

        won = final_reward(self.board, self.solution.win_exponent) == 1.0
        logger.info(f"Game over after {self.elapsed} moves, max tile {1 << int(np.max(self.board))}"
                    f"{' (won)' if won else ''}")
        return SessionSummary(self.elapsed, self.board.copy(), won)
