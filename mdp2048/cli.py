#!/usr/bin/env python
"""
Solve a small 2048 board exactly, then play it with the optimal policy as advisor.

Example:
    mdp2048 --rows 2 --cols 3 --win-exponent 5 --horizon 20 --summary
"""

import logging
import sys
from typing import List, Optional

from .config import parse_args
from .monitoring import SolveMonitor, print_solve_summary
from .nature import NatureModel
from .session import PROMPT, InteractiveSession
from .solver import BackwardInductionSolver, Solution

logger = logging.getLogger(__name__)


def setup_logging(level: str, log_file: Optional[str] = None) -> None:
    handlers: List[logging.Handler] = [logging.StreamHandler()]
    if log_file:
        handlers.append(logging.FileHandler(log_file))
    logging.basicConfig(
        level=getattr(logging, level),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=handlers,
    )


def play_games(solution: Solution, seed: Optional[int], autoplay: bool) -> None:
    """Human games until the player quits (end of input); a single game in autoplay."""
    nature = NatureModel(seed)
    while True:
        if not autoplay:
            print(PROMPT)
            input("Enter to start: ")
        summary = InteractiveSession(solution, nature=nature, autoplay=autoplay).play()
        print(f"Game over after {summary.turns} moves{' - you won!' if summary.won else ''}")
        if autoplay:
            return


def main(argv: Optional[List[str]] = None) -> int:
    config = parse_args(argv)
    setup_logging(config["log_level"], config["log_file"])

    solver = BackwardInductionSolver(
        rows=config["rows"],
        cols=config["cols"],
        win_exponent=config["win_exponent"],
        horizon=config["horizon"],
        win_max=config["win_max"],
        progress=config["progress"],
    )
    monitor = SolveMonitor()
    solver.add_listener(monitor)
    solution = solver.solve()

    if config["summary"]:
        print_solve_summary(monitor)

    if config["play"]:
        try:
            play_games(solution, config["seed"], config["autoplay"])
        except (EOFError, KeyboardInterrupt):
            logger.info("Input closed, leaving the game")
    return 0


if __name__ == "__main__":
    sys.exit(main())
