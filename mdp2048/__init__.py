# Exact MDP solver for a reduced 2048
from .board import Action, DIRECTIONS, as_board, new_board, render_ascii, tile_value
from .moves import apply, player_move, legal_actions, can_move
from .nature import SPAWN_EXPONENTS, NatureModel, empty_cells, spawn_successors
from .codec import StateCodec, TileOverflowError
from .reward import RewardFunction, WinReward, final_reward
from .solver import BackwardInductionSolver, Solution
from .monitoring import SolveMonitor, StepStats, print_solve_summary
from .session import InteractiveSession, SessionSummary, parse_key

__all__ = [
    "Action",
    "DIRECTIONS",
    "as_board",
    "new_board",
    "render_ascii",
    "tile_value",

    "apply",
    "player_move",
    "legal_actions",
    "can_move",

    "SPAWN_EXPONENTS",
    "NatureModel",
    "empty_cells",
    "spawn_successors",

    "StateCodec",
    "TileOverflowError",

    "RewardFunction",
    "WinReward",
    "final_reward",

    "BackwardInductionSolver",
    "Solution",

    "SolveMonitor",
    "StepStats",
    "print_solve_summary",

    "InteractiveSession",
    "SessionSummary",
    "parse_key",
]
