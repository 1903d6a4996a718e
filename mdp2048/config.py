import argparse
from typing import Any, Dict, List, Optional

DEFAULT_MAX_STATES = 50_000_000


def default_horizon(rows: int, cols: int, win_exponent: int) -> int:
    """Number of steps roughly needed to build the goal tile from 2s."""
    return max(1, int(2 ** (win_exponent - 1) / 2 * rows * cols))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Exact finite-horizon solver and advisor for a small 2048 board"
    )

    # Model settings
    parser.add_argument("--rows", type=int, default=2, help="Board rows")
    parser.add_argument("--cols", type=int, default=3, help="Board columns")
    parser.add_argument("--win-exponent", type=int, default=5,
                        help="Goal tile exponent (5 means the 32 tile)")
    parser.add_argument("--win-max", type=int, default=None,
                        help="Largest exponent the state encoding holds (default: win exponent)")
    parser.add_argument("--horizon", "-T", type=int, default=None,
                        help="Number of time steps (default: 2^(win-1)/2 * rows * cols)")
    parser.add_argument("--max-states", type=int, default=DEFAULT_MAX_STATES,
                        help="Refuse to solve state spaces larger than this")

    # Play settings
    parser.add_argument("--no-play", dest="play", action="store_false",
                        help="Solve only, skip the interactive game")
    parser.add_argument("--autoplay", action="store_true",
                        help="Let the optimal policy play instead of reading keys")
    parser.add_argument("--seed", type=int, default=None, help="RNG seed for nature's spawns")

    # Output settings
    parser.add_argument("--summary", action="store_true",
                        help="Print a per time step table after solving")
    parser.add_argument("--no-progress", dest="progress", action="store_false",
                        help="Hide the progress bar")
    parser.add_argument("--log-level", type=str, default="INFO",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"], help="Logging level")
    parser.add_argument("--log-file", type=str, default=None, help="Also write logs to this file")
    return parser


def validate_config(config: Dict[str, Any]) -> None:
    """Raise ValueError if the configuration cannot be solved."""
    rows, cols = config["rows"], config["cols"]
    if rows < 1 or cols < 1:
        raise ValueError(f"Board dimensions must be positive, got {rows}x{cols}")
    if config["win_exponent"] < 1:
        raise ValueError(f"Win exponent must be at least 1, got {config['win_exponent']}")
    if config["win_max"] < config["win_exponent"]:
        raise ValueError(
            f"win_max ({config['win_max']}) must be at least the win exponent ({config['win_exponent']})"
        )
    if config["horizon"] < 0:
        raise ValueError(f"Horizon must be non-negative, got {config['horizon']}")
    num_states = (config["win_max"] + 1) ** (rows * cols)
    if num_states > config["max_states"]:
        raise ValueError(
            f"{num_states} states exceed the limit of {config['max_states']}; "
            f"use a smaller board or goal, or raise --max-states"
        )


def parse_args(argv: Optional[List[str]] = None) -> Dict[str, Any]:
    parser = build_parser()
    args = parser.parse_args(argv)

    win_max = args.win_max if args.win_max is not None else args.win_exponent
    horizon = args.horizon
    if horizon is None:
        horizon = default_horizon(args.rows, args.cols, args.win_exponent)

    config = {
        # Model settings
        "rows": args.rows,
        "cols": args.cols,
        "win_exponent": args.win_exponent,
        "win_max": win_max,
        "horizon": horizon,
        "max_states": args.max_states,

        # Play settings
        "play": args.play,
        "autoplay": args.autoplay,
        "seed": args.seed,

        # Output settings
        "summary": args.summary,
        "progress": args.progress,
        "log_level": args.log_level,
        "log_file": args.log_file,
    }

    try:
        validate_config(config)
    except ValueError as e:
        parser.error(str(e))

    return config
