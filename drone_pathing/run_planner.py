"""Plan, smooth and resample a path for the configured scene and print a summary."""


import argparse
import logging
from dataclasses import replace
from typing import List, Optional

from drone_pathing.configuration_files.pathing_config import (
    DEFAULT_CONFIG,
    DEFAULT_ENV_CONFIG,
    load_pathing_config,
)
from drone_pathing.normalized_planners import ALGORITHM_ALIASES, plan_from_config
from drone_pathing.path_utils import PathPlanningError, print_path_info

logger = logging.getLogger(__name__)


def _build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Point-mass path planning among spherical obstacles")
    parser.add_argument("--config", type=str, default=None, help="YAML file overriding the default scene/settings.")
    parser.add_argument(
        "--algorithm",
        type=str,
        default=None,
        choices=sorted(ALGORITHM_ALIASES),
        help="Path planning algorithm to use (overrides config).",
    )
    parser.add_argument("--speed", type=float, default=None, help="Cruise speed of the resampled trajectory.")
    parser.add_argument("--density", type=int, default=None, help="Smoothing samples per path segment.")
    parser.add_argument("--seed", type=int, default=None, help="Seed for the tree planner.")
    parser.add_argument("--debug", action="store_true", help="Enable debug mode with verbose logging")
    parser.add_argument("--debug-planning", action="store_true", help="Enable verbose path planning algorithm output")
    return parser


def _configure_logging(args: argparse.Namespace) -> None:
    if args.debug:
        logging.basicConfig(level=logging.DEBUG, format='[%(levelname)s] %(message)s')
        logger.setLevel(logging.DEBUG)
        logging.getLogger("drone_pathing.path_planning_algorithms").setLevel(logging.DEBUG)
        return
    if args.debug_planning:
        logging.basicConfig(level=logging.INFO, format='[%(levelname)s] %(message)s')
        logger.setLevel(logging.INFO)
        logging.getLogger("drone_pathing.path_planning_algorithms").setLevel(logging.DEBUG)
        return
    logging.basicConfig(level=logging.WARNING, format='[%(levelname)s] %(message)s')
    logger.setLevel(logging.INFO)


def main(argv: Optional[List[str]] = None) -> int:
    args = _build_arg_parser().parse_args(argv)
    _configure_logging(args)

    try:
        if args.config:
            env_cfg, exec_cfg = load_pathing_config(args.config)
            logger.info(f"Loaded configuration from {args.config}")
        else:
            env_cfg, exec_cfg = DEFAULT_ENV_CONFIG, DEFAULT_CONFIG

        overrides = {
            "algorithm": args.algorithm,
            "speed": args.speed,
            "smoothing_density": args.density,
            "seed": args.seed,
        }
        exec_cfg = replace(exec_cfg, **{k: v for k, v in overrides.items() if v is not None})

        result = plan_from_config(env_cfg, exec_cfg, verbose=args.debug or args.debug_planning)
    except FileNotFoundError as e:
        print(f"[ERROR] {e}")
        return 1
    except PathPlanningError as e:
        print(f"[ERROR] Planning failed: {e}")
        return 1

    print(f"[INFO] Algorithm: {result.algorithm}")
    print(f"[INFO] Start: {env_cfg.start} -> Goal: {env_cfg.goal}, {len(env_cfg.obstacles)} obstacles")
    print_path_info(result.raw_path, exec_cfg.speed, label="Raw Path")
    print_path_info(result.path, exec_cfg.speed, label="Smooth Path")
    if result.trajectory:
        print(f"[Trajectory] {len(result.trajectory)} samples, "
              f"duration {result.trajectory[-1].timestamp:.2f}s")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
