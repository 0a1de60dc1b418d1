"""
Planning facade: search, smoothing and constant-speed trajectories.
===================================================================

Public-facing helpers that:
- Select and call the low-level planners from path_planning_algorithms.
- Run the resulting paths through ``smooth_path`` (Catmull-Rom).
- Optionally resample them with ``resample_trajectory`` into timestamped
  samples at a constant cruise speed.

This keeps the core algorithms focused on geometry/search, and
collects the execution-shaping logic in one place.
"""

import logging
import random
from dataclasses import dataclass
from typing import List, Optional, Sequence

from .configuration_files.pathing_config import EnvironmentConfig, PathExecutionConfig, build_scenario
from .path_planning_algorithms import (
    GridSearchParams,
    PlanningScenario,
    TreeSearchParams,
    create_grid_path,
    create_tree_path,
)
from .path_utils import (
    ConfigurationError,
    PathType,
    Point3D,
    TrajectorySample,
    resample_trajectory,
    smooth_path,
)


logger = logging.getLogger(__name__)

DEFAULT_SMOOTHING_DENSITY = 20

ALGORITHM_ALIASES = {
    "grid": "grid",
    "a_star": "grid",
    "astar": "grid",
    "tree": "tree",
    "rrt": "tree",
}


@dataclass
class PlanResult:
    """Output of ``plan_to_target``."""
    algorithm: str
    raw_path: PathType
    path: PathType
    trajectory: Optional[List[TrajectorySample]] = None


def resolve_algorithm(algorithm: str) -> str:
    """Map an algorithm name or alias onto "grid" or "tree"."""
    name = str(algorithm).strip().lower()
    if name not in ALGORITHM_ALIASES:
        raise ConfigurationError(
            f"Unsupported algorithm '{algorithm}'. Expected one of: 'grid', 'tree' "
            f"(aliases: 'a_star', 'astar', 'rrt')."
        )
    return ALGORITHM_ALIASES[name]


def plan(
    scenario: PlanningScenario,
    algorithm: str = "grid",
    *,
    grid_params: Optional[GridSearchParams] = None,
    tree_params: Optional[TreeSearchParams] = None,
    rng: Optional[random.Random] = None,
    seed: Optional[int] = None,
    verbose: bool = False,
) -> PathType:
    """Run the selected planner and return its raw geometric path."""
    resolved = resolve_algorithm(algorithm)

    if resolved == "grid":
        return create_grid_path(scenario, params=grid_params, verbose=verbose)

    return create_tree_path(scenario, params=tree_params, rng=rng, seed=seed, verbose=verbose)


def smooth(path: Sequence[Point3D], density: int = DEFAULT_SMOOTHING_DENSITY) -> PathType:
    return smooth_path(path, samples_per_segment=density)


def resample(path: Sequence[Point3D], speed: float) -> List[TrajectorySample]:
    return resample_trajectory(path, speed)


def plan_to_target(
    scenario: PlanningScenario,
    algorithm: str = "grid",
    *,
    density: int = DEFAULT_SMOOTHING_DENSITY,
    speed: Optional[float] = None,
    grid_params: Optional[GridSearchParams] = None,
    tree_params: Optional[TreeSearchParams] = None,
    rng: Optional[random.Random] = None,
    seed: Optional[int] = None,
    verbose: bool = False,
) -> PlanResult:
    """Plan, smooth and (when ``speed`` is given) time-parameterize a path.

    Smoothing and speed arguments are validated before searching so a bad
    call fails fast instead of after a full search.
    """
    resolved = resolve_algorithm(algorithm)
    if speed is not None and not (isinstance(speed, (int, float)) and speed > 0):
        raise ConfigurationError(f"speed must be positive, got {speed}")
    # Validates density on a trivial path
    smooth_path([], samples_per_segment=density)

    raw_path = plan(
        scenario,
        resolved,
        grid_params=grid_params,
        tree_params=tree_params,
        rng=rng,
        seed=seed,
        verbose=verbose,
    )
    smoothed = smooth_path(raw_path, samples_per_segment=density)
    logger.info(f"{resolved} planner returned {len(raw_path)} waypoints, "
                f"smoothed to {len(smoothed)}")

    trajectory = None
    if speed is not None:
        trajectory = resample_trajectory(smoothed, speed)
        logger.debug(f"Trajectory with {len(trajectory)} samples, "
                     f"duration {trajectory[-1].timestamp:.2f}s")

    return PlanResult(algorithm=resolved, raw_path=raw_path, path=smoothed, trajectory=trajectory)


def plan_from_config(env_cfg: EnvironmentConfig, exec_cfg: PathExecutionConfig, *,
                     rng: Optional[random.Random] = None,
                     verbose: bool = False) -> PlanResult:
    """Run ``plan_to_target`` with every setting taken from config dataclasses.

    Args:
        env_cfg: EnvironmentConfig with start, goal and obstacles
        exec_cfg: PathExecutionConfig with planner and motion settings
        rng: Optional random source for the tree planner (overrides exec_cfg.seed)
        verbose: If True, planners log progress

    Returns:
        PlanResult including the resampled trajectory at exec_cfg.speed
    """
    scenario = build_scenario(env_cfg, exec_cfg)
    grid_params = GridSearchParams(vertical_ceiling_factor=exec_cfg.vertical_ceiling_factor)
    tree_params = TreeSearchParams(
        goal_bias=exec_cfg.goal_bias,
        vertical_ceiling_factor=exec_cfg.vertical_ceiling_factor,
    )
    return plan_to_target(
        scenario,
        exec_cfg.algorithm,
        density=exec_cfg.smoothing_density,
        speed=exec_cfg.speed,
        grid_params=grid_params,
        tree_params=tree_params,
        rng=rng,
        seed=exec_cfg.seed,
        verbose=verbose,
    )
