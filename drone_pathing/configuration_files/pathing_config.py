"""
General pathing configuration. Defaults describe the urban demo scene and the
cruise settings used by the simulator; YAML files can override any field.

Vertical axis is y.
"""

from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Dict, Optional, Tuple, Union

import yaml

from ..path_planning_algorithms import PlanningScenario
from ..path_utils import ConfigurationError, Obstacle, to_point


def _urban_scene_obstacles() -> Tuple[Obstacle, ...]:
    """Buildings and tree crowns of the demo scene, approximated as spheres."""
    # (x, z, width, depth, height); sphere sits at half height
    buildings = [
        (-50.0, -50.0, 20.0, 20.0, 30.0),
        (50.0, -50.0, 25.0, 15.0, 40.0),
        (-50.0, 50.0, 15.0, 25.0, 35.0),
        (50.0, 50.0, 20.0, 20.0, 25.0),
    ]
    trees = [(50.0, 0.0), (-50.0, 50.0), (20.0, -60.0), (-30.0, -40.0), (70.0, -30.0)]

    obstacles = [
        Obstacle(position=(x, h / 2.0, z), radius=max(w, d) / 2.0 + 5.0)
        for x, z, w, d, h in buildings
    ]
    obstacles += [Obstacle(position=(x, 25.0, z), radius=15.0) for x, z in trees]
    return tuple(obstacles)


@dataclass
class EnvironmentConfig:
    """Scene setup: endpoints and obstacles."""

    start: Tuple[float, float, float] = (0.0, 0.0, 0.0)
    # Straight line to this goal grazes the tree at (50, 25, 0)
    goal: Tuple[float, float, float] = (80.0, 10.0, 0.0)
    obstacles: Tuple[Obstacle, ...] = field(default_factory=_urban_scene_obstacles)


@dataclass
class PathExecutionConfig:
    """Planner, smoother and trajectory settings."""

    algorithm: str = "grid"  # "grid" or "tree"

    # Motion parameters ------------------------------
    speed: float = 10.0  # cruise speed for the resampled trajectory
    smoothing_density: int = 20  # Catmull-Rom samples per path segment

    # Search parameters ------------------------------
    grid_step: float = 5.0
    agent_radius: float = 2.0
    max_iterations: int = 1000
    safety_margin: float = 2.0
    vertical_ceiling_factor: float = 10.0  # ceiling = factor * grid_step

    # Tree search only
    goal_bias: float = 0.1
    seed: Optional[int] = None


def build_scenario(env_cfg: EnvironmentConfig, exec_cfg: PathExecutionConfig) -> PlanningScenario:
    """Create the planning scenario described by the two config objects."""
    return PlanningScenario(
        start=env_cfg.start,
        goal=env_cfg.goal,
        obstacles=tuple(env_cfg.obstacles),
        grid_step=exec_cfg.grid_step,
        agent_radius=exec_cfg.agent_radius,
        max_iterations=exec_cfg.max_iterations,
        safety_margin=exec_cfg.safety_margin,
    )


def _overlay(instance, section: Any, section_name: str):
    if section is None:
        return instance
    if not isinstance(section, dict):
        raise ConfigurationError(f"'{section_name}' section must be a mapping, got {type(section).__name__}")

    known = {f.name for f in fields(instance)}
    unknown = sorted(set(section) - known)
    if unknown:
        raise ConfigurationError(f"Unknown keys in '{section_name}': {', '.join(unknown)}")
    return replace(instance, **section)


def load_pathing_config(
    config_path: Union[str, Path],
) -> Tuple[EnvironmentConfig, PathExecutionConfig]:
    """Load pathing configuration from a YAML file.

    The file may contain an ``environment`` and an ``execution`` section; each
    key overrides the matching dataclass default. Obstacles are given as a list
    of ``{position: [x, y, z], radius: r}`` mappings and replace the default
    scene entirely.

    Args:
        config_path: Path to the YAML file.

    Returns:
        (EnvironmentConfig, PathExecutionConfig)

    Raises:
        FileNotFoundError: If the file doesn't exist.
        ConfigurationError: If the YAML structure is invalid.
    """
    config_path = Path(config_path)
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with config_path.open("r") as f:
        try:
            data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in {config_path}: {e}") from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"Expected mapping in {config_path}, got {type(data).__name__}")

    unknown = sorted(set(data) - {"environment", "execution"})
    if unknown:
        raise ConfigurationError(f"Unknown top-level keys in {config_path}: {', '.join(unknown)}")

    env_section: Optional[Dict[str, Any]] = data.get("environment")
    if isinstance(env_section, dict):
        env_section = dict(env_section)
        if "obstacles" in env_section:
            raw_obstacles = env_section["obstacles"] or []
            if not isinstance(raw_obstacles, list):
                raise ConfigurationError("'environment.obstacles' must be a list")
            env_section["obstacles"] = tuple(Obstacle.from_dict(o) for o in raw_obstacles)
        for key in ("start", "goal"):
            if key in env_section:
                env_section[key] = to_point(env_section[key], f"environment.{key}")

    env_cfg = _overlay(EnvironmentConfig(), env_section, "environment")
    exec_cfg = _overlay(PathExecutionConfig(), data.get("execution"), "execution")
    return env_cfg, exec_cfg


# Default configuration instances for quick access
DEFAULT_ENV_CONFIG = EnvironmentConfig()
DEFAULT_CONFIG = PathExecutionConfig()
