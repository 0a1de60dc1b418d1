"""Point-mass path planning among spherical obstacles."""

from .normalized_planners import (
    PlanResult,
    plan,
    plan_from_config,
    plan_to_target,
    resample,
    smooth,
)
from .path_planning_algorithms import (
    GridSearchParams,
    GridSearchPlanner,
    PlanningScenario,
    TreeSearchParams,
    TreeSearchPlanner,
)
from .path_utils import (
    CollisionModel,
    ConfigurationError,
    Obstacle,
    PathPlanningError,
    TrajectorySample,
)

__all__ = [
    "CollisionModel",
    "ConfigurationError",
    "GridSearchParams",
    "GridSearchPlanner",
    "Obstacle",
    "PathPlanningError",
    "PlanResult",
    "PlanningScenario",
    "TrajectorySample",
    "TreeSearchParams",
    "TreeSearchPlanner",
    "plan",
    "plan_from_config",
    "plan_to_target",
    "resample",
    "smooth",
]
