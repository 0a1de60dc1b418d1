"""
Path Planning Algorithms
========================

Search-based planners for a point-mass agent among spherical obstacles.

Includes:
- Grid search (A*-style best-first search, 26-connected)
- Tree search (RRT-style incremental random tree)

Both planners:
- Share the CollisionModel from path_utils
- Always terminate within ``max_iterations``
- Never raise for ordinary planning failure; they degrade to a best-effort
  path (see the fallback helpers below)
- Return plain lists of (x, y, z) tuples, y being the vertical axis
"""

import heapq
import itertools
import logging
import math
import numbers
import random
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

from .path_utils import (
    SAFETY_MARGIN,
    CollisionModel,
    ConfigurationError,
    Obstacle,
    PathType,
    Point3D,
    distance,
    to_point,
)


logger = logging.getLogger(__name__)

# ============================================================================
# Algorithm Configuration Constants
# ============================================================================

# Grid search
GRID_PROGRESS_LOG_INTERVAL = 200
GRID_GOAL_RADIUS_STEPS = 2.0  # goal test radius, in grid steps
DEFAULT_VERTICAL_CEILING_FACTOR = 10.0  # ceiling = factor * grid_step
DETOUR_RAISE = 20.0  # vertical offset of the fallback detour midpoint

# 26-connectivity in 3D
GRID_DIRECTIONS: Tuple[Tuple[int, int, int], ...] = tuple(
    d for d in itertools.product((-1, 0, 1), repeat=3) if d != (0, 0, 0)
)

# Tree search
TREE_PROGRESS_LOG_INTERVAL = 200
TREE_STEP_FACTOR = 2.0  # extension step, in grid steps
TREE_GOAL_RADIUS_STEPS = 3.0  # success radius, in grid steps
DEFAULT_GOAL_BIAS = 0.1
WORKSPACE_PADDING = 10.0


# ============================================================================
# Scenario and parameter dataclasses
# ============================================================================

@dataclass(frozen=True)
class PlanningScenario:
    """One planning request. Frozen so no search can mutate it."""
    start: Point3D
    goal: Point3D
    obstacles: Tuple[Obstacle, ...] = ()
    grid_step: float = 5.0
    agent_radius: float = 2.0
    max_iterations: int = 1000
    safety_margin: float = SAFETY_MARGIN

    def __post_init__(self):
        object.__setattr__(self, "start", to_point(self.start, "start"))
        object.__setattr__(self, "goal", to_point(self.goal, "goal"))
        object.__setattr__(self, "obstacles", tuple(
            obs if isinstance(obs, Obstacle) else Obstacle.from_dict(obs)
            for obs in self.obstacles
        ))

        if not _is_positive_number(self.grid_step):
            raise ConfigurationError(f"grid_step must be > 0, got {self.grid_step}")
        if not _is_non_negative_number(self.agent_radius):
            raise ConfigurationError(f"agent_radius must be >= 0, got {self.agent_radius}")
        if not _is_non_negative_number(self.safety_margin):
            raise ConfigurationError(f"safety_margin must be >= 0, got {self.safety_margin}")
        if isinstance(self.max_iterations, bool) or not isinstance(self.max_iterations, numbers.Integral) \
                or self.max_iterations <= 0:
            raise ConfigurationError(f"max_iterations must be a positive integer, got {self.max_iterations}")

        object.__setattr__(self, "grid_step", float(self.grid_step))
        object.__setattr__(self, "agent_radius", float(self.agent_radius))
        object.__setattr__(self, "safety_margin", float(self.safety_margin))
        object.__setattr__(self, "max_iterations", int(self.max_iterations))

    def collision_model(self) -> CollisionModel:
        return CollisionModel(self.obstacles, self.agent_radius, self.safety_margin)


def _is_positive_number(value) -> bool:
    return _is_non_negative_number(value) and float(value) > 0


def _is_non_negative_number(value) -> bool:
    # Real numbers only; strings and bools are rejected
    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        return False
    v = float(value)
    return math.isfinite(v) and v >= 0


@dataclass
class GridSearchParams:
    """Parameters for grid search."""
    vertical_ceiling_factor: float = DEFAULT_VERTICAL_CEILING_FACTOR


@dataclass
class TreeSearchParams:
    """Parameters for tree search."""
    goal_bias: float = DEFAULT_GOAL_BIAS
    vertical_ceiling_factor: float = DEFAULT_VERTICAL_CEILING_FACTOR
    # Explicit sampling box ((x_min, y_min, z_min), (x_max, y_max, z_max));
    # derived from the scenario when None
    bounds: Optional[Tuple[Point3D, Point3D]] = None

    def __post_init__(self):
        if not 0.0 <= self.goal_bias <= 1.0:
            raise ConfigurationError(f"goal_bias must be within [0, 1], got {self.goal_bias}")


# ============================================================================
# Shared helpers
# ============================================================================

def direct_or_detour_path(start: Point3D, goal: Point3D,
                          collision_model: CollisionModel) -> PathType:
    """Best-effort path when no searched path is available.

    Straight segment if clear; otherwise start -> raised midpoint -> goal when
    the first leg is clear; otherwise the bare straight segment. The second leg
    of the detour is not verified.
    """
    if collision_model.is_line_collision_free(start, goal):
        logger.warning("Falling back to direct start->goal segment")
        return [start, goal]

    midpoint = (
        (start[0] + goal[0]) / 2.0,
        max(start[1], goal[1]) + DETOUR_RAISE,
        (start[2] + goal[2]) / 2.0,
    )
    if collision_model.is_line_collision_free(start, midpoint):
        logger.warning(f"Falling back to raised detour via {midpoint}")
        return [start, midpoint, goal]

    logger.warning("No clear fallback found, returning unverified start->goal segment")
    return [start, goal]


def calculate_workspace_bounds(scenario: PlanningScenario,
                               vertical_ceiling: float,
                               padding: float = WORKSPACE_PADDING) -> Tuple[Point3D, Point3D]:
    """
    Calculate sampling bounds from start, goal and obstacle extents.

    Args:
        scenario: Planning scenario
        vertical_ceiling: Upper limit for the vertical (y) axis
        padding: Extra space around start/goal/obstacles

    Returns:
        (bounds_min, bounds_max) as tuples, y clipped to [0, vertical_ceiling]
    """
    xs = [scenario.start[0], scenario.goal[0]]
    ys = [scenario.start[1], scenario.goal[1]]
    zs = [scenario.start[2], scenario.goal[2]]
    for obs in scenario.obstacles:
        r = obs.radius
        xs.extend((obs.position[0] - r, obs.position[0] + r))
        ys.extend((obs.position[1] - r, obs.position[1] + r))
        zs.extend((obs.position[2] - r, obs.position[2] + r))

    y_low = max(0.0, min(ys) - padding)
    y_high = min(vertical_ceiling, max(ys) + padding)
    if y_high < y_low:
        y_high = y_low

    bounds_min = (min(xs) - padding, y_low, min(zs) - padding)
    bounds_max = (max(xs) + padding, y_high, max(zs) + padding)
    return bounds_min, bounds_max


# ============================================================================
# Grid search (A*-style)
# ============================================================================

@dataclass
class SearchNode:
    """Node of the grid search tree. The parent is fixed at creation."""
    position: Point3D
    cost_from_start: float
    heuristic_to_goal: float
    parent: Optional["SearchNode"] = None

    @property
    def total_cost(self) -> float:
        return self.cost_from_start + self.heuristic_to_goal


class GridSearchPlanner:
    """Best-first search over a virtual 26-connected grid with continuous coordinates."""

    def __init__(self, params: Optional[GridSearchParams] = None, verbose: bool = False):
        """
        Initialize grid planner.

        Args:
            params: Grid search parameters
            verbose: If True, log detailed progress information
        """
        self.params = params or GridSearchParams()
        self.verbose = verbose

    @staticmethod
    def grid_key(position: Point3D, grid_step: float) -> Tuple[int, int, int]:
        """Quantize a position to integer grid indices."""
        return (
            int(round(position[0] / grid_step)),
            int(round(position[1] / grid_step)),
            int(round(position[2] / grid_step)),
        )

    def get_neighbors(self, node: SearchNode, scenario: PlanningScenario,
                      collision_model: CollisionModel) -> List[Point3D]:
        """Get the collision-free neighbor positions of a node."""
        step = scenario.grid_step
        ceiling = self.params.vertical_ceiling_factor * step
        x, y, z = node.position

        neighbors = []
        for dx, dy, dz in GRID_DIRECTIONS:
            candidate = (x + dx * step, y + dy * step, z + dz * step)

            # Vertical band
            if not 0.0 <= candidate[1] <= ceiling:
                continue

            if not collision_model.is_point_collision_free(candidate):
                continue

            if not collision_model.is_line_collision_free(node.position, candidate):
                continue

            neighbors.append(candidate)

        return neighbors

    def plan(self, scenario: PlanningScenario) -> PathType:
        """
        Plan a path from scenario.start to scenario.goal.

        Args:
            scenario: Planning scenario

        Returns:
            List of waypoints, never empty. On failure a degraded path from
            ``direct_or_detour_path`` (or the bare start/goal pair when either
            endpoint is in collision).
        """
        start, goal = scenario.start, scenario.goal
        step = scenario.grid_step
        collision_model = scenario.collision_model()

        if not collision_model.is_point_collision_free(start):
            logger.warning(f"Start position {start} is in collision, skipping search")
            return [start, goal]
        if not collision_model.is_point_collision_free(goal):
            logger.warning(f"Goal position {goal} is in collision, skipping search")
            return [start, goal]

        goal_radius = GRID_GOAL_RADIUS_STEPS * step
        counter = itertools.count()

        root = SearchNode(position=start, cost_from_start=0.0,
                          heuristic_to_goal=distance(start, goal))
        open_set: List[Tuple[float, int, SearchNode]] = []
        heapq.heappush(open_set, (root.total_cost, next(counter), root))
        best: Dict[Tuple[int, int, int], SearchNode] = {self.grid_key(start, step): root}
        closed = set()

        logger.info(f"Grid search starting from {start} to {goal}")
        logger.debug(f"Grid step: {step}, max iterations: {scenario.max_iterations}, "
                     f"ceiling: {self.params.vertical_ceiling_factor * step}")

        iteration = 0
        while open_set and iteration < scenario.max_iterations:
            _, _, current = heapq.heappop(open_set)
            key = self.grid_key(current.position, step)

            # Stale entry (superseded by a cheaper node) or already expanded
            if key in closed or best.get(key) is not current:
                continue

            iteration += 1
            if self.verbose and iteration % GRID_PROGRESS_LOG_INTERVAL == 0:
                logger.info(f"Grid search iteration {iteration}, open set size: {len(open_set)}")

            if (distance(current.position, goal) <= goal_radius
                    and collision_model.is_line_collision_free(current.position, goal)):
                path = self._reconstruct_path(current, goal)
                logger.info(f"Grid search found path after {iteration} iterations "
                            f"with {len(path)} waypoints")
                return path

            closed.add(key)

            for neighbor_pos in self.get_neighbors(current, scenario, collision_model):
                neighbor_key = self.grid_key(neighbor_pos, step)
                if neighbor_key in closed:
                    continue

                tentative_g = current.cost_from_start + distance(current.position, neighbor_pos)
                existing = best.get(neighbor_key)
                if existing is not None and tentative_g >= existing.cost_from_start:
                    continue

                neighbor = SearchNode(position=neighbor_pos, cost_from_start=tentative_g,
                                      heuristic_to_goal=distance(neighbor_pos, goal),
                                      parent=current)
                best[neighbor_key] = neighbor
                heapq.heappush(open_set, (neighbor.total_cost, next(counter), neighbor))

        if iteration >= scenario.max_iterations:
            logger.warning(f"Grid search exceeded max iterations ({scenario.max_iterations})")
        else:
            logger.warning(f"Grid search exhausted open set after {iteration} iterations")

        return direct_or_detour_path(start, goal, collision_model)

    @staticmethod
    def _reconstruct_path(node: SearchNode, goal: Point3D) -> PathType:
        """Walk parent references back to the root, then append the exact goal."""
        path: PathType = []
        current: Optional[SearchNode] = node
        while current is not None:
            path.append(current.position)
            current = current.parent
        path.reverse()

        if path[-1] != goal:
            path.append(goal)
        return path


# ============================================================================
# Tree search (RRT-style)
# ============================================================================

@dataclass
class TreeNode:
    """Tree vertex addressed by its index in the node list."""
    position: Point3D
    parent: Optional[int] = None


class TreeSearchPlanner:
    """Rapidly-exploring random tree with goal bias and explicit parent indices."""

    def __init__(self, params: Optional[TreeSearchParams] = None,
                 rng: Optional[random.Random] = None, seed: Optional[int] = None,
                 verbose: bool = False):
        """
        Initialize tree planner.

        Args:
            params: Tree search parameters
            rng: Random source; takes precedence over ``seed``
            seed: Seed for a private random.Random when ``rng`` is None
            verbose: If True, log detailed progress information
        """
        self.params = params or TreeSearchParams()
        self.rng = rng if rng is not None else random.Random(seed)
        self.verbose = verbose

    def sample_random_point(self, goal: Point3D,
                            bounds: Tuple[Point3D, Point3D]) -> Point3D:
        """Sample the goal with probability goal_bias, else uniformly in bounds."""
        if self.rng.random() < self.params.goal_bias:
            return goal

        bounds_min, bounds_max = bounds
        return (
            self.rng.uniform(bounds_min[0], bounds_max[0]),
            self.rng.uniform(bounds_min[1], bounds_max[1]),
            self.rng.uniform(bounds_min[2], bounds_max[2]),
        )

    @staticmethod
    def find_nearest_node(tree: Sequence[TreeNode], point: Point3D) -> int:
        """Index of the tree node closest to point (first found on ties)."""
        best_index = 0
        best_distance = float("inf")
        for i, node in enumerate(tree):
            d = distance(node.position, point)
            if d < best_distance:
                best_distance = d
                best_index = i
        return best_index

    @staticmethod
    def steer(from_pos: Point3D, to_pos: Point3D, step_size: float) -> Point3D:
        """Step from one position toward another, limited by step_size."""
        dist = distance(from_pos, to_pos)
        if dist <= step_size:
            return to_pos

        scale = step_size / dist
        return (
            from_pos[0] + (to_pos[0] - from_pos[0]) * scale,
            from_pos[1] + (to_pos[1] - from_pos[1]) * scale,
            from_pos[2] + (to_pos[2] - from_pos[2]) * scale,
        )

    @staticmethod
    def extract_path(tree: Sequence[TreeNode], index: int) -> PathType:
        """Follow parent indices from tree[index] back to the root."""
        path: PathType = []
        current: Optional[int] = index
        while current is not None:
            path.append(tree[current].position)
            current = tree[current].parent
        path.reverse()
        return path

    def plan(self, scenario: PlanningScenario) -> PathType:
        """
        Plan a path from scenario.start to scenario.goal.

        Args:
            scenario: Planning scenario

        Returns:
            List of waypoints, never empty. When the goal region is never
            reached the path leads to the visited point closest to the goal and
            then to the goal itself, unverified.
        """
        start, goal = scenario.start, scenario.goal
        collision_model = scenario.collision_model()

        if not collision_model.is_point_collision_free(start):
            logger.warning(f"Start position {start} is in collision, skipping search")
            return [start, goal]
        if not collision_model.is_point_collision_free(goal):
            logger.warning(f"Goal position {goal} is in collision, skipping search")
            return [start, goal]

        step_size = TREE_STEP_FACTOR * scenario.grid_step
        goal_radius = TREE_GOAL_RADIUS_STEPS * scenario.grid_step
        ceiling = self.params.vertical_ceiling_factor * scenario.grid_step
        bounds = self.params.bounds or calculate_workspace_bounds(scenario, ceiling)

        if (distance(start, goal) <= goal_radius
                and collision_model.is_line_collision_free(start, goal)):
            logger.info("Tree search: goal directly reachable from start")
            return [start, goal] if start != goal else [start]

        tree: List[TreeNode] = [TreeNode(position=start)]

        logger.info(f"Tree search starting from {start} to {goal}")
        logger.debug(f"Step: {step_size}, goal radius: {goal_radius}, bias: {self.params.goal_bias}, "
                     f"bounds: {bounds[0]} to {bounds[1]}")

        for iteration in range(scenario.max_iterations):
            if self.verbose and iteration % TREE_PROGRESS_LOG_INTERVAL == 0 and iteration > 0:
                logger.info(f"Tree search iteration {iteration}, tree size: {len(tree)}")

            sample = self.sample_random_point(goal, bounds)
            nearest_index = self.find_nearest_node(tree, sample)
            nearest = tree[nearest_index].position
            new_position = self.steer(nearest, sample, step_size)

            if new_position == nearest:
                continue

            if not collision_model.is_point_collision_free(new_position):
                continue

            if not collision_model.is_line_collision_free(nearest, new_position):
                continue

            tree.append(TreeNode(position=new_position, parent=nearest_index))

            if (distance(new_position, goal) <= goal_radius
                    and collision_model.is_line_collision_free(new_position, goal)):
                path = self.extract_path(tree, len(tree) - 1)
                if path[-1] != goal:
                    path.append(goal)
                logger.info(f"Tree search reached goal at iteration {iteration}, "
                            f"{len(path)} waypoints, tree size {len(tree)}")
                return path

        logger.warning(f"Tree search found no path after {scenario.max_iterations} iterations, "
                       f"tree size {len(tree)}")
        closest_index = min(range(len(tree)), key=lambda i: distance(tree[i].position, goal))
        path = self.extract_path(tree, closest_index)
        if path[-1] != goal:
            path.append(goal)
        return path


# ============================================================================
# High-Level Wrapper Functions
# ============================================================================

def create_grid_path(scenario: PlanningScenario,
                     params: Optional[GridSearchParams] = None,
                     verbose: bool = False) -> PathType:
    """Plan with the grid search planner."""
    planner = GridSearchPlanner(params, verbose=verbose)
    return planner.plan(scenario)


def create_tree_path(scenario: PlanningScenario,
                     params: Optional[TreeSearchParams] = None,
                     rng: Optional[random.Random] = None,
                     seed: Optional[int] = None,
                     verbose: bool = False) -> PathType:
    """Plan with the tree search planner."""
    planner = TreeSearchPlanner(params, rng=rng, seed=seed, verbose=verbose)
    return planner.plan(scenario)
