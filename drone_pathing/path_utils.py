"""
Path utilities for planning and execution.

Contains:
- Point and obstacle primitives
- Obstacle checking (sphere clearance)
- Path length and arc-length interpolation helpers
- Catmull-Rom path smoothing
- Constant-speed trajectory resampling

All planners and the facade use these shared utilities for consistency.
"""

import logging
import math
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Sequence, Tuple, TypeAlias

import numpy as np


# ============================================================================
# Type Aliases
# ============================================================================

Point3D: TypeAlias = Tuple[float, float, float]
PathType: TypeAlias = List[Point3D]

logger = logging.getLogger(__name__)

# ============================================================================
# Constants
# ============================================================================

# Extra clearance kept around every obstacle on top of its radius + agent radius
SAFETY_MARGIN = 2.0

# Segment checks sample at least every SEGMENT_SAMPLE_SPACING units
SEGMENT_SAMPLE_SPACING = 2.0
SEGMENT_MIN_SAMPLES = 10

# Trajectory resampling
MIN_TRAJECTORY_SAMPLES = 100
SAMPLES_PER_SECOND = 10

MIN_SMOOTHING_DENSITY = 2


class PathPlanningError(Exception):
    """Base exception for all path planning errors."""
    pass


class ConfigurationError(PathPlanningError, ValueError):
    """Raised when the caller passes invalid parameters.

    Kept separate from planning failures, which never raise and instead
    degrade to a best-effort path.
    """
    pass


def to_point(value: Sequence[float], name: str = "point") -> Point3D:
    """Normalize any 3-sequence into a tuple of finite Python floats."""
    try:
        x, y, z = (float(v) for v in value)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"{name} must be a sequence of 3 numbers, got {value!r}") from exc
    if not all(math.isfinite(c) for c in (x, y, z)):
        raise ConfigurationError(f"{name} must be finite, got {(x, y, z)}")
    return (x, y, z)


def distance(a: Sequence[float], b: Sequence[float]) -> float:
    """Euclidean distance between two 3D points."""
    dx = a[0] - b[0]
    dy = a[1] - b[1]
    dz = a[2] - b[2]
    return math.sqrt(dx * dx + dy * dy + dz * dz)


def lerp(a: Point3D, b: Point3D, t: float) -> Point3D:
    """Linear interpolation between a and b; t=0 returns a unchanged."""
    if t == 0.0:
        return a
    return (
        a[0] + (b[0] - a[0]) * t,
        a[1] + (b[1] - a[1]) * t,
        a[2] + (b[2] - a[2]) * t,
    )


# ============================================================================
# Obstacles
# ============================================================================

@dataclass(frozen=True)
class Obstacle:
    """Sphere of exclusion."""
    position: Point3D
    radius: float

    def __post_init__(self):
        object.__setattr__(self, "position", to_point(self.position, "obstacle position"))
        radius = float(self.radius)
        if not math.isfinite(radius) or radius < 0:
            raise ConfigurationError(f"Obstacle radius must be a non-negative number, got {self.radius}")
        object.__setattr__(self, "radius", radius)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Obstacle":
        """Build from a {"position"/"pos": [x, y, z], "radius": r} mapping."""
        if not isinstance(data, dict):
            raise ConfigurationError(f"Obstacle entry must be a mapping, got {type(data).__name__}")
        pos = data.get("position", data.get("pos"))
        if pos is None or "radius" not in data:
            raise ConfigurationError(f"Obstacle entry needs 'position' and 'radius': {data}")
        return cls(position=pos, radius=data["radius"])


class CollisionModel:
    """Answers point and segment clearance queries against spherical obstacles."""

    def __init__(self, obstacles: Iterable[Obstacle], agent_radius: float = 0.0,
                 safety_margin: float = SAFETY_MARGIN):
        """
        Initialize collision model.

        Args:
            obstacles: Spherical obstacles (order irrelevant)
            agent_radius: Radius of the moving agent
            safety_margin: Additional clearance around obstacles
        """
        self.obstacles: List[Obstacle] = list(obstacles)
        self.agent_radius = float(agent_radius)
        self.safety_margin = float(safety_margin)

        # Pre-compute centers and inflated radii for vectorized checks
        if self.obstacles:
            self._centers = np.array([obs.position for obs in self.obstacles], dtype=np.float64)
            self._radii = np.array([obs.radius for obs in self.obstacles], dtype=np.float64)
        else:
            self._centers = np.zeros((0, 3), dtype=np.float64)
            self._radii = np.zeros(0, dtype=np.float64)
        self._clearances = self._radii + self.agent_radius + self.safety_margin

    def clearance(self, obstacle: Obstacle) -> float:
        """Minimum allowed distance from the obstacle center."""
        return obstacle.radius + self.agent_radius + self.safety_margin

    def is_point_collision_free(self, point: Sequence[float]) -> bool:
        """Check if a point is outside every inflated obstacle."""
        if len(self.obstacles) == 0:
            return True
        p = np.asarray(point, dtype=np.float64)
        dists = np.linalg.norm(self._centers - p, axis=1)
        return bool(np.all(dists >= self._clearances))

    def is_line_collision_free(self, start: Sequence[float], end: Sequence[float]) -> bool:
        """Check if a segment is collision-free by sampling points.

        Sampling density scales with segment length so long edges are checked
        as densely as short ones.
        """
        if len(self.obstacles) == 0:
            return True

        a = np.asarray(start, dtype=np.float64)
        b = np.asarray(end, dtype=np.float64)
        length = float(np.linalg.norm(b - a))
        if length == 0.0:
            return self.is_point_collision_free(a)

        num_samples = max(SEGMENT_MIN_SAMPLES, int(math.ceil(length / SEGMENT_SAMPLE_SPACING)))
        t = np.linspace(0.0, 1.0, num_samples + 1)[:, None]
        samples = a + t * (b - a)

        # [S, O] distance matrix
        dists = np.linalg.norm(samples[:, None, :] - self._centers[None, :, :], axis=2)
        return bool(np.all(dists >= self._clearances[None, :]))

    def min_obstacle_distance(self, point: Sequence[float]) -> float:
        """Distance from point to the nearest obstacle surface (inf if none)."""
        if len(self.obstacles) == 0:
            return float("inf")
        p = np.asarray(point, dtype=np.float64)
        return float(np.min(np.linalg.norm(self._centers - p, axis=1) - self._radii))


# ============================================================================
# Path analysis
# ============================================================================

def calculate_path_length(path: Sequence[Sequence[float]]) -> float:
    """
    Calculate total length of path.

    Args:
        path: Path waypoints, shape [N, 3]
    Returns:
        Sum of consecutive segment lengths
    """
    if len(path) < 2:
        return 0.0

    total_length = 0.0
    for i in range(len(path) - 1):
        total_length += distance(path[i], path[i + 1])

    return total_length


def precompute_cumulative_distances(path: Sequence[Sequence[float]]) -> Tuple[np.ndarray, float]:
    """Precompute cumulative arc-length distances for a polyline path.

    Returns (cum_dist, total_length) where cum_dist[i] is the distance from
    the start to waypoint i.
    """
    pts = np.asarray(path, dtype=np.float64)
    if len(pts) < 2:
        return np.asarray([0.0], dtype=np.float64), 0.0

    seg = pts[1:] - pts[:-1]
    seg_len = np.linalg.norm(seg, axis=1)
    cum = np.concatenate([[0.0], np.cumsum(seg_len)])
    return cum, float(cum[-1])


def interpolate_at_s(path: Sequence[Point3D], cum_dist: np.ndarray, s: float) -> Point3D:
    """Interpolate a point along the path at absolute arc length s."""
    if len(path) == 1:
        return path[0]

    total = float(cum_dist[-1])
    if s <= 0.0:
        return path[0]
    if s >= total:
        return path[-1]

    i = int(np.searchsorted(cum_dist, s, side="right") - 1)
    i = min(max(i, 0), len(path) - 2)
    s0 = float(cum_dist[i])
    s1 = float(cum_dist[i + 1])
    # Zero-length segment: stay on its start point
    t = 0.0 if s1 == s0 else (float(s) - s0) / (s1 - s0)
    return lerp(path[i], path[i + 1], t)


def calculate_execution_time(path: Sequence[Sequence[float]], speed: float) -> float:
    """Estimated traversal time of a path at constant speed."""
    total_distance = calculate_path_length(path)
    return total_distance / speed if speed > 0 else 0.0


def print_path_info(path: Sequence[Sequence[float]], speed: float, label: str = "Path") -> None:
    """
    Print path summary for debugging.

    Args:
        path: Path waypoints
        speed: Cruise speed used for the time estimate
        label: Label for the path (e.g., "Grid Path", "Smooth Path")
    """
    length = calculate_path_length(path)
    estimated_time = calculate_execution_time(path, speed)
    avg_spacing = length / (len(path) - 1) if len(path) > 1 else 0

    print(f"[{label}] {len(path)} waypoints, {length:.3f} total")
    print(f"[{label}] Speed: {speed:.3f}, Est. time: {estimated_time:.1f}s")
    print(f"[{label}] Avg spacing: {avg_spacing:.4f}")


# ============================================================================
# Catmull-Rom smoothing
# ============================================================================

def smooth_path(path: Sequence[Point3D], samples_per_segment: int = 10) -> PathType:
    """Resample a polyline through a uniform Catmull-Rom spline.

    Every segment p1->p2 is evaluated with its neighbours p0 and p3 as extra
    control points (clamped at the ends by repeating the first/last point).
    Emits ``samples_per_segment`` points per segment plus the literal final
    point. The curve passes through all input points but is not checked
    against obstacles.

    Args:
        path: Input waypoints
        samples_per_segment: Interpolated points per input segment (>= 2)

    Returns:
        Smoothed path of (x, y, z) float tuples; paths with fewer than 2
        points are returned as-is, converted to tuples.
    """
    if isinstance(samples_per_segment, bool) or not isinstance(samples_per_segment, (int, np.integer)):
        raise ConfigurationError(f"samples_per_segment must be an integer, got {samples_per_segment!r}")
    if samples_per_segment < MIN_SMOOTHING_DENSITY:
        raise ConfigurationError(
            f"samples_per_segment must be >= {MIN_SMOOTHING_DENSITY}, got {samples_per_segment}"
        )

    if len(path) < 2:
        return [to_point(p) for p in path]

    pts = np.asarray(path, dtype=np.float64)
    n = len(pts)
    k = int(samples_per_segment)

    u = (np.arange(k, dtype=np.float64) / k)[:, None]
    u2 = u * u
    u3 = u2 * u

    out: PathType = []
    for i in range(n - 1):
        p0 = pts[max(0, i - 1)]
        p1 = pts[i]
        p2 = pts[i + 1]
        p3 = pts[min(n - 1, i + 2)]

        seg = 0.5 * (
            2.0 * p1
            + (-p0 + p2) * u
            + (2.0 * p0 - 5.0 * p1 + 4.0 * p2 - p3) * u2
            + (-p0 + 3.0 * p1 - 3.0 * p2 + p3) * u3
        )
        out.extend(tuple(float(c) for c in row) for row in seg)

    out[0] = to_point(path[0])
    out.append(to_point(path[-1]))
    return out


# ============================================================================
# Constant-speed resampling
# ============================================================================

@dataclass(frozen=True)
class TrajectorySample:
    """One timestamped point of a trajectory."""
    position: Point3D
    timestamp: float
    speed: float


def resample_trajectory(path: Sequence[Point3D], speed: float) -> List[TrajectorySample]:
    """Convert a geometric path into evenly time-spaced samples.

    Sample count is ``max(MIN_TRAJECTORY_SAMPLES, floor(total_time * SAMPLES_PER_SECOND))``
    so short paths still get a reasonable temporal resolution. Sample i sits at
    arc length ``(i / N) * L`` with timestamp ``(i / N) * total_time``; the end
    point itself is not emitted.

    Args:
        path: Geometric path (at least one point)
        speed: Constant cruise speed (> 0)

    Returns:
        List of TrajectorySample with non-decreasing timestamps
    """
    try:
        speed = float(speed)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"speed must be a number, got {speed!r}") from exc
    if not math.isfinite(speed) or speed <= 0.0:
        raise ConfigurationError(f"speed must be positive, got {speed}")
    if len(path) == 0:
        raise ConfigurationError("Cannot resample an empty path")

    cum_dist, total_len = precompute_cumulative_distances(path)
    total_time = total_len / speed
    n_samples = max(MIN_TRAJECTORY_SAMPLES, int(math.floor(total_time * SAMPLES_PER_SECOND)))

    trajectory: List[TrajectorySample] = []
    for i in range(n_samples):
        progress = i / n_samples
        if total_len > 0.0:
            position = interpolate_at_s(path, cum_dist, progress * total_len)
        else:
            position = path[0]
        trajectory.append(TrajectorySample(
            position=position,
            timestamp=progress * total_time,
            speed=speed,
        ))

    logger.debug(f"Resampled path of length {total_len:.3f} into {n_samples} samples "
                 f"over {total_time:.2f}s at speed {speed}")
    return trajectory


def standardize_path(trajectory: Sequence[TrajectorySample]) -> Dict[str, np.ndarray]:
    """Array representation of a trajectory for numeric consumers.

    Returns dict with:
        - positions: [K,3] sample positions
        - times: [K] timestamps (s)
        - total_length: [1] length of the sampled polyline
        - duration: [1] timestamp of the last sample (s)
    """
    if len(trajectory) == 0:
        return {
            "positions": np.zeros((0, 3), dtype=np.float64),
            "times": np.zeros(0, dtype=np.float64),
            "total_length": np.asarray([0.0]),
            "duration": np.asarray([0.0]),
        }

    positions = np.asarray([s.position for s in trajectory], dtype=np.float64)
    times = np.asarray([s.timestamp for s in trajectory], dtype=np.float64)
    return {
        "positions": positions,
        "times": times,
        "total_length": np.asarray([calculate_path_length(positions)]),
        "duration": np.asarray([times[-1]]),
    }
