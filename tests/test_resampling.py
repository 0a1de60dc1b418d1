import numpy as np
import pytest

from drone_pathing.path_utils import (
    ConfigurationError,
    interpolate_at_s,
    precompute_cumulative_distances,
    resample_trajectory,
    standardize_path,
)


def test_short_path_uses_minimum_sample_count():
    path = [(0.0, 0.0, 0.0), (100.0, 0.0, 0.0)]
    trajectory = resample_trajectory(path, speed=10.0)

    assert len(trajectory) == 100
    assert trajectory[0].position == path[0]
    assert trajectory[0].timestamp == 0.0
    assert trajectory[7].position == pytest.approx((7.0, 0.0, 0.0))
    assert trajectory[7].timestamp == pytest.approx(0.7)
    assert all(s.speed == 10.0 for s in trajectory)


def test_long_path_scales_with_duration():
    path = [(0.0, 0.0, 0.0), (1000.0, 0.0, 0.0)]
    trajectory = resample_trajectory(path, speed=10.0)

    assert len(trajectory) == 1000
    assert trajectory[-1].timestamp < 100.0


def test_slower_speed_never_gives_fewer_samples():
    path = [(0.0, 0.0, 0.0), (300.0, 0.0, 0.0), (300.0, 400.0, 0.0)]
    counts = [len(resample_trajectory(path, speed=v)) for v in (1.0, 5.0, 20.0, 100.0)]
    assert counts == sorted(counts, reverse=True)


def test_timestamps_non_decreasing():
    path = [(0.0, 0.0, 0.0), (3.0, 4.0, 0.0), (3.0, 4.0, 12.0)]
    times = [s.timestamp for s in resample_trajectory(path, speed=2.5)]
    assert all(b >= a for a, b in zip(times, times[1:]))


def test_single_point_path():
    trajectory = resample_trajectory([(1.0, 2.0, 3.0)], speed=5.0)
    assert len(trajectory) == 100
    assert all(s.position == (1.0, 2.0, 3.0) and s.timestamp == 0.0 for s in trajectory)


def test_zero_length_segments_are_skipped_over():
    path = [(0.0, 0.0, 0.0), (0.0, 0.0, 0.0), (10.0, 0.0, 0.0)]
    trajectory = resample_trajectory(path, speed=1.0)
    positions = np.asarray([s.position for s in trajectory])

    assert np.all(np.isfinite(positions))
    assert trajectory[0].position == (0.0, 0.0, 0.0)


@pytest.mark.parametrize("speed", [0.0, -1.0, float("nan"), "fast"])
def test_invalid_speed_raises(speed):
    with pytest.raises(ConfigurationError):
        resample_trajectory([(0.0, 0.0, 0.0), (1.0, 0.0, 0.0)], speed=speed)


def test_empty_path_raises():
    with pytest.raises(ConfigurationError):
        resample_trajectory([], speed=1.0)


def test_interpolate_at_s_clamps_and_interpolates():
    path = [(0.0, 0.0, 0.0), (10.0, 0.0, 0.0), (10.0, 10.0, 0.0)]
    cum, total = precompute_cumulative_distances(path)

    assert total == pytest.approx(20.0)
    assert interpolate_at_s(path, cum, -1.0) == path[0]
    assert interpolate_at_s(path, cum, 25.0) == path[-1]
    assert interpolate_at_s(path, cum, 15.0) == pytest.approx((10.0, 5.0, 0.0))


def test_standardize_path_shapes():
    trajectory = resample_trajectory([(0.0, 0.0, 0.0), (50.0, 0.0, 0.0)], speed=10.0)
    arrays = standardize_path(trajectory)

    assert arrays["positions"].shape == (100, 3)
    assert arrays["times"].shape == (100,)
    assert arrays["duration"][0] == pytest.approx(trajectory[-1].timestamp)
    assert arrays["total_length"][0] == pytest.approx(49.5)
