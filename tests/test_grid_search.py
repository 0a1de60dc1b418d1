import logging

import numpy as np
import pytest

from drone_pathing.path_planning_algorithms import (
    GRID_DIRECTIONS,
    GridSearchParams,
    GridSearchPlanner,
    PlanningScenario,
    SearchNode,
    create_grid_path,
    direct_or_detour_path,
)
from drone_pathing.path_utils import ConfigurationError, Obstacle, distance


def test_grid_path_in_free_space_hits_both_endpoints():
    scenario = PlanningScenario(start=(0.0, 0.0, 0.0), goal=(20.0, 0.0, 0.0), obstacles=(), grid_step=5.0)
    path = create_grid_path(scenario)

    assert path[0] == (0.0, 0.0, 0.0)
    assert path[-1] == (20.0, 0.0, 0.0)
    assert path[-2] != path[-1]


def test_grid_path_avoids_obstacle():
    obstacle = Obstacle(position=(10.0, 0.0, 0.0), radius=3.0)
    scenario = PlanningScenario(
        start=(0.0, 0.0, 0.0),
        goal=(20.0, 0.0, 0.0),
        obstacles=(obstacle,),
        grid_step=5.0,
        agent_radius=1.0,
        max_iterations=500,
    )
    path = create_grid_path(scenario)
    model = scenario.collision_model()

    assert path[0] == scenario.start
    assert path[-1] == scenario.goal
    assert len(path) > 2
    for a, b in zip(path, path[1:]):
        assert model.is_line_collision_free(a, b)
    for p in path:
        assert distance(p, obstacle.position) >= obstacle.radius + 1.0 - 0.1


def test_start_in_collision_returns_bare_segment():
    scenario = PlanningScenario(
        start=(0.0, 0.0, 0.0),
        goal=(50.0, 0.0, 0.0),
        obstacles=(Obstacle(position=(0.0, 0.0, 0.0), radius=5.0),),
    )
    assert create_grid_path(scenario) == [(0.0, 0.0, 0.0), (50.0, 0.0, 0.0)]


def test_goal_in_collision_returns_bare_segment():
    scenario = PlanningScenario(
        start=(0.0, 0.0, 0.0),
        goal=(50.0, 0.0, 0.0),
        obstacles=(Obstacle(position=(50.0, 0.0, 0.0), radius=5.0),),
    )
    assert create_grid_path(scenario) == [(0.0, 0.0, 0.0), (50.0, 0.0, 0.0)]


def test_iteration_limit_falls_back_to_raised_detour(caplog):
    scenario = PlanningScenario(
        start=(0.0, 0.0, 0.0),
        goal=(40.0, 0.0, 0.0),
        obstacles=(Obstacle(position=(20.0, 0.0, 0.0), radius=5.0),),
        agent_radius=0.0,
        max_iterations=1,
    )
    with caplog.at_level(logging.WARNING):
        path = create_grid_path(scenario)

    assert path == [(0.0, 0.0, 0.0), (20.0, 20.0, 0.0), (40.0, 0.0, 0.0)]
    assert any("max iterations" in r.message for r in caplog.records)


def test_direct_fallback_when_segment_is_clear():
    scenario = PlanningScenario(start=(0.0, 0.0, 0.0), goal=(40.0, 0.0, 0.0))
    path = direct_or_detour_path(scenario.start, scenario.goal, scenario.collision_model())
    assert path == [(0.0, 0.0, 0.0), (40.0, 0.0, 0.0)]


def test_identical_start_and_goal():
    scenario = PlanningScenario(start=(5.0, 5.0, 5.0), goal=(5.0, 5.0, 5.0))
    path = create_grid_path(scenario)
    assert path[0] == path[-1] == (5.0, 5.0, 5.0)


def test_neighbors_respect_vertical_band():
    scenario = PlanningScenario(start=(0.0, 0.0, 0.0), goal=(20.0, 0.0, 0.0))
    planner = GridSearchPlanner()
    root = SearchNode(position=(0.0, 0.0, 0.0), cost_from_start=0.0, heuristic_to_goal=20.0)

    neighbors = planner.get_neighbors(root, scenario, scenario.collision_model())

    assert len(GRID_DIRECTIONS) == 26
    assert len(neighbors) == 17
    assert all(n[1] >= 0.0 for n in neighbors)


def test_neighbors_capped_by_ceiling():
    scenario = PlanningScenario(start=(0.0, 10.0, 0.0), goal=(20.0, 0.0, 0.0), grid_step=5.0)
    planner = GridSearchPlanner(GridSearchParams(vertical_ceiling_factor=2.0))
    node = SearchNode(position=(0.0, 10.0, 0.0), cost_from_start=0.0, heuristic_to_goal=0.0)

    neighbors = planner.get_neighbors(node, scenario, scenario.collision_model())
    assert all(n[1] <= 10.0 for n in neighbors)


def test_grid_key_rounds_to_nearest_cell():
    assert GridSearchPlanner.grid_key((7.4, 2.6, -2.4), 5.0) == (1, 1, 0)
    assert GridSearchPlanner.grid_key((-7.6, 0.0, 12.6), 5.0) == (-2, 0, 3)


@pytest.mark.parametrize("kwargs", [
    {"grid_step": 0.0},
    {"grid_step": -5.0},
    {"max_iterations": 0},
    {"max_iterations": True},
    {"agent_radius": -1.0},
    {"grid_step": "5"},
    {"safety_margin": "2"},
    {"max_iterations": 10.0},
])
def test_invalid_scenario_raises(kwargs):
    with pytest.raises(ConfigurationError):
        PlanningScenario(start=(0.0, 0.0, 0.0), goal=(1.0, 0.0, 0.0), **kwargs)


def test_scenario_accepts_obstacle_mappings():
    scenario = PlanningScenario(
        start=[0, 0, 0],
        goal=[10, 0, 0],
        obstacles=({"position": [5, 20, 0], "radius": 2},),
    )
    assert scenario.start == (0.0, 0.0, 0.0)
    assert scenario.obstacles == (Obstacle(position=(5.0, 20.0, 0.0), radius=2.0),)


def test_numpy_scalars_are_accepted():
    scenario = PlanningScenario(
        start=(0.0, 0.0, 0.0),
        goal=(1.0, 0.0, 0.0),
        grid_step=np.float64(2.5),
        max_iterations=np.int64(50),
    )
    assert scenario.max_iterations == 50
    assert type(scenario.max_iterations) is int
    assert scenario.grid_step == 2.5


def test_diagonal_goal_on_fine_grid():
    scenario = PlanningScenario(
        start=(0.0, 0.0, 0.0),
        goal=(10.0, 0.0, 10.0),
        obstacles=(),
        grid_step=2.0,
        agent_radius=1.0,
        max_iterations=100,
    )
    path = create_grid_path(scenario)
    assert path[0] == (0.0, 0.0, 0.0)
    assert path[-1] == (10.0, 0.0, 10.0)


def test_exhausted_open_set_falls_back_to_detour(caplog):
    # start above the ceiling leaves no admissible neighbor
    scenario = PlanningScenario(
        start=(0.0, 60.0, 0.0),
        goal=(40.0, 0.0, 0.0),
        obstacles=(Obstacle(position=(20.0, 30.0, 0.0), radius=5.0),),
        grid_step=5.0,
        agent_radius=0.0,
    )
    with caplog.at_level(logging.WARNING):
        path = create_grid_path(scenario)

    assert path == [(0.0, 60.0, 0.0), (20.0, 80.0, 0.0), (40.0, 0.0, 0.0)]
    assert any("exhausted open set" in r.message for r in caplog.records)


def test_equal_cost_ties_expand_in_insertion_order():
    # (10, 0, -10), (10, 0, 10) and (10, 10, 0) share the lowest f; the first
    # inserted one is expanded first and reaches the goal
    scenario = PlanningScenario(
        start=(0.0, 0.0, 0.0),
        goal=(20.0, 0.0, 0.0),
        obstacles=(Obstacle(position=(10.0, 0.0, 0.0), radius=3.0),),
        grid_step=10.0,
        agent_radius=0.0,
    )
    assert create_grid_path(scenario) == [(0.0, 0.0, 0.0), (10.0, 0.0, -10.0), (20.0, 0.0, 0.0)]
