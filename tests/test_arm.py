import sys
from pathlib import Path
sys.path.append(str(Path(__file__).resolve().parents[1]))

import numpy as np
import pytest

from ihda.arm import ArmJoint, ArmReachPlanner, JointedArm
from ihda.errors import InvalidDimensionError
from ihda.search import SearchState
from ihda.spherical import unit_vector_from_uv


def _centre(cells, s):
    return (np.asarray(cells, dtype=float) + 0.5) / s


def test_forward_kinematics():
    arm = JointedArm([ArmJoint(2.0), ArmJoint(0.5)], base=[1.0, 2.0, 3.0])
    q = arm.joint_positions([0.0, 0.5, 0.25, 0.5])
    assert q.shape == (3, 3)
    assert np.allclose(q, [[1, 2, 3], [3, 2, 3], [3, 2, 3.5]])
    assert np.allclose(arm.end_effector([0.0, 0.5, 0.25, 0.5]), [3, 2, 3.5])
    assert arm.reach == pytest.approx(2.5)
    assert arm.dimensions == 4
    assert arm.wrapping == [True, False, True, False]
    with pytest.raises(InvalidDimensionError):
        arm.joint_positions([0.0, 0.5])


def test_joint_limits():
    arm = JointedArm([ArmJoint(1.0, max_rotation=90.0, min_bend=10.0, max_bend=170.0)])
    assert arm.within_limits([0.1, 0.5])
    assert not arm.within_limits([0.5, 0.5])
    assert not arm.within_limits([0.1, 0.02])
    assert not arm.within_limits([0.1, 0.99])


def test_invalid_arms():
    with pytest.raises(ValueError):
        ArmJoint(0.0)
    with pytest.raises(ValueError):
        JointedArm([])


def test_rest_values_follow_directions():
    arm = JointedArm([ArmJoint(1.0, direction=(1, 0, 0)), ArmJoint(1.0, direction=(0, 3, 0))])
    assert np.allclose(arm.rest_values(), [0.0, 0.5, 0.0, 0.0])
    with pytest.raises(InvalidDimensionError):
        arm.values_from_directions([(1, 0, 0)])


def test_single_joint_reaches_cell_centre_target():
    s = 8
    goal_values = _centre([5, 2], s)
    target = unit_vector_from_uv(*goal_values)
    arm = JointedArm([ArmJoint(1.0)])
    planner = ArmReachPlanner(arm, target, subdivisions=s, goal_tolerance=1e-9, steps_per_tick=10)

    path = planner.solve()
    assert path is not None
    assert planner.search.state is SearchState.SUCCEEDED
    assert np.allclose(path[0], _centre([0, 4], s))
    assert np.allclose(path[-1], goal_values)
    assert planner.ticks >= 1

    frame = planner.path_frame(path)
    assert list(frame.columns) == ["step", "rotation_0", "bend_0", "ee_x", "ee_y", "ee_z", "distance"]
    assert len(frame) == len(path)
    assert frame["distance"].iloc[-1] == pytest.approx(0.0, abs=1e-9)
    assert frame["step"].tolist() == list(range(len(path)))


def test_two_joint_reach_respects_limits():
    s = 8
    arm = JointedArm([ArmJoint(1.0, min_bend=10.0, max_bend=170.0),
                      ArmJoint(1.0, min_bend=10.0, max_bend=170.0)])
    goal_values = _centre([1, 2, 6, 3], s)
    target = arm.end_effector(goal_values)
    planner = ArmReachPlanner(arm, target, subdivisions=s, goal_tolerance=1e-6)

    path = planner.solve()
    assert path is not None
    assert np.linalg.norm(arm.end_effector(path[-1]) - target) <= 1e-6
    for values in path:
        assert arm.within_limits(values)


def test_tick_budget_stops_search():
    arm = JointedArm([ArmJoint(1.0), ArmJoint(1.0)])
    planner = ArmReachPlanner(arm, [10.0, 10.0, 10.0], subdivisions=8, steps_per_tick=1)
    assert planner.solve(max_ticks=3) is None
    assert planner.ticks == 3
    assert planner.search.searching

    planner.begin()
    assert planner.ticks == 0
    assert planner.tick(steps=2)
    assert planner.search.expansions == 2


def test_solve_uses_per_call_step_budget():
    arm = JointedArm([ArmJoint(1.0)])
    planner = ArmReachPlanner(arm, [5.0, 0.0, 0.0], subdivisions=8, steps_per_tick=1000)
    assert planner.solve(steps_per_tick=2, max_ticks=2) is None
    assert planner.search.expansions == 4
