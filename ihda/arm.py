r"""
Jointed-arm reach planning on top of :class:`ihda.search.IHDAStar`.

Each arm segment is steered by two unit-square coordinates :math:`(u, v)`:
a *rotation* :math:`u` (azimuth, wraps, :math:`u\cdot 360^\circ`) and a
*bend* :math:`v` (polar angle, does not wrap, :math:`v\cdot 180^\circ`). An arm
of :math:`K` segments is therefore a point in :math:`[0,1)^{2K}`, the space
the search explores. Joint positions follow by forward kinematics,

.. math::

    \mathbf{q}_0 = \mathbf{b},\qquad
    \mathbf{q}_{i+1} = \mathbf{q}_i + \ell_i\,\hat{\mathbf{d}}(u_i, v_i),

with :math:`\hat{\mathbf{d}}` from :func:`ihda.spherical.unit_vector_from_uv`.
The search payload of a configuration is its end effector
:math:`\mathbf{q}_K`; steps cost the distance the end effector travels and the
heuristic is the straight-line distance to the target, which is consistent.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from ihda.errors import InvalidDimensionError
from ihda.search import IHDAStar, SearchState
from ihda.spherical import unit_vector_from_uv, uv_from_unit_vector

logger = logging.getLogger(__name__)


@dataclass
class ArmJoint:
    """
    A joint and the rigid segment it drives.

    Rotation limits are in degrees on the wrapping ``[0, 360]`` axis, bend
    limits in degrees on the ``[0, 180]`` axis. ``direction`` is the
    segment's rest direction, used to derive a start configuration.
    """

    length: float
    min_rotation: float = 0.0
    max_rotation: float = 360.0
    min_bend: float = 0.0
    max_bend: float = 180.0
    direction: Tuple[float, float, float] = (1.0, 0.0, 0.0)

    def __post_init__(self) -> None:
        self.length = float(self.length)
        if self.length <= 0.0:
            raise ValueError(f"joint length must be > 0, got {self.length}")
        self.direction = tuple(float(c) for c in self.direction)  # type: ignore[assignment]

    def allows(self, rotation_deg: float, bend_deg: float) -> bool:
        return (self.min_rotation <= rotation_deg <= self.max_rotation
                and self.min_bend <= bend_deg <= self.max_bend)


@dataclass
class JointedArm:
    """Chain of :class:`ArmJoint` segments anchored at ``base``."""

    joints: List[ArmJoint]
    base: np.ndarray = field(default_factory=lambda: np.zeros(3))

    def __post_init__(self) -> None:
        if not self.joints:
            raise ValueError("an arm needs at least one joint")
        self.base = np.asarray(self.base, dtype=np.float64).reshape(3)

    @property
    def arm_count(self) -> int:
        return len(self.joints)

    @property
    def dimensions(self) -> int:
        return 2 * len(self.joints)

    @property
    def wrapping(self) -> List[bool]:
        """Rotation axes wrap, bend axes do not."""
        return [True, False] * len(self.joints)

    @property
    def reach(self) -> float:
        return float(sum(j.length for j in self.joints))

    def _check(self, values: Sequence[float]) -> np.ndarray:
        v = np.asarray(values, dtype=np.float64).reshape(-1)
        if v.size != self.dimensions:
            raise InvalidDimensionError(f"expected {self.dimensions} values, got {v.size}")
        return v

    def joint_positions(self, values: Sequence[float]) -> np.ndarray:
        """``(K+1, 3)`` array of joint positions, base first, end effector last."""
        v = self._check(values)
        out = np.empty((self.arm_count + 1, 3), dtype=np.float64)
        out[0] = self.base
        for i, joint in enumerate(self.joints):
            out[i + 1] = out[i] + joint.length * unit_vector_from_uv(v[2 * i], v[2 * i + 1])
        return out

    def end_effector(self, values: Sequence[float]) -> np.ndarray:
        return self.joint_positions(values)[-1]

    def within_limits(self, values: Sequence[float]) -> bool:
        v = self._check(values)
        for i, joint in enumerate(self.joints):
            if not joint.allows(v[2 * i] * 360.0, v[2 * i + 1] * 180.0):
                return False
        return True

    def values_from_directions(self, directions: Sequence[Sequence[float]]) -> np.ndarray:
        """Unit-cube configuration that points segment ``i`` along ``directions[i]``."""
        if len(directions) != self.arm_count:
            raise InvalidDimensionError(
                f"expected {self.arm_count} directions, got {len(directions)}"
            )
        values = np.empty(self.dimensions, dtype=np.float64)
        for i, d in enumerate(directions):
            values[2 * i], values[2 * i + 1] = uv_from_unit_vector(d)
        return values

    def rest_values(self) -> np.ndarray:
        return self.values_from_directions([j.direction for j in self.joints])


class ArmReachPlanner:
    r"""
    Drives an :class:`~ihda.search.IHDAStar` search that moves an arm's end
    effector to within ``goal_tolerance`` of ``target``.

    The search is stepped in *ticks* of at most ``steps_per_tick`` expansions,
    which is how a frame-based host bounds the work it spends per frame.

    Parameters
    ----------
    arm : JointedArm
        Arm geometry and joint limits.
    target : array_like, shape (3,)
        Point to reach.
    subdivisions : int, optional
        Grid cells per unit-cube axis (default ``32``).
    goal_tolerance : float, optional
        Maximum end-effector distance to the target (default ``0.05``).
    steps_per_tick : int, optional
        Search steps per :meth:`tick` (default ``1000``).
    """

    def __init__(self,
                 arm: JointedArm,
                 target: Sequence[float],
                 subdivisions: int = 32,
                 goal_tolerance: float = 0.05,
                 steps_per_tick: int = 1000) -> None:
        self.arm = arm
        self.target = np.asarray(target, dtype=np.float64).reshape(3)
        self.goal_tolerance = float(goal_tolerance)
        self.steps_per_tick = int(steps_per_tick)
        self.ticks = 0
        self.search: IHDAStar[np.ndarray] = IHDAStar(
            arm.dimensions, subdivisions, arm.wrapping,
            compute_payload=self._payload,
            compute_step_cost=self._step_cost,
            compute_heuristic=self._heuristic,
            is_traversible=self._traversible,
            is_goal=self._goal,
        )

    # ------------------------------------------------------------------
    # Search callbacks
    def _payload(self, values: np.ndarray) -> np.ndarray:
        return self.arm.end_effector(values)

    @staticmethod
    def _step_cost(a: np.ndarray, _av: np.ndarray, b: np.ndarray, _bv: np.ndarray) -> float:
        return float(np.linalg.norm(b - a))

    def _heuristic(self, end_effector: np.ndarray, _values: np.ndarray) -> float:
        return float(np.linalg.norm(self.target - end_effector))

    def _goal(self, end_effector: np.ndarray, values: np.ndarray) -> bool:
        return self._heuristic(end_effector, values) <= self.goal_tolerance

    def _traversible(self, _end_effector: np.ndarray, values: np.ndarray) -> bool:
        return self.arm.within_limits(values)

    # ------------------------------------------------------------------
    def begin(self, start_values: Optional[Sequence[float]] = None) -> None:
        """Start a new search from ``start_values`` (the arm's rest pose by default)."""
        if start_values is None:
            start_values = self.arm.rest_values()
        self.ticks = 0
        self.search.begin_search(start_values)

    def tick(self, steps: Optional[int] = None) -> bool:
        """Run one tick of search steps; return ``True`` while still searching."""
        self.search.run(self.steps_per_tick if steps is None else int(steps))
        self.ticks += 1
        return self.search.searching

    def solve(self,
              start_values: Optional[Sequence[float]] = None,
              steps_per_tick: Optional[int] = None,
              max_ticks: Optional[int] = None) -> Optional[List[np.ndarray]]:
        """
        Search until a path is found, the grid is exhausted or ``max_ticks``
        ticks elapsed. Returns the configuration path or ``None``.
        """
        self.begin(start_values)
        while self.tick(steps_per_tick):
            if max_ticks is not None and self.ticks >= max_ticks:
                logger.debug("Tick budget of %d exhausted with %d open nodes",
                             max_ticks, self.search.open_count)
                break
        if self.search.state is SearchState.SUCCEEDED:
            logger.debug("Reach path of %d poses found in %d ticks", len(self.search.path), self.ticks)
        return self.search.path

    def path_frame(self, path: Sequence[Sequence[float]]) -> pd.DataFrame:
        """
        Tabulate a configuration path: one row per pose with the rotation/bend
        fractions of every joint, the end effector and its distance to the target.
        """
        rows = []
        for step, values in enumerate(path):
            v = np.asarray(values, dtype=np.float64)
            ee = self.arm.end_effector(v)
            row = {"step": step}
            for i in range(self.arm.arm_count):
                row[f"rotation_{i}"] = float(v[2 * i])
                row[f"bend_{i}"] = float(v[2 * i + 1])
            row.update({"ee_x": ee[0], "ee_y": ee[1], "ee_z": ee[2],
                        "distance": float(np.linalg.norm(self.target - ee))})
            rows.append(row)
        return pd.DataFrame(rows)
