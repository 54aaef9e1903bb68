import logging
from typing import Optional, Sequence

import numpy as np
import matplotlib.pyplot as plt

from ihda.arm import JointedArm


def _show_and_close(fig, *, do_show: bool = True, out_path: Optional[str] = None) -> None:
    r"""
    Optionally save and show a figure, then always close it.

    ``plt.show()`` may be a no-op in headless mode (see
    :func:`ihda.main.apply_plotting_guard`); the figure is closed in every
    case so repeated calls do not accumulate memory.
    """
    fig.tight_layout()
    if out_path:
        fig.savefig(out_path, dpi=120)
        logging.info("Saved arm plot to %s", out_path)
    if do_show:
        plt.show()
    plt.close(fig)


def plot_arm_path(arm: JointedArm,
                  path: Sequence[Sequence[float]],
                  target: Optional[Sequence[float]] = None,
                  *,
                  max_poses: int = 8,
                  show: bool = True,
                  out_path: Optional[str] = None) -> None:
    r"""
    Draw a configuration path of ``arm`` in 3D.

    Up to ``max_poses`` evenly spaced poses are drawn as joint polylines
    (start faint, goal solid) and the end-effector trajectory
    :math:`\mathbf{q}_K(t)` is traced through every pose of the path.

    Parameters
    ----------
    arm : JointedArm
        Geometry used for forward kinematics.
    path : sequence of array_like
        Unit-cube configurations, start first.
    target : array_like, optional
        Target point, drawn as a marker.
    max_poses : int, optional
        Number of intermediate poses to draw (default ``8``).
    show : bool, optional
        Call ``plt.show()`` (default ``True``).
    out_path : str, optional
        Also save the figure to this file.
    """
    if len(path) == 0:
        logging.info("Empty path; nothing to plot.")
        return

    fig = plt.figure(figsize=(7, 6))
    ax = fig.add_subplot(111, projection="3d")

    picks = np.unique(np.linspace(0, len(path) - 1, num=min(max_poses, len(path))).round().astype(int))
    for k, idx in enumerate(picks):
        q = arm.joint_positions(path[idx])
        alpha = 0.25 + 0.75 * (k / max(1, len(picks) - 1))
        ax.plot(q[:, 0], q[:, 1], q[:, 2], "-o", color="tab:blue", alpha=alpha, markersize=3)

    ee = np.array([arm.end_effector(v) for v in path])
    ax.plot(ee[:, 0], ee[:, 1], ee[:, 2], "--", color="tab:orange", label="end effector")
    if target is not None:
        t = np.asarray(target, dtype=np.float64)
        ax.scatter([t[0]], [t[1]], [t[2]], color="tab:red", marker="x", s=60, label="target")

    ax.set_xlabel("x")
    ax.set_ylabel("y")
    ax.set_zlabel("z")
    ax.set_title(f"Arm reach path ({len(path)} poses)")
    ax.legend(loc="upper left")
    _show_and_close(fig, do_show=show, out_path=out_path)
