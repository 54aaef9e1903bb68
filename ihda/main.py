#!/usr/bin/env python3
r"""
Jointed-arm reach runner (headless-safe).

Loads an arm description from JSON, plans a path of joint configurations that
brings the end effector within a tolerance of a target using the incremental
A* search, and optionally writes the path as CSV and plots it.

Configuration
-------------
The JSON file holds::

    {
      "base": [0, 0, 0],
      "joints": [{"length": 1.0, "min_bend": 10, "max_bend": 170,
                  "direction": [1, 0, 0]}, ...],
      "target": [1.0, 1.0, 0.0],
      "subdivisions": 16,
      "goal_tolerance": 0.1,
      "steps_per_tick": 1000,
      "max_ticks": 200
    }

Joint keys not given take the :class:`ihda.arm.ArmJoint` defaults; top-level
keys not given take :data:`DEFAULT_CONFIG`. Command-line flags override both.

CLI overview
------------
.. code-block:: bash

   ihda-reach --config config.json --path-out path.csv
   ihda-reach --config config.json --target 0.5 1.5 0 --subdivisions 24 --plot
"""

from __future__ import annotations

import argparse
import json
import logging
import os
import time
from pathlib import Path
from typing import Any, Dict, List, MutableMapping, Optional, Sequence

import numpy as np

from ihda.arm import ArmJoint, ArmReachPlanner, JointedArm
from ihda.profiling import prof

try:
    import orjson as _orjson
except ImportError:  # pragma: no cover
    _orjson = None


DEFAULT_CONFIG: Dict[str, Any] = {
    "base": [0.0, 0.0, 0.0],
    "target": [1.0, 1.0, 0.0],
    "subdivisions": 16,
    "goal_tolerance": 0.1,
    "steps_per_tick": 1000,
    "max_ticks": 200,
}


def build_parser() -> argparse.ArgumentParser:
    r"""
    Construct the command-line interface.

    Returns
    -------
    argparse.ArgumentParser
        Parser with options for the arm config, search resolution, per-tick
        step budget, outputs, plotting and profiling.
    """
    p = argparse.ArgumentParser(description="Plan a jointed-arm reach with incremental A*.")
    p.add_argument("--config", type=str, default="config.json",
                   help="Path to JSON arm/search config (default: config.json).")
    p.add_argument("--target", type=float, nargs=3, default=None, metavar=("X", "Y", "Z"),
                   help="Override the target point.")
    p.add_argument("--subdivisions", type=int, default=None,
                   help="Grid cells per configuration axis.")
    p.add_argument("--tolerance", type=float, default=None,
                   help="Goal distance tolerance for the end effector.")
    p.add_argument("--steps-per-tick", type=int, default=None,
                   help="Search steps per host tick.")
    p.add_argument("--max-ticks", type=int, default=None,
                   help="Give up after this many ticks (0 = no limit).")
    p.add_argument("--path-out", type=str, default=None,
                   help="If set, write the found path as CSV to this file.")
    p.add_argument("--plot", action="store_true", default=False,
                   help="Show a 3D plot of the found path (default: False).")
    p.add_argument("--plot-out", type=str, default=None,
                   help="If set, save the path plot to this image file.")
    p.add_argument("--profile", action="store_true", default=False,
                   help="Enable cProfile around the search.")
    p.add_argument("--profile-out", type=str, default=None,
                   help="If set, write pstats text to this file.")
    p.add_argument("-v", "--verbose", action="store_true",
                   help="Enable verbose logging.")
    return p


def setup_logging(verbose: bool = False) -> None:
    """Configure process-wide logging: DEBUG with ``verbose``, INFO otherwise."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s | %(levelname)-8s | %(message)s",
        datefmt="%H:%M:%S",
    )


def apply_plotting_guard(enable_plots: bool) -> None:
    """
    Force the non-interactive ``Agg`` backend when figures are not shown.

    Must run before :mod:`ihda.plotting` (and so :mod:`matplotlib.pyplot`)
    is imported.
    """
    if enable_plots:
        return
    os.environ.setdefault("MPLBACKEND", "Agg")
    import matplotlib
    matplotlib.use("Agg", force=True)


def load_config(config_path: Path) -> MutableMapping[str, Any]:
    r"""
    Load a JSON configuration with optional :mod:`orjson` acceleration.

    Raises
    ------
    ValueError
        If the file cannot be read or parsed.
    """
    try:
        if _orjson is not None:
            return _orjson.loads(config_path.read_bytes())
        with config_path.open("r", encoding="utf-8") as f:
            return json.load(f)
    except (OSError, ValueError) as e:
        raise ValueError(f"Failed to parse {config_path}: {e}") from e


def _deep_update(d: dict, u: dict) -> dict:
    """Recursively merge ``u`` over ``d`` without mutating either."""
    out = dict(d)
    for k, v in u.items():
        if isinstance(v, dict) and isinstance(out.get(k), dict):
            out[k] = _deep_update(out[k], v)
        else:
            out[k] = v
    return out


def resolve_config(args: argparse.Namespace) -> Dict[str, Any]:
    """Defaults, then the config file, then command-line overrides."""
    config = _deep_update(DEFAULT_CONFIG, dict(load_config(Path(args.config))))
    overrides = {
        "target": args.target,
        "subdivisions": args.subdivisions,
        "goal_tolerance": args.tolerance,
        "steps_per_tick": args.steps_per_tick,
        "max_ticks": args.max_ticks,
    }
    for key, value in overrides.items():
        if value is not None:
            config[key] = value
    return config


def build_arm(config: MutableMapping[str, Any]) -> JointedArm:
    """Instantiate the :class:`JointedArm` described by ``config``."""
    if "joints" not in config:
        raise KeyError(f"Missing 'joints' in config. Available keys: {', '.join(config.keys())}")
    joints: List[ArmJoint] = [ArmJoint(**spec) for spec in config["joints"]]
    return JointedArm(joints=joints, base=np.asarray(config.get("base", (0.0, 0.0, 0.0))))


def main(argv: Optional[Sequence[str]] = None) -> int:
    r"""
    Reach pipeline: **config → arm → search (ticked) → outputs**.

    Returns
    -------
    int
        ``0`` when a path was found, ``1`` otherwise.
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(args.verbose)
    apply_plotting_guard(args.plot)

    cfg_path = Path(args.config)
    logging.info("Reading config from %s", cfg_path)
    config = resolve_config(args)
    arm = build_arm(config)

    max_ticks = int(config["max_ticks"]) or None
    planner = ArmReachPlanner(
        arm,
        target=config["target"],
        subdivisions=int(config["subdivisions"]),
        goal_tolerance=float(config["goal_tolerance"]),
        steps_per_tick=int(config["steps_per_tick"]),
    )
    logging.info(
        "Arm with %d joints (reach %.3f) -> target %s | %d-D grid, %d subdivisions, tolerance %.3g",
        arm.arm_count, arm.reach, list(planner.target), arm.dimensions,
        int(config["subdivisions"]), planner.goal_tolerance,
    )

    t0 = time.time()
    with prof(args.profile, out_path=args.profile_out):
        path = planner.solve(max_ticks=max_ticks)
    t1 = time.time()

    search = planner.search
    logging.info("Search %s after %d ticks: %d expansions, %d nodes (%.3fs)",
                 search.state.value, planner.ticks, search.expansions, search.node_count, t1 - t0)

    if path is None:
        logging.warning("No reach path found for target %s.", list(planner.target))
        return 1

    frame = planner.path_frame(path)
    final = frame.iloc[-1]
    logging.info("Path of %d poses; final end effector (%.3f, %.3f, %.3f), distance %.4f",
                 len(frame), final["ee_x"], final["ee_y"], final["ee_z"], final["distance"])

    if args.path_out:
        frame.to_csv(args.path_out, index=False)
        logging.info("Wrote path to %s", args.path_out)

    if args.plot or args.plot_out:
        import ihda.plotting as ihda_plot  # noqa: WPS433
        ihda_plot.plot_arm_path(arm, path, planner.target, show=args.plot, out_path=args.plot_out)

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
