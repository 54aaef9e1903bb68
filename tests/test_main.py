import sys
import json
from pathlib import Path
sys.path.append(str(Path(__file__).resolve().parents[1]))

import numpy as np
import pandas as pd
import pytest

from ihda.arm import ArmJoint, JointedArm
from ihda.main import DEFAULT_CONFIG, build_arm, build_parser, load_config, main, resolve_config

JOINTS = [
    {"length": 1.0, "min_bend": 10, "max_bend": 170, "direction": [1, 0, 0]},
    {"length": 1.0, "min_bend": 10, "max_bend": 170, "direction": [1, 0, 0]},
]


def _reachable_target(s=8):
    arm = JointedArm([ArmJoint(**j) for j in JOINTS])
    values = (np.array([1, 2, 6, 3], dtype=float) + 0.5) / s
    return arm.end_effector(values).tolist()


def _write_config(tmp_path, **overrides):
    cfg = {"base": [0, 0, 0], "joints": JOINTS, "target": _reachable_target(),
           "subdivisions": 8, "goal_tolerance": 1e-6, "steps_per_tick": 500, "max_ticks": 50}
    cfg.update(overrides)
    path = tmp_path / "config.json"
    path.write_text(json.dumps(cfg))
    return path


def test_main_writes_path_csv(tmp_path):
    cfg = _write_config(tmp_path)
    out = tmp_path / "path.csv"
    assert main(["--config", str(cfg), "--path-out", str(out)]) == 0

    df = pd.read_csv(out)
    assert list(df.columns) == ["step", "rotation_0", "bend_0", "rotation_1", "bend_1",
                                "ee_x", "ee_y", "ee_z", "distance"]
    assert df["distance"].iloc[-1] <= 1e-6
    assert np.allclose(df[["ee_x", "ee_y", "ee_z"]].iloc[-1], _reachable_target(), atol=1e-6)
    assert ((df["bend_0"] * 180 >= 10) & (df["bend_0"] * 180 <= 170)).all()


def test_main_plot_and_profile_outputs(tmp_path):
    cfg = _write_config(tmp_path)
    png = tmp_path / "reach.png"
    stats = tmp_path / "prof.txt"
    rc = main(["--config", str(cfg), "--plot-out", str(png),
               "--profile", "--profile-out", str(stats)])
    assert rc == 0
    assert png.exists() and png.stat().st_size > 0
    assert stats.read_text().startswith("[prof] elapsed=")


def test_main_reports_failure_when_budget_runs_out(tmp_path):
    cfg = _write_config(tmp_path, target=[10.0, 10.0, 10.0])
    out = tmp_path / "path.csv"
    rc = main(["--config", str(cfg), "--steps-per-tick", "5", "--max-ticks", "2",
               "--path-out", str(out)])
    assert rc == 1
    assert not out.exists()


def test_cli_overrides_file_and_defaults(tmp_path):
    cfg = tmp_path / "config.json"
    cfg.write_text(json.dumps({"joints": JOINTS, "subdivisions": 20}))
    args = build_parser().parse_args(["--config", str(cfg), "--target", "1", "2", "3",
                                      "--tolerance", "0.2"])
    config = resolve_config(args)
    assert config["subdivisions"] == 20
    assert config["target"] == [1.0, 2.0, 3.0]
    assert config["goal_tolerance"] == 0.2
    assert config["max_ticks"] == DEFAULT_CONFIG["max_ticks"]
    arm = build_arm(config)
    assert arm.arm_count == 2
    assert arm.joints[0].min_bend == 10


def test_config_errors(tmp_path):
    with pytest.raises(KeyError):
        build_arm({"target": [1, 1, 0]})

    bad = tmp_path / "bad.json"
    bad.write_text("{not json")
    with pytest.raises(ValueError):
        load_config(bad)
    with pytest.raises(ValueError):
        load_config(tmp_path / "missing.json")

    cfg = tmp_path / "nojoints.json"
    cfg.write_text(json.dumps({"target": [1, 1, 0]}))
    with pytest.raises(KeyError):
        main(["--config", str(cfg)])
