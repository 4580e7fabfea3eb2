from __future__ import annotations

import json
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from percolation_engine.runner import main, _config_hash


CFG = {
    "grid": {"width": 6, "height": 4},
    "parameter": 0.5,
    "seed": 3,
    "monte_carlo": {"trials": 3, "parameters": [0.0, 0.5, 1.0]},
    "render": {"viewport_width": 24, "viewport_height": 16},
}


def _write(tmp_path, cfg):
    path = tmp_path / "cfg.json"
    path.write_text(json.dumps(cfg), encoding="utf-8")
    return path


def test_main_writes_all_outputs(tmp_path, capsys):
    out = tmp_path / "out"
    main([str(_write(tmp_path, CFG)), "--output-dir", str(out)])

    for name in ("config_snapshot.json", "experiment_metadata.json", "grid.png",
                 "cluster_sizes.csv", "grid_summary.json", "sweep_results.csv",
                 "summary.json"):
        assert (out / name).exists(), name

    snapshot = json.loads((out / "config_snapshot.json").read_text())
    assert snapshot["sha256"] == _config_hash(CFG)

    grid_summary = json.loads((out / "grid_summary.json").read_text())
    assert grid_summary["n_cells"] == 24
    assert grid_summary["width"] == 6

    summary = json.loads((out / "summary.json").read_text())
    assert summary["n_levels"] == 3
    assert summary["n_decreasing_steps"] == 0

    assert "Results saved to" in capsys.readouterr().out


def test_skip_sweep(tmp_path):
    out = tmp_path / "out"
    main([str(_write(tmp_path, CFG)), "--output-dir", str(out), "--skip-sweep"])
    assert (out / "grid_summary.json").exists()
    assert not (out / "sweep_results.csv").exists()


def test_single_pass_only_config(tmp_path):
    cfg = {k: v for k, v in CFG.items() if k not in ("monte_carlo", "render")}
    out = tmp_path / "out"
    main([str(_write(tmp_path, cfg)), "--output-dir", str(out)])
    assert (out / "grid.png").exists()
    assert not (out / "summary.json").exists()


def test_grid_summary_reproducible(tmp_path):
    cfg_path = _write(tmp_path, CFG)
    main([str(cfg_path), "--output-dir", str(tmp_path / "a"), "--skip-sweep"])
    main([str(cfg_path), "--output-dir", str(tmp_path / "b"), "--skip-sweep"])
    a = (tmp_path / "a" / "cluster_sizes.csv").read_text()
    b = (tmp_path / "b" / "cluster_sizes.csv").read_text()
    assert a == b
