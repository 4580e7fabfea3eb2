"""
Runner script for the percolation engine.

Loads a JSON config, regenerates one grid at the configured parameter, and
optionally runs a Monte Carlo parameter sweep.

Single pass
    Outputs grid.png (scaled to the configured viewport), cluster_sizes.csv
    and grid_summary.json.

Parameter sweep (when ``monte_carlo`` is configured)
    Outputs sweep_results.csv and summary.json.

Usage
-----
    python -m percolation_engine.runner config.json [--output-dir results/]

All outputs are written to the specified directory.  A config snapshot
with SHA-256 hash is always saved alongside results for reproducibility.
"""

from __future__ import annotations

import argparse
import csv
import hashlib
import json
import math
import time
from pathlib import Path

from .config import (
    load_config,
    build_grid,
    sweep_parameters,
    monte_carlo_trials,
)
from .metrics import cluster_sizes, cluster_summary, spanning_clusters
from .monte_carlo import parameter_sweep, sweep_to_records, sweep_trend
from .render import save_png


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Percolation engine runner: one clustering pass plus an optional p sweep."
    )
    parser.add_argument("config", help="Path to JSON configuration file.")
    parser.add_argument(
        "--output-dir",
        default="results",
        help="Directory for output files (default: results/).",
    )
    parser.add_argument(
        "--skip-sweep",
        action="store_true",
        help="Only run the single pass, even if monte_carlo is configured.",
    )
    return parser.parse_args(argv)


# ---------------------------------------------------------------------------
# Filesystem helpers
# ---------------------------------------------------------------------------


def _ensure_dir(path: Path) -> None:
    path.mkdir(parents=True, exist_ok=True)


def _write_csv(path: Path, fieldnames: list[str], rows: list[dict]) -> None:
    with path.open("w", newline="") as fh:
        writer = csv.DictWriter(fh, fieldnames=fieldnames)
        writer.writeheader()
        writer.writerows(rows)


def _config_hash(cfg: dict) -> str:
    """Compute a SHA-256 hash of the JSON-serialised config for reproducibility."""
    serialised = json.dumps(cfg, sort_keys=True).encode("utf-8")
    return hashlib.sha256(serialised).hexdigest()


def _nan_to_none(v):
    """Replace float NaN with None for valid JSON serialisation."""
    return None if (isinstance(v, float) and math.isnan(v)) else v


def _save_config_snapshot(output_dir: Path, cfg: dict) -> None:
    snapshot = {
        "config": cfg,
        "sha256": _config_hash(cfg),
    }
    (output_dir / "config_snapshot.json").write_text(json.dumps(snapshot, indent=2))


# ---------------------------------------------------------------------------
# Single pass
# ---------------------------------------------------------------------------


def _run_single_pass(cfg: dict, output_dir: Path) -> dict:
    """Regenerate the configured grid once and write its outputs."""
    grid = build_grid(cfg)
    print(
        f"[Pass] {grid.width}x{grid.height} | p={grid.parameter} | seed={cfg['seed']}"
    )

    t0 = time.perf_counter()
    colors = grid.regenerate()
    elapsed = time.perf_counter() - t0

    summary = cluster_summary(grid.labels)
    spanning = spanning_clusters(grid.labels)
    sizes = cluster_sizes(grid.labels)

    render_cfg = cfg.get("render", {})
    viewport = None
    if "viewport_width" in render_cfg or "viewport_height" in render_cfg:
        viewport = (
            int(render_cfg.get("viewport_width", grid.width)),
            int(render_cfg.get("viewport_height", grid.height)),
        )
    save_png(colors, output_dir / "grid.png", viewport=viewport)

    _write_csv(
        output_dir / "cluster_sizes.csv",
        ["cluster", "size"],
        [{"cluster": k, "size": int(s)} for k, s in enumerate(sizes)],
    )

    grid_summary = {
        "width": grid.width,
        "height": grid.height,
        "parameter": grid.parameter,
        "seed": int(cfg["seed"]),
        "elapsed_seconds": elapsed,
        **summary,
        "spanning_clusters": spanning,
        "percolates": bool(spanning),
    }
    (output_dir / "grid_summary.json").write_text(json.dumps(grid_summary, indent=2))

    _print_pass_summary(grid_summary)
    return grid_summary


def _print_pass_summary(s: dict) -> None:
    sep = "-" * 58
    print(sep)
    print("  Percolation Engine: Single Pass")
    print(sep)
    print(f"  Grid                : {s['width']} x {s['height']}")
    print(f"  Parameter p         : {s['parameter']:.4f}")
    print(f"  Elapsed             : {s['elapsed_seconds']:.2f}s")
    print()
    print(f"  Clusters            : {s['n_clusters']}")
    print(f"  Singletons          : {s['singleton_clusters']}")
    print(f"  Mean cluster size   : {s['mean_cluster_size']:.2f}")
    print(f"  Largest cluster     : {s['largest_cluster']} ({s['largest_fraction']:.4f})")
    print(f"  Percolates          : {'yes' if s['percolates'] else 'no'}")
    print(sep)


# ---------------------------------------------------------------------------
# Monte Carlo sweep
# ---------------------------------------------------------------------------


def _run_sweep(cfg: dict, output_dir: Path) -> None:
    """Run the configured parameter sweep and write its outputs."""
    parameters = sweep_parameters(cfg)
    trials = monte_carlo_trials(cfg)
    width = int(cfg["grid"]["width"])
    height = int(cfg["grid"]["height"])
    master_seed = int(cfg["seed"])

    print(
        f"[Sweep] {width}x{height} | {len(parameters)} levels | trials/level={trials}"
    )
    t0 = time.perf_counter()
    results = parameter_sweep(width, height, parameters, trials=trials, seed=master_seed)
    elapsed = time.perf_counter() - t0

    records = sweep_to_records(results)
    _write_csv(
        output_dir / "sweep_results.csv",
        [
            "parameter", "trials", "mean_largest_fraction",
            "variance_largest_fraction", "ci_95_low", "ci_95_high",
            "mean_cluster_count", "percolation_probability",
        ],
        records,
    )

    trend = sweep_trend(results)
    summary_kv = {
        "width": width,
        "height": height,
        "trials_per_level": trials,
        "n_levels": len(parameters),
        "elapsed_sweep_s": round(elapsed, 4),
        "spearman_rho": trend["spearman_rho"],
        "spearman_p_value": trend["spearman_p_value"],
        "n_decreasing_steps": trend["n_decreasing_steps"],
    }
    # NaN arises when the rank correlation is undefined (constant response).
    summary_serialisable = {key: _nan_to_none(v) for key, v in summary_kv.items()}
    (output_dir / "summary.json").write_text(json.dumps(summary_serialisable, indent=2))

    _print_sweep_summary(records, summary_kv)


def _print_sweep_summary(records: list[dict], summary_kv: dict) -> None:
    sep = "-" * 58
    print(sep)
    print("  Percolation Engine: Monte Carlo Sweep")
    print(sep)
    print(f"  {'p':>8}  {'Largest':>9}  {'CI low':>8}  {'CI high':>8}  {'P(span)':>8}")
    for r in records:
        print(
            f"  {r['parameter']:>8.4f}  {r['mean_largest_fraction']:>9.4f}  "
            f"{r['ci_95_low']:>8.4f}  {r['ci_95_high']:>8.4f}  "
            f"{r['percolation_probability']:>8.4f}"
        )
    print()
    print(f"  Spearman ρ (p vs largest) : {summary_kv['spearman_rho']:.4f}")
    print(f"  Decreasing steps          : {summary_kv['n_decreasing_steps']}")
    print(f"  Elapsed                   : {summary_kv['elapsed_sweep_s']:.2f}s")
    print(sep)


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------


def main(argv: list[str] | None = None) -> None:
    args = _parse_args(argv)
    output_dir = Path(args.output_dir)
    _ensure_dir(output_dir)

    cfg = load_config(args.config)
    _save_config_snapshot(output_dir, cfg)

    (output_dir / "experiment_metadata.json").write_text(
        json.dumps(
            {
                "config_file": str(Path(args.config).resolve()),
                "output_dir": str(output_dir.resolve()),
                "config_sha256": _config_hash(cfg),
                "timestamp": time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime()),
            },
            indent=2,
        )
    )

    _run_single_pass(cfg, output_dir)

    if sweep_parameters(cfg) and not args.skip_sweep:
        _run_sweep(cfg, output_dir)

    print(f"  Results saved to : {output_dir.resolve()}")


if __name__ == "__main__":
    main()
