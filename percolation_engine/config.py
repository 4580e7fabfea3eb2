"""
Configuration loader for the percolation engine.

Loads JSON config files, validates fields, and builds the random source,
grid and parameter sweep described by a config.

Example
-------
{
    "grid": {"width": 360, "height": 180},
    "parameter": 0.5,
    "seed": 42,
    "monte_carlo": {"trials": 20, "sweep": {"start": 0.3, "stop": 0.7, "num": 9}},
    "render": {"viewport_width": 1440, "viewport_height": 720}
}
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import numpy as np

from .grid import PercolationGrid
from .random_source import RandomSource


# ---------------------------------------------------------------------------
# Types
# ---------------------------------------------------------------------------

ConfigDict = dict[str, Any]


# ---------------------------------------------------------------------------
# Defaults
# ---------------------------------------------------------------------------

DEFAULT_TRIALS = 20
DEFAULT_SWEEP = {"start": 0.0, "stop": 1.0, "num": 11}


# ---------------------------------------------------------------------------
# Loader
# ---------------------------------------------------------------------------


def load_config(path: str | Path) -> ConfigDict:
    """Load and validate a JSON configuration file.

    Parameters
    ----------
    path : str or Path
        Path to the JSON configuration file.

    Returns
    -------
    ConfigDict
        Validated configuration dictionary.

    Raises
    ------
    ValueError
        If required fields are missing or values are invalid.
    FileNotFoundError
        If the config file does not exist.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    with path.open("r") as fh:
        cfg: ConfigDict = json.load(fh)

    validate_config(cfg)
    return cfg


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _check_probability(name: str, value: Any) -> None:
    if not isinstance(value, (int, float)) or isinstance(value, bool):
        raise ValueError(f"{name} must be a number; got {value!r}")
    if not (0.0 <= float(value) <= 1.0):
        raise ValueError(f"{name} must be in [0, 1]; got {value!r}")


def validate_config(cfg: ConfigDict) -> None:
    """Validate top-level config fields.

    Raises
    ------
    ValueError
        On any validation failure.
    """
    required_top = {"grid", "parameter", "seed"}
    missing = required_top - cfg.keys()
    if missing:
        raise ValueError(f"Config missing required fields: {missing}")

    grid_cfg = cfg["grid"]
    for dim in ("width", "height"):
        if dim not in grid_cfg:
            raise ValueError(f"grid.{dim} is required")
        if not _is_int(grid_cfg[dim]) or grid_cfg[dim] <= 0:
            raise ValueError(f"grid.{dim} must be a positive integer; got {grid_cfg[dim]!r}")

    _check_probability("parameter", cfg["parameter"])

    if not _is_int(cfg["seed"]) or cfg["seed"] < 0:
        raise ValueError(f"seed must be a non-negative integer; got {cfg['seed']!r}")

    mc_cfg = cfg.get("monte_carlo")
    if mc_cfg is not None:
        trials = mc_cfg.get("trials", DEFAULT_TRIALS)
        if not _is_int(trials) or trials < 2:
            raise ValueError(f"monte_carlo.trials must be an integer >= 2; got {trials!r}")
        if "parameters" in mc_cfg and "sweep" in mc_cfg:
            raise ValueError("monte_carlo accepts either 'parameters' or 'sweep', not both")
        if "parameters" in mc_cfg:
            values = mc_cfg["parameters"]
            if not isinstance(values, list) or not values:
                raise ValueError("monte_carlo.parameters must be a non-empty list")
            for i, p in enumerate(values):
                _check_probability(f"monte_carlo.parameters[{i}]", p)
        if "sweep" in mc_cfg:
            sweep = {**DEFAULT_SWEEP, **mc_cfg["sweep"]}
            _check_probability("monte_carlo.sweep.start", sweep["start"])
            _check_probability("monte_carlo.sweep.stop", sweep["stop"])
            if not _is_int(sweep["num"]) or sweep["num"] < 1:
                raise ValueError(
                    f"monte_carlo.sweep.num must be a positive integer; got {sweep['num']!r}"
                )

    render_cfg = cfg.get("render")
    if render_cfg is not None:
        for dim in ("viewport_width", "viewport_height"):
            if dim in render_cfg and (not _is_int(render_cfg[dim]) or render_cfg[dim] <= 0):
                raise ValueError(
                    f"render.{dim} must be a positive integer; got {render_cfg[dim]!r}"
                )


# ---------------------------------------------------------------------------
# Builders
# ---------------------------------------------------------------------------


def build_random_source(cfg: ConfigDict) -> RandomSource:
    """Build a seeded ``RandomSource`` from a config dict."""
    return RandomSource(int(cfg["seed"]))


def build_grid(cfg: ConfigDict) -> PercolationGrid:
    """Build a ``PercolationGrid`` owning the config's random source."""
    return PercolationGrid(
        int(cfg["grid"]["width"]),
        int(cfg["grid"]["height"]),
        parameter=float(cfg["parameter"]),
        rng=build_random_source(cfg),
    )


def sweep_parameters(cfg: ConfigDict) -> list[float]:
    """Parameter values for the Monte Carlo sweep, or ``[]`` if none is configured.

    An explicit ``parameters`` list wins; otherwise ``sweep`` is expanded with
    ``numpy.linspace`` (inclusive of both ends).
    """
    mc_cfg = cfg.get("monte_carlo")
    if mc_cfg is None:
        return []
    if "parameters" in mc_cfg:
        return [float(p) for p in mc_cfg["parameters"]]
    sweep = {**DEFAULT_SWEEP, **mc_cfg.get("sweep", {})}
    values = np.linspace(float(sweep["start"]), float(sweep["stop"]), int(sweep["num"]))
    return [float(v) for v in values]


def monte_carlo_trials(cfg: ConfigDict) -> int:
    return int(cfg.get("monte_carlo", {}).get("trials", DEFAULT_TRIALS))
