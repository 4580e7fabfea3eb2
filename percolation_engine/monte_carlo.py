"""
Monte Carlo experiment harness for the percolation engine.

Runs repeated full regenerations of a grid and returns distributional
statistics of the resulting cluster structure.  Each trial uses its own
``RandomSource`` seeded from a deterministically derived sub-seed, so an
entire experiment is reproducible from one master seed.

Design principles
-----------------
* No global RNG state: every trial creates its own ``RandomSource``.
* Parameter sweeps reuse the same trial seeds at every p (common random
  numbers), which keeps comparisons across p low-variance.
* Results are frozen dataclasses holding numpy arrays.
* Confidence intervals use scipy.stats.t (t-distribution, two-tailed).
"""

from __future__ import annotations

import warnings
from dataclasses import dataclass
from typing import Sequence

import numpy as np

from .grid import PercolationGrid
from .metrics import cluster_summary, percolates, spearman_correlation
from .random_source import RandomSource
from .utils import confidence_interval, make_trial_seeds


# ---------------------------------------------------------------------------
# Result container
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class MonteCarloResult:
    """Immutable container for Monte Carlo experiment results.

    Attributes
    ----------
    largest_fractions : np.ndarray, shape (trials,)
        Largest cluster size / number of cells, per trial.
    cluster_counts : np.ndarray, shape (trials,), dtype int
        Number of clusters per trial.
    percolated : np.ndarray, shape (trials,), dtype bool
        Whether some cluster spanned the grid, per trial.
    mean_largest_fraction : float
        Mean of ``largest_fractions``.
    variance_largest_fraction : float
        Sample variance of ``largest_fractions``.
    ci_low, ci_high : float
        95% confidence interval for the mean largest fraction.
    percolation_probability : float
        Fraction of trials that percolated.
    parameter : float
        Probability p used for every trial.
    trials : int
        Number of trials executed.
    seed : int
        Master seed used to derive per-trial seeds.
    width, height : int
        Grid dimensions.
    """
    largest_fractions: np.ndarray
    cluster_counts: np.ndarray
    percolated: np.ndarray
    mean_largest_fraction: float
    variance_largest_fraction: float
    ci_low: float
    ci_high: float
    percolation_probability: float
    parameter: float
    trials: int
    seed: int
    width: int
    height: int

    def summary_dict(self) -> dict:
        """Return a JSON-serialisable summary (no arrays)."""
        return {
            "parameter": self.parameter,
            "trials": self.trials,
            "seed": self.seed,
            "width": self.width,
            "height": self.height,
            "mean_largest_fraction": self.mean_largest_fraction,
            "variance_largest_fraction": self.variance_largest_fraction,
            "ci_95_low": self.ci_low,
            "ci_95_high": self.ci_high,
            "min_largest_fraction": float(np.min(self.largest_fractions)),
            "max_largest_fraction": float(np.max(self.largest_fractions)),
            "mean_cluster_count": float(np.mean(self.cluster_counts)),
            "percolation_probability": self.percolation_probability,
        }


# ---------------------------------------------------------------------------
# Core runner
# ---------------------------------------------------------------------------


def _run_trials(
    width: int,
    height: int,
    parameter: float,
    trial_seeds: Sequence[int],
    seed: int,
) -> MonteCarloResult:
    trials = len(trial_seeds)
    largest = np.empty(trials, dtype=np.float64)
    counts = np.empty(trials, dtype=np.int64)
    spans = np.empty(trials, dtype=bool)

    grid = PercolationGrid(width, height, parameter=parameter, rng=RandomSource(0))
    for trial, trial_seed in enumerate(trial_seeds):
        grid.regenerate(rng=RandomSource(trial_seed))
        summary = cluster_summary(grid.labels)
        largest[trial] = summary["largest_fraction"]
        counts[trial] = summary["n_clusters"]
        spans[trial] = percolates(grid.labels)

    ci_low, ci_high = confidence_interval(largest)
    return MonteCarloResult(
        largest_fractions=largest,
        cluster_counts=counts,
        percolated=spans,
        mean_largest_fraction=float(np.mean(largest)),
        variance_largest_fraction=float(np.var(largest, ddof=1)),
        ci_low=ci_low,
        ci_high=ci_high,
        percolation_probability=float(np.mean(spans)),
        parameter=grid.parameter,
        trials=trials,
        seed=seed,
        width=width,
        height=height,
    )


def run_monte_carlo(
    width: int,
    height: int,
    parameter: float,
    trials: int,
    seed: int,
) -> MonteCarloResult:
    """Regenerate a ``width`` x ``height`` grid ``trials`` times at one p.

    Parameters
    ----------
    width, height : int
        Grid dimensions.
    parameter : float
        Probability p in [0, 1].
    trials : int
        Number of independent trials.
    seed : int
        Master seed.  Per-trial seeds come from ``make_trial_seeds``.

    Returns
    -------
    MonteCarloResult
        Frozen dataclass holding raw distributions and aggregate statistics.

    Raises
    ------
    ValueError
        If ``trials < 2`` (CI computation requires at least 2 samples), or
        the grid arguments are invalid.
    """
    if trials < 2:
        raise ValueError(f"trials must be >= 2 for CI computation; got {trials}.")
    return _run_trials(width, height, parameter, make_trial_seeds(seed, trials), seed)


def parameter_sweep(
    width: int,
    height: int,
    parameters: Sequence[float],
    trials: int,
    seed: int,
) -> list[MonteCarloResult]:
    """Run :func:`run_monte_carlo` for every value in ``parameters``.

    All parameter levels share the same trial seeds, so differences between
    levels come from p alone.

    Returns
    -------
    list of MonteCarloResult
        One result per parameter, in input order.
    """
    if trials < 2:
        raise ValueError(f"trials must be >= 2 for CI computation; got {trials}.")
    if len(parameters) == 0:
        raise ValueError("parameters must not be empty.")
    trial_seeds = make_trial_seeds(seed, trials)
    return [
        _run_trials(width, height, float(p), trial_seeds, seed)
        for p in parameters
    ]


def sweep_to_records(results: Sequence[MonteCarloResult]) -> list[dict]:
    """Flatten sweep results into CSV-ready rows."""
    return [
        {
            "parameter": r.parameter,
            "trials": r.trials,
            "mean_largest_fraction": round(r.mean_largest_fraction, 6),
            "variance_largest_fraction": round(r.variance_largest_fraction, 8),
            "ci_95_low": round(r.ci_low, 6),
            "ci_95_high": round(r.ci_high, 6),
            "mean_cluster_count": round(float(np.mean(r.cluster_counts)), 3),
            "percolation_probability": round(r.percolation_probability, 6),
        }
        for r in results
    ]


# ---------------------------------------------------------------------------
# Sweep trend
# ---------------------------------------------------------------------------


def sweep_trend(results: Sequence[MonteCarloResult]) -> dict[str, float | int]:
    """Summarise how the mean largest cluster moves with p across a sweep.

    Returns
    -------
    dict with keys:
        - ``spearman_rho`` / ``spearman_p_value`` : rank correlation between
          parameter and mean largest fraction (NaN for fewer than 3 levels
          or a constant response).
        - ``n_decreasing_steps`` : consecutive levels (sorted by p) where the
          mean largest fraction went down.
    """
    ordered = sorted(results, key=lambda r: r.parameter)
    params = np.array([r.parameter for r in ordered])
    means = np.array([r.mean_largest_fraction for r in ordered])

    if len(ordered) < 3:
        warnings.warn(
            f"sweep_trend: {len(ordered)} parameter level(s) is too few for a "
            "rank correlation; spearman_rho is reported as NaN.",
            UserWarning,
            stacklevel=2,
        )
        rho, p_value = float("nan"), float("nan")
    elif np.ptp(means) == 0.0 or np.ptp(params) == 0.0:
        rho, p_value = float("nan"), float("nan")
    else:
        corr = spearman_correlation(params, means)
        rho, p_value = corr["rho"], corr["p_value"]

    return {
        "spearman_rho": rho,
        "spearman_p_value": p_value,
        "n_decreasing_steps": int(np.sum(np.diff(means) < 0)),
    }
