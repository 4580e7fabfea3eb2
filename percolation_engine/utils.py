"""
Shared utilities for the percolation engine.

Currently provides:
  - confidence_interval()  : t-distribution CI for a sample mean
  - make_trial_seeds()     : SeedSequence-based 32-bit seed spawning

All functions are pure (no global state).
"""

from __future__ import annotations

import numpy as np
from numpy.random import SeedSequence
import scipy.stats as stats


# ---------------------------------------------------------------------------
# Confidence interval
# ---------------------------------------------------------------------------


def confidence_interval(
    samples: np.ndarray,
    confidence: float = 0.95,
) -> tuple[float, float]:
    """Compute a confidence interval for the population mean via t-distribution.

    Parameters
    ----------
    samples : np.ndarray, shape (m,)
        Sample array with m >= 2.
    confidence : float, optional
        Confidence level in (0, 1).  Default 0.95.

    Returns
    -------
    (ci_low, ci_high) : tuple of float
        Lower and upper bounds.

    Raises
    ------
    ValueError
        If m < 2 or confidence is not in (0, 1).
    """
    m = len(samples)
    if m < 2:
        raise ValueError("Need at least 2 samples for CI computation.")
    if not (0 < confidence < 1):
        raise ValueError(f"confidence must be in (0, 1); got {confidence}.")
    mean = float(np.mean(samples))
    se = float(stats.sem(samples))
    # Zero-variance samples have a degenerate but well-defined CI.
    if se == 0.0:
        return mean, mean
    interval = stats.t.interval(confidence, df=m - 1, loc=mean, scale=se)
    return float(interval[0]), float(interval[1])


# ---------------------------------------------------------------------------
# Seed spawning
# ---------------------------------------------------------------------------


def make_trial_seeds(master_seed: int, n_trials: int) -> list[int]:
    """Derive *n_trials* independent 32-bit seeds from a master seed.

    Uses ``numpy.random.SeedSequence`` so neighbouring master seeds do not
    produce overlapping trial streams, unlike ``master_seed + i``.

    Parameters
    ----------
    master_seed : int
        Top-level seed.  The same value always yields the same list.
    n_trials : int
        Number of seeds to produce.

    Returns
    -------
    list of int
        Seeds in [0, 2^32), ready for ``RandomSource``.
    """
    if n_trials < 0:
        raise ValueError(f"n_trials must be >= 0; got {n_trials}.")
    if n_trials == 0:
        return []
    states = SeedSequence(master_seed).generate_state(n_trials, dtype=np.uint32)
    return [int(s) for s in states]
