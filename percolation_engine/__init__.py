"""
percolation_engine - Stochastic Bond-Percolation Clustering Engine
===================================================================

Two layers:

  RandomSource
      32-bit linear congruential generator (``seed * 5 + 1 mod 2^32``) with
      division-free floats built by injecting the low 23 state bits into an
      IEEE-754 mantissa.  Fully reproducible from an explicit seed.

  PercolationGrid
      Fixed W x H grid re-clustered on every ``regenerate``: an iterative
      flood fill extends each cluster towards unassigned neighbors with
      probability p, and every cluster gets one random RGB color.

Quick start
-----------
>>> from percolation_engine import PercolationGrid
>>> grid = PercolationGrid(5, 3, parameter=0.5, seed=42)
>>> colors = grid.regenerate()
>>> colors.shape
(3, 5, 3)
>>> r, g, b = grid.color_at(0, 0)
"""

from .random_source import (
    RandomSource,
    lcg_next,
    lcg_jump,
    float_from_state,
    floats_from_states,
    cycle_length,
    period_is_full,
    bucket_counts,
)
from .grid import PercolationGrid, UNASSIGNED
from .metrics import (
    cluster_sizes,
    cluster_summary,
    spanning_clusters,
    percolates,
    spearman_correlation,
)
from .monte_carlo import (
    run_monte_carlo,
    parameter_sweep,
    sweep_to_records,
    sweep_trend,
    MonteCarloResult,
)
from .utils import confidence_interval, make_trial_seeds

__all__ = [
    # random source
    "RandomSource", "lcg_next", "lcg_jump", "float_from_state",
    "floats_from_states", "cycle_length", "period_is_full", "bucket_counts",
    # grid
    "PercolationGrid", "UNASSIGNED",
    # metrics
    "cluster_sizes", "cluster_summary", "spanning_clusters", "percolates",
    "spearman_correlation",
    # monte carlo
    "run_monte_carlo", "parameter_sweep", "sweep_to_records", "sweep_trend",
    "MonteCarloResult",
    # utils
    "confidence_interval", "make_trial_seeds",
]
