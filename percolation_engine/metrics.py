"""
Cluster metrics for a finished percolation pass.

All metrics are pure functions of the ``(height, width)`` label array
produced by ``PercolationGrid.regenerate``; labels are consecutive cluster
indices starting at 0.
"""

from __future__ import annotations

import numpy as np
import scipy.stats as _scipy_stats

from .grid import UNASSIGNED


def _checked_labels(labels: np.ndarray) -> np.ndarray:
    labels = np.asarray(labels)
    if labels.ndim != 2 or labels.size == 0:
        raise ValueError(f"labels must be a non-empty 2-D array; got shape {labels.shape}.")
    if np.any(labels == UNASSIGNED):
        raise ValueError("labels contain unassigned cells; the pass did not complete.")
    return labels


# ---------------------------------------------------------------------------
# Cluster sizes
# ---------------------------------------------------------------------------


def cluster_sizes(labels: np.ndarray) -> np.ndarray:
    """Number of cells per cluster, indexed by cluster label.

    Parameters
    ----------
    labels : np.ndarray, shape (H, W)
        Completed label array.

    Returns
    -------
    np.ndarray, dtype int64
        ``sizes[k]`` is the size of cluster ``k``.

    Raises
    ------
    ValueError
        If the array is empty, not 2-D, or contains unassigned cells.
    """
    labels = _checked_labels(labels)
    return np.bincount(labels.ravel().astype(np.int64))


def cluster_summary(labels: np.ndarray) -> dict[str, int | float]:
    """Summarise the cluster structure of a completed pass.

    Returns
    -------
    dict
        Dictionary with keys:

        - ``n_cells`` : total number of cells
        - ``n_clusters`` : number of clusters
        - ``largest_cluster`` : size of the largest cluster
        - ``largest_fraction`` : largest cluster / n_cells
        - ``mean_cluster_size`` : n_cells / n_clusters
        - ``singleton_clusters`` : clusters made of a single cell
    """
    sizes = cluster_sizes(labels)
    n_cells = int(sizes.sum())
    largest = int(sizes.max())
    return {
        "n_cells": n_cells,
        "n_clusters": int(sizes.size),
        "largest_cluster": largest,
        "largest_fraction": largest / n_cells,
        "mean_cluster_size": n_cells / sizes.size,
        "singleton_clusters": int(np.sum(sizes == 1)),
    }


# ---------------------------------------------------------------------------
# Spanning clusters
# ---------------------------------------------------------------------------


def spanning_clusters(labels: np.ndarray) -> list[int]:
    """Labels of clusters that connect opposite edges of the grid.

    A cluster spans if it touches both the top and bottom rows, or both the
    leftmost and rightmost columns.  On a single-row (or single-column) grid
    every cluster trivially touches both horizontal (vertical) edges.
    """
    labels = _checked_labels(labels)
    vertical = np.intersect1d(labels[0, :], labels[-1, :])
    horizontal = np.intersect1d(labels[:, 0], labels[:, -1])
    return [int(k) for k in np.union1d(vertical, horizontal)]


def percolates(labels: np.ndarray) -> bool:
    """True if at least one cluster spans the grid."""
    return len(spanning_clusters(labels)) > 0


# ---------------------------------------------------------------------------
# Rank correlation
# ---------------------------------------------------------------------------


def spearman_correlation(x: np.ndarray, y: np.ndarray) -> dict[str, float]:
    """Compute Spearman rank correlation coefficient and p-value.

    Used to check that mean largest-cluster size rises with p across a
    parameter sweep.

    Parameters
    ----------
    x : np.ndarray, shape (m,)
        First ranking vector (e.g. parameter values).
    y : np.ndarray, shape (m,)
        Second ranking vector (e.g. mean largest fractions).

    Returns
    -------
    dict with keys:
        - ``rho``     : Spearman correlation coefficient in [-1, 1]
          (NaN if either input is constant).
        - ``p_value`` : Two-tailed p-value for the null hypothesis rho == 0.

    Raises
    ------
    ValueError
        If arrays differ in shape or have fewer than 3 elements.
    """
    x = np.asarray(x, dtype=np.float64)
    y = np.asarray(y, dtype=np.float64)
    if x.shape != y.shape:
        raise ValueError(
            f"x and y must have the same shape; got {x.shape} vs {y.shape}."
        )
    if x.size < 3:
        raise ValueError("Spearman correlation requires at least 3 elements.")
    result = _scipy_stats.spearmanr(x, y)
    return {
        "rho": float(result.statistic),
        "p_value": float(result.pvalue),
    }
