"""
Percolation clustering grid.

A ``PercolationGrid`` owns a dense W x H color buffer and, on every call to
``regenerate``, partitions all cells into clusters with a randomized
iterative flood fill:

    for each unassigned cell c in row-major order:
        color <- three uniform 8-bit draws
        push c
        while the worklist is not empty:
            pop x; skip if assigned
            assign color to x
            for each in-bounds, unassigned neighbor y of x
            (left, right, up, down):
                push y with probability p

The Bernoulli trial is taken once per directed attempt from the cell being
processed towards an unassigned neighbor, not once per undirected edge.

Buffers are allocated once and reset in place on every pass.  Labels record
the cluster index (creation order) of each cell; ``UNASSIGNED`` marks cells
not yet reached.
"""

from __future__ import annotations

import warnings

import numpy as np

from .random_source import RandomSource


# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

UNASSIGNED: int = -1
CHANNEL_LEVELS: int = 255

# Pure-Python passes above this size take several seconds.
LARGE_GRID_CELLS: int = 2_000_000

Color = tuple[int, int, int]


def _validate_parameter(parameter: float) -> float:
    parameter = float(parameter)
    if not (0.0 <= parameter <= 1.0):
        raise ValueError(f"parameter must be in [0, 1]; got {parameter}.")
    return parameter


# ---------------------------------------------------------------------------
# Grid
# ---------------------------------------------------------------------------


class PercolationGrid:
    """Fixed-size grid that is re-clustered on every regeneration.

    Parameters
    ----------
    width, height : int
        Grid dimensions; both must be positive.
    parameter : float, optional
        Probability p in [0, 1] of extending a cluster towards a neighbor.
    seed : int or None, optional
        Seed for the grid's own ``RandomSource``.  Ignored if ``rng`` is
        given.  When both are ``None`` the source is seeded from OS entropy.
    rng : RandomSource or None, optional
        Explicit source owned by this grid from now on.

    Raises
    ------
    ValueError
        If a dimension is not positive or ``parameter`` is outside [0, 1].
    """

    def __init__(
        self,
        width: int,
        height: int,
        parameter: float = 0.5,
        seed: int | None = None,
        rng: RandomSource | None = None,
    ) -> None:
        width, height = int(width), int(height)
        if width <= 0 or height <= 0:
            raise ValueError(
                f"grid dimensions must be positive; got {width}x{height}."
            )
        self._width = width
        self._height = height
        self._parameter = _validate_parameter(parameter)

        if rng is None:
            rng = RandomSource(seed) if seed is not None else RandomSource.from_entropy()
        self.rng: RandomSource = rng

        self._colors = np.zeros((height, width, 3), dtype=np.uint8)
        self._labels = np.full((height, width), UNASSIGNED, dtype=np.int32)
        self._cluster_count = 0
        self._complete = False

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def width(self) -> int:
        return self._width

    @property
    def height(self) -> int:
        return self._height

    @property
    def parameter(self) -> float:
        return self._parameter

    @parameter.setter
    def parameter(self, value: float) -> None:
        self._parameter = _validate_parameter(value)

    @property
    def is_complete(self) -> bool:
        """True once a pass has finished; every cell then holds a color."""
        return self._complete

    @property
    def cluster_count(self) -> int:
        return self._cluster_count

    @property
    def colors(self) -> np.ndarray:
        """Read-only ``(height, width, 3)`` uint8 view of the color buffer."""
        view = self._colors.view()
        view.flags.writeable = False
        return view

    @property
    def labels(self) -> np.ndarray:
        """Read-only ``(height, width)`` int32 view of the cluster labels."""
        view = self._labels.view()
        view.flags.writeable = False
        return view

    def __repr__(self) -> str:
        return (
            f"PercolationGrid(width={self._width}, height={self._height}, "
            f"parameter={self._parameter}, clusters={self._cluster_count})"
        )

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    def color_at(self, w: int, h: int) -> Color:
        """Return the RGB color of cell (w, h) after a completed pass.

        Raises
        ------
        IndexError
            If (w, h) lies outside the grid.
        RuntimeError
            If no pass has completed yet.
        """
        if not (0 <= w < self._width and 0 <= h < self._height):
            raise IndexError(
                f"cell ({w}, {h}) outside grid {self._width}x{self._height}."
            )
        if not self._complete:
            raise RuntimeError("color_at() called before regenerate() completed.")
        r, g, b = self._colors[h, w]
        return int(r), int(g), int(b)

    # ------------------------------------------------------------------
    # Clustering pass
    # ------------------------------------------------------------------

    def regenerate(
        self,
        parameter: float | None = None,
        rng: RandomSource | None = None,
    ) -> np.ndarray:
        """Recompute every cluster from scratch.

        Parameters
        ----------
        parameter : float or None, optional
            If given, becomes the grid's parameter before the pass.
        rng : RandomSource or None, optional
            Source used for this pass only.  Defaults to the grid's own
            source, which then continues from where the last pass stopped.

        Returns
        -------
        np.ndarray, shape (height, width, 3), dtype uint8
            Read-only view of the finished color buffer.
        """
        if parameter is not None:
            self.parameter = parameter
        if rng is None:
            rng = self.rng

        n_cells = self._width * self._height
        if n_cells > LARGE_GRID_CELLS:
            warnings.warn(
                f"regenerate: {n_cells} cells will take a while in pure Python; "
                "run it off any latency-sensitive thread.",
                RuntimeWarning,
                stacklevel=2,
            )

        self._complete = False
        self._labels.fill(UNASSIGNED)
        self._colors.fill(0)

        width, height = self._width, self._height
        p = self._parameter
        labels = self._labels
        colors = self._colors
        trial = rng.bool_with_probability
        channel = rng.uniform_int

        cluster = 0
        for h in range(height):
            for w in range(width):
                if labels[h, w] != UNASSIGNED:
                    continue
                color = (
                    channel(0, CHANNEL_LEVELS),
                    channel(0, CHANNEL_LEVELS),
                    channel(0, CHANNEL_LEVELS),
                )
                worklist = [(w, h)]
                while worklist:
                    x, y = worklist.pop()
                    if labels[y, x] != UNASSIGNED:
                        continue
                    labels[y, x] = cluster
                    colors[y, x] = color
                    # Range checks come before the neighbor coordinate is formed.
                    if x > 0 and labels[y, x - 1] == UNASSIGNED and trial(p):
                        worklist.append((x - 1, y))
                    if x < width - 1 and labels[y, x + 1] == UNASSIGNED and trial(p):
                        worklist.append((x + 1, y))
                    if y > 0 and labels[y - 1, x] == UNASSIGNED and trial(p):
                        worklist.append((x, y - 1))
                    if y < height - 1 and labels[y + 1, x] == UNASSIGNED and trial(p):
                        worklist.append((x, y + 1))
                cluster += 1

        self._cluster_count = cluster
        self._complete = True
        return self.colors
