"""
Render helpers for finished color buffers.

The engine never draws; these helpers map a ``(height, width, 3)`` color
buffer onto a viewport by linear per-axis scaling (one rectangle per cell,
scale = viewport size / grid size) and write it out with matplotlib.
"""

from __future__ import annotations

from pathlib import Path

import matplotlib
matplotlib.use("Agg")  # Non-interactive; safe for headless/CI environments
import matplotlib.pyplot as plt
import numpy as np


def scale_to_viewport(
    colors: np.ndarray,
    viewport_width: int,
    viewport_height: int,
) -> np.ndarray:
    """Resample a color buffer to ``viewport_width`` x ``viewport_height`` pixels.

    Pixel (x, y) takes the color of cell
    ``(floor(x * W / viewport_width), floor(y * H / viewport_height))``,
    which is the nearest-cell mapping of a canvas filling one
    ``(viewport/W) x (viewport/H)`` rectangle per cell.

    Parameters
    ----------
    colors : np.ndarray, shape (H, W, 3), dtype uint8
        Finished color buffer.
    viewport_width, viewport_height : int
        Target size in pixels; must be positive.

    Returns
    -------
    np.ndarray, shape (viewport_height, viewport_width, 3), dtype uint8

    Raises
    ------
    ValueError
        If the buffer is not ``(H, W, 3)`` or a viewport dimension is not
        positive.
    """
    colors = np.asarray(colors)
    if colors.ndim != 3 or colors.shape[2] != 3:
        raise ValueError(f"colors must have shape (H, W, 3); got {colors.shape}.")
    if viewport_width <= 0 or viewport_height <= 0:
        raise ValueError(
            f"viewport must be positive; got {viewport_width}x{viewport_height}."
        )
    height, width = colors.shape[:2]
    cols = (np.arange(viewport_width, dtype=np.int64) * width) // viewport_width
    rows = (np.arange(viewport_height, dtype=np.int64) * height) // viewport_height
    return colors[rows[:, None], cols[None, :]]


def save_png(
    colors: np.ndarray,
    path: str | Path,
    viewport: tuple[int, int] | None = None,
) -> Path:
    """Write a color buffer to ``path`` as a PNG.

    ``viewport`` is an optional ``(width, height)`` to scale to first;
    otherwise one pixel is written per cell.
    """
    image = np.asarray(colors, dtype=np.uint8)
    if viewport is not None:
        image = scale_to_viewport(image, *viewport)
    path = Path(path)
    plt.imsave(path, image, format="png")
    return path
