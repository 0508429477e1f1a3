"""Separable box blur for single-channel float rasters."""

from __future__ import annotations

import numpy as np


def _blur_axis(data: np.ndarray, radius: int, axis: int) -> np.ndarray:
    """Mean over ``[-radius, +radius]`` along *axis* with edge replication."""
    length = data.shape[axis]
    pad = [(0, 0), (0, 0)]
    pad[axis] = (radius, radius)
    padded = np.pad(data, pad, mode="edge")

    acc = np.zeros(data.shape, dtype=np.float64)
    for k in range(2 * radius + 1):
        if axis == 1:
            acc += padded[:, k:k + length]
        else:
            acc += padded[k:k + length, :]
    return acc / (2 * radius + 1)


def box_blur(data: np.ndarray, radius: int) -> np.ndarray:
    """Blur a ``(height, width)`` raster horizontally, then vertically.

    Each output sample is the unweighted mean of the ``2 * radius + 1``
    input samples centred on it.  Coordinates outside the raster are clamped
    to the nearest row/column, so edges are never darkened.  The vertical
    pass reads the output of the horizontal pass.

    Returns a ``float32`` array of the same shape.
    """
    if radius < 0:
        raise ValueError(f"radius must be >= 0, got {radius}")
    src = np.asarray(data, dtype=np.float32)
    if src.ndim != 2:
        raise ValueError(f"Expected a 2-D raster, got shape {src.shape}")
    if radius == 0 or src.size == 0:
        return src.copy()

    horizontal = _blur_axis(src, radius, axis=1).astype(np.float32)
    return _blur_axis(horizontal, radius, axis=0).astype(np.float32)
