"""Pixel-statistic frame difference used for scene-change detection."""

from __future__ import annotations

import numpy as np

# Only one pixel in every PIXEL_STRIDE is compared.
PIXEL_STRIDE = 4


def frame_difference(data1: np.ndarray, data2: np.ndarray) -> float:
    """Return the mean RGB distance between two RGBA frames.

    Every ``PIXEL_STRIDE``-th pixel contributes ``|dR| + |dG| + |dB|`` (alpha
    is ignored).  The sum is divided by the *total* pixel count, not by the
    number of sampled pixels; the scene threshold in
    :mod:`inkboard.ingestion.keyframes` is calibrated against this scale.

    Parameters
    ----------
    data1, data2:
        RGBA ``uint8`` buffers of identical size, either ``(h, w, 4)`` or flat.

    Returns
    -------
    float
        ``0.0`` for identical (or empty) buffers, larger for more change.

    Raises
    ------
    ValueError
        If the buffers differ in length or are not a whole number of pixels.
    """
    a = np.asarray(data1, dtype=np.uint8).reshape(-1)
    b = np.asarray(data2, dtype=np.uint8).reshape(-1)
    if a.size != b.size:
        raise ValueError(f"Buffer length mismatch: {a.size} != {b.size}")
    if a.size % 4 != 0:
        raise ValueError(f"Buffer length {a.size} is not a multiple of 4 (RGBA)")

    pixel_count = a.size // 4
    if pixel_count == 0:
        return 0.0

    sampled_a = a.reshape(-1, 4)[::PIXEL_STRIDE, :3].astype(np.int32)
    sampled_b = b.reshape(-1, 4)[::PIXEL_STRIDE, :3].astype(np.int32)
    total = int(np.abs(sampled_a - sampled_b).sum())
    return total / pixel_count
