"""Pencil-sketch filter: luminance, box blur, invert, colour-dodge.

The filter is not idempotent (running it on its own output changes the
image again), so callers track ``Keyframe.is_sketch`` and apply it at most
once per keyframe.
"""

from __future__ import annotations

from pathlib import Path

import numpy as np

from inkboard.imaging.blur import box_blur
from inkboard.imaging.codec import load_rgba, write_jpeg

SKETCH_BLUR_RADIUS = 4
SKETCH_JPEG_QUALITY = 85

# ITU-R BT.601 luma weights
_LUMA_WEIGHTS = np.array([0.299, 0.587, 0.114], dtype=np.float64)


def luminance(rgba: np.ndarray) -> np.ndarray:
    """Return the ``(h, w)`` float32 luma raster of an RGBA buffer."""
    rgb = np.asarray(rgba)[..., :3].astype(np.float64)
    return (rgb @ _LUMA_WEIGHTS).astype(np.float32)


def color_dodge(base: np.ndarray, blend: np.ndarray) -> np.ndarray:
    """Colour-dodge *blend* over *base* in 0..255 space.

    ``blend == 255`` saturates to 255; everything else is
    ``min(255, base * 255 / (255 - blend))``.
    """
    base = base.astype(np.float64)
    blend = blend.astype(np.float64)
    denom = 255.0 - blend
    saturated = blend == 255.0
    safe_denom = np.where(saturated, 1.0, denom)
    dodged = np.minimum(255.0, base * 255.0 / safe_denom)
    return np.where(saturated, 255.0, dodged)


def sketch_pixels(rgba: np.ndarray, radius: int = SKETCH_BLUR_RADIUS) -> np.ndarray:
    """Return a grayscale sketch of *rgba* with the same shape and alpha."""
    src = np.asarray(rgba, dtype=np.uint8)
    base = luminance(src)
    blurred = box_blur(base, radius)
    blend = 255.0 - blurred.astype(np.float64)
    result = np.clip(np.rint(color_dodge(base, blend)), 0, 255).astype(np.uint8)

    out = src.copy()
    out[..., 0] = result
    out[..., 1] = result
    out[..., 2] = result
    return out


def sketch_image(source: Path, output_path: Path, quality: int = SKETCH_JPEG_QUALITY) -> Path:
    """Read *source*, apply :func:`sketch_pixels`, and write a JPEG.

    Raises
    ------
    RenderError
        If the source cannot be decoded or the result cannot be written.
    """
    rgba = load_rgba(source)
    return write_jpeg(sketch_pixels(rgba), output_path, quality)
