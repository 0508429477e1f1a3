"""JPEG read/write for RGBA pixel buffers via OpenCV.

OpenCV works in BGR; every buffer crossing this module boundary is RGBA
``uint8`` of shape ``(height, width, 4)``.  Codec failures are translated
into ``RenderError``.
"""

from __future__ import annotations

from pathlib import Path

import cv2
import numpy as np

from inkboard.errors import RenderError


def bgr_to_rgba(frame: np.ndarray) -> np.ndarray:
    """Convert an OpenCV BGR (or grayscale) frame to an RGBA buffer."""
    if frame.ndim == 2:
        return cv2.cvtColor(frame, cv2.COLOR_GRAY2RGBA)
    if frame.shape[2] == 4:
        return cv2.cvtColor(frame, cv2.COLOR_BGRA2RGBA)
    return cv2.cvtColor(frame, cv2.COLOR_BGR2RGBA)


def load_rgba(path: Path) -> np.ndarray:
    """Decode the image at *path* into an RGBA buffer.

    Raises
    ------
    RenderError
        If the file is missing or OpenCV cannot decode it.
    """
    img = cv2.imread(str(path), cv2.IMREAD_UNCHANGED)
    if img is None:
        raise RenderError(Path(path), "OpenCV could not decode the image (missing or corrupt file)")
    return bgr_to_rgba(img)


def encode_jpeg(rgba: np.ndarray, quality: int, target: Path | None = None) -> bytes:
    """Encode an RGBA buffer as JPEG bytes (alpha is dropped)."""
    bgr = cv2.cvtColor(np.ascontiguousarray(rgba, dtype=np.uint8), cv2.COLOR_RGBA2BGR)
    ok, buf = cv2.imencode(".jpg", bgr, [cv2.IMWRITE_JPEG_QUALITY, int(quality)])
    if not ok:
        raise RenderError(target or Path("<memory>"), "cv2.imencode returned failure for JPEG")
    return buf.tobytes()


def write_jpeg(rgba: np.ndarray, path: Path, quality: int) -> Path:
    """Encode *rgba* and write it to *path*. Returns *path*."""
    data = encode_jpeg(rgba, quality, target=path)
    try:
        path.write_bytes(data)
    except OSError as exc:
        raise RenderError(path, str(exc)) from exc
    return path


def resize_rgba(rgba: np.ndarray, width: int, height: int) -> np.ndarray:
    """Resample *rgba* to exactly ``width`` x ``height``."""
    interpolation = cv2.INTER_AREA if width < rgba.shape[1] else cv2.INTER_LINEAR
    return cv2.resize(rgba, (width, height), interpolation=interpolation)
