"""Seekable video sources for the scene sampler.

A source is a single stateful decoder: one seek at a time, and pixels may
only be read after the seek has completed.  ``seek()`` therefore blocks
until the frame at the requested timestamp is decoded, and ``render()``
scales that decoded frame.  OpenCV errors are translated into
``VideoOpenError`` / ``VideoDecodeError``.
"""

from __future__ import annotations

from pathlib import Path
from typing import Protocol

import cv2
import numpy as np

from inkboard.errors import VideoDecodeError, VideoOpenError
from inkboard.imaging.codec import bgr_to_rgba


class VideoSource(Protocol):
    """What the sampler needs from a video: duration, size, seek, render."""

    @property
    def duration_s(self) -> float: ...

    @property
    def width(self) -> int: ...

    @property
    def height(self) -> int: ...

    def seek(self, timestamp_s: float) -> None:
        """Position the decoder at *timestamp_s*; returns once the frame is decoded."""

    def render(self, width: int, height: int) -> np.ndarray:
        """Return the current frame scaled to ``width`` x ``height`` as RGBA."""


class OpenCVVideoSource:
    """``cv2.VideoCapture``-backed :class:`VideoSource`.

    Usage::

        with OpenCVVideoSource(path) as source:
            keyframes = extract_keyframes(source, keyframes_dir)

    """

    def __init__(self, path: Path) -> None:
        self.path = path
        self._cap: cv2.VideoCapture | None = None
        self._frame: np.ndarray | None = None
        self._position_s = 0.0
        self._duration_s = 0.0
        self._width = 0
        self._height = 0

    def __enter__(self) -> "OpenCVVideoSource":
        self.open()
        return self

    def __exit__(self, *_: object) -> None:
        self.close()

    def open(self) -> None:
        """Open the capture and read duration and native dimensions."""
        if not self.path.exists():
            raise VideoOpenError(self.path, "File does not exist")
        cap = cv2.VideoCapture(str(self.path))
        if not cap.isOpened():
            cap.release()
            raise VideoOpenError(self.path, "OpenCV could not open the file (unsupported container or codec)")

        fps = cap.get(cv2.CAP_PROP_FPS)
        frame_count = cap.get(cv2.CAP_PROP_FRAME_COUNT)
        width = int(cap.get(cv2.CAP_PROP_FRAME_WIDTH))
        height = int(cap.get(cv2.CAP_PROP_FRAME_HEIGHT))
        if not fps or fps <= 0 or frame_count <= 0:
            cap.release()
            raise VideoOpenError(self.path, f"Cannot determine duration (fps={fps}, frames={frame_count})")
        if width <= 0 or height <= 0:
            cap.release()
            raise VideoOpenError(self.path, f"Invalid frame size {width}x{height}")

        self._cap = cap
        self._duration_s = float(frame_count) / float(fps)
        self._width = width
        self._height = height

    def close(self) -> None:
        if self._cap is not None:
            self._cap.release()
        self._cap = None
        self._frame = None

    @property
    def duration_s(self) -> float:
        return self._duration_s

    @property
    def width(self) -> int:
        return self._width

    @property
    def height(self) -> int:
        return self._height

    def seek(self, timestamp_s: float) -> None:
        if self._cap is None:
            raise VideoDecodeError(timestamp_s, "Video source is not open")
        self._position_s = timestamp_s
        self._frame = None
        # set() + read() is synchronous: read() only returns after decoding
        self._cap.set(cv2.CAP_PROP_POS_MSEC, timestamp_s * 1000.0)
        ok, frame = self._cap.read()
        if not ok or frame is None:
            raise VideoDecodeError(timestamp_s, "cv2.VideoCapture.read() returned no frame after seek")
        self._frame = frame

    def render(self, width: int, height: int) -> np.ndarray:
        if self._frame is None:
            raise VideoDecodeError(self._position_s, "render() called before a successful seek()")
        interpolation = cv2.INTER_AREA if width < self._width else cv2.INTER_LINEAR
        scaled = cv2.resize(self._frame, (width, height), interpolation=interpolation)
        return bgr_to_rgba(scaled)
