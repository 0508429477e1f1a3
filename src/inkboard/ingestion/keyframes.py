"""Fixed-interval scene sampling and keyframe extraction.

Walks a :class:`~inkboard.ingestion.source.VideoSource` from 0s in steps of
``SAMPLE_INTERVAL_S`` until ``processed_time >= duration``:

  1. Seek and wait for the decoded frame.
  2. Render a low-res analysis buffer (``ANALYSIS_WIDTH`` wide).
  3. Accept the first sample unconditionally; accept later samples when
     :func:`~inkboard.imaging.difference.frame_difference` against the last
     *accepted* buffer exceeds ``SCENE_THRESHOLD``.
  4. On acceptance render a high-res frame (at most ``OUTPUT_MAX_WIDTH``
     wide), write it as JPEG and emit a :class:`Keyframe`.

Decode failures propagate as ``VideoDecodeError``; a failed run never
returns a partial keyframe list.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Callable, Iterator, Optional

import numpy as np

from inkboard.imaging.codec import write_jpeg
from inkboard.imaging.difference import frame_difference
from inkboard.ingestion.source import VideoSource
from inkboard.models import Keyframe

logger = logging.getLogger(__name__)

SAMPLE_INTERVAL_S = 0.5
SCENE_THRESHOLD = 15.0
ANALYSIS_WIDTH = 640
OUTPUT_MAX_WIDTH = 1280
KEYFRAME_JPEG_QUALITY = 90
# Keyframe ids carry two decimals; finer spacing would collide.
MIN_SAMPLE_INTERVAL_S = 0.01


# ---------------------------------------------------------------------------
# Sampler state
# ---------------------------------------------------------------------------

class SamplerState(str, Enum):
    IDLE = "idle"
    SEEKING = "seeking"
    SAMPLED = "sampled"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    COMPLETE = "complete"


@dataclass
class SampleResult:
    """Outcome of one sample instant."""

    time_s: float
    state: SamplerState             # ACCEPTED or REJECTED
    difference: Optional[float]     # None for the first sample
    keyframe: Optional[Keyframe] = None


@dataclass
class _SamplerRun:
    """Loop state owned by a single extraction run."""

    state: SamplerState = SamplerState.IDLE
    processed_time: float = 0.0
    last_accepted: Optional[np.ndarray] = field(default=None, repr=False)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def analysis_size(width: int, height: int, target_width: int = ANALYSIS_WIDTH) -> tuple[int, int]:
    """Return the (width, height) of the low-res analysis buffer, aspect preserved."""
    return target_width, max(1, round(height / width * target_width))


def output_size(width: int, height: int, max_width: int = OUTPUT_MAX_WIDTH) -> tuple[int, int]:
    """Return the (width, height) of the stored keyframe image (never upscaled)."""
    out_w = min(max_width, width)
    return out_w, max(1, round(height / width * out_w))


def keyframe_filename(timestamp_s: float) -> str:
    return f"frame_{int(round(timestamp_s * 1000)):010d}.jpg"


class SceneSampler:
    """Drives one video source through the fixed-interval scan.

    Parameters
    ----------
    source:
        An opened :class:`VideoSource`.
    keyframes_dir:
        Directory where accepted frames are written as JPEG.  Created if absent.
    interval_s:
        Spacing between sample instants, at least ``MIN_SAMPLE_INTERVAL_S``.
    threshold:
        Difference score a sample must exceed to become a keyframe.
    """

    def __init__(
        self,
        source: VideoSource,
        keyframes_dir: Path,
        interval_s: float = SAMPLE_INTERVAL_S,
        threshold: float = SCENE_THRESHOLD,
        analysis_width: int = ANALYSIS_WIDTH,
        output_max_width: int = OUTPUT_MAX_WIDTH,
        jpeg_quality: int = KEYFRAME_JPEG_QUALITY,
    ) -> None:
        if interval_s < MIN_SAMPLE_INTERVAL_S:
            raise ValueError(
                f"interval_s must be >= {MIN_SAMPLE_INTERVAL_S}, got {interval_s}"
            )
        self.source = source
        self.keyframes_dir = keyframes_dir
        self.interval_s = interval_s
        self.threshold = threshold
        self.analysis_width = analysis_width
        self.output_max_width = output_max_width
        self.jpeg_quality = jpeg_quality

    def iter_samples(
        self,
        progress_callback: Callable[[float], None] | None = None,
    ) -> Iterator[SampleResult]:
        """Yield one :class:`SampleResult` per sample instant, in time order.

        Every call starts a fresh run; the previously accepted buffer is never
        shared between runs.  The generator suspends between samples, which is
        where callers may interleave other work.
        """
        self.keyframes_dir.mkdir(parents=True, exist_ok=True)
        duration = self.source.duration_s
        low_w, low_h = analysis_size(self.source.width, self.source.height, self.analysis_width)
        out_w, out_h = output_size(self.source.width, self.source.height, self.output_max_width)

        run = _SamplerRun()
        step = 0
        while run.processed_time < duration:
            t = run.processed_time

            run.state = SamplerState.SEEKING
            self.source.seek(t)
            current = self.source.render(low_w, low_h)
            run.state = SamplerState.SAMPLED

            if run.last_accepted is None:
                difference = None
                accepted = True
            else:
                difference = frame_difference(run.last_accepted, current)
                accepted = difference > self.threshold

            keyframe = None
            if accepted:
                run.state = SamplerState.ACCEPTED
                keyframe = self._capture(t, out_w, out_h)
                run.last_accepted = np.array(current, copy=True)
                logger.debug("t=%.2fs accepted (difference=%s)", t, difference)
            else:
                run.state = SamplerState.REJECTED
                logger.debug("t=%.2fs rejected (difference=%.2f)", t, difference)

            if progress_callback is not None:
                progress_callback(min(1.0, t / duration))

            step += 1
            run.processed_time = step * self.interval_s
            yield SampleResult(time_s=t, state=run.state, difference=difference, keyframe=keyframe)

        run.state = SamplerState.COMPLETE

    def _capture(self, timestamp_s: float, width: int, height: int) -> Keyframe:
        """Render and persist the high-res frame for an accepted sample."""
        frame = self.source.render(width, height)
        output_path = self.keyframes_dir / keyframe_filename(timestamp_s)
        write_jpeg(frame, output_path, self.jpeg_quality)
        return Keyframe.capture(timestamp_s, str(output_path.resolve()))


def extract_keyframes(
    source: VideoSource,
    keyframes_dir: Path,
    progress_callback: Callable[[float], None] | None = None,
    interval_s: float = SAMPLE_INTERVAL_S,
    threshold: float = SCENE_THRESHOLD,
) -> list[Keyframe]:
    """Run a complete extraction and return the ordered keyframe list.

    Parameters
    ----------
    source:
        An opened video source.
    keyframes_dir:
        Directory where keyframe JPEGs are written.
    progress_callback:
        Optional callable receiving ``processed_time / duration`` (0..1) after
        every sample.  Advisory only.

    Returns
    -------
    list[Keyframe]
        Keyframes in strictly increasing time order; the first sample is
        always included when the video has non-zero duration.

    Raises
    ------
    VideoDecodeError
        If any sample cannot be decoded.
    """
    sampler = SceneSampler(source, keyframes_dir, interval_s=interval_s, threshold=threshold)
    keyframes = [
        result.keyframe
        for result in sampler.iter_samples(progress_callback)
        if result.keyframe is not None
    ]
    logger.info(
        "Extracted %d keyframes from %.1fs of video", len(keyframes), source.duration_s
    )
    return keyframes
