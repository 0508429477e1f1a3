"""Bounded fan-out of the sketch filter across a keyframe list."""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path
from typing import Callable

from inkboard.errors import InkboardError
from inkboard.imaging.sketch import sketch_image
from inkboard.models import KeyframeList

logger = logging.getLogger(__name__)

SKETCH_WORKERS = 3


def sketch_filename(index: int) -> str:
    return f"sketch_{index + 1:03d}.jpg"


def run_sketch_pool(
    keyframes: KeyframeList,
    output_dir: Path,
    workers: int = SKETCH_WORKERS,
    progress_callback: Callable[[int, int], None] | None = None,
) -> int:
    """Sketch every keyframe that is not already a sketch.

    Each keyframe's *original* capture is filtered (never the currently
    displayed image) and written to ``output_dir/sketch_NNN.jpg``; the slot
    is then updated by index.  A failing item is logged and left as it was;
    the remaining items still run.

    Returns the number of keyframes converted.
    """
    output_dir.mkdir(parents=True, exist_ok=True)
    pending = [i for i, kf in enumerate(keyframes) if not kf.is_sketch]
    if not pending:
        return 0

    converted = 0
    completed = 0
    total = len(pending)
    with ThreadPoolExecutor(max_workers=min(workers, total)) as executor:
        future_to_index = {
            executor.submit(
                sketch_image,
                Path(keyframes[i].original_path),
                output_dir / sketch_filename(i),
            ): i
            for i in pending
        }
        for future in as_completed(future_to_index):
            index = future_to_index[future]
            try:
                sketch_path = future.result()
            except InkboardError as exc:
                logger.warning("Sketch conversion failed for %s: %s", keyframes[index].id, exc.detail)
            else:
                if keyframes.apply_sketch(index, str(sketch_path)):
                    converted += 1
            completed += 1
            if progress_callback is not None:
                progress_callback(completed, total)

    logger.info("Sketched %d of %d keyframes", converted, total)
    return converted
