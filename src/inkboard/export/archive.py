"""ZIP/JPEG exports: original frames and storyboard sheets."""

from __future__ import annotations

import logging
import zipfile
from pathlib import Path
from typing import Sequence

from inkboard.errors import RenderError
from inkboard.models import Keyframe
from inkboard.storyboard.compositor import compose_storyboard, encode_page
from inkboard.storyboard.layout import PageLayout

logger = logging.getLogger(__name__)


def shot_filename(index: int) -> str:
    return f"shot_{index + 1:03d}.jpg"


def write_frames_archive(keyframes: Sequence[Keyframe], path: Path) -> Path:
    """Zip every keyframe's *original* capture as ``keyframes/shot_NNN.jpg``."""
    frames = []
    for index, kf in enumerate(keyframes):
        try:
            frames.append((shot_filename(index), Path(kf.original_path).read_bytes()))
        except OSError as exc:
            raise RenderError(Path(kf.original_path), f"Original frame unreadable: {exc}") from exc

    try:
        with zipfile.ZipFile(path, "w", compression=zipfile.ZIP_DEFLATED) as zf:
            for name, data in frames:
                zf.writestr(f"keyframes/{name}", data)
    except OSError as exc:
        raise RenderError(path, str(exc)) from exc
    return path


def write_storyboard(
    keyframes: Sequence[Keyframe],
    project_name: str,
    output_dir: Path,
    layout: PageLayout | None = None,
) -> Path | None:
    """Render the storyboard and write it into *output_dir*.

    One page is written as ``storyboard_<project_name>.jpg``; more than one
    page is bundled into ``storyboard_pages.zip`` as
    ``storyboard_page_<k>.jpg``.  Returns the written path, or None when
    there are no keyframes.
    """
    layout = layout or PageLayout()
    pages = compose_storyboard(keyframes, project_name, layout)
    if not pages:
        return None

    if len(pages) == 1:
        target = output_dir / f"storyboard_{project_name}.jpg"
        data = encode_page(pages[0], layout.jpeg_quality, target)
        try:
            output_dir.mkdir(parents=True, exist_ok=True)
            target.write_bytes(data)
        except OSError as exc:
            raise RenderError(target, str(exc)) from exc
        return target

    target = output_dir / "storyboard_pages.zip"
    encoded = [
        (f"storyboard_page_{i + 1}.jpg", encode_page(page, layout.jpeg_quality, target))
        for i, page in enumerate(pages)
    ]
    try:
        output_dir.mkdir(parents=True, exist_ok=True)
        with zipfile.ZipFile(target, "w", compression=zipfile.ZIP_DEFLATED) as zf:
            for name, data in encoded:
                zf.writestr(name, data)
    except OSError as exc:
        raise RenderError(target, str(exc)) from exc
    logger.info("Wrote %d storyboard pages to %s", len(pages), target)
    return target
