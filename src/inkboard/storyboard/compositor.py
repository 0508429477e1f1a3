"""Pillow-based storyboard sheet renderer.

Lays keyframes out on a 4x3 grid per page: a bordered, cover-fitted image
per cell, the global shot number above its top-left corner and the
character-wrapped caption underneath.
"""

from __future__ import annotations

import io
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Sequence, Union

from PIL import Image, ImageDraw, ImageFont

from inkboard.errors import RenderError
from inkboard.models import Keyframe
from inkboard.storyboard.layout import (
    CAPTION_PLACEHOLDER,
    PageLayout,
    cover_fit,
    paginate,
    wrap_caption,
)

logger = logging.getLogger(__name__)

Font = Union[ImageFont.FreeTypeFont, ImageFont.ImageFont]

# Tried in order after INKBOARD_FONT; CJK-capable fonts first.
_FONT_CANDIDATES = (
    "/usr/share/fonts/opentype/noto/NotoSansCJK-Regular.ttc",
    "/usr/share/fonts/noto-cjk/NotoSansCJK-Regular.ttc",
    "/System/Library/Fonts/PingFang.ttc",
    "C:/Windows/Fonts/msyh.ttc",
    "/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf",
    "/System/Library/Fonts/Helvetica.ttc",
)

_INK = (0, 0, 0)
_PAPER = (255, 255, 255)


def load_font(size: int) -> Font:
    """Return a TrueType font at *size*, falling back to Pillow's default."""
    candidates = list(_FONT_CANDIDATES)
    env_font = os.environ.get("INKBOARD_FONT")
    if env_font:
        candidates.insert(0, env_font)
    for path in candidates:
        try:
            return ImageFont.truetype(path, size)
        except OSError:
            continue
    return ImageFont.load_default(size=size)


@dataclass
class SheetFonts:
    header: Font
    number: Font
    caption: Font

    @classmethod
    def for_layout(cls, layout: PageLayout) -> "SheetFonts":
        return cls(
            header=load_font(layout.header_font_size),
            number=load_font(layout.number_font_size),
            caption=load_font(layout.caption_font_size),
        )


def _paste_cover(page: Image.Image, image_path: str, x: float, y: float, layout: PageLayout) -> None:
    """Cover-fit the image at *image_path* into the box at (x, y), clipped to the box."""
    box_w = int(round(layout.image_width))
    box_h = int(round(layout.image_height))
    with Image.open(image_path) as src:
        img = src.convert("RGB")

    fit = cover_fit(img.width, img.height, layout.image_width, layout.image_height)
    draw_w = max(box_w, int(round(fit.draw_width)))
    draw_h = max(box_h, int(round(fit.draw_height)))
    scaled = img.resize((draw_w, draw_h), Image.Resampling.LANCZOS)

    # Offsets are <= 0; cropping at -offset keeps only what falls inside the box.
    left = min(max(0, -int(round(fit.offset_x))), draw_w - box_w)
    top = min(max(0, -int(round(fit.offset_y))), draw_h - box_h)
    clipped = scaled.crop((left, top, left + box_w, top + box_h))
    page.paste(clipped, (int(round(x)), int(round(y))))


def render_page(
    frames: Sequence[Keyframe],
    page_number: int,
    first_shot_number: int,
    project_name: str,
    layout: PageLayout | None = None,
    fonts: SheetFonts | None = None,
) -> Image.Image:
    """Render one storyboard page holding up to ``layout.per_page`` frames.

    A keyframe whose image cannot be opened is logged and its cell is left
    with only the border, shot number and caption.
    """
    layout = layout or PageLayout()
    fonts = fonts or SheetFonts.for_layout(layout)
    if len(frames) > layout.per_page:
        raise ValueError(f"{len(frames)} frames do not fit on one page of {layout.per_page}")

    page = Image.new("RGB", (layout.page_width, layout.page_height), _PAPER)
    draw = ImageDraw.Draw(page)

    draw.text(
        (layout.padding, 70 - layout.header_font_size),
        f"{project_name} - Page {page_number}",
        font=fonts.header,
        fill=_INK,
    )
    draw.line(
        [(layout.padding, 85), (layout.page_width - layout.padding, 85)],
        fill=_INK,
        width=2,
    )

    for slot, frame in enumerate(frames):
        x, y = layout.cell_origin(slot)

        try:
            _paste_cover(page, frame.image_path, x, y, layout)
        except (OSError, ValueError) as exc:
            logger.warning("Failed to load image for %s: %s", frame.id, exc)

        draw.rectangle(
            [x, y, x + layout.image_width, y + layout.image_height],
            outline=_INK,
            width=3,
        )

        draw.text(
            (x - 5, y - 5 - layout.number_font_size),
            str(first_shot_number + slot),
            font=fonts.number,
            fill=_INK,
        )

        caption = frame.caption if frame.caption else CAPTION_PLACEHOLDER
        lines = wrap_caption(
            caption,
            lambda s: draw.textlength(s, font=fonts.caption),
            layout.image_width,
            layout.max_caption_lines,
        )
        caption_y = y + layout.image_height + layout.caption_offset
        for i, line in enumerate(lines):
            draw.text((x, caption_y + i * layout.line_height), line, font=fonts.caption, fill=_INK)

    return page


def compose_storyboard(
    frames: Sequence[Keyframe],
    project_name: str = "Storyboard Project",
    layout: PageLayout | None = None,
) -> list[Image.Image]:
    """Paginate *frames* and render every page. Shot numbers run across pages."""
    layout = layout or PageLayout()
    fonts = SheetFonts.for_layout(layout)
    pages: list[Image.Image] = []
    for page_index, chunk in enumerate(paginate(list(frames), layout.per_page)):
        pages.append(
            render_page(
                chunk,
                page_number=page_index + 1,
                first_shot_number=page_index * layout.per_page + 1,
                project_name=project_name,
                layout=layout,
                fonts=fonts,
            )
        )
    logger.info("Composed %d storyboard pages for %d frames", len(pages), len(frames))
    return pages


def encode_page(page: Image.Image, quality: int = 80, target: Path | None = None) -> bytes:
    """Encode a page as JPEG bytes. Raises RenderError on encoder failure."""
    buf = io.BytesIO()
    try:
        page.save(buf, format="JPEG", quality=quality)
    except (OSError, ValueError) as exc:
        raise RenderError(target or Path("<memory>"), str(exc)) from exc
    return buf.getvalue()
