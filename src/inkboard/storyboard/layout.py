"""Storyboard sheet geometry: pagination, grid cells, cover-fit, caption wrap.

Everything here is pure arithmetic over layout constants so that the
compositor only has to draw what these helpers compute.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Sequence, TypeVar

T = TypeVar("T")

CAPTION_PLACEHOLDER = "待补充..."


@dataclass(frozen=True)
class PageLayout:
    """Fixed storyboard sheet layout (A4 landscape at ~300dpi)."""

    page_width: int = 2480
    page_height: int = 1754
    padding: int = 60
    header_height: int = 100
    columns: int = 4
    rows: int = 3
    gap_x: int = 40
    gap_y: int = 50
    text_area_height: int = 160
    caption_offset: int = 25
    line_height: int = 28
    max_caption_lines: int = 5
    header_font_size: int = 48
    number_font_size: int = 32
    caption_font_size: int = 24
    jpeg_quality: int = 80

    @property
    def per_page(self) -> int:
        return self.columns * self.rows

    @property
    def cell_width(self) -> float:
        grid_width = self.page_width - self.padding * 2
        return (grid_width - self.gap_x * (self.columns - 1)) / self.columns

    @property
    def cell_height(self) -> float:
        grid_height = self.page_height - self.padding * 2 - self.header_height
        return (grid_height - self.gap_y * (self.rows - 1)) / self.rows

    @property
    def image_width(self) -> float:
        return self.cell_width

    @property
    def image_height(self) -> float:
        return self.cell_height - self.text_area_height

    def cell_origin(self, slot: int) -> tuple[float, float]:
        """Return the top-left (x, y) of the image box for page slot *slot*."""
        col = slot % self.columns
        row = slot // self.columns
        x = self.padding + col * (self.cell_width + self.gap_x)
        y = self.padding + self.header_height + row * (self.cell_height + self.gap_y)
        return x, y


@dataclass(frozen=True)
class CoverFit:
    """Draw size and offset (relative to the box origin) for a cover-fitted image."""

    draw_width: float
    draw_height: float
    offset_x: float
    offset_y: float


def paginate(items: Sequence[T], per_page: int) -> list[list[T]]:
    """Split *items* into contiguous chunks of *per_page*, order preserved."""
    if per_page <= 0:
        raise ValueError(f"per_page must be > 0, got {per_page}")
    return [list(items[i:i + per_page]) for i in range(0, len(items), per_page)]


def cover_fit(image_width: float, image_height: float, box_width: float, box_height: float) -> CoverFit:
    """Scale an image to fully cover a box, centring the overflow.

    A relatively wider image matches the box height and gets a negative
    horizontal offset; a relatively taller (or equal) one matches the box
    width and gets a non-positive vertical offset.
    """
    if image_width <= 0 or image_height <= 0:
        raise ValueError(f"Invalid image size {image_width}x{image_height}")
    image_aspect = image_width / image_height
    box_aspect = box_width / box_height

    if image_aspect > box_aspect:
        draw_w = box_height * image_aspect
        return CoverFit(draw_w, box_height, (box_width - draw_w) / 2, 0.0)
    draw_h = box_width / image_aspect
    return CoverFit(box_width, draw_h, 0.0, (box_height - draw_h) / 2)


def wrap_caption(
    text: str,
    measure: Callable[[str], float],
    max_width: float,
    max_lines: int = 5,
) -> list[str]:
    """Break *text* into lines no wider than *max_width*, one code point at a time.

    Wrapping is per character rather than per word so that CJK and Latin text
    mix without whitespace tokenisation.  The first character of a line is
    always kept, even if it alone is too wide.  At most *max_lines* lines are
    returned; anything beyond is dropped.
    """
    lines: list[str] = []
    line = ""
    for ch in text:
        candidate = line + ch
        if line and measure(candidate) > max_width:
            lines.append(line)
            if len(lines) == max_lines:
                return lines
            line = ch
        else:
            line = candidate
    if line:
        lines.append(line)
    return lines[:max_lines]
