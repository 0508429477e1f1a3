"""Shot-list CSV export.

Format: UTF-8 with a leading BOM (so spreadsheet apps detect the encoding),
header ``Shot No.,Timecode,Description``, one row per keyframe.  The
description is always wrapped in double quotes with inner quotes doubled;
an uncaptioned keyframe gets an empty field.
"""

from __future__ import annotations

import math
from pathlib import Path
from typing import Iterable

from inkboard.errors import RenderError
from inkboard.models import Keyframe

CSV_HEADER = "Shot No.,Timecode,Description"


def format_timecode(seconds: float) -> str:
    """Format *seconds* as ``m:ss`` (minutes unpadded). NaN/negative -> ``0:00``."""
    if seconds is None or math.isnan(seconds) or seconds < 0:
        return "0:00"
    minutes = int(seconds // 60)
    secs = int(seconds % 60)
    return f"{minutes}:{secs:02d}"


def quote_description(caption: str | None) -> str:
    if not caption:
        return ""
    return '"' + caption.replace('"', '""') + '"'


def shot_table_rows(keyframes: Iterable[Keyframe]) -> list[str]:
    """Return the CSV lines (header first, no line terminators)."""
    rows = [CSV_HEADER]
    for index, kf in enumerate(keyframes):
        rows.append(f"{index + 1},{format_timecode(kf.time)},{quote_description(kf.caption)}")
    return rows


def write_shot_table(keyframes: Iterable[Keyframe], path: Path) -> Path:
    """Write the shot-list CSV to *path* and return it."""
    content = "".join(row + "\n" for row in shot_table_rows(keyframes))
    # utf-8-sig writes the BOM
    try:
        with open(path, "w", encoding="utf-8-sig", newline="") as fh:
            fh.write(content)
    except OSError as exc:
        raise RenderError(path, f"Cannot write shot table: {exc}") from exc
    return path
