"""Export package: shot-list CSV, frame archive, storyboard sheets."""
from inkboard.export.archive import write_frames_archive, write_storyboard
from inkboard.export.table import format_timecode, write_shot_table

__all__ = [
    "format_timecode",
    "write_frames_archive",
    "write_shot_table",
    "write_storyboard",
]
