from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, Optional


def keyframe_id(time_s: float) -> str:
    """Return the stable identifier for a keyframe sampled at *time_s*."""
    return f"frame-{time_s:.2f}"


@dataclass
class Keyframe:
    """A single extracted keyframe and its display state."""

    id: str
    time: float             # Sample timestamp in seconds
    original_path: str      # JPEG captured at extraction time, never replaced
    image_path: str         # Currently displayed JPEG (original or sketch)
    is_sketch: bool = False
    caption: Optional[str] = None   # None = not yet captioned

    @classmethod
    def capture(cls, time_s: float, frame_path: str) -> "Keyframe":
        """Create a fresh keyframe whose display image is its original capture."""
        return cls(
            id=keyframe_id(time_s),
            time=time_s,
            original_path=frame_path,
            image_path=frame_path,
        )


class KeyframeList:
    """Dense, ordered keyframe sequence with index-addressed updates.

    Slots are never removed. Display image and caption updates go through
    :meth:`apply_sketch` and :meth:`set_caption` so that concurrent workers
    each touch only their own index.
    """

    def __init__(self, keyframes: list[Keyframe] | None = None) -> None:
        self._items: list[Keyframe] = list(keyframes or [])
        self._index_by_id: dict[str, int] = {}
        for i, kf in enumerate(self._items):
            if kf.id in self._index_by_id:
                raise ValueError(f"Duplicate keyframe id {kf.id!r}")
            self._index_by_id[kf.id] = i

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[Keyframe]:
        return iter(self._items)

    def __getitem__(self, index: int) -> Keyframe:
        return self._items[index]

    def index_of(self, frame_id: str) -> int:
        """Return the slot index for *frame_id*. Raises KeyError if unknown."""
        return self._index_by_id[frame_id]

    def set_caption(self, index: int, caption: str) -> None:
        self._items[index].caption = caption

    def apply_sketch(self, index: int, sketch_path: str) -> bool:
        """Point slot *index* at a stylised image.

        Returns False (and changes nothing) when the slot is already a sketch;
        the sketch filter is applied at most once per keyframe.
        """
        kf = self._items[index]
        if kf.is_sketch:
            return False
        kf.image_path = sketch_path
        kf.is_sketch = True
        return True

    def uncaptioned(self) -> list[int]:
        """Return indices of slots whose caption has not been set yet."""
        return [i for i, kf in enumerate(self._items) if kf.caption is None]

    def to_list(self) -> list[Keyframe]:
        return list(self._items)
