from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from inkboard.models import Keyframe, KeyframeList

PROJECT_FILENAME = "STORYBOARD.json"


class KeyframeEntry(BaseModel):
    id: str
    time: float = Field(ge=0.0)
    original_path: str
    image_path: str
    is_sketch: bool = False
    caption: Optional[str] = None

    @model_validator(mode="after")
    def display_matches_original_until_sketched(self) -> "KeyframeEntry":
        if not self.is_sketch and self.image_path != self.original_path:
            raise ValueError("image_path must equal original_path until the keyframe is sketched")
        return self

    @classmethod
    def from_keyframe(cls, kf: Keyframe) -> "KeyframeEntry":
        return cls(
            id=kf.id,
            time=kf.time,
            original_path=kf.original_path,
            image_path=kf.image_path,
            is_sketch=kf.is_sketch,
            caption=kf.caption,
        )

    def to_keyframe(self) -> Keyframe:
        return Keyframe(**self.model_dump())


class StoryboardProject(BaseModel):
    """Persisted extraction result plus later caption/sketch updates."""
    schema_version: str = "1.0"
    source_file: str
    project_name: str
    duration_s: float = Field(ge=0.0)
    keyframes: list[KeyframeEntry] = Field(default_factory=list)

    @field_validator("keyframes")
    @classmethod
    def strictly_increasing_times(cls, v: list[KeyframeEntry]) -> list[KeyframeEntry]:
        for prev, nxt in zip(v, v[1:]):
            if nxt.time <= prev.time:
                raise ValueError(
                    f"keyframe times must be strictly increasing ({prev.time} then {nxt.time})"
                )
        return v

    def keyframe_list(self) -> KeyframeList:
        return KeyframeList([entry.to_keyframe() for entry in self.keyframes])

    def with_keyframes(self, keyframes: KeyframeList) -> "StoryboardProject":
        return self.model_copy(
            update={"keyframes": [KeyframeEntry.from_keyframe(kf) for kf in keyframes]}
        )
