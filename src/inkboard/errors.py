from pathlib import Path


class InkboardError(Exception):
    """Base class for all Inkboard errors."""


class VideoOpenError(InkboardError):
    def __init__(self, source: Path, detail: str) -> None:
        super().__init__(
            f"Failed to open video '{source.name}'.\n"
            f"  Cause: {detail}\n"
            f"  Check: Is '{source.name}' a complete MP4/MOV/WEBM/MKV/AVI file?\n"
            f"  Tip: Run `ffprobe '{source}' -v quiet -show_streams` to verify the file is readable."
        )
        self.source = source
        self.detail = detail


class VideoDecodeError(InkboardError):
    def __init__(self, timestamp_s: float, detail: str) -> None:
        super().__init__(
            f"Failed to decode frame at {timestamp_s:.2f}s.\n"
            f"  Cause: {detail}\n"
            f"  Check: Is the video truncated or encoded with an unsupported codec?"
        )
        self.timestamp_s = timestamp_s
        self.detail = detail


class RenderError(InkboardError):
    def __init__(self, target: Path, detail: str) -> None:
        super().__init__(
            f"Failed to render image '{target.name}'.\n"
            f"  Cause: {detail}\n"
            f"  Check: Is the output directory writable and is there free disk space?"
        )
        self.target = target
        self.detail = detail


class ProjectError(InkboardError):
    def __init__(self, path: Path, detail: str) -> None:
        super().__init__(
            f"Cannot load storyboard project '{path.name}'.\n"
            f"  Cause: {detail}\n"
            f"  Check: Was the work directory created by `inkboard extract`?\n"
            f"  Tip: Re-run `inkboard extract` on the source video to rebuild the project file."
        )
        self.path = path
        self.detail = detail


class CaptionError(InkboardError):
    """Raised by CaptionClient when the captioning endpoint fails for one frame."""

    def __init__(self, detail: str) -> None:
        super().__init__(
            f"Caption request failed.\n"
            f"  Cause: {detail}\n"
            f"  Check: Is INKBOARD_CAPTION_URL pointing at a running chat-completions server?"
        )
        self.detail = detail
