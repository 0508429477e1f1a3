"""Inkboard inference package: remote shot captioning."""
from inkboard.inference.captioner import (
    CAPTION_FAILED,
    CaptionClient,
    get_caption_url,
    run_caption_pool,
)

__all__ = [
    "CAPTION_FAILED",
    "CaptionClient",
    "get_caption_url",
    "run_caption_pool",
]
