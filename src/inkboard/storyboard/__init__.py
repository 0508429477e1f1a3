"""Storyboard package: sheet layout geometry and Pillow page rendering."""
from inkboard.storyboard.compositor import compose_storyboard, encode_page, render_page
from inkboard.storyboard.layout import CoverFit, PageLayout, cover_fit, paginate, wrap_caption

__all__ = [
    "CoverFit",
    "PageLayout",
    "compose_storyboard",
    "cover_fit",
    "encode_page",
    "paginate",
    "render_page",
    "wrap_caption",
]
