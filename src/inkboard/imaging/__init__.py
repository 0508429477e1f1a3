"""Inkboard imaging package: frame difference, box blur and the sketch filter."""
from inkboard.imaging.blur import box_blur
from inkboard.imaging.difference import frame_difference
from inkboard.imaging.sketch import luminance, sketch_image, sketch_pixels

__all__ = [
    "box_blur",
    "frame_difference",
    "luminance",
    "sketch_image",
    "sketch_pixels",
]
