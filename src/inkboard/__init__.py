"""Inkboard: scene-change keyframes, pencil-sketch filter, storyboard sheets."""

__version__ = "0.1.0"
