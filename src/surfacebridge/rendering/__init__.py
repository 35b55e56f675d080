"""Bitmap rendering of feedback values."""

from .canvas import Canvas
from .fonts import get_font, init_fonts
from .pipeline import presets_by_id, render, resolve_style
from .renderers import FeedbackRenderer, register_renderer, renderer_for

__all__ = [
    "Canvas",
    "FeedbackRenderer",
    "get_font",
    "init_fonts",
    "presets_by_id",
    "register_renderer",
    "render",
    "renderer_for",
    "resolve_style",
]
