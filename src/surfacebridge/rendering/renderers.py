"""Per-kind feedback renderers.

Each renderer draws one feedback kind onto a `Canvas`. Sizes are given in
units of a 72px reference control and multiplied by ``scale_factor``, so
the same feedback looks alike on controls of any pixel density.

New kinds are added with ``register_renderer``.
"""

import logging
from functools import lru_cache
from pathlib import Path
from typing import Optional, Protocol

from PIL import Image, UnidentifiedImageError

from surfacebridge.exceptions import UnsupportedFeedbackError
from surfacebridge.models.color import Color
from surfacebridge.models.feedback import (
    FeedbackBase,
    GaugeFeedback,
    ImageFeedback,
    IndicatorFeedback,
    Style,
    TextFeedback,
)

from .canvas import Canvas

logger = logging.getLogger(__name__)

DEFAULT_TEXT_COLOR = Color.white()
DEFAULT_ACCENT_COLOR = Color(r=0, g=200, b=80)
GAUGE_TRACK_COLOR = Color(r=60, g=60, b=60)

DEFAULT_FONT_SIZE = 14
LABEL_FONT_SIZE = 11


class FeedbackRenderer(Protocol):
    """Draws one feedback kind."""

    def render(self, canvas: Canvas, feedback: FeedbackBase, scale_factor: float) -> None:
        ...


def _style(feedback: FeedbackBase) -> Style:
    return feedback.style or Style()


def _draw_frame(canvas: Canvas, style: Style, scale_factor: float) -> None:
    """Background and border shared by every kind."""
    if style.background_color is not None:
        canvas.fill_rect((0, 0, canvas.width, canvas.height), style.background_color.to_rgba_tuple())
    if style.border_color is not None:
        canvas.outline_rect(
            (0, 0, canvas.width - 1, canvas.height - 1),
            style.border_color.to_rgba_tuple(),
            width=3 * scale_factor,
        )


def _draw_label(canvas: Canvas, label: Optional[str], style: Style, scale_factor: float, y: float) -> None:
    if not label:
        return
    color = style.text_color or DEFAULT_TEXT_COLOR
    canvas.text(
        canvas.width / 2,
        y,
        label,
        LABEL_FONT_SIZE * scale_factor,
        color.to_rgba_tuple(),
        max_width=canvas.width * 0.9,
    )


class TextRenderer:
    """Centered text; literal ``\\n`` sequences become line breaks."""

    def render(self, canvas: Canvas, feedback: TextFeedback, scale_factor: float) -> None:
        style = _style(feedback)
        _draw_frame(canvas, style, scale_factor)

        text = feedback.text.replace("\\n", "\n")
        size = (style.font_size or DEFAULT_FONT_SIZE) * scale_factor
        color = style.text_color or DEFAULT_TEXT_COLOR
        canvas.text(
            canvas.width / 2,
            canvas.height / 2,
            text,
            size,
            color.to_rgba_tuple(),
            bold=True,
            max_width=canvas.width * 0.9,
        )


class IndicatorRenderer:
    """A filled lamp; an absent color draws the lamp outline only."""

    def render(self, canvas: Canvas, feedback: IndicatorFeedback, scale_factor: float) -> None:
        style = _style(feedback)
        _draw_frame(canvas, style, scale_factor)

        radius = 16 * scale_factor
        cx = canvas.width / 2
        cy = canvas.height * (0.4 if feedback.label else 0.5)
        box = (cx - radius, cy - radius, cx + radius, cy + radius)

        color = feedback.color or style.accent_color
        outline = (style.border_color or GAUGE_TRACK_COLOR).to_rgba_tuple()
        if color is not None:
            canvas.ellipse(box, fill=color.to_rgba_tuple(), outline=outline, width=2 * scale_factor)
        else:
            canvas.ellipse(box, outline=outline, width=2 * scale_factor)

        _draw_label(canvas, feedback.label, style, scale_factor, canvas.height * 0.82)


class GaugeRenderer:
    """A horizontal bar filled to ``value``."""

    def render(self, canvas: Canvas, feedback: GaugeFeedback, scale_factor: float) -> None:
        style = _style(feedback)
        _draw_frame(canvas, style, scale_factor)

        margin = 8 * scale_factor
        bar_height = 12 * scale_factor
        top = canvas.height * 0.6
        left, right = margin, canvas.width - margin

        canvas.fill_rect((left, top, right, top + bar_height), GAUGE_TRACK_COLOR.to_rgba_tuple())
        if feedback.value > 0:
            fill_right = left + (right - left) * feedback.value
            accent = style.accent_color or DEFAULT_ACCENT_COLOR
            canvas.fill_rect((left, top, fill_right, top + bar_height), accent.to_rgba_tuple())

        _draw_label(canvas, feedback.label, style, scale_factor, canvas.height * 0.3)


@lru_cache(maxsize=64)
def _open_image(path: str) -> Image.Image:
    # Raises on failure so that only readable images are cached
    with Image.open(Path(path).expanduser()) as img:
        return img.convert("RGBA")


def load_image(path: str) -> Optional[Image.Image]:
    """Load an image as RGBA, or None (logged) if it cannot be read."""
    try:
        return _open_image(path)
    except (OSError, UnidentifiedImageError) as e:
        logger.warning(f"Could not load image {path}: {e}")
        return None


class ImageRenderer:
    """An image fitted into the control, label underneath if given."""

    def render(self, canvas: Canvas, feedback: ImageFeedback, scale_factor: float) -> None:
        style = _style(feedback)
        _draw_frame(canvas, style, scale_factor)

        image = load_image(feedback.path)
        bottom = canvas.height * (0.72 if feedback.label else 1.0)
        if image is not None:
            canvas.paste(image, (0, 0, canvas.width, bottom))

        _draw_label(canvas, feedback.label, style, scale_factor, canvas.height * 0.86)


_RENDERERS: dict[str, FeedbackRenderer] = {
    "text": TextRenderer(),
    "indicator": IndicatorRenderer(),
    "gauge": GaugeRenderer(),
    "image": ImageRenderer(),
}


def register_renderer(kind: str, renderer: FeedbackRenderer) -> None:
    """Register (or replace) the renderer for feedback ``type`` == ``kind``."""
    _RENDERERS[kind] = renderer
    logger.debug(f"Registered renderer for '{kind}': {type(renderer).__name__}")


def renderer_for(feedback: FeedbackBase) -> FeedbackRenderer:
    """
    Renderer for a feedback value.

    Raises:
        UnsupportedFeedbackError: If no renderer handles ``feedback.type``
    """
    renderer = _RENDERERS.get(feedback.type)
    if renderer is None:
        raise UnsupportedFeedbackError(feedback.type)
    return renderer
