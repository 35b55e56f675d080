"""Feedback to pixel buffer."""

import logging
from collections.abc import Iterable, Mapping
from typing import Optional

from surfacebridge.exceptions import RenderError
from surfacebridge.models.enums import TALLY_QUALIFIERS
from surfacebridge.models.feedback import FeedbackBase, Style, StylePreset

from .canvas import Canvas
from .renderers import renderer_for

logger = logging.getLogger(__name__)

# Renderer sizes are expressed for a control this many pixels tall
REFERENCE_HEIGHT = 72

PRESSED_INSET = 0.05
PRESSED_SCALE = 0.9


def render(
    feedback: Optional[FeedbackBase],
    width: int,
    height: int,
    is_pressed: bool = False,
) -> bytes:
    """
    Render feedback into a raw RGBA buffer of ``width * height * 4`` bytes.

    The canvas starts black. A pressed control is drawn inset: the
    transform is translated by 5% of each dimension and scaled by 0.9
    before the kind's renderer runs. ``None`` renders blank.

    Raises:
        RenderError: For a non-positive size
        UnsupportedFeedbackError: If no renderer handles the feedback kind
    """
    if width <= 0 or height <= 0:
        raise RenderError(
            "Cannot render a control with no pixels",
            technical_message=f"Invalid render size {width}x{height}",
        )

    canvas = Canvas(width, height)

    if is_pressed:
        canvas.translate(width * PRESSED_INSET, height * PRESSED_INSET)
        canvas.scale(PRESSED_SCALE)

    scale_factor = height / REFERENCE_HEIGHT

    if feedback is not None:
        renderer_for(feedback).render(canvas, feedback, scale_factor)

    return canvas.to_bytes()


def presets_by_id(presets: Iterable[StylePreset]) -> dict[str, StylePreset]:
    """Index presets by id; a later duplicate replaces an earlier one."""
    return {preset.id: preset for preset in presets}


def _lookup(feedback: FeedbackBase, name: str, presets: Mapping[str, Style]) -> Optional[Style]:
    flags = feedback.tally_flags
    for flag, qualifier in TALLY_QUALIFIERS:
        if flags & flag:
            preset = presets.get(f"{name}:{qualifier}")
            if preset is not None:
                return preset
    return presets.get(name)


def resolve_style(feedback: Optional[FeedbackBase], presets: Mapping[str, Style]) -> Optional[FeedbackBase]:
    """
    Merge the first matching style preset into ``feedback``.

    Class names are tried in order. For each name, tally-qualified variants
    are tried first (active, next, other, present, for the bits that are
    set), then the bare name. Style fields set explicitly on the feedback
    win over the preset's. With no match the feedback is returned as is.
    """
    if feedback is None or not feedback.style_class_names or not presets:
        return feedback

    for name in feedback.style_class_names:
        preset = _lookup(feedback, name, presets)
        if preset is None:
            continue
        base = Style(**{field: getattr(preset, field) for field in Style.model_fields})
        merged = feedback.style.merged_over(base) if feedback.style else base
        return feedback.with_style(merged)

    logger.debug(f"No style preset matched {feedback.style_class_names}")
    return feedback
