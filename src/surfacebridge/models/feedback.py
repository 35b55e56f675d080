"""Feedback models: what a control should currently display.

Feedback values are immutable. The controller sends a new value whenever
the display should change; ``None`` means "blank".
"""

from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator

from .color import Color
from .enums import Tally


class Style(BaseModel):
    """Visual style applied to a feedback before rendering.

    Every field is optional; unset fields fall back to the renderer's
    defaults or to a lower-precedence style when merged.
    """

    model_config = ConfigDict(frozen=True)

    background_color: Optional[Color] = None
    text_color: Optional[Color] = None
    accent_color: Optional[Color] = None
    border_color: Optional[Color] = None
    font_size: Optional[int] = Field(default=None, ge=4, le=96)

    def merged_over(self, base: Optional["Style"]) -> "Style":
        """Return a style where this style's set fields win over ``base``."""
        if base is None:
            return Style(**self._own_fields())
        merged = base._own_fields()
        merged.update({k: v for k, v in self._own_fields().items() if v is not None})
        return Style(**merged)

    def _own_fields(self) -> dict[str, Any]:
        return {name: getattr(self, name) for name in Style.model_fields}


class StylePreset(Style):
    """A named style.

    Tally-qualified variants are separate presets whose id carries a
    suffix: ``name:active``, ``name:next``, ``name:other``, ``name:present``.
    """

    id: str = Field(min_length=1, description="Preset name, optionally with a ':<tally>' suffix")


class FeedbackBase(BaseModel):
    """Fields common to every feedback kind."""

    model_config = ConfigDict(frozen=True)

    type: str
    tally: int = Field(default=0, ge=0, le=15, description="Tally bit set (ACTIVE=1, NEXT=2, OTHER=4, PRESENT=8)")
    style_class_names: Optional[list[str]] = None
    style: Optional[Style] = None

    @field_validator("tally", mode="before")
    @classmethod
    def parse_tally(cls, v: Any) -> Any:
        """Accept a list of tally names (["active", "next"]) as well as an int."""
        if v is None:
            return 0
        if isinstance(v, (list, tuple)):
            flags = Tally.NONE
            for name in v:
                try:
                    flags |= Tally[str(name).upper()]
                except KeyError as e:
                    raise ValueError(f"Unknown tally '{name}'") from e
            return int(flags)
        return v

    @property
    def tally_flags(self) -> Tally:
        return Tally(self.tally)

    def with_style(self, style: Style) -> "FeedbackBase":
        """Return a copy carrying ``style``."""
        return self.model_copy(update={"style": style})


class TextFeedback(FeedbackBase):
    """A text label drawn centered on the control."""

    type: Literal["text"] = "text"
    text: str = ""


class IndicatorFeedback(FeedbackBase):
    """A single-color lamp, optionally with a label underneath."""

    type: Literal["indicator"] = "indicator"
    color: Optional[Color] = None
    label: Optional[str] = None


class GaugeFeedback(FeedbackBase):
    """A horizontal level meter for a 0..1 value."""

    type: Literal["gauge"] = "gauge"
    value: float = Field(default=0.0, ge=0.0, le=1.0)
    label: Optional[str] = None


class ImageFeedback(FeedbackBase):
    """An image file scaled to fit the control."""

    type: Literal["image"] = "image"
    path: str
    label: Optional[str] = None


Feedback = Annotated[
    Union[TextFeedback, IndicatorFeedback, GaugeFeedback, ImageFeedback],
    Field(discriminator="type"),
]

feedback_adapter: TypeAdapter[Feedback] = TypeAdapter(Feedback)


def parse_feedback(data: Any) -> Optional[FeedbackBase]:
    """Validate a raw (dict or JSON string) feedback value; None stays None."""
    if data is None:
        return None
    if isinstance(data, (str, bytes)):
        return feedback_adapter.validate_json(data)
    return feedback_adapter.validate_python(data)
