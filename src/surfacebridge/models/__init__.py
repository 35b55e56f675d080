"""Data models for the surface bridge."""

from .color import Color
from .config import AppConfig, DeviceOptions, HttpOptions, StreamDeckOptions, StreamDeckTcpOptions
from .enums import ACTION_PRIORITIES, ActionKind, ConnectionState, ControlKind, Tally
from .feedback import (
    Feedback,
    FeedbackBase,
    GaugeFeedback,
    ImageFeedback,
    IndicatorFeedback,
    Style,
    StylePreset,
    TextFeedback,
    parse_feedback,
)

__all__ = [
    # Config
    "AppConfig",
    "DeviceOptions",
    "HttpOptions",
    "StreamDeckOptions",
    "StreamDeckTcpOptions",
    # Models
    "Color",
    "Feedback",
    "FeedbackBase",
    "GaugeFeedback",
    "ImageFeedback",
    "IndicatorFeedback",
    "Style",
    "StylePreset",
    "TextFeedback",
    "parse_feedback",
    # Enums
    "ACTION_PRIORITIES",
    "ActionKind",
    "ConnectionState",
    "ControlKind",
    "Tally",
]
