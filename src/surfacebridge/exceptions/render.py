"""Rendering exceptions.

These are caught and logged per operation by the device handlers; a bad
feedback value never takes down the render path.
"""

from typing import Optional

from .base import SurfaceBridgeError


class RenderError(SurfaceBridgeError):
    """A feedback value could not be rendered."""

    def __init__(self, user_message: str, technical_message: Optional[str] = None):
        super().__init__(
            user_message=user_message,
            technical_message=technical_message,
            recoverable=True,
        )


class UnknownControlError(RenderError):
    """The control index is outside the surface's layout."""

    def __init__(self, control_id: str, control_count: int):
        super().__init__(
            user_message=f"Unknown control '{control_id}'",
            technical_message=f"Control '{control_id}' is outside the surface layout ({control_count} controls)",
        )
        self.control_id = control_id
        self.control_count = control_count


class UnsupportedFeedbackError(RenderError):
    """No renderer is registered for the feedback kind."""

    def __init__(self, kind: str):
        super().__init__(
            user_message=f"Unsupported feedback kind '{kind}'",
            technical_message=f"No renderer registered for feedback type '{kind}'",
        )
        self.kind = kind
