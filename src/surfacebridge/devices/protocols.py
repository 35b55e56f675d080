"""Device protocols and abstractions.

Three layers meet here:

- `Surface`: an open piece of hardware (USB or network). Knows pixels
  and control indices, nothing about feedback.
- `SurfaceListener`: what a surface reports input to.
- `Device`: the façade the application talks to. Variants are picked by
  configuration (see `devices.registry`), not by inheritance.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Optional, Protocol, runtime_checkable

from surfacebridge.models.enums import ControlKind

from .codec import encode_control

if TYPE_CHECKING:
    from surfacebridge.models.feedback import FeedbackBase


@dataclass(frozen=True)
class ControlDefinition:
    """One addressable control and the size of its display (0x0 if none)."""

    kind: ControlKind
    index: int
    width: int = 0
    height: int = 0

    @property
    def control_id(self) -> str:
        return encode_control(self.kind, self.index)

    @property
    def has_display(self) -> bool:
        return self.width > 0 and self.height > 0


def find_control(
    controls: list[ControlDefinition], kind: ControlKind, index: int
) -> Optional[ControlDefinition]:
    for control in controls:
        if control.kind is kind and control.index == index:
            return control
    return None


class SurfaceListener(Protocol):
    """Receives input from a surface, one call per physical event."""

    def on_down(self, control_id: str) -> None:
        ...

    def on_up(self, control_id: str) -> None:
        ...

    def on_rotate(self, control_id: str, delta: int) -> None:
        ...

    def on_lcd_short_press(self, control_id: str, x: float, y: float) -> None:
        ...

    def on_lcd_long_press(self, control_id: str, x: float, y: float) -> None:
        ...

    def on_lcd_swipe(
        self, control_id: str, from_x: float, from_y: float, to_x: float, to_y: float
    ) -> None:
        ...

    def on_error(self, error: Exception) -> None:
        ...


@runtime_checkable
class Surface(Protocol):
    """
    An open control surface.

    Buffers are raw RGBA at the control's reported size. Write failures
    raise `TransportError`.
    """

    @property
    def controls(self) -> list[ControlDefinition]:
        ...

    def set_listener(self, listener: Optional[SurfaceListener]) -> None:
        ...

    async def set_brightness(self, percent: int) -> None:
        ...

    async def clear_panel(self) -> None:
        ...

    async def clear_key(self, index: int) -> None:
        ...

    async def fill_key_buffer(self, index: int, buffer: bytes) -> None:
        ...

    async def fill_lcd(self, segment: int, buffer: bytes) -> None:
        ...

    async def close(self) -> None:
        ...


@runtime_checkable
class NetworkSurface(Surface, Protocol):
    """A surface reached over a connection that can drop."""

    async def wait_closed(self) -> None:
        """Return once the underlying connection has closed."""
        ...


ConnectedCallback = Callable[[NetworkSurface], Awaitable[None]]
DisconnectedCallback = Callable[[NetworkSurface], Awaitable[None]]
ErrorCallback = Callable[[Exception], Awaitable[None]]


class ConnectionManager(Protocol):
    """
    Reconnecting transport for network surfaces.

    Callbacks are awaited in event order, so a ``disconnected`` callback
    never runs before the matching ``connected`` callback has returned.
    """

    def on_connected(self, callback: ConnectedCallback) -> None:
        ...

    def on_disconnected(self, callback: DisconnectedCallback) -> None:
        ...

    def on_error(self, callback: ErrorCallback) -> None:
        ...

    async def connect_to(self, address: str, port: int) -> None:
        ...

    async def disconnect_from_all(self) -> None:
        ...


@runtime_checkable
class Device(Protocol):
    """
    Uniform façade over every input mechanism.

    - ``init`` raises `InitError` or `ConfigurationError`.
    - ``destroy`` is best-effort and never raises.
    - ``set_feedback`` is a no-op before init; transport errors are logged.
    """

    device_id: str

    async def init(self) -> None:
        ...

    async def destroy(self) -> None:
        ...

    async def set_feedback(self, trigger_id: str, feedback: Optional[FeedbackBase]) -> None:
        ...

    async def clear_feedback_all(self) -> None:
        ...

    @classmethod
    def get_options_manifest(cls) -> dict[str, Any]:
        ...
