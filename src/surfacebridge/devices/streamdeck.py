"""USB control surfaces via python-elgato-streamdeck.

The library is blocking and delivers input on its own reader thread.
`StreamDeckSurface` pushes every library call off the event loop with
``asyncio.to_thread`` and hands input back to the loop with
``call_soon_threadsafe``, so listeners only ever run on the loop.
"""

import asyncio
import logging
from collections.abc import Callable, Sequence
from typing import Any, Optional

from PIL import Image
from StreamDeck.DeviceManager import DeviceManager, ProbeError
from StreamDeck.Devices.StreamDeck import DialEventType, StreamDeck, TouchscreenEventType
from StreamDeck.ImageHelpers import PILHelper
from StreamDeck.Transport.Transport import TransportError as LibTransportError

from surfacebridge.exceptions import (
    DeviceNotFoundError,
    DeviceOpenError,
    InitError,
    TransportError,
    UnknownControlError,
)
from surfacebridge.models.config import StreamDeckOptions
from surfacebridge.models.enums import ControlKind

from .channel import DeviceEvents
from .codec import encode_control
from .handler import SurfaceHandler
from .protocols import ControlDefinition, SurfaceListener, find_control
from .registry import register_device

logger = logging.getLogger(__name__)


class StreamDeckSurface:
    """`Surface` adapter over an opened library deck."""

    def __init__(self, deck: StreamDeck, loop: asyncio.AbstractEventLoop):
        self._deck = deck
        self._loop = loop
        self._listener: Optional[SurfaceListener] = None

        self._dial_count = deck.dial_count()
        self._segment_width = 0
        self._controls = self._build_controls()

    @classmethod
    async def open(cls, deck: StreamDeck) -> "StreamDeckSurface":
        """Open ``deck`` and wire its callbacks to the running loop."""
        await asyncio.to_thread(deck.open)
        surface = cls(deck, asyncio.get_running_loop())
        deck.set_key_callback(surface._on_key)
        if surface._dial_count:
            deck.set_dial_callback(surface._on_dial)
            deck.set_touchscreen_callback(surface._on_touch)
        return surface

    def _build_controls(self) -> list[ControlDefinition]:
        deck = self._deck
        controls: list[ControlDefinition] = []

        key_w, key_h = (0, 0)
        if deck.is_visual():
            key_w, key_h = deck.key_image_format().get("size") or (0, 0)
        for key in range(deck.key_count()):
            controls.append(ControlDefinition(ControlKind.BUTTON, key, key_w, key_h))

        for dial in range(self._dial_count):
            controls.append(ControlDefinition(ControlKind.ENCODER, dial))

        if self._dial_count:
            lcd_w, lcd_h = deck.touchscreen_image_format().get("size") or (0, 0)
            if lcd_w and lcd_h:
                self._segment_width = lcd_w // self._dial_count
                for segment in range(self._dial_count):
                    controls.append(
                        ControlDefinition(ControlKind.LCD_SEGMENT, segment, self._segment_width, lcd_h)
                    )

        return controls

    @property
    def controls(self) -> list[ControlDefinition]:
        return self._controls

    @property
    def path(self) -> str:
        return self._deck.id()

    def set_listener(self, listener: Optional[SurfaceListener]) -> None:
        self._listener = listener

    # ================================================================
    # OUTPUT
    # ================================================================

    async def _call(self, operation: str, fn: Callable[..., Any], *args: Any) -> Any:
        def locked():
            with self._deck:
                return fn(*args)

        try:
            return await asyncio.to_thread(locked)
        except LibTransportError as e:
            raise TransportError(operation, str(e)) from e

    def _control(self, kind: ControlKind, index: int) -> ControlDefinition:
        control = find_control(self._controls, kind, index)
        if control is None or not control.has_display:
            raise UnknownControlError(encode_control(kind, index), len(self._controls))
        return control

    async def set_brightness(self, percent: int) -> None:
        await self._call("set brightness", self._deck.set_brightness, percent)

    async def clear_key(self, index: int) -> None:
        await self._call(f"clear key {index}", self._deck.set_key_image, index, None)

    async def fill_key_buffer(self, index: int, buffer: bytes) -> None:
        control = self._control(ControlKind.BUTTON, index)
        image = Image.frombytes("RGBA", (control.width, control.height), buffer).convert("RGB")
        native = PILHelper.to_native_key_format(self._deck, image)
        await self._call(f"fill key {index}", self._deck.set_key_image, index, native)

    async def fill_lcd(self, segment: int, buffer: bytes) -> None:
        control = self._control(ControlKind.LCD_SEGMENT, segment)
        image = Image.frombytes("RGBA", (control.width, control.height), buffer).convert("RGB")
        native = PILHelper.to_native_touchscreen_format(self._deck, image)
        await self._call(
            f"fill lcd {segment}",
            self._deck.set_touchscreen_image,
            native,
            segment * control.width,
            0,
            control.width,
            control.height,
        )

    async def clear_panel(self) -> None:
        await self._call("clear panel", self._clear_all)

    def _clear_all(self) -> None:
        for key in range(self._deck.key_count()):
            self._deck.set_key_image(key, None)
        for control in self._controls:
            if control.kind is ControlKind.LCD_SEGMENT:
                blank = Image.new("RGB", (control.width, control.height), (0, 0, 0))
                native = PILHelper.to_native_touchscreen_format(self._deck, blank)
                self._deck.set_touchscreen_image(
                    native, control.index * control.width, 0, control.width, control.height
                )

    async def close(self) -> None:
        """Reset to the manufacturer logo and close."""
        self._listener = None
        await self._call("close", self._reset_and_close)

    def _reset_and_close(self) -> None:
        self._deck.set_key_callback(None)
        if self._dial_count:
            self._deck.set_dial_callback(None)
            self._deck.set_touchscreen_callback(None)
        self._deck.reset()
        self._deck.close()

    # ================================================================
    # INPUT (library reader thread)
    # ================================================================

    def _dispatch(self, method: str, *args: Any) -> None:
        self._loop.call_soon_threadsafe(self._deliver, method, args)

    def _deliver(self, method: str, args: tuple) -> None:
        listener = self._listener
        if listener is None:
            return
        try:
            getattr(listener, method)(*args)
        except Exception as e:
            logger.error(f"Error in surface listener {method}: {e}", exc_info=True)

    def _on_key(self, deck: StreamDeck, key: int, state: bool) -> None:
        self._dispatch("on_down" if state else "on_up", encode_control(ControlKind.BUTTON, key))

    def _on_dial(self, deck: StreamDeck, dial: int, event: DialEventType, value: Any) -> None:
        control_id = encode_control(ControlKind.ENCODER, dial)
        if event == DialEventType.TURN:
            self._dispatch("on_rotate", control_id, int(value))
        elif event == DialEventType.PUSH:
            self._dispatch("on_down" if value else "on_up", control_id)

    def _on_touch(self, deck: StreamDeck, event: TouchscreenEventType, value: dict) -> None:
        if not self._segment_width:
            return
        x, y = value.get("x", 0), value.get("y", 0)
        segment = min(int(x // self._segment_width), self._dial_count - 1)
        origin = segment * self._segment_width
        control_id = encode_control(ControlKind.LCD_SEGMENT, segment)

        if event == TouchscreenEventType.SHORT:
            self._dispatch("on_lcd_short_press", control_id, x - origin, y)
        elif event == TouchscreenEventType.LONG:
            self._dispatch("on_lcd_long_press", control_id, x - origin, y)
        elif event == TouchscreenEventType.DRAG:
            self._dispatch(
                "on_lcd_swipe",
                control_id,
                x - origin,
                y,
                value.get("x_out", x) - origin,
                value.get("y_out", y),
            )


# ================================================================
# ENUMERATION
# ================================================================


def _read_serial(deck: StreamDeck) -> Optional[str]:
    """Serial number of a not-yet-opened deck, or None if it cannot be read."""
    try:
        with deck:
            deck.open()
            try:
                return deck.get_serial_number()
            finally:
                deck.close()
    except LibTransportError as e:
        logger.debug(f"Could not read serial of {deck.id()}: {e}")
        return None


def match_deck(
    decks: Sequence[StreamDeck],
    path: Optional[str] = None,
    serial_number: Optional[str] = None,
    index: Optional[int] = None,
) -> Optional[StreamDeck]:
    """
    First deck matching every supplied selector.

    ``index`` is the position in the enumeration order. Serial numbers are
    only read for decks that already passed the other selectors.
    """
    for position, deck in enumerate(decks):
        if path is not None and deck.id() != path:
            continue
        if index is not None and position != index:
            continue
        if serial_number is not None and _read_serial(deck) != serial_number:
            continue
        return deck
    return None


def enumerate_decks(device_manager_factory: Callable[[], Any] = DeviceManager) -> list[StreamDeck]:
    """
    Enumerate connected decks.

    Raises:
        InitError: If no USB HID backend is available
    """
    try:
        return device_manager_factory().enumerate()
    except ProbeError as e:
        raise InitError(
            "No USB HID backend available",
            technical_message=f"StreamDeck probe failed: {e}",
            recovery_hint="Install hidapi (libhidapi-libusb on Linux) and check USB permissions",
        ) from e


def list_surfaces(device_manager_factory: Callable[[], Any] = DeviceManager) -> list[dict[str, Any]]:
    """Describe connected decks for display."""
    surfaces = []
    for position, deck in enumerate(enumerate_decks(device_manager_factory)):
        surfaces.append({
            "index": position,
            "path": deck.id(),
            "type": deck.deck_type(),
            "serial_number": _read_serial(deck),
            "keys": deck.key_count(),
        })
    return surfaces


# ================================================================
# DEVICE
# ================================================================


@register_device("streamdeck")
class StreamDeckDevice:
    """
    USB-attached control surface.

    The first enumerated deck matching every configured selector (path,
    serial number, index) is opened; with no match ``init`` fails.
    """

    options_model = StreamDeckOptions

    def __init__(
        self,
        device_id: str,
        options: StreamDeckOptions,
        events: DeviceEvents,
        device_manager_factory: Callable[[], Any] = DeviceManager,
    ):
        self.device_id = device_id
        self._options = options
        self._events = events
        self._device_manager_factory = device_manager_factory
        self._handler: Optional[SurfaceHandler] = None

    @classmethod
    def get_options_manifest(cls) -> dict[str, Any]:
        return cls.options_model.model_json_schema()

    @property
    def is_initialized(self) -> bool:
        return self._handler is not None

    async def init(self) -> None:
        """
        Find, open and prepare the deck.

        Raises:
            DeviceNotFoundError: If no deck matches the selectors
            DeviceOpenError: If the matching deck cannot be opened
        """
        options = self._options
        decks = await asyncio.to_thread(enumerate_decks, self._device_manager_factory)
        deck = await asyncio.to_thread(
            match_deck, decks, options.path, options.serial_number, options.index
        )
        if deck is None:
            raise DeviceNotFoundError(
                {"path": options.path, "serial_number": options.serial_number, "index": options.index},
                device_id=self.device_id,
            )

        try:
            surface = await StreamDeckSurface.open(deck)
        except (LibTransportError, OSError) as e:
            raise DeviceOpenError(deck.id(), str(e), device_id=self.device_id) from e

        handler = SurfaceHandler(
            surface,
            self._events,
            brightness=options.brightness,
            style_presets=options.style_presets,
            close_on_destroy=True,
        )
        try:
            await handler.init()
        except TransportError as e:
            await handler.destroy()
            raise DeviceOpenError(deck.id(), e.technical_message, device_id=self.device_id) from e

        self._handler = handler
        logger.info(f"[{self.device_id}] Opened {deck.deck_type()} at {deck.id()}")

    async def destroy(self) -> None:
        handler, self._handler = self._handler, None
        if handler is not None:
            await handler.destroy()
        self._events.close()

    async def set_feedback(self, trigger_id: str, feedback) -> None:
        if self._handler is None:
            return
        await self._handler.set_feedback(trigger_id, feedback)

    async def clear_feedback_all(self) -> None:
        if self._handler is None:
            return
        await self._handler.clear_feedback_all()
