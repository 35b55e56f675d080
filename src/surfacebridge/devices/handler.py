"""
Inner handler for one open control surface.

SurfaceHandler sits between a `Surface` and the device façades. It is
used directly by the USB variant and recreated by `ConnectionProxy` on
every network (re)connection.

Input path::

    Surface ──on_down/on_rotate/...──► SurfaceHandler ──► DeviceEvents ──► EventChannel

Feedback path::

    set_feedback("3 Down", fb) ─► FeedbackStore ─► resolve_style ─► render ─► SendQueue ─► Surface

Session state (the feedback store and the pressed-state map) belongs to
the handler and is dropped on ``destroy``.
"""

import asyncio
import logging
from collections.abc import Iterable
from typing import Optional

from surfacebridge.exceptions import (
    RenderError,
    TransportError,
    UnknownControlError,
    handle_errors,
)
from surfacebridge.models.enums import ACTION_PRIORITIES, ActionKind, ControlKind
from surfacebridge.models.feedback import FeedbackBase, StylePreset
from surfacebridge.rendering import presets_by_id, render, resolve_style

from .channel import DeviceEvents
from .codec import decode_control, format_trigger, parse_trigger
from .feedback_store import FeedbackStore
from .protocols import Surface, find_control
from .send_queue import SendQueue

logger = logging.getLogger(__name__)

DEFAULT_BRIGHTNESS = 100


class SurfaceHandler:
    """
    Translate surface input to triggers and feedback to bitmaps.

    Implements `SurfaceListener` for its surface.
    """

    # ================================================================
    # INITIALIZATION
    # ================================================================

    def __init__(
        self,
        surface: Surface,
        events: DeviceEvents,
        brightness: int = DEFAULT_BRIGHTNESS,
        style_presets: Iterable[StylePreset] = (),
        close_on_destroy: bool = True,
    ):
        """
        Initialize the handler.

        Args:
            surface: Open surface to drive
            events: Emitter for this device's triggers
            brightness: Panel brightness applied at init (percent)
            style_presets: Presets referenced by feedback class names
            close_on_destroy: Close the surface on destroy (USB). When False
                the panel is blanked instead and the transport owner closes it.
        """
        self._surface = surface
        self._events = events
        self._brightness = brightness
        self._presets = presets_by_id(style_presets)
        self._close_on_destroy = close_on_destroy

        self._feedback = FeedbackStore()
        self._is_down: dict[str, bool] = {}
        self._queue = SendQueue(name=events.device_id)
        self._background: set[asyncio.Task] = set()
        self._initialized = False

    @property
    def device_id(self) -> str:
        return self._events.device_id

    @property
    def surface(self) -> Surface:
        return self._surface

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    # ================================================================
    # LIFECYCLE MANAGEMENT
    # ================================================================

    async def init(self) -> None:
        """
        Prepare the surface: brightness, listener, blank panel.

        Raises:
            TransportError: If the panel cannot be cleared
        """
        try:
            await self._surface.set_brightness(self._brightness)
        except TransportError as e:
            logger.warning(f"[{self.device_id}] Failed to set brightness: {e.technical_message}")

        self._surface.set_listener(self)
        await self._surface.clear_panel()

        self._initialized = True
        logger.info(f"[{self.device_id}] Surface ready with {len(self._surface.controls)} controls")

    async def destroy(self) -> None:
        """Stop drawing and release the surface. Never raises."""
        self._initialized = False
        self._queue.clear()
        self._surface.set_listener(None)

        for task in list(self._background):
            task.cancel()
        self._background.clear()

        await self._release_surface()

        self._feedback.clear()
        self._is_down.clear()
        logger.debug(f"[{self.device_id}] Handler destroyed")

    @handle_errors(operation_name="release surface", re_raise=False, log_level=logging.WARNING)
    async def _release_surface(self) -> None:
        if self._close_on_destroy:
            await self._surface.close()
        else:
            await self._surface.clear_panel()

    # ================================================================
    # FEEDBACK
    # ================================================================

    async def set_feedback(self, trigger_id: str, feedback: Optional[FeedbackBase]) -> None:
        """
        Record feedback for ``"<control id> <action>"`` and redraw the control.

        No-op before init or when the trigger carries no action.
        """
        if not self._initialized:
            return

        parsed = parse_trigger(trigger_id)
        if not parsed.action:
            return

        action = parsed.action_kind
        if action is None:
            logger.warning(f"[{self.device_id}] Ignoring feedback for unknown action in '{trigger_id}'")
            return

        self._feedback.set(parsed.control_id, action, feedback)
        await self._update_feedback(parsed.control_id)

    async def clear_feedback_all(self) -> None:
        """Forget all feedback and blank every control that had some."""
        control_ids = self._feedback.all_feedback_ids()
        self._feedback.clear()
        if not self._initialized:
            return
        await asyncio.gather(*(self._update_feedback(cid) for cid in control_ids))

    async def _update_feedback(self, control_id: str) -> None:
        """Queue a redraw of ``control_id``, replacing any redraw still waiting."""
        self._queue.remove(control_id)
        future = self._queue.add(lambda: self._draw(control_id), class_name=control_id)
        try:
            await future
        except asyncio.CancelledError:
            task = asyncio.current_task()
            if task is not None and task.cancelling():
                raise
            logger.debug(f"[{self.device_id}] Redraw of {control_id} superseded")

    def _schedule_redraw(self, control_id: str) -> None:
        """Redraw in the background (used from input callbacks)."""
        task = asyncio.get_running_loop().create_task(self._quiet_update(control_id))
        self._background.add(task)
        task.add_done_callback(self._background.discard)

    async def _quiet_update(self, control_id: str) -> None:
        try:
            await self._update_feedback(control_id)
        except Exception as e:
            logger.debug(f"[{self.device_id}] Background redraw of {control_id} failed: {e}")

    # ================================================================
    # DRAWING (runs inside the send queue)
    # ================================================================

    async def _draw(self, control_id: str) -> None:
        ref = decode_control(control_id)
        feedback = resolve_style(self._feedback.get(control_id, ACTION_PRIORITIES), self._presets)
        pressed = self._is_down.get(control_id, False)

        try:
            if ref.key is not None:
                await self._draw_key(control_id, ref.key, feedback, pressed)
            if ref.lcd_segment is not None:
                await self._draw_lcd(control_id, ref.lcd_segment, feedback, pressed, ref.kind)
        except (RenderError, TransportError) as e:
            logger.warning(f"[{self.device_id}] Failed to draw {control_id}: {e.technical_message}")

    async def _draw_key(
        self, control_id: str, index: int, feedback: Optional[FeedbackBase], pressed: bool
    ) -> None:
        controls = self._surface.controls
        control = find_control(controls, ControlKind.BUTTON, index)
        if control is None:
            raise UnknownControlError(control_id, len(controls))
        if not control.has_display:
            return

        if feedback is None:
            await self._surface.clear_key(index)
        else:
            buffer = render(feedback, control.width, control.height, pressed)
            await self._surface.fill_key_buffer(index, buffer)

    async def _draw_lcd(
        self,
        control_id: str,
        segment: int,
        feedback: Optional[FeedbackBase],
        pressed: bool,
        kind: ControlKind,
    ) -> None:
        controls = self._surface.controls
        control = find_control(controls, ControlKind.LCD_SEGMENT, segment)
        if control is None:
            if kind is ControlKind.ENCODER:
                # Encoder without a display above it
                return
            raise UnknownControlError(control_id, len(controls))

        buffer = render(feedback, control.width, control.height, pressed)
        await self._surface.fill_lcd(segment, buffer)

    # ================================================================
    # SURFACE INPUT
    # ================================================================

    def on_down(self, control_id: str) -> None:
        self._is_down[control_id] = True
        self._events.add_trigger_event(format_trigger(control_id, ActionKind.DOWN))
        self._schedule_redraw(control_id)

    def on_up(self, control_id: str) -> None:
        self._is_down[control_id] = False
        self._events.add_trigger_event(format_trigger(control_id, ActionKind.UP))
        self._schedule_redraw(control_id)

    def on_rotate(self, control_id: str, delta: int) -> None:
        def accumulate(pending: Optional[dict[str, float]]) -> dict[str, float]:
            previous = pending["deltaValue"] if pending else 0
            return {"deltaValue": previous + delta, "direction": -1}

        self._events.update_trigger_analog(format_trigger(control_id, ActionKind.JOG), accumulate)

    def on_lcd_short_press(self, control_id: str, x: float, y: float) -> None:
        self._events.add_trigger_event(
            format_trigger(control_id, ActionKind.TAP),
            {"xPosition": x, "yPosition": y},
        )

    def on_lcd_long_press(self, control_id: str, x: float, y: float) -> None:
        self._events.add_trigger_event(
            format_trigger(control_id, ActionKind.PRESS),
            {"xPosition": x, "yPosition": y},
        )

    def on_lcd_swipe(
        self, control_id: str, from_x: float, from_y: float, to_x: float, to_y: float
    ) -> None:
        self._events.add_trigger_event(
            format_trigger(control_id, ActionKind.SWIPE),
            {
                "fromXPosition": from_x,
                "fromYPosition": from_y,
                "toXPosition": to_x,
                "toYPosition": to_y,
            },
        )

    def on_error(self, error: Exception) -> None:
        logger.error(f"[{self.device_id}] Surface error: {error}")
        self._events.emit_error(error)
