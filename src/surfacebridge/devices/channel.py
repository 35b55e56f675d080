"""Outbound event channel shared by all devices.

Devices never call the controller directly. They put `TriggerEvent` and
`ErrorEvent` values on one `EventChannel`, which the application drains
in order. `DeviceEvents` is the per-device emitter that stamps the device
id and rate-limits analog (encoder) updates.
"""

import asyncio
import logging
from collections.abc import Callable
from typing import Optional

from surfacebridge.protocols.events import DeviceEvent, ErrorEvent, TriggerEvent

logger = logging.getLogger(__name__)

AnalogArguments = dict[str, float]
AnalogUpdater = Callable[[Optional[AnalogArguments]], AnalogArguments]

DEFAULT_ANALOG_RATE_LIMIT = 0.05


class EventChannel:
    """Ordered queue of device events."""

    def __init__(self, maxsize: int = 0):
        self._queue: asyncio.Queue[DeviceEvent] = asyncio.Queue(maxsize)

    def put(self, event: DeviceEvent) -> None:
        self._queue.put_nowait(event)

    async def get(self) -> DeviceEvent:
        return await self._queue.get()

    def get_nowait(self) -> DeviceEvent:
        return self._queue.get_nowait()

    def empty(self) -> bool:
        return self._queue.empty()

    def qsize(self) -> int:
        return self._queue.qsize()

    def __aiter__(self):
        return self

    async def __anext__(self) -> DeviceEvent:
        return await self._queue.get()


class DeviceEvents:
    """
    Event emitter bound to one device id.

    Analog updates for the same trigger arriving within the rate limit
    window are folded together by the caller's updater and emitted once
    when the window closes.
    """

    def __init__(
        self,
        device_id: str,
        channel: EventChannel,
        analog_rate_limit: float = DEFAULT_ANALOG_RATE_LIMIT,
    ):
        self.device_id = device_id
        self._channel = channel
        self._analog_rate_limit = analog_rate_limit
        self._pending_analog: dict[str, AnalogArguments] = {}
        self._analog_timers: dict[str, asyncio.TimerHandle] = {}

    def add_trigger_event(self, trigger_id: str, arguments: Optional[AnalogArguments] = None) -> None:
        """Emit a trigger immediately."""
        logger.debug(f"[{self.device_id}] Trigger: {trigger_id} {arguments or ''}".rstrip())
        self._channel.put(TriggerEvent(self.device_id, trigger_id, arguments))

    def emit_error(self, error: Exception) -> None:
        self._channel.put(ErrorEvent(self.device_id, error))

    def update_trigger_analog(
        self,
        trigger_id: str,
        updater: AnalogUpdater,
        rate_limit: Optional[float] = None,
    ) -> None:
        """
        Fold an analog update into the pending value for ``trigger_id``.

        Args:
            trigger_id: Trigger to emit (e.g. ``"Enc0 Jog"``)
            updater: Receives the pending arguments (None if nothing is
                pending) and returns the new arguments
            rate_limit: Seconds to coalesce for; defaults to the emitter's limit
        """
        self._pending_analog[trigger_id] = updater(self._pending_analog.get(trigger_id))

        if trigger_id in self._analog_timers:
            return

        delay = self._analog_rate_limit if rate_limit is None else rate_limit
        if delay <= 0:
            self._flush_analog(trigger_id)
            return

        loop = asyncio.get_running_loop()
        self._analog_timers[trigger_id] = loop.call_later(delay, self._flush_analog, trigger_id)

    def _flush_analog(self, trigger_id: str) -> None:
        self._analog_timers.pop(trigger_id, None)
        arguments = self._pending_analog.pop(trigger_id, None)
        if arguments is not None:
            self.add_trigger_event(trigger_id, arguments)

    def close(self) -> None:
        """Cancel pending analog emissions."""
        for timer in self._analog_timers.values():
            timer.cancel()
        self._analog_timers.clear()
        self._pending_analog.clear()
