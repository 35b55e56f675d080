"""
Top-level SurfaceBridge application.

The application owns the configured devices and the event channel they
share, and forwards channel events to the registered trigger sinks (the
automation controller side). Feedback flows the other way through
``set_feedback``.

Architecture::

    SurfaceBridgeApp
    ├── devices: {device_id: Device}      (built from config by the registry)
    ├── channel: EventChannel             (shared by every device)
    └── sinks: [TriggerSink]              (controller boundary)
"""

import asyncio
import logging
from collections.abc import Iterable
from typing import Any, Optional

from surfacebridge.devices import DeviceEvents, EventChannel, create_device
from surfacebridge.devices.protocols import Device
from surfacebridge.exceptions import ErrorContext
from surfacebridge.models import AppConfig, FeedbackBase
from surfacebridge.protocols import ErrorEvent, TriggerEvent, TriggerSink
from surfacebridge.rendering import init_fonts
from surfacebridge.rendering.fonts import default_search_paths
from surfacebridge.utils import ObserverManager

logger = logging.getLogger(__name__)


class LoggingSink:
    """Trigger sink that only logs; used when no controller is attached."""

    async def on_trigger(self, event: TriggerEvent) -> None:
        logger.info(f"[{event.device_id}] {event.trigger_id} {event.arguments or ''}".rstrip())

    async def on_device_error(self, event: ErrorEvent) -> None:
        logger.error(f"[{event.device_id}] Device error: {event.error}")


class SurfaceBridgeApp:
    """Owns devices, the event channel and the trigger sinks."""

    def __init__(
        self,
        config: AppConfig,
        device_overrides: Optional[dict[str, dict[str, Any]]] = None,
    ):
        """
        Initialize the application (devices are built by ``initialize``).

        Args:
            config: Application configuration
            device_overrides: Extra constructor arguments per device id,
                e.g. an injected connection manager
        """
        self.config = config
        self.channel = EventChannel()

        self._device_overrides = device_overrides or {}
        self._devices: dict[str, Device] = {}
        self._sinks = ObserverManager[TriggerSink](observer_type_name="trigger sink")
        self._dispatch_task: Optional[asyncio.Task] = None

    @property
    def devices(self) -> dict[str, Device]:
        return dict(self._devices)

    def register_sink(self, sink: TriggerSink) -> None:
        self._sinks.register(sink)

    def unregister_sink(self, sink: TriggerSink) -> None:
        self._sinks.unregister(sink)

    # ================================================================
    # LIFECYCLE MANAGEMENT
    # ================================================================

    def _build_devices(self) -> None:
        for device_id, options in self.config.devices.items():
            events = DeviceEvents(device_id, self.channel, self.config.analog_rate_limit)
            kwargs = dict(self._device_overrides.get(device_id, {}))
            if options.type == "streamdeck-tcp":
                kwargs.setdefault("feedback_cache_size", self.config.feedback_cache_size)
            self._devices[device_id] = create_device(device_id, options, events, **kwargs)

    async def initialize(self) -> None:
        """
        Build and initialize every configured device, then start dispatching.

        Raises:
            InitError: If a device cannot be matched or opened
            ConfigurationError: If a device's options are unusable
        """
        init_fonts([*self.config.font_paths, *default_search_paths()])

        self._build_devices()
        for device_id, device in self._devices.items():
            with ErrorContext(f"initialize device '{device_id}'", logger_instance=logger):
                await device.init()

        self._dispatch_task = asyncio.get_running_loop().create_task(self._dispatch_events())
        logger.info(f"SurfaceBridge initialized with {len(self._devices)} device(s)")

    async def shutdown(self) -> None:
        """Stop dispatching and destroy every device."""
        logger.info("Shutting down SurfaceBridge")
        task, self._dispatch_task = self._dispatch_task, None
        if task is not None:
            task.cancel()
            await asyncio.gather(task, return_exceptions=True)

        devices = list(self._devices.values())
        self._devices.clear()
        await asyncio.gather(*(device.destroy() for device in devices))

    async def _dispatch_events(self) -> None:
        async for event in self.channel:
            if isinstance(event, TriggerEvent):
                await self._sinks.notify("on_trigger", event)
            else:
                await self._sinks.notify("on_device_error", event)

    # ================================================================
    # FEEDBACK
    # ================================================================

    async def set_feedback(
        self, device_id: str, trigger_id: str, feedback: Optional[FeedbackBase]
    ) -> None:
        device = self._devices.get(device_id)
        if device is None:
            logger.warning(f"Feedback for unknown device '{device_id}' ignored")
            return
        await device.set_feedback(trigger_id, feedback)

    async def clear_feedback_all(self, device_id: Optional[str] = None) -> None:
        """Blank one device, or every device when ``device_id`` is None."""
        if device_id is None:
            targets = list(self._devices.values())
        elif device_id in self._devices:
            targets = [self._devices[device_id]]
        else:
            logger.warning(f"Clear for unknown device '{device_id}' ignored")
            return
        await asyncio.gather(*(device.clear_feedback_all() for device in targets))


async def run_app(
    config: AppConfig,
    sinks: Iterable[TriggerSink] = (),
    stop_event: Optional[asyncio.Event] = None,
    device_overrides: Optional[dict[str, dict[str, Any]]] = None,
) -> int:
    """
    Run the bridge until ``stop_event`` is set.

    A startup failure is logged with its traceback; the process then waits
    ``config.shutdown_grace_period`` seconds so logs can flush and devices
    settle, shuts down and returns 1.

    Returns:
        Process exit status
    """
    app = SurfaceBridgeApp(config, device_overrides)
    for sink in sinks:
        app.register_sink(sink)

    try:
        await app.initialize()
    except Exception:
        logger.exception("SurfaceBridge failed to start")
        await asyncio.sleep(config.shutdown_grace_period)
        await app.shutdown()
        return 1

    stop = stop_event or asyncio.Event()
    try:
        await stop.wait()
    finally:
        await app.shutdown()
    return 0
