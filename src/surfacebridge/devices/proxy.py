"""
Network-attached surface with reconnect and resume.

ConnectionProxy is the `Device` façade for surfaces reached over TCP. The
connection can drop at any time, so the proxy:

- keeps the last feedback per trigger in a bounded cache,
- builds a fresh `SurfaceHandler` on every connection and tears it down
  on disconnect,
- replays the cache into each new handler before live updates resume.

State machine::

    DISCONNECTED ──connected──► CONNECTING ──replay done──► CONNECTED
         ▲                           │                          │
         └──────────disconnected─────┴──────────────────────────┘

While CONNECTING, live ``set_feedback``/``clear_feedback_all`` calls only
touch the cache and are marked dirty. Once the replay has been delivered,
a pending clear is forwarded first, then the dirty triggers with their
latest values, and only then does the proxy switch to CONNECTED. Live
updates therefore always land after the replayed value for the same
trigger.
"""

import asyncio
import logging
from collections import OrderedDict
from typing import Any, Callable, Optional

from surfacebridge.exceptions import ConfigValidationError, InitError
from surfacebridge.models.config import StreamDeckTcpOptions
from surfacebridge.models.enums import ConnectionState
from surfacebridge.models.feedback import FeedbackBase

from .channel import DeviceEvents
from .handler import SurfaceHandler
from .protocols import ConnectionManager, NetworkSurface
from .registry import register_device
from .tcp import TcpConnectionManager, get_network_surface_factory

logger = logging.getLogger(__name__)

DEFAULT_FEEDBACK_CACHE_SIZE = 1024


@register_device("streamdeck-tcp")
class ConnectionProxy:
    """`Device` façade over a reconnecting network connection."""

    options_model = StreamDeckTcpOptions

    # ================================================================
    # INITIALIZATION
    # ================================================================

    def __init__(
        self,
        device_id: str,
        options: StreamDeckTcpOptions,
        events: DeviceEvents,
        connection_manager: Optional[ConnectionManager] = None,
        feedback_cache_size: int = DEFAULT_FEEDBACK_CACHE_SIZE,
        handler_factory: Callable[..., SurfaceHandler] = SurfaceHandler,
    ):
        """
        Initialize the proxy.

        Args:
            device_id: Configured device id
            options: Network surface options
            events: Emitter for this device's triggers
            connection_manager: Transport to use; a `TcpConnectionManager` is
                built at init when omitted
            feedback_cache_size: Most triggers remembered for replay; the
                least recently set trigger is forgotten first
            handler_factory: Builds the inner handler for each connection
        """
        self.device_id = device_id
        self._options = options
        self._events = events
        self._manager = connection_manager
        self._cache_size = feedback_cache_size
        self._handler_factory = handler_factory

        self._cache: OrderedDict[str, Optional[FeedbackBase]] = OrderedDict()
        self._dirty: OrderedDict[str, None] = OrderedDict()
        self._pending_clear = False

        self._state = ConnectionState.DISCONNECTED
        self._handler: Optional[SurfaceHandler] = None

    @classmethod
    def get_options_manifest(cls) -> dict[str, Any]:
        return cls.options_model.model_json_schema()

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def handler(self) -> Optional[SurfaceHandler]:
        return self._handler

    @property
    def cached_triggers(self) -> list[str]:
        """Cached trigger ids, least recently set first."""
        return list(self._cache)

    # ================================================================
    # LIFECYCLE MANAGEMENT
    # ================================================================

    async def init(self) -> None:
        """
        Start connecting.

        Raises:
            ConfigValidationError: If no address is configured
            InitError: If no network surface driver is available
        """
        address = self._options.address
        if not address:
            raise ConfigValidationError(
                field=f"devices.{self.device_id}.address",
                value=address,
                error_msg="No IP address provided",
            )

        if self._manager is None:
            factory = get_network_surface_factory()
            if factory is None:
                raise InitError(
                    "No network surface driver is available",
                    technical_message="register_network_surface_factory() was never called",
                    device_id=self.device_id,
                    recovery_hint="Install and import the driver package for your network surface",
                )
            self._manager = TcpConnectionManager(factory, retry_interval=self._options.retry_interval)

        self._manager.on_connected(self._on_connected)
        self._manager.on_disconnected(self._on_disconnected)
        self._manager.on_error(self._on_error)

        await self._manager.connect_to(address, self._options.port)
        logger.info(f"[{self.device_id}] Connecting to {address}:{self._options.port}")

    async def destroy(self) -> None:
        """Disconnect and tear down the handler. Never raises."""
        if self._manager is not None:
            try:
                await self._manager.disconnect_from_all()
            except Exception as e:
                logger.warning(f"[{self.device_id}] Error while disconnecting: {e}")

        handler, self._handler = self._handler, None
        self._state = ConnectionState.DISCONNECTED
        if handler is not None:
            await handler.destroy()
        self._events.close()

    # ================================================================
    # FEEDBACK
    # ================================================================

    async def set_feedback(self, trigger_id: str, feedback: Optional[FeedbackBase]) -> None:
        self._remember(trigger_id, feedback)

        if self._state is ConnectionState.CONNECTED and self._handler is not None:
            await self._handler.set_feedback(trigger_id, feedback)
        elif self._state is ConnectionState.CONNECTING:
            self._dirty[trigger_id] = None

    async def clear_feedback_all(self) -> None:
        self._cache.clear()
        self._dirty.clear()

        if self._state is ConnectionState.CONNECTED and self._handler is not None:
            await self._handler.clear_feedback_all()
        elif self._state is ConnectionState.CONNECTING:
            self._pending_clear = True

    def _remember(self, trigger_id: str, feedback: Optional[FeedbackBase]) -> None:
        self._cache[trigger_id] = feedback
        self._cache.move_to_end(trigger_id)
        while len(self._cache) > self._cache_size:
            evicted, _ = self._cache.popitem(last=False)
            self._dirty.pop(evicted, None)
            logger.debug(f"[{self.device_id}] Feedback cache full, forgot '{evicted}'")

    # ================================================================
    # CONNECTION EVENTS
    # ================================================================

    async def _on_connected(self, surface: NetworkSurface) -> None:
        if not surface.controls:
            logger.info(f"[{self.device_id}] Ignoring connection without controls")
            return

        if self._handler is not None:
            logger.warning(f"[{self.device_id}] Already connected, ignoring new connection")
            return

        handler = self._handler_factory(
            surface,
            self._events,
            brightness=self._options.brightness,
            style_presets=self._options.style_presets,
            close_on_destroy=False,
        )
        self._handler = handler
        self._state = ConnectionState.CONNECTING
        self._dirty.clear()
        self._pending_clear = False

        try:
            await handler.init()
            if self._handler is not handler:
                return

            snapshot = list(self._cache.items())
            await asyncio.gather(*(handler.set_feedback(t, fb) for t, fb in snapshot))
            logger.debug(f"[{self.device_id}] Replayed {len(snapshot)} cached feedback value(s)")

            await self._flush_live_updates(handler)

            if self._handler is handler:
                self._state = ConnectionState.CONNECTED
                logger.info(f"[{self.device_id}] Surface connected")

        except Exception as e:
            logger.error(f"[{self.device_id}] Failed to set up connected surface: {e}", exc_info=True)
            if self._handler is handler:
                self._handler = None
                self._state = ConnectionState.DISCONNECTED
                await handler.destroy()

    async def _flush_live_updates(self, handler: SurfaceHandler) -> None:
        """Forward updates that arrived during replay, in arrival order."""
        while self._handler is handler and (self._pending_clear or self._dirty):
            if self._pending_clear:
                self._pending_clear = False
                await handler.clear_feedback_all()
                continue

            trigger_ids = list(self._dirty)
            self._dirty.clear()
            await asyncio.gather(
                *(handler.set_feedback(t, self._cache[t]) for t in trigger_ids if t in self._cache)
            )

    async def _on_disconnected(self, surface: NetworkSurface) -> None:
        handler = self._handler
        if handler is None or handler.surface is not surface:
            return

        self._handler = None
        self._state = ConnectionState.DISCONNECTED
        logger.info(f"[{self.device_id}] Surface disconnected")
        await handler.destroy()

    async def _on_error(self, error: Exception) -> None:
        logger.warning(f"[{self.device_id}] Connection error: {error}")
