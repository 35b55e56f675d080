"""Reconnecting TCP transport for network surfaces.

`TcpConnectionManager` keeps one connection per (address, port) alive:
connect, wrap the streams in a `NetworkSurface`, report ``connected``,
wait for the connection to close, report ``disconnected``, wait
``retry_interval`` and try again, until ``disconnect_from_all``.

How the byte stream maps to surface operations depends on the surface's
firmware and is supplied by a surface factory registered with
``register_network_surface_factory``.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any, Optional

from .protocols import (
    ConnectedCallback,
    DisconnectedCallback,
    ErrorCallback,
    NetworkSurface,
)

logger = logging.getLogger(__name__)

SurfaceFactory = Callable[[asyncio.StreamReader, asyncio.StreamWriter], Awaitable[NetworkSurface]]

_surface_factory: Optional[SurfaceFactory] = None


def register_network_surface_factory(factory: Optional[SurfaceFactory]) -> None:
    """Set the factory turning an open TCP stream into a `NetworkSurface`."""
    global _surface_factory
    _surface_factory = factory


def get_network_surface_factory() -> Optional[SurfaceFactory]:
    return _surface_factory


class TcpConnectionManager:
    """
    `ConnectionManager` over asyncio streams.

    Callbacks are awaited one at a time in event order; a failing callback
    is logged and does not stop the connection loop.
    """

    def __init__(
        self,
        surface_factory: SurfaceFactory,
        retry_interval: float = 2.0,
        connect_timeout: float = 5.0,
    ):
        """
        Initialize the manager.

        Args:
            surface_factory: Wraps (reader, writer) into a surface
            retry_interval: Seconds between a disconnect or failed attempt and the next attempt
            connect_timeout: Seconds allowed for the TCP handshake
        """
        self._surface_factory = surface_factory
        self._retry_interval = retry_interval
        self._connect_timeout = connect_timeout

        self._connected_callbacks: list[ConnectedCallback] = []
        self._disconnected_callbacks: list[DisconnectedCallback] = []
        self._error_callbacks: list[ErrorCallback] = []

        self._tasks: dict[tuple[str, int], asyncio.Task] = {}

    # ================================================================
    # CALLBACK REGISTRATION
    # ================================================================

    def on_connected(self, callback: ConnectedCallback) -> None:
        self._connected_callbacks.append(callback)

    def on_disconnected(self, callback: DisconnectedCallback) -> None:
        self._disconnected_callbacks.append(callback)

    def on_error(self, callback: ErrorCallback) -> None:
        self._error_callbacks.append(callback)

    async def _fire(self, callbacks: list, arg: Any) -> None:
        for callback in list(callbacks):
            try:
                await callback(arg)
            except Exception as e:
                logger.error(f"Error in connection callback: {e}", exc_info=True)

    # ================================================================
    # LIFECYCLE MANAGEMENT
    # ================================================================

    async def connect_to(self, address: str, port: int) -> None:
        """Start maintaining a connection to ``address:port``."""
        key = (address, port)
        if key in self._tasks and not self._tasks[key].done():
            logger.warning(f"Already connecting to {address}:{port}")
            return
        self._tasks[key] = asyncio.get_running_loop().create_task(self._monitor(address, port))
        logger.debug(f"Connection monitor started for {address}:{port}")

    async def disconnect_from_all(self) -> None:
        """Stop every connection loop and close open connections."""
        tasks = list(self._tasks.values())
        self._tasks.clear()
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        logger.debug("All network connections closed")

    @property
    def is_running(self) -> bool:
        return any(not task.done() for task in self._tasks.values())

    # ================================================================
    # CONNECTION LOOP
    # ================================================================

    async def _monitor(self, address: str, port: int) -> None:
        while True:
            await self._connect_once(address, port)
            await asyncio.sleep(self._retry_interval)

    async def _connect_once(self, address: str, port: int) -> None:
        writer: Optional[asyncio.StreamWriter] = None
        surface: Optional[NetworkSurface] = None
        try:
            reader, writer = await asyncio.wait_for(
                asyncio.open_connection(address, port), self._connect_timeout
            )
            surface = await self._surface_factory(reader, writer)
            logger.info(f"Connected to {address}:{port}")

            await self._fire(self._connected_callbacks, surface)
            await surface.wait_closed()
            logger.info(f"Disconnected from {address}:{port}")

        except asyncio.CancelledError:
            raise

        except Exception as e:
            logger.warning(f"Connection to {address}:{port} failed: {e}")
            await self._fire(self._error_callbacks, e)

        finally:
            if surface is not None:
                await self._fire(self._disconnected_callbacks, surface)
                try:
                    await surface.close()
                except Exception as e:
                    logger.debug(f"Error closing surface {address}:{port}: {e}")
            elif writer is not None:
                writer.close()
