"""HTTP requests as triggers.

Every request to the device's port becomes a trigger named
``"<METHOD> <path>"`` (e.g. ``"POST /scene/next"``) and is answered with
an empty 200. There is nothing to display, so feedback calls are no-ops.
"""

import logging
from typing import Any, Optional

from aiohttp import web

from surfacebridge.exceptions import DeviceOpenError
from surfacebridge.models.config import HttpOptions

from .channel import DeviceEvents
from .registry import register_device

logger = logging.getLogger(__name__)


@register_device("http")
class HttpTriggerDevice:
    """`Device` façade backed by an aiohttp server."""

    options_model = HttpOptions

    def __init__(self, device_id: str, options: HttpOptions, events: DeviceEvents):
        self.device_id = device_id
        self._options = options
        self._events = events
        self._runner: Optional[web.AppRunner] = None
        self._port: Optional[int] = None

    @classmethod
    def get_options_manifest(cls) -> dict[str, Any]:
        return cls.options_model.model_json_schema()

    @property
    def port(self) -> Optional[int]:
        """Port actually bound (useful when configured with port 0)."""
        return self._port

    async def init(self) -> None:
        """
        Start listening.

        Raises:
            DeviceOpenError: If the port cannot be bound
        """
        app = web.Application()
        app.router.add_route("*", "/{tail:.*}", self._handle_request)

        runner = web.AppRunner(app, access_log=None)
        await runner.setup()
        site = web.TCPSite(runner, self._options.host, self._options.port)
        try:
            await site.start()
        except OSError as e:
            await runner.cleanup()
            raise DeviceOpenError(
                f"{self._options.host}:{self._options.port}", str(e), device_id=self.device_id
            ) from e

        self._runner = runner
        addresses = runner.addresses
        self._port = addresses[0][1] if addresses else self._options.port
        logger.info(f"[{self.device_id}] Listening for HTTP triggers on port {self._port}")

    async def _handle_request(self, request: web.Request) -> web.Response:
        self._events.add_trigger_event(f"{request.method} {request.raw_path}")
        return web.Response(status=200)

    async def destroy(self) -> None:
        runner, self._runner = self._runner, None
        if runner is not None:
            try:
                await runner.cleanup()
            except Exception as e:
                logger.warning(f"[{self.device_id}] Error stopping HTTP server: {e}")
        self._events.close()

    async def set_feedback(self, trigger_id: str, feedback) -> None:
        pass

    async def clear_feedback_all(self) -> None:
        pass
