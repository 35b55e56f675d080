"""Pytest fixtures for tests."""

import asyncio
from pathlib import Path
from tempfile import TemporaryDirectory
from typing import Optional

import pytest

from surfacebridge.devices import ControlDefinition, DeviceEvents, EventChannel
from surfacebridge.exceptions import TransportError
from surfacebridge.models import ControlKind


class FakeSurface:
    """In-memory surface recording every write."""

    def __init__(
        self,
        keys: int = 4,
        key_size: tuple[int, int] = (72, 72),
        encoders: int = 0,
        lcd_size: tuple[int, int] = (800, 100),
    ):
        controls = [ControlDefinition(ControlKind.BUTTON, i, *key_size) for i in range(keys)]
        controls += [ControlDefinition(ControlKind.ENCODER, i) for i in range(encoders)]
        if encoders:
            segment_width = lcd_size[0] // encoders
            controls += [
                ControlDefinition(ControlKind.LCD_SEGMENT, i, segment_width, lcd_size[1])
                for i in range(encoders)
            ]
        self._controls = controls
        self.listener = None
        self.brightness: Optional[int] = None
        self.calls: list[tuple] = []
        self.closed = False
        self.fail_writes = False
        self.write_delay = 0.0

    @property
    def controls(self) -> list[ControlDefinition]:
        return self._controls

    def set_listener(self, listener) -> None:
        self.listener = listener

    async def _write(self, *call) -> None:
        if self.write_delay:
            await asyncio.sleep(self.write_delay)
        if self.fail_writes:
            raise TransportError(call[0], "device unplugged")
        self.calls.append(call)

    async def set_brightness(self, percent: int) -> None:
        self.brightness = percent

    async def clear_panel(self) -> None:
        await self._write("clear_panel")

    async def clear_key(self, index: int) -> None:
        await self._write("clear_key", index)

    async def fill_key_buffer(self, index: int, buffer: bytes) -> None:
        await self._write("fill_key", index, buffer)

    async def fill_lcd(self, segment: int, buffer: bytes) -> None:
        await self._write("fill_lcd", segment, buffer)

    async def close(self) -> None:
        self.closed = True

    def writes(self, name: str) -> list[tuple]:
        return [call for call in self.calls if call[0] == name]


class FakeNetworkSurface(FakeSurface):
    """FakeSurface whose connection can be dropped by the test."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self._closed_event = asyncio.Event()

    def drop(self) -> None:
        self._closed_event.set()

    async def wait_closed(self) -> None:
        await self._closed_event.wait()


class FakeConnectionManager:
    """ConnectionManager driven by the test instead of a socket."""

    def __init__(self):
        self.connected = []
        self.disconnected = []
        self.errors = []
        self.targets: list[tuple[str, int]] = []
        self.disconnect_calls = 0

    def on_connected(self, callback) -> None:
        self.connected.append(callback)

    def on_disconnected(self, callback) -> None:
        self.disconnected.append(callback)

    def on_error(self, callback) -> None:
        self.errors.append(callback)

    async def connect_to(self, address: str, port: int) -> None:
        self.targets.append((address, port))

    async def disconnect_from_all(self) -> None:
        self.disconnect_calls += 1

    async def connect(self, surface) -> None:
        for callback in self.connected:
            await callback(surface)

    async def disconnect(self, surface) -> None:
        for callback in self.disconnected:
            await callback(surface)


def drain(channel: EventChannel) -> list:
    """Everything currently queued on ``channel``."""
    events = []
    while not channel.empty():
        events.append(channel.get_nowait())
    return events


async def settle(rounds: int = 10) -> None:
    """Let queued callbacks and background tasks run."""
    for _ in range(rounds):
        await asyncio.sleep(0)


@pytest.fixture
def temp_dir():
    """Create a temporary directory that gets cleaned up."""
    with TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def channel():
    return EventChannel()


@pytest.fixture
def events(channel):
    """Emitter with rate limiting disabled so analog events are immediate."""
    return DeviceEvents("deck", channel, analog_rate_limit=0)


@pytest.fixture
def surface():
    return FakeSurface()


@pytest.fixture
def plus_surface():
    """Surface with keys, four encoders and an LCD strip."""
    return FakeSurface(keys=8, key_size=(120, 120), encoders=4, lcd_size=(800, 100))
