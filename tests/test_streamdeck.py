"""Tests for the USB surface adapter and device, using mocked library decks."""

import asyncio
from unittest.mock import MagicMock, Mock

import pytest
from StreamDeck.DeviceManager import ProbeError
from StreamDeck.Devices.StreamDeck import DialEventType, TouchscreenEventType

from surfacebridge.devices.streamdeck import (
    StreamDeckDevice,
    StreamDeckSurface,
    enumerate_decks,
    list_surfaces,
    match_deck,
)
from surfacebridge.exceptions import DeviceNotFoundError, InitError
from surfacebridge.models import ControlKind, StreamDeckOptions, TextFeedback

from conftest import settle


def make_deck(path="/dev/hidraw0", serial="SN1", keys=15, dials=0, visual=True):
    """MagicMock standing in for a library StreamDeck."""
    deck = MagicMock()
    deck.id.return_value = path
    deck.get_serial_number.return_value = serial
    deck.deck_type.return_value = "Stream Deck Plus" if dials else "Stream Deck MK.2"
    deck.key_count.return_value = keys
    deck.dial_count.return_value = dials
    deck.is_visual.return_value = visual
    deck.key_image_format.return_value = {"size": (72, 72)}
    deck.touchscreen_image_format.return_value = {"size": (800, 100)}
    return deck


def manager_for(decks):
    manager = Mock()
    manager.enumerate.return_value = decks
    return lambda: manager


class TestMatchDeck:
    """Test selector matching over enumerated decks."""

    @pytest.mark.unit
    def test_no_selectors_returns_first(self):
        decks = [make_deck("/a"), make_deck("/b")]
        assert match_deck(decks) is decks[0]

    @pytest.mark.unit
    def test_by_path(self):
        decks = [make_deck("/a"), make_deck("/b")]
        assert match_deck(decks, path="/b") is decks[1]

    @pytest.mark.unit
    def test_by_serial(self):
        decks = [make_deck("/a", serial="X"), make_deck("/b", serial="Y")]
        assert match_deck(decks, serial_number="Y") is decks[1]

    @pytest.mark.unit
    def test_by_index(self):
        decks = [make_deck("/a"), make_deck("/b")]
        assert match_deck(decks, index=1) is decks[1]

    @pytest.mark.unit
    def test_all_selectors_must_match(self):
        decks = [make_deck("/a", serial="X"), make_deck("/b", serial="Y")]
        assert match_deck(decks, path="/a", serial_number="Y") is None

    @pytest.mark.unit
    def test_no_match(self):
        assert match_deck([], index=0) is None


class TestEnumeration:
    """Test deck enumeration and listing."""

    @pytest.mark.unit
    def test_probe_error_becomes_init_error(self):
        def failing_manager():
            raise ProbeError("no hidapi")

        with pytest.raises(InitError, match="No USB HID backend"):
            enumerate_decks(failing_manager)

    @pytest.mark.unit
    def test_list_surfaces(self):
        decks = [make_deck("/a", serial="X", keys=6)]
        surfaces = list_surfaces(manager_for(decks))

        assert surfaces == [{
            "index": 0,
            "path": "/a",
            "type": "Stream Deck MK.2",
            "serial_number": "X",
            "keys": 6,
        }]


@pytest.mark.asyncio
class TestStreamDeckSurface:
    """Test the surface adapter over a mocked deck."""

    async def test_controls_layout(self):
        surface = await StreamDeckSurface.open(make_deck(keys=8, dials=4))
        controls = surface.controls

        buttons = [c for c in controls if c.kind is ControlKind.BUTTON]
        encoders = [c for c in controls if c.kind is ControlKind.ENCODER]
        segments = [c for c in controls if c.kind is ControlKind.LCD_SEGMENT]

        assert len(buttons) == 8 and buttons[0].width == 72
        assert len(encoders) == 4 and not encoders[0].has_display
        assert [(s.index, s.width, s.height) for s in segments] == [
            (0, 200, 100), (1, 200, 100), (2, 200, 100), (3, 200, 100)
        ]

    async def test_key_input_delivered_on_loop(self):
        deck = make_deck()
        surface = await StreamDeckSurface.open(deck)
        listener = Mock()
        surface.set_listener(listener)

        surface._on_key(deck, 5, True)
        surface._on_key(deck, 5, False)
        await settle()

        listener.on_down.assert_called_once_with("5")
        listener.on_up.assert_called_once_with("5")

    async def test_dial_input(self):
        deck = make_deck(keys=8, dials=4)
        surface = await StreamDeckSurface.open(deck)
        listener = Mock()
        surface.set_listener(listener)

        surface._on_dial(deck, 2, DialEventType.TURN, -3)
        surface._on_dial(deck, 1, DialEventType.PUSH, True)
        await settle()

        listener.on_rotate.assert_called_once_with("Enc2", -3)
        listener.on_down.assert_called_once_with("Enc1")

    async def test_touch_maps_to_segment(self):
        deck = make_deck(keys=8, dials=4)
        surface = await StreamDeckSurface.open(deck)
        listener = Mock()
        surface.set_listener(listener)

        surface._on_touch(deck, TouchscreenEventType.SHORT, {"x": 450, "y": 30})
        surface._on_touch(deck, TouchscreenEventType.DRAG, {"x": 10, "y": 5, "x_out": 150, "y_out": 6})
        await settle()

        listener.on_lcd_short_press.assert_called_once_with("LCD2", 50, 30)
        listener.on_lcd_swipe.assert_called_once_with("LCD0", 10, 5, 150, 6)

    async def test_input_without_listener_dropped(self):
        deck = make_deck()
        surface = await StreamDeckSurface.open(deck)
        surface._on_key(deck, 0, True)
        await settle()

    async def test_close_resets_deck(self):
        deck = make_deck()
        surface = await StreamDeckSurface.open(deck)
        await surface.close()

        deck.reset.assert_called_once()
        deck.close.assert_called_once()


@pytest.mark.asyncio
class TestStreamDeckDevice:
    """Test the USB device façade."""

    async def test_not_found(self, events):
        device = StreamDeckDevice(
            "desk",
            StreamDeckOptions(serial_number="NOPE"),
            events,
            device_manager_factory=manager_for([make_deck(serial="SN1")]),
        )

        with pytest.raises(DeviceNotFoundError) as exc_info:
            await device.init()
        assert exc_info.value.selectors == {"serial_number": "NOPE"}
        assert "Matching device not found" in exc_info.value.user_message
        assert not device.is_initialized

    async def test_init_feedback_destroy(self, events, monkeypatch):
        deck = make_deck(keys=6)
        native_images = []

        def fake_native(target_deck, image):
            native_images.append(image.size)
            return b"native"

        monkeypatch.setattr(
            "surfacebridge.devices.streamdeck.PILHelper.to_native_key_format", fake_native
        )

        device = StreamDeckDevice(
            "desk",
            StreamDeckOptions(index=0, brightness=30),
            events,
            device_manager_factory=manager_for([deck]),
        )
        await device.init()
        assert device.is_initialized
        deck.open.assert_called()
        deck.set_brightness.assert_called_once_with(30)

        await device.set_feedback("2 Down", TextFeedback(text="REC"))
        deck.set_key_image.assert_any_call(2, b"native")
        assert native_images == [(72, 72)]

        await device.destroy()
        assert not device.is_initialized
        deck.reset.assert_called_once()

    async def test_feedback_before_init_ignored(self, events):
        device = StreamDeckDevice("desk", StreamDeckOptions(), events)
        await device.set_feedback("1 Down", TextFeedback(text="x"))
        await device.clear_feedback_all()

    async def test_options_manifest(self):
        manifest = StreamDeckDevice.get_options_manifest()
        assert set(manifest["properties"]) >= {"path", "serial_number", "index", "brightness"}
