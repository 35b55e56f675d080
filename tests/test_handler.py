"""Tests for SurfaceHandler input translation and feedback drawing."""

import asyncio

import pytest
import pytest_asyncio

from surfacebridge.devices import SurfaceHandler
from surfacebridge.exceptions import TransportError
from surfacebridge.models import Color, StylePreset, TextFeedback
from surfacebridge.protocols import ErrorEvent, TriggerEvent
from surfacebridge.rendering import render

from conftest import drain, settle


@pytest_asyncio.fixture
async def handler(surface, events):
    handler = SurfaceHandler(surface, events, brightness=60)
    await handler.init()
    surface.calls.clear()
    yield handler
    await handler.destroy()


@pytest_asyncio.fixture
async def plus_handler(plus_surface, events):
    handler = SurfaceHandler(plus_surface, events)
    await handler.init()
    plus_surface.calls.clear()
    yield handler
    await handler.destroy()


@pytest.mark.asyncio
class TestLifecycle:
    """Test init and destroy."""

    async def test_init_prepares_surface(self, surface, events):
        handler = SurfaceHandler(surface, events, brightness=40)
        await handler.init()

        assert handler.is_initialized
        assert surface.brightness == 40
        assert surface.listener is handler
        assert surface.calls == [("clear_panel",)]

    async def test_init_fails_when_panel_cannot_be_cleared(self, surface, events):
        surface.fail_writes = True
        handler = SurfaceHandler(surface, events)

        with pytest.raises(TransportError):
            await handler.init()
        assert not handler.is_initialized

    async def test_destroy_closes_surface(self, surface, events):
        handler = SurfaceHandler(surface, events)
        await handler.init()
        await handler.set_feedback("1 Down", TextFeedback(text="x"))
        await handler.destroy()

        assert surface.closed
        assert surface.listener is None
        assert not handler.is_initialized

    async def test_destroy_without_close_blanks_panel(self, surface, events):
        handler = SurfaceHandler(surface, events, close_on_destroy=False)
        await handler.init()
        surface.calls.clear()
        await handler.destroy()

        assert not surface.closed
        assert surface.calls == [("clear_panel",)]

    async def test_destroy_never_raises(self, surface, events):
        handler = SurfaceHandler(surface, events, close_on_destroy=False)
        await handler.init()
        surface.fail_writes = True

        await handler.destroy()


@pytest.mark.asyncio
class TestFeedback:
    """Test feedback drawing on keys and LCD segments."""

    async def test_before_init_is_noop(self, surface, events):
        handler = SurfaceHandler(surface, events)
        await handler.set_feedback("1 Down", TextFeedback(text="x"))
        assert surface.calls == []

    async def test_key_feedback_drawn(self, handler, surface):
        feedback = TextFeedback(text="CAM 1")
        await handler.set_feedback("1 Down", feedback)

        assert surface.calls == [("fill_key", 1, render(feedback, 72, 72))]

    async def test_blank_feedback_clears_key(self, handler, surface):
        await handler.set_feedback("2 Down", None)
        assert surface.calls == [("clear_key", 2)]

    async def test_higher_priority_action_shown(self, handler, surface):
        down = TextFeedback(text="down")
        await handler.set_feedback("0 Down", down)
        await handler.set_feedback("0 Up", TextFeedback(text="up"))

        assert surface.calls[-1] == ("fill_key", 0, render(down, 72, 72))

    async def test_trigger_without_action_ignored(self, handler, surface):
        await handler.set_feedback("1", TextFeedback(text="x"))
        assert surface.calls == []

    async def test_unknown_action_ignored(self, handler, surface):
        await handler.set_feedback("1 Wiggle", TextFeedback(text="x"))
        assert surface.calls == []

    async def test_unknown_control_does_not_raise(self, handler, surface):
        await handler.set_feedback("99 Down", TextFeedback(text="x"))
        assert surface.calls == []

    async def test_transport_error_does_not_raise(self, handler, surface):
        surface.fail_writes = True
        await handler.set_feedback("1 Down", TextFeedback(text="x"))
        assert surface.calls == []

    async def test_style_presets_applied(self, surface, events):
        red = Color(r=255, g=0, b=0)
        handler = SurfaceHandler(
            surface, events, style_presets=[StylePreset(id="live", background_color=red)]
        )
        await handler.init()
        surface.calls.clear()

        await handler.set_feedback("0 Down", TextFeedback(text="", style_class_names=["live"]))
        _, _, buffer = surface.calls[0]
        assert buffer[:4] == bytes((255, 0, 0, 255))
        await handler.destroy()

    async def test_superseded_redraws_coalesce(self, handler, surface):
        await asyncio.gather(
            handler.set_feedback("1 Down", TextFeedback(text="a")),
            handler.set_feedback("1 Down", TextFeedback(text="b")),
            handler.set_feedback("1 Down", TextFeedback(text="c")),
        )

        fills = surface.writes("fill_key")
        assert fills == [("fill_key", 1, render(TextFeedback(text="c"), 72, 72))]

    async def test_clear_feedback_all_blanks_controls(self, handler, surface):
        await handler.set_feedback("0 Down", TextFeedback(text="a"))
        await handler.set_feedback("3 Down", TextFeedback(text="b"))
        surface.calls.clear()

        await handler.clear_feedback_all()
        assert sorted(surface.calls) == [("clear_key", 0), ("clear_key", 3)]

    async def test_encoder_feedback_draws_lcd_segment(self, plus_handler, plus_surface):
        feedback = TextFeedback(text="GAIN")
        await plus_handler.set_feedback("Enc1 Jog", feedback)

        assert plus_surface.calls == [("fill_lcd", 1, render(feedback, 200, 100))]

    async def test_lcd_segment_blank_renders_black(self, plus_handler, plus_surface):
        await plus_handler.set_feedback("LCD2 Tap", None)
        assert plus_surface.calls == [("fill_lcd", 2, render(None, 200, 100))]

    async def test_encoder_without_display_skipped(self, surface, events):
        # Encoder 0 exists on no surface here; only keys
        handler = SurfaceHandler(surface, events)
        await handler.init()
        surface.calls.clear()

        await handler.set_feedback("Enc0 Jog", TextFeedback(text="x"))
        assert surface.calls == []
        await handler.destroy()


@pytest.mark.asyncio
class TestInput:
    """Test translation of surface input into triggers."""

    async def test_down_up(self, handler, channel):
        handler.on_down("3")
        handler.on_up("3")

        assert drain(channel) == [TriggerEvent("deck", "3 Down"), TriggerEvent("deck", "3 Up")]

    async def test_press_redraws_pressed(self, handler, surface):
        feedback = TextFeedback(text="GO")
        await handler.set_feedback("1 Down", feedback)
        surface.calls.clear()

        handler.on_down("1")
        await settle()
        assert surface.calls == [("fill_key", 1, render(feedback, 72, 72, is_pressed=True))]

        handler.on_up("1")
        await settle()
        assert surface.calls[-1] == ("fill_key", 1, render(feedback, 72, 72))

    async def test_rotate(self, plus_handler, channel):
        plus_handler.on_rotate("Enc0", 2)

        assert drain(channel) == [
            TriggerEvent("deck", "Enc0 Jog", {"deltaValue": 2, "direction": -1})
        ]

    async def test_rotate_accumulates_within_window(self, plus_surface, channel):
        from surfacebridge.devices import DeviceEvents

        events = DeviceEvents("deck", channel, analog_rate_limit=0.02)
        handler = SurfaceHandler(plus_surface, events)
        await handler.init()

        handler.on_rotate("Enc0", 1)
        handler.on_rotate("Enc0", 1)
        handler.on_rotate("Enc0", -3)
        await asyncio.sleep(0.05)

        assert drain(channel) == [
            TriggerEvent("deck", "Enc0 Jog", {"deltaValue": -1, "direction": -1})
        ]
        await handler.destroy()

    async def test_lcd_touch(self, plus_handler, channel):
        plus_handler.on_lcd_short_press("LCD1", 10.0, 20.0)
        plus_handler.on_lcd_long_press("LCD1", 5.0, 6.0)

        assert drain(channel) == [
            TriggerEvent("deck", "LCD1 Tap", {"xPosition": 10.0, "yPosition": 20.0}),
            TriggerEvent("deck", "LCD1 Press", {"xPosition": 5.0, "yPosition": 6.0}),
        ]

    async def test_lcd_swipe(self, plus_handler, channel):
        plus_handler.on_lcd_swipe("LCD0", 1.0, 2.0, 150.0, 4.0)

        (event,) = drain(channel)
        assert event.trigger_id == "LCD0 Swipe"
        assert event.arguments == {
            "fromXPosition": 1.0,
            "fromYPosition": 2.0,
            "toXPosition": 150.0,
            "toYPosition": 4.0,
        }

    async def test_error_forwarded(self, handler, channel):
        error = TransportError("read", "gone")
        handler.on_error(error)

        assert drain(channel) == [ErrorEvent("deck", error)]
