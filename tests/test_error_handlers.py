"""Tests for the error handling decorator and context manager."""

import logging

import pytest

from surfacebridge.exceptions import ErrorContext, TransportError, handle_errors


class TestHandleErrors:
    """Test log-and-continue versus log-and-re-raise."""

    @pytest.mark.unit
    def test_swallowed_error_returns_none(self, caplog):
        @handle_errors(operation_name="blank panel", re_raise=False)
        def blank():
            raise RuntimeError("usb gone")

        with caplog.at_level(logging.ERROR):
            assert blank() is None
        assert "Unexpected error during blank panel" in caplog.text

    @pytest.mark.unit
    def test_re_raise(self):
        @handle_errors(operation_name="open surface")
        def open_surface():
            raise RuntimeError("busy")

        with pytest.raises(RuntimeError, match="busy"):
            open_surface()

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_coroutine_logged_at_level(self, caplog):
        @handle_errors(operation_name="release surface", re_raise=False, log_level=logging.WARNING)
        async def release():
            raise TransportError("write", "pipe closed")

        with caplog.at_level(logging.WARNING):
            assert await release() is None
        assert "Failed to release surface" in caplog.text

    @pytest.mark.unit
    def test_success_passes_result_through(self):
        @handle_errors(operation_name="read", re_raise=False)
        def read():
            return 7

        assert read() == 7


class TestErrorContext:
    """Test the error context manager."""

    @pytest.mark.unit
    def test_suppresses_when_not_re_raising(self):
        with ErrorContext("initialize devices", re_raise=False) as ctx:
            raise ValueError("bad")
        assert isinstance(ctx.error, ValueError)
