"""Device and transport exceptions.

- InitError: A device could not be matched or opened (fatal to that device)
- DeviceNotFoundError: No connected surface matched the configured selectors
- DeviceOpenError: A surface matched but could not be opened
- TransportError: A write or read on an open surface failed
"""

from typing import Optional

from .base import SurfaceBridgeError


class InitError(SurfaceBridgeError):
    """Device startup failed."""

    def __init__(
        self,
        user_message: str,
        technical_message: Optional[str] = None,
        device_id: Optional[str] = None,
        recovery_hint: Optional[str] = None,
    ):
        super().__init__(
            user_message=user_message,
            technical_message=technical_message,
            recoverable=False,
            recovery_hint=recovery_hint,
        )
        self.device_id = device_id


class DeviceNotFoundError(InitError):
    """No enumerated surface matched the selectors."""

    def __init__(self, selectors: dict[str, object], device_id: Optional[str] = None):
        """
        Initialize device-not-found error.

        Args:
            selectors: The selectors that were supplied (path, serial_number, index)
            device_id: Configured id of the device being started
        """
        supplied = {k: v for k, v in selectors.items() if v is not None}
        if supplied:
            described = ", ".join(f"{k}={v}" for k, v in supplied.items())
            user_msg = f"Matching device not found ({described})"
        else:
            user_msg = "Matching device not found"

        super().__init__(
            user_message=user_msg,
            technical_message=f"No surface matched selectors {supplied} for device {device_id}",
            device_id=device_id,
            recovery_hint=(
                "Check the surface is plugged in and not in use by another application.\n"
                "Run 'surfacebridge list' to see connected surfaces"
            ),
        )
        self.selectors = supplied


class DeviceOpenError(InitError):
    """A surface matched but opening it failed."""

    def __init__(self, path: str, original_error: str, device_id: Optional[str] = None):
        super().__init__(
            user_message=f"Could not open surface at {path}",
            technical_message=f"Opening surface {path} failed: {original_error}",
            device_id=device_id,
            recovery_hint="Close other applications that may hold the surface and check USB permissions",
        )
        self.path = path
        self.original_error = original_error


class TransportError(SurfaceBridgeError):
    """Communication with an open surface failed."""

    def __init__(self, operation: str, original_error: str):
        """
        Initialize transport error.

        Args:
            operation: What was being attempted (e.g. "fill key 3")
            original_error: Message from the transport library
        """
        super().__init__(
            user_message=f"Surface communication failed during {operation}",
            technical_message=f"Transport error during {operation}: {original_error}",
            recoverable=True,
        )
        self.operation = operation
        self.original_error = original_error
