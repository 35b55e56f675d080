"""
Custom exception hierarchy for SurfaceBridge.

## Exception Hierarchy

```
SurfaceBridgeError (base)
├── InitError
│   ├── DeviceNotFoundError
│   └── DeviceOpenError
├── TransportError
├── ConfigurationError
│   ├── ConfigFileInvalidError
│   └── ConfigValidationError
└── RenderError
    ├── UnknownControlError
    └── UnsupportedFeedbackError
```

How each family is treated:

- `InitError` is fatal to that device's startup and propagates to the caller.
- `TransportError` is logged; the operation is abandoned but the device stays usable.
- `ConfigurationError` is fatal at init.
- `RenderError` is caught and logged per operation.

### Example: Missing network address

```python
from surfacebridge.exceptions import ConfigValidationError

raise ConfigValidationError(
    field="devices.studio.address",
    value=None,
    error_msg="No IP address provided",
)
```

See `surfacebridge.exceptions.handlers` for utilities to handle these exceptions systematically.
"""

from .base import SurfaceBridgeError
from .config import ConfigFileInvalidError, ConfigurationError, ConfigValidationError
from .device import DeviceNotFoundError, DeviceOpenError, InitError, TransportError
from .handlers import (
    ErrorContext,
    format_error_for_display,
    handle_errors,
    wrap_pydantic_error,
)
from .render import RenderError, UnknownControlError, UnsupportedFeedbackError

__all__ = [
    # Config
    "ConfigFileInvalidError",
    "ConfigValidationError",
    "ConfigurationError",
    # Device
    "DeviceNotFoundError",
    "DeviceOpenError",
    "InitError",
    "TransportError",
    # Handlers
    "ErrorContext",
    "format_error_for_display",
    "handle_errors",
    "wrap_pydantic_error",
    # Render
    "RenderError",
    "UnknownControlError",
    "UnsupportedFeedbackError",
    # Base
    "SurfaceBridgeError",
]
