"""Device variant registry.

Maps the ``type`` field of a device's options (from config) to the class
implementing the `Device` façade for it::

    "streamdeck"      → StreamDeckDevice      (USB)
    "streamdeck-tcp"  → ConnectionProxy       (network, reconnecting)
    "http"            → HttpTriggerDevice     (HTTP requests as triggers)

To add a variant::

    @register_device("my-surface")
    class MySurfaceDevice:
        options_model = MySurfaceOptions
        ...

Built-in variants are imported on first lookup.
"""

import logging
from typing import Any

from pydantic import BaseModel

from .channel import DeviceEvents

logger = logging.getLogger(__name__)

# Format: "type": DeviceClass
DEVICES: dict[str, Any] = {}

_builtins_loaded = False


def register_device(name: str):
    """Class decorator registering a device variant under ``name``."""
    def decorator(cls):
        DEVICES[name] = cls
        return cls
    return decorator


def _load_builtin_devices() -> None:
    global _builtins_loaded
    if _builtins_loaded:
        return
    _builtins_loaded = True
    from . import http, proxy, streamdeck  # noqa: F401


def get_device_class(name: str) -> Any | None:
    """Device class registered for ``name``, or None."""
    _load_builtin_devices()
    return DEVICES.get(name)


def available_types() -> list[str]:
    _load_builtin_devices()
    return sorted(DEVICES)


def create_device(device_id: str, options: BaseModel, events: DeviceEvents, **kwargs: Any) -> Any:
    """
    Build the device for ``options.type``.

    Raises:
        KeyError: If no variant is registered for the type
    """
    device_type = getattr(options, "type")
    device_class = get_device_class(device_type)
    if device_class is None:
        raise KeyError(f"No device registered for type '{device_type}'")
    logger.debug(f"Creating {device_class.__name__} for device '{device_id}'")
    return device_class(device_id, options, events, **kwargs)


def get_options_manifest(name: str) -> dict[str, Any]:
    """
    JSON schema of a variant's options.

    Raises:
        KeyError: If no variant is registered for ``name``
    """
    device_class = get_device_class(name)
    if device_class is None:
        raise KeyError(f"No device registered for type '{name}'")
    return device_class.get_options_manifest()
