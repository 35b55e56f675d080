"""Event types and observer protocols at the controller boundary."""

from .events import DeviceEvent, ErrorEvent, TriggerEvent
from .observers import TriggerSink

__all__ = [
    # Events
    "DeviceEvent",
    "ErrorEvent",
    "TriggerEvent",
    # Observers
    "TriggerSink",
]
