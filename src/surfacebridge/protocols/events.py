"""Outbound events produced by devices.

Devices put these on the shared event channel; the application hands them
to the automation controller boundary.
"""

from dataclasses import dataclass, field
from typing import Optional, Union


@dataclass(frozen=True)
class TriggerEvent:
    """A control was operated.

    ``trigger_id`` is ``"<control id> <action>"`` (e.g. ``"3 Down"``) for
    surfaces and ``"<METHOD> <path>"`` for HTTP devices.
    """

    device_id: str
    trigger_id: str
    arguments: Optional[dict[str, float]] = field(default=None)


@dataclass(frozen=True)
class ErrorEvent:
    """A device reported an error outside any caller's operation."""

    device_id: str
    error: Exception


DeviceEvent = Union[TriggerEvent, ErrorEvent]
