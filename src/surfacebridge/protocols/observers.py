"""Observer protocols for components that consume device events."""

from typing import Protocol, runtime_checkable

from .events import ErrorEvent, TriggerEvent


@runtime_checkable
class TriggerSink(Protocol):
    """
    Consumer of device events, typically the automation controller client.

    Sinks are called from the application's event loop in the order events
    were emitted. A sink that raises is logged and does not affect other
    sinks.
    """

    async def on_trigger(self, event: TriggerEvent) -> None:
        """Handle a trigger from any device."""
        ...

    async def on_device_error(self, event: ErrorEvent) -> None:
        """Handle an error reported by a device."""
        ...
