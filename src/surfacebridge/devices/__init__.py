"""Devices: surfaces, the per-device handler and the `Device` variants."""

from .channel import DeviceEvents, EventChannel
from .codec import ControlRef, ParsedTrigger, decode_control, encode_control, format_trigger, parse_trigger
from .feedback_store import FeedbackStore
from .handler import SurfaceHandler
from .protocols import (
    ConnectionManager,
    ControlDefinition,
    Device,
    NetworkSurface,
    Surface,
    SurfaceListener,
)
from .registry import available_types, create_device, get_device_class, get_options_manifest, register_device
from .send_queue import SendQueue
from .tcp import TcpConnectionManager, register_network_surface_factory

__all__ = [
    # Events
    "DeviceEvents",
    "EventChannel",
    # Codec
    "ControlRef",
    "ParsedTrigger",
    "decode_control",
    "encode_control",
    "format_trigger",
    "parse_trigger",
    # Core
    "FeedbackStore",
    "SendQueue",
    "SurfaceHandler",
    # Protocols
    "ConnectionManager",
    "ControlDefinition",
    "Device",
    "NetworkSurface",
    "Surface",
    "SurfaceListener",
    # Registry
    "available_types",
    "create_device",
    "get_device_class",
    "get_options_manifest",
    "register_device",
    # Transport
    "TcpConnectionManager",
    "register_network_surface_factory",
]
