"""Application configuration model."""

from pathlib import Path
from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field, field_serializer

from surfacebridge.utils.persistence import PydanticPersistence

from .feedback import StylePreset

DEFAULT_CONFIG_PATH = Path.home() / ".surfacebridge" / "config.json"


class StreamDeckOptions(BaseModel):
    """USB-attached control surface.

    All supplied selectors must match the enumerated surface; the first
    matching surface is used. With no selectors, the first surface wins.
    """

    type: Literal["streamdeck"] = "streamdeck"
    path: str | None = Field(default=None, description="Explicit USB device path")
    serial_number: str | None = Field(default=None, description="Surface serial number")
    index: int | None = Field(
        default=None, ge=0, description="Position among the enumerated surfaces"
    )
    brightness: int = Field(default=100, ge=0, le=100, description="Panel brightness in percent")
    style_presets: list[StylePreset] = Field(
        default_factory=list, description="Named styles referenced by feedback class names"
    )


class StreamDeckTcpOptions(BaseModel):
    """Control surface reached over the network."""

    type: Literal["streamdeck-tcp"] = "streamdeck-tcp"
    address: str | None = Field(default=None, description="IP address of the surface")
    port: int = Field(default=5343, ge=1, le=65535, description="TCP port of the surface")
    brightness: int = Field(default=100, ge=0, le=100, description="Panel brightness in percent")
    retry_interval: float = Field(
        default=2.0, gt=0, description="Seconds to wait before reconnecting"
    )
    style_presets: list[StylePreset] = Field(
        default_factory=list, description="Named styles referenced by feedback class names"
    )


class HttpOptions(BaseModel):
    """HTTP endpoint whose requests become triggers."""

    type: Literal["http"] = "http"
    host: str = Field(default="0.0.0.0", description="Interface to listen on")
    port: int = Field(default=8080, ge=0, le=65535, description="Port to listen on (0 = any free port)")


DeviceOptions = Annotated[
    Union[StreamDeckOptions, StreamDeckTcpOptions, HttpOptions],
    Field(discriminator="type"),
]


class AppConfig(BaseModel):
    """Application configuration and settings."""

    devices: dict[str, DeviceOptions] = Field(
        default_factory=dict, description="Configured devices keyed by device id"
    )

    # Event path
    analog_rate_limit: float = Field(
        default=0.05,
        ge=0,
        description="Seconds to coalesce analog (encoder) updates before emitting",
    )

    # Network surfaces
    feedback_cache_size: int = Field(
        default=1024,
        ge=1,
        description="Maximum triggers remembered per network surface for replay on reconnect",
    )

    # Rendering
    font_paths: list[Path] = Field(
        default_factory=list,
        description="Extra directories searched for the label fonts",
    )

    # Process
    shutdown_grace_period: float = Field(
        default=1.0,
        ge=0,
        description="Seconds to wait after a fatal startup error before shutting down",
    )

    @field_serializer("font_paths")
    def serialize_paths(self, paths: list[Path]) -> list[str]:
        """Serialize Paths to strings."""
        return [str(p) for p in paths]

    @classmethod
    def load(cls, path: Path) -> "AppConfig":
        """
        Load config from file.

        Raises:
            FileNotFoundError: If the file does not exist
            ConfigFileInvalidError: If config file has invalid JSON syntax
            ConfigValidationError: If config values fail validation
        """
        return PydanticPersistence.load_json(path, cls)

    @classmethod
    def load_or_default(cls, path: Path | None = None) -> "AppConfig":
        """
        Load config from file or return default.

        Args:
            path: Path to config file. If None, uses default location
                  (~/.surfacebridge/config.json).
        """
        if path is None:
            path = DEFAULT_CONFIG_PATH
        return PydanticPersistence.load_json_or_default(path, cls)

    def save(self, path: Path | None = None) -> None:
        """Save config to file."""
        if path is None:
            path = DEFAULT_CONFIG_PATH
        PydanticPersistence.save_json(self, path)
