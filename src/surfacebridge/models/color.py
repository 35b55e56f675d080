"""Color model for rendered feedback."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class Color(BaseModel):
    """Standard 8-bit RGB color model.

    Accepts either ``{"r": .., "g": .., "b": ..}`` objects or CSS hex
    strings (``"#FF8800"`` or the short ``"#F80"`` form) when validated.

    The model is frozen so it can be hashed and used as part of
    cache keys in the renderers.
    """

    model_config = ConfigDict(frozen=True)

    r: int = Field(ge=0, le=255, description="Red (0-255)")
    g: int = Field(ge=0, le=255, description="Green (0-255)")
    b: int = Field(ge=0, le=255, description="Blue (0-255)")

    @model_validator(mode="before")
    @classmethod
    def parse_hex(cls, data: Any) -> Any:
        """Allow a hex string anywhere a Color is expected."""
        if isinstance(data, str):
            return cls._hex_to_dict(data)
        return data

    @field_validator("r", "g", "b")
    @classmethod
    def validate_rgb(cls, v: int) -> int:
        if not 0 <= v <= 255:
            raise ValueError("RGB values must be between 0 and 255")
        return v

    @staticmethod
    def _hex_to_dict(value: str) -> dict[str, int]:
        digits = value.strip().lstrip("#")
        if len(digits) == 3:
            digits = "".join(c * 2 for c in digits)
        if len(digits) != 6:
            raise ValueError(f"Invalid hex color '{value}'")
        try:
            return {
                "r": int(digits[0:2], 16),
                "g": int(digits[2:4], 16),
                "b": int(digits[4:6], 16),
            }
        except ValueError as e:
            raise ValueError(f"Invalid hex color '{value}'") from e

    @classmethod
    def from_hex(cls, value: str) -> "Color":
        """Create a color from a CSS hex string."""
        return cls(**cls._hex_to_dict(value))

    @classmethod
    def off(cls) -> "Color":
        """Create off (black) color."""
        return cls(r=0, g=0, b=0)

    @classmethod
    def white(cls) -> "Color":
        return cls(r=255, g=255, b=255)

    def to_rgb_tuple(self) -> tuple[int, int, int]:
        """Convert to RGB tuple."""
        return (self.r, self.g, self.b)

    def to_rgba_tuple(self, alpha: int = 255) -> tuple[int, int, int, int]:
        """Convert to RGBA tuple as used by Pillow drawing calls."""
        return (self.r, self.g, self.b, alpha)

    def to_hex(self) -> str:
        """Convert to CSS hex color string (e.g., '#FF0000').

        Example:
            >>> Color(r=255, g=0, b=0).to_hex()
            '#FF0000'
        """
        return f"#{self.r:02X}{self.g:02X}{self.b:02X}"
