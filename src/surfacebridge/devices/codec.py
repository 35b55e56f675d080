"""Trigger identifiers.

A control id is ``<prefix><index>``:

- ``"7"``: button 7
- ``"Enc2"``: encoder 2 (its LCD segment is segment 2)
- ``"LCD1"``: LCD segment 1

A trigger string is ``"<control id> <action>[ <extra>...]"``, e.g.
``"Enc2 Jog"``. Touch positions are never part of the id; they travel as
event arguments.

Decoding is total: anything that is not a well-formed id decodes to
button 0 so a malformed id can never break the event path. Callers that
need hardware-accurate ids must bounds-check the index themselves.
"""

from dataclasses import dataclass
from typing import Optional

from surfacebridge.models.enums import ActionKind, ControlKind

ENCODER_PREFIX = "Enc"
LCD_PREFIX = "LCD"

_PREFIXES: dict[ControlKind, str] = {
    ControlKind.BUTTON: "",
    ControlKind.ENCODER: ENCODER_PREFIX,
    ControlKind.LCD_SEGMENT: LCD_PREFIX,
}

_ASCII_DIGITS = frozenset("0123456789")


@dataclass(frozen=True)
class ControlRef:
    """A decoded control id."""

    kind: ControlKind
    index: int

    @property
    def key(self) -> Optional[int]:
        """Button index, if this is a button."""
        return self.index if self.kind is ControlKind.BUTTON else None

    @property
    def encoder(self) -> Optional[int]:
        """Encoder index, if this is an encoder."""
        return self.index if self.kind is ControlKind.ENCODER else None

    @property
    def lcd_segment(self) -> Optional[int]:
        """LCD segment drawn for this control; encoders own the segment above them."""
        if self.kind in (ControlKind.ENCODER, ControlKind.LCD_SEGMENT):
            return self.index
        return None

    @property
    def control_id(self) -> str:
        return encode_control(self.kind, self.index)


@dataclass(frozen=True)
class ParsedTrigger:
    """A decoded trigger string."""

    control_id: str
    control: ControlRef
    action: str
    extra: tuple[str, ...] = ()

    @property
    def action_kind(self) -> Optional[ActionKind]:
        return ActionKind.from_token(self.action)


def encode_control(kind: ControlKind, index: int) -> str:
    """Build the control id for a control kind and index."""
    if index < 0:
        raise ValueError(f"Control index must be non-negative, got {index}")
    return f"{_PREFIXES[kind]}{index}"


def _parse_index(text: str) -> Optional[int]:
    if not text or not all(c in _ASCII_DIGITS for c in text):
        return None
    return int(text)


def decode_control(control_id: str) -> ControlRef:
    """Decode a control id; malformed ids decode to button 0."""
    if control_id.startswith(ENCODER_PREFIX):
        index = _parse_index(control_id[len(ENCODER_PREFIX):])
        if index is not None:
            return ControlRef(ControlKind.ENCODER, index)
    elif control_id.startswith(LCD_PREFIX):
        index = _parse_index(control_id[len(LCD_PREFIX):])
        if index is not None:
            return ControlRef(ControlKind.LCD_SEGMENT, index)
    else:
        index = _parse_index(control_id)
        if index is not None:
            return ControlRef(ControlKind.BUTTON, index)

    return ControlRef(ControlKind.BUTTON, 0)


def format_trigger(control_id: str, action: ActionKind | str) -> str:
    """Build a trigger string such as ``"3 Down"``."""
    token = action.value if isinstance(action, ActionKind) else action
    return f"{control_id} {token}"


def parse_trigger(trigger_id: str) -> ParsedTrigger:
    """Split a trigger string into control, action token and extra fields.

    Fields are separated by any run of whitespace. A trigger without an
    action yields ``action == ""``; an empty trigger addresses control ``"0"``.
    """
    parts = trigger_id.split()
    control_id = parts[0] if parts else "0"
    action = parts[1] if len(parts) > 1 else ""
    return ParsedTrigger(
        control_id=control_id,
        control=decode_control(control_id),
        action=action,
        extra=tuple(parts[2:]),
    )
