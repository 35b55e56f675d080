"""Enumerations shared across the bridge."""

from enum import Enum, IntFlag


class ActionKind(str, Enum):
    """What happened to a control.

    Declaration order is display priority: when a control carries feedback
    for several actions at once, the earliest one listed here is shown.
    """

    DOWN = "Down"
    UP = "Up"
    JOG = "Jog"
    MOVE = "Move"
    SHUTTLE = "Shuttle"
    T_BAR = "T-Bar"
    TAP = "Tap"
    PRESS = "Press"
    SWIPE = "Swipe"

    @classmethod
    def from_token(cls, token: str) -> "ActionKind | None":
        """Look up an action by its trigger token, returning None if unknown."""
        try:
            return cls(token)
        except ValueError:
            return None


# Precedence used to pick which feedback a control displays
ACTION_PRIORITIES: tuple[ActionKind, ...] = tuple(ActionKind)


class ControlKind(str, Enum):
    """Kinds of addressable elements on a control surface."""

    BUTTON = "button"
    ENCODER = "encoder"
    LCD_SEGMENT = "lcd-segment"


class Tally(IntFlag):
    """Broadcast tally state, combinable as a bit set."""

    NONE = 0
    ACTIVE = 1
    NEXT = 2
    OTHER = 4
    PRESENT = 8


# Order in which tally-qualified style variants are tried
TALLY_QUALIFIERS: tuple[tuple[Tally, str], ...] = (
    (Tally.ACTIVE, "active"),
    (Tally.NEXT, "next"),
    (Tally.OTHER, "other"),
    (Tally.PRESENT, "present"),
)


class ConnectionState(Enum):
    """Lifecycle of a network-attached surface."""

    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
