"""Per-control feedback with action priority."""

import logging
from collections.abc import Iterable
from typing import Optional

from surfacebridge.models.enums import ActionKind
from surfacebridge.models.feedback import FeedbackBase

logger = logging.getLogger(__name__)


class FeedbackStore:
    """
    Feedback recorded per (control, action) slot.

    A control can carry feedback for several actions at once (pressed and
    rotated, say) but only one bitmap can be shown; ``get`` picks the slot
    by the caller's priority order. The store belongs to a single device
    session and is emptied with ``clear`` when the session ends.
    """

    def __init__(self):
        self._slots: dict[str, dict[ActionKind, Optional[FeedbackBase]]] = {}

    def set(self, control_id: str, action: ActionKind, feedback: Optional[FeedbackBase]) -> None:
        """Insert or overwrite the slot for (control_id, action)."""
        self._slots.setdefault(control_id, {})[action] = feedback

    def get(self, control_id: str, priorities: Iterable[ActionKind]) -> Optional[FeedbackBase]:
        """
        Return the feedback of the first action in ``priorities`` with a value.

        A slot explicitly holding ``None`` (blank) does not hide a
        lower-priority slot that holds a value.
        """
        slots = self._slots.get(control_id)
        if not slots:
            return None
        for action in priorities:
            feedback = slots.get(action)
            if feedback is not None:
                return feedback
        return None

    def remove(self, control_id: str, action: ActionKind) -> None:
        """Drop a single slot; the control is forgotten once it has none left."""
        slots = self._slots.get(control_id)
        if slots is None:
            return
        slots.pop(action, None)
        if not slots:
            del self._slots[control_id]

    def clear(self) -> None:
        """Empty every slot."""
        logger.debug(f"Clearing feedback for {len(self._slots)} controls")
        self._slots.clear()

    def all_feedback_ids(self) -> list[str]:
        """Control ids holding any slot, in first-set order."""
        return list(self._slots)

    def __len__(self) -> int:
        return len(self._slots)

    def __contains__(self, control_id: object) -> bool:
        return control_id in self._slots
