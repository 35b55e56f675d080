"""Generic observer list with async notification.

Everything in the bridge runs on one event loop, so there is no locking;
observers are notified one after another in registration order and a
failing observer never affects the others.
"""

import inspect
import logging
from typing import Any

logger = logging.getLogger(__name__)


class ObserverManager[T: object]:
    """
    Observer registry whose callbacks may be plain or async methods.

    Example:
        ```python
        sinks = ObserverManager[TriggerSink](observer_type_name="trigger sink")
        sinks.register(controller_client)
        await sinks.notify("on_trigger", event)
        ```
    """

    def __init__(self, observer_type_name: str = "observer"):
        self._observers: list[T] = []
        self._observer_type_name = observer_type_name

    def register(self, observer: T) -> None:
        """Register an observer (idempotent)."""
        if observer not in self._observers:
            self._observers.append(observer)
            logger.info(f"Registered {self._observer_type_name}: {observer}")
        else:
            logger.debug(f"{self._observer_type_name} already registered: {observer}")

    def unregister(self, observer: T) -> None:
        if observer in self._observers:
            self._observers.remove(observer)
            logger.debug(f"Unregistered {self._observer_type_name}: {observer}")
        else:
            logger.warning(f"Attempted to unregister unknown {self._observer_type_name}: {observer}")

    async def notify(self, callback_name: str, *args: Any, **kwargs: Any) -> None:
        """
        Call ``callback_name`` on every observer, awaiting it if it is async.

        Exceptions in observer callbacks are logged but don't affect other observers.
        """
        for observer in list(self._observers):
            try:
                callback = getattr(observer, callback_name)
                result = callback(*args, **kwargs)
                if inspect.isawaitable(result):
                    await result
            except AttributeError:
                logger.error(
                    f"{self._observer_type_name} {observer} has no method '{callback_name}'",
                    exc_info=True,
                )
            except Exception as e:
                logger.error(
                    f"Error notifying {self._observer_type_name} {observer} via {callback_name}: {e}",
                    exc_info=True,
                )

    def clear(self) -> None:
        count = len(self._observers)
        self._observers.clear()
        if count > 0:
            logger.info(f"Cleared {count} {self._observer_type_name}(s)")

    def __contains__(self, observer: T) -> bool:
        return observer in self._observers

    def __len__(self) -> int:
        return len(self._observers)
