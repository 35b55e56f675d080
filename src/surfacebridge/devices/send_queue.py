"""Serialized execution of device writes."""

import asyncio
import logging
from collections import deque
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, Optional

logger = logging.getLogger(__name__)


@dataclass
class _Job:
    fn: Callable[[], Awaitable[Any]]
    class_name: Optional[str]
    future: asyncio.Future


class SendQueue:
    """
    Strict FIFO of async jobs with at most one job running at a time.

    Surfaces do not tolerate overlapping writes, so every write to one
    physical device goes through that device's queue. Each job's outcome
    lands on its own future; a failing job never stops the queue.

    Jobs can carry a class name so that pending jobs made stale by a newer
    command (e.g. an older redraw of the same control) can be dropped with
    ``remove``. Dropped jobs have their futures cancelled. A job that is
    already running always completes.

    Example:
        ```python
        queue = SendQueue()
        result = await queue.add(lambda: surface.fill_key_buffer(3, buf), class_name="3")
        ```
    """

    def __init__(self, auto_start: bool = True, name: str = "send"):
        """
        Initialize the queue.

        Args:
            auto_start: Start draining as soon as a job is added. When False,
                jobs wait until ``start()`` is called.
            name: Used in log messages
        """
        self._auto_start = auto_start
        self._started = auto_start
        self._name = name
        self._pending: deque[_Job] = deque()
        self._current: Optional[_Job] = None
        self._drain_task: Optional[asyncio.Task] = None

    # ================================================================
    # QUEUEING
    # ================================================================

    def add(self, fn: Callable[[], Awaitable[Any]], class_name: Optional[str] = None) -> asyncio.Future:
        """
        Enqueue a job.

        Args:
            fn: Zero-argument callable returning an awaitable
            class_name: Optional tag used by ``remove``

        Returns:
            Future resolving to the job's result or failing with its exception
        """
        future = asyncio.get_running_loop().create_future()
        self._pending.append(_Job(fn, class_name, future))
        if self._started:
            self._ensure_draining()
        return future

    def start(self) -> None:
        """Begin draining; later jobs are drained as they arrive."""
        self._started = True
        if self._pending:
            self._ensure_draining()

    def remove(self, class_name: str) -> int:
        """
        Drop pending jobs tagged ``class_name``.

        Returns:
            Number of jobs dropped
        """
        kept: deque[_Job] = deque()
        dropped = 0
        for job in self._pending:
            if job.class_name == class_name:
                job.future.cancel()
                dropped += 1
            else:
                kept.append(job)
        self._pending = kept
        if dropped:
            logger.debug(f"[{self._name}] Dropped {dropped} pending job(s) for '{class_name}'")
        return dropped

    def clear(self) -> int:
        """
        Drop every pending job.

        Returns:
            Number of jobs dropped
        """
        dropped = len(self._pending)
        while self._pending:
            self._pending.popleft().future.cancel()
        if dropped:
            logger.debug(f"[{self._name}] Cleared {dropped} pending job(s)")
        return dropped

    @property
    def is_idle(self) -> bool:
        return self._current is None and not self._pending

    def __len__(self) -> int:
        return len(self._pending)

    # ================================================================
    # DRAINING
    # ================================================================

    def _ensure_draining(self) -> None:
        if self._drain_task is None or self._drain_task.done():
            self._drain_task = asyncio.get_running_loop().create_task(self._drain())

    async def _drain(self) -> None:
        while self._pending:
            job = self._pending.popleft()
            if job.future.done():
                # Cancelled by its caller while waiting
                continue

            self._current = job
            try:
                result = await job.fn()
            except asyncio.CancelledError:
                task = asyncio.current_task()
                if task is not None and task.cancelling():
                    raise
                # The job cancelled itself; only its own future is affected
                logger.debug(f"[{self._name}] Job cancelled")
                job.future.cancel()
            except Exception as e:
                logger.debug(f"[{self._name}] Job failed: {e}")
                if not job.future.done():
                    job.future.set_exception(e)
            else:
                if not job.future.done():
                    job.future.set_result(result)
            finally:
                self._current = None
                if not job.future.done():
                    # The drain task itself was cancelled mid-job
                    job.future.cancel()
