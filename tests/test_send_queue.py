"""Tests for SendQueue ordering, supersession and error isolation."""

import asyncio

import pytest

from surfacebridge.devices import SendQueue


def recorder(log, name, delay=0.0, result=None):
    async def job():
        log.append(f"start {name}")
        if delay:
            await asyncio.sleep(delay)
        log.append(f"end {name}")
        return result
    return job


@pytest.mark.asyncio
class TestSendQueue:
    """Test serialized job execution."""

    async def test_fifo_and_never_overlapping(self):
        log = []
        queue = SendQueue()
        futures = [queue.add(recorder(log, n, delay=0.01)) for n in ("a", "b", "c")]
        await asyncio.gather(*futures)

        assert log == ["start a", "end a", "start b", "end b", "start c", "end c"]
        assert queue.is_idle

    async def test_result_delivered_on_future(self):
        queue = SendQueue()
        assert await queue.add(recorder([], "x", result=42)) == 42

    async def test_failure_does_not_stop_queue(self):
        log = []
        queue = SendQueue()

        async def slow_boom():
            log.append("start boom")
            await asyncio.sleep(0.01)
            log.append("end boom")
            raise RuntimeError("write failed")

        first = queue.add(recorder(log, "first"))
        failing = queue.add(slow_boom)
        after = queue.add(recorder(log, "after"))

        await first
        with pytest.raises(RuntimeError, match="write failed"):
            await failing
        await after
        assert log == [
            "start first", "end first",
            "start boom", "end boom",
            "start after", "end after",
        ]

    async def test_cancelled_job_does_not_stop_queue(self):
        log = []
        queue = SendQueue()
        loop = asyncio.get_running_loop()

        async def cancelled_write():
            abandoned = loop.create_future()
            abandoned.cancel()
            await abandoned

        cancelled = queue.add(cancelled_write)
        after = queue.add(recorder(log, "after", result="done"))

        assert await asyncio.wait_for(after, timeout=1) == "done"
        assert cancelled.cancelled()
        assert log == ["start after", "end after"]
        assert queue.is_idle

    async def test_not_started_until_start(self):
        log = []
        queue = SendQueue(auto_start=False)
        future = queue.add(recorder(log, "a"))
        await asyncio.sleep(0.01)
        assert log == []
        assert len(queue) == 1

        queue.start()
        await future
        assert log == ["start a", "end a"]

    async def test_remove_drops_pending_by_class_name(self):
        log = []
        queue = SendQueue(auto_start=False)
        old = queue.add(recorder(log, "old"), class_name="3")
        other = queue.add(recorder(log, "other"), class_name="4")

        assert queue.remove("3") == 1
        new = queue.add(recorder(log, "new"), class_name="3")
        queue.start()

        await asyncio.gather(other, new)
        assert old.cancelled()
        assert log == ["start other", "end other", "start new", "end new"]

    async def test_running_job_is_not_removed(self):
        log = []
        queue = SendQueue()
        running = queue.add(recorder(log, "running", delay=0.02), class_name="1")
        await asyncio.sleep(0)

        assert queue.remove("1") == 0
        await running
        assert log == ["start running", "end running"]

    async def test_clear(self):
        queue = SendQueue(auto_start=False)
        futures = [queue.add(recorder([], str(i))) for i in range(3)]

        assert queue.clear() == 3
        assert all(f.cancelled() for f in futures)
        assert len(queue) == 0
        assert queue.is_idle
