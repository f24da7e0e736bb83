"""
app/services/report_queue.py

Shared, ordered channel of report batches handed to the shuffler.
"""

from __future__ import annotations

import asyncio
from collections.abc import Iterable

from reports.base import Report, ReportBatch
from reports.errors import BackpressureError


class ReportQueue:
    """
    Bounded FIFO of report batches.

    Each batch is stored as one immutable tuple, so concurrent pushes can
    never interleave reports. Empty batches are never enqueued.
    """

    def __init__(self, *, max_batches: int) -> None:
        self._queue: asyncio.Queue[ReportBatch] = asyncio.Queue(maxsize=max(1, max_batches))

    @property
    def maxsize(self) -> int:
        return self._queue.maxsize

    def qsize(self) -> int:
        return self._queue.qsize()

    def empty(self) -> bool:
        return self._queue.empty()

    async def put(self, reports: Iterable[Report], *, timeout: float | None = None) -> bool:
        """
        Push one batch atomically.

        Returns False without touching the queue when the batch is empty.
        Waits at most ``timeout`` seconds for capacity (forever when None)
        and raises BackpressureError when the wait expires. Cancelling the
        caller aborts the push; nothing is enqueued in that case.
        """

        batch: ReportBatch = tuple(reports)
        if not batch:
            return False

        if timeout is None:
            await self._queue.put(batch)
            return True

        try:
            await asyncio.wait_for(self._queue.put(batch), timeout=timeout)
        except asyncio.TimeoutError as exc:
            raise BackpressureError(
                f"Report queue is full ({self._queue.maxsize} batches); retry later.",
                retry_after_seconds=int(timeout) + 1,
            ) from exc
        return True

    async def get(self) -> ReportBatch:
        return await self._queue.get()

    def get_nowait(self) -> ReportBatch:
        return self._queue.get_nowait()

    def task_done(self) -> None:
        self._queue.task_done()

    async def join(self) -> None:
        """
        Wait until every enqueued batch has been marked done by the consumer.
        """

        await self._queue.join()
