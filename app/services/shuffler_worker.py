"""
app/services/shuffler_worker.py

Consumer side of the report queue.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Protocol

from starlette.concurrency import run_in_threadpool

from app.logging_utils import log_event
from app.services.report_queue import ReportQueue
from reports.base import ReportBatch

logger = logging.getLogger(__name__)


class Shuffler(Protocol):
    """
    Intake of the anonymizing shuffler. Receives batches in delivery order.
    """

    def receive(self, batch: ReportBatch) -> None:
        ...


class LoggingShuffler:
    """
    Shuffler stand-in that only records what it receives.
    """

    def receive(self, batch: ReportBatch) -> None:
        log_event(
            logger,
            logging.INFO,
            "shuffler_batch_received",
            batch_size=len(batch),
            distinct_crowds=len({report.crowd_id() for report in batch}),
        )


class ShufflerWorker:
    """
    Drains the report queue into the shuffler, one batch at a time.
    """

    def __init__(self, *, queue: ReportQueue, shuffler: Shuffler) -> None:
        self._queue = queue
        self._shuffler = shuffler
        self._task: asyncio.Task[None] | None = None
        self.batches_delivered = 0

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def run(self) -> None:
        while True:
            batch = await self._queue.get()
            try:
                await run_in_threadpool(self._shuffler.receive, batch)
                self.batches_delivered += 1
            except Exception:
                logger.exception("Shuffler failed to receive batch batch_size=%s", len(batch))
            finally:
                self._queue.task_done()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self.run(), name="shuffler-worker")
        logger.info("Shuffler worker started")

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("Shuffler worker stopped batches_delivered=%s", self.batches_delivered)
