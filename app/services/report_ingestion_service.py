"""
app/services/report_ingestion_service.py

Decodes inbound report requests and pushes them onto the report queue.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass

from pydantic import TypeAdapter, ValidationError
from starlette.concurrency import run_in_threadpool

from app.logging_utils import log_event
from app.schemas.report_ingestion import MetricReportPayload
from app.services.report_queue import ReportQueue
from reports.base import Report
from reports.envelope import Decryptor, EncryptedEnvelope
from reports.errors import BackpressureError, ClientInputError, MalformedReportError, RequestCancelledError
from reports.metric import MetricReport

logger = logging.getLogger(__name__)

DisconnectProbe = Callable[[], Awaitable[bool]]

_METRIC_BATCH_ADAPTER = TypeAdapter(list[MetricReportPayload])


@dataclass
class IngestionStats:
    """
    Mutable ingestion counters, updated from the event loop only.
    """

    batches_enqueued: int = 0
    reports_enqueued: int = 0
    rejected_requests: int = 0
    backpressure_rejections: int = 0
    cancelled_requests: int = 0


def decode_metric_batch(body: bytes) -> list[MetricReport]:
    """
    Decode a JSON array of metric objects.

    The whole body is validated before any report is built; one bad element
    rejects the request.
    """

    try:
        payloads = _METRIC_BATCH_ADAPTER.validate_json(body)
    except ValidationError as exc:
        raise MalformedReportError(str(exc)) from exc

    return [MetricReport(**payload.model_dump()) for payload in payloads]


class ReportIngestionService:
    """
    Stateless per request; the queue is the only shared resource.
    """

    def __init__(
        self,
        *,
        queue: ReportQueue,
        enqueue_timeout_seconds: float,
        disconnect_poll_seconds: float,
    ) -> None:
        self._queue = queue
        self._enqueue_timeout_seconds = enqueue_timeout_seconds
        self._disconnect_poll_seconds = max(0.01, disconnect_poll_seconds)
        self.stats = IngestionStats()

    @property
    def queue(self) -> ReportQueue:
        return self._queue

    async def ingest_clear(
        self,
        body: bytes,
        *,
        is_disconnected: DisconnectProbe | None = None,
    ) -> int:
        """
        Decode a clear report batch and enqueue it. Returns the batch size.
        """

        try:
            reports = decode_metric_batch(body)
        except ClientInputError as exc:
            self._record_rejection("clear", exc)
            raise

        return await self._push(reports, source="clear", is_disconnected=is_disconnected)

    async def ingest_encrypted(
        self,
        body: bytes,
        decryptor: Decryptor,
        *,
        is_disconnected: DisconnectProbe | None = None,
    ) -> int:
        """
        Decrypt one envelope and enqueue the resulting report.
        """

        try:
            envelope = EncryptedEnvelope.from_body(body)
            report = await run_in_threadpool(decryptor.decrypt, envelope)
        except ClientInputError as exc:
            self._record_rejection("encrypted", exc)
            raise

        return await self._push([report], source="encrypted", is_disconnected=is_disconnected)

    async def _push(
        self,
        reports: Sequence[Report],
        *,
        source: str,
        is_disconnected: DisconnectProbe | None,
    ) -> int:
        if not reports:
            log_event(logger, logging.DEBUG, "report_batch_empty", source=source)
            return 0

        put_task = asyncio.ensure_future(
            self._queue.put(reports, timeout=self._enqueue_timeout_seconds)
        )
        try:
            while True:
                done, _ = await asyncio.wait({put_task}, timeout=self._disconnect_poll_seconds)
                if done:
                    put_task.result()
                    break
                if is_disconnected is not None and await is_disconnected():
                    put_task.cancel()
                    await asyncio.wait({put_task})
                    if not put_task.cancelled():
                        # The push won the race against the cancellation.
                        put_task.result()
                        break
                    self.stats.cancelled_requests += 1
                    log_event(
                        logger,
                        logging.INFO,
                        "report_request_cancelled",
                        source=source,
                        batch_size=len(reports),
                    )
                    raise RequestCancelledError("Client disconnected before the batch was enqueued.")
        except BackpressureError:
            self.stats.backpressure_rejections += 1
            log_event(
                logger,
                logging.WARNING,
                "report_enqueue_backpressure",
                source=source,
                batch_size=len(reports),
                queue_depth=self._queue.qsize(),
                queue_capacity=self._queue.maxsize,
            )
            raise
        finally:
            if not put_task.done():
                put_task.cancel()

        self.stats.batches_enqueued += 1
        self.stats.reports_enqueued += len(reports)
        log_event(
            logger,
            logging.INFO,
            "report_batch_enqueued",
            source=source,
            batch_size=len(reports),
            queue_depth=self._queue.qsize(),
        )
        return len(reports)

    def _record_rejection(self, source: str, exc: Exception) -> None:
        self.stats.rejected_requests += 1
        log_event(
            logger,
            logging.INFO,
            "report_request_rejected",
            source=source,
            reason=type(exc).__name__,
        )
