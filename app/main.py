from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager
from collections.abc import AsyncIterator
from urllib.parse import urlparse

from fastapi import FastAPI, Request

from app.config import get_decryption_settings, get_ingestion_settings, load_env_files
from app.schemas.report_ingestion import HealthResponse, IngestionStatsResponse
from app.services.report_ingestion_service import ReportIngestionService
from app.services.report_queue import ReportQueue
from app.services.shuffler_worker import LoggingShuffler, Shuffler, ShufflerWorker
from reports.envelope import Decryptor, UnconfiguredDecryptor

_LOG_LEVELS = {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}


def _validate_env() -> None:
    """
    Validate ingestion-related environment variables at startup.

    Raises RuntimeError listing every invalid variable so the operator can
    fix all problems in one restart cycle. All variables are optional.
    """

    load_env_files()

    errors: list[str] = []

    # --- Log level ------------------------------------------------------
    log_level = os.getenv("LOG_LEVEL", "INFO").strip().upper()
    if log_level not in _LOG_LEVELS:
        errors.append(
            f"LOG_LEVEL='{log_level}' is not valid. Allowed values: {sorted(_LOG_LEVELS)}."
        )

    # --- Decryption service ---------------------------------------------
    decryption_url = os.getenv("DECRYPTION_SERVICE_URL", "").strip()
    if decryption_url:
        parsed = urlparse(decryption_url)
        if parsed.scheme not in {"http", "https"} or not parsed.netloc:
            errors.append(
                f"DECRYPTION_SERVICE_URL='{decryption_url}' must be an absolute http(s) URL."
            )

    # --- Numeric ingestion settings -------------------------------------
    for name in ("REPORT_QUEUE_MAX_BATCHES", "REPORT_MAX_BODY_BYTES"):
        raw = os.getenv(name, "").strip()
        if raw and not raw.isdigit():
            errors.append(f"{name}='{raw}' must be a positive integer.")

    for name in (
        "REPORT_ENQUEUE_TIMEOUT_SECONDS",
        "REPORT_DISCONNECT_POLL_SECONDS",
        "DECRYPTION_TIMEOUT_SECONDS",
    ):
        raw = os.getenv(name, "").strip()
        if not raw:
            continue
        try:
            float(raw)
        except ValueError:
            errors.append(f"{name}='{raw}' must be a number of seconds.")

    if errors:
        raise RuntimeError(
            "Startup validation failed, invalid environment variables:\n"
            + "\n".join(f"  - {e}" for e in errors)
        )


def _configure_logging() -> None:
    """
    Configure root logging once for the API process.
    """

    log_level = os.getenv("LOG_LEVEL", "INFO").strip().upper()
    logging.basicConfig(
        level=getattr(logging, log_level, logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def _build_decryptor() -> Decryptor:
    settings = get_decryption_settings()
    if not settings.service_url:
        logging.getLogger(__name__).warning(
            "DECRYPTION_SERVICE_URL is not set; encrypted reports will be refused."
        )
        return UnconfiguredDecryptor()

    from app.connectors.decryption_connector import RemoteDecryptor

    return RemoteDecryptor(settings=settings)


@asynccontextmanager
async def _lifespan(application: FastAPI) -> AsyncIterator[None]:
    """Start the shuffler worker on boot; stop it on exit."""
    worker: ShufflerWorker = application.state.shuffler_worker
    if application.state.shuffler_worker_enabled:
        worker.start()
    try:
        yield
    finally:
        await worker.stop()


def create_app(
    *,
    queue: ReportQueue | None = None,
    decryptor: Decryptor | None = None,
    shuffler: Shuffler | None = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    The report queue is owned by the application instance; pass one in to
    observe or drain it from outside.
    """

    _validate_env()
    _configure_logging()

    settings = get_ingestion_settings()
    report_queue = queue if queue is not None else ReportQueue(max_batches=settings.queue_max_batches)

    application = FastAPI(
        title="Report Ingestion API",
        version="1.0.0",
        lifespan=_lifespan,
    )
    application.state.report_queue = report_queue
    application.state.max_body_bytes = settings.max_body_bytes
    application.state.ingestion_service = ReportIngestionService(
        queue=report_queue,
        enqueue_timeout_seconds=settings.enqueue_timeout_seconds,
        disconnect_poll_seconds=settings.disconnect_poll_seconds,
    )
    application.state.decryptor = decryptor if decryptor is not None else _build_decryptor()
    application.state.shuffler_worker = ShufflerWorker(
        queue=report_queue,
        shuffler=shuffler if shuffler is not None else LoggingShuffler(),
    )
    application.state.shuffler_worker_enabled = settings.shuffler_worker_enabled

    from app.api.routers import report_ingestion_router

    application.include_router(report_ingestion_router)

    @application.get("/health", response_model=HealthResponse)
    def healthcheck(request: Request) -> HealthResponse:
        state = request.app.state
        stats = state.ingestion_service.stats
        return HealthResponse(
            status="ok",
            queue_depth=state.report_queue.qsize(),
            queue_capacity=state.report_queue.maxsize,
            ingestion=IngestionStatsResponse(
                batches_enqueued=stats.batches_enqueued,
                reports_enqueued=stats.reports_enqueued,
                rejected_requests=stats.rejected_requests,
                backpressure_rejections=stats.backpressure_rejections,
                cancelled_requests=stats.cancelled_requests,
            ),
        )

    return application


app = create_app()
