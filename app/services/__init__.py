"""
app/services package marker.
"""

from app.services.report_ingestion_service import (
    IngestionStats,
    ReportIngestionService,
    decode_metric_batch,
)
from app.services.report_queue import ReportQueue
from app.services.shuffler_worker import LoggingShuffler, Shuffler, ShufflerWorker

__all__ = [
    "IngestionStats",
    "ReportIngestionService",
    "decode_metric_batch",
    "ReportQueue",
    "LoggingShuffler",
    "Shuffler",
    "ShufflerWorker",
]
