"""
app/schemas package marker.
"""

from app.schemas.report_ingestion import (
    HealthResponse,
    IngestionStatsResponse,
    MetricReportPayload,
)

__all__ = [
    "HealthResponse",
    "IngestionStatsResponse",
    "MetricReportPayload",
]
