"""
app/schemas/report_ingestion.py

Wire and response schemas for report ingestion.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, StrictInt, StrictStr


class MetricReportPayload(BaseModel):
    """
    One metric object as posted by clients.

    Every key is required. Numeric fields must be JSON integers; unknown
    keys are ignored.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    year_of_survey: StrictInt = Field(..., alias="yos")
    year_of_install: StrictInt = Field(..., alias="yoi")
    week_of_survey: StrictInt = Field(..., alias="wos")
    week_of_install: StrictInt = Field(..., alias="woi")
    metric_value: StrictInt
    metric_hash: StrictStr
    country_code: StrictStr
    platform: StrictStr
    version: StrictStr
    channel: StrictStr
    refcode: StrictStr


class IngestionStatsResponse(BaseModel):
    """
    Ingestion counters since process start.
    """

    batches_enqueued: int = Field(..., ge=0)
    reports_enqueued: int = Field(..., ge=0)
    rejected_requests: int = Field(..., ge=0)
    backpressure_rejections: int = Field(..., ge=0)
    cancelled_requests: int = Field(..., ge=0)


class HealthResponse(BaseModel):
    """
    API response model for the health endpoint.
    """

    status: str
    queue_depth: int = Field(..., ge=0)
    queue_capacity: int = Field(..., ge=1)
    ingestion: IngestionStatsResponse
