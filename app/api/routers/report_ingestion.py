"""
app/api/routers/report_ingestion.py

Clear and encrypted report ingestion HTTP endpoints.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status

from app.api.dependencies import get_decryptor, get_ingestion_service, get_request_body
from app.services.report_ingestion_service import ReportIngestionService
from reports.envelope import Decryptor
from reports.errors import (
    BackpressureError,
    ClientInputError,
    DecryptionUnavailableError,
    RequestCancelledError,
)

router = APIRouter(tags=["report-ingestion"])

# nginx convention for "client closed request"; the client never sees it.
CLIENT_CLOSED_REQUEST = 499


def _backpressure_exception(exc: BackpressureError) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        detail=str(exc),
        headers={"Retry-After": str(exc.retry_after_seconds)},
    )


@router.post("/reports", status_code=status.HTTP_200_OK, response_class=Response)
async def ingest_reports(
    request: Request,
    body: bytes = Depends(get_request_body),
    ingestion_service: ReportIngestionService = Depends(get_ingestion_service),
) -> Response:
    """
    Accept a JSON array of metric reports and enqueue it as one batch.
    """

    try:
        await ingestion_service.ingest_clear(body, is_disconnected=request.is_disconnected)
    except ClientInputError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc
    except BackpressureError as exc:
        raise _backpressure_exception(exc) from exc
    except RequestCancelledError:
        return Response(status_code=CLIENT_CLOSED_REQUEST)

    return Response(status_code=status.HTTP_200_OK)


@router.post("/reports/encrypted", status_code=status.HTTP_200_OK, response_class=Response)
async def ingest_encrypted_report(
    request: Request,
    body: bytes = Depends(get_request_body),
    ingestion_service: ReportIngestionService = Depends(get_ingestion_service),
    decryptor: Decryptor = Depends(get_decryptor),
) -> Response:
    """
    Accept one encrypted envelope, decrypt it and enqueue the report.
    """

    try:
        await ingestion_service.ingest_encrypted(
            body,
            decryptor,
            is_disconnected=request.is_disconnected,
        )
    except ClientInputError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc
    except DecryptionUnavailableError as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=str(exc),
        ) from exc
    except BackpressureError as exc:
        raise _backpressure_exception(exc) from exc
    except RequestCancelledError:
        return Response(status_code=CLIENT_CLOSED_REQUEST)

    return Response(status_code=status.HTTP_200_OK)
