"""
app/api/dependencies.py

Shared FastAPI dependencies for report ingestion requests.
"""

from __future__ import annotations

from fastapi import HTTPException, Request, status

from app.services.report_ingestion_service import ReportIngestionService
from reports.envelope import Decryptor


def get_ingestion_service(request: Request) -> ReportIngestionService:
    """
    Return the ingestion service bound to this application's report queue.
    """

    return request.app.state.ingestion_service


def get_decryptor(request: Request) -> Decryptor:
    """
    Return the decryption collaborator configured for this application.
    """

    return request.app.state.decryptor


async def get_request_body(request: Request) -> bytes:
    """
    Read the raw request body, rejecting bodies above the configured limit.
    """

    max_body_bytes: int = request.app.state.max_body_bytes

    declared_length = request.headers.get("content-length")
    if declared_length is not None and declared_length.isdigit() and int(declared_length) > max_body_bytes:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=f"Request body exceeds {max_body_bytes} bytes.",
        )

    chunks: list[bytes] = []
    received = 0
    async for chunk in request.stream():
        received += len(chunk)
        if received > max_body_bytes:
            raise HTTPException(
                status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
                detail=f"Request body exceeds {max_body_bytes} bytes.",
            )
        chunks.append(chunk)
    return b"".join(chunks)
