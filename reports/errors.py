"""
reports/errors.py

Exception taxonomy for report ingestion.
"""

from __future__ import annotations


class IngestionError(Exception):
    """Base exception for report ingestion failures."""


class ClientInputError(IngestionError):
    """Raised when the caller submitted input that can never be accepted."""


class MalformedReportError(ClientInputError):
    """Raised when a clear report body cannot be decoded."""


class EnvelopeError(ClientInputError):
    """Raised when an encrypted envelope is empty or otherwise unusable."""


class DecryptionError(ClientInputError):
    """Raised when the decryption collaborator rejects an envelope."""


class DecryptionUnavailableError(IngestionError):
    """Raised when no decryption collaborator can be reached."""


class BackpressureError(IngestionError):
    """
    Raised when the report queue did not accept a batch in time.

    Callers are expected to retry after ``retry_after_seconds``.
    """

    def __init__(self, message: str, *, retry_after_seconds: int = 1) -> None:
        super().__init__(message)
        self.retry_after_seconds = max(1, retry_after_seconds)


class RequestCancelledError(IngestionError):
    """Raised when the client went away while its batch waited for the queue."""
