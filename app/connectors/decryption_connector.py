"""
app/connectors/decryption_connector.py

HTTP client for the external decryption service.
"""

from __future__ import annotations

import logging

import requests

from app.config import DecryptionSettings
from reports.envelope import DecryptedReport, EncryptedEnvelope
from reports.errors import DecryptionError, DecryptionUnavailableError

logger = logging.getLogger(__name__)


class RemoteDecryptor:
    """
    Hands encrypted envelopes to the decryption service over HTTP.

    The ciphertext is posted as-is; a 2xx response body is the plaintext.
    Requests are not retried here; callers retry on a 503.
    """

    def __init__(
        self,
        *,
        settings: DecryptionSettings,
        session: requests.Session | None = None,
    ) -> None:
        if not settings.service_url:
            raise ValueError("RemoteDecryptor requires a decryption service URL.")
        self._url = settings.service_url
        self._timeout_seconds = settings.timeout_seconds
        self._session = session or requests.Session()

    def decrypt(self, envelope: EncryptedEnvelope) -> DecryptedReport:
        try:
            response = self._session.post(
                self._url,
                data=envelope.ciphertext,
                headers={"Content-Type": "application/octet-stream"},
                timeout=self._timeout_seconds,
            )
        except (requests.Timeout, requests.ConnectionError) as exc:
            logger.error(
                "Decryption service unreachable url=%s error=%s",
                self._url,
                exc,
            )
            raise DecryptionUnavailableError("Decryption service is unreachable.") from exc

        if 400 <= response.status_code < 500:
            logger.warning(
                "Decryption rejected envelope status=%s envelope_bytes=%s",
                response.status_code,
                len(envelope),
            )
            raise DecryptionError(f"Envelope could not be decrypted (status {response.status_code}).")

        if not 200 <= response.status_code < 300:
            logger.error(
                "Decryption service failed status=%s url=%s",
                response.status_code,
                self._url,
            )
            raise DecryptionUnavailableError(
                f"Decryption service failed with status {response.status_code}."
            )

        if not response.content:
            logger.error("Decryption service returned an empty plaintext url=%s", self._url)
            raise DecryptionUnavailableError("Decryption service returned no plaintext.")

        return DecryptedReport(plaintext=response.content)
