"""
reports/envelope.py

Encrypted envelopes and the report variant they turn into once decrypted.

The framing inside an envelope belongs to the shuffler protocol. This module
only checks that an envelope carries bytes and delegates the rest to a
:class:`Decryptor`.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from reports.base import Report
from reports.errors import DecryptionUnavailableError, EnvelopeError


@dataclass(frozen=True)
class EncryptedEnvelope:
    """
    Opaque encrypted blob received from a client. Not a report yet.
    """

    ciphertext: bytes

    @classmethod
    def from_body(cls, body: bytes | None) -> "EncryptedEnvelope":
        if not body:
            raise EnvelopeError("Encrypted envelope is empty.")
        return cls(ciphertext=bytes(body))

    def __len__(self) -> int:
        return len(self.ciphertext)


@dataclass(frozen=True)
class DecryptedReport(Report):
    """
    Report produced by the decryption collaborator.

    The plaintext stays opaque; it is rendered as lowercase hex so two
    envelopes that decrypt to the same bytes share a crowd ID.
    """

    plaintext: bytes

    def render(self) -> str:
        return (
            "Decrypted report:\n"
            f"\tLength:    {len(self.plaintext):d}\n"
            f"\tPlaintext: {self.plaintext.hex()}\n"
        )


class Decryptor(Protocol):
    """
    External collaborator that opens encrypted envelopes.
    """

    def decrypt(self, envelope: EncryptedEnvelope) -> Report:
        """
        Return the decrypted report.

        Raises DecryptionError when the envelope cannot be decrypted and
        DecryptionUnavailableError when the collaborator cannot be reached.
        """
        ...


class UnconfiguredDecryptor:
    """Decryptor used when no decryption service is configured."""

    def decrypt(self, envelope: EncryptedEnvelope) -> Report:
        raise DecryptionUnavailableError("No decryption service is configured.")
