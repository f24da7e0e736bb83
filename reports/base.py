"""
reports/base.py

Report contract and crowd ID derivation.

Every unit of telemetry handed to the shuffler is a :class:`Report`. A report
renders its content into one canonical string; the payload is the UTF-8
encoding of that string and the crowd ID is a SHA-1 digest over the payload.
Grouping therefore depends only on field values, never on how the client
serialized its request.
"""

from __future__ import annotations

import hashlib
from abc import ABC, abstractmethod

CROWD_ID_LENGTH = 40


class CrowdID(str):
    """
    Opaque grouping identifier: 40 lowercase hexadecimal characters.

    Instances are only created through :meth:`derive`.
    """

    __slots__ = ()

    @classmethod
    def derive(cls, payload: bytes) -> "CrowdID":
        """
        Derive the crowd ID of a canonical report payload.
        """

        return cls(hashlib.sha1(payload).hexdigest())


class Report(ABC):
    """
    Contract for anything that can be routed to the shuffler.

    Subclasses implement :meth:`render`; :meth:`payload` and :meth:`crowd_id`
    are derived from it. Derivation is pure and never raises for a
    well-formed report.
    """

    @abstractmethod
    def render(self) -> str:
        """
        Return the human-readable, canonical rendering of the report.
        """

    def payload(self) -> bytes:
        return self.render().encode("utf-8")

    def crowd_id(self) -> CrowdID:
        return CrowdID.derive(self.payload())

    def __str__(self) -> str:
        return self.render()


ReportBatch = tuple[Report, ...]
