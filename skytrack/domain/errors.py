"""Error types raised and reported by the tracking core."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


class MalformedRecordError(ValueError):
    """Raised when a snapshot record cannot be applied to the registry."""

    def __init__(self, reason: str, record_id: Optional[str] = None) -> None:
        message = f"{record_id}: {reason}" if record_id else reason
        super().__init__(message)
        self.reason = reason
        self.record_id = record_id


@dataclass
class RecordError:
    """A record skipped during reconciliation."""

    index: int
    record_id: Optional[str]
    reason: str


__all__ = ["MalformedRecordError", "RecordError"]
