"""Rollback outcome data structures."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum

ROLLBACK_SUCCESS = "rolled back"
ROLLBACK_SKIPPED = "skipped rollback"


class RollbackStatus(StrEnum):
    """How a rollback invocation concluded."""

    SUCCEEDED = "succeeded"
    SKIPPED = "skipped"
    PREVIEWED = "previewed"
    # The completion watch closed or was cancelled before a verdict.
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class RollbackResult:
    """Single rendered message plus the outcome classification.

    A rollback is never partially applied: SUCCEEDED means the live template
    was fully replaced, every other status means it was left untouched by
    this invocation.
    """

    status: RollbackStatus
    message: str = ""

    @classmethod
    def succeeded(cls) -> RollbackResult:
        return cls(RollbackStatus.SUCCEEDED, ROLLBACK_SUCCESS)

    @classmethod
    def skipped(cls, detail: str) -> RollbackResult:
        return cls(RollbackStatus.SKIPPED, f"{ROLLBACK_SKIPPED} ({detail})")

    @classmethod
    def previewed(cls, rendered: str) -> RollbackResult:
        return cls(RollbackStatus.PREVIEWED, rendered)

    @classmethod
    def unknown(cls) -> RollbackResult:
        return cls(RollbackStatus.UNKNOWN, "")
