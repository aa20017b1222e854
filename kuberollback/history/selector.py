"""Pick the snapshot a rollback should target.

``resolve_previous_revision`` is the only place that decides what
"previous" means: it assumes the highest-numbered snapshot is the live
configuration. If the live object drifted without a new snapshot being
recorded, "previous" is relative to the last recorded snapshot, not to
what is actually running.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Protocol, TypeVar

from kuberollback.errors import DuplicateRevisionError, InsufficientHistory, RevisionNotFound


class _Revisioned(Protocol):
    @property
    def name(self) -> str: ...

    @property
    def revision(self) -> int: ...


R = TypeVar("R", bound=_Revisioned)

PREVIOUS_REVISION = 0


def ordered_by_revision(history: Iterable[R]) -> list[R]:
    """Return *history* sorted ascending by revision, rejecting duplicates."""
    ordered = sorted(history, key=lambda item: item.revision)
    for earlier, later in zip(ordered, ordered[1:]):
        if earlier.revision == later.revision:
            dupes = [item.name for item in ordered if item.revision == later.revision]
            raise DuplicateRevisionError(later.revision, dupes)
    return ordered


def resolve_previous_revision(history: Iterable[R]) -> R:
    """Return the entry immediately before the highest revision.

    Raises:
        InsufficientHistory: fewer than two entries.
    """
    ordered = ordered_by_revision(history)
    if len(ordered) <= 1:
        raise InsufficientHistory()
    return ordered[len(ordered) - 2]


def select_revision(history: Iterable[R], target: int) -> R:
    """Resolve *target* (explicit revision, or 0 for previous) against *history*.

    Raises:
        RevisionNotFound: target is negative or not present.
        InsufficientHistory: target is 0 and there is at most one entry.
        DuplicateRevisionError: a revision number occurs more than once.
    """
    if target < 0:
        raise RevisionNotFound(target)
    if target == PREVIOUS_REVISION:
        return resolve_previous_revision(history)
    for item in ordered_by_revision(history):
        if item.revision == target:
            return item
    raise RevisionNotFound(target)
