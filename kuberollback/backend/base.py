"""Abstract cluster backend consumed by the history and rollback core.

The core never talks to the API server directly: it is handed a
ClusterBackend and only calls the primitives below. Every call is a single
blocking round-trip; implementations must not cache or retry.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import AsyncIterator

from kuberollback.models.workload import (
    ReplicaSetRevision,
    RevisionSnapshot,
    RolloutEvent,
    Workload,
    WorkloadKind,
)


class EventStream(ABC):
    """A sequential, possibly infinite stream of namespace events."""

    @abstractmethod
    async def next_event(self) -> RolloutEvent | None:
        """Return the next event, or None once the stream has closed."""

    @abstractmethod
    def stop(self) -> None:
        """Stop the underlying watch. Safe to call more than once."""

    async def __aiter__(self) -> AsyncIterator[RolloutEvent]:
        while True:
            event = await self.next_event()
            if event is None:
                return
            yield event


class ClusterBackend(ABC):
    """Primitives the core needs from the orchestration API."""

    @abstractmethod
    async def get_workload(self, kind: WorkloadKind, namespace: str, name: str) -> Workload:
        """Fetch a live workload.

        Raises:
            NotFound: the workload does not exist.
            BackendError: any other API failure.
        """

    @abstractmethod
    async def list_revision_snapshots(self, namespace: str, label_selector: str) -> list[RevisionSnapshot]:
        """List ControllerRevisions in *namespace* matching *label_selector*."""

    @abstractmethod
    async def list_replica_sets(self, namespace: str, label_selector: str) -> list[ReplicaSetRevision]:
        """List ReplicaSets in *namespace* matching *label_selector*.

        Children without a parseable revision annotation are left out.
        """

    @abstractmethod
    async def patch_workload(self, kind: WorkloadKind, namespace: str, name: str, patch: bytes) -> Workload:
        """Apply *patch* as a strategic merge patch to the live object."""

    @abstractmethod
    async def event_watermark(self, namespace: str) -> str:
        """Return the resourceVersion of the namespace event list right now."""

    @abstractmethod
    async def native_rollback(
        self,
        namespace: str,
        name: str,
        revision: int,
        annotations: dict[str, str],
    ) -> None:
        """Submit a server-side Deployment rollback request."""

    @abstractmethod
    async def watch_events(self, namespace: str, watermark: str) -> EventStream:
        """Open a watch on namespace events starting after *watermark*."""

    async def close(self) -> None:
        """Release transport resources. Backends without any keep the default."""
