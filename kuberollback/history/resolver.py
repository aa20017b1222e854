"""Fetch the revision history owned by a workload."""

from __future__ import annotations

from kuberollback.backend.base import ClusterBackend
from kuberollback.history.selectors import selector_to_string
from kuberollback.models.workload import (
    ReplicaSetRevision,
    RevisionSnapshot,
    Workload,
    WorkloadKind,
    is_controlled_by,
)
from kuberollback.observability.logging import get_logger

_logger = get_logger("history.resolver")


class RevisionHistoryResolver:
    """Resolves a workload and the history objects it controls.

    The label selector only narrows the list call; ownership is decided by
    the controller owner reference because several workloads may select
    overlapping labels.
    """

    def __init__(self, backend: ClusterBackend) -> None:
        self._backend = backend

    async def resolve(
        self,
        kind: WorkloadKind,
        namespace: str,
        name: str,
    ) -> tuple[Workload, list[RevisionSnapshot]]:
        """Return the live workload and every ControllerRevision it owns.

        Raises:
            NotFound: the workload does not exist.
            SelectorError: the workload's selector is missing or malformed.
            BackendError: the list call failed.
        """
        workload = await self._backend.get_workload(kind, namespace, name)
        selector = selector_to_string(workload.selector)
        candidates = await self._backend.list_revision_snapshots(workload.namespace, selector)
        history = [s for s in candidates if is_controlled_by(s.owner_references, workload.uid)]
        _logger.debug(
            "history_resolved",
            workload=workload.ref(),
            namespace=workload.namespace,
            candidates=len(candidates),
            owned=len(history),
        )
        return workload, history

    async def resolve_replica_sets(self, workload: Workload) -> list[ReplicaSetRevision]:
        """Return the ReplicaSets controlled by a Deployment."""
        selector = selector_to_string(workload.selector)
        candidates = await self._backend.list_replica_sets(workload.namespace, selector)
        children = [rs for rs in candidates if is_controlled_by(rs.owner_references, workload.uid)]
        _logger.debug(
            "replica_sets_resolved",
            workload=workload.ref(),
            namespace=workload.namespace,
            candidates=len(candidates),
            owned=len(children),
        )
        return children
