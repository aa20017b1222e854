"""Rollbacker: the per-kind rollback capability."""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from collections.abc import Mapping

from kuberollback.backend.base import ClusterBackend
from kuberollback.errors import RolloutError, UnsupportedKindError
from kuberollback.history.resolver import RevisionHistoryResolver
from kuberollback.models.results import RollbackResult
from kuberollback.models.workload import Workload, WorkloadKind
from kuberollback.observability.logging import get_logger
from kuberollback.observability.metrics import rollbacks_total

_logger = get_logger("rollback")


class Rollbacker(ABC):
    """Reverts one kind of workload to a recorded revision.

    ``to_revision`` is a non-negative integer; 0 means the revision
    immediately before the current one. A dry run renders the target
    template and never issues a mutating call.
    """

    kind: WorkloadKind

    def __init__(self, backend: ClusterBackend) -> None:
        self._backend = backend
        self._resolver = RevisionHistoryResolver(backend)

    async def rollback(
        self,
        workload: Workload,
        updated_annotations: Mapping[str, str],
        to_revision: int,
        dry_run: bool = False,
        cancel: asyncio.Event | None = None,
    ) -> RollbackResult:
        if workload.kind != self.kind:
            raise UnsupportedKindError(f"{self.kind} rollbacker", workload.kind)
        log = _logger.bind(
            workload=workload.ref(),
            namespace=workload.namespace,
            to_revision=to_revision,
            dry_run=dry_run,
        )
        try:
            result = await self._rollback(workload, dict(updated_annotations), to_revision, dry_run, cancel)
        except RolloutError as exc:
            rollbacks_total.labels(kind=str(self.kind), outcome="error").inc()
            log.warning("rollback_failed", error=str(exc), error_type=type(exc).__name__)
            raise
        rollbacks_total.labels(kind=str(self.kind), outcome=str(result.status)).inc()
        log.info("rollback_finished", status=str(result.status))
        return result

    @abstractmethod
    async def _rollback(
        self,
        workload: Workload,
        updated_annotations: dict[str, str],
        to_revision: int,
        dry_run: bool,
        cancel: asyncio.Event | None,
    ) -> RollbackResult:
        """Kind-specific rollback; errors propagate unrecovered."""
