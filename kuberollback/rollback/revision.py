"""Client-side rollback for DaemonSets and StatefulSets.

These kinds have no server-side rollback. The target template is rebuilt
locally by applying a ControllerRevision patch to a copy of the live
object, and the same patch bytes are then sent to the live object.
"""

from __future__ import annotations

import asyncio

from kuberollback.errors import BackendError, InsufficientHistory, RevisionNotFound
from kuberollback.history.reconstruct import reconstruct
from kuberollback.history.selector import PREVIOUS_REVISION, select_revision
from kuberollback.models.results import RollbackResult
from kuberollback.models.workload import Workload, WorkloadKind
from kuberollback.observability.logging import get_logger
from kuberollback.render.pod_template import describe_pod_template
from kuberollback.rollback.base import Rollbacker

_logger = get_logger("rollback.revision")


class ControllerRevisionRollbacker(Rollbacker):
    """Shared ControllerRevision-based rollback."""

    async def _rollback(
        self,
        workload: Workload,
        updated_annotations: dict[str, str],
        to_revision: int,
        dry_run: bool,
        cancel: asyncio.Event | None,
    ) -> RollbackResult:
        if to_revision < 0:
            raise RevisionNotFound(to_revision)

        live, history = await self._resolver.resolve(self.kind, workload.namespace, workload.name)
        if to_revision == PREVIOUS_REVISION and len(history) <= 1:
            raise InsufficientHistory()

        target = select_revision(history, to_revision)
        applied = reconstruct(live, target)

        if dry_run:
            return RollbackResult.previewed(f"will roll back to {describe_pod_template(applied.template)}")

        if applied.template == live.template:
            _logger.info("rollback_skipped", workload=live.ref(), revision=target.revision)
            return RollbackResult.skipped(f"current template already matches revision {target.revision}")

        try:
            await self._backend.patch_workload(self.kind, live.namespace, live.name, target.data)
        except BackendError as exc:
            raise BackendError(f"failed restoring revision {target.revision}: {exc}", status=exc.status) from exc

        _logger.info("rollback_patched", workload=live.ref(), revision=target.revision, snapshot=target.name)
        return RollbackResult.succeeded()


class DaemonSetRollbacker(ControllerRevisionRollbacker):
    kind = WorkloadKind.DAEMON_SET


class StatefulSetRollbacker(ControllerRevisionRollbacker):
    kind = WorkloadKind.STATEFUL_SET
