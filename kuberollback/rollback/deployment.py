"""Server-assisted rollback for Deployments.

The API server owns the rollback itself: we submit a DeploymentRollback
and then wait for the Event that reports how it went. Dry runs never touch
the server-side path; they read the owned ReplicaSets, which carry their
own revision number and pod template.
"""

from __future__ import annotations

import asyncio

from kuberollback.errors import NoRolloutHistory, PausedWorkload
from kuberollback.history.selector import PREVIOUS_REVISION, select_revision
from kuberollback.models.results import RollbackResult
from kuberollback.models.workload import ReplicaSetRevision, Workload, WorkloadKind
from kuberollback.observability.logging import get_logger
from kuberollback.render.pod_template import describe_pod_template
from kuberollback.rollback.base import Rollbacker
from kuberollback.rollback.watcher import watch_rollback_event

_logger = get_logger("rollback.deployment")


def revisions_by_number(children: list[ReplicaSetRevision]) -> dict[int, ReplicaSetRevision]:
    """Index ReplicaSets by revision; a later child wins on a repeated number."""
    return {child.revision: child for child in children}


class DeploymentRollbacker(Rollbacker):
    kind = WorkloadKind.DEPLOYMENT

    async def _rollback(
        self,
        workload: Workload,
        updated_annotations: dict[str, str],
        to_revision: int,
        dry_run: bool,
        cancel: asyncio.Event | None,
    ) -> RollbackResult:
        if workload.paused:
            raise PausedWorkload(self.kind, workload.name)
        if dry_run:
            return await self._dry_run(workload, to_revision)

        watermark = await self._backend.event_watermark(workload.namespace)
        await self._backend.native_rollback(workload.namespace, workload.name, to_revision, updated_annotations)
        _logger.info(
            "rollback_submitted",
            workload=workload.ref(),
            namespace=workload.namespace,
            to_revision=to_revision,
            watermark=watermark,
        )
        stream = await self._backend.watch_events(workload.namespace, watermark)
        return await watch_rollback_event(stream, cancel)

    async def _dry_run(self, workload: Workload, to_revision: int) -> RollbackResult:
        children = revisions_by_number(await self._resolver.resolve_replica_sets(workload))
        if len(children) < 2:
            raise NoRolloutHistory(self.kind, workload.name)

        target = select_revision(children.values(), to_revision)
        rendered = describe_pod_template(target.template)
        if to_revision == PREVIOUS_REVISION:
            rendered = "\n" + rendered
        return RollbackResult.previewed(rendered)
