"""HistoryViewer: list revisions or render a single revision's pod template."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TextIO

from kuberollback.backend.base import ClusterBackend
from kuberollback.errors import RevisionNotFound
from kuberollback.history.reconstruct import reconstruct
from kuberollback.history.resolver import RevisionHistoryResolver
from kuberollback.history.selector import ordered_by_revision
from kuberollback.models.workload import CHANGE_CAUSE_ANNOTATION, WorkloadKind
from kuberollback.observability.logging import get_logger
from kuberollback.observability.metrics import history_views_total
from kuberollback.render.pod_template import describe_pod_template
from kuberollback.render.tabwriter import tabbed_string

_logger = get_logger("history.viewer")

NO_HISTORY = "No rollout history found."


def _change_cause_table(rows: list[tuple[int, str]]) -> str:
    def write(out: TextIO) -> None:
        out.write("REVISION\tCHANGE-CAUSE\n")
        for revision, change_cause in rows:
            out.write(f"{revision}\t{change_cause or '<none>'}\n")

    return tabbed_string(write)


class HistoryViewer(ABC):
    """Renders the revision history of one kind of workload."""

    kind: WorkloadKind

    def __init__(self, backend: ClusterBackend, change_cause_annotation: str = CHANGE_CAUSE_ANNOTATION) -> None:
        self._backend = backend
        self._resolver = RevisionHistoryResolver(backend)
        self._change_cause_annotation = change_cause_annotation

    async def view_history(self, namespace: str, name: str, revision: int = 0) -> str:
        """Return a revision table, or the pod template of *revision* when > 0."""
        history_views_total.labels(kind=str(self.kind)).inc()
        _logger.debug("view_history", kind=str(self.kind), namespace=namespace, name=name, revision=revision)
        return await self._view(namespace, name, revision)

    @abstractmethod
    async def _view(self, namespace: str, name: str, revision: int) -> str: ...


class DeploymentHistoryViewer(HistoryViewer):
    """History comes from the ReplicaSets the Deployment owns."""

    kind = WorkloadKind.DEPLOYMENT

    async def _view(self, namespace: str, name: str, revision: int) -> str:
        deployment = await self._backend.get_workload(self.kind, namespace, name)
        children = {rs.revision: rs for rs in await self._resolver.resolve_replica_sets(deployment)}
        if not children:
            return NO_HISTORY

        if revision > 0:
            child = children.get(revision)
            if child is None:
                raise RevisionNotFound(revision)
            template = child.template
            change_cause = child.annotations.get(self._change_cause_annotation)
            if change_cause:
                # Surface the ReplicaSet's change-cause on the rendered template.
                metadata = dict(template.get("metadata") or {})
                annotations = dict(metadata.get("annotations") or {})
                annotations[self._change_cause_annotation] = change_cause
                metadata["annotations"] = annotations
                template = {**template, "metadata": metadata}
            return describe_pod_template(template)

        rows = [
            (number, children[number].annotations.get(self._change_cause_annotation, ""))
            for number in sorted(children)
        ]
        return _change_cause_table(rows)


class DaemonSetHistoryViewer(HistoryViewer):
    """History comes from ControllerRevisions; templates are reconstructed."""

    kind = WorkloadKind.DAEMON_SET

    async def _view(self, namespace: str, name: str, revision: int) -> str:
        daemon_set, history = await self._resolver.resolve(self.kind, namespace, name)
        if not history:
            return NO_HISTORY
        ordered = ordered_by_revision(history)

        if revision > 0:
            snapshot = next((s for s in ordered if s.revision == revision), None)
            if snapshot is None:
                raise RevisionNotFound(revision)
            return describe_pod_template(reconstruct(daemon_set, snapshot).template)

        rows = [(s.revision, s.annotations.get(self._change_cause_annotation, "")) for s in ordered]
        return _change_cause_table(rows)


class StatefulSetHistoryViewer(HistoryViewer):
    """Only revision numbers are listed; there is no per-revision detail view."""

    kind = WorkloadKind.STATEFUL_SET

    async def _view(self, namespace: str, name: str, revision: int) -> str:
        _, history = await self._resolver.resolve(self.kind, namespace, name)
        if not history:
            return NO_HISTORY

        def write(out: TextIO) -> None:
            out.write("REVISION\n")
            for snapshot in ordered_by_revision(history):
                out.write(f"{snapshot.revision}\n")

        return tabbed_string(write)
