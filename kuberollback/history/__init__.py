"""Revision history for rollout workloads.

Submodules:
    selectors    -- LabelSelector -> query string.
    resolver     -- Workload + owned ControllerRevisions / ReplicaSets.
    selector     -- Target revision selection ("previous" heuristic).
    reconstruct  -- Rebuild a historical workload from a revision patch.
    viewer       -- Per-kind HistoryViewer implementations.
"""

from __future__ import annotations

from kuberollback.backend.base import ClusterBackend
from kuberollback.errors import UnsupportedKindError
from kuberollback.history.reconstruct import reconstruct
from kuberollback.history.resolver import RevisionHistoryResolver
from kuberollback.history.selector import resolve_previous_revision, select_revision
from kuberollback.history.viewer import (
    DaemonSetHistoryViewer,
    DeploymentHistoryViewer,
    HistoryViewer,
    StatefulSetHistoryViewer,
)
from kuberollback.models.workload import CHANGE_CAUSE_ANNOTATION, WorkloadKind, parse_kind

__all__ = [
    "DaemonSetHistoryViewer",
    "DeploymentHistoryViewer",
    "HistoryViewer",
    "RevisionHistoryResolver",
    "StatefulSetHistoryViewer",
    "history_viewer_for",
    "reconstruct",
    "resolve_previous_revision",
    "select_revision",
]

_VIEWERS: dict[WorkloadKind, type[HistoryViewer]] = {
    WorkloadKind.DEPLOYMENT: DeploymentHistoryViewer,
    WorkloadKind.DAEMON_SET: DaemonSetHistoryViewer,
    WorkloadKind.STATEFUL_SET: StatefulSetHistoryViewer,
}


def history_viewer_for(
    kind: str | WorkloadKind,
    backend: ClusterBackend,
    change_cause_annotation: str = CHANGE_CAUSE_ANNOTATION,
) -> HistoryViewer:
    """Return the HistoryViewer for *kind*.

    Raises:
        UnsupportedKindError: *kind* is not one of the three rollout kinds.
    """
    resolved = parse_kind(kind)
    if resolved is None:
        raise UnsupportedKindError("history viewer", str(kind))
    return _VIEWERS[resolved](backend, change_cause_annotation)
