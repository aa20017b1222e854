"""Rollback capability, one implementation per workload kind.

Exports:
    Rollbacker             -- Abstract base for every kind.
    DeploymentRollbacker   -- Server-assisted rollback + completion watch.
    DaemonSetRollbacker    -- ControllerRevision patch rollback.
    StatefulSetRollbacker  -- ControllerRevision patch rollback.
    rollbacker_for         -- Factory keyed on workload kind.
"""

from __future__ import annotations

from kuberollback.backend.base import ClusterBackend
from kuberollback.errors import UnsupportedKindError
from kuberollback.models.workload import WorkloadKind, parse_kind
from kuberollback.rollback.base import Rollbacker
from kuberollback.rollback.deployment import DeploymentRollbacker
from kuberollback.rollback.revision import DaemonSetRollbacker, StatefulSetRollbacker
from kuberollback.rollback.watcher import watch_rollback_event

__all__ = [
    "DaemonSetRollbacker",
    "DeploymentRollbacker",
    "Rollbacker",
    "StatefulSetRollbacker",
    "rollbacker_for",
    "watch_rollback_event",
]

_ROLLBACKERS: dict[WorkloadKind, type[Rollbacker]] = {
    WorkloadKind.DEPLOYMENT: DeploymentRollbacker,
    WorkloadKind.DAEMON_SET: DaemonSetRollbacker,
    WorkloadKind.STATEFUL_SET: StatefulSetRollbacker,
}


def rollbacker_for(kind: str | WorkloadKind, backend: ClusterBackend) -> Rollbacker:
    """Return the Rollbacker for *kind*.

    Raises:
        UnsupportedKindError: *kind* is not one of the three rollout kinds.
    """
    resolved = parse_kind(kind)
    if resolved is None:
        raise UnsupportedKindError("rollbacker", str(kind))
    return _ROLLBACKERS[resolved](backend)
