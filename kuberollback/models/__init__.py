"""Core data structures for kuberollback."""

from kuberollback.models.config import KubeRollbackConfig
from kuberollback.models.results import RollbackResult, RollbackStatus
from kuberollback.models.workload import (
    CHANGE_CAUSE_ANNOTATION,
    KIND_ALIASES,
    REVISION_ANNOTATION,
    OwnerReference,
    ReplicaSetRevision,
    RevisionSnapshot,
    RolloutEvent,
    Workload,
    WorkloadKind,
    is_controlled_by,
    parse_kind,
)

__all__ = [
    "CHANGE_CAUSE_ANNOTATION",
    "KIND_ALIASES",
    "KubeRollbackConfig",
    "OwnerReference",
    "REVISION_ANNOTATION",
    "ReplicaSetRevision",
    "RevisionSnapshot",
    "RollbackResult",
    "RollbackStatus",
    "RolloutEvent",
    "Workload",
    "WorkloadKind",
    "is_controlled_by",
    "parse_kind",
]
