"""Workload and revision data structures."""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

REVISION_ANNOTATION = "deployment.kubernetes.io/revision"
CHANGE_CAUSE_ANNOTATION = "kubernetes.io/change-cause"


class WorkloadKind(StrEnum):
    """Controller kinds that support rolling updates."""

    DEPLOYMENT = "Deployment"
    DAEMON_SET = "DaemonSet"
    STATEFUL_SET = "StatefulSet"


# Lowercase aliases accepted on the command line and by the factories.
KIND_ALIASES: dict[str, WorkloadKind] = {
    "deployment": WorkloadKind.DEPLOYMENT,
    "deployments": WorkloadKind.DEPLOYMENT,
    "deploy": WorkloadKind.DEPLOYMENT,
    "daemonset": WorkloadKind.DAEMON_SET,
    "daemonsets": WorkloadKind.DAEMON_SET,
    "ds": WorkloadKind.DAEMON_SET,
    "statefulset": WorkloadKind.STATEFUL_SET,
    "statefulsets": WorkloadKind.STATEFUL_SET,
    "sts": WorkloadKind.STATEFUL_SET,
}

# API groups that serve each kind. Anything else is a different kind.
_KIND_GROUPS: dict[WorkloadKind, frozenset[str]] = {
    WorkloadKind.DEPLOYMENT: frozenset({"", "apps", "extensions"}),
    WorkloadKind.DAEMON_SET: frozenset({"", "apps", "extensions"}),
    WorkloadKind.STATEFUL_SET: frozenset({"", "apps"}),
}


def parse_kind(value: str | WorkloadKind) -> WorkloadKind | None:
    """Resolve ``deploy``, ``Deployment.apps`` or ``extensions/DaemonSet`` to a kind.

    Returns None when the value does not name a supported kind.
    """
    if isinstance(value, WorkloadKind):
        return value
    text = value.strip()
    group = ""
    if "/" in text:
        group, _, text = text.rpartition("/")
        # apps/v1/Deployment -> group "apps"
        group = group.split("/", 1)[0]
    elif "." in text:
        text, _, group = text.partition(".")
    kind = KIND_ALIASES.get(text.lower())
    if kind is None:
        return None
    if group.lower() not in _KIND_GROUPS[kind]:
        return None
    return kind


@dataclass(frozen=True)
class OwnerReference:
    """Back-reference from a dependent object to its owner."""

    kind: str
    name: str
    uid: str
    api_version: str = ""
    controller: bool = False

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> OwnerReference:
        return cls(
            kind=str(raw.get("kind", "")),
            name=str(raw.get("name", "")),
            uid=str(raw.get("uid", "")),
            api_version=str(raw.get("apiVersion", "")),
            controller=bool(raw.get("controller", False)),
        )


def is_controlled_by(owner_references: tuple[OwnerReference, ...], uid: str) -> bool:
    """True when the controller owner reference points at *uid*."""
    for ref in owner_references:
        if ref.controller:
            return ref.uid == uid
    return False


@dataclass(frozen=True)
class Workload:
    """A live workload object.

    ``raw`` holds the full object in its serialised (camelCase) form and is
    the source of truth; the other fields are read views over it.
    """

    kind: WorkloadKind
    namespace: str
    name: str
    uid: str
    raw: dict[str, Any] = field(default_factory=dict, compare=False, repr=False)

    @classmethod
    def from_dict(cls, kind: WorkloadKind, raw: dict[str, Any]) -> Workload:
        metadata = raw.get("metadata") or {}
        return cls(
            kind=kind,
            namespace=str(metadata.get("namespace", "")),
            name=str(metadata.get("name", "")),
            uid=str(metadata.get("uid", "")),
            raw=raw,
        )

    @property
    def labels(self) -> dict[str, str]:
        return dict((self.raw.get("metadata") or {}).get("labels") or {})

    @property
    def annotations(self) -> dict[str, str]:
        return dict((self.raw.get("metadata") or {}).get("annotations") or {})

    @property
    def selector(self) -> dict[str, Any] | None:
        return (self.raw.get("spec") or {}).get("selector")

    @property
    def template(self) -> dict[str, Any]:
        return copy.deepcopy((self.raw.get("spec") or {}).get("template") or {})

    @property
    def paused(self) -> bool:
        return bool((self.raw.get("spec") or {}).get("paused", False))

    def ref(self) -> str:
        return f"{self.kind.lower()}/{self.name}"


@dataclass(frozen=True)
class RevisionSnapshot:
    """An immutable, numbered record of one historical workload template.

    ``data`` is a strategic merge patch recorded by the cluster when the
    owning workload was updated. The core reads it, never writes it.
    """

    name: str
    namespace: str
    revision: int
    data: bytes
    owner_references: tuple[OwnerReference, ...] = ()
    labels: dict[str, str] = field(default_factory=dict, compare=False)
    annotations: dict[str, str] = field(default_factory=dict, compare=False)

    @property
    def change_cause(self) -> str:
        return self.annotations.get(CHANGE_CAUSE_ANNOTATION, "")


@dataclass(frozen=True)
class ReplicaSetRevision:
    """A Deployment child carrying its own revision number and pod template."""

    name: str
    namespace: str
    revision: int
    template: dict[str, Any] = field(default_factory=dict, compare=False)
    annotations: dict[str, str] = field(default_factory=dict, compare=False)
    owner_references: tuple[OwnerReference, ...] = ()

    @property
    def change_cause(self) -> str:
        return self.annotations.get(CHANGE_CAUSE_ANNOTATION, "")


@dataclass(frozen=True)
class RolloutEvent:
    """A namespace event observed while waiting for a native rollback."""

    reason: str
    message: str = ""
    involved_kind: str = ""
    involved_name: str = ""
