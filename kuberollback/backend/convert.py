"""Translate serialised API objects into kuberollback models.

All inputs are plain camelCase dicts as produced by
``ApiClient.sanitize_for_serialization``; nothing here imports the
Kubernetes client so the conversions are usable from tests as-is.
"""

from __future__ import annotations

import json
from typing import Any

from kuberollback.models.workload import (
    REVISION_ANNOTATION,
    OwnerReference,
    ReplicaSetRevision,
    RevisionSnapshot,
    RolloutEvent,
)


def encode_patch(data: Any) -> bytes:
    """Encode revision data the way the API server serialises it."""
    return json.dumps(data if data is not None else {}, separators=(",", ":")).encode("utf-8")


def _owner_refs(metadata: dict[str, Any]) -> tuple[OwnerReference, ...]:
    return tuple(OwnerReference.from_dict(ref) for ref in metadata.get("ownerReferences") or [])


def snapshot_from_dict(raw: dict[str, Any]) -> RevisionSnapshot:
    """Build a RevisionSnapshot from a serialised ControllerRevision."""
    metadata = raw.get("metadata") or {}
    return RevisionSnapshot(
        name=str(metadata.get("name", "")),
        namespace=str(metadata.get("namespace", "")),
        revision=int(raw.get("revision", 0)),
        data=encode_patch(raw.get("data")),
        owner_references=_owner_refs(metadata),
        labels=dict(metadata.get("labels") or {}),
        annotations=dict(metadata.get("annotations") or {}),
    )


def parse_revision(annotations: dict[str, str]) -> int | None:
    value = annotations.get(REVISION_ANNOTATION)
    if value is None:
        return None
    try:
        return int(value)
    except ValueError:
        return None


def replica_set_from_dict(raw: dict[str, Any]) -> ReplicaSetRevision | None:
    """Build a ReplicaSetRevision, or None when the revision is unparseable."""
    metadata = raw.get("metadata") or {}
    annotations = dict(metadata.get("annotations") or {})
    revision = parse_revision(annotations)
    if revision is None:
        return None
    return ReplicaSetRevision(
        name=str(metadata.get("name", "")),
        namespace=str(metadata.get("namespace", "")),
        revision=revision,
        template=(raw.get("spec") or {}).get("template") or {},
        annotations=annotations,
        owner_references=_owner_refs(metadata),
    )


def event_from_dict(raw: dict[str, Any]) -> RolloutEvent | None:
    """Build a RolloutEvent, or None when *raw* is not an Event."""
    involved = raw.get("involvedObject")
    if not isinstance(involved, dict):
        return None
    return RolloutEvent(
        reason=str(raw.get("reason") or ""),
        message=str(raw.get("message") or ""),
        involved_kind=str(involved.get("kind", "")),
        involved_name=str(involved.get("name", "")),
    )
