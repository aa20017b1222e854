"""Materialise a historical workload from a ControllerRevision patch."""

from __future__ import annotations

import copy
import json

from kuberollback.errors import PatchApplyError
from kuberollback.models.workload import RevisionSnapshot, Workload
from kuberollback.patch.strategic import strategic_merge_patch


def reconstruct(base: Workload, snapshot: RevisionSnapshot) -> Workload:
    """Return *base* as it looked at *snapshot*'s revision.

    Works on a private deep copy: neither *base* nor *snapshot* is touched,
    so reconstructing the same snapshot twice yields equal results.

    Raises:
        PatchApplyError: the snapshot patch is malformed or does not fit
            the workload's shape.
    """
    clone = copy.deepcopy(base.raw)
    try:
        clone_bytes = json.dumps(clone).encode("utf-8")
    except (TypeError, ValueError) as exc:
        raise PatchApplyError(f"unable to serialise {base.ref()}: {exc}") from exc
    try:
        patched = strategic_merge_patch(clone_bytes, snapshot.data)
    except PatchApplyError as exc:
        raise PatchApplyError(f"unable to apply revision {snapshot.revision} ({snapshot.name}): {exc}") from exc
    return Workload.from_dict(base.kind, json.loads(patched))
