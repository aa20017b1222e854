"""Strategic merge patch over plain JSON documents.

Field-level merge as the API server applies it to apps/v1 workloads:

* maps merge recursively and a ``null`` value deletes the key;
* scalars overwrite;
* lists of maps merge element-wise by a merge key when the field declares
  one (``containers`` by ``name``, ``volumeMounts`` by ``mountPath`` ...),
  primitive lists listed in ``PRIMITIVE_MERGE_FIELDS`` are unioned, and
  every other list is replaced wholesale;
* the ``$patch``, ``$retainKeys``, ``$setElementOrder/<field>`` and
  ``$deleteFromPrimitiveList/<field>`` directives are honoured.

Merge keys are looked up by field name. Every field below carries the same
merge key wherever it occurs in a workload object.
"""

from __future__ import annotations

import copy
import json
from typing import Any

from kuberollback.errors import PatchApplyError

MERGE_KEYS: dict[str, str] = {
    "containers": "name",
    "initContainers": "name",
    "ephemeralContainers": "name",
    "env": "name",
    "ports": "containerPort",
    "volumes": "name",
    "volumeMounts": "mountPath",
    "volumeDevices": "devicePath",
    "imagePullSecrets": "name",
    "hostAliases": "ip",
    "topologySpreadConstraints": "topologyKey",
    "resourceClaims": "name",
    "ownerReferences": "uid",
    "conditions": "type",
}

PRIMITIVE_MERGE_FIELDS = frozenset({"finalizers"})

_DIRECTIVE = "$patch"
_RETAIN_KEYS = "$retainKeys"
_SET_ELEMENT_ORDER = "$setElementOrder/"
_DELETE_FROM_PRIMITIVE_LIST = "$deleteFromPrimitiveList/"


class _Deleted:
    """Marker returned when a ``$patch: delete`` removes a whole map."""


_DELETED = _Deleted()


def strategic_merge_patch(original: bytes, patch: bytes) -> bytes:
    """Apply *patch* to *original*; both are JSON-encoded objects.

    Raises:
        PatchApplyError: either document is malformed or the patch does
            not fit the shape of the original.
    """
    try:
        original_doc = json.loads(original)
        patch_doc = json.loads(patch)
    except (TypeError, ValueError) as exc:
        raise PatchApplyError(f"malformed patch document: {exc}") from exc
    if not isinstance(original_doc, dict) or not isinstance(patch_doc, dict):
        raise PatchApplyError("strategic merge patch requires two JSON objects")
    merged = merge_objects(original_doc, patch_doc)
    return json.dumps(merged, separators=(",", ":")).encode("utf-8")


def merge_objects(original: dict[str, Any], patch: dict[str, Any]) -> dict[str, Any]:
    """Return a new document with *patch* merged into *original*."""
    merged = _merge_map(original, patch, path="")
    if isinstance(merged, _Deleted):
        return {}
    return merged


def strip_directives(value: Any) -> Any:
    """Deep copy *value* with every ``$``-prefixed key and directive element removed."""
    if isinstance(value, dict):
        return {k: strip_directives(v) for k, v in value.items() if not k.startswith("$")}
    if isinstance(value, list):
        return [
            strip_directives(item)
            for item in value
            if not (isinstance(item, dict) and _DIRECTIVE in item and len(item) == 1)
        ]
    return copy.deepcopy(value)


def _field_path(path: str, key: str) -> str:
    return f"{path}.{key}" if path else key


def _merge_map(original: dict[str, Any], patch: dict[str, Any], path: str) -> dict[str, Any] | _Deleted:
    patch = dict(patch)
    directive = patch.pop(_DIRECTIVE, None)
    if directive == "replace":
        return strip_directives(patch)
    if directive == "delete":
        return _DELETED
    if directive is not None:
        raise PatchApplyError(f"unknown patch directive {directive!r} at {path or '<root>'}")

    result = copy.deepcopy(original)

    retain = patch.pop(_RETAIN_KEYS, None)
    if retain is not None:
        if not isinstance(retain, list) or not all(isinstance(k, str) for k in retain):
            raise PatchApplyError(f"$retainKeys at {path or '<root>'} must be a list of strings")
        result = {k: v for k, v in result.items() if k in retain}

    set_orders: dict[str, list[Any]] = {}
    removals: dict[str, list[Any]] = {}
    for key in [k for k in patch if k.startswith("$")]:
        value = patch.pop(key)
        if key.startswith(_SET_ELEMENT_ORDER):
            set_orders[key[len(_SET_ELEMENT_ORDER):]] = value
        elif key.startswith(_DELETE_FROM_PRIMITIVE_LIST):
            removals[key[len(_DELETE_FROM_PRIMITIVE_LIST):]] = value
        else:
            raise PatchApplyError(f"unknown patch directive {key!r} at {path or '<root>'}")

    for key, patch_value in patch.items():
        field = _field_path(path, key)
        if patch_value is None:
            result.pop(key, None)
            continue

        current = result.get(key)
        if isinstance(patch_value, dict):
            if current is None:
                current = {}
            elif not isinstance(current, dict):
                raise PatchApplyError(f"cannot merge a map into {type(current).__name__} at {field}")
            merged = _merge_map(current, patch_value, field)
            if isinstance(merged, _Deleted):
                result.pop(key, None)
            else:
                result[key] = merged
        elif isinstance(patch_value, list):
            if current is None:
                current = []
            elif not isinstance(current, list):
                raise PatchApplyError(f"cannot merge a list into {type(current).__name__} at {field}")
            result[key] = _merge_list(key, current, patch_value, field)
        else:
            if isinstance(current, (dict, list)):
                raise PatchApplyError(f"cannot replace {type(current).__name__} with a scalar at {field}")
            result[key] = patch_value

    for key, values in removals.items():
        current = result.get(key)
        if isinstance(current, list):
            result[key] = [item for item in current if item not in values]

    for key, order in set_orders.items():
        current = result.get(key)
        if isinstance(current, list):
            result[key] = _apply_element_order(key, current, order, _field_path(path, key))

    return result


def _merge_list(key: str, original: list[Any], patch: list[Any], path: str) -> list[Any]:
    if any(isinstance(item, dict) and item.get(_DIRECTIVE) == "replace" for item in patch):
        return strip_directives(patch)

    merge_key = MERGE_KEYS.get(key)
    if merge_key is None:
        if key in PRIMITIVE_MERGE_FIELDS:
            merged = copy.deepcopy(original)
            merged.extend(item for item in patch if item not in original)
            return merged
        return strip_directives(patch)

    if not all(isinstance(item, dict) for item in original + patch):
        raise PatchApplyError(f"list at {path} merges by {merge_key!r} and must only hold maps")

    result = copy.deepcopy(original)
    for element in patch:
        if merge_key not in element:
            raise PatchApplyError(f"element of {path} is missing merge key {merge_key!r}")
        wanted = element[merge_key]
        index = next((i for i, item in enumerate(result) if item.get(merge_key) == wanted), None)
        element_path = f"{path}[{merge_key}={wanted}]"
        if element.get(_DIRECTIVE) == "delete":
            if index is not None:
                del result[index]
            continue
        base = result[index] if index is not None else {}
        merged = _merge_map(base, element, element_path)
        if isinstance(merged, _Deleted):
            if index is not None:
                del result[index]
        elif index is not None:
            result[index] = merged
        else:
            result.append(merged)
    return result


def _apply_element_order(key: str, items: list[Any], order: Any, path: str) -> list[Any]:
    if not isinstance(order, list):
        raise PatchApplyError(f"$setElementOrder for {path} must be a list")
    merge_key = MERGE_KEYS.get(key)

    def ident(value: Any) -> Any:
        if merge_key is not None and isinstance(value, dict):
            return value.get(merge_key)
        return value

    try:
        positions = {ident(entry): index for index, entry in enumerate(order)}
        return sorted(items, key=lambda item: positions.get(ident(item), len(positions)))
    except TypeError as exc:
        raise PatchApplyError(f"$setElementOrder for {path} has unorderable entries: {exc}") from exc
