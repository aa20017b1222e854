"""Label selector -> list-query string conversion."""

from __future__ import annotations

import re
from typing import Any

from kuberollback.errors import SelectorError

# Qualified name with optional DNS-subdomain prefix, as accepted for label keys.
_RE_LABEL_KEY = re.compile(
    r"^([a-z0-9]([-a-z0-9]*[a-z0-9])?(\.[a-z0-9]([-a-z0-9]*[a-z0-9])?)*/)?"
    r"[A-Za-z0-9]([-A-Za-z0-9_.]{0,61}[A-Za-z0-9])?$"
)
_RE_LABEL_VALUE = re.compile(r"^([A-Za-z0-9]([-A-Za-z0-9_.]{0,61}[A-Za-z0-9])?)?$")

_SET_OPERATORS = {"In": "in", "NotIn": "notin"}


def _check_key(key: str) -> str:
    if not isinstance(key, str) or not _RE_LABEL_KEY.match(key):
        raise SelectorError(f"invalid label key {key!r}")
    return key


def _check_value(value: str) -> str:
    if not isinstance(value, str) or not _RE_LABEL_VALUE.match(value):
        raise SelectorError(f"invalid label value {value!r}")
    return value


def selector_to_string(selector: dict[str, Any] | None) -> str:
    """Render a LabelSelector as the ``labelSelector`` query parameter.

    Requirements are sorted by key so the output is stable.

    Raises:
        SelectorError: when *selector* is missing, selects nothing
            meaningful, or contains an invalid key, value or operator.
    """
    if selector is None:
        raise SelectorError("workload has no label selector")
    if not isinstance(selector, dict):
        raise SelectorError(f"label selector must be a mapping, got {type(selector).__name__}")

    requirements: list[tuple[str, str]] = []
    for key, value in (selector.get("matchLabels") or {}).items():
        requirements.append((_check_key(key), f"{key}={_check_value(value)}"))

    for expr in selector.get("matchExpressions") or []:
        key = _check_key(expr.get("key", ""))
        operator = expr.get("operator", "")
        values = expr.get("values") or []
        if operator in _SET_OPERATORS:
            if not values:
                raise SelectorError(f"{operator} requirement on {key!r} needs at least one value")
            rendered = ",".join(sorted(_check_value(v) for v in values))
            requirements.append((key, f"{key} {_SET_OPERATORS[operator]} ({rendered})"))
        elif operator in ("Exists", "DoesNotExist"):
            if values:
                raise SelectorError(f"{operator} requirement on {key!r} must not have values")
            requirements.append((key, key if operator == "Exists" else f"!{key}"))
        else:
            raise SelectorError(f"{operator!r} is not a valid label selector operator")

    if not requirements:
        raise SelectorError("workload label selector is empty")

    return ",".join(text for _, text in sorted(requirements))
