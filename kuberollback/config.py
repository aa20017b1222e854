"""Configuration loading from environment variables."""

from __future__ import annotations

import os

from kuberollback.models.config import (
    DEFAULT_WATCH_TIMEOUT_SECONDS,
    ClusterConfig,
    HistoryConfig,
    KubeRollbackConfig,
    LogConfig,
)
from kuberollback.models.workload import CHANGE_CAUSE_ANNOTATION


def _env(key: str, default: str = "") -> str:
    return os.environ.get(f"KUBEROLLBACK_{key}", default)


def _env_bool(key: str, default: bool = False) -> bool:
    val = _env(key, str(default).lower())
    return val.lower() in ("true", "1", "yes")


def _env_int(key: str, default: int, min_val: int | None = None) -> int:
    raw = _env(key, str(default))
    try:
        val = int(raw)
    except ValueError as exc:
        raise ValueError(f"Invalid integer for KUBEROLLBACK_{key}: {raw!r}") from exc
    if min_val is not None:
        val = max(val, min_val)
    return val


def _validate_log_level(value: str) -> str:
    valid = {"debug", "info", "warning", "error"}
    if value.lower() not in valid:
        raise ValueError(f"Invalid log level: {value}. Must be one of {valid}")
    return value.lower()


def _validate_log_format(value: str) -> str:
    valid = {"auto", "json", "console"}
    if value.lower() not in valid:
        raise ValueError(f"Invalid log format: {value}. Must be one of {valid}")
    return value.lower()


def _validate_annotation_key(value: str) -> str:
    if not value or value.count("/") > 1 or value.startswith("/") or value.endswith("/"):
        raise ValueError(f"Invalid annotation key: {value!r}")
    return value


def load_config() -> KubeRollbackConfig:
    """Load configuration from KUBEROLLBACK_* environment variables."""
    return KubeRollbackConfig(
        cluster=ClusterConfig(
            # Fall back to the conventional kubectl variable.
            kubeconfig=_env("KUBECONFIG", os.environ.get("KUBECONFIG", "")),
            context=_env("CONTEXT", ""),
            in_cluster=_env_bool("IN_CLUSTER", False),
            watch_timeout_seconds=_env_int("WATCH_TIMEOUT", DEFAULT_WATCH_TIMEOUT_SECONDS, min_val=1),
        ),
        history=HistoryConfig(
            change_cause_annotation=_validate_annotation_key(
                _env("CHANGE_CAUSE_ANNOTATION", CHANGE_CAUSE_ANNOTATION)
            ),
        ),
        log=LogConfig(
            level=_validate_log_level(_env("LOG_LEVEL", "warning")),
            format=_validate_log_format(_env("LOG_FORMAT", "auto")),
        ),
    )
