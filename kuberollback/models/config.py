"""Configuration data structures."""

from __future__ import annotations

from dataclasses import dataclass, field

from kuberollback.models.workload import CHANGE_CAUSE_ANNOTATION

DEFAULT_WATCH_TIMEOUT_SECONDS = 300


@dataclass
class ClusterConfig:
    """How to reach the Kubernetes API."""

    kubeconfig: str = ""
    context: str = ""
    in_cluster: bool = False
    watch_timeout_seconds: int = DEFAULT_WATCH_TIMEOUT_SECONDS


@dataclass
class HistoryConfig:
    """Revision history rendering configuration."""

    change_cause_annotation: str = CHANGE_CAUSE_ANNOTATION


@dataclass
class LogConfig:
    """Logging configuration."""

    level: str = "warning"
    format: str = "auto"


@dataclass
class KubeRollbackConfig:
    """Top-level kuberollback configuration."""

    cluster: ClusterConfig = field(default_factory=ClusterConfig)
    history: HistoryConfig = field(default_factory=HistoryConfig)
    log: LogConfig = field(default_factory=LogConfig)
