"""Prometheus counters for rollback and history operations."""

from __future__ import annotations

from prometheus_client import Counter

rollbacks_total = Counter(
    "kuberollback_rollbacks_total",
    "Rollback invocations by workload kind and outcome",
    ["kind", "outcome"],
)

history_views_total = Counter(
    "kuberollback_history_views_total",
    "History views by workload kind",
    ["kind"],
)

rollback_events_total = Counter(
    "kuberollback_rollback_events_total",
    "Terminal rollback events observed on the event stream",
    ["reason"],
)
