"""Tests for RevisionHistoryResolver."""

from __future__ import annotations

import pytest

from kuberollback.errors import NotFound, SelectorError
from kuberollback.history.resolver import RevisionHistoryResolver
from kuberollback.models.workload import WorkloadKind
from tests.factories import (
    NAME,
    NAMESPACE,
    FakeBackend,
    make_replica_set,
    make_snapshot,
    make_template,
    make_workload,
)


async def test_filters_to_owned_snapshots(backend: FakeBackend) -> None:
    backend.add(make_workload())
    backend.snapshots = [
        make_snapshot(1, make_template("a")),
        make_snapshot(2, make_template("b")),
        # Same labels, different owner.
        make_snapshot(3, make_template("c"), owner_uid="someone-else"),
    ]

    workload, history = await RevisionHistoryResolver(backend).resolve(WorkloadKind.DAEMON_SET, NAMESPACE, NAME)

    assert workload.name == NAME
    assert sorted(s.revision for s in history) == [1, 2]
    assert ("list_revision_snapshots", (NAMESPACE, "app=web")) in backend.calls


async def test_missing_workload(backend: FakeBackend) -> None:
    with pytest.raises(NotFound):
        await RevisionHistoryResolver(backend).resolve(WorkloadKind.STATEFUL_SET, NAMESPACE, "ghost")
    assert not any(call[0] == "list_revision_snapshots" for call in backend.calls)


async def test_malformed_selector(backend: FakeBackend) -> None:
    backend.add(make_workload(selector={"matchExpressions": [{"key": "app", "operator": "Like"}]}))
    with pytest.raises(SelectorError):
        await RevisionHistoryResolver(backend).resolve(WorkloadKind.DAEMON_SET, NAMESPACE, NAME)


async def test_replica_sets_filtered_by_owner(backend: FakeBackend) -> None:
    deployment = backend.add(make_workload(kind=WorkloadKind.DEPLOYMENT))
    backend.replica_sets = [
        make_replica_set(1, make_template("a")),
        make_replica_set(2, make_template("b"), owner_uid="other"),
    ]

    children = await RevisionHistoryResolver(backend).resolve_replica_sets(deployment)

    assert [rs.revision for rs in children] == [1]
