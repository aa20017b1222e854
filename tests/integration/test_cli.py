"""Click CLI wired to an in-memory backend."""

from __future__ import annotations

import pytest
from click.testing import CliRunner

import kuberollback.cli.main as cli_main
from kuberollback.cli import cli
from kuberollback.models.config import ClusterConfig
from kuberollback.models.workload import WorkloadKind
from kuberollback.rollback.watcher import ROLLBACK_DONE
from tests.factories import FakeBackend, event, make_replica_set, make_snapshot, make_template, make_workload


@pytest.fixture(autouse=True)
def _quiet_logging(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(cli_main, "setup_logging", lambda *args, **kwargs: None)
    monkeypatch.delenv("KUBEROLLBACK_LOG_LEVEL", raising=False)
    monkeypatch.delenv("KUBEROLLBACK_LOG_FORMAT", raising=False)
    monkeypatch.delenv("KUBEROLLBACK_CHANGE_CAUSE_ANNOTATION", raising=False)


@pytest.fixture
def connected(backend: FakeBackend):
    seen: list[ClusterConfig] = []

    async def connect(config: ClusterConfig) -> FakeBackend:
        seen.append(config)
        return backend

    return connect, seen


def _invoke(connect, *args: str):
    return CliRunner().invoke(cli, list(args), obj={"connect": connect})


def _daemon_set_history(backend: FakeBackend) -> None:
    backend.add(make_workload(template=make_template("nginx:3")))
    backend.snapshots = [
        make_snapshot(1, make_template("nginx:1"), change_cause="initial"),
        make_snapshot(2, make_template("nginx:2")),
        make_snapshot(3, make_template("nginx:3")),
    ]


def test_history_table(backend: FakeBackend, connected) -> None:
    connect, seen = connected
    _daemon_set_history(backend)

    result = _invoke(connect, "--context", "staging", "history", "daemonset/web")

    assert result.exit_code == 0, result.output
    assert result.output == "REVISION  CHANGE-CAUSE\n1         initial\n2         <none>\n3         <none>\n"
    assert seen[0].context == "staging"
    assert backend.closed


def test_history_kind_and_name_as_two_arguments(backend: FakeBackend, connected) -> None:
    connect, _ = connected
    backend.add(make_workload(kind=WorkloadKind.STATEFUL_SET))
    backend.snapshots = [make_snapshot(1, make_template(), kind=WorkloadKind.STATEFUL_SET)]

    result = _invoke(connect, "history", "sts", "web", "-n", "default")

    assert result.exit_code == 0, result.output
    assert result.output == "REVISION\n1\n"


def test_undo_dry_run(backend: FakeBackend, connected) -> None:
    connect, _ = connected
    _daemon_set_history(backend)

    result = _invoke(connect, "undo", "ds/web", "--dry-run")

    assert result.exit_code == 0, result.output
    assert result.output.startswith("will roll back to Pod Template:\n")
    assert "nginx:2" in result.output
    assert backend.mutating_calls == []


def test_undo_patches_daemon_set(backend: FakeBackend, connected) -> None:
    connect, _ = connected
    _daemon_set_history(backend)

    result = _invoke(connect, "undo", "ds/web", "--to-revision", "1")

    assert result.exit_code == 0, result.output
    assert result.output == "daemonset/web rolled back\n"
    assert len(backend.mutating_calls) == 1


def test_undo_deployment_records_change_cause(backend: FakeBackend, connected) -> None:
    connect, _ = connected
    backend.add(make_workload(kind=WorkloadKind.DEPLOYMENT))
    backend.replica_sets = [make_replica_set(1, make_template("a")), make_replica_set(2, make_template("b"))]
    backend.events = [event(ROLLBACK_DONE)]

    result = _invoke(connect, "undo", "deployment/web", "--change-cause", "revert bad image")

    assert result.exit_code == 0, result.output
    assert result.output == "deployment/web rolled back\n"
    assert backend.mutating_calls == [
        ("native_rollback", ("default", "web", 0, {"kubernetes.io/change-cause": "revert bad image"})),
    ]


def test_undo_error_exits_nonzero(backend: FakeBackend, connected) -> None:
    connect, _ = connected
    backend.add(make_workload())
    backend.snapshots = [make_snapshot(1, make_template())]

    result = _invoke(connect, "undo", "ds/web")

    assert result.exit_code == 1
    assert "error: no last revision to roll back to" in result.output
    assert backend.mutating_calls == []
    assert backend.closed


def test_missing_workload_exits_nonzero(connected) -> None:
    connect, _ = connected

    result = _invoke(connect, "history", "deploy/ghost")

    assert result.exit_code == 1
    assert "not found" in result.output


@pytest.mark.parametrize("args", [["history", "cronjob/web"], ["history", "web"], ["undo", "replicaset", "web"]])
def test_bad_resource_is_usage_error(connected, args: list[str]) -> None:
    connect, _ = connected

    result = _invoke(connect, *args)

    assert result.exit_code == 2


def test_negative_revision_rejected_by_option(connected) -> None:
    connect, _ = connected

    result = _invoke(connect, "undo", "ds/web", "--to-revision", "-1")

    assert result.exit_code == 2
