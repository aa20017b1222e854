"""Deployment rollback: server-assisted submit, event watch and ReplicaSet dry runs."""

from __future__ import annotations

import asyncio

import pytest

from kuberollback.errors import NoRolloutHistory, PausedWorkload, RevisionNotFound
from kuberollback.models.results import RollbackStatus
from kuberollback.models.workload import CHANGE_CAUSE_ANNOTATION, WorkloadKind
from kuberollback.rollback import DeploymentRollbacker, rollbacker_for
from kuberollback.rollback.deployment import revisions_by_number
from kuberollback.rollback.watcher import ROLLBACK_DONE, ROLLBACK_REVISION_NOT_FOUND, ROLLBACK_TEMPLATE_UNCHANGED
from tests.factories import NAME, NAMESPACE, FakeBackend, event, make_replica_set, make_template, make_workload


@pytest.fixture
def deployment(backend: FakeBackend):
    backend.replica_sets = [
        make_replica_set(1, make_template("nginx:1.0")),
        make_replica_set(2, make_template("nginx:2.0")),
        make_replica_set(3, make_template("nginx:3.0")),
    ]
    return backend.add(make_workload(kind=WorkloadKind.DEPLOYMENT, template=make_template("nginx:3.0")))


class TestSubmit:
    async def test_submits_and_waits_for_done(self, backend: FakeBackend, deployment) -> None:
        backend.events = [event("ScalingReplicaSet"), event(ROLLBACK_DONE, "Rolled back")]
        annotations = {CHANGE_CAUSE_ANNOTATION: "rollback after bad release"}

        result = await DeploymentRollbacker(backend).rollback(deployment, annotations, 2)

        assert result.status == RollbackStatus.SUCCEEDED
        assert result.message == "rolled back"
        names = [call[0] for call in backend.calls]
        assert names == ["event_watermark", "native_rollback", "watch_events"]
        assert backend.calls[1] == ("native_rollback", (NAMESPACE, NAME, 2, annotations))
        # The watch resumes from the watermark taken before the submit.
        assert backend.calls[2] == ("watch_events", (NAMESPACE, "4242"))
        assert backend.streams[0].stopped

    async def test_template_unchanged_is_skipped(self, backend: FakeBackend, deployment) -> None:
        backend.events = [event(ROLLBACK_TEMPLATE_UNCHANGED, "The rollback revision contains the same template")]

        result = await DeploymentRollbacker(backend).rollback(deployment, {}, 0)

        assert result.status == RollbackStatus.SKIPPED
        assert "The rollback revision contains the same template" in result.message

    async def test_revision_not_found_event_is_skipped(self, backend: FakeBackend, deployment) -> None:
        backend.events = [event(ROLLBACK_REVISION_NOT_FOUND, "Unable to find the revision to rollback to")]

        result = await DeploymentRollbacker(backend).rollback(deployment, {}, 9)

        assert result.status == RollbackStatus.SKIPPED
        assert result.message.startswith("skipped rollback (DeploymentRollbackRevisionNotFound: ")

    async def test_stream_closed_without_outcome(self, backend: FakeBackend, deployment) -> None:
        backend.events = [event("ScalingReplicaSet")]

        result = await DeploymentRollbacker(backend).rollback(deployment, {}, 0)

        assert result.status == RollbackStatus.UNKNOWN
        assert result.message == ""

    async def test_cancel_returns_unknown(self, backend: FakeBackend, deployment) -> None:
        backend.hold_open = True
        cancel = asyncio.Event()

        task = asyncio.create_task(DeploymentRollbacker(backend).rollback(deployment, {}, 0, cancel=cancel))
        await asyncio.sleep(0.01)
        assert not task.done()
        cancel.set()
        result = await asyncio.wait_for(task, timeout=1.0)

        assert result.status == RollbackStatus.UNKNOWN
        assert backend.streams[0].stopped
        # The submit already happened; cancellation only stops waiting.
        assert [c[0] for c in backend.mutating_calls] == ["native_rollback"]

    async def test_paused_deployment_rejected(self, backend: FakeBackend) -> None:
        paused = backend.add(make_workload(kind=WorkloadKind.DEPLOYMENT, paused=True))

        with pytest.raises(PausedWorkload) as exc_info:
            await DeploymentRollbacker(backend).rollback(paused, {}, 0)

        assert "kubectl rollout resume deployment/web" in str(exc_info.value)
        assert backend.calls == []

    async def test_paused_rejected_on_dry_run_too(self, backend: FakeBackend) -> None:
        paused = backend.add(make_workload(kind=WorkloadKind.DEPLOYMENT, paused=True))

        with pytest.raises(PausedWorkload):
            await DeploymentRollbacker(backend).rollback(paused, {}, 0, dry_run=True)
        assert backend.calls == []


class TestDryRun:
    async def test_explicit_revision(self, backend: FakeBackend, deployment) -> None:
        result = await DeploymentRollbacker(backend).rollback(deployment, {}, 1, dry_run=True)

        assert result.status == RollbackStatus.PREVIEWED
        assert result.message.startswith("Pod Template:\n")
        assert "nginx:1.0" in result.message
        assert backend.mutating_calls == []

    async def test_previous_revision_has_leading_newline(self, backend: FakeBackend, deployment) -> None:
        result = await DeploymentRollbacker(backend).rollback(deployment, {}, 0, dry_run=True)

        assert result.message.startswith("\nPod Template:\n")
        assert "nginx:2.0" in result.message
        assert backend.mutating_calls == []

    async def test_missing_revision(self, backend: FakeBackend, deployment) -> None:
        with pytest.raises(RevisionNotFound):
            await DeploymentRollbacker(backend).rollback(deployment, {}, 7, dry_run=True)
        assert backend.mutating_calls == []

    async def test_single_replica_set_has_no_history(self, backend: FakeBackend) -> None:
        backend.replica_sets = [make_replica_set(1, make_template())]
        deployment = backend.add(make_workload(kind=WorkloadKind.DEPLOYMENT))

        with pytest.raises(NoRolloutHistory):
            await DeploymentRollbacker(backend).rollback(deployment, {}, 1, dry_run=True)

    async def test_other_deployments_replica_sets_ignored(self, backend: FakeBackend) -> None:
        backend.replica_sets = [
            make_replica_set(1, make_template("nginx:1.0")),
            make_replica_set(2, make_template("nginx:2.0"), owner_uid="someone-else"),
        ]
        deployment = backend.add(make_workload(kind=WorkloadKind.DEPLOYMENT))

        with pytest.raises(NoRolloutHistory):
            await DeploymentRollbacker(backend).rollback(deployment, {}, 0, dry_run=True)


def test_later_replica_set_wins_on_repeated_revision() -> None:
    first = make_replica_set(4, make_template("nginx:old"))
    second = make_replica_set(4, make_template("nginx:new"))

    indexed = revisions_by_number([first, second])

    assert list(indexed) == [4]
    assert indexed[4] is second


def test_factory_returns_deployment_rollbacker(backend: FakeBackend) -> None:
    assert isinstance(rollbacker_for("deploy", backend), DeploymentRollbacker)
    assert isinstance(rollbacker_for("Deployment.apps", backend), DeploymentRollbacker)
