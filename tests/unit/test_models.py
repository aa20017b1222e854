"""Tests for workload models, kind parsing and API object conversion."""

from __future__ import annotations

import json

import pytest

from kuberollback.backend.convert import (
    encode_patch,
    event_from_dict,
    parse_revision,
    replica_set_from_dict,
    snapshot_from_dict,
)
from kuberollback.models.results import RollbackResult, RollbackStatus
from kuberollback.models.workload import OwnerReference, WorkloadKind, is_controlled_by, parse_kind
from tests.factories import make_template, make_workload


class TestParseKind:
    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            ("deployment", WorkloadKind.DEPLOYMENT),
            ("deploy", WorkloadKind.DEPLOYMENT),
            ("Deployment", WorkloadKind.DEPLOYMENT),
            ("Deployment.apps", WorkloadKind.DEPLOYMENT),
            ("deployments.extensions", WorkloadKind.DEPLOYMENT),
            ("ds", WorkloadKind.DAEMON_SET),
            ("extensions/DaemonSet", WorkloadKind.DAEMON_SET),
            ("apps/v1/DaemonSet", WorkloadKind.DAEMON_SET),
            ("sts", WorkloadKind.STATEFUL_SET),
            ("StatefulSet.apps", WorkloadKind.STATEFUL_SET),
        ],
    )
    def test_known_kinds(self, value: str, expected: WorkloadKind) -> None:
        assert parse_kind(value) == expected

    @pytest.mark.parametrize("value", ["pod", "ReplicaSet", "StatefulSet.extensions", "batch/Deployment", ""])
    def test_unknown_kinds(self, value: str) -> None:
        assert parse_kind(value) is None

    def test_enum_passthrough(self) -> None:
        assert parse_kind(WorkloadKind.STATEFUL_SET) is WorkloadKind.STATEFUL_SET


class TestOwnership:
    def test_controller_reference_matches(self) -> None:
        refs = (OwnerReference(kind="DaemonSet", name="web", uid="u1", controller=True),)
        assert is_controlled_by(refs, "u1")
        assert not is_controlled_by(refs, "u2")

    def test_non_controller_reference_ignored(self) -> None:
        refs = (OwnerReference(kind="DaemonSet", name="web", uid="u1", controller=False),)
        assert not is_controlled_by(refs, "u1")

    def test_no_references(self) -> None:
        assert not is_controlled_by((), "u1")


class TestWorkloadViews:
    def test_template_is_a_copy(self) -> None:
        workload = make_workload(template=make_template("nginx:1"))
        template = workload.template
        template["spec"]["containers"][0]["image"] = "changed"
        assert workload.template == make_template("nginx:1")

    def test_paused_and_ref(self) -> None:
        workload = make_workload(kind=WorkloadKind.DEPLOYMENT, paused=True)
        assert workload.paused is True
        assert workload.ref() == "deployment/web"
        assert workload.selector == {"matchLabels": {"app": "web"}}


class TestConvert:
    def test_snapshot_from_dict(self) -> None:
        raw = {
            "metadata": {
                "name": "web-abc",
                "namespace": "default",
                "labels": {"app": "web"},
                "ownerReferences": [
                    {"apiVersion": "apps/v1", "kind": "DaemonSet", "name": "web", "uid": "u1", "controller": True}
                ],
            },
            "revision": 4,
            "data": {"spec": {"template": {"$patch": "replace"}}},
        }
        snapshot = snapshot_from_dict(raw)
        assert snapshot.revision == 4
        assert json.loads(snapshot.data) == raw["data"]
        assert snapshot.owner_references[0].uid == "u1"
        assert snapshot.owner_references[0].controller is True

    def test_encode_patch_of_missing_data(self) -> None:
        assert encode_patch(None) == b"{}"

    def test_replica_set_revision_parsed(self) -> None:
        raw = {
            "metadata": {"name": "web-1", "namespace": "default", "annotations": {"deployment.kubernetes.io/revision": "3"}},
            "spec": {"template": make_template()},
        }
        child = replica_set_from_dict(raw)
        assert child is not None
        assert child.revision == 3
        assert child.template == make_template()

    @pytest.mark.parametrize("annotations", [{}, {"deployment.kubernetes.io/revision": "abc"}])
    def test_replica_set_without_revision_skipped(self, annotations: dict[str, str]) -> None:
        raw = {"metadata": {"name": "web-1", "annotations": annotations}, "spec": {}}
        assert replica_set_from_dict(raw) is None
        assert parse_revision(annotations) is None

    def test_event_from_dict(self) -> None:
        raw = {"reason": "DeploymentRollback", "message": "done", "involvedObject": {"kind": "Deployment", "name": "web"}}
        rollout_event = event_from_dict(raw)
        assert rollout_event is not None
        assert rollout_event.reason == "DeploymentRollback"
        assert rollout_event.involved_name == "web"

    def test_non_event_object(self) -> None:
        assert event_from_dict({"kind": "Status", "code": 410}) is None


def test_result_messages() -> None:
    assert RollbackResult.succeeded().message == "rolled back"
    assert RollbackResult.skipped("x").message == "skipped rollback (x)"
    assert RollbackResult.unknown() == RollbackResult(RollbackStatus.UNKNOWN, "")
