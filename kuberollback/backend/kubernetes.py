"""ClusterBackend implementation on top of kubernetes-asyncio."""

from __future__ import annotations

import asyncio
import json
from collections.abc import AsyncIterator, Awaitable, Callable
from typing import Any

from kubernetes_asyncio import client as k8s_client  # type: ignore[import-untyped]
from kubernetes_asyncio import config as k8s_config  # type: ignore[import-untyped]
from kubernetes_asyncio import watch as k8s_watch  # type: ignore[import-untyped]
from kubernetes_asyncio.client.exceptions import ApiException  # type: ignore[import-untyped]

from kuberollback.backend.base import ClusterBackend, EventStream
from kuberollback.backend.convert import event_from_dict, replica_set_from_dict, snapshot_from_dict
from kuberollback.errors import BackendError, NotFound, PatchApplyError
from kuberollback.models.config import DEFAULT_WATCH_TIMEOUT_SECONDS, ClusterConfig
from kuberollback.models.workload import (
    ReplicaSetRevision,
    RevisionSnapshot,
    RolloutEvent,
    Workload,
    WorkloadKind,
)
from kuberollback.observability.logging import get_logger

_log = get_logger("backend.kubernetes")

_STRATEGIC_MERGE_PATCH = "application/strategic-merge-patch+json"
_ROLLBACK_PATH = "/apis/extensions/v1beta1/namespaces/{namespace}/deployments/{name}/rollback"


def _backend_error(action: str, exc: ApiException) -> BackendError:
    return BackendError(f"{action}: {exc.status} {exc.reason}", status=exc.status)


class _KubernetesEventStream(EventStream):
    """Adapts a kubernetes-asyncio Watch stream to EventStream."""

    def __init__(self, api: k8s_client.ApiClient, watcher: k8s_watch.Watch, stream: AsyncIterator[dict[str, Any]]) -> None:
        self._api = api
        self._watch = watcher
        self._stream = stream
        self._stopped = False

    async def next_event(self) -> RolloutEvent | None:
        if self._stopped:
            return None
        try:
            item = await self._stream.__anext__()
        except StopAsyncIteration:
            # Server-side timeout or closed connection; Watch would reopen on the next call.
            self.stop()
            return None
        except asyncio.TimeoutError:
            # Client-side read timeout; the watch is not reopened.
            _log.debug("event_watch_timed_out")
            self.stop()
            return None
        except ApiException as exc:
            # Watch ERROR events (e.g. 410 Gone) surface here.
            self.stop()
            raise _backend_error("event watch failed", exc) from exc
        obj = item.get("object")
        raw = obj if isinstance(obj, dict) else self._api.sanitize_for_serialization(obj)
        event = event_from_dict(raw) if isinstance(raw, dict) else None
        if event is None:
            self.stop()
        return event

    def stop(self) -> None:
        if not self._stopped:
            self._stopped = True
            self._watch.stop()


class KubernetesBackend(ClusterBackend):
    """Talks to the API server through AppsV1Api and CoreV1Api."""

    def __init__(self, api_client: k8s_client.ApiClient, watch_timeout_seconds: int = DEFAULT_WATCH_TIMEOUT_SECONDS) -> None:
        self._api = api_client
        self._watch_timeout_seconds = watch_timeout_seconds
        self._apps = k8s_client.AppsV1Api(api_client)
        self._core = k8s_client.CoreV1Api(api_client)

    @classmethod
    async def connect(cls, config: ClusterConfig) -> KubernetesBackend:
        """Load in-cluster config or a kubeconfig and return a connected backend."""
        try:
            if config.in_cluster:
                k8s_config.load_incluster_config()
                _log.debug("k8s client configured from in-cluster service account")
            else:
                await k8s_config.load_kube_config(
                    config_file=config.kubeconfig or None,
                    context=config.context or None,
                )
                _log.debug("k8s client configured from kubeconfig", context=config.context or "<current>")
        except k8s_config.ConfigException as exc:
            raise BackendError(f"unable to load cluster configuration: {exc}") from exc
        return cls(k8s_client.ApiClient(), watch_timeout_seconds=config.watch_timeout_seconds)

    async def close(self) -> None:
        await self._api.close()

    def _readers(self) -> dict[WorkloadKind, Callable[..., Awaitable[Any]]]:
        return {
            WorkloadKind.DEPLOYMENT: self._apps.read_namespaced_deployment,
            WorkloadKind.DAEMON_SET: self._apps.read_namespaced_daemon_set,
            WorkloadKind.STATEFUL_SET: self._apps.read_namespaced_stateful_set,
        }

    def _patchers(self) -> dict[WorkloadKind, Callable[..., Awaitable[Any]]]:
        return {
            WorkloadKind.DEPLOYMENT: self._apps.patch_namespaced_deployment,
            WorkloadKind.DAEMON_SET: self._apps.patch_namespaced_daemon_set,
            WorkloadKind.STATEFUL_SET: self._apps.patch_namespaced_stateful_set,
        }

    async def get_workload(self, kind: WorkloadKind, namespace: str, name: str) -> Workload:
        try:
            obj = await self._readers()[kind](name, namespace)
        except ApiException as exc:
            if exc.status == 404:
                raise NotFound(kind, namespace, name) from exc
            raise _backend_error(f"failed to retrieve {kind} {namespace}/{name}", exc) from exc
        raw = self._api.sanitize_for_serialization(obj)
        raw.setdefault("kind", str(kind))
        return Workload.from_dict(kind, raw)

    async def list_revision_snapshots(self, namespace: str, label_selector: str) -> list[RevisionSnapshot]:
        try:
            result = await self._apps.list_namespaced_controller_revision(namespace, label_selector=label_selector)
        except ApiException as exc:
            raise _backend_error(f"failed to list controller revisions in {namespace}", exc) from exc
        return [snapshot_from_dict(self._api.sanitize_for_serialization(item)) for item in result.items]

    async def list_replica_sets(self, namespace: str, label_selector: str) -> list[ReplicaSetRevision]:
        try:
            result = await self._apps.list_namespaced_replica_set(namespace, label_selector=label_selector)
        except ApiException as exc:
            raise _backend_error(f"failed to list replica sets in {namespace}", exc) from exc
        children = []
        for item in result.items:
            child = replica_set_from_dict(self._api.sanitize_for_serialization(item))
            if child is not None:
                children.append(child)
        return children

    async def patch_workload(self, kind: WorkloadKind, namespace: str, name: str, patch: bytes) -> Workload:
        try:
            body = json.loads(patch)
        except ValueError as exc:
            raise PatchApplyError(f"patch for {kind} {namespace}/{name} is not valid JSON: {exc}") from exc
        try:
            obj = await self._patchers()[kind](name, namespace, body, _content_type=_STRATEGIC_MERGE_PATCH)
        except ApiException as exc:
            if exc.status == 404:
                raise NotFound(kind, namespace, name) from exc
            raise _backend_error(f"failed to patch {kind} {namespace}/{name}", exc) from exc
        return Workload.from_dict(kind, self._api.sanitize_for_serialization(obj))

    async def event_watermark(self, namespace: str) -> str:
        try:
            events = await self._core.list_namespaced_event(namespace)
        except ApiException as exc:
            raise _backend_error(f"failed to list events in {namespace}", exc) from exc
        return str(events.metadata.resource_version or "")

    async def native_rollback(
        self,
        namespace: str,
        name: str,
        revision: int,
        annotations: dict[str, str],
    ) -> None:
        body = {
            "apiVersion": "extensions/v1beta1",
            "kind": "DeploymentRollback",
            "name": name,
            "updatedAnnotations": annotations,
            "rollbackTo": {"revision": revision},
        }
        try:
            await self._api.call_api(
                _ROLLBACK_PATH,
                "POST",
                path_params={"namespace": namespace, "name": name},
                header_params={"Accept": "application/json", "Content-Type": "application/json"},
                body=body,
                response_types_map={200: "object", 201: "object"},
                auth_settings=["BearerToken"],
                _return_http_data_only=True,
            )
        except ApiException as exc:
            if exc.status == 404:
                raise NotFound(WorkloadKind.DEPLOYMENT, namespace, name) from exc
            raise _backend_error(f"failed to roll back deployment {namespace}/{name}", exc) from exc

    async def watch_events(self, namespace: str, watermark: str) -> EventStream:
        watcher = k8s_watch.Watch()
        # Without timeout_seconds the library reopens the watch whenever the server closes it.
        kwargs: dict[str, Any] = {"timeout_seconds": self._watch_timeout_seconds}
        if watermark:
            kwargs["resource_version"] = watermark
        stream = watcher.stream(self._core.list_namespaced_event, namespace, **kwargs)
        return _KubernetesEventStream(self._api, watcher, stream)
