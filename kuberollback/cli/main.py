"""Click entry point: ``kuberollback history`` and ``kuberollback undo``."""

from __future__ import annotations

import asyncio
import signal
from collections.abc import Awaitable, Callable, Coroutine
from dataclasses import dataclass
from typing import Any, TypeVar

import click

from kuberollback.backend.base import ClusterBackend
from kuberollback.config import load_config
from kuberollback.errors import RolloutError
from kuberollback.history import history_viewer_for
from kuberollback.models.config import ClusterConfig, KubeRollbackConfig
from kuberollback.models.results import RollbackStatus
from kuberollback.models.workload import WorkloadKind, parse_kind
from kuberollback.observability.logging import bind_invocation, get_logger, setup_logging
from kuberollback.rollback import rollbacker_for

T = TypeVar("T")

BackendFactory = Callable[[ClusterConfig], Awaitable[ClusterBackend]]

_JSON_FORMATS: dict[str, bool | None] = {"auto": None, "json": True, "console": False}


async def _connect_kubernetes(config: ClusterConfig) -> ClusterBackend:
    # Imported lazily so --help works without loading the Kubernetes client.
    from kuberollback.backend.kubernetes import KubernetesBackend

    return await KubernetesBackend.connect(config)


@dataclass
class CLIState:
    config: KubeRollbackConfig
    connect: BackendFactory = _connect_kubernetes


def _parse_resource(resource: str, name: str | None) -> tuple[WorkloadKind, str]:
    kind_text = resource
    if name is None:
        kind_text, sep, name = resource.rpartition("/")
        if not sep or not kind_text or not name:
            raise click.UsageError(f"expected KIND/NAME or KIND NAME, got {resource!r}")
    kind = parse_kind(kind_text)
    if kind is None:
        raise click.UsageError(f"{kind_text!r} does not support rollout history; use deployment, daemonset or statefulset")
    return kind, name


async def _with_backend(state: CLIState, fn: Callable[[ClusterBackend], Awaitable[T]]) -> T:
    backend = await state.connect(state.config.cluster)
    try:
        return await fn(backend)
    finally:
        await backend.close()


def _run(coro: Coroutine[Any, Any, T]) -> T:
    try:
        return asyncio.run(coro)
    except RolloutError as exc:
        get_logger("cli").error("command_failed", error=str(exc), error_type=type(exc).__name__)
        click.echo(f"error: {exc}", err=True)
        raise SystemExit(1) from exc


def _echo(text: str) -> None:
    click.echo(text, nl=not text.endswith("\n"))


@click.group()
@click.option("--kubeconfig", default=None, help="Path to the kubeconfig file.")
@click.option("--context", "kube_context", default=None, help="Kubeconfig context to use.")
@click.option(
    "--log-level",
    type=click.Choice(["debug", "info", "warning", "error"]),
    default=None,
    help="Structured log level (logs go to stderr).",
)
@click.pass_context
def cli(ctx: click.Context, kubeconfig: str | None, kube_context: str | None, log_level: str | None) -> None:
    """View rollout history and roll back Deployments, DaemonSets and StatefulSets."""
    try:
        config = load_config()
    except ValueError as exc:
        raise click.UsageError(str(exc)) from exc
    if kubeconfig:
        config.cluster.kubeconfig = kubeconfig
    if kube_context:
        config.cluster.context = kube_context
    if log_level:
        config.log.level = log_level
    setup_logging(config.log.level, json_output=_JSON_FORMATS[config.log.format])

    connect = _connect_kubernetes
    if isinstance(ctx.obj, dict) and "connect" in ctx.obj:
        connect = ctx.obj["connect"]
    ctx.obj = CLIState(config=config, connect=connect)


@cli.command()
@click.argument("resource")
@click.argument("name", required=False)
@click.option("-n", "--namespace", default="default", show_default=True)
@click.option("--revision", type=click.IntRange(min=0), default=0, help="Show the pod template of this revision.")
@click.pass_obj
def history(state: CLIState, resource: str, name: str | None, namespace: str, revision: int) -> None:
    """Show the rollout history of KIND/NAME."""
    kind, workload_name = _parse_resource(resource, name)
    bind_invocation(command="history", kind=str(kind), namespace=namespace, name=workload_name)

    async def view(backend: ClusterBackend) -> str:
        viewer = history_viewer_for(kind, backend, state.config.history.change_cause_annotation)
        return await viewer.view_history(namespace, workload_name, revision)

    _echo(_run(_with_backend(state, view)))


@cli.command()
@click.argument("resource")
@click.argument("name", required=False)
@click.option("-n", "--namespace", default="default", show_default=True)
@click.option("--to-revision", type=click.IntRange(min=0), default=0, help="Revision to roll back to; 0 is the previous one.")
@click.option("--dry-run", is_flag=True, help="Render the target template without changing anything.")
@click.option("--change-cause", default="", help="Change-cause annotation recorded on a Deployment rollback.")
@click.pass_obj
def undo(
    state: CLIState,
    resource: str,
    name: str | None,
    namespace: str,
    to_revision: int,
    dry_run: bool,
    change_cause: str,
) -> None:
    """Roll KIND/NAME back to a previous revision."""
    kind, workload_name = _parse_resource(resource, name)
    bind_invocation(command="undo", kind=str(kind), namespace=namespace, name=workload_name)
    annotations = {state.config.history.change_cause_annotation: change_cause} if change_cause else {}

    async def roll_back(backend: ClusterBackend) -> tuple[RollbackStatus, str]:
        rollbacker = rollbacker_for(kind, backend)
        workload = await backend.get_workload(kind, namespace, workload_name)
        cancel = asyncio.Event()
        loop = asyncio.get_running_loop()
        installed = []
        for sig in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.add_signal_handler(sig, cancel.set)
                installed.append(sig)
            except (NotImplementedError, RuntimeError):
                # No signal support on this platform or outside the main thread.
                continue
        try:
            result = await rollbacker.rollback(workload, annotations, to_revision, dry_run=dry_run, cancel=cancel)
        finally:
            for sig in installed:
                loop.remove_signal_handler(sig)
        return result.status, result.message

    status, message = _run(_with_backend(state, roll_back))
    if status == RollbackStatus.PREVIEWED:
        _echo(message)
    elif status == RollbackStatus.UNKNOWN:
        click.echo(f"{kind.lower()}/{workload_name}: rollback submitted, outcome unknown", err=True)
    else:
        _echo(f"{kind.lower()}/{workload_name} {message}")
