"""Completion watch for server-side Deployment rollbacks.

The API server reports the outcome of a DeploymentRollback asynchronously,
as an Event in the Deployment's namespace. We consume the event stream until
one of the three rollback reasons shows up, the stream closes, or the caller
cancels.
"""

from __future__ import annotations

import asyncio

from kuberollback.backend.base import EventStream
from kuberollback.models.results import RollbackResult
from kuberollback.models.workload import RolloutEvent
from kuberollback.observability.logging import get_logger
from kuberollback.observability.metrics import rollback_events_total

_logger = get_logger("rollback.watcher")

ROLLBACK_REVISION_NOT_FOUND = "DeploymentRollbackRevisionNotFound"
ROLLBACK_TEMPLATE_UNCHANGED = "DeploymentRollbackTemplateUnchanged"
ROLLBACK_DONE = "DeploymentRollback"

ROLLBACK_EVENT_REASONS = (ROLLBACK_REVISION_NOT_FOUND, ROLLBACK_TEMPLATE_UNCHANGED, ROLLBACK_DONE)


def classify_rollback_event(event: RolloutEvent) -> RollbackResult | None:
    """Return the rollback outcome *event* reports, or None if it is unrelated."""
    if event.reason not in ROLLBACK_EVENT_REASONS:
        return None
    rollback_events_total.labels(reason=event.reason).inc()
    if event.reason == ROLLBACK_DONE:
        return RollbackResult.succeeded()
    return RollbackResult.skipped(f"{event.reason}: {event.message}")


async def watch_rollback_event(
    stream: EventStream,
    cancel: asyncio.Event | None = None,
) -> RollbackResult:
    """Block until a rollback event arrives, the stream closes or *cancel* is set.

    A closed stream or a cancellation yields an UNKNOWN result with an empty
    message. The stream is always stopped before returning; nothing is
    retried.
    """
    cancel = cancel or asyncio.Event()
    cancelled = asyncio.ensure_future(cancel.wait())
    try:
        while True:
            if cancel.is_set():
                _logger.info("rollback_watch_cancelled")
                return RollbackResult.unknown()
            pending = asyncio.ensure_future(stream.next_event())
            done, _ = await asyncio.wait({pending, cancelled}, return_when=asyncio.FIRST_COMPLETED)
            if pending not in done:
                pending.cancel()
                await asyncio.gather(pending, return_exceptions=True)
                _logger.info("rollback_watch_cancelled")
                return RollbackResult.unknown()

            event = pending.result()
            if event is None:
                _logger.warning("rollback_watch_closed", reason="event stream closed before a rollback event")
                return RollbackResult.unknown()

            result = classify_rollback_event(event)
            if result is not None:
                _logger.info("rollback_event", reason=event.reason, involved=event.involved_name)
                return result
            _logger.debug("rollback_watch_ignored", reason=event.reason)
    finally:
        stream.stop()
        cancelled.cancel()
        await asyncio.gather(cancelled, return_exceptions=True)
