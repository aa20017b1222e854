"""Error taxonomy for history and rollback operations.

Every error raised by the core derives from RolloutError so that the CLI
(and any other caller) can treat them as terminal results for a single
invocation. Nothing here is retried.
"""

from __future__ import annotations


class RolloutError(Exception):
    """Base class for all kuberollback errors."""


class NotFound(RolloutError):
    """The requested workload does not exist."""

    def __init__(self, kind: str, namespace: str, name: str) -> None:
        super().__init__(f"failed to retrieve {kind} {namespace}/{name}: not found")
        self.kind = kind
        self.namespace = namespace
        self.name = name


class RevisionError(RolloutError):
    """Base for errors caused by the revision history itself."""


class RevisionNotFound(RevisionError):
    def __init__(self, revision: int) -> None:
        super().__init__(f"unable to find specified revision {revision} in history")
        self.revision = revision


class InsufficientHistory(RevisionError):
    def __init__(self) -> None:
        super().__init__("no last revision to roll back to")


class NoRolloutHistory(RevisionError):
    def __init__(self, kind: str, name: str) -> None:
        super().__init__(f"no rollout history found for {kind.lower()} {name!r}")
        self.kind = kind
        self.name = name


class DuplicateRevisionError(RevisionError):
    def __init__(self, revision: int, names: list[str]) -> None:
        super().__init__(f"revision {revision} is recorded more than once: {', '.join(sorted(names))}")
        self.revision = revision
        self.names = names


class PausedWorkload(RolloutError):
    def __init__(self, kind: str, name: str) -> None:
        super().__init__(
            f"you cannot rollback a paused {kind.lower()}; resume it first with "
            f"'kubectl rollout resume {kind.lower()}/{name}' and try again"
        )
        self.kind = kind
        self.name = name


class PatchApplyError(RolloutError):
    """A stored patch could not be applied to the base object."""


class SelectorError(RolloutError):
    """A workload's label selector is missing or malformed."""


class BackendError(RolloutError):
    """Wraps any transport, auth or server failure from the cluster API."""

    def __init__(self, message: str, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status


class ConversionError(RolloutError):
    """A pod template could not be translated into its rendered form."""


class UnsupportedKindError(RolloutError):
    def __init__(self, capability: str, kind: str) -> None:
        super().__init__(f"no {capability} has been implemented for {kind!r}")
        self.capability = capability
        self.kind = kind
