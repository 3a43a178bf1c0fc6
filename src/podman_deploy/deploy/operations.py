"""The closed set of orchestrator operations and their single dispatch point.

Each CLI command builds one :class:`Operation` and hands it to
:func:`dispatch`, which routes it through a table rather than a chain of
conditionals.

Example::

    report = dispatch(orchestrator, Operation.stop("web"))
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum

from podman_deploy.deploy.orchestrator import LifecycleOrchestrator
from podman_deploy.deploy.results import OperationReport


class OperationKind(str, Enum):
    """Orchestrator operations."""

    SETUP = "setup"
    LIST = "list"
    PRUNE = "prune"
    UPGRADE = "upgrade"
    START = "start"
    STOP = "stop"

    @property
    def accepts_target(self) -> bool:
        return self in (OperationKind.UPGRADE, OperationKind.START, OperationKind.STOP)


@dataclass(frozen=True)
class Operation:
    """One requested operation, optionally scoped to a named pod/container."""

    kind: OperationKind
    target: str | None = None

    def __post_init__(self) -> None:
        if self.target is not None and not self.kind.accepts_target:
            raise ValueError(f"'{self.kind.value}' does not accept a target")

    @classmethod
    def setup(cls) -> Operation:
        return cls(OperationKind.SETUP)

    @classmethod
    def list_pods(cls) -> Operation:
        return cls(OperationKind.LIST)

    @classmethod
    def prune(cls) -> Operation:
        return cls(OperationKind.PRUNE)

    @classmethod
    def upgrade(cls, container: str | None = None) -> Operation:
        return cls(OperationKind.UPGRADE, container)

    @classmethod
    def start(cls, pod: str | None = None) -> Operation:
        return cls(OperationKind.START, pod)

    @classmethod
    def stop(cls, pod: str | None = None) -> Operation:
        return cls(OperationKind.STOP, pod)


_Handler = Callable[[LifecycleOrchestrator, str | None], OperationReport]

_HANDLERS: dict[OperationKind, _Handler] = {
    OperationKind.SETUP: lambda o, _: o.setup(),
    OperationKind.LIST: lambda o, _: o.list_pods(),
    OperationKind.PRUNE: lambda o, _: o.prune(),
    OperationKind.UPGRADE: lambda o, target: o.upgrade(target),
    OperationKind.START: lambda o, target: o.start(target),
    OperationKind.STOP: lambda o, target: o.stop(target),
}


def dispatch(orchestrator: LifecycleOrchestrator, operation: Operation) -> OperationReport:
    """Run ``operation`` against ``orchestrator`` and return its report."""
    return _HANDLERS[operation.kind](orchestrator, operation.target)
