"""Result models for podman-deploy.

Pydantic v2 models capturing the outcome of one orchestrator operation.
Per-entity outcomes (a pod started, a container upgraded, an image pull
that failed) roll up into an :class:`OperationReport`, which the CLI
renders as a table or dumps with ``model_dump_json()``.

Key Concepts:
    OutcomeStatus: SUCCEEDED, FAILED, SKIPPED for a single entity.
    OverallStatus: PASSED, PARTIAL, FAILED for the whole operation.
    EntityOutcome: One pod/container/image/registry action.
    ContainerState: One row of ``list`` output.
    OperationReport: ``mark_complete()`` finalises duration, status, summary.
"""

from __future__ import annotations

from datetime import UTC, datetime
from enum import Enum
from typing import Literal

from pydantic import BaseModel, Field

from podman_deploy.core.errors import PodDeployError

EntityKind = Literal["pod", "container", "image", "registry", "runtime", "mount"]


class OutcomeStatus(str, Enum):
    """Result of acting on one entity."""

    SUCCEEDED = "succeeded"
    FAILED = "failed"
    SKIPPED = "skipped"


class OverallStatus(str, Enum):
    """Overall status of an operation."""

    PENDING = "PENDING"
    PASSED = "PASSED"
    PARTIAL = "PARTIAL"
    FAILED = "FAILED"


class EntityOutcome(BaseModel):
    """What happened to one pod, container, image or registry."""

    kind: EntityKind
    name: str
    pod: str | None = None
    action: str
    status: OutcomeStatus
    message: str | None = None
    error_type: str | None = None


class ContainerState(BaseModel):
    """Configured vs. observed state of one container."""

    pod: str
    pod_status: str = "absent"
    container: str
    configured_image: str
    observed_image: str | None = None
    status: str = "absent"
    up_to_date: bool | None = None


class OperationReport(BaseModel):
    """Aggregate result of one orchestrator operation."""

    operation: str
    target: str | None = None
    started_at: str = Field(default_factory=lambda: datetime.now(UTC).isoformat())
    completed_at: str | None = None
    duration_seconds: float = 0.0
    outcomes: list[EntityOutcome] = Field(default_factory=list)
    containers: list[ContainerState] = Field(default_factory=list)
    removed_images: list[str] = Field(default_factory=list)
    overall_status: OverallStatus = OverallStatus.PENDING
    summary: str = ""

    # ------------------------------------------------------------------
    # Recording
    # ------------------------------------------------------------------

    def record_success(
        self,
        kind: EntityKind,
        name: str,
        action: str,
        *,
        pod: str | None = None,
        message: str | None = None,
    ) -> EntityOutcome:
        return self._record(kind, name, action, OutcomeStatus.SUCCEEDED, pod=pod, message=message)

    def record_skip(
        self,
        kind: EntityKind,
        name: str,
        action: str,
        *,
        pod: str | None = None,
        message: str | None = None,
    ) -> EntityOutcome:
        return self._record(kind, name, action, OutcomeStatus.SKIPPED, pod=pod, message=message)

    def record_failure(
        self,
        kind: EntityKind,
        name: str,
        action: str,
        error: PodDeployError,
        *,
        pod: str | None = None,
    ) -> EntityOutcome:
        outcome = self._record(
            kind, name, action, OutcomeStatus.FAILED, pod=pod, message=error.message
        )
        outcome.error_type = type(error).__name__
        return outcome

    def _record(
        self,
        kind: EntityKind,
        name: str,
        action: str,
        status: OutcomeStatus,
        *,
        pod: str | None,
        message: str | None,
    ) -> EntityOutcome:
        outcome = EntityOutcome(
            kind=kind, name=name, pod=pod, action=action, status=status, message=message
        )
        self.outcomes.append(outcome)
        return outcome

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------

    @property
    def succeeded(self) -> list[EntityOutcome]:
        return [o for o in self.outcomes if o.status == OutcomeStatus.SUCCEEDED]

    @property
    def failed(self) -> list[EntityOutcome]:
        return [o for o in self.outcomes if o.status == OutcomeStatus.FAILED]

    @property
    def skipped(self) -> list[EntityOutcome]:
        return [o for o in self.outcomes if o.status == OutcomeStatus.SKIPPED]

    @property
    def ok(self) -> bool:
        return not self.failed

    def mark_complete(self) -> OperationReport:
        """Finalise timestamps, duration, overall status and summary."""
        self.completed_at = datetime.now(UTC).isoformat()
        start = datetime.fromisoformat(self.started_at)
        end = datetime.fromisoformat(self.completed_at)
        self.duration_seconds = (end - start).total_seconds()

        if not self.failed:
            self.overall_status = OverallStatus.PASSED
        elif self.succeeded:
            self.overall_status = OverallStatus.PARTIAL
        else:
            self.overall_status = OverallStatus.FAILED

        self.summary = (
            f"{len(self.succeeded)} succeeded, {len(self.failed)} failed, "
            f"{len(self.skipped)} skipped"
        )
        return self
