"""Pod and container deployment through a container-runtime CLI.

Key Concepts:
    DeployConfig: Frozen pydantic model of the YAML file (pods, containers,
        mounts, ports, registry credentials).
    CommandBuilder: Pure construction of runtime argument lists.
    ProcessExecutor: The single subprocess choke point; returns
        ``CommandResult`` and raises only ``ProcessSpawnError``.
    UpgradeDecisionEngine: Observed vs. configured image comparison.
    LifecycleOrchestrator: setup / upgrade / start / stop / list / prune.
    Operation + dispatch: The closed set of operations the CLI runs.
    OperationReport: Per-entity outcomes and the final summary.

Architecture::

    ┌──────────────────────────────────────────────────────────────┐
    │                  LifecycleOrchestrator                        │
    ├──────────────────┬──────────────────┬────────────────────────┤
    │ UpgradeDecision  │  CommandBuilder  │  mounts / runtime      │
    │ Engine           │                  │  (host collaborators)  │
    ├──────────────────┴──────────────────┴────────────────────────┤
    │            ProcessExecutor (runtime CLI subprocess)           │
    ├──────────────────────────────────────────────────────────────┤
    │      images.normalize_image   │   config / loader / results   │
    └──────────────────────────────────────────────────────────────┘
"""

from __future__ import annotations

from podman_deploy.deploy.commands import CommandBuilder
from podman_deploy.deploy.config import (
    ContainerSpec,
    DeployConfig,
    MountSpec,
    PodSpec,
    PortMapping,
    RuntimeSettings,
)
from podman_deploy.deploy.executor import CommandResult, ProcessExecutor
from podman_deploy.deploy.images import images_match, normalize_image
from podman_deploy.deploy.loader import find_config_file, load_config
from podman_deploy.deploy.operations import Operation, OperationKind, dispatch
from podman_deploy.deploy.orchestrator import LifecycleOrchestrator
from podman_deploy.deploy.results import (
    ContainerState,
    EntityOutcome,
    OperationReport,
    OutcomeStatus,
    OverallStatus,
)
from podman_deploy.deploy.upgrade import UpgradeDecision, UpgradeDecisionEngine

__all__ = [
    "CommandBuilder",
    "CommandResult",
    "ContainerSpec",
    "ContainerState",
    "DeployConfig",
    "EntityOutcome",
    "LifecycleOrchestrator",
    "MountSpec",
    "Operation",
    "OperationKind",
    "OperationReport",
    "OutcomeStatus",
    "OverallStatus",
    "PodSpec",
    "PortMapping",
    "ProcessExecutor",
    "RuntimeSettings",
    "UpgradeDecision",
    "UpgradeDecisionEngine",
    "dispatch",
    "find_config_file",
    "images_match",
    "load_config",
    "normalize_image",
]
