"""Core primitives shared by every podman-deploy module: errors and logging."""

from podman_deploy.core.errors import (
    ConfigurationError,
    ContainerNotFoundError,
    ErrorCategory,
    ErrorContext,
    MountPreparationError,
    PodDeployError,
    ProcessSpawnError,
    RuntimeCommandError,
    TargetNotFoundError,
)
from podman_deploy.core.logging import LogContext, configure_logging, get_logger

__all__ = [
    "ConfigurationError",
    "ContainerNotFoundError",
    "ErrorCategory",
    "ErrorContext",
    "LogContext",
    "MountPreparationError",
    "PodDeployError",
    "ProcessSpawnError",
    "RuntimeCommandError",
    "TargetNotFoundError",
    "configure_logging",
    "get_logger",
]
