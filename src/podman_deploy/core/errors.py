"""
Structured error types for podman-deploy.

Every failure the orchestrator can raise is a :class:`PodDeployError`
carrying a category and an :class:`ErrorContext` naming the pod, container,
image or runtime command involved. The CLI renders these uniformly and the
lifecycle orchestrator uses the concrete type to decide whether a failure is
fatal for the operation or just one entry in the final report.

Architecture:
    ::

        ┌─────────────────────────────────────────────────────────────┐
        │                     PodDeployError                           │
        │               (category, context, cause)                     │
        ├─────────────────────────────────────────────────────────────┤
        │  ConfigurationError      TargetNotFoundError                │
        │  (CONFIG)                (TARGET)                           │
        │                                                              │
        │  ProcessSpawnError       RuntimeCommandError                │
        │  (PROCESS)               (RUNTIME)                          │
        │                               │                              │
        │                          ContainerNotFoundError             │
        │                                                              │
        │  MountPreparationError                                      │
        │  (STORAGE)                                                   │
        └─────────────────────────────────────────────────────────────┘

Propagation:
    - ConfigurationError and TargetNotFoundError are always fatal and are
      raised before any runtime process is spawned.
    - ProcessSpawnError is fatal for ``setup``; elsewhere it is recorded.
    - RuntimeCommandError is recorded inside per-entity loops and fatal
      for single-target operations.

Usage:
    from podman_deploy.core.errors import RuntimeCommandError

    result = executor.run(["pod", "start", "web"])
    if not result.ok:
        raise RuntimeCommandError.from_result(result).with_context(pod="web")
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """Standard error categories used for reporting and exit handling."""

    CONFIG = "CONFIG"
    TARGET = "TARGET"
    PROCESS = "PROCESS"
    RUNTIME = "RUNTIME"
    STORAGE = "STORAGE"
    INTERNAL = "INTERNAL"


@dataclass
class ErrorContext:
    """
    Structured metadata attached to an error.

    Only non-None fields end up in :meth:`to_dict`, so callers set just
    what is relevant (a pod name for ``pod start``, a container and image
    for an upgrade, the command line for a spawn failure).

    Attributes:
        pod: Pod the failure concerns
        container: Container the failure concerns
        image: Image reference involved
        command: Runtime command line that failed
        exit_code: Exit status of the failed command
        metadata: Additional key-value pairs
    """

    pod: str | None = None
    container: str | None = None
    image: str | None = None
    command: str | None = None
    exit_code: int | None = None

    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        result = {}
        for key in ["pod", "container", "image", "command", "exit_code"]:
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        if self.metadata:
            result.update(self.metadata)
        return result

    def subject(self) -> str:
        """Human-readable name of the entity this context points at."""
        if self.pod and self.container:
            return f"container '{self.container}' in pod '{self.pod}'"
        if self.container:
            return f"container '{self.container}'"
        if self.pod:
            return f"pod '{self.pod}'"
        return ""


class PodDeployError(Exception):
    """
    Base exception for all podman-deploy errors.

    Subclasses set ``default_category``; the category can still be
    overridden per instance.
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        context: ErrorContext | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.context = context or ErrorContext()
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> PodDeployError:
        """
        Add context to this error (fluent API).

        Usage:
            raise ConfigurationError("bad mount").with_context(
                pod="web", container="nginx"
            )
        """
        for key, value in kwargs.items():
            if hasattr(self.context, key) and key != "metadata":
                setattr(self.context, key, value)
            else:
                self.context.metadata[key] = value
        return self

    def describe(self) -> str:
        """Message prefixed with the entity it concerns, for operator output."""
        subject = self.context.subject()
        if subject and subject.lower() not in self.message.lower():
            return f"{subject}: {self.message}"
        return self.message

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        result = {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "category": self.category.value,
        }
        context_dict = self.context.to_dict()
        if context_dict:
            result["context"] = context_dict
        if self.cause is not None:
            result["cause"] = str(self.cause)
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, category={self.category.value})"


# =============================================================================
# CONFIGURATION ERRORS
# =============================================================================


class ConfigurationError(PodDeployError):
    """
    Malformed configuration: bad mount/port syntax, duplicate names,
    unreadable or missing config file.

    Always fatal; raised before any runtime process is spawned.
    """

    default_category = ErrorCategory.CONFIG


class TargetNotFoundError(PodDeployError):
    """A pod or container named on the command line is not configured."""

    default_category = ErrorCategory.TARGET

    def __init__(self, kind: str, name: str, message: str | None = None):
        self.kind = kind
        self.name = name
        super().__init__(message or f"{kind.capitalize()} '{name}' not found in configuration")
        if kind == "pod":
            self.context.pod = name
        else:
            self.context.container = name


# =============================================================================
# PROCESS / RUNTIME ERRORS
# =============================================================================


class ProcessSpawnError(PodDeployError):
    """The runtime (or another system binary) could not be launched at all."""

    default_category = ErrorCategory.PROCESS

    def __init__(
        self,
        command: str,
        message: str | None = None,
        *,
        cause: Exception | None = None,
    ):
        self.command = command
        detail = f": {cause}" if cause is not None else ""
        super().__init__(
            message or f"Could not launch '{command}'{detail}",
            context=ErrorContext(command=command),
            cause=cause,
        )


class RuntimeCommandError(PodDeployError):
    """A runtime invocation exited non-zero. ``stderr`` is kept verbatim."""

    default_category = ErrorCategory.RUNTIME

    def __init__(
        self,
        args: Sequence[str],
        exit_code: int,
        stderr: str = "",
        message: str | None = None,
    ):
        self.command_args = list(args)
        self.exit_code = exit_code
        self.stderr = stderr.strip()
        command = " ".join(self.command_args)
        default = f"'{command}' failed (exit {exit_code})"
        if self.stderr:
            default = f"{default}: {self.stderr}"
        super().__init__(
            message or default,
            context=ErrorContext(command=command, exit_code=exit_code),
        )

    @classmethod
    def from_result(cls, result: Any, message: str | None = None) -> RuntimeCommandError:
        """Build from an executor ``CommandResult``."""
        return cls(result.command, result.exit_code, result.stderr, message)


class ContainerNotFoundError(RuntimeCommandError):
    """Inspecting a container failed; the runtime does not know it."""

    def __init__(self, container: str, exit_code: int = 1, stderr: str = "", args: Sequence[str] = ()):
        self.container = container
        message = f"Container '{container}' does not exist in the runtime"
        if stderr.strip():
            message = f"{message}: {stderr.strip()}"
        super().__init__(args or ["inspect", container], exit_code, stderr, message)
        self.context.container = container


# =============================================================================
# STORAGE ERRORS
# =============================================================================


class MountPreparationError(PodDeployError):
    """A data path or mount target could not be created on the host."""

    default_category = ErrorCategory.STORAGE

    def __init__(self, path: str, cause: Exception | None = None):
        self.path = path
        detail = f": {cause}" if cause is not None else ""
        super().__init__(f"Cannot create mount path {path}{detail}", cause=cause)
        self.context.metadata["path"] = path


__all__ = [
    "ErrorCategory",
    "ErrorContext",
    "PodDeployError",
    "ConfigurationError",
    "TargetNotFoundError",
    "ProcessSpawnError",
    "RuntimeCommandError",
    "ContainerNotFoundError",
    "MountPreparationError",
]
