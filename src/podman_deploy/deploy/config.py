"""Configuration models for podman-deploy.

Pydantic v2 models for the declarative pod description and for the
process-level runtime settings.

Key Concepts:
    DeployConfig: Root of the YAML file (application name, data path,
        optional private registry, ordered pods). Frozen once loaded.
    PodSpec / ContainerSpec: One pod and its containers.
    MountSpec / PortMapping: ``"left:right"`` strings parsed once, at
        validation time, into typed pairs. The rest of the package never
        re-parses raw strings.
    RuntimeSettings: Which runtime binary to drive, logging, auto-install.
        Uses ``PODMAN_DEPLOY_*`` env vars via ``from_env()``.

Architecture Decisions:
    - Frozen models: configuration is read once per invocation and never
      mutated, so nothing downstream can drift from the file.
    - Validators raise ``ValueError`` naming the pod/container; the loader
      turns the resulting ``ValidationError`` into a ``ConfigurationError``.
    - ``is_podman_installed`` from older config files is accepted and
      ignored: runtime availability is re-probed on every ``setup``.
    - from_env() classmethod: explicit env-var parsing, override precedence
      kwargs > env vars > field defaults.

Related Modules:
    - :mod:`podman_deploy.deploy.loader` — builds DeployConfig from YAML
    - :mod:`podman_deploy.deploy.commands` — consumes the specs
"""

from __future__ import annotations

import os
import posixpath
from collections.abc import Iterator
from typing import Any

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    SecretStr,
    ValidationInfo,
    field_validator,
    model_validator,
)


def _split_pair(raw: str, what: str, fmt: str) -> tuple[str, str]:
    parts = raw.split(":")
    if len(parts) != 2 or not parts[0].strip() or not parts[1].strip():
        raise ValueError(f"{what} {raw!r} must be in '{fmt}' format")
    return parts[0].strip(), parts[1].strip()


def _owner(info: ValidationInfo, kind: str) -> str:
    name = info.data.get("name")
    return f"{kind} {name!r}" if name else kind


def _env_value(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


class MountSpec(BaseModel):
    """A ``host_path:container_path`` bind mount.

    ``host_path`` is relative to the configuration's ``data_path``.
    """

    model_config = ConfigDict(frozen=True)

    host_path: str
    container_path: str

    @classmethod
    def parse(cls, raw: str) -> MountSpec:
        host, container = _split_pair(raw, "mount", "host_path:container_path")
        return cls(host_path=host, container_path=container)

    @property
    def is_file_target(self) -> bool:
        """True when the rightmost host path segment contains a ``.``."""
        return "." in posixpath.basename(self.host_path.rstrip("/"))

    def resolve_host_path(self, data_path: str) -> str:
        """``data_path/host_path`` as handed to the runtime and the filesystem."""
        return f"{data_path.rstrip('/')}/{self.host_path.lstrip('/')}"

    def volume_arg(self, data_path: str) -> str:
        return f"{self.resolve_host_path(data_path)}:{self.container_path}"

    def __str__(self) -> str:
        return f"{self.host_path}:{self.container_path}"


class PortMapping(BaseModel):
    """A ``host:container`` port publication."""

    model_config = ConfigDict(frozen=True)

    host: str
    container: str

    @classmethod
    def parse(cls, raw: str | int) -> PortMapping:
        host, container = _split_pair(str(raw), "port", "host:container")
        return cls(host=host, container=container)

    def __str__(self) -> str:
        return f"{self.host}:{self.container}"


class ContainerSpec(BaseModel):
    """Declarative description of one container inside a pod."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(min_length=1)
    image: str = Field(min_length=1, description="Image reference, e.g. nginx:1.21")
    mounts: list[MountSpec] = Field(default_factory=list)
    env_vars: dict[str, str] = Field(default_factory=dict)
    ports: list[PortMapping] = Field(
        default_factory=list,
        description="Published on the owning pod",
    )

    @field_validator("mounts", mode="before")
    @classmethod
    def _parse_mounts(cls, value: Any, info: ValidationInfo) -> Any:
        if value is None:
            return []
        try:
            return [MountSpec.parse(m) if isinstance(m, str) else m for m in value]
        except ValueError as exc:
            raise ValueError(f"{_owner(info, 'container')}: {exc}") from exc

    @field_validator("ports", mode="before")
    @classmethod
    def _parse_ports(cls, value: Any, info: ValidationInfo) -> Any:
        if value is None:
            return []
        try:
            return [p if isinstance(p, PortMapping) else PortMapping.parse(p) for p in value]
        except ValueError as exc:
            raise ValueError(f"{_owner(info, 'container')}: {exc}") from exc

    @field_validator("env_vars", mode="before")
    @classmethod
    def _stringify_env(cls, value: Any) -> Any:
        if value is None:
            return {}
        if isinstance(value, dict):
            return {str(k): _env_value(v) for k, v in value.items()}
        return value


class PodSpec(BaseModel):
    """A named group of containers sharing the pod's network namespace."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(min_length=1)
    ports: list[PortMapping] = Field(default_factory=list)
    containers: list[ContainerSpec] = Field(default_factory=list)

    @field_validator("ports", mode="before")
    @classmethod
    def _parse_ports(cls, value: Any, info: ValidationInfo) -> Any:
        if value is None:
            return []
        try:
            return [p if isinstance(p, PortMapping) else PortMapping.parse(p) for p in value]
        except ValueError as exc:
            raise ValueError(f"{_owner(info, 'pod')}: {exc}") from exc

    @model_validator(mode="after")
    def _unique_containers(self) -> PodSpec:
        seen: set[str] = set()
        for container in self.containers:
            if container.name in seen:
                raise ValueError(
                    f"pod {self.name!r}: duplicate container name {container.name!r}"
                )
            seen.add(container.name)
        return self

    @property
    def all_ports(self) -> list[PortMapping]:
        """Pod-level ports then each container's, in order, without duplicates."""
        ports: list[PortMapping] = []
        for port in [*self.ports, *(p for c in self.containers for p in c.ports)]:
            if port not in ports:
                ports.append(port)
        return ports


class RegistryCredentials(BaseModel):
    """Resolved private-registry login details."""

    model_config = ConfigDict(frozen=True)

    registry: str
    username: str
    password: SecretStr


class DeployConfig(BaseModel):
    """Root configuration object.

    Example::

        config = DeployConfig(
            application_name="shop",
            data_path="/srv/shop",
            pods=[{"name": "web", "containers": [{"name": "nginx", "image": "nginx:1.21"}]}],
        )
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    application_name: str = Field(default="podman-deploy")
    data_path: str = Field(min_length=1, description="Base directory for all mounts")
    pods: list[PodSpec] = Field(default_factory=list)

    private_registry: str | None = None
    registry_username: str | None = None
    registry_password: SecretStr | None = None

    @model_validator(mode="after")
    def _unique_pods(self) -> DeployConfig:
        seen: set[str] = set()
        for pod in self.pods:
            if pod.name in seen:
                raise ValueError(f"duplicate pod name {pod.name!r}")
            seen.add(pod.name)
        return self

    @property
    def registry_credentials(self) -> RegistryCredentials | None:
        """Credentials when registry, username and password are all set."""
        if self.private_registry and self.registry_username and self.registry_password:
            return RegistryCredentials(
                registry=self.private_registry,
                username=self.registry_username,
                password=self.registry_password,
            )
        return None

    def get_pod(self, name: str) -> PodSpec | None:
        return next((p for p in self.pods if p.name == name), None)

    def iter_containers(self) -> Iterator[tuple[PodSpec, ContainerSpec]]:
        """Every (pod, container) pair in configuration order."""
        for pod in self.pods:
            for container in pod.containers:
                yield pod, container

    def find_containers(self, name: str) -> list[tuple[PodSpec, ContainerSpec]]:
        return [(p, c) for p, c in self.iter_containers() if c.name == name]


class RuntimeSettings(BaseModel):
    """Process-level settings that are not part of the pod description.

    Example::

        settings = RuntimeSettings.from_env(log_level="DEBUG")
    """

    runtime: str = Field(default="podman", description="Container runtime executable")
    config_path: str | None = Field(default=None, description="Explicit config file path")
    log_level: str = Field(default="INFO", description="Log level")
    json_logs: bool | None = Field(
        default=None,
        description="JSON logs; None means JSON when stderr is not a terminal",
    )
    auto_install: bool = Field(
        default=False,
        description="Install the runtime with the OS package manager when missing",
    )

    @classmethod
    def from_env(cls, **overrides: Any) -> RuntimeSettings:
        """Create settings from PODMAN_DEPLOY_* environment variables."""
        env_map = {
            "runtime": "PODMAN_DEPLOY_RUNTIME",
            "config_path": "PODMAN_DEPLOY_CONFIG",
            "log_level": "PODMAN_DEPLOY_LOG_LEVEL",
            "json_logs": "PODMAN_DEPLOY_JSON_LOGS",
            "auto_install": "PODMAN_DEPLOY_AUTO_INSTALL",
        }
        values: dict[str, Any] = {}
        for field_name, env_var in env_map.items():
            env_val = os.environ.get(env_var)
            if env_val is not None:
                if field_name in ("json_logs", "auto_install"):
                    values[field_name] = env_val.lower() in ("true", "1", "yes")
                else:
                    values[field_name] = env_val
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)
