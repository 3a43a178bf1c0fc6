"""Host-side preparation of the data path and mount targets.

Every mount host path lives under ``data_path``. A target whose last path
segment contains a ``.`` is a file: its parent directories are created and
an empty file is written if missing. Every other target is a directory.
Existing files and directories are left untouched.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from podman_deploy.core.errors import MountPreparationError
from podman_deploy.core.logging import get_logger
from podman_deploy.deploy.config import DeployConfig

logger = get_logger(__name__)


@dataclass(frozen=True)
class MountTarget:
    """A resolved host path that must exist before containers are created."""

    path: str
    is_file: bool
    pod: str
    container: str


def resolve_mount_targets(config: DeployConfig) -> list[MountTarget]:
    """Every mount host path, resolved under ``data_path``, in config order."""
    targets: list[MountTarget] = []
    for pod, container in config.iter_containers():
        for mount in container.mounts:
            targets.append(
                MountTarget(
                    path=mount.resolve_host_path(config.data_path),
                    is_file=mount.is_file_target,
                    pod=pod.name,
                    container=container.name,
                )
            )
    return targets


def ensure_data_path(data_path: str) -> bool:
    """Create ``data_path`` if needed. Returns True when it was created."""
    path = Path(data_path)
    if path.is_dir():
        logger.debug("data_path.exists", path=data_path)
        return False
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise MountPreparationError(data_path, exc) from exc
    logger.info("data_path.created", path=data_path)
    return True


def create_mount_target(target: MountTarget) -> bool:
    """Create one target. Returns True when something was created."""
    path = Path(target.path)
    try:
        if target.is_file:
            if path.exists():
                return False
            path.parent.mkdir(parents=True, exist_ok=True)
            path.touch()
            logger.info("mount.file_created", path=target.path, container=target.container)
            return True
        if path.is_dir():
            return False
        path.mkdir(parents=True, exist_ok=True)
        logger.info("mount.directory_created", path=target.path, container=target.container)
        return True
    except OSError as exc:
        raise MountPreparationError(target.path, exc).with_context(
            pod=target.pod, container=target.container
        ) from exc


def prepare_mount_paths(config: DeployConfig) -> list[MountTarget]:
    """Create the data path and every mount target. Returns the targets created."""
    ensure_data_path(config.data_path)
    created = [t for t in resolve_mount_targets(config) if create_mount_target(t)]
    logger.info("mounts.prepared", created=len(created))
    return created
