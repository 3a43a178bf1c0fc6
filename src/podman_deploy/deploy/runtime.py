"""Runtime availability: probe, and optionally install, the container runtime.

Availability is always re-probed (``<runtime> --version``); a flag stored in
the configuration file is never trusted. When the runtime is missing and
auto-install is enabled, the OS is detected from ``/etc/os-release`` and
the matching package manager is invoked through ``sudo``.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path

from podman_deploy.core.errors import ProcessSpawnError
from podman_deploy.core.logging import get_logger
from podman_deploy.deploy.executor import ProcessExecutor

logger = get_logger(__name__)

OS_RELEASE_PATH = Path("/etc/os-release")


class OSType(str, Enum):
    """Linux distributions with a known install recipe."""

    UBUNTU = "ubuntu"
    DEBIAN = "debian"
    FEDORA = "fedora"
    REDHAT = "redhat"
    ARCH = "arch"
    UNKNOWN = "unknown"


def detect_os(os_release: Path = OS_RELEASE_PATH) -> OSType:
    """Classify the host from the contents of ``os-release``."""
    try:
        content = os_release.read_text(encoding="utf-8").lower()
    except OSError:
        return OSType.UNKNOWN
    if "ubuntu" in content:
        return OSType.UBUNTU
    if "debian" in content:
        return OSType.DEBIAN
    if "fedora" in content:
        return OSType.FEDORA
    if "red hat" in content or "rhel" in content or "centos" in content:
        return OSType.REDHAT
    if "arch" in content:
        return OSType.ARCH
    return OSType.UNKNOWN


def install_commands(os_type: OSType, package: str) -> list[list[str]]:
    """Argument lists (run under ``sudo``) that install ``package``."""
    if os_type in (OSType.UBUNTU, OSType.DEBIAN):
        return [["apt", "update"], ["apt", "install", "-y", package]]
    if os_type == OSType.FEDORA:
        return [["dnf", "install", "-y", package]]
    if os_type == OSType.REDHAT:
        return [["yum", "install", "-y", package]]
    if os_type == OSType.ARCH:
        return [["pacman", "-S", "--noconfirm", package]]
    return []


class RuntimeInstaller:
    """Makes sure the runtime binary can be executed.

    Parameters
    ----------
    executor
        Executor bound to the runtime binary.
    auto_install
        Install with the OS package manager when the probe fails.
    os_release
        Path read for OS detection.
    """

    def __init__(
        self,
        executor: ProcessExecutor,
        *,
        auto_install: bool = False,
        os_release: Path = OS_RELEASE_PATH,
    ) -> None:
        self.executor = executor
        self.auto_install = auto_install
        self.os_release = os_release

    def is_available(self) -> bool:
        """True when ``<runtime> --version`` launches and exits 0."""
        try:
            return self.executor.run(["--version"]).ok
        except ProcessSpawnError:
            return False

    def ensure_available(self) -> None:
        """Probe the runtime, installing it if allowed.

        Raises
        ------
        ProcessSpawnError
            If the runtime is missing and cannot (or may not) be installed.
        """
        runtime = self.executor.binary
        if self.is_available():
            logger.info("runtime.available", runtime=runtime)
            return

        if not self.auto_install:
            raise ProcessSpawnError(
                runtime,
                f"Container runtime '{runtime}' is not installed or not on PATH. "
                "Install it, or re-run setup with --install.",
            )

        os_type = detect_os(self.os_release)
        logger.info("runtime.installing", runtime=runtime, os=os_type.value)
        commands = install_commands(os_type, runtime)
        if not commands:
            raise ProcessSpawnError(
                runtime,
                f"Unsupported OS for automatic {runtime} installation",
            )

        for args in commands:
            result = self.executor.execute("sudo", args)
            if not result.ok:
                raise ProcessSpawnError(
                    runtime,
                    f"Failed to install {runtime}: 'sudo {' '.join(args)}' exited "
                    f"{result.exit_code}: {result.stderr.strip()}",
                )

        if not self.is_available():
            raise ProcessSpawnError(runtime, f"{runtime} still unavailable after installation")
        logger.info("runtime.installed", runtime=runtime)
