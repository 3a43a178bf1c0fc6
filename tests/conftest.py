"""
Shared pytest fixtures and configuration for podman-deploy tests.

This module provides:
- ``FakeExecutor``: a scripted stand-in for the runtime CLI that records
  every invocation, so no container runtime is needed
- Sample configurations built through the real loader
- Logging reset between tests

Usage:
    def test_something(fake_executor, sample_config):
        fake_executor.on(["pod", "exists", "web"], exit_code=1)
        ...
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Generator, Sequence
from pathlib import Path
from typing import Any

import pytest
import structlog

# Ensure the package is importable without installation
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from podman_deploy.deploy.config import DeployConfig
from podman_deploy.deploy.executor import CommandResult, ProcessExecutor
from podman_deploy.deploy.loader import parse_config


# =============================================================================
# Test Markers Configuration
# =============================================================================


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Auto-mark tests based on their location."""
    for item in items:
        test_path = Path(item.path).relative_to(Path(__file__).parent)
        if test_path.parts and test_path.parts[0] == "cli":
            item.add_marker(pytest.mark.cli)
        markers = {mark.name for mark in item.iter_markers()}
        if not markers.intersection({"unit", "cli"}):
            item.add_marker(pytest.mark.unit)


# =============================================================================
# Logging isolation
# =============================================================================


@pytest.fixture(autouse=True)
def reset_logging() -> Generator[None, None, None]:
    """Undo any ``configure_logging`` a test (or CLI invocation) performed."""
    yield
    structlog.reset_defaults()
    structlog.contextvars.clear_contextvars()
    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)


# =============================================================================
# Fake runtime
# =============================================================================


class FakeExecutor(ProcessExecutor):
    """Scripted executor.

    Rules registered with :meth:`on` match when the invocation's arguments
    start with the given prefix; the most recently registered matching rule
    wins. Unmatched invocations succeed with empty output.
    """

    def __init__(self, binary: str = "podman") -> None:
        super().__init__(binary)
        self.calls: list[list[str]] = []
        self.commands: list[list[str]] = []
        self.inputs: list[str | None] = []
        self._rules: list[tuple[str | None, list[str], dict[str, Any]]] = []

    def on(
        self,
        prefix: Sequence[str],
        *,
        stdout: str = "",
        stderr: str = "",
        exit_code: int = 0,
        raises: Exception | None = None,
        command: str | None = None,
    ) -> FakeExecutor:
        self._rules.append(
            (
                command,
                list(prefix),
                {"stdout": stdout, "stderr": stderr, "exit_code": exit_code, "raises": raises},
            )
        )
        return self

    def execute(
        self,
        command: str,
        args: Sequence[str],
        *,
        input: str | None = None,
    ) -> CommandResult:
        args = list(args)
        self.commands.append([command, *args])
        if command == self.binary:
            self.calls.append(args)
        self.inputs.append(input)

        for rule_command, prefix, outcome in reversed(self._rules):
            if rule_command is not None and rule_command != command:
                continue
            if rule_command is None and command != self.binary:
                continue
            if args[: len(prefix)] == prefix:
                if outcome["raises"] is not None:
                    raise outcome["raises"]
                return CommandResult(
                    command=[command, *args],
                    stdout=outcome["stdout"],
                    stderr=outcome["stderr"],
                    exit_code=outcome["exit_code"],
                )
        return CommandResult(command=[command, *args], stdout="", stderr="", exit_code=0)

    def called(self, *prefix: str) -> list[list[str]]:
        """Runtime invocations whose arguments start with ``prefix``."""
        return [c for c in self.calls if c[: len(prefix)] == list(prefix)]


@pytest.fixture
def fake_executor() -> FakeExecutor:
    return FakeExecutor()


# =============================================================================
# Sample configurations
# =============================================================================


def make_config(data_path: str = "./store", **overrides: Any) -> DeployConfig:
    """Two pods, three containers, mounts of both kinds."""
    data: dict[str, Any] = {
        "application_name": "shop",
        "data_path": data_path,
        "pods": [
            {
                "name": "web",
                "ports": ["8080:80"],
                "containers": [
                    {
                        "name": "nginx",
                        "image": "nginx:1.21",
                        "mounts": ["/nginx/nginx.conf:/etc/nginx/nginx.conf", "/nginx/html:/usr/share/nginx/html"],
                        "env_vars": {"TZ": "UTC"},
                    },
                    {
                        "name": "app",
                        "image": "registry.example.com/shop/app:2.0",
                        "env_vars": {"PORT": 9000, "DEBUG": False},
                        "ports": ["9000:9000"],
                    },
                ],
            },
            {
                "name": "db",
                "containers": [
                    {
                        "name": "postgres",
                        "image": "docker.io/library/postgres:16",
                        "mounts": ["/pg/data:/var/lib/postgresql/data"],
                        "env_vars": {"POSTGRES_PASSWORD": "secret"},
                    },
                ],
            },
        ],
    }
    data.update(overrides)
    return parse_config(data)


@pytest.fixture
def config_factory(tmp_path: Path):
    """``make_config`` with ``data_path`` under the test's tmp dir."""

    def factory(**overrides: Any) -> DeployConfig:
        overrides.setdefault("data_path", str(tmp_path / "store"))
        return make_config(**overrides)

    return factory


@pytest.fixture
def sample_config(config_factory) -> DeployConfig:
    return config_factory()


@pytest.fixture
def sample_yaml(tmp_path: Path) -> Path:
    """A config file on disk: nginx in pod web, postgres in pod db."""
    path = tmp_path / "config.yaml"
    path.write_text(
        f"""\
application_name: shop
data_path: {tmp_path / "store"}
is_podman_installed: true
pods:
  - name: web
    ports: ["8080:80"]
    containers:
      - name: nginx
        image: nginx:1.21
        mounts:
          - /nginx/nginx.conf:/etc/nginx/nginx.conf
        env_vars:
          TZ: UTC
  - name: db
    containers:
      - name: postgres
        image: docker.io/library/postgres:16
""",
        encoding="utf-8",
    )
    return path
