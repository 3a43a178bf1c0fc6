"""Tests for podman_deploy.core.errors — categories, context and rendering."""

from __future__ import annotations

import pytest

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


class TestErrorContext:
    """ErrorContext serialisation and subject rendering."""

    def test_to_dict_skips_none(self):
        ctx = ErrorContext(pod="web")
        assert ctx.to_dict() == {"pod": "web"}

    def test_to_dict_merges_metadata(self):
        ctx = ErrorContext(container="nginx", exit_code=125, metadata={"path": "/srv"})
        assert ctx.to_dict() == {"container": "nginx", "exit_code": 125, "path": "/srv"}

    @pytest.mark.parametrize(
        "kwargs,expected",
        [
            ({"pod": "web", "container": "nginx"}, "container 'nginx' in pod 'web'"),
            ({"container": "nginx"}, "container 'nginx'"),
            ({"pod": "web"}, "pod 'web'"),
            ({}, ""),
        ],
    )
    def test_subject(self, kwargs, expected):
        assert ErrorContext(**kwargs).subject() == expected


class TestPodDeployError:
    """Base error behaviour shared by every subclass."""

    def test_default_category_is_internal(self):
        err = PodDeployError("boom")
        assert err.category == ErrorCategory.INTERNAL
        assert str(err) == "boom"

    def test_category_override(self):
        err = PodDeployError("boom", category=ErrorCategory.RUNTIME)
        assert err.category == ErrorCategory.RUNTIME

    def test_cause_is_chained(self):
        cause = ValueError("inner")
        err = PodDeployError("outer", cause=cause)
        assert err.__cause__ is cause
        assert err.to_dict()["cause"] == "inner"

    def test_with_context_sets_known_fields_and_metadata(self):
        err = PodDeployError("boom").with_context(pod="web", attempt=2)
        assert err.context.pod == "web"
        assert err.context.metadata == {"attempt": 2}

    def test_with_context_returns_self(self):
        err = PodDeployError("boom")
        assert err.with_context(pod="web") is err

    def test_describe_prefixes_subject(self):
        err = PodDeployError("image pull failed").with_context(pod="web", container="nginx")
        assert err.describe() == "container 'nginx' in pod 'web': image pull failed"

    def test_describe_does_not_repeat_subject(self):
        err = TargetNotFoundError("pod", "web")
        assert err.describe() == "Pod 'web' not found in configuration"

    def test_to_dict(self):
        err = ConfigurationError("bad port").with_context(pod="web")
        assert err.to_dict() == {
            "error_type": "ConfigurationError",
            "message": "bad port",
            "category": "CONFIG",
            "context": {"pod": "web"},
        }

    def test_repr(self):
        assert repr(ConfigurationError("x")) == "ConfigurationError('x', category=CONFIG)"


class TestSubclasses:
    """Concrete error types and their categories."""

    def test_configuration_error(self):
        assert ConfigurationError("x").category == ErrorCategory.CONFIG

    def test_target_not_found_pod(self):
        err = TargetNotFoundError("pod", "nonexistent-pod")
        assert err.category == ErrorCategory.TARGET
        assert err.kind == "pod"
        assert err.name == "nonexistent-pod"
        assert err.context.pod == "nonexistent-pod"
        assert err.context.container is None

    def test_target_not_found_container(self):
        err = TargetNotFoundError("container", "nginx")
        assert err.context.container == "nginx"
        assert err.message == "Container 'nginx' not found in configuration"

    def test_process_spawn_error(self):
        err = ProcessSpawnError("podman", cause=FileNotFoundError("No such file"))
        assert err.category == ErrorCategory.PROCESS
        assert err.command == "podman"
        assert err.message == "Could not launch 'podman': No such file"
        assert err.context.command == "podman"

    def test_process_spawn_error_custom_message(self):
        err = ProcessSpawnError("podman", "not installed")
        assert err.message == "not installed"
        assert err.cause is None

    def test_runtime_command_error(self):
        err = RuntimeCommandError(["podman", "pod", "start", "web"], 125, "Error: no such pod\n")
        assert err.category == ErrorCategory.RUNTIME
        assert err.command_args == ["podman", "pod", "start", "web"]
        assert err.exit_code == 125
        assert err.stderr == "Error: no such pod"
        assert err.message == "'podman pod start web' failed (exit 125): Error: no such pod"
        assert err.context.to_dict() == {"command": "podman pod start web", "exit_code": 125}

    def test_runtime_command_error_without_stderr(self):
        err = RuntimeCommandError(["podman", "stop", "nginx"], 1)
        assert err.message == "'podman stop nginx' failed (exit 1)"

    def test_container_not_found_is_runtime_error(self):
        err = ContainerNotFoundError("nginx", exit_code=125, stderr="no such container")
        assert isinstance(err, RuntimeCommandError)
        assert err.container == "nginx"
        assert err.context.container == "nginx"
        assert err.exit_code == 125
        assert err.message == "Container 'nginx' does not exist in the runtime: no such container"

    def test_mount_preparation_error(self):
        err = MountPreparationError("/srv/data", PermissionError("denied"))
        assert err.category == ErrorCategory.STORAGE
        assert err.path == "/srv/data"
        assert err.message == "Cannot create mount path /srv/data: denied"
        assert err.context.metadata["path"] == "/srv/data"

    def test_all_are_pod_deploy_errors(self):
        for err in (
            ConfigurationError("x"),
            TargetNotFoundError("pod", "x"),
            ProcessSpawnError("x"),
            RuntimeCommandError(["x"], 1),
            MountPreparationError("x"),
        ):
            assert isinstance(err, PodDeployError)
