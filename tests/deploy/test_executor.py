"""Tests for podman_deploy.deploy.executor — subprocess wrapper.

``subprocess.run`` is patched throughout; nothing is actually spawned.
"""

from __future__ import annotations

import subprocess
from unittest.mock import MagicMock, patch

import pytest

from podman_deploy.core.errors import ProcessSpawnError, RuntimeCommandError
from podman_deploy.deploy.executor import CommandResult, ProcessExecutor


def _completed(stdout: str = "", stderr: str = "", returncode: int = 0) -> MagicMock:
    proc = MagicMock(spec=subprocess.CompletedProcess)
    proc.stdout = stdout
    proc.stderr = stderr
    proc.returncode = returncode
    return proc


class TestCommandResult:
    """Result helpers."""

    def test_ok_and_output(self):
        result = CommandResult(command=["podman", "ps"], stdout="  abc\n", stderr="", exit_code=0)
        assert result.ok
        assert result.output == "abc"
        assert result.raise_for_status() is result

    def test_raise_for_status(self):
        result = CommandResult(
            command=["podman", "pod", "start", "web"], stdout="", stderr="no such pod\n", exit_code=125,
        )
        assert not result.ok
        with pytest.raises(RuntimeCommandError) as exc_info:
            result.raise_for_status()
        assert exc_info.value.exit_code == 125
        assert exc_info.value.stderr == "no such pod"
        assert exc_info.value.command_args == ["podman", "pod", "start", "web"]

    def test_raise_for_status_custom_message(self):
        result = CommandResult(command=["podman"], stdout="", stderr="", exit_code=1)
        with pytest.raises(RuntimeCommandError, match="pod start failed"):
            result.raise_for_status("pod start failed")


class TestProcessExecutor:
    """Invocation through subprocess.run."""

    @patch("podman_deploy.deploy.executor.subprocess.run")
    def test_run_prepends_binary(self, mock_run):
        mock_run.return_value = _completed(stdout="ok\n")
        result = ProcessExecutor("podman").run(["pod", "exists", "web"])

        assert result.command == ["podman", "pod", "exists", "web"]
        assert result.stdout == "ok\n"
        assert result.exit_code == 0
        mock_run.assert_called_once_with(
            ["podman", "pod", "exists", "web"],
            input=None,
            capture_output=True,
            text=True,
        )

    @patch("podman_deploy.deploy.executor.subprocess.run")
    def test_nonzero_exit_is_not_raised(self, mock_run):
        mock_run.return_value = _completed(stderr="boom", returncode=125)
        result = ProcessExecutor().run(["pod", "start", "web"])
        assert not result.ok
        assert result.exit_code == 125
        assert result.stderr == "boom"

    @patch("podman_deploy.deploy.executor.subprocess.run")
    def test_input_is_forwarded(self, mock_run):
        mock_run.return_value = _completed()
        ProcessExecutor().run(["login", "r.example.com", "--password-stdin"], input="s3cret")
        assert mock_run.call_args.kwargs["input"] == "s3cret"

    @patch("podman_deploy.deploy.executor.subprocess.run")
    def test_missing_binary_raises_spawn_error(self, mock_run):
        mock_run.side_effect = FileNotFoundError(2, "No such file or directory", "podman")
        with pytest.raises(ProcessSpawnError) as exc_info:
            ProcessExecutor("podman").run(["--version"])
        assert exc_info.value.command == "podman"
        assert isinstance(exc_info.value.cause, FileNotFoundError)

    @patch("podman_deploy.deploy.executor.subprocess.run")
    def test_permission_denied_raises_spawn_error(self, mock_run):
        mock_run.side_effect = PermissionError(13, "Permission denied")
        with pytest.raises(ProcessSpawnError):
            ProcessExecutor("/opt/podman").run(["ps"])

    @patch("podman_deploy.deploy.executor.subprocess.run")
    def test_execute_other_binary(self, mock_run):
        mock_run.return_value = _completed()
        result = ProcessExecutor("podman").execute("sudo", ["apt", "update"])
        assert result.command == ["sudo", "apt", "update"]

    @patch("podman_deploy.deploy.executor.subprocess.run")
    def test_none_streams_become_empty(self, mock_run):
        mock_run.return_value = _completed(stdout=None, stderr=None)
        result = ProcessExecutor().run(["ps"])
        assert result.stdout == ""
        assert result.stderr == ""

    def test_render_quotes(self):
        rendered = ProcessExecutor("podman").render(["run", "-e", "MSG=hello world", "app:1"])
        assert rendered == "podman run -e 'MSG=hello world' app:1"
