"""Process execution for the container runtime CLI.

Every runtime invocation goes through :class:`ProcessExecutor`: it runs the
command, captures stdout/stderr/exit code and returns a
:class:`CommandResult`. A non-zero exit is *not* an exception here; callers
check ``result.ok`` or call ``result.raise_for_status()`` to turn it into a
``RuntimeCommandError``. The only exception raised by the executor itself is
``ProcessSpawnError``, when the executable cannot be launched at all.

Invocations block until the process exits. There is no timeout and no
retry; both belong to the caller.
"""

from __future__ import annotations

import logging
import shlex
import subprocess
from collections.abc import Sequence
from dataclasses import dataclass

from podman_deploy.core.errors import ProcessSpawnError, RuntimeCommandError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CommandResult:
    """Captured outcome of one process invocation."""

    command: list[str]
    stdout: str
    stderr: str
    exit_code: int

    @property
    def ok(self) -> bool:
        return self.exit_code == 0

    @property
    def output(self) -> str:
        """stdout with surrounding whitespace removed."""
        return self.stdout.strip()

    def raise_for_status(self, message: str | None = None) -> CommandResult:
        """Raise ``RuntimeCommandError`` on a non-zero exit, else return self."""
        if not self.ok:
            raise RuntimeCommandError.from_result(self, message)
        return self


class ProcessExecutor:
    """Runs the container runtime (and other system binaries) via subprocess.

    Parameters
    ----------
    binary
        Runtime executable, looked up on PATH (``podman`` by default).

    Example::

        executor = ProcessExecutor("podman")
        result = executor.run(["pod", "exists", "web"])
        if result.ok:
            ...
    """

    def __init__(self, binary: str = "podman") -> None:
        self.binary = binary

    def run(self, args: Sequence[str], *, input: str | None = None) -> CommandResult:
        """Run the runtime binary with ``args``."""
        return self.execute(self.binary, args, input=input)

    def execute(
        self,
        command: str,
        args: Sequence[str],
        *,
        input: str | None = None,
    ) -> CommandResult:
        """Run ``command args...`` and capture its output.

        Raises
        ------
        ProcessSpawnError
            If ``command`` is missing or not executable.
        """
        cmd = [command, *args]
        logger.debug("runtime.exec", extra={"cmd": shlex.join(cmd)})
        try:
            proc = subprocess.run(
                cmd,
                input=input,
                capture_output=True,
                text=True,
            )
        except OSError as exc:
            raise ProcessSpawnError(command, cause=exc) from exc

        result = CommandResult(
            command=cmd,
            stdout=proc.stdout or "",
            stderr=proc.stderr or "",
            exit_code=proc.returncode,
        )
        if not result.ok:
            logger.debug(
                "runtime.exec_failed",
                extra={"cmd": shlex.join(cmd), "exit_code": result.exit_code},
            )
        return result

    def render(self, args: Sequence[str]) -> str:
        """Shell-quoted command line for display."""
        return shlex.join([self.binary, *args])
