"""Process execution for toolchain and obfuscator binaries."""

from __future__ import annotations

import os
import signal
import subprocess
from collections.abc import Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol

from crossbuild.environment import environment_mapping
from crossbuild.errors import (
    Diagnostics,
    ToolchainError,
    ToolchainExecutionError,
    ToolchainLaunchError,
    ToolchainTimeoutError,
)
from crossbuild.observability import StructuredLogger


class ProcessRunner(Protocol):
    def run(
        self,
        binary: Path,
        args: Sequence[str],
        *,
        cwd: Path,
        env: Sequence[str],
        timeout: float | None = None,
        target: str | None = None,
    ) -> bytes:
        """Execute ``binary`` and return its stdout, raising ToolchainError on failure."""


@dataclass(slots=True)
class SubprocessRunner:
    """Runs a binary with a fully specified environment and captured streams.

    Failures are logged with the complete environment and both streams
    before the corresponding ``ToolchainError`` is raised.
    """

    logger: StructuredLogger = field(default_factory=StructuredLogger)
    operation: str = "run"

    def run(
        self,
        binary: Path,
        args: Sequence[str],
        *,
        cwd: Path,
        env: Sequence[str],
        timeout: float | None = None,
        target: str | None = None,
    ) -> bytes:
        command = (str(binary), *args)
        env = tuple(env)
        self.logger.log(
            operation=self.operation,
            target=target,
            binary=binary.name,
            message=f"toolchain command: {' '.join(command)}",
        )

        try:
            process = subprocess.Popen(
                list(command),
                cwd=str(cwd),
                env=environment_mapping(env),
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                start_new_session=True,
            )
        except OSError as exc:
            diagnostics = Diagnostics(command=command, env=env, cwd=cwd)
            error: ToolchainError = ToolchainLaunchError(
                f"Failed to start {binary.name}: {exc.strerror or exc}",
                hint="Check that the toolchain is installed under the configured root.",
                diagnostics=diagnostics,
                context={"binary": binary.name, "target": target or ""},
            )
            self._log_failure(error, target=target, binary=binary)
            raise error from exc

        try:
            stdout, stderr = process.communicate(timeout=timeout)
        except subprocess.TimeoutExpired as exc:
            # The toolchain forks compilers and linkers; kill the whole group.
            _kill_process_group(process)
            stdout, stderr = process.communicate()
            diagnostics = Diagnostics(
                command=command,
                env=env,
                cwd=cwd,
                stdout=stdout or b"",
                stderr=stderr or b"",
            )
            error = ToolchainTimeoutError(
                f"{binary.name} did not finish within {timeout}s.",
                hint="The process group was killed; raise the timeout or check for a hung build.",
                diagnostics=diagnostics,
                context={"binary": binary.name, "target": target or ""},
            )
            self._log_failure(error, target=target, binary=binary)
            raise error from exc
        except BaseException:
            _kill_process_group(process)
            process.wait()
            raise

        if process.returncode != 0:
            diagnostics = Diagnostics(
                command=command,
                env=env,
                cwd=cwd,
                stdout=stdout,
                stderr=stderr,
                returncode=process.returncode,
            )
            error = ToolchainExecutionError(
                f"{binary.name} exited with status {process.returncode}.",
                hint=f"Inspect {binary.name} stderr for compiler diagnostics.",
                diagnostics=diagnostics,
                context={"binary": binary.name, "target": target or ""},
            )
            self._log_failure(error, target=target, binary=binary)
            raise error

        return stdout

    def _log_failure(self, error: ToolchainError, *, target: str | None, binary: Path) -> None:
        diagnostics = error.diagnostics
        self.logger.log(
            operation=self.operation,
            target=target,
            binary=binary.name,
            level="error",
            message=str(error).splitlines()[0],
            extra={
                "code": error.code,
                "env": list(diagnostics.env),
                "stdout": diagnostics.stdout.decode("utf-8", errors="replace"),
                "stderr": diagnostics.stderr.decode("utf-8", errors="replace"),
                "returncode": diagnostics.returncode,
            },
        )


def _kill_process_group(process: subprocess.Popen[bytes]) -> None:
    try:
        os.killpg(process.pid, signal.SIGKILL)
    except ProcessLookupError:
        pass
