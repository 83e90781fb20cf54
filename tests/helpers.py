"""Test doubles shared across test modules."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from pathlib import Path

from crossbuild.errors import ToolchainError
from crossbuild.targets import DIST_LIST_COMMAND

DIST_LIST_OUTPUT = b"darwin/arm64\nlinux/386\nlinux/amd64\nlinux/arm64\nwindows/amd64\n"


@dataclass(frozen=True, slots=True)
class RunnerCall:
    binary: Path
    args: tuple[str, ...]
    cwd: Path
    env: tuple[str, ...]
    timeout: float | None
    target: str | None


@dataclass(slots=True)
class FakeRunner:
    """Records every invocation instead of starting a process."""

    dist_list: bytes = DIST_LIST_OUTPUT
    stdout: bytes = b"artifact-bytes"
    error: ToolchainError | None = None
    dist_list_error: ToolchainError | None = None
    calls: list[RunnerCall] = field(default_factory=list)

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
        call = RunnerCall(
            binary=binary,
            args=tuple(args),
            cwd=cwd,
            env=tuple(env),
            timeout=timeout,
            target=target,
        )
        self.calls.append(call)
        if call.args == DIST_LIST_COMMAND:
            if self.dist_list_error is not None:
                raise self.dist_list_error
            return self.dist_list
        if self.error is not None:
            raise self.error
        return self.stdout

    def build_calls(self) -> list[RunnerCall]:
        return [call for call in self.calls if call.args != DIST_LIST_COMMAND]
