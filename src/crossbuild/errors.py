"""Typed error model with stable, machine-readable error codes."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from enum import StrEnum
from pathlib import Path

_TAIL = 2000


class ErrorCode(StrEnum):
    """Stable error identifiers used across the build API."""

    VALIDATION = "E_VALIDATION"
    INVALID_TARGET = "E_INVALID_TARGET"
    TOOLCHAIN_LAUNCH = "E_TOOLCHAIN_LAUNCH"
    TOOLCHAIN_EXECUTION = "E_TOOLCHAIN_EXECUTION"
    TOOLCHAIN_TIMEOUT = "E_TOOLCHAIN_TIMEOUT"


@dataclass(frozen=True, slots=True)
class Diagnostics:
    """Everything needed to reconstruct a failed toolchain invocation."""

    command: tuple[str, ...]
    env: tuple[str, ...]
    cwd: Path
    stdout: bytes = b""
    stderr: bytes = b""
    returncode: int | None = None

    def to_dict(self) -> dict[str, object]:
        return {
            "command": list(self.command),
            "env": list(self.env),
            "cwd": str(self.cwd),
            "stdout": self.stdout.decode("utf-8", errors="replace"),
            "stderr": self.stderr.decode("utf-8", errors="replace"),
            "returncode": self.returncode,
        }


class CrossbuildError(Exception):
    """Base error class that carries code, optional hint, and context."""

    code: str
    hint: str | None
    context: Mapping[str, str]

    def __init__(
        self,
        message: str,
        *,
        code: ErrorCode,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code.value
        self.hint = hint
        self.context = dict(context or {})

    def __str__(self) -> str:
        parts = [super().__str__()]
        if self.hint:
            parts.append(f"Hint: {self.hint}")
        if self.context:
            for k, v in self.context.items():
                if v:
                    parts.append(f"  {k}: {v}")
        return "\n".join(parts)

    def to_dict(self) -> dict[str, object]:
        payload: dict[str, object] = {
            "code": self.code,
            "message": str(self),
            "context": dict(self.context),
        }
        if self.hint is not None:
            payload["hint"] = self.hint
        return payload


class ValidationError(CrossbuildError):
    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(message, code=ErrorCode.VALIDATION, hint=hint, context=context)


class InvalidTargetError(CrossbuildError):
    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(message, code=ErrorCode.INVALID_TARGET, hint=hint, context=context)


class ToolchainError(CrossbuildError):
    """A toolchain or obfuscator invocation that produced no usable output.

    ``diagnostics`` holds the full command, environment and captured
    streams; ``context`` only carries the short identity of the failure.
    """

    diagnostics: Diagnostics

    def __init__(
        self,
        message: str,
        *,
        code: ErrorCode,
        diagnostics: Diagnostics,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        merged = {
            "command": " ".join(diagnostics.command),
            "returncode": "" if diagnostics.returncode is None else str(diagnostics.returncode),
            "stderr": diagnostics.stderr[-_TAIL:].decode("utf-8", errors="replace").strip(),
        }
        merged.update(context or {})
        super().__init__(message, code=code, hint=hint, context=merged)
        self.diagnostics = diagnostics

    def to_dict(self) -> dict[str, object]:
        payload = super().to_dict()
        payload["diagnostics"] = self.diagnostics.to_dict()
        return payload


class ToolchainLaunchError(ToolchainError):
    def __init__(
        self,
        message: str,
        *,
        diagnostics: Diagnostics,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(
            message,
            code=ErrorCode.TOOLCHAIN_LAUNCH,
            diagnostics=diagnostics,
            hint=hint,
            context=context,
        )


class ToolchainExecutionError(ToolchainError):
    def __init__(
        self,
        message: str,
        *,
        diagnostics: Diagnostics,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(
            message,
            code=ErrorCode.TOOLCHAIN_EXECUTION,
            diagnostics=diagnostics,
            hint=hint,
            context=context,
        )


class ToolchainTimeoutError(ToolchainError):
    def __init__(
        self,
        message: str,
        *,
        diagnostics: Diagnostics,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(
            message,
            code=ErrorCode.TOOLCHAIN_TIMEOUT,
            diagnostics=diagnostics,
            hint=hint,
            context=context,
        )


__all__ = [
    "CrossbuildError",
    "Diagnostics",
    "ErrorCode",
    "InvalidTargetError",
    "ToolchainError",
    "ToolchainExecutionError",
    "ToolchainLaunchError",
    "ToolchainTimeoutError",
    "ValidationError",
]
