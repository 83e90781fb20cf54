"""Public package entrypoint for the cross-compilation build layer."""

from .errors import (
    CrossbuildError,
    Diagnostics,
    ErrorCode,
    InvalidTargetError,
    ToolchainError,
    ToolchainExecutionError,
    ToolchainLaunchError,
    ToolchainTimeoutError,
    ValidationError,
)
from .models import BuildConfig, CgoMode, Target
from .obfuscation import LiteralPolicyTable, ObfuscationPolicy, choose_policy
from .observability import StructuredLogger
from .runner import ProcessRunner, SubprocessRunner
from .targets import CachedTargetResolver, TargetMatrix, resolve_targets
from .toolchain import Toolchain, assemble_build_command

__all__ = [
    "BuildConfig",
    "CachedTargetResolver",
    "CgoMode",
    "CrossbuildError",
    "Diagnostics",
    "ErrorCode",
    "InvalidTargetError",
    "LiteralPolicyTable",
    "ObfuscationPolicy",
    "ProcessRunner",
    "StructuredLogger",
    "SubprocessRunner",
    "Target",
    "TargetMatrix",
    "Toolchain",
    "ToolchainError",
    "ToolchainExecutionError",
    "ToolchainLaunchError",
    "ToolchainTimeoutError",
    "ValidationError",
    "assemble_build_command",
    "choose_policy",
    "resolve_targets",
]
