"""Build orchestration: target validation, command assembly, obfuscation routing."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import cast

from crossbuild.environment import build_environment, ensure_cache_dirs
from crossbuild.errors import InvalidTargetError
from crossbuild.models import BuildConfig
from crossbuild.obfuscation import (
    LiteralPolicyTable,
    choose_policy,
    new_seed,
    obfuscator_flags,
    total_memory,
)
from crossbuild.observability import StructuredLogger
from crossbuild.runner import ProcessRunner, SubprocessRunner
from crossbuild.targets import TargetMatrix, TargetResolver, resolve_targets

CURRENT_PACKAGE = "."


def assemble_build_command(
    *,
    dest: str | Path,
    build_mode: str = "",
    tags: Sequence[str] = (),
    ldflags: Sequence[str] = (),
    gcflags: str = "",
    asmflags: str = "",
    trimpath: str = "",
) -> tuple[str, ...]:
    """Assemble the `go build` sub-command.

    `go build` takes one value per flag: tags are joined with commas and
    linker flags with spaces into a single argument.
    """
    command = ["build"]
    if trimpath:
        command.append(trimpath)
    if tags:
        command.extend(["-tags", ",".join(tags)])
    if ldflags:
        command.extend(["-ldflags", " ".join(ldflags)])
    if gcflags:
        command.append(f"-gcflags={gcflags}")
    if asmflags:
        command.append(f"-asmflags={asmflags}")
    if build_mode:
        command.append(f"-buildmode={build_mode}")
    command.extend(["-o", str(dest), CURRENT_PACKAGE])
    return tuple(command)


@dataclass(slots=True)
class Toolchain:
    """Entry point for compiling, module maintenance and version queries.

    Each call builds its own environment, seed and obfuscation policy, so a
    single instance may be shared between threads. Only the target matrix
    resolver may hold state across calls.
    """

    runner: ProcessRunner | None = None
    logger: StructuredLogger = field(default_factory=StructuredLogger)
    policy_table: LiteralPolicyTable = field(default_factory=LiteralPolicyTable)
    resolver: TargetResolver = resolve_targets
    seed_factory: Callable[[], str] = new_seed
    memory_probe: Callable[[], int] = total_memory
    timeout: float | None = None

    def __post_init__(self) -> None:
        if self.runner is None:
            self.runner = SubprocessRunner(logger=self.logger)

    def build(
        self,
        config: BuildConfig,
        *,
        dest: str | Path,
        build_mode: str = "",
        tags: Sequence[str] = (),
        ldflags: Sequence[str] = (),
        gcflags: str = "",
        asmflags: str = "",
        trimpath: str = "",
    ) -> bytes:
        """Compile the package in ``config.project_root`` and return the toolchain's stdout."""
        self._ensure_valid_target(config, operation="build")
        command = assemble_build_command(
            dest=dest,
            build_mode=build_mode,
            tags=tags,
            ldflags=ldflags,
            gcflags=gcflags,
            asmflags=asmflags,
            trimpath=trimpath,
        )
        if config.obfuscation:
            return self._run_obfuscator(config, command)
        return self._run(config, config.go_binary, command, target=str(config.target))

    def obfuscate(self, config: BuildConfig, command: Sequence[str]) -> bytes:
        """Run an arbitrary compiler sub-command through the obfuscator."""
        self._ensure_valid_target(config, operation="obfuscate")
        return self._run_obfuscator(config, tuple(command))

    def mod(self, config: BuildConfig, args: Sequence[str]) -> bytes:
        return self._run(config, config.go_binary, ("mod", *args), include_target=False)

    def version(self, config: BuildConfig) -> bytes:
        return self._run(config, config.go_binary, ("version",), include_target=False)

    def dist_list(self, config: BuildConfig) -> TargetMatrix:
        return resolve_targets(config, self._runner(), logger=self.logger)

    def _ensure_valid_target(self, config: BuildConfig, *, operation: str) -> None:
        target = str(config.target)
        matrix = self.resolver(config, self._runner(), logger=self.logger)
        if config.target in matrix:
            return
        self.logger.log(
            operation=operation,
            target=target,
            binary=None,
            level="error",
            message=f"Invalid compiler target: {target}",
        )
        raise InvalidTargetError(
            f"Invalid compiler target: {target}",
            hint="Pick an os/arch pair listed by `go tool dist list` for this toolchain.",
            context={
                "operation": operation,
                "target": target,
                "toolchain_root": str(config.toolchain_root),
                "known_targets": str(len(matrix)),
            },
        )

    def _run_obfuscator(self, config: BuildConfig, command: tuple[str, ...]) -> bytes:
        policy = choose_policy(
            self.policy_table,
            memory_probe=self.memory_probe,
            logger=self.logger,
        )
        flags = obfuscator_flags(self.seed_factory(), policy)
        return self._run(
            config,
            config.obfuscator_binary,
            (*flags, *command),
            target=str(config.target),
        )

    def _run(
        self,
        config: BuildConfig,
        binary: Path,
        args: tuple[str, ...],
        *,
        target: str | None = None,
        include_target: bool = True,
    ) -> bytes:
        ensure_cache_dirs(config)
        return self._runner().run(
            binary,
            args,
            cwd=config.project_root,
            env=build_environment(config, include_target=include_target),
            timeout=self.timeout,
            target=target,
        )

    def _runner(self) -> ProcessRunner:
        return cast(ProcessRunner, self.runner)
