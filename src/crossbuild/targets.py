"""Discovery of the os/arch pairs the installed toolchain can compile for."""

from __future__ import annotations

import threading
import time
from collections.abc import Callable, Iterable, Iterator
from dataclasses import dataclass, field

from crossbuild.environment import build_environment, ensure_cache_dirs
from crossbuild.errors import ToolchainError, ValidationError
from crossbuild.models import BuildConfig, Target
from crossbuild.observability import StructuredLogger
from crossbuild.runner import ProcessRunner

DIST_LIST_COMMAND = ("tool", "dist", "list")


@dataclass(frozen=True, slots=True)
class TargetMatrix:
    targets: frozenset[Target] = frozenset()

    def __contains__(self, item: object) -> bool:
        return item in self.targets

    def __iter__(self) -> Iterator[Target]:
        return iter(sorted(self.targets))

    def __len__(self) -> int:
        return len(self.targets)

    def oses(self) -> tuple[str, ...]:
        return tuple(sorted({target.os for target in self.targets}))

    def arches_for(self, os_name: str) -> tuple[str, ...]:
        return tuple(sorted(target.arch for target in self.targets if target.os == os_name))

    @classmethod
    def of(cls, targets: Iterable[Target | str]) -> TargetMatrix:
        return cls(
            frozenset(
                target if isinstance(target, Target) else Target.parse(target)
                for target in targets
            )
        )


def parse_dist_list(output: bytes | str) -> TargetMatrix:
    """Parse newline-delimited ``os/arch`` lines; malformed lines are skipped."""
    text = output.decode("utf-8", errors="replace") if isinstance(output, bytes) else output
    targets: set[Target] = set()
    for line in text.splitlines():
        if not line.strip():
            continue
        try:
            targets.add(Target.parse(line))
        except ValidationError:
            continue
    return TargetMatrix(frozenset(targets))


def resolve_targets(
    config: BuildConfig,
    runner: ProcessRunner,
    *,
    logger: StructuredLogger | None = None,
) -> TargetMatrix:
    """Ask the configured toolchain which targets it supports.

    Any failure to run the toolchain yields an empty matrix, so every
    target is rejected until the toolchain is reachable again.
    """
    ensure_cache_dirs(config)
    try:
        output = runner.run(
            config.go_binary,
            DIST_LIST_COMMAND,
            cwd=config.project_root,
            env=build_environment(config, include_target=False),
        )
    except ToolchainError as exc:
        if logger is not None:
            logger.log(
                operation="resolve_targets",
                target=None,
                binary=config.go_binary.name,
                level="error",
                message="Target discovery failed; treating target matrix as empty.",
                extra={"code": exc.code},
            )
        return TargetMatrix()

    matrix = parse_dist_list(output)
    if logger is not None:
        logger.log(
            operation="resolve_targets",
            target=None,
            binary=config.go_binary.name,
            message=f"Discovered {len(matrix)} compile targets.",
        )
    return matrix


TargetResolver = Callable[..., TargetMatrix]


@dataclass(slots=True)
class CachedTargetResolver:
    """``resolve_targets`` with a bounded time-to-live per toolchain setup.

    Empty matrices are never cached. ``ttl=0`` disables caching.
    """

    ttl: float = 300.0
    clock: Callable[[], float] = time.monotonic
    _entries: dict[tuple[str, ...], tuple[float, TargetMatrix]] = field(default_factory=dict)
    _lock: threading.Lock = field(default_factory=threading.Lock)

    def __call__(
        self,
        config: BuildConfig,
        runner: ProcessRunner,
        *,
        logger: StructuredLogger | None = None,
    ) -> TargetMatrix:
        key = self._key(config)
        now = self.clock()
        with self._lock:
            cached = self._entries.get(key)
            if cached is not None and now - cached[0] < self.ttl:
                return cached[1]

        matrix = resolve_targets(config, runner, logger=logger)
        if self.ttl > 0 and len(matrix) > 0:
            with self._lock:
                self._entries[key] = (now, matrix)
        return matrix

    def invalidate(self) -> None:
        with self._lock:
            self._entries.clear()

    @staticmethod
    def _key(config: BuildConfig) -> tuple[str, ...]:
        # GOOS/GOARCH do not influence `go tool dist list`.
        return (
            str(config.toolchain_root),
            str(config.project_root),
            str(config.build_cache_dir),
            str(config.module_cache_dir),
            config.module_proxy,
            config.private_modules,
            config.cgo or "",
            config.cc,
            config.cxx,
        )
