"""Obfuscator tuning derived from host memory, plus per-build seeds.

Literal obfuscation is memory hungry: the obfuscator keeps every rewritten
literal in memory while compiling. The size cap for obfuscated literals is
therefore a step function of total host memory, read fresh for every build.
"""

from __future__ import annotations

import secrets
from collections.abc import Callable
from dataclasses import dataclass

import psutil

from crossbuild.errors import ValidationError
from crossbuild.observability import StructuredLogger

KB = 1024
MB = 1024 * KB
GB = 1024 * MB

SEED_BYTES = 32


@dataclass(frozen=True, slots=True)
class LiteralPolicyTable:
    low_memory_threshold: int = 6 * GB
    high_memory_threshold: int = 10 * GB
    low_cap: int = 2 * KB
    mid_cap: int = 64 * KB
    high_cap: int = 512 * KB

    def __post_init__(self) -> None:
        values = {
            "low_memory_threshold": self.low_memory_threshold,
            "high_memory_threshold": self.high_memory_threshold,
            "low_cap": self.low_cap,
            "mid_cap": self.mid_cap,
            "high_cap": self.high_cap,
        }
        negative = [name for name, value in values.items() if value < 0]
        if negative:
            raise ValidationError(
                "Literal policy values must be non-negative.",
                context={"fields": ", ".join(negative)},
            )
        if self.low_memory_threshold > self.high_memory_threshold:
            raise ValidationError(
                "low_memory_threshold must not exceed high_memory_threshold.",
                context={
                    "low_memory_threshold": str(self.low_memory_threshold),
                    "high_memory_threshold": str(self.high_memory_threshold),
                },
            )
        if not self.low_cap <= self.mid_cap <= self.high_cap:
            raise ValidationError(
                "Literal size caps must be ordered low_cap <= mid_cap <= high_cap.",
                hint="Larger hosts must never receive a smaller cap than smaller hosts.",
                context={
                    "low_cap": str(self.low_cap),
                    "mid_cap": str(self.mid_cap),
                    "high_cap": str(self.high_cap),
                },
            )

    def cap_for(self, memory: int) -> int:
        if memory < self.low_memory_threshold:
            return self.low_cap
        if memory > self.high_memory_threshold:
            return self.high_cap
        return self.mid_cap


@dataclass(frozen=True, slots=True)
class ObfuscationPolicy:
    literals: bool
    max_literal_size: int

    @classmethod
    def with_cap(cls, cap: int) -> ObfuscationPolicy:
        return cls(literals=cap > 0, max_literal_size=cap)


def total_memory() -> int:
    return int(psutil.virtual_memory().total)


def choose_policy(
    table: LiteralPolicyTable | None = None,
    *,
    memory_probe: Callable[[], int] = total_memory,
    logger: StructuredLogger | None = None,
) -> ObfuscationPolicy:
    """Pick literal obfuscation settings for the current host.

    A failing memory probe degrades to the most conservative cap instead
    of failing the build.
    """
    table = table or LiteralPolicyTable()
    try:
        memory = int(memory_probe())
    except Exception as exc:
        if logger is not None:
            logger.log(
                operation="choose_policy",
                target=None,
                binary=None,
                level="error",
                message=f"Failed to detect system memory: {exc}",
                extra={"fallback_cap": table.low_cap},
            )
        return ObfuscationPolicy.with_cap(table.low_cap)

    policy = ObfuscationPolicy.with_cap(table.cap_for(memory))
    if logger is not None:
        logger.log(
            operation="choose_policy",
            target=None,
            binary=None,
            message=f"{memory // MB} MiB of system memory, literal size cap {policy.max_literal_size}",
            extra={"memory": memory, "max_literal_size": policy.max_literal_size},
        )
    return policy


def new_seed() -> str:
    return secrets.token_hex(SEED_BYTES)


def obfuscator_flags(seed: str, policy: ObfuscationPolicy) -> tuple[str, ...]:
    flags = [f"-seed={seed}"]
    if policy.literals:
        flags.extend(["-literals", f"-literals-max-size={policy.max_literal_size}"])
    return tuple(flags)
