"""Core typed dataclasses for build configuration and compile targets."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Literal

from crossbuild.errors import ValidationError

CgoMode = Literal["1", "0"] | None

GO_DIR_NAME = "go"
GO_BINARY = "go"
OBFUSCATOR_BINARY = "garble"
CACHE_DIR_MODE = 0o700


@dataclass(frozen=True, slots=True, order=True)
class Target:
    os: str
    arch: str

    def __str__(self) -> str:
        return f"{self.os}/{self.arch}"

    @classmethod
    def parse(cls, value: str) -> Target:
        """Parse an ``os/arch`` pair as printed by ``go tool dist list``."""
        os_name, sep, arch = value.strip().partition("/")
        if not sep or not os_name or not arch or "/" in arch:
            raise ValidationError(
                "Malformed compile target.",
                hint="Targets are written as `os/arch`, e.g. `linux/amd64`.",
                context={"target": value},
            )
        return cls(os=os_name, arch=arch)


@dataclass(frozen=True, slots=True)
class BuildConfig:
    """Per-invocation toolchain configuration.

    Every variable the child toolchain sees is derived from these fields;
    nothing is read from the ambient process environment except ``PATH``.
    """

    project_root: Path
    target_os: str
    target_arch: str
    toolchain_root: Path
    build_cache_dir: Path
    module_cache_dir: Path
    module_proxy: str = ""
    private_modules: str = ""
    cgo: CgoMode = None
    cc: str = ""
    cxx: str = ""
    obfuscation: bool = False

    def __post_init__(self) -> None:
        if self.cgo not in ("1", "0", None):
            raise ValidationError(
                "Unsupported cgo mode.",
                hint="Use '1', '0', or None to leave CGO_ENABLED unset.",
                context={"cgo": str(self.cgo)},
            )
        if not self.target_os or not self.target_arch:
            raise ValidationError(
                "BuildConfig requires both target_os and target_arch.",
                context={"target_os": self.target_os, "target_arch": self.target_arch},
            )

    @property
    def target(self) -> Target:
        return Target(os=self.target_os, arch=self.target_arch)

    @property
    def bin_dir(self) -> Path:
        return self.toolchain_root / "bin"

    @property
    def go_binary(self) -> Path:
        return self.bin_dir / GO_BINARY

    @property
    def obfuscator_binary(self) -> Path:
        return self.bin_dir / OBFUSCATOR_BINARY

    @classmethod
    def for_app_dir(
        cls,
        app_dir: str | Path,
        *,
        project_root: str | Path,
        target_os: str,
        target_arch: str,
        module_proxy: str = "",
        private_modules: str = "",
        cgo: CgoMode = None,
        cc: str = "",
        cxx: str = "",
        obfuscation: bool = False,
    ) -> BuildConfig:
        """Build a config using the standard ``<app_dir>/go`` toolchain layout."""
        return cls(
            project_root=Path(project_root),
            target_os=target_os,
            target_arch=target_arch,
            toolchain_root=go_root_dir(app_dir),
            build_cache_dir=go_cache_dir(app_dir),
            module_cache_dir=go_mod_cache_dir(app_dir),
            module_proxy=module_proxy,
            private_modules=private_modules,
            cgo=cgo,
            cc=cc,
            cxx=cxx,
            obfuscation=obfuscation,
        )


def go_root_dir(app_dir: str | Path) -> Path:
    return Path(app_dir) / GO_DIR_NAME


def go_cache_dir(app_dir: str | Path) -> Path:
    return ensure_private_dir(go_root_dir(app_dir) / "cache")


def go_mod_cache_dir(app_dir: str | Path) -> Path:
    return ensure_private_dir(go_root_dir(app_dir) / "modcache")


def ensure_private_dir(path: Path) -> Path:
    """Create ``path`` (owner-only permissions) if it does not exist yet."""
    path.mkdir(mode=CACHE_DIR_MODE, parents=True, exist_ok=True)
    return path
