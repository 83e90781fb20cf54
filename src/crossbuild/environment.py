"""Isolated environment construction for toolchain invocations.

The child process never inherits the parent environment wholesale. Only
``PATH`` is carried over, with the toolchain's ``bin`` directory prepended
so the configured compiler wins over anything else installed on the host.
"""

from __future__ import annotations

import os

from crossbuild.models import BuildConfig, ensure_private_dir


def build_environment(
    config: BuildConfig,
    *,
    path: str | None = None,
    include_target: bool = True,
) -> tuple[str, ...]:
    """Return the complete ``KEY=VALUE`` environment for one invocation.

    ``path`` overrides the inherited ``PATH`` value (mostly for tests).
    ``include_target=False`` leaves GOOS/GOARCH to the toolchain's host
    defaults; used by target discovery and by module/version commands,
    which never validate the target.
    """
    inherited_path = os.environ.get("PATH", "") if path is None else path
    search_path = str(config.bin_dir)
    if inherited_path:
        search_path = f"{search_path}{os.pathsep}{inherited_path}"

    env: list[tuple[str, str]] = []
    if config.cc:
        env.append(("CC", config.cc))
    if config.cxx:
        env.append(("CXX", config.cxx))
    if config.cgo is not None:
        env.append(("CGO_ENABLED", config.cgo))
    if include_target:
        env.extend([("GOOS", config.target_os), ("GOARCH", config.target_arch)])
    env.extend(
        [
            ("GOPATH", str(config.project_root)),
            ("GOCACHE", str(config.build_cache_dir)),
            ("GOMODCACHE", str(config.module_cache_dir)),
            ("GOPRIVATE", config.private_modules),
            ("GOPROXY", config.module_proxy),
            ("PATH", search_path),
        ]
    )
    return tuple(f"{key}={value}" for key, value in env)


def environment_mapping(env: tuple[str, ...] | list[str]) -> dict[str, str]:
    mapping: dict[str, str] = {}
    for entry in env:
        key, _, value = entry.partition("=")
        mapping[key] = value
    return mapping


def ensure_cache_dirs(config: BuildConfig) -> None:
    ensure_private_dir(config.build_cache_dir)
    ensure_private_dir(config.module_cache_dir)
