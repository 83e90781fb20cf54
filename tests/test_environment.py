import os
from dataclasses import replace

import pytest

from crossbuild.environment import build_environment, ensure_cache_dirs, environment_mapping
from crossbuild.models import BuildConfig


def test_environment_sets_every_toolchain_variable_from_config(build_config: BuildConfig) -> None:
    config = replace(build_config, cgo="1", cc="x86_64-w64-mingw32-gcc", cxx="x86_64-w64-mingw32-g++")
    env = environment_mapping(build_environment(config, path="/usr/bin:/bin"))

    assert env == {
        "CC": "x86_64-w64-mingw32-gcc",
        "CXX": "x86_64-w64-mingw32-g++",
        "CGO_ENABLED": "1",
        "GOOS": "linux",
        "GOARCH": "amd64",
        "GOPATH": str(config.project_root),
        "GOCACHE": str(config.build_cache_dir),
        "GOMODCACHE": str(config.module_cache_dir),
        "GOPRIVATE": "example.com/private/*",
        "GOPROXY": "https://proxy.golang.org,direct",
        "PATH": f"{config.toolchain_root / 'bin'}{os.pathsep}/usr/bin:/bin",
    }


def test_environment_omits_unset_cgo_and_native_compilers(build_config: BuildConfig) -> None:
    env = environment_mapping(build_environment(build_config, path="/usr/bin"))

    assert "CGO_ENABLED" not in env
    assert "CC" not in env
    assert "CXX" not in env

    disabled = environment_mapping(build_environment(replace(build_config, cgo="0"), path=""))
    assert disabled["CGO_ENABLED"] == "0"
    assert disabled["PATH"] == str(build_config.toolchain_root / "bin")


def test_environment_does_not_leak_parent_variables(
    build_config: BuildConfig,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.setenv("GOOS", "plan9")
    monkeypatch.setenv("GOFLAGS", "-mod=vendor")
    monkeypatch.setenv("HOME", "/home/leak")
    monkeypatch.setenv("PATH", "/usr/local/bin:/usr/bin")

    entries = build_environment(build_config)
    env = environment_mapping(entries)

    assert all("=" in entry for entry in entries)
    assert env["GOOS"] == "linux"
    assert "GOFLAGS" not in env
    assert "HOME" not in env
    assert set(env) == {
        "GOOS",
        "GOARCH",
        "GOPATH",
        "GOCACHE",
        "GOMODCACHE",
        "GOPRIVATE",
        "GOPROXY",
        "PATH",
    }
    assert env["PATH"].startswith(str(build_config.toolchain_root / "bin") + os.pathsep)
    assert env["PATH"].endswith("/usr/local/bin:/usr/bin")


def test_environment_is_ordered_and_deterministic(build_config: BuildConfig) -> None:
    first = build_environment(build_config, path="/bin")
    second = build_environment(build_config, path="/bin")

    assert first == second
    assert first[-1].startswith("PATH=")


def test_ensure_cache_dirs_is_idempotent(build_config: BuildConfig) -> None:
    ensure_cache_dirs(build_config)
    ensure_cache_dirs(build_config)

    for path in (build_config.build_cache_dir, build_config.module_cache_dir):
        assert path.is_dir()
        assert path.stat().st_mode & 0o777 == 0o700 & ~_umask()


def _umask() -> int:
    current = os.umask(0)
    os.umask(current)
    return current


def test_environment_mapping_keeps_values_with_equals() -> None:
    assert environment_mapping(("GOFLAGS=-ldflags=-s",)) == {"GOFLAGS": "-ldflags=-s"}
    assert environment_mapping([]) == {}


def test_environment_can_leave_target_to_host_defaults(build_config: BuildConfig) -> None:
    env = environment_mapping(build_environment(build_config, path="/bin", include_target=False))

    assert "GOOS" not in env
    assert "GOARCH" not in env
    assert env["GOMODCACHE"] == str(build_config.module_cache_dir)
