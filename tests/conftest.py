"""Shared test fixtures."""

from __future__ import annotations

from pathlib import Path

import pytest
from helpers import FakeRunner

from crossbuild.models import BuildConfig


@pytest.fixture
def fake_runner() -> FakeRunner:
    return FakeRunner()


@pytest.fixture
def build_config(tmp_path: Path) -> BuildConfig:
    project = tmp_path / "project"
    project.mkdir()
    return BuildConfig(
        project_root=project,
        target_os="linux",
        target_arch="amd64",
        toolchain_root=tmp_path / "go",
        build_cache_dir=tmp_path / "go" / "cache",
        module_cache_dir=tmp_path / "go" / "modcache",
        module_proxy="https://proxy.golang.org,direct",
        private_modules="example.com/private/*",
    )
