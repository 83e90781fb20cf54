import json
from pathlib import Path

from helpers import FakeRunner

from crossbuild.models import BuildConfig
from crossbuild.observability import StructuredLogger
from crossbuild.toolchain import Toolchain


def test_records_can_be_filtered_and_exported(tmp_path: Path) -> None:
    logger = StructuredLogger()
    logger.log(operation="build", target="linux/amd64", binary="go", message="toolchain command")
    logger.log(
        operation="build",
        target="windows/amd64",
        binary="garble",
        message="garble exited with status 1.",
        level="error",
        extra={"stderr": "boom"},
    )

    assert [record["binary"] for record in logger.records_for_target("linux/amd64")] == ["go"]
    assert [record["extra"] for record in logger.errors()] == [{"stderr": "boom"}]

    path = logger.to_json_lines(tmp_path / "logs" / "build.jsonl")
    lines = [json.loads(line) for line in path.read_text(encoding="utf-8").splitlines()]
    assert lines == logger.records
    assert "extra" not in lines[0]


def test_toolchain_logs_policy_and_discovery(
    build_config: BuildConfig,
    fake_runner: FakeRunner,
) -> None:
    toolchain = Toolchain(runner=fake_runner, memory_probe=lambda: 8 * 1024**3)
    config = BuildConfig(
        project_root=build_config.project_root,
        target_os="linux",
        target_arch="arm64",
        toolchain_root=build_config.toolchain_root,
        build_cache_dir=build_config.build_cache_dir,
        module_cache_dir=build_config.module_cache_dir,
        obfuscation=True,
    )

    toolchain.build(config, dest="out")

    operations = [record["operation"] for record in toolchain.logger.records]
    assert operations == ["resolve_targets", "choose_policy"]
    assert toolchain.logger.records[1]["extra"]["max_literal_size"] == 65536
