"""Tests for ExplorerConfig environment parsing and validation."""

from __future__ import annotations

import os
from pathlib import Path

import pytest

from kexplorer.core.errors import ConfigurationError
from kexplorer.infra.io.config import ExplorerConfig, parse_lib_list


def make_sdk(root: Path) -> dict[str, Path]:
    """Lay out placeholder tool files resembling an Android SDK install."""
    bin_dir = root / "bin"
    bin_dir.mkdir()
    paths: dict[str, Path] = {}
    for name in ("kotlinc", "java", "javap", "adb"):
        path = bin_dir / name
        path.write_text("#!/bin/sh\n")
        path.chmod(0o755)
        paths[name] = path

    build_tools = root / "build-tools" / "34.0.0"
    (build_tools / "lib").mkdir(parents=True)
    (build_tools / "dexdump").write_text("")
    (build_tools / "lib" / "d8.jar").write_text("")
    platform = root / "platforms" / "android-34"
    platform.mkdir(parents=True)
    (platform / "android.jar").write_text("")
    stdlib = root / "kotlin-stdlib.jar"
    stdlib.write_text("")

    paths["build_tools"] = build_tools
    paths["d8_jar"] = build_tools / "lib" / "d8.jar"
    paths["platform_jar"] = platform / "android.jar"
    paths["stdlib"] = stdlib
    return paths


def complete_config(paths: dict[str, Path], **overrides: object) -> ExplorerConfig:
    values: dict[str, object] = {
        "kotlinc": str(paths["kotlinc"]),
        "java": str(paths["java"]),
        "javap": str(paths["javap"]),
        "adb": str(paths["adb"]),
        "build_tools_dir": paths["build_tools"],
        "d8_jar": paths["d8_jar"],
        "platform_jar": paths["platform_jar"],
        "kotlin_libs": (paths["stdlib"],),
    }
    values.update(overrides)
    return ExplorerConfig(**values)  # type: ignore[arg-type]


class TestFromEnv:
    def test_defaults(self) -> None:
        config = ExplorerConfig.from_env()

        assert config.kotlinc == "kotlinc"
        assert config.java == "java"
        assert config.javap == "javap"
        assert config.adb == "adb"
        assert config.build_tools_dir is None
        assert config.d8_jar is None
        assert config.platform_jar is None
        assert config.kotlin_libs == ()
        assert config.stage_timeout is None
        assert config.private_workspaces is False
        assert config.workspace_dir == Path("/tmp/kexplorer-test-workspace")

    def test_reads_every_variable(
        self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path
    ) -> None:
        monkeypatch.setenv("KEXPLORER_KOTLINC", "/opt/kotlinc/bin/kotlinc")
        monkeypatch.setenv("KEXPLORER_BUILD_TOOLS", "/sdk/build-tools/34.0.0")
        monkeypatch.setenv("KEXPLORER_D8_JAR", "/sdk/d8.jar")
        monkeypatch.setenv("KEXPLORER_PLATFORM_JAR", "/sdk/android.jar")
        monkeypatch.setenv(
            "KEXPLORER_KOTLIN_LIBS", os.pathsep.join(["/libs/a.jar", "/libs/b.jar"])
        )
        monkeypatch.setenv("KEXPLORER_JAVA", "java17")
        monkeypatch.setenv("KEXPLORER_JAVAP", "javap17")
        monkeypatch.setenv("KEXPLORER_ADB", "/sdk/platform-tools/adb")
        monkeypatch.setenv("KEXPLORER_WORKSPACE", str(tmp_path))
        monkeypatch.setenv("KEXPLORER_STAGE_TIMEOUT", "45")
        monkeypatch.setenv("KEXPLORER_PRIVATE_WORKSPACES", "yes")

        config = ExplorerConfig.from_env()

        assert config.kotlinc == "/opt/kotlinc/bin/kotlinc"
        assert config.build_tools_dir == Path("/sdk/build-tools/34.0.0")
        assert config.d8_jar == Path("/sdk/d8.jar")
        assert config.platform_jar == Path("/sdk/android.jar")
        assert config.kotlin_libs == (Path("/libs/a.jar"), Path("/libs/b.jar"))
        assert config.java == "java17"
        assert config.javap == "javap17"
        assert config.adb == "/sdk/platform-tools/adb"
        assert config.workspace_dir == tmp_path
        assert config.stage_timeout == 45.0
        assert config.private_workspaces is True

    @pytest.mark.parametrize("raw", ["", "abc", "0", "-5"])
    def test_invalid_timeout_means_no_timeout(
        self, monkeypatch: pytest.MonkeyPatch, raw: str
    ) -> None:
        monkeypatch.setenv("KEXPLORER_STAGE_TIMEOUT", raw)
        assert ExplorerConfig.from_env().stage_timeout is None

    def test_blank_tool_falls_back_to_default(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("KEXPLORER_KOTLINC", "")
        assert ExplorerConfig.from_env().kotlinc == "kotlinc"


class TestParseLibList:
    def test_preserves_order_and_skips_blanks(self) -> None:
        raw = os.pathsep.join(["/b.jar", "", "/a.jar"])
        assert parse_lib_list(raw) == (Path("/b.jar"), Path("/a.jar"))

    @pytest.mark.parametrize("raw", [None, "", "   "])
    def test_empty(self, raw: str | None) -> None:
        assert parse_lib_list(raw) == ()


class TestValidate:
    def test_complete_config_has_no_problems(self, tmp_path: Path) -> None:
        config = complete_config(make_sdk(tmp_path))
        assert config.validate() == []

    def test_reports_unset_sdk_locations(self, tmp_path: Path) -> None:
        config = complete_config(
            make_sdk(tmp_path), build_tools_dir=None, d8_jar=None, platform_jar=None
        )
        errors = config.validate()

        assert "build-tools directory not set (KEXPLORER_BUILD_TOOLS)" in errors
        assert "d8 jar not set (KEXPLORER_D8_JAR)" in errors
        assert "platform jar not set (KEXPLORER_PLATFORM_JAR)" in errors

    def test_reports_missing_dexdump(self, tmp_path: Path) -> None:
        paths = make_sdk(tmp_path)
        (paths["build_tools"] / "dexdump").unlink()

        errors = complete_config(paths).validate()

        assert errors == [f"dexdump not found in {paths['build_tools']}"]

    def test_reports_missing_executable(self, tmp_path: Path) -> None:
        paths = make_sdk(tmp_path)
        missing = tmp_path / "nowhere" / "kotlinc"

        errors = complete_config(paths, kotlinc=str(missing)).validate()

        assert errors == [f"kotlinc not found: {missing}"]

    def test_bare_name_resolved_on_path(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        paths = make_sdk(tmp_path)
        monkeypatch.setenv("PATH", str(tmp_path / "bin"))

        config = complete_config(paths, kotlinc="kotlinc", adb="adb")

        assert config.validate() == []

    def test_reports_missing_library(self, tmp_path: Path) -> None:
        paths = make_sdk(tmp_path)
        missing = tmp_path / "gone.jar"

        errors = complete_config(paths, kotlin_libs=(missing,)).validate()

        assert errors == [f"library jar not found: {missing}"]


class TestToolPaths:
    def test_builds_tool_paths(self, tmp_path: Path) -> None:
        paths = make_sdk(tmp_path)
        tools = complete_config(paths).tool_paths()

        assert tools.kotlinc == paths["kotlinc"]
        assert tools.dexdump == paths["build_tools"] / "dexdump"
        assert tools.d8_jar == paths["d8_jar"]
        assert tools.platform_jar == paths["platform_jar"]
        assert tools.kotlin_libs == (paths["stdlib"],)
        assert tools.adb == str(paths["adb"])

    def test_raises_with_every_problem(self, tmp_path: Path) -> None:
        config = complete_config(make_sdk(tmp_path), d8_jar=None, platform_jar=None)

        with pytest.raises(ConfigurationError) as exc_info:
            config.tool_paths()

        assert len(exc_info.value.errors) == 2

    def test_kotlin_libs_list_is_frozen_to_tuple(self, tmp_path: Path) -> None:
        paths = make_sdk(tmp_path)
        config = complete_config(paths, kotlin_libs=[paths["stdlib"]])
        assert config.kotlin_libs == (paths["stdlib"],)


class TestToolLocations:
    def test_every_tool_found(self, tmp_path: Path) -> None:
        paths = make_sdk(tmp_path)
        locations = complete_config(paths).tool_locations()

        assert [label for label, _, _ in locations] == [
            "kotlinc",
            "java",
            "javap",
            "adb",
            "dexdump",
            "d8 jar",
            "platform jar",
            "library",
        ]
        assert all(found for _, _, found in locations)
        assert ("dexdump", str(paths["build_tools"] / "dexdump"), True) in locations

    def test_marks_each_missing_tool(self, tmp_path: Path) -> None:
        paths = make_sdk(tmp_path)
        missing_adb = tmp_path / "nowhere" / "adb"
        config = complete_config(paths, adb=str(missing_adb), platform_jar=None)

        found = {label: ok for label, _, ok in config.tool_locations()}

        assert found["adb"] is False
        assert found["platform jar"] is False
        assert found["kotlinc"] is True
        assert ("platform jar", "-", False) in config.tool_locations()
