"""Pytest configuration for kexplorer tests."""

import os
from pathlib import Path

import pytest

from kexplorer.core.models import ToolPaths


def pytest_configure(config: pytest.Config) -> None:
    """Configure test environment before collection.

    Redirects the default workspace to /tmp so tests never touch a
    developer's real workspace, and clears tool overrides from the
    environment so config tests start from defaults.
    """
    os.environ["KEXPLORER_WORKSPACE"] = "/tmp/kexplorer-test-workspace"
    for key in list(os.environ):
        if key.startswith("KEXPLORER_") and key != "KEXPLORER_WORKSPACE":
            os.environ.pop(key)


def pytest_collection_modifyitems(
    config: pytest.Config, items: list[pytest.Item]
) -> None:
    """Default unmarked tests to unit category."""
    for item in items:
        if any(marker in item.keywords for marker in ("unit", "integration")):
            continue
        item.add_marker(pytest.mark.unit)


@pytest.fixture
def tool_paths(tmp_path: Path) -> ToolPaths:
    """ToolPaths pointing at placeholder locations; fakes never execute them."""
    sdk = tmp_path / "sdk"
    return ToolPaths(
        kotlinc=Path("/opt/kotlinc/bin/kotlinc"),
        build_tools_dir=sdk / "build-tools" / "34.0.0",
        d8_jar=sdk / "build-tools" / "34.0.0" / "lib" / "d8.jar",
        platform_jar=sdk / "platforms" / "android-34" / "android.jar",
        kotlin_libs=(
            Path("/opt/kotlinc/lib/kotlin-stdlib.jar"),
            Path("/opt/kotlinc/lib/annotations-13.0.jar"),
        ),
    )
