"""Fixtures for integration tests that spawn real processes."""

from __future__ import annotations

import sys
from typing import TYPE_CHECKING

import pytest

from tests.fakes.toolchain import FakeToolchain, build_fake_toolchain

if TYPE_CHECKING:
    from pathlib import Path


@pytest.fixture
def fake_toolchain(tmp_path: Path) -> FakeToolchain:
    if sys.platform == "win32":
        pytest.skip("fake toolchain uses POSIX shell scripts")
    return build_fake_toolchain(tmp_path / "toolchain")
