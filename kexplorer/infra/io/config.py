"""Configuration dataclass for kexplorer.

Provides ExplorerConfig for centralized configuration management. This allows
programmatic users to construct configuration without relying on environment
variables, while CLI users can continue using env vars via from_env().

Environment Variables:
    KEXPLORER_KOTLINC: Path to the kotlinc launcher (default: kotlinc on PATH)
    KEXPLORER_BUILD_TOOLS: Android SDK build-tools directory (holds dexdump)
    KEXPLORER_D8_JAR: Jar containing com.android.tools.r8.R8
    KEXPLORER_PLATFORM_JAR: Android platform library (android.jar)
    KEXPLORER_KOTLIN_LIBS: Extra library jars for R8, os.pathsep separated
    KEXPLORER_JAVA: Java launcher (default: java)
    KEXPLORER_JAVAP: Bytecode disassembler (default: javap)
    KEXPLORER_ADB: Android Debug Bridge (default: adb)
    KEXPLORER_WORKSPACE: Workspace directory (default: <tmp>/kotlin-explorer)
    KEXPLORER_STAGE_TIMEOUT: Per-stage timeout in seconds (default: none)
    KEXPLORER_PRIVATE_WORKSPACES: Give each run its own directory (default: false)
"""

from __future__ import annotations

import os
import shutil
from dataclasses import dataclass, field
from pathlib import Path

from kexplorer.core.errors import ConfigurationError
from kexplorer.core.models import ToolPaths
from kexplorer.infra.tools.env import get_workspace_dir


def _safe_float(value: str | None) -> float | None:
    """Parse a positive float, treating blanks and garbage as unset."""
    if value is None or not value.strip():
        return None
    try:
        parsed = float(value)
    except ValueError:
        return None
    return parsed if parsed > 0 else None


def _parse_bool(value: str | None) -> bool:
    if value is None:
        return False
    return value.strip().lower() in ("1", "true", "yes", "on")


def parse_lib_list(raw: str | None) -> tuple[Path, ...]:
    """Split an os.pathsep separated list of jars, preserving order."""
    if not raw or not raw.strip():
        return ()
    return tuple(Path(part) for part in raw.split(os.pathsep) if part.strip())


def _optional_path(value: str | None) -> Path | None:
    if value is None or not value.strip():
        return None
    return Path(value).expanduser()


def _resolve_executable(name: str) -> str | None:
    """Resolve a bare command name via PATH, or check an explicit path."""
    if os.sep in name or (os.altsep and os.altsep in name):
        return name if Path(name).is_file() else None
    return shutil.which(name)


@dataclass(frozen=True)
class ExplorerConfig:
    """Centralized configuration for the kexplorer pipeline.

    Attributes:
        kotlinc: Kotlin compiler launcher.
            Env: KEXPLORER_KOTLINC (default: kotlinc on PATH)
        build_tools_dir: Android build-tools directory.
            Env: KEXPLORER_BUILD_TOOLS (required)
        d8_jar: R8/D8 jar.
            Env: KEXPLORER_D8_JAR (required)
        platform_jar: android.jar for the target platform.
            Env: KEXPLORER_PLATFORM_JAR (required)
        kotlin_libs: Additional library jars, in the order passed to R8.
            Env: KEXPLORER_KOTLIN_LIBS
        java, javap, adb: Executables, names resolved via PATH.
        workspace_dir: Directory runs operate in.
            Env: KEXPLORER_WORKSPACE
        stage_timeout: Seconds before a stage is killed; None waits forever.
            Env: KEXPLORER_STAGE_TIMEOUT
        private_workspaces: Create a fresh directory under workspace_dir for
            every run instead of reusing workspace_dir itself.
            Env: KEXPLORER_PRIVATE_WORKSPACES

    Example:
        config = ExplorerConfig(
            build_tools_dir=Path("/sdk/build-tools/34.0.0"),
            d8_jar=Path("/sdk/build-tools/34.0.0/lib/d8.jar"),
            platform_jar=Path("/sdk/platforms/android-34/android.jar"),
        )
        tools = config.tool_paths()
    """

    kotlinc: str = "kotlinc"
    build_tools_dir: Path | None = None
    d8_jar: Path | None = None
    platform_jar: Path | None = None
    kotlin_libs: tuple[Path, ...] = field(default_factory=tuple)
    java: str = "java"
    javap: str = "javap"
    adb: str = "adb"

    workspace_dir: Path = field(default_factory=get_workspace_dir)
    stage_timeout: float | None = None
    private_workspaces: bool = False

    def __post_init__(self) -> None:
        if isinstance(self.kotlin_libs, list):
            object.__setattr__(self, "kotlin_libs", tuple(self.kotlin_libs))

    @classmethod
    def from_env(cls) -> ExplorerConfig:
        """Create config by reading KEXPLORER_* environment variables."""
        return cls(
            kotlinc=os.environ.get("KEXPLORER_KOTLINC") or "kotlinc",
            build_tools_dir=_optional_path(os.environ.get("KEXPLORER_BUILD_TOOLS")),
            d8_jar=_optional_path(os.environ.get("KEXPLORER_D8_JAR")),
            platform_jar=_optional_path(os.environ.get("KEXPLORER_PLATFORM_JAR")),
            kotlin_libs=parse_lib_list(os.environ.get("KEXPLORER_KOTLIN_LIBS")),
            java=os.environ.get("KEXPLORER_JAVA") or "java",
            javap=os.environ.get("KEXPLORER_JAVAP") or "javap",
            adb=os.environ.get("KEXPLORER_ADB") or "adb",
            workspace_dir=get_workspace_dir(),
            stage_timeout=_safe_float(os.environ.get("KEXPLORER_STAGE_TIMEOUT")),
            private_workspaces=_parse_bool(
                os.environ.get("KEXPLORER_PRIVATE_WORKSPACES")
            ),
        )

    def validate(self) -> list[str]:
        """Check that every configured tool exists.

        Returns:
            List of problems; empty when the configuration is usable.
        """
        errors: list[str] = []

        for label, name in (
            ("kotlinc", self.kotlinc),
            ("java", self.java),
            ("javap", self.javap),
            ("adb", self.adb),
        ):
            if _resolve_executable(name) is None:
                errors.append(f"{label} not found: {name}")

        if self.build_tools_dir is None:
            errors.append("build-tools directory not set (KEXPLORER_BUILD_TOOLS)")
        elif not self.build_tools_dir.is_dir():
            errors.append(f"build-tools directory not found: {self.build_tools_dir}")
        elif not (self.build_tools_dir / "dexdump").is_file():
            errors.append(f"dexdump not found in {self.build_tools_dir}")

        for label, env_name, jar in (
            ("d8 jar", "KEXPLORER_D8_JAR", self.d8_jar),
            ("platform jar", "KEXPLORER_PLATFORM_JAR", self.platform_jar),
        ):
            if jar is None:
                errors.append(f"{label} not set ({env_name})")
            elif not jar.is_file():
                errors.append(f"{label} not found: {jar}")

        for lib in self.kotlin_libs:
            if not lib.is_file():
                errors.append(f"library jar not found: {lib}")

        return errors

    def tool_locations(self) -> list[tuple[str, str, bool]]:
        """Every configured tool as (label, location, found).

        Unset SDK locations are reported as "-" and not found.
        """
        rows = [
            (label, name, _resolve_executable(name) is not None)
            for label, name in (
                ("kotlinc", self.kotlinc),
                ("java", self.java),
                ("javap", self.javap),
                ("adb", self.adb),
            )
        ]
        dexdump = (
            self.build_tools_dir / "dexdump" if self.build_tools_dir is not None else None
        )
        for label, path in (
            ("dexdump", dexdump),
            ("d8 jar", self.d8_jar),
            ("platform jar", self.platform_jar),
        ):
            if path is None:
                rows.append((label, "-", False))
            else:
                rows.append((label, str(path), path.is_file()))
        rows.extend(("library", str(lib), lib.is_file()) for lib in self.kotlin_libs)
        return rows

    def tool_paths(self) -> ToolPaths:
        """Build the immutable ToolPaths handed to the pipeline.

        Raises:
            ConfigurationError: If validate() reports any problem.
        """
        errors = self.validate()
        if errors:
            raise ConfigurationError(errors)
        # validate() guarantees these are set
        assert self.build_tools_dir is not None
        assert self.d8_jar is not None
        assert self.platform_jar is not None
        return ToolPaths(
            kotlinc=Path(self.kotlinc),
            build_tools_dir=self.build_tools_dir,
            d8_jar=self.d8_jar,
            platform_jar=self.platform_jar,
            kotlin_libs=self.kotlin_libs,
            java=self.java,
            javap=self.javap,
            adb=self.adb,
        )
