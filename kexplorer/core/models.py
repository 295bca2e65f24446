"""Shared domain-agnostic dataclasses for kexplorer.

Types:
- ToolPaths: Locations of the external toolchain used by one pipeline run
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path


@dataclass(frozen=True)
class ToolPaths:
    """Locations of the external tools driven by the pipeline.

    Supplied by the caller and immutable for the duration of a run. The
    orchestrator never discovers or validates these itself.

    Attributes:
        kotlinc: Path to the Kotlin compiler launcher.
        build_tools_dir: Android SDK build-tools directory (holds dexdump).
        d8_jar: Jar containing the R8 optimizer main class.
        platform_jar: Android platform library (android.jar).
        kotlin_libs: Additional library jars, passed to R8 in this order.
        java: Java launcher used to run R8.
        javap: Bytecode disassembler.
        adb: Android Debug Bridge used for the on-device stages.
    """

    kotlinc: Path
    build_tools_dir: Path
    d8_jar: Path
    platform_jar: Path
    kotlin_libs: tuple[Path, ...] = field(default_factory=tuple)
    java: str = "java"
    javap: str = "javap"
    adb: str = "adb"

    def __post_init__(self) -> None:
        if isinstance(self.kotlin_libs, list):
            object.__setattr__(self, "kotlin_libs", tuple(self.kotlin_libs))

    @property
    def dexdump(self) -> Path:
        """Path to the dexdump binary inside the build-tools directory."""
        return self.build_tools_dir / "dexdump"
