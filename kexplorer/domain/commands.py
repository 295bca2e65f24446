"""Argument vectors for each pipeline stage.

Pure functions over ToolPaths and the workspace contents. File arguments
are relative to the workspace, which is every stage's working directory.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from kexplorer.domain.workspace import RULES_FILE_NAME

if TYPE_CHECKING:
    from kexplorer.core.models import ToolPaths
    from kexplorer.domain.workspace import Workspace

R8_MAIN_CLASS = "com.android.tools.r8.R8"
DEX_FILE_NAME = "classes.dex"
DEVICE_DEX_PATH = "/sdcard/classes.dex"
DEVICE_OAT_PATH = "/sdcard/classes.oat"


def build_kotlinc_command(tools: ToolPaths, workspace: Workspace) -> list[str]:
    return [str(tools.kotlinc), str(workspace.source_path)]


def build_javap_command(tools: ToolPaths, workspace: Workspace) -> list[str]:
    """javap listing private members (-p), line tables (-l) and code (-c)."""
    return [tools.javap, "-p", "-l", "-c", *workspace.class_files()]


def build_r8_command(tools: ToolPaths, workspace: Workspace) -> list[str]:
    """R8 release build of every class file against the platform and libraries.

    One --lib per jar: the platform first, then each library in configured
    order, all before the sorted class files.
    """
    command = [
        tools.java,
        "-classpath",
        str(tools.d8_jar),
        R8_MAIN_CLASS,
        "--release",
        "--pg-conf",
        RULES_FILE_NAME,
        "--output",
        ".",
        "--lib",
        str(tools.platform_jar),
    ]
    for jar in tools.kotlin_libs:
        command += ["--lib", str(jar)]
    command.extend(workspace.class_files())
    return command


def build_dexdump_command(tools: ToolPaths) -> list[str]:
    return [str(tools.dexdump), "-d", DEX_FILE_NAME]


def build_push_command(tools: ToolPaths) -> list[str]:
    return [tools.adb, "push", DEX_FILE_NAME, DEVICE_DEX_PATH]


def build_dex2oat_command(tools: ToolPaths) -> list[str]:
    return [
        tools.adb,
        "shell",
        "dex2oat",
        f"--dex-file={DEVICE_DEX_PATH}",
        f"--oat-file={DEVICE_OAT_PATH}",
    ]


def build_oatdump_command(tools: ToolPaths) -> list[str]:
    return [tools.adb, "shell", "oatdump", f"--oat-file={DEVICE_OAT_PATH}"]
