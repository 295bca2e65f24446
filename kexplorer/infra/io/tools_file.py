"""YAML loader for tool location files.

A tools file lets a user pin tool locations per machine instead of
exporting KEXPLORER_* variables. It is strictly validated: unknown keys
and wrong types are rejected with a message naming the field.

Example kexplorer-tools.yaml:

    kotlinc: /opt/kotlinc/bin/kotlinc
    build_tools_dir: ~/Android/Sdk/build-tools/34.0.0
    d8_jar: ~/Android/Sdk/build-tools/34.0.0/lib/d8.jar
    platform_jar: ~/Android/Sdk/platforms/android-34/android.jar
    kotlin_libs:
      - /opt/kotlinc/lib/kotlin-stdlib.jar
    stage_timeout: 120
"""

from __future__ import annotations

from dataclasses import replace
from pathlib import Path
from typing import TYPE_CHECKING, Any

import yaml

if TYPE_CHECKING:
    from kexplorer.infra.io.config import ExplorerConfig


class ToolsFileError(Exception):
    """Raised when a tools file is missing, unparsable or invalid."""


_PATH_FIELDS = frozenset({"build_tools_dir", "d8_jar", "platform_jar", "workspace_dir"})
_STR_FIELDS = frozenset({"kotlinc", "java", "javap", "adb"})
_ALLOWED_FIELDS = _PATH_FIELDS | _STR_FIELDS | {
    "kotlin_libs",
    "stage_timeout",
    "private_workspaces",
}


def parse_yaml(content: str) -> dict[str, Any]:
    """Parse tools file content into a dict.

    Raises:
        ToolsFileError: If the YAML is malformed or not a mapping.
    """
    try:
        data = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise ToolsFileError(f"Invalid YAML syntax: {e}") from e
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ToolsFileError(
            f"Tools file must be a mapping, got {type(data).__name__}"
        )
    return data


def build_overrides(data: dict[str, Any]) -> dict[str, Any]:
    """Validate parsed data and convert it to ExplorerConfig field values.

    Raises:
        ToolsFileError: On unknown keys or wrongly typed values.
    """
    unknown = sorted(str(key) for key in data if key not in _ALLOWED_FIELDS)
    if unknown:
        raise ToolsFileError(f"Unknown field(s) in tools file: {', '.join(unknown)}")

    overrides: dict[str, Any] = {}
    for key, value in data.items():
        if value is None:
            continue
        if key in _PATH_FIELDS:
            if not isinstance(value, str):
                raise ToolsFileError(f"{key} must be a string path")
            overrides[key] = Path(value).expanduser()
        elif key in _STR_FIELDS:
            if not isinstance(value, str):
                raise ToolsFileError(f"{key} must be a string")
            overrides[key] = str(Path(value).expanduser()) if "/" in value else value
        elif key == "kotlin_libs":
            if not isinstance(value, list) or not all(
                isinstance(item, str) for item in value
            ):
                raise ToolsFileError("kotlin_libs must be a list of string paths")
            overrides[key] = tuple(Path(item).expanduser() for item in value)
        elif key == "stage_timeout":
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise ToolsFileError("stage_timeout must be a number of seconds")
            if value <= 0:
                raise ToolsFileError("stage_timeout must be positive")
            overrides[key] = float(value)
        elif key == "private_workspaces":
            if not isinstance(value, bool):
                raise ToolsFileError("private_workspaces must be true or false")
            overrides[key] = value
    return overrides


def load_tools_file(path: Path, base: ExplorerConfig) -> ExplorerConfig:
    """Load a tools file and apply it over an existing configuration.

    Args:
        path: Location of the YAML file.
        base: Configuration the file's values override (usually from_env()).

    Returns:
        A new ExplorerConfig with the file's values applied.

    Raises:
        ToolsFileError: If the file is missing or invalid.
    """
    if not path.is_file():
        raise ToolsFileError(f"Tools file not found: {path}")
    try:
        content = path.read_text()
    except OSError as e:
        raise ToolsFileError(f"Cannot read {path}: {e}") from e
    return replace(base, **build_overrides(parse_yaml(content)))
