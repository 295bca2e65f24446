"""Debug log file for pipeline runs.

Attaches a DEBUG file handler to the kexplorer logger so every stage's
command line, exit status and duration are recorded.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pathlib import Path

_HANDLER_PREFIX = "kexplorer_debug_"


def configure_debug_logging(log_path: Path) -> Path | None:
    """Send kexplorer debug logs to log_path.

    Replaces any handler added by a previous call.

    Returns:
        The log path, or None if the file could not be created.
    """
    try:
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handler = logging.FileHandler(log_path)
    except OSError:
        # Best-effort: runs proceed without a debug log
        return None

    handler.setLevel(logging.DEBUG)
    handler.setFormatter(
        logging.Formatter(
            "%(asctime)s %(levelname)s %(name)s: %(message)s",
            datefmt="%H:%M:%S",
        )
    )
    handler.set_name(f"{_HANDLER_PREFIX}{log_path.name}")

    package_logger = logging.getLogger("kexplorer")
    package_logger.setLevel(logging.DEBUG)
    for existing in package_logger.handlers[:]:
        if getattr(existing, "name", "").startswith(_HANDLER_PREFIX):
            existing.close()
            package_logger.removeHandler(existing)
    package_logger.addHandler(handler)
    return log_path
