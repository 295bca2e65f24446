"""Environment configuration and loading for kexplorer.

Centralizes config paths and dotenv loading. Import this module early
so tool locations from ~/.config/kexplorer/.env are visible to from_env().
"""

import os
import tempfile
from pathlib import Path

from dotenv import load_dotenv

# User config directory (stores .env)
USER_CONFIG_DIR = Path.home() / ".config" / "kexplorer"


# Workspace root for pipeline runs
# Can be overridden via KEXPLORER_WORKSPACE environment variable
def get_workspace_dir() -> Path:
    """Get the workspace directory, respecting KEXPLORER_WORKSPACE env var.

    This function evaluates the env var at call time, so it respects
    values loaded from .env via load_user_env().
    """
    default = Path(tempfile.gettempdir()) / "kotlin-explorer"
    return Path(os.environ.get("KEXPLORER_WORKSPACE", str(default)))


def load_user_env() -> None:
    """Load environment from user config directory.

    Loads ${USER_CONFIG_DIR}/.env (typically ~/.config/kexplorer/.env).
    Existing environment variables take precedence.
    """
    load_dotenv(dotenv_path=USER_CONFIG_DIR / ".env")
