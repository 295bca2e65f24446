"""Tools package: command execution and environment utilities."""

from kexplorer.infra.tools.command_runner import CommandResult, CommandRunner
from kexplorer.infra.tools.env import get_workspace_dir, load_user_env

__all__ = [
    "CommandResult",
    "CommandRunner",
    "get_workspace_dir",
    "load_user_env",
]
