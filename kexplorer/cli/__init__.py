"""Command-line interface for kexplorer."""

from kexplorer.cli.cli import app, bootstrap

__all__ = ["app", "bootstrap"]
