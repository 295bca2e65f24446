#!/usr/bin/env python3
"""
kexplorer: compile a Kotlin snippet and show its bytecode, DEX and OAT.

This module is a thin shim that exposes the CLI app from kexplorer.cli.

Usage:
    kexplorer run [OPTIONS] SOURCE
    kexplorer tools [OPTIONS]
"""

from .cli.cli import bootstrap

# Load ~/.config/kexplorer/.env before the CLI reads any configuration
bootstrap()

from .cli.cli import app  # noqa: E402

if __name__ == "__main__":
    app()
