#!/usr/bin/env python3
"""
kexplorer CLI: run the Kotlin → bytecode → DEX → OAT pipeline from a terminal.

Usage:
    kexplorer run [OPTIONS] SOURCE
    kexplorer tools [OPTIONS]
"""

from __future__ import annotations

import asyncio
import sys
from pathlib import Path
from typing import Annotated

import typer
from tabulate import tabulate

from kexplorer.core.errors import ConfigurationError, ToolNotFoundError
from kexplorer.domain.workspace import Workspace
from kexplorer.infra.io.config import ExplorerConfig
from kexplorer.infra.io.event_sink import ConsoleEventSink
from kexplorer.infra.io.log_output.console import Colors, log, log_verbose, set_verbose
from kexplorer.infra.io.log_output.debug_log import configure_debug_logging
from kexplorer.infra.io.tools_file import ToolsFileError, load_tools_file
from kexplorer.infra.tools.command_runner import CommandRunner
from kexplorer.infra.tools.env import load_user_env
from kexplorer.pipeline.orchestrator import PipelineOrchestrator, PipelineOutcome

# Bootstrap state: tracks whether bootstrap() has been called
_bootstrapped = False

EXIT_STAGE_FAILED = 1
EXIT_CONFIG_ERROR = 2
EXIT_TOOL_NOT_FOUND = 127
EXIT_INTERRUPTED = 130


def bootstrap() -> None:
    """Initialize environment.

    Loads ~/.config/kexplorer/.env. Idempotent.
    """
    global _bootstrapped

    if _bootstrapped:
        return

    load_user_env()

    _bootstrapped = True


def _warn_stderr(msg: str) -> None:
    """Emit a warning message to stderr with yellow color and warning icon."""
    print(f"{Colors.YELLOW}⚠ {msg}{Colors.RESET}", file=sys.stderr)


def _load_config(tools_file: Path | None) -> ExplorerConfig:
    """Environment configuration with an optional tools file applied on top."""
    config = ExplorerConfig.from_env()
    if tools_file is None:
        return config
    try:
        return load_tools_file(tools_file, config)
    except ToolsFileError as e:
        _warn_stderr(str(e))
        raise typer.Exit(EXIT_CONFIG_ERROR) from e


def _read_source(source: Path) -> str:
    if str(source) == "-":
        return sys.stdin.read()
    try:
        return source.read_text()
    except OSError as e:
        _warn_stderr(f"Cannot read {source}: {e}")
        raise typer.Exit(EXIT_CONFIG_ERROR) from e


def _exit_code(outcome: PipelineOutcome) -> int:
    if outcome.success:
        return 0
    if outcome.cancelled:
        return EXIT_INTERRUPTED
    if isinstance(outcome.failure, ToolNotFoundError):
        return EXIT_TOOL_NOT_FOUND
    return EXIT_STAGE_FAILED


app = typer.Typer(
    name="kexplorer",
    help="Compile Kotlin and inspect its bytecode, optimized DEX and AOT output",
    add_completion=False,
)


@app.command()
def run(
    source: Annotated[
        Path,
        typer.Argument(help="Kotlin source file, or - to read stdin"),
    ],
    tools_file: Annotated[
        Path | None,
        typer.Option(
            "--tools-file",
            "-t",
            help="YAML file with tool locations (overrides KEXPLORER_* env vars)",
        ),
    ] = None,
    workspace: Annotated[
        Path | None,
        typer.Option(
            "--workspace",
            "-w",
            help="Workspace directory (default: KEXPLORER_WORKSPACE or <tmp>/kotlin-explorer)",
        ),
    ] = None,
    private_workspace: Annotated[
        bool,
        typer.Option(
            "--private-workspace",
            help="Run in a fresh directory under the workspace",
        ),
    ] = False,
    timeout: Annotated[
        float | None,
        typer.Option(
            "--timeout",
            help="Per-stage timeout in seconds (default: wait indefinitely)",
            min=0.1,
        ),
    ] = None,
    debug_log: Annotated[
        Path | None,
        typer.Option("--debug-log", help="Write debug logs to this file"),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Show full tool output"),
    ] = False,
) -> None:
    """Run the full pipeline once over SOURCE."""
    set_verbose(verbose)
    if debug_log is not None and configure_debug_logging(debug_log) is None:
        _warn_stderr(f"Could not create debug log at {debug_log}")

    config = _load_config(tools_file)
    try:
        tools = config.tool_paths()
    except ConfigurationError as e:
        _warn_stderr(str(e))
        raise typer.Exit(EXIT_CONFIG_ERROR) from e

    text = _read_source(source)
    root = workspace if workspace is not None else config.workspace_dir
    use_private = private_workspace or config.private_workspaces
    stage_timeout = timeout if timeout is not None else config.stage_timeout

    def workspace_factory() -> Workspace:
        if use_private:
            return Workspace.private(root)
        return Workspace.shared(root)

    orchestrator = PipelineOrchestrator(
        tools,
        ConsoleEventSink(),
        workspace_factory=workspace_factory,
        timeout_seconds=stage_timeout,
    )

    try:
        outcome = asyncio.run(orchestrator.run(text))
    except KeyboardInterrupt:
        CommandRunner.kill_active_process_groups()
        log("○", "Interrupted", Colors.YELLOW)
        raise typer.Exit(EXIT_INTERRUPTED) from None

    if outcome.workspace is not None:
        log_verbose("◦", f"Workspace: {outcome.workspace}")
    if outcome.failure is not None:
        log("✗", str(outcome.failure), Colors.RED)
    raise typer.Exit(_exit_code(outcome))


@app.command()
def tools(
    tools_file: Annotated[
        Path | None,
        typer.Option(
            "--tools-file",
            "-t",
            help="YAML file with tool locations (overrides KEXPLORER_* env vars)",
        ),
    ] = None,
) -> None:
    """Show configured tool locations and whether they resolve."""
    config = _load_config(tools_file)
    problems = config.validate()

    rows = [
        [label, location, "found" if found else "missing"]
        for label, location, found in config.tool_locations()
    ]
    rows.append(["workspace", config.workspace_dir, ""])
    print(tabulate(rows, headers=["Tool", "Location", "Status"], tablefmt="simple"))
    print()

    if problems:
        for problem in problems:
            log("✗", problem, Colors.RED)
        raise typer.Exit(EXIT_CONFIG_ERROR)
    log("✓", "All tools found", Colors.GREEN)
