"""Protocol definitions for kexplorer's pluggable seams.

The pipeline depends on these structural interfaces rather than on the
infrastructure implementations, so tests can inject fakes that return
scripted results instead of spawning real tools.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence
    from pathlib import Path


class CommandResultProtocol(Protocol):
    """Protocol for command execution results.

    Matches the interface of kexplorer.infra.tools.command_runner.CommandResult
    for structural typing without import-time dependencies.
    """

    command: Sequence[str]
    returncode: int
    output: str
    timed_out: bool
    duration_seconds: float
    spawn_error: str | None

    @property
    def ok(self) -> bool:
        """Whether the process started and exited with status 0."""
        ...

    @property
    def started(self) -> bool:
        """Whether the process could be spawned at all."""
        ...

    def output_tail(self, max_chars: int = 800, max_lines: int = 20) -> str:
        """Get truncated merged output.

        Args:
            max_chars: Maximum number of characters.
            max_lines: Maximum number of lines.

        Returns:
            Truncated output string.
        """
        ...


@runtime_checkable
class CommandRunnerPort(Protocol):
    """Protocol for abstracting command execution.

    The canonical implementation is CommandRunner in
    kexplorer/infra/tools/command_runner.py.
    """

    async def run_async(
        self,
        cmd: list[str],
        env: Mapping[str, str] | None = None,
        timeout: float | None = None,
        use_process_group: bool | None = None,
        cwd: Path | None = None,
    ) -> CommandResultProtocol:
        """Run a command to completion.

        Args:
            cmd: Argument vector; cmd[0] is the executable.
            env: Environment variables to set (merged with os.environ).
            timeout: Timeout in seconds, or None to wait indefinitely.
            use_process_group: Whether to use a process group for termination.
            cwd: Override working directory for this command.

        Returns:
            CommandResultProtocol with merged output and exit status.
        """
        ...


@runtime_checkable
class PipelineEventSink(Protocol):
    """Receiver for the ordered notifications of a pipeline run.

    Each method is invoked at most in stage-entry order for a single run.
    Implementations should return quickly; they run on the caller's
    notification context.
    """

    def on_status(self, text: str) -> None:
        """A stage was entered (or the run reached Ready)."""
        ...

    def on_bytecode_output(self, text: str) -> None:
        """javap listing, or compiler diagnostics when compilation failed."""
        ...

    def on_optimized_output(self, text: str) -> None:
        """dexdump listing, or R8 diagnostics when optimization failed."""
        ...

    def on_native_output(self, text: str) -> None:
        """oatdump listing, or diagnostics from the on-device stages."""
        ...
