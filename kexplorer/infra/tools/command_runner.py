"""Standardized subprocess execution for pipeline stages.

Each stage of the pipeline runs one external tool to completion in the run's
workspace. CommandRunner spawns the tool, merges stdout and stderr into a
single text blob, and waits for exit. It also:

- Kills the whole process group on timeout (SIGTERM, then SIGKILL after a
  grace period) and on task cancellation
- Reports a tool that could not be spawned as a distinct result
  (spawn_error set) instead of raising
- Tracks live process groups so SIGINT handlers can kill them
"""

from __future__ import annotations

import asyncio
import logging
import os
import signal
import sys
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Mapping

logger = logging.getLogger(__name__)

# Exit code reported when a command is killed after its timeout (matches coreutils timeout)
TIMEOUT_EXIT_CODE = 124

# Exit code reported when a command cannot be spawned (matches POSIX shells)
SPAWN_FAILURE_EXIT_CODE = 127

# Seconds between SIGTERM and SIGKILL
DEFAULT_KILL_GRACE_SECONDS = 2.0

# Process groups of running commands; SIGINT handlers kill these
_SIGINT_FORWARD_PGIDS: set[int] = set()


@dataclass(frozen=True)
class CommandResult:
    """Result of running one external command.

    Attributes:
        command: The argument vector that was executed.
        returncode: Exit status (124 on timeout, 127 when not started).
        output: Combined stdout and stderr text.
        duration_seconds: Wall-clock time spent waiting.
        timed_out: Whether the command was killed after its timeout.
        spawn_error: Why the process could not be started, if it wasn't.
    """

    command: list[str]
    returncode: int
    output: str = ""
    duration_seconds: float = 0.0
    timed_out: bool = False
    spawn_error: str | None = None

    @property
    def started(self) -> bool:
        return self.spawn_error is None

    @property
    def ok(self) -> bool:
        return self.started and not self.timed_out and self.returncode == 0

    def output_tail(self, max_chars: int = 800, max_lines: int = 20) -> str:
        """Return the last lines of output, bounded by lines and characters."""
        return _tail(self.output, max_chars=max_chars, max_lines=max_lines)


def _tail(text: str, max_chars: int, max_lines: int) -> str:
    if not text:
        return ""
    lines = text.splitlines()
    if len(lines) > max_lines:
        lines = lines[-max_lines:]
    clipped = "\n".join(lines)
    if len(clipped) > max_chars:
        clipped = clipped[-max_chars:]
    return clipped


def _decode(data: bytes | None) -> str:
    if not data:
        return ""
    return data.decode("utf-8", errors="replace")


@dataclass
class CommandRunner:
    """Runs external commands with a fixed working directory.

    Attributes:
        cwd: Default working directory for commands.
        timeout_seconds: Default timeout, or None to wait indefinitely.
        kill_grace_seconds: Delay between SIGTERM and SIGKILL on timeout.
        env: Extra environment merged over os.environ for every command.
    """

    cwd: Path
    timeout_seconds: float | None = None
    kill_grace_seconds: float = DEFAULT_KILL_GRACE_SECONDS
    env: dict[str, str] = field(default_factory=dict)

    async def run_async(
        self,
        cmd: list[str],
        env: Mapping[str, str] | None = None,
        timeout: float | None = None,
        use_process_group: bool | None = None,
        cwd: Path | None = None,
    ) -> CommandResult:
        """Run a command to completion and capture its merged output.

        Args:
            cmd: Argument vector; cmd[0] is the executable.
            env: Environment variables to set (merged with os.environ).
            timeout: Overrides the runner's default timeout for this call.
            use_process_group: Start the command in its own process group so
                timeouts and cancellation kill its children too. Defaults to
                True on POSIX.
            cwd: Overrides the runner's working directory for this call.

        Returns:
            CommandResult describing the execution.

        Raises:
            asyncio.CancelledError: If the awaiting task is cancelled. The
                process group is killed before the cancellation propagates.
        """
        effective_timeout = timeout if timeout is not None else self.timeout_seconds
        if use_process_group is None:
            use_process_group = sys.platform != "win32"
        work_dir = cwd if cwd is not None else self.cwd
        merged_env = {**os.environ, **self.env, **(env or {})}

        start = time.monotonic()
        try:
            proc = await asyncio.create_subprocess_exec(
                *cmd,
                cwd=work_dir,
                env=merged_env,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.STDOUT,
                start_new_session=use_process_group,
            )
        except OSError as exc:
            logger.debug("Failed to spawn %s: %s", cmd[0], exc)
            return CommandResult(
                command=list(cmd),
                returncode=SPAWN_FAILURE_EXIT_CODE,
                output=f"Could not start '{cmd[0]}': {exc}",
                duration_seconds=time.monotonic() - start,
                spawn_error=str(exc),
            )

        pgid = proc.pid if use_process_group else None
        if pgid is not None:
            _SIGINT_FORWARD_PGIDS.add(pgid)

        chunks: list[bytes] = []
        reader = asyncio.create_task(_read_into(proc.stdout, chunks))
        try:
            try:
                await asyncio.wait_for(proc.wait(), timeout=effective_timeout)
            except TimeoutError:
                await self._terminate(proc, pgid)
                await _finish_reader(reader)
                return CommandResult(
                    command=list(cmd),
                    returncode=TIMEOUT_EXIT_CODE,
                    output=_decode(b"".join(chunks)),
                    duration_seconds=time.monotonic() - start,
                    timed_out=True,
                )
            except asyncio.CancelledError:
                _kill(proc, pgid)
                reader.cancel()
                raise
            await reader
        finally:
            if pgid is not None:
                _SIGINT_FORWARD_PGIDS.discard(pgid)

        returncode = proc.returncode if proc.returncode is not None else -1
        return CommandResult(
            command=list(cmd),
            returncode=returncode,
            output=_decode(b"".join(chunks)),
            duration_seconds=time.monotonic() - start,
        )

    async def _terminate(
        self, proc: asyncio.subprocess.Process, pgid: int | None
    ) -> None:
        """SIGTERM the process (group), escalating to SIGKILL after the grace period."""
        _signal(proc, pgid, signal.SIGTERM)
        try:
            await asyncio.wait_for(proc.wait(), timeout=self.kill_grace_seconds)
        except TimeoutError:
            _kill(proc, pgid)
            await proc.wait()

    @staticmethod
    def kill_active_process_groups() -> None:
        """SIGKILL every tracked process group.

        Called from SIGINT handling so no tool outlives the CLI. No-op on
        Windows, where process groups are not used.
        """
        if sys.platform == "win32":
            return
        for pgid in list(_SIGINT_FORWARD_PGIDS):
            try:
                os.killpg(pgid, signal.SIGKILL)
            except (ProcessLookupError, PermissionError):
                pass
            _SIGINT_FORWARD_PGIDS.discard(pgid)


async def _read_into(stream: asyncio.StreamReader | None, chunks: list[bytes]) -> None:
    """Append output to chunks until EOF; chunks survive cancellation."""
    if stream is None:
        return
    while True:
        chunk = await stream.read(4096)
        if not chunk:
            return
        chunks.append(chunk)


async def _finish_reader(reader: asyncio.Task[None]) -> None:
    """Give the reader a moment to hit EOF after the process group died."""
    await asyncio.wait({reader}, timeout=1.0)
    if not reader.done():
        reader.cancel()


def _signal(proc: asyncio.subprocess.Process, pgid: int | None, sig: int) -> None:
    try:
        if pgid is not None:
            os.killpg(pgid, sig)
        else:
            proc.send_signal(sig)
    except ProcessLookupError:
        pass


def _kill(proc: asyncio.subprocess.Process, pgid: int | None) -> None:
    if sys.platform == "win32" or pgid is None:
        try:
            proc.kill()
        except ProcessLookupError:
            pass
        return
    _signal(proc, pgid, signal.SIGKILL)


async def run_command_async(
    cmd: list[str],
    cwd: Path,
    timeout_seconds: float | None = None,
    env: Mapping[str, str] | None = None,
) -> CommandResult:
    """Run a single command without keeping a runner around."""
    runner = CommandRunner(cwd=cwd, timeout_seconds=timeout_seconds)
    return await runner.run_async(cmd, env=env)
