"""In-memory fake implementations for testing.

Fakes are preferred over mocks because they:

1. Implement real protocol contracts, catching interface mismatches at test time
2. Provide deterministic, predictable behavior without call-order dependencies
3. Enable behavior-based testing (assert outputs/state) over interaction testing

Available fakes:
- FakeCommandRunner: Scripted command execution with fail-closed semantics;
  a list of responses for one key is consumed call by call
- FakeEventSink: Ordered capture of pipeline notifications
- fakes.toolchain: Shell-script toolchain for tests that spawn real processes

Usage:
    from tests.fakes import FakeCommandRunner, FakeEventSink, ToolResponse

    runner = FakeCommandRunner({"kotlinc": ToolResponse(creates=["A.class"])})
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

from kexplorer.infra.tools.command_runner import (
    SPAWN_FAILURE_EXIT_CODE,
    TIMEOUT_EXIT_CODE,
    CommandResult,
)

if TYPE_CHECKING:
    from collections.abc import Mapping

# Script keys, one per pipeline stage, matched against the executable name
# or any argument of the command
KOTLINC = "kotlinc"
JAVAP = "javap"
R8 = "com.android.tools.r8.R8"
DEXDUMP = "dexdump"
PUSH = "push"
DEX2OAT = "dex2oat"
OATDUMP = "oatdump"

ALL_STAGES = (KOTLINC, JAVAP, R8, DEXDUMP, PUSH, DEX2OAT, OATDUMP)


@dataclass
class ToolResponse:
    """Scripted behavior of one tool invocation.

    Attributes:
        returncode: Exit status to report.
        output: Merged stdout/stderr text to report.
        creates: File names written into the working directory before returning.
        spawn_error: When set, the tool "could not be started".
        timed_out: Report the command as killed after its timeout.
        gate: When set, the call blocks until the event is set.
    """

    returncode: int = 0
    output: str = ""
    creates: list[str] = field(default_factory=list)
    spawn_error: str | None = None
    timed_out: bool = False
    gate: asyncio.Event | None = None


@dataclass
class RecordedCall:
    command: list[str]
    cwd: Path | None
    timeout: float | None


class FakeCommandRunner:
    """CommandRunnerPort that returns scripted results instead of spawning tools.

    Fail-closed: a command matching no script key raises AssertionError so
    tests never silently pass over an unexpected invocation.
    """

    def __init__(
        self, script: Mapping[str, ToolResponse | list[ToolResponse]] | None = None
    ) -> None:
        self.script: dict[str, ToolResponse | list[ToolResponse]] = dict(script or {})
        self.calls: list[RecordedCall] = []
        self.started = asyncio.Event()

    @classmethod
    def all_succeed(
        cls, **overrides: ToolResponse | list[ToolResponse]
    ) -> FakeCommandRunner:
        """Script every stage to succeed with recognisable output.

        kotlinc creates two class files. Keyword overrides use the lower-case
        stage names (kotlinc, javap, r8, dexdump, push, dex2oat, oatdump).
        """
        names = {
            "kotlinc": KOTLINC,
            "javap": JAVAP,
            "r8": R8,
            "dexdump": DEXDUMP,
            "push": PUSH,
            "dex2oat": DEX2OAT,
            "oatdump": OATDUMP,
        }
        script: dict[str, ToolResponse | list[ToolResponse]] = {
            KOTLINC: ToolResponse(creates=["MainKt.class", "Foo.class"]),
            JAVAP: ToolResponse(output="javap listing"),
            R8: ToolResponse(creates=["classes.dex"]),
            DEXDUMP: ToolResponse(output="dexdump listing"),
            PUSH: ToolResponse(output="1 file pushed"),
            DEX2OAT: ToolResponse(),
            OATDUMP: ToolResponse(output="oatdump listing"),
        }
        for name, response in overrides.items():
            script[names[name]] = response
        return cls(script)

    def _match(self, cmd: list[str]) -> ToolResponse:
        executable = Path(cmd[0]).name
        for key, response in self.script.items():
            if key == executable or key in cmd[1:]:
                if isinstance(response, list):
                    # Consume scripted responses in order, repeating the last
                    return response.pop(0) if len(response) > 1 else response[0]
                return response
        raise AssertionError(f"Unscripted command: {cmd}")

    @property
    def commands(self) -> list[list[str]]:
        return [call.command for call in self.calls]

    def ran(self, key: str) -> bool:
        return any(
            key == Path(cmd[0]).name or key in cmd[1:] for cmd in self.commands
        )

    async def run_async(
        self,
        cmd: list[str],
        env: Mapping[str, str] | None = None,
        timeout: float | None = None,
        use_process_group: bool | None = None,
        cwd: Path | None = None,
    ) -> CommandResult:
        self.calls.append(RecordedCall(list(cmd), cwd, timeout))
        response = self._match(cmd)
        self.started.set()
        if response.gate is not None:
            await response.gate.wait()
        if response.spawn_error is not None:
            return CommandResult(
                command=list(cmd),
                returncode=SPAWN_FAILURE_EXIT_CODE,
                output=f"Could not start '{cmd[0]}': {response.spawn_error}",
                spawn_error=response.spawn_error,
            )
        if cwd is not None:
            for name in response.creates:
                (cwd / name).write_text(f"artifact {name}")
        return CommandResult(
            command=list(cmd),
            returncode=TIMEOUT_EXIT_CODE if response.timed_out else response.returncode,
            output=response.output,
            duration_seconds=0.01,
            timed_out=response.timed_out,
        )


@dataclass
class FakeEventSink:
    """PipelineEventSink that records every notification in order.

    Each event is a (kind, text) tuple where kind is one of "status",
    "bytecode", "optimized" or "native".
    """

    events: list[tuple[str, str]] = field(default_factory=list)

    def on_status(self, text: str) -> None:
        self.events.append(("status", text))

    def on_bytecode_output(self, text: str) -> None:
        self.events.append(("bytecode", text))

    def on_optimized_output(self, text: str) -> None:
        self.events.append(("optimized", text))

    def on_native_output(self, text: str) -> None:
        self.events.append(("native", text))

    @property
    def statuses(self) -> list[str]:
        return [text for kind, text in self.events if kind == "status"]

    def of_kind(self, kind: str) -> list[str]:
        return [text for k, text in self.events if k == kind]
