"""Pipeline orchestrator: drives one source submission through every stage.

The orchestrator owns the I/O half of a run. PipelineLifecycle decides what
happens next; the orchestrator prepares the workspace, builds each stage's
command, executes it through a CommandRunnerPort and delivers the resulting
emissions to the event sink.

Runs are serialised per orchestrator: start() supersedes any in-flight run.
A superseded run is cancelled (killing its tool process) and delivers no
further notifications, because every transition and every delivery checks
the run generation.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

from kexplorer.domain.commands import (
    build_dex2oat_command,
    build_dexdump_command,
    build_javap_command,
    build_kotlinc_command,
    build_oatdump_command,
    build_push_command,
    build_r8_command,
)
from kexplorer.domain.workspace import Workspace
from kexplorer.infra.io.event_sink import CallbackEventSink
from kexplorer.infra.io.log_output.console import truncate_text
from kexplorer.infra.sigint_guard import FlowInterruptedError, InterruptGuard
from kexplorer.infra.tools.command_runner import CommandRunner
from kexplorer.infra.tools.env import get_workspace_dir
from kexplorer.lifecycle import (
    Emission,
    OutputChannel,
    PipelineLifecycle,
    PipelineState,
)

if TYPE_CHECKING:
    from kexplorer.core.errors import PipelineError
    from kexplorer.core.models import ToolPaths
    from kexplorer.core.protocols import (
        CommandResultProtocol,
        CommandRunnerPort,
        PipelineEventSink,
    )
    from kexplorer.infra.io.event_sink import PipelineCallbacks

logger = logging.getLogger(__name__)

# Marshals a zero-argument delivery onto the caller's notification context
Dispatcher = Callable[[Callable[[], None]], None]

_COMMAND_BUILDERS: dict[
    PipelineState, Callable[[ToolPaths, Workspace], list[str]]
] = {
    PipelineState.COMPILING: build_kotlinc_command,
    PipelineState.DISASSEMBLE_BYTECODE: build_javap_command,
    PipelineState.OPTIMIZE: build_r8_command,
    PipelineState.DISASSEMBLE_OPTIMIZED: lambda tools, _: build_dexdump_command(tools),
    PipelineState.PUSH: lambda tools, _: build_push_command(tools),
    PipelineState.AOT_COMPILE: lambda tools, _: build_dex2oat_command(tools),
    PipelineState.DISASSEMBLE_NATIVE: lambda tools, _: build_oatdump_command(tools),
}


@dataclass
class PipelineOutcome:
    """What a finished (or abandoned) run achieved.

    Attributes:
        state_reached: Last state entered; the failing stage when halted.
        success: Whether the run reached READY.
        failure: StageFailure or ToolNotFoundError that halted the run.
        cancelled: Whether the run was superseded or cancelled.
        stage_results: Result of every stage that ran, in order.
        workspace: Directory the run used.
    """

    state_reached: PipelineState = PipelineState.IDLE
    success: bool = False
    failure: PipelineError | None = None
    cancelled: bool = False
    stage_results: dict[PipelineState, CommandResultProtocol] = field(
        default_factory=dict
    )
    workspace: Path | None = None


def _shared_workspace() -> Workspace:
    return Workspace.shared(get_workspace_dir())


def _private_workspace() -> Workspace:
    return Workspace.private(get_workspace_dir())


class PipelineOrchestrator:
    """Runs the compile → disassemble → optimize → AOT pipeline.

    Example:
        orchestrator = PipelineOrchestrator(tools, ConsoleEventSink())
        outcome = await orchestrator.run(source)
    """

    def __init__(
        self,
        tool_paths: ToolPaths,
        sink: PipelineEventSink,
        *,
        runner: CommandRunnerPort | None = None,
        workspace_factory: Callable[[], Workspace] | None = None,
        dispatch: Dispatcher | None = None,
        timeout_seconds: float | None = None,
    ) -> None:
        """Create an orchestrator.

        Args:
            tool_paths: Tool locations used for every run.
            sink: Receives status and channel notifications.
            runner: Process executor; defaults to CommandRunner.
            workspace_factory: Returns the workspace for a new run. Defaults
                to the shared workspace directory.
            dispatch: Marshals each delivery onto the caller's context, e.g.
                loop.call_soon_threadsafe. Deliveries are made directly when
                None.
            timeout_seconds: Per-stage timeout; None waits indefinitely.
        """
        self._tools = tool_paths
        self._sink = sink
        self._runner: CommandRunnerPort = runner or CommandRunner(cwd=Path.cwd())
        self._workspace_factory = workspace_factory or _shared_workspace
        self._dispatch = dispatch
        self._timeout_seconds = timeout_seconds
        self._generation = 0
        self._task: asyncio.Task[PipelineOutcome] | None = None
        # Worker threads of a superseded run may still be touching the workspace
        self._workspace_lock = threading.Lock()

    @property
    def generation(self) -> int:
        """Identifier of the most recently started run."""
        return self._generation

    def start(self, source: str) -> asyncio.Task[PipelineOutcome]:
        """Start a run, superseding any run still in flight.

        Must be called from within a running event loop.
        """
        self._generation += 1
        generation = self._generation
        previous = self._task
        if previous is not None and not previous.done():
            logger.info("Superseding pipeline run %d", generation - 1)
            previous.cancel()
        self._task = asyncio.create_task(
            self._run(source, generation), name=f"kexplorer-run-{generation}"
        )
        return self._task

    async def run(self, source: str) -> PipelineOutcome:
        """Start a run and wait for it to finish."""
        return await self.start(source)

    def cancel(self) -> None:
        """Cancel the in-flight run, if any, without starting another."""
        self._generation += 1
        if self._task is not None and not self._task.done():
            self._task.cancel()

    def _is_current(self, generation: int) -> bool:
        return generation == self._generation

    async def _run(self, source: str, generation: int) -> PipelineOutcome:
        guard = InterruptGuard(predicate=lambda: not self._is_current(generation))
        lifecycle = PipelineLifecycle()
        outcome = PipelineOutcome()

        try:
            workspace = self._workspace_factory()
            outcome.workspace = workspace.path
            await asyncio.to_thread(self._prepare_workspace, workspace, source)
            guard.raise_if_interrupted("Pipeline run superseded")

            transition = lifecycle.start()
            self._deliver(generation, transition.emissions)

            while not lifecycle.is_terminal:
                state = lifecycle.state
                outcome.state_reached = state
                result = await self._execute(state, workspace)
                outcome.stage_results[state] = result
                guard.raise_if_interrupted("Pipeline run superseded")

                transition = lifecycle.advance(result)
                self._deliver(generation, transition.emissions)
                if transition.failure is not None:
                    outcome.failure = transition.failure
                    logger.warning("Pipeline halted: %s", transition.failure)
                    logger.debug("Output tail:\n%s", result.output_tail())

            if lifecycle.succeeded:
                outcome.state_reached = PipelineState.READY
                outcome.success = True
                logger.info("Pipeline run %d ready", generation)
        except FlowInterruptedError:
            outcome.cancelled = True
            logger.info("Pipeline run %d stopped after being superseded", generation)
        except asyncio.CancelledError:
            if self._is_current(generation):
                raise
            outcome.cancelled = True
            logger.info("Pipeline run %d cancelled", generation)
        return outcome

    def _prepare_workspace(self, workspace: Workspace, source: str) -> None:
        with self._workspace_lock:
            workspace.prepare()
            workspace.write_source(source)

    async def _execute(
        self, state: PipelineState, workspace: Workspace
    ) -> CommandResultProtocol:
        command = await asyncio.to_thread(self._build_command, state, workspace)
        logger.debug(
            "Running %s: %s", state.name, truncate_text(" ".join(command), 200)
        )
        result = await self._runner.run_async(
            command, timeout=self._timeout_seconds, cwd=workspace.path
        )
        logger.debug(
            "%s exited %d in %.2fs",
            state.name,
            result.returncode,
            result.duration_seconds,
        )
        return result

    def _build_command(self, state: PipelineState, workspace: Workspace) -> list[str]:
        with self._workspace_lock:
            if state is PipelineState.OPTIMIZE:
                workspace.write_rules()
            return _COMMAND_BUILDERS[state](self._tools, workspace)

    def _deliver(self, generation: int, emissions: list[Emission]) -> None:
        for emission in emissions:
            handler = self._handler_for(emission)

            def deliver(
                handler: Callable[[str], None] = handler, text: str = emission.text
            ) -> None:
                # Superseded runs go silent even for deliveries already queued
                if self._is_current(generation):
                    handler(text)

            if self._dispatch is None:
                deliver()
            else:
                self._dispatch(deliver)

    def _handler_for(self, emission: Emission) -> Callable[[str], None]:
        if emission.channel is None:
            return self._sink.on_status
        if emission.channel is OutputChannel.BYTECODE:
            return self._sink.on_bytecode_output
        if emission.channel is OutputChannel.OPTIMIZED:
            return self._sink.on_optimized_output
        return self._sink.on_native_output


def run_pipeline(
    source: str,
    tool_paths: ToolPaths,
    callbacks: PipelineCallbacks,
    *,
    runner: CommandRunnerPort | None = None,
    workspace: Workspace | None = None,
    dispatch: Dispatcher | None = None,
    timeout_seconds: float | None = None,
) -> asyncio.Task[PipelineOutcome]:
    """Start a one-off pipeline run reporting through plain callbacks.

    Each call gets its own private workspace unless one is given, so
    independent calls never share files. Use a PipelineOrchestrator when
    newer submissions should supersede older ones.

    Returns:
        The task running the pipeline; its result is the PipelineOutcome.
    """
    orchestrator = PipelineOrchestrator(
        tool_paths,
        CallbackEventSink(callbacks),
        runner=runner,
        workspace_factory=(lambda: workspace) if workspace is not None else _private_workspace,
        dispatch=dispatch,
        timeout_seconds=timeout_seconds,
    )
    return orchestrator.start(source)
