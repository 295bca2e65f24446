"""Pipeline lifecycle state machine for orchestrator control flow.

Extracts stage sequencing and notification policy as a pure state machine
that can be tested without spawning any tools.

The state machine is data-in/data-out: it receives the result of the stage
that just ran and returns the next state plus the notifications the
orchestrator must deliver, in order. The orchestrator stays responsible
for I/O (workspace, subprocesses, callback delivery).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import TYPE_CHECKING

from kexplorer.core.errors import StageFailure, ToolNotFoundError

if TYPE_CHECKING:
    from kexplorer.core.errors import PipelineError
    from kexplorer.core.protocols import CommandResultProtocol


class PipelineState(Enum):
    """States of a pipeline run, in execution order."""

    IDLE = auto()
    COMPILING = auto()
    DISASSEMBLE_BYTECODE = auto()
    OPTIMIZE = auto()
    DISASSEMBLE_OPTIMIZED = auto()
    PUSH = auto()
    AOT_COMPILE = auto()
    DISASSEMBLE_NATIVE = auto()
    READY = auto()


class OutputChannel(Enum):
    """Caller-visible text sinks."""

    BYTECODE = "bytecode"
    OPTIMIZED = "optimized"
    NATIVE = "native"


@dataclass(frozen=True)
class StageSpec:
    """Notification policy for one stage.

    Attributes:
        status: Label announced when the stage is entered, or None when the
            stage continues the previous stage's announcement.
        channel: Channel that receives the stage's captured text.
        emit_on_success: Whether the text is delivered when the tool succeeds.
            Failure text is always delivered so the caller sees diagnostics.
    """

    status: str | None
    channel: OutputChannel
    emit_on_success: bool


READY_STATUS = "Ready"

STAGES: dict[PipelineState, StageSpec] = {
    PipelineState.COMPILING: StageSpec(
        "Compiling Kotlin…", OutputChannel.BYTECODE, emit_on_success=False
    ),
    PipelineState.DISASSEMBLE_BYTECODE: StageSpec(
        "Disassembling bytecode…", OutputChannel.BYTECODE, emit_on_success=True
    ),
    PipelineState.OPTIMIZE: StageSpec(
        "Optimizing with R8…", OutputChannel.OPTIMIZED, emit_on_success=False
    ),
    PipelineState.DISASSEMBLE_OPTIMIZED: StageSpec(
        "Disassembling DEX…", OutputChannel.OPTIMIZED, emit_on_success=True
    ),
    PipelineState.PUSH: StageSpec(
        "AOT compilation…", OutputChannel.NATIVE, emit_on_success=False
    ),
    # Push and dex2oat are announced together
    PipelineState.AOT_COMPILE: StageSpec(
        None, OutputChannel.NATIVE, emit_on_success=False
    ),
    PipelineState.DISASSEMBLE_NATIVE: StageSpec(
        "Disassembling OAT…", OutputChannel.NATIVE, emit_on_success=True
    ),
}

_ORDER: tuple[PipelineState, ...] = (
    PipelineState.COMPILING,
    PipelineState.DISASSEMBLE_BYTECODE,
    PipelineState.OPTIMIZE,
    PipelineState.DISASSEMBLE_OPTIMIZED,
    PipelineState.PUSH,
    PipelineState.AOT_COMPILE,
    PipelineState.DISASSEMBLE_NATIVE,
    PipelineState.READY,
)


@dataclass(frozen=True)
class Emission:
    """One notification for the caller.

    A status emission has no channel; an output emission names the channel
    its text belongs to.
    """

    text: str
    channel: OutputChannel | None = None

    @property
    def is_status(self) -> bool:
        return self.channel is None


@dataclass
class TransitionResult:
    """Result of a state transition.

    Contains the new state, the emissions to deliver in order, and the
    failure that halted the run (if any).
    """

    state: PipelineState
    emissions: list[Emission] = field(default_factory=list)
    failure: PipelineError | None = None


def _enter(state: PipelineState) -> list[Emission]:
    if state is PipelineState.READY:
        return [Emission(READY_STATUS)]
    status = STAGES[state].status
    return [Emission(status)] if status is not None else []


def _stage_text(result: CommandResultProtocol) -> str:
    if result.timed_out:
        return (
            f"{result.output}\n{result.command[0]} timed out after "
            f"{result.duration_seconds:.1f}s"
        ).lstrip("\n")
    return result.output


class PipelineLifecycle:
    """Pure state machine for one pipeline run.

    Encapsulates:
    - Stage order and the fail-fast halt rule
    - Which status label each stage announces
    - Which channel each stage's text goes to, and when

    It does NOT perform any I/O.
    """

    def __init__(self) -> None:
        self._state = PipelineState.IDLE
        self._started = False

    @property
    def state(self) -> PipelineState:
        """Current lifecycle state."""
        return self._state

    @property
    def is_terminal(self) -> bool:
        """Whether the run has finished, successfully or not."""
        return self._started and self._state in (
            PipelineState.IDLE,
            PipelineState.READY,
        )

    @property
    def succeeded(self) -> bool:
        return self._state is PipelineState.READY

    def start(self) -> TransitionResult:
        """Enter COMPILING.

        Raises:
            ValueError: If the run was already started.
        """
        if self._started:
            raise ValueError("Pipeline run already started")
        self._started = True
        self._state = PipelineState.COMPILING
        return TransitionResult(self._state, _enter(self._state))

    def advance(self, result: CommandResultProtocol) -> TransitionResult:
        """Consume the result of the current stage.

        On failure the stage's text goes to its channel and the run halts
        back to IDLE. On success the stage's text is emitted when its policy
        says so, followed by the next state's status.

        Raises:
            ValueError: If no stage is currently running.
        """
        if not self._started or self.is_terminal:
            raise ValueError(f"No stage running in state {self._state.name}")

        current = self._state
        stage = STAGES[current]

        if not result.ok:
            failure: PipelineError
            if not result.started:
                failure = ToolNotFoundError(current, result)
            else:
                failure = StageFailure(current, result)
            self._state = PipelineState.IDLE
            return TransitionResult(
                self._state,
                [Emission(_stage_text(result), stage.channel)],
                failure=failure,
            )

        emissions: list[Emission] = []
        if stage.emit_on_success:
            emissions.append(Emission(result.output, stage.channel))
        self._state = _ORDER[_ORDER.index(current) + 1]
        emissions.extend(_enter(self._state))
        return TransitionResult(self._state, emissions)
