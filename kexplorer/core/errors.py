"""Error types for the kexplorer pipeline.

Stage failures are reported to the caller through output channels and the
run outcome rather than raised out of the orchestrator. The exception types
exist so callers can tell a tool that ran and failed apart from a tool that
could not be started at all.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from kexplorer.core.protocols import CommandResultProtocol
    from kexplorer.lifecycle import PipelineState


class PipelineError(Exception):
    """Base class for pipeline failures."""


class StageFailure(PipelineError):
    """A stage's external tool exited with a non-zero status or timed out."""

    def __init__(self, state: PipelineState, result: CommandResultProtocol) -> None:
        self.state = state
        self.result = result
        if result.timed_out:
            detail = "timed out"
        else:
            detail = f"exited with status {result.returncode}"
        super().__init__(f"{state.name.lower()}: {result.command[0]} {detail}")


class ToolNotFoundError(PipelineError):
    """A stage's external tool could not be spawned."""

    def __init__(self, state: PipelineState, result: CommandResultProtocol) -> None:
        self.state = state
        self.result = result
        super().__init__(
            f"{state.name.lower()}: could not start {result.command[0]}: "
            f"{result.spawn_error}"
        )


class ConfigurationError(Exception):
    """Raised when tool path configuration validation fails."""

    def __init__(self, errors: list[str]) -> None:
        self.errors = errors
        message = "Configuration validation failed:\n" + "\n".join(
            f"  - {e}" for e in errors
        )
        super().__init__(message)
