"""Event sink implementations for the pipeline orchestrator.

Provides concrete implementations of the PipelineEventSink protocol:
- BaseEventSink: Base class with no-op implementations
- NullEventSink: Silent sink for testing
- CallbackEventSink: Adapts a PipelineCallbacks bundle of plain callables
- ConsoleEventSink: Console output implementation
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

from kexplorer.core.protocols import PipelineEventSink
from kexplorer.infra.io.log_output.console import Colors, log, log_block

__all__ = [
    "BaseEventSink",
    "CallbackEventSink",
    "ConsoleEventSink",
    "NullEventSink",
    "PipelineCallbacks",
    "PipelineEventSink",
]


def _ignore(text: str) -> None:
    pass


@dataclass(frozen=True)
class PipelineCallbacks:
    """Plain-callable form of the pipeline notifications.

    Any callback left unset is ignored.
    """

    on_status: Callable[[str], None] = _ignore
    on_bytecode_output: Callable[[str], None] = _ignore
    on_optimized_output: Callable[[str], None] = _ignore
    on_native_output: Callable[[str], None] = _ignore


class BaseEventSink:
    """No-op implementation of every PipelineEventSink method.

    Subclasses override only the notifications they care about.
    """

    def on_status(self, text: str) -> None:
        pass

    def on_bytecode_output(self, text: str) -> None:
        pass

    def on_optimized_output(self, text: str) -> None:
        pass

    def on_native_output(self, text: str) -> None:
        pass


class NullEventSink(BaseEventSink):
    """Sink that discards every notification."""


class CallbackEventSink(BaseEventSink):
    """Forwards notifications to a PipelineCallbacks bundle."""

    def __init__(self, callbacks: PipelineCallbacks) -> None:
        self._callbacks = callbacks

    def on_status(self, text: str) -> None:
        self._callbacks.on_status(text)

    def on_bytecode_output(self, text: str) -> None:
        self._callbacks.on_bytecode_output(text)

    def on_optimized_output(self, text: str) -> None:
        self._callbacks.on_optimized_output(text)

    def on_native_output(self, text: str) -> None:
        self._callbacks.on_native_output(text)


class ConsoleEventSink(BaseEventSink):
    """Prints status lines and channel listings to the terminal.

    Example:
        sink = ConsoleEventSink()
        orchestrator = PipelineOrchestrator(tools, sink)
        await orchestrator.run(source)
    """

    def on_status(self, text: str) -> None:
        if text == "Ready":
            log("✓", text, Colors.GREEN)
        else:
            log("▸", text, Colors.CYAN)

    def on_bytecode_output(self, text: str) -> None:
        log_block("Bytecode", text, Colors.BLUE)

    def on_optimized_output(self, text: str) -> None:
        log_block("DEX", text, Colors.MAGENTA)

    def on_native_output(self, text: str) -> None:
        log_block("OAT", text, Colors.YELLOW)
