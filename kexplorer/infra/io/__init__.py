"""I/O utilities for kexplorer.

This package contains:
- config: ExplorerConfig dataclass for configuration management
- tools_file: YAML tools file loader
- event_sink: PipelineEventSink implementations
- log_output/: Console logging
"""

from kexplorer.infra.io.config import ExplorerConfig
from kexplorer.infra.io.event_sink import (
    CallbackEventSink,
    ConsoleEventSink,
    NullEventSink,
    PipelineCallbacks,
)

__all__ = [
    "CallbackEventSink",
    "ConsoleEventSink",
    "ExplorerConfig",
    "NullEventSink",
    "PipelineCallbacks",
]
