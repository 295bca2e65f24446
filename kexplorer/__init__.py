"""kexplorer: drives kotlinc, javap, R8, dexdump and dex2oat/oatdump over a snippet of Kotlin."""

from .core.models import ToolPaths
from .infra.io.event_sink import PipelineCallbacks
from .pipeline.orchestrator import PipelineOrchestrator, PipelineOutcome, run_pipeline

__version__ = "0.1.0"
__all__ = [
    "PipelineCallbacks",
    "PipelineOrchestrator",
    "PipelineOutcome",
    "ToolPaths",
    "__version__",
    "run_pipeline",
]
