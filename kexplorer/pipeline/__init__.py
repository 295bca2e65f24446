"""Pipeline orchestration.

Modules:
    orchestrator: Stage sequencing, run supersession and callback delivery
"""

from kexplorer.pipeline.orchestrator import (
    PipelineOrchestrator,
    PipelineOutcome,
    run_pipeline,
)

__all__ = [
    "PipelineOrchestrator",
    "PipelineOutcome",
    "run_pipeline",
]
