"""
Pipeline module for image-to-video generation.

This package contains the pipeline components:
- orchestrator: Stage machine and the generate() entry point
- stages: Parameters of the initial and extension stages
- polling: Fixed-interval polling of remote operations
- progress_manager: Ordered progress events
- cancellation: Cooperative cancellation of local waits

Example:
    from stillmotion.services.pipeline import PipelineOrchestrator

    orchestrator = PipelineOrchestrator()
    handle = await orchestrator.generate(request, progress_callback)
"""

from .cancellation import CancellationToken, PipelineCancelledError
from .orchestrator import PipelineBusyError, PipelineOrchestrator
from .polling import PollTimeoutError, poll_until_done
from .progress_manager import ProgressCallback, ProgressManager
from .stages import StageSpec, extension_stage, initial_stage

__all__ = [
    # Main orchestrator
    "PipelineOrchestrator",
    "PipelineBusyError",
    # Stages
    "StageSpec",
    "initial_stage",
    "extension_stage",
    # Polling and cancellation
    "poll_until_done",
    "PollTimeoutError",
    "CancellationToken",
    "PipelineCancelledError",
    # Progress
    "ProgressManager",
    "ProgressCallback",
]
