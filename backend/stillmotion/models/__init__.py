"""
Models for the image-to-video pipeline.

Exports:
    - Request/operation schemas (GenerationRequest, RemoteOperation, etc.)
    - ArtifactHandle for downloaded videos
"""

from stillmotion.models.artifact import ArtifactHandle
from stillmotion.models.schemas import (
    AspectRatio,
    ErrorKind,
    GenerationRequest,
    ImagePayload,
    PipelineStage,
    ProgressEvent,
    ProgressMilestone,
    RemoteOperation,
    ResultReference,
    StageInput,
    TargetLength,
)

__all__ = [
    "ArtifactHandle",
    "AspectRatio",
    "ErrorKind",
    "GenerationRequest",
    "ImagePayload",
    "PipelineStage",
    "ProgressEvent",
    "ProgressMilestone",
    "RemoteOperation",
    "ResultReference",
    "StageInput",
    "TargetLength",
]
