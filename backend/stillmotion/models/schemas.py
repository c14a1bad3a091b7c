"""
Pydantic models for the image-to-video generation pipeline.
"""

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class AspectRatio(str, Enum):
    """Output frame shape."""
    WIDE = "16:9"
    TALL = "9:16"


class TargetLength(str, Enum):
    """Requested clip length.

    - short: single generation stage
    - long: generation stage followed by an extension stage
    """
    SHORT = "short"
    LONG = "long"


class PipelineStage(str, Enum):
    """Remote generation stage."""
    INITIAL = "initial"
    EXTENSION = "extension"


class ProgressMilestone(str, Enum):
    """Pipeline milestones, declared in emission order."""
    WARMING_UP = "warming_up"
    GENERATING = "generating"
    FINALIZING = "finalizing"
    EXTENDING = "extending"
    DOWNLOADING = "downloading"


class ErrorKind(str, Enum):
    """User-actionable failure categories."""
    MISSING_CREDENTIAL = "missing_credential"
    RATE_LIMITED = "rate_limited"
    INVALID_CREDENTIAL = "invalid_credential"
    MISSING_RESULT = "missing_result"
    INPUT_PROCESSING = "input_processing"
    TIMEOUT = "timeout"
    CANCELLED = "cancelled"
    BUSY = "busy"
    UNKNOWN = "unknown"


class ImagePayload(BaseModel):
    """Encoded still image sent as the first stage input."""

    model_config = ConfigDict(frozen=True)

    data: bytes = Field(..., min_length=1, repr=False, description="Encoded image bytes")
    mime_type: str = Field(..., description="Media type, e.g. image/png")

    @property
    def size_kb(self) -> float:
        """Payload size in kilobytes."""
        return len(self.data) / 1024


class GenerationRequest(BaseModel):
    """One image-to-video request. Immutable once the pipeline starts."""

    model_config = ConfigDict(frozen=True)

    prompt: str = Field(..., description="Text prompt describing the motion")
    image: ImagePayload
    aspect_ratio: AspectRatio = AspectRatio.WIDE
    target_length: TargetLength = TargetLength.SHORT

    @field_validator("prompt")
    @classmethod
    def _prompt_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Prompt cannot be empty")
        return value


class ResultReference(BaseModel):
    """Locator of a finished remote artifact.

    `raw` keeps the provider's own artifact object so it can be handed back
    verbatim as extension input.
    """

    model_config = ConfigDict(frozen=True)

    uri: str
    mime_type: str | None = None
    raw: Any = Field(default=None, exclude=True, repr=False)


class RemoteOperation(BaseModel):
    """Snapshot of a remote long-running operation.

    Each poll produces a new snapshot; snapshots are never mutated.
    """

    model_config = ConfigDict(frozen=True)

    name: str | None = None
    done: bool = False
    result: ResultReference | None = None
    error: str | None = None
    raw: Any = Field(default=None, exclude=True, repr=False)


class StageInput(BaseModel):
    """Payload for one remote submission.

    Exactly one of `image` (initial stage) or `video` (extension stage)
    is set.
    """

    model_config = ConfigDict(frozen=True)

    stage: PipelineStage
    model: str
    prompt: str
    aspect_ratio: AspectRatio
    resolution: str = "720p"
    number_of_videos: int = Field(default=1, ge=1)
    image: ImagePayload | None = None
    video: ResultReference | None = None

    @model_validator(mode="after")
    def _single_source(self) -> "StageInput":
        if (self.image is None) == (self.video is None):
            raise ValueError("StageInput needs exactly one of image or video")
        return self


class ProgressEvent(BaseModel):
    """Human-readable progress notification."""

    milestone: ProgressMilestone
    message: str
    progress: float = Field(..., ge=0, le=100, description="Overall progress percent")
    timestamp: datetime = Field(default_factory=datetime.now)
