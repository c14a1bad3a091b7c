"""
Generation stage definitions.

Both remote stages share one submit/poll/validate shape; a StageSpec carries
everything that differs between them.
"""

from dataclasses import dataclass

from stillmotion.config import Settings
from stillmotion.models.schemas import (
    GenerationRequest,
    PipelineStage,
    ProgressMilestone,
    ResultReference,
    StageInput,
)


@dataclass(frozen=True)
class StageSpec:
    """
    Parameters of one remote generation stage.

    Attributes:
        stage: Which stage this is
        model: Model used for the submission
        milestone: Progress milestone emitted once the job is submitted
        progress_message: Message for that milestone
        missing_result_message: Failure text when the job yields no video
        download_message: Progress message when this stage's video is downloaded
        settle_after: Wait the settle delay before the result is used
    """

    stage: PipelineStage
    model: str
    milestone: ProgressMilestone
    progress_message: str
    missing_result_message: str
    download_message: str
    settle_after: bool = False

    def build_input(
        self,
        request: GenerationRequest,
        settings: Settings,
        source: ResultReference | None = None,
    ) -> StageInput:
        """
        Build the submission payload.

        The initial stage sends the request image; the extension stage sends
        `source`, the previous stage's result, and never the image.

        Args:
            request: Generation request
            settings: Application settings (resolution, video count)
            source: Previous stage's result (extension only)

        Returns:
            StageInput for the remote client
        """
        if self.stage == PipelineStage.EXTENSION:
            if source is None:
                raise ValueError("Extension stage requires the initial stage result")
            media = {"video": source}
        else:
            media = {"image": request.image}

        return StageInput(
            stage=self.stage,
            model=self.model,
            prompt=request.prompt,
            aspect_ratio=request.aspect_ratio,
            resolution=settings.video_resolution,
            number_of_videos=settings.number_of_videos,
            **media,
        )


def initial_stage(settings: Settings, extend: bool = False) -> StageSpec:
    """First stage: still image -> video. `extend` adds the settle delay."""
    return StageSpec(
        stage=PipelineStage.INITIAL,
        model=settings.initial_model,
        milestone=ProgressMilestone.GENERATING,
        progress_message="Generating initial scene... this can take a few minutes.",
        missing_result_message=(
            "Failed to get initial video for extension."
            if extend
            else "Video generation failed: No download link was returned."
        ),
        download_message="Downloading your video...",
        settle_after=extend,
    )


def extension_stage(settings: Settings) -> StageSpec:
    """Second stage: continue the first stage's video with the same prompt."""
    return StageSpec(
        stage=PipelineStage.EXTENSION,
        model=settings.extension_model,
        milestone=ProgressMilestone.EXTENDING,
        progress_message="Extending video... this will take a few more minutes.",
        missing_result_message="Video extension failed: No download link was returned.",
        download_message="Downloading your extended video...",
    )
