"""
Pipeline orchestrator for image-to-video generation.

Drives the stage machine: initial stage, optional extension stage chained on
the initial result, artifact download. Every failure is classified exactly
once, at the generate() boundary.
"""

import asyncio
import logging
from datetime import datetime
from typing import Callable

from stillmotion.config import Settings, get_settings
from stillmotion.models.artifact import ArtifactHandle
from stillmotion.models.schemas import (
    ErrorKind,
    GenerationRequest,
    ProgressMilestone,
    ResultReference,
    TargetLength,
)
from stillmotion.services.artifact_fetcher import ArtifactFetcher
from stillmotion.services.credentials import (
    CredentialProvider,
    EnvironmentCredentialProvider,
)
from stillmotion.services.error_classifier import ClassifiedError, ErrorClassifier
from stillmotion.services.operation_clients import (
    BaseOperationClientImpl,
    VeoOperationClient,
)

from .cancellation import CancellationToken
from .polling import poll_until_done
from .progress_manager import ProgressCallback, ProgressManager
from .stages import StageSpec, extension_stage, initial_stage

logger = logging.getLogger(__name__)

MISSING_CREDENTIAL_MESSAGE = "API key not found. Please select an API key."

# credential -> client for one run
ClientFactory = Callable[[str], BaseOperationClientImpl]


class PipelineBusyError(Exception):
    """Raised when generate() is called while another run is active."""

    kind = ErrorKind.BUSY

    def __init__(self, message: str = "A video is already being generated. Please wait for it to finish."):
        self.message = message
        super().__init__(message)


class PipelineOrchestrator:
    """
    Orchestrates one image-to-video generation at a time.

    SHORT requests run a single stage. LONG requests wait the settle delay
    after the first stage and submit an extension stage whose input is the
    first stage's video, not the original image.

    Known limitation: there is no way to abort a remote job. A cancel token
    only stops local waiting; submitted jobs keep running server-side.

    Example:
        orchestrator = PipelineOrchestrator()
        handle = await orchestrator.generate(request, progress_callback=print_event)
        try:
            shutil.copy(handle.path, "out.mp4")
        finally:
            handle.release()
    """

    def __init__(
        self,
        settings: Settings | None = None,
        credential_provider: CredentialProvider | None = None,
        client_factory: ClientFactory | None = None,
        fetcher: ArtifactFetcher | None = None,
        classifier: ErrorClassifier | None = None,
    ):
        """
        Initialize pipeline orchestrator.

        Args:
            settings: Application settings (uses defaults if None)
            credential_provider: Source of the API key (environment if None)
            client_factory: Builds the remote client for a credential (Veo if None)
            fetcher: Artifact downloader
            classifier: Error classifier used at the generate() boundary
        """
        self.settings = settings or get_settings()
        self.credential_provider = credential_provider or EnvironmentCredentialProvider()
        self.client_factory = client_factory or self._veo_client
        self.fetcher = fetcher or ArtifactFetcher(self.settings)
        self.classifier = classifier or ErrorClassifier()
        self._lock = asyncio.Lock()

    def _veo_client(self, credential: str) -> BaseOperationClientImpl:
        return VeoOperationClient.from_settings(self.settings, credential)

    @property
    def is_running(self) -> bool:
        """True while a generate() call is in progress."""
        return self._lock.locked()

    async def generate(
        self,
        request: GenerationRequest,
        progress_callback: ProgressCallback | None = None,
        cancel_token: CancellationToken | None = None,
        credential_provider: CredentialProvider | None = None,
    ) -> ArtifactHandle:
        """
        Generate a video for a request.

        Args:
            request: Prompt, image and output shape
            progress_callback: Optional callback for progress events
            cancel_token: Optional token that interrupts local waits
            credential_provider: Overrides the default provider for this run

        Returns:
            ArtifactHandle owned by the caller (release it when done)

        Raises:
            ClassifiedError: On any failure
        """
        if self._lock.locked():
            raise self.classifier.classify(PipelineBusyError())

        async with self._lock:
            started_at = datetime.now()
            try:
                handle = await self._run(
                    request,
                    progress_callback,
                    cancel_token or CancellationToken(),
                    credential_provider or self.credential_provider,
                )
            except Exception as e:
                classified = self.classifier.classify(e)
                logger.error(f"Generation failed [{classified.kind.value}]: {e}")
                if classified is e:
                    raise
                raise classified from e

        elapsed = (datetime.now() - started_at).total_seconds()
        logger.info(
            f"Generation complete: {request.target_length.value}, "
            f"{handle.size_bytes / 1024 / 1024:.1f} MB, {elapsed:.1f}s"
        )
        return handle

    async def _run(
        self,
        request: GenerationRequest,
        progress_callback: ProgressCallback | None,
        token: CancellationToken,
        credential_provider: CredentialProvider,
    ) -> ArtifactHandle:
        # Read once per run; a key change applies to the next run
        credential = credential_provider.get_credential()
        if not credential:
            raise ClassifiedError(ErrorKind.MISSING_CREDENTIAL, MISSING_CREDENTIAL_MESSAGE)

        progress = ProgressManager(progress_callback)
        extend = request.target_length == TargetLength.LONG

        logger.info(
            f"Generation started: length={request.target_length.value}, "
            f"aspect={request.aspect_ratio.value}, image={request.image.size_kb:.0f} KB"
        )

        async with self.client_factory(credential) as client:
            await progress.emit(ProgressMilestone.WARMING_UP, "Warming up the creativity engine...")

            final_stage = initial_stage(self.settings, extend=extend)
            reference = await self._run_stage(client, final_stage, request, None, progress, token)

            if extend:
                final_stage = extension_stage(self.settings)
                reference = await self._run_stage(
                    client, final_stage, request, reference, progress, token
                )

        await progress.emit(ProgressMilestone.DOWNLOADING, final_stage.download_message)
        token.raise_if_cancelled()
        return await self.fetcher.fetch(reference, credential)

    async def _run_stage(
        self,
        client: BaseOperationClientImpl,
        stage_spec: StageSpec,
        request: GenerationRequest,
        source: ResultReference | None,
        progress: ProgressManager,
        token: CancellationToken,
    ) -> ResultReference:
        """
        Submit one stage, poll it to completion and validate its result.

        Args:
            client: Remote operation client for this run
            stage_spec: Stage parameters
            request: Generation request
            source: Previous stage's result (extension only)
            progress: Progress manager for this run
            token: Cancellation token

        Returns:
            Result reference of the finished stage

        Raises:
            ClassifiedError: MISSING_RESULT if the stage produced no video
        """
        stage_input = stage_spec.build_input(request, self.settings, source)

        token.raise_if_cancelled()
        operation = await client.submit(stage_input)
        await progress.emit(stage_spec.milestone, stage_spec.progress_message)

        operation = await poll_until_done(
            client,
            operation,
            interval_sec=self.settings.poll_interval_sec,
            max_duration_sec=self.settings.poll_max_duration_sec,
            cancel_token=token,
        )

        if stage_spec.settle_after:
            await progress.emit(ProgressMilestone.FINALIZING, "Finalizing initial scene...")
            await token.sleep(self.settings.settle_delay_sec)

        if operation.result is None:
            if operation.error:
                logger.warning(f"{stage_spec.stage.value} stage finished with error: {operation.error}")
            raise ClassifiedError(ErrorKind.MISSING_RESULT, stage_spec.missing_result_message)

        logger.info(f"{stage_spec.stage.value} stage finished: {operation.name}")
        return operation.result
