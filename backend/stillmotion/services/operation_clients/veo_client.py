"""
Veo client implementation.

Thin wrapper over google-genai's asynchronous video generation API:
- submit: client.aio.models.generate_videos
- poll: client.aio.operations.get

Converts SDK operation objects into RemoteOperation snapshots and keeps the
SDK object in `raw` so it can be polled again or reused as extension input.
"""

import logging
from typing import Any

import httpx
from google import genai
from google.genai import errors as genai_errors
from google.genai import types

from stillmotion.config import Settings
from stillmotion.models.schemas import RemoteOperation, ResultReference, StageInput
from stillmotion.services.operation_clients.base import (
    BaseOperationClientImpl,
    OperationClientConfig,
    OperationClientConnectionError,
    OperationClientResponseError,
)

logger = logging.getLogger(__name__)


class VeoOperationClient(BaseOperationClientImpl):
    """
    Async client for Veo video generation.

    A new instance is created for every pipeline run so that the API key
    selected for that run is the one used.

    Example:
        async with VeoOperationClient.from_settings(settings, api_key) as client:
            operation = await client.submit(stage_input)
            operation = await client.poll(operation)
    """

    provider = "veo"

    def __init__(self, config: OperationClientConfig):
        """
        Initialize Veo client.

        Args:
            config: Client configuration with API key

        Raises:
            ValueError: If API key is not provided
        """
        super().__init__(config)

        if not config.api_key:
            raise ValueError("VeoOperationClient requires an API key.")

        self.client = genai.Client(
            api_key=config.api_key,
            http_options=types.HttpOptions(timeout=int(config.timeout * 1000)),
        )

    @classmethod
    def from_settings(cls, settings: Settings, api_key: str) -> "VeoOperationClient":
        """
        Create VeoOperationClient for one pipeline run.

        Args:
            settings: Application settings
            api_key: Credential read for this run

        Returns:
            Configured VeoOperationClient instance
        """
        return cls(OperationClientConfig(api_key=api_key, timeout=settings.api_timeout))

    async def close(self) -> None:
        """Nothing to release; the SDK manages its own HTTP sessions."""
        logger.debug("VeoOperationClient closed")

    async def submit(self, stage_input: StageInput) -> RemoteOperation:
        """
        Submit a video generation job.

        The initial stage sends the still image; the extension stage sends
        the previous stage's video object unchanged.

        Args:
            stage_input: Stage payload

        Returns:
            First operation snapshot

        Raises:
            OperationClientError: If the request fails
        """
        kwargs: dict[str, Any] = {
            "model": stage_input.model,
            "prompt": stage_input.prompt,
            "config": types.GenerateVideosConfig(
                number_of_videos=stage_input.number_of_videos,
                resolution=stage_input.resolution,
                aspect_ratio=stage_input.aspect_ratio.value,
            ),
        }

        if stage_input.image is not None:
            kwargs["image"] = types.Image(
                image_bytes=stage_input.image.data,
                mime_type=stage_input.image.mime_type,
            )
        else:
            reference = stage_input.video
            kwargs["video"] = reference.raw or types.Video(
                uri=reference.uri,
                mime_type=reference.mime_type,
            )

        logger.info(
            f"Veo submit: stage={stage_input.stage.value}, model={stage_input.model}, "
            f"aspect={stage_input.aspect_ratio.value}, resolution={stage_input.resolution}"
        )

        try:
            operation = await self.client.aio.models.generate_videos(**kwargs)
        except genai_errors.APIError as e:
            raise self._response_error(e, stage_input.model) from e
        except httpx.TransportError as e:
            logger.error(f"Veo connection error: {e}")
            raise OperationClientConnectionError(
                f"Cannot connect to Veo API: {e}",
                provider=self.provider,
                original_error=e,
            ) from e

        snapshot = to_remote_operation(operation)
        logger.info(f"Veo operation started: {snapshot.name}")
        return snapshot

    async def poll(self, operation: RemoteOperation) -> RemoteOperation:
        """
        Fetch the latest state of an operation.

        Args:
            operation: Snapshot returned by submit() or a previous poll()

        Returns:
            New snapshot

        Raises:
            OperationClientError: If the request fails
        """
        sdk_operation = operation.raw
        if sdk_operation is None:
            sdk_operation = types.GenerateVideosOperation(name=operation.name)

        try:
            refreshed = await self.client.aio.operations.get(operation=sdk_operation)
        except genai_errors.APIError as e:
            raise self._response_error(e, None) from e
        except httpx.TransportError as e:
            logger.error(f"Veo connection error: {e}")
            raise OperationClientConnectionError(
                f"Cannot connect to Veo API: {e}",
                provider=self.provider,
                original_error=e,
            ) from e

        snapshot = to_remote_operation(refreshed)
        logger.debug(f"Veo poll: {snapshot.name} done={snapshot.done}")
        return snapshot

    def _response_error(
        self,
        error: genai_errors.APIError,
        model: str | None,
    ) -> OperationClientResponseError:
        logger.error(f"Veo API error: {error}")
        return OperationClientResponseError(
            str(error),
            status_code=getattr(error, "code", None),
            provider=self.provider,
            model=model,
            original_error=error,
        )


def to_remote_operation(operation: Any) -> RemoteOperation:
    """
    Convert a google-genai operation into a RemoteOperation snapshot.

    Only the first generated video is considered.

    Args:
        operation: GenerateVideosOperation (or any object of the same shape)

    Returns:
        RemoteOperation with result reference when a video URI is present
    """
    result = None
    response = getattr(operation, "response", None) or getattr(operation, "result", None)
    videos = getattr(response, "generated_videos", None) or []
    if videos:
        video = getattr(videos[0], "video", None)
        uri = getattr(video, "uri", None)
        if video is not None and uri:
            result = ResultReference(
                uri=uri,
                mime_type=getattr(video, "mime_type", None),
                raw=video,
            )

    error = getattr(operation, "error", None)

    return RemoteOperation(
        name=getattr(operation, "name", None),
        done=bool(getattr(operation, "done", False)),
        result=result,
        error=str(error) if error else None,
        raw=operation,
    )
