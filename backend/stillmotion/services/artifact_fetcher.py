"""
Artifact download for finished generation jobs.

Downloads the video referenced by a completed operation and stores it in a
local file owned by the caller.
"""

import logging
import tempfile
import time
from pathlib import Path

import httpx

from stillmotion.config import Settings
from stillmotion.models.artifact import ArtifactHandle
from stillmotion.models.schemas import ResultReference

logger = logging.getLogger(__name__)

DEFAULT_VIDEO_MIME_TYPE = "video/mp4"


class ArtifactDownloadError(Exception):
    """
    Raised when the artifact download response is not successful.

    Attributes:
        message: Error description (includes the response reason phrase)
        status_code: HTTP status code
    """

    def __init__(self, message: str, status_code: int | None = None):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class ArtifactFetcher:
    """
    Authenticated single-shot artifact downloader.

    The credential is appended to the locator as the `key` query parameter.
    The whole body is buffered; there is no retry, no streaming and no
    caching between calls.

    Example:
        fetcher = ArtifactFetcher(settings)
        handle = await fetcher.fetch(operation.result, api_key)
    """

    def __init__(
        self,
        settings: Settings,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """
        Initialize artifact fetcher.

        Args:
            settings: Application settings
            transport: Optional httpx transport (tests use httpx.MockTransport)
        """
        self.settings = settings
        self.transport = transport

    async def fetch(self, reference: ResultReference, credential: str) -> ArtifactHandle:
        """
        Download an artifact into a local file.

        Args:
            reference: Locator of the finished artifact
            credential: API key for this run

        Returns:
            ArtifactHandle owned by the caller

        Raises:
            ArtifactDownloadError: If the response is not successful
            httpx.HTTPError: On transport failures
        """
        url = httpx.URL(reference.uri)
        authenticated_url = url.copy_merge_params({"key": credential})

        # The credential only lives in authenticated_url, which is never logged
        source = str(url)
        logger.info(f"Downloading artifact: {source}")
        start_time = time.time()

        async with httpx.AsyncClient(
            timeout=self.settings.download_timeout,
            follow_redirects=True,
            transport=self.transport,
        ) as client:
            response = await client.get(authenticated_url)

        if not response.is_success:
            logger.error(f"Artifact download failed: {response.status_code} {response.reason_phrase}")
            raise ArtifactDownloadError(
                f"Failed to download video: {response.reason_phrase}",
                status_code=response.status_code,
            )

        content = response.content
        mime_type = (
            response.headers.get("content-type", "").split(";")[0].strip()
            or reference.mime_type
            or DEFAULT_VIDEO_MIME_TYPE
        )

        path = self._write(content)
        elapsed = time.time() - start_time
        logger.info(
            f"Artifact downloaded: {path.name} ({len(content) / 1024 / 1024:.1f} MB, "
            f"{elapsed:.1f}s)"
        )

        return ArtifactHandle(
            path=path,
            mime_type=mime_type,
            size_bytes=len(content),
            source_uri=source,
        )

    def _write(self, content: bytes) -> Path:
        """Store the body in a new file under artifact_dir."""
        artifact_dir = self.settings.artifact_dir
        artifact_dir.mkdir(parents=True, exist_ok=True)

        with tempfile.NamedTemporaryFile(
            dir=artifact_dir,
            prefix="video_",
            suffix=".mp4",
            delete=False,
        ) as f:
            f.write(content)
            return Path(f.name)
