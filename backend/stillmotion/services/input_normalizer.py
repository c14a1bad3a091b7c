"""
Input normalization using ffmpeg.

Turns an uploaded image or video into the single still image the first
generation stage expects. Videos contribute their first decodable frame.
"""

import asyncio
import logging
import subprocess
import tempfile
from pathlib import Path

from stillmotion.config import Settings
from stillmotion.models.schemas import ErrorKind, ImagePayload
from stillmotion.utils.media_utils import MediaKind, detect_media_kind, guess_mime_type

logger = logging.getLogger(__name__)

# frame_format setting -> (file suffix, MIME type)
FRAME_FORMATS = {
    "jpeg": (".jpg", "image/jpeg"),
    "png": (".png", "image/png"),
}

UNSUPPORTED_MESSAGE = "Unsupported file type. Please upload an image or a video."
INVALID_VIDEO_MESSAGE = "Failed to load video file. Ensure it is a valid format."


class InputProcessingError(Exception):
    """
    Raised when an upload cannot be turned into a still image.

    Attributes:
        message: Error description
        cause: Original exception (if any)
    """

    kind = ErrorKind.INPUT_PROCESSING

    def __init__(self, message: str, cause: Exception | None = None):
        self.message = message
        self.cause = cause
        super().__init__(message)


class InputNormalizer:
    """
    Produces an ImagePayload from an image or video file.

    Example:
        normalizer = InputNormalizer(settings)
        payload = await normalizer.normalize(Path("clip.mp4"), "video/mp4")
    """

    def __init__(self, settings: Settings):
        """
        Initialize input normalizer.

        Args:
            settings: Application settings
        """
        self.settings = settings
        if settings.frame_format not in FRAME_FORMATS:
            raise ValueError(
                f"Unsupported frame_format: {settings.frame_format}. "
                f"Expected one of {sorted(FRAME_FORMATS)}"
            )

    async def normalize(self, source: Path, mime_type: str | None = None) -> ImagePayload:
        """
        Normalize an uploaded file to a still image payload.

        Args:
            source: Path to the uploaded image or video
            mime_type: MIME type declared by the uploader (optional)

        Returns:
            ImagePayload with non-empty bytes

        Raises:
            InputProcessingError: If the file is missing, unsupported or
                cannot be decoded
        """
        source = Path(source)
        if not source.exists():
            raise InputProcessingError(f"Input file not found: {source.name}")

        kind = detect_media_kind(source, mime_type)

        if kind == MediaKind.IMAGE:
            data = await asyncio.to_thread(source.read_bytes)
            if not data:
                raise InputProcessingError(f"Image file is empty: {source.name}")
            if not (mime_type and mime_type.startswith("image/")):
                mime_type = guess_mime_type(source) or "image/png"
            logger.info(f"Image input: {source.name} ({len(data) / 1024:.0f} KB, {mime_type})")
            return ImagePayload(data=data, mime_type=mime_type)

        if kind == MediaKind.VIDEO:
            logger.info(f"Extracting first frame from video: {source.name}")
            return await self.extract_first_frame(source)

        raise InputProcessingError(UNSUPPORTED_MESSAGE)

    async def extract_first_frame(self, video_path: Path) -> ImagePayload:
        """
        Extract the first decodable frame of a video.

        Args:
            video_path: Path to the video file

        Returns:
            ImagePayload with the encoded frame

        Raises:
            InputProcessingError: If ffmpeg fails or produces no frame
        """
        suffix, frame_mime_type = FRAME_FORMATS[self.settings.frame_format]

        with tempfile.TemporaryDirectory(prefix="stillmotion_frame_") as tmp_dir:
            frame_path = Path(tmp_dir) / f"{video_path.stem}_frame{suffix}"

            # Run ffmpeg in thread pool to not block event loop
            await asyncio.to_thread(self._run_ffmpeg, video_path, frame_path)

            if not frame_path.exists() or frame_path.stat().st_size == 0:
                raise InputProcessingError(INVALID_VIDEO_MESSAGE)

            data = frame_path.read_bytes()

        logger.info(f"Frame extracted: {video_path.name} ({len(data) / 1024:.0f} KB)")
        return ImagePayload(data=data, mime_type=frame_mime_type)

    def _run_ffmpeg(self, video_path: Path, frame_path: Path) -> None:
        """
        Run ffmpeg to write the first frame.

        Args:
            video_path: Input video path
            frame_path: Output image path

        Raises:
            InputProcessingError: If ffmpeg is missing, times out or fails
        """
        cmd = [
            "ffmpeg",
            "-v", "error",
            "-i", str(video_path),
            "-frames:v", "1",         # First frame only
            "-q:v", "2",              # High JPEG quality (ignored for PNG)
            "-f", "image2",
            "-y",                     # Overwrite output
            str(frame_path),
        ]

        try:
            result = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                timeout=self.settings.ffmpeg_timeout,
            )
        except FileNotFoundError as e:
            raise InputProcessingError("ffmpeg is not available on this system", e) from e
        except subprocess.TimeoutExpired as e:
            raise InputProcessingError(
                f"Frame extraction timed out after {self.settings.ffmpeg_timeout}s", e
            ) from e

        if result.returncode != 0:
            logger.error(f"ffmpeg failed: {result.stderr[:500]}")
            raise InputProcessingError(INVALID_VIDEO_MESSAGE)
