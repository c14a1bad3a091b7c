"""
HTTP API routes for video generation.

Provides endpoints for:
- Generating a video from an uploaded image or video plus a prompt
"""

import logging
import uuid
from pathlib import Path

from fastapi import APIRouter, File, Form, Header, HTTPException, UploadFile
from fastapi.responses import FileResponse
from starlette.background import BackgroundTask

from stillmotion.config import Settings, get_settings
from stillmotion.models.schemas import (
    AspectRatio,
    ErrorKind,
    GenerationRequest,
    TargetLength,
)
from stillmotion.services.credentials import StaticCredentialProvider
from stillmotion.services.error_classifier import ClassifiedError, ErrorClassifier
from stillmotion.services.input_normalizer import InputNormalizer, InputProcessingError
from stillmotion.services.pipeline import PipelineBusyError, PipelineOrchestrator
from stillmotion.services.progress_broadcaster import get_progress_broadcaster

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api", tags=["generation"])

ERROR_STATUS_CODES = {
    ErrorKind.MISSING_CREDENTIAL: 401,
    ErrorKind.INVALID_CREDENTIAL: 401,
    ErrorKind.RATE_LIMITED: 429,
    ErrorKind.INPUT_PROCESSING: 422,
    ErrorKind.BUSY: 409,
    ErrorKind.TIMEOUT: 504,
    ErrorKind.CANCELLED: 499,
    ErrorKind.MISSING_RESULT: 502,
    ErrorKind.UNKNOWN: 502,
}

UPLOAD_CHUNK_SIZE = 1024 * 1024

_orchestrator: PipelineOrchestrator | None = None


def get_orchestrator() -> PipelineOrchestrator:
    """Get the process-wide orchestrator (one active pipeline at a time)."""
    global _orchestrator
    if _orchestrator is None:
        _orchestrator = PipelineOrchestrator(get_settings())
    return _orchestrator


def error_to_http(error: ClassifiedError) -> HTTPException:
    """Map a classified pipeline error to an HTTP error response."""
    return HTTPException(
        status_code=ERROR_STATUS_CODES.get(error.kind, 502),
        detail={
            "kind": error.kind.value,
            "message": error.message,
            "requires_reauth": error.requires_reauth,
        },
    )


async def save_upload(file: UploadFile, settings: Settings) -> Path:
    """
    Store an upload under temp_dir.

    Args:
        file: Uploaded file
        settings: Application settings

    Returns:
        Path to the stored file

    Raises:
        HTTPException: 413 if the upload exceeds max_upload_mb
    """
    settings.temp_dir.mkdir(parents=True, exist_ok=True)
    suffix = Path(file.filename or "").suffix.lower()
    upload_path = settings.temp_dir / f"{uuid.uuid4().hex[:8]}{suffix}"
    max_bytes = settings.max_upload_mb * 1024 * 1024

    written = 0
    try:
        with open(upload_path, "wb") as f:
            while chunk := await file.read(UPLOAD_CHUNK_SIZE):
                written += len(chunk)
                if written > max_bytes:
                    raise HTTPException(
                        status_code=413,
                        detail=f"File too large (limit {settings.max_upload_mb} MB)",
                    )
                f.write(chunk)
    except BaseException:
        # Never leave partial uploads behind
        upload_path.unlink(missing_ok=True)
        raise

    logger.debug(f"Upload stored: {upload_path.name} ({written / 1024:.0f} KB)")
    return upload_path


@router.post("/generate", response_class=FileResponse)
async def generate_video(
    prompt: str = Form(""),
    aspect_ratio: AspectRatio = Form(AspectRatio.WIDE),
    target_length: TargetLength = Form(TargetLength.SHORT),
    file: UploadFile | None = File(None),
    x_api_key: str | None = Header(None),
) -> FileResponse:
    """
    Generate a video from an image (or a video's first frame) and a prompt.

    Progress is streamed on WebSocket /ws/progress while the request is
    pending. The response body is the generated video.

    Args:
        prompt: Motion description
        aspect_ratio: "16:9" or "9:16"
        target_length: "short" or "long" (long adds an extension stage)
        file: Image or video upload
        x_api_key: Optional API key overriding the server environment

    Returns:
        The generated video

    Raises:
        422: Missing prompt/file or input that cannot be processed
        401: Missing or invalid API key
        409: Another generation is running
        429: Rate limited by the generation service
    """
    if not prompt.strip() or file is None or not file.filename:
        raise HTTPException(status_code=422, detail="Please provide a prompt and upload a file.")

    settings = get_settings()
    orchestrator = get_orchestrator()
    classifier = ErrorClassifier()
    broadcaster = get_progress_broadcaster()

    if orchestrator.is_running:
        raise error_to_http(classifier.classify(PipelineBusyError()))

    upload_path = await save_upload(file, settings)
    try:
        image = await InputNormalizer(settings).normalize(upload_path, file.content_type)
    except InputProcessingError as e:
        raise error_to_http(classifier.classify(e)) from e
    finally:
        upload_path.unlink(missing_ok=True)

    request = GenerationRequest(
        prompt=prompt,
        image=image,
        aspect_ratio=aspect_ratio,
        target_length=target_length,
    )
    credential_provider = StaticCredentialProvider(x_api_key) if x_api_key else None

    logger.info(f"Generation requested: {file.filename}, {target_length.value}, {aspect_ratio.value}")

    try:
        handle = await orchestrator.generate(
            request,
            progress_callback=broadcaster.publish_event,
            credential_provider=credential_provider,
        )
    except ClassifiedError as e:
        await broadcaster.publish_failed(e.kind.value, e.message)
        raise error_to_http(e) from e

    await broadcaster.publish_completed(handle.size_bytes)

    return FileResponse(
        handle.path,
        media_type=handle.mime_type,
        filename=f"stillmotion_{target_length.value}.mp4",
        background=BackgroundTask(handle.release),
    )

