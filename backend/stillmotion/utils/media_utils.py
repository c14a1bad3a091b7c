"""
Media utilities for upload handling.

Provides media kind detection from a declared MIME type with a file
extension fallback.
"""

import mimetypes
from enum import Enum
from pathlib import Path

IMAGE_EXTENSIONS = frozenset({".png", ".jpg", ".jpeg", ".webp", ".gif", ".bmp"})
VIDEO_EXTENSIONS = frozenset({".mp4", ".mkv", ".avi", ".mov", ".webm"})


class MediaKind(str, Enum):
    """Kind of uploaded source."""
    IMAGE = "image"
    VIDEO = "video"


def is_image_file(file_path: Path) -> bool:
    """Check if file is an image by extension."""
    return file_path.suffix.lower() in IMAGE_EXTENSIONS


def is_video_file(file_path: Path) -> bool:
    """Check if file is a video by extension."""
    return file_path.suffix.lower() in VIDEO_EXTENSIONS


def guess_mime_type(file_path: Path) -> str | None:
    """Guess MIME type from the file name."""
    mime_type, _ = mimetypes.guess_type(file_path.name)
    return mime_type


def detect_media_kind(file_path: Path, mime_type: str | None = None) -> MediaKind | None:
    """Detect whether a source is an image or a video.

    The declared MIME type wins; the extension is used when no type is
    declared or the declared one is generic.

    Args:
        file_path: Path to the uploaded file
        mime_type: MIME type declared by the uploader (optional)

    Returns:
        MediaKind, or None for unsupported sources
    """
    if mime_type:
        if mime_type.startswith("image/"):
            return MediaKind.IMAGE
        if mime_type.startswith("video/"):
            return MediaKind.VIDEO

    if is_image_file(file_path):
        return MediaKind.IMAGE
    if is_video_file(file_path):
        return MediaKind.VIDEO
    return None
