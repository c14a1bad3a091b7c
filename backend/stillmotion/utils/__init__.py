"""
Shared utilities.

Modules:
    media_utils: Media kind detection for uploaded sources
"""

from stillmotion.utils.media_utils import (
    MediaKind,
    detect_media_kind,
    guess_mime_type,
    is_image_file,
    is_video_file,
)

__all__ = [
    "MediaKind",
    "detect_media_kind",
    "guess_mime_type",
    "is_image_file",
    "is_video_file",
]
