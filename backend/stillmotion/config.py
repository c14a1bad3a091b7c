"""
Application configuration and settings.
"""

from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    The API key is intentionally not a field here: it is read from the
    environment on every pipeline run by the credential provider.
    """

    # Generation models
    initial_model: str = "veo-3.1-fast-generate-preview"  # First stage (image -> video)
    extension_model: str = "veo-3.1-generate-preview"  # Model that supports extension
    video_resolution: str = "720p"
    number_of_videos: int = 1

    # Polling
    poll_interval_sec: float = 20.0
    poll_max_duration_sec: float | None = None  # None = wait until the service finishes
    settle_delay_sec: float = 3.0  # Wait after the first stage before extending it

    # Remote calls
    api_timeout: float = 60.0  # Per-request timeout for submit/poll calls

    # Downloads
    download_timeout: float = 120.0

    # Paths
    artifact_dir: Path = Path("/tmp/stillmotion/artifacts")
    temp_dir: Path = Path("/tmp/stillmotion/uploads")

    # Input normalization
    ffmpeg_timeout: int = 60
    frame_format: str = "jpeg"
    max_upload_mb: int = 200

    # Logging
    log_level: str = "INFO"
    log_format: str = "structured"  # "simple" or "structured"

    # Per-module log levels (optional overrides)
    log_level_pipeline: str | None = None
    log_level_operation_client: str | None = None
    log_level_fetcher: str | None = None

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
