"""
Local handle to a downloaded video artifact.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path

logger = logging.getLogger(__name__)


@dataclass
class ArtifactHandle:
    """
    Downloaded video stored on local disk.

    The handle belongs to whoever received it from the pipeline. It stays
    valid until release() is called; the pipeline keeps no reference to it.

    Attributes:
        path: Local file holding the video bytes
        mime_type: Media type reported by the download response
        size_bytes: Size of the downloaded body
        source_uri: Remote locator the artifact was fetched from (no credential)

    Example:
        with await orchestrator.generate(request) as handle:
            shutil.copy(handle.path, "out.mp4")
    """

    path: Path
    mime_type: str = "video/mp4"
    size_bytes: int = 0
    source_uri: str = ""
    _released: bool = field(default=False, repr=False)

    @property
    def released(self) -> bool:
        """True once the local file has been released."""
        return self._released

    def read_bytes(self) -> bytes:
        """Return the artifact contents."""
        if self._released:
            raise RuntimeError(f"Artifact already released: {self.path}")
        return self.path.read_bytes()

    def release(self) -> None:
        """Delete the local file. Safe to call more than once."""
        if self._released:
            return
        self._released = True
        self.path.unlink(missing_ok=True)
        logger.debug(f"Artifact released: {self.path.name}")

    def __enter__(self) -> "ArtifactHandle":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.release()
