"""
Logging setup.

LOG_LEVEL and LOG_FORMAT (simple | structured) apply globally;
LOG_LEVEL_PIPELINE, LOG_LEVEL_OPERATION_CLIENT and LOG_LEVEL_FETCHER
override single subsystems.
"""

import logging
import sys
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from stillmotion.config import Settings


# settings field suffix -> logger name
MODULE_LOGGERS = {
    "pipeline": "stillmotion.services.pipeline",
    "operation_client": "stillmotion.services.operation_clients",
    "fetcher": "stillmotion.services.artifact_fetcher",
}

NOISY_LOGGERS = ("httpx", "httpcore", "google_genai", "uvicorn.access")

# Longest prefix first
_NAME_PREFIXES = (
    ("stillmotion.services.", ""),
    ("stillmotion.api.", "api."),
    ("stillmotion.", ""),
)

SIMPLE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class StructuredFormatter(logging.Formatter):
    """One line per record: timestamp | level | logger | message."""

    def format(self, record: logging.LogRecord) -> str:
        name = record.name
        for prefix, replacement in _NAME_PREFIXES:
            if name.startswith(prefix):
                name = replacement + name[len(prefix):]
                break

        line = (
            f"{self.formatTime(record, '%Y-%m-%d %H:%M:%S')} | "
            f"{record.levelname:8} | {name:20} | {record.getMessage()}"
        )
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


def _level(name: str | None, default: int) -> int:
    return getattr(logging, name.upper(), default) if name else default


def setup_logging(settings: "Settings") -> None:
    """
    Install a single stdout handler on the root logger.

    Safe to call repeatedly: previous handlers are replaced.

    Args:
        settings: Application settings with log configuration
    """
    root_level = _level(settings.log_level, logging.INFO)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        StructuredFormatter()
        if settings.log_format == "structured"
        else logging.Formatter(SIMPLE_FORMAT)
    )
    logging.basicConfig(level=root_level, handlers=[handler], force=True)

    for key, logger_name in MODULE_LOGGERS.items():
        override = getattr(settings, f"log_level_{key}", None)
        if override:
            logging.getLogger(logger_name).setLevel(_level(override, root_level))

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
