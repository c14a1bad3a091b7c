import logging

from stillmotion.logging_config import StructuredFormatter, setup_logging


def make_record(name: str) -> logging.LogRecord:
    return logging.LogRecord(name, logging.INFO, __file__, 1, "Polling %s", ("op-1",), None)


def test_structured_format_shortens_names():
    formatter = StructuredFormatter()

    line = formatter.format(make_record("stillmotion.services.pipeline.polling"))
    api_line = formatter.format(make_record("stillmotion.api.routes"))

    assert " | INFO     | pipeline.polling" in line
    assert line.endswith("| Polling op-1")
    assert "| api.routes" in api_line


def test_setup_logging_applies_overrides(settings):
    settings = settings.model_copy(update={"log_level": "WARNING", "log_level_fetcher": "DEBUG"})

    setup_logging(settings)
    setup_logging(settings)

    root = logging.getLogger()
    assert root.level == logging.WARNING
    assert len([h for h in root.handlers if isinstance(h.formatter, StructuredFormatter)]) == 1
    assert logging.getLogger("stillmotion.services.artifact_fetcher").level == logging.DEBUG
    assert logging.getLogger("httpx").level == logging.WARNING
