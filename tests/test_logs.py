"""Tests for logging configuration."""

import io
import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

from rich.console import Console

from jsonformatter.config.models import LoggingSettings
from jsonformatter.logs import configure_logging


def test_configure_logging_writes_to_rotating_file(tmp_path: Path) -> None:
    log_file = tmp_path / "logs" / "run.log"
    settings = LoggingSettings(level="debug", file=log_file)
    stream = io.StringIO()

    logger = configure_logging(settings, console=Console(file=stream))
    logging.getLogger("jsonformatter.ingestion.pipeline").info("formatted %s", "doc.json")
    for handler in logger.handlers:
        handler.flush()

    assert logger.level == logging.DEBUG
    assert "formatted doc.json" in log_file.read_text(encoding="utf-8")
    assert "formatted doc.json" in stream.getvalue()

    configure_logging(settings, console=Console(file=io.StringIO()))
    file_handlers = [h for h in logger.handlers if isinstance(h, RotatingFileHandler)]
    assert len(file_handlers) == 1

    configure_logging(LoggingSettings(), console=Console(file=io.StringIO()))
    assert not [h for h in logger.handlers if isinstance(h, RotatingFileHandler)]


def test_quiet_console_only_shows_errors() -> None:
    stream = io.StringIO()
    configure_logging(LoggingSettings(level="INFO"), quiet=True, console=Console(file=stream))
    log = logging.getLogger("jsonformatter.test")

    log.info("routine detail")
    log.error("broken document")

    output = stream.getvalue()
    assert "routine detail" not in output
    assert "broken document" in output
