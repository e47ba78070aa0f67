"""Logging configuration for command-line runs."""

from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler

from rich.console import Console
from rich.logging import RichHandler

from jsonformatter.config.models import LoggingSettings

_FILE_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
_HANDLER_MARKER = "_jsonformatter_handler"


def configure_logging(
    settings: LoggingSettings,
    *,
    quiet: bool = False,
    console: Console | None = None,
) -> logging.Logger:
    """Attach console and optional rotating-file handlers to the package logger.

    Calling this again replaces handlers installed by a previous call.

    Args:
        settings: Logging section of the loaded configuration.
        quiet: When True, the console handler only emits errors.
        console: Rich console for terminal output; defaults to stderr.

    Returns:
        logging.Logger: The configured ``jsonformatter`` logger.
    """
    logger = logging.getLogger("jsonformatter")
    for handler in list(logger.handlers):
        if getattr(handler, _HANDLER_MARKER, False):
            logger.removeHandler(handler)
            handler.close()

    level = logging.getLevelName(settings.level)
    logger.setLevel(level)

    console_handler = RichHandler(
        console=console or Console(stderr=True),
        show_path=False,
        markup=False,
    )
    console_handler.setLevel(logging.ERROR if quiet else level)
    setattr(console_handler, _HANDLER_MARKER, True)
    logger.addHandler(console_handler)

    if settings.file is not None:
        settings.file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            settings.file,
            maxBytes=settings.max_size_mb * 1024 * 1024,
            backupCount=settings.backup_count,
            encoding="utf-8",
        )
        file_handler.setFormatter(logging.Formatter(_FILE_FORMAT))
        file_handler.setLevel(level)
        setattr(file_handler, _HANDLER_MARKER, True)
        logger.addHandler(file_handler)

    return logger


__all__ = ["configure_logging"]
