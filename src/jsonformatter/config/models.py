"""Configuration models describing jsonformatter settings."""

from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator

from jsonformatter.timestamps import coerce_timestamp, format_timestamp, truncate_to_millis

DEFAULT_EXTENSION = ".json"
DEFAULT_PATH_FIELD = "X-AEM-PATH"
DEFAULT_UNFORMATTED_DIRECTORY = Path("inbound")
DEFAULT_FORMATTED_DIRECTORY = Path("inboundFormatted")

_LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")


class FormatterBaseModel(BaseModel):
    """Shared configuration for jsonformatter Pydantic models."""

    model_config = ConfigDict(extra="forbid", frozen=True)


class ProcessingOptions(FormatterBaseModel):
    """Options governing discovery and reformatting.

    Attributes:
        extension: Case-sensitive filename suffix a source file must carry.
        indent: Number of spaces used when pretty-printing documents.
        path_field: Key holding the logical path used to derive output names.
        delivery: Whether the watermark is saved before transforms
            (``at_most_once``) or after them (``at_least_once``).
    """

    extension: str = DEFAULT_EXTENSION
    indent: int = Field(default=4, ge=0)
    path_field: str = DEFAULT_PATH_FIELD
    delivery: Literal["at_most_once", "at_least_once"] = "at_most_once"

    @field_validator("extension")
    @classmethod
    def _require_extension(cls, value: str) -> str:
        if not value:
            raise ValueError("extension must not be empty")
        return value


class LoggingSettings(FormatterBaseModel):
    """Runtime logging configuration.

    Attributes:
        level: Logging verbosity level.
        file: Optional log file receiving a rotating copy of all records.
        max_size_mb: Maximum log size before rotation.
        backup_count: Number of historical log files to retain.
    """

    level: str = "INFO"
    file: Optional[Path] = None
    max_size_mb: int = Field(default=10, ge=1)
    backup_count: int = Field(default=5, ge=0)

    @field_validator("level")
    @classmethod
    def _normalize_level(cls, value: str) -> str:
        upper = value.upper()
        if upper not in _LOG_LEVELS:
            raise ValueError(f"level must be one of {', '.join(_LOG_LEVELS)}")
        return upper


class FormatterConfig(FormatterBaseModel):
    """Top-level configuration for a formatting run.

    The three aliased fields are the persisted keys of the configuration file
    and must all be present; the nested sections are optional.

    Attributes:
        last_update: Watermark; files modified at or before it are skipped.
        unformatted_directory: Directory scanned for new documents.
        formatted_directory: Directory receiving pretty-printed copies.
        processing: Discovery and reformatting options.
        logging: Logging configuration.
    """

    model_config = ConfigDict(extra="forbid", frozen=True, populate_by_name=True)

    last_update: datetime = Field(alias="lastUpdate")
    unformatted_directory: Path = Field(alias="unformattedDirectory")
    formatted_directory: Path = Field(alias="formattedDirectory")
    processing: ProcessingOptions = Field(default_factory=ProcessingOptions)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    @field_validator("last_update", mode="before")
    @classmethod
    def _parse_last_update(cls, value: Any) -> datetime:
        return coerce_timestamp(value)

    @field_serializer("last_update")
    def _serialize_last_update(self, value: datetime) -> str:
        return format_timestamp(value)

    def with_watermark(self, watermark: datetime) -> "FormatterConfig":
        """Return a copy of this config carrying a new watermark."""
        return self.model_copy(update={"last_update": truncate_to_millis(watermark)})

    def resolve_directories(self, base: Path) -> "FormatterConfig":
        """Return a copy whose relative directories are anchored at base."""
        updates: dict[str, Path] = {}
        for name in ("unformatted_directory", "formatted_directory"):
            value: Path = getattr(self, name).expanduser()
            updates[name] = value if value.is_absolute() else base / value
        log_file = self.logging.file
        if log_file is not None and not log_file.expanduser().is_absolute():
            log_settings = self.logging.model_copy(update={"file": base / log_file})
            return self.model_copy(update={**updates, "logging": log_settings})
        return self.model_copy(update=updates)


def default_file_data(now: datetime) -> dict[str, Any]:
    """Return the mapping written to a freshly created configuration file."""
    return {
        "lastUpdate": format_timestamp(now),
        "unformattedDirectory": str(DEFAULT_UNFORMATTED_DIRECTORY),
        "formattedDirectory": str(DEFAULT_FORMATTED_DIRECTORY),
    }


__all__ = [
    "DEFAULT_EXTENSION",
    "DEFAULT_PATH_FIELD",
    "DEFAULT_UNFORMATTED_DIRECTORY",
    "DEFAULT_FORMATTED_DIRECTORY",
    "FormatterBaseModel",
    "ProcessingOptions",
    "LoggingSettings",
    "FormatterConfig",
    "default_file_data",
]
