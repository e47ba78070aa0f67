"""Watermark persistence for incremental formatting runs."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Mapping

from jsonformatter.clock import Clock, SystemClock
from jsonformatter.config import ConfigManager, FormatterConfig
from jsonformatter.timestamps import coerce_timestamp, format_timestamp

LOGGER = logging.getLogger(__name__)

WATERMARK_KEY = "lastUpdate"


class WatermarkStore:
    """Load and persist the watermark held in the configuration file."""

    def __init__(
        self,
        manager: ConfigManager | None = None,
        *,
        clock: Clock | None = None,
        cli_overrides: Mapping[str, Any] | None = None,
    ) -> None:
        """Initialize the store.

        Args:
            manager: Configuration manager owning the on-disk file.
            clock: Clock used to stamp the initial watermark on first run.
            cli_overrides: Overrides applied on top of file and environment values.
        """
        self._manager = manager or ConfigManager()
        self._clock = clock or SystemClock()
        self._cli_overrides = dict(cli_overrides) if cli_overrides else None
        self._first_run = False

    @property
    def manager(self) -> ConfigManager:
        """Return the configuration manager backing this store."""
        return self._manager

    @property
    def first_run(self) -> bool:
        """Return True when the last ``load`` had to create default configuration."""
        return self._first_run

    def load(self) -> FormatterConfig:
        """Load configuration, writing defaults first when none exist.

        Returns:
            FormatterConfig: Immutable configuration for the run.

        Raises:
            ConfigError: If existing configuration cannot be read or validated.
        """
        now = self._clock.now()
        self._first_run = self._manager.ensure_exists(now)
        if self._first_run:
            LOGGER.warning(
                "No configuration found; wrote defaults to %s. The watermark starts at %s, "
                "so files already present in the source directory will not be formatted.",
                self._manager.config_path,
                format_timestamp(now),
            )
        return self._manager.load(cli_overrides=self._cli_overrides)

    def save(self, config: FormatterConfig) -> datetime:
        """Persist the watermark carried by config.

        Only the ``lastUpdate`` entry is rewritten; every other key keeps the
        value the operator stored, so environment and CLI overrides never leak
        into the file. An override may lower the watermark used for discovery,
        but the stored value never moves backwards: the later of the on-disk
        and requested watermarks is written.

        Returns:
            datetime: The watermark now stored on disk.

        Raises:
            ConfigError: If the file cannot be read back or rewritten.
        """
        data = self._manager.load_file_overrides()
        stored = self._stored_watermark(data)
        watermark = config.last_update if stored is None else max(stored, config.last_update)
        if stored is not None and watermark != config.last_update:
            LOGGER.warning(
                "Keeping stored watermark %s; %s is older (lastUpdate is overridden).",
                format_timestamp(stored),
                format_timestamp(config.last_update),
            )
        data.pop("last_update", None)
        data[WATERMARK_KEY] = format_timestamp(watermark)
        self._manager.save(data)
        LOGGER.debug("Persisted watermark %s to %s", data[WATERMARK_KEY], self._manager.config_path)
        return watermark

    def _stored_watermark(self, data: Mapping[str, Any]) -> datetime | None:
        raw = data.get(WATERMARK_KEY, data.get("last_update"))
        if raw is None:
            return None
        try:
            return coerce_timestamp(raw)
        except ValueError:
            LOGGER.debug("Ignoring unparseable stored watermark %r", raw)
            return None


__all__ = ["WatermarkStore", "WATERMARK_KEY"]
