"""Configuration management for jsonformatter."""

from __future__ import annotations

import os
import textwrap
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Mapping

import yaml

from .exceptions import ConfigError
from .models import FormatterConfig, default_file_data
from .resolver import extract_env, flatten_for_env, resolve_with_precedence

DEFAULT_CONFIG_PATH = Path("config.yaml")
CONFIG_PATH_ENV = "JSONFORMATTER_CONFIG"
_CONFIG_HEADER = textwrap.dedent(
    """\
    # jsonformatter configuration file
    # lastUpdate is the watermark: only files modified after it are formatted.
    # Relative directories are resolved against this file's directory.
    """
)


def config_path_from_env(env: Mapping[str, str] | None = None) -> Path:
    """Return the configuration path named by ``JSONFORMATTER_CONFIG`` or the default."""
    source = env if env is not None else os.environ
    value = source.get(CONFIG_PATH_ENV)
    return Path(value) if value else DEFAULT_CONFIG_PATH


class ConfigManager:
    """Load and persist the configuration file, applying precedence rules."""

    def __init__(
        self,
        config_path: Path | None = None,
        *,
        env: Mapping[str, str] | None = None,
    ) -> None:
        self._env = env if env is not None else os.environ
        self._config_path = (config_path or config_path_from_env(self._env)).expanduser()

    @property
    def config_path(self) -> Path:
        """Return the resolved configuration path."""
        return self._config_path

    def exists(self) -> bool:
        """Return True when the configuration file is present on disk."""
        return self._config_path.exists()

    def load(
        self,
        *,
        cli_overrides: Mapping[str, Any] | None = None,
        include_env: bool = True,
        env_overrides: Mapping[str, str] | None = None,
    ) -> FormatterConfig:
        """Load configuration data from disk, applying precedence rules.

        Raises:
            ConfigError: If the file is missing, unreadable, or invalid.
        """
        if not self.exists():
            raise ConfigError(f"Configuration file not found: {self._config_path}")

        file_data = self._read_file()
        env_data: Mapping[str, str] | None
        if include_env:
            env_data = env_overrides if env_overrides is not None else self._env
        else:
            env_data = None

        config = resolve_with_precedence(
            file_overrides=file_data,
            env_overrides=extract_env(env_data) if env_data else None,
            cli_overrides=cli_overrides,
        )
        return config.resolve_directories(self._config_path.absolute().parent)

    def load_file_overrides(self) -> dict[str, Any]:
        """Return raw values stored on disk."""
        return self._read_file()

    def save(self, data: Mapping[str, Any]) -> None:
        """Persist raw configuration data to disk atomically."""
        self._write_file(dict(data))

    def ensure_exists(self, now: datetime | None = None) -> bool:
        """Create a configuration file with defaults if one does not exist.

        Args:
            now: Instant recorded as the initial watermark.

        Returns:
            bool: True when a new file was written.
        """
        if self.exists():
            return False
        self._write_file(default_file_data(now or datetime.now(timezone.utc)))
        return True

    def read_text(self) -> str:
        """Return the current configuration file contents."""
        if not self.exists():
            return ""
        return self._config_path.read_text(encoding="utf-8")

    # Internal helpers -------------------------------------------------

    def _read_file(self) -> dict[str, Any]:
        try:
            text = self._config_path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise ConfigError(f"Failed to read configuration file {self._config_path}: {exc}") from exc

        try:
            raw = yaml.safe_load(text) or {}
        except yaml.YAMLError as exc:
            raise ConfigError(f"Failed to parse configuration file: {exc}") from exc

        if not isinstance(raw, dict):
            raise ConfigError("Configuration file must contain a mapping at the top level.")

        return raw

    def _write_file(self, data: Mapping[str, Any]) -> None:
        path = self._config_path
        serialized = yaml.safe_dump(dict(data), sort_keys=False)
        stamp = datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")
        text = f"{_CONFIG_HEADER}# Last updated: {stamp}\n{serialized}"
        tmp = path.with_name(f"{path.name}.{os.getpid()}.tmp")
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            tmp.write_text(text, encoding="utf-8")
            tmp.replace(path)
        except OSError as exc:
            raise ConfigError(f"Failed to write configuration file {path}: {exc}") from exc
        finally:
            if tmp.exists():
                tmp.unlink()


__all__ = [
    "ConfigManager",
    "CONFIG_PATH_ENV",
    "DEFAULT_CONFIG_PATH",
    "FormatterConfig",
    "config_path_from_env",
    "extract_env",
    "resolve_with_precedence",
    "flatten_for_env",
    "ConfigError",
]
