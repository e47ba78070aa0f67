"""Unit tests for configuration management."""

from datetime import datetime, timezone
from pathlib import Path

import pytest

from jsonformatter.config import (
    CONFIG_PATH_ENV,
    DEFAULT_CONFIG_PATH,
    ConfigError,
    ConfigManager,
    FormatterConfig,
    config_path_from_env,
    flatten_for_env,
    resolve_with_precedence,
)

NOW = datetime(2026, 10, 19, 8, 15, 30, 123000, tzinfo=timezone.utc)

VALID = """\
lastUpdate: '2026-10-19T08:15:30.123Z'
unformattedDirectory: in
formattedDirectory: out
processing:
  indent: 2
"""


def _manager(tmp_path: Path, env: dict[str, str] | None = None) -> ConfigManager:
    return ConfigManager(tmp_path / "config.yaml", env=env or {})


def _write(tmp_path: Path, text: str) -> ConfigManager:
    manager = _manager(tmp_path)
    manager.config_path.write_text(text, encoding="utf-8")
    return manager


def test_ensure_exists_creates_default_file(tmp_path: Path) -> None:
    manager = _manager(tmp_path)

    assert manager.ensure_exists(NOW) is True
    assert manager.ensure_exists(NOW) is False

    text = manager.read_text()
    assert "jsonformatter configuration file" in text
    assert "Last updated:" in text
    assert "2026-10-19T08:15:30.123Z" in text

    config = manager.load()
    assert isinstance(config, FormatterConfig)
    assert config.last_update == NOW
    assert config.unformatted_directory == tmp_path / "inbound"
    assert config.formatted_directory == tmp_path / "inboundFormatted"
    assert config.processing.extension == ".json"
    assert config.processing.delivery == "at_most_once"


def test_load_missing_file_raises(tmp_path: Path) -> None:
    with pytest.raises(ConfigError):
        _manager(tmp_path).load()


def test_invalid_yaml_raises_config_error(tmp_path: Path) -> None:
    manager = _write(tmp_path, "- not-a-mapping")

    with pytest.raises(ConfigError):
        manager.load()


def test_unparseable_yaml_raises_config_error(tmp_path: Path) -> None:
    manager = _write(tmp_path, "lastUpdate: [unclosed\n")

    with pytest.raises(ConfigError):
        manager.load()


@pytest.mark.parametrize("missing", ["lastUpdate", "unformattedDirectory", "formattedDirectory"])
def test_missing_required_key_raises(tmp_path: Path, missing: str) -> None:
    lines = [line for line in VALID.splitlines() if not line.startswith(missing)]
    manager = _write(tmp_path, "\n".join(lines) + "\n")

    with pytest.raises(ConfigError):
        manager.load()


def test_unparseable_watermark_raises(tmp_path: Path) -> None:
    manager = _write(tmp_path, VALID.replace("2026-10-19T08:15:30.123Z", "yesterday"))

    with pytest.raises(ConfigError):
        manager.load()


def test_unquoted_yaml_timestamp_is_accepted(tmp_path: Path) -> None:
    manager = _write(tmp_path, VALID.replace("'2026-10-19T08:15:30.123Z'", "2026-10-19T08:15:30.123Z"))

    assert manager.load().last_update == NOW


def test_absolute_directories_are_kept(tmp_path: Path) -> None:
    source = tmp_path / "elsewhere"
    manager = _write(tmp_path, VALID.replace("unformattedDirectory: in", f"unformattedDirectory: '{source}'"))

    config = manager.load()

    assert config.unformatted_directory == source
    assert config.formatted_directory == tmp_path / "out"


def test_resolve_with_precedence_respects_order(tmp_path: Path) -> None:
    env = {"JSONFORMATTER__PROCESSING__INDENT": "3", "UNRELATED": "x"}
    manager = _write(tmp_path, VALID)

    assert manager.load(include_env=False).processing.indent == 2
    assert manager.load(env_overrides=env).processing.indent == 3
    # CLI overrides take precedence over environment
    assert manager.load(env_overrides=env, cli_overrides={"processing.indent": 6}).processing.indent == 6


def test_environment_can_override_directories(tmp_path: Path) -> None:
    target = tmp_path / "override"
    manager = ConfigManager(
        tmp_path / "config.yaml",
        env={"JSONFORMATTER__FORMATTED_DIRECTORY": str(target)},
    )
    manager.config_path.write_text(VALID, encoding="utf-8")

    assert manager.load().formatted_directory == target


def test_resolve_with_precedence_invalid_value_raises() -> None:
    with pytest.raises(ConfigError):
        resolve_with_precedence(
            file_overrides={
                "lastUpdate": "2026-10-19T08:15:30.123Z",
                "unformattedDirectory": "in",
                "formattedDirectory": "out",
                "processing": {"indent": "wide"},
            },
        )


def test_unknown_keys_are_rejected() -> None:
    with pytest.raises(ConfigError):
        resolve_with_precedence(
            file_overrides={
                "lastUpdate": "2026-10-19T08:15:30.123Z",
                "unformattedDirectory": "in",
                "formattedDirectory": "out",
                "colour": "blue",
            },
        )


def test_flatten_for_env_renders_effective_values(tmp_path: Path) -> None:
    flat = flatten_for_env(_write(tmp_path, VALID).load())

    assert flat["JSONFORMATTER__LAST_UPDATE"] == "2026-10-19T08:15:30.123Z"
    assert flat["JSONFORMATTER__PROCESSING__EXTENSION"] == ".json"
    assert flat["JSONFORMATTER__PROCESSING__INDENT"] == "2"
    assert flat["JSONFORMATTER__LOGGING__FILE"] == "null"


def test_config_path_from_env() -> None:
    assert config_path_from_env({}) == DEFAULT_CONFIG_PATH
    assert config_path_from_env({CONFIG_PATH_ENV: "/etc/fmt.yaml"}) == Path("/etc/fmt.yaml")
