"""CLI tests for jsonformatter commands."""

from __future__ import annotations

import json
import os
from datetime import datetime, timedelta, timezone
from pathlib import Path

from click.testing import CliRunner

from jsonformatter.cli import cli
from jsonformatter.timestamps import format_timestamp, from_epoch_millis

WATERMARK = datetime(2026, 10, 19, 8, 0, 0, tzinfo=timezone.utc)
MS = timedelta(milliseconds=1)


def _touch(path: Path, modified_at: datetime, content: str = "{}") -> None:
    path.write_text(content, encoding="utf-8")
    nanos = ((modified_at - from_epoch_millis(0)) // MS) * 1_000_000
    os.utime(path, ns=(nanos, nanos))


def _configure(tmp_path: Path) -> Path:
    """Write a configuration file and source directory under tmp_path.

    Args:
        tmp_path: Temporary directory provided by pytest.

    Returns:
        Path: Path to the configuration file.
    """
    config_path = tmp_path / "config.yaml"
    config_path.write_text(
        f"lastUpdate: '{format_timestamp(WATERMARK)}'\n"
        "unformattedDirectory: inbound\n"
        "formattedDirectory: formatted\n",
        encoding="utf-8",
    )
    (tmp_path / "inbound").mkdir()
    return config_path


def test_cli_help_displays_commands() -> None:
    runner = CliRunner()
    result = runner.invoke(cli, ["--help"])

    assert result.exit_code == 0
    assert "pretty-prints JSON documents" in result.output
    assert "run" in result.output
    assert "status" in result.output


def test_run_formats_files_and_prints_summary(tmp_path: Path) -> None:
    config_path = _configure(tmp_path)
    _touch(tmp_path / "inbound" / "doc.json", WATERMARK + MS)

    result = CliRunner().invoke(cli, ["--config", str(config_path), "run"])

    assert result.exit_code == 0, result.output
    assert "Run summary" in result.output
    assert "formatted=1" in result.output
    assert (tmp_path / "formatted" / "doc.json_FORMATTED").exists()


def test_run_reports_failures_without_failing(tmp_path: Path) -> None:
    config_path = _configure(tmp_path)
    _touch(tmp_path / "inbound" / "good.json", WATERMARK + MS)
    _touch(tmp_path / "inbound" / "broken.json", WATERMARK + 2 * MS, "{oops")

    result = CliRunner().invoke(cli, ["--config", str(config_path), "run"])

    assert result.exit_code == 0, result.output
    assert "broken.json" in result.output
    assert "failed=1" in result.output


def test_run_json_output(tmp_path: Path) -> None:
    config_path = _configure(tmp_path)
    _touch(tmp_path / "inbound" / "doc.json", WATERMARK + MS)

    result = CliRunner().invoke(cli, ["--config", str(config_path), "run", "--json"])

    assert result.exit_code == 0, result.output
    payload = json.loads(result.output)
    assert payload["counts"]["formatted"] == 1
    assert payload["watermark"]["current"] == format_timestamp(WATERMARK + MS)


def test_run_missing_source_exits_non_zero(tmp_path: Path) -> None:
    config_path = _configure(tmp_path)
    (tmp_path / "inbound").rmdir()

    result = CliRunner().invoke(cli, ["--config", str(config_path), "run"])

    assert result.exit_code == 1
    assert "discovering" in result.output


def test_config_path_from_environment(tmp_path: Path) -> None:
    config_path = _configure(tmp_path)

    result = CliRunner().invoke(cli, ["status"], env={"JSONFORMATTER_CONFIG": str(config_path)})

    assert result.exit_code == 0, result.output
    assert format_timestamp(WATERMARK) in result.output


def test_status_reports_pending_files(tmp_path: Path) -> None:
    config_path = _configure(tmp_path)
    _touch(tmp_path / "inbound" / "waiting.json", WATERMARK + MS)

    result = CliRunner().invoke(cli, ["--config", str(config_path), "status", "--json"])

    assert result.exit_code == 0, result.output
    payload = json.loads(result.output)
    assert payload["initialized"] is True
    assert payload["watermark"] == format_timestamp(WATERMARK)
    assert len(payload["pending"]) == 1
    assert config_path.read_text(encoding="utf-8").count("lastUpdate") == 1
    assert not (tmp_path / "formatted").exists()


def test_status_without_configuration(tmp_path: Path) -> None:
    result = CliRunner().invoke(cli, ["--config", str(tmp_path / "none.yaml"), "status"])

    assert result.exit_code == 0
    assert "first run" in result.output
    assert not (tmp_path / "none.yaml").exists()


def test_config_view_creates_defaults(tmp_path: Path) -> None:
    config_path = tmp_path / "config.yaml"

    result = CliRunner().invoke(cli, ["--config", str(config_path), "config", "view"])

    assert result.exit_code == 0, result.output
    assert config_path.exists()
    assert "unformattedDirectory" in result.output


def test_config_env_lists_variables(tmp_path: Path) -> None:
    config_path = _configure(tmp_path)

    result = CliRunner().invoke(cli, ["--config", str(config_path), "config", "env"])

    assert result.exit_code == 0, result.output
    assert "JSONFORMATTER__PROCESSING__INDENT=4" in result.output
