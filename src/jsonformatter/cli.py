"""Command line interface for jsonformatter."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import click
from rich.console import Console
from rich.markup import escape
from rich.syntax import Syntax
from rich.table import Table

from jsonformatter.config import (
    CONFIG_PATH_ENV,
    DEFAULT_CONFIG_PATH,
    ConfigError,
    ConfigManager,
    flatten_for_env,
)
from jsonformatter.config.models import LoggingSettings
from jsonformatter.ingestion import (
    DirectoryScanner,
    DiscoveryError,
    FormattingPipeline,
    RunAborted,
    RunReport,
)
from jsonformatter.logs import configure_logging
from jsonformatter.state import WatermarkStore
from jsonformatter.timestamps import format_timestamp

console = Console()


def _handle_cli_error(
    message: str,
    *,
    code: str,
    json_output: bool,
    original: Exception | None = None,
) -> None:
    """Emit a standardized error and terminate the command with a non-zero status.

    Args:
        message: Human-readable error message.
        code: Machine-readable error identifier.
        json_output: Indicates whether JSON mode is active.
        original: Original exception for chaining when not using JSON.

    Raises:
        SystemExit: When emitting JSON output to terminate the command.
        click.ClickException: For non-JSON flows to surface the error.
    """

    if json_output:
        console.print_json(data={"error": {"code": code, "message": message}})
        raise SystemExit(1)

    raise click.ClickException(message) from original


def _format_summary_line(command: str, root: Path | str, metrics: dict[str, Any]) -> str:
    """Return a consistent summary line for CLI commands."""

    parts = ", ".join(f"{key}={value}" for key, value in metrics.items())
    return f"[green]{command} summary for {escape(str(root))}: {parts}.[/green]"


def _emit_report(report: RunReport, *, quiet: bool) -> None:
    """Print the outcome of a run."""

    if report.failures:
        console.print("[red]Files that could not be formatted:[/red]")
        for failure in report.failures:
            console.print(f"  - {escape(failure.error)}", soft_wrap=True)

    if quiet:
        return

    if report.first_run:
        console.print(
            "[yellow]Created a default configuration; only files arriving from now on "
            "will be formatted.[/yellow]"
        )

    console.print(
        _format_summary_line(
            "Run",
            report.destination or "-",
            {
                "discovered": report.discovered_count,
                "formatted": report.success_count,
                "failed": report.failure_count,
                "watermark": format_timestamp(report.watermark),
            },
        ),
        soft_wrap=True,
    )


def _manager(ctx: click.Context) -> ConfigManager:
    return ConfigManager(ctx.obj["config_path"])


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(package_name="jsonformatter")
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    envvar=CONFIG_PATH_ENV,
    default=DEFAULT_CONFIG_PATH,
    show_default=True,
    help="Configuration file holding the watermark and directories.",
)
@click.pass_context
def cli(ctx: click.Context, config_path: Path) -> None:
    """jsonformatter pretty-prints JSON documents that arrived since the last run."""

    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path


@cli.command("run")
@click.option("--json", "json_output", is_flag=True, help="Emit the run report as JSON.")
@click.option("--quiet", is_flag=True, help="Suppress non-error output.")
@click.pass_context
def run_command(ctx: click.Context, json_output: bool, quiet: bool) -> None:
    """Format every new document once and advance the watermark.

    Per-file failures are reported but do not change the exit status; a
    configuration or source-directory failure exits with status 1.
    """

    manager = _manager(ctx)
    settings = LoggingSettings()
    if manager.exists():
        try:
            settings = manager.load().logging
        except ConfigError:
            # Reported by the pipeline's loading phase.
            pass
    configure_logging(settings, quiet=quiet or json_output)

    try:
        report = FormattingPipeline(WatermarkStore(manager)).run()
    except RunAborted as exc:
        _handle_cli_error(
            str(exc),
            code=f"{exc.phase.value}_error",
            json_output=json_output,
            original=exc,
        )
        return

    if json_output:
        console.print_json(data=report.json_payload)
        return

    _emit_report(report, quiet=quiet)


@cli.command()
@click.option("--json", "json_output", is_flag=True, help="Emit status information as JSON.")
@click.pass_context
def status(ctx: click.Context, json_output: bool) -> None:
    """Show the stored watermark and how many files are waiting."""

    manager = _manager(ctx)
    if not manager.exists():
        if json_output:
            console.print_json(
                data={"initialized": False, "config_path": str(manager.config_path)}
            )
            return
        console.print(
            f"[yellow]No configuration at {escape(str(manager.config_path))}; "
            "the first run will create it.[/yellow]",
            soft_wrap=True,
        )
        return

    try:
        config = manager.load()
    except ConfigError as exc:
        _handle_cli_error(str(exc), code="config_error", json_output=json_output, original=exc)
        return

    scanner = DirectoryScanner(extension=config.processing.extension)
    try:
        pending = scanner.scan(config.unformatted_directory, config.last_update)
    except DiscoveryError as exc:
        _handle_cli_error(str(exc), code="discovery_error", json_output=json_output, original=exc)
        return

    if json_output:
        console.print_json(
            data={
                "initialized": True,
                "config_path": str(manager.config_path),
                "watermark": format_timestamp(config.last_update),
                "source": str(config.unformatted_directory),
                "destination": str(config.formatted_directory),
                "delivery": config.processing.delivery,
                "pending": [str(item.path) for item in pending],
            }
        )
        return

    table = Table(title="jsonformatter status", show_header=False)
    table.add_column("Setting", style="bold")
    table.add_column("Value")
    table.add_row("Config file", escape(str(manager.config_path)))
    table.add_row("Watermark", format_timestamp(config.last_update))
    table.add_row("Source", escape(str(config.unformatted_directory)))
    table.add_row("Destination", escape(str(config.formatted_directory)))
    table.add_row("Delivery", config.processing.delivery)
    table.add_row("Pending files", str(len(pending)))
    console.print(table)


@cli.group()
def config() -> None:
    """Inspect the configuration file."""


@config.command("view")
@click.pass_context
def config_view(ctx: click.Context) -> None:
    """Display the configuration file, creating defaults if it is missing."""

    manager = _manager(ctx)
    try:
        created = manager.ensure_exists()
        manager.load(include_env=False)
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc

    if created:
        console.print(f"[yellow]Created {escape(str(manager.config_path))} with defaults.[/yellow]")
    console.print(Syntax(manager.read_text(), "yaml", word_wrap=True))


@config.command("env")
@click.pass_context
def config_env(ctx: click.Context) -> None:
    """Print the effective settings as JSONFORMATTER__ environment variables."""

    manager = _manager(ctx)
    try:
        effective = manager.load()
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc

    for key, value in flatten_for_env(effective).items():
        click.echo(f"{key}={value}")


def main() -> None:
    """Console-script entry point."""
    cli(obj={})


__all__ = ["cli", "main"]
