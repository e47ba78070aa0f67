"""High-level orchestration of a formatting run."""

from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Mapping

from jsonformatter.clock import Clock, SystemClock
from jsonformatter.config import ConfigError, ConfigManager, FormatterConfig
from jsonformatter.state import WatermarkStore
from jsonformatter.timestamps import format_timestamp

from .discovery import DirectoryLister, DirectoryScanner
from .errors import DiscoveryError, RunAborted, TransformError
from .formatter import DocumentFormatter
from .models import DiscoveredFile, RunPhase, RunReport, TransformFailure
from .watermark import advance_watermark, settle_watermark

LOGGER = logging.getLogger(__name__)


class FormattingPipeline:
    """Coordinate loading, discovery, watermark advancement, and formatting.

    Phases run strictly in order. With the default ``at_most_once`` delivery
    the advanced watermark is saved before any file is formatted, so a file
    that fails to format is not picked up again by later runs. With
    ``at_least_once`` the watermark is saved after formatting and stops short
    of the earliest failure, so failed files are retried next run.
    """

    def __init__(
        self,
        store: WatermarkStore,
        *,
        clock: Clock | None = None,
        lister: DirectoryLister | None = None,
        scanner: DirectoryScanner | None = None,
        formatter: DocumentFormatter | None = None,
    ) -> None:
        self.store = store
        self.clock = clock or SystemClock()
        self.lister = lister
        self.scanner = scanner
        self.formatter = formatter

    def run(self) -> RunReport:
        """Execute one run and return its report.

        Raises:
            RunAborted: If configuration cannot be loaded, the source directory
                cannot be listed, or the watermark cannot be saved.
        """
        try:
            config = self.store.load()
        except ConfigError as exc:
            raise self._abort(RunPhase.LOADING, exc) from exc

        delivery = config.processing.delivery
        report = RunReport(
            previous_watermark=config.last_update,
            watermark=config.last_update,
            delivery=delivery,
            first_run=self.store.first_run,
            destination=config.formatted_directory,
        )

        report.phase = RunPhase.DISCOVERING
        scanner = self.scanner or DirectoryScanner(
            extension=config.processing.extension,
            lister=self.lister,
        )
        try:
            files = scanner.scan(config.unformatted_directory, config.last_update)
        except DiscoveryError as exc:
            raise self._abort(RunPhase.DISCOVERING, exc) from exc
        report.discovered = files
        LOGGER.info(
            "Found %d file(s) to format in %s.", len(files), config.unformatted_directory
        )

        if delivery == "at_most_once":
            report.phase = RunPhase.ADVANCING
            self._persist(config, advance_watermark(config.last_update, files), report)

        report.phase = RunPhase.TRANSFORMING
        self._format_all(config, files, report)

        if delivery == "at_least_once":
            report.phase = RunPhase.ADVANCING
            failed = {failure.source for failure in report.failures}
            self._persist(config, settle_watermark(config.last_update, files, failed), report)

        report.phase = RunPhase.DONE
        LOGGER.info(
            "Formatted %d of %d file(s) into %s; %d failed. Watermark %s -> %s.",
            report.success_count,
            report.discovered_count,
            config.formatted_directory,
            report.failure_count,
            format_timestamp(report.previous_watermark),
            format_timestamp(report.watermark),
        )
        return report

    def _persist(self, config: FormatterConfig, watermark: datetime, report: RunReport) -> None:
        if watermark == config.last_update:
            LOGGER.debug("Watermark unchanged at %s", format_timestamp(watermark))
            return
        try:
            report.watermark = self.store.save(config.with_watermark(watermark))
        except ConfigError as exc:
            raise self._abort(RunPhase.ADVANCING, exc) from exc

    def _format_all(
        self,
        config: FormatterConfig,
        files: list[DiscoveredFile],
        report: RunReport,
    ) -> None:
        dest_dir = config.formatted_directory
        try:
            dest_dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            LOGGER.error("Couldn't create destination directory %s: %s", dest_dir, exc)

        formatter = self.formatter or DocumentFormatter(
            indent=config.processing.indent,
            path_field=config.processing.path_field,
            clock=self.clock,
        )
        for item in files:
            try:
                outcome = formatter.transform(item, dest_dir)
            except TransformError as exc:
                LOGGER.error("Couldn't format the file %s", exc)
                report.failures.append(TransformFailure(source=item.path, error=str(exc)))
                continue
            except Exception as exc:
                LOGGER.exception("Unexpected failure formatting %s", item.path)
                report.failures.append(TransformFailure(source=item.path, error=f"{item.path}: {exc}"))
                continue
            LOGGER.debug("Formatted %s -> %s", outcome.source, outcome.output)
            report.outcomes.append(outcome)

    def _abort(self, phase: RunPhase, exc: Exception) -> RunAborted:
        LOGGER.error("Run aborted during %s: %s", phase.value, exc)
        return RunAborted(phase, exc)


def run(
    config_path: Path | None = None,
    *,
    env: Mapping[str, str] | None = None,
    cli_overrides: Mapping[str, Any] | None = None,
    clock: Clock | None = None,
) -> RunReport:
    """Run the pipeline once against the configuration at config_path.

    Args:
        config_path: Configuration file; defaults to ``JSONFORMATTER_CONFIG``
            or ``config.yaml`` in the working directory.
        env: Environment mapping used for the config path and overrides.
        cli_overrides: Highest-precedence configuration overrides.
        clock: Clock used for first-run defaults and output name suffixes.

    Returns:
        RunReport: Summary of the run.

    Raises:
        RunAborted: On fatal configuration, discovery, or persistence errors.
    """
    clock = clock or SystemClock()
    store = WatermarkStore(
        ConfigManager(config_path, env=env),
        clock=clock,
        cli_overrides=cli_overrides,
    )
    return FormattingPipeline(store, clock=clock).run()


__all__ = ["FormattingPipeline", "run"]
