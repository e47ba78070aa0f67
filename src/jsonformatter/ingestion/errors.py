"""Ingestion errors."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .models import RunPhase


class IngestionError(Exception):
    """Base exception for discovery and formatting operations."""


class DiscoveryError(IngestionError):
    """Raised when the source directory cannot be listed."""


class TransformError(IngestionError):
    """Raised when a single document cannot be parsed or written."""

    def __init__(self, path: Path, message: str) -> None:
        super().__init__(f"{path}: {message}")
        self.path = path


class RunAborted(IngestionError):
    """Raised when a fatal error stops a run before any file is formatted."""

    def __init__(self, phase: "RunPhase", cause: Exception) -> None:
        super().__init__(f"Run aborted during {phase.value}: {cause}")
        self.phase = phase
        self.cause = cause
