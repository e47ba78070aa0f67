"""Data models shared by discovery, formatting, and run orchestration."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any

from pydantic import BaseModel

from jsonformatter.timestamps import format_timestamp


class DirectoryEntry(BaseModel):
    """Single entry reported by a directory lister."""

    name: str
    path: Path
    modified_at: datetime
    is_file: bool = True


class DiscoveredFile(BaseModel):
    """Source document newer than the watermark, awaiting formatting."""

    path: Path
    modified_at: datetime

    @property
    def name(self) -> str:
        return self.path.name


class TransformOutcome(BaseModel):
    """Successful reformatting of one document."""

    source: Path
    output: Path
    derived: bool = False


class TransformFailure(BaseModel):
    """Document that could not be reformatted."""

    source: Path
    error: str


class RunPhase(str, Enum):
    """Linear phases of a formatting run."""

    LOADING = "loading"
    DISCOVERING = "discovering"
    ADVANCING = "advancing"
    TRANSFORMING = "transforming"
    DONE = "done"
    ABORTED = "aborted"


@dataclass(slots=True)
class RunReport:
    """Outcome of a formatting run.

    Attributes:
        previous_watermark: Watermark loaded at the start of the run.
        watermark: Watermark persisted by the run.
        delivery: Delivery mode the run used.
        first_run: Whether default configuration was created by this run.
        destination: Directory receiving formatted copies.
        discovered: Files selected for formatting.
        outcomes: Successful transforms.
        failures: Per-file failures.
        phase: Phase the run finished in.
    """

    previous_watermark: datetime
    watermark: datetime
    delivery: str = "at_most_once"
    first_run: bool = False
    destination: Path | None = None
    discovered: list[DiscoveredFile] = field(default_factory=list)
    outcomes: list[TransformOutcome] = field(default_factory=list)
    failures: list[TransformFailure] = field(default_factory=list)
    phase: RunPhase = RunPhase.LOADING

    @property
    def discovered_count(self) -> int:
        return len(self.discovered)

    @property
    def success_count(self) -> int:
        return len(self.outcomes)

    @property
    def failure_count(self) -> int:
        return len(self.failures)

    @property
    def json_payload(self) -> dict[str, Any]:
        """Return a JSON-ready representation of the report."""
        return {
            "phase": self.phase.value,
            "delivery": self.delivery,
            "first_run": self.first_run,
            "destination": str(self.destination) if self.destination else None,
            "watermark": {
                "previous": format_timestamp(self.previous_watermark),
                "current": format_timestamp(self.watermark),
            },
            "counts": {
                "discovered": self.discovered_count,
                "formatted": self.success_count,
                "failed": self.failure_count,
            },
            "formatted": [outcome.model_dump(mode="json") for outcome in self.outcomes],
            "failures": [failure.model_dump(mode="json") for failure in self.failures],
        }


__all__ = [
    "DirectoryEntry",
    "DiscoveredFile",
    "TransformOutcome",
    "TransformFailure",
    "RunPhase",
    "RunReport",
]
