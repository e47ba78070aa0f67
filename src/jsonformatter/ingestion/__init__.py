"""Discovery, formatting, and orchestration of incremental runs."""

from .discovery import DirectoryLister, DirectoryScanner, LocalDirectoryLister, is_candidate
from .errors import DiscoveryError, IngestionError, RunAborted, TransformError
from .formatter import DocumentFormatter
from .models import (
    DirectoryEntry,
    DiscoveredFile,
    RunPhase,
    RunReport,
    TransformFailure,
    TransformOutcome,
)
from .pipeline import FormattingPipeline, run
from .watermark import advance_watermark, settle_watermark

__all__ = [
    "DirectoryEntry",
    "DirectoryLister",
    "DirectoryScanner",
    "DiscoveredFile",
    "DiscoveryError",
    "DocumentFormatter",
    "FormattingPipeline",
    "IngestionError",
    "LocalDirectoryLister",
    "RunAborted",
    "RunPhase",
    "RunReport",
    "TransformError",
    "TransformFailure",
    "TransformOutcome",
    "advance_watermark",
    "is_candidate",
    "run",
    "settle_watermark",
]
