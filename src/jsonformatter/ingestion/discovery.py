"""File discovery utilities."""

from __future__ import annotations

import logging
import os
from datetime import datetime
from pathlib import Path
from typing import Iterable, Iterator, Protocol

from jsonformatter.config.models import DEFAULT_EXTENSION
from jsonformatter.timestamps import from_epoch_nanos

from .errors import DiscoveryError
from .models import DirectoryEntry, DiscoveredFile

LOGGER = logging.getLogger(__name__)


def is_candidate(name: str, modified_at: datetime, watermark: datetime, extension: str) -> bool:
    """Return True when a file is newer than the watermark and has the extension.

    The comparison is strict: a file stamped exactly at the watermark was
    already covered by the run that produced it.
    """
    return modified_at > watermark and name.endswith(extension)


class DirectoryLister(Protocol):
    """Lists the immediate entries of a directory."""

    def entries(self, root: Path) -> Iterable[DirectoryEntry]:
        """Yield entries directly under root.

        Raises:
            OSError: If root cannot be listed.
        """
        ...


class LocalDirectoryLister:
    """List a local directory with ``os.scandir`` without recursing."""

    def entries(self, root: Path) -> Iterator[DirectoryEntry]:
        with os.scandir(root) as iterator:
            for entry in iterator:
                try:
                    is_file = entry.is_file(follow_symlinks=True)
                    stat = entry.stat(follow_symlinks=True)
                except OSError as exc:
                    LOGGER.debug("Skipping %s: %s", entry.path, exc)
                    continue
                yield DirectoryEntry(
                    name=entry.name,
                    path=Path(entry.path),
                    modified_at=from_epoch_nanos(stat.st_mtime_ns),
                    is_file=is_file,
                )


class DirectoryScanner:
    """Discover files in a single directory that are newer than a watermark."""

    def __init__(
        self,
        *,
        extension: str = DEFAULT_EXTENSION,
        lister: DirectoryLister | None = None,
    ) -> None:
        self.extension = extension
        self.lister = lister or LocalDirectoryLister()

    def scan(self, root: Path, watermark: datetime) -> list[DiscoveredFile]:
        """Return files under root modified strictly after watermark.

        Args:
            root: Directory to list (non-recursively).
            watermark: Exclusive lower bound on modification time.

        Returns:
            list[DiscoveredFile]: Matching files ordered by modification time
                then name; empty when nothing matches.

        Raises:
            DiscoveryError: If root is missing, not a directory, or unreadable.
        """
        root = root.expanduser().absolute()
        try:
            entries = list(self.lister.entries(root))
        except FileNotFoundError as exc:
            raise DiscoveryError(f"Source directory does not exist: {root}") from exc
        except NotADirectoryError as exc:
            raise DiscoveryError(f"Source path is not a directory: {root}") from exc
        except OSError as exc:
            raise DiscoveryError(f"Unable to list source directory {root}: {exc}") from exc

        found = [
            DiscoveredFile(path=entry.path, modified_at=entry.modified_at)
            for entry in entries
            if entry.is_file
            and is_candidate(entry.name, entry.modified_at, watermark, self.extension)
        ]
        found.sort(key=lambda item: (item.modified_at, item.path.name))
        LOGGER.debug("Listed %d entries under %s; %d are new", len(entries), root, len(found))
        return found


__all__ = ["is_candidate", "DirectoryLister", "LocalDirectoryLister", "DirectoryScanner"]
