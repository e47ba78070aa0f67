"""Pretty-printing of JSON documents under content-derived names."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any

import simplejson

from jsonformatter.clock import Clock, SystemClock
from jsonformatter.config.models import DEFAULT_PATH_FIELD
from jsonformatter.timestamps import format_suffix

from .errors import TransformError
from .models import DiscoveredFile, TransformOutcome

LOGGER = logging.getLogger(__name__)

FALLBACK_SUFFIX = "_FORMATTED"
OUTPUT_EXTENSION = ".json"
_SEPARATORS = ("\\", "/")


def _read_json(path: Path) -> Any:
    # Non-integral numbers load as Decimal so rendering keeps every digit.
    with path.open("r", encoding="utf-8") as handle:
        return simplejson.load(handle, use_decimal=True)


def extract_logical_path(document: Any, field: str = DEFAULT_PATH_FIELD) -> str | None:
    """Return the logical path embedded in a document, if it has the expected shape.

    The document must be a list of at least two elements whose second element
    is a mapping holding a string under field.
    """
    if not isinstance(document, list) or len(document) < 2:
        return None
    header = document[1]
    if not isinstance(header, dict):
        return None
    value = header.get(field)
    return value if isinstance(value, str) else None


def flatten_separators(value: str) -> str:
    """Replace every path separator in value with ``-``."""
    for separator in _SEPARATORS:
        value = value.replace(separator, "-")
    return value


def _usable_name(name: str) -> bool:
    return "\0" not in name and Path(name).name == name


class DocumentFormatter:
    """Write pretty-printed copies of JSON documents."""

    def __init__(
        self,
        *,
        indent: int = 4,
        path_field: str = DEFAULT_PATH_FIELD,
        clock: Clock | None = None,
    ) -> None:
        self.indent = indent
        self.path_field = path_field
        self.clock = clock or SystemClock()

    def derive_name(self, path: Path) -> str:
        """Return the output filename for the document at path.

        Documents carrying a logical path produce ``<path with separators
        flattened><17-digit timestamp>.json``. Anything else, including files
        that cannot be read or parsed, falls back to ``<name>_FORMATTED``.
        """
        name, _ = self._resolve_name(path)
        return name

    def render(self, document: Any) -> str:
        """Serialize document with indentation and a trailing newline."""
        text = simplejson.dumps(
            document,
            indent=" " * self.indent,
            ensure_ascii=False,
            use_decimal=True,
        )
        return text + "\n"

    def transform(self, file: DiscoveredFile, dest_dir: Path) -> TransformOutcome:
        """Write a pretty-printed copy of file into dest_dir.

        The name is derived from a first, independent read of the file; the
        content comes from a second read that makes no assumption about the
        document's shape. The copy is written to a temporary sibling and moved
        into place, so a name collision replaces the earlier output whole.

        Raises:
            TransformError: If the file cannot be read, parsed, or written.
        """
        source = file.path
        name, derived = self._resolve_name(source)
        target = dest_dir / name

        try:
            document = _read_json(source)
        except simplejson.JSONDecodeError as exc:
            raise TransformError(source, f"invalid JSON: {exc}") from exc
        except RecursionError as exc:
            raise TransformError(source, "document is nested too deeply") from exc
        except (OSError, UnicodeDecodeError) as exc:
            raise TransformError(source, f"could not read file: {exc}") from exc

        tmp = target.with_name(f".{target.name}.{os.getpid()}.tmp")
        try:
            tmp.write_text(self.render(document), encoding="utf-8")
            tmp.replace(target)
        except OSError as exc:
            raise TransformError(source, f"could not write {target}: {exc}") from exc
        finally:
            if tmp.exists():
                tmp.unlink()

        return TransformOutcome(source=source, output=target, derived=derived)

    def _resolve_name(self, path: Path) -> tuple[str, bool]:
        fallback = f"{path.name}{FALLBACK_SUFFIX}"
        try:
            document = _read_json(path)
        except (OSError, ValueError, RecursionError) as exc:
            LOGGER.debug("Using fallback name for %s: %s", path, exc)
            return fallback, False

        logical_path = extract_logical_path(document, self.path_field)
        if logical_path is None:
            return fallback, False

        suffix = format_suffix(self.clock.now())
        name = f"{flatten_separators(logical_path)}{suffix}{OUTPUT_EXTENSION}"
        if not _usable_name(name):
            LOGGER.debug("Logical path %r in %s is not a usable file name", logical_path, path)
            return fallback, False

        LOGGER.debug("Found logical path %r in %s", logical_path, path)
        return name, True


__all__ = [
    "FALLBACK_SUFFIX",
    "OUTPUT_EXTENSION",
    "DocumentFormatter",
    "extract_logical_path",
    "flatten_separators",
]
