"""Configuration resolution helpers."""

from __future__ import annotations

from collections.abc import Mapping as MappingABC
from copy import deepcopy
from typing import Any, Dict, Mapping

import yaml
from pydantic import ValidationError

from .exceptions import ConfigError
from .models import FormatterConfig

ENV_PREFIX = "JSONFORMATTER__"


def _top_level_aliases() -> dict[str, str]:
    aliases: dict[str, str] = {}
    for name, field in FormatterConfig.model_fields.items():
        if field.alias:
            aliases[field.alias] = name
            aliases[field.alias.lower()] = name
    return aliases


_ALIASES = _top_level_aliases()


def resolve_with_precedence(
    *,
    file_overrides: Mapping[str, Any] | None = None,
    env_overrides: Mapping[str, Any] | None = None,
    cli_overrides: Mapping[str, Any] | None = None,
) -> FormatterConfig:
    """Merge configuration sources with file < environment < CLI precedence.

    Top-level keys may use either the persisted camelCase names
    (``lastUpdate``) or the model field names (``last_update``). Dotted keys
    such as ``processing.indent`` address nested sections.

    Raises:
        ConfigError: If a source is malformed or the merged values are invalid,
            including when a required key is missing from every source.
    """
    merged: dict[str, Any] = {}
    for name, source in (
        ("file", file_overrides),
        ("environment", env_overrides),
        ("cli", cli_overrides),
    ):
        if source is None:
            continue
        overrides = _normalize_mapping(source, source_name=name)
        merged = _deep_merge(merged, _canonicalize(overrides))

    try:
        return FormatterConfig.model_validate(merged)
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration values: {exc}") from exc


def flatten_for_env(config: FormatterConfig) -> Dict[str, str]:
    """Flatten the config into ``JSONFORMATTER__SECTION__KEY`` mappings."""
    flat: Dict[str, str] = {}
    data = config.model_dump(mode="json")

    def _recurse(prefix: list[str], value: Any) -> None:
        if isinstance(value, dict):
            for key, child in value.items():
                _recurse(prefix + [str(key)], child)
        else:
            env_key = ENV_PREFIX + "__".join(part.upper() for part in prefix)
            if isinstance(value, list):
                rendered = yaml.safe_dump(value, default_flow_style=True).strip()
            else:
                rendered = "null" if value is None else str(value)
            flat[env_key] = rendered

    for top_key, child_value in data.items():
        _recurse([str(top_key)], child_value)

    return flat


def extract_env(env: Mapping[str, str]) -> dict[str, Any]:
    """Collect ``JSONFORMATTER__`` variables into a nested override mapping."""
    overrides: dict[str, Any] = {}
    for key, raw_value in env.items():
        if not key.startswith(ENV_PREFIX):
            continue
        path = [segment.lower() for segment in key[len(ENV_PREFIX) :].split("__") if segment]
        if not path:
            continue
        parsed_value: Any
        try:
            parsed_value = yaml.safe_load(raw_value)
        except yaml.YAMLError:
            parsed_value = raw_value
        _assign(overrides, path, parsed_value, source_name="environment")
    return overrides


def _canonicalize(data: dict[str, Any]) -> dict[str, Any]:
    return {_ALIASES.get(key, key): value for key, value in data.items()}


def _normalize_mapping(source: Mapping[str, Any], *, source_name: str) -> dict[str, Any]:
    if not isinstance(source, MappingABC):
        raise ConfigError(f"{source_name.capitalize()} overrides must be a mapping.")

    result: dict[str, Any] = {}
    for key, value in dict(source).items():
        if not isinstance(key, str):
            raise ConfigError(f"{source_name.capitalize()} override keys must be strings.")
        path = key.split(".") if "." in key else [key]
        _assign(result, path, value, source_name=source_name)
    return result


def _assign(target: dict[str, Any], path: list[str], value: Any, *, source_name: str) -> None:
    node = target
    for segment in path[:-1]:
        existing = node.get(segment)
        if existing is None:
            existing = {}
            node[segment] = existing
        elif not isinstance(existing, dict):
            joined = ".".join(path)
            raise ConfigError(
                f"{source_name.capitalize()} override for {joined} conflicts with existing value."
            )
        node = existing
    leaf = path[-1]
    if isinstance(value, MappingABC):
        nested = _normalize_mapping(value, source_name=source_name)
        existing_leaf = node.get(leaf, {})
        if not isinstance(existing_leaf, MappingABC):
            existing_leaf = {}
        node[leaf] = _deep_merge(existing_leaf, nested)
    else:
        node[leaf] = value


def _deep_merge(base: Mapping[str, Any], overrides: Mapping[str, Any]) -> dict[str, Any]:
    merged: dict[str, Any] = {}
    for key, value in base.items():
        merged[key] = deepcopy(value)
    for key, value in overrides.items():
        if isinstance(value, MappingABC) and isinstance(merged.get(key), MappingABC):
            merged[key] = _deep_merge(dict(merged[key]), value)  # type: ignore[arg-type]
        else:
            merged[key] = deepcopy(value)
    return merged


__all__ = ["ENV_PREFIX", "resolve_with_precedence", "flatten_for_env", "extract_env"]
