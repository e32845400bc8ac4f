"""Layering of configuration sources into a validated ``PictureDBConfig``."""

from __future__ import annotations

from collections.abc import Mapping
from copy import deepcopy
from typing import Any

import yaml
from pydantic import ValidationError

from .exceptions import ConfigError
from .models import PictureDBConfig

ENV_PREFIX = "PICTUREDB__"


def resolve_with_precedence(
    *,
    defaults: PictureDBConfig,
    file_overrides: Mapping[str, Any] | None = None,
    env_overrides: Mapping[str, Any] | None = None,
    cli_overrides: Mapping[str, Any] | None = None,
) -> PictureDBConfig:
    """Merge configuration sources: defaults < file < environment < CLI.

    Keys in any source may be nested mappings, dotted paths, or a mix of both.

    Args:
        defaults: Baseline configuration.
        file_overrides: Values read from the configuration file.
        env_overrides: Nested values derived from ``PICTUREDB__`` variables.
        cli_overrides: Values given on the command line, keyed by dotted path.

    Returns:
        PictureDBConfig: Validated configuration.

    Raises:
        ConfigError: If a source is malformed or the merged values are invalid.
    """
    layered = defaults.model_dump(mode="python")
    layers = (("file", file_overrides), ("environment", env_overrides), ("cli", cli_overrides))
    for origin, layer in layers:
        if layer is not None:
            _merge_into(layered, _nest(layer, origin))

    try:
        return PictureDBConfig.model_validate(layered)
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration values: {exc}") from exc


def parse_env(env: Mapping[str, str]) -> dict[str, Any]:
    """Return nested overrides parsed from ``PICTUREDB__`` environment variables.

    Values are parsed as YAML scalars so ``true``, ``10`` and ``[a, b]`` keep
    their types; anything unparsable is used verbatim.
    """
    dotted: dict[str, Any] = {}
    for name, raw in env.items():
        if not name.startswith(ENV_PREFIX):
            continue
        segments = [part.lower() for part in name[len(ENV_PREFIX) :].split("__") if part]
        if not segments:
            continue
        try:
            dotted[".".join(segments)] = yaml.safe_load(raw)
        except yaml.YAMLError:
            dotted[".".join(segments)] = raw
    return _nest(dotted, "environment")


def _nest(layer: Mapping[str, Any], origin: str) -> dict[str, Any]:
    """Expand dotted keys of ``layer`` (recursively) into nested dictionaries."""
    if not isinstance(layer, Mapping):
        raise ConfigError(f"{origin.capitalize()} overrides must be a mapping.")

    nested: dict[str, Any] = {}
    for key, value in layer.items():
        if not isinstance(key, str):
            raise ConfigError(f"{origin.capitalize()} override keys must be strings.")
        *parents, leaf = key.split(".")
        node = nested
        for parent in parents:
            node = node.setdefault(parent, {})
            if not isinstance(node, dict):
                raise ConfigError(
                    f"{origin.capitalize()} override '{key}' conflicts with '{parent}'."
                )
        if isinstance(value, Mapping):
            value = _nest(value, origin)
            if isinstance(node.get(leaf), dict):
                _merge_into(node[leaf], value)
                continue
        node[leaf] = value
    return nested


def _merge_into(target: dict[str, Any], overrides: Mapping[str, Any]) -> None:
    """Overlay ``overrides`` onto ``target`` in place; mappings merge, other values replace."""
    for key, value in overrides.items():
        current = target.get(key)
        if isinstance(value, Mapping) and isinstance(current, dict):
            _merge_into(current, value)
        else:
            target[key] = deepcopy(value)


__all__ = ["ENV_PREFIX", "resolve_with_precedence", "parse_env"]
