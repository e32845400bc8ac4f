"""Configuration management for picture-db."""

from __future__ import annotations

import os
import textwrap
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Mapping

import yaml

from .exceptions import ConfigError
from .models import PictureDBConfig
from .resolver import parse_env, resolve_with_precedence

DEFAULT_CONFIG_PATH = Path("~/.picture-db/config.yaml")
_CONFIG_HEADER = textwrap.dedent(
    """\
    # picture-db configuration file
    # Manage via `picture-db config set KEY --value VALUE` or edit by hand.
    """
)


class ConfigManager:
    """Load and persist configuration data, applying precedence rules.

    The file is parsed as YAML, which also accepts the JSON configuration
    files written for earlier releases of the tool.
    """

    def __init__(
        self,
        config_path: Path | None = None,
        *,
        env: Mapping[str, str] | None = None,
    ) -> None:
        self._explicit = config_path is not None
        self._config_path = (config_path or DEFAULT_CONFIG_PATH).expanduser()
        self._env = env if env is not None else os.environ

    @property
    def config_path(self) -> Path:
        """Return the resolved configuration path."""
        return self._config_path

    def load(
        self,
        *,
        cli_overrides: Mapping[str, Any] | None = None,
        include_env: bool = True,
        env_overrides: Mapping[str, str] | None = None,
    ) -> PictureDBConfig:
        """Load configuration data from disk, applying precedence rules.

        Args:
            cli_overrides: Dotted-key overrides supplied on the command line.
            include_env: Whether ``PICTUREDB__`` variables are applied.
            env_overrides: Environment mapping used instead of ``os.environ``.

        Returns:
            PictureDBConfig: Validated configuration.

        Raises:
            ConfigError: If an explicitly requested file is missing or invalid.
        """
        if self._explicit and not self._config_path.exists():
            raise ConfigError(f"Configuration file {self._config_path} does not exist.")

        env_data = None
        if include_env:
            env_data = parse_env(env_overrides if env_overrides is not None else self._env)

        return resolve_with_precedence(
            defaults=PictureDBConfig(),
            file_overrides=self._read_file(),
            env_overrides=env_data or None,
            cli_overrides=cli_overrides,
        )

    def load_file_overrides(self) -> dict[str, Any]:
        """Return raw overrides stored on disk."""
        return self._read_file()

    def save(self, config: PictureDBConfig | Mapping[str, Any]) -> None:
        """Persist configuration data to disk."""
        if isinstance(config, PictureDBConfig):
            data = config.model_dump(mode="python")
        else:
            data = dict(config)
        self._write_file(data)

    def ensure_exists(self) -> Path:
        """Create a configuration file with defaults if one does not exist."""
        if not self._config_path.exists():
            self._write_file(PictureDBConfig().model_dump(mode="python"))
        return self._config_path

    def read_text(self) -> str:
        """Return the current configuration file contents."""
        if not self._config_path.exists():
            return ""
        return self._config_path.read_text(encoding="utf-8")

    def _read_file(self) -> dict[str, Any]:
        if not self._config_path.exists():
            return {}

        try:
            raw = yaml.safe_load(self._config_path.read_text(encoding="utf-8")) or {}
        except yaml.YAMLError as exc:
            raise ConfigError(
                f"Failed to parse configuration file {self._config_path}: {exc}"
            ) from exc

        if not isinstance(raw, dict):
            raise ConfigError("Configuration file must contain a mapping at the top level.")

        return _upgrade_legacy_keys(raw)

    def _write_file(self, data: Mapping[str, Any]) -> None:
        self._config_path.parent.mkdir(parents=True, exist_ok=True)
        serialized = yaml.safe_dump(dict(data), sort_keys=False)
        stamp = datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")
        self._config_path.write_text(
            f"{_CONFIG_HEADER}# Last updated: {stamp}\n{serialized}", encoding="utf-8"
        )


def _upgrade_legacy_keys(raw: dict[str, Any]) -> dict[str, Any]:
    """Translate the flat JSON layout (``dbPath``, ``verbose``, ``photoprism.pass``)."""
    data = dict(raw)
    if "dbPath" in data:
        data.setdefault("database", {})["path"] = data.pop("dbPath")
    if "verbose" in data:
        data.setdefault("logging", {})["verbose"] = data.pop("verbose")
    photoprism = data.get("photoprism")
    if isinstance(photoprism, dict) and "pass" in photoprism:
        photoprism = dict(photoprism)
        photoprism["password"] = photoprism.pop("pass")
        data["photoprism"] = photoprism
    return data


__all__ = [
    "ConfigManager",
    "DEFAULT_CONFIG_PATH",
    "PictureDBConfig",
    "resolve_with_precedence",
    "parse_env",
    "ConfigError",
]
