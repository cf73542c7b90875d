"""YAML configuration files for default option values."""

from __future__ import annotations

from pathlib import Path

import yaml
from platformdirs import user_config_dir
from pydantic_settings import BaseSettings, YamlConfigSettingsSource

from taskmon import PROGRAM_NAME
from taskmon.core.log import logger

CONFIG_FILENAME = f"{PROGRAM_NAME}.yaml"


def config_files() -> list[Path]:
    """YAML files to load, lowest priority first.

    1. User config (platform-specific location)
    2. Project config (./task-mon.yaml)
    """
    return [
        Path(user_config_dir(PROGRAM_NAME, appauthor=False)) / CONFIG_FILENAME,
        Path(CONFIG_FILENAME),
    ]


class LayeredYamlSettingsSource(YamlConfigSettingsSource):
    """YAML settings source reading the user and project config files.

    Files that don't exist are skipped; the rest are deep-merged so
    later files override earlier ones key by key.
    """

    def __init__(
        self, settings_cls: type[BaseSettings], yaml_file=None
    ):
        """Initialize the source.

        Args:
            settings_cls: The Settings class being initialized
            yaml_file: Optional explicit list of files, replacing
                config_files()
        """
        super().__init__(settings_cls, yaml_file or config_files())

    def _read_files(self, files, deep_merge: bool = False):
        """Load and deep-merge every existing file.

        Args:
            files: Path or list of paths in priority order
            deep_merge: Accepted for newer pydantic-settings callers;
                layered files are always deep-merged

        Returns:
            Deep-merged dictionary of all loaded data
        """
        if files is None:
            return {}
        if isinstance(files, (str, Path)):
            files = [files]

        result = {}
        for file_path in (Path(f).expanduser() for f in files):
            if not file_path.is_file():
                logger.debug(
                    "Configuration file not found (skipping)",
                    file=str(file_path),
                )
                continue

            logger.debug("Loading configuration", file=str(file_path))
            with open(file_path, encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
            if not isinstance(data, dict):
                raise ValueError(
                    f"{file_path}: expected a mapping of option names"
                )
            result = self._deep_merge(result, data)

        return result

    def _deep_merge(self, base: dict, override: dict) -> dict:
        """Deep merge override into base (override wins)."""
        result = base.copy()
        for key, value in override.items():
            if (
                key in result
                and isinstance(result[key], dict)
                and isinstance(value, dict)
            ):
                result[key] = self._deep_merge(result[key], value)
            else:
                result[key] = value
        return result
