"""
Configuration repository for loading config files.

This module provides the infrastructure layer for configuration persistence.
It handles file I/O and turns the parsed data into the SyncConfig model.
"""

import json
import logging
import re
from pathlib import Path
from typing import Any, Dict

from pydantic import ValidationError

from branchsync.domain.config import SyncConfig

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_NAME = "branchsync"

# Whole-line // comments only; "//" inside values is kept.
_LINE_COMMENT = re.compile(r"^\s*//.*$", re.MULTILINE)


def _strip_comments(jsonc_content: str) -> str:
    """Strip full-line // comments from JSONC content."""
    return _LINE_COMMENT.sub("", jsonc_content)


class ConfigRepository:
    """
    Repository for configuration file operations.

    Handles loading of configuration files with support for JSON and
    JSONC formats.
    """

    def __init__(self, config_dir: Path):
        """
        Initialize the config repository.

        Args:
            config_dir: Base directory for configuration files
        """
        self.config_dir = Path(config_dir)

    def load_json_file(self, filename: str, allow_jsonc: bool = True) -> Dict[str, Any]:
        """
        Load a JSON or JSONC file.

        Args:
            filename: Name of the file to load (without extension)
            allow_jsonc: Whether to try JSONC if JSON is absent

        Returns:
            Parsed JSON data as dictionary

        Raises:
            FileNotFoundError: If file doesn't exist
            ValueError: If file cannot be parsed
        """
        json_path = self.config_dir / f"{filename}.json"
        jsonc_path = self.config_dir / f"{filename}.jsonc"

        if json_path.exists():
            return self._parse(json_path, json_path.read_text(encoding="utf-8"))

        if allow_jsonc and jsonc_path.exists():
            content = jsonc_path.read_text(encoding="utf-8")
            return self._parse(jsonc_path, _strip_comments(content))

        raise FileNotFoundError(
            f"Config file '{filename}.json' or '{filename}.jsonc' not found in {self.config_dir}"
        )

    def load_sync_config(self, filename: str = DEFAULT_CONFIG_NAME) -> SyncConfig:
        """
        Load the branch sync configuration.

        Returns:
            Parsed SyncConfig domain model

        Raises:
            FileNotFoundError: If the config file is missing
            ValueError: If config cannot be parsed or validated
        """
        data = self.load_json_file(filename)
        try:
            config = SyncConfig.model_validate(data)
        except ValidationError as e:
            logger.error("Failed to load sync config: %s", e)
            raise ValueError(f"Invalid sync configuration: {e}") from e

        logger.info(
            "Loaded sync config: %d branch(es), %d column(s), %d exclusion(s)",
            len(config.branches),
            len(config.columns),
            len(config.exclusions),
        )
        return config

    @staticmethod
    def _parse(path: Path, content: str) -> Dict[str, Any]:
        try:
            data = json.loads(content)
        except json.JSONDecodeError as e:
            logger.error("Failed to parse config file %s: %s", path, e)
            raise ValueError(f"Invalid JSON in {path}") from e
        if not isinstance(data, dict):
            raise ValueError(f"Config file {path} must contain a JSON object")
        return data


def load_config(path: str | Path) -> SyncConfig:
    """
    Load a SyncConfig from a config file or a directory holding branchsync.json.
    """
    path = Path(path)
    if path.is_dir():
        return ConfigRepository(path).load_sync_config()
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")
    name = path.name
    for suffix in (".jsonc", ".json"):
        if name.endswith(suffix):
            name = name[: -len(suffix)]
            break
    return ConfigRepository(path.parent).load_sync_config(name)
