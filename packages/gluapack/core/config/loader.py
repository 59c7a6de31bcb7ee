"""Configuration loading with JSON and YAML support."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from gluapack.core.config.models import PackConfig
from gluapack.core.consts import CONFIG_FILE_FALLBACKS, CONFIG_FILE_NAME
from gluapack.core.errors import ConfigParseError

logger = logging.getLogger(__name__)


def detect_format(file_path: Path | str) -> str:
    """Detect config file format from extension.

    Args:
        file_path: Path to config file

    Returns:
        Format string: "json" or "yaml"

    Raises:
        ValueError: If format cannot be determined

    Example:
        >>> detect_format("gluapack.json")
        'json'
        >>> detect_format("gluapack.yml")
        'yaml'
    """
    suffix = Path(file_path).suffix.lower()

    if suffix == ".json":
        return "json"
    elif suffix in [".yaml", ".yml"]:
        return "yaml"
    else:
        raise ValueError(f"Unsupported config format: {suffix}")


def load_config(path: str | Path) -> dict[str, Any]:
    """Load and return a raw configuration dictionary.

    Args:
        path: Path to config file (.json, .yaml, or .yml)

    Returns:
        Raw configuration dictionary

    Raises:
        FileNotFoundError: If config file does not exist
        ValueError: If format is not supported or file content is invalid
    """
    path = Path(path)

    if not path.exists():
        raise FileNotFoundError(f"Config file does not exist: {path}")

    fmt = detect_format(path)

    with path.open("r", encoding="utf-8") as f:
        if fmt == "json":
            try:
                content = json.load(f)
            except json.JSONDecodeError as e:
                raise ValueError(f"Invalid JSON in {path}: {e}") from e
        else:
            try:
                content = yaml.safe_load(f)
            except yaml.YAMLError as e:
                raise ValueError(f"Invalid YAML in {path}: {e}") from e
            # safe_load returns None for empty files
            if content is None:
                content = {}

    if not isinstance(content, dict):
        raise ValueError(f"Config root must be an object in {path}")
    return content


def find_config_file(addon_dir: str | Path) -> Path | None:
    """Locate the addon's config file, preferring gluapack.json."""
    addon_dir = Path(addon_dir)
    for name in (CONFIG_FILE_NAME, *CONFIG_FILE_FALLBACKS):
        candidate = addon_dir / name
        if candidate.is_file():
            return candidate
    return None


def load_pack_config(addon_dir: str | Path) -> PackConfig:
    """Load and validate the packing configuration of an addon.

    A missing config file is not an error: defaults are used and a warning
    is logged.

    Args:
        addon_dir: Addon root (the directory containing ``lua/``)

    Returns:
        Validated PackConfig

    Raises:
        ConfigParseError: If the file is malformed or fails validation
    """
    path = find_config_file(addon_dir)
    if path is None:
        logger.warning(
            "%s not found in %s, using the default configuration", CONFIG_FILE_NAME, addon_dir
        )
        return PackConfig()

    logger.debug("Loading config from %s", path)
    try:
        raw_config = load_config(path)
    except (OSError, ValueError) as e:
        raise ConfigParseError(str(e)) from e

    try:
        return PackConfig.model_validate(raw_config)
    except ValidationError as e:
        raise ConfigParseError(f"{path}: {e}") from e


def dump_config(config: PackConfig) -> str:
    """Render a config as pretty-printed JSON, in gluapack.json form."""
    return json.dumps(config.model_dump(mode="json"), indent=4)
