# vocfeat/config/loaders.py

"""
Functions for loading and merging vocfeat configuration from TOML files.

Only files named explicitly by the caller are read; there is no implicit
user/project file and no environment variable layer, so a run is fully
determined by the built-in defaults plus the files given on the command line.
"""

import logging
from pathlib import Path
from typing import Dict, Any, Optional, List, Union

import toml
from pydantic import ValidationError

from vocfeat.errors import ConfigurationError
from .models import VocfeatConfig

logger = logging.getLogger(__name__)


def _load_toml_file(filepath: Path) -> Dict[str, Any]:
    """Loads a TOML file, raising ConfigurationError if it is missing or malformed."""
    if not filepath.is_file():
        raise ConfigurationError(f"Configuration file not found: {filepath}")
    try:
        with open(filepath, 'r') as f:
            return toml.load(f)
    except toml.TomlDecodeError as e:
        raise ConfigurationError(f"Error decoding TOML file '{filepath}': {e}") from e


def deep_merge_dicts(base: Dict, update: Dict) -> Dict:
    """Recursively merges 'update' dict into 'base' dict."""
    merged = base.copy()
    for key, value in update.items():
        if isinstance(value, dict) and key in merged and isinstance(merged[key], dict):
            merged[key] = deep_merge_dicts(merged[key], value)
        else:
            # Update takes precedence
            merged[key] = value
    return merged


def build_configuration(overrides: Optional[Dict[str, Any]] = None) -> VocfeatConfig:
    """
    Validates a (possibly nested, partial) settings dict into a VocfeatConfig.

    Raises:
        ConfigurationError: If validation fails.
    """
    try:
        return VocfeatConfig(**(overrides or {}))
    except ValidationError as e:
        raise ConfigurationError(f"Configuration validation failed:\n{e}") from e


def load_configuration(
    config_files: Optional[List[Union[str, Path]]] = None,
    overrides: Optional[Dict[str, Any]] = None,
) -> VocfeatConfig:
    """
    Loads vocfeat configuration from defaults, TOML files and explicit overrides.

    Precedence (highest first):
    1. `overrides` (typically built from CLI options)
    2. Config files, later files winning over earlier ones
    3. Internal defaults (from the Pydantic models)

    Args:
        config_files: TOML files to merge, in increasing precedence.
        overrides: Nested dict applied last.

    Returns:
        A validated VocfeatConfig object.

    Raises:
        ConfigurationError: If a file cannot be read or the merged settings are invalid.
    """
    merged_config_dict: Dict[str, Any] = {}

    for file_path in config_files or []:
        file_path = Path(file_path)
        logger.debug(f"Loading configuration file: {file_path}")
        merged_config_dict = deep_merge_dicts(merged_config_dict, _load_toml_file(file_path))
        logger.info(f"Loaded configuration from {file_path}")

    if overrides:
        logger.debug(f"Applying configuration overrides: {overrides}")
        merged_config_dict = deep_merge_dicts(merged_config_dict, overrides)

    config = build_configuration(merged_config_dict)
    logger.debug("Configuration loaded and validated successfully.")
    return config
