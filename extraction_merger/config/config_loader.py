"""
Configuration loader for the extraction merger.

Loads the null-placeholder list from YAML.
"""

import logging
from pathlib import Path
from typing import FrozenSet, Optional, Union

import yaml

from ..exceptions import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_PLACEHOLDERS_PATH = Path(__file__).parent / "null_placeholders.yaml"


def load_null_placeholders(path: Optional[Union[str, Path]] = None) -> FrozenSet[str]:
    """
    Load placeholder strings from a YAML file.

    The file holds a top-level ``null_placeholders`` list. Entries are trimmed
    and case-folded so they compare the way the classifier compares values.

    Args:
        path: YAML file (defaults to the packaged null_placeholders.yaml)

    Returns:
        Frozen set of normalized placeholder strings

    Raises:
        ConfigurationError: If the file is missing or malformed
    """
    config_path = Path(path) if path else DEFAULT_PLACEHOLDERS_PATH

    if not config_path.exists():
        raise ConfigurationError(
            f"Placeholder config not found at {config_path}",
            field="placeholders_file",
        )

    try:
        with open(config_path, "r") as f:
            config = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigurationError(
            f"Invalid YAML in {config_path}: {e}",
            field="placeholders_file",
        ) from e

    placeholders = config.get("null_placeholders") if isinstance(config, dict) else None
    if not isinstance(placeholders, list):
        raise ConfigurationError(
            f"{config_path} must define a 'null_placeholders' list",
            field="null_placeholders",
            details={"path": str(config_path)},
        )

    normalized = frozenset(str(p).strip().casefold() for p in placeholders if p is not None)
    logger.debug(f"Loaded {len(normalized)} null placeholders from {config_path}")
    return normalized
