# Extraction Merger Configuration
from .settings import (
    CONFIG_DIR,
    DEFAULT_NULL_PLACEHOLDERS,
    MergeSettings,
    get_settings,
)
from .config_loader import DEFAULT_PLACEHOLDERS_PATH, load_null_placeholders

__all__ = [
    "CONFIG_DIR",
    "DEFAULT_NULL_PLACEHOLDERS",
    "DEFAULT_PLACEHOLDERS_PATH",
    "MergeSettings",
    "get_settings",
    "load_null_placeholders",
]
