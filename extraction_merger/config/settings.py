"""
Configuration settings for the extraction merger.

Reads EXTRACTION_MERGE_* environment variables (and an optional .env file)
and provides typed settings.
"""

from functools import lru_cache
from pathlib import Path
from typing import FrozenSet, List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


CONFIG_DIR = Path(__file__).parent

# Strings an LLM returns when a field is not present on the pages it saw.
# Compared after trimming and case-folding.
DEFAULT_NULL_PLACEHOLDERS: FrozenSet[str] = frozenset({
    "null",
    "<null>",
    "n/a",
    "na",
    "none",
    "unknown",
    "-",
    "--",
})


class MergeSettings(BaseSettings):
    """Merger settings loaded from the environment."""

    model_config = SettingsConfigDict(
        env_prefix="EXTRACTION_MERGE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    null_placeholders: List[str] = Field(
        default_factory=lambda: sorted(DEFAULT_NULL_PLACEHOLDERS),
        description="Strings treated as 'nothing found'",
    )
    placeholders_file: Optional[Path] = Field(
        default=None,
        description="YAML file with a null_placeholders list (overrides null_placeholders)",
    )

    # Batch accumulation
    detect_conflicts: bool = Field(
        default=True,
        description="Hold existing values and report conflicts instead of overwriting",
    )
    confidence_threshold: int = Field(
        default=3,
        description="Per-field confidence (1-5) at which a field counts as settled",
    )
    default_page: int = Field(
        default=1,
        description="Page assigned to fields without a page source",
    )

    log_level: str = Field(default="INFO")

    def placeholder_set(self) -> FrozenSet[str]:
        """Effective placeholder strings, normalized."""
        if self.placeholders_file is not None:
            from .config_loader import load_null_placeholders
            return load_null_placeholders(self.placeholders_file)
        return frozenset(p.strip().casefold() for p in self.null_placeholders)


@lru_cache()
def get_settings() -> MergeSettings:
    """Get cached settings instance."""
    return MergeSettings()
