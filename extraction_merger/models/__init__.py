# Extraction Merger Models
from .merge_models import (
    ValueKind,
    ConflictRecord,
    MergeResult,
    ConflictResolution,
    ExtractionRecord,
    PageSourceMap,
)

__all__ = [
    "ValueKind",
    "ConflictRecord",
    "MergeResult",
    "ConflictResolution",
    "ExtractionRecord",
    "PageSourceMap",
]
