"""
Extraction Merger - Merge batch LLM extraction results without losing data

Long documents are extracted in batches of pages. Each batch returns a partial
JSON record plus the page each field came from. This package folds the batches
into one cumulative record:

Components:
    - value_classifier: meaningful vs "nothing found" values
    - value_comparator: normalized difference / deep equality
    - array_accumulator: list accumulation with entity dedup
    - result_merger: merge / merge_with_tracking / merge_with_conflicts
    - page_sources: per-field page provenance
    - conflict_resolution: prompt inputs, response schema, applying resolutions
    - batch_accumulator: cumulative state across batches (BatchMergeState)

Usage:
    from extraction_merger import merge_with_conflicts, merge_page_sources_for_updated_fields

    result = merge_with_conflicts(data, batch_data, page_sources, batch_page_sources)
    data = result.merged
    page_sources = merge_page_sources_for_updated_fields(
        page_sources, batch_page_sources, result.updated_fields
    )

    # Or keep the whole job state in one object
    from extraction_merger import BatchMergeState

    state = BatchMergeState()
    state.apply_response({"data": {...}, "page_sources": {...}})
"""

__version__ = "1.0.0"

# Models
from .models import (
    ValueKind,
    ConflictRecord,
    MergeResult,
    ConflictResolution,
    ExtractionRecord,
    PageSourceMap,
)

# Errors
from .exceptions import (
    ExtractionMergeError,
    ConfigurationError,
    ResolutionResponseError,
    BatchInputError,
)

# Configuration
from .config import DEFAULT_NULL_PLACEHOLDERS, MergeSettings, get_settings, load_null_placeholders

# Values
from .value_classifier import ValueClassifier, classify_value, is_meaningful_value
from .value_comparator import deep_equal, values_are_different

# Merging
from .array_accumulator import merge_sequential_arrays
from .result_merger import (
    ExtractionResultMerger,
    merge,
    merge_with_tracking,
    merge_with_conflicts,
)

# Page sources
from .page_sources import (
    build_page_sources_schema,
    extract_page_sources,
    field_name_from_path,
    lookup_page_source,
    merge_page_sources_for_updated_fields,
    split_data_by_page,
)

# Conflict resolution
from .conflict_resolution import (
    apply_resolutions,
    build_conflicts_yaml,
    build_resolution_prompt,
    build_resolution_schema,
    collect_conflict_pages,
    parse_resolution_response,
)

# Batch state
from .batch_accumulator import BatchMergeState

__all__ = [
    # Models
    "ValueKind",
    "ConflictRecord",
    "MergeResult",
    "ConflictResolution",
    "ExtractionRecord",
    "PageSourceMap",
    # Errors
    "ExtractionMergeError",
    "ConfigurationError",
    "ResolutionResponseError",
    "BatchInputError",
    # Configuration
    "DEFAULT_NULL_PLACEHOLDERS",
    "MergeSettings",
    "get_settings",
    "load_null_placeholders",
    # Values
    "ValueClassifier",
    "classify_value",
    "is_meaningful_value",
    "deep_equal",
    "values_are_different",
    # Merging
    "merge_sequential_arrays",
    "ExtractionResultMerger",
    "merge",
    "merge_with_tracking",
    "merge_with_conflicts",
    # Page sources
    "build_page_sources_schema",
    "extract_page_sources",
    "field_name_from_path",
    "lookup_page_source",
    "merge_page_sources_for_updated_fields",
    "split_data_by_page",
    # Conflict resolution
    "apply_resolutions",
    "build_conflicts_yaml",
    "build_resolution_prompt",
    "build_resolution_schema",
    "collect_conflict_pages",
    "parse_resolution_response",
    # Batch state
    "BatchMergeState",
]
