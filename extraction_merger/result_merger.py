"""
Result Merger - Combine batch extraction results into one cumulative record

Long documents are extracted in batches of pages, one LLM call per batch.
Each batch returns a partial record; this module folds those records into
the cumulative record in batch order.

Example: batch 1 extracts "incident_description" from page 1. Batch 2
processes pages 3-4, which don't mention the incident, and returns "null".
Without meaningful-value merging the description from page 1 would be lost.

Three variants share one traversal:
    merge()                 - merged record only
    merge_with_tracking()   - merged record + updated field paths
    merge_with_conflicts()  - merged record + updated field paths + conflicts

Merge rules per key of the new batch:
    - new value not meaningful        -> keep existing value, not tracked
    - both objects                    -> recurse, paths prefixed "key."
    - both lists                      -> accumulate (array_accumulator), tracked
    - anything else                   -> take new value, tracked
      (conflict variant: both meaningful and different -> keep existing,
      record a ConflictRecord, not tracked)

Usage:
    from extraction_merger import merge_with_conflicts, merge_page_sources_for_updated_fields

    result = merge_with_conflicts(cumulative, batch_data, cumulative_pages, batch_pages)
    cumulative = result.merged
    cumulative_pages = merge_page_sources_for_updated_fields(
        cumulative_pages, batch_pages, result.updated_fields
    )
    cumulative_conflicts.extend(result.conflicts)
"""

import copy
import logging
from collections.abc import Mapping
from typing import Any, Dict, Optional

from .array_accumulator import merge_sequential_arrays
from .models.merge_models import ConflictRecord, ExtractionRecord, MergeResult, PageSourceMap, ValueKind
from .page_sources import field_name_from_path, lookup_page_source
from .value_classifier import ValueClassifier, as_list, classify_value, get_default_classifier
from .value_comparator import values_are_different

logger = logging.getLogger(__name__)


class ExtractionResultMerger:
    """Merge batch extraction results without losing earlier findings.

    Stateless apart from the injected classifier; one instance can serve
    any number of extraction jobs.
    """

    def __init__(self, classifier: Optional[ValueClassifier] = None):
        """Initialize merger.

        Args:
            classifier: Meaningful-value classifier (defaults to the
                settings-configured classifier, resolved on each use)
        """
        self._classifier = classifier

    @property
    def classifier(self) -> ValueClassifier:
        return self._classifier or get_default_classifier()

    # =========================================================================
    # PUBLIC API
    # =========================================================================

    def merge(self, existing: ExtractionRecord, new: ExtractionRecord) -> ExtractionRecord:
        """Merge a batch into the cumulative record."""
        return self.merge_with_tracking(existing, new).merged

    def merge_with_tracking(self, existing: ExtractionRecord, new: ExtractionRecord) -> MergeResult:
        """Merge a batch and report which field paths received a value.

        The updated paths drive page-source merging: only those fields take
        the new batch's page.
        """
        result = MergeResult()
        result.merged = self._merge_level(existing or {}, new or {}, "", result)
        logger.debug(f"Merged batch: {len(result.updated_fields)} fields updated")
        return result

    def merge_with_conflicts(
        self,
        existing: ExtractionRecord,
        new: ExtractionRecord,
        existing_page_sources: Optional[PageSourceMap] = None,
        new_page_sources: Optional[PageSourceMap] = None,
    ) -> MergeResult:
        """Merge a batch, holding existing values where the batches disagree.

        A conflict occurs when both the existing and the new value are
        meaningful but different. The existing value is kept until the
        conflict is resolved, and the conflict is reported with the page each
        candidate came from (looked up by full path, then by field name).

        Args:
            existing: Cumulative data from previous batches
            new: Data from the current batch
            existing_page_sources: Cumulative page sources
            new_page_sources: Page sources of the current batch

        Returns:
            MergeResult with merged data, updated field paths and conflicts
        """
        result = MergeResult()
        result.merged = self._merge_level(
            existing or {},
            new or {},
            "",
            result,
            detect_conflicts=True,
            existing_page_sources=existing_page_sources or {},
            new_page_sources=new_page_sources or {},
        )
        if result.conflicts:
            logger.debug(
                f"Merged batch: {len(result.updated_fields)} fields updated, "
                f"{len(result.conflicts)} conflicts: {[c.field_path for c in result.conflicts]}"
            )
        else:
            logger.debug(f"Merged batch: {len(result.updated_fields)} fields updated")
        return result

    # =========================================================================
    # TRAVERSAL
    # =========================================================================

    def _merge_level(
        self,
        existing: Mapping,
        new: Mapping,
        prefix: str,
        result: MergeResult,
        detect_conflicts: bool = False,
        existing_page_sources: Optional[PageSourceMap] = None,
        new_page_sources: Optional[PageSourceMap] = None,
    ) -> Dict[str, Any]:
        """Merge one object level, appending updates and conflicts to result."""
        merged: Dict[str, Any] = {key: copy.deepcopy(value) for key, value in existing.items()}
        classifier = self.classifier

        for key, value in new.items():
            field_path = f"{prefix}.{key}" if prefix else str(key)

            # Don't overwrite good data with null/empty/placeholder values
            if not classifier.is_meaningful(value):
                continue

            has_existing = key in existing
            existing_value = existing.get(key)
            new_kind = classify_value(value)
            existing_kind = classify_value(existing_value)

            if has_existing and new_kind == existing_kind == ValueKind.OBJECT:
                merged[key] = self._merge_level(
                    existing_value,
                    value,
                    field_path,
                    result,
                    detect_conflicts=detect_conflicts,
                    existing_page_sources=existing_page_sources,
                    new_page_sources=new_page_sources,
                )
                continue

            if has_existing and new_kind == existing_kind == ValueKind.ARRAY:
                merged[key] = merge_sequential_arrays(as_list(existing_value), as_list(value))
                result.updated_fields.append(field_path)
                continue

            if (
                detect_conflicts
                and classifier.is_meaningful(existing_value)
                and values_are_different(existing_value, value)
            ):
                result.conflicts.append(
                    self._build_conflict(
                        field_path, existing_value, value, existing_page_sources, new_page_sources
                    )
                )
                continue

            merged[key] = copy.deepcopy(value)
            result.updated_fields.append(field_path)

        return merged

    def _build_conflict(
        self,
        field_path: str,
        existing_value: Any,
        new_value: Any,
        existing_page_sources: Optional[PageSourceMap],
        new_page_sources: Optional[PageSourceMap],
    ) -> ConflictRecord:
        field_name = field_name_from_path(field_path)
        conflict = ConflictRecord(
            field_path=field_path,
            field_name=field_name,
            existing_value=copy.deepcopy(existing_value),
            existing_page=lookup_page_source(existing_page_sources or {}, field_path, field_name),
            new_value=copy.deepcopy(new_value),
            new_page=lookup_page_source(new_page_sources or {}, field_path, field_name),
        )
        logger.debug(
            f"Conflict on '{field_path}': page {conflict.existing_page} vs page {conflict.new_page}"
        )
        return conflict


# =============================================================================
# CONVENIENCE FUNCTIONS
# =============================================================================

_default_merger = ExtractionResultMerger()


def merge(existing: ExtractionRecord, new: ExtractionRecord) -> ExtractionRecord:
    """Merge extraction results, preserving meaningful values from earlier batches."""
    return _default_merger.merge(existing, new)


def merge_with_tracking(existing: ExtractionRecord, new: ExtractionRecord) -> MergeResult:
    """Merge extraction results and return the field paths that were updated."""
    return _default_merger.merge_with_tracking(existing, new)


def merge_with_conflicts(
    existing: ExtractionRecord,
    new: ExtractionRecord,
    existing_page_sources: Optional[PageSourceMap] = None,
    new_page_sources: Optional[PageSourceMap] = None,
) -> MergeResult:
    """Merge extraction results, track updates and detect conflicts."""
    return _default_merger.merge_with_conflicts(
        existing, new, existing_page_sources, new_page_sources
    )
