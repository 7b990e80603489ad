"""
Batch Accumulator - Cumulative state of a multi-batch extraction

Holds what an extraction job has learned so far and folds each batch
response into it:

    state = BatchMergeState()
    for batch in batches:
        state.apply_response(call_llm(batch))
        if state.all_fields_confident(identity_fields):
            break

    if state.conflicts:
        resolutions = parse_resolution_response(resolve(state.conflicts), state.conflicts)
        state.apply_resolutions(resolutions)

A batch response looks like:

    {
      "data": {...},
      "page_sources": {"field_name": 3, "providers[0].name": 4},
      "confidence": {"field_name": 4}
    }
"""

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Union

from .config.settings import get_settings
from .conflict_resolution import apply_resolutions as apply_resolutions_to_data
from .exceptions import BatchInputError
from .models.merge_models import (
    ConflictRecord,
    ConflictResolution,
    ExtractionRecord,
    MergeResult,
    PageSourceMap,
)
from .page_sources import extract_page_sources, merge_page_sources_for_updated_fields
from .result_merger import ExtractionResultMerger

logger = logging.getLogger(__name__)


def _default_detect_conflicts() -> bool:
    return get_settings().detect_conflicts


@dataclass
class BatchMergeState:
    """Cumulative data, page sources, conflicts and confidence across batches."""
    data: ExtractionRecord = field(default_factory=dict)
    page_sources: PageSourceMap = field(default_factory=dict)
    conflicts: List[ConflictRecord] = field(default_factory=list)
    confidence: Dict[str, int] = field(default_factory=dict)
    batches_applied: int = 0
    detect_conflicts: bool = field(default_factory=_default_detect_conflicts)
    merger: ExtractionResultMerger = field(
        default_factory=ExtractionResultMerger, repr=False, compare=False
    )

    # =========================================================================
    # APPLYING BATCHES
    # =========================================================================

    def apply_batch(
        self,
        batch_data: ExtractionRecord,
        batch_page_sources: Optional[PageSourceMap] = None,
        confidence: Optional[Mapping[str, Any]] = None,
    ) -> MergeResult:
        """
        Merge one batch into the cumulative state.

        Args:
            batch_data: Extracted data of the batch
            batch_page_sources: Page sources of the batch
            confidence: Per-field confidence of the batch (1-5)

        Returns:
            The MergeResult of this batch
        """
        batch_page_sources = batch_page_sources or {}

        if self.detect_conflicts:
            result = self.merger.merge_with_conflicts(
                self.data, batch_data, self.page_sources, batch_page_sources
            )
        else:
            result = self.merger.merge_with_tracking(self.data, batch_data)

        self.data = result.merged
        self.page_sources = merge_page_sources_for_updated_fields(
            self.page_sources, batch_page_sources, result.updated_fields
        )
        self.conflicts.extend(result.conflicts)
        self._update_confidence(confidence or {})
        self.batches_applied += 1

        logger.info(
            f"Batch {self.batches_applied}: {len(result.updated_fields)} fields updated, "
            f"{len(result.conflicts)} new conflicts"
        )
        return result

    def apply_response(self, response: Mapping[str, Any]) -> MergeResult:
        """Merge a batch response with data, page_sources and confidence keys."""
        if not isinstance(response, Mapping):
            raise BatchInputError(
                f"Batch response must be an object, got {type(response).__name__}",
                details={"batch": self.batches_applied + 1},
            )

        data = response.get("data") or {}
        if not isinstance(data, Mapping):
            raise BatchInputError(
                f"Batch data must be an object, got {type(data).__name__}",
                field="data",
                details={"batch": self.batches_applied + 1},
            )

        confidence = response.get("confidence")
        return self.apply_batch(
            dict(data),
            extract_page_sources(response),
            confidence if isinstance(confidence, Mapping) else None,
        )

    def _update_confidence(self, confidence: Mapping[str, Any]) -> None:
        # Keep the highest confidence seen for each field
        for field_name, value in confidence.items():
            try:
                score = int(value)
            except (TypeError, ValueError):
                logger.warning(f"Ignoring non-integer confidence for '{field_name}': {value!r}")
                continue
            if score > self.confidence.get(field_name, 0):
                self.confidence[field_name] = score

    def all_fields_confident(
        self, fields: Iterable[str], threshold: Optional[int] = None
    ) -> bool:
        """Check if every field reached the confidence threshold (early stop)."""
        fields = list(fields)
        if not fields:
            return False
        if threshold is None:
            threshold = get_settings().confidence_threshold
        return all(self.confidence.get(f, 0) >= threshold for f in fields)

    # =========================================================================
    # CONFLICTS
    # =========================================================================

    @property
    def has_conflicts(self) -> bool:
        return bool(self.conflicts)

    def apply_resolutions(
        self, resolutions: Iterable[Union[ConflictResolution, Mapping]]
    ) -> None:
        """Apply resolved values and drop the conflicts they settle."""
        resolutions = [
            r if isinstance(r, ConflictResolution) else ConflictResolution.from_dict(dict(r))
            for r in resolutions
        ]
        if not resolutions:
            return

        self.data, self.page_sources = apply_resolutions_to_data(
            self.data, self.page_sources, resolutions
        )

        resolved_paths = {r.field_path for r in resolutions}
        remaining = [c for c in self.conflicts if c.field_path not in resolved_paths]
        logger.info(
            f"Applied {len(resolutions)} resolutions, "
            f"{len(self.conflicts) - len(remaining)} conflicts settled"
        )
        self.conflicts = remaining

    # =========================================================================
    # SERIALIZATION
    # =========================================================================

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "data": self.data,
            "page_sources": dict(self.page_sources),
            "conflicts": [c.to_dict() for c in self.conflicts],
            "confidence": dict(self.confidence),
            "batches_applied": self.batches_applied,
            "detect_conflicts": self.detect_conflicts,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BatchMergeState":
        """Create from dictionary."""
        kwargs: Dict[str, Any] = {
            "data": dict(data.get("data") or {}),
            "page_sources": dict(data.get("page_sources") or {}),
            "conflicts": [ConflictRecord.from_dict(c) for c in data.get("conflicts", [])],
            "confidence": dict(data.get("confidence") or {}),
            "batches_applied": data.get("batches_applied", 0),
        }
        if "detect_conflicts" in data:
            kwargs["detect_conflicts"] = data["detect_conflicts"]
        return cls(**kwargs)
