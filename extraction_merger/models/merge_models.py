"""
Merge Models - Data structures exchanged by the extraction merger

Defines the value kinds the merger branches on, the conflict record emitted
when two batches disagree, the merge result returned by every merge variant,
and the resolution record produced after a conflict has been decided.

Usage:
    from extraction_merger.models.merge_models import (
        ValueKind,
        ConflictRecord,
        MergeResult,
        ConflictResolution,
    )
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


# Type aliases
ExtractionRecord = Dict[str, Any]
PageSourceMap = Dict[str, int]


# =============================================================================
# ENUMS
# =============================================================================


class ValueKind(str, Enum):
    """Kind of a parsed JSON value."""
    NULL = "null"
    BOOL = "bool"
    NUMBER = "number"
    STRING = "string"
    OBJECT = "object"
    ARRAY = "array"


# =============================================================================
# CONFLICTS
# =============================================================================


@dataclass
class ConflictRecord:
    """
    Two batches produced meaningful but different values for one field.

    The existing value stays in the cumulative record until the conflict is
    resolved; both candidates are kept here with the page each came from.
    """
    field_path: str
    field_name: str
    existing_value: Any
    new_value: Any
    existing_page: Optional[int] = None
    new_page: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "field_path": self.field_path,
            "field_name": self.field_name,
            "existing_value": self.existing_value,
            "existing_page": self.existing_page,
            "new_value": self.new_value,
            "new_page": self.new_page,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ConflictRecord":
        """Create from dictionary."""
        field_path = data.get("field_path", data.get("fieldPath", ""))
        return cls(
            field_path=field_path,
            field_name=data.get("field_name", data.get("fieldName", field_path)),
            existing_value=data.get("existing_value", data.get("existingValue")),
            existing_page=data.get("existing_page", data.get("existingPage")),
            new_value=data.get("new_value", data.get("newValue")),
            new_page=data.get("new_page", data.get("newPage")),
        )

    @property
    def pages(self) -> List[int]:
        """Pages involved in this conflict."""
        return [p for p in (self.existing_page, self.new_page) if p]


@dataclass
class MergeResult:
    """Result of merging one batch into the cumulative record."""
    merged: ExtractionRecord = field(default_factory=dict)
    updated_fields: List[str] = field(default_factory=list)
    conflicts: List[ConflictRecord] = field(default_factory=list)

    @property
    def has_conflicts(self) -> bool:
        return bool(self.conflicts)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "merged": self.merged,
            "updated_fields": list(self.updated_fields),
            "conflicts": [c.to_dict() for c in self.conflicts],
        }


# =============================================================================
# RESOLUTIONS
# =============================================================================


@dataclass
class ConflictResolution:
    """Decided value for a conflicting field."""
    field_path: str
    field_name: str
    resolved_value: Any
    source_page: Optional[int] = None
    reason: str = ""

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "field_path": self.field_path,
            "field_name": self.field_name,
            "resolved_value": self.resolved_value,
            "source_page": self.source_page,
            "reason": self.reason,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ConflictResolution":
        """Create from dictionary."""
        field_path = data.get("field_path", data.get("field_name", ""))
        return cls(
            field_path=field_path,
            field_name=data.get("field_name", field_path),
            resolved_value=data.get("resolved_value"),
            source_page=data.get("source_page"),
            reason=data.get("reason", ""),
        )
