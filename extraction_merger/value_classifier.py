"""
Value Classifier - Meaningful vs "nothing found" values

Batch extraction asks the LLM for every field on every batch of pages. Pages
that do not mention a field come back with null, an empty string, an empty
list or a placeholder such as "N/A". Those values must never replace data an
earlier batch found. This module decides which values carry information and
classifies parsed JSON values into the kinds the merger branches on.

0 and False ARE meaningful (they are real answers); empty strings and empty
containers are NOT (they are the "nothing found" markers).

Usage:
    from extraction_merger.value_classifier import is_meaningful_value, classify_value

    is_meaningful_value("N/A")     # False
    is_meaningful_value(0)         # True
    classify_value([1, 2])         # ValueKind.ARRAY
"""

from collections.abc import Mapping
from typing import Any, FrozenSet, Iterable, List, Optional

from .config.settings import DEFAULT_NULL_PLACEHOLDERS, MergeSettings, get_settings
from .models.merge_models import ValueKind



def classify_value(value: Any) -> ValueKind:
    """Classify a parsed JSON value.

    A mapping whose keys are exactly the integers 0..n-1 in order is a list
    that was serialized as a keyed map, so it classifies as ARRAY. Any other
    mapping (sparse or string keys) is an OBJECT.
    """
    if value is None:
        return ValueKind.NULL
    # bool before numbers: bool is an int subclass
    if isinstance(value, bool):
        return ValueKind.BOOL
    if isinstance(value, (int, float)):
        return ValueKind.NUMBER
    if isinstance(value, str):
        return ValueKind.STRING
    if isinstance(value, (list, tuple)):
        return ValueKind.ARRAY
    if isinstance(value, Mapping):
        if value and _has_list_keys(value):
            return ValueKind.ARRAY
        return ValueKind.OBJECT
    # Opaque values compare by equality like strings and numbers
    return ValueKind.STRING


def _has_list_keys(mapping: Mapping) -> bool:
    keys = list(mapping.keys())
    return all(
        isinstance(k, int) and not isinstance(k, bool) and k == i
        for i, k in enumerate(keys)
    )


def as_list(value: Any) -> List[Any]:
    """Normalize an ARRAY-kind value to a plain list."""
    if isinstance(value, Mapping):
        return list(value.values())
    return list(value)


class ValueClassifier:
    """Decide whether extracted values carry real information.

    The placeholder set is injected so callers can extend or replace the
    strings their prompts produce for missing values.
    """

    def __init__(self, placeholders: Optional[Iterable[str]] = None):
        """Initialize classifier.

        Args:
            placeholders: Strings treated as "nothing found"
                (defaults to DEFAULT_NULL_PLACEHOLDERS)
        """
        if placeholders is None:
            self.placeholders: FrozenSet[str] = DEFAULT_NULL_PLACEHOLDERS
        else:
            self.placeholders = frozenset(p.strip().casefold() for p in placeholders)

    @classmethod
    def from_settings(cls, settings: MergeSettings) -> "ValueClassifier":
        """Build a classifier from merger settings."""
        return cls(settings.placeholder_set())

    def is_placeholder(self, value: str) -> bool:
        """Check if a string is empty, whitespace-only or a null placeholder."""
        normalized = value.strip().casefold()
        return normalized == "" or normalized in self.placeholders

    def is_meaningful(self, value: Any) -> bool:
        """Check if a value is meaningful and may overwrite existing data.

        A value is NOT meaningful if it is:
        - None
        - An empty or whitespace-only string
        - A null placeholder string ("null", "<null>", "N/A", "none", ...)
        - An empty list or mapping
        """
        kind = classify_value(value)

        if kind == ValueKind.NULL:
            return False

        if isinstance(value, str):
            return not self.is_placeholder(value)

        if kind in (ValueKind.ARRAY, ValueKind.OBJECT):
            return len(value) > 0

        return True


# Default instance, rebuilt when the cached settings object changes
_default_classifier: Optional[ValueClassifier] = None
_default_classifier_settings: Optional[MergeSettings] = None


def get_default_classifier() -> ValueClassifier:
    """Classifier configured from MergeSettings (null_placeholders / placeholders_file)."""
    global _default_classifier, _default_classifier_settings

    settings = get_settings()
    if _default_classifier is None or settings is not _default_classifier_settings:
        _default_classifier = ValueClassifier.from_settings(settings)
        _default_classifier_settings = settings
    return _default_classifier


def is_meaningful_value(value: Any, placeholders: Optional[Iterable[str]] = None) -> bool:
    """Check if a value carries real extracted information.

    Args:
        value: Parsed JSON value
        placeholders: Optional placeholder override

    Returns:
        False for null, empty, whitespace-only and placeholder values
    """
    if placeholders is None:
        return get_default_classifier().is_meaningful(value)
    return ValueClassifier(placeholders).is_meaningful(value)
