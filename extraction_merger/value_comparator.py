"""
Value Comparator - Same content vs genuinely different content

Used for conflict detection (two batches disagree on a field) and for
identity matching when accumulating arrays of entities.
"""

from typing import Any

from .models.merge_models import ValueKind
from .value_classifier import as_list, classify_value


def normalize_string(value: str) -> str:
    """Trim surrounding whitespace and case-fold."""
    return value.strip().casefold()


def values_are_different(a: Any, b: Any) -> bool:
    """Check if two values are meaningfully different.

    - Strings compare after trimming and case-folding.
    - Arrays must have the same length and pairwise-equal items in order.
    - Values of different kinds are always different ("1" vs 1, "true" vs True).
    - Everything else uses kind-strict structural equality.
    """
    kind_a = classify_value(a)
    kind_b = classify_value(b)

    if kind_a != kind_b:
        return True

    if isinstance(a, str) and isinstance(b, str):
        return normalize_string(a) != normalize_string(b)

    if kind_a == ValueKind.ARRAY:
        items_a = as_list(a)
        items_b = as_list(b)
        if len(items_a) != len(items_b):
            return True
        return any(values_are_different(x, y) for x, y in zip(items_a, items_b))

    return not deep_equal(a, b)


def deep_equal(a: Any, b: Any) -> bool:
    """Kind-strict structural equality (object key order is ignored)."""
    kind = classify_value(a)
    if kind != classify_value(b):
        return False

    if kind == ValueKind.OBJECT:
        if a.keys() != b.keys():
            return False
        return all(deep_equal(a[k], b[k]) for k in a)

    if kind == ValueKind.ARRAY:
        items_a = as_list(a)
        items_b = as_list(b)
        return len(items_a) == len(items_b) and all(
            deep_equal(x, y) for x, y in zip(items_a, items_b)
        )

    return a == b
