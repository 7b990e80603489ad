"""
Array Accumulator - Accumulate list fields across batches

Different batches usually return different subsets of a list (batch 1 finds
provider A, batch 2 finds provider B), so lists are accumulated rather than
overwritten. Entities (objects) that reappear in a later batch are collapsed
onto the first occurrence:

    1. same "id" (compared with values_are_different)
    2. otherwise, same "name" after trimming and case-folding
    3. otherwise, structurally equal objects

On a match the new entity is dropped as-is. Fields that only the later
occurrence carries are NOT merged into the kept entity.

Scalars are concatenated without deduplication so every finding survives
even when the same value recurs on different pages.
"""

import copy
import logging
from collections.abc import Mapping
from typing import Any, List, Sequence

from .models.merge_models import ValueKind
from .value_classifier import classify_value
from .value_comparator import deep_equal, normalize_string, values_are_different

logger = logging.getLogger(__name__)

IDENTITY_ID_KEY = "id"
IDENTITY_NAME_KEY = "name"


def identity_matches(existing_item: Mapping, new_item: Mapping) -> bool:
    """Check if two entities describe the same thing."""
    existing_id = existing_item.get(IDENTITY_ID_KEY)
    new_id = new_item.get(IDENTITY_ID_KEY)
    if existing_id is not None and new_id is not None:
        if not values_are_different(existing_id, new_id):
            return True

    existing_name = existing_item.get(IDENTITY_NAME_KEY)
    new_name = new_item.get(IDENTITY_NAME_KEY)
    if existing_name is not None and new_name is not None:
        if normalize_string(str(existing_name)) == normalize_string(str(new_name)):
            return True

    return deep_equal(existing_item, new_item)


def contains_identity(items: Sequence[Any], candidate: Mapping) -> bool:
    """Check if a list already holds an entity matching the candidate."""
    for item in items:
        if classify_value(item) != ValueKind.OBJECT:
            continue
        if identity_matches(item, candidate):
            return True
    return False


def merge_sequential_arrays(existing: Sequence[Any], new: Sequence[Any]) -> List[Any]:
    """
    Accumulate the items of a new batch list onto an existing list.

    Args:
        existing: Cumulative list from previous batches
        new: List returned by the current batch

    Returns:
        existing followed by every new item that is not a duplicate entity,
        in original relative order
    """
    result = [copy.deepcopy(item) for item in existing]
    skipped = 0

    for item in new:
        if classify_value(item) == ValueKind.OBJECT and contains_identity(result, item):
            skipped += 1
            continue
        result.append(copy.deepcopy(item))

    if skipped:
        logger.debug(f"Dropped {skipped} duplicate entities while accumulating {len(new)} items")

    return result
