"""
Page Sources - Per-field provenance across batches

Each batch response carries a page_sources map next to its data:

    {
      "data": {"name": "John", "diagnoses": [{"name": "Diagnosis A"}]},
      "page_sources": {"name": 1, "diagnoses[0].name": 2}
    }

Keys are either full field paths ("care_summary.name", "diagnoses[0].name")
or bare field names ("name"). Only fields whose data a merge actually updated
take the new batch's page; everything else keeps the page that produced the
value currently held.
"""

import logging
import re
from collections.abc import Mapping
from typing import Any, Dict, Iterable, List, Optional

logger = logging.getLogger(__name__)

_INDEX_PATTERN = re.compile(r"\[\d+\]")


def field_name_from_path(field_path: str) -> str:
    """
    Extract the field name from a dot-notation path.

    Examples:
        "incident_description" -> "incident_description"
        "care_summary.name" -> "name"
        "providers[0].name" -> "name"
        "providers[0]" -> "providers"
    """
    normalized = _INDEX_PATTERN.sub("", field_path)
    return normalized.split(".")[-1]


def _coerce_page(value: Any, key: str) -> Optional[int]:
    if value is None:
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        logger.warning(f"Ignoring non-integer page source for '{key}': {value!r}")
        return None


def lookup_page_source(page_sources: Mapping[str, Any], field_path: str, field_name: str) -> Optional[int]:
    """
    Look up a page source by full path first, then by field name.

    The full path wins when the same field name occurs at several depths
    with different pages.
    """
    if page_sources is None:
        return None

    page = _coerce_page(page_sources.get(field_path), field_path)
    if page is not None:
        return page

    return _coerce_page(page_sources.get(field_name), field_name)


def merge_page_sources_for_updated_fields(
    existing_page_sources: Mapping[str, Any],
    new_page_sources: Mapping[str, Any],
    updated_fields: Iterable[str],
) -> Dict[str, Any]:
    """
    Merge page sources for the fields a merge actually updated.

    A later batch that returned empty/null data for a field must not move
    that field's page source. New pages are stored under the key they were
    found by (full path, else field name); untouched keys are copied verbatim.

    Args:
        existing_page_sources: Cumulative page sources from previous batches
        new_page_sources: Page sources from the current batch
        updated_fields: Field paths reported as updated by the merge

    Returns:
        The merged page sources
    """
    merged = dict(existing_page_sources or {})
    new_page_sources = new_page_sources or {}

    for field_path in updated_fields:
        field_name = field_name_from_path(field_path)

        page = _coerce_page(new_page_sources.get(field_path), field_path)
        if page is not None:
            merged[field_path] = page
            continue

        page = _coerce_page(new_page_sources.get(field_name), field_name)
        if page is not None:
            merged[field_name] = page

    return merged


def extract_page_sources(response: Mapping[str, Any]) -> Dict[str, Any]:
    """Get the top-level page_sources map from a batch response."""
    page_sources = response.get("page_sources") if response else None
    return dict(page_sources) if isinstance(page_sources, Mapping) else {}


def split_data_by_page(
    data: Mapping[str, Any],
    page_sources: Mapping[str, Any],
    default_page: Optional[int] = None,
) -> Dict[int, Dict[str, Any]]:
    """
    Split top-level fields by the page they came from.

    Args:
        data: Extracted record
        page_sources: Map of field name to page number
        default_page: Page for fields without a source (settings default)

    Returns:
        Fields keyed by page number, sorted by page
    """
    if default_page is None:
        from .config.settings import get_settings
        default_page = get_settings().default_page

    data_by_page: Dict[int, Dict[str, Any]] = {}
    for field_name, value in data.items():
        page = _coerce_page((page_sources or {}).get(field_name), field_name)
        if page is None:
            page = default_page
        data_by_page.setdefault(page, {})[field_name] = value

    return dict(sorted(data_by_page.items()))


def build_page_sources_schema(field_names: List[str]) -> Dict[str, Any]:
    """
    Build the JSON schema for the top-level page_sources object.

    Returns a schema for {field_name: page number} with one property per
    tracked field. Array fields use "field[0].property" keys, which the
    integer additionalProperties rule accepts.
    """
    page_source = {"type": "integer", "minimum": 1}
    return {
        "type": "object",
        "description": (
            "Page numbers where each field value was found. "
            "Use field names as keys and page numbers (integers) as values. "
            'For array fields, use dot notation: "field[0].property": 1'
        ),
        "properties": {name: dict(page_source) for name in field_names},
        "additionalProperties": dict(page_source),
    }
