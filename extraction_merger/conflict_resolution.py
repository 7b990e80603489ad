"""
Conflict Resolution - Prepare, validate and apply decisions for batch conflicts

When two batches return meaningful but different values for the same field,
merge_with_conflicts() keeps the first value and reports a ConflictRecord.
Resolving a conflict means asking the LLM again with only the pages involved.
This module covers everything around that call:

    pages = collect_conflict_pages(conflicts)          # pages to attach
    prompt = build_resolution_prompt(conflicts, schema)
    response_schema = build_resolution_schema(conflicts)
    ... LLM call (caller) ...
    resolutions = parse_resolution_response(response, conflicts)
    data, page_sources = apply_resolutions(data, page_sources, resolutions)

Response entries are keyed by conflict field path, e.g.:

    {
      "care_summary.name": {
        "resolved_value": "Cervical, thoracic, and lumbar sprains",
        "source_page": 3,
        "reason": "Page 3 is the treatment summary"
      }
    }
"""

import copy
import json
import logging
import re
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union

import jsonschema
import yaml

from .exceptions import ResolutionResponseError
from .models.merge_models import ConflictRecord, ConflictResolution, ExtractionRecord, PageSourceMap

logger = logging.getLogger(__name__)

PROMPTS_DIR = Path(__file__).parent / "prompts"
RESOLUTION_PROMPT_PATH = PROMPTS_DIR / "conflict_resolution.md"

NO_DESCRIPTION = "No description available"

FIELD_RESOLUTION_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "resolved_value": {
            "description": "The correct value for the field",
        },
        "source_page": {
            "type": ["integer", "null"],
            "description": "Page number the resolved value was found on",
        },
        "reason": {
            "type": "string",
            "description": "Why this value was chosen",
        },
    },
    "required": ["resolved_value"],
}

_PATH_TOKEN = re.compile(r"([^.\[\]]+)|\[(\d+)\]")

ConflictLike = Union[ConflictRecord, Mapping]


def _as_conflict(conflict: ConflictLike) -> ConflictRecord:
    if isinstance(conflict, ConflictRecord):
        return conflict
    return ConflictRecord.from_dict(dict(conflict))


def _unique_by_path(conflicts: Iterable[ConflictLike]) -> List[ConflictRecord]:
    seen: Dict[str, ConflictRecord] = {}
    for conflict in conflicts:
        record = _as_conflict(conflict)
        seen.setdefault(record.field_path, record)
    return list(seen.values())


# =============================================================================
# PROMPT INPUTS
# =============================================================================


def collect_conflict_pages(conflicts: Iterable[ConflictLike]) -> List[int]:
    """Unique page numbers involved in conflicts, sorted."""
    pages = set()
    for conflict in conflicts:
        pages.update(_as_conflict(conflict).pages)
    return sorted(pages)


def format_value_for_prompt(value: Any) -> str:
    """Render a candidate value as prompt text (non-strings as JSON)."""
    if not isinstance(value, str):
        value = json.dumps(value, ensure_ascii=False)
    return value.replace("\r", "")


def describe_field(field_name: str, schema: Optional[Mapping[str, Any]] = None) -> str:
    """
    Find a field's description in the extraction JSON schema.

    Checks direct properties, then properties of nested objects, then
    properties of array items.
    """
    properties = (schema or {}).get("properties") or {}

    direct = properties.get(field_name)
    if isinstance(direct, Mapping) and direct.get("description"):
        return direct["description"]

    for prop in properties.values():
        if not isinstance(prop, Mapping):
            continue

        nested = (prop.get("properties") or {}).get(field_name)
        if isinstance(nested, Mapping) and nested.get("description"):
            return nested["description"]

        items = prop.get("items")
        if isinstance(items, Mapping):
            item_prop = (items.get("properties") or {}).get(field_name)
            if isinstance(item_prop, Mapping) and item_prop.get("description"):
                return item_prop["description"]

    return NO_DESCRIPTION


def build_conflicts_yaml(
    conflicts: Iterable[ConflictLike],
    schema: Optional[Mapping[str, Any]] = None,
) -> str:
    """Describe conflicts as a YAML list for the resolution prompt."""
    entries = []
    for conflict in _unique_by_path(conflicts):
        entries.append({
            "field": conflict.field_path,
            "description": describe_field(conflict.field_name, schema),
            "option_a": {
                "value": format_value_for_prompt(conflict.existing_value),
                "source_page": conflict.existing_page,
            },
            "option_b": {
                "value": format_value_for_prompt(conflict.new_value),
                "source_page": conflict.new_page,
            },
        })
    return yaml.safe_dump(entries, sort_keys=False, allow_unicode=True, width=1000)


def build_resolution_prompt(
    conflicts: Iterable[ConflictLike],
    schema: Optional[Mapping[str, Any]] = None,
    template_path: Optional[Path] = None,
) -> str:
    """Fill the conflict-resolution prompt template."""
    with open(template_path or RESOLUTION_PROMPT_PATH, "r") as f:
        template = f.read()
    return template.replace("{{conflicts_yaml}}", build_conflicts_yaml(conflicts, schema).rstrip())


def build_resolution_schema(conflicts: Iterable[ConflictLike]) -> Dict[str, Any]:
    """
    Build the JSON schema for the LLM resolution response.

    One required property per conflicting field path, each holding a
    field resolution object.
    """
    properties: Dict[str, Any] = {}
    for conflict in _unique_by_path(conflicts):
        field_schema = copy.deepcopy(FIELD_RESOLUTION_SCHEMA)
        field_schema["description"] = f"Resolution for the '{conflict.field_path}' field conflict"
        properties[conflict.field_path] = field_schema

    return {
        "type": "object",
        "properties": properties,
        "required": list(properties.keys()),
        "additionalProperties": False,
    }


# =============================================================================
# RESPONSE HANDLING
# =============================================================================


def parse_resolution_response(
    response: Mapping[str, Any],
    conflicts: Iterable[ConflictLike],
    strict: bool = False,
) -> List[ConflictResolution]:
    """
    Validate an LLM resolution response and turn it into resolutions.

    Args:
        response: Parsed JSON response keyed by conflict field path
        conflicts: The conflicts the response answers
        strict: Raise on any schema violation instead of skipping bad entries

    Returns:
        One ConflictResolution per answered conflict

    Raises:
        ResolutionResponseError: In strict mode, if the response is invalid
    """
    records = _unique_by_path(conflicts)
    if not records:
        return []

    if not isinstance(response, Mapping):
        if strict:
            raise ResolutionResponseError(
                f"Resolution response must be an object, got {type(response).__name__}",
                field="response",
            )
        logger.warning("Conflict resolution returned a non-object response")
        return []

    if strict:
        validator = jsonschema.Draft7Validator(build_resolution_schema(records))
        errors = sorted(validator.iter_errors(dict(response)), key=lambda e: list(e.path))
        if errors:
            raise ResolutionResponseError(
                f"Resolution response failed validation: {errors[0].message}",
                field=".".join(str(p) for p in errors[0].path) or None,
                details={"errors": [e.message for e in errors]},
            )

    field_validator = jsonschema.Draft7Validator(FIELD_RESOLUTION_SCHEMA)
    resolutions = []
    for record in records:
        entry = response.get(record.field_path)
        if entry is None:
            logger.debug(f"No resolution returned for '{record.field_path}'")
            continue

        errors = list(field_validator.iter_errors(entry))
        if errors:
            logger.warning(f"Skipping invalid resolution for '{record.field_path}': {errors[0].message}")
            continue

        resolutions.append(ConflictResolution(
            field_path=record.field_path,
            field_name=record.field_name,
            resolved_value=entry["resolved_value"],
            source_page=entry.get("source_page"),
            reason=entry.get("reason", ""),
        ))
        logger.debug(
            f"Resolved conflict on '{record.field_path}' (page {entry.get('source_page')})"
        )

    return resolutions


def _parse_path(field_path: str) -> List[Union[str, int]]:
    return [
        int(index) if index else key
        for key, index in _PATH_TOKEN.findall(field_path)
    ]


def set_value_at_path(data: Any, field_path: str, value: Any) -> bool:
    """Set a value at a dot/bracket path in place. Returns False if the path doesn't exist."""
    tokens = _parse_path(field_path)
    if not tokens:
        return False

    container = data
    for token in tokens[:-1]:
        try:
            container = container[token]
        except (KeyError, IndexError, TypeError):
            return False

    last = tokens[-1]
    if isinstance(container, Mapping) and last in container:
        container[last] = value
        return True
    if isinstance(container, list) and isinstance(last, int) and last < len(container):
        container[last] = value
        return True
    return False


def set_first_named_value(data: Any, field_name: str, value: Any) -> bool:
    """Set the first key named field_name found depth-first, in place."""
    if isinstance(data, dict):
        if field_name in data:
            data[field_name] = value
            return True
        children = data.values()
    elif isinstance(data, list):
        children = data
    else:
        return False

    return any(set_first_named_value(child, field_name, value) for child in children)


def apply_resolutions(
    data: ExtractionRecord,
    page_sources: PageSourceMap,
    resolutions: Iterable[Union[ConflictResolution, Mapping]],
) -> Tuple[ExtractionRecord, PageSourceMap]:
    """
    Apply resolved values to the cumulative record and page sources.

    Values are written at the conflict's field path, falling back to the
    first field with the same name. The resolved page is stored under the
    field path. Inputs are not mutated.

    Returns:
        Tuple of (data, page_sources)
    """
    data = copy.deepcopy(data)
    page_sources = dict(page_sources or {})

    for resolution in resolutions:
        if not isinstance(resolution, ConflictResolution):
            resolution = ConflictResolution.from_dict(dict(resolution))

        value = copy.deepcopy(resolution.resolved_value)
        if not set_value_at_path(data, resolution.field_path, value):
            if not set_first_named_value(data, resolution.field_name, value):
                logger.warning(f"Resolved field '{resolution.field_path}' not found in data")
                continue

        if resolution.source_page is not None:
            page_sources[resolution.field_path] = int(resolution.source_page)

    return data, page_sources
