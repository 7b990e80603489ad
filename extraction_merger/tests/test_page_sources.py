"""
Unit tests for page-source provenance helpers.

Run with: python -m pytest extraction_merger/tests/test_page_sources.py -v
"""

import logging

import jsonschema
import pytest

from extraction_merger.page_sources import (
    build_page_sources_schema,
    extract_page_sources,
    field_name_from_path,
    lookup_page_source,
    merge_page_sources_for_updated_fields,
    split_data_by_page,
)


class TestFieldNameFromPath:
    """Tests for field_name_from_path."""

    def test_simple(self):
        assert field_name_from_path("incident_description") == "incident_description"

    def test_nested(self):
        assert field_name_from_path("care_summary.name") == "name"
        assert field_name_from_path("level1.level2.level3.value") == "value"

    def test_array_indices(self):
        assert field_name_from_path("providers[0].name") == "name"
        assert field_name_from_path("diagnoses[1].date") == "date"
        assert field_name_from_path("providers[0]") == "providers"


class TestLookupPageSource:
    """Tests for lookup_page_source."""

    def test_full_path_wins(self):
        page_sources = {"care_summary.name": 1, "name": 5}
        assert lookup_page_source(page_sources, "care_summary.name", "name") == 1

    def test_falls_back_to_field_name(self):
        assert lookup_page_source({"name": 3}, "care_summary.name", "name") == 3

    def test_not_found(self):
        assert lookup_page_source({"other_field": 3}, "care_summary.name", "name") is None

    def test_numeric_string_is_coerced(self):
        assert lookup_page_source({"name": "4"}, "name", "name") == 4

    def test_bad_value_counts_as_absent(self, caplog):
        with caplog.at_level(logging.WARNING):
            result = lookup_page_source({"name": "page four"}, "name", "name")

        assert result is None
        assert "page four" in caplog.text

    def test_bad_path_value_falls_back_to_name(self):
        page_sources = {"care_summary.name": None, "name": 2}
        assert lookup_page_source(page_sources, "care_summary.name", "name") == 2


class TestMergePageSourcesForUpdatedFields:
    """Tests for merge_page_sources_for_updated_fields."""

    def test_only_updated_fields_take_new_page(self):
        result = merge_page_sources_for_updated_fields(
            {"incident_description": 1},
            {"incident_description": 4, "accident_date": 3},
            ["accident_date"],
        )

        assert result == {"incident_description": 1, "accident_date": 3}

    def test_no_updates_keeps_existing(self):
        result = merge_page_sources_for_updated_fields(
            {"field_a": 1, "field_b": 2},
            {"field_a": 5, "field_b": 6},
            [],
        )

        assert result == {"field_a": 1, "field_b": 2}

    def test_nested_path_updates_field_name_key(self):
        result = merge_page_sources_for_updated_fields({"name": 1}, {"name": 4}, ["care_summary.name"])

        assert result["name"] == 4

    def test_full_path_key_preferred(self):
        result = merge_page_sources_for_updated_fields(
            {},
            {"providers[0].name": 2, "name": 7},
            ["providers[0].name"],
        )

        assert result == {"providers[0].name": 2}

    def test_updated_field_without_new_page(self):
        result = merge_page_sources_for_updated_fields({"name": 1}, {}, ["name"])
        assert result == {"name": 1}

    def test_unrelated_keys_copied_verbatim(self):
        existing = {"name": 1, "notes": "see appendix"}
        result = merge_page_sources_for_updated_fields(existing, {"date": 2}, ["date"])

        assert result == {"name": 1, "notes": "see appendix", "date": 2}
        assert existing == {"name": 1, "notes": "see appendix"}


class TestPageSourceUtilities:
    """Tests for response and schema helpers."""

    def test_extract_page_sources(self):
        response = {"data": {"name": "John"}, "page_sources": {"name": 2}}
        assert extract_page_sources(response) == {"name": 2}

    def test_extract_page_sources_missing(self):
        assert extract_page_sources({"data": {}}) == {}
        assert extract_page_sources({"page_sources": ["bad"]}) == {}

    def test_split_data_by_page(self):
        data = {"name": "John", "date": "2024-01-15", "notes": "x"}
        page_sources = {"name": 3, "date": 1}

        result = split_data_by_page(data, page_sources, default_page=1)

        assert list(result.keys()) == [1, 3]
        assert result[1] == {"date": "2024-01-15", "notes": "x"}
        assert result[3] == {"name": "John"}

    def test_split_data_by_page_uses_settings_default(self):
        result = split_data_by_page({"name": "John"}, {})
        assert result == {1: {"name": "John"}}

    def test_page_sources_schema(self):
        schema = build_page_sources_schema(["name", "date"])

        assert set(schema["properties"]) == {"name", "date"}
        jsonschema.validate({"name": 1, "providers[0].name": 2}, schema)

        with pytest.raises(jsonschema.ValidationError):
            jsonschema.validate({"name": 0}, schema)
        with pytest.raises(jsonschema.ValidationError):
            jsonschema.validate({"providers[0].name": "two"}, schema)
