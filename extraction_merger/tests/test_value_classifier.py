"""
Unit tests for the value classifier.

Tests:
- classify_value kinds (bool before number, list-keyed mappings)
- is_meaningful_value for nulls, placeholders, empty containers
- ValueClassifier with injected placeholders

Run with: python -m pytest extraction_merger/tests/test_value_classifier.py -v
"""

import pytest

from extraction_merger.config import get_settings
from extraction_merger.models import ValueKind
from extraction_merger.value_classifier import (
    ValueClassifier,
    as_list,
    classify_value,
    get_default_classifier,
    is_meaningful_value,
)


class TestClassifyValue:
    """Tests for classify_value."""

    def test_scalars(self):
        assert classify_value(None) == ValueKind.NULL
        assert classify_value("text") == ValueKind.STRING
        assert classify_value(3) == ValueKind.NUMBER
        assert classify_value(2.5) == ValueKind.NUMBER

    def test_bool_is_not_number(self):
        """bool is an int subclass but must classify as BOOL."""
        assert classify_value(True) == ValueKind.BOOL
        assert classify_value(False) == ValueKind.BOOL

    def test_list_is_array(self):
        assert classify_value(["a", "b"]) == ValueKind.ARRAY
        assert classify_value([]) == ValueKind.ARRAY

    def test_string_keyed_mapping_is_object(self):
        assert classify_value({"name": "John", "age": 30}) == ValueKind.OBJECT

    def test_sequential_int_keys_are_array(self):
        assert classify_value({0: "a", 1: "b"}) == ValueKind.ARRAY

    def test_sparse_int_keys_are_object(self):
        assert classify_value({0: "a", 2: "b", 5: "c"}) == ValueKind.OBJECT

    def test_empty_mapping_is_object(self):
        assert classify_value({}) == ValueKind.OBJECT

    def test_as_list_of_keyed_array(self):
        assert as_list({0: "a", 1: "b"}) == ["a", "b"]


class TestIsMeaningfulValue:
    """Tests for is_meaningful_value with the default placeholders."""

    @pytest.mark.parametrize("value", [
        None,
        "",
        "   ",
        "null",
        "NULL",
        "<null>",
        "N/A",
        " n/a ",
        "na",
        "None",
        "unknown",
        "-",
        "--",
        [],
        {},
    ])
    def test_not_meaningful(self, value):
        assert is_meaningful_value(value) is False

    @pytest.mark.parametrize("value", [
        0,
        0.0,
        False,
        True,
        "hello",
        "0",
        ["item"],
        {"name": "John"},
        [None],
    ])
    def test_meaningful(self, value):
        assert is_meaningful_value(value) is True

    def test_placeholder_override(self):
        """Only the injected placeholders count when overridden."""
        assert is_meaningful_value("pending", placeholders=["Pending"]) is False
        assert is_meaningful_value("N/A", placeholders=["Pending"]) is True
        assert is_meaningful_value("  ", placeholders=["Pending"]) is False


class TestValueClassifier:
    """Tests for ValueClassifier."""

    def test_default_placeholders(self):
        classifier = ValueClassifier()
        assert "n/a" in classifier.placeholders
        assert classifier.is_placeholder("Unknown")

    def test_placeholders_normalized(self):
        classifier = ValueClassifier(["  Not Stated "])
        assert classifier.placeholders == frozenset({"not stated"})
        assert classifier.is_meaningful("NOT STATED") is False

    def test_from_settings(self):
        from extraction_merger.config import MergeSettings

        settings = MergeSettings(null_placeholders=["TBD"])
        classifier = ValueClassifier.from_settings(settings)

        assert classifier.is_meaningful("tbd") is False
        assert classifier.is_meaningful("null") is True


class TestDefaultClassifier:
    """Tests for the settings-configured default classifier."""

    @pytest.fixture
    def configured_placeholders(self, monkeypatch):
        monkeypatch.setenv("EXTRACTION_MERGE_NULL_PLACEHOLDERS", '["not stated"]')
        get_settings.cache_clear()
        yield
        get_settings.cache_clear()

    def test_follows_settings(self, configured_placeholders):
        classifier = get_default_classifier()

        assert classifier.placeholders == frozenset({"not stated"})
        assert is_meaningful_value("Not Stated") is False
        assert is_meaningful_value("N/A") is True

    def test_cached_per_settings(self):
        assert get_default_classifier() is get_default_classifier()

    def test_rebuilt_when_settings_change(self, configured_placeholders):
        configured = get_default_classifier()

        get_settings.cache_clear()

        assert get_default_classifier() is not configured
