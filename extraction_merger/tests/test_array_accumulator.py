"""
Unit tests for list accumulation across batches.

Tests:
- Scalar lists concatenate without dedup
- Entity dedup by id, by normalized name, and by structural equality
- Matched entities keep the first occurrence verbatim

Run with: python -m pytest extraction_merger/tests/test_array_accumulator.py -v
"""

import pytest

from extraction_merger.array_accumulator import (
    contains_identity,
    identity_matches,
    merge_sequential_arrays,
)


class TestIdentityMatches:
    """Tests for identity_matches."""

    def test_same_id(self):
        assert identity_matches({"id": 1, "value": "first"}, {"id": 1, "value": "updated"})

    def test_different_id_different_name(self):
        assert not identity_matches({"id": 1, "name": "A"}, {"id": 2, "name": "B"})

    def test_different_id_same_name(self):
        """A name match still counts when the ids disagree."""
        assert identity_matches({"id": 1, "name": "A"}, {"id": 2, "name": "a"})

    def test_name_normalized(self):
        assert identity_matches({"name": "John Smith"}, {"name": "  john smith "})

    def test_name_compared_as_text(self):
        assert identity_matches({"name": 123}, {"name": "123"})

    def test_structurally_equal(self):
        assert identity_matches({"code": "M54.5"}, {"code": "M54.5"})

    def test_no_identity(self):
        assert not identity_matches({"code": "M54.5"}, {"code": "S13.4"})

    def test_null_ids_are_ignored(self):
        assert not identity_matches({"id": None, "code": "A"}, {"id": None, "code": "B"})


class TestMergeSequentialArrays:
    """Tests for merge_sequential_arrays."""

    def test_scalars_accumulate(self):
        result = merge_sequential_arrays(["apple", "banana"], ["cherry", "date", "elderberry"])
        assert result == ["apple", "banana", "cherry", "date", "elderberry"]

    def test_scalars_not_deduplicated(self):
        assert merge_sequential_arrays(["Fracture"], ["Fracture"]) == ["Fracture", "Fracture"]

    def test_dedup_by_id(self):
        existing = [{"id": 1, "value": "first"}]
        new = [{"id": 1, "value": "updated"}, {"id": 2, "value": "second"}]

        result = merge_sequential_arrays(existing, new)

        assert len(result) == 2
        assert result[0] == {"id": 1, "value": "first"}
        assert result[1]["id"] == 2

    def test_dedup_by_name_drops_new_fields(self):
        existing = [{"name": "John Smith", "phone": "555-1234"}]
        new = [{"name": "john smith", "phone": "555-5678", "fax": "555-0000"}]

        result = merge_sequential_arrays(existing, new)

        assert result == [{"name": "John Smith", "phone": "555-1234"}]

    def test_distinct_entities_appended(self):
        existing = [{"name": "SYNERGY CHIROPRACTIC CLINICS", "address": "123 Main St"}]
        new = [{"name": "Richard A. Lewellen, DC"}]

        result = merge_sequential_arrays(existing, new)

        assert [p["name"] for p in result] == [
            "SYNERGY CHIROPRACTIC CLINICS",
            "Richard A. Lewellen, DC",
        ]

    def test_duplicates_within_new_batch_collapse(self):
        result = merge_sequential_arrays([], [{"name": "A"}, {"name": "a"}, {"name": "B"}])
        assert result == [{"name": "A"}, {"name": "B"}]

    def test_mixed_items(self):
        result = merge_sequential_arrays(["x", {"name": "A"}], [{"name": "A"}, "x", 3])
        assert result == ["x", {"name": "A"}, "x", 3]

    def test_inputs_not_mutated(self):
        existing = [{"name": "A", "tags": ["t1"]}]
        new = [{"name": "B"}]

        result = merge_sequential_arrays(existing, new)
        result[0]["tags"].append("t2")

        assert existing == [{"name": "A", "tags": ["t1"]}]
        assert new == [{"name": "B"}]

    @pytest.mark.parametrize("existing,new", [
        ([], ["a"]),
        (["a"], []),
        ([{"id": 1}], [{"id": 2}, {"id": 1}]),
    ])
    def test_existing_is_prefix(self, existing, new):
        result = merge_sequential_arrays(existing, new)
        assert result[:len(existing)] == existing
        assert len(existing) <= len(result) <= len(existing) + len(new)


def test_contains_identity_skips_non_objects():
    assert not contains_identity(["John"], {"name": "John"})
    assert contains_identity(["John", {"name": "JOHN"}], {"name": "John"})
