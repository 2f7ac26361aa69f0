"""
Unit tests for the checklist normalizer.
"""

import pytest

from rentalcert.modules.applications.checklist import (
    EntryListSubmission,
    KeyedSubmission,
    ensure_checklist_complete,
    normalize_checklist,
    parse_checklist_submission,
)
from rentalcert.modules.applications.errors import (
    ChecklistIncompleteError,
    ChecklistNotConfiguredError,
    InvalidChecklistPayloadError,
)


class TestParseChecklistSubmission:
    def test_list_becomes_entry_list(self):
        result = parse_checklist_submission([{"id": "x", "checked": True}])
        assert isinstance(result, EntryListSubmission)
        assert result.entries[0].id == "x"
        assert result.entries[0].checked is True

    def test_flat_map_becomes_keyed(self):
        result = parse_checklist_submission({"A": True, "B": "no"})
        assert isinstance(result, KeyedSubmission)
        assert result.flags == {"A": True, "B": False}

    def test_items_object_merges_loose_keys(self):
        result = parse_checklist_submission({"items": [{"name": "A", "value": 1}], "B": True})
        assert isinstance(result, EntryListSubmission)
        assert len(result.entries) == 2

    def test_already_parsed_submission_is_returned(self):
        submission = KeyedSubmission(flags={"A": True})
        assert parse_checklist_submission(submission) is submission

    def test_scalar_payload_rejected(self):
        with pytest.raises(InvalidChecklistPayloadError):
            parse_checklist_submission(42)

    def test_entry_without_id_or_name_rejected(self):
        with pytest.raises(InvalidChecklistPayloadError):
            parse_checklist_submission([{"checked": True}])

    def test_non_object_entry_rejected(self):
        with pytest.raises(InvalidChecklistPayloadError):
            parse_checklist_submission(["A"])


class TestNormalizeChecklist:
    def test_all_items_by_id(self, checklist_items):
        raw = {str(item.id): True for item in checklist_items}
        result = normalize_checklist(checklist_items, raw)
        assert result.is_complete
        assert result.checked_ids == [item.id for item in checklist_items]

    def test_match_by_name_in_entries(self, checklist_items):
        raw = [{"name": " A ", "checked": True}, {"name": "B", "value": "yes"}]
        result = normalize_checklist(checklist_items, raw)
        assert result.missing == ["C"]

    def test_any_truthy_entry_satisfies_item(self, checklist_items):
        a = checklist_items[0]
        raw = [
            {"id": str(a.id), "checked": False},
            {"name": "A", "checked": True},
        ]
        result = normalize_checklist(checklist_items, raw)
        assert result.satisfied[a.id] is True

    def test_status_true_counts_as_checked(self, checklist_items):
        raw = [{"name": name, "status": True} for name in ("A", "B", "C")]
        assert normalize_checklist(checklist_items, raw).is_complete

    def test_false_strings_and_zero_not_checked(self, checklist_items):
        raw = {"A": "false", "B": 0, "C": "off"}
        result = normalize_checklist(checklist_items, raw)
        assert result.missing == ["A", "B", "C"]

    def test_missing_names_follow_configured_order(self, checklist_items):
        result = normalize_checklist(checklist_items, {"B": True})
        assert result.missing == ["A", "C"]

    def test_id_match_does_not_also_satisfy_by_name(self, checklist_items):
        a, b, _ = checklist_items
        raw = [{"id": str(a.id), "name": "B", "checked": True}]

        result = normalize_checklist(checklist_items, raw)

        assert result.satisfied[a.id] is True
        assert result.satisfied[b.id] is False
        assert result.missing == ["B", "C"]

    def test_unknown_id_falls_back_to_name(self, checklist_items):
        raw = [{"id": "retired-item", "name": "C", "checked": True}]
        result = normalize_checklist(checklist_items, raw)
        assert result.missing == ["A", "B"]


class TestEnsureChecklistComplete:
    def test_submission_by_id_missing_c(self, checklist_items):
        a, b, _ = checklist_items
        with pytest.raises(ChecklistIncompleteError) as exc_info:
            ensure_checklist_complete(checklist_items, {str(a.id): True, str(b.id): True})
        assert exc_info.value.missing_items == ["C"]

    def test_submission_by_name_missing_c(self, checklist_items):
        with pytest.raises(ChecklistIncompleteError) as exc_info:
            ensure_checklist_complete(checklist_items, {"A": True, "B": True})
        assert exc_info.value.missing_items == ["C"]
        assert "C" in exc_info.value.message

    def test_items_shape_complete(self, checklist_items):
        a, b, c = checklist_items
        raw = {
            "items": [{"id": str(a.id), "checked": True}, {"name": "B", "checked": True}],
            "C": True,
        }
        result = ensure_checklist_complete(checklist_items, raw)
        assert set(result.checked_ids) == {a.id, b.id, c.id}

    def test_no_items_configured(self):
        with pytest.raises(ChecklistNotConfiguredError):
            ensure_checklist_complete([], {"A": True})
