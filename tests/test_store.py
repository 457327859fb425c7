from __future__ import annotations

import pytest

from hope_assessment.fields import DEFAULT_FIELD_CATALOG
from hope_assessment.signatures import SignatureEntry
from hope_assessment.store import FieldValueStore, coerce_field_value, parse_calendar_date


def test_new_store_holds_empty_values() -> None:
    store = FieldValueStore()

    assert store.get("A0220") is None
    assert store.get("M1195.Z") is False
    assert store.is_empty("J2050.A") is True
    assert len(store.signatures) == 1


def test_set_normalizes_valid_date() -> None:
    store = FieldValueStore()

    error = store.set("A0220", "2024-01-10")

    assert error is None
    assert store.get("A0220") == "2024-01-10"
    assert store.format_errors() == []


def test_set_invalid_date_is_stored_empty_with_format_error() -> None:
    store = FieldValueStore()
    store.set("A0220", "2024-01-10")

    error = store.set("A0220", "01/10/2024")

    assert error is not None
    assert error.path == "A0220"
    assert error.value == "01/10/2024"
    assert store.get("A0220") is None
    assert store.format_errors() == [error]


def test_correcting_value_drops_format_error() -> None:
    store = FieldValueStore()
    store.set("Z0350", "2024-02-30")

    store.set("Z0350", "2024-02-29")

    assert store.format_errors() == []
    assert store.get("Z0350") == "2024-02-29"


def test_code_field_rejects_value_outside_options() -> None:
    store = FieldValueStore()

    error = store.set("J2051.A", "4")

    assert error is not None
    assert "must be one of" in error.message
    assert store.get("J2051.A") is None


def test_text_field_checks_pattern() -> None:
    store = FieldValueStore()

    assert store.set("A0100_A", "12345") is not None
    assert store.set("A0100_A", "1234567890") is None
    assert store.get("A0100_A") == "1234567890"


def test_blank_string_clears_value() -> None:
    store = FieldValueStore()
    store.set("A0500_A", "Jane")

    assert store.set("A0500_A", "   ") is None
    assert store.get("A0500_A") is None


def test_flag_field_requires_boolean() -> None:
    store = FieldValueStore()

    with pytest.raises(ValueError):
        store.set("M1195.A", "yes")


def test_unknown_path_raises() -> None:
    store = FieldValueStore()

    with pytest.raises(ValueError, match="unknown field path"):
        store.set("X9999", "1")


def test_listener_receives_changes_until_unsubscribed() -> None:
    store = FieldValueStore()
    seen: list[tuple[str, object, object]] = []
    unsubscribe = store.subscribe(lambda path, old, new: seen.append((path, old, new)))

    store.set("J2050.A", "1")
    store.set("J2050.A", "1")
    unsubscribe()
    store.set("J2050.A", "0")

    assert seen == [("J2050.A", None, "1")]


def test_clear_reports_whether_anything_changed() -> None:
    store = FieldValueStore()
    store.set("M1195.A", True)

    assert store.clear("M1195.A") is True
    assert store.clear("M1195.A") is False
    assert store.get("M1195.A") is False


def test_signature_date_format_error_is_keyed_by_index() -> None:
    store = FieldValueStore()
    store.add_signature()

    errors = store.set_signature(1, name="A. Nurse", date="12/01/2024")

    assert [error.path for error in errors] == ["Z0400.1.date"]
    assert store.signatures[1].name == "A. Nurse"
    assert store.signatures[1].date is None


def test_removing_signature_shifts_format_errors() -> None:
    store = FieldValueStore()
    store.add_signature()
    store.add_signature()
    store.set_signature(2, date="bad")

    assert store.remove_signature(0) is None
    assert [error.path for error in store.format_errors()] == ["Z0400.1.date"]


def test_signature_index_out_of_range_raises() -> None:
    store = FieldValueStore()

    with pytest.raises(ValueError):
        store.set_signature(3, name="A. Nurse")


def test_signatures_count_as_empty_until_every_entry_is_complete() -> None:
    store = FieldValueStore()
    store.set_signature(0, name="A", title="RN", sections_completed="A", date="2024-01-12")
    assert store.is_empty("Z0400") is False

    store.add_signature(SignatureEntry(name="B"))
    assert store.is_empty("Z0400") is True


def test_copy_is_independent() -> None:
    store = FieldValueStore()
    store.set("J2050.A", "1")

    duplicate = store.copy()
    duplicate.set("J2050.A", "0")
    duplicate.add_signature()

    assert store.get("J2050.A") == "1"
    assert len(store.signatures) == 1
    assert duplicate.snapshot() != store.snapshot()


def test_parse_calendar_date_is_strict() -> None:
    assert parse_calendar_date("2024-01-05") is not None
    assert parse_calendar_date("2024-1-5") is None
    assert parse_calendar_date("20240105") is None
    assert parse_calendar_date("2023-02-29") is None


def test_coerce_field_value_rejects_non_string_codes() -> None:
    value, error = coerce_field_value(DEFAULT_FIELD_CATALOG.get("A0250"), 1)

    assert value is None
    assert error is not None


def test_unknown_signature_part_leaves_format_errors_untouched() -> None:
    store = FieldValueStore()
    store.set_signature(0, date="2024-01-05")

    with pytest.raises(ValueError, match="unknown signature parts"):
        store.set_signature(0, date="bad", initials="AN")

    assert store.signatures[0].date == "2024-01-05"
    assert store.format_errors() == []


def test_held_notifications_report_net_change_once() -> None:
    store = FieldValueStore()
    seen: list[tuple[str, object, object]] = []
    store.subscribe(lambda path, old, new: seen.append((path, old, new)))

    with store.hold_notifications():
        store.set("J2050.A", "1")
        store.set("J2050.A", "0")
        store.set("M1195.A", True)
        store.clear("M1195.A")
        assert seen == []

    assert seen == [("J2050.A", None, "0")]
