from __future__ import annotations

import pytest

from hope_assessment.exclusion import apply_exclusion, apply_group_values, normalize_group
from hope_assessment.fields import DEFAULT_FIELD_CATALOG
from hope_assessment.store import FieldValueStore


def _toggle(store: FieldValueStore, group: str, option: str, value: bool) -> tuple[str, ...]:
    store.set(f"{group}.{option}", value)
    return apply_exclusion(group, option, store)


def _assert_exclusive(store: FieldValueStore, group: str, none_option: str = "Z") -> None:
    spec = DEFAULT_FIELD_CATALOG.group(group)
    assert spec is not None
    others = [store.get(f"{group}.{option}") for option in spec.options if option != none_option]
    if store.get(f"{group}.{none_option}"):
        assert not any(others)
    if any(others):
        assert store.get(f"{group}.{none_option}") is False


def test_none_option_clears_siblings() -> None:
    store = FieldValueStore()
    _toggle(store, "M1195", "A", True)
    _toggle(store, "M1195", "C", True)

    forced = _toggle(store, "M1195", "Z", True)

    assert forced == ("M1195.A", "M1195.C")
    assert store.get("M1195.Z") is True
    _assert_exclusive(store, "M1195")


def test_specific_option_clears_none_option() -> None:
    store = FieldValueStore()
    _toggle(store, "M1200", "Z", True)

    forced = _toggle(store, "M1200", "J", True)

    assert forced == ("M1200.Z",)
    assert store.get("M1200.J") is True


def test_unchecking_does_not_force_anything() -> None:
    store = FieldValueStore()
    _toggle(store, "A1010", "B", True)

    assert _toggle(store, "A1010", "B", False) == ()


def test_exclusion_holds_after_toggle_sequence() -> None:
    store = FieldValueStore()
    sequence = [
        ("A", True), ("Z", True), ("B", True), ("Y", True), ("Z", True),
        ("Z", False), ("H", True), ("Z", True), ("A", True), ("A", False),
    ]

    for option, value in sequence:
        _toggle(store, "M1195", option, value)
        _assert_exclusive(store, "M1195")


def test_groups_without_none_option_are_left_alone() -> None:
    store = FieldValueStore()
    store.set("A1400.A", True)
    store.set("A1400.K", True)

    assert apply_exclusion("A1400", "K", store) == ()
    assert store.get("A1400.A") is True


def test_bulk_set_lets_none_option_win_when_set_in_batch() -> None:
    store = FieldValueStore()

    forced = apply_group_values("A1010", {"A": True, "E": True, "Z": True}, store)

    assert forced == ("A1010.A", "A1010.E")
    assert store.get("A1010.Z") is True


def test_bulk_set_of_specific_options_drops_existing_none_option() -> None:
    store = FieldValueStore()
    store.set("M1195.Z", True)

    forced = apply_group_values("M1195", {"B": True, "D": True}, store)

    assert forced == ("M1195.Z",)
    assert store.get("M1195.B") is True
    assert store.get("M1195.D") is True


def test_normalize_group_repairs_loaded_conflict() -> None:
    store = FieldValueStore()
    store.set("M1200.A", True)
    store.set("M1200.Z", True)

    normalize_group("M1200", store)

    assert store.get("M1200.A") is False
    assert store.get("M1200.Z") is True


def test_unknown_group_or_option_raises() -> None:
    store = FieldValueStore()

    with pytest.raises(ValueError):
        apply_exclusion("J2051", "A", store)
    with pytest.raises(ValueError):
        apply_group_values("M1195", {"Q": True}, store)
