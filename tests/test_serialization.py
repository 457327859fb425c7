from __future__ import annotations

import json
from pathlib import Path

import pytest

from hope_assessment.serialization import load_payload_file, payload_to_store, store_to_payload
from hope_assessment.store import FieldValueStore


def _payload() -> dict[str, object]:
    return {
        "A": {
            "A0250": "1",
            "A0220": "2024-01-10",
            "A1010": {"B": True, "Z": False},
            "A1110": {"A": "English", "B": "0"},
        },
        "J": {
            "J2050": {"A": "1", "B": "2024-01-11"},
            "J2051": {"A": "3", "B": "0"},
        },
        "M": {"M1190": "1", "M1195": {"C": True}},
        "N": {"N0500": {"A": "1", "B": "2024-01-11"}},
        "Z": {
            "Z0350": "2024-01-12",
            "Z0400": [
                {"signature": "A. Nurse", "title": "RN", "sections": "A, J", "date": "2024-01-12"},
                {"signature": "B. Doc", "title": "MD", "sections": "M, N", "date": None},
            ],
        },
    }


def test_payload_to_store_reads_nested_paths() -> None:
    store = payload_to_store(_payload())

    assert store.get("A0250") == "1"
    assert store.get("A1010.B") is True
    assert store.get("A1110.A") == "English"
    assert store.get("J2050.B") == "2024-01-11"
    assert store.get("M1195.C") is True
    assert len(store.signatures) == 2
    assert store.signatures[1].title == "MD"


def test_store_to_payload_nests_groups_and_members() -> None:
    payload = store_to_payload(payload_to_store(_payload()))

    assert payload["A"]["A1010"]["B"] is True
    assert payload["A"]["A1010"]["Z"] is False
    assert set(payload["A"]["A1010"]) == {
        "A", "B", "C", "D", "E", "F", "G", "H", "I", "J", "K", "L", "M", "N", "X", "Y", "Z"
    }
    assert payload["J"]["J2051"] == {"A": "3", "B": "0"}
    assert "M1200" not in payload["M"]
    assert payload["Z"]["Z0400"][1]["signature"] == "B. Doc"


def test_round_trip_preserves_store() -> None:
    store = payload_to_store(_payload())

    reparsed = payload_to_store(json.loads(json.dumps(store_to_payload(store))))

    assert reparsed.snapshot() == store.snapshot()


def test_empty_store_round_trips() -> None:
    store = FieldValueStore()

    assert payload_to_store(store_to_payload(store)).snapshot() == store.snapshot()


def test_invalid_values_become_format_errors() -> None:
    payload = _payload()
    payload["A"] = {"A0220": "10/01/2024"}
    payload["Z"] = {"Z0400": [{"signature": "A", "date": "soon"}]}

    store = payload_to_store(payload)

    assert {error.path for error in store.format_errors()} == {"A0220", "Z0400.0.date"}


def test_unknown_section_or_path_raises() -> None:
    with pytest.raises(ValueError, match="unknown section"):
        payload_to_store({"Q": {}})
    with pytest.raises(ValueError, match="unknown field path"):
        payload_to_store({"A": {"A9999": "1"}})
    with pytest.raises(ValueError, match="belongs to section"):
        payload_to_store({"A": {"J0050": "1"}})


def test_too_many_signatures_raise() -> None:
    signatures = [{"signature": f"S{index}"} for index in range(13)]

    with pytest.raises(ValueError):
        payload_to_store({"Z": {"Z0400": signatures}})


def test_load_payload_file(tmp_path: Path) -> None:
    record_path = tmp_path / "record.json"
    record_path.write_text(json.dumps(_payload()), encoding="utf-8")

    assert load_payload_file(record_path)["A"]["A0250"] == "1"

    record_path.write_text("[]", encoding="utf-8")
    with pytest.raises(ValueError):
        load_payload_file(record_path)
