from __future__ import annotations

import pytest

from hope_assessment.signatures import MAX_SIGNATURES, SignatureEntry, SignatureList


def test_signature_list_starts_with_one_blank_entry() -> None:
    signatures = SignatureList()

    assert len(signatures) == 1
    assert signatures[0] == SignatureEntry()
    assert signatures.cardinality_violation() is None


def test_removing_only_signature_is_rejected() -> None:
    signatures = SignatureList()

    violation = signatures.remove(0)

    assert violation is not None
    assert violation.count == 1
    assert len(signatures) == 1


def test_adding_beyond_maximum_is_rejected() -> None:
    signatures = SignatureList()
    for _ in range(MAX_SIGNATURES - 1):
        assert signatures.add() is None

    violation = signatures.add()

    assert violation is not None
    assert violation.maximum == 12
    assert len(signatures) == MAX_SIGNATURES


def test_cardinality_holds_through_mixed_sequence() -> None:
    signatures = SignatureList()
    operations = ["add", "remove", "remove", "add"] + ["add"] * 14 + ["remove"] * 15

    for operation in operations:
        if operation == "add":
            signatures.add()
        else:
            signatures.remove(len(signatures) - 1)
        assert 1 <= len(signatures) <= MAX_SIGNATURES

    assert len(signatures) == 1


def test_update_replaces_parts() -> None:
    signatures = SignatureList()

    entry = signatures.update(0, name="A. Nurse", title="RN")

    assert entry.name == "A. Nurse"
    assert entry.missing_parts() == ["sections_completed", "date"]
    with pytest.raises(ValueError):
        signatures.update(0, signature="x")


def test_constructing_more_than_maximum_raises() -> None:
    with pytest.raises(ValueError):
        SignatureList([SignatureEntry()] * 13)


def test_entry_wire_keys() -> None:
    entry = SignatureEntry.from_dict(
        {"signature": "A. Nurse", "title": "RN", "sections": "A, J", "date": "2024-01-12"}
    )

    assert entry.is_complete is True
    assert entry.sections_completed == "A, J"
    assert entry.to_dict()["signature"] == "A. Nurse"
    with pytest.raises(ValueError, match="unknown signature keys"):
        SignatureEntry.from_dict({"name": "A. Nurse"})
