from __future__ import annotations

from datetime import date

import pytest

from hope_assessment.fields import SYMPTOM_SLOTS
from hope_assessment.session import AssessmentConfig, AssessmentSession
from hope_assessment.signatures import SignatureEntry

TODAY = date(2024, 2, 1)


def _payload() -> dict[str, dict[str, object]]:
    return {
        "A": {
            "A0050": "1",
            "A0100_A": "1234567890",
            "A0100_B": "12345A",
            "A0220": "2024-01-10",
            "A0250": "9",
            "A0500_A": "Jane",
            "A0500_B": "Q",
            "A0500_C": "Doe",
            "A0600_A": "123-45-6789",
            "A0600_B": "1EG4TE5MK73",
            "A0700": "N",
            "A0810": "2",
            "A0900": "1940-05-01",
            "A1400": {"A": True},
        },
        "J": {"J0050": "0", "J2050": {"A": "0"}},
        "M": {"M1190": "0"},
        "N": {"N0500": {"A": "0"}, "N0510": {"A": "0"}},
        "Z": {
            "Z0350": "2024-01-12",
            "Z0400": [
                {
                    "signature": "A. Nurse",
                    "title": "RN",
                    "sections": "A, J, M, N",
                    "date": "2024-01-12",
                }
            ],
            "Z0500": {"A": "A. Nurse", "B": "2024-01-13"},
        },
    }


def test_new_session_without_discriminant_is_uninitialized() -> None:
    session = AssessmentSession()

    assert session.status == "uninitialized"
    assert session.variant is None
    assert "A0215" not in session.active


def test_unknown_reason_for_record_raises() -> None:
    with pytest.raises(ValueError):
        AssessmentSession(reason_for_record="0")


def test_invalid_discriminant_write_is_a_format_error() -> None:
    session = AssessmentSession(reason_for_record="1")

    result = session.set_field("A0250", "0")

    assert [error.path for error in result.format_errors] == ["A0250"]
    assert session.status == "uninitialized"
    assert session.variant is None


def test_symptom_chain_cascades_through_session() -> None:
    session = AssessmentSession(reason_for_record="2")
    session.set_field("J2050.A", "1")
    session.set_field("J2050.B", "2024-01-05")
    session.set_field("J2051.D", "3")
    session.set_field("J2052.A", "1")
    for slot in SYMPTOM_SLOTS:
        session.set_field(f"J2053.{slot}", "1")
    assert session.active.is_required("J2052.B")

    result = session.set_field("J2050.A", "0")

    assert "J2051.D" in result.cleared
    assert "J2052.A" in result.cleared
    assert all(f"J2053.{slot}" in result.cleared for slot in SYMPTOM_SLOTS)
    assert session.store.get("J2053.A") is None
    assert session.store.get("J2050.B") is None


def test_follow_up_not_completed_swaps_requirements() -> None:
    session = AssessmentSession(reason_for_record="2")
    session.set_field("J2050.A", "1")
    session.set_field("J2051.A", "3")
    session.set_field("J2052.A", "1")
    session.set_field("J2053.A", "2")

    result = session.set_field("J2052.A", "0")

    assert result.active.is_required("J2052.C")
    assert "J2053.A" in result.cleared
    assert "J2053.A" not in result.active


def test_both_opioid_flags_false_clear_bowel_regimen() -> None:
    session = AssessmentSession(reason_for_record="9")
    session.set_field("N0500.A", "1")
    session.set_field("N0510.A", "0")
    assert session.active.is_required("N0520.A")
    session.set_field("N0520.A", "2")
    session.set_field("N0520.B", "2024-01-11")

    result = session.set_field("N0500.A", "0")

    assert result.cleared == ("N0520.A", "N0520.B")
    assert session.store.get("N0520.A") is None
    assert session.store.get("N0520.B") is None
    assert "N0520.A" not in session.active


def test_discriminant_change_drops_admission_values() -> None:
    session = AssessmentSession(reason_for_record="1")
    session.set_field("A0215", "01")
    session.set_group("A1010", {"B": True})

    result = session.set_field("A0250", "2")

    assert {"A0215", "A1010.B"} <= set(result.cleared)
    assert session.variant == "update_visit"
    assert session.store.get("A1010.B") is False


def test_writing_inactive_field_leaves_it_empty() -> None:
    session = AssessmentSession(reason_for_record="9")

    result = session.set_field("A0215", "01")

    assert result.cleared == ("A0215",)
    assert session.store.get("A0215") is None


def test_checkbox_exclusion_runs_on_each_toggle() -> None:
    session = AssessmentSession(reason_for_record="9")
    session.set_field("M1190", "1")
    session.set_field("M1200.A", True)

    result = session.set_field("M1200.Z", True)

    assert result.excluded == ("M1200.A",)
    assert session.store.get("M1200.A") is False

    result = session.set_group("M1200", {"B": True, "C": True})
    assert result.excluded == ("M1200.Z",)


def test_loaded_payload_conflicts_are_normalized_and_purged() -> None:
    payload = _payload()
    payload["A"]["A0215"] = "01"
    payload["M"] = {"M1190": "1", "M1195": {"A": True, "Z": True}}

    session = AssessmentSession(payload=payload)

    assert "A0215" in session.initial_cleared
    assert session.store.get("M1195.Z") is True
    assert session.store.get("M1195.A") is False


def test_removing_last_signature_is_rejected() -> None:
    session = AssessmentSession(reason_for_record="9")

    result = session.remove_signature(0)

    assert result.applied is False
    assert result.cardinality is not None
    assert len(session.store.signatures) == 1


def test_signature_limit_comes_from_config() -> None:
    session = AssessmentSession(config=AssessmentConfig(max_signatures=2))

    assert session.add_signature(SignatureEntry(name="B")).applied is True
    result = session.add_signature()

    assert result.cardinality is not None
    assert result.cardinality.maximum == 2
    assert len(session.store.signatures) == 2


def test_valid_payload_finalizes_to_immutable_record() -> None:
    session = AssessmentSession(payload=_payload())
    assert session.status == "sections_complete"

    report = session.finalize(today=TODAY)

    assert report.accepted is True
    assert report.violations == []
    assert report.record is not None
    assert report.record.variant == "discharge"
    assert report.record.payload()["A"]["A0250"] == "9"
    assert session.status == "submitted"
    with pytest.raises(ValueError):
        session.set_field("J0050", "1")
    with pytest.raises(ValueError):
        session.finalize(today=TODAY)


def test_rejected_finalize_leaves_record_editable() -> None:
    payload = _payload()
    payload["J"] = {"J0050": "0", "J2050": {"A": "1", "B": "2024-01-05"}}
    session = AssessmentSession(payload=payload)
    before = session.to_payload()

    report = session.finalize(today=TODAY)

    assert report.accepted is False
    assert report.record is None
    assert [(v.earlier, v.later) for v in report.ordering_violations] == [("A0220", "J2050.B")]
    assert {item.path for item in report.missing_required} >= {"J2051.A", "J2051.H"}
    assert session.to_payload() == before
    assert session.status == "variant_selected"

    session.set_field("J0050", "1")


def test_signature_edits_update_status() -> None:
    payload = _payload()
    session = AssessmentSession(payload=payload)

    session.add_signature()
    assert session.status == "variant_selected"

    session.update_signature(1, name="B. Doc", title="MD", sections_completed="J", date="2024-01-12")
    assert session.status == "sections_complete"


def test_proximity_is_reported_as_warning_on_finalize() -> None:
    payload = _payload()
    payload["J"] = {
        "J0050": "0",
        "J2050": {"A": "1", "B": "2024-01-10"},
        "J2051": {slot: "0" for slot in SYMPTOM_SLOTS} | {"A": "2"},
        "J2052": {"A": "1", "B": "2024-01-12"},
        "J2053": {slot: "1" for slot in SYMPTOM_SLOTS},
    }
    session = AssessmentSession(payload=payload, config=AssessmentConfig(follow_up_window_days=1))

    report = session.finalize(today=TODAY)

    assert report.accepted is True
    assert [warning.subject for warning in report.warnings] == ["J2052.B"]


def test_listeners_see_dependents_already_reconciled() -> None:
    session = AssessmentSession(reason_for_record="2")
    session.set_field("J2050.A", "1")
    session.set_field("J2051.A", "3")
    seen: list[tuple[str, object, object]] = []

    def _listener(path: str, old: object, new: object) -> None:
        seen.append((path, new, session.store.get("J2051.A")))

    session.store.subscribe(_listener)
    session.set_field("J2050.A", "0")

    assert seen[0] == ("J2050.A", "0", None)
    assert [path for path, _, _ in seen] == ["J2050.A", "J2051.A"]


def test_listeners_never_see_none_option_with_a_sibling() -> None:
    session = AssessmentSession(reason_for_record="9")
    session.set_field("M1190", "1")
    session.set_field("M1195.A", True)
    seen: list[tuple[object, object]] = []
    session.store.subscribe(
        lambda path, old, new: seen.append(
            (session.store.get("M1195.Z"), session.store.get("M1195.A"))
        )
    )

    session.set_field("M1195.Z", True)

    assert seen
    assert all(state == (True, False) for state in seen)

    seen.clear()
    session.set_group("M1195", {"B": True})
    assert seen
    assert all(state == (False, False) for state in seen)


def test_signature_listeners_are_notified_after_the_mutation() -> None:
    session = AssessmentSession(reason_for_record="9")
    counts: list[int] = []
    session.store.subscribe(lambda path, old, new: counts.append(len(session.store.signatures)))

    session.add_signature(SignatureEntry(name="B. Doc", date="2024-01-12"))
    session.remove_signature(1)

    assert counts == [2, 1]
