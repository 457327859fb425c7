"""Structured outcomes for business-rule problems.

Nothing here is raised. Each class is a value the core hands back to the
caller, who decides how to present it. `ValueError` is reserved for
programmer and configuration errors (unknown paths, bad rule tables).
"""

from __future__ import annotations

from dataclasses import asdict, dataclass


@dataclass(frozen=True)
class FormatError:
    """A raw value that does not parse as its field's declared kind."""

    path: str
    value: object
    message: str

    code = "format_error"


@dataclass(frozen=True)
class OrderingViolation:
    """Two present, active dates that break the chronological chain."""

    earlier: str
    later: str
    earlier_value: str
    later_value: str
    relation: str = "<="

    code = "ordering_violation"

    @property
    def message(self) -> str:
        return (
            f"{self.earlier} ({self.earlier_value}) must be {self.relation} "
            f"{self.later} ({self.later_value})"
        )


@dataclass(frozen=True)
class MissingRequiredField:
    path: str
    label: str = ""

    code = "missing_required_field"

    @property
    def message(self) -> str:
        if self.label:
            return f"{self.path} ({self.label}) is required"
        return f"{self.path} is required"


@dataclass(frozen=True)
class CardinalityViolation:
    """A signature-list mutation that would leave the list out of bounds."""

    count: int
    minimum: int
    maximum: int
    message: str

    code = "cardinality_violation"


@dataclass(frozen=True)
class ProximityWarning:
    """Advisory only: the follow-up visit fell outside its expected window."""

    anchor: str
    subject: str
    anchor_value: str
    subject_value: str
    days_apart: int
    window_days: int

    code = "proximity_warning"

    @property
    def message(self) -> str:
        return (
            f"{self.subject} ({self.subject_value}) is {self.days_apart} day(s) after "
            f"{self.anchor} ({self.anchor_value}); expected within {self.window_days}"
        )


Violation = FormatError | OrderingViolation | MissingRequiredField | CardinalityViolation


def violation_to_dict(item: Violation | ProximityWarning) -> dict[str, object]:
    """Convert a violation or warning to a JSON-serializable payload."""

    payload: dict[str, object] = {"code": item.code, "message": item.message}
    payload.update(asdict(item))
    if isinstance(item, FormatError) and not isinstance(item.value, (str, int, float, bool)):
        payload["value"] = None if item.value is None else repr(item.value)
    return payload
