from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date

from .evaluator import ActiveSet, evaluate
from .fields import SIGNATURES_PATH
from .rules import RuleSet
from .store import DATE_FORMAT, FieldValueStore, parse_calendar_date
from .violations import FormatError, OrderingViolation, ProximityWarning

FOLLOW_UP_WINDOW_DAYS = 2
SUBMISSION_DATE = "submission_date"

# Chronological levels; each present level must not precede the previous present one.
ORDERING_CHAIN: tuple[str, ...] = ("A0220", "J2050.B", "J2052.B", "Z0350", SIGNATURES_PATH, "Z0500.B")

# Additional (earlier, later) pairs outside the main chain.
ORDERING_PAIRS: tuple[tuple[str, str], ...] = (
    ("A0900", "A0220"),
    ("N0500.B", "Z0350"),
    ("N0510.B", "Z0350"),
    ("N0520.B", "Z0350"),
)

SCREENING_DATE = "J2050.B"
FOLLOW_UP_DATE = "J2052.B"


@dataclass(frozen=True)
class TemporalValidationReport:
    violations: list[OrderingViolation] = field(default_factory=list)
    format_errors: list[FormatError] = field(default_factory=list)
    warnings: list[ProximityWarning] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.violations and not self.format_errors


def _present_dates(
    store: FieldValueStore,
    active: ActiveSet,
) -> dict[str, date]:
    dates: dict[str, date] = {}
    for spec in store.catalog:
        if spec.kind != "date" or spec.path not in active:
            continue
        parsed = parse_calendar_date(store.get(spec.path))
        if parsed is not None:
            dates[spec.path] = parsed
    if SIGNATURES_PATH in active:
        for index, entry in enumerate(store.signatures):
            parsed = parse_calendar_date(entry.date)
            if parsed is not None:
                dates[f"{SIGNATURES_PATH}.{index}.date"] = parsed
    return dates


def _level(dates: dict[str, date], name: str) -> list[tuple[str, date]]:
    if name == SIGNATURES_PATH:
        prefix = f"{SIGNATURES_PATH}."
        return [(path, value) for path, value in dates.items() if path.startswith(prefix)]
    if name in dates:
        return [(name, dates[name])]
    return []


def _ordering(earlier: str, earlier_value: date, later: str, later_value: date) -> OrderingViolation:
    return OrderingViolation(
        earlier=earlier,
        later=later,
        earlier_value=earlier_value.strftime(DATE_FORMAT),
        later_value=later_value.strftime(DATE_FORMAT),
    )


def validate_ordering(
    store: FieldValueStore,
    active: ActiveSet | None = None,
    today: date | None = None,
    rule_set: RuleSet | None = None,
    follow_up_window_days: int = FOLLOW_UP_WINDOW_DAYS,
    reject_future_dates: bool = True,
) -> TemporalValidationReport:
    """Check date format and chronological order across the whole record.

    Only dates that are both present and active take part; an absent link
    in the chain is skipped and its neighbours are compared directly.
    """

    if active is None:
        active = evaluate(store, rule_set)
    reference = today or date.today()
    dates = _present_dates(store, active)

    format_errors = [
        error
        for error in store.format_errors()
        if error.path.startswith(f"{SIGNATURES_PATH}.")
        or (error.path in active and store.catalog.get(error.path).kind == "date")
    ]

    violations: list[OrderingViolation] = []
    previous_level: list[tuple[str, date]] = []
    for name in ORDERING_CHAIN:
        level = _level(dates, name)
        if not level:
            continue
        for earlier, earlier_value in previous_level:
            for later, later_value in level:
                if earlier_value > later_value:
                    violations.append(_ordering(earlier, earlier_value, later, later_value))
        previous_level = level

    for earlier, later in ORDERING_PAIRS:
        if earlier in dates and later in dates and dates[earlier] > dates[later]:
            violations.append(_ordering(earlier, dates[earlier], later, dates[later]))

    if reject_future_dates:
        for path, value in dates.items():
            if value > reference:
                violations.append(_ordering(path, value, SUBMISSION_DATE, reference))

    warnings: list[ProximityWarning] = []
    if SCREENING_DATE in dates and FOLLOW_UP_DATE in dates:
        days_apart = (dates[FOLLOW_UP_DATE] - dates[SCREENING_DATE]).days
        if days_apart > follow_up_window_days:
            warnings.append(
                ProximityWarning(
                    anchor=SCREENING_DATE,
                    subject=FOLLOW_UP_DATE,
                    anchor_value=dates[SCREENING_DATE].strftime(DATE_FORMAT),
                    subject_value=dates[FOLLOW_UP_DATE].strftime(DATE_FORMAT),
                    days_apart=days_apart,
                    window_days=follow_up_window_days,
                )
            )

    return TemporalValidationReport(
        violations=violations,
        format_errors=format_errors,
        warnings=warnings,
    )
