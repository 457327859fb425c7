from __future__ import annotations

import json
import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import date
from typing import Any

from .assembler import (
    VARIANT_BY_REASON,
    AssessmentStatus,
    VariantKind,
    field_set_for,
    log_variant_change,
    next_status,
    select_variant,
)
from .evaluator import ActiveSet, evaluate, missing_required_fields
from .exclusion import apply_exclusion, apply_group_values, normalize_group
from .fields import DEFAULT_FIELD_CATALOG, DISCRIMINANT_PATH, SIGNATURES_PATH, FieldCatalog
from .reconciler import reconcile
from .rules import DEFAULT_RULE_SET, RuleSet
from .serialization import payload_to_store, store_to_payload
from .signatures import MAX_SIGNATURES, MIN_SIGNATURES, SignatureEntry
from .store import DATE_FORMAT, FieldValueStore
from .temporal import FOLLOW_UP_WINDOW_DAYS, validate_ordering
from .violations import (
    CardinalityViolation,
    FormatError,
    MissingRequiredField,
    OrderingViolation,
    ProximityWarning,
    Violation,
    violation_to_dict,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AssessmentConfig:
    """Configuration for one editing session."""

    min_signatures: int = MIN_SIGNATURES
    max_signatures: int = MAX_SIGNATURES
    follow_up_window_days: int = FOLLOW_UP_WINDOW_DAYS
    reject_future_dates: bool = True


@dataclass(frozen=True)
class MutationResult:
    """What one mutation did to the record."""

    path: str
    status: AssessmentStatus
    active: ActiveSet
    format_errors: tuple[FormatError, ...] = ()
    cleared: tuple[str, ...] = ()
    excluded: tuple[str, ...] = ()
    cardinality: CardinalityViolation | None = None

    @property
    def applied(self) -> bool:
        return self.cardinality is None


@dataclass(frozen=True)
class SubmittedRecord:
    """Immutable snapshot handed off on a successful finalize."""

    reason_for_record: str
    variant: VariantKind
    submitted_on: str
    payload_json: str

    def payload(self) -> dict[str, Any]:
        return json.loads(self.payload_json)


@dataclass(frozen=True)
class FinalizeReport:
    accepted: bool
    format_errors: list[FormatError] = field(default_factory=list)
    missing_required: list[MissingRequiredField] = field(default_factory=list)
    ordering_violations: list[OrderingViolation] = field(default_factory=list)
    cardinality_violations: list[CardinalityViolation] = field(default_factory=list)
    warnings: list[ProximityWarning] = field(default_factory=list)
    record: SubmittedRecord | None = None

    @property
    def violations(self) -> list[Violation]:
        return [
            *self.format_errors,
            *self.missing_required,
            *self.ordering_violations,
            *self.cardinality_violations,
        ]


class AssessmentSession:
    """One in-progress assessment and the mutation pipeline around it.

    Every write runs the same synchronous pass before returning: the
    evaluator recomputes the active set, the reconciler clears fields that
    dropped out of it, and checkbox groups are normalized for exclusion.
    """

    def __init__(
        self,
        reason_for_record: str | None = None,
        payload: Mapping[str, object] | None = None,
        rule_set: RuleSet | None = None,
        config: AssessmentConfig | None = None,
        catalog: FieldCatalog | None = None,
    ) -> None:
        self.config = config or AssessmentConfig()
        self.rule_set = rule_set or DEFAULT_RULE_SET
        self.catalog = catalog or DEFAULT_FIELD_CATALOG

        if reason_for_record is not None:
            select_variant(reason_for_record, self.catalog)

        if payload is not None:
            self._store = payload_to_store(
                payload,
                catalog=self.catalog,
                min_signatures=self.config.min_signatures,
                max_signatures=self.config.max_signatures,
            )
        else:
            self._store = FieldValueStore(
                self.catalog,
                min_signatures=self.config.min_signatures,
                max_signatures=self.config.max_signatures,
            )
        if reason_for_record is not None:
            self._store.set(DISCRIMINANT_PATH, reason_for_record)

        for group in self.rule_set.exclusive_groups():
            normalize_group(group, self._store, self.rule_set, prefer_none=True)

        self._status: AssessmentStatus = "uninitialized"
        self._record: SubmittedRecord | None = None
        self._active = ActiveSet(fields=frozenset(), required=frozenset())
        self._initial_cleared = self._refresh(self.catalog.paths)
        logger.info(
            "opened assessment session (variant=%s, status=%s)",
            self.variant or "<none>",
            self._status,
        )

    @property
    def store(self) -> FieldValueStore:
        return self._store

    @property
    def active(self) -> ActiveSet:
        return self._active

    @property
    def status(self) -> AssessmentStatus:
        return self._status

    @property
    def record(self) -> SubmittedRecord | None:
        return self._record

    @property
    def initial_cleared(self) -> tuple[str, ...]:
        """Paths purged when the session was opened from a payload."""

        return self._initial_cleared

    @property
    def reason_for_record(self) -> str | None:
        value = self._store.get(DISCRIMINANT_PATH)
        return value if isinstance(value, str) else None

    @property
    def variant(self) -> VariantKind | None:
        code = self.reason_for_record
        return VARIANT_BY_REASON.get(code) if code is not None else None

    def _ensure_editable(self) -> None:
        if self._status == "submitted":
            raise ValueError("assessment has been submitted and can no longer be edited")

    def _refresh(self, previous: Iterable[str]) -> tuple[str, ...]:
        field_set = field_set_for(self.reason_for_record, self.catalog)
        active = evaluate(self._store, self.rule_set, field_set)
        cleared = reconcile(previous, active, self._store)
        self._active = active
        missing = missing_required_fields(self._store, active)
        self._status = next_status(self._status, self.reason_for_record, len(missing))
        return cleared

    def _result(
        self,
        path: str,
        cleared: tuple[str, ...],
        format_errors: Iterable[FormatError] = (),
        excluded: tuple[str, ...] = (),
        cardinality: CardinalityViolation | None = None,
    ) -> MutationResult:
        return MutationResult(
            path=path,
            status=self._status,
            active=self._active,
            format_errors=tuple(format_errors),
            cleared=cleared,
            excluded=excluded,
            cardinality=cardinality,
        )

    def set_field(self, path: str, value: object) -> MutationResult:
        """Write one field and run the evaluate/reconcile/exclusion pass."""

        self._ensure_editable()
        spec = self.catalog.get(path)
        if spec.kind == "signatures":
            raise ValueError(f"{path} is a signature list; use the signature operations")

        previous_code = self.reason_for_record
        previous_paths = self._active.fields | {path}
        excluded: tuple[str, ...] = ()
        with self._store.hold_notifications():
            error = self._store.set(path, value)
            if path == DISCRIMINANT_PATH:
                log_variant_change(previous_code, self.reason_for_record)
            cleared = self._refresh(previous_paths)

            group = self.catalog.group_of(path)
            if group is not None and spec.member is not None and path in self._active:
                excluded = apply_exclusion(group.item, spec.member, self._store, self.rule_set)
                if excluded:
                    self._refresh(self._active.fields)

        return self._result(
            path,
            cleared,
            format_errors=() if error is None else (error,),
            excluded=excluded,
        )

    def set_group(self, item: str, values: Mapping[str, bool]) -> MutationResult:
        """Bulk-set options of one checkbox group; exclusion is applied last."""

        self._ensure_editable()
        group = self.catalog.group(item)
        if group is None:
            raise ValueError(f"{item} is not a checkbox group")
        previous_paths = self._active.fields | set(group.member_paths())
        with self._store.hold_notifications():
            excluded = apply_group_values(item, values, self._store, self.rule_set)
            cleared = self._refresh(previous_paths)
        return self._result(item, cleared, excluded=excluded)

    def add_signature(self, entry: SignatureEntry | None = None) -> MutationResult:
        self._ensure_editable()
        errors: list[FormatError] = []
        with self._store.hold_notifications():
            violation = self._store.add_signature()
            if violation is None and entry is not None:
                errors = self._store.set_signature(
                    len(self._store.signatures) - 1,
                    name=entry.name,
                    title=entry.title,
                    sections_completed=entry.sections_completed,
                    date=entry.date,
                )
            cleared = self._refresh(self._active.fields)
        return self._result(SIGNATURES_PATH, cleared, format_errors=errors, cardinality=violation)

    def update_signature(self, index: int, **parts: object) -> MutationResult:
        self._ensure_editable()
        with self._store.hold_notifications():
            errors = self._store.set_signature(index, **parts)
            cleared = self._refresh(self._active.fields)
        return self._result(f"{SIGNATURES_PATH}.{index}", cleared, format_errors=errors)

    def remove_signature(self, index: int) -> MutationResult:
        """Remove one signature; removing the last remaining entry is rejected."""

        self._ensure_editable()
        with self._store.hold_notifications():
            violation = self._store.remove_signature(index)
            cleared = self._refresh(self._active.fields)
        if violation is not None:
            logger.debug("rejected signature removal: %s", violation.message)
        return self._result(f"{SIGNATURES_PATH}.{index}", cleared, cardinality=violation)

    def _format_errors(self) -> list[FormatError]:
        signature_prefix = f"{SIGNATURES_PATH}."
        return [
            error
            for error in self._store.format_errors()
            if error.path in self._active
            or (error.path.startswith(signature_prefix) and SIGNATURES_PATH in self._active)
        ]

    def validate(self, today: date | None = None) -> FinalizeReport:
        """Full finalize-time check without changing the session."""

        temporal = validate_ordering(
            self._store,
            active=self._active,
            today=today,
            rule_set=self.rule_set,
            follow_up_window_days=self.config.follow_up_window_days,
            reject_future_dates=self.config.reject_future_dates,
        )
        cardinality = self._store.signatures.cardinality_violation()
        format_errors = self._format_errors()
        missing = missing_required_fields(self._store, self._active)
        cardinality_violations = [] if cardinality is None else [cardinality]
        return FinalizeReport(
            accepted=not (
                format_errors or missing or temporal.violations or cardinality_violations
            ),
            format_errors=format_errors,
            missing_required=missing,
            ordering_violations=temporal.violations,
            cardinality_violations=cardinality_violations,
            warnings=temporal.warnings,
        )

    def finalize(self, today: date | None = None) -> FinalizeReport:
        """Validate and, when nothing blocks, freeze the record as submitted."""

        if self._record is not None:
            raise ValueError("assessment has already been submitted")
        report = self.validate(today=today)
        if not report.accepted:
            logger.warning(
                "finalize rejected: %d violation(s), %d warning(s)",
                len(report.violations),
                len(report.warnings),
            )
            return report

        reason = self.reason_for_record
        variant = self.variant
        if reason is None or variant is None:
            raise ValueError("an accepted record must have a reason for record")
        submitted_on = (today or date.today()).strftime(DATE_FORMAT)
        self._record = SubmittedRecord(
            reason_for_record=reason,
            variant=variant,
            submitted_on=submitted_on,
            payload_json=json.dumps(store_to_payload(self._store), sort_keys=True),
        )
        self._status = "submitted"
        logger.info(
            "finalized %s assessment with %d warning(s)",
            variant,
            len(report.warnings),
        )
        return FinalizeReport(
            accepted=True,
            warnings=report.warnings,
            record=self._record,
        )

    def to_payload(self) -> dict[str, dict[str, object]]:
        return store_to_payload(self._store)


def active_set_to_dict(active: ActiveSet) -> dict[str, object]:
    return {
        "fields": sorted(active.fields),
        "required": sorted(active.required),
        "purge": sorted(active.purge),
    }


def mutation_result_to_dict(result: MutationResult) -> dict[str, object]:
    return {
        "path": result.path,
        "applied": result.applied,
        "status": result.status,
        "format_errors": [violation_to_dict(error) for error in result.format_errors],
        "cleared": list(result.cleared),
        "excluded": list(result.excluded),
        "cardinality": (
            violation_to_dict(result.cardinality) if result.cardinality is not None else None
        ),
        "active": active_set_to_dict(result.active),
    }


def finalize_report_to_dict(report: FinalizeReport) -> dict[str, object]:
    return {
        "accepted": report.accepted,
        "violations": [violation_to_dict(item) for item in report.violations],
        "warnings": [violation_to_dict(item) for item in report.warnings],
        "record": (
            {
                "reason_for_record": report.record.reason_for_record,
                "variant": report.record.variant,
                "submitted_on": report.record.submitted_on,
                "payload": report.record.payload(),
            }
            if report.record is not None
            else None
        ),
    }
