from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Literal

from .codes import REASON_FOR_RECORD
from .fields import DEFAULT_FIELD_CATALOG, DISCRIMINANT_PATH, FieldCatalog

logger = logging.getLogger(__name__)

VariantKind = Literal["admission", "update_visit", "discharge"]
AssessmentStatus = Literal["uninitialized", "variant_selected", "sections_complete", "submitted"]

VARIANT_BY_REASON: dict[str, VariantKind] = {
    "1": "admission",
    "2": "update_visit",
    "3": "update_visit",
    "4": "discharge",
    "5": "discharge",
    "6": "discharge",
    "7": "discharge",
    "8": "discharge",
    "9": "discharge",
}

VARIANT_TITLES: dict[VariantKind, str] = {
    "admission": "Admission",
    "update_visit": "HOPE Update Visit",
    "discharge": "Discharge",
}


@dataclass(frozen=True)
class FieldSetDefinition:
    """Fields that exist at all for a variant, before any skip pattern runs."""

    variant: VariantKind | None
    paths: frozenset[str]

    def __contains__(self, path: object) -> bool:
        return path in self.paths


@dataclass(frozen=True)
class VariantSelection:
    reason_code: str
    variant: VariantKind
    field_set: FieldSetDefinition


def _field_set(variant: VariantKind | None, catalog: FieldCatalog) -> FieldSetDefinition:
    include_admission = variant == "admission"
    paths = frozenset(
        spec.path for spec in catalog if include_admission or not spec.admission_only
    )
    return FieldSetDefinition(variant=variant, paths=paths)


def common_field_set(catalog: FieldCatalog | None = None) -> FieldSetDefinition:
    """Field set shared by every variant; used while no variant is selected."""

    return _field_set(None, catalog or DEFAULT_FIELD_CATALOG)


def select_variant(reason_code: str, catalog: FieldCatalog | None = None) -> VariantSelection:
    """Map a reason-for-record code to its variant and field set."""

    variant = VARIANT_BY_REASON.get(reason_code)
    if variant is None:
        raise ValueError(
            f"unknown reason for record {reason_code!r}; expected one of "
            + ", ".join(REASON_FOR_RECORD)
        )
    return VariantSelection(
        reason_code=reason_code,
        variant=variant,
        field_set=_field_set(variant, catalog or DEFAULT_FIELD_CATALOG),
    )


def field_set_for(
    reason_code: object,
    catalog: FieldCatalog | None = None,
) -> FieldSetDefinition:
    """Field set for the current discriminant value; empty selects the common set."""

    if reason_code is None:
        return common_field_set(catalog)
    return select_variant(str(reason_code), catalog).field_set


def next_status(
    current: AssessmentStatus,
    reason_code: object,
    missing_required: int,
) -> AssessmentStatus:
    """Lifecycle transition after a mutation has been evaluated."""

    if current == "submitted":
        raise ValueError("a submitted assessment cannot change status")
    if reason_code is None:
        return "uninitialized"
    if missing_required:
        return "variant_selected"
    return "sections_complete"


def variants_to_dict() -> list[dict[str, object]]:
    return [
        {
            "reason_for_record": code,
            "label": REASON_FOR_RECORD[code],
            "variant": variant,
            "variant_title": VARIANT_TITLES[variant],
            "admission_fields": variant == "admission",
        }
        for code, variant in VARIANT_BY_REASON.items()
    ]


def log_variant_change(previous: object, current: object) -> None:
    if previous == current:
        return
    logger.info(
        "%s changed from %s to %s",
        DISCRIMINANT_PATH,
        previous if previous is not None else "<empty>",
        current if current is not None else "<empty>",
    )
