"""Rules engine for HOPE hospice assessment records."""

from .assembler import (
    VARIANT_BY_REASON,
    AssessmentStatus,
    FieldSetDefinition,
    VariantKind,
    VariantSelection,
    common_field_set,
    field_set_for,
    next_status,
    select_variant,
    variants_to_dict,
)
from .evaluator import ActiveSet, evaluate, missing_required_fields
from .exclusion import apply_exclusion, apply_group_values, none_option_for, normalize_group
from .fields import (
    DEFAULT_FIELD_CATALOG,
    DISCRIMINANT_PATH,
    SECTION_ORDER,
    SIGNATURES_PATH,
    SYMPTOM_SLOTS,
    FieldCatalog,
    FieldSpec,
    GroupSpec,
    build_field_catalog,
)
from .reconciler import reconcile
from .rules import (
    DEFAULT_RULE_SET,
    DEFAULT_RULE_SET_CONFIG,
    DependencyRule,
    RuleSet,
    condition_fields,
    evaluate_condition,
    load_rule_set,
    load_rule_set_file,
    rule_set_to_dict,
)
from .serialization import load_payload_file, payload_to_store, store_to_payload
from .session import (
    AssessmentConfig,
    AssessmentSession,
    FinalizeReport,
    MutationResult,
    SubmittedRecord,
    active_set_to_dict,
    finalize_report_to_dict,
    mutation_result_to_dict,
)
from .signatures import MAX_SIGNATURES, MIN_SIGNATURES, SignatureEntry, SignatureList
from .store import DATE_FORMAT, FieldValueStore, coerce_field_value, parse_calendar_date
from .temporal import (
    FOLLOW_UP_WINDOW_DAYS,
    ORDERING_CHAIN,
    ORDERING_PAIRS,
    TemporalValidationReport,
    validate_ordering,
)
from .violations import (
    CardinalityViolation,
    FormatError,
    MissingRequiredField,
    OrderingViolation,
    ProximityWarning,
    Violation,
    violation_to_dict,
)

__all__ = [
    "ActiveSet",
    "AssessmentConfig",
    "AssessmentSession",
    "AssessmentStatus",
    "CardinalityViolation",
    "DATE_FORMAT",
    "DEFAULT_FIELD_CATALOG",
    "DEFAULT_RULE_SET",
    "DEFAULT_RULE_SET_CONFIG",
    "DISCRIMINANT_PATH",
    "DependencyRule",
    "FOLLOW_UP_WINDOW_DAYS",
    "FieldCatalog",
    "FieldSetDefinition",
    "FieldSpec",
    "FieldValueStore",
    "FinalizeReport",
    "FormatError",
    "GroupSpec",
    "MAX_SIGNATURES",
    "MIN_SIGNATURES",
    "MissingRequiredField",
    "MutationResult",
    "ORDERING_CHAIN",
    "ORDERING_PAIRS",
    "OrderingViolation",
    "ProximityWarning",
    "RuleSet",
    "SECTION_ORDER",
    "SIGNATURES_PATH",
    "SYMPTOM_SLOTS",
    "SignatureEntry",
    "SignatureList",
    "SubmittedRecord",
    "TemporalValidationReport",
    "VARIANT_BY_REASON",
    "VariantKind",
    "VariantSelection",
    "Violation",
    "active_set_to_dict",
    "apply_exclusion",
    "apply_group_values",
    "build_field_catalog",
    "coerce_field_value",
    "common_field_set",
    "condition_fields",
    "evaluate",
    "evaluate_condition",
    "field_set_for",
    "finalize_report_to_dict",
    "load_payload_file",
    "load_rule_set",
    "load_rule_set_file",
    "missing_required_fields",
    "mutation_result_to_dict",
    "next_status",
    "none_option_for",
    "normalize_group",
    "parse_calendar_date",
    "payload_to_store",
    "reconcile",
    "rule_set_to_dict",
    "select_variant",
    "store_to_payload",
    "validate_ordering",
    "variants_to_dict",
    "violation_to_dict",
]
