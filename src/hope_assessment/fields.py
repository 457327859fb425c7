from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Literal

from . import codes

FIELD_KIND = Literal["code", "text", "date", "flag", "signatures"]

SECTION_ORDER: tuple[str, ...] = ("A", "J", "M", "N", "Z")
SYMPTOM_SLOTS: tuple[str, ...] = tuple(codes.SYMPTOM_TYPES)
SIGNATURES_PATH = "Z0400"
DISCRIMINANT_PATH = "A0250"


@dataclass(frozen=True)
class FieldSpec:
    """Declared shape of one addressable field in the assessment record."""

    path: str
    section: str
    kind: FIELD_KIND
    label: str
    required: bool = True
    options: tuple[str, ...] = ()
    admission_only: bool = False
    pattern: str | None = None

    @property
    def item(self) -> str:
        return self.path.split(".", 1)[0]

    @property
    def member(self) -> str | None:
        parts = self.path.split(".", 1)
        return parts[1] if len(parts) == 2 else None

    @property
    def empty_value(self) -> object:
        return False if self.kind == "flag" else None


@dataclass(frozen=True)
class GroupSpec:
    """A check-all-that-apply group; its members are `flag` fields."""

    item: str
    section: str
    label: str
    options: tuple[str, ...]
    required: bool = True
    admission_only: bool = False

    def member_paths(self) -> tuple[str, ...]:
        return tuple(f"{self.item}.{option}" for option in self.options)


@dataclass(frozen=True)
class FieldCatalog:
    specs: tuple[FieldSpec, ...]
    groups: tuple[GroupSpec, ...] = ()
    _index: dict[str, FieldSpec] = field(init=False, repr=False, compare=False)
    _group_index: dict[str, GroupSpec] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        index: dict[str, FieldSpec] = {}
        for spec in self.specs:
            if spec.path in index:
                raise ValueError(f"duplicate field path: {spec.path}")
            if spec.section not in SECTION_ORDER:
                raise ValueError(f"field {spec.path} has unknown section {spec.section!r}")
            index[spec.path] = spec
        object.__setattr__(self, "_index", index)
        object.__setattr__(self, "_group_index", {group.item: group for group in self.groups})

    def __contains__(self, path: object) -> bool:
        return path in self._index

    def __iter__(self) -> Iterator[FieldSpec]:
        return iter(self.specs)

    def get(self, path: str) -> FieldSpec:
        try:
            return self._index[path]
        except KeyError:
            raise ValueError(f"unknown field path: {path}") from None

    def group(self, item: str) -> GroupSpec | None:
        return self._group_index.get(item)

    def group_of(self, path: str) -> GroupSpec | None:
        spec = self.get(path)
        if spec.kind != "flag":
            return None
        return self._group_index.get(spec.item)

    @property
    def paths(self) -> tuple[str, ...]:
        return tuple(spec.path for spec in self.specs)

    def covered_by(self, target: str) -> tuple[str, ...]:
        """Return every field path addressed by `target` (a path or item prefix)."""

        if target in self._index:
            return (target,)
        prefix = target + "."
        return tuple(path for path in self._index if path.startswith(prefix))

    def section_paths(self, section: str) -> tuple[str, ...]:
        return tuple(spec.path for spec in self.specs if spec.section == section)


def _code(
    path: str,
    label: str,
    options: dict[str, str],
    required: bool = True,
    admission_only: bool = False,
) -> FieldSpec:
    return FieldSpec(
        path=path,
        section=path[0],
        kind="code",
        label=label,
        required=required,
        options=tuple(options),
        admission_only=admission_only,
    )


def _text(
    path: str,
    label: str,
    required: bool = True,
    pattern: str | None = None,
    admission_only: bool = False,
) -> FieldSpec:
    return FieldSpec(
        path=path,
        section=path[0],
        kind="text",
        label=label,
        required=required,
        pattern=pattern,
        admission_only=admission_only,
    )


def _date(
    path: str,
    label: str,
    required: bool = True,
    admission_only: bool = False,
) -> FieldSpec:
    return FieldSpec(
        path=path,
        section=path[0],
        kind="date",
        label=label,
        required=required,
        admission_only=admission_only,
    )


def _group(
    item: str,
    label: str,
    options: dict[str, str],
    admission_only: bool = False,
) -> tuple[GroupSpec, list[FieldSpec]]:
    group = GroupSpec(
        item=item,
        section=item[0],
        label=label,
        options=tuple(options),
        admission_only=admission_only,
    )
    members = [
        FieldSpec(
            path=f"{item}.{option}",
            section=item[0],
            kind="flag",
            label=f"{label}: {option_label}",
            required=False,
            admission_only=admission_only,
        )
        for option, option_label in options.items()
    ]
    return group, members


def build_field_catalog() -> FieldCatalog:
    specs: list[FieldSpec] = []
    groups: list[GroupSpec] = []

    def add_group(group_and_members: tuple[GroupSpec, list[FieldSpec]]) -> None:
        group, members = group_and_members
        groups.append(group)
        specs.extend(members)

    # Section A: administrative information
    specs.extend(
        [
            _code("A0050", "Type of Record", codes.RECORD_TYPES),
            _text("A0100_A", "National Provider Identifier", pattern=r"\d{10}"),
            _text("A0100_B", "CMS Certification Number", pattern=r"[0-9A-Z]{6}"),
            _text("A0100_C", "Branch Identifier", required=False, pattern=r"[0-9A-Z]{10}"),
            _text("A0200", "State", required=False, pattern=r"[A-Z]{2}"),
            _date("A0205", "Admission Start Date from prior hospice", required=False,
                  admission_only=True),
            _code("A0215", "Site of Service at Admission", codes.SITE_OF_SERVICE,
                  admission_only=True),
            _date("A0220", "Admission Date"),
            _date("A0220_C", "Assessment Reference Date", required=False),
            _code(DISCRIMINANT_PATH, "Reason for Record", codes.REASON_FOR_RECORD),
            _text("A0320_B", "Patient ID", required=False),
            _text("A0500_A", "First name"),
            _text("A0500_B", "Middle initial", pattern=r"[A-Za-z]"),
            _text("A0500_C", "Last name"),
            _text("A0500_D", "Suffix", required=False),
            _text("A0600_A", "Social Security Number", pattern=r"\d{3}-\d{2}-\d{4}"),
            _text("A0600_B", "Medicare Number"),
            _text("A0700", "Medicaid Number"),
            _code("A0810", "Sex", codes.SEX_OPTIONS),
            _date("A0900", "Birth Date"),
            _text("A0998", "Hospice Diagnosis", required=False, admission_only=True),
        ]
    )
    add_group(_group("A1005", "Ethnicity", codes.ETHNICITY_OPTIONS, admission_only=True))
    add_group(_group("A1010", "Race", codes.RACE_OPTIONS, admission_only=True))
    specs.extend(
        [
            _text("A1110.A", "Preferred language", admission_only=True),
            _code("A1110.B", "Need interpreter", codes.INTERPRETER_NEEDED,
                  admission_only=True),
        ]
    )
    add_group(_group("A1400", "Payer Information", codes.PAYER_OPTIONS))
    specs.append(_text("A1805", "Admitted From", required=False, admission_only=True))

    # Section J: health conditions
    specs.extend(
        [
            _code("J0050", "Death is Imminent", codes.YES_NO_OPTIONS),
            _code("J2050.A", "Symptom Impact Screening completed", codes.YES_NO_OPTIONS),
            _date("J2050.B", "Date of Symptom Impact Screening"),
        ]
    )
    specs.extend(
        _code(f"J2051.{slot}", f"Symptom impact: {name}", codes.SYMPTOM_IMPACT_LEVELS)
        for slot, name in codes.SYMPTOM_TYPES.items()
    )
    specs.extend(
        [
            _code("J2052.A", "Symptom Follow-up Visit completed", codes.YES_NO_OPTIONS),
            _date("J2052.B", "Date of Symptom Follow-up Visit"),
            _code("J2052.C", "Reason SFV not completed", codes.SFV_NOT_COMPLETED_REASONS),
        ]
    )
    specs.extend(
        _code(f"J2053.{slot}", f"SFV symptom impact: {name}", codes.SYMPTOM_IMPACT_LEVELS)
        for slot, name in codes.SYMPTOM_TYPES.items()
    )

    # Section M: skin conditions
    specs.append(_code("M1190", "Skin Conditions", codes.YES_NO_OPTIONS))
    add_group(_group("M1195", "Types of Skin Conditions", codes.SKIN_CONDITION_TYPES))
    add_group(_group("M1200", "Skin and Ulcer/Injury Treatments", codes.SKIN_TREATMENTS))

    # Section N: medications
    specs.extend(
        [
            _code("N0500.A", "Scheduled opioid initiated or continued", codes.YES_NO_OPTIONS),
            _date("N0500.B", "Date scheduled opioid initiated/continued"),
            _code("N0510.A", "PRN opioid initiated or continued", codes.YES_NO_OPTIONS),
            _date("N0510.B", "Date PRN opioid initiated/continued"),
            _code("N0520.A", "Bowel regimen initiated or continued",
                  codes.BOWEL_REGIMEN_OPTIONS),
            _date("N0520.B", "Date bowel regimen initiated/continued"),
        ]
    )

    # Section Z: record administration
    specs.extend(
        [
            _date("Z0350", "Date Assessment Completed"),
            FieldSpec(
                path=SIGNATURES_PATH,
                section="Z",
                kind="signatures",
                label="Signatures of Persons Completing the Record",
            ),
            _text("Z0500.A", "Signature of Person Verifying Record Completion"),
            _date("Z0500.B", "Date Record Verified"),
        ]
    )

    return FieldCatalog(specs=tuple(specs), groups=tuple(groups))


DEFAULT_FIELD_CATALOG = build_field_catalog()
