from __future__ import annotations

import json
import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from .codes import ADMISSION_REASON, FOLLOW_UP_TRIGGER_LEVELS
from .fields import DEFAULT_FIELD_CATALOG, DISCRIMINANT_PATH, SYMPTOM_SLOTS, FieldCatalog

logger = logging.getLogger(__name__)

SUPPORTED_EFFECTS = ("show", "require", "clear", "mutually_exclude")
SUPPORTED_OPS = ("==", "!=", "in", "not_in")


def _equals(field: str, value: str) -> dict[str, object]:
    return {"field": field, "op": "==", "value": value}


def _conditional_block(
    rule_id: str,
    section: str,
    condition: dict[str, object],
    targets: list[str],
    description: str,
) -> list[dict[str, object]]:
    """Show-and-require rule pair for a skip pattern."""

    return [
        {
            "id": f"{rule_id}_show",
            "section": section,
            "effect": "show",
            "when": condition,
            "targets": targets,
            "description": description,
        },
        {
            "id": f"{rule_id}_require",
            "section": section,
            "effect": "require",
            "when": condition,
            "targets": targets,
            "description": description,
        },
    ]


def _purge(
    rule_id: str,
    section: str,
    condition: dict[str, object],
    targets: list[str],
    description: str,
) -> dict[str, object]:
    return {
        "id": rule_id,
        "section": section,
        "effect": "clear",
        "when": condition,
        "targets": targets,
        "description": description,
    }


def _exclusive(rule_id: str, section: str, group: str, none_option: str) -> dict[str, object]:
    return {
        "id": rule_id,
        "section": section,
        "effect": "mutually_exclude",
        "targets": [group],
        "none_option": none_option,
        "description": f"{group}.{none_option} excludes every other {group} option",
    }


DEFAULT_RULE_SET_CONFIG: dict[str, Any] = {
    "config_version": "1.01",
    "rules": [
        # Section A
        *_conditional_block(
            "admission_demographics",
            "A",
            _equals(DISCRIMINANT_PATH, ADMISSION_REASON),
            ["A0205", "A0215", "A0998", "A1005", "A1010", "A1110", "A1805"],
            "Admission-only demographics appear when A0250 selects Admission",
        ),
        _exclusive("race_none_exclusive", "A", "A1010", "Z"),
        # Section J
        *_conditional_block(
            "screening_date",
            "J",
            _equals("J2050.A", "1"),
            ["J2050.B"],
            "Screening date is recorded when the screening was completed",
        ),
        *_conditional_block(
            "symptom_assessment",
            "J",
            _equals("J2050.A", "1"),
            ["J2051"],
            "J2051 appears when J2050.A = 1",
        ),
        *_conditional_block(
            "symptom_follow_up_visit",
            "J",
            {
                "any_of": [
                    {
                        "field": f"J2051.{slot}",
                        "op": "in",
                        "value": list(FOLLOW_UP_TRIGGER_LEVELS),
                    }
                    for slot in SYMPTOM_SLOTS
                ]
            },
            ["J2052"],
            "J2052 appears when any J2051 symptom is Moderate or Severe",
        ),
        *_conditional_block(
            "follow_up_date",
            "J",
            _equals("J2052.A", "1"),
            ["J2052.B"],
            "SFV date when the follow-up visit was completed",
        ),
        *_conditional_block(
            "follow_up_not_completed_reason",
            "J",
            _equals("J2052.A", "0"),
            ["J2052.C"],
            "Reason code when the follow-up visit was not completed",
        ),
        *_conditional_block(
            "follow_up_reassessment",
            "J",
            _equals("J2052.A", "1"),
            ["J2053"],
            "J2053 reassessment when the follow-up visit was completed",
        ),
        _purge(
            "screening_not_completed_purge",
            "J",
            _equals("J2050.A", "0"),
            ["J2050.B", "J2051", "J2052", "J2053"],
            "Screening not completed: J2050.B through J2053 are skipped and purged",
        ),
        # Section M
        *_conditional_block(
            "skin_condition_details",
            "M",
            _equals("M1190", "1"),
            ["M1195", "M1200"],
            "Skin condition types and treatments when M1190 = 1",
        ),
        _purge(
            "no_skin_condition_purge",
            "M",
            _equals("M1190", "0"),
            ["M1195", "M1200"],
            "No skin conditions: types and treatments are purged",
        ),
        _exclusive("skin_types_none_exclusive", "M", "M1195", "Z"),
        _exclusive("skin_treatments_none_exclusive", "M", "M1200", "Z"),
        # Section N
        *_conditional_block(
            "scheduled_opioid_date",
            "N",
            _equals("N0500.A", "1"),
            ["N0500.B"],
            "Scheduled opioid date when initiated or continued",
        ),
        *_conditional_block(
            "prn_opioid_date",
            "N",
            _equals("N0510.A", "1"),
            ["N0510.B"],
            "PRN opioid date when initiated or continued",
        ),
        *_conditional_block(
            "bowel_regimen",
            "N",
            {"any_of": [_equals("N0500.A", "1"), _equals("N0510.A", "1")]},
            ["N0520"],
            "Bowel regimen when either opioid was initiated or continued",
        ),
        *_conditional_block(
            "bowel_regimen_date",
            "N",
            _equals("N0520.A", "2"),
            ["N0520.B"],
            "Bowel regimen date when a regimen was initiated or continued",
        ),
        _purge(
            "no_opioid_purge",
            "N",
            {"all_of": [_equals("N0500.A", "0"), _equals("N0510.A", "0")]},
            ["N0520"],
            "Neither opioid initiated: the bowel regimen record is purged entirely",
        ),
    ],
}


@dataclass(frozen=True)
class DependencyRule:
    """One skip-pattern rule: condition over trigger fields, effect on targets."""

    rule_id: str
    section: str
    effect: str
    targets: tuple[str, ...]
    condition: dict[str, object] | None
    none_option: str | None
    description: str

    @property
    def triggers(self) -> tuple[str, ...]:
        return condition_fields(self.condition) if self.condition is not None else ()

    def covers(self, path: str) -> bool:
        return any(path == target or path.startswith(target + ".") for target in self.targets)


@dataclass(frozen=True)
class RuleSet:
    config_version: str
    rules: tuple[DependencyRule, ...]

    def by_effect(self, effect: str) -> tuple[DependencyRule, ...]:
        return tuple(rule for rule in self.rules if rule.effect == effect)

    def governing(self, path: str, effect: str) -> tuple[DependencyRule, ...]:
        return tuple(rule for rule in self.by_effect(effect) if rule.covers(path))

    def exclusive_groups(self) -> dict[str, str]:
        """Map checkbox group item -> its none-option code."""

        groups: dict[str, str] = {}
        for rule in self.by_effect("mutually_exclude"):
            for target in rule.targets:
                groups[target] = str(rule.none_option)
        return groups


def condition_fields(condition: dict[str, object]) -> tuple[str, ...]:
    """Every field path a condition reads, in declaration order."""

    for key in ("any_of", "all_of"):
        if key in condition:
            raw_conditions = condition[key]
            if not isinstance(raw_conditions, list):
                raise ValueError(f"{key} must be a list")
            fields: list[str] = []
            for item in raw_conditions:
                if not isinstance(item, dict):
                    raise ValueError(f"{key} entries must be objects")
                for path in condition_fields(item):
                    if path not in fields:
                        fields.append(path)
            return tuple(fields)
    if "field" not in condition:
        raise ValueError("condition must contain 'field' or any_of/all_of")
    return (str(condition["field"]),)


def _compare(actual: object, op: str, expected: object) -> bool:
    if op == "==":
        return actual == expected
    if op == "!=":
        return actual != expected
    if op in {"in", "not_in"}:
        if not isinstance(expected, (list, tuple)):
            raise ValueError(f"operation {op} expects a list value")
        found = actual in expected
        return found if op == "in" else not found

    raise ValueError(f"unsupported operation: {op}")


def evaluate_condition(condition: dict[str, object], lookup: Callable[[str], object]) -> bool:
    """Evaluate a rule condition; a condition over an empty value is false."""

    if "any_of" in condition:
        return any(evaluate_condition(item, lookup) for item in condition["any_of"])
    if "all_of" in condition:
        return all(evaluate_condition(item, lookup) for item in condition["all_of"])

    actual = lookup(str(condition["field"]))
    if actual is None:
        return False
    return _compare(actual, str(condition["op"]), condition.get("value"))


def _validate_condition(rule_id: str, condition: object, catalog: FieldCatalog) -> None:
    if not isinstance(condition, dict):
        raise ValueError(f"rule '{rule_id}' condition must be an object")
    for key in ("any_of", "all_of"):
        if key in condition:
            items = condition[key]
            if not isinstance(items, list) or not items:
                raise ValueError(f"rule '{rule_id}' {key} must be a non-empty list")
            for item in items:
                _validate_condition(rule_id, item, catalog)
            return

    field = condition.get("field")
    if not isinstance(field, str) or field not in catalog:
        raise ValueError(f"rule '{rule_id}' references unknown field {field!r}")
    op = condition.get("op")
    if op not in SUPPORTED_OPS:
        raise ValueError(f"rule '{rule_id}' has unsupported operation {op!r}")
    if op in {"in", "not_in"} and not isinstance(condition.get("value"), list):
        raise ValueError(f"rule '{rule_id}' operation {op} expects a list value")


def _parse_rule(raw: object, catalog: FieldCatalog) -> DependencyRule:
    if not isinstance(raw, dict):
        raise ValueError("rule entries must be objects")
    rule_id = str(raw.get("id", "rule"))

    effect = raw.get("effect")
    if effect not in SUPPORTED_EFFECTS:
        raise ValueError(f"rule '{rule_id}' has unsupported effect {effect!r}")

    targets = raw.get("targets")
    if not isinstance(targets, list) or not targets:
        raise ValueError(f"rule '{rule_id}' must contain non-empty list field 'targets'")
    for target in targets:
        if not isinstance(target, str) or not catalog.covered_by(target):
            raise ValueError(f"rule '{rule_id}' targets unknown field {target!r}")

    condition = raw.get("when")
    if condition is None:
        if effect != "mutually_exclude":
            raise ValueError(f"rule '{rule_id}' must contain object field 'when'")
    else:
        _validate_condition(rule_id, condition, catalog)

    none_option = raw.get("none_option")
    if effect == "mutually_exclude":
        if not isinstance(none_option, str) or not none_option:
            raise ValueError(f"rule '{rule_id}' must name its 'none_option'")
        for target in targets:
            group = catalog.group(target)
            if group is None:
                raise ValueError(f"rule '{rule_id}' target {target} is not a checkbox group")
            if none_option not in group.options:
                raise ValueError(
                    f"rule '{rule_id}' none_option {none_option} is not an option of {target}"
                )

    return DependencyRule(
        rule_id=rule_id,
        section=str(raw.get("section", "")),
        effect=str(effect),
        targets=tuple(targets),
        condition=condition,
        none_option=none_option if effect == "mutually_exclude" else None,
        description=str(raw.get("description", "")),
    )


def _visibility_edges(
    rules: Iterable[DependencyRule],
    catalog: FieldCatalog,
) -> dict[str, set[str]]:
    edges: dict[str, set[str]] = {}
    for rule in rules:
        if rule.effect not in {"show", "clear"}:
            continue
        for target in rule.targets:
            for path in catalog.covered_by(target):
                edges.setdefault(path, set()).update(rule.triggers)
    return edges


def _check_acyclic(edges: dict[str, set[str]]) -> None:
    done: set[str] = set()
    visiting: list[str] = []

    def visit(path: str) -> None:
        if path in done:
            return
        if path in visiting:
            cycle = visiting[visiting.index(path):] + [path]
            raise ValueError("cyclic visibility dependency: " + " -> ".join(cycle))
        visiting.append(path)
        for trigger in sorted(edges.get(path, ())):
            visit(trigger)
        visiting.pop()
        done.add(path)

    for path in sorted(edges):
        visit(path)


def load_rule_set(
    config: dict[str, object] | None = None,
    catalog: FieldCatalog | None = None,
) -> RuleSet:
    """Parse and validate a rule-set config (the built-in table by default)."""

    cfg = DEFAULT_RULE_SET_CONFIG if config is None else config
    field_catalog = catalog or DEFAULT_FIELD_CATALOG

    raw_rules = cfg.get("rules")
    if not isinstance(raw_rules, list):
        raise ValueError("config must contain list field 'rules'")

    rules = tuple(_parse_rule(raw, field_catalog) for raw in raw_rules)
    seen: set[str] = set()
    for rule in rules:
        if rule.rule_id in seen:
            raise ValueError(f"duplicate rule id: {rule.rule_id}")
        seen.add(rule.rule_id)

    _check_acyclic(_visibility_edges(rules, field_catalog))

    rule_set = RuleSet(config_version=str(cfg.get("config_version", "unknown")), rules=rules)
    logger.info(
        "loaded rule set %s with %d rules", rule_set.config_version, len(rule_set.rules)
    )
    return rule_set


def load_rule_set_file(path: Path, catalog: FieldCatalog | None = None) -> RuleSet:
    payload = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(payload, dict):
        raise ValueError("rule set file must contain a JSON object")
    return load_rule_set(payload, catalog=catalog)


def rule_set_to_dict(rule_set: RuleSet) -> dict[str, object]:
    """Convert a rule set back to its JSON-serializable config shape."""

    rules: list[dict[str, object]] = []
    for rule in rule_set.rules:
        item: dict[str, object] = {
            "id": rule.rule_id,
            "section": rule.section,
            "effect": rule.effect,
            "targets": list(rule.targets),
            "description": rule.description,
        }
        if rule.condition is not None:
            item["when"] = rule.condition
        if rule.none_option is not None:
            item["none_option"] = rule.none_option
        rules.append(item)
    return {"config_version": rule_set.config_version, "rules": rules}


DEFAULT_RULE_SET = load_rule_set()
