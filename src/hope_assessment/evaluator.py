"""Visibility and requiredness over a snapshot of field values.

`evaluate` is pure: it reads the store and never writes it. A field is
active when it exists for the current variant and every show rule that
governs it holds while no clear rule does. Conditions read *effective*
values, where an inactive trigger reads as empty, so hiding a field hides
everything that depends on it however deep the chain goes.
"""

from __future__ import annotations

from dataclasses import dataclass

from .assembler import FieldSetDefinition, field_set_for
from .fields import DISCRIMINANT_PATH, SIGNATURES_PATH
from .rules import DEFAULT_RULE_SET, RuleSet, evaluate_condition
from .store import FieldValueStore
from .violations import MissingRequiredField


@dataclass(frozen=True)
class ActiveSet:
    """Derived view of one evaluation.

    `fields` holds active field paths, `required` holds the active paths and
    checkbox-group items that must be filled, and `purge` holds the paths a
    clear rule currently forces empty.
    """

    fields: frozenset[str]
    required: frozenset[str]
    purge: frozenset[str] = frozenset()

    def __contains__(self, path: object) -> bool:
        return path in self.fields

    def is_required(self, path: str) -> bool:
        return path in self.required


class _Visibility:
    def __init__(
        self,
        store: FieldValueStore,
        rule_set: RuleSet,
        field_set: FieldSetDefinition,
    ) -> None:
        self.store = store
        self.rule_set = rule_set
        self.field_set = field_set
        self._cache: dict[str, bool] = {}
        self._visiting: set[str] = set()

    def effective(self, path: str) -> object:
        if not self.visible(path):
            return None
        return self.store.get(path)

    def holds(self, condition: dict[str, object]) -> bool:
        return evaluate_condition(condition, self.effective)

    def visible(self, path: str) -> bool:
        if path in self._cache:
            return self._cache[path]
        if path in self._visiting:
            raise ValueError(f"cyclic visibility dependency through {path}")
        self._visiting.add(path)
        try:
            result = path in self.field_set and self._rules_allow(path)
        finally:
            self._visiting.discard(path)
        self._cache[path] = result
        return result

    def purged(self, path: str) -> bool:
        return any(
            rule.condition is not None and self.holds(rule.condition)
            for rule in self.rule_set.governing(path, "clear")
        )

    def _rules_allow(self, path: str) -> bool:
        for rule in self.rule_set.governing(path, "show"):
            if rule.condition is None or not self.holds(rule.condition):
                return False
        return not self.purged(path)

    def required_by_rules(self, path: str) -> bool:
        return all(
            rule.condition is None or self.holds(rule.condition)
            for rule in self.rule_set.governing(path, "require")
        )


def evaluate(
    store: FieldValueStore,
    rule_set: RuleSet | None = None,
    field_set: FieldSetDefinition | None = None,
) -> ActiveSet:
    """Compute the active set for the store's current values."""

    rules = rule_set or DEFAULT_RULE_SET
    catalog = store.catalog
    if field_set is None:
        field_set = field_set_for(_discriminant(store), catalog)
    visibility = _Visibility(store, rules, field_set)

    active: set[str] = set()
    required: set[str] = set()
    purge: set[str] = set()
    for spec in catalog:
        if visibility.purged(spec.path):
            purge.add(spec.path)
        if not visibility.visible(spec.path):
            continue
        active.add(spec.path)
        if spec.required and visibility.required_by_rules(spec.path):
            required.add(spec.path)

    for group in catalog.groups:
        members = group.member_paths()
        if not group.required or not any(path in active for path in members):
            continue
        if visibility.required_by_rules(group.item):
            required.add(group.item)

    return ActiveSet(
        fields=frozenset(active),
        required=frozenset(required),
        purge=frozenset(purge),
    )


def _discriminant(store: FieldValueStore) -> object:
    return store.get(DISCRIMINANT_PATH) if DISCRIMINANT_PATH in store.catalog else None


def missing_required_fields(
    store: FieldValueStore,
    active: ActiveSet,
) -> list[MissingRequiredField]:
    """Required, active fields that hold no value, in catalog order."""

    catalog = store.catalog
    missing: list[MissingRequiredField] = []
    seen_groups: set[str] = set()
    for spec in catalog:
        if spec.kind == "flag":
            group = catalog.group_of(spec.path)
            if group is None or group.item in seen_groups:
                continue
            seen_groups.add(group.item)
            if not active.is_required(group.item):
                continue
            if not any(store.get(path) for path in group.member_paths()):
                missing.append(MissingRequiredField(path=group.item, label=group.label))
            continue

        if not active.is_required(spec.path):
            continue
        if spec.path == SIGNATURES_PATH:
            for index, entry in enumerate(store.signatures):
                for part in entry.missing_parts():
                    missing.append(
                        MissingRequiredField(
                            path=f"{SIGNATURES_PATH}.{index}.{part}",
                            label=f"signature {index + 1} {part.replace('_', ' ')}",
                        )
                    )
            continue
        if store.is_empty(spec.path):
            missing.append(MissingRequiredField(path=spec.path, label=spec.label))
    return missing
