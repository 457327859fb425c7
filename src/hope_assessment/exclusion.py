from __future__ import annotations

import logging
from collections.abc import Mapping

from .rules import DEFAULT_RULE_SET, RuleSet
from .store import FieldValueStore

logger = logging.getLogger(__name__)


def none_option_for(group: str, rule_set: RuleSet | None = None) -> str | None:
    return (rule_set or DEFAULT_RULE_SET).exclusive_groups().get(group)


def _require_group(group: str, store: FieldValueStore) -> tuple[str, ...]:
    spec = store.catalog.group(group)
    if spec is None:
        raise ValueError(f"{group} is not a checkbox group")
    return spec.options


def apply_exclusion(
    group: str,
    changed_option: str,
    store: FieldValueStore,
    rule_set: RuleSet | None = None,
) -> tuple[str, ...]:
    """Keep the none-option and the other options of `group` apart.

    Called after `changed_option` was written. When it is now true, the
    opposite side of the group is forced false. Returns the paths forced off.
    """

    options = _require_group(group, store)
    if changed_option not in options:
        raise ValueError(f"{changed_option} is not an option of {group}")
    none_option = none_option_for(group, rule_set)
    if none_option is None or store.get(f"{group}.{changed_option}") is not True:
        return ()

    if changed_option == none_option:
        to_clear = [option for option in options if option != none_option]
    else:
        to_clear = [none_option]

    forced: list[str] = []
    for option in to_clear:
        path = f"{group}.{option}"
        if store.get(path) is True:
            store.set(path, False)
            forced.append(path)
    if forced:
        logger.debug("exclusion on %s.%s cleared %s", group, changed_option, ", ".join(forced))
    return tuple(forced)


def normalize_group(
    group: str,
    store: FieldValueStore,
    rule_set: RuleSet | None = None,
    prefer_none: bool = True,
) -> tuple[str, ...]:
    """Repair a group where the none-option and other options are both true.

    With `prefer_none` the none-option survives; otherwise it is dropped
    in favour of the specific options.
    """

    options = _require_group(group, store)
    none_option = none_option_for(group, rule_set)
    if none_option is None:
        return ()
    none_path = f"{group}.{none_option}"
    others = [f"{group}.{option}" for option in options if option != none_option]
    if store.get(none_path) is not True or not any(store.get(path) for path in others):
        return ()

    if prefer_none:
        return apply_exclusion(group, none_option, store, rule_set)
    store.set(none_path, False)
    logger.debug("exclusion on %s dropped %s", group, none_path)
    return (none_path,)


def apply_group_values(
    group: str,
    values: Mapping[str, bool],
    store: FieldValueStore,
    rule_set: RuleSet | None = None,
) -> tuple[str, ...]:
    """Bulk-set several options of one group, then enforce exclusion once.

    The none-option wins only when this batch sets it true.
    """

    options = _require_group(group, store)
    unknown = set(values) - set(options)
    if unknown:
        raise ValueError(f"unknown options for {group}: " + ", ".join(sorted(unknown)))
    for option, value in values.items():
        store.set(f"{group}.{option}", value)

    none_option = none_option_for(group, rule_set)
    prefer_none = none_option is not None and values.get(none_option) is True
    return normalize_group(group, store, rule_set, prefer_none=prefer_none)
