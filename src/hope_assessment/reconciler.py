from __future__ import annotations

import logging
from collections.abc import Iterable

from .evaluator import ActiveSet
from .store import FieldValueStore

logger = logging.getLogger(__name__)


def reconcile(
    previous: ActiveSet | Iterable[str],
    new: ActiveSet,
    store: FieldValueStore,
) -> tuple[str, ...]:
    """Clear every field that left the active set or that a clear rule purges.

    `previous` is either the prior `ActiveSet` or any collection of paths
    that may hold a value (a freshly loaded record passes every path).
    The store is updated in place; the cleared paths are returned in
    catalog order.
    """

    previous_paths = previous.fields if isinstance(previous, ActiveSet) else frozenset(previous)
    stale = (previous_paths - new.fields) | new.purge

    cleared: list[str] = []
    for spec in store.catalog:
        if spec.path in stale and store.clear(spec.path):
            cleared.append(spec.path)

    if cleared:
        logger.debug("reconciliation cleared %d field(s): %s", len(cleared), ", ".join(cleared))
    return tuple(cleared)
