"""Nested record payloads.

The payload mirrors the section structure::

    {
      "A": {"A0250": "1", "A1010": {"A": true, "Z": false, ...}},
      "J": {"J2050": {"A": "1", "B": "2024-01-05"}},
      "Z": {"Z0400": [{"signature": "...", "title": "...", "sections": "...", "date": "..."}]}
    }

Dotted paths nest under their item code, checkbox groups serialize as an
object of booleans keyed by option code, and dates use `YYYY-MM-DD`.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from pathlib import Path

from .fields import DEFAULT_FIELD_CATALOG, SECTION_ORDER, SIGNATURES_PATH, FieldCatalog
from .signatures import MAX_SIGNATURES, MIN_SIGNATURES, SignatureEntry, SignatureList
from .store import FieldValueStore


def store_to_payload(store: FieldValueStore) -> dict[str, dict[str, object]]:
    """Serialize non-empty values; groups appear in full once any option is set."""

    catalog = store.catalog
    payload: dict[str, dict[str, object]] = {section: {} for section in SECTION_ORDER}
    for spec in catalog:
        section = payload[spec.section]
        if spec.kind == "signatures":
            section[spec.path] = store.signatures.to_list()
            continue
        if spec.kind == "flag":
            group = catalog.group_of(spec.path)
            if group is None or group.item in section:
                continue
            flags = {option: bool(store.get(f"{group.item}.{option}")) for option in group.options}
            if any(flags.values()):
                section[group.item] = flags
            continue

        value = store.get(spec.path)
        if value is None:
            continue
        if spec.member is None:
            section[spec.path] = value
        else:
            nested = section.get(spec.item)
            if not isinstance(nested, dict):
                nested = {}
                section[spec.item] = nested
            nested[spec.member] = value
    return payload


def _signature_list(raw: object, minimum: int, maximum: int) -> SignatureList:
    if not isinstance(raw, list):
        raise ValueError(f"{SIGNATURES_PATH} must be a list of signature objects")
    entries: list[SignatureEntry] = []
    for item in raw:
        if not isinstance(item, Mapping):
            raise ValueError(f"{SIGNATURES_PATH} entries must be objects")
        entries.append(SignatureEntry.from_dict(item))
    return SignatureList(entries, minimum=minimum, maximum=maximum)


def payload_to_store(
    payload: Mapping[str, object],
    catalog: FieldCatalog | None = None,
    min_signatures: int = MIN_SIGNATURES,
    max_signatures: int = MAX_SIGNATURES,
) -> FieldValueStore:
    """Parse a nested payload into a fresh store.

    Unknown sections or field paths raise `ValueError`. Values that do not
    parse are kept as format errors on the store, as with any other write.
    Signature dates go through the same check as `FieldValueStore.set_signature`.
    """

    field_catalog = catalog or DEFAULT_FIELD_CATALOG
    store = FieldValueStore(
        field_catalog,
        min_signatures=min_signatures,
        max_signatures=max_signatures,
    )

    for section, items in payload.items():
        if section not in SECTION_ORDER:
            raise ValueError(f"unknown section: {section}")
        if not isinstance(items, Mapping):
            raise ValueError(f"section {section} must be an object")
        for key, value in items.items():
            if key == SIGNATURES_PATH:
                signatures = _signature_list(value, min_signatures, max_signatures)
                store.replace_signatures(SignatureList(
                    [SignatureEntry() for _ in signatures],
                    minimum=min_signatures,
                    maximum=max_signatures,
                ))
                for index, entry in enumerate(signatures):
                    store.set_signature(
                        index,
                        name=entry.name,
                        title=entry.title,
                        sections_completed=entry.sections_completed,
                        date=entry.date,
                    )
                continue
            if isinstance(value, Mapping):
                members = {f"{key}.{member}": raw for member, raw in value.items()}
            else:
                members = {str(key): value}
            for path, raw in members.items():
                spec = field_catalog.get(path)
                if spec.section != section:
                    raise ValueError(f"{path} belongs to section {spec.section}, not {section}")
                store.set(path, raw)
    return store


def load_payload_file(path: Path) -> dict[str, object]:
    payload = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(payload, dict):
        raise ValueError("record file must contain a JSON object")
    return payload
