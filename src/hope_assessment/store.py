from __future__ import annotations

import logging
import re
from collections.abc import Callable, Iterable, Iterator
from contextlib import contextmanager
from datetime import date

from .fields import DEFAULT_FIELD_CATALOG, SIGNATURES_PATH, FieldCatalog, FieldSpec
from .signatures import (
    MAX_SIGNATURES,
    MIN_SIGNATURES,
    SIGNATURE_PARTS,
    SignatureEntry,
    SignatureList,
)
from .violations import CardinalityViolation, FormatError

logger = logging.getLogger(__name__)

DATE_FORMAT = "%Y-%m-%d"
_DATE_PATTERN = re.compile(r"\d{4}-\d{2}-\d{2}")

ChangeListener = Callable[[str, object, object], None]


def parse_calendar_date(value: object) -> date | None:
    """Parse a strict YYYY-MM-DD string; return None when it does not parse."""

    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not _DATE_PATTERN.fullmatch(value):
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        return None


def _is_blank(value: object) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def coerce_field_value(spec: FieldSpec, raw: object) -> tuple[object, FormatError | None]:
    """Coerce a raw input to the stored representation of `spec`.

    Returns the stored value and, when the raw input does not parse, a
    `FormatError` alongside the field's empty value.
    """

    if spec.kind == "flag":
        if raw is None:
            return False, None
        if not isinstance(raw, bool):
            raise ValueError(f"{spec.path} is a checkbox option and takes a boolean")
        return raw, None

    if spec.kind == "signatures":
        raise ValueError(f"{spec.path} is a signature list; use the signature operations")

    if _is_blank(raw):
        return None, None

    if spec.kind == "date":
        parsed = parse_calendar_date(raw)
        if parsed is None:
            return None, FormatError(
                path=spec.path,
                value=raw,
                message=f"{spec.path} must be a calendar date in YYYY-MM-DD format",
            )
        return parsed.strftime(DATE_FORMAT), None

    if not isinstance(raw, str):
        return None, FormatError(
            path=spec.path,
            value=raw,
            message=f"{spec.path} must be a string",
        )

    value = raw.strip()
    if spec.kind == "code":
        if value not in spec.options:
            return None, FormatError(
                path=spec.path,
                value=raw,
                message=f"{spec.path} must be one of: " + ", ".join(spec.options),
            )
        return value, None

    if spec.pattern is not None and not re.fullmatch(spec.pattern, value):
        return None, FormatError(
            path=spec.path,
            value=raw,
            message=f"{spec.path} does not match the required format",
        )
    return value, None


class FieldValueStore:
    """Current value of every field in one assessment record, keyed by path."""

    def __init__(
        self,
        catalog: FieldCatalog | None = None,
        min_signatures: int = MIN_SIGNATURES,
        max_signatures: int = MAX_SIGNATURES,
    ) -> None:
        self.catalog = catalog or DEFAULT_FIELD_CATALOG
        self._values: dict[str, object] = {
            spec.path: spec.empty_value
            for spec in self.catalog
            if spec.kind != "signatures"
        }
        self._format_errors: dict[str, FormatError] = {}
        self._signatures = SignatureList(minimum=min_signatures, maximum=max_signatures)
        self._listeners: list[ChangeListener] = []
        self._held_depth = 0
        self._held: dict[str, tuple[object, object]] = {}

    def subscribe(self, listener: ChangeListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def _notify(self, path: str, old: object, new: object) -> None:
        if self._held_depth:
            first_old = self._held[path][0] if path in self._held else old
            self._held[path] = (first_old, new)
            return
        for listener in list(self._listeners):
            listener(path, old, new)

    @contextmanager
    def hold_notifications(self) -> Iterator[None]:
        """Collect changes made inside the block and report each path once on exit.

        Listeners only see the net change per path, after the whole block
        has run. Paths that end where they started are not reported.
        """

        self._held_depth += 1
        try:
            yield
        finally:
            self._held_depth -= 1
            if not self._held_depth:
                held, self._held = self._held, {}
                for path, (old, new) in held.items():
                    if old != new:
                        self._notify(path, old, new)

    def get(self, path: str) -> object:
        spec = self.catalog.get(path)
        if spec.kind == "signatures":
            return self._signatures.entries
        return self._values[path]

    def set(self, path: str, raw: object) -> FormatError | None:
        """Write a raw value; an unparseable value is stored as empty."""

        spec = self.catalog.get(path)
        value, error = coerce_field_value(spec, raw)
        if error is None:
            self._format_errors.pop(path, None)
        else:
            self._format_errors[path] = error
            logger.debug("format error on %s: %s", path, error.message)
        old = self._values[path]
        self._values[path] = value
        if old != value:
            self._notify(path, old, value)
        return error

    def clear(self, path: str) -> bool:
        """Reset a field to its empty value; return True if anything changed."""

        spec = self.catalog.get(path)
        had_error = self._format_errors.pop(path, None) is not None
        if spec.kind == "signatures":
            return had_error
        old = self._values[path]
        if old == spec.empty_value:
            return had_error
        self._values[path] = spec.empty_value
        self._notify(path, old, spec.empty_value)
        return True

    def is_empty(self, path: str) -> bool:
        spec = self.catalog.get(path)
        if spec.kind == "signatures":
            return not all(entry.is_complete for entry in self._signatures)
        return self._values[path] == spec.empty_value

    def format_errors(self, paths: Iterable[str] | None = None) -> list[FormatError]:
        if paths is None:
            return list(self._format_errors.values())
        wanted = set(paths)
        return [error for path, error in self._format_errors.items() if path in wanted]

    @property
    def signatures(self) -> SignatureList:
        return self._signatures

    def replace_signatures(self, signatures: SignatureList) -> None:
        old = self._signatures.entries
        self._signatures = signatures
        self._notify(SIGNATURES_PATH, old, signatures.entries)

    def set_signature(self, index: int, **parts: object) -> list[FormatError]:
        """Update parts of one signature entry; the date part is format-checked."""

        if index < 0 or index >= len(self._signatures):
            raise ValueError(f"signature index {index} is out of range")
        unknown = set(parts) - set(SIGNATURE_PARTS)
        if unknown:
            raise ValueError("unknown signature parts: " + ", ".join(sorted(unknown)))
        errors: list[FormatError] = []
        changes: dict[str, str | None] = {}
        for part, raw in parts.items():
            error_path = f"{SIGNATURES_PATH}.{index}.{part}"
            if _is_blank(raw):
                changes[part] = None
                self._format_errors.pop(error_path, None)
                continue
            if part == "date":
                parsed = parse_calendar_date(raw)
                if parsed is None:
                    error = FormatError(
                        path=error_path,
                        value=raw,
                        message=f"{error_path} must be a calendar date in YYYY-MM-DD format",
                    )
                    self._format_errors[error_path] = error
                    errors.append(error)
                    changes[part] = None
                    continue
                changes[part] = parsed.strftime(DATE_FORMAT)
            elif isinstance(raw, str):
                changes[part] = raw.strip()
            else:
                raise ValueError(f"signature part {part} must be a string")
            self._format_errors.pop(error_path, None)
        old = self._signatures.entries
        self._signatures.update(index, **changes)
        self._notify(SIGNATURES_PATH, old, self._signatures.entries)
        return errors

    def add_signature(self, entry: SignatureEntry | None = None) -> CardinalityViolation | None:
        old = self._signatures.entries
        violation = self._signatures.add(entry)
        if violation is None:
            self._notify(SIGNATURES_PATH, old, self._signatures.entries)
        return violation

    def remove_signature(self, index: int) -> CardinalityViolation | None:
        old = self._signatures.entries
        violation = self._signatures.remove(index)
        if violation is None:
            self._reindex_signature_errors(index)
            self._notify(SIGNATURES_PATH, old, self._signatures.entries)
        return violation

    def _reindex_signature_errors(self, removed: int) -> None:
        prefix = f"{SIGNATURES_PATH}."
        shifted: dict[str, FormatError] = {}
        for path in [path for path in self._format_errors if path.startswith(prefix)]:
            error = self._format_errors.pop(path)
            _, index_text, part = path.split(".", 2)
            index = int(index_text)
            if index == removed:
                continue
            new_index = index - 1 if index > removed else index
            new_path = f"{SIGNATURES_PATH}.{new_index}.{part}"
            shifted[new_path] = FormatError(
                path=new_path,
                value=error.value,
                message=f"{new_path} must be a calendar date in YYYY-MM-DD format",
            )
        self._format_errors.update(shifted)

    def snapshot(self) -> dict[str, object]:
        """Flat copy of every stored value, signatures included."""

        values: dict[str, object] = dict(self._values)
        values[SIGNATURES_PATH] = self._signatures.entries
        return values

    def copy(self) -> FieldValueStore:
        duplicate = FieldValueStore(
            self.catalog,
            min_signatures=self._signatures.minimum,
            max_signatures=self._signatures.maximum,
        )
        duplicate._values = dict(self._values)
        duplicate._format_errors = dict(self._format_errors)
        duplicate._signatures = self._signatures.copy()
        return duplicate
