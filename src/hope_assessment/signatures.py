from __future__ import annotations

from collections.abc import Iterator, Mapping, Sequence
from dataclasses import dataclass, replace

from .violations import CardinalityViolation

MIN_SIGNATURES = 1
MAX_SIGNATURES = 12

SIGNATURE_PARTS: tuple[str, ...] = ("name", "title", "sections_completed", "date")

# Wire keys used by the persisted record for each signature part.
_WIRE_KEYS = {
    "name": "signature",
    "title": "title",
    "sections_completed": "sections",
    "date": "date",
}


@dataclass(frozen=True)
class SignatureEntry:
    """One Z0400 signature of a person completing part of the record."""

    name: str | None = None
    title: str | None = None
    sections_completed: str | None = None
    date: str | None = None

    def missing_parts(self) -> list[str]:
        return [part for part in SIGNATURE_PARTS if not getattr(self, part)]

    @property
    def is_complete(self) -> bool:
        return not self.missing_parts()

    def to_dict(self) -> dict[str, str | None]:
        return {wire: getattr(self, part) for part, wire in _WIRE_KEYS.items()}

    @classmethod
    def from_dict(cls, payload: Mapping[str, object]) -> SignatureEntry:
        unknown = set(payload) - set(_WIRE_KEYS.values())
        if unknown:
            raise ValueError("unknown signature keys: " + ", ".join(sorted(unknown)))
        values: dict[str, str | None] = {}
        for part, wire in _WIRE_KEYS.items():
            raw = payload.get(wire)
            if raw is not None and not isinstance(raw, str):
                raise ValueError(f"signature {wire} must be a string or null")
            values[part] = raw or None
        return cls(**values)


class SignatureList:
    """Ordered signature entries bounded to [minimum, maximum].

    Mutations that would leave the bound return a `CardinalityViolation`
    and leave the list unchanged. A list is never empty: constructing one
    without entries seeds a single blank entry.
    """

    def __init__(
        self,
        entries: Sequence[SignatureEntry] | None = None,
        minimum: int = MIN_SIGNATURES,
        maximum: int = MAX_SIGNATURES,
    ) -> None:
        if minimum < 1 or maximum < minimum:
            raise ValueError("signature bounds must satisfy 1 <= minimum <= maximum")
        self.minimum = minimum
        self.maximum = maximum
        items = list(entries or [])
        if len(items) > maximum:
            raise ValueError(f"at most {maximum} signatures are allowed, got {len(items)}")
        while len(items) < minimum:
            items.append(SignatureEntry())
        self._entries = items

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[SignatureEntry]:
        return iter(self._entries)

    def __getitem__(self, index: int) -> SignatureEntry:
        return self._entries[index]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SignatureList):
            return NotImplemented
        return self._entries == other._entries

    @property
    def entries(self) -> tuple[SignatureEntry, ...]:
        return tuple(self._entries)

    def copy(self) -> SignatureList:
        return SignatureList(self._entries, minimum=self.minimum, maximum=self.maximum)

    def add(self, entry: SignatureEntry | None = None) -> CardinalityViolation | None:
        if len(self._entries) >= self.maximum:
            return CardinalityViolation(
                count=len(self._entries),
                minimum=self.minimum,
                maximum=self.maximum,
                message=f"at most {self.maximum} signatures are allowed",
            )
        self._entries.append(entry or SignatureEntry())
        return None

    def remove(self, index: int) -> CardinalityViolation | None:
        self._check_index(index)
        if len(self._entries) <= self.minimum:
            return CardinalityViolation(
                count=len(self._entries),
                minimum=self.minimum,
                maximum=self.maximum,
                message=f"at least {self.minimum} signature(s) must remain",
            )
        del self._entries[index]
        return None

    def update(self, index: int, **changes: str | None) -> SignatureEntry:
        self._check_index(index)
        unknown = set(changes) - set(SIGNATURE_PARTS)
        if unknown:
            raise ValueError("unknown signature parts: " + ", ".join(sorted(unknown)))
        entry = replace(self._entries[index], **changes)
        self._entries[index] = entry
        return entry

    def cardinality_violation(self) -> CardinalityViolation | None:
        count = len(self._entries)
        if self.minimum <= count <= self.maximum:
            return None
        return CardinalityViolation(
            count=count,
            minimum=self.minimum,
            maximum=self.maximum,
            message=f"signature count must be between {self.minimum} and {self.maximum}",
        )

    def _check_index(self, index: int) -> None:
        if index < 0 or index >= len(self._entries):
            raise ValueError(f"signature index {index} is out of range")

    def to_list(self) -> list[dict[str, str | None]]:
        return [entry.to_dict() for entry in self._entries]
