"""Typed records for the index entities.

Defines the two entity families: URLSet (per-term set of page URLs) and
TermCounter (per-page term frequencies). Conversion to and from the store's
string representation lives here too, so the index never handles raw
hash values directly.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Iterable, Iterator, Mapping, Optional

from termindex.exceptions import MalformedRecord


@dataclass(frozen=True, slots=True)
class URLSet:
    """All page URLs known to contain ``term``."""

    term: str
    urls: FrozenSet[str] = frozenset()

    def __contains__(self, url: object) -> bool:
        return url in self.urls

    def __iter__(self) -> Iterator[str]:
        return iter(self.urls)

    def __len__(self) -> int:
        return len(self.urls)


@dataclass(slots=True)
class TermCounter:
    """Occurrence counts of each term on a single page.

    Attributes
    ----------
    label: str
        The URL of the page the counts were taken from.
    counts: dict[str, int]
        Term -> number of occurrences.
    """

    label: str
    counts: Dict[str, int] = field(default_factory=dict)

    def increment(self, term: str, n: int = 1) -> None:
        self.counts[term] = self.counts.get(term, 0) + n

    def put(self, term: str, count: int) -> None:
        self.counts[term] = count

    def get(self, term: str) -> int:
        """Return the count for ``term`` or 0 while building the counter."""
        return self.counts.get(term, 0)

    def terms(self) -> FrozenSet[str]:
        return frozenset(self.counts)

    def size(self) -> int:
        """Total number of term occurrences on the page."""
        return sum(self.counts.values())

    def positive_counts(self) -> Dict[str, int]:
        """Counts that get persisted: zero entries are never stored."""
        return {t: c for t, c in self.counts.items() if c > 0}

    def __len__(self) -> int:
        return len(self.counts)

    def __contains__(self, term: object) -> bool:
        return term in self.counts

    @classmethod
    def from_mapping(cls, label: str, counts: Mapping[str, int]) -> "TermCounter":
        return cls(label=label, counts=dict(counts))


def validate_counts(counts: Mapping[str, int]) -> None:
    """Reject counts that cannot be stored (non-integers, negatives)."""
    for term, count in counts.items():
        if isinstance(count, bool) or not isinstance(count, int):
            raise ValueError(f"Count for term {term!r} must be an int, got {count!r}")
        if count < 0:
            raise ValueError(f"Count for term {term!r} must be non-negative, got {count}")


def encode_counts(counts: Mapping[str, int]) -> Dict[str, str]:
    """Render counts as the decimal strings stored in a TermCounter hash."""
    return {term: str(count) for term, count in counts.items()}


def decode_count(key: str, term: str, raw: Optional[str]) -> int:
    """Parse a stored count written by `encode_counts`.

    Only plain ASCII decimal digits are accepted; signs, whitespace and
    underscores are rejected.
    """
    if not isinstance(raw, str) or not (raw.isascii() and raw.isdigit()):
        raise MalformedRecord(key, term, raw)
    return int(raw)


def decode_term_counter(label: str, key: str, raw: Mapping[str, str]) -> TermCounter:
    return TermCounter(label=label, counts={t: decode_count(key, t, v) for t, v in raw.items()})


def url_set_from_members(term: str, members: Iterable[str]) -> URLSet:
    return URLSet(term=term, urls=frozenset(members))
