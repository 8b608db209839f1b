"""
Reference table — known vehicle makes and their models.

Used for normalization and suggestion only. A make or model missing from
the table is never rejected: the operator may type anything.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping, Sequence


def normalize_make(extracted_make: str, reference_table: Mapping[str, Sequence[str]]) -> str:
    """
    Reconcile a free-text make against the reference table.

    A case-insensitive match returns the table's canonical key; anything
    else comes back unchanged.

        >>> normalize_make("tesla", {"Tesla": ["Model 3"]})
        'Tesla'
        >>> normalize_make("BYD", {"Tesla": ["Model 3"]})
        'BYD'
    """
    if not extracted_make:
        return ""
    wanted = extracted_make.lower()
    for known_make in reference_table:
        if known_make.lower() == wanted:
            return known_make
    return extracted_make


class ReferenceTable(Mapping[str, tuple[str, ...]]):
    """Immutable make → ordered models mapping fetched once per session."""

    def __init__(self, entries: Mapping[str, Sequence[str]] | None = None) -> None:
        self._entries: dict[str, tuple[str, ...]] = {
            make: tuple(models) for make, models in (entries or {}).items()
        }

    def __getitem__(self, make: str) -> tuple[str, ...]:
        return self._entries[make]

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"ReferenceTable({len(self)} makes)"

    def makes(self) -> list[str]:
        """Known makes, sorted for display."""
        return sorted(self._entries)

    def models_for(self, make: str) -> tuple[str, ...]:
        """Model suggestions for `make`; empty for a make the table doesn't know."""
        return self._entries.get(make, ())

    def normalize(self, extracted_make: str) -> str:
        return normalize_make(extracted_make, self._entries)


EMPTY_REFERENCE_TABLE = ReferenceTable()
