"""Bibliography store: deduplicated, alphabetically ordered entries."""

import unicodedata
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from typing import Optional

from scholarcite.models.source import BibliographyEntry
from scholarcite.references.markup import to_plain


def collation_key(text: str) -> tuple[str, str]:
    """Sort key approximating a locale-aware comparison.

    Accents and case are ignored at the primary level; the raw text breaks
    ties so the ordering is total and deterministic.
    """
    decomposed = unicodedata.normalize("NFKD", text)
    base = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return base.casefold(), text


@dataclass
class BibliographyStore:
    """Holds the bibliography of one editing session.

    Entries are unique by their rendered ``text`` and always kept in
    ascending collation order. Two entries for the same work coexist when
    their rendered text differs (for example a different access date).

    Example usage:
        store = BibliographyStore()
        inserted = store.insert_if_absent(entry)
        for entry in store:
            print(entry.text)
    """

    _entries: list[BibliographyEntry] = field(default_factory=list)

    def __post_init__(self):
        """Bring entries supplied at construction into canonical form."""
        self.restore(self._entries)

    def insert_if_absent(self, entry: BibliographyEntry) -> bool:
        """Insert an entry unless one with identical text already exists.

        Args:
            entry: Entry to insert

        Returns:
            True if the entry was added, False if it was a duplicate
        """
        if entry.text in self:
            return False

        self._entries.append(entry)
        self._sort()
        return True

    def remove(self, entry_id: str) -> bool:
        """Remove the entry with the given id.

        Returns:
            True if an entry was removed
        """
        before = len(self._entries)
        self._entries = [e for e in self._entries if e.id != entry_id]
        return len(self._entries) != before

    def clear(self) -> None:
        """Remove all entries."""
        self._entries.clear()

    def get(self, entry_id: str) -> Optional[BibliographyEntry]:
        """Get an entry by id."""
        return next((e for e in self._entries if e.id == entry_id), None)

    def copy(self) -> "BibliographyStore":
        """Return an independent store with the same entries."""
        return BibliographyStore(list(self._entries))

    def snapshot(self) -> tuple[BibliographyEntry, ...]:
        """Return the entries as an immutable tuple."""
        return tuple(self._entries)

    def restore(self, entries: Iterable[BibliographyEntry]) -> None:
        """Replace the contents, dropping duplicate texts and re-sorting."""
        seen: set[str] = set()
        unique = []
        for entry in entries:
            if entry.text not in seen:
                seen.add(entry.text)
                unique.append(entry)
        self._entries = unique
        self._sort()

    def to_plain_text(self) -> str:
        """Render the bibliography for the clipboard, one entry per line."""
        return "\n".join(to_plain(entry.text) for entry in self._entries)

    def _sort(self) -> None:
        # Full re-sort on every change, never an incremental insert
        self._entries.sort(key=lambda e: collation_key(e.text))

    @property
    def entries(self) -> tuple[BibliographyEntry, ...]:
        """Entries in display order."""
        return tuple(self._entries)

    @property
    def texts(self) -> list[str]:
        return [e.text for e in self._entries]

    def __contains__(self, text: object) -> bool:
        return any(e.text == text for e in self._entries)

    def __iter__(self) -> Iterator[BibliographyEntry]:
        return iter(tuple(self._entries))

    def __len__(self) -> int:
        return len(self._entries)

    def __bool__(self) -> bool:
        return bool(self._entries)
