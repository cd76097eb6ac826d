from __future__ import annotations
"""Data models for sources, citations and bibliography entries."""

import uuid
from dataclasses import dataclass, field
from typing import Any

SOURCE_FIELDS = ("title", "author", "year", "publication", "snippet", "url")


def new_id() -> str:
    """Return a fresh opaque identifier."""
    return uuid.uuid4().hex


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, (list, tuple)):
        return ", ".join(str(v) for v in value if v is not None)
    return str(value)


@dataclass(frozen=True)
class Source:
    """A candidate or saved reference.

    ``author`` is kept exactly as supplied, however many names it lists, and
    ``year`` is a string that is never checked for being numeric. ``id`` and
    ``date_added`` are only set once the source is saved to a library.
    """

    title: str
    author: str
    year: str
    publication: str
    url: str
    snippet: str = ""
    doi: str | None = None
    id: str | None = None
    date_added: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Source:
        """Build a fresh source from a loosely-typed response payload.

        Missing fields become empty strings. Identity fields are never read
        from the payload, so a source built here is always unsaved.
        """
        doi = data.get("doi")
        doi = _as_text(doi).strip() or None
        if doi and doi.upper() in ("N/A", "NONE", "NULL"):
            doi = None
        return cls(
            title=_as_text(data.get("title")).strip(),
            author=_as_text(data.get("author") or data.get("authors")).strip(),
            year=_as_text(data.get("year")).strip(),
            publication=_as_text(data.get("publication")).strip(),
            url=_as_text(data.get("url")).strip(),
            snippet=_as_text(data.get("snippet")).strip(),
            doi=doi,
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a plain dictionary."""
        data: dict[str, Any] = {name: getattr(self, name) for name in SOURCE_FIELDS}
        if self.doi:
            data["doi"] = self.doi
        if self.id:
            data["id"] = self.id
        if self.date_added:
            data["dateAdded"] = self.date_added
        return data

    @property
    def is_saved(self) -> bool:
        """True once the source carries library identity fields."""
        return bool(self.id and self.date_added)


@dataclass(frozen=True)
class CitationResult:
    """A formatted in-text citation and bibliography string pair.

    Attributes:
        in_text: Marker spliced into the document prose, e.g. "(Smith, 2023)"
        bibliography: Full reference list entry, italics as ``*asterisks*``
    """

    in_text: str
    bibliography: str


@dataclass(frozen=True)
class BibliographyEntry:
    """A bibliography entry and the source it was built from.

    Attributes:
        text: Normalized bibliography string, also the deduplication key
        source: Originating source, kept for provenance and export
        id: Opaque unique token
    """

    text: str
    source: Source
    id: str = field(default_factory=new_id)


@dataclass(frozen=True)
class SearchResults:
    """Candidate sources returned for a selected passage."""

    suggested: tuple[Source, ...] = ()
    related: tuple[Source, ...] = ()

    @classmethod
    def empty(cls) -> SearchResults:
        return cls()

    @property
    def is_empty(self) -> bool:
        return not self.suggested and not self.related

    @property
    def all_sources(self) -> list[Source]:
        """Suggested sources first, then related ones."""
        return [*self.suggested, *self.related]
