"""Models package."""

from scholarcite.models.source import (
    BibliographyEntry,
    CitationResult,
    SearchResults,
    Source,
    new_id,
)

__all__ = [
    "BibliographyEntry",
    "CitationResult",
    "SearchResults",
    "Source",
    "new_id",
]
