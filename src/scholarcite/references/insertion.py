"""Citation insertion: splicing an in-text citation into document text."""

from dataclasses import dataclass

from scholarcite.exceptions import InvalidSelectionError
from scholarcite.models.source import BibliographyEntry, CitationResult, Source
from scholarcite.references.bibliography import BibliographyStore
from scholarcite.references.markup import denormalize_et_al, normalize_et_al


@dataclass(frozen=True)
class InsertionResult:
    """Outcome of inserting one citation.

    Attributes:
        text: New document text
        bibliography: Updated bibliography (a new store, the input is untouched)
        entry: The entry that was built for the citation
        inserted: False when an entry with the same text already existed
    """

    text: str
    bibliography: BibliographyStore
    entry: BibliographyEntry
    inserted: bool


class CitationInsertionEngine:
    """Merges a formatted citation into document text and the bibliography.

    Example usage:
        engine = CitationInsertionEngine()
        result = engine.insert_citation(text, selection.end, citation, source, store)
        if result.inserted:
            print(f"Added: {result.entry.text}")
    """

    def splice(self, document_text: str, selection_end: int, in_text: str) -> str:
        """Insert an in-text citation right after the selection.

        One space separates the citation from the preceding text unless that
        text already ends in whitespace. Whatever followed the selection is
        kept as is.

        Args:
            document_text: Current document text
            selection_end: Offset where the selection ends
            in_text: In-text citation to insert

        Returns:
            The new document text

        Raises:
            InvalidSelectionError: If the offset lies outside the text
        """
        if not 0 <= selection_end <= len(document_text):
            raise InvalidSelectionError(
                f"Selection end {selection_end} is outside the document (length {len(document_text)})"
            )

        before = document_text[:selection_end]
        after = document_text[selection_end:]
        separator = "" if before[-1:].isspace() else " "
        return f"{before}{separator}{denormalize_et_al(in_text)}{after}"

    def build_entry(self, citation: CitationResult, source: Source) -> BibliographyEntry:
        """Create the bibliography entry for a citation, in asterisk form."""
        return BibliographyEntry(text=normalize_et_al(citation.bibliography), source=source)

    def insert_citation(
        self,
        document_text: str,
        selection_end: int,
        citation: CitationResult,
        source: Source,
        bibliography: BibliographyStore,
    ) -> InsertionResult:
        """Insert a citation into the text and its entry into a copy of the bibliography.

        Args:
            document_text: Current document text
            selection_end: Offset where the selection ends
            citation: Formatted citation pair
            source: Source the citation was built from
            bibliography: Current bibliography, not modified

        Returns:
            InsertionResult with the new text and bibliography
        """
        new_text = self.splice(document_text, selection_end, citation.in_text)

        entry = self.build_entry(citation, source)
        updated = bibliography.copy()
        inserted = updated.insert_if_absent(entry)

        return InsertionResult(text=new_text, bibliography=updated, entry=entry, inserted=inserted)
