"""Editing session: the single owner of document text and bibliography.

The session funnels every mutation through the citation core and keeps the
undo/redo history in step with it. Calls to the search and formatting services
are the only suspension points; each one captures the session generation
before awaiting, and its result is applied only if the generation and the
selection are unchanged when it arrives.

Example usage:
    session = create_session(get_settings())
    session.set_text(text)
    session.select(120, 188)

    outcome = await session.search_sources()
    if outcome.results.suggested:
        await session.cite(outcome.results.suggested[0])

    session.export(ExportFormat.WORD)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Optional, Union

from scholarcite.clients.base import BaseCitationFormatter, BaseSourceSearchClient
from scholarcite.clients.openai_formatter import OpenAICitationFormatter
from scholarcite.clients.openai_search import OpenAISourceSearchClient
from scholarcite.config import Settings, get_settings
from scholarcite.documents import exporters
from scholarcite.documents.importer import extract_text
from scholarcite.exceptions import DocumentParseError, InvalidSelectionError, NoSelectionError
from scholarcite.history import CoalescingScheduler, HistoryController, HistorySnapshot
from scholarcite.library import ManualSourceForm, SourceLibrary
from scholarcite.logging import get_logger, log_failure, log_warning
from scholarcite.models.source import BibliographyEntry, SearchResults, Source
from scholarcite.references.bibliography import BibliographyStore
from scholarcite.references.detector import CitationMarker, find_citations
from scholarcite.references.formatter import fallback_citation
from scholarcite.references.insertion import CitationInsertionEngine
from scholarcite.references.styles import CitationStyle, parse_style
from scholarcite.utils import create_openai_rate_limiter, truncate_context

logger = get_logger("session")

SEARCH_ERROR_MESSAGE = "Failed to fetch sources. Please check your API connection."


class ExportFormat(str, Enum):
    """Export targets."""

    WORD = "word"
    PDF = "pdf"
    SLIDES = "slides"


@dataclass(frozen=True)
class SelectionAnchor:
    """The user's current citable selection.

    Attributes:
        start: Offset where the selection starts
        end: Offset where the selection ends (citations go here)
        text: Selected text, trimmed
    """

    start: int
    end: int
    text: str


@dataclass(frozen=True)
class SearchOutcome:
    """Result of a source search.

    ``error`` carries a user-facing message when the search service failed.
    ``stale`` results were superseded while in flight and were not applied.
    """

    results: SearchResults
    error: Optional[str] = None
    stale: bool = False


@dataclass(frozen=True)
class CitationOutcome:
    """Result of citing a source.

    Attributes:
        text: Document text after the operation
        bibliography: Bibliography entries after the operation
        entry: Entry built for the citation (None when stale)
        inserted: False when the entry text was already in the bibliography
        used_fallback: True when the deterministic fallback citation was used
        stale: True when the result arrived too late and was discarded
    """

    text: str
    bibliography: tuple[BibliographyEntry, ...]
    entry: Optional[BibliographyEntry]
    inserted: bool
    used_fallback: bool
    stale: bool = False


class EditingSession:
    """One user's document, bibliography, history and source library."""

    def __init__(
        self,
        search_client: BaseSourceSearchClient,
        formatter: BaseCitationFormatter,
        settings: Optional[Settings] = None,
        text: str = "",
        style: Union[CitationStyle, str, None] = None,
        library: Optional[SourceLibrary] = None,
        scheduler: Optional[CoalescingScheduler] = None,
    ):
        """Initialize the session.

        Args:
            search_client: Source search service
            formatter: Citation formatting service
            settings: Settings (defaults to the cached environment settings)
            text: Initial document text
            style: Initial citation style (defaults to the configured one)
            library: Source library (a new empty one if not given)
            scheduler: Scheduler for coalesced typing snapshots
        """
        self.settings = settings or get_settings()
        self.search_client = search_client
        self.formatter = formatter
        self.library = library or SourceLibrary()
        self.engine = CitationInsertionEngine()
        self.style = parse_style(style or self.settings.default_citation_style)

        self._text = text
        self._bibliography = BibliographyStore()
        self._selection: Optional[SelectionAnchor] = None
        self._generation = 0
        self.search_results = SearchResults.empty()

        self.history = HistoryController(
            initial_text=text,
            scheduler=scheduler
            or CoalescingScheduler(delay=self.settings.history_coalesce_seconds),
        )

    # ==================== State ====================

    @property
    def text(self) -> str:
        return self._text

    @property
    def bibliography(self) -> tuple[BibliographyEntry, ...]:
        """Current bibliography entries in display order."""
        return self._bibliography.entries

    @property
    def selection(self) -> Optional[SelectionAnchor]:
        return self._selection

    @property
    def generation(self) -> int:
        """Counter bumped whenever in-flight results must no longer apply."""
        return self._generation

    def set_style(self, style: Union[CitationStyle, str]) -> CitationStyle:
        """Change the citation style used for new citations and exports."""
        self.style = parse_style(style)
        return self.style

    # ==================== Editing ====================

    def set_text(self, text: str) -> None:
        """Apply a typing edit.

        The history snapshot is coalesced with neighbouring edits.
        """
        if text == self._text:
            return
        self._text = text
        self._invalidate()
        self.history.record_edit(self._text, self._bibliography.snapshot())

    def select(self, start: int, end: int) -> Optional[SelectionAnchor]:
        """Record a selection.

        Selections whose trimmed text is not longer than the configured
        minimum are not citable and clear the current selection.

        Raises:
            InvalidSelectionError: If the offsets do not lie within the text
        """
        if not 0 <= start <= end <= len(self._text):
            raise InvalidSelectionError(
                f"Selection {start}-{end} is outside the document (length {len(self._text)})"
            )

        selected = self._text[start:end].strip()
        if len(selected) > self.settings.min_selection_chars:
            self._selection = SelectionAnchor(start=start, end=end, text=selected)
        else:
            self._selection = None
        return self._selection

    def clear_selection(self) -> None:
        self._selection = None

    def citation_markers(self) -> list[CitationMarker]:
        """Citation markers in the current text, for highlighting."""
        return find_citations(self._text)

    # ==================== Citation flow ====================

    async def search_sources(self) -> SearchOutcome:
        """Search for sources supporting the selected text.

        Any failure of the search service, timeouts included, ends in empty
        results carrying SEARCH_ERROR_MESSAGE.

        Raises:
            NoSelectionError: If there is no citable selection
        """
        anchor = self._require_selection()
        generation = self._generation
        context = truncate_context(self._text, self.settings.search_context_max_chars)

        try:
            results = await self.search_client.search(anchor.text, context)
        except Exception as e:
            log_failure(logger, "Source search", e, {"selection": anchor.text[:60]})
            if self._is_stale(generation, anchor):
                return SearchOutcome(results=SearchResults.empty(), stale=True)
            self.search_results = SearchResults.empty()
            return SearchOutcome(results=self.search_results, error=SEARCH_ERROR_MESSAGE)

        if self._is_stale(generation, anchor):
            log_warning(logger, "Source search", "Discarded results for a superseded request")
            return SearchOutcome(results=results, stale=True)

        self.search_results = results
        logger.info(
            f"Found {len(results.suggested)} suggested and {len(results.related)} related sources"
        )
        return SearchOutcome(results=results)

    async def cite(
        self, source: Source, style: Union[CitationStyle, str, None] = None
    ) -> CitationOutcome:
        """Format a citation for ``source`` and insert it after the selection.

        Falls back to a deterministic citation when the formatting service
        fails or times out. On success the edit is recorded in history at once and the
        selection is cleared.

        Raises:
            NoSelectionError: If there is no citable selection (checked before
                the formatting service is called)
        """
        anchor = self._require_selection()
        style = parse_style(style or self.style)
        generation = self._generation

        used_fallback = False
        try:
            citation = await self.formatter.format(source, style)
        except Exception as e:
            log_failure(
                logger, "Citation formatting", e, {"title": source.title}, level=logging.WARNING
            )
            citation = fallback_citation(source)
            used_fallback = True

        if self._is_stale(generation, anchor):
            log_warning(logger, "Citation", "Discarded citation for a superseded request")
            return CitationOutcome(
                text=self._text,
                bibliography=self._bibliography.entries,
                entry=None,
                inserted=False,
                used_fallback=used_fallback,
                stale=True,
            )

        result = self.engine.insert_citation(
            self._text, anchor.end, citation, source, self._bibliography
        )
        self._text = result.text
        self._bibliography = result.bibliography
        self._invalidate()
        self.history.record_immediate(self._text, self._bibliography.snapshot())

        if not result.inserted:
            logger.info("Bibliography already contains this entry")
        return CitationOutcome(
            text=self._text,
            bibliography=self._bibliography.entries,
            entry=result.entry,
            inserted=result.inserted,
            used_fallback=used_fallback,
        )

    def dismiss(self) -> None:
        """Close the citation flow; results still in flight will be discarded."""
        self._generation += 1

    # ==================== Documents ====================

    def import_document(self, data: bytes, filename: str, new_bibliography: bool = False) -> str:
        """Replace the document text with an imported file's text.

        Nothing changes if the file cannot be read.

        Args:
            data: Raw file contents
            filename: File name, used for its extension
            new_bibliography: Start a new (empty) bibliography as well

        Returns:
            The imported text

        Raises:
            UnsupportedFileTypeError: If the extension is not supported
            DocumentParseError: If the file could not be read
        """
        text = extract_text(data, filename)

        self._text = text
        if new_bibliography:
            self._bibliography.clear()
        self._invalidate()
        self.history.record_immediate(self._text, self._bibliography.snapshot())
        logger.info(f"Imported {filename}")
        return text

    def import_path(self, path: Union[str, Path], new_bibliography: bool = False) -> str:
        """Import a document from disk.

        Raises:
            DocumentParseError: If the file cannot be opened or read
        """
        path = Path(path)
        try:
            data = path.read_bytes()
        except OSError as e:
            log_failure(logger, "Document import", e, {"path": str(path)})
            raise DocumentParseError(f"Failed to open {path.name}.") from e
        return self.import_document(data, path.name, new_bibliography)

    def export(self, fmt: Union[ExportFormat, str], path: Union[str, Path, None] = None) -> Path:
        """Export the document and bibliography.

        Args:
            fmt: Export target
            path: Output file (defaults to the configured file name in the
                export directory)

        Returns:
            Path of the written file

        Raises:
            ExportError: If rendering or writing failed
        """
        fmt = ExportFormat(fmt)
        renderers = {
            ExportFormat.WORD: (exporters.export_word, self.settings.word_export_filename),
            ExportFormat.PDF: (exporters.export_pdf, self.settings.pdf_export_filename),
            ExportFormat.SLIDES: (exporters.export_slides, self.settings.slides_export_filename),
        }
        render, default_name = renderers[fmt]
        target = Path(path) if path else self.settings.export_directory / default_name
        return render(self._text, self._bibliography.entries, self.style, target)

    # ==================== Bibliography ====================

    def clear_bibliography(self) -> None:
        """Remove every bibliography entry, as one undoable step."""
        self._bibliography.clear()
        self._selection = None
        self.history.record_immediate(self._text, self._bibliography.snapshot())

    def remove_bibliography_entry(self, entry_id: str) -> bool:
        """Remove one bibliography entry, as one undoable step."""
        removed = self._bibliography.remove(entry_id)
        if removed:
            self.history.record_immediate(self._text, self._bibliography.snapshot())
        return removed

    def copy_bibliography(self) -> str:
        """Bibliography as plain text for the clipboard."""
        return self._bibliography.to_plain_text()

    # ==================== History ====================

    def undo(self) -> bool:
        """Restore the previous snapshot. Returns False if there is none."""
        snapshot = self.history.undo()
        if snapshot is None:
            return False
        self._restore(snapshot)
        return True

    def redo(self) -> bool:
        """Restore the next snapshot. Returns False if there is none."""
        snapshot = self.history.redo()
        if snapshot is None:
            return False
        self._restore(snapshot)
        return True

    # ==================== Library ====================

    def save_to_library(self, source: Source) -> Source:
        return self.library.add(source)

    def add_manual_source(self, form: Union[ManualSourceForm, dict[str, Any]]) -> Source:
        return self.library.add_manual(form)

    def remove_from_library(self, source_id: str) -> bool:
        return self.library.remove(source_id)

    # ==================== Internals ====================

    def _require_selection(self) -> SelectionAnchor:
        if self._selection is None:
            raise NoSelectionError()
        return self._selection

    def _is_stale(self, generation: int, anchor: SelectionAnchor) -> bool:
        return generation != self._generation or self._selection != anchor

    def _invalidate(self) -> None:
        self._selection = None
        self._generation += 1

    def _restore(self, snapshot: HistorySnapshot) -> None:
        self._text = snapshot.text
        self._bibliography = BibliographyStore(list(snapshot.bibliography))
        self._invalidate()


def create_session(settings: Optional[Settings] = None, text: str = "") -> EditingSession:
    """Build a session wired to the OpenAI search and formatting services."""
    settings = settings or get_settings()
    rate_limiter = create_openai_rate_limiter(settings)
    return EditingSession(
        search_client=OpenAISourceSearchClient(settings, rate_limiter=rate_limiter),
        formatter=OpenAICitationFormatter(settings, rate_limiter=rate_limiter),
        settings=settings,
        text=text,
    )
