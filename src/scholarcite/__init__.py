"""ScholarCite - citation insertion and bibliography management for research writing."""

from scholarcite.history import HistoryController, HistoryState
from scholarcite.library import SourceLibrary
from scholarcite.models.source import BibliographyEntry, CitationResult, Source
from scholarcite.references.styles import CitationStyle
from scholarcite.session import EditingSession, ExportFormat, create_session

__version__ = "0.1.0"
__all__ = [
    "BibliographyEntry",
    "CitationResult",
    "CitationStyle",
    "EditingSession",
    "ExportFormat",
    "HistoryController",
    "HistoryState",
    "Source",
    "SourceLibrary",
    "create_session",
]
