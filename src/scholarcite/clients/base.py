from __future__ import annotations
"""Base classes for the search and formatting collaborators."""

from abc import ABC, abstractmethod

from scholarcite.models.source import CitationResult, SearchResults, Source
from scholarcite.references.styles import CitationStyle


class BaseSourceSearchClient(ABC):
    """Abstract base class for source search services."""

    @property
    def is_configured(self) -> bool:
        """Check if the client has what it needs to make calls."""
        return True

    @abstractmethod
    async def search(self, selected_text: str, document_context: str) -> SearchResults:
        """
        Find sources for a selected passage.

        Args:
            selected_text: The passage the user wants to cite
            document_context: Surrounding document text, already truncated

        Returns:
            SearchResults with suggested and related sources. Empty or
            unparseable answers yield empty results.

        Raises:
            SourceSearchError: If the service call itself fails
        """
        pass


class BaseCitationFormatter(ABC):
    """Abstract base class for citation formatting services."""

    @property
    def is_configured(self) -> bool:
        """Check if the formatter has what it needs to make calls."""
        return True

    @abstractmethod
    async def format(self, source: Source, style: CitationStyle) -> CitationResult:
        """
        Format a source in the given citation style.

        Args:
            source: Source to cite
            style: Citation style, passed to the service by its display name

        Returns:
            CitationResult with the in-text citation and bibliography entry

        Raises:
            CitationFormatError: If the call fails or the answer is unusable
        """
        pass
