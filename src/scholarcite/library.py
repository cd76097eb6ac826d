"""User-curated source library for one editing session."""

from __future__ import annotations

import dataclasses
from collections.abc import Iterator
from datetime import datetime, timezone
from typing import Any, Optional, Union

from pydantic import BaseModel, Field, ValidationError, field_validator

from scholarcite.exceptions import DuplicateSourceError, ManualEntryError
from scholarcite.logging import get_logger
from scholarcite.models.source import Source, new_id

logger = get_logger("library")


class ManualSourceForm(BaseModel):
    """Fields of a source typed in by hand."""

    title: str = Field(..., min_length=1)
    author: str = Field(..., min_length=1)
    year: str = Field(..., min_length=1)
    publication: str = Field(..., min_length=1)
    url: str = Field(..., min_length=1)
    snippet: str = ""

    @field_validator("title", "author", "year", "publication", "url", "snippet", mode="before")
    @classmethod
    def strip_whitespace(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip()
        return value

    @field_validator("url")
    @classmethod
    def url_must_be_http(cls, value: str) -> str:
        if not value.lower().startswith(("http://", "https://")):
            raise ValueError("URL must start with http:// or https://")
        return value

    @classmethod
    def parse(cls, data: dict[str, Any]) -> ManualSourceForm:
        """Validate raw form data.

        Raises:
            ManualEntryError: Naming every field that failed validation
        """
        try:
            return cls(**data)
        except ValidationError as e:
            fields = sorted({str(err["loc"][0]) for err in e.errors() if err.get("loc")})
            raise ManualEntryError(
                f"Please fill in all required fields correctly: {', '.join(fields)}",
                fields=fields,
            ) from e

    def to_source(self) -> Source:
        return Source(
            title=self.title,
            author=self.author,
            year=self.year,
            publication=self.publication,
            url=self.url,
            snippet=self.snippet,
        )


class SourceLibrary:
    """Sources the user saved, in the order they were saved.

    No two saved sources share a title or a non-blank URL. Every saved source
    carries an ``id`` and a ``date_added`` timestamp.

    Example usage:
        library = SourceLibrary()
        saved = library.add(source)
        library.remove(saved.id)
    """

    def __init__(self):
        self._sources: list[Source] = []

    def add(self, source: Source) -> Source:
        """Save a source.

        Args:
            source: Source to save (identity fields are reassigned)

        Returns:
            The saved source with ``id`` and ``date_added`` set

        Raises:
            DuplicateSourceError: If a saved source has the same URL or title
        """
        if self.find_conflict(source) is not None:
            raise DuplicateSourceError()

        saved = dataclasses.replace(
            source,
            id=new_id(),
            date_added=datetime.now(timezone.utc).isoformat(),
        )
        self._sources.append(saved)
        logger.info(f"Saved source to library: {saved.title}")
        return saved

    def add_manual(self, form: Union[ManualSourceForm, dict[str, Any]]) -> Source:
        """Validate a manually entered source and save it.

        Raises:
            ManualEntryError: If the form is incomplete or malformed
            DuplicateSourceError: If a saved source has the same URL or title
        """
        if not isinstance(form, ManualSourceForm):
            form = ManualSourceForm.parse(form)
        return self.add(form.to_source())

    def find_conflict(self, source: Source) -> Optional[Source]:
        """Return the saved source that conflicts with ``source``, if any.

        Blank URLs never conflict with each other.
        """
        url = source.url.strip()
        return next(
            (
                s
                for s in self._sources
                if (url and s.url.strip() == url) or s.title == source.title
            ),
            None,
        )

    def remove(self, source_id: str) -> bool:
        """Remove a saved source by id. Unknown ids are ignored."""
        before = len(self._sources)
        self._sources = [s for s in self._sources if s.id != source_id]
        return len(self._sources) != before

    def get(self, source_id: str) -> Optional[Source]:
        return next((s for s in self._sources if s.id == source_id), None)

    @property
    def sources(self) -> tuple[Source, ...]:
        return tuple(self._sources)

    def __iter__(self) -> Iterator[Source]:
        return iter(tuple(self._sources))

    def __len__(self) -> int:
        return len(self._sources)
