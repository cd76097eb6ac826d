"""Configuration management for ScholarCite."""

from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    A Settings instance is handed to the collaborators when they are built, so
    nothing reads the environment at call time.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # OpenAI
    openai_api_key: str = ""
    openai_model: str = "gpt-4o"  # Citation formatting
    openai_search_model: str = "gpt-4.1"  # Source search (needs web_search tool support)
    openai_requests_per_minute: int = 60
    request_timeout: float = 60.0

    # Search
    search_context_max_chars: int = 5000  # Document context sent with a search

    # Editing
    history_coalesce_seconds: float = 1.0  # Quiet period before typing is snapshotted
    min_selection_chars: int = 5  # Selections must be longer than this to be citable

    # Citations
    default_citation_style: str = "Cite Them Right Harvard"

    # Export
    export_dir: Optional[Path] = None
    word_export_filename: str = "ScholarCite_Document.docx"
    pdf_export_filename: str = "ScholarCite_Document.pdf"
    slides_export_filename: str = "ScholarCite_Presentation.pptx"

    # Logging
    log_level: str = "WARNING"
    log_format: str = "standard"  # "standard" or "json"
    log_file: Optional[str] = None
    debug: bool = False

    @property
    def is_openai_configured(self) -> bool:
        """Return True when an OpenAI API key is present."""
        return bool(self.openai_api_key)

    @property
    def export_directory(self) -> Path:
        """Directory exports are written to when no explicit path is given."""
        return self.export_dir or Path.cwd()


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
