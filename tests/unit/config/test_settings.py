"""Unit tests for application settings.
"""

from pathlib import Path

import pytest

from scholarcite.config import Settings, get_settings


@pytest.fixture
def clean_env(monkeypatch):
    """Remove settings from the environment."""
    for name in ["OPENAI_API_KEY", "EXPORT_DIR", "MIN_SELECTION_CHARS", "DEFAULT_CITATION_STYLE"]:
        monkeypatch.delenv(name, raising=False)


class TestDefaults:
    """Tests for default values."""

    def test_defaults(self, clean_env) -> None:
        """Test defaults when nothing is configured."""
        settings = Settings(_env_file=None)

        assert settings.openai_api_key == ""
        assert settings.history_coalesce_seconds == 1.0
        assert settings.min_selection_chars == 5
        assert settings.search_context_max_chars == 5000
        assert settings.default_citation_style == "Cite Them Right Harvard"
        assert settings.word_export_filename == "ScholarCite_Document.docx"
        assert settings.slides_export_filename == "ScholarCite_Presentation.pptx"

    def test_not_configured_without_key(self, clean_env) -> None:
        """Test the OpenAI services count as unconfigured without a key."""
        assert Settings(_env_file=None).is_openai_configured is False

    def test_export_directory_defaults_to_cwd(self, clean_env) -> None:
        """Test exports go to the working directory by default."""
        assert Settings(_env_file=None).export_directory == Path.cwd()


class TestEnvironment:
    """Tests for values read from the environment."""

    def test_values_from_environment(self, clean_env, monkeypatch, tmp_path) -> None:
        """Test environment variables override defaults."""
        monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
        monkeypatch.setenv("EXPORT_DIR", str(tmp_path))
        monkeypatch.setenv("MIN_SELECTION_CHARS", "10")

        settings = Settings(_env_file=None)

        assert settings.is_openai_configured is True
        assert settings.export_directory == tmp_path
        assert settings.min_selection_chars == 10

    def test_get_settings_is_cached(self) -> None:
        """Test the same instance is returned on every call."""
        assert get_settings() is get_settings()
