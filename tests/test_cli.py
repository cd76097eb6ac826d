"""Tests for the command line interface."""

import json
from unittest.mock import patch

import pytest
from typer.testing import CliRunner

from scholarcite import __version__
from scholarcite.cli import app
from scholarcite.clients.base import BaseCitationFormatter, BaseSourceSearchClient
from scholarcite.config import Settings
from scholarcite.exceptions import SourceSearchError
from scholarcite.models.source import CitationResult, SearchResults, Source
from scholarcite.session import EditingSession

runner = CliRunner()

DOCUMENT = "Aspirin lowers cardiovascular risk. More text follows."


class FakeSearchClient(BaseSourceSearchClient):
    def __init__(self, results=None, error=None):
        self.results = results or SearchResults.empty()
        self.error = error

    async def search(self, selected_text, document_context):
        if self.error:
            raise self.error
        return self.results


class FakeFormatter(BaseCitationFormatter):
    async def format(self, source, style):
        return CitationResult(
            in_text="(Smith, 2023)",
            bibliography="Smith, J. (2023) 'Aspirin and the Heart', *Journal of Cardiology*.",
        )


@pytest.fixture
def document(tmp_path):
    """Write a small text document."""
    path = tmp_path / "draft.txt"
    path.write_text(DOCUMENT, encoding="utf-8")
    return path


@pytest.fixture
def source():
    return Source(
        title="Aspirin and the Heart",
        author="Smith, J.",
        year="2023",
        publication="Journal of Cardiology",
        url="https://example.org/aspirin",
    )


def fake_session(search_client):
    return EditingSession(
        search_client=search_client,
        formatter=FakeFormatter(),
        settings=Settings(openai_api_key=""),
    )


class TestInfoCommands:
    """Tests for commands that need no document."""

    def test_version(self):
        """Test the version command."""
        result = runner.invoke(app, ["version"])

        assert result.exit_code == 0
        assert f"ScholarCite v{__version__}" in result.stdout

    def test_styles(self):
        """Test the styles table lists the styles."""
        result = runner.invoke(app, ["styles"])

        assert result.exit_code == 0
        assert "IEEE" in result.stdout
        assert "Vancouver" in result.stdout


class TestDocumentCommands:
    """Tests for commands that read or write documents."""

    def test_markers(self, tmp_path):
        """Test citation markers are listed with a total."""
        path = tmp_path / "cited.txt"
        path.write_text("A claim (Smith, 2020). Another (Doe & Roe, 2019).", encoding="utf-8")

        result = runner.invoke(app, ["markers", str(path)])

        assert result.exit_code == 0
        assert "(Smith, 2020)" in result.stdout
        assert "2 citation(s)" in result.stdout

    def test_markers_none_found(self, document):
        """Test a document without markers."""
        result = runner.invoke(app, ["markers", str(document)])

        assert result.exit_code == 0
        assert "No citation markers found." in result.stdout

    def test_extract_to_file(self, document, tmp_path):
        """Test extracted text is written to the output file."""
        output = tmp_path / "out.txt"

        result = runner.invoke(app, ["extract", str(document), "--output", str(output)])

        assert result.exit_code == 0
        assert output.read_text(encoding="utf-8") == DOCUMENT

    def test_extract_unsupported(self, tmp_path):
        """Test an unsupported file type exits with an error."""
        path = tmp_path / "paper.xyz"
        path.write_bytes(b"data")

        result = runner.invoke(app, ["extract", str(path)])

        assert result.exit_code == 1
        assert "Unsupported file type: .xyz" in result.stdout

    def test_export_word(self, document, tmp_path):
        """Test exporting a document to Word."""
        output = tmp_path / "draft.docx"

        result = runner.invoke(
            app, ["export", str(document), "--format", "word", "--output", str(output)]
        )

        assert result.exit_code == 0
        assert output.exists()


class TestCitationCommands:
    """Tests for search and cite, with fake services."""

    def test_search_writes_json(self, document, tmp_path, source):
        """Test search results are saved as JSON."""
        session = fake_session(FakeSearchClient(results=SearchResults(suggested=(source,))))
        output = tmp_path / "results.json"

        with patch("scholarcite.cli.create_session", return_value=session):
            result = runner.invoke(
                app,
                [
                    "search",
                    str(document),
                    "--select",
                    "Aspirin lowers cardiovascular risk.",
                    "--output",
                    str(output),
                ],
            )

        assert result.exit_code == 0
        data = json.loads(output.read_text(encoding="utf-8"))
        assert data["suggested"][0]["title"] == "Aspirin and the Heart"
        assert data["related"] == []

    def test_search_failure(self, document):
        """Test a failed search exits with the user-facing message."""
        session = fake_session(FakeSearchClient(error=SourceSearchError("down")))

        with patch("scholarcite.cli.create_session", return_value=session):
            result = runner.invoke(
                app, ["search", str(document), "--select", "Aspirin lowers cardiovascular risk."]
            )

        assert result.exit_code == 1
        assert "Failed to fetch sources" in result.stdout

    def test_passage_not_found(self, document):
        """Test selecting text that is not in the document."""
        session = fake_session(FakeSearchClient())

        with patch("scholarcite.cli.create_session", return_value=session):
            result = runner.invoke(app, ["search", str(document), "--select", "Missing passage"])

        assert result.exit_code == 1
        assert "Passage not found" in result.stdout

    def test_cite_and_export(self, document, tmp_path, source):
        """Test citing inserts the citation and exports the result."""
        session = fake_session(FakeSearchClient(results=SearchResults(suggested=(source,))))
        output = tmp_path / "cited.pdf"

        with patch("scholarcite.cli.create_session", return_value=session):
            result = runner.invoke(
                app,
                [
                    "cite",
                    str(document),
                    "--select",
                    "Aspirin lowers cardiovascular risk.",
                    "--format",
                    "pdf",
                    "--output",
                    str(output),
                ],
            )

        assert result.exit_code == 0
        assert session.text == (
            "Aspirin lowers cardiovascular risk. (Smith, 2023) More text follows."
        )
        assert len(session.bibliography) == 1
        assert output.read_bytes().startswith(b"%PDF")

    def test_cite_pick_out_of_range(self, document, source):
        """Test picking a source number that does not exist."""
        session = fake_session(FakeSearchClient(results=SearchResults(suggested=(source,))))

        with patch("scholarcite.cli.create_session", return_value=session):
            result = runner.invoke(
                app,
                [
                    "cite",
                    str(document),
                    "--select",
                    "Aspirin lowers cardiovascular risk.",
                    "--pick",
                    "3",
                ],
            )

        assert result.exit_code == 1
        assert session.bibliography == ()
