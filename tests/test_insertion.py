"""Tests for citation insertion."""

import pytest

from scholarcite.exceptions import InvalidSelectionError, UserInputError
from scholarcite.models.source import CitationResult, Source
from scholarcite.references.bibliography import BibliographyStore
from scholarcite.references.formatter import fallback_citation
from scholarcite.references.insertion import CitationInsertionEngine
from scholarcite.references.markup import ET_AL_TOKEN


@pytest.fixture
def engine():
    """Create an insertion engine."""
    return CitationInsertionEngine()


@pytest.fixture
def source():
    """Create a sample source."""
    return Source(
        title="A Study of Things",
        author="Doe, J.",
        year="2024",
        publication="Journal of Things",
        url="https://example.org/things",
    )


@pytest.fixture
def citation():
    """Create a formatted citation."""
    return CitationResult(
        in_text="(Doe, 2024)",
        bibliography="Doe, J. (2024) 'A Study of Things', *Journal of Things*.",
    )


class TestSplice:
    """Tests for splicing in-text citations."""

    def test_end_of_text(self, engine, source, citation):
        """Test inserting at the end adds one separating space."""
        result = engine.insert_citation("Hello world", 11, citation, source, BibliographyStore())

        assert result.text == "Hello world (Doe, 2024)"
        assert result.inserted is True
        assert result.bibliography.texts == [citation.bibliography]

    def test_no_double_space(self, engine):
        """Test no separator is added after existing whitespace."""
        assert engine.splice("Hello world ", 12, "(Doe, 2024)") == "Hello world (Doe, 2024)"

    def test_after_is_kept_verbatim(self, engine):
        """Test text after the selection follows the citation directly."""
        text = "Aspirin lowers risk. More text."

        assert engine.splice(text, 20, "(Doe, 2024)") == "Aspirin lowers risk. (Doe, 2024) More text."

    def test_mid_sentence(self, engine):
        """Test inserting before punctuation."""
        assert engine.splice("Aspirin works.", 13, "(Doe, 2024)") == "Aspirin works (Doe, 2024)."

    def test_start_of_text(self, engine):
        """Test inserting at offset zero."""
        assert engine.splice("Text", 0, "(Doe, 2024)") == " (Doe, 2024)Text"

    def test_et_al_becomes_token(self, engine):
        """Test et al. in the in-text citation is written as the math-italic token."""
        spliced = engine.splice("Claim", 5, "(Smith et al., 2023)")

        assert spliced == f"Claim (Smith {ET_AL_TOKEN}, 2023)"

    @pytest.mark.parametrize("offset", [-1, 12])
    def test_offset_out_of_range(self, engine, offset):
        """Test offsets outside the text are rejected as user input errors."""
        with pytest.raises(InvalidSelectionError):
            engine.splice("Hello world", offset, "(Doe, 2024)")

        assert issubclass(InvalidSelectionError, UserInputError)


class TestInsertCitation:
    """Tests for the bibliography side of insertion."""

    def test_input_store_not_mutated(self, engine, source, citation):
        """Test the passed-in store is left untouched."""
        store = BibliographyStore()

        result = engine.insert_citation("Hello world", 11, citation, source, store)

        assert len(store) == 0
        assert len(result.bibliography) == 1

    def test_duplicate_entry_not_added(self, engine, source, citation):
        """Test citing the same source twice keeps one entry but inserts both markers."""
        first = engine.insert_citation("A claim.", 8, citation, source, BibliographyStore())
        second = engine.insert_citation(first.text, len(first.text), citation, source, first.bibliography)

        assert second.inserted is False
        assert len(second.bibliography) == 1
        assert second.text.count("(Doe, 2024)") == 2

    def test_bibliography_token_normalized(self, engine, source):
        """Test the token in a bibliography string is stored as asterisk italics."""
        citation = CitationResult(
            in_text="(Smith et al., 2023)",
            bibliography=f"Smith {ET_AL_TOKEN} (2023) *Title*.",
        )

        result = engine.insert_citation("Claim", 5, citation, source, BibliographyStore())

        assert result.entry.text == "Smith *et al.* (2023) *Title*."
        assert result.entry.source == source


class TestFallbackCitation:
    """Tests for the deterministic fallback citation."""

    def test_fallback_format(self, source):
        """Test fallback strings built from source fields."""
        result = fallback_citation(source)

        assert result.in_text == "(Doe, J., 2024)"
        assert result.bibliography == (
            "Doe, J. (2024). A Study of Things. Journal of Things. "
            "Available at: https://example.org/things"
        )

    def test_fallback_is_deterministic(self, source):
        """Test the same source always gives the same citation."""
        assert fallback_citation(source) == fallback_citation(source)

    def test_fallback_missing_fields(self):
        """Test empty author and year are used as they are."""
        source = Source(title="T", author="", year="", publication="P", url="u")

        result = fallback_citation(source)

        assert result.in_text == "(, )"
        assert result.bibliography == " (). T. P. Available at: u"
