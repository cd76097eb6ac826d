"""Citation text transformation and bibliography consistency.

This module provides the citation core of ScholarCite:
- Emphasis markup normalization (plain, *asterisk* italics, math-italic "et al.")
- Detection of (Author, Year) citation markers in prose
- A deduplicated, alphabetically ordered bibliography store
- Insertion of formatted citations at the selection point
- Citation style enumeration and a deterministic fallback formatter

Example usage:
    from scholarcite.references import (
        BibliographyStore,
        CitationInsertionEngine,
        find_citations,
    )

    store = BibliographyStore()
    engine = CitationInsertionEngine()

    result = engine.insert_citation(text, selection_end, citation, source, store)
    for marker in find_citations(result.text):
        print(marker.matched_text, marker.start, marker.end)
"""

from scholarcite.references.bibliography import BibliographyStore, collation_key
from scholarcite.references.detector import (
    CitationMarker,
    CitationMarkerDetector,
    find_citations,
)
from scholarcite.references.formatter import fallback_citation
from scholarcite.references.insertion import CitationInsertionEngine, InsertionResult
from scholarcite.references.markup import (
    ET_AL_TOKEN,
    ItalicRun,
    PlainRun,
    Run,
    denormalize_et_al,
    normalize_et_al,
    parse_runs,
    render_markdown,
    render_plain,
    render_reportlab,
    split_emphasis,
    to_plain,
)
from scholarcite.references.styles import (
    CITATION_STYLES,
    CitationStyle,
    parse_style,
    short_names,
)

__all__ = [
    # Styles
    "CITATION_STYLES",
    "CitationStyle",
    "parse_style",
    "short_names",
    # Markup
    "ET_AL_TOKEN",
    "ItalicRun",
    "PlainRun",
    "Run",
    "denormalize_et_al",
    "normalize_et_al",
    "parse_runs",
    "render_markdown",
    "render_plain",
    "render_reportlab",
    "split_emphasis",
    "to_plain",
    # Detector
    "CitationMarker",
    "CitationMarkerDetector",
    "find_citations",
    # Bibliography
    "BibliographyStore",
    "collation_key",
    # Insertion
    "CitationInsertionEngine",
    "InsertionResult",
    "fallback_citation",
]
