"""Deterministic citation formatting used when the formatting service fails."""

from scholarcite.models.source import CitationResult, Source


def fallback_citation(source: Source) -> CitationResult:
    """Build a minimal citation from the source fields alone.

    Format:
    In-text: (Author, Year)
    Bibliography: Author (Year). Title. Publication. Available at: URL

    Fields are used verbatim, even when empty. The same source always yields
    the same strings.

    Args:
        source: Source to cite

    Returns:
        CitationResult built without any external help
    """
    return CitationResult(
        in_text=f"({source.author}, {source.year})",
        bibliography=(
            f"{source.author} ({source.year}). {source.title}. {source.publication}. "
            f"Available at: {source.url}"
        ),
    )
