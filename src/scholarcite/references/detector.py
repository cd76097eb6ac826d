"""Citation marker detector for parenthetical author-year citations."""

import re
from dataclasses import dataclass


@dataclass(frozen=True)
class CitationMarker:
    """A citation marker found in document text.

    Attributes:
        matched_text: The marker including its parentheses
        start: Offset of the opening parenthesis
        end: Offset just past the closing parenthesis
    """

    matched_text: str
    start: int
    end: int


class CitationMarkerDetector:
    """Finds parenthetical author-year markers such as ``(Smith et al., 2023)``.

    Matches:
    - (Smith, 2023)
    - (Smith et al., 2023), including the math-italic "et al." token
    - (Smith & Doe, 2023), (Lee-Park, 2020), (St. John, 1999)

    Does not match:
    - (Smith 2023): missing comma
    - (smith, 2023): lowercase start
    - (Smith, 23): year is not four digits

    The detector holds no state; callers re-run it whenever the text changes.
    """

    # "(" + ASCII capital + letters/whitespace/.&- + optional " et al." + ", " + 4 digits + ")"
    # [^\W\d_] is any Unicode letter, which covers the math-italic et al. token
    CITATION_PATTERN = re.compile(r"\([A-Z](?:[^\W\d_]|[\s.&-])+(?: et al\.)?, [0-9]{4}\)")

    def find_citations(self, text: str) -> list[CitationMarker]:
        """Find all citation markers, left to right and non-overlapping.

        Args:
            text: Document text

        Returns:
            List of markers with their offsets
        """
        return [
            CitationMarker(matched_text=match.group(0), start=match.start(), end=match.end())
            for match in self.CITATION_PATTERN.finditer(text)
        ]

    def count_citations(self, text: str) -> int:
        """Count citation markers in text."""
        return len(self.find_citations(text))

    def highlight_segments(self, text: str) -> list[tuple[str, bool]]:
        """Split text into pieces flagged as citation marker or not.

        Concatenating the pieces gives back the original text, which is what a
        highlighting layer drawn over the editor needs.

        Args:
            text: Document text

        Returns:
            List of (piece, is_marker) tuples
        """
        segments: list[tuple[str, bool]] = []
        last_end = 0
        for marker in self.find_citations(text):
            if marker.start > last_end:
                segments.append((text[last_end : marker.start], False))
            segments.append((marker.matched_text, True))
            last_end = marker.end
        if last_end < len(text):
            segments.append((text[last_end:], False))
        return segments


_default_detector = CitationMarkerDetector()


def find_citations(text: str) -> list[CitationMarker]:
    """Find citation markers using a shared detector."""
    return _default_detector.find_citations(text)
