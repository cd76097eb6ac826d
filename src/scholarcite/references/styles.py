"""Citation style definitions."""

from enum import Enum
from typing import Union

from scholarcite.exceptions import UnknownStyleError


class CitationStyle(str, Enum):
    """Supported citation styles.

    The value is the display name handed verbatim to the formatting service,
    which owns all style-specific rendering rules.
    """

    HARVARD = "Cite Them Right Harvard"
    APA = "APA (7th Edition)"
    MLA = "MLA (9th Edition)"
    CHICAGO = "Chicago"
    VANCOUVER = "Vancouver"
    IEEE = "IEEE"


# Order in which styles are offered to the user
CITATION_STYLES: tuple[CitationStyle, ...] = (
    CitationStyle.HARVARD,
    CitationStyle.APA,
    CitationStyle.MLA,
    CitationStyle.CHICAGO,
    CitationStyle.VANCOUVER,
    CitationStyle.IEEE,
)

_ALIASES = {
    "harvard": CitationStyle.HARVARD,
    "apa": CitationStyle.APA,
    "apa7": CitationStyle.APA,
    "mla": CitationStyle.MLA,
    "mla9": CitationStyle.MLA,
    "chicago": CitationStyle.CHICAGO,
    "vancouver": CitationStyle.VANCOUVER,
    "ieee": CitationStyle.IEEE,
}


def parse_style(style: Union[CitationStyle, str]) -> CitationStyle:
    """Resolve a style from an enum member, its display name or a short name.

    Args:
        style: CitationStyle, display name ("APA (7th Edition)") or short
            name ("apa", "harvard"), case-insensitive

    Returns:
        The matching CitationStyle

    Raises:
        UnknownStyleError: If the name matches no supported style
    """
    if isinstance(style, CitationStyle):
        return style

    wanted = style.strip().lower()
    for member in CitationStyle:
        if wanted in (member.value.lower(), member.name.lower()):
            return member
    if wanted in _ALIASES:
        return _ALIASES[wanted]

    valid = ", ".join(s.value for s in CITATION_STYLES)
    raise UnknownStyleError(f"Unknown citation style '{style}'. Must be one of: {valid}")


def short_names(style: CitationStyle) -> list[str]:
    """Short names accepted by :func:`parse_style` for a style."""
    return sorted(alias for alias, target in _ALIASES.items() if target == style)
