"""Emphasis markup normalization.

Text moves through three encodings of emphasis:

- plain: no markup at all (clipboard, non-rich display)
- asterisk-delimited: ``*Journal Name*`` marks italics (bibliography, export)
- the Unicode mathematical-italic "et al." token, used inside in-text
  citations embedded in the document so the marker reads as italic without
  rich-text spans

Everything that renders emphasis goes through :func:`parse_runs`, which
produces a closed list of :class:`PlainRun` / :class:`ItalicRun` segments, and
one of the per-destination renderers below.
"""

import html
import re
from dataclasses import dataclass
from typing import Union

# Mathematical italic small e, t, a, l (U+1D452, U+1D461, U+1D44E, U+1D459)
ET_AL_TOKEN = "\U0001d452\U0001d461 \U0001d44e\U0001d459."
ET_AL_PLAIN = "et al."
ET_AL_ASTERISK = f"*{ET_AL_PLAIN}*"

# A single asterisk, a non-empty interior without asterisks or line breaks,
# and a closing asterisk
EMPHASIS_PATTERN = re.compile(r"\*([^*\n]+)\*")


@dataclass(frozen=True)
class PlainRun:
    """Unemphasized text."""

    text: str


@dataclass(frozen=True)
class ItalicRun:
    """Italic text, without its delimiters."""

    text: str


Run = Union[PlainRun, ItalicRun]


def split_emphasis(text: str) -> list[Run]:
    """Split asterisk-delimited text into plain and italic runs.

    Unmatched asterisks and ``**`` pairs stay literal. Adjacent plain pieces
    are merged so runs always alternate where possible.

    Args:
        text: Text using ``*italic*`` markup

    Returns:
        Ordered list of runs; empty for empty input
    """
    runs: list[Run] = []

    def add_plain(piece: str) -> None:
        if not piece:
            return
        if runs and isinstance(runs[-1], PlainRun):
            runs[-1] = PlainRun(runs[-1].text + piece)
        else:
            runs.append(PlainRun(piece))

    last_end = 0
    for match in EMPHASIS_PATTERN.finditer(text):
        add_plain(text[last_end : match.start()])
        runs.append(ItalicRun(match.group(1)))
        last_end = match.end()
    add_plain(text[last_end:])

    return runs


def to_plain(text: str) -> str:
    """Strip every asterisk, leaving bare characters (clipboard form)."""
    return text.replace("*", "")


def normalize_et_al(text: str) -> str:
    """Replace the math-italic "et al." token with ``*et al.*``."""
    return text.replace(ET_AL_TOKEN, ET_AL_ASTERISK)


def denormalize_et_al(text: str) -> str:
    """Replace ``*et al.*`` and bare "et al." with the math-italic token.

    Used for in-text citations that are spliced into document prose.
    Applying it twice is harmless.
    """
    return text.replace(ET_AL_ASTERISK, ET_AL_TOKEN).replace(ET_AL_PLAIN, ET_AL_TOKEN)


def parse_runs(text: str) -> list[Run]:
    """Parse document or bibliography text into runs for rendering.

    Accepts either encoding of "et al." so document text and bibliography
    entries render italics the same way on every export target.
    """
    return split_emphasis(normalize_et_al(text))


# ==================== Renderers ====================


def render_plain(runs: list[Run]) -> str:
    """Render runs without any emphasis."""
    return "".join(run.text for run in runs)


def render_markdown(runs: list[Run]) -> str:
    """Render runs back to asterisk-delimited form."""
    return "".join(f"*{run.text}*" if isinstance(run, ItalicRun) else run.text for run in runs)


def render_reportlab(runs: list[Run]) -> str:
    """Render runs as reportlab paragraph markup with escaped text."""
    parts = []
    for run in runs:
        escaped = html.escape(run.text, quote=False)
        parts.append(f"<i>{escaped}</i>" if isinstance(run, ItalicRun) else escaped)
    return "".join(parts)
