"""Export of the document and its bibliography to Word, PDF and slides.

Every exporter parses text through :func:`parse_runs`, so asterisk italics
and the math-italic "et al." token render as real italics on each target.
"""

from collections.abc import Iterable
from pathlib import Path
from typing import Union

from docx import Document
from docx.enum.text import WD_BREAK
from docx.shared import Pt, Twips
from pptx import Presentation
from pptx.dml.color import RGBColor
from pptx.util import Inches
from pptx.util import Pt as PptPt
from reportlab.lib import colors
from reportlab.lib.pagesizes import LETTER
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import inch
from reportlab.platypus import PageBreak, Paragraph, SimpleDocTemplate, Spacer

from scholarcite.exceptions import ExportError
from scholarcite.logging import get_logger, log_failure
from scholarcite.models.source import BibliographyEntry
from scholarcite.references.markup import ItalicRun, PlainRun, parse_runs, render_reportlab
from scholarcite.references.styles import CitationStyle

logger = get_logger("documents.exporters")

BODY_FONT = "Calibri"
BODY_FONT_SIZE = Pt(12)
HANGING_INDENT = Twips(720)  # half an inch

# Slide layout, in inches
SLIDE_TOP = 0.5
SLIDE_BOTTOM_LIMIT = 6.5
SLIDE_LEFT = 0.5
SLIDE_TEXT_WIDTH = 9.0
CHARS_PER_SLIDE_LINE = 90
SLIDE_LINE_HEIGHT = 0.3
SLIDE_PARAGRAPH_GAP = 0.1
BIBLIOGRAPHY_PER_SLIDE = 5
BIBLIOGRAPHY_TOP = 1.5
BIBLIOGRAPHY_STEP = 0.8

StyleName = Union[CitationStyle, str]


def _style_name(style: StyleName) -> str:
    return style.value if isinstance(style, CitationStyle) else str(style)


def _export(kind: str, path: Union[str, Path], build) -> Path:
    """Run an exporter body, wrapping any failure in ExportError."""
    path = Path(path)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        build(path)
    except Exception as e:
        log_failure(logger, f"{kind} export", e, {"path": str(path)})
        raise ExportError(f"Failed to export {kind} document: {e}") from e
    logger.info(f"Exported {kind} document to {path}")
    return path


# ==================== Word ====================


def _add_word_runs(paragraph, text: str) -> None:
    for run in parse_runs(text):
        word_run = paragraph.add_run(run.text)
        word_run.italic = isinstance(run, ItalicRun)
        word_run.font.name = BODY_FONT
        word_run.font.size = BODY_FONT_SIZE


def export_word(
    document_text: str,
    entries: Iterable[BibliographyEntry],
    style: StyleName,
    path: Union[str, Path],
) -> Path:
    """
    Write the document and bibliography to a .docx file.

    Layout: one paragraph per line of text, a page break, a "Bibliography"
    heading, a "Style: <name>" subheading and the entries with a hanging
    indent.

    Returns:
        Path of the written file

    Raises:
        ExportError: If the file could not be written
    """
    entries = list(entries)

    def build(target: Path) -> None:
        doc = Document()

        for line in document_text.split("\n"):
            paragraph = doc.add_paragraph()
            paragraph.paragraph_format.space_after = Pt(10)
            _add_word_runs(paragraph, line)

        doc.add_paragraph().add_run().add_break(WD_BREAK.PAGE)
        doc.add_heading("Bibliography", level=1)
        doc.add_heading(f"Style: {_style_name(style)}", level=2)

        for entry in entries:
            paragraph = doc.add_paragraph()
            paragraph.paragraph_format.left_indent = HANGING_INDENT
            paragraph.paragraph_format.first_line_indent = -HANGING_INDENT
            paragraph.paragraph_format.space_after = Pt(10)
            _add_word_runs(paragraph, entry.text)

        doc.save(str(target))

    return _export("Word", path, build)


# ==================== PDF ====================


def export_pdf(
    document_text: str,
    entries: Iterable[BibliographyEntry],
    style: StyleName,
    path: Union[str, Path],
) -> Path:
    """
    Write the document and bibliography to a PDF file.

    Same layout as the Word export, rendered with reportlab from the parsed
    runs.

    Returns:
        Path of the written file

    Raises:
        ExportError: If the file could not be written
    """
    entries = list(entries)

    def build(target: Path) -> None:
        doc = SimpleDocTemplate(
            str(target),
            pagesize=LETTER,
            leftMargin=0.5 * inch,
            rightMargin=0.5 * inch,
            topMargin=0.5 * inch,
            bottomMargin=0.5 * inch,
        )
        styles = getSampleStyleSheet()
        body_style = ParagraphStyle(
            "Body",
            parent=styles["Normal"],
            fontName="Times-Roman",
            fontSize=12,
            leading=16,
            spaceAfter=8,
        )
        style_info = ParagraphStyle(
            "StyleInfo",
            parent=styles["Heading2"],
            textColor=colors.HexColor("#666666"),
            spaceAfter=14,
        )
        entry_style = ParagraphStyle(
            "Entry",
            parent=body_style,
            leftIndent=36,
            firstLineIndent=-36,  # hanging indent
        )

        story = []
        for line in document_text.split("\n"):
            if line.strip():
                story.append(Paragraph(render_reportlab(parse_runs(line)), body_style))
            else:
                story.append(Spacer(1, body_style.leading))

        story.append(PageBreak())
        story.append(Paragraph("Bibliography", styles["Heading1"]))
        story.append(Paragraph(render_reportlab([PlainRun(f"Style: {_style_name(style)}")]), style_info))
        for entry in entries:
            story.append(Paragraph(render_reportlab(parse_runs(entry.text)), entry_style))

        doc.build(story)

    return _export("PDF", path, build)


# ==================== Slides ====================


def estimate_paragraph_height(paragraph: str) -> float:
    """Rough height in inches a paragraph takes on a content slide."""
    lines = -(-len(paragraph) // CHARS_PER_SLIDE_LINE)
    return lines * SLIDE_LINE_HEIGHT + SLIDE_PARAGRAPH_GAP


def paginate_paragraphs(paragraphs: list[str]) -> list[list[tuple[str, float]]]:
    """Lay out paragraphs on content slides by estimated height.

    A new slide starts once the running top position has passed the bottom
    limit.

    Returns:
        One list per slide of (paragraph, top position in inches)
    """
    pages: list[list[tuple[str, float]]] = [[]]
    top = SLIDE_TOP
    for paragraph in paragraphs:
        if top > SLIDE_BOTTOM_LIMIT:
            pages.append([])
            top = SLIDE_TOP
        pages[-1].append((paragraph, top))
        top += estimate_paragraph_height(paragraph)
    return pages


def _add_textbox(slide, text_runs, top: float, size: int, bold: bool = False, color=None):
    box = slide.shapes.add_textbox(
        left=Inches(SLIDE_LEFT), top=Inches(top), width=Inches(SLIDE_TEXT_WIDTH), height=Inches(0.5)
    )
    text_frame = box.text_frame
    text_frame.word_wrap = True
    paragraph = text_frame.paragraphs[0]
    for run in text_runs:
        pptx_run = paragraph.add_run()
        pptx_run.text = run.text
        pptx_run.font.size = PptPt(size)
        pptx_run.font.bold = bold
        pptx_run.font.italic = isinstance(run, ItalicRun)
        if color is not None:
            pptx_run.font.color.rgb = color
    return box


def export_slides(
    document_text: str,
    entries: Iterable[BibliographyEntry],
    style: StyleName,
    path: Union[str, Path],
) -> Path:
    """
    Write the document and bibliography to a .pptx slide deck.

    Layout: a title slide, content slides holding the non-empty paragraphs
    (paginated by estimated height) and, when there are entries, bibliography
    slides with five entries each.

    Returns:
        Path of the written file

    Raises:
        ExportError: If the file could not be written
    """
    entries = list(entries)
    paragraphs = [p for p in document_text.split("\n") if p.strip()]

    def build(target: Path) -> None:
        prs = Presentation()
        blank_layout = prs.slide_layouts[6] if len(prs.slide_layouts) > 6 else prs.slide_layouts[0]

        title_slide = prs.slides.add_slide(blank_layout)
        _add_textbox(title_slide, [PlainRun("Research Paper")], 1.5, 36, bold=True)
        _add_textbox(
            title_slide,
            [PlainRun("Generated by ScholarCite")],
            3.0,
            18,
            color=RGBColor(0x88, 0x88, 0x88),
        )

        for page in paginate_paragraphs(paragraphs):
            slide = prs.slides.add_slide(blank_layout)
            for paragraph, top in page:
                _add_textbox(slide, parse_runs(paragraph), top, 16)

        for start in range(0, len(entries), BIBLIOGRAPHY_PER_SLIDE):
            slide = prs.slides.add_slide(blank_layout)
            if start == 0:
                _add_textbox(slide, [PlainRun("Bibliography")], SLIDE_TOP, 24, bold=True)
                _add_textbox(
                    slide,
                    [PlainRun(f"Style: {_style_name(style)}")],
                    1.0,
                    12,
                    color=RGBColor(0x66, 0x66, 0x66),
                )
            else:
                _add_textbox(slide, [PlainRun("Bibliography (cont.)")], SLIDE_TOP, 24, bold=True)

            top = BIBLIOGRAPHY_TOP
            for entry in entries[start : start + BIBLIOGRAPHY_PER_SLIDE]:
                _add_textbox(slide, parse_runs(entry.text), top, 12)
                top += BIBLIOGRAPHY_STEP

        prs.save(str(target))

    return _export("slides", path, build)
