"""Plain-text extraction from imported documents.

Supported formats:
- .txt: UTF-8 text (a byte order mark is tolerated)
- .docx / .doc: Word paragraphs, one per line (python-docx)
- .pdf: page text, pages separated by a blank line (PyMuPDF, then pdfplumber)
- .pptx: slide text in slide order, one block per slide (python-pptx)
"""

import io
import logging
from pathlib import Path
from typing import Union

import docx
import fitz  # PyMuPDF
import pdfplumber
from pptx import Presentation
from pptx.oxml.ns import qn

from scholarcite.exceptions import DocumentParseError, UnsupportedFileTypeError
from scholarcite.logging import get_logger, log_failure

logger = get_logger("documents.importer")

SUPPORTED_EXTENSIONS = (".txt", ".docx", ".doc", ".pdf", ".pptx")


def file_extension(filename: str) -> str:
    """Lower-cased extension including the dot, or "" when there is none."""
    return Path(filename).suffix.lower()


def extract_text(data: bytes, filename: str) -> str:
    """
    Extract plain text from a document.

    Args:
        data: Raw file contents
        filename: Original file name, used only for its extension

    Returns:
        The document's plain text

    Raises:
        UnsupportedFileTypeError: If the extension is not supported
        DocumentParseError: If the file is corrupt or unreadable
    """
    extension = file_extension(filename)
    readers = {
        ".txt": _read_txt,
        ".docx": _read_word,
        ".doc": _read_word,
        ".pdf": _read_pdf,
        ".pptx": _read_pptx,
    }
    reader = readers.get(extension)
    if reader is None:
        raise UnsupportedFileTypeError(extension)

    text = reader(data)
    logger.info(f"Extracted {len(text)} characters from {filename}")
    return text


def extract_text_from_path(path: Union[str, Path]) -> str:
    """Read a file from disk and extract its text.

    Raises:
        DocumentParseError: If the file cannot be opened or read
    """
    path = Path(path)
    try:
        data = path.read_bytes()
    except OSError as e:
        log_failure(logger, "Document import", e, {"path": str(path)})
        raise DocumentParseError(f"Failed to open {path.name}.") from e
    return extract_text(data, path.name)


def _read_txt(data: bytes) -> str:
    try:
        return data.decode("utf-8-sig")
    except UnicodeDecodeError as e:
        log_failure(logger, "Text import", e)
        raise DocumentParseError("Failed to read text file.") from e


def _read_word(data: bytes) -> str:
    # Legacy binary .doc files are not OOXML and fail here as unreadable
    try:
        document = docx.Document(io.BytesIO(data))
        return "\n".join(paragraph.text for paragraph in document.paragraphs)
    except Exception as e:
        log_failure(logger, "Word import", e)
        raise DocumentParseError("Failed to read Word document.") from e


def _read_pdf(data: bytes) -> str:
    """Extract PDF text with PyMuPDF, falling back to pdfplumber."""
    try:
        text = _read_pdf_pymupdf(data)
        if text:
            return text
        logger.warning("PyMuPDF found no text, trying pdfplumber")
    except Exception as e:
        log_failure(logger, "PDF import (PyMuPDF)", e, level=logging.WARNING)

    try:
        return _read_pdf_pdfplumber(data)
    except Exception as e:
        log_failure(logger, "PDF import (pdfplumber)", e)
        raise DocumentParseError("Failed to read PDF document.") from e


def _read_pdf_pymupdf(data: bytes) -> str:
    with fitz.open(stream=data, filetype="pdf") as doc:
        if doc.is_encrypted:
            raise DocumentParseError("PDF is encrypted")
        pages = [doc[page_num].get_text() for page_num in range(doc.page_count)]
    return _join_pages(pages)


def _read_pdf_pdfplumber(data: bytes) -> str:
    with pdfplumber.open(io.BytesIO(data)) as pdf:
        pages = [page.extract_text() or "" for page in pdf.pages]
    return _join_pages(pages)


def _join_pages(pages: list[str]) -> str:
    return "\n\n".join(page.strip() for page in pages if page.strip()).strip()


def _read_pptx(data: bytes) -> str:
    try:
        presentation = Presentation(io.BytesIO(data))
        blocks = []
        for slide in presentation.slides:
            # Every <a:t> run in document order, including tables and groups
            runs = [node.text or "" for node in slide.element.iter(qn("a:t"))]
            slide_text = " ".join(runs).strip()
            if slide_text:
                blocks.append(slide_text)
        return "\n\n".join(blocks)
    except Exception as e:
        log_failure(logger, "PowerPoint import", e)
        raise DocumentParseError("Failed to read PowerPoint presentation.") from e
