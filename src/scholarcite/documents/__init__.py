"""Document import and export."""

from scholarcite.documents.exporters import (
    estimate_paragraph_height,
    export_pdf,
    export_slides,
    export_word,
    paginate_paragraphs,
)
from scholarcite.documents.importer import (
    SUPPORTED_EXTENSIONS,
    extract_text,
    extract_text_from_path,
    file_extension,
)

__all__ = [
    # Import
    "SUPPORTED_EXTENSIONS",
    "extract_text",
    "extract_text_from_path",
    "file_extension",
    # Export
    "estimate_paragraph_height",
    "export_pdf",
    "export_slides",
    "export_word",
    "paginate_paragraphs",
]
