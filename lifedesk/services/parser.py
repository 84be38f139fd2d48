# =============================================================================
# Text Extraction — Docling for PDF/DOCX, UTF-8 for Plain Text
# =============================================================================
#
# Turns an uploaded file into the plain text stored as a document's content.
#
#   PDF, DOCX             → Docling DocumentConverter, items in reading order
#   text/*, .txt .md
#   .csv .json            → decoded as UTF-8 (bad bytes replaced)
#   anything else         → UnsupportedFileTypeError
#
# DESIGN DECISION: Walk Docling items instead of export_to_markdown().
# Headings and paragraphs come out as plain lines; tables are exported as
# markdown because that is the form a language model reads best. The text
# is joined with blank lines, one block per item.
#
# Docling is synchronous and CPU-heavy; callers run extract_text() in a
# worker thread.
# =============================================================================

from __future__ import annotations

import logging
from io import BytesIO
from pathlib import PurePath

from docling.datamodel.base_models import DocumentStream, InputFormat
from docling.datamodel.pipeline_options import PdfPipelineOptions
from docling.document_converter import DocumentConverter, PdfFormatOption
from docling_core.types.doc.labels import DocItemLabel

logger = logging.getLogger(__name__)

PDF_MIME = "application/pdf"
DOCX_MIME = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"

TEXT_EXTENSIONS = {".txt", ".md", ".csv", ".json"}
DOCLING_FORMATS = {
    PDF_MIME: (".pdf", InputFormat.PDF),
    DOCX_MIME: (".docx", InputFormat.DOCX),
}

_TEXT_LABELS = (
    DocItemLabel.SECTION_HEADER,
    DocItemLabel.TITLE,
    DocItemLabel.TEXT,
    DocItemLabel.LIST_ITEM,
    DocItemLabel.CAPTION,
    DocItemLabel.FOOTNOTE,
)


class UnsupportedFileTypeError(ValueError):
    """The upload is neither a Docling format nor plain text."""


# ---------------------------------------------------------------------------
# Docling Converter — Lazy Singleton
# ---------------------------------------------------------------------------
# Initialization loads layout models (a few seconds on first use), so one
# converter is shared by every upload.
# ---------------------------------------------------------------------------

_converter: DocumentConverter | None = None


def _get_converter() -> DocumentConverter:
    """Lazily initialize and cache the Docling DocumentConverter."""
    global _converter
    if _converter is None:
        logger.info(
            "Initializing Docling DocumentConverter "
            "(first use, may take a few seconds)..."
        )
        pipeline_options = PdfPipelineOptions()
        pipeline_options.do_table_structure = True
        pipeline_options.do_ocr = True

        _converter = DocumentConverter(
            allowed_formats=[InputFormat.PDF, InputFormat.DOCX],
            format_options={
                InputFormat.PDF: PdfFormatOption(pipeline_options=pipeline_options),
            },
        )
        logger.info("Docling DocumentConverter initialized")
    return _converter


# ---------------------------------------------------------------------------
# Type Detection
# ---------------------------------------------------------------------------


def _extension(filename: str | None) -> str:
    return PurePath(filename or "").suffix.lower()


def is_docling_type(content_type: str | None, filename: str | None) -> bool:
    ext = _extension(filename)
    return content_type in DOCLING_FORMATS or ext in {e for e, _ in DOCLING_FORMATS.values()}


def is_text_type(content_type: str | None, filename: str | None) -> bool:
    return (content_type or "").startswith("text/") or _extension(filename) in TEXT_EXTENSIONS


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def extract_text(data: bytes, filename: str | None, content_type: str | None) -> str:
    """
    Extract plain text from an uploaded file.

    Raises:
        UnsupportedFileTypeError: For any type other than PDF, DOCX or text.
        RuntimeError: If Docling fails to convert the document.
    """
    if is_docling_type(content_type, filename):
        return _extract_with_docling(data, filename or "upload")
    if is_text_type(content_type, filename):
        return data.decode("utf-8", errors="replace")

    raise UnsupportedFileTypeError(
        f"Unsupported file type '{content_type or 'unknown'}' for "
        f"'{filename or 'upload'}'. Upload a PDF, DOCX or text file."
    )


def _extract_with_docling(data: bytes, filename: str) -> str:
    logger.info("Parsing %s with Docling (%d bytes)", filename, len(data))
    converter = _get_converter()

    try:
        result = converter.convert(DocumentStream(name=filename, stream=BytesIO(data)))
    except Exception as exc:
        raise RuntimeError(f"Docling failed to parse '{filename}': {exc}") from exc

    blocks: list[str] = []
    tables = 0
    for item, _level in result.document.iterate_items():
        label = getattr(item, "label", None)
        if label == DocItemLabel.TABLE:
            table_md = _table_to_markdown(item, result.document)
            if table_md:
                blocks.append(table_md)
                tables += 1
        elif label in _TEXT_LABELS:
            text = getattr(item, "text", "").strip()
            if text:
                blocks.append(text)

    logger.info(
        "Parsed '%s': %d blocks (%d tables)", filename, len(blocks), tables,
    )
    return "\n\n".join(blocks)


def _table_to_markdown(table_item: object, document: object) -> str:
    """Markdown for a Docling TableItem, or its plain text if export fails."""
    try:
        if hasattr(table_item, "export_to_markdown"):
            return table_item.export_to_markdown(doc=document)
    except Exception as exc:
        logger.warning("Table export to markdown failed: %s", exc)

    text = getattr(table_item, "text", "")
    return text.strip() if text else ""
