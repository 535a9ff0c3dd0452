"""
Document text extraction for PDF, DOCX and plain-text uploads.

Returns a ParsedDocument with the full text (page/paragraph order preserved,
DOCX tables rendered as pipe-delimited rows) and metadata (page_count,
detected_language, word_count, title, author, subject, file_type).
Structure analysis of the text happens separately in ``structure``.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import fitz  # PyMuPDF
from docx import Document as DocxDocument
from langdetect import DetectorFactory, detect as _langdetect_fn
from langdetect.lang_detect_exception import LangDetectException

from docsight.exceptions import UnsupportedFormatError

logger = logging.getLogger(__name__)

# langdetect is probabilistic; a fixed seed keeps results reproducible
DetectorFactory.seed = 0

LANGUAGE_SAMPLE_CHARS = 3000
LANGUAGE_MIN_WORDS = 20


# ---------------------------------------------------------------------------
# Data structures
# ---------------------------------------------------------------------------

@dataclass
class ParsedDocument:
    """
    Output of the DocumentParser.

    Attributes:
        full_text: Complete extracted text.
        metadata:  Dict with keys: page_count, detected_language, word_count,
                   title, author, subject, file_type, and any format-specific
                   fields.
    """

    full_text: str
    metadata: Dict[str, Any] = field(default_factory=dict)


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------

class DocumentParser:
    """Extracts text from PDF, DOCX and plain-text documents."""

    async def parse_document(self, file_path: str, file_type: str) -> ParsedDocument:
        """
        Parse a document file and return its text and metadata.

        Args:
            file_path: Absolute path to the file on disk.
            file_type: Extension with or without dot, e.g. ".pdf" or "docx".

        Raises:
            UnsupportedFormatError: Unsupported or legacy file type.
            RuntimeError:           Password-protected or unreadable file.
        """
        ft = file_type.lower().lstrip(".")
        if ft == "pdf":
            return self._parse_pdf(file_path)
        elif ft == "docx":
            return self._parse_docx(file_path)
        elif ft in ("txt", "md"):
            return self._parse_text(file_path, ft)
        elif ft == "doc":
            raise UnsupportedFormatError(
                "Legacy .doc files are not supported. "
                "Please save the document as .docx and upload it again."
            )
        else:
            raise UnsupportedFormatError(f"Unsupported file type: {file_type!r}")

    # ------------------------------------------------------------------
    # PDF
    # ------------------------------------------------------------------

    def _parse_pdf(self, file_path: str) -> ParsedDocument:
        """Extract page text in reading order with PyMuPDF."""
        try:
            doc = fitz.open(file_path)
        except Exception as exc:
            raise RuntimeError(f"Cannot open PDF file: {exc}") from exc

        if doc.needs_pass:
            doc.close()
            raise RuntimeError(
                "PDF is password-protected. Please provide an unlocked copy."
            )

        raw_meta = doc.metadata or {}
        page_count = doc.page_count
        page_texts: List[str] = []
        try:
            for page in doc:
                # sort=True orders blocks top-to-bottom, left-to-right
                page_texts.append(page.get_text("text", sort=True).rstrip())
        finally:
            doc.close()

        full_text = "\n".join(t for t in page_texts if t)
        metadata = _base_metadata(full_text, "pdf")
        metadata.update(
            {
                "page_count": page_count,
                "title": raw_meta.get("title", ""),
                "author": raw_meta.get("author", ""),
                "subject": raw_meta.get("subject", ""),
                "creation_date": raw_meta.get("creationDate", ""),
            }
        )
        return ParsedDocument(full_text=full_text, metadata=metadata)

    # ------------------------------------------------------------------
    # DOCX
    # ------------------------------------------------------------------

    def _parse_docx(self, file_path: str) -> ParsedDocument:
        """Extract paragraph text, then tables as ``a | b | c`` rows."""
        try:
            doc = DocxDocument(file_path)
        except Exception as exc:
            raise RuntimeError(
                "We couldn't read that Word document. Make sure it's a valid "
                f".docx file that isn't password protected or corrupted ({exc})."
            ) from exc

        parts: List[str] = [para.text for para in doc.paragraphs]

        for table in doc.tables:
            rows = _format_table_rows(
                [[cell.text for cell in row.cells] for row in table.rows]
            )
            if rows:
                parts.append(rows)

        core = doc.core_properties
        full_text = "\n".join(parts).strip()
        metadata = _base_metadata(full_text, "docx")
        metadata.update(
            {
                "page_count": None,   # python-docx cannot report rendered page count
                "title": core.title or "",
                "author": core.author or "",
                "subject": core.subject or "",
                "created": str(core.created) if core.created else "",
                "modified": str(core.modified) if core.modified else "",
            }
        )
        return ParsedDocument(full_text=full_text, metadata=metadata)

    # ------------------------------------------------------------------
    # Plain text
    # ------------------------------------------------------------------

    def _parse_text(self, file_path: str, file_type: str) -> ParsedDocument:
        try:
            raw = Path(file_path).read_bytes()
        except OSError as exc:
            raise RuntimeError(f"Cannot read text file: {exc}") from exc

        full_text = raw.decode("utf-8", errors="replace")
        metadata = _base_metadata(full_text, file_type)
        metadata.update({"page_count": None, "encoding": "utf-8"})
        return ParsedDocument(full_text=full_text, metadata=metadata)


# ---------------------------------------------------------------------------
# Module-level helpers
# ---------------------------------------------------------------------------

def _base_metadata(full_text: str, file_type: str) -> Dict[str, Any]:
    word_count = len(full_text.split())
    return {
        "detected_language": _detect_language(full_text[:LANGUAGE_SAMPLE_CHARS]),
        "word_count": word_count,
        "reading_time_minutes": round(word_count / 200, 1),
        "file_type": file_type,
    }


def _detect_language(sample: str) -> str:
    """Detect the language of a text sample; returns an ISO 639-1 code or 'unknown'."""
    if len(sample.split()) < LANGUAGE_MIN_WORDS:
        return "unknown"
    try:
        return _langdetect_fn(sample)
    except LangDetectException:
        return "unknown"


def _format_table_rows(rows: List[List[Optional[str]]]) -> str:
    """Format a list-of-lists table as pipe-delimited text."""
    lines: List[str] = []
    for row in rows:
        cells = [str(cell).strip() if cell is not None else "" for cell in row]
        if any(cells):
            lines.append(" | ".join(cells))
    return "\n".join(lines)
