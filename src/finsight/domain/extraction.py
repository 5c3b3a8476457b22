"""Text/table extraction from raw statement files.

CSV input becomes a sequence of row mappings (header -> cell text); PDF input
is flattened into one ordered sequence of text lines.
"""

import csv
import io
from pathlib import PurePath
from typing import Optional

import pdfplumber

from finsight.domain.entities import ExtractedDocument
from finsight.domain.errors import UnsupportedFormatError, unsupported_format
from finsight.logging_setup import get_logger

TABULAR = "tabular"
DOCUMENT = "document"

TABULAR_MIME_TYPES = frozenset(
    {
        "text/csv",
        "application/csv",
        "text/comma-separated-values",
        "application/vnd.ms-excel",
    }
)
DOCUMENT_MIME_TYPES = frozenset({"application/pdf", "application/x-pdf"})

TABULAR_EXTENSIONS = frozenset({".csv"})
DOCUMENT_EXTENSIONS = frozenset({".pdf"})

_logger = get_logger("finsight.domain.extraction")


def detect_format(mime_type: Optional[str], filename: Optional[str] = None) -> str:
    """Classify a file as tabular or document input.

    The declared MIME type is checked first; browsers and operating systems
    disagree on MIME types for CSV, so the file extension is the fallback.

    Args:
        mime_type: Declared MIME type (may be None or generic)
        filename: Original file name, used for the extension fallback

    Returns:
        ``"tabular"`` or ``"document"``

    Raises:
        UnsupportedFormatError: If neither the MIME type nor the extension
            is recognized
    """
    mime = (mime_type or "").split(";")[0].strip().lower()
    if mime in TABULAR_MIME_TYPES:
        return TABULAR
    if mime in DOCUMENT_MIME_TYPES:
        return DOCUMENT

    ext = PurePath(filename or "").suffix.lower()
    if ext in TABULAR_EXTENSIONS:
        return TABULAR
    if ext in DOCUMENT_EXTENSIONS:
        return DOCUMENT

    raise UnsupportedFormatError(unsupported_format(mime_type or "", filename or ""))


def _decode(file_bytes: bytes) -> str:
    try:
        return file_bytes.decode("utf-8-sig")
    except UnicodeDecodeError:
        return file_bytes.decode("latin-1")


def extract_rows(file_bytes: bytes) -> list[dict[str, str]]:
    """Read CSV bytes into row mappings.

    Header names and cell values are whitespace-stripped. Missing trailing
    cells come back as empty strings.
    """
    text = _decode(file_bytes)
    if not text.strip():
        return []

    # Try to detect delimiter
    sample = text[:1024]
    try:
        delimiter = csv.Sniffer().sniff(sample, delimiters=",;\t|").delimiter
    except csv.Error:
        delimiter = ","

    reader = csv.DictReader(io.StringIO(text), delimiter=delimiter)
    if reader.fieldnames is None:
        return []

    rows: list[dict[str, str]] = []
    for raw in reader:
        row: dict[str, str] = {}
        for key, value in raw.items():
            if key is None:
                # Overflow cells beyond the header width
                continue
            if isinstance(value, list):
                value = ",".join(value)
            row[key.strip()] = (value or "").strip()
        rows.append(row)
    return rows


def extract_lines(file_bytes: bytes) -> list[str]:
    """Flatten every page of a PDF into ordered text lines."""
    lines: list[str] = []
    with pdfplumber.open(io.BytesIO(file_bytes)) as pdf:
        for page in pdf.pages:
            page_text = page.extract_text() or ""
            lines.extend(page_text.splitlines())
    return lines


def extract(
    file_bytes: bytes, mime_type: Optional[str], filename: Optional[str] = None
) -> ExtractedDocument:
    """Turn raw file bytes into rows (CSV) or lines (PDF).

    Args:
        file_bytes: Entire file content
        mime_type: Declared MIME type
        filename: Original file name (extension fallback)

    Returns:
        ExtractedDocument with either ``rows`` or ``lines`` populated

    Raises:
        UnsupportedFormatError: If the file type is not recognized
    """
    kind = detect_format(mime_type, filename)
    if kind == TABULAR:
        rows = extract_rows(file_bytes)
        _logger.info("extract:tabular filename=%s rows=%d", filename, len(rows))
        return ExtractedDocument(kind=TABULAR, rows=tuple(rows))

    lines = extract_lines(file_bytes)
    _logger.info("extract:document filename=%s lines=%d", filename, len(lines))
    return ExtractedDocument(kind=DOCUMENT, lines=tuple(lines))
