"""Plain-text extraction from uploaded syllabus documents.

Supported formats:

- PDF (``application/pdf``) via :mod:`pdfplumber`
- DOCX (``application/vnd.openxmlformats-officedocument.wordprocessingml.document``)
  via :mod:`docx` (python-docx), paragraphs then tables
- Images (``image/*``) via :mod:`pytesseract` OCR on a Pillow image
- Plain text (``text/plain``, ``text/markdown``) decoded as UTF-8

Anything else raises :class:`~syllabus_sync.exceptions.UnsupportedFormatError`
before the resolver ever runs.
"""

from __future__ import annotations

import io
import logging
import mimetypes
from pathlib import Path

import docx
import pdfplumber
import pytesseract
from PIL import Image

from syllabus_sync.exceptions import ExtractionFailedError, UnsupportedFormatError

logger = logging.getLogger(__name__)

PDF_MIME = "application/pdf"
DOCX_MIME = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
TEXT_MIMES = frozenset({"text/plain", "text/markdown"})

_EXTENSION_MIMES = {
    ".pdf": PDF_MIME,
    ".docx": DOCX_MIME,
    ".txt": "text/plain",
    ".md": "text/markdown",
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".tif": "image/tiff",
    ".tiff": "image/tiff",
}

EMPTY_TEXT_MESSAGE = "Could not extract text from file."


def extract_text(data: bytes, mime_type: str, filename: str = "") -> str:
    """Extract plain text from an uploaded document.

    Args:
        data: Raw file bytes.
        mime_type: Declared MIME type.  When blank or generic
            (``application/octet-stream``) the type is guessed from
            *filename*.
        filename: Original file name, used for logging and type guessing.

    Returns:
        The extracted text, stripped of surrounding whitespace.

    Raises:
        UnsupportedFormatError: If the format is not supported.
        ExtractionFailedError: If the parser fails or the document yields no
            text.
    """
    mime_type = _effective_mime_type(mime_type, filename)
    name = filename or "<upload>"

    if mime_type == PDF_MIME:
        reader = _read_pdf
    elif mime_type == DOCX_MIME:
        reader = _read_docx
    elif mime_type.startswith("image/"):
        reader = _read_image
    elif mime_type in TEXT_MIMES:
        reader = _read_plain_text
    else:
        logger.warning("Rejected %s: unsupported type %s", name, mime_type)
        raise UnsupportedFormatError(mime_type)

    logger.info("Extracting text from %s (%s, %d bytes)", name, mime_type, len(data))
    try:
        text = reader(data)
    except Exception as exc:
        logger.error("Parsing %s failed: %s", name, exc)
        raise ExtractionFailedError(f"Parsing failed: {exc}") from exc

    text = text.strip()
    if not text:
        logger.warning("No text extracted from %s", name)
        raise ExtractionFailedError(EMPTY_TEXT_MESSAGE)

    logger.info("Extracted %d characters from %s", len(text), name)
    return text


def extract_text_from_file(path: Path | str) -> str:
    """Read *path* and extract its text, guessing the type from the name.

    Raises:
        FileNotFoundError: If *path* does not exist.
        UnsupportedFormatError: If the format is not supported.
        ExtractionFailedError: If no text could be extracted.
    """
    path = Path(path)
    if not path.is_file():
        raise FileNotFoundError(f"File not found: {path}")
    mime_type = guess_mime_type(path.name)
    return extract_text(path.read_bytes(), mime_type, filename=path.name)


def guess_mime_type(filename: str) -> str:
    """Best-effort MIME type for *filename* (``application/octet-stream`` if unknown)."""
    suffix = Path(filename).suffix.lower()
    if suffix in _EXTENSION_MIMES:
        return _EXTENSION_MIMES[suffix]
    guessed, _ = mimetypes.guess_type(filename)
    return guessed or "application/octet-stream"


def _effective_mime_type(mime_type: str, filename: str) -> str:
    mime_type = (mime_type or "").split(";")[0].strip().lower()
    if (not mime_type or mime_type == "application/octet-stream") and filename:
        return guess_mime_type(filename)
    return mime_type or "application/octet-stream"


# ---------------------------------------------------------------------------
# Format readers
# ---------------------------------------------------------------------------


def _read_pdf(data: bytes) -> str:
    pages: list[str] = []
    with pdfplumber.open(io.BytesIO(data)) as pdf:
        for page in pdf.pages:
            text = page.extract_text()
            if text:
                pages.append(text.strip())
    return "\n\n".join(pages)


def _read_docx(data: bytes) -> str:
    document = docx.Document(io.BytesIO(data))
    parts = [paragraph.text for paragraph in document.paragraphs if paragraph.text.strip()]
    # Schedules are often laid out as tables: one row per line.
    for table in document.tables:
        for row in table.rows:
            cells = [cell.text.strip() for cell in row.cells if cell.text.strip()]
            if cells:
                parts.append(" | ".join(cells))
    return "\n".join(parts)


def _read_image(data: bytes) -> str:
    with Image.open(io.BytesIO(data)) as image:
        return pytesseract.image_to_string(image)


def _read_plain_text(data: bytes) -> str:
    return data.decode("utf-8-sig", errors="replace")
