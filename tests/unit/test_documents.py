"""Unit tests for document text extraction.

Parsers are mocked; no real PDF, DOCX, or OCR work happens.
"""

from __future__ import annotations

import logging
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from syllabus_sync.documents import (
    DOCX_MIME,
    EMPTY_TEXT_MESSAGE,
    PDF_MIME,
    extract_text,
    extract_text_from_file,
    guess_mime_type,
)
from syllabus_sync.exceptions import ExtractionFailedError, UnsupportedFormatError

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _mock_pdf(page_texts: list[str | None]) -> MagicMock:
    """Build a ``pdfplumber.open`` return value usable as a context manager."""
    pages = []
    for text in page_texts:
        page = MagicMock()
        page.extract_text.return_value = text
        pages.append(page)
    pdf = MagicMock()
    pdf.pages = pages
    pdf.__enter__.return_value = pdf
    return pdf


def _cell(text: str) -> MagicMock:
    cell = MagicMock()
    cell.text = text
    return cell


def _mock_docx(paragraphs: list[str], rows: list[list[str]]) -> MagicMock:
    document = MagicMock()
    document.paragraphs = [MagicMock(text=text) for text in paragraphs]
    table = MagicMock()
    table.rows = [MagicMock(cells=[_cell(text) for text in row]) for row in rows]
    document.tables = [table]
    return document


# ---------------------------------------------------------------------------
# Formats
# ---------------------------------------------------------------------------


class TestPlainText:
    def test_utf8_text(self) -> None:
        data = "Contracts I\nWeek 1 (Mon): Hawkins v. McGee\n".encode()

        assert extract_text(data, "text/plain") == "Contracts I\nWeek 1 (Mon): Hawkins v. McGee"

    def test_byte_order_mark_is_dropped(self) -> None:
        assert extract_text("\ufeffTorts".encode(), "text/plain") == "Torts"

    def test_markdown(self) -> None:
        assert extract_text(b"# Torts\n", "text/markdown") == "# Torts"

    def test_charset_parameter_is_ignored(self) -> None:
        assert extract_text(b"Torts", "text/plain; charset=utf-8") == "Torts"


class TestPdf:
    def test_pages_are_joined(self) -> None:
        pdf = _mock_pdf(["Contracts I\n", None, "Week 1 (Mon): Offer"])

        with patch("syllabus_sync.documents.pdfplumber.open", return_value=pdf):
            text = extract_text(b"%PDF-1.7", PDF_MIME, filename="syllabus.pdf")

        assert text == "Contracts I\n\nWeek 1 (Mon): Offer"

    def test_parser_failure(self) -> None:
        with patch(
            "syllabus_sync.documents.pdfplumber.open", side_effect=ValueError("bad xref")
        ):
            with pytest.raises(ExtractionFailedError, match="Parsing failed: bad xref"):
                extract_text(b"%PDF", PDF_MIME)

    def test_scanned_pdf_without_text(self) -> None:
        pdf = _mock_pdf([None, "  "])

        with patch("syllabus_sync.documents.pdfplumber.open", return_value=pdf):
            with pytest.raises(ExtractionFailedError, match=EMPTY_TEXT_MESSAGE):
                extract_text(b"%PDF", PDF_MIME)


class TestDocx:
    def test_paragraphs_then_table_rows(self) -> None:
        document = _mock_docx(
            ["Contracts I", "", "Fall 2024"],
            [["Week 1", "Mon", "Hawkins v. McGee"], ["", " "], ["Week 2", "", "Consideration"]],
        )

        with patch("syllabus_sync.documents.docx.Document", return_value=document):
            text = extract_text(b"PK", DOCX_MIME)

        assert text.splitlines() == [
            "Contracts I",
            "Fall 2024",
            "Week 1 | Mon | Hawkins v. McGee",
            "Week 2 | Consideration",
        ]


class TestImage:
    def test_ocr(self) -> None:
        image = MagicMock()
        image.__enter__.return_value = image

        with patch("syllabus_sync.documents.Image.open", return_value=image), patch(
            "syllabus_sync.documents.pytesseract.image_to_string",
            return_value="Final exam: Dec. 10\n",
        ) as ocr:
            text = extract_text(b"\x89PNG", "image/png")

        assert text == "Final exam: Dec. 10"
        ocr.assert_called_once_with(image)

    def test_missing_tesseract_is_an_extraction_failure(self) -> None:
        image = MagicMock()
        image.__enter__.return_value = image

        with patch("syllabus_sync.documents.Image.open", return_value=image), patch(
            "syllabus_sync.documents.pytesseract.image_to_string",
            side_effect=OSError("tesseract is not installed"),
        ):
            with pytest.raises(ExtractionFailedError, match="tesseract"):
                extract_text(b"\x89PNG", "image/jpeg")


# ---------------------------------------------------------------------------
# Type handling
# ---------------------------------------------------------------------------


class TestTypes:
    def test_unsupported_type(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.WARNING, logger="syllabus_sync.documents"):
            with pytest.raises(UnsupportedFormatError) as exc_info:
                extract_text(b"{}", "application/json", filename="tasks.json")

        assert exc_info.value.mime_type == "application/json"
        assert "Unsupported file type: application/json" in str(exc_info.value)
        assert "tasks.json" in caplog.text

    def test_octet_stream_is_guessed_from_filename(self) -> None:
        assert extract_text(b"Torts", "application/octet-stream", filename="notes.txt") == "Torts"

    def test_blank_type_without_filename(self) -> None:
        with pytest.raises(UnsupportedFormatError):
            extract_text(b"Torts", "")

    def test_empty_text(self) -> None:
        with pytest.raises(ExtractionFailedError, match=EMPTY_TEXT_MESSAGE):
            extract_text(b"  \n\n ", "text/plain")

    @pytest.mark.parametrize(
        ("filename", "expected"),
        [
            ("syllabus.PDF", PDF_MIME),
            ("syllabus.docx", DOCX_MIME),
            ("scan.jpeg", "image/jpeg"),
            ("notes.md", "text/markdown"),
            ("archive.xyz123", "application/octet-stream"),
        ],
    )
    def test_guess_mime_type(self, filename: str, expected: str) -> None:
        assert guess_mime_type(filename) == expected


class TestFromFile:
    def test_reads_text_file(self, tmp_path: Path) -> None:
        path = tmp_path / "syllabus.txt"
        path.write_text("Contracts I\nFall 2024\n", encoding="utf-8")

        assert extract_text_from_file(path) == "Contracts I\nFall 2024"

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError, match="File not found"):
            extract_text_from_file(tmp_path / "missing.pdf")

    def test_accepts_string_paths(self, tmp_path: Path) -> None:
        path = tmp_path / "syllabus.md"
        path.write_text("# Torts", encoding="utf-8")

        assert extract_text_from_file(str(path)) == "# Torts"
