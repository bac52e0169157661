"""Custom exceptions for the syllabus-sync pipeline.

Calendar API failures live in :mod:`syllabus_sync.calendar.exceptions`;
everything raised while turning a document into tasks, or while persisting
them, derives from :class:`SyllabusSyncError`.
"""

from __future__ import annotations


class SyllabusSyncError(Exception):
    """Base class for syllabus-sync errors."""


class UnsupportedFormatError(SyllabusSyncError):
    """Raised when an uploaded document type has no text extractor.

    Attributes:
        mime_type: The MIME type that was rejected.
    """

    def __init__(self, mime_type: str) -> None:
        super().__init__(f"Unsupported file type: {mime_type or 'unknown'}")
        self.mime_type = mime_type


class ExtractionFailedError(SyllabusSyncError):
    """Raised when a supported document (or the LLM) yields no usable text.

    Covers parser crashes, empty documents, and Gemini API failures.
    Retrying is not expected to help.
    """


class MalformedOutputError(SyllabusSyncError):
    """Raised when extraction output cannot be parsed into the Task schema.

    The raw text is kept so the caller can show it for diagnosis.

    Attributes:
        raw_output: The unparseable output.
    """

    def __init__(self, message: str, raw_output: str = "") -> None:
        super().__init__(message)
        self.raw_output = raw_output


class StorageError(SyllabusSyncError):
    """Raised when the task store rejects a read, insert, or delete."""
