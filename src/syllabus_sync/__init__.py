"""syllabus-sync: Syllabus-to-Calendar.

Extracts dated class meetings and deadlines from course syllabi and syncs
them to Google Calendar.
"""

from __future__ import annotations

from syllabus_sync.documents import extract_text, extract_text_from_file
from syllabus_sync.exceptions import (
    ExtractionFailedError,
    MalformedOutputError,
    StorageError,
    SyllabusSyncError,
    UnsupportedFormatError,
)
from syllabus_sync.models.task import LLMResponseSchema, LLMResponseTask, StoredTask, Task
from syllabus_sync.prompts import build_system_prompt, build_user_prompt
from syllabus_sync.resolver import DateResolver, WeekdayTable, resolve

__version__ = "0.1.0"

__all__ = [
    "DateResolver",
    "ExtractionFailedError",
    "LLMResponseSchema",
    "LLMResponseTask",
    "MalformedOutputError",
    "StorageError",
    "StoredTask",
    "SyllabusSyncError",
    "Task",
    "UnsupportedFormatError",
    "WeekdayTable",
    "build_system_prompt",
    "build_user_prompt",
    "extract_text",
    "extract_text_from_file",
    "resolve",
]
