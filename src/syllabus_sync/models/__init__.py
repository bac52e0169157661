"""Data models for syllabus-sync."""

from __future__ import annotations

from syllabus_sync.models.calendar import SyncResult
from syllabus_sync.models.syllabus import (
    DateSource,
    DayContent,
    ExplicitDate,
    Holiday,
    HolidayAnchor,
    SyllabusContext,
    SyllabusItem,
    WeekEntry,
    Weekday,
    WeekRef,
)
from syllabus_sync.models.task import LLMResponseSchema, LLMResponseTask, StoredTask, Task

__all__ = [
    "DateSource",
    "DayContent",
    "ExplicitDate",
    "Holiday",
    "HolidayAnchor",
    "LLMResponseSchema",
    "LLMResponseTask",
    "StoredTask",
    "SyllabusContext",
    "SyllabusItem",
    "SyncResult",
    "Task",
    "WeekEntry",
    "WeekRef",
    "Weekday",
]
