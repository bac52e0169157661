"""Google Calendar integration for syllabus-sync."""

from __future__ import annotations

from syllabus_sync.calendar.auth import (
    AuthSession,
    GoogleTokenRefresher,
    ensure_fresh,
    get_calendar_credentials,
    session_from_credentials,
)
from syllabus_sync.calendar.client import GoogleCalendarClient
from syllabus_sync.calendar.event_mapper import map_task_to_google_event
from syllabus_sync.calendar.exceptions import (
    CalendarAPIError,
    CalendarAuthError,
    CalendarNotFoundError,
    CalendarRateLimitError,
)
from syllabus_sync.calendar.sync import sync_tasks

__all__ = [
    "AuthSession",
    "CalendarAPIError",
    "CalendarAuthError",
    "CalendarNotFoundError",
    "CalendarRateLimitError",
    "GoogleCalendarClient",
    "GoogleTokenRefresher",
    "ensure_fresh",
    "get_calendar_credentials",
    "map_task_to_google_event",
    "session_from_credentials",
    "sync_tasks",
]
