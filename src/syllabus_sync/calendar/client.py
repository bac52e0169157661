"""Google Calendar client for pushing syllabus tasks.

Provides :class:`GoogleCalendarClient`, a thin wrapper around the Calendar
v3 API that handles:

- **Create** -- insert one task as an event, skipping it when an event with
  the same summary already exists on that day.
- **Batch create** -- insert tasks sequentially, one request at a time.
- **List** -- upcoming events on the primary calendar.

Every call takes the caller's :class:`~syllabus_sync.calendar.auth.AuthSession`.
Expired access tokens are refreshed before the call; a 401 during the call
triggers one refresh-and-retry via
:func:`~syllabus_sync.calendar.exceptions.with_retry`.
"""

from __future__ import annotations

import datetime as dt
import logging
from collections.abc import Callable, Iterable
from typing import Any

from google.oauth2.credentials import Credentials
from googleapiclient.discovery import build

from syllabus_sync.calendar.auth import AuthSession, GoogleTokenRefresher, ensure_fresh
from syllabus_sync.calendar.event_mapper import event_day, map_task_to_google_event
from syllabus_sync.calendar.exceptions import CalendarAuthError, with_retry
from syllabus_sync.models.task import Task

logger = logging.getLogger(__name__)

# Google Calendar API calendar identifier for the primary calendar.
_PRIMARY_CALENDAR = "primary"

# Existing-event lookups span a wider window than the day itself so events
# stored in any timezone are seen; results are then filtered by day.
_DAY_LOOKUP_SLACK = dt.timedelta(days=1)

ServiceFactory = Callable[[AuthSession], Any]


def build_calendar_service(session: AuthSession) -> Any:
    """Build a Calendar v3 service resource authorised with *session*."""
    credentials = Credentials(token=session.access_token)
    return build("calendar", "v3", credentials=credentials, cache_discovery=False)


class GoogleCalendarClient:
    """High-level client for the Google Calendar operations syllabus-sync needs.

    Args:
        refresher: Used to refresh expired sessions.  Without one, an
            expired token or a 401 raises
            :class:`~syllabus_sync.calendar.exceptions.CalendarAuthError`.
        timezone: IANA timezone for timed events.
        service_factory: Builds the API service for a session.  Defaults to
            :func:`build_calendar_service`; pass a factory returning a mock
            in tests.
    """

    def __init__(
        self,
        refresher: GoogleTokenRefresher | None = None,
        timezone: str = "America/New_York",
        service_factory: ServiceFactory | None = None,
    ) -> None:
        self._refresher = refresher
        self._timezone = timezone
        self._service_factory = service_factory or build_calendar_service

    # ------------------------------------------------------------------
    # Credential refresh hook (used by @with_retry on 401)
    # ------------------------------------------------------------------

    def _refresh_credentials(self, session: AuthSession | None) -> None:
        """Refresh *session* after the API returned 401."""
        if self._refresher is None or session is None:
            raise CalendarAuthError("Unauthorized: session cannot be refreshed")
        self._refresher.refresh(session)
        logger.info("Session refreshed after 401")

    def ensure_session(self, session: AuthSession, now: dt.datetime | None = None) -> None:
        """Refresh *session* if its access token has expired as of *now*.

        Raises:
            CalendarAuthError: If the token expired and cannot be refreshed.
        """
        if self._refresher is not None:
            ensure_fresh(session, self._refresher, now)
        elif session.is_expired(now):
            raise CalendarAuthError("Unauthorized: access token expired")

    def _service(self, session: AuthSession) -> Any:
        self.ensure_session(session)
        return self._service_factory(session)

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    @with_retry()
    def create_event(self, session: AuthSession, task: Task) -> dict | None:
        """Create a calendar event for *task*.

        Args:
            session: The signed-in user's session.
            task: The task to create.

        Returns:
            The created event resource, or ``None`` if an event with the same
            summary already exists on the task's day.
        """
        service = self._service(session)

        existing = self._events_on_day(service, task.date)
        for event in existing:
            if event.get("summary", "").lower() == task.title.lower():
                logger.info(
                    "Skipping '%s' on %s: already on the calendar (id=%s)",
                    task.title,
                    task.date.isoformat(),
                    event.get("id", "?"),
                )
                return None

        body = map_task_to_google_event(task, self._timezone)
        result = (
            service.events()
            .insert(calendarId=_PRIMARY_CALENDAR, body=body)
            .execute()
        )
        logger.info("Created event '%s' (id=%s)", task.title, result.get("id", "?"))
        return result

    def create_events(self, session: AuthSession, tasks: Iterable[Task]) -> list[dict]:
        """Create events for *tasks* one at a time, in order.

        Returns:
            The created event resources (tasks already on the calendar are
            left out).
        """
        created: list[dict] = []
        for task in tasks:
            result = self.create_event(session, task)
            if result is not None:
                created.append(result)
        return created

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    @with_retry()
    def list_events(
        self,
        session: AuthSession,
        max_results: int = 10,
        time_min: dt.datetime | None = None,
    ) -> list[dict]:
        """List upcoming events on the primary calendar.

        Args:
            session: The signed-in user's session.
            max_results: Maximum number of events returned.
            time_min: Earliest start, defaulting to now.

        Returns:
            Event resources ordered by start time, recurring events expanded.
        """
        service = self._service(session)
        time_min = time_min or dt.datetime.now(dt.timezone.utc)
        response = (
            service.events()
            .list(
                calendarId=_PRIMARY_CALENDAR,
                maxResults=max_results,
                singleEvents=True,
                orderBy="startTime",
                timeMin=_rfc3339(time_min),
            )
            .execute()
        )
        events = response.get("items", [])
        logger.info("Listed %d upcoming event(s)", len(events))
        return events

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _events_on_day(service: Any, day: dt.date) -> list[dict]:
        """Events starting on *day*, paging through all results."""
        start = dt.datetime.combine(day, dt.time.min, tzinfo=dt.timezone.utc) - _DAY_LOOKUP_SLACK
        end = start + dt.timedelta(days=1) + 2 * _DAY_LOOKUP_SLACK

        events: list[dict] = []
        page_token: str | None = None
        while True:
            response = (
                service.events()
                .list(
                    calendarId=_PRIMARY_CALENDAR,
                    timeMin=_rfc3339(start),
                    timeMax=_rfc3339(end),
                    singleEvents=True,
                    orderBy="startTime",
                    pageToken=page_token,
                )
                .execute()
            )
            events.extend(response.get("items", []))
            page_token = response.get("nextPageToken")
            if page_token is None:
                break

        return [event for event in events if event_day(event) == day]


def _rfc3339(value: dt.datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=dt.timezone.utc)
    return value.astimezone(dt.timezone.utc).isoformat().replace("+00:00", "Z")
