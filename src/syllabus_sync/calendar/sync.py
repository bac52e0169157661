"""Sync orchestrator for pushing tasks to Google Calendar.

Provides :func:`sync_tasks`, the top-level entry point that creates one
event per task via :class:`~syllabus_sync.calendar.client.GoogleCalendarClient`.

Partial failures are handled gracefully -- a single failing task does not
prevent the remaining tasks from being processed.  Authentication failures
are the exception: once the session cannot be refreshed every later call
would fail too, so :class:`~syllabus_sync.calendar.exceptions.CalendarAuthError`
propagates to the caller.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from syllabus_sync.calendar.auth import AuthSession
from syllabus_sync.calendar.client import GoogleCalendarClient
from syllabus_sync.calendar.exceptions import CalendarAuthError
from syllabus_sync.models.calendar import SyncResult
from syllabus_sync.models.task import Task

logger = logging.getLogger(__name__)


def sync_tasks(
    session: AuthSession,
    tasks: Iterable[Task],
    client: GoogleCalendarClient,
) -> SyncResult:
    """Create calendar events for *tasks*, sequentially.

    A ``None`` from :meth:`GoogleCalendarClient.create_event` means the task
    is already on the calendar and is counted as *skipped*.

    Args:
        session: The signed-in user's session.
        tasks: Tasks to push, in order.
        client: An initialised :class:`GoogleCalendarClient`.

    Returns:
        A :class:`SyncResult` with created/skipped counts, the created event
        resources, and any per-task failures.

    Raises:
        CalendarAuthError: If the session is rejected even after a refresh.
    """
    tasks = list(tasks)
    result = SyncResult()

    logger.info("Starting sync of %d task(s)", len(tasks))

    for task in tasks:
        try:
            response = client.create_event(session, task)
        except CalendarAuthError:
            logger.error("Sync aborted: calendar session is no longer authorised")
            raise
        except Exception as exc:
            logger.error(
                "Failed to sync task '%s' on %s: %s",
                task.title,
                task.date.isoformat(),
                exc,
            )
            result.failures.append(
                {
                    "task": task.title,
                    "date": task.date.isoformat(),
                    "error": str(exc),
                }
            )
            continue

        if response is None:
            result.skipped += 1
        else:
            result.created += 1
            result.created_events.append(response)

    logger.info(
        "Sync complete: %d created, %d skipped, %d failure(s)",
        result.created,
        result.skipped,
        len(result.failures),
    )
    return result
