"""Map tasks to the Google Calendar API event body.

- Tasks without a start time become **all-day** events
  (``{"date": ...}``); the end date is exclusive, so it is the next day.
- Timed tasks use ``{"dateTime": ..., "timeZone": ...}``; without an end
  time the event lasts one hour.
- Every event carries two reminders: e-mail one day before and a popup
  ten minutes before.
"""

from __future__ import annotations

import datetime as dt
import logging

from syllabus_sync.models.task import Task

logger = logging.getLogger(__name__)

DEFAULT_DURATION = dt.timedelta(hours=1)

REMINDERS: dict = {
    "useDefault": False,
    "overrides": [
        {"method": "email", "minutes": 24 * 60},
        {"method": "popup", "minutes": 10},
    ],
}


def map_task_to_google_event(task: Task, timezone: str) -> dict:
    """Convert a task into a Google Calendar API event body.

    Args:
        task: The task to map.
        timezone: IANA timezone (e.g. ``"America/New_York"``) for timed
            events.

    Returns:
        A ``dict`` ready for ``events().insert()``.
    """
    body: dict = {
        "summary": task.title,
        "description": task.description,
        "reminders": {
            "useDefault": REMINDERS["useDefault"],
            "overrides": [dict(item) for item in REMINDERS["overrides"]],
        },
    }

    if task.start_time is None:
        body["start"] = {"date": task.date.isoformat()}
        body["end"] = {"date": (task.date + dt.timedelta(days=1)).isoformat()}
        return body

    start = dt.datetime.combine(task.date, task.start_time)
    if task.end_time is not None and task.end_time > task.start_time:
        end = dt.datetime.combine(task.date, task.end_time)
    else:
        if task.end_time is not None:
            logger.warning("Task '%s' ends before it starts; using one hour", task.title)
        end = start + DEFAULT_DURATION

    body["start"] = {"dateTime": start.isoformat(), "timeZone": timezone}
    body["end"] = {"dateTime": end.isoformat(), "timeZone": timezone}
    return body


def event_day(event: dict) -> dt.date | None:
    """Calendar day an API event starts on, for timed and all-day events."""
    start = event.get("start", {})
    raw = start.get("date") or start.get("dateTime")
    if not raw:
        return None
    try:
        return dt.date.fromisoformat(raw[:10])
    except ValueError:
        return None
