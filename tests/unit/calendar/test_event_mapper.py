"""Tests for the Google Calendar event mapper.

Covers ``map_task_to_google_event``, which converts
:class:`~syllabus_sync.models.task.Task` instances into Google Calendar API
event bodies, and ``event_day``.

Test matrix:

| Test | Scenario | Expected |
|---|---|---|
| test_map_class_meeting | Start and end time | dateTime start/end with timezone |
| test_map_due_item_defaults_to_one_hour | Start time only | end = start + 1 hour |
| test_map_all_day_task | No start time | date start, exclusive date end |
| test_all_day_end_rolls_over_month_and_year | Dec 31 | end is Jan 1 |
| test_end_before_start_uses_one_hour | Bad end time | end = start + 1 hour, warning |
| test_reminders | Any task | e-mail 1 day + popup 10 min |
| test_reminders_are_not_shared | Two bodies | Mutating one leaves the other |
"""

from __future__ import annotations

import datetime as dt
import logging

import pytest

from syllabus_sync.calendar.event_mapper import event_day, map_task_to_google_event
from syllabus_sync.models.task import Task

TIMEZONE = "America/Chicago"


def _make_task(**overrides: object) -> Task:
    """Create a Task with sensible defaults, applying *overrides*."""
    defaults: dict = {
        "title": "Contracts I – Week 1 (Mon)",
        "date": dt.date(2024, 8, 19),
        "start_time": dt.time(9, 0),
        "end_time": dt.time(10, 50),
        "description": "Hawkins v. McGee",
    }
    defaults.update(overrides)
    return Task(**defaults)


class TestMapTask:
    def test_map_class_meeting(self) -> None:
        body = map_task_to_google_event(_make_task(), TIMEZONE)

        assert body["summary"] == "Contracts I – Week 1 (Mon)"
        assert body["description"] == "Hawkins v. McGee"
        assert body["start"] == {"dateTime": "2024-08-19T09:00:00", "timeZone": TIMEZONE}
        assert body["end"] == {"dateTime": "2024-08-19T10:50:00", "timeZone": TIMEZONE}

    def test_map_due_item_defaults_to_one_hour(self) -> None:
        task = _make_task(start_time=dt.time(23, 59), end_time=None)

        body = map_task_to_google_event(task, TIMEZONE)

        assert body["start"]["dateTime"] == "2024-08-19T23:59:00"
        assert body["end"]["dateTime"] == "2024-08-20T00:59:00"

    def test_map_all_day_task(self) -> None:
        task = _make_task(title="Final exam", date=dt.date(2024, 12, 10), start_time=None, end_time=None)

        body = map_task_to_google_event(task, TIMEZONE)

        assert body["start"] == {"date": "2024-12-10"}
        assert body["end"] == {"date": "2024-12-11"}

    def test_all_day_end_rolls_over_month_and_year(self) -> None:
        task = _make_task(date=dt.date(2024, 12, 31), start_time=None, end_time=None)

        assert map_task_to_google_event(task, TIMEZONE)["end"] == {"date": "2025-01-01"}

    def test_end_before_start_uses_one_hour(self, caplog: pytest.LogCaptureFixture) -> None:
        task = _make_task(start_time=dt.time(14, 0), end_time=dt.time(13, 0))

        with caplog.at_level(logging.WARNING, logger="syllabus_sync.calendar.event_mapper"):
            body = map_task_to_google_event(task, TIMEZONE)

        assert body["end"]["dateTime"] == "2024-08-19T15:00:00"
        assert "ends before it starts" in caplog.text

    def test_reminders(self) -> None:
        body = map_task_to_google_event(_make_task(), TIMEZONE)

        assert body["reminders"] == {
            "useDefault": False,
            "overrides": [
                {"method": "email", "minutes": 1440},
                {"method": "popup", "minutes": 10},
            ],
        }

    def test_reminders_are_not_shared(self) -> None:
        first = map_task_to_google_event(_make_task(), TIMEZONE)
        first["reminders"]["overrides"][0]["minutes"] = 5

        second = map_task_to_google_event(_make_task(), TIMEZONE)

        assert second["reminders"]["overrides"][0]["minutes"] == 1440


class TestEventDay:
    @pytest.mark.parametrize(
        ("event", "expected"),
        [
            ({"start": {"date": "2024-12-10"}}, dt.date(2024, 12, 10)),
            ({"start": {"dateTime": "2024-08-19T09:00:00-04:00"}}, dt.date(2024, 8, 19)),
            ({"start": {}}, None),
            ({}, None),
            ({"start": {"date": "soon"}}, None),
        ],
    )
    def test_event_day(self, event: dict, expected: dt.date | None) -> None:
        assert event_day(event) == expected
