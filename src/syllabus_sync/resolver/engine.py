"""Turn a syllabus into dated tasks.

Resolution runs in three steps:

1. :class:`~syllabus_sync.resolver.scanner.SyllabusScanner` reads the
   :class:`~syllabus_sync.models.syllabus.SyllabusContext`.
2. One :class:`WeekAnchor` is chosen: the first literal-dated outline entry,
   else the first holiday anchor.  Every other week is a fixed number of
   weeks away from it.
3. Outline days and standalone items are dated against the anchor (literal
   dates always win), then deduplicated and sorted.

Anything that cannot be dated is dropped and logged at DEBUG; resolution
never raises on odd input.
"""

from __future__ import annotations

import datetime as dt
import logging
from collections.abc import Iterable
from dataclasses import dataclass

from syllabus_sync.models.syllabus import (
    DayContent,
    ExplicitDate,
    SyllabusContext,
    SyllabusItem,
    WeekEntry,
    Weekday,
    WeekRef,
)
from syllabus_sync.models.task import Task
from syllabus_sync.resolver.scanner import (
    SyllabusScanner,
    due_sentences,
    find_due_time,
    says_before_class,
)
from syllabus_sync.resolver.weekdays import WeekdayTable

logger = logging.getLogger(__name__)

_MAX_DUE_LABEL = 60


def monday_of(day: dt.date) -> dt.date:
    """Monday of the Monday-based week containing *day*."""
    return day - dt.timedelta(days=day.weekday())


@dataclass(frozen=True)
class WeekAnchor:
    """Fixes one outline week to the calendar.

    Attributes:
        week_number: The outline week the anchor belongs to.
        monday: Monday of that week.
        source: Human-readable origin, e.g. ``"Labor Day (line 14)"``.
    """

    week_number: int
    monday: dt.date
    source: str

    def monday_of(self, week_number: int) -> dt.date:
        """Monday of outline week *week_number*."""
        return self.monday + dt.timedelta(weeks=week_number - self.week_number)

    def date_of(self, week_number: int, weekday: Weekday) -> dt.date:
        """Date of *weekday* in outline week *week_number*."""
        return self.monday_of(week_number) + dt.timedelta(days=int(weekday))


def select_anchor(context: SyllabusContext) -> WeekAnchor | None:
    """Pick the single anchor all week arithmetic is based on.

    Literal-dated outline entries win over holiday anchors; within each kind
    the first in document order wins.  Holiday anchors that disagree with
    the chosen anchor are logged at WARNING and ignored.
    """
    anchor = _literal_anchor(context.weekly_outline)
    if anchor is None and context.holiday_anchors:
        first = context.holiday_anchors[0]
        anchor = WeekAnchor(
            week_number=first.week_number,
            monday=monday_of(first.resolved_date),
            source=f"{first.holiday.value} (line {first.line_number})",
        )

    if anchor is None:
        return None

    for holiday in context.holiday_anchors:
        implied = monday_of(holiday.resolved_date)
        if implied != anchor.monday_of(holiday.week_number):
            logger.warning(
                "Ignoring conflicting anchor: %s on %s puts week %d at %s, "
                "but %s puts it at %s",
                holiday.holiday.value,
                holiday.resolved_date.isoformat(),
                holiday.week_number,
                implied.isoformat(),
                anchor.source,
                anchor.monday_of(holiday.week_number).isoformat(),
            )
    logger.debug("Anchor: week %d starts %s (%s)", anchor.week_number, anchor.monday, anchor.source)
    return anchor


def _literal_anchor(outline: Iterable[WeekEntry]) -> WeekAnchor | None:
    candidates: list[tuple[int, int, dt.date]] = []
    for entry in outline:
        if entry.start_date is not None:
            candidates.append((entry.line_number, entry.week_number, entry.start_date))
        for day in entry.per_day_content.values():
            if day.explicit_date is not None:
                candidates.append((day.line_number, entry.week_number, day.explicit_date))
    if not candidates:
        return None
    line_number, week_number, value = min(candidates, key=lambda c: c[0])
    return WeekAnchor(
        week_number=week_number,
        monday=monday_of(value),
        source=f"{value.isoformat()} (line {line_number})",
    )


def dedupe_tasks(tasks: Iterable[Task]) -> list[Task]:
    """Drop repeated ``(title, date, start_time)`` tasks and sort chronologically.

    The first occurrence wins.  Sorting is stable, so tasks at the same
    date and time keep their input order; all-day tasks sort first.
    """
    seen: set[tuple[str, dt.date, dt.time | None]] = set()
    unique: list[Task] = []
    for task in tasks:
        if task.dedup_key in seen:
            logger.debug("Dropping duplicate task %r on %s", task.title, task.date)
            continue
        seen.add(task.dedup_key)
        unique.append(task)
    return sorted(unique, key=lambda task: task.sort_key)


class DateResolver:
    """Resolves syllabus text into dated :class:`Task` objects.

    Args:
        weekdays: Weekday alias table.  Defaults to the built-in table.

    Example::

        resolver = DateResolver()
        tasks = resolver.resolve(Path("syllabus.txt").read_text())
    """

    def __init__(self, weekdays: WeekdayTable | None = None) -> None:
        self._weekdays = weekdays or WeekdayTable()

    def resolve(self, text: str) -> list[Task]:
        """Resolve *text* into tasks; empty when nothing can be dated."""
        context = SyllabusScanner(self._weekdays).scan(text)
        return self.resolve_context(context)

    def resolve_context(self, context: SyllabusContext) -> list[Task]:
        """Resolve an already-scanned context into tasks."""
        anchor = select_anchor(context)
        if anchor is None:
            logger.info("No anchor found; only literally dated items will resolve")

        tasks: list[Task] = []
        for entry in context.weekly_outline:
            tasks.extend(self._outline_tasks(context, entry, anchor))
        for item in context.items:
            task = self._item_task(context, item, anchor)
            if task is not None:
                tasks.append(task)

        result = dedupe_tasks(tasks)
        logger.info("Resolved %d tasks (%d before dedup)", len(result), len(tasks))
        return result

    # -- outline ------------------------------------------------------------

    def _outline_tasks(
        self, context: SyllabusContext, entry: WeekEntry, anchor: WeekAnchor | None
    ) -> list[Task]:
        tasks = []
        for weekday, day in entry.per_day_content.items():
            if context.meeting_weekdays and weekday not in context.meeting_weekdays:
                if day.explicit_date is None:
                    logger.debug(
                        "Week %d %s is not a meeting day; skipped",
                        entry.week_number,
                        weekday.label,
                    )
                    continue
            if day.skip:
                logger.debug("Week %d %s: no class", entry.week_number, weekday.label)
                continue

            date = day.explicit_date
            if date is None and anchor is not None:
                date = anchor.date_of(entry.week_number, weekday)
            if date is None:
                logger.debug(
                    "Week %d %s has no anchor; dropped", entry.week_number, weekday.label
                )
                continue

            title = meeting_title(context.course, entry.week_number, weekday)
            tasks.append(
                Task(
                    title=title,
                    date=date,
                    start_time=context.class_start,
                    end_time=context.class_end if context.class_start else None,
                    description=day.content,
                )
            )
            tasks.extend(self._due_tasks(context, title, date, day))
        return tasks

    @staticmethod
    def _due_tasks(
        context: SyllabusContext, title: str, date: dt.date, day: DayContent
    ) -> list[Task]:
        tasks = []
        for sentence in due_sentences(day.content):
            label = sentence
            if len(label) > _MAX_DUE_LABEL:
                label = label[: _MAX_DUE_LABEL - 1].rstrip() + "…"
            start_time = find_due_time(sentence)
            if start_time is None and says_before_class(sentence):
                start_time = context.class_start
            tasks.append(
                Task(
                    title=f"{title}: {label}",
                    date=date,
                    start_time=start_time,
                    description=sentence,
                )
            )
        return tasks

    # -- standalone items ---------------------------------------------------

    def _item_task(
        self, context: SyllabusContext, item: SyllabusItem, anchor: WeekAnchor | None
    ) -> Task | None:
        when = item.when
        if isinstance(when, ExplicitDate):
            date = when.value
            title = f"{context.course} – {item.label}" if context.course else item.label
        elif isinstance(when, WeekRef) and anchor is not None:
            date = anchor.date_of(when.week_number, when.weekday)
            base = meeting_title(context.course, when.week_number, when.weekday)
            title = f"{base}: {item.label}"
        else:
            logger.debug("Line %d: cannot date %r; dropped", item.line_number, item.text)
            return None

        start_time, end_time = _item_times(context, item)
        return Task(
            title=title,
            date=date,
            start_time=start_time,
            end_time=end_time,
            description=item.text,
        )


def _item_times(
    context: SyllabusContext, item: SyllabusItem
) -> tuple[dt.time | None, dt.time | None]:
    if item.due_time is not None:
        return item.due_time, None
    if item.before_class and context.class_start is not None:
        return context.class_start, None
    if item.start_time is not None:
        return item.start_time, item.end_time
    return None, None


def meeting_title(course: str, week_number: int, weekday: Weekday) -> str:
    """Title for a class meeting, e.g. ``"Contracts – Week 2 (Mon)"``."""
    label = f"Week {week_number} ({weekday.label})"
    return f"{course} – {label}" if course else label


def resolve(text: str, weekdays: WeekdayTable | None = None) -> list[Task]:
    """Resolve syllabus *text* into dated tasks.

    Convenience wrapper around :meth:`DateResolver.resolve`.
    """
    return DateResolver(weekdays).resolve(text)
