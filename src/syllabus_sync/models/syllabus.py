"""Syllabus context data models.

These dataclasses hold what the resolver's scanner reads out of raw
syllabus text before any date arithmetic happens.  They are frozen: a
:class:`SyllabusContext` is derived once per document and never mutated.
"""

from __future__ import annotations

import datetime as dt
import enum
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Literal, Union


class Weekday(enum.IntEnum):
    """Day of the week, numbered like :meth:`datetime.date.weekday`."""

    MON = 0
    TUE = 1
    WED = 2
    THU = 3
    FRI = 4
    SAT = 5
    SUN = 6

    @property
    def label(self) -> str:
        """Three-letter display label, e.g. ``"Mon"``."""
        return self.name.title()


class Holiday(str, enum.Enum):
    """U.S. holidays usable as calendar anchors."""

    LABOR_DAY = "Labor Day"
    THANKSGIVING = "Thanksgiving"
    MLK_DAY = "Martin Luther King Jr. Day"
    MEMORIAL_DAY = "Memorial Day"
    INDEPENDENCE_DAY = "Independence Day"


# ---------------------------------------------------------------------------
# Item dating variants
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ExplicitDate:
    """A date written out literally in the syllabus."""

    value: dt.date


@dataclass(frozen=True)
class WeekRef:
    """A week-number + weekday reference that needs an anchor to date."""

    week_number: int
    weekday: Weekday


DateSource = Union[ExplicitDate, WeekRef]


# ---------------------------------------------------------------------------
# Outline
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class DayContent:
    """What the outline lists for one weekday of one week.

    Attributes:
        content: Readings / topics for the day.
        skip: ``True`` when the day is marked as a holiday or no class.
        explicit_date: Literal date written in the day's label, if any.
        line_number: 1-based line where the entry begins.
    """

    content: str
    skip: bool = False
    explicit_date: dt.date | None = None
    line_number: int = 0


@dataclass(frozen=True)
class WeekEntry:
    """One labelled week of the syllabus outline.

    Attributes:
        week_number: Positive week number as written (``Week 3`` -> 3).
        per_day_content: Outline content keyed by weekday.
        start_date: Literal date range start written on the week header
            (``Week 1 (Aug 19-23)``), if any.
        line_number: 1-based line of the week header.
    """

    week_number: int
    per_day_content: Mapping[Weekday, DayContent] = field(default_factory=dict)
    start_date: dt.date | None = None
    line_number: int = 0


@dataclass(frozen=True)
class HolidayAnchor:
    """A holiday mention tied to a specific outline week.

    Attributes:
        holiday: Which holiday was named.
        resolved_date: The holiday's date in the syllabus year.
        week_number: Outline week the mention appears under.
        weekday: Outline weekday the mention appears under, if any.
        line_number: 1-based line of the mention.
    """

    holiday: Holiday
    resolved_date: dt.date
    week_number: int
    weekday: Weekday | None = None
    line_number: int = 0


# ---------------------------------------------------------------------------
# Standalone items and the full context
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class SyllabusItem:
    """A dated item found outside the weekly outline.

    Attributes:
        label: Short label used in the task title (``"Case brief due"``).
        text: The full source line.
        when: How the item is dated, or ``None`` when no date could be read
            (the resolver drops those).
        due_time: Explicit due time (``"by 11:59pm"``), if any.
        before_class: ``True`` when the item says "before class".
        start_time: Start of a time range written on the line, if any.
        end_time: End of that time range, if any.
        line_number: 1-based source line.
    """

    label: str
    text: str
    when: DateSource | None = None
    due_time: dt.time | None = None
    before_class: bool = False
    start_time: dt.time | None = None
    end_time: dt.time | None = None
    line_number: int = 0


TermName = Literal["Fall", "Spring", "Summer", "Winter"]


@dataclass(frozen=True)
class SyllabusContext:
    """Everything the resolver knows about one syllabus.

    Attributes:
        course: Course label used as the task title prefix (may be empty).
        term: Academic term, if stated.
        term_year: Calendar year of the term, if known.
        meeting_weekdays: Weekdays the class meets (empty if not stated).
        class_start: Class start time, if stated.
        class_end: Class end time, if stated.
        weekly_outline: Week entries in document order.
        holiday_anchors: Holiday mentions tied to a week, in document order.
        items: Standalone dated items, in document order.
    """

    course: str = ""
    term: TermName | None = None
    term_year: int | None = None
    meeting_weekdays: frozenset[Weekday] = frozenset()
    class_start: dt.time | None = None
    class_end: dt.time | None = None
    weekly_outline: tuple[WeekEntry, ...] = ()
    holiday_anchors: tuple[HolidayAnchor, ...] = ()
    items: tuple[SyllabusItem, ...] = ()
