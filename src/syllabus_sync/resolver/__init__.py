"""Deterministic syllabus date resolver.

Public API::

    from syllabus_sync.resolver import DateResolver, resolve

    tasks = resolve(text)
"""

from __future__ import annotations

from syllabus_sync.resolver.engine import (
    DateResolver,
    WeekAnchor,
    dedupe_tasks,
    resolve,
    select_anchor,
)
from syllabus_sync.resolver.holidays import find_holidays, holiday_date
from syllabus_sync.resolver.scanner import SyllabusScanner
from syllabus_sync.resolver.weekdays import DEFAULT_WEEKDAY_ALIASES, WeekdayTable

__all__ = [
    "DEFAULT_WEEKDAY_ALIASES",
    "DateResolver",
    "SyllabusScanner",
    "WeekAnchor",
    "WeekdayTable",
    "dedupe_tasks",
    "find_holidays",
    "holiday_date",
    "resolve",
    "select_anchor",
]
