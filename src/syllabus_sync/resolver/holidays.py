"""U.S. holiday rules used as calendar anchors.

Each rule is a start date within the month plus a
:class:`dateutil.relativedelta.relativedelta` that walks to the holiday,
e.g. Labor Day is the first Monday on or after September 1.
"""

from __future__ import annotations

import datetime as dt
import re

from dateutil.relativedelta import MO, TH, relativedelta

from syllabus_sync.models.syllabus import Holiday

# holiday -> (month, starting day, offset from that day)
HOLIDAY_RULES: dict[Holiday, tuple[int, int, relativedelta]] = {
    Holiday.LABOR_DAY: (9, 1, relativedelta(weekday=MO(+1))),
    Holiday.THANKSGIVING: (11, 1, relativedelta(weekday=TH(+4))),
    Holiday.MLK_DAY: (1, 1, relativedelta(weekday=MO(+3))),
    Holiday.MEMORIAL_DAY: (5, 31, relativedelta(weekday=MO(-1))),
    Holiday.INDEPENDENCE_DAY: (7, 4, relativedelta()),
}

_HOLIDAY_PATTERNS: dict[Holiday, re.Pattern[str]] = {
    Holiday.LABOR_DAY: re.compile(r"\blabou?r\s+day\b", re.IGNORECASE),
    Holiday.THANKSGIVING: re.compile(r"\bthanksgiving\b", re.IGNORECASE),
    Holiday.MLK_DAY: re.compile(
        r"\b(?:martin\s+luther\s+king|mlk)\b", re.IGNORECASE
    ),
    Holiday.MEMORIAL_DAY: re.compile(r"\bmemorial\s+day\b", re.IGNORECASE),
    Holiday.INDEPENDENCE_DAY: re.compile(
        r"\b(?:independence\s+day|fourth\s+of\s+july|july\s+4(?:th)?)\b",
        re.IGNORECASE,
    ),
}


def holiday_month(holiday: Holiday) -> int:
    """Month the holiday falls in."""
    return HOLIDAY_RULES[holiday][0]


def holiday_date(holiday: Holiday, year: int) -> dt.date:
    """Return the date of *holiday* in *year*.

    Example::

        >>> holiday_date(Holiday.LABOR_DAY, 2024)
        datetime.date(2024, 9, 2)
    """
    month, day, offset = HOLIDAY_RULES[holiday]
    return dt.date(year, month, day) + offset


def find_holidays(text: str) -> list[Holiday]:
    """Return the holidays named in *text*, in order of first mention."""
    found: list[tuple[int, Holiday]] = []
    for holiday, pattern in _HOLIDAY_PATTERNS.items():
        match = pattern.search(text)
        if match:
            found.append((match.start(), holiday))
    return [holiday for _, holiday in sorted(found, key=lambda pair: pair[0])]


def strip_holidays(text: str) -> str:
    """Return *text* with every holiday name blanked out."""
    for pattern in _HOLIDAY_PATTERNS.values():
        text = pattern.sub(" ", text)
    return text
