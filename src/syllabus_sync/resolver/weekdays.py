"""Weekday abbreviation table.

Syllabi write meeting days in many compact forms: ``MW``, ``TTh``, ``TR``,
``Mon/Wed``, ``Tuesdays & Thursdays``.  :class:`WeekdayTable` turns one
such word into weekdays by consuming aliases longest-first, so ``TTh`` is
Tuesday + Thursday while ``Th`` alone is Thursday.

Aliases of two characters or fewer match case-sensitively (``M`` is Monday,
``m`` is not); longer aliases match case-insensitively and accept a plural
``s`` (``Mondays``).
"""

from __future__ import annotations

import logging
from collections.abc import Mapping

from syllabus_sync.config import ConfigError
from syllabus_sync.models.syllabus import Weekday

logger = logging.getLogger(__name__)

DEFAULT_WEEKDAY_ALIASES: dict[str, Weekday] = {
    "M": Weekday.MON,
    "Mo": Weekday.MON,
    "MO": Weekday.MON,
    "Mon": Weekday.MON,
    "Monday": Weekday.MON,
    "T": Weekday.TUE,
    "Tu": Weekday.TUE,
    "TU": Weekday.TUE,
    "Tue": Weekday.TUE,
    "Tues": Weekday.TUE,
    "Tuesday": Weekday.TUE,
    "W": Weekday.WED,
    "We": Weekday.WED,
    "WE": Weekday.WED,
    "Wed": Weekday.WED,
    "Weds": Weekday.WED,
    "Wednesday": Weekday.WED,
    "R": Weekday.THU,
    "Th": Weekday.THU,
    "TH": Weekday.THU,
    "Thu": Weekday.THU,
    "Thur": Weekday.THU,
    "Thurs": Weekday.THU,
    "Thursday": Weekday.THU,
    "F": Weekday.FRI,
    "Fr": Weekday.FRI,
    "FR": Weekday.FRI,
    "Fri": Weekday.FRI,
    "Friday": Weekday.FRI,
    "S": Weekday.SAT,
    "Sa": Weekday.SAT,
    "SA": Weekday.SAT,
    "Sat": Weekday.SAT,
    "Saturday": Weekday.SAT,
    "U": Weekday.SUN,
    "Su": Weekday.SUN,
    "SU": Weekday.SUN,
    "Sun": Weekday.SUN,
    "Sunday": Weekday.SUN,
}

_SEPARATORS = "/,&+-.–"
_CASE_SENSITIVE_MAX = 2


class WeekdayTable:
    """Resolves weekday words through an alias table.

    Args:
        aliases: Alias -> weekday mapping.  Defaults to
            :data:`DEFAULT_WEEKDAY_ALIASES`.
    """

    def __init__(self, aliases: Mapping[str, Weekday] | None = None) -> None:
        self._aliases = dict(DEFAULT_WEEKDAY_ALIASES if aliases is None else aliases)
        # Longest first so "Thurs" wins over "Th" wins over "T".
        self._ordered = sorted(self._aliases.items(), key=lambda kv: len(kv[0]), reverse=True)

    @property
    def aliases(self) -> dict[str, Weekday]:
        """A copy of the alias mapping."""
        return dict(self._aliases)

    def with_overrides(self, overrides: Mapping[str, str]) -> WeekdayTable:
        """Return a new table with *overrides* applied.

        Override values are day names resolved through this table, so
        ``{"T": "Thu"}`` makes ``T`` mean Thursday.

        Raises:
            ConfigError: If an override value is not a single weekday.
        """
        aliases = dict(self._aliases)
        for alias, day_name in overrides.items():
            days = self.parse_word(day_name)
            if not days or len(days) != 1:
                raise ConfigError(f"Weekday alias {alias!r} maps to unknown day {day_name!r}")
            aliases[alias] = days[0]
            logger.debug("Weekday alias override: %s -> %s", alias, days[0].label)
        return WeekdayTable(aliases)

    def parse_word(self, word: str) -> list[Weekday] | None:
        """Parse one word into the weekdays it names.

        Returns:
            Weekdays in written order, or ``None`` unless the whole word is
            made of aliases and separators.
        """
        word = word.strip()
        pos = 0
        days: list[Weekday] = []
        while pos < len(word):
            if word[pos] in _SEPARATORS:
                pos += 1
                continue
            matched = self._match_at(word, pos)
            if matched is None:
                return None
            day, pos = matched
            days.append(day)
        return days or None

    def parse_day(self, word: str) -> Weekday | None:
        """Parse a word naming exactly one weekday."""
        days = self.parse_word(word)
        if days and len(days) == 1:
            return days[0]
        return None

    def _match_at(self, word: str, pos: int) -> tuple[Weekday, int] | None:
        for alias, day in self._ordered:
            end = pos + len(alias)
            if len(alias) <= _CASE_SENSITIVE_MAX:
                if word.startswith(alias, pos):
                    return day, end
                continue
            if word[pos:end].lower() != alias.lower():
                continue
            # Plural: "Mondays".
            if end < len(word) and word[end] == "s" and (
                end + 1 == len(word) or word[end + 1] in _SEPARATORS
            ):
                end += 1
            return day, end
        return None
