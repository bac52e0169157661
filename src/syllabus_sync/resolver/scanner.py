"""Read a :class:`SyllabusContext` out of raw syllabus text.

The scanner is purely lexical: it finds the term and year, the meeting
pattern, the week-numbered outline, holiday mentions, and standalone dated
items.  It does no anchor arithmetic; :mod:`syllabus_sync.resolver.engine`
turns the context into dated tasks.
"""

from __future__ import annotations

import datetime as dt
import logging
import re
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field

from dateutil import parser as dateutil_parser

from syllabus_sync.models.syllabus import (
    DateSource,
    DayContent,
    ExplicitDate,
    HolidayAnchor,
    SyllabusContext,
    SyllabusItem,
    TermName,
    WeekEntry,
    Weekday,
    WeekRef,
)
from syllabus_sync.resolver.holidays import (
    find_holidays,
    holiday_date,
    holiday_month,
    strip_holidays,
)
from syllabus_sync.resolver.weekdays import WeekdayTable

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Patterns
# ---------------------------------------------------------------------------

_TERM_RE = re.compile(
    r"\b(?P<term>Fall|Spring|Summer|Winter|Autumn)"
    r"(?:\s+(?:Term|Semester|Quarter|Session))?\s*[,']?\s*(?P<year>(?:19|20)\d{2})\b",
    re.IGNORECASE,
)

_MERIDIEM = r"\s*[ap]\.?\s?m\b\.?"
_CLOCK = rf"(?:noon|midnight|\d{{1,2}}(?::\d{{2}})?(?:{_MERIDIEM})?)"
_EXACT_CLOCK = rf"(?:noon|midnight|\d{{1,2}}:\d{{2}}(?:{_MERIDIEM})?|\d{{1,2}}{_MERIDIEM})"

_TIME_RANGE_RE = re.compile(
    rf"(?<![\d/:.\-])(?P<start>{_CLOCK})\s*(?:-|–|—|\bto\b)\s*(?P<end>{_CLOCK})(?![\d/:])",
    re.IGNORECASE,
)
_DUE_TIME_RE = re.compile(
    rf"\b(?:by|at|before)\s+(?P<clock>{_EXACT_CLOCK})(?![\d:])", re.IGNORECASE
)
_CLOCK_PARTS_RE = re.compile(
    r"^(?P<hour>\d{1,2})(?::(?P<minute>\d{2}))?\s*(?:(?P<mer>[ap])\.?\s?m\.?)?$",
    re.IGNORECASE,
)
_BEFORE_CLASS_RE = re.compile(r"\bbefore\b[^.;]*?\bclass\b", re.IGNORECASE)

_MONTH = (
    r"(?:Jan(?:uary)?|Feb(?:ruary)?|Mar(?:ch)?|Apr(?:il)?|May|June?|July?|Aug(?:ust)?"
    r"|Sep(?:t(?:ember)?)?|Oct(?:ober)?|Nov(?:ember)?|Dec(?:ember)?)"
)
_ISO_DATE_RE = re.compile(r"\b\d{4}-\d{1,2}-\d{1,2}\b")
_NUMERIC_DATE_RE = re.compile(
    r"(?<![\d/:])\d{1,2}/\d{1,2}(?P<year>/(?:\d{4}|\d{2}))?(?![\d/])"
)
_MONTH_DATE_RE = re.compile(
    rf"\b{_MONTH}\.?\s+\d{{1,2}}(?:st|nd|rd|th)?\b(?P<year>,?\s+(?:19|20)\d{{2}}\b)?"
)

_WEEK_HEADER_RE = re.compile(r"^(?:[-*•]\s*)?(?i:week)\s+(?P<num>\d{1,2})\b(?P<rest>.*)$")
_WEEK_REF_RE = re.compile(
    r"(?i:\bweek)\s+(?P<num>\d{1,2})\b[\s,(]*(?P<day>[A-Za-z/&]+)?"
)
_DAY_LINE_RE = re.compile(
    r"^(?:[-*•]\s*)?(?P<label>[^:]{1,40}?)\s*(?::|\s[-–—]\s)\s*(?P<content>.*)$"
)
_COURSE_LINE_RE = re.compile(
    r"^\s*course(?:\s+(?:title|name))?\s*:\s*(?P<course>.+)$", re.IGNORECASE
)

_SKIP_RE = re.compile(
    r"\b(?:holiday|no\s+class(?:es)?|class(?:es)?\s+(?:is\s+|are\s+)?cancel+ed"
    r"|no\s+meeting|(?:spring|fall|winter|thanksgiving|reading)\s+break)\b",
    re.IGNORECASE,
)
_ITEM_KEYWORD_RE = re.compile(
    r"\b(?:due|exams?|midterms?|finals?|quiz(?:zes)?|papers?|assignments?|projects?"
    r"|presentations?|tests?|deadlines?|submit|submissions?|essays?|briefs?|memos?)\b",
    re.IGNORECASE,
)
_DUE_RE = re.compile(r"\bdue\b", re.IGNORECASE)
_REVISION_RE = re.compile(r"\b(?:updated|revised|last\s+modified)\b", re.IGNORECASE)

_LABEL_TAIL_RE = re.compile(
    r"(?:[\s,:;(\-–—]+|\b(?:on|by|at|before|is|are)\b)+$", re.IGNORECASE
)
_LABEL_HEAD_RE = re.compile(r"^[\s,:;)\-–—]+")
_LEADING_DATE_RE = re.compile(
    rf"^[^A-Za-z]*(?:{_MONTH}\.?\s+\d{{1,2}}(?:st|nd|rd|th)?(?:,\s*\d{{4}})?)?"
)
_OFFICE_HOURS_RE = re.compile(r"\boffice\s+hours?\b", re.IGNORECASE)
_CONNECTORS = frozenset({"and", "&", "from", "at", "@", "|", "on", "every"})
_SHORT_DAY_RE = re.compile(r"^[A-Z][a-z]$")
_MAX_LABEL = 80
_MAX_COURSE = 60
_COURSE_SEARCH_LINES = 5


# ---------------------------------------------------------------------------
# Clock helpers
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class _Clock:
    hour: int
    minute: int
    meridiem: str | None
    exact: bool
    midnight: bool = False


def _read_clock(token: str) -> _Clock | None:
    token = token.strip().lower()
    if token == "noon":
        return _Clock(12, 0, "p", exact=True)
    if token == "midnight":
        return _Clock(23, 59, None, exact=True, midnight=True)
    match = _CLOCK_PARTS_RE.match(token)
    if match is None:
        return None
    meridiem = match.group("mer")
    minute = match.group("minute")
    return _Clock(
        hour=int(match.group("hour")),
        minute=int(minute) if minute else 0,
        meridiem=meridiem.lower() if meridiem else None,
        exact=bool(minute or meridiem),
    )


def _to_time(hour: int, minute: int, meridiem: str | None) -> dt.time | None:
    if meridiem is not None:
        if not 1 <= hour <= 12:
            return None
        hour = hour % 12 + (12 if meridiem == "p" else 0)
    if hour > 23 or minute > 59:
        return None
    return dt.time(hour, minute)


def _bare_time(clock: _Clock) -> dt.time | None:
    """Time for a clock written without am/pm; 1-6 o'clock reads as afternoon."""
    if clock.midnight:
        return dt.time(23, 59)
    if clock.meridiem is not None:
        return _to_time(clock.hour, clock.minute, clock.meridiem)
    if 1 <= clock.hour <= 6:
        return _to_time(clock.hour + 12, clock.minute, None)
    return _to_time(clock.hour, clock.minute, None)


def parse_time_range(start_token: str, end_token: str) -> tuple[dt.time, dt.time] | None:
    """Turn two clock tokens into a ``(start, end)`` pair.

    A start without am/pm borrows the end's (``9-10:50am``); if that puts it
    after the end it flips (``11-12:15pm`` is 11am-12:15pm).  ``midnight``
    reads as 23:59.

    Returns:
        The pair, or ``None`` when neither side is an unambiguous clock time
        or the range runs backwards.
    """
    start = _read_clock(start_token)
    end = _read_clock(end_token)
    if start is None or end is None or not (start.exact or end.exact):
        return None
    if start.midnight:
        return None

    end_time = _bare_time(end)
    if end_time is None:
        return None

    if start.meridiem is not None:
        start_time = _to_time(start.hour, start.minute, start.meridiem)
        if end.meridiem is None and not end.midnight and start_time and end_time < start_time:
            end_time = _to_time(end.hour % 12 + 12, end.minute, None)
    elif end.meridiem is not None:
        start_time = _to_time(start.hour, start.minute, end.meridiem)
        if start_time is not None and start_time > end_time:
            flipped = "a" if end.meridiem == "p" else "p"
            start_time = _to_time(start.hour, start.minute, flipped)
    else:
        start_time = _bare_time(start)

    if start_time is None or end_time is None or start_time >= end_time:
        return None
    return start_time, end_time


def find_time_ranges(line: str) -> list[tuple[re.Match[str], dt.time, dt.time]]:
    """All clock ranges on *line* with their parsed times."""
    found = []
    for match in _TIME_RANGE_RE.finditer(line):
        times = parse_time_range(match.group("start"), match.group("end"))
        if times is not None:
            found.append((match, *times))
    return found


def find_due_time(text: str) -> dt.time | None:
    """Explicit due time (``by 11:59pm``, ``by noon``, ``at 5:00 pm``), if any.

    Clocks that are the start of a time range do not count.
    """
    range_spans = [match.span() for match, _, _ in find_time_ranges(text)]
    for match in _DUE_TIME_RE.finditer(text):
        position = match.start("clock")
        if any(lo <= position < hi for lo, hi in range_spans):
            continue
        clock = _read_clock(match.group("clock"))
        if clock is not None:
            value = _bare_time(clock)
            if value is not None:
                return value
    return None


def says_before_class(text: str) -> bool:
    """Whether *text* ties an item to the start of class."""
    return _BEFORE_CLASS_RE.search(text) is not None


def is_skip_content(text: str) -> bool:
    """Whether outline content marks the day as having no class.

    Content that is nothing but a holiday name (``Labor Day``) counts too.
    """
    if _SKIP_RE.search(text) is not None:
        return True
    return bool(find_holidays(text)) and not strip_holidays(text).strip(" .,;:!()-–—")


def due_sentences(content: str) -> list[str]:
    """Sentences of outline content that announce something due."""
    parts = re.split(r"(?<=[.;])\s+|;\s*", content)
    return [part.strip(" .;") for part in parts if _DUE_RE.search(part) and part.strip(" .;")]


def _collapse(text: str) -> str:
    return " ".join(text.split())


# ---------------------------------------------------------------------------
# Outline builders (mutable while scanning, frozen on output)
# ---------------------------------------------------------------------------


@dataclass
class _DayBuilder:
    parts: list[str] = field(default_factory=list)
    explicit_date: dt.date | None = None
    line_number: int = 0

    def add(self, content: str) -> None:
        content = _collapse(content)
        if content and content not in self.parts:
            self.parts.append(content)


@dataclass
class _WeekBuilder:
    week_number: int
    line_number: int
    start_date: dt.date | None = None
    week_level: _DayBuilder = field(default_factory=_DayBuilder)
    days: dict[Weekday, _DayBuilder] = field(default_factory=dict)

    def day(self, weekday: Weekday, line_number: int) -> _DayBuilder:
        if weekday not in self.days:
            self.days[weekday] = _DayBuilder(line_number=line_number)
        return self.days[weekday]


@dataclass(frozen=True)
class _Label:
    weekdays: tuple[Weekday, ...]
    explicit_date: dt.date | None = None
    week_start: dt.date | None = None


# ---------------------------------------------------------------------------
# Scanner
# ---------------------------------------------------------------------------


class SyllabusScanner:
    """Extracts a :class:`SyllabusContext` from syllabus text.

    Args:
        weekdays: Alias table for weekday words.
    """

    def __init__(self, weekdays: WeekdayTable | None = None) -> None:
        self._weekdays = weekdays or WeekdayTable()
        self._term: TermName | None = None
        self._year: int | None = None

    def scan(self, text: str) -> SyllabusContext:
        """Scan *text* into a context.  Never raises on odd input."""
        lines = [line.replace("\xa0", " ").strip() for line in text.splitlines()]

        self._term, self._year = self._find_term(text)
        meeting, class_start, class_end = self._find_meeting_pattern(lines)
        builders, consumed = self._read_outline(lines)
        outline = self._freeze_outline(builders, meeting)
        anchors = self._holiday_anchors(builders)
        items = self._read_items(lines, consumed)

        context = SyllabusContext(
            course=self._find_course(lines),
            term=self._term,
            term_year=self._year,
            meeting_weekdays=frozenset(meeting),
            class_start=class_start,
            class_end=class_end,
            weekly_outline=outline,
            holiday_anchors=anchors,
            items=items,
        )
        logger.debug(
            "Scanned syllabus: course=%r term=%s %s meets=%s %s-%s weeks=%d anchors=%d items=%d",
            context.course,
            context.term,
            context.term_year,
            "".join(day.label for day in sorted(meeting)) or "?",
            class_start,
            class_end,
            len(outline),
            len(anchors),
            len(items),
        )
        return context

    # -- term and dates -----------------------------------------------------

    def _find_term(self, text: str) -> tuple[TermName | None, int | None]:
        match = _TERM_RE.search(text)
        if match:
            term = match.group("term").title()
            if term == "Autumn":
                term = "Fall"
            return term, int(match.group("year"))  # type: ignore[return-value]

        # No term: fall back to the year of the first full literal date.
        for raw, has_year, _ in self._date_matches(text):
            if has_year:
                value = self._parse_date(raw, has_year=True)
                if value is not None:
                    return None, value.year
        return None, None

    def _date_matches(self, text: str) -> Iterator[tuple[str, bool, tuple[int, int]]]:
        matches: list[tuple[str, bool, tuple[int, int]]] = []
        for match in _ISO_DATE_RE.finditer(text):
            matches.append((match.group(0), True, match.span()))
        for pattern in (_NUMERIC_DATE_RE, _MONTH_DATE_RE):
            for match in pattern.finditer(text):
                if any(lo <= match.start() < hi for _, _, (lo, hi) in matches):
                    continue
                matches.append((match.group(0), bool(match.group("year")), match.span()))
        yield from sorted(matches, key=lambda found: found[2][0])

    def find_dates(self, text: str) -> list[tuple[dt.date, tuple[int, int]]]:
        """Literal dates in *text* with their character spans, in order.

        Year-less dates take the term year; dates that do not exist
        (``2/30``) or cannot be given a year are left out.
        """
        found = []
        for raw, has_year, span in self._date_matches(text):
            value = self._parse_date(raw, has_year=has_year)
            if value is not None:
                found.append((value, span))
        return found

    def _parse_date(self, raw: str, has_year: bool) -> dt.date | None:
        cleaned = raw.replace(".", " ")
        try:
            parsed = dateutil_parser.parse(cleaned, default=dt.datetime(2000, 1, 1)).date()
        except (ValueError, OverflowError):
            logger.debug("Ignoring invalid date %r", raw)
            return None
        if has_year:
            return parsed

        year = self.year_for_month(parsed.month)
        if year is None:
            return None
        try:
            return dt.date(year, parsed.month, parsed.day)
        except ValueError:
            logger.debug("Ignoring invalid date %r in %d", raw, year)
            return None

    def year_for_month(self, month: int) -> int | None:
        """Calendar year of *month* within the syllabus term."""
        if self._year is None:
            return None
        if self._term == "Fall" and month <= 2:
            return self._year + 1
        if self._term == "Winter" and month == 12:
            return self._year - 1
        return self._year

    # -- meeting pattern ----------------------------------------------------

    def _find_meeting_pattern(
        self, lines: list[str]
    ) -> tuple[set[Weekday], dt.time | None, dt.time | None]:
        for line in lines:
            if _OFFICE_HOURS_RE.search(line):
                continue
            for match, start, end in find_time_ranges(line):
                before = line[: match.start()].split()
                days = self._days_from_words(reversed(before), touching_ok=True)
                if not days:
                    days = self._days_from_words(line[match.end():].split(), touching_ok=False)
                if days:
                    return set(days), start, end
        return set(), None, None

    def _days_from_words(self, words: Iterable[str], touching_ok: bool) -> list[Weekday]:
        """Weekdays named by the run of *words* nearest a time range.

        A lone two-letter word such as ``We`` or ``Th`` doubles as ordinary
        text, so on its own it only counts when it touches the range from
        the left (``Th 2-3pm``), never after a connector (``We meet at 9-10``)
        or after the range (``9-10am. We read``).
        """
        days: list[Weekday] = []
        day_words: list[str] = []
        crossed_connector = False
        for word in words:
            word = word.strip(",;:()[]")
            if not word:
                continue
            if word.lower() in _CONNECTORS:
                if not day_words:
                    crossed_connector = True
                continue
            parsed = self._weekdays.parse_word(word)
            if parsed is None:
                break
            days.extend(parsed)
            day_words.append(word)

        if len(day_words) == 1 and _SHORT_DAY_RE.match(day_words[0].rstrip(".")):
            if crossed_connector or not touching_ok:
                logger.debug("Ignoring %r as a meeting day: reads as a word", day_words[0])
                return []
        return days

    # -- outline ------------------------------------------------------------

    def _read_outline(self, lines: list[str]) -> tuple[dict[int, _WeekBuilder], set[int]]:
        builders: dict[int, _WeekBuilder] = {}
        consumed: set[int] = set()
        current: _WeekBuilder | None = None
        targets: list[_DayBuilder] = []

        for number, line in enumerate(lines, start=1):
            if not line:
                targets = []
                continue

            header = _WEEK_HEADER_RE.match(line)
            if header:
                week = int(header.group("num"))
                if week < 1:
                    continue
                if week not in builders:
                    builders[week] = _WeekBuilder(week_number=week, line_number=number)
                current = builders[week]
                targets = self._read_header(current, header.group("rest"), number)
                consumed.add(number)
                continue

            if current is None:
                continue

            day_targets = self._read_day_line(current, line, number)
            if day_targets:
                targets = day_targets
                consumed.add(number)
                continue

            if targets and not self._has_date_or_ref(line):
                for target in targets:
                    target.add(line)
                consumed.add(number)
            else:
                targets = []

        return builders, consumed

    def _read_header(self, week: _WeekBuilder, rest: str, number: int) -> list[_DayBuilder]:
        rest = rest.strip()
        label: _Label | None = None
        content = rest

        if rest.startswith("("):
            close = rest.find(")")
            if close != -1:
                label = self._parse_label(rest[1:close])
                if label is not None:
                    content = rest[close + 1:]
        else:
            head, sep, tail = rest.partition(":")
            if sep and head.strip() and len(head) <= 40:
                label = self._parse_label(head)
                if label is not None:
                    content = tail

        content = content.strip().lstrip(":-–—").strip()
        return self._apply_label(week, label, content, number)

    def _read_day_line(self, week: _WeekBuilder, line: str, number: int) -> list[_DayBuilder]:
        match = _DAY_LINE_RE.match(line)
        if match is None:
            return []
        label = self._parse_label(match.group("label"))
        if label is None or not label.weekdays:
            return []
        return self._apply_label(week, label, match.group("content"), number)

    def _apply_label(
        self, week: _WeekBuilder, label: _Label | None, content: str, number: int
    ) -> list[_DayBuilder]:
        if label is None or not label.weekdays:
            if label is not None and label.week_start and week.start_date is None:
                week.start_date = label.week_start
            if not week.week_level.line_number:
                week.week_level.line_number = number
            week.week_level.add(content)
            return [week.week_level]

        targets = []
        for weekday in label.weekdays:
            day = week.day(weekday, number)
            if label.explicit_date is not None and day.explicit_date is None:
                day.explicit_date = label.explicit_date
            day.add(content)
            targets.append(day)
        return targets

    def _parse_label(self, label: str) -> _Label | None:
        """Parse an outline label such as ``Mon``, ``Mon, 8/19`` or ``Aug 19-23``."""
        dates = self.find_dates(label)
        remainder = label
        for _, (lo, hi) in reversed(dates):
            remainder = remainder[:lo] + " " + remainder[hi:]

        weekdays: list[Weekday] = []
        leftover_numbers = False
        for word in re.split(r"[\s,()\[\]/;]+", remainder):
            word = word.strip(".")
            if not word or word.lower() in _CONNECTORS:
                continue
            if re.fullmatch(r"[-–—]?\d*[-–—]?", word):
                leftover_numbers = leftover_numbers or any(ch.isdigit() for ch in word)
                continue
            parsed = self._weekdays.parse_word(word)
            if parsed is None:
                return None
            weekdays.extend(parsed)

        if not dates:
            if not weekdays or leftover_numbers:
                return None
            return _Label(weekdays=tuple(weekdays))

        first = dates[0][0]
        distinct = {value for value, _ in dates}
        if not weekdays and (len(distinct) > 1 or leftover_numbers):
            return _Label(weekdays=(), week_start=min(distinct))
        if len(distinct) > 1:
            return None
        # A literal date wins over the written weekday.
        return _Label(weekdays=(Weekday(first.weekday()),), explicit_date=first)

    def _freeze_outline(
        self, builders: dict[int, _WeekBuilder], meeting: set[Weekday]
    ) -> tuple[WeekEntry, ...]:
        entries = []
        for builder in sorted(builders.values(), key=lambda b: b.line_number):
            days: dict[Weekday, DayContent] = {}
            for weekday, day in builder.days.items():
                days[weekday] = self._freeze_day(day)

            week_level = "; ".join(builder.week_level.parts)
            if week_level:
                for weekday in sorted(meeting):
                    if weekday not in days:
                        days[weekday] = DayContent(
                            content=week_level,
                            skip=is_skip_content(week_level),
                            line_number=builder.week_level.line_number,
                        )
                if not meeting:
                    logger.debug(
                        "Week %d content has no meeting days to attach to", builder.week_number
                    )

            entries.append(
                WeekEntry(
                    week_number=builder.week_number,
                    per_day_content=dict(sorted(days.items())),
                    start_date=builder.start_date,
                    line_number=builder.line_number,
                )
            )
        return tuple(entries)

    @staticmethod
    def _freeze_day(day: _DayBuilder) -> DayContent:
        content = "; ".join(day.parts)
        return DayContent(
            content=content,
            skip=is_skip_content(content),
            explicit_date=day.explicit_date,
            line_number=day.line_number,
        )

    def _holiday_anchors(self, builders: dict[int, _WeekBuilder]) -> tuple[HolidayAnchor, ...]:
        mentions: list[tuple[int, int, Weekday | None, str]] = []
        for builder in builders.values():
            for weekday, day in builder.days.items():
                mentions.append((day.line_number, builder.week_number, weekday, " ".join(day.parts)))
            if builder.week_level.parts:
                mentions.append(
                    (
                        builder.week_level.line_number,
                        builder.week_number,
                        None,
                        " ".join(builder.week_level.parts),
                    )
                )

        anchors = []
        for line_number, week, weekday, content in sorted(mentions, key=lambda m: m[0]):
            holidays = find_holidays(content)
            if len(holidays) != 1:
                if holidays:
                    logger.debug("Week %d names several holidays; not an anchor", week)
                continue
            holiday = holidays[0]
            # A holiday named in a reading or note does not fall on that day.
            if not is_skip_content(content):
                logger.debug("Week %d mentions %s in class content; not an anchor", week, holiday.value)
                continue
            year = self.year_for_month(holiday_month(holiday))
            if year is None:
                logger.debug("No term year; cannot date %s", holiday.value)
                continue
            resolved = holiday_date(holiday, year)
            if weekday is not None and weekday != resolved.weekday():
                logger.debug(
                    "Week %d (%s) lists %s, which falls on a %s; not an anchor",
                    week,
                    weekday.label,
                    holiday.value,
                    Weekday(resolved.weekday()).label,
                )
                continue
            anchors.append(
                HolidayAnchor(
                    holiday=holiday,
                    resolved_date=resolved,
                    week_number=week,
                    weekday=weekday,
                    line_number=line_number,
                )
            )
        return tuple(anchors)

    def _has_date_or_ref(self, line: str) -> bool:
        return bool(_WEEK_REF_RE.search(line)) or any(True for _ in self._date_matches(line))

    # -- standalone items ---------------------------------------------------

    def _read_items(self, lines: list[str], consumed: set[int]) -> tuple[SyllabusItem, ...]:
        items = []
        for number, line in enumerate(lines, start=1):
            if not line or number in consumed:
                continue
            if not _ITEM_KEYWORD_RE.search(line) or _REVISION_RE.search(line):
                continue
            item = self._read_item(line, number)
            if item is not None:
                items.append(item)
        return tuple(items)

    def _read_item(self, line: str, number: int) -> SyllabusItem | None:
        dates = self.find_dates(line)
        ref = _WEEK_REF_RE.search(line)
        if not dates and ref is None:
            return None

        when: DateSource | None = None
        if dates:
            distinct = {value for value, _ in dates}
            if len(distinct) == 1:
                when = ExplicitDate(dates[0][0])
            else:
                logger.debug("Line %d names several dates; ambiguous", number)
        elif ref is not None:
            day = self._weekdays.parse_day(ref.group("day") or "")
            if day is not None:
                when = WeekRef(week_number=int(ref.group("num")), weekday=day)
            else:
                logger.debug("Line %d has a week reference without a day", number)

        ranges = find_time_ranges(line)
        due = _DUE_TIME_RE.search(line)
        positions = [span[0] for _, span in dates] + [m.start() for m, _, _ in ranges]
        if ref is not None:
            positions.append(ref.start())
        if due is not None:
            positions.append(due.start())
        marker = min(positions)

        start_time = end_time = None
        if ranges:
            _, start_time, end_time = ranges[0]

        return SyllabusItem(
            label=self._item_label(line, marker),
            text=line,
            when=when,
            due_time=find_due_time(line),
            before_class=says_before_class(line),
            start_time=start_time,
            end_time=end_time,
            line_number=number,
        )

    @staticmethod
    def _item_label(line: str, marker: int) -> str:
        head = line[:marker]
        head = _LABEL_TAIL_RE.sub("", head).strip()
        head = _LABEL_HEAD_RE.sub("", head)
        if not head:
            tail = _TIME_RANGE_RE.sub("", line[marker:])
            tail = _LEADING_DATE_RE.sub("", tail)
            head = _LABEL_HEAD_RE.sub("", tail).strip(" .,;")
        if not head:
            keyword = _ITEM_KEYWORD_RE.search(line)
            head = keyword.group(0).capitalize() if keyword else line
        head = _collapse(head)
        if len(head) > _MAX_LABEL:
            head = head[: _MAX_LABEL - 1].rstrip() + "…"
        return head

    # -- course -------------------------------------------------------------

    def _find_course(self, lines: list[str]) -> str:
        for line in lines:
            match = _COURSE_LINE_RE.match(line)
            if match:
                return self._trim_course(match.group("course"))

        for line in [line for line in lines if line][:_COURSE_SEARCH_LINES]:
            if _WEEK_HEADER_RE.match(line):
                break
            if _ITEM_KEYWORD_RE.search(line):
                continue
            cut = len(line)
            for pattern in (_TERM_RE, _TIME_RANGE_RE, _ISO_DATE_RE, _NUMERIC_DATE_RE, _MONTH_DATE_RE):
                match = pattern.search(line)
                if match:
                    cut = min(cut, match.start())
            head = line[:cut]
            # Drop a day pattern that sits right before the time range.
            words = head.split()
            while words and self._weekdays.parse_word(words[-1].strip(",;:()")):
                words.pop()
            course = self._trim_course(" ".join(words))
            if course:
                return course
        return ""

    @staticmethod
    def _trim_course(text: str) -> str:
        text = re.sub(r"\bsyllabus\b", "", text, flags=re.IGNORECASE)
        text = _collapse(text).strip(" ,;:-–—|")
        return text[:_MAX_COURSE].rstrip()
