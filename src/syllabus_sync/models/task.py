"""Pydantic models for dated syllabus tasks.

Defines the JSON boundary shared by the resolver, the Gemini extractor,
calendar sync, and storage:

- :class:`Task` -- one dated class meeting or due item.
- :class:`StoredTask` -- a :class:`Task` persisted for an owner, with the
  server-assigned numeric ``id``.
- :class:`LLMResponseTask` / :class:`LLMResponseSchema` -- schema passed to
  Gemini's ``response_schema`` parameter.
"""

from __future__ import annotations

import datetime as dt
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator

_TIME_FORMAT = "%H:%M"


class Task(BaseModel):
    """A single dated task produced from a syllabus.

    Serialises to ``{title, date: "YYYY-MM-DD", start_time?: "HH:MM",
    end_time?: "HH:MM", description}``.

    Attributes:
        title: Short label, e.g. ``"Contracts – Week 2 (Mon)"``.
        date: Calendar date of the meeting or deadline.
        start_time: Class start or due time, or ``None`` for all-day items.
        end_time: Class end time, or ``None``.  Always ``None`` for items
            with an explicit due time.
        description: Readings, assignments, or the original item text.
    """

    model_config = ConfigDict(frozen=True)

    title: str = Field(min_length=1)
    date: dt.date
    start_time: dt.time | None = None
    end_time: dt.time | None = None
    description: str = ""

    @field_validator("start_time", "end_time", mode="before")
    @classmethod
    def _parse_clock(cls, value: Any) -> Any:
        """Accept ``"HH:MM"`` strings and treat blanks as missing."""
        if isinstance(value, str):
            value = value.strip()
            if not value:
                return None
            return dt.datetime.strptime(value[:5], _TIME_FORMAT).time()
        return value

    @field_serializer("start_time", "end_time")
    def _format_clock(self, value: dt.time | None) -> str | None:
        return value.strftime(_TIME_FORMAT) if value is not None else None

    @property
    def dedup_key(self) -> tuple[str, dt.date, dt.time | None]:
        """Identity used for deduplication: ``(title, date, start_time)``."""
        return (self.title, self.date, self.start_time)

    @property
    def sort_key(self) -> tuple[dt.date, dt.time]:
        """Chronological ordering key; all-day tasks sort first on their day."""
        return (self.date, self.start_time or dt.time.min)

    def to_json_dict(self) -> dict[str, str]:
        """Return the boundary JSON shape, omitting absent times."""
        return self.model_dump(mode="json", exclude_none=True)


class StoredTask(Task):
    """A :class:`Task` persisted in the task store.

    Attributes:
        id: Server-assigned numeric identifier.
        user_id: Owner identity the record is scoped to.
    """

    id: int
    user_id: str

    def to_task(self) -> Task:
        """Drop the storage fields and return the plain :class:`Task`."""
        return Task(**self.model_dump(exclude={"id", "user_id"}))


# ---------------------------------------------------------------------------
# LLMResponseSchema -- schema for Gemini response_schema
# ---------------------------------------------------------------------------


class LLMResponseTask(BaseModel):
    """Single-task schema for Gemini's ``response_schema`` parameter.

    Times stay strings here; :class:`Task` parses them.
    """

    title: str
    date: str
    start_time: str | None = None
    end_time: str | None = None
    description: str


class LLMResponseSchema(BaseModel):
    """Top-level schema passed to Gemini's ``response_schema`` parameter."""

    tasks: list[LLMResponseTask]
