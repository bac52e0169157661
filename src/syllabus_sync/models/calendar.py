"""Data models for Google Calendar sync results.

Defines the structured output from the calendar sync orchestrator:

- :class:`SyncResult` -- aggregated outcome of pushing tasks to Google
  Calendar, including the created event resources and per-task failures.
"""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class SyncResult:
    """Aggregated result of syncing tasks to Google Calendar.

    Attributes:
        created: Number of events successfully created.
        skipped: Number of tasks skipped because an event with the same
            summary already exists on that day.
        created_events: API resources returned for the created events.
        failures: Tasks that failed to sync.  Each dict contains at least
            ``"task"`` and ``"error"`` keys.
    """

    created: int = 0
    skipped: int = 0
    created_events: list[dict] = field(default_factory=list)
    failures: list[dict] = field(default_factory=list)

    @property
    def total_processed(self) -> int:
        """Number of tasks handled without error."""
        return self.created + self.skipped

    @property
    def has_failures(self) -> bool:
        """Whether any task failed to sync."""
        return len(self.failures) > 0
