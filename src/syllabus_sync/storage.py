"""Task persistence, scoped by owner.

Two stores share the :class:`TaskStore` interface:

- :class:`SupabaseTaskStore` -- the ``tasks`` table in Supabase.  Rows are
  the Task JSON plus ``user_id``; the numeric ``id`` is assigned by the
  database.
- :class:`InMemoryTaskStore` -- a process-local store used when Supabase is
  not configured, and in tests.

:func:`get_task_store` picks one from :class:`~syllabus_sync.config.Settings`.
"""

from __future__ import annotations

import itertools
import logging
from collections.abc import Callable, Iterable
from typing import Any, Protocol

from pydantic import ValidationError
from supabase import Client, create_client

from syllabus_sync.config import Settings
from syllabus_sync.exceptions import StorageError
from syllabus_sync.models.task import StoredTask, Task

logger = logging.getLogger(__name__)

TASKS_TABLE = "tasks"


class TaskStore(Protocol):
    """Owner-scoped task storage."""

    def save(self, tasks: Iterable[Task], owner_id: str) -> list[StoredTask]:
        """Persist *tasks* for *owner_id* and return the stored records."""
        ...

    def list(self, owner_id: str) -> list[StoredTask]:
        """All tasks belonging to *owner_id*."""
        ...

    def delete(self, task_id: int, owner_id: str) -> None:
        """Delete task *task_id* if it belongs to *owner_id*."""
        ...


# ---------------------------------------------------------------------------
# In-memory store
# ---------------------------------------------------------------------------


class InMemoryTaskStore:
    """Process-local :class:`TaskStore`.  Ids start at 1 and are never reused."""

    def __init__(self) -> None:
        self._rows: dict[int, StoredTask] = {}
        self._ids = itertools.count(1)

    def save(self, tasks: Iterable[Task], owner_id: str) -> list[StoredTask]:
        stored = []
        for task in tasks:
            record = StoredTask(id=next(self._ids), user_id=owner_id, **task.model_dump())
            self._rows[record.id] = record
            stored.append(record)
        logger.info("Saved %d task(s) for %s in memory", len(stored), owner_id)
        return stored

    def list(self, owner_id: str) -> list[StoredTask]:
        return [row for row in self._rows.values() if row.user_id == owner_id]

    def delete(self, task_id: int, owner_id: str) -> None:
        row = self._rows.get(task_id)
        if row is not None and row.user_id == owner_id:
            del self._rows[task_id]
            logger.info("Deleted task %d for %s", task_id, owner_id)
        else:
            logger.info("No task %d for %s; nothing deleted", task_id, owner_id)


# ---------------------------------------------------------------------------
# Supabase store
# ---------------------------------------------------------------------------


class SupabaseTaskStore:
    """:class:`TaskStore` backed by the Supabase ``tasks`` table.

    Args:
        client: A ``supabase.Client`` (see :func:`create_supabase_client`).
    """

    def __init__(self, client: Client) -> None:
        self._client = client

    def save(self, tasks: Iterable[Task], owner_id: str) -> list[StoredTask]:
        rows = [{**task.to_json_dict(), "user_id": owner_id} for task in tasks]
        if not rows:
            return []
        response = self._execute(
            "insert", lambda: self._client.table(TASKS_TABLE).insert(rows).execute()
        )
        stored = self._records(response)
        logger.info("Saved %d task(s) for %s in Supabase", len(stored), owner_id)
        return stored

    def list(self, owner_id: str) -> list[StoredTask]:
        response = self._execute(
            "select",
            lambda: self._client.table(TASKS_TABLE)
            .select("*")
            .eq("user_id", owner_id)
            .execute(),
        )
        return self._records(response)

    def delete(self, task_id: int, owner_id: str) -> None:
        self._execute(
            "delete",
            lambda: self._client.table(TASKS_TABLE)
            .delete()
            .eq("id", task_id)
            .eq("user_id", owner_id)
            .execute(),
        )
        logger.info("Deleted task %d for %s", task_id, owner_id)

    @staticmethod
    def _execute(operation: str, call: Callable[[], Any]) -> Any:
        try:
            return call()
        except Exception as exc:
            logger.error("Supabase %s on '%s' failed: %s", operation, TASKS_TABLE, exc)
            raise StorageError(f"Task {operation} failed: {exc}") from exc

    @staticmethod
    def _records(response: Any) -> list[StoredTask]:
        rows = getattr(response, "data", None) or []
        try:
            return [StoredTask.model_validate(row) for row in rows]
        except ValidationError as exc:
            raise StorageError(f"Unexpected row in '{TASKS_TABLE}': {exc}") from exc


# ---------------------------------------------------------------------------
# Factory
# ---------------------------------------------------------------------------


def create_supabase_client(settings: Settings) -> Client:
    """Create a Supabase client from *settings*.

    Raises:
        StorageError: If ``SUPABASE_URL`` or ``SUPABASE_KEY`` is missing.
    """
    if not settings.supabase_configured:
        raise StorageError("Supabase is not configured (SUPABASE_URL / SUPABASE_KEY)")
    return create_client(settings.supabase_url, settings.supabase_key)


def get_task_store(settings: Settings) -> TaskStore:
    """Return the Supabase store when configured, else an in-memory store."""
    if not settings.supabase_configured:
        logger.warning("Supabase not configured; tasks are kept in memory only")
        return InMemoryTaskStore()
    return SupabaseTaskStore(create_supabase_client(settings))
