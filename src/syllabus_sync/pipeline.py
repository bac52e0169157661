"""Pipeline orchestrator for the syllabus-to-calendar workflow.

Wires all components together: document text extraction, task resolution
(rules-based or Gemini), task storage, and Google Calendar sync.  The
top-level entry point is :func:`run_pipeline`, which returns a
:class:`PipelineResult` suitable for rendering by the demo output formatter.
"""

from __future__ import annotations

import datetime as dt
import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol

from syllabus_sync.calendar.auth import (
    AuthSession,
    GoogleTokenRefresher,
    get_calendar_credentials,
    session_from_credentials,
)
from syllabus_sync.calendar.client import GoogleCalendarClient
from syllabus_sync.calendar.sync import sync_tasks
from syllabus_sync.config import ConfigError, Settings
from syllabus_sync.documents import extract_text_from_file
from syllabus_sync.exceptions import StorageError
from syllabus_sync.llm import GeminiTaskExtractor
from syllabus_sync.models.calendar import SyncResult
from syllabus_sync.models.task import StoredTask, Task
from syllabus_sync.resolver import DateResolver, WeekdayTable
from syllabus_sync.storage import TaskStore, get_task_store

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Extractors
# ---------------------------------------------------------------------------


class TaskExtractor(Protocol):
    """Anything that turns syllabus text into tasks."""

    def extract_tasks(self, text: str) -> list[Task]: ...


class RulesTaskExtractor:
    """Adapts :class:`~syllabus_sync.resolver.DateResolver` to :class:`TaskExtractor`.

    Args:
        weekdays: Weekday alias table passed to the resolver.
    """

    def __init__(self, weekdays: WeekdayTable | None = None) -> None:
        self._resolver = DateResolver(weekdays)

    def extract_tasks(self, text: str) -> list[Task]:
        return self._resolver.resolve(text)


def build_extractor(settings: Settings, name: str | None = None) -> TaskExtractor:
    """Build the extractor named *name* (default ``settings.extractor``).

    Raises:
        ConfigError: If the Gemini extractor is chosen without an API key,
            or the name is unknown.
    """
    name = (name or settings.extractor).lower()
    if name == "rules":
        weekdays = WeekdayTable().with_overrides(settings.weekday_aliases)
        return RulesTaskExtractor(weekdays)
    if name == "gemini":
        if not settings.gemini_api_key:
            raise ConfigError("Missing required environment variables: GEMINI_API_KEY")
        return GeminiTaskExtractor(api_key=settings.gemini_api_key, model=settings.gemini_model)
    raise ConfigError(f"Unknown extractor: {name!r}")


# ---------------------------------------------------------------------------
# Result dataclass
# ---------------------------------------------------------------------------


@dataclass
class PipelineResult:
    """Aggregated result from the full pipeline run.

    Attributes:
        document_path: Path to the input document.
        characters_extracted: Length of the extracted text.
        tasks: Tasks produced by the extractor, in chronological order.
        stored: Records written to the task store (empty if not saved).
        sync_result: Calendar sync outcome, or ``None`` when sync was skipped.
        warnings: Non-fatal warnings from any stage.
        duration_seconds: Wall-clock time for the full pipeline.
        dry_run: Whether the pipeline ran in dry-run mode.
    """

    document_path: Path
    characters_extracted: int = 0
    tasks: list[Task] = field(default_factory=list)
    stored: list[StoredTask] = field(default_factory=list)
    sync_result: SyncResult | None = None
    warnings: list[str] = field(default_factory=list)
    duration_seconds: float = 0.0
    dry_run: bool = False


# ---------------------------------------------------------------------------
# Pipeline entry point
# ---------------------------------------------------------------------------


def run_pipeline(
    document_path: Path,
    owner_id: str,
    settings: Settings,
    dry_run: bool = False,
    save: bool = True,
    extractor: TaskExtractor | None = None,
    now: dt.datetime | None = None,
    store: TaskStore | None = None,
    calendar: tuple[GoogleCalendarClient, AuthSession] | None = None,
) -> PipelineResult:
    """Run the full syllabus-to-calendar pipeline.

    Executes four stages:

    1. **Extract text** -- read the document and pull out plain text.
    2. **Resolve tasks** -- turn the text into dated tasks.
    3. **Save** -- persist tasks for *owner_id*.  Skipped in dry-run mode
       or when *save* is ``False``.
    4. **Sync to Calendar** -- create one event per task.  Skipped in
       dry-run mode.

    Storage failures become warnings.  Individual calendar failures are
    recorded in the sync result and do not stop the remaining tasks.

    Args:
        document_path: The syllabus document (PDF, DOCX, image, or text).
        owner_id: Identity tasks are stored under.
        settings: Application settings.
        dry_run: If ``True``, extract and resolve but write nothing.
        save: If ``False``, skip the storage stage.
        extractor: Task extractor; built from *settings* when ``None``.
        now: Override for "now" when checking token expiry.
        store: Task store; built from *settings* when ``None``.
        calendar: ``(client, session)`` to sync with; built from the
            installed-app sign-in flow when ``None``.

    Returns:
        A :class:`PipelineResult` with all pipeline outputs.

    Raises:
        FileNotFoundError: If *document_path* does not exist.
        UnsupportedFormatError: If the document type is not supported.
        ExtractionFailedError: If no text could be extracted, or the LLM
            call failed.
        MalformedOutputError: If the LLM output could not be parsed.
        CalendarAuthError: If the calendar session cannot be authorised.
    """
    start_time = time.monotonic()
    document_path = Path(document_path)
    result = PipelineResult(document_path=document_path, dry_run=dry_run)

    # ------------------------------------------------------------------
    # Stage 1: Extract text
    # ------------------------------------------------------------------
    logger.info("Stage 1: Extracting text from %s", document_path)
    text = extract_text_from_file(document_path)
    result.characters_extracted = len(text)
    logger.info("Stage 1 complete: %d characters", result.characters_extracted)

    # ------------------------------------------------------------------
    # Stage 2: Resolve tasks
    # ------------------------------------------------------------------
    extractor = extractor or build_extractor(settings)
    logger.info("Stage 2: Resolving tasks with %s", type(extractor).__name__)
    result.tasks = extractor.extract_tasks(text)
    logger.info("Stage 2 complete: %d task(s)", len(result.tasks))

    if not result.tasks:
        result.warnings.append("No dated tasks found in the document")
        result.duration_seconds = time.monotonic() - start_time
        return result

    if dry_run:
        logger.info("Dry-run mode -- skipping storage and calendar sync")
        result.duration_seconds = time.monotonic() - start_time
        return result

    # ------------------------------------------------------------------
    # Stage 3: Save
    # ------------------------------------------------------------------
    if save:
        logger.info("Stage 3: Saving %d task(s) for %s", len(result.tasks), owner_id)
        try:
            store = store or get_task_store(settings)
            result.stored = store.save(result.tasks, owner_id)
        except StorageError as exc:
            msg = f"Tasks not saved: {exc}"
            result.warnings.append(msg)
            logger.warning(msg)
    else:
        logger.info("Stage 3: Saving disabled")

    # ------------------------------------------------------------------
    # Stage 4: Sync to Calendar
    # ------------------------------------------------------------------
    client, session = calendar or build_calendar(settings, owner_id)
    client.ensure_session(session, now)
    logger.info("Stage 4: Syncing %d task(s) to Google Calendar", len(result.tasks))
    result.sync_result = sync_tasks(session, result.tasks, client)

    result.duration_seconds = time.monotonic() - start_time
    logger.info("Pipeline complete in %.1fs", result.duration_seconds)
    return result


# ---------------------------------------------------------------------------
# Calendar wiring
# ---------------------------------------------------------------------------


def build_calendar(
    settings: Settings, owner_id: str
) -> tuple[GoogleCalendarClient, AuthSession]:
    """Sign in via the installed-app flow and build a calendar client."""
    creds = get_calendar_credentials(
        credentials_path=settings.google_credentials_path,
        token_path=settings.google_token_path,
    )
    session = session_from_credentials(creds, user_id=owner_id)

    client_id = settings.google_client_id or creds.client_id
    client_secret = settings.google_client_secret or creds.client_secret
    refresher = (
        GoogleTokenRefresher(client_id, client_secret) if client_id and client_secret else None
    )
    client = GoogleCalendarClient(refresher=refresher, timezone=settings.timezone)
    return client, session
