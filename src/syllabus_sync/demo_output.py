"""Console output for the syllabus-to-calendar pipeline.

Renders a :class:`~syllabus_sync.pipeline.PipelineResult` as structured
console output: document metadata, resolved tasks, storage, calendar
operations, and a summary.

The primary entry point is :func:`format_pipeline_result`, which returns
the formatted string.  :func:`print_pipeline_result` is a convenience
wrapper that writes directly to stdout.  :func:`format_tasks` and
:func:`format_events` back the ``tasks list`` and ``events`` commands.
"""

from __future__ import annotations

import sys
from collections.abc import Sequence
from datetime import datetime

from syllabus_sync.models.task import StoredTask, Task
from syllabus_sync.pipeline import PipelineResult

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

_BANNER_WIDTH = 60
_SEPARATOR = "=" * _BANNER_WIDTH
_DESCRIPTION_WIDTH = 70


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def format_pipeline_result(result: PipelineResult) -> str:
    """Render a :class:`PipelineResult` as structured demo output.

    The output includes four labelled stages and a summary section:

    - **Stage 1** -- Document metadata (file, characters extracted).
    - **Stage 2** -- Resolved tasks with date, time, and description.
    - **Stage 3** -- Stored records.
    - **Stage 4** -- Calendar operations.
    - **Summary** -- Counts, warnings, and pipeline duration.

    Args:
        result: The pipeline result to format.

    Returns:
        A multi-line string ready for console display.
    """
    lines: list[str] = []

    _append_banner(lines)
    _append_stage1(lines, result)
    _append_stage2(lines, result)
    _append_stage3(lines, result)
    _append_stage4(lines, result)
    _append_summary(lines, result)
    lines.append(_SEPARATOR)

    return "\n".join(lines)


def print_pipeline_result(result: PipelineResult) -> None:
    """Format and print a :class:`PipelineResult` to stdout."""
    sys.stdout.write(format_pipeline_result(result) + "\n")


def format_tasks(tasks: Sequence[Task]) -> str:
    """One line per task: ``[id] date time  title``."""
    if not tasks:
        return "No tasks."
    lines = []
    for task in tasks:
        prefix = f"[{task.id}] " if isinstance(task, StoredTask) else ""
        lines.append(f"{prefix}{task.date.isoformat()} {_format_task_time(task):<13} {task.title}")
    return "\n".join(lines)


def format_events(events: Sequence[dict]) -> str:
    """One line per Calendar event resource: start and summary."""
    if not events:
        return "No upcoming events found."
    lines = []
    for event in events:
        start = event.get("start", {})
        when = start.get("dateTime") or start.get("date") or "?"
        lines.append(f"{_format_event_start(when)}  {event.get('summary', '(no title)')}")
    return "\n".join(lines)


# ---------------------------------------------------------------------------
# Internal formatters
# ---------------------------------------------------------------------------


def _append_banner(lines: list[str]) -> None:
    lines.append(_SEPARATOR)
    lines.append("  SYLLABUS SYNC")
    lines.append(_SEPARATOR)


def _append_stage1(lines: list[str], result: PipelineResult) -> None:
    """Append Stage 1: Document Loaded."""
    lines.append("")
    lines.append("--- STAGE 1: Document Loaded ---")
    lines.append(f"  File: {result.document_path}")
    lines.append(f"  Text: {result.characters_extracted} characters")


def _append_stage2(lines: list[str], result: PipelineResult) -> None:
    """Append Stage 2: Tasks Resolved."""
    lines.append("")
    lines.append("--- STAGE 2: Tasks Resolved ---")

    if not result.tasks:
        lines.append("  No dated tasks found in this document.")
        return

    lines.append(f"  Found {len(result.tasks)} task(s)")

    for idx, task in enumerate(result.tasks, start=1):
        lines.append("")
        lines.append(f"  Task {idx}: {task.title}")
        lines.append(f"    When: {task.date.strftime('%A %Y-%m-%d')}, {_format_task_time(task)}")
        if task.description:
            lines.append(f"    What: {_shorten(task.description)}")


def _append_stage3(lines: list[str], result: PipelineResult) -> None:
    """Append Stage 3: Storage."""
    lines.append("")
    lines.append("--- STAGE 3: Storage ---")

    if result.dry_run:
        lines.append("  [DRY RUN] Nothing saved.")
    elif result.stored:
        lines.append(f"  Saved {len(result.stored)} task(s) for {result.stored[0].user_id}")
    else:
        lines.append("  Nothing saved.")


def _append_stage4(lines: list[str], result: PipelineResult) -> None:
    """Append Stage 4: Calendar Operations."""
    lines.append("")
    lines.append("--- STAGE 4: Calendar Operations ---")

    if not result.tasks:
        lines.append("  No operations to perform.")
        return

    if result.dry_run:
        for task in result.tasks:
            lines.append(f'  [DRY RUN] Would create "{task.title}" on {task.date.isoformat()}')
        return

    sync = result.sync_result
    if sync is None:
        lines.append("  Calendar sync did not run.")
        return

    for event in sync.created_events:
        lines.append(f'  [CREATE] "{event.get("summary", "")}" -> Created (ID: {event.get("id", "?")})')
    if sync.skipped:
        lines.append(f"  [SKIP] {sync.skipped} task(s) already on the calendar")
    for failure in sync.failures:
        lines.append(f'  [FAILED] "{failure["task"]}" -> Error: {failure["error"]}')


def _append_summary(lines: list[str], result: PipelineResult) -> None:
    lines.append("")
    lines.append("--- SUMMARY ---")
    lines.append(f"  Tasks resolved: {len(result.tasks)}")
    lines.append(f"  Tasks saved: {len(result.stored)}")

    sync = result.sync_result
    lines.append(f"  Events created: {sync.created if sync else 0}")
    lines.append(f"  Skipped (already on calendar): {sync.skipped if sync else 0}")
    lines.append(f"  Failed: {len(sync.failures) if sync else 0}")
    lines.append(f"  Warnings: {len(result.warnings)}")

    for warning in result.warnings:
        lines.append(f"    - {warning}")

    lines.append(f"  Pipeline duration: {result.duration_seconds:.1f}s")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _format_task_time(task: Task) -> str:
    if task.start_time is None:
        return "all day"
    start = task.start_time.strftime("%H:%M")
    if task.end_time is None:
        return f"due {start}"
    return f"{start}-{task.end_time.strftime('%H:%M')}"


def _format_event_start(value: str) -> str:
    """Format an event start for display, falling back to the raw string."""
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return value
    if "T" not in value:
        return parsed.strftime("%a %Y-%m-%d")
    return parsed.strftime("%a %Y-%m-%d %I:%M %p")


def _shorten(text: str) -> str:
    text = " ".join(text.split())
    if len(text) <= _DESCRIPTION_WIDTH:
        return text
    return text[: _DESCRIPTION_WIDTH - 3].rstrip() + "..."
