"""Entry point for ``python -m syllabus_sync``.

Provides a CLI that reads a syllabus document and runs the full
syllabus-to-calendar pipeline.  Uses stdlib :mod:`argparse` for argument
parsing.

Subcommands:
    run     -- Default. Process a syllabus, save its tasks, sync to calendar.
    resolve -- Print the resolved tasks as a JSON array.
    tasks   -- List or delete stored tasks.
    events  -- List upcoming Google Calendar events.

Exit codes:
    0 -- Command completed successfully (including zero tasks).
    1 -- An error occurred (file not found, unsupported format, config,
         storage, or calendar error).
    2 -- Argument parsing error (handled by argparse).
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

from syllabus_sync.calendar.exceptions import CalendarAPIError
from syllabus_sync.config import ConfigError, Settings, load_settings
from syllabus_sync.demo_output import format_events, format_tasks, print_pipeline_result
from syllabus_sync.documents import extract_text_from_file
from syllabus_sync.exceptions import MalformedOutputError, SyllabusSyncError
from syllabus_sync.log import setup_logging
from syllabus_sync.pipeline import build_calendar, build_extractor, run_pipeline
from syllabus_sync.storage import SupabaseTaskStore, create_supabase_client

_DEFAULT_OWNER = "local"
_SUBCOMMANDS = {"run", "resolve", "tasks", "events"}


def build_parser() -> argparse.ArgumentParser:
    """Build and return the CLI argument parser with subcommands."""
    parser = argparse.ArgumentParser(
        prog="syllabus-sync",
        description="Turn a course syllabus into dated calendar events.",
    )

    # Shared by every subcommand.
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        default=False,
        help="Enable debug-level logging.",
    )

    subparsers = parser.add_subparsers(dest="command")

    # --- "run" subcommand (default) -----------------------------------
    run_parser = subparsers.add_parser(
        "run",
        parents=[common],
        help="Process a syllabus and sync its tasks to calendar.",
    )
    run_parser.add_argument("document", help="Path to the syllabus (PDF, DOCX, image, or text).")
    run_parser.add_argument(
        "--dry-run",
        action="store_true",
        default=False,
        help="Resolve tasks but skip storage and calendar sync.",
    )
    run_parser.add_argument(
        "--no-save",
        action="store_true",
        default=False,
        help="Skip saving tasks to the task store.",
    )
    run_parser.add_argument(
        "--owner",
        default=None,
        help="Owner identity for stored tasks (defaults to OWNER_ID from config).",
    )
    _add_extractor_argument(run_parser)

    # --- "resolve" subcommand -----------------------------------------
    resolve_parser = subparsers.add_parser(
        "resolve",
        parents=[common],
        help="Print the tasks resolved from a syllabus as JSON.",
    )
    resolve_parser.add_argument("document", help="Path to the syllabus.")
    _add_extractor_argument(resolve_parser)

    # --- "tasks" subcommand -------------------------------------------
    tasks_parser = subparsers.add_parser(
        "tasks",
        parents=[common],
        help="List or delete stored tasks.",
    )
    tasks_parser.add_argument("--owner", default=None, help="Owner identity.")
    tasks_actions = tasks_parser.add_subparsers(dest="action", required=True)
    tasks_actions.add_parser("list", help="List stored tasks.")
    delete_parser = tasks_actions.add_parser("delete", help="Delete a stored task.")
    delete_parser.add_argument("task_id", type=int, help="Numeric task id.")

    # --- "events" subcommand ------------------------------------------
    events_parser = subparsers.add_parser(
        "events",
        parents=[common],
        help="List upcoming Google Calendar events.",
    )
    events_parser.add_argument(
        "--max",
        dest="max_results",
        type=int,
        default=10,
        help="Maximum number of events to list (default: 10).",
    )
    events_parser.add_argument("--owner", default=None, help="Owner identity.")

    return parser


def _add_extractor_argument(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--extractor",
        choices=("rules", "gemini"),
        default=None,
        help="Task extractor (defaults to EXTRACTOR from config, else rules).",
    )


def _resolve_command(
    parser: argparse.ArgumentParser,
    argv: list[str],
) -> argparse.Namespace:
    """Parse *argv* with an implicit ``run`` subcommand.

    If the first token is not a known subcommand (whether it is a
    positional path or an option flag like ``--dry-run``), ``run`` is
    prepended so that ``python -m syllabus_sync syllabus.pdf`` works.
    """
    if not argv:
        argv = ["run"]
    elif argv[0] in {"-h", "--help"}:
        pass
    elif argv[0] not in _SUBCOMMANDS:
        argv = ["run", *argv]

    return parser.parse_args(argv)


def _owner(args: argparse.Namespace, settings: Settings) -> str:
    return args.owner or settings.owner_id or _DEFAULT_OWNER


# ---------------------------------------------------------------------------
# Handlers
# ---------------------------------------------------------------------------


def _handle_run(args: argparse.Namespace) -> int:
    settings = load_settings()
    extractor = build_extractor(settings, args.extractor)

    result = run_pipeline(
        document_path=Path(args.document),
        owner_id=_owner(args, settings),
        settings=settings,
        dry_run=args.dry_run,
        save=not args.no_save,
        extractor=extractor,
    )
    print_pipeline_result(result)
    return 0


def _handle_resolve(args: argparse.Namespace) -> int:
    settings = load_settings()
    extractor = build_extractor(settings, args.extractor)

    text = extract_text_from_file(Path(args.document))
    tasks = extractor.extract_tasks(text)
    print(json.dumps([task.to_json_dict() for task in tasks], indent=2, ensure_ascii=False))
    return 0


def _handle_tasks(args: argparse.Namespace) -> int:
    settings = load_settings(required=("SUPABASE_URL", "SUPABASE_KEY"))
    store = SupabaseTaskStore(create_supabase_client(settings))
    owner = _owner(args, settings)

    if args.action == "delete":
        store.delete(args.task_id, owner)
        print(f"Deleted task {args.task_id}.")
        return 0

    print(format_tasks(store.list(owner)))
    return 0


def _handle_events(args: argparse.Namespace) -> int:
    settings = load_settings()
    client, session = build_calendar(settings, _owner(args, settings))
    print(format_events(client.list_events(session, max_results=args.max_results)))
    return 0


_HANDLERS = {
    "run": _handle_run,
    "resolve": _handle_resolve,
    "tasks": _handle_tasks,
    "events": _handle_events,
}


def main(argv: list[str] | None = None) -> int:
    """Run the syllabus-sync CLI.

    Args:
        argv: Command-line arguments.  Defaults to ``sys.argv[1:]``
            when ``None`` (the normal case).

    Returns:
        Exit code: ``0`` on success, ``1`` on error.
    """
    parser = build_parser()
    args = _resolve_command(parser, argv if argv is not None else sys.argv[1:])

    # --- Configure logging --------------------------------------------
    log_level = "DEBUG" if getattr(args, "verbose", False) else "INFO"
    setup_logging(log_level)

    # --- Dispatch to subcommand handler -------------------------------
    handler = _HANDLERS[args.command or "run"]
    try:
        return handler(args)
    except MalformedOutputError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        if exc.raw_output:
            print(f"Raw output:\n{exc.raw_output}", file=sys.stderr)
        return 1
    except (FileNotFoundError, PermissionError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    except (ConfigError, SyllabusSyncError, CalendarAPIError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
