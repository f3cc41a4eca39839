"""
CLI (Command Line Interface).

    deadline-sync login --import state.json   install an exported portal session
    deadline-sync login --status              check the saved session
    deadline-sync sync [--dry-run]            portal deadlines -> reminders
    deadline-sync syllabus add FILE -c NAME   syllabus dates -> reminders
    deadline-sync status [--events]           what was synced so far
    deadline-sync reset [--force]             forget everything that was synced

Exit codes: 0 ok, 1 error, 2 session missing/expired (log in again).
"""

from __future__ import annotations

import argparse
from datetime import datetime
from typing import Optional

from rich import box
from rich.console import Console
from rich.table import Table

from deadlinesync.config import Settings, load_settings
from deadlinesync.dates import parse_date
from deadlinesync.errors import DeadlineSyncError, NotAuthenticated
from deadlinesync.export_ics import IcsReminders
from deadlinesync.log import setup_logging
from deadlinesync.model import Origin
from deadlinesync.reminders import AppleReminders, ReminderSink, remind_at
from deadlinesync.review import review_candidates
from deadlinesync.session import (
    CookieSessionProvider,
    clear_session,
    import_session,
    is_valid,
    load_session,
    session_exists,
)
from deadlinesync.storage import Ledger
from deadlinesync.sync import SyncReport, ingest_document, run_portal_sync

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_AUTH = 2

console = Console()


def _make_sink(args: argparse.Namespace, settings: Settings) -> Optional[ReminderSink]:
    if args.dry_run:
        return None
    if args.ics:
        return IcsReminders(args.ics, settings.advance_days)
    sink = AppleReminders(settings.list_name, settings.advance_days)
    sink.ensure_list()
    return sink


def _print_report(report: SyncReport, settings: Settings) -> None:
    print(f"\nFound {report.discovered} total items")
    print(f"{report.already_synced} already synced")

    if report.dry_run:
        if not report.pending:
            print("Nothing new to sync!")
            return
        print("\nDRY RUN - Would create these reminders:\n")
        for item in report.pending:
            remind = remind_at(item.due_date, settings.advance_days)
            print(f"  {item.course_name} - {item.kind.value.capitalize()} - {item.title}")
            print(f"    Due: {item.due_date:%Y-%m-%d %H:%M}")
            print(f"    Remind: {remind:%Y-%m-%d} ({settings.advance_days} days before)")
        print(f'\nTotal: {len(report.pending)} reminders would be created in "{settings.list_name}" list')
        return

    print(f"{report.created} created")
    if report.failed:
        print(f"{report.failed} failed (will be retried next time):")
        for title in report.failures:
            print(f"  - {title}")


def _cmd_login(args: argparse.Namespace, settings: Settings) -> int:
    if args.clear:
        if clear_session(settings):
            print("Session cleared.")
        else:
            print("No session to clear.")
        return EXIT_OK

    if args.import_file:
        try:
            dest = import_session(settings, args.import_file)
        except (OSError, ValueError) as exc:
            print(f"Error: {exc}")
            return EXIT_ERROR
        print(f"Session saved to {dest}")
        return EXIT_OK

    if args.status:
        session = load_session(settings)
        if session is None:
            print('No session found. Run "deadline-sync login --import FILE" to authenticate.')
            return EXIT_ERROR
        with session:
            valid = is_valid(session)
        if valid:
            print("Session is valid.")
            return EXIT_OK
        print('Session expired. Run "deadline-sync login --import FILE" to refresh.')
        return EXIT_AUTH

    print("Log in to the portal in your browser, export the session storage state")
    print('(cookies JSON) and install it with "deadline-sync login --import FILE".')
    return EXIT_ERROR


def _cmd_sync(args: argparse.Namespace, settings: Settings) -> int:
    print("Starting sync...\n")
    try:
        sink = _make_sink(args, settings)
        with Ledger(settings.database_path) as ledger:
            report = run_portal_sync(
                ledger,
                sink,
                CookieSessionProvider(settings),
                dry_run=args.dry_run,
                echo=print,
            )
    except NotAuthenticated as exc:
        print(f"\n{exc}")
        return EXIT_AUTH
    except (DeadlineSyncError, OSError) as exc:
        print(f"\nSync failed: {exc}")
        return EXIT_ERROR

    _print_report(report, settings)
    return EXIT_OK


def _cmd_syllabus_add(args: argparse.Namespace, settings: Settings) -> int:
    reference = None
    if args.reference:
        reference = parse_date(args.reference)
        if reference is None:
            print(f"Could not parse reference date: {args.reference}")
            return EXIT_ERROR

    print(f"\nParsing syllabus: {args.file}")
    print(f"Course: {args.course}\n")
    try:
        sink = _make_sink(args, settings)
        with Ledger(settings.database_path) as ledger:
            report = ingest_document(
                args.file,
                args.course,
                ledger,
                sink,
                review=review_candidates,
                reference=reference,
                dry_run=args.dry_run,
                echo=print,
            )
    except FileNotFoundError as exc:
        print(str(exc))
        return EXIT_ERROR
    except (DeadlineSyncError, OSError) as exc:
        print(f"Error: {exc}")
        return EXIT_ERROR

    _print_report(report, settings)
    return EXIT_OK


def _cmd_status(args: argparse.Namespace, settings: Settings) -> int:
    print("\n=== Session Status ===")
    if session_exists(settings):
        session = load_session(settings)
        if session is None:
            print("Session: Could not load")
        else:
            with session:
                print(f"Session: {'Valid' if is_valid(session) else 'Expired'}")
    else:
        print("Session: Not logged in")

    with Ledger(settings.database_path) as ledger:
        records = ledger.list_synced()
        last = ledger.last_run()

    now = datetime.now()
    upcoming = [r for r in records if datetime.fromisoformat(r.due_date) > now]

    print("\n=== Sync Statistics ===")
    print(f"Total synced: {len(records)}")
    print(f"From portal: {sum(1 for r in records if r.origin is Origin.PORTAL)}")
    print(f"From syllabus: {sum(1 for r in records if r.origin is Origin.DOCUMENT)}")
    print(f"Upcoming: {len(upcoming)}")
    if last is not None:
        line = f"Last run: {last.started_at} ({last.status.value}, {last.items_created} created)"
        if last.error_message:
            line += f" - {last.error_message}"
        print(line)

    if args.events and records:
        table = Table(title="Synced events", box=box.SIMPLE)
        table.add_column("Due")
        table.add_column("Course")
        table.add_column("Title")
        table.add_column("")
        for r in records:
            due = datetime.fromisoformat(r.due_date)
            table.add_row(f"{due:%b %d, %Y}", r.course_name, r.title, "[PAST]" if due < now else "")
        console.print(table)

    print("")
    return EXIT_OK


def _cmd_reset(args: argparse.Namespace, settings: Settings) -> int:
    print("\n========================================")
    print("         WARNING: DESTRUCTIVE ACTION")
    print("========================================\n")
    print("This command will clear ALL sync tracking data.\n")
    print("Consequences:")
    print("  - The next sync will re-create ALL reminders")
    print("  - You may end up with DUPLICATE reminders")
    print("  - This does NOT delete existing reminders\n")

    if not args.force:
        answer = input('Type "RESET" to confirm: ')
        if answer != "RESET":
            print("\nReset cancelled.")
            return EXIT_OK

    with Ledger(settings.database_path) as ledger:
        ledger.reset_all()

    print("\nSync tracking database has been reset.")
    return EXIT_OK


def build_parser() -> argparse.ArgumentParser:
    """
    Build the argparse CLI parser with sub-commands.
    """
    parser = argparse.ArgumentParser(
        prog="deadline-sync",
        description="Sync course deadlines to reminders",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Show debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    p_login = sub.add_parser("login", help="Manage the saved portal session")
    group = p_login.add_mutually_exclusive_group()
    group.add_argument("--import", dest="import_file", metavar="FILE", help="Install an exported session state")
    group.add_argument("--status", action="store_true", help="Check if session is valid")
    group.add_argument("--clear", action="store_true", help="Clear saved session")

    p_sync = sub.add_parser("sync", help="Sync portal deadlines to reminders")
    p_sync.add_argument("--dry-run", action="store_true", help="Show what would be synced")
    p_sync.add_argument("--ics", metavar="FILE", help="Write reminders to an .ics file instead")

    p_syllabus = sub.add_parser("syllabus", help="Import dates from syllabus documents")
    syllabus_sub = p_syllabus.add_subparsers(dest="syllabus_command", required=True)
    p_add = syllabus_sub.add_parser("add", help="Add dates from a syllabus (PDF, DOCX, TXT)")
    p_add.add_argument("file", type=str, help="Syllabus file")
    p_add.add_argument("-c", "--course", required=True, help="Course name")
    p_add.add_argument("--reference", help="Anchor date for dates without a year (e.g. 2026-09-01)")
    p_add.add_argument("--dry-run", action="store_true", help="Show what would be synced")
    p_add.add_argument("--ics", metavar="FILE", help="Write reminders to an .ics file instead")

    p_status = sub.add_parser("status", help="Show sync status")
    p_status.add_argument("--events", action="store_true", help="List all synced events")

    p_reset = sub.add_parser("reset", help="Reset the duplicate tracking database (DESTRUCTIVE)")
    p_reset.add_argument("--force", action="store_true", help="Skip confirmation prompt")

    return parser


def main(argv: list[str] | None = None) -> None:
    """
    CLI entry point. Parses args, dispatches to command handlers,
    and exits via SystemExit with a return code.
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    settings = load_settings()
    setup_logging(settings, verbose=args.verbose)

    if args.command == "login":
        raise SystemExit(_cmd_login(args, settings))
    if args.command == "sync":
        raise SystemExit(_cmd_sync(args, settings))
    if args.command == "syllabus":
        raise SystemExit(_cmd_syllabus_add(args, settings))
    if args.command == "status":
        raise SystemExit(_cmd_status(args, settings))
    if args.command == "reset":
        raise SystemExit(_cmd_reset(args, settings))

    raise SystemExit(EXIT_ERROR)
