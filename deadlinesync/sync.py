"""
Sync runs.

Two paths feed the same ledger:

    portal:    courses -> deadlines per course -> drop already synced
               -> create reminders -> record in ledger
    document:  text -> candidates -> human review -> drop already synced
               -> create reminders -> record in ledger

Each call is one run in the ledger's run log, finished with exactly one of
complete_run / fail_run. A reminder that could not be created is not recorded,
so the next run tries it again.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Callable, List, Optional, Protocol, Tuple

from deadlinesync.document import extract_text
from deadlinesync.errors import CreationFailure
from deadlinesync.extract import extract_deadlines
from deadlinesync.model import CandidateDate, DeadlineItem
from deadlinesync.reminders import ReminderSink
from deadlinesync.scrape import PageSource, discover_courses, discover_deadlines
from deadlinesync.storage import Ledger

logger = logging.getLogger(__name__)

Review = Callable[[List[CandidateDate], str], List[DeadlineItem]]


class SessionProvider(Protocol):
    def load_session(self) -> Optional[PageSource]: ...

    def is_valid(self, session: PageSource) -> bool: ...


def _quiet(message: str) -> None:
    pass


@dataclass
class SyncReport:
    discovered: int = 0
    already_synced: int = 0
    created: int = 0
    failed: int = 0
    pending: List[DeadlineItem] = field(default_factory=list)
    failures: List[str] = field(default_factory=list)
    dry_run: bool = False


def plan_reminders(
    items: List[DeadlineItem], ledger: Ledger
) -> Tuple[List[DeadlineItem], List[DeadlineItem]]:
    """
    Split items into (new, already synced). Repeated fingerprints within the
    batch count once.
    """
    new: List[DeadlineItem] = []
    already: List[DeadlineItem] = []
    seen: set[str] = set()
    for item in items:
        if item.id in seen:
            continue
        seen.add(item.id)
        if ledger.is_synced(item.id):
            already.append(item)
        else:
            new.append(item)
    return new, already


def deliver(
    items: List[DeadlineItem],
    ledger: Ledger,
    sink: ReminderSink,
    report: SyncReport,
    echo: Callable[[str], None] = _quiet,
) -> None:
    for item in items:
        try:
            sink.create(item)
        except CreationFailure as exc:
            logger.error("%s", exc)
            report.failed += 1
            report.failures.append(item.title)
            echo(f"Failed: {item.course_name} - {item.title}")
            continue
        ledger.mark_synced(item)
        report.created += 1
        echo(f"Created: {item.course_name} - {item.title}")


def _finish(
    items: List[DeadlineItem],
    ledger: Ledger,
    sink: Optional[ReminderSink],
    dry_run: bool,
    echo: Callable[[str], None],
) -> SyncReport:
    new, already = plan_reminders(items, ledger)
    report = SyncReport(
        discovered=len(new) + len(already),
        already_synced=len(already),
        pending=new,
        dry_run=dry_run,
    )
    logger.info("%d items found, %d new", report.discovered, len(new))
    if dry_run or not new:
        return report
    if sink is None:
        raise ValueError("A reminder sink is required unless dry_run is set")
    deliver(new, ledger, sink, report, echo)
    return report


def run_portal_sync(
    ledger: Ledger,
    sink: Optional[ReminderSink],
    provider: SessionProvider,
    dry_run: bool = False,
    now: Optional[datetime] = None,
    echo: Callable[[str], None] = _quiet,
) -> SyncReport:
    """
    One portal sync run. Raises NotAuthenticated when there is no usable session.
    """
    run_id = ledger.start_run()
    try:
        items: List[DeadlineItem] = []
        session = provider.load_session()
        try:
            courses = discover_courses(session, now=now, validate=provider.is_valid)
            echo(f"Found {len(courses)} courses")
            for course in courses:
                echo(f"Checking {course.name}...")
                items.extend(discover_deadlines(session, course, now=now))
        finally:
            if session is not None:
                session.close()

        report = _finish(items, ledger, sink, dry_run, echo)
    except Exception as exc:
        logger.error("Sync failed: %s", exc)
        ledger.fail_run(run_id, str(exc))
        raise

    ledger.complete_run(run_id, report.created)
    return report


def ingest_document(
    path: str | Path,
    scope: str,
    ledger: Ledger,
    sink: Optional[ReminderSink],
    review: Review,
    reference: Optional[datetime] = None,
    dry_run: bool = False,
    echo: Callable[[str], None] = _quiet,
) -> SyncReport:
    """
    Import the deadlines of one syllabus document for course `scope`.
    """
    run_id = ledger.start_run()
    try:
        text = extract_text(path)
        candidates = extract_deadlines(text, reference)
        logger.info("Found %d candidate dates in %s", len(candidates), path)
        confirmed = review(candidates, scope)
        report = _finish(confirmed, ledger, sink, dry_run, echo)
    except Exception as exc:
        logger.error("Syllabus import failed: %s", exc)
        ledger.fail_run(run_id, str(exc))
        raise

    ledger.complete_run(run_id, report.created)
    return report
