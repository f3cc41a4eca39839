"""
iCalendar (.ics) reminders.

Alternative to Apple Reminders: every deadline becomes a VTODO with a due
date and an alarm, and the file can be imported into:
- Google Calendar / Google Tasks
- Outlook
- Apple Calendar / Reminders
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from deadlinesync.errors import CreationFailure
from deadlinesync.model import DeadlineItem
from deadlinesync.reminders import remind_at, reminder_notes, reminder_title

logger = logging.getLogger(__name__)


def _ics_escape(text: str) -> str:
    """
    Escape text for ICS fields (very small subset, sufficient for our use).
    """
    return (
        text.replace("\\", "\\\\").replace("\r\n", "\\n").replace("\n", "\\n").replace(";", "\\;").replace(",", "\\,")
    )


def _dt_local(dt: datetime) -> str:
    return dt.strftime("%Y%m%dT%H%M%S")


def todo_lines(item: DeadlineItem, advance_days: int, now: Optional[datetime] = None) -> list[str]:
    remind = remind_at(item.due_date, advance_days, now)
    dtstamp = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%SZ")
    return [
        "BEGIN:VTODO",
        f"UID:{_ics_escape(item.id)}@deadline-sync",
        f"DTSTAMP:{dtstamp}",
        f"DUE:{_dt_local(item.due_date)}",
        f"SUMMARY:{_ics_escape(reminder_title(item))}",
        f"DESCRIPTION:{_ics_escape(reminder_notes(item))}",
        f"CATEGORIES:{_ics_escape(item.kind.value)}",
        "BEGIN:VALARM",
        "ACTION:DISPLAY",
        f"DESCRIPTION:{_ics_escape(reminder_title(item))}",
        f"TRIGGER;VALUE=DATE-TIME:{_dt_local(remind)}",
        "END:VALARM",
        "END:VTODO",
    ]


def export_items_to_ics(
    items: list[DeadlineItem], out_path: str | Path, advance_days: int, now: Optional[datetime] = None
) -> int:
    """
    Write items to an .ics file. Returns number of exported items.
    """
    out = Path(out_path)
    out.parent.mkdir(parents=True, exist_ok=True)

    lines: list[str] = [
        "BEGIN:VCALENDAR",
        "VERSION:2.0",
        "PRODID:-//deadline-sync//EN",
        "CALSCALE:GREGORIAN",
    ]
    for item in items:
        lines.extend(todo_lines(item, advance_days, now))
    lines.append("END:VCALENDAR")

    # ICS standard uses CRLF
    out.write_text("\r\n".join(lines) + "\r\n", encoding="utf-8")
    return len(items)


class IcsReminders:
    """
    Reminder sink writing an .ics file; the file is rewritten on every create
    so it always holds every reminder created so far.
    """

    def __init__(self, path: str | Path, advance_days: int) -> None:
        self.path = Path(path)
        self.advance_days = advance_days
        self.items: list[DeadlineItem] = []

    def create(self, item: DeadlineItem) -> None:
        try:
            export_items_to_ics(self.items + [item], self.path, self.advance_days)
        except OSError as exc:
            raise CreationFailure(reminder_title(item), str(exc)) from exc
        self.items.append(item)
        logger.info("Exported %s to %s", reminder_title(item), self.path)
