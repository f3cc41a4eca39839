"""
Reminder system (Apple Reminders through osascript).

One reminder per deadline, in one list, with a "remind me" date a few days
before the due date (never earlier than now).
"""

from __future__ import annotations

import logging
import subprocess
from datetime import datetime, timedelta
from typing import Optional, Protocol

from deadlinesync.errors import CreationFailure
from deadlinesync.model import DeadlineItem

logger = logging.getLogger(__name__)


class ReminderSink(Protocol):
    def create(self, item: DeadlineItem) -> None: ...


def remind_at(due: datetime, advance_days: int, now: Optional[datetime] = None) -> datetime:
    """`due - advance_days`, but not in the past."""
    now = now or datetime.now()
    return max(due - timedelta(days=advance_days), now)


def reminder_title(item: DeadlineItem) -> str:
    return f"{item.course_name}: {item.title}"


def reminder_notes(item: DeadlineItem) -> str:
    return item.description or f"Due: {item.due_date:%Y-%m-%d}"


def escape_applescript(text: str) -> str:
    return text.replace("\\", "\\\\").replace('"', '\\"').replace("\n", "\\n")


def applescript_date(dt: datetime) -> str:
    """'November 5, 2026 at 11:59 PM'"""
    hour = dt.hour % 12 or 12
    ampm = "AM" if dt.hour < 12 else "PM"
    return f"{dt:%B} {dt.day}, {dt.year} at {hour}:{dt:%M} {ampm}"


class AppleReminders:
    def __init__(self, list_name: str, advance_days: int, osascript: str = "osascript") -> None:
        self.list_name = list_name
        self.advance_days = advance_days
        self.osascript = osascript

    def _run(self, script: str) -> str:
        result = subprocess.run(
            [self.osascript, "-e", script],
            check=True,
            capture_output=True,
            text=True,
        )
        return result.stdout

    def ensure_list(self) -> None:
        name = escape_applescript(self.list_name)
        script = (
            'tell application "Reminders"\n'
            f'  if not (exists list "{name}") then\n'
            f'    make new list with properties {{name:"{name}"}}\n'
            "  end if\n"
            "end tell"
        )
        try:
            self._run(script)
        except (OSError, subprocess.CalledProcessError) as exc:
            raise CreationFailure(self.list_name, f"could not create list: {exc}") from exc
        logger.info('Ensured "%s" list exists', self.list_name)

    def create(self, item: DeadlineItem) -> None:
        title = reminder_title(item)
        remind = remind_at(item.due_date, self.advance_days)
        script = (
            'tell application "Reminders"\n'
            f'  tell list "{escape_applescript(self.list_name)}"\n'
            "    make new reminder with properties "
            f'{{name:"{escape_applescript(title)}", '
            f'body:"{escape_applescript(reminder_notes(item))}", '
            f'due date:date "{applescript_date(item.due_date)}", '
            f'remind me date:date "{applescript_date(remind)}"}}\n'
            "  end tell\n"
            "end tell"
        )
        try:
            self._run(script)
        except (OSError, subprocess.CalledProcessError) as exc:
            detail = getattr(exc, "stderr", None) or str(exc)
            raise CreationFailure(title, str(detail).strip()) from exc
        logger.info("Created reminder: %s", title)
