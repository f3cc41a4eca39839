"""
Parsing of due-date strings scraped from the portal.

The portal renders dates in several shapes depending on the view and the
user's locale. `parse_date` tries a fixed grammar in this order; the first
rule that produces a date wins:

1. native ISO-8601 parsing of the whole string
   ("2026-11-05T23:59:00Z")
2. explicit patterns searched inside the string, in order
   - "Month D, YYYY[ at H:MM AM/PM]"  ("Due Nov 5, 2026 at 11:59 PM")
   - "M/D/YYYY"                        ("11/5/2026")
   - "YYYY-MM-DD"                      ("Available until 2026-11-05")
3. relative "N days" from now         ("Due in 3 days")

The order matters on ambiguous input, e.g. "2026-11-05 (in 3 days)" is read as
an absolute date, never as a relative one.

All returned datetimes are naive local time.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, List, Optional

MONTHS = [
    "january", "february", "march", "april", "may", "june",
    "july", "august", "september", "october", "november", "december",
]


def month_number(token: str) -> Optional[int]:
    """
    Map a month name or abbreviation ("Nov", "Sept", "november") to 1-12.
    """
    t = token.strip(".").lower()
    if len(t) < 3:
        return None
    for i, name in enumerate(MONTHS, start=1):
        if name.startswith(t):
            return i
    return None


def to_local_naive(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        return dt
    return dt.astimezone().replace(tzinfo=None)


def parse_iso(text: str) -> Optional[datetime]:
    cleaned = text.strip()
    if not cleaned:
        return None
    if cleaned.endswith(("Z", "z")):
        cleaned = cleaned[:-1] + "+00:00"
    try:
        return to_local_naive(datetime.fromisoformat(cleaned))
    except (ValueError, OverflowError):
        return None


def _hour_24(hour: int, ampm: Optional[str]) -> int:
    if not ampm:
        return hour
    ampm = ampm.upper()
    if ampm == "AM":
        return 0 if hour == 12 else hour
    return hour if hour == 12 else hour + 12


def _build_month_name(m: re.Match) -> Optional[datetime]:
    month = month_number(m.group(1))
    if month is None:
        return None
    day, year = int(m.group(2)), int(m.group(3))
    hour = minute = 0
    if m.group(4):
        hour = _hour_24(int(m.group(4)), m.group(6))
        minute = int(m.group(5))
    return datetime(year, month, day, hour, minute)


def _build_slash(m: re.Match) -> Optional[datetime]:
    return datetime(int(m.group(3)), int(m.group(1)), int(m.group(2)))


def _build_iso_date(m: re.Match) -> Optional[datetime]:
    return datetime(int(m.group(1)), int(m.group(2)), int(m.group(3)))


@dataclass(frozen=True)
class DatePattern:
    """One explicit rule of the grammar: a regex and how to build a datetime from a match."""

    name: str
    regex: re.Pattern
    build: Callable[[re.Match], Optional[datetime]]

    def match(self, text: str) -> Optional[datetime]:
        for m in self.regex.finditer(text):
            try:
                dt = self.build(m)
            except (ValueError, OverflowError):
                # e.g. February 30 / month 13
                continue
            if dt is not None:
                return dt
        return None


EXPLICIT_PATTERNS: List[DatePattern] = [
    DatePattern(
        "month-day-year",
        re.compile(
            r"([A-Za-z]+)\.?\s+(\d{1,2}),?\s+(\d{4})"
            r"(?:\s+(?:at\s+)?(\d{1,2}):(\d{2})\s*([AaPp][Mm])?)?"
        ),
        _build_month_name,
    ),
    DatePattern("m/d/yyyy", re.compile(r"\b(\d{1,2})/(\d{1,2})/(\d{4})\b"), _build_slash),
    DatePattern("yyyy-mm-dd", re.compile(r"\b(\d{4})-(\d{2})-(\d{2})\b"), _build_iso_date),
]

RELATIVE_DAYS_RE = re.compile(r"(\d+)\s*days?\b", re.IGNORECASE)


def parse_relative(text: str, now: Optional[datetime] = None) -> Optional[datetime]:
    m = RELATIVE_DAYS_RE.search(text)
    if not m:
        return None
    try:
        return (now or datetime.now()) + timedelta(days=int(m.group(1)))
    except OverflowError:
        return None


def parse_date(text: Optional[str], now: Optional[datetime] = None) -> Optional[datetime]:
    """
    Parse a scraped due-date string, or return None if nothing matches.
    """
    if not text:
        return None
    cleaned = " ".join(text.split())
    if not cleaned:
        return None

    dt = parse_iso(cleaned)
    if dt is not None:
        return dt

    for pattern in EXPLICIT_PATTERNS:
        dt = pattern.match(cleaned)
        if dt is not None:
            return dt

    return parse_relative(cleaned, now)
