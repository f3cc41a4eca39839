"""
Semester classification of course names.

The portal lists old enrollments next to current ones, and course names label
their term in many different ways ("Fall 2025", "F25", "2025F", "Automne 2025").
The rule here is deliberately permissive: hiding an active course is worse
than showing a stale one, so a name without any year is treated as current.
"""

from __future__ import annotations

import re
from datetime import datetime
from typing import List, Optional

YEAR_RE = re.compile(r"20[0-2][0-9]")


def term_markers(year: int, month: int) -> List[str]:
    """
    Return the textual markers of the term containing `month` (1-12).

    Terms are four-month bands: Winter (Jan-Apr), Summer (May-Aug),
    Fall (Sep-Dec).
    """
    short = str(year)[2:]
    if month <= 4:
        return [
            f"Winter {year}", f"W{year}", f"WIN {year}", f"W{short}",
            f"{year}W", f"{year} Winter", f"Winter{year}", f"Hiver {year}",
        ]
    if month <= 8:
        return [
            f"Summer {year}", f"S{year}", f"SUM {year}", f"S{short}",
            f"{year}S", f"{year} Summer", f"Summer{year}", f"Été {year}",
            f"Spring {year}", f"SP{year}",
        ]
    return [
        f"Fall {year}", f"F{year}", f"FAL {year}", f"F{short}",
        f"{year}F", f"{year} Fall", f"Fall{year}", f"Automne {year}",
        f"Autumn {year}", f"A{year}",
    ]


def is_current_term(name: str, now: Optional[datetime] = None) -> bool:
    """
    Decide whether a course name belongs to the term that contains `now`.

    True when:
    - a marker of the current term appears (case-insensitive), or
    - the current year appears without a term marker, or
    - no year in 2000-2029 appears at all (unlabeled course).

    False only when the name carries an earlier year and nothing current.
    """
    now = now or datetime.now()
    upper = name.upper()

    for marker in term_markers(now.year, now.month):
        if marker.upper() in upper:
            return True

    if str(now.year) in name:
        return True

    years = [int(y) for y in YEAR_RE.findall(name)]
    has_past_year = any(y < now.year for y in years)
    return not has_past_year
