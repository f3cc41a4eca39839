"""
Content fingerprints for deadlines.

A fingerprint identifies "the same deadline" across runs and across views, so
it only depends on what the deadline *is*, never on when or where it was seen.
"""

from __future__ import annotations

import hashlib
from datetime import datetime

FINGERPRINT_LENGTH = 16


def _digest(text: str) -> str:
    return hashlib.sha256(text.encode("utf-8")).hexdigest()[:FINGERPRINT_LENGTH]


def normalize_title(title: str) -> str:
    return " ".join(title.split()).lower()


def deadline_fingerprint(course_id: str, title: str, due_date: datetime) -> str:
    """
    Fingerprint of a portal deadline.

    Day granularity: two passes that only disagree on the time of day produce
    the same value.
    """
    day = due_date.date().isoformat()
    return _digest(f"{course_id}-{normalize_title(title)}-{day}")


def document_fingerprint(scope: str, due_date: datetime) -> str:
    """
    Fingerprint of a deadline confirmed from a document (syllabus).

    `scope` is the course name the document was imported for.
    """
    return _digest(f"syllabus-{scope.strip()}-{due_date.isoformat()}")
