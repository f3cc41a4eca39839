"""
Central data model definitions used across the project.

This module defines the canonical structure of the values that flow through
discovery, extraction and the sync ledger so that:
- all modules share the same field names
- enumerations are real types (ordered where ordering matters)
- transient values (Course, DeadlineItem, CandidateDate) stay separate from
  the persisted ones (SyncRecord, SyncRunLog)
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum, IntEnum
from typing import Optional


class Kind(str, Enum):
    ASSIGNMENT = "assignment"
    QUIZ = "quiz"
    EXAM = "exam"
    DISCUSSION = "discussion"
    READING = "reading"
    OTHER = "other"


class Origin(str, Enum):
    """Which ingestion path produced an item."""

    PORTAL = "portal"
    DOCUMENT = "document"


class Confidence(IntEnum):
    """
    Confidence of an extracted candidate.

    The integer values give a total order (HIGH > MEDIUM > LOW) which the
    text extractor uses to decide which of two same-day candidates survives.
    """

    LOW = 1
    MEDIUM = 2
    HIGH = 3

    @property
    def label(self) -> str:
        return self.name.lower()


class RunStatus(str, Enum):
    IN_PROGRESS = "in_progress"
    SUCCESS = "success"
    FAILED = "failed"


@dataclass(frozen=True)
class Course:
    """
    One enrolled course as found on the portal.

    `id` is the portal's internal identifier taken from a course link.
    """

    id: str
    name: str
    url: str


@dataclass
class DeadlineItem:
    """
    One dated obligation, ready to be turned into a reminder.

    `id` is a content fingerprint (see deadlinesync.fingerprint), never a
    database key.
    """

    id: str
    course_id: str
    course_name: str
    title: str
    due_date: datetime
    kind: Kind = Kind.OTHER
    origin: Origin = Origin.PORTAL
    description: Optional[str] = None


@dataclass
class CandidateDate:
    """
    A date found in free text, awaiting human confirmation.
    """

    text: str
    date: datetime
    context: str
    confidence: Confidence
    suggested_title: str


@dataclass(frozen=True)
class SyncRecord:
    id: str
    external_id: str
    title: str
    course_name: str
    due_date: str
    created_at: str
    origin: Origin


@dataclass(frozen=True)
class SyncRunLog:
    id: int
    started_at: str
    status: RunStatus
    items_created: int = 0
    completed_at: Optional[str] = None
    error_message: Optional[str] = None
