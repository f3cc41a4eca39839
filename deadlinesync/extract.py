"""
Deadline extraction from free text (syllabus documents).

Pipeline:
1. a general date search (dateparser) biased towards future dates
2. a scan for typical academic phrasings ("Assignment 2 due: March 3",
   "Midterm on Oct 20"), always high confidence
3. merge, keep one candidate per calendar day (highest confidence, first wins on ties)
4. drop assignment-like items: the portal sync already covers those, so only
   exams, readings and other deadlines are offered for import

The result is a list of CandidateDate values; they only become DeadlineItems
once a person confirms them (see deadlinesync.review).
"""

from __future__ import annotations

import re
from datetime import datetime
from typing import Iterable, List, Optional, Tuple

import dateparser
from dateparser.search import search_dates

from deadlinesync.fingerprint import document_fingerprint
from deadlinesync.model import CandidateDate, Confidence, DeadlineItem, Kind, Origin

CONTEXT_CHARS = 60
DEFAULT_TITLE = "Deadline"

ASSIGNMENT_PATTERNS = [
    re.compile(r"\bassignment\s*\d*", re.I),
    re.compile(r"\bhomework\s*\d*", re.I),
    re.compile(r"\bhw\s*\d+", re.I),
    re.compile(r"\bproblem\s*set\s*\d*", re.I),
    re.compile(r"\blab\s*(report)?\s*\d*", re.I),
    re.compile(r"\bworksheet\s*\d*", re.I),
    re.compile(r"\bexercise\s*\d*", re.I),
]

# Checked first: anything matching here is kept even if it also looks like an assignment.
NON_ASSIGNMENT_PATTERNS = [
    re.compile(r"\bmidterm", re.I),
    re.compile(r"\bfinal\s*(exam)?", re.I),
    re.compile(r"\bexam\s*\d*", re.I),
    re.compile(r"\btest\s*\d*", re.I),
    re.compile(r"\bquiz\s*\d*", re.I),
    re.compile(r"\breading", re.I),
    re.compile(r"\bpresentation", re.I),
    re.compile(r"\bproject\s*(proposal|milestone|presentation)", re.I),
    re.compile(r"\boffice\s*hours", re.I),
    re.compile(r"\blecture", re.I),
    re.compile(r"\btutorial", re.I),
    re.compile(r"\bseminar", re.I),
]

TITLE_PATTERNS = [
    re.compile(r"(assignment\s*\d*)", re.I),
    re.compile(r"(quiz\s*\d*)", re.I),
    re.compile(r"(midterm\s*(exam)?)", re.I),
    re.compile(r"(final\s*(exam)?)", re.I),
    re.compile(r"(project\s*\d*)", re.I),
    re.compile(r"(essay)", re.I),
    re.compile(r"(lab\s*\d*)", re.I),
    re.compile(r"(presentation)", re.I),
    re.compile(r"(report)", re.I),
    re.compile(r"(exam\s*\d*)", re.I),
    re.compile(r"(homework\s*\d*)", re.I),
    re.compile(r"(test\s*\d*)", re.I),
]

_DATE = r"([A-Za-z]+\s+\d+(?:,?\s*\d{4})?)"
DUE_PATTERNS = [
    re.compile(r"(?:assignment|project|essay|lab|quiz|homework)\s*\d*\s*(?:due|deadline)[:\s]+" + _DATE, re.I),
    re.compile(r"\bdue[:\s]+" + _DATE, re.I),
    re.compile(r"(?:midterm\s*(?:exam)?|final\s*(?:exam)?|exam)\s*(?:on|:)\s*" + _DATE, re.I),
]

ACADEMIC_KEYWORD_RE = re.compile(
    r"assignment|quiz|exam|midterm|final|due|deadline|project|essay|submission|test", re.I
)
HOUR_RE = re.compile(
    r"\b\d{1,2}:\d{2}\b|\b\d{1,2}\s*(?:a\.?m\.?|p\.?m\.?)(?!\w)|\bnoon\b|\bmidnight\b", re.I
)
SENTENCE_BOUNDARY_RE = re.compile(r"[.!?;]\s+(?=[A-Z])|\n")
BARE_NUMBER_RE = re.compile(r"\d{1,4}")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _parser_settings(reference: datetime) -> dict:
    return {
        "PREFER_DATES_FROM": "future",
        "RELATIVE_BASE": reference,
        "RETURN_AS_TIMEZONE_AWARE": False,
    }


def get_context(text: str, start: int, end: int, chars: int = CONTEXT_CHARS) -> str:
    window = text[max(0, start - chars): min(len(text), end + chars)]
    return " ".join(window.split())


def enclosing_sentence(text: str, start: int, end: int) -> str:
    """The sentence (or line) around text[start:end]."""
    left = 0
    for m in SENTENCE_BOUNDARY_RE.finditer(text, 0, start):
        left = m.end()
    right = len(text)
    m = SENTENCE_BOUNDARY_RE.search(text, end)
    if m:
        right = m.start() + (1 if text[m.start()] in ".!?;" else 0)
    return " ".join(text[left:right].split())


def infer_title(context: str) -> Optional[str]:
    for pattern in TITLE_PATTERNS:
        m = pattern.search(context)
        if m:
            return m.group(1).strip()
    return None


def suggest_title(*texts: str) -> str:
    """First academic noun found, trying the given texts from most to least specific."""
    for text in texts:
        title = infer_title(text)
        if title:
            return title
    return DEFAULT_TITLE


def suggest_kind(title: str) -> Kind:
    t = title.lower()
    if re.search(r"midterm|final|exam|test", t):
        return Kind.EXAM
    if "quiz" in t:
        return Kind.QUIZ
    if "reading" in t:
        return Kind.READING
    if re.search(r"assignment|homework|essay|report|lab|project", t):
        return Kind.ASSIGNMENT
    return Kind.OTHER


def is_assignment_like(context: str, suggested_title: str) -> bool:
    """
    True for homework-style items that the portal already tracks.
    """
    text = f"{context} {suggested_title}".lower()
    if any(p.search(text) for p in NON_ASSIGNMENT_PATTERNS):
        return False
    return any(p.search(text) for p in ASSIGNMENT_PATTERNS)


def assess_confidence(context: str, matched_text: str) -> Confidence:
    has_keyword = ACADEMIC_KEYWORD_RE.search(context) is not None
    has_time = HOUR_RE.search(matched_text) is not None
    if has_keyword and has_time:
        return Confidence.HIGH
    if has_keyword or has_time:
        return Confidence.MEDIUM
    return Confidence.LOW


# ---------------------------------------------------------------------------
# Passes
# ---------------------------------------------------------------------------

# (candidate, sentence) pairs: the sentence is only used for classification.
_Found = Tuple[CandidateDate, str]


def _search_pass(text: str, reference: datetime, now: datetime) -> List[_Found]:
    found: List[_Found] = []
    matches = search_dates(text, languages=["en"], settings=_parser_settings(reference)) or []
    cursor = 0
    for matched, date in matches:
        start = text.find(matched, cursor)
        if start < 0:
            start = text.find(matched)
        if start < 0:
            continue
        end = start + len(matched)
        cursor = end

        if BARE_NUMBER_RE.fullmatch(matched.strip()):
            continue
        if date <= now:
            continue

        context = get_context(text, start, end)
        sentence = enclosing_sentence(text, start, end)
        candidate = CandidateDate(
            text=matched,
            date=date,
            context=context,
            confidence=assess_confidence(context, matched),
            suggested_title=suggest_title(sentence, context),
        )
        found.append((candidate, sentence))
    return found


def _academic_pass(text: str, reference: datetime, now: datetime) -> List[_Found]:
    found: List[_Found] = []
    for pattern in DUE_PATTERNS:
        for m in pattern.finditer(text):
            date = dateparser.parse(m.group(1), languages=["en"], settings=_parser_settings(reference))
            if date is None or date <= now:
                continue
            sentence = enclosing_sentence(text, m.start(), m.end())
            candidate = CandidateDate(
                text=m.group(0),
                date=date,
                context=get_context(text, m.start(), m.end()),
                confidence=Confidence.HIGH,
                suggested_title=suggest_title(m.group(0), sentence),
            )
            found.append((candidate, sentence))
    return found


def deduplicate_by_day(found: Iterable[_Found]) -> List[_Found]:
    """
    Keep one candidate per calendar day: the most confident, the first on ties.
    """
    by_day: dict = {}
    for item in found:
        candidate = item[0]
        key = candidate.date.date()
        existing = by_day.get(key)
        if existing is None or candidate.confidence > existing[0].confidence:
            by_day[key] = item
    return list(by_day.values())


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def extract_deadlines(
    text: str,
    reference: Optional[datetime] = None,
    now: Optional[datetime] = None,
) -> List[CandidateDate]:
    """
    Extract candidate deadlines from document text.

    `reference` anchors dates without a year; only dates strictly after `now`
    (default: the current time) are returned.
    """
    now = now or datetime.now()
    reference = reference or now
    if not text.strip():
        return []

    found = _search_pass(text, reference, now) + _academic_pass(text, reference, now)
    kept = deduplicate_by_day(found)
    return [
        candidate
        for candidate, sentence in kept
        if not is_assignment_like(sentence, candidate.suggested_title)
    ]


def to_deadline_item(
    candidate: CandidateDate,
    scope: str,
    title: Optional[str] = None,
    kind: Optional[Kind] = None,
) -> DeadlineItem:
    """
    Promote a confirmed candidate. `scope` is the course the document belongs to.
    """
    title = (title or candidate.suggested_title).strip() or DEFAULT_TITLE
    return DeadlineItem(
        id=document_fingerprint(scope, candidate.date),
        course_id="syllabus",
        course_name=scope,
        title=title,
        due_date=candidate.date,
        kind=kind or suggest_kind(title),
        origin=Origin.DOCUMENT,
        description=candidate.context or None,
    )
