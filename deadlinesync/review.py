"""
Interactive review of dates found in a syllabus.

Every candidate is shown with its context; the user decides whether it
becomes a reminder, and may fix the title and type.
"""

from __future__ import annotations

from typing import Callable, List, Optional

from rich.console import Console
from rich.prompt import Confirm, Prompt

from deadlinesync.extract import suggest_kind, to_deadline_item
from deadlinesync.model import CandidateDate, Confidence, DeadlineItem, Kind

KIND_CHOICES = [k.value for k in (Kind.EXAM, Kind.QUIZ, Kind.READING, Kind.ASSIGNMENT, Kind.OTHER)]

AskYesNo = Callable[[str, bool], bool]
AskText = Callable[[str, str], str]
AskChoice = Callable[[str, List[str], str], str]


def _confirm(question: str, default: bool) -> bool:
    return Confirm.ask(question, default=default)


def _text(question: str, default: str) -> str:
    return Prompt.ask(question, default=default)


def _choice(question: str, choices: List[str], default: str) -> str:
    return Prompt.ask(question, choices=choices, default=default)


def review_candidates(
    candidates: List[CandidateDate],
    scope: str,
    confirm: AskYesNo = _confirm,
    ask_title: AskText = _text,
    ask_kind: AskChoice = _choice,
    console: Optional[Console] = None,
) -> List[DeadlineItem]:
    """
    Walk through the candidates and return the confirmed ones as DeadlineItems.
    """
    console = console or Console()
    if not candidates:
        console.print("\nNo dates found in syllabus.\n")
        return []

    console.print(f"\nFound {len(candidates)} potential dates in syllabus for [bold]{scope}[/]:\n")

    confirmed: List[DeadlineItem] = []
    for candidate in candidates:
        console.rule()
        console.print(f"Date: [cyan]{candidate.date:%a %Y-%m-%d %H:%M}[/]")
        console.print(f'Found: "{candidate.text}"')
        console.print(f"Context: ...{candidate.context}...", markup=False)
        console.print(f"Confidence: {candidate.confidence.label}")

        if not confirm("Add this to reminders?", candidate.confidence is Confidence.HIGH):
            continue

        title = ask_title("Reminder title", candidate.suggested_title).strip() or candidate.suggested_title
        kind = ask_kind("Type", KIND_CHOICES, suggest_kind(title).value)
        confirmed.append(to_deadline_item(candidate, scope, title=title, kind=Kind(kind)))

    console.print(f"\nConfirmed {len(confirmed)} events for reminders.\n")
    return confirmed
