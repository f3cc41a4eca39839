"""
Parsing (portal DOM -> Course / DeadlineItem).

Everything in this module is pure: it receives an already parsed page
(BeautifulSoup) and never navigates. That keeps every strategy testable with a
small HTML fixture.

The portal markup is not stable, so each extraction is a list of alternative
selectors rather than one exact path. Elements that do not have the expected
structure are skipped, never fatal.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, List, Optional, Sequence
from urllib.parse import urljoin

from bs4 import BeautifulSoup, Tag

from deadlinesync.dates import parse_date, parse_iso
from deadlinesync.fingerprint import deadline_fingerprint
from deadlinesync.model import Course, DeadlineItem, Kind, Origin

logger = logging.getLogger(__name__)

COURSE_ID_RE = re.compile(r"/d2l/(?:home|le/content)/(\d+)")
HOME_LINK_RE = re.compile(r"/d2l/home/(\d+)")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def clean_text(text: str) -> str:
    return " ".join(text.split())


def first_line(text: str) -> str:
    """Text up to the first line break, trimmed."""
    return text.strip().split("\n")[0].strip()


def select_first_matching(root: Tag, selectors: Sequence[str]) -> List[Tag]:
    """
    Return the elements of the first selector that matches anything.
    """
    for selector in selectors:
        elements = root.select(selector)
        if elements:
            return elements
    return []


# ---------------------------------------------------------------------------
# Courses
# ---------------------------------------------------------------------------


def _course_link(element: Tag) -> Optional[Tag]:
    if element.name == "a" and element.get("href"):
        return element
    return element.select_one("a[href]")


def course_from_element(
    element: Tag,
    base_url: str,
    id_pattern: re.Pattern = COURSE_ID_RE,
    name_from_link: bool = False,
) -> Optional[Course]:
    """
    Build a Course from one card / list item, or None if it does not look like one.
    """
    link = _course_link(element)
    if link is None:
        return None

    href = str(link.get("href") or "")
    match = id_pattern.search(href)
    if not match:
        return None

    source = link if name_from_link else element
    name = first_line(source.get_text())
    if not name:
        return None

    return Course(id=match.group(1), name=name, url=urljoin(base_url + "/", href))


@dataclass(frozen=True)
class CourseStrategy:
    """
    One way of finding course cards on one portal view.

    `trusted` views only list current courses; the others are passed through
    the semester classifier by the caller.
    """

    name: str
    path: str
    selectors: Sequence[str]
    trusted: bool = False
    id_pattern: re.Pattern = COURSE_ID_RE
    name_from_link: bool = False

    def extract(self, soup: BeautifulSoup, base_url: str) -> List[Course]:
        courses: Dict[str, Course] = {}
        for element in select_first_matching(soup, self.selectors):
            try:
                course = course_from_element(
                    element, base_url, id_pattern=self.id_pattern, name_from_link=self.name_from_link
                )
            except Exception as exc:
                logger.debug("Skipping course element in %s: %s", self.name, exc)
                continue
            if course is not None and course.id not in courses:
                courses[course.id] = course
        return list(courses.values())


# ---------------------------------------------------------------------------
# Deadlines
# ---------------------------------------------------------------------------


def make_item(course: Course, title: str, due_date: datetime, kind: Kind) -> DeadlineItem:
    title = clean_text(title)
    return DeadlineItem(
        id=deadline_fingerprint(course.id, title, due_date),
        course_id=course.id,
        course_name=course.name,
        title=title,
        due_date=due_date,
        kind=kind,
        origin=Origin.PORTAL,
    )


def date_from_selectors(row: Tag, selectors: Sequence[str], now: datetime) -> Optional[datetime]:
    """
    Try each location in priority order; the first text that parses wins.
    """
    for selector in selectors:
        el = row.select_one(selector)
        if el is None:
            continue
        due = parse_date(el.get_text(" ", strip=True), now)
        if due is not None:
            return due
    return None


def date_from_cells(row: Tag, now: datetime) -> Optional[datetime]:
    """First table cell whose text parses as a date."""
    for cell in row.select("td"):
        due = parse_date(cell.get_text(" ", strip=True), now)
        if due is not None:
            return due
    return None


@dataclass(frozen=True)
class ListingView:
    """
    A table-like listing (dropbox folders, quizzes): one row per deadline.
    """

    name: str
    path_template: str
    row_selector: str
    title_selector: str
    kind: Kind
    date_selectors: Optional[Sequence[str]] = None

    def path(self, course: Course) -> str:
        return self.path_template.format(course_id=course.id)

    def _row_date(self, row: Tag, now: datetime) -> Optional[datetime]:
        if self.date_selectors is None:
            return date_from_cells(row, now)
        return date_from_selectors(row, self.date_selectors, now)

    def _row_item(self, row: Tag, course: Course, now: datetime) -> Optional[DeadlineItem]:
        title_el = row.select_one(self.title_selector)
        if title_el is None:
            return None
        title = clean_text(title_el.get_text(" "))
        if not title:
            return None

        due = self._row_date(row, now)
        if due is None or due <= now:
            return None
        return make_item(course, title, due, self.kind)

    def extract(self, soup: BeautifulSoup, course: Course, now: datetime) -> List[DeadlineItem]:
        items: List[DeadlineItem] = []
        for row in soup.select(self.row_selector):
            try:
                item = self._row_item(row, course, now)
            except Exception as exc:
                logger.debug("Skipping row in %s for %s: %s", self.name, course.name, exc)
                continue
            if item is not None:
                items.append(item)
        return items


@dataclass(frozen=True)
class CalendarView:
    """
    Calendar events carrying a machine-readable `data-date` attribute.
    """

    name: str
    path_template: str
    event_selector: str
    kind: Kind = Kind.OTHER
    date_attribute: str = "data-date"

    def path(self, course: Course) -> str:
        return self.path_template.format(course_id=course.id)

    def extract(self, soup: BeautifulSoup, course: Course, now: datetime) -> List[DeadlineItem]:
        items: List[DeadlineItem] = []
        for event in soup.select(self.event_selector):
            try:
                title = clean_text(event.get_text(" "))
                raw = event.get(self.date_attribute)
                if not title or not raw:
                    continue
                due = parse_iso(str(raw))
                if due is None or due <= now:
                    continue
                items.append(make_item(course, title, due, self.kind))
            except Exception as exc:
                logger.debug("Skipping event in %s for %s: %s", self.name, course.name, exc)
        return items


