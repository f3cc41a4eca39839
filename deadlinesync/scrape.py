"""
Portal discovery (navigation + fallbacks).

- Course discovery tries a fixed list of strategies, one view after the other,
  and stops at the first strategy that finds at least one course.
- Deadline discovery probes three independent views per course. A view that
  fails (timeout, missing page, unexpected markup) contributes nothing and the
  other views still run.

All navigation is sequential over one session: the portal's pages are
stateful per navigation, so views are never loaded in parallel.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, Dict, List, Optional, Protocol, Sequence, Union

from bs4 import BeautifulSoup

from deadlinesync.errors import DiscoveryPartialFailure, NotAuthenticated
from deadlinesync.model import Course, DeadlineItem, Kind
from deadlinesync.parse import HOME_LINK_RE, CalendarView, CourseStrategy, ListingView
from deadlinesync.semester import is_current_term

logger = logging.getLogger(__name__)


class PageSource(Protocol):
    """What discovery needs from a session: a base URL, page loading, closing."""

    base_url: str

    def fetch(self, path: str) -> BeautifulSoup: ...

    def close(self) -> None: ...


# ---------------------------------------------------------------------------
# Views
# ---------------------------------------------------------------------------

PINNED_COURSES_PATH = "/d2l/le/manageCourses/widget/myCourses/6605/PinnedCourses"
HOME_PATH = "/d2l/home"

COURSE_STRATEGIES: List[CourseStrategy] = [
    CourseStrategy(
        name="pinned courses",
        path=PINNED_COURSES_PATH,
        selectors=(
            ".d2l-card",
            ".course-card",
            '[class*="course-card"]',
            "d2l-enrollment-card",
            '[class*="enrollment"]',
            ".d2l-datalist-item",
        ),
        trusted=True,
    ),
    CourseStrategy(
        name="homepage cards",
        path=HOME_PATH,
        selectors=(".d2l-card", '[class*="course-card"]', "d2l-card"),
    ),
    CourseStrategy(
        name="homepage links",
        path=HOME_PATH,
        selectors=('a[href*="/d2l/home/"]',),
        id_pattern=HOME_LINK_RE,
        name_from_link=True,
    ),
]

DEADLINE_VIEWS: List[Union[ListingView, CalendarView]] = [
    ListingView(
        name="assignments",
        path_template="/d2l/lms/dropbox/user/folders_list.d2l?ou={course_id}",
        row_selector="table tbody tr, .d2l-table tbody tr, .d_ich",
        title_selector="a, .d2l-link, .d2l-heading",
        kind=Kind.ASSIGNMENT,
        date_selectors=(".d2l-dates", '[class*="date"]', "td:nth-child(2)", "td:nth-child(3)"),
    ),
    ListingView(
        name="quizzes",
        path_template="/d2l/lms/quizzing/user/quizzes_list.d2l?ou={course_id}",
        row_selector="table tbody tr, .d2l-table tbody tr",
        title_selector="a, .d2l-link",
        kind=Kind.QUIZ,
    ),
    CalendarView(
        name="calendar",
        path_template="/d2l/le/calendar/{course_id}",
        event_selector='.d2l-calendar-event, [class*="event"]',
    ),
]


# ---------------------------------------------------------------------------
# Core logic
# ---------------------------------------------------------------------------


def discover_courses(
    session: Optional[PageSource],
    now: Optional[datetime] = None,
    validate: Optional[Callable[[PageSource], bool]] = None,
    strategies: Sequence[CourseStrategy] = COURSE_STRATEGIES,
) -> List[Course]:
    """
    Return the enrolled courses of the current term.

    Raises NotAuthenticated when there is no session or `validate` rejects it.
    """
    if session is None:
        raise NotAuthenticated()
    if validate is not None and not validate(session):
        raise NotAuthenticated('Session expired. Please run "deadline-sync login" to refresh.')

    now = now or datetime.now()
    pages: Dict[str, BeautifulSoup] = {}

    for strategy in strategies:
        try:
            if strategy.path not in pages:
                pages[strategy.path] = session.fetch(strategy.path)
            courses = strategy.extract(pages[strategy.path], session.base_url)
        except Exception as exc:
            logger.warning("%s", DiscoveryPartialFailure(strategy.name, str(exc)))
            continue

        if not strategy.trusted:
            courses = [c for c in courses if is_current_term(c.name, now)]

        if courses:
            logger.info("Found %d current semester courses (%s)", len(courses), strategy.name)
            return courses

        logger.debug("Strategy %r found no courses", strategy.name)

    logger.info("Found 0 current semester courses")
    return []


def probe_view(
    session: PageSource,
    view: Union[ListingView, CalendarView],
    course: Course,
    now: datetime,
) -> List[DeadlineItem]:
    """
    Load and extract one view. Any failure means "no items from this view".
    """
    try:
        soup = session.fetch(view.path(course))
        return view.extract(soup, course, now)
    except Exception as exc:
        failure = DiscoveryPartialFailure(view.name, str(exc))
        logger.warning("Could not fetch %s for %s: %s", view.name, course.name, failure.reason)
        return []


def discover_deadlines(
    session: PageSource,
    course: Course,
    now: Optional[datetime] = None,
    views: Sequence[Union[ListingView, CalendarView]] = DEADLINE_VIEWS,
) -> List[DeadlineItem]:
    """
    Return the upcoming deadlines of one course, merged over all views.

    Only deadlines strictly after `now` (default: the time of the call) are kept.
    An item found by an earlier view is never replaced by a later one.
    """
    now = now or datetime.now()
    merged: Dict[str, DeadlineItem] = {}

    for view in views:
        for item in probe_view(session, view, course, now):
            if item.id not in merged:
                merged[item.id] = item

    items = list(merged.values())
    logger.info("Found %d upcoming items in %s", len(items), course.name)
    return items
