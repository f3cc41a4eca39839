"""
Authenticated portal session.

The portal sits behind single sign-on with 2FA, so this tool never logs in by
itself. Instead it reuses a browser "storage state" export (the JSON written
by Playwright's `context.storage_state()` or an equivalent cookie export):

    {"cookies": [{"name": ..., "value": ..., "domain": ..., "path": ...}, ...],
     "origins": [...]}

The file is installed with `deadline-sync login --import FILE` and lives in
the data directory. Everything here is a thin wrapper around requests.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Optional
from urllib.parse import urljoin

import requests
from bs4 import BeautifulSoup

from deadlinesync.config import Settings

logger = logging.getLogger(__name__)

HOME_PATH = "/d2l/home"
LOGIN_MARKERS = ("login", "adfs", "auth", "idp")
DASHBOARD_SELECTOR = '.d2l-page-header, .d2l-homepage, [class*="homepage"], [class*="course"]'
USER_AGENT = "Mozilla/5.0 (compatible; deadline-sync)"


class PortalSession:
    """
    One browsing context over the portal.

    Navigations are sequential; the same cookie jar is reused for every view.
    """

    def __init__(self, base_url: str, http: requests.Session, timeout: float = 30.0) -> None:
        self.base_url = base_url.rstrip("/")
        self.http = http
        self.timeout = timeout

    def url(self, path: str) -> str:
        return urljoin(self.base_url + "/", path.lstrip("/"))

    def get(self, path: str) -> requests.Response:
        resp = self.http.get(self.url(path), timeout=self.timeout)
        resp.raise_for_status()
        return resp

    def fetch(self, path: str) -> BeautifulSoup:
        """Load one view and return its parsed DOM."""
        resp = self.get(path)
        return BeautifulSoup(resp.text, "html.parser")

    def close(self) -> None:
        self.http.close()

    def __enter__(self) -> "PortalSession":
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()


def _read_state(path: Path) -> Optional[dict[str, Any]]:
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        return None
    except (OSError, json.JSONDecodeError, UnicodeDecodeError) as exc:
        logger.error("Failed to load session from %s: %s", path, exc)
        return None
    if not isinstance(data, dict) or not isinstance(data.get("cookies", []), list):
        logger.error("Session file %s has an unexpected shape", path)
        return None
    return data


def build_http(state: dict[str, Any]) -> requests.Session:
    http = requests.Session()
    http.headers["User-Agent"] = USER_AGENT
    for cookie in state.get("cookies", []):
        if not isinstance(cookie, dict):
            continue
        name = cookie.get("name")
        value = cookie.get("value")
        if not name or value is None:
            continue
        http.cookies.set(
            str(name),
            str(value),
            domain=str(cookie.get("domain") or ""),
            path=str(cookie.get("path") or "/"),
        )
    return http


def session_exists(settings: Settings) -> bool:
    return settings.session_path.exists()


def load_session(settings: Settings) -> Optional[PortalSession]:
    """
    Return a session built from the saved state, or None when there is none.
    """
    state = _read_state(settings.session_path)
    if state is None:
        return None
    return PortalSession(settings.base_url, build_http(state), timeout=settings.timeout)


def is_valid(session: PortalSession) -> bool:
    """
    Probe the portal home page and decide whether the cookies are still accepted.
    """
    try:
        resp = session.get(HOME_PATH)
    except requests.RequestException as exc:
        logger.error("Session validation failed: %s", exc)
        return False

    final_url = resp.url.lower()
    if any(marker in final_url for marker in LOGIN_MARKERS):
        logger.info("Session expired - redirected to login")
        return False

    if "/d2l" in final_url:
        logger.info("Session is valid")
        return True

    soup = BeautifulSoup(resp.text, "html.parser")
    return soup.select_one(DASHBOARD_SELECTOR) is not None


def save_session_state(path: str | Path, data: dict[str, Any]) -> Path:
    """
    Write a storage state as JSON, creating the parent directory.
    """
    dest = Path(path)
    dest.parent.mkdir(parents=True, exist_ok=True)
    dest.write_text(json.dumps(data, indent=2), encoding="utf-8")
    return dest


def import_session(settings: Settings, source: str | Path) -> Path:
    """
    Install an exported storage state into the data directory.

    Raises ValueError if the file is not a storage state.
    """
    src = Path(source)
    state = _read_state(src)
    if state is None:
        raise ValueError(f"Not a session state file: {src}")
    dest = save_session_state(settings.session_path, state)
    logger.info("Session saved successfully")
    return dest


def clear_session(settings: Settings) -> bool:
    path = settings.session_path
    if not path.exists():
        return False
    path.unlink()
    logger.info("Session cleared")
    return True


class CookieSessionProvider:
    """
    Session provider backed by the saved storage-state file.

    The sync run only talks to this interface (load_session / is_valid), so
    tests can hand in a provider returning a fake session.
    """

    def __init__(self, settings: Settings) -> None:
        self.settings = settings

    def load_session(self) -> Optional[PortalSession]:
        return load_session(self.settings)

    def is_valid(self, session: PortalSession) -> bool:
        return is_valid(session)
