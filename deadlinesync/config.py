"""
Configuration.

Defaults match the portal and reminder list the tool was written for.
Every value can be overridden through environment variables, optionally kept
in a `.env` file in the working directory:

    DEADLINE_SYNC_BASE_URL      portal root (no trailing slash)
    DEADLINE_SYNC_DATA_DIR      where sync.db, sync.log and the session live
    DEADLINE_SYNC_LIST          reminder list name
    DEADLINE_SYNC_ADVANCE_DAYS  days before the due date to be reminded
    DEADLINE_SYNC_TIMEOUT       seconds per portal request
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://uottawa.brightspace.com"
DEFAULT_LIST_NAME = "School"
DEFAULT_ADVANCE_DAYS = 5
DEFAULT_TIMEOUT = 30.0


def _default_data_dir() -> Path:
    return Path.home() / ".deadline-sync"


@dataclass(frozen=True)
class Settings:
    base_url: str = DEFAULT_BASE_URL
    data_dir: Path = _default_data_dir()
    list_name: str = DEFAULT_LIST_NAME
    advance_days: int = DEFAULT_ADVANCE_DAYS
    timeout: float = DEFAULT_TIMEOUT

    @property
    def database_path(self) -> Path:
        return self.data_dir / "sync.db"

    @property
    def session_path(self) -> Path:
        return self.data_dir / "session" / "brightspace-state.json"

    @property
    def log_path(self) -> Path:
        return self.data_dir / "sync.log"


def _number(env: Mapping[str, str], key: str, default, cast):
    raw = (env.get(key) or "").strip()
    if not raw:
        return default
    try:
        value = cast(raw)
    except ValueError:
        logger.warning("Ignoring invalid %s=%r, using %s", key, raw, default)
        return default
    if value < 0:
        logger.warning("Ignoring negative %s=%r, using %s", key, raw, default)
        return default
    return value


def load_settings(env: Optional[Mapping[str, str]] = None) -> Settings:
    """
    Build Settings from the environment.

    Tests pass an explicit mapping; the CLI passes nothing, in which case a
    `.env` file (if any) is loaded first without overriding real variables.
    """
    if env is None:
        load_dotenv(override=False)
        env = os.environ

    base_url = (env.get("DEADLINE_SYNC_BASE_URL") or DEFAULT_BASE_URL).strip().rstrip("/")
    data_dir_raw = (env.get("DEADLINE_SYNC_DATA_DIR") or "").strip()
    data_dir = Path(data_dir_raw).expanduser() if data_dir_raw else _default_data_dir()
    list_name = (env.get("DEADLINE_SYNC_LIST") or "").strip() or DEFAULT_LIST_NAME

    return Settings(
        base_url=base_url,
        data_dir=data_dir,
        list_name=list_name,
        advance_days=_number(env, "DEADLINE_SYNC_ADVANCE_DAYS", DEFAULT_ADVANCE_DAYS, int),
        timeout=_number(env, "DEADLINE_SYNC_TIMEOUT", DEFAULT_TIMEOUT, float),
    )
