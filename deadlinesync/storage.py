"""
Synchronization ledger.

Persistent record of which deadlines were already turned into reminders, and
of every sync run. This file is what makes repeated syncs idempotent:

    data_dir/sync.db
        synced_reminders   one row per fingerprint, written once, never updated
        sync_logs          one row per run, in_progress -> success | failed

The database is loaded into an in-memory SQLite connection when the ledger is
opened, and written back to the file after every mutating call, so nothing
that returned successfully is ever lost.

All queries use parameters; no value is ever formatted into SQL text.
"""

from __future__ import annotations

import logging
import sqlite3
import uuid
from datetime import datetime
from pathlib import Path
from typing import Any, List, Optional

from deadlinesync.errors import ConstraintViolation
from deadlinesync.model import DeadlineItem, Origin, RunStatus, SyncRecord, SyncRunLog

logger = logging.getLogger(__name__)

SCHEMA = """
CREATE TABLE IF NOT EXISTS synced_reminders (
    id          TEXT PRIMARY KEY,
    external_id TEXT UNIQUE NOT NULL,
    title       TEXT NOT NULL,
    course_name TEXT NOT NULL,
    due_date    TEXT NOT NULL,
    created_at  TEXT NOT NULL,
    source      TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS sync_logs (
    id                INTEGER PRIMARY KEY AUTOINCREMENT,
    started_at        TEXT NOT NULL,
    completed_at      TEXT,
    status            TEXT NOT NULL,
    reminders_created INTEGER DEFAULT 0,
    error_message     TEXT
);
"""


def _now_iso() -> str:
    return datetime.now().isoformat(timespec="seconds")


class Ledger:
    """
    The ledger of one run. Construct it, `open()` it (or use `with`), pass it
    to whatever needs it, and `close()` it at the end.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        self._conn: Optional[sqlite3.Connection] = None

    # -- lifecycle ----------------------------------------------------------

    def open(self) -> "Ledger":
        if self._conn is not None:
            return self

        conn = sqlite3.connect(":memory:")
        conn.row_factory = sqlite3.Row
        if self.path.exists():
            disk = sqlite3.connect(self.path)
            try:
                disk.backup(conn)
            finally:
                disk.close()

        conn.executescript(SCHEMA)
        conn.commit()
        self._conn = conn
        self._save()
        return self

    def close(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    def __enter__(self) -> "Ledger":
        return self.open()

    def __exit__(self, *exc: Any) -> None:
        self.close()

    @property
    def conn(self) -> sqlite3.Connection:
        if self._conn is None:
            raise RuntimeError("Ledger is not open")
        return self._conn

    def _save(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        disk = sqlite3.connect(self.path)
        try:
            self.conn.backup(disk)
        finally:
            disk.close()

    # -- synced reminders ---------------------------------------------------

    def is_synced(self, fingerprint: str) -> bool:
        row = self.conn.execute(
            "SELECT 1 FROM synced_reminders WHERE external_id = ?",
            (fingerprint,),
        ).fetchone()
        return row is not None

    def mark_synced(self, item: DeadlineItem) -> SyncRecord:
        """
        Record that a reminder now exists for `item`.

        Raises ConstraintViolation if the fingerprint is already recorded;
        callers check is_synced first.
        """
        record = SyncRecord(
            id=str(uuid.uuid4()),
            external_id=item.id,
            title=item.title,
            course_name=item.course_name,
            due_date=item.due_date.isoformat(),
            created_at=_now_iso(),
            origin=Origin(item.origin),
        )
        try:
            with self.conn:
                self.conn.execute(
                    """INSERT INTO synced_reminders
                           (id, external_id, title, course_name, due_date, created_at, source)
                       VALUES (?, ?, ?, ?, ?, ?, ?)""",
                    (
                        record.id,
                        record.external_id,
                        record.title,
                        record.course_name,
                        record.due_date,
                        record.created_at,
                        record.origin.value,
                    ),
                )
        except sqlite3.IntegrityError as exc:
            raise ConstraintViolation(f"Already synced: {item.id}") from exc
        self._save()
        return record

    def list_synced(self) -> List[SyncRecord]:
        rows = self.conn.execute(
            "SELECT * FROM synced_reminders ORDER BY due_date ASC"
        ).fetchall()
        return [
            SyncRecord(
                id=row["id"],
                external_id=row["external_id"],
                title=row["title"],
                course_name=row["course_name"],
                due_date=row["due_date"],
                created_at=row["created_at"],
                origin=Origin(row["source"]),
            )
            for row in rows
        ]

    # -- run log ------------------------------------------------------------

    def start_run(self) -> int:
        with self.conn:
            cur = self.conn.execute(
                "INSERT INTO sync_logs (started_at, status) VALUES (?, ?)",
                (_now_iso(), RunStatus.IN_PROGRESS.value),
            )
        self._save()
        return int(cur.lastrowid)

    def complete_run(self, run_id: int, items_created: int) -> None:
        self._finish_run(run_id, RunStatus.SUCCESS, items_created, None)

    def fail_run(self, run_id: int, message: str) -> None:
        self._finish_run(run_id, RunStatus.FAILED, 0, message)

    def _finish_run(
        self, run_id: int, status: RunStatus, items_created: int, message: Optional[str]
    ) -> None:
        with self.conn:
            self.conn.execute(
                """UPDATE sync_logs
                      SET completed_at = ?, status = ?, reminders_created = ?, error_message = ?
                    WHERE id = ? AND status = ?""",
                (_now_iso(), status.value, items_created, message, run_id, RunStatus.IN_PROGRESS.value),
            )
        self._save()

    def list_runs(self, limit: Optional[int] = None) -> List[SyncRunLog]:
        """Most recent runs first."""
        query = "SELECT * FROM sync_logs ORDER BY id DESC"
        params: tuple = ()
        if limit is not None:
            query += " LIMIT ?"
            params = (limit,)
        rows = self.conn.execute(query, params).fetchall()
        return [
            SyncRunLog(
                id=row["id"],
                started_at=row["started_at"],
                completed_at=row["completed_at"],
                status=RunStatus(row["status"]),
                items_created=row["reminders_created"] or 0,
                error_message=row["error_message"],
            )
            for row in rows
        ]

    def last_run(self) -> Optional[SyncRunLog]:
        runs = self.list_runs(limit=1)
        return runs[0] if runs else None

    # -- destructive --------------------------------------------------------

    def reset_all(self) -> None:
        """
        Delete every synced record and run log. The caller asks for confirmation.
        """
        with self.conn:
            self.conn.execute("DELETE FROM synced_reminders")
            self.conn.execute("DELETE FROM sync_logs")
        self._save()
        logger.info("Database reset completed")
