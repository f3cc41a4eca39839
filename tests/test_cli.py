"""
Tests for CLI entry points.

Every test points the data directory at a temporary folder so the real
ledger and session of the user are never touched.
"""

import json
import os
import tempfile
import unittest
from contextlib import redirect_stdout
from datetime import datetime
from io import StringIO
from pathlib import Path
from unittest import mock

from deadlinesync.cli import main
from deadlinesync.model import DeadlineItem
from deadlinesync.storage import Ledger


class TestCLI(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.dir = Path(self._tmp.name)
        env = {"DEADLINE_SYNC_DATA_DIR": str(self.dir / "data")}
        patcher = mock.patch.dict(os.environ, env)
        patcher.start()
        self.addCleanup(patcher.stop)

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def run_cli(self, *argv: str) -> tuple:
        out = StringIO()
        with redirect_stdout(out):
            with self.assertRaises(SystemExit) as ctx:
                main(list(argv))
        return ctx.exception.code, out.getvalue()

    def test_unknown_command_is_rejected(self) -> None:
        with redirect_stdout(StringIO()), mock.patch("sys.stderr", StringIO()):
            with self.assertRaises(SystemExit) as ctx:
                main(["frobnicate"])
        self.assertNotEqual(ctx.exception.code, 0)

    def test_status_on_empty_data_dir(self) -> None:
        code, out = self.run_cli("status")
        self.assertEqual(code, 0)
        self.assertIn("Session: Not logged in", out)
        self.assertIn("Total synced: 0", out)

    def test_reset_force_clears_ledger(self) -> None:
        db = self.dir / "data" / "sync.db"
        with Ledger(db) as ledger:
            ledger.mark_synced(
                DeadlineItem(
                    id="abc", course_id="1", course_name="ECON 1000", title="Essay", due_date=datetime(2030, 1, 1)
                )
            )
        code, _ = self.run_cli("reset", "--force")
        self.assertEqual(code, 0)
        with Ledger(db) as ledger:
            self.assertEqual(ledger.list_synced(), [])

    def test_reset_cancelled(self) -> None:
        with mock.patch("builtins.input", return_value="no"):
            code, out = self.run_cli("reset")
        self.assertEqual(code, 0)
        self.assertIn("Reset cancelled", out)

    def test_login_import_and_clear(self) -> None:
        state = self.dir / "state.json"
        state.write_text(json.dumps({"cookies": [], "origins": []}), encoding="utf-8")

        code, _ = self.run_cli("login", "--import", str(state))
        self.assertEqual(code, 0)
        self.assertTrue((self.dir / "data" / "session" / "brightspace-state.json").exists())

        code, out = self.run_cli("login", "--clear")
        self.assertEqual(code, 0)
        self.assertIn("Session cleared", out)

    def test_sync_without_session_asks_for_login(self) -> None:
        code, out = self.run_cli("sync", "--dry-run")
        self.assertEqual(code, 2)
        self.assertIn("login", out)

    def test_syllabus_missing_file(self) -> None:
        code, out = self.run_cli("syllabus", "add", str(self.dir / "missing.pdf"), "-c", "ECON 1000")
        self.assertEqual(code, 1)
        self.assertIn("File not found", out)

    def test_syllabus_dry_run(self) -> None:
        path = self.dir / "syllabus.txt"
        path.write_text("Final exam: December 12, 2099.\n", encoding="utf-8")
        with mock.patch("deadlinesync.cli.review_candidates", side_effect=lambda c, s: []):
            code, out = self.run_cli("syllabus", "add", str(path), "-c", "ECON 1000", "--dry-run")
        self.assertEqual(code, 0)
        self.assertIn("Nothing new to sync", out)


if __name__ == "__main__":
    unittest.main()
