import unittest
from pathlib import Path

from deadlinesync.config import DEFAULT_ADVANCE_DAYS, DEFAULT_BASE_URL, DEFAULT_TIMEOUT, load_settings


class TestSettings(unittest.TestCase):
    def test_defaults(self) -> None:
        s = load_settings({})
        self.assertEqual(s.base_url, DEFAULT_BASE_URL)
        self.assertEqual(s.list_name, "School")
        self.assertEqual(s.advance_days, DEFAULT_ADVANCE_DAYS)
        self.assertEqual(s.timeout, DEFAULT_TIMEOUT)
        self.assertEqual(s.data_dir, Path.home() / ".deadline-sync")

    def test_overrides(self) -> None:
        s = load_settings(
            {
                "DEADLINE_SYNC_BASE_URL": "https://lms.example.edu/",
                "DEADLINE_SYNC_DATA_DIR": "/tmp/ds",
                "DEADLINE_SYNC_LIST": "Uni",
                "DEADLINE_SYNC_ADVANCE_DAYS": "2",
                "DEADLINE_SYNC_TIMEOUT": "12.5",
            }
        )
        self.assertEqual(s.base_url, "https://lms.example.edu")
        self.assertEqual(s.list_name, "Uni")
        self.assertEqual(s.advance_days, 2)
        self.assertEqual(s.timeout, 12.5)
        self.assertEqual(s.database_path, Path("/tmp/ds/sync.db"))
        self.assertEqual(s.session_path, Path("/tmp/ds/session/brightspace-state.json"))
        self.assertEqual(s.log_path, Path("/tmp/ds/sync.log"))

    def test_invalid_numbers_fall_back(self) -> None:
        s = load_settings({"DEADLINE_SYNC_ADVANCE_DAYS": "five", "DEADLINE_SYNC_TIMEOUT": "-3"})
        self.assertEqual(s.advance_days, DEFAULT_ADVANCE_DAYS)
        self.assertEqual(s.timeout, DEFAULT_TIMEOUT)


if __name__ == "__main__":
    unittest.main()
