import subprocess
import unittest
from datetime import datetime
from unittest import mock

from deadlinesync.errors import CreationFailure
from deadlinesync.model import DeadlineItem
from deadlinesync.reminders import (
    AppleReminders,
    applescript_date,
    escape_applescript,
    remind_at,
    reminder_notes,
    reminder_title,
)

ITEM = DeadlineItem(
    id="abc",
    course_id="555",
    course_name="ECON 1000",
    title='Essay "one"',
    due_date=datetime(2030, 11, 5, 23, 59),
)


class TestReminderHelpers(unittest.TestCase):
    def test_remind_at_subtracts_days(self) -> None:
        now = datetime(2030, 1, 1)
        self.assertEqual(remind_at(datetime(2030, 11, 5, 23, 59), 5, now), datetime(2030, 10, 31, 23, 59))

    def test_remind_at_is_clamped_to_now(self) -> None:
        now = datetime(2030, 11, 4, 9, 0)
        self.assertEqual(remind_at(datetime(2030, 11, 5, 23, 59), 5, now), now)

    def test_title_and_notes(self) -> None:
        self.assertEqual(reminder_title(ITEM), 'ECON 1000: Essay "one"')
        self.assertEqual(reminder_notes(ITEM), "Due: 2030-11-05")

    def test_escape(self) -> None:
        self.assertEqual(escape_applescript('say "hi"\\\n'), 'say \\"hi\\"\\\\\\n')

    def test_applescript_date(self) -> None:
        self.assertEqual(applescript_date(datetime(2030, 11, 5, 23, 59)), "November 5, 2030 at 11:59 PM")
        self.assertEqual(applescript_date(datetime(2030, 1, 2, 0, 5)), "January 2, 2030 at 12:05 AM")


class TestAppleReminders(unittest.TestCase):
    @mock.patch("deadlinesync.reminders.subprocess.run")
    def test_create_runs_osascript(self, run) -> None:
        run.return_value = subprocess.CompletedProcess([], 0, stdout="", stderr="")
        AppleReminders("School", 5).create(ITEM)

        args = run.call_args[0][0]
        self.assertEqual(args[:2], ["osascript", "-e"])
        script = args[2]
        self.assertIn('tell list "School"', script)
        self.assertIn('name:"ECON 1000: Essay \\"one\\""', script)
        self.assertIn('due date:date "November 5, 2030 at 11:59 PM"', script)

    @mock.patch("deadlinesync.reminders.subprocess.run")
    def test_failure_becomes_creation_failure(self, run) -> None:
        run.side_effect = subprocess.CalledProcessError(1, ["osascript"], stderr="Reminders got an error")
        with self.assertRaises(CreationFailure) as ctx:
            AppleReminders("School", 5).create(ITEM)
        self.assertIn("Reminders got an error", str(ctx.exception))

    @mock.patch("deadlinesync.reminders.subprocess.run")
    def test_missing_osascript(self, run) -> None:
        run.side_effect = FileNotFoundError("osascript")
        with self.assertRaises(CreationFailure):
            AppleReminders("School", 5).ensure_list()


if __name__ == "__main__":
    unittest.main()
