import tempfile
import unittest
from datetime import datetime
from pathlib import Path

from deadlinesync.export_ics import IcsReminders, export_items_to_ics
from deadlinesync.model import DeadlineItem, Kind


def _item(title: str = "Essay 1", due: datetime = datetime(2030, 2, 19, 23, 59)) -> DeadlineItem:
    return DeadlineItem(
        id=f"id-{title}",
        course_id="555",
        course_name="ECON 1000",
        title=title,
        due_date=due,
        kind=Kind.ASSIGNMENT,
    )


class TestExportICS(unittest.TestCase):
    def test_export_creates_file_and_contains_todo(self) -> None:
        with tempfile.TemporaryDirectory() as d:
            out = Path(d) / "out.ics"
            n = export_items_to_ics([_item()], out, advance_days=5, now=datetime(2030, 1, 1))
            self.assertEqual(n, 1)
            text = out.read_text(encoding="utf-8")
            self.assertIn("BEGIN:VCALENDAR", text)
            self.assertIn("BEGIN:VTODO", text)
            self.assertIn("SUMMARY:ECON 1000: Essay 1", text)
            self.assertIn("DUE:20300219T235900", text)
            self.assertIn("BEGIN:VALARM", text)
            self.assertIn("TRIGGER;VALUE=DATE-TIME:20300214T235900", text)

    def test_alarm_never_before_now(self) -> None:
        with tempfile.TemporaryDirectory() as d:
            out = Path(d) / "out.ics"
            export_items_to_ics([_item()], out, advance_days=5, now=datetime(2030, 2, 18, 8, 0))
            self.assertIn("TRIGGER;VALUE=DATE-TIME:20300218T080000", out.read_text(encoding="utf-8"))

    def test_text_fields_are_escaped(self) -> None:
        with tempfile.TemporaryDirectory() as d:
            out = Path(d) / "out.ics"
            export_items_to_ics([_item("Essay; part 1, draft")], out, advance_days=5)
            self.assertIn(r"Essay\; part 1\, draft", out.read_text(encoding="utf-8"))

    def test_sink_keeps_every_item(self) -> None:
        with tempfile.TemporaryDirectory() as d:
            out = Path(d) / "nested" / "school.ics"
            sink = IcsReminders(out, advance_days=5)
            sink.create(_item("Essay 1"))
            sink.create(_item("Essay 2"))
            text = out.read_text(encoding="utf-8")
            self.assertEqual(text.count("BEGIN:VTODO"), 2)
            self.assertIn("ECON 1000: Essay 2", text)


if __name__ == "__main__":
    unittest.main()
