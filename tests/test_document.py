import tempfile
import unittest
from pathlib import Path

from deadlinesync.document import extract_text
from deadlinesync.errors import ParseFailure, UnsupportedFormat


class TestExtractText(unittest.TestCase):
    def test_plain_text(self) -> None:
        with tempfile.TemporaryDirectory() as d:
            p = Path(d) / "syllabus.txt"
            p.write_text("Midterm exam on October 21.\n", encoding="utf-8")
            self.assertEqual(extract_text(p), "Midterm exam on October 21.\n")

    def test_markdown_suffix_is_case_insensitive(self) -> None:
        with tempfile.TemporaryDirectory() as d:
            p = Path(d) / "SYLLABUS.MD"
            p.write_text("# Schedule", encoding="utf-8")
            self.assertEqual(extract_text(p), "# Schedule")

    def test_missing_file(self) -> None:
        with self.assertRaises(FileNotFoundError):
            extract_text("/nonexistent/syllabus.pdf")

    def test_unsupported_format(self) -> None:
        with tempfile.TemporaryDirectory() as d:
            p = Path(d) / "syllabus.odt"
            p.write_bytes(b"x")
            with self.assertRaises(UnsupportedFormat):
                extract_text(p)

    def test_broken_pdf(self) -> None:
        with tempfile.TemporaryDirectory() as d:
            p = Path(d) / "syllabus.pdf"
            p.write_bytes(b"this is not a pdf")
            with self.assertRaises(ParseFailure):
                extract_text(p)

    def test_undecodable_text(self) -> None:
        with tempfile.TemporaryDirectory() as d:
            p = Path(d) / "syllabus.txt"
            p.write_bytes(b"\xff\xfe\xfa")
            with self.assertRaises(ParseFailure):
                extract_text(p)


if __name__ == "__main__":
    unittest.main()
