"""
Document -> plain text.

Only a small fixed set of formats is handled: PDF, Word (.docx) and plain text.
"""

from __future__ import annotations

import logging
from pathlib import Path

import docx
import pdfplumber

from deadlinesync.errors import ParseFailure, UnsupportedFormat

logger = logging.getLogger(__name__)

TEXT_SUFFIXES = {".txt", ".md"}
SUPPORTED_SUFFIXES = {".pdf", ".docx"} | TEXT_SUFFIXES


def _pdf_text(path: Path) -> str:
    pages: list[str] = []
    with pdfplumber.open(path) as pdf:
        for page in pdf.pages:
            text = page.extract_text()
            if text:
                pages.append(text.strip())
    logger.info("Extracted %d pages from PDF", len(pages))
    return "\n".join(pages)


def _docx_text(path: Path) -> str:
    document = docx.Document(str(path))
    paragraphs = [p.text for p in document.paragraphs if p.text.strip()]
    for table in document.tables:
        for row in table.rows:
            cells = [c.text.strip() for c in row.cells if c.text.strip()]
            if cells:
                paragraphs.append(" | ".join(cells))
    return "\n".join(paragraphs)


def extract_text(path: str | Path) -> str:
    """
    Return the plain text of a syllabus document.

    Raises:
        FileNotFoundError: the file does not exist
        UnsupportedFormat: the suffix is not one of SUPPORTED_SUFFIXES
        ParseFailure: the file could not be read as its format
    """
    p = Path(path)
    if not p.is_file():
        raise FileNotFoundError(f"File not found: {p}")

    suffix = p.suffix.lower()
    if suffix not in SUPPORTED_SUFFIXES:
        raise UnsupportedFormat(f"Unsupported document type {suffix or '(none)'}: {p}")

    try:
        if suffix == ".pdf":
            return _pdf_text(p)
        if suffix == ".docx":
            return _docx_text(p)
        return p.read_text(encoding="utf-8")
    except UnicodeDecodeError as exc:
        raise ParseFailure(f"Could not decode text file {p}: {exc}") from exc
    except Exception as exc:
        logger.error("Failed to parse %s: %s", p, exc)
        raise ParseFailure(f"Could not parse document: {p}") from exc
