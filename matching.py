"""
Content matchers: does a literal string occur in a materialized file?

Each matcher declares the file types it ``supports``; ``CompositeMatcher``
picks one by extension so the bisection search never branches on the file
format. Matching is literal and case-sensitive.
"""

from __future__ import annotations

from pathlib import Path
from typing import Protocol, runtime_checkable

from docx import Document
from openpyxl import load_workbook

from errors import ContentMatchError
from logging_config import get_logger

logger = get_logger("matching")


@runtime_checkable
class ContentMatcher(Protocol):
    """Content-matching capability consumed by the search."""

    def supports(self, file_path: Path) -> bool:
        ...

    def contains(self, file_path: Path, query: str) -> bool:
        ...


class TextMatcher:
    """Plain text; also the catch-all for unknown extensions."""

    def supports(self, file_path: Path) -> bool:
        return True

    def contains(self, file_path: Path, query: str) -> bool:
        return query in Path(file_path).read_text(encoding="utf-8", errors="replace")


class SpreadsheetMatcher:
    """Excel workbooks: the string must occur in some cell's value."""

    EXTENSIONS = {".xlsx", ".xlsm"}

    def supports(self, file_path: Path) -> bool:
        return Path(file_path).suffix.lower() in self.EXTENSIONS

    def contains(self, file_path: Path, query: str) -> bool:
        workbook = load_workbook(file_path, read_only=True, data_only=False)
        try:
            for sheet in workbook.worksheets:
                for row in sheet.iter_rows(values_only=True):
                    for value in row:
                        if value is not None and query in str(value):
                            return True
            return False
        finally:
            workbook.close()


class DocxMatcher:
    """Word documents: paragraphs and table cells."""

    def supports(self, file_path: Path) -> bool:
        return Path(file_path).suffix.lower() == ".docx"

    def contains(self, file_path: Path, query: str) -> bool:
        doc = Document(str(file_path))
        if any(query in p.text for p in doc.paragraphs):
            return True
        for table in doc.tables:
            for row in table.rows:
                if any(query in cell.text for cell in row.cells):
                    return True
        return False


class CompositeMatcher:
    """Dispatches to the first matcher supporting the file's extension."""

    def __init__(self, matchers: list[ContentMatcher] | None = None):
        self._matchers: list[ContentMatcher] = matchers or [
            SpreadsheetMatcher(),
            DocxMatcher(),
            TextMatcher(),
        ]

    def select(self, file_path: Path) -> ContentMatcher:
        for matcher in self._matchers:
            if matcher.supports(Path(file_path)):
                return matcher
        raise ContentMatchError(f"No content matcher supports {file_path}", {"path": str(file_path)})

    def supports(self, file_path: Path) -> bool:
        return any(matcher.supports(Path(file_path)) for matcher in self._matchers)

    def contains(self, file_path: Path, query: str) -> bool:
        """Match *query* in *file_path*.

        Raises:
            ContentMatchError: The file could not be read or parsed.
        """
        matcher = self.select(file_path)
        try:
            return matcher.contains(Path(file_path), query)
        except Exception as exc:
            # Corrupt revisions surface as parser-specific errors (lxml, zipfile)
            logger.error(f"Failed to read {file_path} with {matcher.__class__.__name__}: {exc}")
            raise ContentMatchError(
                f"Could not read {Path(file_path).name}: {exc}",
                {
                    "path": str(file_path),
                    "matcher": matcher.__class__.__name__,
                    "error_type": exc.__class__.__name__,
                },
            ) from exc


def matcher_for(file_path: str | Path) -> ContentMatcher:
    """Content matcher for the tracked file, chosen by its extension."""
    matcher = CompositeMatcher().select(Path(file_path))
    logger.debug(f"Using {matcher.__class__.__name__} for {file_path}")
    return CompositeMatcher([matcher])
