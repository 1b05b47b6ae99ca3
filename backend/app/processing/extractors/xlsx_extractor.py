"""
Spreadsheet extractor: first sheet, first row as headers.

Supports both .xls (via xlrd) and .xlsx (via openpyxl) formats.
"""

from __future__ import annotations

import os
from typing import Any, Iterator

from app.core.constants import FileFormat
from app.core.logging import get_logger
from app.pipeline.errors import ExtractionError
from app.processing.extractors.base import BaseExtractor

logger = get_logger(__name__)


# ═══════════════════════════════════════════════════════════
#  Sheet Adapters: uniform row iteration over xlrd / openpyxl
# ═══════════════════════════════════════════════════════════

class XlrdSheetAdapter:
    """Adapter for xlrd sheets; date cells are converted to datetimes."""

    def __init__(self, book, sheet) -> None:
        self._book = book
        self._s = sheet

    def close(self) -> None:
        self._book.release_resources()

    def rows(self) -> Iterator[list[Any]]:
        import xlrd

        for r in range(self._s.nrows):
            values = []
            for c in range(self._s.ncols):
                cell = self._s.cell(r, c)
                if cell.ctype == xlrd.XL_CELL_DATE:
                    values.append(xlrd.xldate_as_datetime(cell.value, self._book.datemode))
                elif cell.ctype in (xlrd.XL_CELL_EMPTY, xlrd.XL_CELL_BLANK):
                    values.append(None)
                else:
                    values.append(cell.value)
            yield values


class OpenpyxlSheetAdapter:
    """Adapter for openpyxl worksheets (read-only, cached values)."""

    def __init__(self, workbook) -> None:
        self._wb = workbook
        self._ws = workbook.worksheets[0]

    def close(self) -> None:
        self._wb.close()

    def rows(self) -> Iterator[list[Any]]:
        for row in self._ws.iter_rows(values_only=True):
            yield list(row)


def _load_sheet(path: str):
    """Load the first sheet from an XLS or XLSX file."""
    extension = os.path.splitext(path)[1].lower()

    if extension == ".xls":
        import xlrd

        workbook = xlrd.open_workbook(path)
        return XlrdSheetAdapter(workbook, workbook.sheet_by_index(0))

    from openpyxl import load_workbook

    workbook = load_workbook(path, read_only=True, data_only=True)
    return OpenpyxlSheetAdapter(workbook)


def _header_name(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


class XlsxExtractor(BaseExtractor):
    def extract(self, filepath: str) -> list[dict[str, Any]]:
        headers: list[str | None] = []
        records: list[dict[str, Any]] = []
        try:
            sheet = _load_sheet(filepath)
        except Exception as exc:
            raise ExtractionError(f"Failed to parse spreadsheet: {exc}") from exc

        try:
            row_iter = sheet.rows()
            header_row = next(row_iter, None)
            if header_row is None:
                return []

            headers = [_header_name(h) for h in header_row]
            for values in row_iter:
                record = {
                    header: value
                    for header, value in zip(headers, values)
                    if header is not None and value is not None
                }
                if record and not self._is_blank(record):
                    records.append(record)
        except Exception as exc:
            raise ExtractionError(f"Failed to parse spreadsheet: {exc}") from exc
        finally:
            sheet.close()

        logger.debug("Spreadsheet parsed", filepath=filepath, headers=[h for h in headers if h], rows=len(records))
        return records

    def supports_format(self, format_type: str) -> bool:
        return format_type == FileFormat.SPREADSHEET
