"""
Format Detector: picks the parser for an upload from its file extension.
"""

from __future__ import annotations

import os

from app.core.constants import FileFormat
from app.pipeline.errors import UnsupportedFormatError
from app.processing.extractors.base import BaseExtractor
from app.processing.extractors.csv_extractor import CsvExtractor
from app.processing.extractors.xlsx_extractor import XlsxExtractor

UNSUPPORTED_FORMAT_MESSAGE = "Unsupported file format. Please upload CSV or XLSX files."

# Extension → format mapping
EXTENSION_MAP: dict[str, FileFormat] = {
    ".csv": FileFormat.CSV,
    ".xlsx": FileFormat.SPREADSHEET,
    ".xls": FileFormat.SPREADSHEET,
}

EXTRACTORS: tuple[BaseExtractor, ...] = (CsvExtractor(), XlsxExtractor())


def detect_format(filename: str) -> FileFormat:
    """Return the FileFormat for a file name, or raise UnsupportedFormatError."""
    ext = os.path.splitext(filename)[1].lower()
    try:
        return EXTENSION_MAP[ext]
    except KeyError:
        raise UnsupportedFormatError(UNSUPPORTED_FORMAT_MESSAGE, details={"extension": ext}) from None


def extractor_for(format_type: str) -> BaseExtractor:
    for extractor in EXTRACTORS:
        if extractor.supports_format(format_type):
            return extractor
    raise UnsupportedFormatError(UNSUPPORTED_FORMAT_MESSAGE, details={"format": format_type})
