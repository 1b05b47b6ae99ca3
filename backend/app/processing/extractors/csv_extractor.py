"""CSV extractor: header row becomes the keys of every record."""

from __future__ import annotations

import csv
from typing import Any

from app.core.constants import FileFormat
from app.processing.extractors.base import BaseExtractor


class CsvExtractor(BaseExtractor):
    def extract(self, filepath: str) -> list[dict[str, Any]]:
        # utf-8-sig drops the BOM Excel writes in front of the first header
        with open(filepath, newline="", encoding="utf-8-sig") as fh:
            reader = csv.DictReader(fh)
            rows = []
            for raw in reader:
                # Cells beyond the header row land under the None key
                row = {key.strip(): value for key, value in raw.items() if key is not None}
                if not self._is_blank(row):
                    rows.append(row)
        return rows

    def supports_format(self, format_type: str) -> bool:
        return format_type == FileFormat.CSV
