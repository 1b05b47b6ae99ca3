"""
Abstract base class for all extractors.
"""

from abc import ABC, abstractmethod
from typing import Any


class BaseExtractor(ABC):
    """Base interface for upload extractors."""

    @abstractmethod
    def extract(self, filepath: str) -> list[dict[str, Any]]:
        """Parse a file into row mappings keyed by header.  Blank rows are dropped."""
        ...

    @abstractmethod
    def supports_format(self, format_type: str) -> bool:
        """Return True if this extractor handles the given format type."""
        ...

    @staticmethod
    def _is_blank(row: dict[str, Any]) -> bool:
        return all(
            value is None or (isinstance(value, str) and not value.strip())
            for value in row.values()
        )
