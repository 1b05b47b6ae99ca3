"""
Exceptions raised while ingesting an upload.

StepExecutionError and its subclasses end the run (the engine records
them on the failing step).  RowProcessingError only ever rejects a
single row; the upsert step turns it into a line in the row errors.
"""

from __future__ import annotations

from typing import Any


class PipelineError(Exception):
    def __init__(
        self,
        message: str,
        *,
        step_name: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.step_name = step_name
        self.details = dict(details or {})


class StepExecutionError(PipelineError):
    """A step could not finish; the run stops here."""


class UnsupportedFormatError(StepExecutionError):
    """Upload extension is neither CSV nor a spreadsheet."""


class ExtractionError(StepExecutionError):
    """The file could not be parsed."""


class EmptyFileError(StepExecutionError):
    """The file parsed but held no data rows."""


class RowProcessingError(PipelineError):
    """One row is invalid (bad date, gender, date order...)."""
