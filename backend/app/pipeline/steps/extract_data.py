"""
ExtractRowsStep: parses the upload into loosely typed row mappings.

CSV and spreadsheet parsing are blocking, so the extractor runs in a
worker thread.  An upload that parses to zero rows fails the run.
"""

from __future__ import annotations

import asyncio

from app.core.logging import get_logger
from app.pipeline.context import PipelineContext, StepResult
from app.pipeline.errors import EmptyFileError, ExtractionError, StepExecutionError
from app.pipeline.step import PipelineStep
from app.processing.format_detector import extractor_for

logger = get_logger(__name__)

EMPTY_FILE_MESSAGE = "No data found in the uploaded file."


class ExtractRowsStep(PipelineStep):
    """Extract every data row from the uploaded file."""

    name = "extract_rows"
    description = "Parse uploaded file into row records"

    async def execute(self, ctx: PipelineContext) -> StepResult:
        started_at = self._now()

        extractor = extractor_for(ctx.detected_format or "")
        try:
            rows = await asyncio.to_thread(extractor.extract, ctx.file_path)
        except StepExecutionError:
            raise
        except Exception as exc:
            raise ExtractionError(
                f"Failed to parse {ctx.file_name}: {exc}",
                step_name=self.name,
            ) from exc

        if not rows:
            raise EmptyFileError(
                EMPTY_FILE_MESSAGE,
                step_name=self.name,
            )

        ctx.rows = rows
        logger.info("Rows extracted", file_name=ctx.file_name, rows=len(rows))
        return self._success(started_at, metadata={"rows": len(rows)})
