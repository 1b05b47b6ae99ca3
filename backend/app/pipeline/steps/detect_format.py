"""
DetectFormatStep: decides how the upload will be parsed.

Detection is by file extension only: `.csv` → CSV, `.xlsx` / `.xls` →
SPREADSHEET.  Anything else fails the run.
"""

from __future__ import annotations

import os

from app.core.logging import get_logger
from app.pipeline.context import PipelineContext, StepResult
from app.pipeline.step import PipelineStep
from app.processing.format_detector import detect_format

logger = get_logger(__name__)


class DetectFormatStep(PipelineStep):
    """Detect the upload's format from its original file name."""

    name = "detect_format"
    description = "Detect file format from extension"

    async def execute(self, ctx: PipelineContext) -> StepResult:
        started_at = self._now()

        ctx.detected_format = detect_format(ctx.file_name)

        logger.info(
            "Format detected",
            file_name=ctx.file_name,
            format=ctx.detected_format,
        )
        return self._success(started_at, metadata={
            "format": ctx.detected_format,
            "extension": os.path.splitext(ctx.file_name)[1].lower(),
        })
