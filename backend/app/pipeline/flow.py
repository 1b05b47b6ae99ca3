"""
The ingestion flow: the ordered steps every upload goes through.

    detect format → extract rows → upsert records
"""

from __future__ import annotations

from app.pipeline.step import PipelineStep
from app.pipeline.steps.detect_format import DetectFormatStep
from app.pipeline.steps.extract_data import ExtractRowsStep
from app.pipeline.steps.upsert_records import UpsertRecordsStep


def ingestion_flow() -> list[PipelineStep]:
    """Fresh step instances for one run."""
    return [
        DetectFormatStep(),
        ExtractRowsStep(),
        UpsertRecordsStep(),
    ]
