"""
Ingestion pipeline: step-based engine that turns an uploaded file into
domain records, with per-step timing, logging and error handling.
"""

from app.pipeline.context import IngestionStats, PipelineContext, StepResult
from app.pipeline.engine import PipelineEngine, PipelineResult
from app.pipeline.step import PipelineStep

__all__ = [
    "IngestionStats",
    "PipelineContext",
    "PipelineEngine",
    "PipelineResult",
    "PipelineStep",
    "StepResult",
]
