"""Shared constants and enums used across the application."""

from enum import StrEnum


class Gender(StrEnum):
    """Allowed values for User.gender."""

    MALE = "Male"
    FEMALE = "Female"
    OTHER = "Other"


class MessageStatus(StrEnum):
    """Lifecycle of a scheduled message."""

    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


class PipelineStatus(StrEnum):
    """Overall status of a pipeline execution."""

    RUNNING = "RUNNING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


class StepStatus(StrEnum):
    """Status of an individual pipeline step."""

    COMPLETED = "COMPLETED"
    FAILED = "FAILED"
    SKIPPED = "SKIPPED"


class FileFormat(StrEnum):
    """Upload formats the ingestion pipeline can parse."""

    CSV = "CSV"
    SPREADSHEET = "SPREADSHEET"


class IngestionMode(StrEnum):
    """Where an upload is processed."""

    PROCESS = "process"
    CELERY = "celery"
    INLINE = "inline"
