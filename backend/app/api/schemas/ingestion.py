"""Upload and ingestion-run schemas."""

from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import Field

from app.api.schemas.base import ApiModel


class IngestionStatsResponse(ApiModel):
    """Records created by one upload, plus the per-row errors."""

    agents: int = 0
    users: int = 0
    user_accounts: int = 0
    policy_categories: int = 0
    policy_carriers: int = 0
    policies: int = 0
    errors: list[str] = Field(default_factory=list)


class UploadResponse(ApiModel):
    message: str
    data: str
    stats: IngestionStatsResponse


class IngestionRunResponse(ApiModel):
    id: UUID
    file_name: str
    detected_format: str | None = None
    status: str
    rows_total: int | None = 0
    started_at: datetime | None = None
    completed_at: datetime | None = None
    duration_ms: int | None = None
    stats: dict[str, Any] | None = None
    error_message: str | None = None
