"""API schema package."""

from app.api.schemas.ingestion import IngestionRunResponse, IngestionStatsResponse, UploadResponse
from app.api.schemas.records import (
    AgentResponse,
    AggregatedPolicyEntry,
    AggregatedUserResponse,
    PolicyResponse,
    PolicySearchResponse,
    UserResponse,
)
from app.api.schemas.scheduling import (
    ScheduledMessageResponse,
    ScheduleMessageRequest,
    ScheduleMessageResponse,
)
from app.api.schemas.system import HealthResponse

__all__ = [
    "AgentResponse",
    "AggregatedPolicyEntry",
    "AggregatedUserResponse",
    "HealthResponse",
    "IngestionRunResponse",
    "IngestionStatsResponse",
    "PolicyResponse",
    "PolicySearchResponse",
    "ScheduleMessageRequest",
    "ScheduleMessageResponse",
    "ScheduledMessageResponse",
    "UploadResponse",
    "UserResponse",
]
