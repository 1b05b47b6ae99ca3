from datetime import datetime

from app.api.schemas.base import ApiModel


class HealthResponse(ApiModel):
    status: str
    timestamp: datetime
    uptime: float
