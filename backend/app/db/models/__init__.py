"""
Models package: re-exports Base and all models.

Import models here so Alembic's `target_metadata = Base.metadata`
picks up every table automatically.

When adding a new model:
    1. Create `app/db/models/<table_name>.py`
    2. Import it here
"""

from app.db.models.base import Base
from app.db.models.agent import Agent
from app.db.models.user import User
from app.db.models.user_account import UserAccount
from app.db.models.policy_category import PolicyCategory
from app.db.models.policy_carrier import PolicyCarrier
from app.db.models.policy import Policy
from app.db.models.scheduled_message import ScheduledMessage
from app.db.models.ingestion_run import IngestionRun

__all__ = [
    "Base",
    "Agent",
    "User",
    "UserAccount",
    "PolicyCategory",
    "PolicyCarrier",
    "Policy",
    "ScheduledMessage",
    "IngestionRun",
]
