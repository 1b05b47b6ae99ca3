"""PolicyCarrier model: the insurance company writing the policy."""

import uuid

from sqlalchemy import String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from app.db.models.base import Base, TimestampMixin, generate_uuid


class PolicyCarrier(TimestampMixin, Base):
    __tablename__ = "policy_carriers"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=generate_uuid)
    company_name: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)

    def __repr__(self) -> str:
        return f"<PolicyCarrier id={self.id} {self.company_name!r}>"
