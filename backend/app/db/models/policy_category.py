"""PolicyCategory model: line of business (e.g. "Commercial Auto")."""

import uuid

from sqlalchemy import String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from app.db.models.base import Base, TimestampMixin, generate_uuid


class PolicyCategory(TimestampMixin, Base):
    __tablename__ = "policy_categories"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=generate_uuid)
    category_name: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)

    def __repr__(self) -> str:
        return f"<PolicyCategory id={self.id} {self.category_name!r}>"
