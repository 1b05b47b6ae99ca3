"""
Policy model: one insurance policy held by a User.

Each policy references exactly one User, one PolicyCategory and one
PolicyCarrier.  The coverage window must be non-empty: start strictly
before end (enforced by a check constraint and by the ingestion code
before insert).
"""

import uuid
from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Index, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.models.base import Base, TimestampMixin, generate_uuid


class Policy(TimestampMixin, Base):
    __tablename__ = "policies"
    __table_args__ = (
        CheckConstraint("policy_start_date < policy_end_date", name="ck_policies_date_order"),
        Index("ix_policies_date_range", "policy_start_date", "policy_end_date"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=generate_uuid)
    policy_number: Mapped[str] = mapped_column(String(100), unique=True, nullable=False, index=True)
    policy_start_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    policy_end_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    # ── Foreign keys ──────────────────────────
    category_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("policy_categories.id"), nullable=False, index=True
    )
    company_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("policy_carriers.id"), nullable=False, index=True
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id"), nullable=False, index=True
    )

    # ── Relationships ─────────────────────────
    category = relationship("PolicyCategory")
    carrier = relationship("PolicyCarrier")
    user = relationship("User", back_populates="policies")

    def __repr__(self) -> str:
        return f"<Policy {self.policy_number} user={self.user_id}>"
