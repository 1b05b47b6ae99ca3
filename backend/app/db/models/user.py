"""
User model: the policy holder's personal profile.

Email is the identity key: ingestion looks users up by email before
creating them, and the column is unique.
"""

import uuid
from datetime import date

from sqlalchemy import Date, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.models.base import Base, TimestampMixin, generate_uuid


class User(TimestampMixin, Base):
    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=generate_uuid)
    first_name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    last_name: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    date_of_birth: Mapped[date] = mapped_column(Date, nullable=False)

    # Postal address
    street: Mapped[str] = mapped_column(String(255), nullable=False)
    city: Mapped[str] = mapped_column(String(120), nullable=False)
    state: Mapped[str] = mapped_column(String(120), nullable=False)
    zip_code: Mapped[str] = mapped_column(String(20), nullable=False)

    phone_number: Mapped[str] = mapped_column(String(50), nullable=False, default="")
    email: Mapped[str] = mapped_column(String(320), unique=True, nullable=False, index=True)
    gender: Mapped[str] = mapped_column(String(10), nullable=False)  # Male | Female | Other
    user_type: Mapped[str] = mapped_column(String(100), nullable=False)

    accounts = relationship("UserAccount", back_populates="user")
    policies = relationship("Policy", back_populates="user")

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    @property
    def address(self) -> dict[str, str]:
        return {
            "street": self.street,
            "city": self.city,
            "state": self.state,
            "zip_code": self.zip_code,
        }

    def __repr__(self) -> str:
        return f"<User id={self.id} {self.email}>"
