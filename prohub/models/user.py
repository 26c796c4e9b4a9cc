"""UserRole and Profile models — local data keyed by identity provider user ID."""

from __future__ import annotations

from sqlalchemy import Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from prohub.models.base import Base, TimestampMixin


class UserRole(TimestampMixin, Base):
    """Role grant for an identity provider user."""

    __tablename__ = "user_roles"
    __table_args__ = (UniqueConstraint("user_id", "role", name="uq_user_roles_user_role"),)

    user_id: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    role: Mapped[str] = mapped_column(String(20), nullable=False)

    def __repr__(self) -> str:
        return f"<UserRole user={self.user_id} role={self.role}>"


class Profile(TimestampMixin, Base):
    """Agent profile — production stats feed co-pay eligibility."""

    __tablename__ = "profiles"

    user_id: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    display_name: Mapped[str | None] = mapped_column(String(200))
    deals_last_12m: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    buyers_last_12m: Mapped[int | None] = mapped_column(Integer)
    sellers_last_12m: Mapped[int | None] = mapped_column(Integer)

    def __repr__(self) -> str:
        return f"<Profile user={self.user_id} deals={self.deals_last_12m}>"
