"""ServiceVersion model — draft and published content for a service.

`row_version` is the optimistic-lock counter: every successful write bumps it
by exactly one, and writers must present the value they last read. The
partial unique index keeps a single working draft per service.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import TYPE_CHECKING, Any

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Index, Integer, String, text
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from prohub.models.base import Base, TimestampMixin
from prohub.models.enums import ServiceVersionState

if TYPE_CHECKING:
    from prohub.models.service import Service


class ServiceVersion(TimestampMixin, Base):
    """One version of a service's card, pricing, and funnel content."""

    __tablename__ = "service_versions"
    __table_args__ = (
        Index(
            "uq_service_versions_one_draft",
            "service_id",
            unique=True,
            postgresql_where=text("state = 'draft'"),
        ),
        CheckConstraint("row_version > 0", name="row_version_positive"),
    )

    service_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("services.id"), nullable=False, index=True
    )
    state: Mapped[str] = mapped_column(
        String(20), default=ServiceVersionState.DRAFT.value, nullable=False, index=True
    )
    row_version: Mapped[int] = mapped_column(
        Integer, default=1, server_default=text("1"), nullable=False
    )

    # Content sections — validated by prohub.schemas.service_content before write
    card: Mapped[dict[str, Any]] = mapped_column(JSONB, nullable=False)
    pricing: Mapped[dict[str, Any]] = mapped_column(JSONB, nullable=False)
    funnel: Mapped[dict[str, Any] | None] = mapped_column(JSONB)

    created_by: Mapped[str | None] = mapped_column(String(100), comment="Identity provider user ID")
    submitted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    approved_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    published_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    service: Mapped[Service] = relationship(
        "Service", back_populates="versions", foreign_keys=[service_id]
    )

    def __repr__(self) -> str:
        return (
            f"<ServiceVersion id={self.id} service={self.service_id} "
            f"state={self.state} row_version={self.row_version}>"
        )
