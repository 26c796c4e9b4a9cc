"""Service model — the live marketplace listing a version is published to."""

from __future__ import annotations

import uuid
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, ForeignKey, String
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from prohub.models.base import Base, TimestampMixin

if TYPE_CHECKING:
    from prohub.models.service_version import ServiceVersion


class Service(TimestampMixin, Base):
    """A marketplace service offered by a vendor."""

    __tablename__ = "services"

    name: Mapped[str] = mapped_column(String(200), nullable=False)
    slug: Mapped[str | None] = mapped_column(String(200), unique=True)
    category: Mapped[str | None] = mapped_column(String(100))
    vendor_id: Mapped[uuid.UUID | None] = mapped_column(UUID(as_uuid=True), index=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    # Pointer to the live content; older published rows stay for rollback
    published_version_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("service_versions.id", use_alter=True, name="fk_services_published_version"),
    )

    versions: Mapped[list[ServiceVersion]] = relationship(
        "ServiceVersion",
        back_populates="service",
        foreign_keys="ServiceVersion.service_id",
        order_by="ServiceVersion.created_at.desc()",
    )

    def __repr__(self) -> str:
        return f"<Service id={self.id} name={self.name!r} published={self.published_version_id}>"
