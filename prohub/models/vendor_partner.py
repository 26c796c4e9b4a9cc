"""VendorPartnerRecord model — co-pay partners as stored by administrators.

Read-only to the eligibility engine; converted to the canonical
`VendorPartner` schema by prohub.eligibility.adapters.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any

from sqlalchemy import Boolean, Integer, Numeric, String
from sqlalchemy.dialects.postgresql import ARRAY, JSONB
from sqlalchemy.orm import Mapped, mapped_column

from prohub.models.base import Base, TimestampMixin


class VendorPartnerRecord(TimestampMixin, Base):
    """A business partner that may subsidize services for agents."""

    __tablename__ = "vendor_partners"

    name: Mapped[str] = mapped_column(String(200), nullable=False)
    logo: Mapped[str | None] = mapped_column(String(500))
    description: Mapped[str | None] = mapped_column(String(2000))
    verified: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    markets: Mapped[list[str]] = mapped_column(ARRAY(String(100)), default=list, nullable=False)
    benefits: Mapped[list[str]] = mapped_column(ARRAY(String(300)), default=list, nullable=False)

    # {"enabled", "minAgentDealsPerYear", "allowedServiceIds", "prohibitedServiceIds"}
    copay_eligibility: Mapped[dict[str, Any]] = mapped_column(JSONB, nullable=False)

    share_pct: Mapped[Decimal | None] = mapped_column(Numeric(5, 2), comment="Vendor contribution %")
    max_share_cents_per_order: Mapped[int | None] = mapped_column(Integer)

    def __repr__(self) -> str:
        return f"<VendorPartnerRecord id={self.id} name={self.name!r}>"
