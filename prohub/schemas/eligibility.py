"""Pydantic schemas for the co-pay eligibility engine.

Pure data classes — no DB dependencies. `VendorPartner` is the single
canonical partner shape; storage and fixture shapes are converted to it by
prohub.eligibility.adapters.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class CopayEligibility(BaseModel):
    """Partner policy deciding which agents and services get co-pay."""

    enabled: bool = False
    min_agent_deals_per_year: int = 0
    allowed_service_ids: set[str] | None = None   # None → no allow-list
    prohibited_service_ids: set[str] = Field(default_factory=set)


class VendorPartner(BaseModel):
    """Canonical co-pay partner."""

    id: str
    name: str
    markets: set[str] = Field(default_factory=set)   # normalized market keys
    copay_eligibility: CopayEligibility
    share_pct: Decimal | None = None                  # vendor contribution, 0–100
    max_share_cents_per_order: int | None = None
    benefits: list[str] = Field(default_factory=list)
    logo: str | None = None
    verified: bool = False


class AgentProfile(BaseModel):
    """The requesting agent's qualification snapshot. Built per request."""

    model_config = ConfigDict(populate_by_name=True)

    deals_last_12m: int = Field(
        default=0,
        ge=0,
        validation_alias=AliasChoices("deals_last_12m", "dealsLast12m", "dealsPerYear"),
    )
    buyers_last_12m: int | None = None
    sellers_last_12m: int | None = None


class EligibilityParams(BaseModel):
    """One eligibility query."""

    service_id: str
    city: str | None = None
    agent_profile: AgentProfile = Field(default_factory=AgentProfile)


class RuleCondition(BaseModel):
    """Outcome of a single eligibility rule."""

    name: str
    description: str            # failure message shown to the agent
    met: bool
    skipped: bool = False       # e.g. market rule with no city
    value: Any = None


class PartnerEligibility(BaseModel):
    """Full evaluation of one partner — every rule in contract order."""

    partner_id: str
    eligible: bool
    conditions: list[RuleCondition] = Field(default_factory=list)
    reason: str | None = None


class EligiblePartnerOut(BaseModel):
    """Partner returned to the storefront with its benefit text."""

    id: str
    name: str
    logo: str | None = None
    verified: bool = False
    benefits: list[str] = Field(default_factory=list)
    benefit: str | None = None


class IneligiblePartnerOut(BaseModel):
    """Partner filtered out, with the first failing rule for UI messaging."""

    partner_id: str
    name: str
    reason: str


class CopayPartnersResponse(BaseModel):
    """Response of the co-pay partner lookup."""

    service_id: str
    city: str | None = None
    eligible: list[EligiblePartnerOut] = Field(default_factory=list)
    ineligible: list[IneligiblePartnerOut] = Field(default_factory=list)
