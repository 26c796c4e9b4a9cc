"""Adapters from stored partner shapes to the canonical VendorPartner.

Two shapes exist in the wild:

- contract shape: policy nested under ``copayEligibility`` (camelCase keys),
  the allow-list is always present and means strict membership;
- fixture shape: policy under ``copayPolicy`` (``enabled``, ``sharePct``,
  ``maxShareCentsPerOrder``) with ``minAgentDealsPerYear`` and the
  allow/prohibit lists at the top level; a missing or empty allow-list means
  "every service".

The engine only ever sees VendorPartner; the rules are not duplicated per shape.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from decimal import Decimal
from typing import Any

from prohub.eligibility.rules import normalize_market
from prohub.models.vendor_partner import VendorPartnerRecord
from prohub.schemas.eligibility import CopayEligibility, VendorPartner


def _markets(values: Iterable[str] | None) -> set[str]:
    return {normalize_market(v) for v in values or () if normalize_market(v)}


def _ids(values: Iterable[Any] | None) -> set[str]:
    return {str(v) for v in values or ()}


def _decimal(value: Any) -> Decimal | None:
    if value is None:
        return None
    return Decimal(str(value))


def _policy_from_contract(policy: Mapping[str, Any]) -> CopayEligibility:
    return CopayEligibility(
        enabled=bool(policy.get("enabled", False)),
        min_agent_deals_per_year=int(policy.get("minAgentDealsPerYear") or 0),
        allowed_service_ids=_ids(policy.get("allowedServiceIds")),
        prohibited_service_ids=_ids(policy.get("prohibitedServiceIds")),
    )


def partner_from_contract(data: Mapping[str, Any]) -> VendorPartner:
    """Contract shape: ``{"copayEligibility": {...}, "markets": [...], ...}``."""
    policy = data.get("copayEligibility") or {}
    # Older contract rows kept markets inside the policy as well
    markets = list(data.get("markets") or []) + list(policy.get("markets") or [])
    return VendorPartner(
        id=str(data["id"]),
        name=data.get("name", ""),
        markets=_markets(markets),
        copay_eligibility=_policy_from_contract(policy),
        benefits=list(data.get("benefits") or []),
        logo=data.get("logo"),
        verified=bool(data.get("verified", False)),
    )


def partner_from_fixture(data: Mapping[str, Any]) -> VendorPartner:
    """Fixture shape: ``{"copayPolicy": {"enabled", "sharePct", ...}, ...}``."""
    policy = data.get("copayPolicy") or {}
    allowed = data.get("allowedServiceIds")
    return VendorPartner(
        id=str(data["id"]),
        name=data.get("name", ""),
        markets=_markets(data.get("markets")),
        copay_eligibility=CopayEligibility(
            enabled=bool(policy.get("enabled", False)),
            min_agent_deals_per_year=int(data.get("minAgentDealsPerYear") or 0),
            allowed_service_ids=_ids(allowed) if allowed else None,
            prohibited_service_ids=_ids(data.get("prohibitedServiceIds")),
        ),
        share_pct=_decimal(policy.get("sharePct")),
        max_share_cents_per_order=policy.get("maxShareCentsPerOrder"),
        benefits=list(data.get("benefits") or []),
        logo=data.get("logo"),
        verified=bool(data.get("verified", False)),
    )


def partner_from_mapping(data: Mapping[str, Any]) -> VendorPartner:
    """Pick the adapter by which policy key the mapping carries."""
    if "copayEligibility" in data:
        return partner_from_contract(data)
    if "copayPolicy" in data:
        return partner_from_fixture(data)
    msg = f"Unrecognized partner shape for id={data.get('id')!r}: no copayEligibility or copayPolicy"
    raise ValueError(msg)


def partner_from_record(record: VendorPartnerRecord) -> VendorPartner:
    """ORM row → canonical partner. The JSONB policy uses the contract keys."""
    partner = partner_from_contract({
        "id": record.id,
        "name": record.name,
        "markets": record.markets,
        "copayEligibility": record.copay_eligibility or {},
        "benefits": record.benefits,
        "logo": record.logo,
        "verified": record.verified,
    })
    partner.share_pct = _decimal(record.share_pct)
    partner.max_share_cents_per_order = record.max_share_cents_per_order
    return partner
