"""Benefit text for eligible partners, driven by the partner's share policy."""

from __future__ import annotations

from decimal import Decimal

from prohub.schemas.eligibility import VendorPartner


def _format_pct(pct: Decimal) -> str:
    normalized = pct.normalize()
    # normalize() turns 50 into 5E+1
    return f"{normalized:f}"


def describe_benefit(partner: VendorPartner) -> str | None:
    """Short co-pay description, e.g. "Partner covers 50% (up to $250.00 per order)".

    Returns None when the partner publishes no share percentage.
    """
    pct = partner.share_pct
    if pct is None or pct <= 0:
        return None

    text = f"{partner.name} covers {_format_pct(min(pct, Decimal('100')))}% of the cost"
    cap = partner.max_share_cents_per_order
    if cap:
        text += f" (up to ${Decimal(cap) / 100:,.2f} per order)"
    return text
