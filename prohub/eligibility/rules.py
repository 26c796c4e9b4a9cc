"""Co-pay eligibility rule functions.

Each function takes a VendorPartner and EligibilityParams and returns a
RuleCondition. RULE_CHECKS fixes the evaluation order; that order is part of
the public contract because the first failing rule is what agents are shown.
Pure Python, deterministic, no I/O. Inputs are not validated here.
"""

from __future__ import annotations

from collections.abc import Callable

from prohub.schemas.eligibility import EligibilityParams, RuleCondition, VendorPartner


def normalize_market(key: str | None) -> str:
    """Market keys compare trimmed and case-insensitive ("Austin-TX " == "austin-tx")."""
    return (key or "").strip().lower()


# ── 1. Program enabled ─────────────────────────────────────────────────


def check_copay_enabled(partner: VendorPartner, params: EligibilityParams) -> RuleCondition:
    enabled = partner.copay_eligibility.enabled
    return RuleCondition(
        name="copay_enabled",
        description="Co-pay not enabled for this partner",
        met=enabled,
        value=enabled,
    )


# ── 2. Market ──────────────────────────────────────────────────────────


def check_market(partner: VendorPartner, params: EligibilityParams) -> RuleCondition:
    """City omitted or blank → skipped, never failed."""
    city = normalize_market(params.city)
    if not city:
        return RuleCondition(
            name="market",
            description="Not available in this market",
            met=True,
            skipped=True,
        )

    markets = {normalize_market(m) for m in partner.markets}
    return RuleCondition(
        name="market",
        description=f"Not available in {params.city.strip()}",  # type: ignore[union-attr]
        met=city in markets,
        value=city,
    )


# ── 3. Agent production ────────────────────────────────────────────────


def check_agent_deals(partner: VendorPartner, params: EligibilityParams) -> RuleCondition:
    required = partner.copay_eligibility.min_agent_deals_per_year
    deals = params.agent_profile.deals_last_12m or 0
    return RuleCondition(
        name="agent_deals",
        description=f"Requires {required}+ deals per year (you have {deals})",
        met=deals >= required,
        value=deals,
    )


# ── 4. Allow-list ──────────────────────────────────────────────────────


def check_service_allowed(partner: VendorPartner, params: EligibilityParams) -> RuleCondition:
    allowed = partner.copay_eligibility.allowed_service_ids
    return RuleCondition(
        name="service_allowed",
        description="Service not covered by this partner",
        met=allowed is None or params.service_id in allowed,
        skipped=allowed is None,
        value=params.service_id,
    )


# ── 5. Prohibit-list ───────────────────────────────────────────────────


def check_service_not_prohibited(partner: VendorPartner, params: EligibilityParams) -> RuleCondition:
    """Checked last so an explicit allow never masks an explicit prohibition."""
    return RuleCondition(
        name="service_not_prohibited",
        description="Service excluded from co-pay",
        met=params.service_id not in partner.copay_eligibility.prohibited_service_ids,
        value=params.service_id,
    )


RuleCheck = Callable[[VendorPartner, EligibilityParams], RuleCondition]

RULE_CHECKS: tuple[RuleCheck, ...] = (
    check_copay_enabled,
    check_market,
    check_agent_deals,
    check_service_allowed,
    check_service_not_prohibited,
)
