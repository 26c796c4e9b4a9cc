"""Eligibility engine — decides which co-pay partners apply to a request.

Pure Python orchestrator. No DB access, no shared state; safe to call from
any number of concurrent requests. The route handler loads partners and the
agent profile and hands plain records in.
"""

from __future__ import annotations

from prohub.eligibility.rules import RULE_CHECKS
from prohub.schemas.eligibility import (
    EligibilityParams,
    PartnerEligibility,
    RuleCondition,
    VendorPartner,
)


def _first_failed(conditions: list[RuleCondition]) -> str | None:
    """Return description of first failed condition, or None."""
    for c in conditions:
        if not c.met:
            return c.description
    return None


def evaluate_partner(partner: VendorPartner, params: EligibilityParams) -> PartnerEligibility:
    """Run every rule in contract order and keep all outcomes for diagnostics."""
    conditions = [check(partner, params) for check in RULE_CHECKS]
    reason = _first_failed(conditions)
    return PartnerEligibility(
        partner_id=partner.id,
        eligible=reason is None,
        conditions=conditions,
        reason=reason,
    )


def get_ineligibility_reason(partner: VendorPartner, params: EligibilityParams) -> str | None:
    """First failing rule's message, or None when the partner is eligible."""
    for check in RULE_CHECKS:
        condition = check(partner, params)
        if not condition.met:
            return condition.description
    return None


def is_partner_eligible(partner: VendorPartner, params: EligibilityParams) -> bool:
    return get_ineligibility_reason(partner, params) is None


def get_eligible_partners(
    partners: list[VendorPartner], params: EligibilityParams
) -> list[VendorPartner]:
    """Filter partners, preserving input order."""
    return [p for p in partners if is_partner_eligible(p, params)]
