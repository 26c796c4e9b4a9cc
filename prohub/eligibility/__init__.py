"""Eligibility engine — rule-based co-pay partner matching."""

from prohub.eligibility.adapters import (
    partner_from_contract,
    partner_from_fixture,
    partner_from_mapping,
    partner_from_record,
)
from prohub.eligibility.benefits import describe_benefit
from prohub.eligibility.engine import (
    evaluate_partner,
    get_eligible_partners,
    get_ineligibility_reason,
    is_partner_eligible,
)
from prohub.schemas.eligibility import (
    AgentProfile,
    CopayEligibility,
    EligibilityParams,
    PartnerEligibility,
    RuleCondition,
    VendorPartner,
)

__all__ = [
    "is_partner_eligible",
    "get_eligible_partners",
    "get_ineligibility_reason",
    "evaluate_partner",
    "describe_benefit",
    "partner_from_contract",
    "partner_from_fixture",
    "partner_from_mapping",
    "partner_from_record",
    "AgentProfile",
    "CopayEligibility",
    "EligibilityParams",
    "PartnerEligibility",
    "RuleCondition",
    "VendorPartner",
]
