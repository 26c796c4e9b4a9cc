"""Tests for partner shape adapters and benefit text."""

from __future__ import annotations

import uuid
from decimal import Decimal
from types import SimpleNamespace

import pytest

from prohub.eligibility import (
    describe_benefit,
    is_partner_eligible,
    partner_from_contract,
    partner_from_fixture,
    partner_from_mapping,
    partner_from_record,
)
from prohub.schemas.eligibility import AgentProfile, CopayEligibility, EligibilityParams, VendorPartner

CONTRACT_PARTNER = {
    "id": "p-title",
    "name": "Lone Star Title",
    "markets": ["Austin-TX"],
    "copayEligibility": {
        "enabled": True,
        "minAgentDealsPerYear": 25,
        "allowedServiceIds": ["svc-1", "svc-2"],
        "prohibitedServiceIds": ["svc-2"],
    },
    "benefits": ["Free closing review"],
    "verified": True,
}

FIXTURE_PARTNER = {
    "id": "p-lender",
    "name": "Hill Country Lending",
    "markets": ["austin-tx", "dallas-tx"],
    "copayPolicy": {"enabled": True, "sharePct": 50, "maxShareCentsPerOrder": 25000},
    "minAgentDealsPerYear": 10,
    "allowedServiceIds": [],
    "prohibitedServiceIds": ["svc-9"],
}


class TestContractAdapter:
    def test_maps_policy(self):
        partner = partner_from_contract(CONTRACT_PARTNER)
        assert partner.id == "p-title"
        assert partner.markets == {"austin-tx"}
        assert partner.copay_eligibility.enabled is True
        assert partner.copay_eligibility.min_agent_deals_per_year == 25
        assert partner.copay_eligibility.allowed_service_ids == {"svc-1", "svc-2"}
        assert partner.copay_eligibility.prohibited_service_ids == {"svc-2"}
        assert partner.verified is True

    def test_missing_allow_list_is_strict(self):
        data = {**CONTRACT_PARTNER, "copayEligibility": {"enabled": True}}
        partner = partner_from_contract(data)
        assert partner.copay_eligibility.allowed_service_ids == set()

    def test_markets_inside_policy_are_merged(self):
        data = {
            **CONTRACT_PARTNER,
            "copayEligibility": {**CONTRACT_PARTNER["copayEligibility"], "markets": ["dallas-tx"]},
        }
        assert partner_from_contract(data).markets == {"austin-tx", "dallas-tx"}


class TestFixtureAdapter:
    def test_maps_policy(self):
        partner = partner_from_fixture(FIXTURE_PARTNER)
        assert partner.copay_eligibility.enabled is True
        assert partner.copay_eligibility.min_agent_deals_per_year == 10
        assert partner.copay_eligibility.prohibited_service_ids == {"svc-9"}
        assert partner.share_pct == Decimal("50")
        assert partner.max_share_cents_per_order == 25000

    def test_empty_allow_list_means_unrestricted(self):
        partner = partner_from_fixture(FIXTURE_PARTNER)
        assert partner.copay_eligibility.allowed_service_ids is None
        params = EligibilityParams(
            service_id="svc-anything", city="dallas-tx", agent_profile=AgentProfile(deals_last_12m=10)
        )
        assert is_partner_eligible(partner, params) is True

    def test_missing_policy_is_disabled(self):
        partner = partner_from_fixture({"id": "p", "name": "No Policy"})
        assert partner.copay_eligibility.enabled is False


class TestMappingDispatch:
    def test_contract_shape(self):
        assert partner_from_mapping(CONTRACT_PARTNER).copay_eligibility.allowed_service_ids is not None

    def test_fixture_shape(self):
        assert partner_from_mapping(FIXTURE_PARTNER).share_pct == Decimal("50")

    def test_unknown_shape_raises(self):
        with pytest.raises(ValueError, match="Unrecognized partner shape"):
            partner_from_mapping({"id": "p"})

    def test_same_decision_from_both_shapes(self):
        contract = partner_from_mapping({
            "id": "p", "name": "P", "markets": ["austin-tx"],
            "copayEligibility": {"enabled": True, "minAgentDealsPerYear": 5, "allowedServiceIds": ["svc-1"]},
        })
        fixture = partner_from_mapping({
            "id": "p", "name": "P", "markets": ["austin-tx"],
            "copayPolicy": {"enabled": True}, "minAgentDealsPerYear": 5, "allowedServiceIds": ["svc-1"],
        })
        for deals in (0, 5):
            params = EligibilityParams(
                service_id="svc-1", city="austin-tx", agent_profile=AgentProfile(deals_last_12m=deals)
            )
            assert is_partner_eligible(contract, params) == is_partner_eligible(fixture, params)


class TestRecordAdapter:
    def test_orm_row(self):
        record = SimpleNamespace(
            id=uuid.UUID("00000000-0000-0000-0000-000000000001"),
            name="Lone Star Title",
            markets=["austin-tx"],
            copay_eligibility={"enabled": True, "allowedServiceIds": ["svc-1"]},
            benefits=[],
            logo=None,
            verified=False,
            share_pct=Decimal("30.00"),
            max_share_cents_per_order=None,
        )
        partner = partner_from_record(record)
        assert partner.id == "00000000-0000-0000-0000-000000000001"
        assert partner.share_pct == Decimal("30.00")
        assert partner.copay_eligibility.allowed_service_ids == {"svc-1"}


class TestAgentProfileAliases:
    @pytest.mark.parametrize("key", ["deals_last_12m", "dealsLast12m", "dealsPerYear"])
    def test_deal_count_aliases(self, key):
        assert AgentProfile.model_validate({key: 7}).deals_last_12m == 7

    def test_negative_deals_rejected(self):
        with pytest.raises(ValueError):
            AgentProfile(deals_last_12m=-1)


class TestDescribeBenefit:
    def _partner(self, pct: Decimal | None, cap: int | None = None) -> VendorPartner:
        return VendorPartner(
            id="p",
            name="Hill Country Lending",
            copay_eligibility=CopayEligibility(),
            share_pct=pct,
            max_share_cents_per_order=cap,
        )

    def test_percentage_only(self):
        assert describe_benefit(self._partner(Decimal("50"))) == "Hill Country Lending covers 50% of the cost"

    def test_with_cap(self):
        text = describe_benefit(self._partner(Decimal("25.50"), cap=125000))
        assert text == "Hill Country Lending covers 25.5% of the cost (up to $1,250.00 per order)"

    def test_no_share(self):
        assert describe_benefit(self._partner(None)) is None
        assert describe_benefit(self._partner(Decimal("0"))) is None
