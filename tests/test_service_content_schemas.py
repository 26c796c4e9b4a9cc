"""Tests for card / pricing / funnel section schemas."""

from __future__ import annotations

import pydantic
import pytest

from prohub.errors import field_errors
from prohub.schemas.service_content import (
    CardEdit,
    FunnelEdit,
    PricingEdit,
    default_card,
    default_funnel,
    default_pricing,
)


def _card(**overrides) -> dict:
    card = {
        "title": "Pre-listing Home Inspection",
        "subtitle": "Full report within 24 hours",
        "category": "inspection",
        "cta": {"type": "book", "label": "Book Now"},
    }
    card.update(overrides)
    return card


def _pricing(**overrides) -> dict:
    pricing = {
        "currency": "USD",
        "tiers": [{"id": "base", "name": "Standard", "price": 350, "unit": "home"}],
    }
    pricing.update(overrides)
    return pricing


def _fields(exc_info) -> set[str]:
    return {e["field"] for e in field_errors(exc_info.value.errors())}


class TestCardEdit:
    def test_valid(self):
        card = CardEdit.model_validate(_card())
        assert card.flags.active is True
        assert card.badges == []

    @pytest.mark.parametrize("title", ["ab", "x" * 91])
    def test_title_bounds(self, title):
        with pytest.raises(pydantic.ValidationError) as exc_info:
            CardEdit.model_validate(_card(title=title))
        assert "title" in _fields(exc_info)

    def test_subtitle_max(self):
        with pytest.raises(pydantic.ValidationError) as exc_info:
            CardEdit.model_validate(_card(subtitle="s" * 141))
        assert "subtitle" in _fields(exc_info)

    def test_too_many_badges(self):
        with pytest.raises(pydantic.ValidationError) as exc_info:
            CardEdit.model_validate(_card(badges=["b"] * 7))
        assert "badges" in _fields(exc_info)

    def test_nested_cta_label_path(self):
        with pytest.raises(pydantic.ValidationError) as exc_info:
            CardEdit.model_validate(_card(cta={"type": "book", "label": "x"}))
        assert "cta.label" in _fields(exc_info)

    def test_unknown_cta_type(self):
        with pytest.raises(pydantic.ValidationError):
            CardEdit.model_validate(_card(cta={"type": "call", "label": "Call us"}))

    def test_invalid_thumbnail_url(self):
        with pytest.raises(pydantic.ValidationError) as exc_info:
            CardEdit.model_validate(_card(thumbnail="not a url"))
        assert "thumbnail" in _fields(exc_info)

    def test_unknown_field_rejected(self):
        with pytest.raises(pydantic.ValidationError):
            CardEdit.model_validate(_card(price=10))

    def test_compliance_notes_max(self):
        with pytest.raises(pydantic.ValidationError):
            CardEdit.model_validate(_card(compliance_notes="n" * 1001))


class TestPricingEdit:
    def test_valid(self):
        pricing = PricingEdit.model_validate(_pricing())
        assert pricing.tiers[0].price == 350
        assert pricing.billing.anchors == []

    def test_requires_a_tier(self):
        with pytest.raises(pydantic.ValidationError) as exc_info:
            PricingEdit.model_validate(_pricing(tiers=[]))
        assert "tiers" in _fields(exc_info)

    def test_negative_price_path(self):
        tiers = [{"id": "base", "name": "Standard", "price": -1, "unit": "home"}]
        with pytest.raises(pydantic.ValidationError) as exc_info:
            PricingEdit.model_validate(_pricing(tiers=tiers))
        assert "tiers.0.price" in _fields(exc_info)

    def test_currency_length(self):
        with pytest.raises(pydantic.ValidationError):
            PricingEdit.model_validate(_pricing(currency="US"))

    def test_ribbon_max(self):
        tiers = [{"id": "base", "name": "Standard", "price": 1, "unit": "home", "ribbon": "r" * 21}]
        with pytest.raises(pydantic.ValidationError):
            PricingEdit.model_validate(_pricing(tiers=tiers))

    def test_too_many_anchors(self):
        with pytest.raises(pydantic.ValidationError):
            PricingEdit.model_validate(_pricing(billing={"anchors": ["a", "b", "c", "d"]}))


class TestFunnelEdit:
    def test_empty_is_valid(self):
        assert FunnelEdit.model_validate({}).steps == []

    def test_step_kinds(self):
        funnel = FunnelEdit.model_validate({
            "steps": [
                {"kind": "hero", "headline": "Sell faster"},
                {"kind": "package-chooser", "tier_refs": ["base"]},
                {"kind": "cta", "cta_type": "book", "label": "Book"},
            ]
        })
        assert [s.kind.value for s in funnel.steps] == ["hero", "package-chooser", "cta"]

    def test_too_many_steps(self):
        with pytest.raises(pydantic.ValidationError):
            FunnelEdit.model_validate({"steps": [{"kind": "faq"}] * 31})

    def test_unknown_kind(self):
        with pytest.raises(pydantic.ValidationError):
            FunnelEdit.model_validate({"steps": [{"kind": "popup"}]})


class TestDefaults:
    def test_default_card_uses_service_name(self):
        card = default_card("Home Inspection", "inspection")
        assert card.title == "Home Inspection"
        assert card.cta.label == "Book Now"

    def test_default_card_fallbacks(self):
        card = default_card(None, None)
        assert card.title == "Untitled Service"
        assert card.category == "general"

    def test_default_card_cuts_long_name(self):
        card = default_card("A" * 89 + " " + "B" * 30, "inspection")
        assert card.title == "A" * 89

    def test_default_pricing(self):
        tier = default_pricing().tiers[0]
        assert (tier.id, tier.name, tier.price) == ("base", "Base Package", 0)

    def test_defaults_pass_their_own_validation(self):
        CardEdit.model_validate(default_card().model_dump(mode="json"))
        PricingEdit.model_validate(default_pricing().model_dump(mode="json"))
        FunnelEdit.model_validate(default_funnel().model_dump(mode="json"))
