"""Field-level schemas for the three editable sections of a service draft.

Bounds are binding: a payload outside them is rejected with field paths,
never truncated. Stored JSON is `model_dump(mode="json")` of these models.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, HttpUrl

from prohub.models.enums import CtaType, FunnelStepKind


_TITLE_MAX = 90


class _Section(BaseModel):
    model_config = ConfigDict(extra="forbid")


# ── Card ─────────────────────────────────────────────────────────────


class CardCta(_Section):
    type: CtaType
    label: str = Field(min_length=2, max_length=40)
    url: HttpUrl | None = None


class CardFlags(_Section):
    active: bool = True
    verified: bool = False
    affiliate: bool = False
    booking: bool = False


class CardEdit(_Section):
    """Storefront card copy and flags."""

    title: str = Field(min_length=3, max_length=_TITLE_MAX)
    subtitle: str = Field(default="", max_length=140)
    badges: list[str] = Field(default_factory=list, max_length=6)
    category: str = Field(min_length=2)
    tags: list[str] = Field(default_factory=list, max_length=12)
    thumbnail: HttpUrl | None = None
    gallery: list[HttpUrl] = Field(default_factory=list, max_length=8)
    highlights: list[str] = Field(default_factory=list, max_length=8)
    cta: CardCta
    flags: CardFlags = Field(default_factory=CardFlags)
    compliance_notes: str = Field(default="", max_length=1000)


# ── Pricing ──────────────────────────────────────────────────────────


class Upsell(_Section):
    name: str
    price: float = Field(ge=0)


class PricingTier(_Section):
    id: str = Field(min_length=2)
    name: str = Field(min_length=2, max_length=40)
    price: float = Field(ge=0)
    unit: str = Field(min_length=1)
    includes: list[str] = Field(default_factory=list)
    upsells: list[Upsell] = Field(default_factory=list)
    ribbon: str | None = Field(default=None, max_length=20)


class BillingTerms(_Section):
    terms: str = Field(default="", max_length=500)
    anchors: list[str] = Field(default_factory=list, max_length=3)


class PricingEdit(_Section):
    """Ordered pricing tiers and billing terms."""

    currency: str = Field(default="USD", min_length=3, max_length=3)
    tiers: list[PricingTier] = Field(min_length=1)
    billing: BillingTerms = Field(default_factory=BillingTerms)


# ── Funnel ───────────────────────────────────────────────────────────


class FunnelStep(_Section):
    kind: FunnelStepKind
    headline: str | None = Field(default=None, max_length=120)
    subhead: str | None = Field(default=None, max_length=200)
    bullets: list[str] | None = Field(default=None, max_length=10)
    media: HttpUrl | None = None
    tier_refs: list[str] | None = None
    cta_type: CtaType | None = None
    label: str | None = Field(default=None, max_length=40)
    target: str | None = None


class FunnelEdit(_Section):
    """Ordered marketing/conversion blocks."""

    steps: list[FunnelStep] = Field(default_factory=list, max_length=30)


# ── Lazy-create defaults ─────────────────────────────────────────────


def default_card(title: str | None = None, category: str | None = None) -> CardEdit:
    """Blank card for a freshly created draft.

    Service names may be longer than a card title allows; they are cut to fit.
    """
    title = (title or "")[:_TITLE_MAX].rstrip()
    return CardEdit(
        title=title if len(title) >= 3 else "Untitled Service",
        category=category if category and len(category) >= 2 else "general",
        cta=CardCta(type=CtaType.BOOK, label="Book Now"),
    )


def default_pricing() -> PricingEdit:
    """One free "Base Package" tier."""
    return PricingEdit(
        tiers=[PricingTier(id="base", name="Base Package", price=0, unit="service")],
    )


def default_funnel() -> FunnelEdit:
    return FunnelEdit(steps=[])
