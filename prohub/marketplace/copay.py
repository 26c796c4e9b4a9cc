"""Co-pay partner lookup for the storefront.

Loads partners and the caller's agent profile, then hands plain records to
the eligibility engine. Ineligible partners come back with the first failing
rule so the UI can explain why.
"""
# ruff: noqa: B008

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Query
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from prohub.admin.auth import CurrentUser, require_user
from prohub.admin.events import emit
from prohub.db.engine import get_session
from prohub.eligibility import describe_benefit, evaluate_partner, partner_from_record
from prohub.errors import UpstreamFailure
from prohub.models.enums import AppRole
from prohub.models.user import Profile
from prohub.models.vendor_partner import VendorPartnerRecord
from prohub.schemas.eligibility import (
    AgentProfile,
    CopayPartnersResponse,
    EligibilityParams,
    EligiblePartnerOut,
    IneligiblePartnerOut,
    VendorPartner,
)
from prohub.schemas.events import EventType, SystemEvent

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/copay", tags=["copay"])


async def load_partners(db: AsyncSession) -> list[VendorPartner]:
    """All stored partners in canonical shape, ordered by name."""
    try:
        result = await db.execute(select(VendorPartnerRecord).order_by(VendorPartnerRecord.name))
    except SQLAlchemyError as exc:
        logger.exception("Failed to load vendor partners")
        raise UpstreamFailure("Storage is temporarily unavailable, please retry") from exc
    return [partner_from_record(r) for r in result.scalars().all()]


async def load_agent_profile(db: AsyncSession, user_id: str) -> AgentProfile:
    """Agent snapshot from profiles; no profile row counts as zero deals."""
    try:
        result = await db.execute(select(Profile).where(Profile.user_id == user_id))
    except SQLAlchemyError as exc:
        logger.exception("Failed to load profile for user %s", user_id)
        raise UpstreamFailure("Storage is temporarily unavailable, please retry") from exc

    profile = result.scalar_one_or_none()
    if profile is None:
        return AgentProfile()
    return AgentProfile(
        deals_last_12m=profile.deals_last_12m or 0,
        buyers_last_12m=profile.buyers_last_12m,
        sellers_last_12m=profile.sellers_last_12m,
    )


def build_response(partners: list[VendorPartner], params: EligibilityParams) -> CopayPartnersResponse:
    response = CopayPartnersResponse(service_id=params.service_id, city=params.city)
    for partner in partners:
        evaluation = evaluate_partner(partner, params)
        if evaluation.eligible:
            response.eligible.append(EligiblePartnerOut(
                id=partner.id,
                name=partner.name,
                logo=partner.logo,
                verified=partner.verified,
                benefits=partner.benefits,
                benefit=describe_benefit(partner),
            ))
        else:
            response.ineligible.append(IneligiblePartnerOut(
                partner_id=partner.id,
                name=partner.name,
                reason=evaluation.reason or "",
            ))
    return response


@router.get("/services/{service_id}/partners", response_model=CopayPartnersResponse)
async def copay_partners(
    service_id: str,
    city: str | None = Query(None, description="Market key, e.g. austin-tx"),
    db: AsyncSession = Depends(get_session),
    user: CurrentUser = Depends(require_user),
) -> CopayPartnersResponse:
    """Partners that will share the cost of this service for the caller."""
    params = EligibilityParams(
        service_id=service_id,
        city=city,
        agent_profile=await load_agent_profile(db, user.id),
    )
    partners = await load_partners(db)
    response = build_response(partners, params)

    logger.debug(
        "Co-pay lookup: service=%s city=%s eligible=%d/%d",
        service_id, city, len(response.eligible), len(partners),
    )
    await emit(SystemEvent(
        event_type=EventType.ELIGIBILITY_CHECKED,
        actor_id=user.id,
        actor_role=AppRole.AGENT.value,
        data={
            "service_id": service_id,
            "city": city,
            "eligible": [p.id for p in response.eligible],
            "ineligible": len(response.ineligible),
        },
        source_module="marketplace.copay",
    ))
    return response
