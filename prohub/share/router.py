"""Share link API."""
# ruff: noqa: B008

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from prohub.admin.auth import CurrentUser, require_user
from prohub.admin.events import emit
from prohub.db.engine import get_session
from prohub.errors import NotFound
from prohub.models.enums import AppRole
from prohub.schemas.events import EventType, SystemEvent
from prohub.share.links import ShareLink, share_links
from prohub.versioning.repository import ServiceVersionRepository

router = APIRouter(prefix="/share", tags=["share"])


@router.post("/services/{service_id}", response_model=ShareLink)
async def create_share_link(
    service_id: uuid.UUID,
    db: AsyncSession = Depends(get_session),
    user: CurrentUser = Depends(require_user),
) -> ShareLink:
    """Short link for a service; the same live link is returned on repeat calls."""
    if await ServiceVersionRepository(db).get_service(service_id) is None:
        raise NotFound(f"Service {service_id} not found", context={"service_id": str(service_id)})

    link = await share_links.create(str(service_id), created_by=user.id)
    await emit(SystemEvent(
        event_type=EventType.SHARE_LINK_CREATED,
        service_id=service_id,
        actor_id=user.id,
        actor_role=AppRole.AGENT.value,
        data={"short_code": link.short_code},
        source_module="share.router",
    ))
    return link


@router.get("/{code}", response_model=ShareLink)
async def resolve_share_link(code: str) -> ShareLink:
    link = await share_links.resolve(code)
    if link is None:
        raise NotFound("Share link not found or expired", context={"code": code})
    await emit(SystemEvent(
        event_type=EventType.SHARE_LINK_RESOLVED,
        service_id=uuid.UUID(link.service_id),
        data={"short_code": code, "clicks": link.clicks},
        source_module="share.router",
    ))
    return link
