"""Admin content console API — service drafts, review, publish, rollback.

All routes require an admin bearer token via require_admin. Typed errors
from the store (VersionConflict, ValidationError, ...) are turned into JSON
responses by the handlers in prohub.errors.
"""
# ruff: noqa: B008

from __future__ import annotations

import logging
import uuid
from typing import Any

from fastapi import APIRouter, Body, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from prohub.admin.auth import CurrentUser, require_admin
from prohub.admin.events import emit
from prohub.db.engine import get_session
from prohub.models.enums import AppRole
from prohub.schemas.events import EventType, SystemEvent
from prohub.schemas.versions import RollbackResult, ServiceVersionDetail, ServiceVersionOut
from prohub.versioning.repository import ServiceVersionRepository
from prohub.versioning.store import DraftStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"])


def get_draft_store(db: AsyncSession = Depends(get_session)) -> DraftStore:
    """One store per request, bound to the request's transaction."""
    return DraftStore(ServiceVersionRepository(db))


async def _emit_access(admin: CurrentUser, action: str, **data: Any) -> None:
    """Emit ADMIN_ACCESS audit event for each console call."""
    await emit(SystemEvent(
        event_type=EventType.ADMIN_ACCESS,
        actor_id=admin.id,
        actor_role=AppRole.ADMIN.value,
        data={"action": action, **data},
        source_module="admin.services",
    ))


# ── Drafts ───────────────────────────────────────────────────────────


@router.get("/services/{service_id}", response_model=ServiceVersionDetail)
async def get_service_versions(
    service_id: uuid.UUID,
    store: DraftStore = Depends(get_draft_store),
    admin: CurrentUser = Depends(require_admin),
) -> ServiceVersionDetail:
    """Draft (created on first access), published version, and history."""
    await _emit_access(admin, "get_service", service_id=str(service_id))
    return await store.get_draft(service_id, actor=admin.id)


@router.patch("/services/{service_id}/card", response_model=ServiceVersionOut)
async def patch_card(
    service_id: uuid.UUID,
    row_version: int = Query(..., ge=1),
    card: dict[str, Any] = Body(...),
    store: DraftStore = Depends(get_draft_store),
    admin: CurrentUser = Depends(require_admin),
) -> ServiceVersionOut:
    return await store.patch_card(service_id, card, row_version, actor=admin.id)


@router.patch("/services/{service_id}/pricing", response_model=ServiceVersionOut)
async def patch_pricing(
    service_id: uuid.UUID,
    row_version: int = Query(..., ge=1),
    pricing: dict[str, Any] = Body(...),
    store: DraftStore = Depends(get_draft_store),
    admin: CurrentUser = Depends(require_admin),
) -> ServiceVersionOut:
    return await store.patch_pricing(service_id, pricing, row_version, actor=admin.id)


@router.patch("/services/{service_id}/funnel", response_model=ServiceVersionOut)
async def patch_funnel(
    service_id: uuid.UUID,
    row_version: int = Query(..., ge=1),
    funnel: dict[str, Any] = Body(...),
    store: DraftStore = Depends(get_draft_store),
    admin: CurrentUser = Depends(require_admin),
) -> ServiceVersionOut:
    return await store.patch_funnel(service_id, funnel, row_version, actor=admin.id)


# ── Lifecycle ────────────────────────────────────────────────────────


@router.post("/services/{service_id}/submit", response_model=ServiceVersionOut)
async def submit_for_review(
    service_id: uuid.UUID,
    row_version: int | None = Query(None, ge=1),
    store: DraftStore = Depends(get_draft_store),
    admin: CurrentUser = Depends(require_admin),
) -> ServiceVersionOut:
    return await store.submit(service_id, actor=admin.id, expected_row_version=row_version)


@router.post("/service-versions/{version_id}/approve", response_model=ServiceVersionOut)
async def approve_version(
    version_id: uuid.UUID,
    store: DraftStore = Depends(get_draft_store),
    admin: CurrentUser = Depends(require_admin),
) -> ServiceVersionOut:
    return await store.approve(version_id, actor=admin.id)


@router.post("/service-versions/{version_id}/publish", response_model=ServiceVersionOut)
async def publish_version(
    version_id: uuid.UUID,
    row_version: int | None = Query(None, ge=1),
    store: DraftStore = Depends(get_draft_store),
    admin: CurrentUser = Depends(require_admin),
) -> ServiceVersionOut:
    """Make a version live. Pass row_version to refuse stale content."""
    return await store.publish_version(version_id, actor=admin.id, expected_row_version=row_version)


@router.post("/services/{service_id}/rollback", response_model=RollbackResult)
async def rollback_service(
    service_id: uuid.UUID,
    to: uuid.UUID = Query(..., description="Version to restore"),
    store: DraftStore = Depends(get_draft_store),
    admin: CurrentUser = Depends(require_admin),
) -> RollbackResult:
    return await store.rollback(service_id, to, actor=admin.id)
