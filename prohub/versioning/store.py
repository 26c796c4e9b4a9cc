"""Draft versioning store — optimistic-concurrency editing of service content.

Each service has one working draft. Writers send the `row_version` they last
read; the write is applied only if it still matches, and the new version
(always previous + 1) comes back with the content. Stale writers get
VersionConflict and must re-fetch — nothing is merged.

The store holds no state of its own: everything lives in the row store, so
one DraftStore per request is fine.

Events for successful changes are sent once the transaction commits, so the
audit trail never records a publish that was rolled back. Conflict events
describe a rejected write and go out immediately.
"""

from __future__ import annotations

import functools
import logging
import uuid
from datetime import UTC, datetime
from typing import Any

import pydantic

from prohub.admin.events import emit_nowait
from prohub.config import settings
from prohub.errors import NotFound, StateConflict, ValidationError, VersionConflict, field_errors
from prohub.models.enums import AppRole, ServiceVersionState
from prohub.models.service_version import ServiceVersion
from prohub.schemas.events import EventType, SystemEvent
from prohub.schemas.service_content import (
    CardEdit,
    FunnelEdit,
    PricingEdit,
    default_card,
    default_funnel,
    default_pricing,
)
from prohub.schemas.versions import (
    RollbackResult,
    ServiceSummary,
    ServiceVersionDetail,
    ServiceVersionOut,
)
from prohub.versioning.repository import ServiceVersionRepository
from prohub.versioning.states import RESTORABLE_STATES, next_state

logger = logging.getLogger(__name__)

# Editable sections and the schema each payload must satisfy
SECTION_SCHEMAS: dict[str, type[pydantic.BaseModel]] = {
    "card": CardEdit,
    "pricing": PricingEdit,
    "funnel": FunnelEdit,
}


def _validate_section(section: str, payload: Any) -> dict[str, Any]:
    """Validate a section payload and return its JSON form for storage."""
    schema = SECTION_SCHEMAS[section]
    try:
        model = schema.model_validate(payload)
    except pydantic.ValidationError as exc:
        raise ValidationError(f"Invalid {section}", fields=field_errors(exc.errors())) from exc
    return model.model_dump(mode="json")


class DraftStore:
    """Draft read/patch/publish operations over a ServiceVersionRepository."""

    def __init__(self, repo: ServiceVersionRepository) -> None:
        self._repo = repo

    def _emit(
        self,
        event_type: EventType,
        service_id: uuid.UUID,
        actor: str | None,
        *,
        after_commit: bool = True,
        **data: Any,
    ) -> None:
        event = SystemEvent(
            event_type=event_type,
            service_id=service_id,
            actor_id=actor,
            actor_role=AppRole.ADMIN.value if actor else "system",
            data={k: str(v) if isinstance(v, uuid.UUID) else v for k, v in data.items()},
            source_module="versioning.store",
        )
        if after_commit:
            self._repo.on_commit(functools.partial(emit_nowait, event))
        else:
            emit_nowait(event)

    # ── Read ─────────────────────────────────────────────────────────

    async def get_draft(self, service_id: uuid.UUID, actor: str | None = None) -> ServiceVersionDetail:
        """Working draft, live version, and recent history for a service.

        Creates the draft with default content on first access. Two concurrent
        first reads both end up on the same row: the insert is a no-op for
        whichever loses.
        """
        service = await self._repo.get_service(service_id)
        if service is None:
            raise NotFound(f"Service {service_id} not found", context={"service_id": str(service_id)})

        draft = await self._repo.get_draft(service_id)
        if draft is None:
            inserted = await self._repo.insert_draft_if_absent(
                service_id,
                card=default_card(service.name, service.category).model_dump(mode="json"),
                pricing=default_pricing().model_dump(mode="json"),
                funnel=default_funnel().model_dump(mode="json"),
                created_by=actor,
            )
            draft = await self._repo.get_draft(service_id)
            if draft is None:
                # Submitted or published between our insert and re-read
                msg = "Draft changed state while loading, please reload"
                raise StateConflict(msg, context={"service_id": str(service_id)})
            if inserted:
                logger.info("Draft created: service=%s version=%s", service_id, draft.id)
                self._emit(EventType.DRAFT_CREATED, service_id, actor, version_id=draft.id)

        published = None
        if service.published_version_id is not None:
            published = await self._repo.get_version(service.published_version_id)

        history = await self._repo.list_versions(service_id, limit=settings.history_limit)

        return ServiceVersionDetail(
            service=ServiceSummary.model_validate(service),
            draft=ServiceVersionOut.model_validate(draft),
            published=ServiceVersionOut.model_validate(published) if published else None,
            history=[ServiceVersionOut.model_validate(v) for v in history],
        )

    # ── Content writes ───────────────────────────────────────────────

    async def _patch_section(
        self,
        section: str,
        service_id: uuid.UUID,
        payload: Any,
        expected_row_version: int,
        actor: str | None,
    ) -> ServiceVersionOut:
        content = _validate_section(section, payload)

        updated = await self._repo.update_draft_content(
            service_id, expected_row_version, {section: content}
        )
        if updated is None:
            current = await self._repo.get_draft(service_id)
            if current is None:
                msg = f"No draft for service {service_id}"
                raise NotFound(msg, context={"service_id": str(service_id)})
            logger.info(
                "Version conflict on %s: service=%s expected=%d current=%d",
                section, service_id, expected_row_version, current.row_version,
            )
            self._emit(
                EventType.DRAFT_CONFLICT, service_id, actor,
                after_commit=False,
                section=section, expected=expected_row_version, current=current.row_version,
            )
            raise VersionConflict(expected_row_version, current.row_version)

        logger.info(
            "Draft %s updated: service=%s row_version %d -> %d",
            section, service_id, expected_row_version, updated.row_version,
        )
        self._emit(
            EventType.DRAFT_UPDATED, service_id, actor,
            section=section, version_id=updated.id, row_version=updated.row_version,
        )
        return ServiceVersionOut.model_validate(updated)

    async def patch_card(
        self, service_id: uuid.UUID, card: Any, expected_row_version: int, actor: str | None = None
    ) -> ServiceVersionOut:
        return await self._patch_section("card", service_id, card, expected_row_version, actor)

    async def patch_pricing(
        self, service_id: uuid.UUID, pricing: Any, expected_row_version: int, actor: str | None = None
    ) -> ServiceVersionOut:
        return await self._patch_section("pricing", service_id, pricing, expected_row_version, actor)

    async def patch_funnel(
        self, service_id: uuid.UUID, funnel: Any, expected_row_version: int, actor: str | None = None
    ) -> ServiceVersionOut:
        return await self._patch_section("funnel", service_id, funnel, expected_row_version, actor)

    # ── State transitions ────────────────────────────────────────────

    async def _transition(
        self,
        version: ServiceVersion,
        trigger: str,
        expected_row_version: int | None = None,
        **values: Any,
    ) -> ServiceVersion:
        """Apply a trigger to a version with the same CAS guard as content writes."""
        current_state = ServiceVersionState(version.state)
        target = next_state(current_state, trigger)

        guard = version.row_version if expected_row_version is None else expected_row_version
        moved = await self._repo.transition(
            version.id,
            from_state=current_state,
            to_state=target,
            expected_row_version=guard,
            values=values,
        )
        if moved is not None:
            return moved

        fresh = await self._repo.get_version(version.id)
        if fresh is None:
            raise NotFound(f"Version {version.id} not found", context={"version_id": str(version.id)})
        if fresh.state != current_state.value:
            msg = f"Version moved to '{fresh.state}' while processing {trigger}"
            raise StateConflict(msg, context={"version_id": str(version.id), "state": fresh.state})
        raise VersionConflict(guard, fresh.row_version)

    async def submit(
        self, service_id: uuid.UUID, actor: str | None = None, expected_row_version: int | None = None
    ) -> ServiceVersionOut:
        """Send the working draft for review. The next read starts a new draft."""
        draft = await self._repo.get_draft(service_id)
        if draft is None:
            raise NotFound(f"No draft for service {service_id}", context={"service_id": str(service_id)})

        submitted = await self._transition(
            draft, "submit", expected_row_version, submitted_at=datetime.now(UTC)
        )
        logger.info("Version submitted: service=%s version=%s", service_id, submitted.id)
        self._emit(EventType.VERSION_SUBMITTED, service_id, actor, version_id=submitted.id)
        return ServiceVersionOut.model_validate(submitted)

    async def approve(self, version_id: uuid.UUID, actor: str | None = None) -> ServiceVersionOut:
        version = await self._repo.get_version(version_id)
        if version is None:
            raise NotFound(f"Version {version_id} not found", context={"version_id": str(version_id)})

        approved = await self._transition(version, "approve", approved_at=datetime.now(UTC))
        logger.info("Version approved: service=%s version=%s", approved.service_id, approved.id)
        self._emit(EventType.VERSION_APPROVED, approved.service_id, actor, version_id=approved.id)
        return ServiceVersionOut.model_validate(approved)

    async def publish_version(
        self,
        version_id: uuid.UUID,
        actor: str | None = None,
        expected_row_version: int | None = None,
    ) -> ServiceVersionOut:
        """Make a version live and archive the one it replaces.

        Publishing an already published version returns it untouched. When
        `expected_row_version` is given, a version edited since the caller's
        last read is refused with VersionConflict instead of going live.
        """
        version = await self._repo.get_version(version_id)
        if version is None:
            raise NotFound(f"Version {version_id} not found", context={"version_id": str(version_id)})

        # Serializes publishes of the same service until commit
        service = await self._repo.get_service(version.service_id, for_update=True)
        if service is None:
            msg = f"Service {version.service_id} not found"
            raise NotFound(msg, context={"service_id": str(version.service_id)})

        version = await self._repo.get_version(version_id) or version
        if version.state == ServiceVersionState.PUBLISHED.value:
            logger.info("Version already published: version=%s (no-op)", version.id)
            return ServiceVersionOut.model_validate(version)

        published = await self._transition(
            version, "publish", expected_row_version, published_at=datetime.now(UTC)
        )

        previous_id = service.published_version_id
        if previous_id is not None and previous_id != published.id:
            previous = await self._repo.get_version(previous_id)
            if previous is not None and previous.state == ServiceVersionState.PUBLISHED.value:
                await self._transition(previous, "archive")
                self._emit(
                    EventType.VERSION_ARCHIVED, service.id, actor, version_id=previous.id
                )

        await self._repo.set_published_pointer(service.id, published.id)

        logger.info(
            "Version published: service=%s version=%s replaced=%s",
            service.id, published.id, previous_id,
        )
        self._emit(
            EventType.VERSION_PUBLISHED, service.id, actor,
            version_id=published.id, replaced_version_id=previous_id,
        )
        return ServiceVersionOut.model_validate(published)

    async def rollback(
        self, service_id: uuid.UUID, to_version_id: uuid.UUID, actor: str | None = None
    ) -> RollbackResult:
        """Restore a previously live version.

        States never move backwards, so the old content is copied into a new
        published row; the current live row is archived.
        """
        service = await self._repo.get_service(service_id, for_update=True)
        if service is None:
            raise NotFound(f"Service {service_id} not found", context={"service_id": str(service_id)})

        target = await self._repo.get_version(to_version_id)
        if target is None or target.service_id != service.id:
            msg = f"Version {to_version_id} not found for service {service_id}"
            raise NotFound(msg, context={"version_id": str(to_version_id)})

        if target.id == service.published_version_id:
            return RollbackResult(service_id=service.id, published_version_id=target.id)

        if ServiceVersionState(target.state) not in RESTORABLE_STATES:
            msg = f"Only previously published versions can be restored (state '{target.state}')"
            raise StateConflict(msg, context={"version_id": str(target.id), "state": target.state})

        restored = await self._repo.insert_version(
            service.id,
            state=ServiceVersionState.PUBLISHED,
            card=target.card,
            pricing=target.pricing,
            funnel=target.funnel,
            created_by=actor,
            published_at=datetime.now(UTC),
        )

        archived_id = None
        if service.published_version_id is not None:
            current = await self._repo.get_version(service.published_version_id)
            if current is not None and current.state == ServiceVersionState.PUBLISHED.value:
                await self._transition(current, "archive")
                archived_id = current.id

        await self._repo.set_published_pointer(service.id, restored.id)

        logger.info(
            "Service rolled back: service=%s restored_from=%s new=%s archived=%s",
            service.id, target.id, restored.id, archived_id,
        )
        self._emit(
            EventType.VERSION_ROLLED_BACK, service.id, actor,
            restored_from=target.id, version_id=restored.id, archived_version_id=archived_id,
        )
        return RollbackResult(
            service_id=service.id,
            published_version_id=restored.id,
            restored_from_version_id=target.id,
            archived_version_id=archived_id,
        )
