"""SQL access for services and service_versions.

Every write is a single conditional statement so the database, not the
application, decides who wins:

- draft creation is ``INSERT ... ON CONFLICT DO NOTHING`` against the partial
  unique index on (service_id) WHERE state = 'draft';
- content writes and state changes are
  ``UPDATE ... WHERE row_version = :expected RETURNING *``. No returned row
  means someone else got there first.

SQLAlchemy errors are wrapped in UpstreamFailure so driver messages never
reach API clients.

Callbacks registered with `on_commit` run after the session's transaction
commits and are discarded if it rolls back.
"""

from __future__ import annotations

import contextlib
import logging
import uuid
from collections.abc import Callable, Iterator
from typing import Any

from sqlalchemy import event, select, text, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session

from prohub.errors import UpstreamFailure
from prohub.models.enums import ServiceVersionState
from prohub.models.service import Service
from prohub.models.service_version import ServiceVersion
from prohub.versioning.states import EDITABLE_STATES

logger = logging.getLogger(__name__)

_AFTER_COMMIT = "prohub.after_commit"


@event.listens_for(Session, "after_commit")
def _run_after_commit(session: Session) -> None:
    for callback in session.info.pop(_AFTER_COMMIT, []):
        callback()


@event.listens_for(Session, "after_rollback")
def _discard_after_commit(session: Session) -> None:
    session.info.pop(_AFTER_COMMIT, None)


@contextlib.contextmanager
def _upstream(operation: str) -> Iterator[None]:
    try:
        yield
    except SQLAlchemyError as exc:
        logger.exception("Database error during %s", operation)
        msg = "Storage is temporarily unavailable, please retry"
        raise UpstreamFailure(msg, context={"operation": operation}) from exc


class ServiceVersionRepository:
    """Row store for service content versions, bound to one AsyncSession."""

    def __init__(self, db: AsyncSession) -> None:
        self._db = db

    def on_commit(self, callback: Callable[[], None]) -> None:
        """Run `callback` once the current transaction commits."""
        self._db.info.setdefault(_AFTER_COMMIT, []).append(callback)

    # ── Reads ────────────────────────────────────────────────────────

    async def get_service(self, service_id: uuid.UUID, *, for_update: bool = False) -> Service | None:
        """Load a service; `for_update` takes a row lock until the transaction ends."""
        stmt = select(Service).where(Service.id == service_id).execution_options(populate_existing=True)
        if for_update:
            stmt = stmt.with_for_update()
        with _upstream("get_service"):
            result = await self._db.execute(stmt)
            return result.scalar_one_or_none()

    async def get_version(self, version_id: uuid.UUID) -> ServiceVersion | None:
        stmt = (
            select(ServiceVersion)
            .where(ServiceVersion.id == version_id)
            .execution_options(populate_existing=True)
        )
        with _upstream("get_version"):
            result = await self._db.execute(stmt)
            return result.scalar_one_or_none()

    async def get_draft(self, service_id: uuid.UUID) -> ServiceVersion | None:
        """The single working draft of a service, if any."""
        stmt = (
            select(ServiceVersion)
            .where(
                ServiceVersion.service_id == service_id,
                ServiceVersion.state == ServiceVersionState.DRAFT.value,
            )
            .execution_options(populate_existing=True)
        )
        with _upstream("get_draft"):
            result = await self._db.execute(stmt)
            return result.scalar_one_or_none()

    async def list_versions(self, service_id: uuid.UUID, limit: int) -> list[ServiceVersion]:
        """Most recent versions first."""
        stmt = (
            select(ServiceVersion)
            .where(ServiceVersion.service_id == service_id)
            .order_by(ServiceVersion.created_at.desc())
            .limit(limit)
        )
        with _upstream("list_versions"):
            result = await self._db.execute(stmt)
            return list(result.scalars().all())

    # ── Writes ───────────────────────────────────────────────────────

    async def insert_draft_if_absent(
        self,
        service_id: uuid.UUID,
        *,
        card: dict[str, Any],
        pricing: dict[str, Any],
        funnel: dict[str, Any] | None,
        created_by: str | None,
    ) -> bool:
        """Create the working draft unless one exists. Returns True if this call inserted it."""
        stmt = (
            pg_insert(ServiceVersion)
            .values(
                id=uuid.uuid4(),
                service_id=service_id,
                state=ServiceVersionState.DRAFT.value,
                row_version=1,
                card=card,
                pricing=pricing,
                funnel=funnel,
                created_by=created_by,
            )
            .on_conflict_do_nothing(
                index_elements=[ServiceVersion.service_id],
                index_where=text("state = 'draft'"),
            )
            .returning(ServiceVersion.id)
        )
        with _upstream("insert_draft"):
            result = await self._db.execute(stmt)
            return result.scalar_one_or_none() is not None

    async def insert_version(
        self,
        service_id: uuid.UUID,
        *,
        state: ServiceVersionState,
        card: dict[str, Any],
        pricing: dict[str, Any],
        funnel: dict[str, Any] | None,
        created_by: str | None,
        **stamps: Any,
    ) -> ServiceVersion:
        """Insert a non-draft version row (used by rollback)."""
        version = ServiceVersion(
            id=uuid.uuid4(),
            service_id=service_id,
            state=state.value,
            row_version=1,
            card=card,
            pricing=pricing,
            funnel=funnel,
            created_by=created_by,
            **stamps,
        )
        with _upstream("insert_version"):
            self._db.add(version)
            await self._db.flush()
            await self._db.refresh(version)
        return version

    async def update_draft_content(
        self,
        service_id: uuid.UUID,
        expected_row_version: int,
        values: dict[str, Any],
    ) -> ServiceVersion | None:
        """Compare-and-swap on the draft row. None → no draft or stale row_version."""
        stmt = (
            update(ServiceVersion)
            .where(
                ServiceVersion.service_id == service_id,
                ServiceVersion.state.in_([s.value for s in EDITABLE_STATES]),
                ServiceVersion.row_version == expected_row_version,
            )
            .values(**values, row_version=ServiceVersion.row_version + 1)
            .returning(ServiceVersion)
            .execution_options(synchronize_session=False, populate_existing=True)
        )
        with _upstream("update_draft_content"):
            result = await self._db.execute(stmt)
            return result.scalar_one_or_none()

    async def transition(
        self,
        version_id: uuid.UUID,
        *,
        from_state: ServiceVersionState,
        to_state: ServiceVersionState,
        expected_row_version: int,
        values: dict[str, Any] | None = None,
    ) -> ServiceVersion | None:
        """Move a version between states if it is still where the caller saw it."""
        stmt = (
            update(ServiceVersion)
            .where(
                ServiceVersion.id == version_id,
                ServiceVersion.state == from_state.value,
                ServiceVersion.row_version == expected_row_version,
            )
            .values(
                **(values or {}),
                state=to_state.value,
                row_version=ServiceVersion.row_version + 1,
            )
            .returning(ServiceVersion)
            .execution_options(synchronize_session=False, populate_existing=True)
        )
        with _upstream("transition"):
            result = await self._db.execute(stmt)
            return result.scalar_one_or_none()

    async def set_published_pointer(self, service_id: uuid.UUID, version_id: uuid.UUID) -> None:
        stmt = (
            update(Service)
            .where(Service.id == service_id)
            .values(published_version_id=version_id)
            .execution_options(synchronize_session=False)
        )
        with _upstream("set_published_pointer"):
            await self._db.execute(stmt)
