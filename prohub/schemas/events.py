"""SystemEvent schema — the event type that flows through the whole system.

Every mutation emits a SystemEvent. Subscribers (the audit logger) consume
these events asynchronously.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class EventType(str, Enum):
    """All event types emitted by the system."""

    # Draft content
    DRAFT_CREATED = "draft.created"
    DRAFT_UPDATED = "draft.updated"
    DRAFT_CONFLICT = "draft.conflict"

    # Version lifecycle
    VERSION_SUBMITTED = "version.submitted"
    VERSION_APPROVED = "version.approved"
    VERSION_PUBLISHED = "version.published"
    VERSION_ARCHIVED = "version.archived"
    VERSION_ROLLED_BACK = "version.rolled_back"

    # Co-pay
    ELIGIBILITY_CHECKED = "copay.eligibility_checked"

    # Share links
    SHARE_LINK_CREATED = "share.created"
    SHARE_LINK_RESOLVED = "share.resolved"

    # Access
    ADMIN_ACCESS = "admin.access"
    ACCESS_DENIED = "auth.access_denied"

    # System
    SYSTEM_STARTUP = "system.startup"
    SYSTEM_SHUTDOWN = "system.shutdown"
    UPSTREAM_ERROR = "system.upstream_error"


class SystemEvent(BaseModel):
    """A single system event with context and payload."""

    event_type: EventType
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    service_id: uuid.UUID | None = None
    actor_id: str | None = None
    actor_role: str | None = None
    data: dict[str, Any] = Field(default_factory=dict)
    source_module: str = "unknown"
