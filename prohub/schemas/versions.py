"""Response schemas for the admin versioning API."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from prohub.models.enums import ServiceVersionState


class ServiceVersionOut(BaseModel):
    """A service_versions row as returned to the admin console."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    service_id: uuid.UUID
    state: ServiceVersionState
    row_version: int
    card: dict[str, Any]
    pricing: dict[str, Any]
    funnel: dict[str, Any] | None = None
    created_by: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    submitted_at: datetime | None = None
    approved_at: datetime | None = None
    published_at: datetime | None = None


class ServiceSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    slug: str | None = None
    category: str | None = None
    is_active: bool = True
    published_version_id: uuid.UUID | None = None


class ServiceVersionDetail(BaseModel):
    """Everything the editor needs: working draft, live version, recent history."""

    service: ServiceSummary
    draft: ServiceVersionOut
    published: ServiceVersionOut | None = None
    history: list[ServiceVersionOut] = Field(default_factory=list)


class RollbackResult(BaseModel):
    service_id: uuid.UUID
    published_version_id: uuid.UUID
    restored_from_version_id: uuid.UUID | None = None
    archived_version_id: uuid.UUID | None = None
