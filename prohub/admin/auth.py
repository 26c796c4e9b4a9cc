"""Bearer-token authentication against the hosted identity provider.

The token is resolved to a user by the provider (GET {identity_url}/user);
roles are local, in the user_roles table. No token or an unknown token is
401, a valid token without the admin role is 403.
"""
# ruff: noqa: B008

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

import httpx
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from prohub.admin.events import emit
from prohub.config import settings
from prohub.db.engine import get_session
from prohub.errors import AuthenticationRequired, Forbidden, UpstreamFailure
from prohub.models.user import UserRole
from prohub.schemas.events import EventType, SystemEvent

logger = logging.getLogger(__name__)

bearer = HTTPBearer(auto_error=False)


@dataclass
class CurrentUser:
    """Authenticated caller."""

    id: str
    email: str | None = None
    roles: frozenset[str] = field(default_factory=frozenset)

    @property
    def is_admin(self) -> bool:
        return settings.identity.admin_role in self.roles


class IdentityClient:
    """Thin async wrapper around the identity provider's user endpoint."""

    def __init__(self) -> None:
        self._base_url = settings.identity.identity_url.rstrip("/")
        self._api_key = settings.identity.identity_api_key
        self._timeout = httpx.Timeout(settings.identity.identity_timeout, connect=5.0)

    async def resolve_token(self, token: str) -> dict[str, Any] | None:
        """Return the user payload for a token, or None if the provider rejects it.

        Raises:
            UpstreamFailure: provider unreachable, timed out, or answered 5xx.
        """
        headers = {"Authorization": f"Bearer {token}"}
        if self._api_key:
            headers["apikey"] = self._api_key

        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                response = await client.get(f"{self._base_url}/user", headers=headers)
        except httpx.HTTPError as exc:
            logger.warning("Identity provider unreachable: %s", type(exc).__name__)
            raise UpstreamFailure("Authentication service unavailable, please retry") from exc

        if response.status_code in (401, 403):
            return None
        if response.status_code >= 400:
            logger.warning("Identity provider HTTP %s", response.status_code)
            raise UpstreamFailure("Authentication service unavailable, please retry")

        payload: dict[str, Any] = response.json()
        return payload


identity_client = IdentityClient()


async def get_user_roles(db: AsyncSession, user_id: str) -> frozenset[str]:
    try:
        result = await db.execute(select(UserRole.role).where(UserRole.user_id == user_id))
    except SQLAlchemyError as exc:
        logger.exception("Role lookup failed for user %s", user_id)
        raise UpstreamFailure("Storage is temporarily unavailable, please retry") from exc
    return frozenset(result.scalars().all())


async def require_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer),
    db: AsyncSession = Depends(get_session),
) -> CurrentUser:
    """FastAPI dependency — resolve the bearer token to a CurrentUser."""
    if credentials is None or not credentials.credentials:
        raise AuthenticationRequired("Bearer token required")

    payload = await identity_client.resolve_token(credentials.credentials)
    if not payload or not payload.get("id"):
        raise AuthenticationRequired("Invalid or expired token")

    user_id = str(payload["id"])
    roles = await get_user_roles(db, user_id)
    return CurrentUser(id=user_id, email=payload.get("email"), roles=roles)


async def require_admin(user: CurrentUser = Depends(require_user)) -> CurrentUser:
    """FastAPI dependency — CurrentUser holding the admin role, else 403."""
    if not user.is_admin:
        await emit(SystemEvent(
            event_type=EventType.ACCESS_DENIED,
            actor_id=user.id,
            actor_role="user",
            data={"required_role": settings.identity.admin_role},
            source_module="admin.auth",
        ))
        raise Forbidden("Admin role required")
    return user
