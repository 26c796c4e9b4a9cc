"""Tests for identity provider client and auth dependencies.

Covers:
- Valid token: provider returns the user payload
- Rejected token: 401/403 from provider → None
- Provider 5xx or timeout → UpstreamFailure (never treated as "no user")
- require_user / require_admin dependency outcomes
"""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest
from fastapi.security import HTTPAuthorizationCredentials

from prohub.admin.auth import CurrentUser, IdentityClient, require_admin, require_user
from prohub.errors import AuthenticationRequired, Forbidden, UpstreamFailure
from prohub.schemas.events import EventType

# ── Helpers ──────────────────────────────────────────────────────────


def _make_response(payload: dict, status_code: int = 200) -> MagicMock:
    """Build a mock httpx.Response."""
    resp = MagicMock()
    resp.status_code = status_code
    resp.json.return_value = payload
    return resp


async def _resolve_with(response=None, side_effect=None):
    client = IdentityClient()
    with patch("httpx.AsyncClient") as mock_client_cls:
        mock_http = AsyncMock()
        mock_http.get = AsyncMock(return_value=response, side_effect=side_effect)
        mock_client_cls.return_value.__aenter__ = AsyncMock(return_value=mock_http)
        mock_client_cls.return_value.__aexit__ = AsyncMock(return_value=False)

        result = await client.resolve_token("token-abc")
    return result, mock_http


def _bearer(token: str = "token-abc") -> HTTPAuthorizationCredentials:
    return HTTPAuthorizationCredentials(scheme="Bearer", credentials=token)


# ── Identity client ──────────────────────────────────────────────────


class TestIdentityClient:
    @pytest.mark.asyncio()
    async def test_valid_token(self):
        result, mock_http = await _resolve_with(_make_response({"id": "u-1", "email": "a@example.com"}))

        assert result == {"id": "u-1", "email": "a@example.com"}
        url = mock_http.get.await_args.args[0]
        headers = mock_http.get.await_args.kwargs["headers"]
        assert url.endswith("/user")
        assert headers["Authorization"] == "Bearer token-abc"

    @pytest.mark.asyncio()
    @pytest.mark.parametrize("status_code", [401, 403])
    async def test_rejected_token(self, status_code):
        result, _ = await _resolve_with(_make_response({}, status_code=status_code))
        assert result is None

    @pytest.mark.asyncio()
    async def test_provider_error(self):
        with pytest.raises(UpstreamFailure):
            await _resolve_with(_make_response({}, status_code=502))

    @pytest.mark.asyncio()
    async def test_timeout(self):
        with pytest.raises(UpstreamFailure):
            await _resolve_with(side_effect=httpx.TimeoutException("timeout"))


# ── Dependencies ─────────────────────────────────────────────────────


class TestRequireUser:
    @pytest.mark.asyncio()
    async def test_missing_credentials(self):
        with pytest.raises(AuthenticationRequired):
            await require_user(credentials=None, db=AsyncMock())

    @pytest.mark.asyncio()
    async def test_unknown_token(self):
        with (
            patch("prohub.admin.auth.identity_client.resolve_token", new_callable=AsyncMock, return_value=None),
            pytest.raises(AuthenticationRequired),
        ):
            await require_user(credentials=_bearer(), db=AsyncMock())

    @pytest.mark.asyncio()
    async def test_resolves_roles(self):
        with (
            patch(
                "prohub.admin.auth.identity_client.resolve_token",
                new_callable=AsyncMock,
                return_value={"id": "u-1", "email": "a@example.com"},
            ),
            patch(
                "prohub.admin.auth.get_user_roles",
                new_callable=AsyncMock,
                return_value=frozenset({"admin"}),
            ),
        ):
            user = await require_user(credentials=_bearer(), db=AsyncMock())

        assert user.id == "u-1"
        assert user.email == "a@example.com"
        assert user.is_admin is True


class TestRequireAdmin:
    @pytest.mark.asyncio()
    async def test_admin_passes(self):
        admin = CurrentUser(id="u-1", roles=frozenset({"admin"}))
        assert await require_admin(user=admin) is admin

    @pytest.mark.asyncio()
    async def test_non_admin_forbidden_and_audited(self):
        with patch("prohub.admin.auth.emit", new_callable=AsyncMock) as mock_emit:
            with pytest.raises(Forbidden):
                await require_admin(user=CurrentUser(id="u-2", roles=frozenset({"agent"})))

        event = mock_emit.await_args.args[0]
        assert event.event_type == EventType.ACCESS_DENIED
        assert event.actor_id == "u-2"
