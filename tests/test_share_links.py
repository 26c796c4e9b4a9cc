"""Tests for Redis-backed share links.

Covers:
- New link: code hash and TTL written in one transaction, service pointer claimed
- Existing live link reused; a pointer without its hash is replaced
- Code collision (taken or changed under WATCH) retried
- Concurrent creates for one service settle on the first code
- Resolve counts clicks; unknown and malformed codes return None
- Redis errors surface as UpstreamFailure
"""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from fastapi.testclient import TestClient
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import WatchError

from prohub.errors import UpstreamFailure
from prohub.main import app
from prohub.share.links import ShareLinkStore, generate_code

# ── Helpers ──────────────────────────────────────────────────────────

TTL = 30 * 86400


def _make_pipeline(taken: bool = False) -> MagicMock:
    """Build a mock transactional pipeline (async context manager)."""
    pipe = MagicMock()
    pipe.__aenter__ = AsyncMock(return_value=pipe)
    pipe.__aexit__ = AsyncMock(return_value=False)
    pipe.watch = AsyncMock()
    pipe.exists = AsyncMock(return_value=taken)
    pipe.execute = AsyncMock(return_value=[1, True])
    return pipe


def _make_redis(existing_code: str | None = None, stored: dict | None = None) -> AsyncMock:
    """Build a mock aioredis.Redis."""
    redis = AsyncMock()
    redis.get = AsyncMock(return_value=existing_code)
    redis.hgetall = AsyncMock(return_value=stored or {})
    redis.set = AsyncMock(return_value=True)
    redis.delete = AsyncMock(return_value=1)
    redis.hincrby = AsyncMock(return_value=1)
    redis.pipe = _make_pipeline()
    redis.pipeline = MagicMock(return_value=redis.pipe)
    return redis


STORED = {
    "service_id": "svc-1",
    "created_by": "agent-1",
    "created_at": "2026-10-01T12:00:00+00:00",
    "clicks": "2",
}


class TestGenerateCode:
    def test_length_and_alphabet(self):
        code = generate_code(8)
        assert len(code) == 8
        assert code.isalnum()


class TestCreate:
    @pytest.mark.asyncio()
    async def test_mints_new_code(self):
        redis = _make_redis()
        store = ShareLinkStore(redis)

        link = await store.create("svc-1", created_by="agent-1")

        key = f"share:code:{link.short_code}"
        assert len(link.short_code) == 6
        assert link.url.endswith(f"/{link.short_code}")
        assert link.clicks == 0
        assert link.created_by == "agent-1"
        assert (link.expires_at - link.created_at).days == 30
        redis.pipeline.assert_called_once_with(transaction=True)
        redis.pipe.watch.assert_awaited_once_with(key)
        redis.pipe.multi.assert_called_once_with()
        assert redis.pipe.hset.call_args.args == (key,)
        assert redis.pipe.hset.call_args.kwargs["mapping"]["service_id"] == "svc-1"
        redis.pipe.expire.assert_called_once_with(key, TTL)
        redis.pipe.execute.assert_awaited_once()
        redis.set.assert_awaited_once_with("share:service:svc-1", link.short_code, nx=True, ex=TTL)

    @pytest.mark.asyncio()
    async def test_reuses_live_code(self):
        redis = _make_redis(existing_code="aB3xK9", stored=dict(STORED))
        store = ShareLinkStore(redis)

        link = await store.create("svc-1")

        assert link.short_code == "aB3xK9"
        assert link.clicks == 2
        redis.pipeline.assert_not_called()

    @pytest.mark.asyncio()
    async def test_replaces_pointer_without_hash(self):
        redis = _make_redis(existing_code="aB3xK9", stored={})
        store = ShareLinkStore(redis)

        link = await store.create("svc-1")

        redis.delete.assert_awaited_once_with("share:service:svc-1")
        assert link.short_code != "aB3xK9"

    @pytest.mark.asyncio()
    async def test_retries_on_collision(self):
        redis = _make_redis()
        redis.pipe.exists = AsyncMock(side_effect=[True, True, False])
        store = ShareLinkStore(redis)

        link = await store.create("svc-1")

        assert redis.pipeline.call_count == 3
        redis.pipe.execute.assert_awaited_once()
        assert link.service_id == "svc-1"

    @pytest.mark.asyncio()
    async def test_code_changed_under_watch_retried(self):
        redis = _make_redis()
        redis.pipe.execute = AsyncMock(side_effect=[WatchError("changed"), [1, True]])
        store = ShareLinkStore(redis)

        await store.create("svc-1")

        assert redis.pipe.execute.await_count == 2
        redis.set.assert_awaited_once()

    @pytest.mark.asyncio()
    async def test_gives_up_after_max_attempts(self):
        redis = _make_redis()
        redis.pipe.exists = AsyncMock(return_value=True)
        store = ShareLinkStore(redis)

        with pytest.raises(UpstreamFailure):
            await store.create("svc-1")

    @pytest.mark.asyncio()
    async def test_concurrent_create_returns_winning_code(self):
        redis = _make_redis(stored=dict(STORED))
        redis.get = AsyncMock(side_effect=[None, "aB3xK9"])
        redis.set = AsyncMock(return_value=None)  # pointer already claimed
        store = ShareLinkStore(redis)

        link = await store.create("svc-1")

        assert link.short_code == "aB3xK9"
        our_key = redis.pipe.watch.await_args.args[0]
        redis.delete.assert_awaited_once_with(our_key)

    @pytest.mark.asyncio()
    async def test_redis_down(self):
        redis = _make_redis()
        redis.get = AsyncMock(side_effect=RedisConnectionError("refused"))
        store = ShareLinkStore(redis)

        with pytest.raises(UpstreamFailure):
            await store.create("svc-1")


class TestResolve:
    @pytest.mark.asyncio()
    async def test_counts_click(self):
        redis = _make_redis(stored=dict(STORED))
        redis.hincrby = AsyncMock(return_value=3)
        store = ShareLinkStore(redis)

        link = await store.resolve("aB3xK9")

        assert link is not None
        assert link.service_id == "svc-1"
        assert link.clicks == 3
        redis.hincrby.assert_awaited_once_with("share:code:aB3xK9", "clicks", 1)

    @pytest.mark.asyncio()
    async def test_unknown_code(self):
        store = ShareLinkStore(_make_redis())
        assert await store.resolve("zzzzzz") is None

    @pytest.mark.asyncio()
    @pytest.mark.parametrize("code", ["abc", "bad-code!", "x" * 13])
    async def test_malformed_code_skips_redis(self, code):
        redis = _make_redis()
        store = ShareLinkStore(redis)

        assert await store.resolve(code) is None
        redis.hgetall.assert_not_awaited()


class TestShareRoutes:
    def test_resolve_unknown_404(self):
        with patch("prohub.share.router.share_links.resolve", new_callable=AsyncMock, return_value=None):
            response = TestClient(app).get("/share/zzzzzz")

        assert response.status_code == 404
        assert response.json()["error_code"] == "NOT_FOUND"
