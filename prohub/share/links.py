"""Redis-backed share links — short codes that point at a service.

Keys expire after `share_ttl_days`; nothing is kept in process memory.

    share:code:{code}        hash {service_id, created_by, created_at, clicks}
    share:service:{id}       the live code for a service, same TTL

Usage:
    from prohub.share.links import share_links

    link = await share_links.create(service_id, created_by=user.id)
    link = await share_links.resolve("aB3xK9")
"""

from __future__ import annotations

import logging
import re
import secrets
import string
from datetime import UTC, datetime, timedelta
from typing import Any

from pydantic import BaseModel
from redis.exceptions import RedisError, WatchError

from prohub.config import settings
from prohub.db.engine import redis_client
from prohub.errors import UpstreamFailure

logger = logging.getLogger(__name__)

_ALPHABET = string.ascii_letters + string.digits
_CODE_RE = re.compile(r"^[A-Za-z0-9]{6,12}$")
_MAX_ATTEMPTS = 5


class ShareLink(BaseModel):
    short_code: str
    service_id: str
    url: str
    clicks: int = 0
    created_by: str | None = None
    created_at: datetime
    expires_at: datetime


def _code_key(code: str) -> str:
    return f"share:code:{code}"


def _service_key(service_id: str) -> str:
    return f"share:service:{service_id}"


def generate_code(length: int) -> str:
    return "".join(secrets.choice(_ALPHABET) for _ in range(length))


class ShareLinkStore:
    """Create and resolve share links in Redis with a TTL."""

    def __init__(self, redis: Any) -> None:
        self._redis = redis

    @property
    def _ttl_seconds(self) -> int:
        return settings.share.share_ttl_days * 86400

    def _to_link(self, code: str, data: dict[str, str]) -> ShareLink:
        created_at = datetime.fromisoformat(data["created_at"])
        return ShareLink(
            short_code=code,
            service_id=data["service_id"],
            url=f"{settings.share.share_base_url}/{code}",
            clicks=int(data.get("clicks", 0)),
            created_by=data.get("created_by") or None,
            created_at=created_at,
            expires_at=created_at + timedelta(seconds=self._ttl_seconds),
        )

    async def _live_link(self, service_id: str) -> ShareLink | None:
        code = await self._redis.get(_service_key(service_id))
        if not code:
            return None
        data = await self._redis.hgetall(_code_key(code))
        if not data:
            # Pointer outlived its code hash
            await self._redis.delete(_service_key(service_id))
            return None
        return self._to_link(code, data)

    async def _write_code(self, code: str, data: dict[str, str]) -> bool:
        """Write a code hash and its TTL in one transaction. False if the code is taken."""
        key = _code_key(code)
        async with self._redis.pipeline(transaction=True) as pipe:
            await pipe.watch(key)
            if await pipe.exists(key):
                return False
            pipe.multi()
            pipe.hset(key, mapping=data)
            pipe.expire(key, self._ttl_seconds)
            try:
                await pipe.execute()
            except WatchError:
                return False
        return True

    async def create(self, service_id: str, created_by: str | None = None) -> ShareLink:
        """Return the live link for a service, minting one if none exists.

        Concurrent calls for one service agree on a single code: the service
        pointer is only set if absent, and a loser drops its code and returns
        the winner's link.
        """
        try:
            link = await self._live_link(service_id)
            if link is not None:
                return link

            data = {
                "service_id": service_id,
                "created_by": created_by or "",
                "created_at": datetime.now(UTC).isoformat(),
                "clicks": "0",
            }
            for _ in range(_MAX_ATTEMPTS):
                code = generate_code(settings.share.share_code_length)
                if not await self._write_code(code, data):
                    continue  # collision
                if await self._redis.set(_service_key(service_id), code, nx=True, ex=self._ttl_seconds):
                    logger.info("Share link created: code=%s service=%s", code, service_id)
                    return self._to_link(code, data)

                await self._redis.delete(_code_key(code))
                link = await self._live_link(service_id)
                if link is not None:
                    return link
        except RedisError as exc:
            logger.exception("Redis error creating share link for service %s", service_id)
            raise UpstreamFailure("Share links are temporarily unavailable") from exc

        msg = "Could not allocate a unique share code"
        raise UpstreamFailure(msg, context={"attempts": _MAX_ATTEMPTS})

    async def resolve(self, code: str) -> ShareLink | None:
        """Look up a code and count the click. Unknown or expired → None."""
        if not _CODE_RE.match(code):
            return None
        try:
            key = _code_key(code)
            data = await self._redis.hgetall(key)
            if not data:
                return None
            data["clicks"] = str(await self._redis.hincrby(key, "clicks", 1))
        except RedisError as exc:
            logger.exception("Redis error resolving share code %s", code)
            raise UpstreamFailure("Share links are temporarily unavailable") from exc
        return self._to_link(code, data)


# Module-level singleton
share_links = ShareLinkStore(redis_client)
