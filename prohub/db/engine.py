"""PostgreSQL and Redis connections.

One async engine and one Redis client per process. Request handlers get a
session through `get_session`; background work (the audit subscriber) opens
its own with `session_scope`.
"""

from __future__ import annotations

import contextlib
import logging
import time
from collections.abc import AsyncGenerator, AsyncIterator
from typing import Any

import redis.asyncio as aioredis
from redis.exceptions import RedisError
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from prohub.config import settings

logger = logging.getLogger(__name__)

engine: AsyncEngine = create_async_engine(
    settings.db.database_url,
    echo=settings.log_level == "DEBUG",
    pool_size=10,
    max_overflow=20,
    pool_pre_ping=True,
    pool_recycle=3600,
)

async_session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

# Share links only; decode so hash values come back as str
redis_client: aioredis.Redis = aioredis.from_url(settings.db.redis_url, decode_responses=True)


@contextlib.asynccontextmanager
async def session_scope() -> AsyncIterator[AsyncSession]:
    """One transaction: commit on normal exit, roll back on any exception."""
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency. The request's reads and conditional writes share one transaction."""
    async with session_scope() as session:
        yield session


# ── Health ───────────────────────────────────────────────────────────


async def check_database() -> dict[str, Any]:
    start = time.perf_counter()
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except SQLAlchemyError as exc:
        logger.warning("Database health check failed: %s", type(exc).__name__)
        return {"status": "error"}
    return {"status": "ok", "latency_ms": round((time.perf_counter() - start) * 1000)}


async def check_redis() -> dict[str, Any]:
    start = time.perf_counter()
    try:
        await redis_client.ping()
    except RedisError as exc:
        logger.warning("Redis health check failed: %s", type(exc).__name__)
        return {"status": "error"}
    return {"status": "ok", "latency_ms": round((time.perf_counter() - start) * 1000)}


# ── Lifespan ─────────────────────────────────────────────────────────


@contextlib.asynccontextmanager
async def db_lifespan() -> AsyncIterator[None]:
    """Open connections for the app's lifetime.

    Outside production the tables are created from the ORM metadata so a
    fresh dev database works without running Alembic.
    """
    if not settings.is_production:
        from prohub.models import Base

        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Dev schema ensured (create_all)")
    try:
        yield
    finally:
        await engine.dispose()
        await redis_client.aclose()
