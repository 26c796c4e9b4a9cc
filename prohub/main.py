"""ProHub API — app factory, lifespan, and router wiring.

Usage:
    python -m prohub.main
    uvicorn prohub.main:app --reload
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI

from prohub.admin.events import emit, start_event_system, stop_event_system, subscribe
from prohub.admin.services import router as admin_services_router
from prohub.config import settings
from prohub.db.engine import check_database, check_redis, db_lifespan
from prohub.errors import register_exception_handlers
from prohub.log import configure_logging
from prohub.marketplace.copay import router as copay_router
from prohub.schemas.events import EventType, SystemEvent
from prohub.security.audit import audit_on_event
from prohub.share.router import router as share_router

configure_logging(settings.log_level, json_output=settings.is_production)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    logger.info("ProHub starting (env=%s)", settings.environment)
    async with db_lifespan():
        subscribe(audit_on_event)
        await start_event_system()
        await emit(SystemEvent(
            event_type=EventType.SYSTEM_STARTUP,
            data={"environment": settings.environment, "version": app.version},
            source_module="main",
        ))
        try:
            yield
        finally:
            await emit(SystemEvent(event_type=EventType.SYSTEM_SHUTDOWN, source_module="main"))
            # Drains queued audit events before the engine is disposed
            await stop_event_system()
    logger.info("ProHub stopped")


def create_app() -> FastAPI:
    application = FastAPI(
        title="ProHub API",
        description="Real-estate services marketplace: co-pay partners and service content versioning",
        version="0.1.0",
        lifespan=lifespan,
    )
    register_exception_handlers(application)
    application.include_router(admin_services_router)
    application.include_router(copay_router)
    application.include_router(share_router)

    @application.get("/health")
    async def health_check() -> dict[str, object]:
        """Liveness plus a ping of each backing store."""
        checks = {"postgresql": await check_database(), "redis": await check_redis()}
        healthy = all(c["status"] == "ok" for c in checks.values())
        return {
            "status": "ok" if healthy else "degraded",
            "environment": settings.environment,
            **checks,
        }

    return application


app = create_app()


if __name__ == "__main__":
    uvicorn.run(
        "prohub.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.environment == "development",
        log_level=settings.log_level.lower(),
    )
