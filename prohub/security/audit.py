"""Audit subscriber — one audit_log row per SystemEvent.

Subscribed to every event type at startup. Runs on the event worker, in its
own transaction, after the emitting request has returned; a failed write is
logged and dropped.
"""

from __future__ import annotations

import logging

from prohub.db.engine import session_scope
from prohub.models.audit import AuditLog
from prohub.schemas.events import SystemEvent

logger = logging.getLogger(__name__)


def to_audit_row(event: SystemEvent) -> AuditLog:
    return AuditLog(
        event_type=event.event_type.value,
        service_id=event.service_id,
        actor_id=event.actor_id,
        actor_role=event.actor_role,
        data={**event.data, "source_module": event.source_module, "at": event.timestamp.isoformat()},
    )


async def audit_on_event(event: SystemEvent) -> None:
    try:
        async with session_scope() as db:
            db.add(to_audit_row(event))
    except Exception:
        logger.exception(
            "Audit write failed: %s (service=%s, actor=%s)",
            event.event_type.value, event.service_id, event.actor_id,
        )
