"""In-process event bus for SystemEvents.

Draft edits, lifecycle changes, eligibility lookups and admin access all emit
a SystemEvent. Subscribers (the audit logger) run on a background worker so
a slow or failing subscriber never delays or breaks the request that emitted.

Usage:
    from prohub.admin.events import emit, subscribe

    subscribe(audit_on_event)                                   # every event
    subscribe(notify_editors, [EventType.VERSION_PUBLISHED])   # one type

    await emit(SystemEvent(
        event_type=EventType.DRAFT_UPDATED,
        service_id=service_id,
        data={"section": "card", "row_version": 4},
    ))
"""

from __future__ import annotations

import asyncio
import logging
from collections import defaultdict
from collections.abc import Callable, Coroutine, Iterable
from typing import Any

from prohub.schemas.events import EventType, SystemEvent

logger = logging.getLogger(__name__)

EventHandler = Callable[[SystemEvent], Coroutine[Any, Any, None]]

# Key for handlers that receive every event type
_ALL = None


class EventBus:
    """Queue-backed fan-out of SystemEvents to async handlers."""

    def __init__(self, max_pending: int = 10_000) -> None:
        self._handlers: dict[EventType | None, list[EventHandler]] = defaultdict(list)
        self._max_pending = max_pending
        self._queue: asyncio.Queue[SystemEvent] | None = None
        self._worker: asyncio.Task[None] | None = None

    # ── Registration ─────────────────────────────────────────────────

    def subscribe(self, handler: EventHandler, event_types: Iterable[EventType] | None = None) -> None:
        """Register a handler for some event types, or for all when omitted."""
        keys: list[EventType | None] = [_ALL] if event_types is None else list(event_types)
        for key in keys:
            if handler not in self._handlers[key]:
                self._handlers[key].append(handler)
        logger.info(
            "Subscribed %s to %s",
            handler.__name__,
            "all events" if event_types is None else [k.value for k in keys if k is not None],
        )

    def unsubscribe(self, handler: EventHandler) -> None:
        for handlers in self._handlers.values():
            if handler in handlers:
                handlers.remove(handler)

    def handlers_for(self, event_type: EventType) -> list[EventHandler]:
        return [*self._handlers[_ALL], *self._handlers[event_type]]

    # ── Publishing ───────────────────────────────────────────────────

    def emit_nowait(self, event: SystemEvent) -> None:
        """Queue an event for delivery. Starts the worker lazily."""
        queue = self._ensure_running()
        try:
            queue.put_nowait(event)
        except asyncio.QueueFull:
            logger.error(
                "Event queue full (%d pending), dropping %s for service=%s",
                self._max_pending, event.event_type.value, event.service_id,
            )
            return
        logger.debug("Event queued: %s (service=%s)", event.event_type.value, event.service_id)

    async def emit(self, event: SystemEvent) -> None:
        self.emit_nowait(event)

    async def dispatch(self, event: SystemEvent) -> None:
        """Deliver one event to its handlers concurrently; failures are logged per handler."""
        handlers = self.handlers_for(event.event_type)
        if not handlers:
            return
        results = await asyncio.gather(*(h(event) for h in handlers), return_exceptions=True)
        for handler, result in zip(handlers, results):
            if isinstance(result, Exception):
                logger.error(
                    "Handler %s failed for %s (service=%s): %s",
                    handler.__name__, event.event_type.value, event.service_id, result,
                )

    # ── Worker lifecycle ─────────────────────────────────────────────

    def _ensure_running(self) -> asyncio.Queue[SystemEvent]:
        if self._queue is None or self._worker is None or self._worker.done():
            # A finished worker may belong to a closed loop; its queue goes with it
            self._queue = asyncio.Queue(maxsize=self._max_pending)
            self._worker = asyncio.create_task(self._run(self._queue), name="prohub-event-worker")
        return self._queue

    async def _run(self, queue: asyncio.Queue[SystemEvent]) -> None:
        while True:
            event = await queue.get()
            try:
                await self.dispatch(event)
            except Exception:
                logger.exception("Event worker failed on %s", event.event_type.value)
            finally:
                queue.task_done()

    async def start(self) -> None:
        self._ensure_running()
        logger.info(
            "Event bus started: %d handler registrations",
            sum(len(h) for h in self._handlers.values()),
        )

    async def stop(self) -> None:
        """Deliver what is already queued, then cancel the worker."""
        if self._queue is not None and self._worker is not None and not self._worker.done():
            await self._queue.join()
        if self._worker is not None:
            self._worker.cancel()
            try:
                await self._worker
            except asyncio.CancelledError:
                pass
        self._worker = None
        self._queue = None
        logger.info("Event bus stopped")


# Module-level bus and the function API the rest of the app imports
bus = EventBus()


def subscribe(handler: EventHandler, event_types: Iterable[EventType] | None = None) -> None:
    bus.subscribe(handler, event_types)


def unsubscribe(handler: EventHandler) -> None:
    bus.unsubscribe(handler)


async def emit(event: SystemEvent) -> None:
    await bus.emit(event)


def emit_nowait(event: SystemEvent) -> None:
    """Synchronous emit, for callbacks that cannot await (e.g. session hooks)."""
    bus.emit_nowait(event)


async def start_event_system() -> None:
    await bus.start()


async def stop_event_system() -> None:
    await bus.stop()
