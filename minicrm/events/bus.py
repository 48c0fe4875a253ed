"""In-process event bus with a background worker.

Handlers are registered explicitly with ``subscribe``. ``publish`` only
enqueues; the worker started by the application lifespan (or ``drain``)
delivers each event to its handlers, retrying a failing handler a bounded
number of times. A handler that keeps failing is logged and dropped, it never
affects the publisher or the other handlers.
"""

import asyncio
from collections import defaultdict
from typing import Any, Awaitable, Callable

import structlog

from minicrm.config import settings

logger = structlog.get_logger()

Handler = Callable[[Any], Awaitable[None]]


class EventBus:
    def __init__(
        self,
        max_attempts: int = settings.EVENT_MAX_ATTEMPTS,
        retry_delay: float = settings.EVENT_RETRY_DELAY_SECONDS,
    ):
        self.max_attempts = max(max_attempts, 1)
        self.retry_delay = retry_delay
        self._handlers: dict[type, list[Handler]] = defaultdict(list)
        self._queue: asyncio.Queue = asyncio.Queue()

    def subscribe(self, event_type: type, handler: Handler) -> None:
        self._handlers[event_type].append(handler)

    def handlers_for(self, event_type: type) -> list[Handler]:
        return list(self._handlers.get(event_type, []))

    def publish(self, event: Any) -> None:
        self._queue.put_nowait(event)
        logger.info("event_published", event_type=type(event).__name__, pending=self._queue.qsize())

    @property
    def pending(self) -> int:
        return self._queue.qsize()

    async def dispatch(self, event: Any) -> None:
        for handler in self.handlers_for(type(event)):
            await self._run_handler(handler, event)

    async def _run_handler(self, handler: Handler, event: Any) -> None:
        name = getattr(handler, "__name__", repr(handler))
        for attempt in range(1, self.max_attempts + 1):
            try:
                await handler(event)
                return
            except Exception as exc:
                logger.warning(
                    "event_handler_failed",
                    event_type=type(event).__name__,
                    handler=name,
                    attempt=attempt,
                    error=str(exc),
                )
                if attempt < self.max_attempts:
                    await asyncio.sleep(self.retry_delay)
        logger.error("event_handler_gave_up", event_type=type(event).__name__, handler=name)

    async def drain(self) -> int:
        """Deliver everything currently queued; returns the number of events."""
        processed = 0
        while not self._queue.empty():
            event = self._queue.get_nowait()
            try:
                await self.dispatch(event)
            finally:
                self._queue.task_done()
            processed += 1
        return processed

    async def run(self) -> None:
        logger.info("event_worker_started")
        while True:
            event = await self._queue.get()
            try:
                await self.dispatch(event)
            finally:
                self._queue.task_done()
