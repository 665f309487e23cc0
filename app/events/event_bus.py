import asyncio
import inspect
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Dict, List, Optional, Set, Union

log = logging.getLogger("event_bus")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class DomainEvent:
    """An immutable fact broadcast after a state change."""
    event_name: str
    payload: Dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=_utcnow)
    correlation_id: Optional[str] = None


EventHandler = Callable[[DomainEvent], Union[Awaitable[None], None]]


class EventBus:
    """
    In-process publish/subscribe register.

    Delivery is at-most-once and best-effort: handlers registered after a publish
    never see it, nothing is persisted, and a failing handler is logged, not retried.
    One instance is built at application start-up and handed to every service that
    publishes or subscribes.
    """

    def __init__(self) -> None:
        self._handlers: Dict[str, List[EventHandler]] = {}
        self._detached: Set[asyncio.Task] = set()

    def subscribe(self, event_name: str, handler: EventHandler) -> None:
        self._handlers.setdefault(event_name, []).append(handler)

    def handlers_for(self, event_name: str) -> List[EventHandler]:
        return list(self._handlers.get(event_name, []))

    async def publish(self, event: DomainEvent) -> None:
        """
        Invokes every handler subscribed under `event.event_name` concurrently and
        waits for all of them to settle. Handler failures never reach the publisher.
        """
        handlers = self.handlers_for(event.event_name)
        if not handlers:
            return

        results = await asyncio.gather(
            *(self._invoke(handler, event) for handler in handlers),
            return_exceptions=True,
        )
        for handler, result in zip(handlers, results):
            if isinstance(result, BaseException):
                log.error(
                    f"Handler {getattr(handler, '__qualname__', handler)!s} failed for "
                    f"{event.event_name} (correlation_id={event.correlation_id}): {result!r}"
                )

    def publish_detached(self, event: DomainEvent) -> asyncio.Task:
        """
        Schedules `publish` without awaiting it. The caller's latency and outcome
        are independent of handler delivery.
        """
        task = asyncio.create_task(self.publish(event), name=f"event:{event.event_name}")
        self._detached.add(task)
        task.add_done_callback(self._on_detached_done)
        return task

    @property
    def pending(self) -> int:
        return len(self._detached)

    async def drain(self) -> None:
        """Waits for all detached publishes scheduled so far to settle."""
        while self._detached:
            tasks = list(self._detached)
            await asyncio.gather(*tasks, return_exceptions=True)
            self._detached.difference_update(tasks)

    def _on_detached_done(self, task: asyncio.Task) -> None:
        self._detached.discard(task)
        if task.cancelled():
            log.warning(f"Detached publish {task.get_name()} was cancelled.")
        elif task.exception() is not None:
            log.error(f"Detached publish {task.get_name()} failed: {task.exception()!r}")

    @staticmethod
    async def _invoke(handler: EventHandler, event: DomainEvent) -> None:
        result = handler(event)
        if inspect.isawaitable(result):
            await result
