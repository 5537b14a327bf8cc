"""Event bus for idle and inhibitor notifications."""

from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, DefaultDict, List, Optional, Type
import asyncio
import logging

logger = logging.getLogger(__name__)


@dataclass
class Event:
    """Base event class.

    Note: All fields have defaults to allow subclasses to add required fields.
    """
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    source: str = "agent"


@dataclass
class IdleStateChanged(Event):
    """Idle status transition (warming_up / active / idle)."""
    old_status: str = ""
    new_status: str = ""
    idle_for_seconds: int = 0
    gating_reasons: List[str] = field(default_factory=list)


@dataclass
class InhibitorsChanged(Event):
    """Set of active sleep inhibitors changed."""
    active: bool = False
    inhibitors: List[str] = field(default_factory=list)


class EventBus:
    """Fan-out of agent events to listeners.

    Publishing never blocks the control loop: when the queue is full the
    event is dropped and counted. Handlers subscribed to a base class also
    receive its subclasses.
    """

    def __init__(self, max_queue_size: int = 100):
        self._handlers: DefaultDict[Type[Event], List[Callable]] = defaultdict(list)
        self._queue: asyncio.Queue = asyncio.Queue(maxsize=max_queue_size)
        self._task: Optional[asyncio.Task] = None
        self.dropped_events = 0
        logger.debug(f"Event bus created (max_queue_size={max_queue_size})")

    def subscribe(self, event_type: Type[Event], handler: Callable):
        self._handlers[event_type].append(handler)
        logger.debug(f"Subscribed {getattr(handler, '__name__', handler)} to {event_type.__name__}")

    def unsubscribe(self, event_type: Type[Event], handler: Callable):
        if handler in self._handlers.get(event_type, []):
            self._handlers[event_type].remove(handler)

    async def publish(self, event: Event):
        try:
            self._queue.put_nowait(event)
        except asyncio.QueueFull:
            self.dropped_events += 1
            logger.warning(
                f"Event queue full, dropped {type(event).__name__} "
                f"(dropped_total={self.dropped_events})"
            )

    async def start(self):
        if self._task is None:
            self._task = asyncio.create_task(self._process_events())
            logger.info("Event bus started")

    async def stop(self):
        """Cancel the worker, then deliver whatever is still queued."""
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None

        pending = 0
        while not self._queue.empty():
            await self._dispatch(self._queue.get_nowait())
            pending += 1
        logger.info(f"Event bus stopped (drained={pending})")

    async def _process_events(self):
        while True:
            event = await self._queue.get()
            await self._dispatch(event)

    def _handlers_for(self, event: Event) -> List[Callable]:
        handlers: List[Callable] = []
        for event_type in type(event).__mro__:
            handlers.extend(self._handlers.get(event_type, []))
        return handlers

    async def _dispatch(self, event: Event):
        event_name = type(event).__name__
        for handler in self._handlers_for(event):
            try:
                result = handler(event)
                if asyncio.iscoroutine(result):
                    await result
            except Exception as e:
                logger.error(
                    f"Handler {getattr(handler, '__name__', handler)} failed for {event_name}: {e}",
                    exc_info=True
                )
