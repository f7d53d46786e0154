"""
Session event delivery.

The core publishes live events (transcripts, answers, errors) through
:class:`EventSink`. :class:`SessionEventBroker` fans them out to in-process
subscribers, which the API exposes as a Server-Sent Events stream.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, AsyncIterator, Dict, Set

logger = logging.getLogger(__name__)


class EventSink(ABC):
    """Destination for live session events."""

    @abstractmethod
    async def publish(self, session_id: str, event: Dict[str, Any]) -> None:
        """Deliver ``event`` to whoever follows ``session_id``. Must not raise."""
        pass


class NullEventSink(EventSink):
    """Drops every event."""

    async def publish(self, session_id: str, event: Dict[str, Any]) -> None:
        return None


class SessionEventBroker(EventSink):
    """
    In-memory publish/subscribe hub keyed by session id.

    Each subscriber gets its own bounded queue; when a slow subscriber's queue
    is full the oldest event is dropped so publishers never block.
    """

    def __init__(self, max_queue_size: int = 100):
        self.max_queue_size = max_queue_size
        self._subscribers: Dict[str, Set[asyncio.Queue]] = {}

    async def publish(self, session_id: str, event: Dict[str, Any]) -> None:
        event = {"timestamp": datetime.now(timezone.utc).isoformat(), **event}
        for queue in list(self._subscribers.get(session_id, ())):
            if queue.full():
                queue.get_nowait()
                logger.warning(f"Event queue full for session {session_id}, dropped oldest event")
            queue.put_nowait(event)

    @asynccontextmanager
    async def subscribe(self, session_id: str) -> AsyncIterator[asyncio.Queue]:
        """Register a subscriber queue for the lifetime of the context."""
        queue: asyncio.Queue = asyncio.Queue(maxsize=self.max_queue_size)
        self._subscribers.setdefault(session_id, set()).add(queue)
        try:
            yield queue
        finally:
            subscribers = self._subscribers.get(session_id)
            if subscribers is not None:
                subscribers.discard(queue)
                if not subscribers:
                    del self._subscribers[session_id]

    def subscriber_count(self, session_id: str) -> int:
        return len(self._subscribers.get(session_id, ()))
