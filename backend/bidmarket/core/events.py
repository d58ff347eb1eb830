"""In-process event bus feeding the Server-Sent Events stream."""

import asyncio
import logging
from typing import Dict, Any, AsyncGenerator

from bidmarket.core.clock import utcnow

logger = logging.getLogger(__name__)


class EventBus:
    """
    Fan-out pub/sub over one asyncio.Queue per subscriber.

    Events are published only after the database transaction that produced
    them has committed, so subscribers never observe a half-applied settlement.
    """

    def __init__(self):
        self._subscribers: list[asyncio.Queue] = []

    async def publish(self, event_type: str, data: Dict[str, Any]) -> None:
        """
        Publish an event to all subscribers.

        Args:
            event_type: Type of event (e.g., "bid_submitted", "bid_accepted")
            data: Event payload data
        """
        event = {
            "type": event_type,
            "data": data,
            "timestamp": utcnow().isoformat()
        }

        for queue in list(self._subscribers):
            queue.put_nowait(event)

        logger.debug(f"Published {event_type} to {len(self._subscribers)} subscriber(s)")

    async def subscribe(self) -> AsyncGenerator[Dict[str, Any], None]:
        """
        Subscribe to events and receive them as an async generator.

        Yields:
            Event dictionaries containing type, data, and timestamp

        Usage:
            async for event in event_bus.subscribe():
                print(event)
        """
        queue: asyncio.Queue = asyncio.Queue()
        self._subscribers.append(queue)

        try:
            while True:
                event = await queue.get()
                yield event
        finally:
            # Client disconnected or generator closed
            if queue in self._subscribers:
                self._subscribers.remove(queue)


# Global event bus instance
event_bus = EventBus()
