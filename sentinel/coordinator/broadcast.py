"""
In-process event fan-out to observers.

Publishing never blocks the pipeline: each subscriber owns a bounded queue
and a full queue drops its oldest frame.
"""

import asyncio
from typing import Any, Dict, List
import logging

from sentinel.models.submission import SubmissionRecord

logger = logging.getLogger(__name__)

EVENT_STATUS = "agent_status"
EVENT_VERIFIED = "agent_verified"


class Subscription:
    """A single observer's queue of events."""

    def __init__(self, broadcaster: "EventBroadcaster", maxsize: int):
        self._broadcaster = broadcaster
        self.queue: asyncio.Queue = asyncio.Queue(maxsize=maxsize)
        self.dropped = 0

    def deliver(self, event: Dict[str, Any]):
        if self.queue.full():
            self.queue.get_nowait()
            self.dropped += 1
        self.queue.put_nowait(event)

    async def get(self) -> Dict[str, Any]:
        return await self.queue.get()

    def unsubscribe(self):
        self._broadcaster.unsubscribe(self)

    def __aiter__(self):
        return self

    async def __anext__(self) -> Dict[str, Any]:
        return await self.get()


class EventBroadcaster:
    """Fan-out of record events to every subscriber."""

    def __init__(self, queue_size: int = 100):
        if queue_size < 1:
            raise ValueError("queue_size must be >= 1")
        self.queue_size = queue_size
        self._subscribers: List[Subscription] = []

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def subscribe(self) -> Subscription:
        subscription = Subscription(self, self.queue_size)
        self._subscribers.append(subscription)
        logger.debug(f"Observer subscribed ({len(self._subscribers)} total)")
        return subscription

    def unsubscribe(self, subscription: Subscription):
        if subscription in self._subscribers:
            self._subscribers.remove(subscription)
            logger.debug(f"Observer unsubscribed ({len(self._subscribers)} total)")

    def publish(self, event: str, record: SubmissionRecord) -> Dict[str, Any]:
        """
        Send a snapshot of ``record`` to every subscriber.

        Returns:
            The published event payload
        """
        payload = {"event": event, "id": record.id, "record": record.to_event()}
        for subscription in list(self._subscribers):
            subscription.deliver(payload)
        return payload
