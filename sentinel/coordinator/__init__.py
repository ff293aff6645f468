"""Submission pipeline coordination, record storage and event fan-out."""

from sentinel.coordinator.broadcast import EVENT_STATUS, EVENT_VERIFIED, EventBroadcaster, Subscription
from sentinel.coordinator.coordinator import SubmissionCoordinator
from sentinel.coordinator.store import RecordStore

__all__ = [
    "EVENT_STATUS",
    "EVENT_VERIFIED",
    "EventBroadcaster",
    "Subscription",
    "SubmissionCoordinator",
    "RecordStore",
]
