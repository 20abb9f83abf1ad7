"""In-process publish/subscribe for state changes.

Services publish after a successful commit. Subscribers recompute derived
state (stats) or forward the event to the user's realtime room.
"""
import logging
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List

logger = logging.getLogger(__name__)

CHALLENGES_UPDATED = "challenges.updated"
CHECK_IN_RECORDED = "check_in.recorded"
MILESTONE_REACHED = "milestone.reached"
STATS_UPDATED = "stats.updated"
SUBSCRIPTION_UPDATED = "subscription.updated"
NOTIFICATION_SENT = "notification"


@dataclass
class Event:
    topic: str
    user_id: int
    payload: Dict[str, Any] = field(default_factory=dict)
    published_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


Handler = Callable[[Event], None]


class EventBus:
    """Synchronous topic-based bus. Handlers run in publish order."""

    def __init__(self):
        self._handlers: Dict[str, List[Handler]] = defaultdict(list)
        self._wildcard: List[Handler] = []

    def subscribe(self, topic: str, handler: Handler) -> None:
        if topic == "*":
            self._wildcard.append(handler)
        else:
            self._handlers[topic].append(handler)

    def unsubscribe(self, topic: str, handler: Handler) -> None:
        handlers = self._wildcard if topic == "*" else self._handlers.get(topic, [])
        if handler in handlers:
            handlers.remove(handler)

    def publish(self, topic: str, user_id: int, payload: Dict[str, Any] = None) -> Event:
        event = Event(topic=topic, user_id=user_id, payload=payload or {})
        for handler in list(self._handlers.get(topic, [])) + list(self._wildcard):
            try:
                handler(event)
            except Exception:
                # a failing subscriber must not undo a committed write
                logger.exception("Event handler failed for %s", topic)
        return event


def user_room(user_id):
    return f"user:{user_id}"


def socketio_bridge(socketio):
    """Build a wildcard handler that forwards events to the user's room."""

    def forward(event: Event):
        socketio.emit(event.topic, event.payload, to=user_room(event.user_id))

    return forward
