"""Fan-out of session events to live subscribers."""

import json
import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime

from draw_sessions.services.registry import SessionRegistry, Subscriber

_logger = logging.getLogger(__name__)


def encode_event(event: str, data: object, timestamp: datetime | None = None) -> str:
    """Serialize an event envelope the way subscribers receive it."""
    moment = timestamp or datetime.now(tz=UTC)
    return json.dumps({"event": event, "data": data, "timestamp": moment.isoformat()})


@dataclass
class Notifier:
    """Delivers serialized events to every subscriber of a session."""

    registry: SessionRegistry

    def subscribe(self, session_id: str, callback: Subscriber) -> Callable[[], None]:
        """Attach a callback and return a function that detaches it."""
        subscribers = self.registry.subscribers.get(session_id)
        if subscribers is None:
            _logger.warning("Subscribe to unknown session %s ignored", session_id)
            return lambda: None
        subscribers.add(callback)

        def unsubscribe() -> None:
            subscribers.discard(callback)

        return unsubscribe

    def broadcast(self, session_id: str, event: str, data: object) -> int:
        """Send an event to current subscribers; return how many received it."""
        subscribers = self.registry.subscribers.get(session_id)
        if not subscribers:
            return 0
        message = encode_event(event, data)
        delivered = 0
        for callback in list(subscribers):
            try:
                callback(message)
            except Exception:
                _logger.exception(
                    "Subscriber callback failed for session %s event %s",
                    session_id,
                    event,
                )
                continue
            delivered += 1
        return delivered
