"""Server-sent events transport for live session updates."""

import asyncio
import logging
from collections.abc import AsyncIterator, Awaitable, Callable
from dataclasses import dataclass

from draw_sessions.domain.records import session_view
from draw_sessions.domain.sessions import Session
from draw_sessions.services.notifications import encode_event
from draw_sessions.services.sessions import SessionManager

STREAM_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}

_logger = logging.getLogger(__name__)


def format_sse(message: str) -> str:
    """Frame a serialized event as a server-sent events data block."""
    return f"data: {message}\n\n"


@dataclass
class SessionEventStream:
    """Replays current state, then forwards broadcasts until disconnect."""

    manager: SessionManager
    session: Session
    is_disconnected: Callable[[], Awaitable[bool]]
    poll_interval_seconds: float = 15.0

    async def events(self) -> AsyncIterator[str]:
        """Yield SSE frames; unsubscribes on every exit path."""
        queue: asyncio.Queue[str] = asyncio.Queue()
        unsubscribe = self.manager.subscribe(self.session.id, queue.put_nowait)
        _logger.info("Stream opened for session %s", self.session.id)
        try:
            yield format_sse(encode_event("session-state", session_view(self.session)))
            while True:
                try:
                    message = await asyncio.wait_for(
                        queue.get(), timeout=self.poll_interval_seconds
                    )
                except TimeoutError:
                    if await self.is_disconnected():
                        break
                    continue
                yield format_sse(message)
        finally:
            unsubscribe()
            _logger.info("Stream closed for session %s", self.session.id)
