"""Process-wide registry of live sessions and their subscribers."""

from collections.abc import Callable
from dataclasses import dataclass, field

from draw_sessions.domain.sessions import Session

Subscriber = Callable[[str], None]


@dataclass
class SessionRegistry:
    """Owns the in-memory session map and per-session subscriber sets.

    All access happens on the event loop thread, so no locking is needed.
    """

    sessions: dict[str, Session] = field(default_factory=dict)
    subscribers: dict[str, set[Subscriber]] = field(default_factory=dict)

    def get(self, session_id: str) -> Session | None:
        return self.sessions.get(session_id)

    def add(self, session: Session) -> None:
        """Register a session, keeping any subscribers already attached."""
        self.sessions[session.id] = session
        self.subscribers.setdefault(session.id, set())

    def remove(self, session_id: str) -> None:
        self.sessions.pop(session_id, None)
        self.subscribers.pop(session_id, None)

    def __contains__(self, session_id: object) -> bool:
        return session_id in self.sessions
