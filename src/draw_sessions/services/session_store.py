"""Persistence of session snapshots."""

import logging
from dataclasses import dataclass
from typing import Protocol

from draw_sessions.domain.records import session_from_record, session_to_record
from draw_sessions.domain.sessions import Session
from draw_sessions.services.kv_store import KeyValueStore

SESSION_PREFIX = "session:"

_logger = logging.getLogger(__name__)


class SessionStore(Protocol):
    """Persistence interface for session snapshots."""

    async def load(self, session_id: str) -> Session | None:
        """Return a stored session, if present."""

    async def save(self, session: Session) -> bool:
        """Persist a session; False when the write was rejected."""

    async def delete(self, session_id: str) -> None:
        """Remove a stored session."""

    async def touch(self, session_id: str) -> bool:
        """Refresh the stored session's lifetime; False when it is not stored."""


def session_key(session_id: str) -> str:
    return f"{SESSION_PREFIX}{session_id}"


@dataclass
class KeyValueSessionStore(SessionStore):
    """Session store on top of a key-value backend with version checks."""

    kv: KeyValueStore
    ttl_seconds: int = 7200

    async def load(self, session_id: str) -> Session | None:
        """Load and decode a session record."""
        record = await self.kv.get(session_key(session_id))
        if not isinstance(record, dict):
            return None
        return session_from_record(record)

    async def save(self, session: Session) -> bool:
        """Write the session unless the stored copy is at least as new.

        The check is read-then-write, so it detects conflicts between
        instances but cannot prevent them.
        """
        key = session_key(session.id)
        current = await self.kv.get(key)
        if isinstance(current, dict):
            stored_version = int(current.get("version", 0))
            if stored_version >= session.version:
                _logger.warning(
                    "Version conflict for session %s: stored=%s local=%s",
                    session.id,
                    stored_version,
                    session.version,
                )
                return False
        await self.kv.set(key, session_to_record(session), ttl_seconds=self.ttl_seconds)
        return True

    async def delete(self, session_id: str) -> None:
        await self.kv.delete(session_key(session_id))

    async def touch(self, session_id: str) -> bool:
        return await self.kv.touch(session_key(session_id), self.ttl_seconds)
