"""Filesystem-backed session store used as a persistence fallback."""

import asyncio
import json
import logging
import os
import time
from dataclasses import dataclass
from pathlib import Path

from draw_sessions.domain.records import session_from_record, session_to_record
from draw_sessions.domain.sessions import Session
from draw_sessions.services.session_store import SessionStore

_logger = logging.getLogger(__name__)


@dataclass
class FileSessionStore(SessionStore):
    """Stores one JSON file per session under ``directory``."""

    directory: Path

    @classmethod
    def create(cls, directory: str) -> "FileSessionStore":
        """Create a store rooted at the given directory path."""
        return cls(directory=Path(directory))

    async def load(self, session_id: str) -> Session | None:
        """Load a session file, if present."""
        record = await asyncio.to_thread(self._read, session_id)
        if record is None:
            return None
        return session_from_record(record)

    async def save(self, session: Session) -> bool:
        """Overwrite the session file with the current snapshot."""
        payload = json.dumps(session_to_record(session), indent=2)
        await asyncio.to_thread(self._write, session.id, payload)
        return True

    async def delete(self, session_id: str) -> None:
        await asyncio.to_thread(self._path(session_id).unlink, missing_ok=True)

    async def touch(self, session_id: str) -> bool:
        """Bump the file's modification time so cleanup keeps it."""
        return await asyncio.to_thread(self._touch, session_id)

    async def cleanup_expired(self, max_age_seconds: float) -> list[str]:
        """Delete session files older than ``max_age_seconds``."""
        removed = await asyncio.to_thread(self._cleanup, max_age_seconds)
        for session_id in removed:
            _logger.info("Cleaned up expired session file: %s", session_id)
        return removed

    def _path(self, session_id: str) -> Path:
        return self.directory / f"{session_id}.json"

    def _read(self, session_id: str) -> dict[str, object] | None:
        path = self._path(session_id)
        if not path.exists():
            return None
        return json.loads(path.read_text(encoding="utf-8"))

    def _write(self, session_id: str, payload: str) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        self._path(session_id).write_text(payload, encoding="utf-8")

    def _touch(self, session_id: str) -> bool:
        path = self._path(session_id)
        if not path.exists():
            return False
        os.utime(path)
        return True

    def _cleanup(self, max_age_seconds: float) -> list[str]:
        if not self.directory.exists():
            return []
        now = time.time()
        removed: list[str] = []
        for path in self.directory.glob("*.json"):
            if now - path.stat().st_mtime > max_age_seconds:
                path.unlink(missing_ok=True)
                removed.append(path.stem)
        return removed
