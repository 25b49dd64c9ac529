"""Key-value store abstractions."""

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Protocol


class KeyValueStore(Protocol):
    """Store interface for JSON-compatible values with optional expiry."""

    async def get(self, key: str) -> object | None:
        """Return a stored value if present and not expired."""

    async def set(
        self, key: str, value: object, ttl_seconds: int | None = None
    ) -> None:
        """Store a value, expiring it after ``ttl_seconds`` when given."""

    async def delete(self, key: str) -> None:
        """Remove a value if present."""

    async def exists(self, key: str) -> bool:
        """Return whether a live value is stored under the key."""

    async def touch(self, key: str, ttl_seconds: int) -> bool:
        """Reset the expiry of an existing key; False when the key is absent."""


@dataclass
class _Entry:
    value: object
    expires_at: datetime | None


@dataclass
class InMemoryKeyValueStore(KeyValueStore):
    """Process-local store used when no durable backend is configured."""

    _entries: dict[str, _Entry]

    def __init__(self) -> None:
        self._entries = {}

    async def get(self, key: str) -> object | None:
        """Return a stored value if it hasn't expired."""
        entry = self._live_entry(key)
        return entry.value if entry else None

    async def set(
        self, key: str, value: object, ttl_seconds: int | None = None
    ) -> None:
        """Store a value with an optional TTL."""
        self._entries[key] = _Entry(value=value, expires_at=_expiry(ttl_seconds))

    async def delete(self, key: str) -> None:
        self._entries.pop(key, None)

    async def exists(self, key: str) -> bool:
        return self._live_entry(key) is not None

    async def touch(self, key: str, ttl_seconds: int) -> bool:
        """Push the expiry of a live key forward."""
        entry = self._live_entry(key)
        if entry is None:
            return False
        entry.expires_at = _expiry(ttl_seconds)
        return True

    async def purge_expired(self) -> int:
        """Drop every expired entry and return how many were removed."""
        now = datetime.now(tz=UTC)
        expired = [
            key
            for key, entry in self._entries.items()
            if entry.expires_at is not None and now >= entry.expires_at
        ]
        for key in expired:
            self._entries.pop(key, None)
        return len(expired)

    def _live_entry(self, key: str) -> _Entry | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if entry.expires_at is not None and datetime.now(tz=UTC) >= entry.expires_at:
            self._entries.pop(key, None)
            return None
        return entry


def _expiry(ttl_seconds: int | None) -> datetime | None:
    if ttl_seconds is None:
        return None
    return datetime.now(tz=UTC) + timedelta(seconds=ttl_seconds)
