"""Shared test fixtures."""

import random
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest

from draw_sessions.adapters.file_session_store import FileSessionStore
from draw_sessions.config import Settings
from draw_sessions.containers import AppContainer
from draw_sessions.domain.sessions import Session
from draw_sessions.services.kv_store import InMemoryKeyValueStore, KeyValueStore
from draw_sessions.services.notifications import Notifier
from draw_sessions.services.registry import SessionRegistry
from draw_sessions.services.session_store import KeyValueSessionStore
from draw_sessions.services.sessions import SessionManager
from draw_sessions.services.sweeper import PeriodicSweeper


@dataclass
class FakeClock:
    """Controllable clock for expiry tests."""

    now: datetime = field(
        default_factory=lambda: datetime(2026, 1, 1, 12, 0, tzinfo=UTC)
    )

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


class UnavailableKeyValueStore(KeyValueStore):
    """Key-value store whose backend is always down."""

    async def get(self, key: str) -> object | None:
        raise ConnectionError("kv unavailable")

    async def set(
        self, key: str, value: object, ttl_seconds: int | None = None
    ) -> None:
        raise ConnectionError("kv unavailable")

    async def delete(self, key: str) -> None:
        raise ConnectionError("kv unavailable")

    async def exists(self, key: str) -> bool:
        raise ConnectionError("kv unavailable")

    async def touch(self, key: str, ttl_seconds: int) -> bool:
        raise ConnectionError("kv unavailable")


@dataclass(eq=False)
class RecordingSubscriber:
    """Subscriber callback that keeps every message it receives."""

    messages: list[str] = field(default_factory=list)

    def __call__(self, message: str) -> None:
        self.messages.append(message)


def build_manager(
    kv_store: KeyValueStore,
    file_store: FileSessionStore | None = None,
    clock: FakeClock | None = None,
    registry: SessionRegistry | None = None,
) -> SessionManager:
    resolved_registry = registry or SessionRegistry()
    return SessionManager(
        registry=resolved_registry,
        notifier=Notifier(resolved_registry),
        store=KeyValueSessionStore(kv=kv_store, ttl_seconds=7200),
        fallback_store=file_store,
        expiry_seconds=7200,
        rng=random.Random(1234),
        clock=clock or FakeClock(),
    )


def make_session(**overrides: object) -> Session:
    created = datetime(2026, 1, 1, 12, 0, tzinfo=UTC)
    values: dict[str, object] = {
        "id": "ABC123",
        "participant_count": 3,
        "created_at": created,
        "updated_at": created,
    }
    values.update(overrides)
    return Session(**values)  # type: ignore[arg-type]


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def kv_store() -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore()


@pytest.fixture
def file_store(tmp_path: Path) -> FileSessionStore:
    return FileSessionStore(directory=tmp_path / "sessions")


@pytest.fixture
def manager(
    kv_store: InMemoryKeyValueStore,
    file_store: FileSessionStore,
    clock: FakeClock,
) -> SessionManager:
    return build_manager(kv_store, file_store, clock)


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(
        kv_backend="memory",
        session_file_dir=str(tmp_path / "sessions"),
        stream_poll_seconds=0.05,
    )


@pytest.fixture
def container(settings: Settings, manager: SessionManager) -> AppContainer:
    sweeper = PeriodicSweeper(
        jobs=[manager.sweep_expired],
        interval_seconds=settings.sweep_interval_seconds,
    )

    async def close_resources() -> None:
        return None

    return AppContainer(
        settings=settings,
        session_manager=manager,
        sweeper=sweeper,
        close_resources=close_resources,
    )
