"""Tests for container wiring."""

import asyncio

import pytest

from draw_sessions.adapters.file_session_store import FileSessionStore
from draw_sessions.adapters.redis_kv_store import RedisKeyValueStore
from draw_sessions.adapters.rest_kv_store import RestKeyValueStore
from draw_sessions.config import Settings
from draw_sessions.containers import build_container
from draw_sessions.services.kv_store import InMemoryKeyValueStore


def test_build_container_uses_memory_backend(settings: Settings) -> None:
    container = build_container(settings)

    manager = container.session_manager
    kv = manager.store.kv  # type: ignore[attr-defined]
    assert isinstance(kv, InMemoryKeyValueStore)
    assert isinstance(manager.fallback_store, FileSessionStore)
    assert manager.expiry_seconds == 7200
    assert manager.heartbeat_save_interval_seconds == 300
    assert len(container.sweeper.jobs) == 3
    asyncio.run(container.close_resources())


def test_build_container_uses_redis_backend(settings: Settings) -> None:
    settings.kv_backend = "redis"
    settings.redis_url = "redis://localhost:6379/0"

    container = build_container(settings)

    kv = container.session_manager.store.kv  # type: ignore[attr-defined]
    assert isinstance(kv, RedisKeyValueStore)
    assert len(container.sweeper.jobs) == 2
    asyncio.run(container.close_resources())


def test_build_container_uses_rest_backend(settings: Settings) -> None:
    settings.kv_backend = None
    settings.kv_rest_api_url = "https://kv.example.com"
    settings.kv_rest_api_token = "token"

    container = build_container(settings)

    kv = container.session_manager.store.kv  # type: ignore[attr-defined]
    assert isinstance(kv, RestKeyValueStore)
    asyncio.run(container.close_resources())


def test_build_container_requires_redis_url(settings: Settings) -> None:
    settings.kv_backend = "redis"
    settings.redis_url = None

    with pytest.raises(ValueError):
        build_container(settings)
