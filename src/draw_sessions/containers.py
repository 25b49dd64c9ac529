"""Dependency container wiring for the application."""

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from functools import partial

from draw_sessions.adapters.file_session_store import FileSessionStore
from draw_sessions.adapters.redis_kv_store import RedisKeyValueStore
from draw_sessions.adapters.rest_kv_store import RestKeyValueStore
from draw_sessions.config import Settings, resolve_kv_backend
from draw_sessions.services.kv_store import InMemoryKeyValueStore, KeyValueStore
from draw_sessions.services.notifications import Notifier
from draw_sessions.services.registry import SessionRegistry
from draw_sessions.services.session_store import KeyValueSessionStore
from draw_sessions.services.sessions import SessionManager
from draw_sessions.services.sweeper import PeriodicSweeper, SweepJob

_logger = logging.getLogger(__name__)


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    session_manager: SessionManager
    sweeper: PeriodicSweeper
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    backend = resolve_kv_backend(resolved_settings)
    sweep_jobs: list[SweepJob] = []
    closers: list[Callable[[], Awaitable[None]]] = []

    kv_store: KeyValueStore
    if backend == "rest":
        rest_url = resolved_settings.kv_rest_api_url
        rest_token = resolved_settings.kv_rest_api_token
        if not (rest_url and rest_token):
            raise ValueError("KV_REST_API_URL and KV_REST_API_TOKEN are required")
        rest_store = RestKeyValueStore.create(rest_url, rest_token)
        closers.append(rest_store.close)
        kv_store = rest_store
    elif backend == "redis":
        if not resolved_settings.redis_url:
            raise ValueError("REDIS_URL is required for the redis backend")
        redis_store = RedisKeyValueStore.create(resolved_settings.redis_url)
        closers.append(redis_store.close)
        kv_store = redis_store
    else:
        memory_store = InMemoryKeyValueStore()
        sweep_jobs.append(memory_store.purge_expired)
        kv_store = memory_store
    _logger.info("Using %s key-value backend", backend)

    ttl_seconds = resolved_settings.session_ttl_seconds
    file_store = FileSessionStore.create(resolved_settings.session_file_dir)
    registry = SessionRegistry()
    session_manager = SessionManager(
        registry=registry,
        notifier=Notifier(registry),
        store=KeyValueSessionStore(kv=kv_store, ttl_seconds=ttl_seconds),
        fallback_store=file_store,
        expiry_seconds=ttl_seconds,
        heartbeat_save_interval_seconds=resolved_settings.sweep_interval_seconds,
    )
    sweeper = PeriodicSweeper(
        jobs=[
            session_manager.sweep_expired,
            partial(file_store.cleanup_expired, ttl_seconds),
            *sweep_jobs,
        ],
        interval_seconds=resolved_settings.sweep_interval_seconds,
    )

    async def close_resources() -> None:
        for close in closers:
            await close()

    return AppContainer(
        settings=resolved_settings,
        session_manager=session_manager,
        sweeper=sweeper,
        close_resources=close_resources,
    )
