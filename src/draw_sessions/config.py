"""Application configuration."""

import os

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")

KV_BACKENDS = {"memory", "redis", "rest"}


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    kv_backend: str | None = None
    kv_rest_api_url: str | None = None
    kv_rest_api_token: str | None = None
    redis_url: str | None = None
    session_ttl_seconds: int = 7200
    sweep_interval_seconds: int = 300
    session_file_dir: str = ".sessions"
    stream_poll_seconds: float = 15.0
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )


def resolve_kv_backend(settings: Settings) -> str:
    """Pick the key-value backend from the configured environment."""
    if settings.kv_backend is not None:
        backend = settings.kv_backend.strip().lower()
        if backend not in KV_BACKENDS:
            raise ValueError(f"Unknown KV backend: {settings.kv_backend}")
        return backend
    if settings.kv_rest_api_url and settings.kv_rest_api_token:
        return "rest"
    if settings.redis_url:
        return "redis"
    return "memory"
