"""Tests for configuration helpers."""

import pytest

from draw_sessions.config import Settings, resolve_kv_backend


def _settings(**overrides: object) -> Settings:
    values: dict[str, object] = {
        "kv_backend": None,
        "kv_rest_api_url": None,
        "kv_rest_api_token": None,
        "redis_url": None,
    }
    values.update(overrides)
    return Settings(**values)  # type: ignore[arg-type]


def test_defaults_to_memory_backend() -> None:
    assert resolve_kv_backend(_settings()) == "memory"


def test_rest_backend_needs_url_and_token() -> None:
    assert resolve_kv_backend(_settings(kv_rest_api_url="https://kv")) == "memory"
    assert (
        resolve_kv_backend(
            _settings(kv_rest_api_url="https://kv", kv_rest_api_token="t")
        )
        == "rest"
    )


def test_redis_backend_from_url() -> None:
    assert resolve_kv_backend(_settings(redis_url="redis://localhost")) == "redis"


def test_explicit_backend_wins() -> None:
    settings = _settings(kv_backend=" Memory ", redis_url="redis://localhost")

    assert resolve_kv_backend(settings) == "memory"


def test_unknown_backend_is_rejected() -> None:
    with pytest.raises(ValueError):
        resolve_kv_backend(_settings(kv_backend="dynamo"))


def test_session_defaults() -> None:
    settings = _settings()

    assert settings.session_ttl_seconds == 7200
    assert settings.sweep_interval_seconds == 300
