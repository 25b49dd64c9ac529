"""Tests for the durable key-value adapters."""

import asyncio
import json

import httpx
import pytest

from draw_sessions.adapters.redis_kv_store import RedisKeyValueStore
from draw_sessions.adapters.rest_kv_store import KeyValueCommandError, RestKeyValueStore


class FakeRedis:
    """Subset of the redis.asyncio client used by the adapter."""

    def __init__(self) -> None:
        self.values: dict[str, str] = {}
        self.ttls: dict[str, int | None] = {}
        self.closed = False

    async def get(self, key: str) -> str | None:
        return self.values.get(key)

    async def set(self, key: str, value: str, ex: int | None = None) -> bool:
        self.values[key] = value
        self.ttls[key] = ex
        return True

    async def delete(self, key: str) -> int:
        return 1 if self.values.pop(key, None) is not None else 0

    async def exists(self, key: str) -> int:
        return 1 if key in self.values else 0

    async def expire(self, key: str, seconds: int) -> bool:
        if key not in self.values:
            return False
        self.ttls[key] = seconds
        return True

    async def aclose(self) -> None:
        self.closed = True


def test_redis_store_round_trips_json() -> None:
    client = FakeRedis()
    store = RedisKeyValueStore(client=client)  # type: ignore[arg-type]

    async def scenario() -> list[object]:
        await store.set("session:A", {"id": "A", "version": 2}, ttl_seconds=7200)
        results: list[object] = [
            await store.get("session:A"),
            await store.exists("session:A"),
            await store.touch("session:A", 60),
            await store.touch("session:missing", 60),
        ]
        await store.delete("session:A")
        results.append(await store.get("session:A"))
        await store.close()
        return results

    results = asyncio.run(scenario())

    assert results == [{"id": "A", "version": 2}, True, True, False, None]
    assert client.ttls["session:A"] == 60
    assert client.closed is True


def test_redis_store_create_uses_url() -> None:
    store = RedisKeyValueStore.create("redis://localhost:6379/0")

    assert store.client is not None
    asyncio.run(store.close())


def _rest_store(handler) -> RestKeyValueStore:  # type: ignore[no-untyped-def]
    transport = httpx.MockTransport(handler)
    return RestKeyValueStore(
        base_url="https://kv.example.com",
        token="secret",
        http_client=httpx.AsyncClient(transport=transport),
    )


def test_rest_store_sends_commands() -> None:
    commands: list[list[object]] = []
    values: dict[str, str] = {}

    def handler(request: httpx.Request) -> httpx.Response:
        assert request.headers["Authorization"] == "Bearer secret"
        command = json.loads(request.content)
        commands.append(command)
        name, key = command[0], command[1]
        if name == "SET":
            values[key] = command[2]
            return httpx.Response(200, json={"result": "OK"})
        if name == "GET":
            return httpx.Response(200, json={"result": values.get(key)})
        if name == "EXISTS":
            return httpx.Response(200, json={"result": int(key in values)})
        if name == "EXPIRE":
            return httpx.Response(200, json={"result": int(key in values)})
        if name == "DEL":
            values.pop(key, None)
            return httpx.Response(200, json={"result": 1})
        return httpx.Response(400, json={"error": "unknown command"})

    store = _rest_store(handler)

    async def scenario() -> list[object]:
        await store.set("session:A", {"id": "A"}, ttl_seconds=7200)
        results: list[object] = [
            await store.get("session:A"),
            await store.exists("session:A"),
            await store.touch("session:A", 60),
        ]
        await store.delete("session:A")
        results.append(await store.get("session:A"))
        results.append(await store.touch("session:A", 60))
        await store.close()
        return results

    results = asyncio.run(scenario())

    assert results == [{"id": "A"}, True, True, None, False]
    assert commands[0] == ["SET", "session:A", json.dumps({"id": "A"}), "EX", 7200]


def test_rest_store_raises_on_command_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"error": "WRONGTYPE"})

    store = _rest_store(handler)

    with pytest.raises(KeyValueCommandError):
        asyncio.run(store.get("session:A"))


def test_rest_store_raises_on_http_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(401, json={"error": "Unauthorized"})

    store = _rest_store(handler)

    with pytest.raises(httpx.HTTPStatusError):
        asyncio.run(store.set("session:A", {"id": "A"}))


def test_rest_store_create_strips_trailing_slash() -> None:
    store = RestKeyValueStore.create("https://kv.example.com/", "token")

    assert store.base_url == "https://kv.example.com"
    asyncio.run(store.close())
