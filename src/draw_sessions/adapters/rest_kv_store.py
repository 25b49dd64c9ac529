"""Vercel KV / Upstash REST key-value store adapter."""

import json
from dataclasses import dataclass

import httpx

from draw_sessions.services.kv_store import KeyValueStore


class KeyValueCommandError(RuntimeError):
    """Raised when the REST endpoint reports a command error."""


@dataclass
class RestKeyValueStore(KeyValueStore):
    """Key-value store speaking the Redis-over-REST command API."""

    base_url: str
    token: str
    http_client: httpx.AsyncClient

    @classmethod
    def create(cls, base_url: str, token: str) -> "RestKeyValueStore":
        """Create a store with a managed httpx session."""
        return cls(
            base_url=base_url.rstrip("/"),
            token=token,
            http_client=httpx.AsyncClient(),
        )

    async def get(self, key: str) -> object | None:
        raw = await self._command("GET", key)
        if raw is None:
            return None
        return json.loads(raw) if isinstance(raw, str) else raw

    async def set(
        self, key: str, value: object, ttl_seconds: int | None = None
    ) -> None:
        command: list[object] = ["SET", key, json.dumps(value)]
        if ttl_seconds is not None:
            command.extend(["EX", ttl_seconds])
        await self._command(*command)

    async def delete(self, key: str) -> None:
        await self._command("DEL", key)

    async def exists(self, key: str) -> bool:
        return await self._command("EXISTS", key) == 1

    async def touch(self, key: str, ttl_seconds: int) -> bool:
        return await self._command("EXPIRE", key, ttl_seconds) == 1

    async def close(self) -> None:
        """Close the underlying HTTP client session."""
        await self.http_client.aclose()

    async def _command(self, *command: object) -> object:
        """Send a single command and return its ``result`` field."""
        response = await self.http_client.post(
            self.base_url,
            json=list(command),
            headers={"Authorization": f"Bearer {self.token}"},
            timeout=10,
        )
        response.raise_for_status()
        payload = response.json()
        if "error" in payload:
            raise KeyValueCommandError(str(payload["error"]))
        return payload.get("result")
