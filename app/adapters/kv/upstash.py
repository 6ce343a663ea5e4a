"""Upstash Redis REST adapter.

Commands are sent as JSON arrays (``["SET", "k", "v", "EX", 60]``) to the
REST endpoint with a bearer token. Responses are ``{"result": ...}`` on
success and ``{"error": "..."}`` on failure.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from app.adapters.kv.base import AbstractKeyValueStore
from app.core.errors import StoreAppError

logger = logging.getLogger(__name__)


class UpstashRestStore(AbstractKeyValueStore):
    """Key-value store backed by the Upstash Redis REST API."""

    def __init__(self, url: str, token: str, *, timeout_seconds: float = 5.0) -> None:
        if not url or not token:
            raise ValueError("url and token are required")
        self._url = url.rstrip("/")
        self._headers = {
            "Authorization": f"Bearer {token}",
            "Content-Type": "application/json",
        }
        self._timeout = timeout_seconds

    def __repr__(self) -> str:  # pragma: no cover - representation only
        return f"UpstashRestStore(url={self._url!r})"

    def _make_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self._url,
            headers=self._headers,
            timeout=self._timeout,
        )

    def _raise_for_error(self, resp: httpx.Response, operation: str) -> Any:
        try:
            data = resp.json()
        except ValueError as exc:
            raise StoreAppError(
                code="store_bad_response",
                message=f"{operation}: non-JSON response (HTTP {resp.status_code})",
                details={"operation": operation, "http_status": resp.status_code},
            ) from exc

        if resp.status_code >= 400 or (isinstance(data, dict) and "error" in data):
            error = data.get("error") if isinstance(data, dict) else None
            raise StoreAppError(
                code="store_command_failed",
                message=f"{operation}: {error or f'HTTP {resp.status_code}'}",
                details={"operation": operation, "http_status": resp.status_code},
            )
        return data

    async def _post(self, path: str, body: list[Any], operation: str) -> Any:
        try:
            async with self._make_client() as client:
                resp = await client.post(path, json=body)
        except httpx.HTTPError as exc:
            logger.warning(
                "store.transport_error",
                extra={"operation": operation, "error_type": type(exc).__name__},
            )
            raise StoreAppError(
                code="store_unreachable",
                message=f"{operation}: key-value store unreachable",
                details={"operation": operation},
            ) from exc
        return self._raise_for_error(resp, operation)

    async def execute(self, *command: Any) -> Any:
        """Run a single command and return its ``result`` field."""
        operation = str(command[0]).lower()
        data = await self._post("", list(command), operation)
        return data.get("result")

    async def transaction(self, *commands: list[Any]) -> list[Any]:
        """Run commands atomically through the ``/multi-exec`` endpoint."""
        operation = "multi_exec:" + ",".join(str(c[0]).lower() for c in commands)
        data = await self._post("/multi-exec", [list(c) for c in commands], operation)
        results: list[Any] = []
        for item in data:
            if "error" in item:
                raise StoreAppError(
                    code="store_command_failed",
                    message=f"{operation}: {item['error']}",
                    details={"operation": operation},
                )
            results.append(item.get("result"))
        return results

    async def get(self, key: str) -> str | None:
        result = await self.execute("GET", key)
        return None if result is None else str(result)

    async def set(self, key: str, value: str, ttl_seconds: int | None = None) -> None:
        if ttl_seconds is None:
            await self.execute("SET", key, value)
        else:
            await self.execute("SET", key, value, "EX", ttl_seconds)

    async def keys(self, pattern: str) -> list[str]:
        result = await self.execute("KEYS", pattern)
        return [str(k) for k in result or []]

    async def delete(self, key: str) -> None:
        await self.execute("DEL", key)

    async def incr(self, key: str, ttl_seconds: int) -> int:
        # SET NX seeds the counter with its expiry only when it does not exist yet.
        _, value = await self.transaction(
            ["SET", key, "0", "EX", ttl_seconds, "NX"],
            ["INCR", key],
        )
        return int(value)

    async def decr(self, key: str) -> int:
        return int(await self.execute("DECR", key))
