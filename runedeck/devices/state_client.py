"""Async client for the RuneLite status endpoint (pull mode)."""

from __future__ import annotations

import asyncio

import httpx
from pydantic import ValidationError

from runedeck.api.schemas import parse_state
from runedeck.core.state import StateSnapshot


class StateSourceError(RuntimeError):
    """Raised when the status endpoint is unreachable or returns garbage."""


class StateClient:
    """Fetches one StateSnapshot per call with a hard overall timeout."""

    def __init__(
        self,
        url: str,
        timeout_s: float = 1.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._url = url
        self._timeout_s = timeout_s
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    @property
    def url(self) -> str:
        return self._url

    async def start(self) -> None:
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self._timeout_s,
                transport=self._transport,
            )

    async def stop(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def fetch(self) -> StateSnapshot:
        client = self._require_client()
        try:
            resp = await asyncio.wait_for(client.get(self._url), timeout=self._timeout_s)
        except asyncio.TimeoutError as e:
            raise StateSourceError(f"timed out after {self._timeout_s:.1f}s") from e
        except httpx.HTTPError as e:
            msg = str(e).strip() or e.__class__.__name__
            raise StateSourceError(f"request failed: {msg}") from e

        if resp.status_code != 200:
            raise StateSourceError(f"{self._url} returned {resp.status_code}")

        try:
            body = resp.json()
        except ValueError as e:
            raise StateSourceError("invalid JSON response") from e

        try:
            return parse_state(body)
        except ValidationError as e:
            raise StateSourceError(f"invalid state payload: {e.error_count()} error(s)") from e

    def _require_client(self) -> httpx.AsyncClient:
        if self._client is None:
            raise RuntimeError("state client not started")
        return self._client
