"""
REST HTTP client for the storefront chat backend.
"""

import logging
import os
from typing import Any, Optional

import httpx

from trade_assistant.errors import TransportError

DEFAULT_BASE_URL = os.environ.get("TRADE_ASSISTANT_BASE_URL", "http://localhost:8081/api")
DEFAULT_TIMEOUT_S = 30.0

logger = logging.getLogger(__name__)


class HttpClient:
    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT_S,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._base_url = base_url.rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            headers={
                "User-Agent": "trade-assistant-sdk/0.1.0",
                "Accept": "application/json",
                "Content-Type": "application/json",
            },
            timeout=timeout,
            transport=transport,
        )

    async def _request(
        self,
        method: str,
        path: str,
        params: Optional[dict[str, Any]] = None,
        body: Optional[dict[str, Any]] = None,
    ) -> Any:
        logger.debug("%s %s params=%s", method, path, params)
        try:
            resp = await self._client.request(method, path, params=params, json=body)
        except httpx.HTTPError as e:
            raise TransportError(f"{method} {path} failed: {e}") from e
        if resp.status_code >= 400:
            raise TransportError(f"HTTP {resp.status_code}: {resp.text[:200]}", status_code=resp.status_code)
        # 204 / empty body is an empty result, not an error
        if resp.status_code == 204 or not resp.content:
            return None
        try:
            return resp.json()
        except ValueError as e:
            raise TransportError(f"Invalid JSON from {method} {path}: {resp.text[:200]}") from e

    async def get(self, path: str, params: Optional[dict[str, Any]] = None) -> Any:
        return await self._request("GET", path, params=params)

    async def post(
        self, path: str, body: Optional[dict[str, Any]] = None, params: Optional[dict[str, Any]] = None,
    ) -> Any:
        return await self._request("POST", path, params=params, body=body)

    async def put(
        self, path: str, body: Optional[dict[str, Any]] = None, params: Optional[dict[str, Any]] = None,
    ) -> Any:
        return await self._request("PUT", path, params=params, body=body)

    async def close(self) -> None:
        await self._client.aclose()
