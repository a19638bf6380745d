"""httpx-backed transport for the LLMango backend and OpenRouter."""

from __future__ import annotations

import logging
import time
from typing import Any

import httpx

from mango_client.errors import RemoteStatusError, TransportError
from mango_client.transport.base import HTTPMethod, Transport


logger = logging.getLogger(__name__)


class HttpTransport(Transport):
    """JSON over HTTP using a shared ``httpx.AsyncClient``."""

    def __init__(
        self,
        base_url: str,
        api_key: str | None = None,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

        headers = {"Content-Type": "application/json"}
        if api_key:
            headers["Authorization"] = f"Bearer {api_key}"

        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            headers=headers,
            timeout=timeout,
            transport=transport,
        )

    async def request(
        self,
        path: str,
        method: HTTPMethod = "GET",
        body: Any | None = None,
    ) -> Any:
        """Send a request and decode the JSON response."""
        start_time = time.perf_counter()

        try:
            response = await self._client.request(method, path, json=body)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            message = _error_message(e.response)
            logger.warning(f"{method} {path} failed with {e.response.status_code}: {message}")
            raise RemoteStatusError(e.response.status_code, message) from e
        except httpx.RequestError as e:
            logger.error(f"{method} {path} failed: {e!r}")
            raise TransportError(f"{method} {path}: {e}") from e

        latency_ms = int((time.perf_counter() - start_time) * 1000)
        logger.debug(f"{method} {path} -> {response.status_code} in {latency_ms}ms")

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise TransportError(f"{method} {path}: malformed JSON response") from e

    async def close(self) -> None:
        """Close the HTTP client."""
        await self._client.aclose()


def _error_message(response: httpx.Response) -> str:
    """Best human-readable message from an error response."""
    try:
        data = response.json()
    except ValueError:
        return response.text.strip() or response.reason_phrase

    if isinstance(data, dict):
        for key in ("error", "message"):
            if data.get(key):
                return str(data[key])
    if isinstance(data, str) and data:
        return data
    return response.reason_phrase
