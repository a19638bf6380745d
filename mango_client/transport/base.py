"""Abstract base class for backend transports."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Literal

HTTPMethod = Literal["GET", "POST", "PUT", "PATCH", "DELETE"]


class Transport(ABC):
    """Request/response channel to a JSON backend.

    The cache layer only ever talks to the backend through this interface,
    so tests and alternative backends can substitute their own transport.
    """

    @abstractmethod
    async def request(
        self,
        path: str,
        method: HTTPMethod = "GET",
        body: Any | None = None,
    ) -> Any:
        """Send a request and return the decoded JSON body.

        Args:
            path: Path relative to the transport's base URL
            method: HTTP method
            body: JSON-serializable payload, or None for no body

        Returns:
            Decoded JSON, or None for an empty response body

        Raises:
            RemoteStatusError: the backend answered with a non-2xx status
            TransportError: no response, or a body that is not valid JSON
        """
        ...

    async def close(self) -> None:
        """Release any underlying connections."""
        return None
