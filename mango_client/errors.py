"""Error taxonomy for the client.

- TransportError: network unreachable or malformed response
- RemoteStatusError: backend answered with a non-2xx status
- RemoteMutationError: a mutating call failed, nothing was applied locally
- PersistenceError: blob store read/write/parse failure, never propagated
  past the model catalog
"""

from __future__ import annotations


class MangoClientError(Exception):
    """Base class for all client errors."""


class TransportError(MangoClientError):
    """The request never produced a usable response."""


class RemoteStatusError(TransportError):
    """The backend answered with an unsuccessful HTTP status."""

    def __init__(self, status: int, message: str = ""):
        self.status = status
        self.message = message
        super().__init__(f"HTTP {status}: {message}" if message else f"HTTP {status}")

    @property
    def not_found(self) -> bool:
        return self.status == 404


class RemoteMutationError(MangoClientError):
    """A create/update/delete call was rejected or could not be delivered."""

    def __init__(self, action: str, status: int | None, message: str):
        self.action = action
        self.status = status
        self.message = message
        detail = f"HTTP {status}: {message}" if status is not None else message
        super().__init__(f"Failed to {action}: {detail}")


class PersistenceError(MangoClientError):
    """Reading, writing or decoding the local blob failed."""
