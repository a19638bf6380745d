"""Cache controller: load-if-absent, forced reload and single-entity lookups."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from typing import Generic, TypeVar

from mango_client.cache.singleflight import SingleFlight
from mango_client.cache.store import EntityStore
from mango_client.errors import RemoteStatusError


logger = logging.getLogger(__name__)

T = TypeVar("T")


class CollectionCache(Generic[T]):
    """Fetches one remote collection into an ``EntityStore``.

    At most one list fetch is in flight at any time; ``ensure_loaded`` and
    ``reload`` callers arriving while it runs share its result or its error.
    A failed fetch leaves the store exactly as it was.
    """

    def __init__(
        self,
        name: str,
        fetch_all: Callable[[], Awaitable[list[T]]],
        key: Callable[[T], str],
        fetch_one: Callable[[str], Awaitable[T]] | None = None,
        store: EntityStore[T] | None = None,
    ):
        self.name = name
        self.store: EntityStore[T] = store or EntityStore(name)
        self._fetch_all = fetch_all
        self._fetch_one = fetch_one
        self._key = key
        self._flight = SingleFlight()

    @property
    def loading(self) -> bool:
        return self._flight.in_flight(self.name)

    async def ensure_loaded(self) -> dict[str, T]:
        """Return the collection, fetching it first if it was never loaded."""
        if self.store.loaded:
            return self.store.snapshot()
        return await self._flight.do(self.name, self._load)

    async def reload(self) -> dict[str, T]:
        """Fetch the collection again and replace the cached copy wholesale."""
        return await self._flight.do(self.name, self._load)

    async def get_one(self, uid: str) -> T | None:
        """Cached entry, or a targeted fetch for it. None if the backend has none."""
        cached = self.store.get(uid)
        if cached is not None:
            return cached
        if self._fetch_one is None:
            await self.ensure_loaded()
            return self.store.get(uid)
        return await self._flight.do(f"{self.name}:{uid}", lambda: self._load_one(uid))

    async def _load(self) -> dict[str, T]:
        try:
            items = await self._fetch_all()
        except Exception as e:
            logger.error(f"Failed to load {self.name}: {e}")
            raise

        self.store.replace_all({self._key(item): item for item in items})
        logger.info(f"Loaded {len(self.store)} {self.name}")
        return self.store.snapshot()

    async def _load_one(self, uid: str) -> T | None:
        try:
            item = await self._fetch_one(uid)  # type: ignore[misc]
        except RemoteStatusError as e:
            if e.not_found:
                logger.debug(f"{self.name} {uid} not found")
                return None
            raise

        self.store.upsert(self._key(item), item)
        return item
