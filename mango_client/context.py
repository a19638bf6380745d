"""Process-wide client context.

One ``MangoContext`` is built at startup and handed to whatever needs the
backend data, instead of module-level singletons.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping
from datetime import timedelta
from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError

from mango_client.cache.controller import CollectionCache
from mango_client.cache.mutations import MutationPipeline
from mango_client.cache.store import DerivedIndex, group_by
from mango_client.catalog.openrouter import ModelCatalog
from mango_client.config import Settings, get_settings
from mango_client.errors import TransportError
from mango_client.logs import LogQueryClient
from mango_client.persistence.blob_store import BlobStore, SQLBlobStore
from mango_client.schemas import Goal, Prompt
from mango_client.transport import routes
from mango_client.transport.base import Transport
from mango_client.transport.http import HttpTransport


logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)


def _parse(model: type[M], data: Any, source: str) -> M:
    try:
        return model.model_validate(data)
    except ValidationError as e:
        raise TransportError(f"Malformed {model.__name__} from {source}: {e}") from e


def _parse_list(model: type[M], data: Any, source: str) -> list[M]:
    if not isinstance(data, list):
        raise TransportError(f"Expected a list from {source}, got {type(data).__name__}")
    return [_parse(model, item, source) for item in data]


def build_goal_cache(transport: Transport) -> CollectionCache[Goal]:
    async def fetch_all() -> list[Goal]:
        return _parse_list(Goal, await transport.request(routes.GOALS), routes.GOALS)

    async def fetch_one(uid: str) -> Goal:
        path = routes.goal(uid)
        return _parse(Goal, await transport.request(path), path)

    return CollectionCache("goals", fetch_all, key=lambda goal: goal.uid, fetch_one=fetch_one)


def build_prompt_cache(transport: Transport) -> CollectionCache[Prompt]:
    async def fetch_all() -> list[Prompt]:
        return _parse_list(Prompt, await transport.request(routes.PROMPTS), routes.PROMPTS)

    async def fetch_one(uid: str) -> Prompt:
        path = routes.prompt(uid)
        return _parse(Prompt, await transport.request(path), path)

    return CollectionCache("prompts", fetch_all, key=lambda prompt: prompt.uid, fetch_one=fetch_one)


class MangoContext:
    """Shared caches, mutation pipeline, model catalog and log client."""

    def __init__(
        self,
        transport: Transport,
        catalog_transport: Transport,
        blob_store: BlobStore,
        model_stale_after: timedelta = timedelta(hours=24),
    ):
        self.transport = transport
        self.catalog_transport = catalog_transport
        self.blob_store = blob_store

        self.goals = build_goal_cache(transport)
        self.prompts = build_prompt_cache(transport)
        self.prompts_by_goal: DerivedIndex[Prompt, Mapping[str, tuple[Prompt, ...]]] = DerivedIndex(
            self.prompts.store, group_by(lambda prompt: prompt.goal_uid)
        )
        self.mutations = MutationPipeline(transport, self.goals, self.prompts)
        self.logs = LogQueryClient(transport)

        self.model_stale_after = model_stale_after
        self._catalog: ModelCatalog | None = None

    @classmethod
    def from_settings(
        cls,
        settings: Settings | None = None,
        *,
        transport: Transport | None = None,
        catalog_transport: Transport | None = None,
        blob_store: BlobStore | None = None,
    ) -> "MangoContext":
        """Build a context from settings; any collaborator can be supplied instead."""
        settings = settings or get_settings()

        transport = transport or HttpTransport(
            settings.api_base_url,
            api_key=settings.api_key or None,
            timeout=settings.api_timeout_seconds,
        )
        catalog_transport = catalog_transport or HttpTransport(
            settings.openrouter_base_url,
            timeout=settings.api_timeout_seconds,
        )
        blob_store = blob_store or SQLBlobStore(
            settings.blob_store_url, settings.model_catalog_blob_key
        )

        logger.info(f"{settings.app_name} v{settings.app_version} using {settings.api_base_url}")
        return cls(
            transport,
            catalog_transport,
            blob_store,
            model_stale_after=timedelta(hours=settings.model_catalog_stale_hours),
        )

    @property
    def catalog(self) -> ModelCatalog:
        """Model catalog, built on first use so the blob store is only read when needed."""
        if self._catalog is None:
            self._catalog = ModelCatalog(
                self.catalog_transport, self.blob_store, stale_after=self.model_stale_after
            )
        return self._catalog

    @property
    def is_loaded(self) -> bool:
        return self.goals.store.loaded and self.prompts.store.loaded

    async def initialize(self) -> None:
        """Load goals and prompts together."""
        await asyncio.gather(self.goals.ensure_loaded(), self.prompts.ensure_loaded())

    async def reload(self) -> None:
        await asyncio.gather(self.goals.reload(), self.prompts.reload())

    async def close(self) -> None:
        if self._catalog is not None:
            await self._catalog.wait_for_refresh()
        await self.transport.close()
        await self.catalog_transport.close()
        if isinstance(self.blob_store, SQLBlobStore):
            self.blob_store.close()

    async def __aenter__(self) -> "MangoContext":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()
