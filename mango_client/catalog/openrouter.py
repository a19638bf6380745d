"""OpenRouter model catalog with durable, stale-while-revalidate caching.

Lifecycle:
- Construction restores the last persisted listing from the blob store,
  synchronously and before any network call
- ``initialize`` serves that listing at once and refreshes it in the
  background when it is older than the staleness threshold, or fetches
  eagerly when nothing was cached
- Every successful ``reload`` persists the listing again, best-effort
"""

from __future__ import annotations

import asyncio
import json
import logging
from datetime import timedelta

from pydantic import ValidationError

from mango_client.cache.staleness import DEFAULT_STALE_AFTER, is_stale, utcnow_iso
from mango_client.errors import PersistenceError, TransportError
from mango_client.persistence.blob_store import BlobStore
from mango_client.schemas import ModelCatalogBlob, ModelCatalogEntry
from mango_client.transport import routes
from mango_client.transport.base import Transport


logger = logging.getLogger(__name__)


class ModelCatalog:
    """Cached listing of the models OpenRouter offers."""

    def __init__(
        self,
        transport: Transport,
        blob_store: BlobStore,
        stale_after: timedelta = DEFAULT_STALE_AFTER,
    ):
        self._transport = transport
        self._blob_store = blob_store
        self.stale_after = stale_after

        self.models: list[ModelCatalogEntry] = []
        self.models_map: dict[str, ModelCatalogEntry] = {}
        self.has_models = False
        self.last_fetched: str | None = None
        self.loading = False
        self.error: str | None = None

        self._initialized: asyncio.Task[bool] | None = None
        self._refresh_task: asyncio.Task[bool] | None = None

        self._restore()

    # =========================================================================
    # Persistence
    # =========================================================================

    def _restore(self) -> None:
        """Load the persisted listing. Any failure means starting empty."""
        try:
            raw = self._blob_store.get()
            if not raw:
                return
            blob = ModelCatalogBlob.model_validate_json(raw)
        except (PersistenceError, ValidationError, ValueError) as e:
            logger.warning(f"Ignoring cached model catalog: {e}")
            return

        self._set_models(blob.models, blob.last_fetched)
        logger.info(f"Restored {len(self.models)} cached models (fetched {self.last_fetched})")

    def _persist(self) -> None:
        blob = ModelCatalogBlob(models=self.models, last_fetched=self.last_fetched)
        try:
            self._blob_store.set(json.dumps(blob.model_dump(mode="json", by_alias=True)))
        except PersistenceError as e:
            logger.warning(f"Could not persist model catalog: {e}")

    def _set_models(self, models: list[ModelCatalogEntry], last_fetched: str | None) -> None:
        self.models = list(models)
        self.models_map = {model.id: model for model in self.models}
        self.has_models = len(self.models) > 0
        self.last_fetched = last_fetched

    # =========================================================================
    # Loading
    # =========================================================================

    @property
    def is_stale(self) -> bool:
        return is_stale(self.last_fetched, self.stale_after)

    async def initialize(self) -> bool:
        """Make the catalog available. Runs at most once per instance."""
        if self._initialized is None:
            self._initialized = asyncio.ensure_future(self._initialize())
        return await asyncio.shield(self._initialized)

    async def _initialize(self) -> bool:
        if self.models:
            if self.is_stale:
                self._schedule_refresh()
            return True
        return await self.reload()

    def _schedule_refresh(self) -> None:
        if self._refresh_task is not None and not self._refresh_task.done():
            return
        logger.info(f"Model catalog is stale (fetched {self.last_fetched}), refreshing in background")
        self._refresh_task = asyncio.ensure_future(self.reload())

    async def wait_for_refresh(self) -> None:
        """Wait for a pending background refresh, if any."""
        if self._refresh_task is not None:
            await self._refresh_task

    async def load(self) -> list[ModelCatalogEntry]:
        await self.initialize()
        return self.models

    async def reload(self) -> bool:
        """Fetch the listing again.

        Returns:
            True if the catalog was refreshed. False if a reload was already
            running (this call did nothing) or if the fetch failed; the
            failure message is kept in ``error``.
        """
        if self.loading:
            return False

        self.loading = True
        self.error = None

        try:
            data = await self._transport.request(routes.OPENROUTER_MODELS)
            listing = (data.get("data") or []) if isinstance(data, dict) else None
            if not isinstance(listing, list):
                raise TransportError("Unexpected model listing payload")
            models = [ModelCatalogEntry.model_validate(item) for item in listing]
        except (TransportError, ValidationError) as e:
            self.error = str(e)
            logger.error(f"Error fetching models: {e}")
            return False
        finally:
            self.loading = False

        self._set_models(models, utcnow_iso())
        self._persist()
        logger.info(f"Fetched {len(models)} models from OpenRouter")
        return True

    # =========================================================================
    # Queries
    # =========================================================================

    def filter_models(self, query: str = "") -> list[ModelCatalogEntry]:
        """Models matching ``query`` by id or name, newest first."""
        if not query:
            return sorted(self.models, key=lambda m: m.created, reverse=True)

        needle = query.lower()
        matches = [
            model for model in self.models
            if needle in model.id.lower() or needle in model.name.lower()
        ]
        return sorted(matches, key=lambda m: m.created, reverse=True)

    def has_model(self, model_id: str) -> bool:
        return model_id in self.models_map

    def get_model(self, model_id: str) -> ModelCatalogEntry | None:
        return self.models_map.get(model_id)
