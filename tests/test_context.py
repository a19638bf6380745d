"""End-to-end tests of MangoContext over HTTP against the fake backend."""

import httpx
import pytest

from fake_backend import API_PREFIX, BackendState, create_app
from fakes import OPENROUTER_MODELS, FakeTransport
from mango_client.config import Settings
from mango_client.context import MangoContext
from mango_client.errors import RemoteMutationError
from mango_client.persistence.blob_store import MemoryBlobStore
from mango_client.schemas import LogFilter, Prompt, Solution
from mango_client.transport.http import HttpTransport


@pytest.fixture
def state() -> BackendState:
    return BackendState.seeded()


@pytest.fixture
def ctx(state) -> MangoContext:
    settings = Settings(api_base_url=f"http://testserver{API_PREFIX}", model_catalog_stale_hours=24)
    transport = HttpTransport(settings.api_base_url, transport=httpx.ASGITransport(app=create_app(state)))
    return MangoContext.from_settings(
        settings,
        transport=transport,
        catalog_transport=FakeTransport({("GET", "/models"): OPENROUTER_MODELS}),
        blob_store=MemoryBlobStore(),
    )


async def test_initialize_loads_both_collections(ctx):
    async with ctx:
        await ctx.initialize()

        assert ctx.is_loaded
        by_goal = ctx.prompts_by_goal.value
        assert sorted(p.uid for p in by_goal["goal-sentiment"]) == ["prompt-a", "prompt-b"]
        assert [p.uid for p in by_goal["goal-summary"]] == ["prompt-c"]


async def test_prompt_lifecycle_keeps_cache_and_backend_in_step(ctx, state):
    async with ctx:
        await ctx.initialize()

        prompt = Prompt(uid="prompt-d", goal_uid="goal-summary", model="openai/gpt-4o")
        await ctx.mutations.create_prompt(prompt)
        assert state.prompts["prompt-d"]["goalUID"] == "goal-summary"
        assert [p.uid for p in ctx.prompts_by_goal.get("goal-summary")] == ["prompt-c", "prompt-d"]

        await ctx.mutations.delete_prompt("prompt-d")
        assert "prompt-d" not in state.prompts
        assert [p.uid for p in ctx.prompts_by_goal.get("goal-summary")] == ["prompt-c"]

        await ctx.reload()
        assert set(ctx.goals.store.get("goal-summary").prompts) == {"prompt-c"}


async def test_solution_roundtrip_through_backend(ctx, state):
    async with ctx:
        await ctx.initialize()

        await ctx.mutations.create_solution("goal-summary", Solution(prompt_uid="prompt-c", weight=100))
        assert state.goals["goal-summary"]["solutions"]["prompt-c"]["weight"] == 100

        await ctx.reload()
        assert ctx.goals.store.get("goal-summary").solutions["prompt-c"].weight == 100

        await ctx.mutations.delete_solution("prompt-c")
        assert ctx.goals.store.get("goal-summary").solutions == {}


async def test_rejected_mutation_surfaces_backend_message(ctx):
    async with ctx:
        await ctx.initialize()
        before = ctx.prompts.store.snapshot()

        with pytest.raises(RemoteMutationError) as exc_info:
            await ctx.mutations.create_prompt(Prompt(uid="prompt-x", goal_uid="goal-missing"))

        assert exc_info.value.status == 400
        assert exc_info.value.message == "Goal not found"
        assert ctx.prompts.store.snapshot() == before


async def test_get_one_over_http(ctx):
    async with ctx:
        goal = await ctx.goals.get_one("goal-sentiment")
        assert goal.solutions["prompt-b"].is_canary
        assert await ctx.goals.get_one("goal-missing") is None


async def test_logs_are_paginated_and_never_cached(ctx):
    async with ctx:
        first = await ctx.logs.query_logs(LogFilter(limit=10))
        again = await ctx.logs.query_logs(LogFilter(limit=10, offset=20))

        assert len(first.logs) == 10
        assert first.pagination.total == 25
        assert first.pagination.total_pages == 3
        assert again.pagination.page == 3
        assert len(again.logs) == 5

        goal_logs = await ctx.logs.query_goal_logs("goal-summary", LogFilter(goal_uid="ignored", limit=50))
        assert goal_logs.logs
        assert all(entry.goal_uid == "goal-summary" for entry in goal_logs.logs)

        prompt_logs = await ctx.logs.query_prompt_logs("prompt-a", LogFilter(limit=50))
        assert {entry.prompt_uid for entry in prompt_logs.logs} == {"prompt-a"}


async def test_catalog_is_wired_to_its_own_transport(ctx):
    async with ctx:
        assert await ctx.catalog.initialize()
        assert ctx.catalog.has_model("openai/gpt-4o-mini")
        assert ctx.catalog.stale_after.total_seconds() == 24 * 3600


class CountingBlobStore(MemoryBlobStore):
    def __init__(self):
        super().__init__()
        self.reads = 0

    def get(self) -> str | None:
        self.reads += 1
        return super().get()


async def test_blob_store_is_untouched_until_the_catalog_is_used(state):
    settings = Settings(api_base_url=f"http://testserver{API_PREFIX}")
    store = CountingBlobStore()
    ctx = MangoContext.from_settings(
        settings,
        transport=HttpTransport(settings.api_base_url, transport=httpx.ASGITransport(app=create_app(state))),
        catalog_transport=FakeTransport({("GET", "/models"): OPENROUTER_MODELS}),
        blob_store=store,
    )

    async with ctx:
        await ctx.initialize()
        await ctx.logs.query_logs(LogFilter(limit=10))
        assert store.reads == 0

        assert ctx.catalog is ctx.catalog
        assert store.reads == 1


async def test_sqlite_file_is_not_created_without_catalog_use(state, tmp_path):
    db = tmp_path / "cache.db"
    settings = Settings(api_base_url=f"http://testserver{API_PREFIX}", blob_store_url=f"sqlite:///{db}")
    ctx = MangoContext.from_settings(
        settings,
        transport=HttpTransport(settings.api_base_url, transport=httpx.ASGITransport(app=create_app(state))),
        catalog_transport=FakeTransport(),
    )

    async with ctx:
        await ctx.initialize()

    assert not db.exists()
