from __future__ import annotations

import pytest

from fakes import FakeTransport, backend_transport
from mango_client.cache.mutations import MutationPipeline
from mango_client.context import build_goal_cache, build_prompt_cache


@pytest.fixture
def transport() -> FakeTransport:
    return backend_transport()


@pytest.fixture
def goals(transport):
    return build_goal_cache(transport)


@pytest.fixture
def prompts(transport):
    return build_prompt_cache(transport)


@pytest.fixture
def pipeline(transport, goals, prompts) -> MutationPipeline:
    return MutationPipeline(transport, goals, prompts)
