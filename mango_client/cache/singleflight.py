"""Collapse concurrent identical operations into one underlying call."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

R = TypeVar("R")


class SingleFlight:
    """One in-flight task per key.

    The first caller for a key starts the task and stores it in the slot;
    later callers await the same task until it settles. The slot is cleared
    in ``finally`` by the task itself, so a failed call never leaves a stale
    slot behind. Waiters go through ``asyncio.shield``: a caller that gets
    cancelled stops waiting but the shared call still runs to completion.
    """

    def __init__(self):
        self._inflight: dict[str, asyncio.Task[Any]] = {}

    def in_flight(self, key: str) -> bool:
        return key in self._inflight

    async def do(self, key: str, fn: Callable[[], Awaitable[R]]) -> R:
        task = self._inflight.get(key)
        if task is None:
            task = asyncio.ensure_future(self._run(key, fn))
            self._inflight[key] = task
        return await asyncio.shield(task)

    async def _run(self, key: str, fn: Callable[[], Awaitable[R]]) -> R:
        try:
            return await fn()
        finally:
            self._inflight.pop(key, None)
