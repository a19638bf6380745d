"""In-memory entity store and the read-only indices derived from it.

The store is the single writer for a collection. Values are replaced, never
mutated in place, so snapshots handed to callers stay valid. Every write
bumps ``version``; a ``DerivedIndex`` recomputes lazily when the version it
was built from is no longer current.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator, Mapping
from types import MappingProxyType
from typing import Generic, TypeVar

T = TypeVar("T")
R = TypeVar("R")


class EntityStore(Generic[T]):
    """Identifier -> entity mapping for one collection."""

    def __init__(self, name: str):
        self.name = name
        self.loaded = False
        self.version = 0
        self._items: dict[str, T] = {}

    def __contains__(self, uid: object) -> bool:
        return uid in self._items

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[str]:
        return iter(self._items)

    def get(self, uid: str) -> T | None:
        return self._items.get(uid)

    def values(self) -> list[T]:
        return list(self._items.values())

    def items(self) -> list[tuple[str, T]]:
        return list(self._items.items())

    def snapshot(self) -> dict[str, T]:
        """Shallow copy of the current contents."""
        return dict(self._items)

    def replace_all(self, items: Mapping[str, T]) -> None:
        """Swap the whole collection for a freshly fetched one."""
        self._items = dict(items)
        self.loaded = True
        self.version += 1

    def upsert(self, uid: str, item: T) -> None:
        self._items[uid] = item
        self.version += 1

    def remove(self, uid: str) -> T | None:
        item = self._items.pop(uid, None)
        if item is not None:
            self.version += 1
        return item


class DerivedIndex(Generic[T, R]):
    """Read-only projection of an ``EntityStore``, never written to directly."""

    def __init__(self, store: EntityStore[T], compute: Callable[[list[T]], R]):
        self._store = store
        self._compute = compute
        self._version: int | None = None
        self._value: R | None = None

    @property
    def value(self) -> R:
        if self._version != self._store.version:
            self._value = self._compute(self._store.values())
            self._version = self._store.version
        return self._value  # type: ignore[return-value]

    def get(self, key, default=None):
        return self.value.get(key, default)  # type: ignore[attr-defined]


def group_by(key: Callable[[T], str]) -> Callable[[list[T]], Mapping[str, tuple[T, ...]]]:
    """Build a grouping function for ``DerivedIndex``.

    Groups are tuples behind a read-only mapping, so callers cannot edit the
    index between store writes.
    """

    def compute(items: list[T]) -> Mapping[str, tuple[T, ...]]:
        result: dict[str, list[T]] = {}
        for item in items:
            result.setdefault(key(item), []).append(item)
        return MappingProxyType({k: tuple(v) for k, v in result.items()})

    return compute
