"""Tests for the entity store and derived indices."""

import pytest
from pydantic import ValidationError

from mango_client.cache.store import DerivedIndex, EntityStore, group_by
from mango_client.schemas import Goal, Prompt


def make_prompt(uid: str, goal_uid: str) -> Prompt:
    return Prompt(uid=uid, goal_uid=goal_uid, model="openai/gpt-4o-mini")


def test_replace_all_marks_loaded_and_drops_old_entries():
    store = EntityStore("prompts")
    store.upsert("old", make_prompt("old", "g1"))
    assert not store.loaded

    store.replace_all({"new": make_prompt("new", "g1")})

    assert store.loaded
    assert "old" not in store
    assert list(store) == ["new"]


def test_snapshot_is_detached_from_later_writes():
    store = EntityStore("prompts")
    store.replace_all({"a": make_prompt("a", "g1")})
    snapshot = store.snapshot()

    store.upsert("b", make_prompt("b", "g1"))
    store.remove("a")

    assert list(snapshot) == ["a"]


def test_version_moves_only_on_real_writes():
    store = EntityStore("prompts")
    store.replace_all({})
    version = store.version

    assert store.remove("missing") is None
    assert store.version == version

    store.upsert("a", make_prompt("a", "g1"))
    assert store.version == version + 1


def test_prompts_grouped_by_goal_recompute_lazily():
    store = EntityStore("prompts")
    calls = []
    grouping = group_by(lambda p: p.goal_uid)

    def compute(items):
        calls.append(len(items))
        return grouping(items)

    index = DerivedIndex(store, compute)
    store.replace_all({
        "a": make_prompt("a", "g1"),
        "b": make_prompt("b", "g1"),
        "c": make_prompt("c", "g2"),
    })

    assert [p.uid for p in index.value["g1"]] == ["a", "b"]
    assert [p.uid for p in index.get("g2")] == ["c"]
    assert calls == [3]

    store.remove("b")
    assert [p.uid for p in index.value["g1"]] == ["a"]
    assert calls == [3, 2]
    assert index.get("g3", []) == []


def test_snapshotted_entities_cannot_be_edited():
    store = EntityStore("goals")
    store.replace_all({"g1": Goal(uid="g1", title="Sentiment")})
    snapshot = store.snapshot()

    with pytest.raises(ValidationError):
        snapshot["g1"].title = "hijacked"

    assert store.get("g1").title == "Sentiment"


def test_grouped_index_is_read_only():
    store = EntityStore("prompts")
    store.replace_all({"a": make_prompt("a", "g1")})
    index = DerivedIndex(store, group_by(lambda p: p.goal_uid))

    with pytest.raises(AttributeError):
        index.get("g1").append(make_prompt("x", "g1"))
    with pytest.raises(TypeError):
        index.value["g9"] = ()

    assert [p.uid for p in index.get("g1")] == ["a"]
    assert "g9" not in index.value
