from __future__ import annotations

from typing import Any

import pytest

from graphport.domain.deserialization import RESOLVE_ORDER, ActionKind, ResolutionEngine
from graphport.domain.errors import (
    RecordNotFoundError,
    UnresolvedOwnerError,
    UnresolvedReferenceError,
)
from tests.helpers.records import InMemoryRecordStore, owning, plural, polymorphic

RELATIONS = {
    "Foo": {
        "root": owning("Root", "root_id"),
        "tags": plural("Tag", linked=True),
        "polyable": polymorphic("polyable_type", "polyable_id"),
    },
}


@pytest.fixture
def store() -> InMemoryRecordStore:
    return InMemoryRecordStore(RELATIONS)


@pytest.fixture
def engine(store: InMemoryRecordStore) -> ResolutionEngine:
    return ResolutionEngine(store)


def test_deferred_actions_apply_once_everything_is_bound(
    store: InMemoryRecordStore,
    engine: ResolutionEngine,
) -> None:
    foo = store.add("Foo", data={"bar_id": None})
    engine.update(foo, "data.bar_id", "@1", "@2")
    engine.associate(foo, "root", "@1", "@3")
    engine.bind("@1", foo.id)
    engine.bind("@2", 20)
    engine.bind("@3", 30)

    bindings = engine.resolve()

    assert foo.values["data"] == {"bar_id": 20}
    assert foo.values["root_id"] == 30
    assert bindings == {"@1": foo.id, "@2": 20, "@3": 30}
    assert len(engine.queue) == 0


def test_each_owner_is_saved_once(
    store: InMemoryRecordStore,
    engine: ResolutionEngine,
) -> None:
    foo = store.add("Foo", data={})
    for index in range(3):
        engine.update(foo, f"data.ref_{index}", "@1", f"@{index + 2}")
    engine.bind("@1", foo.id)
    for index in range(3):
        engine.bind(f"@{index + 2}", index)

    engine.resolve()

    assert store.saved == [foo]


def test_kinds_resolve_in_fixed_order_regardless_of_queueing(
    store: InMemoryRecordStore,
    engine: ResolutionEngine,
) -> None:
    foo = store.add("Foo", data={"html": "x @5", "ref": None})
    tag = store.add("Tag")
    seen: list[ActionKind] = []

    def record_kind(record: Any, action: Any, real_id: Any) -> None:
        seen.append(action.kind)

    for kind in ActionKind:
        engine.hooks.after.subscribe("Foo", kind, record_kind)

    engine.morph(foo, "polyable", "@1", ["Bar", "@6"])
    engine.search_and_replace(foo, "data.html", "@1", "@5", "@5")
    engine.update(foo, "data.ref", "@1", "@4")
    engine.attach(foo, "tags", "@1", "@3")
    engine.associate(foo, "root", "@1", "@2")
    engine.bind("@1", foo.id)
    engine.bind("@2", 2)
    engine.bind("@3", tag.id)
    engine.bind("@4", 4)
    engine.bind("@5", 5)
    engine.bind("@6", 6)

    engine.resolve()

    assert seen == list(RESOLVE_ORDER)
    assert foo.values["data"] == {"html": "x 5", "ref": 4}
    assert (foo.values["polyable_type"], foo.values["polyable_id"]) == ("Bar", 6)


def test_unbound_reference_raises(
    store: InMemoryRecordStore,
    engine: ResolutionEngine,
) -> None:
    foo = store.add("Foo")
    engine.associate(foo, "root", "@1", "@2")
    engine.bind("@1", foo.id)

    with pytest.raises(UnresolvedReferenceError) as excinfo:
        engine.resolve()

    assert excinfo.value.referred_id == "@2"
    assert excinfo.value.target == "root"


def test_vetoed_unbound_reference_is_skipped(
    store: InMemoryRecordStore,
    engine: ResolutionEngine,
) -> None:
    foo = store.add("Foo")
    received: list[Any] = []

    def veto(record: Any, action: Any, real_id: Any) -> bool:
        received.append(real_id)
        return False

    engine.hooks.before.subscribe("Foo", "associate", veto)
    engine.associate(foo, "root", "@1", "@2")
    engine.bind("@1", foo.id)

    bindings = engine.resolve()

    assert received == [None]
    assert "root_id" not in foo.values
    assert bindings == {"@1": foo.id}


def test_unbound_owner_raises(
    store: InMemoryRecordStore,
    engine: ResolutionEngine,
) -> None:
    foo = store.add("Foo")
    engine.associate(foo, "root", "@1", "@2")
    engine.bind("@2", 9)

    with pytest.raises(UnresolvedOwnerError) as excinfo:
        engine.resolve()

    assert excinfo.value.owning_id == "@1"


def test_missing_owner_record_raises(
    store: InMemoryRecordStore,
    engine: ResolutionEngine,
) -> None:
    foo = store.create("Foo")
    engine.associate(foo, "root", "@1", "@2")
    engine.bind("@1", 404)
    engine.bind("@2", 9)

    with pytest.raises(RecordNotFoundError):
        engine.resolve()


def test_resolve_with_empty_queue_returns_bindings(engine: ResolutionEngine) -> None:
    engine.bind("@1", 1)

    assert engine.resolve() == {"@1": 1}
