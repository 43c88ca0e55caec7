"""In-memory record store for codec tests that do not need a database."""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from itertools import count
from typing import TYPE_CHECKING, Any

from graphport.domain.ports import Relation, RelationShape

if TYPE_CHECKING:
    from collections.abc import Iterator, Mapping


@dataclass(eq=False)
class FakeRecord:
    type_tag: str
    values: dict[str, Any] = field(default_factory=dict[str, Any])

    @property
    def id(self) -> Any:
        return self.values.get("id")


class InMemoryRecordStore:
    """Records are plain dictionaries; relation fields hold related records.

    Singular relations store the related record under the relation name and its
    key under ``Relation.key_field``; plural relations hold a list of records.
    """

    def __init__(self, relations: Mapping[str, Mapping[str, Relation]] | None = None) -> None:
        self.relations = {tag: dict(fields) for tag, fields in (relations or {}).items()}
        self.rows: dict[str, dict[Any, FakeRecord]] = defaultdict(dict)
        self.saved: list[FakeRecord] = []
        self._ids: dict[str, Iterator[int]] = defaultdict(lambda: count(1))

    def add(self, type_tag: str, **values: Any) -> FakeRecord:
        record = FakeRecord(type_tag, dict(values))
        self.save(record)
        self.saved.clear()
        return record

    def create(self, type_tag: str) -> FakeRecord:
        return FakeRecord(type_tag)

    def find(self, type_tag: str, real_id: Any) -> FakeRecord | None:
        return self.rows[type_tag].get(real_id)

    def save(self, record: FakeRecord) -> None:
        if record.values.get("id") is None:
            record.values["id"] = next(self._ids[record.type_tag])
        self.rows[record.type_tag][record.values["id"]] = record
        self.saved.append(record)

    def get(self, record: FakeRecord, field: str) -> object:
        return record.values.get(field)

    def set(self, record: FakeRecord, field: str, value: object) -> None:
        record.values[field] = value

    def attach(self, record: FakeRecord, field: str, real_id: Any) -> None:
        relation = self.relations[record.type_tag][field]
        assert relation.target is not None
        record.values.setdefault(field, []).append(self.rows[relation.target][real_id])

    def relation(self, type_tag: str, field: str) -> Relation | None:
        return self.relations.get(type_tag, {}).get(field)

    def type_tag(self, record: FakeRecord) -> str:
        return record.type_tag

    def key(self, record: FakeRecord) -> Any:
        return record.values.get("id")

    def key_field(self, type_tag: str) -> str:
        return "id"


def owning(target: str, key_field: str) -> Relation:
    return Relation(shape=RelationShape.SINGULAR_OWNING, target=target, key_field=key_field)


def owned(target: str) -> Relation:
    return Relation(shape=RelationShape.SINGULAR_OWNED, target=target)


def plural(target: str, *, linked: bool = False) -> Relation:
    return Relation(shape=RelationShape.PLURAL, target=target, linked=linked)


def polymorphic(type_field: str, key_field: str) -> Relation:
    return Relation(
        shape=RelationShape.POLYMORPHIC_SINGULAR,
        type_field=type_field,
        key_field=key_field,
    )
