"""Ports for the record store the codec reads from and writes to."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from graphport.domain.types import RealId, Record, TypeTag


class RelationShape(StrEnum):
    """Closed set of relation shapes the codec knows how to traverse."""

    SINGULAR_OWNED = "singular_owned"
    SINGULAR_OWNING = "singular_owning"
    PLURAL = "plural"
    POLYMORPHIC_SINGULAR = "polymorphic_singular"


@dataclass(frozen=True, slots=True, kw_only=True)
class Relation:
    """Relation descriptor resolved once per blueprint rule.

    ``key_field`` names the foreign-key column for singular-owning and polymorphic
    relations, ``type_field`` the discriminator column of polymorphic relations.
    ``linked`` marks plural relations whose membership lives in a link table
    rather than in a back reference on the member.
    """

    shape: RelationShape
    target: TypeTag | None = None
    key_field: str | None = None
    type_field: str | None = None
    linked: bool = False

    def __post_init__(self) -> None:
        if self.shape is RelationShape.SINGULAR_OWNING and self.key_field is None:
            raise ValueError("Singular-owning relations need a key field")
        if self.shape is RelationShape.POLYMORPHIC_SINGULAR and (
            self.key_field is None or self.type_field is None
        ):
            raise ValueError("Polymorphic relations need both a key and a type field")

    def require_key_field(self) -> str:
        if self.key_field is None:
            raise LookupError(f"{self.shape} relation to {self.target} has no key field")
        return self.key_field

    def require_type_field(self) -> str:
        if self.type_field is None:
            raise LookupError(f"{self.shape} relation has no type field")
        return self.type_field


@runtime_checkable
class RecordFactory(Protocol):
    """Instantiate an empty record for a type tag."""

    def make(self, type_tag: TypeTag) -> Record: ...


@runtime_checkable
class RecordStore(Protocol):
    """Blocking, synchronous record store consumed by the codec."""

    def create(self, type_tag: TypeTag) -> Record: ...

    def find(self, type_tag: TypeTag, real_id: RealId) -> Record | None: ...

    def save(self, record: Record) -> None: ...

    def get(self, record: Record, field: str) -> object: ...

    def set(self, record: Record, field: str, value: object) -> None: ...

    def attach(self, record: Record, field: str, real_id: RealId) -> None: ...

    def relation(self, type_tag: TypeTag, field: str) -> Relation | None: ...

    def type_tag(self, record: Record) -> TypeTag: ...

    def key(self, record: Record) -> RealId: ...

    def key_field(self, type_tag: TypeTag) -> str: ...
