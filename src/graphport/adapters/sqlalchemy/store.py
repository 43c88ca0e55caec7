"""Record store and factory over mapped SQLAlchemy classes."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping, MutableMapping, MutableSequence
from copy import deepcopy
from typing import TYPE_CHECKING, Any, cast

from sqlalchemy import inspect
from sqlalchemy.orm import RelationshipDirection

from graphport.domain.errors import RecordNotFoundError
from graphport.domain.ports import Relation, RelationShape

if TYPE_CHECKING:
    from sqlalchemy.orm import Mapper, RelationshipProperty, Session, registry

    from graphport.domain.types import RealId, Record, TypeTag

log = logging.getLogger(__name__)

MORPHS_ATTRIBUTE = "__morphs__"

type MorphDeclaration = Mapping[str, tuple[str, str]]


def mapped_classes(source: registry | type | Iterable[type]) -> list[type]:
    """Collect mapped classes from an ORM registry, a declarative base, or a class list."""

    orm_registry = getattr(source, "registry", source)
    mappers = getattr(orm_registry, "mappers", None)
    if mappers is not None:
        return sorted((mapper.class_ for mapper in mappers), key=lambda cls: cls.__name__)
    return list(cast("Iterable[type]", source))


class SqlAlchemyRecordFactory:
    """Instantiate mapped classes by type tag.

    ``type_map`` assigns public type tags to classes; unmapped classes use
    their class name. The same table resolves tags back to classes, so
    polymorphic discriminators hold public tags as well.
    """

    def __init__(
        self,
        classes: Iterable[type],
        type_map: Mapping[TypeTag, type] | None = None,
    ) -> None:
        self._class_by_tag: dict[TypeTag, type] = {cls.__name__: cls for cls in classes}
        self._tag_by_class: dict[type, TypeTag] = {
            cls: tag for tag, cls in self._class_by_tag.items()
        }
        for tag, cls in (type_map or {}).items():
            self._class_by_tag.pop(self._tag_by_class.get(cls, tag), None)
            self._class_by_tag[tag] = cls
            self._tag_by_class[cls] = tag

    def make(self, type_tag: TypeTag) -> Record:
        return self.class_for(type_tag)()

    def class_for(self, type_tag: TypeTag) -> type:
        try:
            return self._class_by_tag[type_tag]
        except KeyError:
            raise LookupError(f"No mapped class for type tag {type_tag!r}") from None

    def tag_for(self, cls: type) -> TypeTag:
        for klass in cls.__mro__:
            if klass in self._tag_by_class:
                return self._tag_by_class[klass]
        raise LookupError(f"{cls.__name__} is not registered with the record factory")

    @property
    def type_tags(self) -> tuple[TypeTag, ...]:
        return tuple(self._class_by_tag)


class SqlAlchemyRecordStore:
    """Blocking record store running every write through one session.

    Relations are introspected from the mapper: many-to-one relationships are
    singular-owning, one-to-many with ``uselist=False`` singular-owned, other
    one-to-many and many-to-many relationships plural. Polymorphic relations
    have no mapper counterpart and are declared per class with ``__morphs__ =
    {field: (type_column, key_column)}`` or through ``morphs``.
    """

    def __init__(
        self,
        session: Session,
        factory: SqlAlchemyRecordFactory,
        *,
        morphs: Mapping[TypeTag, MorphDeclaration] | None = None,
    ) -> None:
        self.session = session
        self.factory = factory
        self._morphs = dict(morphs or {})
        self._relations: dict[tuple[TypeTag, str], Relation | None] = {}

    def create(self, type_tag: TypeTag) -> Record:
        return self.factory.make(type_tag)

    def find(self, type_tag: TypeTag, real_id: RealId) -> Record | None:
        return self.session.get(self.factory.class_for(type_tag), real_id)

    def save(self, record: Record) -> None:
        self.session.add(record)
        self.session.flush()

    def get(self, record: Record, field: str) -> object:
        return getattr(record, field)

    def set(self, record: Record, field: str, value: object) -> None:
        # JSON columns only notice reassignment, never in-place mutation
        if isinstance(value, MutableMapping | MutableSequence):
            value = deepcopy(value)
        setattr(record, field, value)

    def attach(self, record: Record, field: str, real_id: RealId) -> None:
        prop = self._relationship(self.type_tag(record), field)
        target_cls = prop.mapper.class_
        target = self.session.get(target_cls, real_id)
        if target is None:
            raise RecordNotFoundError(self.factory.tag_for(target_cls), real_id)
        members = cast(Any, getattr(record, field))
        if target not in members:
            members.append(target)

    def relation(self, type_tag: TypeTag, field: str) -> Relation | None:
        key = (type_tag, field)
        if key not in self._relations:
            self._relations[key] = self._describe(type_tag, field)
        return self._relations[key]

    def type_tag(self, record: Record) -> TypeTag:
        return self.factory.tag_for(type(record))

    def key(self, record: Record) -> RealId:
        return getattr(record, self.key_field(self.type_tag(record)))

    def key_field(self, type_tag: TypeTag) -> str:
        mapper = self._mapper(type_tag)
        primary_key = mapper.primary_key
        if len(primary_key) != 1:
            raise LookupError(
                f"{type_tag} needs a single-column primary key, has {len(primary_key)}"
            )
        return mapper.get_property_by_column(primary_key[0]).key

    def _describe(self, type_tag: TypeTag, field: str) -> Relation | None:
        morph = self._morph_declarations(type_tag).get(field)
        if morph is not None:
            type_field, key_field = morph
            return Relation(
                shape=RelationShape.POLYMORPHIC_SINGULAR,
                key_field=key_field,
                type_field=type_field,
            )

        mapper = self._mapper(type_tag)
        if field not in mapper.relationships:
            return None
        prop = mapper.relationships[field]
        target = self.factory.tag_for(prop.mapper.class_)
        if prop.direction is RelationshipDirection.MANYTOONE:
            local_column = next(iter(prop.local_columns))
            return Relation(
                shape=RelationShape.SINGULAR_OWNING,
                target=target,
                key_field=mapper.get_property_by_column(local_column).key,
            )
        if prop.direction is RelationshipDirection.MANYTOMANY:
            return Relation(shape=RelationShape.PLURAL, target=target, linked=True)
        if not prop.uselist:
            return Relation(shape=RelationShape.SINGULAR_OWNED, target=target)
        return Relation(shape=RelationShape.PLURAL, target=target)

    def _relationship(self, type_tag: TypeTag, field: str) -> RelationshipProperty[Any]:
        mapper = self._mapper(type_tag)
        if field not in mapper.relationships:
            raise LookupError(f"{type_tag}.{field} is not a mapped relationship")
        return mapper.relationships[field]

    def _morph_declarations(self, type_tag: TypeTag) -> MorphDeclaration:
        if type_tag in self._morphs:
            return self._morphs[type_tag]
        return getattr(self.factory.class_for(type_tag), MORPHS_ATTRIBUTE, {})

    def _mapper(self, type_tag: TypeTag) -> Mapper[Any]:
        return inspect(self.factory.class_for(type_tag))
