"""Mapped fixture models exercising every relation shape the codec supports."""

from __future__ import annotations

from functools import cache
from typing import Any, ClassVar

from sqlalchemy import JSON, Column, ForeignKey, Integer, MetaData, String, Table, and_, orm
from sqlalchemy.orm import relationship

metadata = MetaData()
mapper_registry = orm.registry(metadata=metadata)


class _Record:
    __blueprint__: ClassVar[Any] = None

    def __init__(self, **values: Any) -> None:
        for name, value in values.items():
            setattr(self, name, value)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(id={getattr(self, 'id', None)!r})"


class Root(_Record):
    __blueprint__ = [
        "test",
        "polys",
        "foos",
        "bar",
        "special_bar",
        "customs",
        "resources",
        "tags",
    ]

    id: int
    test: str | None
    special_bar_id: int | None


class Bar(_Record):
    __blueprint__ = ["test", "root"]

    id: int
    test: str | None
    root_id: int | None


class Foo(_Record):
    __blueprint__ = [
        "test",
        "polys",
        [
            "data",
            {
                "bar_id": "Bar",
                r"/\.bar\.id/": "Root",
                r"/custom_ids\.[\d]+/": "Custom",
            },
        ],
        "root",
    ]

    id: int
    test: str | None
    data: Any
    root_id: int | None


class Poly(_Record):
    __blueprint__ = ["polyable", "test"]
    __morphs__ = {"polyable": ("polyable_type", "polyable_id")}

    id: int
    test: str | None
    polyable_type: str | None
    polyable_id: int | None


class Custom(_Record):
    __blueprint__ = ["id", "data", "root"]

    id: int
    data: Any
    root_id: int | None


class Resource(_Record):
    __blueprint__ = ["name", "root", "references"]

    id: int
    name: str | None
    root_id: int | None


class ResourceReference(_Record):
    __blueprint__ = ["root", "referable", "resource"]
    __morphs__ = {"referable": ("referable_type", "referable_id")}

    id: int
    root_id: int | None
    resource_id: int | None
    referable_type: str | None
    referable_id: int | None


class Tag(_Record):
    __blueprint__ = ["label"]

    id: int
    label: str | None


# bars.root_id carries no database constraint so roots <-> bars stays acyclic
root_table = Table(
    "roots",
    metadata,
    Column("id", Integer, primary_key=True),
    Column("test", String, nullable=True),
    Column("special_bar_id", Integer, ForeignKey("bars.id"), nullable=True),
)

bar_table = Table(
    "bars",
    metadata,
    Column("id", Integer, primary_key=True),
    Column("root_id", Integer, nullable=True),
    Column("test", String, nullable=True),
)

foo_table = Table(
    "foos",
    metadata,
    Column("id", Integer, primary_key=True),
    Column("root_id", Integer, ForeignKey("roots.id"), nullable=True),
    Column("test", String, nullable=True),
    Column("data", JSON, nullable=True),
)

poly_table = Table(
    "polies",
    metadata,
    Column("id", Integer, primary_key=True),
    Column("polyable_type", String, nullable=False),
    Column("polyable_id", Integer, nullable=False),
    Column("test", String, nullable=True),
)

custom_table = Table(
    "customs",
    metadata,
    Column("id", Integer, primary_key=True),
    Column("root_id", Integer, ForeignKey("roots.id"), nullable=True),
    Column("data", JSON, nullable=True),
)

resource_table = Table(
    "resources",
    metadata,
    Column("id", Integer, primary_key=True),
    Column("root_id", Integer, ForeignKey("roots.id"), nullable=True),
    Column("name", String, nullable=True),
)

resource_reference_table = Table(
    "resource_references",
    metadata,
    Column("id", Integer, primary_key=True),
    Column("root_id", Integer, ForeignKey("roots.id"), nullable=True),
    Column("resource_id", Integer, ForeignKey("resources.id"), nullable=True),
    Column("referable_type", String, nullable=False),
    Column("referable_id", Integer, nullable=False),
)

tag_table = Table(
    "tags",
    metadata,
    Column("id", Integer, primary_key=True),
    Column("label", String, nullable=True),
)

root_tag_table = Table(
    "root_tags",
    metadata,
    Column("root_id", Integer, ForeignKey("roots.id"), primary_key=True),
    Column("tag_id", Integer, ForeignKey("tags.id"), primary_key=True),
)


def _polys_relationship(owner_table: Table, owner_type: str) -> orm.RelationshipProperty[Any]:
    return relationship(
        Poly,
        primaryjoin=and_(
            poly_table.c.polyable_id == owner_table.c.id,
            poly_table.c.polyable_type == owner_type,
        ),
        foreign_keys=[poly_table.c.polyable_id],
        order_by=poly_table.c.id,
        viewonly=True,
    )


@cache
def start_mappers() -> orm.registry:
    """Map the fixture classes once per test session."""

    mapper_registry.map_imperatively(Tag, tag_table)
    mapper_registry.map_imperatively(Poly, poly_table)
    mapper_registry.map_imperatively(
        Bar,
        bar_table,
        properties={
            "root": relationship(
                Root,
                primaryjoin=bar_table.c.root_id == root_table.c.id,
                foreign_keys=[bar_table.c.root_id],
                back_populates="bar",
            ),
        },
    )
    mapper_registry.map_imperatively(
        Foo,
        foo_table,
        properties={
            "root": relationship(Root, back_populates="foos"),
            "polys": _polys_relationship(foo_table, "Foo"),
        },
    )
    mapper_registry.map_imperatively(
        Custom,
        custom_table,
        properties={"root": relationship(Root, back_populates="customs")},
    )
    mapper_registry.map_imperatively(
        ResourceReference,
        resource_reference_table,
        properties={
            "root": relationship(Root),
            "resource": relationship(Resource, back_populates="references"),
        },
    )
    mapper_registry.map_imperatively(
        Resource,
        resource_table,
        properties={
            "root": relationship(Root, back_populates="resources"),
            "references": relationship(
                ResourceReference,
                back_populates="resource",
                order_by=resource_reference_table.c.id,
            ),
        },
    )
    mapper_registry.map_imperatively(
        Root,
        root_table,
        properties={
            "bar": relationship(
                Bar,
                primaryjoin=bar_table.c.root_id == root_table.c.id,
                foreign_keys=[bar_table.c.root_id],
                back_populates="root",
                uselist=False,
            ),
            "special_bar": relationship(Bar, foreign_keys=[root_table.c.special_bar_id]),
            "foos": relationship(Foo, back_populates="root", order_by=foo_table.c.id),
            "customs": relationship(Custom, back_populates="root", order_by=custom_table.c.id),
            "resources": relationship(
                Resource,
                back_populates="root",
                order_by=resource_table.c.id,
            ),
            "polys": _polys_relationship(root_table, "Root"),
            "tags": relationship(Tag, secondary=root_tag_table, order_by=tag_table.c.id),
        },
    )
    orm.configure_mappers()
    return mapper_registry


MODEL_CLASSES: tuple[type, ...] = (Root, Bar, Foo, Poly, Custom, Resource, ResourceReference, Tag)


def fixture_registry() -> orm.registry:
    """Entry point for ``--models tests.helpers.models:fixture_registry``."""

    return start_mappers()
