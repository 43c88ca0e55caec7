"""Application orchestration entry points."""

from __future__ import annotations

import importlib
from collections.abc import Callable
from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING, Any

from graphport.adapters.sqlalchemy import (
    SqlAlchemyRecordFactory,
    SqlAlchemyUnitOfWork,
    is_started,
    mapped_classes,
    startup,
)
from graphport.config import get_codec_config
from graphport.domain.codec import GraphCodec
from graphport.domain.errors import RecordNotFoundError

if TYPE_CHECKING:
    from collections.abc import Mapping

    from sqlalchemy import MetaData

    from graphport.config import CodecConfig
    from graphport.domain.codec import CustomRules
    from graphport.domain.ports import CodecUnitOfWork
    from graphport.domain.types import AnonymizedGraph, ForestSource, RealId, SurrogateId, TypeTag

type UnitOfWorkFactory = Callable[[], CodecUnitOfWork]
type CodecSetup = Callable[[GraphCodec], None]


log = getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ModelSource:
    """Mapped classes (and their metadata, when known) loaded from ``module:attribute``."""

    classes: tuple[type, ...]
    metadata: MetaData | None = None


def load_models(reference: str) -> ModelSource:
    """Import ``pkg.module:attribute`` naming an ORM registry, declarative base or class list."""

    module_name, _, attribute = reference.partition(":")
    if not module_name or not attribute:
        raise ValueError(f"Expected models as 'package.module:attribute', got {reference!r}")
    module = importlib.import_module(module_name)
    try:
        source: Any = getattr(module, attribute)
    except AttributeError as exc:
        raise ValueError(f"Module {module_name} has no attribute {attribute!r}") from exc
    if callable(source) and not isinstance(source, type):
        source = source()
    classes = tuple(mapped_classes(source))
    if not classes:
        raise ValueError(f"No mapped classes found in {reference}")
    return ModelSource(classes=classes, metadata=getattr(source, "metadata", None))


def sqlalchemy_unit_of_work_factory(
    models: ModelSource,
    *,
    type_map: Mapping[TypeTag, type] | None = None,
    database_uri: str | None = None,
    create_tables: bool = False,
) -> UnitOfWorkFactory:
    if not is_started():
        startup(database_uri=database_uri, metadata=models.metadata if create_tables else None)
    factory = SqlAlchemyRecordFactory(models.classes, type_map)
    return lambda: SqlAlchemyUnitOfWork(factory)


def export_graph(
    *,
    type_tag: TypeTag,
    real_id: RealId,
    unit_of_work_factory: UnitOfWorkFactory,
    custom_rules: CustomRules | None = None,
    config: CodecConfig | None = None,
) -> AnonymizedGraph:
    """Serialize the record ``type_tag``/``real_id`` and everything its blueprints reach."""

    log.info("Starting export of %s %s", type_tag, real_id)
    with unit_of_work_factory() as uow:
        record = uow.store.find(type_tag, real_id)
        if record is None:
            raise RecordNotFoundError(type_tag, real_id)
        codec = GraphCodec(uow.store, config=config or get_codec_config())
        graph = codec.serialize(record, custom_rules)
    log.info(
        "Finished export: types=%d, records=%d",
        len(graph),
        sum(len(entities) for entities in graph.values()),
    )
    return graph


def import_forest(
    source: ForestSource,
    *,
    unit_of_work_factory: UnitOfWorkFactory,
    custom_rules: CustomRules | None = None,
    config: CodecConfig | None = None,
    setup: CodecSetup | None = None,
) -> dict[SurrogateId, RealId]:
    """Deserialize ``source`` in one transaction, committing only when every reference resolved.

    ``setup`` receives the codec before the import starts, e.g. to subscribe
    resolve hooks.
    """

    with unit_of_work_factory() as uow:
        codec = GraphCodec(uow.store, config=config or get_codec_config())
        if setup is not None:
            setup(codec)
        bindings = codec.deserialize(source, custom_rules)
        uow.commit()
    log.info("Finished import: bound=%d", len(bindings))
    return bindings
