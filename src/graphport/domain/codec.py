"""Facade bundling serializer, deserializer and resolve hooks over one store."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from graphport.config.codec import CodecConfig

from .blueprint import ModelBlueprintProvider
from .context import TraversalContext
from .deserialization import GraphDeserializer, ResolveHooks
from .serialization import GraphSerializer

if TYPE_CHECKING:
    from collections.abc import Mapping

    from .blueprint import BlueprintSource
    from .deserialization import ActionKind, AfterResolveHook, BeforeResolveHook
    from .ports import RecordStore
    from .types import (
        AnonymizedGraph,
        ForestSource,
        ProgressCallback,
        RealId,
        Record,
        SurrogateId,
        TypeTag,
    )

log = logging.getLogger(__name__)

type CustomRules = Mapping[TypeTag, BlueprintSource]


class GraphCodec:
    """Serialize record graphs to anonymized forests and back.

    ``blueprints`` overrides model blueprints for every call; ``custom_rules``
    passed to a single call take precedence over both. Resolve hooks are
    shared by every :meth:`deserialize` call made through this codec.
    """

    def __init__(
        self,
        store: RecordStore,
        *,
        blueprints: CustomRules | None = None,
        config: CodecConfig | None = None,
        progress_callback: ProgressCallback | None = None,
    ) -> None:
        self.store = store
        self.config = config or CodecConfig()
        self.hooks = ResolveHooks()
        self.progress_callback = progress_callback
        self._blueprints = ModelBlueprintProvider(store, dict(blueprints or {}))

    def serialize(self, record: Record, custom_rules: CustomRules | None = None) -> AnonymizedGraph:
        serializer = GraphSerializer(
            self.store,
            self._blueprints.with_overrides(custom_rules),
            config=self.config,
        )
        graph = serializer.serialize(record, context=self._context())
        log.info("Serialized %s into %d records", self.store.type_tag(record), _count(graph))
        return graph

    def deserialize(
        self,
        source: ForestSource,
        custom_rules: CustomRules | None = None,
    ) -> dict[SurrogateId, RealId]:
        deserializer = GraphDeserializer(
            self.store,
            self._blueprints.with_overrides(custom_rules),
            config=self.config,
            hooks=self.hooks,
        )
        bindings = deserializer.deserialize(source, context=self._context())
        log.info("Deserialized %d records", len(bindings))
        return bindings

    def on_before_resolve(
        self,
        type_tag: TypeTag,
        kind: ActionKind | str,
        callback: BeforeResolveHook,
    ) -> None:
        self.hooks.before.subscribe(type_tag, kind, callback)

    def on_after_resolve(
        self,
        type_tag: TypeTag,
        kind: ActionKind | str,
        callback: AfterResolveHook,
    ) -> None:
        self.hooks.after.subscribe(type_tag, kind, callback)

    def _context(self) -> TraversalContext:
        return TraversalContext(progress_callback=self.progress_callback)


def _count(graph: AnonymizedGraph) -> int:
    return sum(len(entities) for entities in graph.values())
