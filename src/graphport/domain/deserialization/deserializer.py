"""Rebuild records from an anonymized forest and link them up."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Mapping, Sequence
from copy import deepcopy
from typing import TYPE_CHECKING, Any, cast

from graphport.config.codec import CodecConfig
from graphport.domain.blueprint import (
    Blueprint,
    ConditionalFieldWithRules,
    FieldWithRules,
    resolve_blueprint,
)
from graphport.domain.context import TraversalContext
from graphport.domain.errors import (
    InvalidRuleShapeError,
    MalformedInputError,
    RecordNotFoundError,
)
from graphport.domain.paths import compile_pattern, iter_leaves, path_matches, set_path
from graphport.domain.ports import RelationShape
from graphport.domain.types import Mode

from .engine import ResolutionEngine

if TYPE_CHECKING:
    from collections.abc import Iterator

    from graphport.domain.blueprint import BlueprintProvider, MatchRules, Rule
    from graphport.domain.ports import RecordStore, Relation
    from graphport.domain.types import Forest, ForestSource, RealId, Record, SurrogateId, TypeTag

    from .hooks import ResolveHooks

log = logging.getLogger(__name__)


class GraphDeserializer:
    """Create one record per serialized entity, then resolve forward references.

    Input is a forest, an iterable of forest fragments, or a zero-argument
    callable returning such an iterable. Fragments are consumed once, in order;
    references may point at records of any fragment.
    """

    def __init__(
        self,
        store: RecordStore,
        blueprints: BlueprintProvider,
        *,
        config: CodecConfig | None = None,
        hooks: ResolveHooks | None = None,
    ) -> None:
        self._store = store
        self._blueprints = blueprints
        self._config = config or CodecConfig()
        self._hooks = hooks

    def deserialize(
        self,
        source: ForestSource,
        *,
        context: TraversalContext | None = None,
    ) -> dict[SurrogateId, RealId]:
        engine = ResolutionEngine(self._store, hooks=self._hooks)
        context = context or TraversalContext()
        fragments = 0
        for fragment in iter_fragments(source, id_key=self._config.id_key):
            self._consume(fragment, engine, context)
            fragments += 1
        log.debug(
            "Consumed %d fragments, %d ids bound, %d actions deferred",
            fragments,
            len(engine.bindings),
            len(engine.queue),
        )
        return engine.resolve()

    def _consume(
        self,
        fragment: Forest,
        engine: ResolutionEngine,
        context: TraversalContext,
    ) -> None:
        context.start_progress(sum(len(entities) for entities in fragment.values()))
        for type_tag, entities in fragment.items():
            with context.step(type_tag):
                for serialized in entities:
                    self._import_entity(type_tag, serialized, engine, context)
                    context.advance()

    def _import_entity(
        self,
        type_tag: TypeTag,
        serialized: Mapping[str, Any],
        engine: ResolutionEngine,
        context: TraversalContext,
    ) -> None:
        surrogate_id = serialized[self._config.id_key]
        key_field = self._store.key_field(type_tag)
        record = self._existing_or_new(type_tag, serialized.get(key_field), surrogate_id)

        blueprint = resolve_blueprint(
            self._blueprints, Mode.DESERIALIZING, record, engine, serialized
        )
        if blueprint is False:
            log.debug("Blueprint skipped %s %s at %s", type_tag, surrogate_id, context.describe())
            return
        if not isinstance(blueprint, Blueprint):
            raise InvalidRuleShapeError(f"Unsupported blueprint for {type_tag}: {blueprint!r}")

        with context.step(surrogate_id):
            for rule in blueprint.rules:
                if rule.name == key_field or rule.name not in serialized:
                    continue
                with context.step(rule.name):
                    relation = self._store.relation(type_tag, rule.name)
                    if relation is None:
                        self._write_field(record, rule, serialized, surrogate_id, engine)
                    else:
                        self._write_relation(
                            record, rule.name, relation, serialized[rule.name], surrogate_id, engine
                        )

        self._store.save(record)
        engine.bind(surrogate_id, self._store.key(record))

    def _existing_or_new(
        self,
        type_tag: TypeTag,
        real_key: RealId,
        surrogate_id: SurrogateId,
    ) -> Record:
        if real_key is None:
            return self._store.create(type_tag)
        record = self._store.find(type_tag, real_key)
        if record is None:
            raise RecordNotFoundError(type_tag, real_key, surrogate_id)
        return record

    def _write_field(
        self,
        record: Record,
        rule: Rule,
        serialized: Mapping[str, Any],
        owning_id: SurrogateId,
        engine: ResolutionEngine,
    ) -> None:
        value = serialized[rule.name]
        rules: MatchRules | None = None
        if isinstance(rule, FieldWithRules):
            rules = rule.rules
        elif isinstance(rule, ConditionalFieldWithRules):
            rules = rule.rules_for(serialized.get(rule.condition_field))

        self._store.set(record, rule.name, deepcopy(value))
        if rules is not None and isinstance(value, Mapping | list):
            self._to_real_ids(record, rule.name, value, rules, owning_id, engine)

    def _to_real_ids(
        self,
        record: Record,
        name: str,
        value: Mapping[str, Any] | list[Any],
        rules: MatchRules,
        owning_id: SurrogateId,
        engine: ResolutionEngine,
    ) -> None:
        for path, leaf in iter_leaves(value):
            if not isinstance(leaf, str):
                continue
            dot_field = f"{name}.{path}"
            if self._config.is_surrogate(leaf):
                for pattern, target in rules.items():
                    if isinstance(target, str) and path_matches(pattern, path):
                        # the leaf stays None unless the update is applied
                        self._clear_leaf(record, name, path)
                        engine.update(record, dot_field, owning_id, leaf)
                        break
                continue
            for pattern, target in rules.items():
                if isinstance(target, Mapping) and path_matches(pattern, path):
                    for value_pattern in target:
                        for search, referred_id in self._references(value_pattern, leaf):
                            engine.search_and_replace(
                                record,
                                dot_field,
                                owning_id,
                                search,
                                referred_id,
                                value_pattern=value_pattern,
                            )

    def _references(self, value_pattern: str, text: str) -> Iterator[tuple[str, SurrogateId]]:
        pattern = compile_pattern(value_pattern)
        if pattern.groups < 1:
            return
        seen: set[str] = set()
        for match in pattern.finditer(text):
            referred_id = match.group(1)
            if referred_id in seen or not self._config.is_surrogate(referred_id):
                continue
            seen.add(referred_id)
            yield match.group(0), referred_id

    def _clear_leaf(self, record: Record, name: str, path: str) -> None:
        data = deepcopy(self._store.get(record, name))
        set_path(data, path, None)
        self._store.set(record, name, data)

    def _write_relation(
        self,
        record: Record,
        name: str,
        relation: Relation,
        value: object,
        owning_id: SurrogateId,
        engine: ResolutionEngine,
    ) -> None:
        if value is None or relation.shape is RelationShape.SINGULAR_OWNED:
            return
        if relation.shape is RelationShape.SINGULAR_OWNING:
            if not isinstance(value, str):
                raise MalformedInputError(
                    f"Expected a surrogate id for {name!r} of {owning_id}, got {value!r}"
                )
            engine.associate(record, name, owning_id, value)
        elif relation.shape is RelationShape.POLYMORPHIC_SINGULAR:
            if isinstance(value, str) or not isinstance(value, Sequence) or len(value) != 2:
                raise MalformedInputError(
                    f"Expected [type, id] for {name!r} of {owning_id}, got {value!r}"
                )
            engine.morph(record, name, owning_id, cast(Sequence[str], value))
        elif isinstance(value, list):
            for referred_id in cast(list[str], value):
                engine.attach(record, name, owning_id, referred_id)


def iter_fragments(source: ForestSource, *, id_key: str = "@id") -> Iterator[Forest]:
    """Yield validated forest fragments from any accepted input shape."""

    fragments: Iterable[object]
    if isinstance(source, Mapping):
        fragments = (source,)
    elif callable(source):
        produced = cast(Callable[[], object], source)()
        if isinstance(produced, Mapping | str | bytes) or not isinstance(produced, Iterable):
            raise MalformedInputError("Fragment providers must return an iterable of forests")
        fragments = cast(Iterable[object], produced)
    elif isinstance(source, Iterable) and not isinstance(source, str | bytes):
        fragments = cast(Iterable[object], source)
    else:
        raise MalformedInputError(
            f"Expected a forest, an iterable of forests or a provider, got {type(source).__name__}"
        )
    for fragment in fragments:
        yield _validated(fragment, id_key)


def _validated(fragment: object, id_key: str) -> Forest:
    if not isinstance(fragment, Mapping):
        raise MalformedInputError(
            f"Forest fragments must be mappings, got {type(fragment).__name__}"
        )
    for type_tag, entities in cast(Mapping[object, object], fragment).items():
        if not isinstance(type_tag, str):
            raise MalformedInputError(f"Type tags must be strings, got {type_tag!r}")
        if isinstance(entities, str) or not isinstance(entities, Sequence):
            raise MalformedInputError(f"Entities of {type_tag} must be a list")
        for entity in cast(Sequence[object], entities):
            if not isinstance(entity, Mapping):
                raise MalformedInputError(f"Entities of {type_tag} must be mappings")
            if not isinstance(cast(Mapping[str, object], entity).get(id_key), str):
                raise MalformedInputError(f"Entity of {type_tag} is missing its {id_key} key")
    return cast("Forest", fragment)
