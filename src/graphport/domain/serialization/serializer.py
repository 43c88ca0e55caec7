"""Depth-first serializer turning a record graph into an anonymized forest."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from copy import deepcopy
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from graphport.config.codec import CodecConfig
from graphport.domain.blueprint import (
    ConditionalFieldWithRules,
    FieldWithRules,
    LiteralBlueprint,
    resolve_blueprint,
)
from graphport.domain.context import TraversalContext
from graphport.domain.paths import (
    compile_pattern,
    get_path,
    iter_leaves,
    path_matches,
    replace_group,
    set_path,
)
from graphport.domain.ports import RelationShape
from graphport.domain.types import Mode

from .registry import SurrogateIdRegistry

if TYPE_CHECKING:
    from collections.abc import Iterable

    from graphport.domain.blueprint import BlueprintProvider, MatchRules, Rule
    from graphport.domain.ports import RecordStore, Relation
    from graphport.domain.types import AnonymizedGraph, EntityRecord, Record, SurrogateId, TypeTag

log = logging.getLogger(__name__)


@dataclass(slots=True)
class _Run:
    registry: SurrogateIdRegistry
    context: TraversalContext
    visited: set[tuple[TypeTag, SurrogateId]] = field(default_factory=set)


class GraphSerializer:
    """Walk a record and everything its blueprints reach, issuing surrogate ids."""

    def __init__(
        self,
        store: RecordStore,
        blueprints: BlueprintProvider,
        *,
        config: CodecConfig | None = None,
    ) -> None:
        self._store = store
        self._blueprints = blueprints
        self._config = config or CodecConfig()

    def serialize(
        self,
        record: Record,
        graph: AnonymizedGraph | None = None,
        *,
        context: TraversalContext | None = None,
        registry: SurrogateIdRegistry | None = None,
    ) -> AnonymizedGraph:
        run = _Run(
            registry=registry or SurrogateIdRegistry(prefix=self._config.id_prefix),
            context=context or TraversalContext(),
        )
        graph = {} if graph is None else graph
        self._visit(record, graph, run)
        log.debug("Serialized %d surrogate ids into %d types", len(run.registry), len(graph))
        return graph

    def _visit(self, record: Record, graph: AnonymizedGraph, run: _Run) -> bool:
        """Emit ``record`` unless vetoed; return whether it is part of the graph."""

        type_tag = self._store.type_tag(record)
        blueprint = resolve_blueprint(self._blueprints, Mode.SERIALIZING, record, run.registry)
        if blueprint is False:
            log.debug("Blueprint vetoed %s at %s", type_tag, run.context.describe())
            return False

        surrogate_id = run.registry.get_id(type_tag, self._store.key(record))
        if (type_tag, surrogate_id) in run.visited:
            return True
        run.visited.add((type_tag, surrogate_id))

        entity: EntityRecord = {self._config.id_key: surrogate_id}
        if isinstance(blueprint, LiteralBlueprint):
            entity.update(blueprint.values)
            graph.setdefault(type_tag, []).append(entity)
            return True

        graph.setdefault(type_tag, [])
        with run.context.step(f"{type_tag}-{surrogate_id}"):
            for rule in blueprint.rules:
                with run.context.step(rule.name):
                    relation = self._store.relation(type_tag, rule.name)
                    if relation is None:
                        entity[rule.name] = self._field_value(record, rule, run.registry)
                    else:
                        self._relation_value(record, rule.name, relation, entity, graph, run)
        graph[type_tag].append(entity)
        return True

    def _field_value(self, record: Record, rule: Rule, registry: SurrogateIdRegistry) -> Any:
        content = self._store.get(record, rule.name)
        if not isinstance(content, Mapping | list):
            return content
        rules: MatchRules | None = None
        if isinstance(rule, FieldWithRules):
            rules = rule.rules
        elif isinstance(rule, ConditionalFieldWithRules):
            rules = rule.rules_for(self._store.get(record, rule.condition_field))
        if rules is None:
            return deepcopy(content)
        return to_surrogate_ids(content, rules, registry)

    def _relation_value(
        self,
        record: Record,
        name: str,
        relation: Relation,
        entity: EntityRecord,
        graph: AnonymizedGraph,
        run: _Run,
    ) -> None:
        if relation.shape is RelationShape.POLYMORPHIC_SINGULAR:
            morph_type = self._store.get(record, relation.require_type_field())
            morph_key = self._store.get(record, relation.require_key_field())
            if morph_type is None or morph_key is None:
                entity[name] = None
            else:
                entity[name] = [morph_type, run.registry.get_id(morph_type, morph_key)]
            return

        content = self._store.get(record, name)
        if relation.shape is RelationShape.PLURAL:
            member_ids: list[SurrogateId] = []
            for member in _iter_members(content):
                if self._visit(member, graph, run):
                    member_ids.append(
                        run.registry.get_id(self._store.type_tag(member), self._store.key(member))
                    )
            if relation.linked:
                entity[name] = member_ids
            return

        if content is None:
            entity[name] = None
            return
        target_tag = self._store.type_tag(content)
        target_key = self._store.key(content)
        if relation.shape is RelationShape.SINGULAR_OWNING:
            issued = run.registry.has_id(target_tag, target_key)
            entity[name] = run.registry.get_id(target_tag, target_key)
            if not issued:
                self._visit(content, graph, run)
            return
        self._visit(content, graph, run)
        entity[name] = run.registry.get_id(target_tag, target_key)


def _iter_members(content: object) -> Iterable[Record]:
    if content is None:
        return ()
    if isinstance(content, Mapping):
        return content.values()
    return content  # type: ignore[return-value]


def _is_positive_number(value: object) -> bool:
    if isinstance(value, bool):
        return False
    if isinstance(value, int | float):
        return value > 0
    if isinstance(value, str):
        return value.isdigit() and int(value) > 0
    return False


def to_surrogate_ids(
    content: Mapping[str, Any] | list[Any],
    rules: MatchRules,
    registry: SurrogateIdRegistry,
) -> Any:
    """Return a copy of ``content`` with matched real ids swapped for surrogate ids.

    Path rules (``pattern -> type``) replace positive numeric leaves outright.
    Search rules (``pattern -> {value_regex: type}``) rewrite only the first
    capture group of every value-regex match inside string leaves.
    """

    result = deepcopy(content)
    for path, value in iter_leaves(content):
        if _is_positive_number(value):
            for pattern, target in rules.items():
                if isinstance(target, str) and path_matches(pattern, path):
                    set_path(result, path, registry.get_id(target, value))
                    break
        elif isinstance(value, str):
            for pattern, target in rules.items():
                if isinstance(target, Mapping) and path_matches(pattern, path):
                    current = get_path(result, path)
                    for value_pattern, type_tag in target.items():
                        current = _replace_ids(value_pattern, current, type_tag, registry)
                    set_path(result, path, current)
    return result


def _replace_ids(
    value_pattern: str,
    text: str,
    type_tag: TypeTag,
    registry: SurrogateIdRegistry,
) -> str:
    pattern = compile_pattern(value_pattern)
    if pattern.groups < 1:
        return text
    return pattern.sub(
        lambda match: replace_group(match, registry.get_id(type_tag, match.group(1))),
        text,
    )
