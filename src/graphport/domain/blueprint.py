"""Blueprints: which fields and relations of a record take part in the codec.

A blueprint is an ordered list of rules. Raw rules keep the compact notation
callers write by hand and are parsed into a closed set of rule types:

- ``"field"`` -> :class:`Field`
- ``["field", match_rules]`` -> :class:`FieldWithRules`
- ``["field", "condition_field", {value: match_rules}]`` ->
  :class:`ConditionalFieldWithRules`

Match rules map a dot-path pattern (exact, or ``/regex/`` delimited) to either
a type tag (id substitution at that path) or to ``{value_regex: type_tag}``
(search and replace of the id captured by group 1 inside a string).

A blueprint source may also veto a record entirely by returning ``False``, or,
while serializing, return a mapping of literal values that is exported as-is.
"""

from __future__ import annotations

from collections.abc import Callable, Hashable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Literal, Protocol, cast

from .errors import InvalidRuleShapeError
from .types import Mode

if TYPE_CHECKING:
    from .ports import RecordStore
    from .types import Record, TypeTag


type MatchRules = Mapping[str, TypeTag | Mapping[str, TypeTag]]


@dataclass(frozen=True, slots=True)
class Field:
    name: str


@dataclass(frozen=True, slots=True)
class FieldWithRules:
    name: str
    rules: MatchRules


@dataclass(frozen=True, slots=True)
class ConditionalFieldWithRules:
    """Pick match rules by the value of another field of the same record."""

    name: str
    condition_field: str
    rules_by_value: Mapping[Hashable, MatchRules]

    def rules_for(self, value: object) -> MatchRules | None:
        if value is None or not isinstance(value, Hashable):
            return None
        rules = self.rules_by_value.get(value)
        if rules is None and not isinstance(value, str):
            rules = self.rules_by_value.get(str(value))
        return rules


type Rule = Field | FieldWithRules | ConditionalFieldWithRules
type RawRule = str | Sequence[object] | Rule
type RawBlueprint = Sequence[RawRule] | Mapping[str, object] | Literal[False]


class BlueprintCallable(Protocol):
    def __call__(
        self,
        mode: Mode,
        record: Record,
        binder: Any,
        serialized: Mapping[str, Any] | None,
    ) -> RawBlueprint | None: ...


type BlueprintSource = RawBlueprint | BlueprintCallable


@dataclass(frozen=True, slots=True)
class Blueprint:
    rules: tuple[Rule, ...] = ()


@dataclass(frozen=True, slots=True)
class LiteralBlueprint:
    """Values exported verbatim next to the reserved id key."""

    values: Mapping[str, object] = field(default_factory=dict)


type ResolvedBlueprint = Blueprint | LiteralBlueprint | Literal[False]


def parse_rule(raw: RawRule) -> Rule:
    if isinstance(raw, Field | FieldWithRules | ConditionalFieldWithRules):
        return raw
    if isinstance(raw, str):
        return Field(raw)
    if not isinstance(raw, Sequence):
        raise InvalidRuleShapeError(f"Unsupported rule {raw!r}")
    parts = list(raw)
    if len(parts) == 2:
        name, rules = parts
        return FieldWithRules(_rule_name(name), _match_rules(rules))
    if len(parts) == 3:
        name, condition_field, rules_by_value = parts
        if not isinstance(rules_by_value, Mapping):
            raise InvalidRuleShapeError(f"Conditional rules for {name!r} must be a mapping")
        typed_rules = cast(Mapping[Hashable, object], rules_by_value)
        return ConditionalFieldWithRules(
            _rule_name(name),
            _rule_name(condition_field),
            {value: _match_rules(rules) for value, rules in typed_rules.items()},
        )
    raise InvalidRuleShapeError(f"Unsupported rule with weird length of {len(parts)}: {raw!r}")


def parse_blueprint(raw: RawBlueprint | None, *, mode: Mode) -> ResolvedBlueprint:
    if raw is False:
        return False
    if raw is None:
        return Blueprint()
    if isinstance(raw, Mapping):
        if mode is not Mode.SERIALIZING:
            raise InvalidRuleShapeError("Literal blueprints are only valid while serializing")
        return LiteralBlueprint(dict(cast(Mapping[str, object], raw)))
    if isinstance(raw, str) or not isinstance(raw, Sequence):
        raise InvalidRuleShapeError(f"Blueprint must be a list of rules, got {raw!r}")
    return Blueprint(tuple(parse_rule(rule) for rule in raw))


def _rule_name(value: object) -> str:
    if not isinstance(value, str) or not value:
        raise InvalidRuleShapeError(f"Rule field names must be non-empty strings, got {value!r}")
    return value


def _match_rules(value: object) -> MatchRules:
    if not isinstance(value, Mapping):
        raise InvalidRuleShapeError(f"Match rules must be a mapping, got {value!r}")
    rules = cast(Mapping[object, object], value)
    for pattern, target in rules.items():
        if not isinstance(pattern, str):
            raise InvalidRuleShapeError(f"Match rule patterns must be strings, got {pattern!r}")
        if not isinstance(target, str | Mapping):
            raise InvalidRuleShapeError(f"Unsupported match rule target for {pattern!r}")
    return cast(MatchRules, rules)


class BlueprintProvider(Protocol):
    """Return the raw blueprint of ``record`` for the given direction."""

    def __call__(
        self,
        mode: Mode,
        record: Record,
        binder: Any,
        serialized: Mapping[str, Any] | None,
    ) -> RawBlueprint | None: ...


BLUEPRINT_ATTRIBUTE = "__blueprint__"


@dataclass(slots=True)
class ModelBlueprintProvider:
    """Resolve blueprints from per-type overrides first, then from the record class.

    A record class declares its blueprint as a ``__blueprint__`` list, or as a
    classmethod/staticmethod with the :class:`BlueprintCallable` signature.
    """

    store: RecordStore
    overrides: Mapping[TypeTag, BlueprintSource] = field(default_factory=dict)

    def with_overrides(
        self,
        overrides: Mapping[TypeTag, BlueprintSource] | None,
    ) -> ModelBlueprintProvider:
        if not overrides:
            return self
        return ModelBlueprintProvider(self.store, {**self.overrides, **overrides})

    def __call__(
        self,
        mode: Mode,
        record: Record,
        binder: Any,
        serialized: Mapping[str, Any] | None,
    ) -> RawBlueprint | None:
        type_tag = self.store.type_tag(record)
        if type_tag in self.overrides:
            source: object = self.overrides[type_tag]
        else:
            source = getattr(type(record), BLUEPRINT_ATTRIBUTE, None)
        if callable(source):
            produce = cast(Callable[..., RawBlueprint | None], source)
            result = produce(mode, record, binder, serialized)
            return [] if result is None else result
        return cast(RawBlueprint | None, source)


def resolve_blueprint(
    provider: BlueprintProvider,
    mode: Mode,
    record: Record,
    binder: Any,
    serialized: Mapping[str, Any] | None = None,
) -> ResolvedBlueprint:
    return parse_blueprint(provider(mode, record, binder, serialized), mode=mode)
