from __future__ import annotations

from typing import Any

import pytest

from graphport.domain.blueprint import (
    Blueprint,
    ConditionalFieldWithRules,
    Field,
    FieldWithRules,
    LiteralBlueprint,
    ModelBlueprintProvider,
    parse_blueprint,
    parse_rule,
    resolve_blueprint,
)
from graphport.domain.errors import InvalidRuleShapeError
from graphport.domain.types import Mode
from tests.helpers.records import FakeRecord, InMemoryRecordStore


def test_parse_rule_builds_the_tagged_union() -> None:
    assert parse_rule("test") == Field("test")
    assert parse_rule(["data", {"bar_id": "Bar"}]) == FieldWithRules("data", {"bar_id": "Bar"})

    conditional = parse_rule(["data", "kind", {"root": {"related": "Root"}}])

    assert isinstance(conditional, ConditionalFieldWithRules)
    assert conditional.condition_field == "kind"
    assert conditional.rules_for("root") == {"related": "Root"}
    assert conditional.rules_for("other") is None


def test_conditional_rules_match_numeric_conditions_by_text() -> None:
    rule = ConditionalFieldWithRules("data", "kind", {"1": {"related": "Root"}})

    assert rule.rules_for(1) == {"related": "Root"}
    assert rule.rules_for(None) is None


@pytest.mark.parametrize(
    "raw",
    [
        ["data"],
        ["data", "kind", {}, "extra"],
        ["data", ["not", "a", "mapping"]],
        [1, {"a": "B"}],
        42,
    ],
)
def test_parse_rule_rejects_unsupported_shapes(raw: Any) -> None:
    with pytest.raises(InvalidRuleShapeError):
        parse_rule(raw)


def test_parse_blueprint_handles_veto_none_and_literals() -> None:
    assert parse_blueprint(False, mode=Mode.SERIALIZING) is False
    assert parse_blueprint(None, mode=Mode.SERIALIZING) == Blueprint()
    assert parse_blueprint({"import": 5}, mode=Mode.SERIALIZING) == LiteralBlueprint({"import": 5})
    assert parse_blueprint(["a", "b"], mode=Mode.DESERIALIZING) == Blueprint(
        (Field("a"), Field("b"))
    )


def test_literal_blueprints_are_rejected_while_deserializing() -> None:
    with pytest.raises(InvalidRuleShapeError):
        parse_blueprint({"import": 5}, mode=Mode.DESERIALIZING)


def test_model_blueprint_provider_prefers_overrides() -> None:
    store = InMemoryRecordStore()

    class Annotated(FakeRecord):
        __blueprint__ = ["from_class"]

    record = Annotated("Thing")
    provider = ModelBlueprintProvider(store)

    assert provider(Mode.SERIALIZING, record, None, None) == ["from_class"]
    overridden = provider.with_overrides({"Thing": ["from_override"]})
    assert overridden(Mode.SERIALIZING, record, None, None) == ["from_override"]
    assert provider.with_overrides(None) is provider


def test_model_blueprint_provider_calls_callables_with_direction() -> None:
    store = InMemoryRecordStore()
    calls: list[tuple[Mode, object, object]] = []

    def rules(mode: Mode, record: object, binder: object, serialized: object) -> None:
        calls.append((mode, binder, serialized))

    provider = ModelBlueprintProvider(store, {"Thing": rules})
    record = FakeRecord("Thing")

    blueprint = resolve_blueprint(provider, Mode.DESERIALIZING, record, "engine", {"@id": "@1"})

    assert blueprint == Blueprint()
    assert calls == [(Mode.DESERIALIZING, "engine", {"@id": "@1"})]


def test_empty_override_still_counts_as_override() -> None:
    store = InMemoryRecordStore()

    class Annotated(FakeRecord):
        __blueprint__ = ["from_class"]

    provider = ModelBlueprintProvider(store, {"Thing": []})

    assert provider(Mode.SERIALIZING, Annotated("Thing"), None, None) == []
