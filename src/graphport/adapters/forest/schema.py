"""Pydantic models describing anonymized forest documents."""

from __future__ import annotations

from typing import Any

from pydantic import RootModel, ValidationInfo, field_validator

DEFAULT_ID_KEY = "@id"


class ForestDocument(RootModel[dict[str, list[dict[str, Any]]]]):
    """``{type_tag: [entity, ...]}`` where every entity carries the reserved id key.

    The reserved key defaults to ``@id``; pass ``context={"id_key": ...}`` when
    validating documents written with another surrogate prefix.
    """

    @field_validator("root")
    @classmethod
    def _require_ids(
        cls,
        value: dict[str, list[dict[str, Any]]],
        info: ValidationInfo,
    ) -> dict[str, list[dict[str, Any]]]:
        context = info.context if isinstance(info.context, dict) else {}
        id_key = str(context.get("id_key", DEFAULT_ID_KEY))
        for type_tag, entities in value.items():
            if not type_tag:
                raise ValueError("type tags must not be empty")
            for position, entity in enumerate(entities):
                surrogate_id = entity.get(id_key)
                if not isinstance(surrogate_id, str) or not surrogate_id:
                    raise ValueError(f"{type_tag}[{position}] is missing its {id_key} key")
        return value

    @property
    def record_count(self) -> int:
        return sum(len(entities) for entities in self.root.values())
