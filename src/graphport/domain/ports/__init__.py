"""Domain port definitions for adapters."""

from __future__ import annotations

from graphport.domain.blueprint import BlueprintProvider

from .store import RecordFactory, RecordStore, Relation, RelationShape
from .unit_of_work import CodecUnitOfWork

__all__ = [
    "BlueprintProvider",
    "CodecUnitOfWork",
    "RecordFactory",
    "RecordStore",
    "Relation",
    "RelationShape",
]
