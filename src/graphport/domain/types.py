"""Wire-level type aliases shared by the serializer and the deserializer."""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping, Sequence
from enum import StrEnum
from typing import Any

type SurrogateId = str
type TypeTag = str
type RealId = Any
type Record = Any

type EntityRecord = dict[str, Any]
type AnonymizedGraph = dict[TypeTag, list[EntityRecord]]

type Forest = Mapping[TypeTag, Sequence[Mapping[str, Any]]]
type ForestProvider = Callable[[], Iterable[Forest]]
type ForestSource = Forest | Iterable[Forest] | ForestProvider

type ProgressCallback = Callable[[float], None]


class Mode(StrEnum):
    """Direction handed to blueprint callables."""

    SERIALIZING = "serializing"
    DESERIALIZING = "deserializing"
