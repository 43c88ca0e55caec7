"""Surrogate id issuance for one serialize call."""

from __future__ import annotations

from dataclasses import dataclass, field
from itertools import count
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterator

    from graphport.domain.types import RealId, SurrogateId, TypeTag


@dataclass(slots=True)
class SurrogateIdRegistry:
    """Hand out one stable surrogate id per ``(type_tag, natural_key)``.

    Natural keys are compared by their text form, so ``5`` and ``"5"`` name the
    same record. Ids are ``<prefix><n>`` with ``n`` counting up from 1.
    """

    prefix: str = "@"
    _ids: dict[tuple[TypeTag, str], SurrogateId] = field(default_factory=dict)
    _counter: Iterator[int] = field(default_factory=lambda: count(1))

    def get_id(self, type_tag: TypeTag, natural_key: RealId) -> SurrogateId:
        key = (type_tag, _text_key(natural_key))
        surrogate_id = self._ids.get(key)
        if surrogate_id is None:
            surrogate_id = f"{self.prefix}{next(self._counter)}"
            self._ids[key] = surrogate_id
        return surrogate_id

    def has_id(self, type_tag: TypeTag, natural_key: RealId) -> bool:
        return (type_tag, _text_key(natural_key)) in self._ids

    def __len__(self) -> int:
        return len(self._ids)


def _text_key(natural_key: RealId) -> str:
    if isinstance(natural_key, float) and natural_key.is_integer():
        return str(int(natural_key))
    return str(natural_key)
