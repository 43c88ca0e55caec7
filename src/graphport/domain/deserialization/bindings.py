"""Write-once surrogate id to real id bindings."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from graphport.domain.errors import BindCollisionError

if TYPE_CHECKING:
    from collections.abc import Iterator

    from graphport.domain.types import RealId, SurrogateId


@dataclass(slots=True)
class BindingTable:
    """Bindings collected while deserializing one forest."""

    _bound: dict[SurrogateId, RealId] = field(default_factory=dict)

    def bind(self, surrogate_id: SurrogateId, real_id: RealId) -> None:
        if surrogate_id in self._bound:
            raise BindCollisionError(surrogate_id, self._bound[surrogate_id], real_id)
        self._bound[surrogate_id] = real_id

    def get(self, surrogate_id: SurrogateId, fallback: RealId = None) -> RealId:
        return self._bound.get(surrogate_id, fallback)

    def is_bound(self, surrogate_id: SurrogateId) -> bool:
        return surrogate_id in self._bound

    def as_dict(self) -> dict[SurrogateId, RealId]:
        return dict(self._bound)

    def __contains__(self, surrogate_id: object) -> bool:
        return surrogate_id in self._bound

    def __iter__(self) -> Iterator[SurrogateId]:
        return iter(self._bound)

    def __len__(self) -> int:
        return len(self._bound)
