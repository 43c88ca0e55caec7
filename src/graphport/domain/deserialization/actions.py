"""Deferred actions and the queue that holds them until resolution."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING, Final, Literal

if TYPE_CHECKING:
    from collections.abc import Iterator

    from graphport.domain.types import SurrogateId, TypeTag


class ActionKind(StrEnum):
    UPDATE = "update"
    ASSOCIATE = "associate"
    ATTACH = "attach"
    MORPH = "morph"
    SEARCH = "search"


@dataclass(frozen=True, slots=True, kw_only=True)
class DeferredUpdate:
    """Write the real id at a dot path inside a container field."""

    type_tag: TypeTag
    owning_id: SurrogateId
    dot_field: str
    referred_id: SurrogateId
    kind: Literal[ActionKind.UPDATE] = ActionKind.UPDATE

    @property
    def target(self) -> str:
        return self.dot_field


@dataclass(frozen=True, slots=True, kw_only=True)
class DeferredAssociate:
    """Point a singular-owning relation at the referred record."""

    type_tag: TypeTag
    owning_id: SurrogateId
    field: str
    referred_id: SurrogateId
    kind: Literal[ActionKind.ASSOCIATE] = ActionKind.ASSOCIATE

    @property
    def target(self) -> str:
        return self.field


@dataclass(frozen=True, slots=True, kw_only=True)
class DeferredAttach:
    """Add the referred record to a plural relation."""

    type_tag: TypeTag
    owning_id: SurrogateId
    field: str
    referred_id: SurrogateId
    kind: Literal[ActionKind.ATTACH] = ActionKind.ATTACH

    @property
    def target(self) -> str:
        return self.field


@dataclass(frozen=True, slots=True, kw_only=True)
class DeferredMorph:
    """Point a polymorphic relation at ``(morph_type, referred record)``."""

    type_tag: TypeTag
    owning_id: SurrogateId
    field: str
    morph_type: TypeTag
    referred_id: SurrogateId
    kind: Literal[ActionKind.MORPH] = ActionKind.MORPH

    @property
    def target(self) -> str:
        return f"{self.field} ({self.morph_type})"


@dataclass(frozen=True, slots=True, kw_only=True)
class DeferredSearch:
    """Rewrite ``search`` inside a string leaf, swapping the surrogate id for the real one.

    With ``value_pattern`` set, only matches of that pattern whose first group is
    exactly ``referred_id`` are rewritten, so ``@2`` never touches ``@20``.
    """

    type_tag: TypeTag
    owning_id: SurrogateId
    dot_field: str
    search: str
    referred_id: SurrogateId
    value_pattern: str | None = None
    kind: Literal[ActionKind.SEARCH] = ActionKind.SEARCH

    @property
    def target(self) -> str:
        return self.dot_field


type DeferredAction = (
    DeferredUpdate | DeferredAssociate | DeferredAttach | DeferredMorph | DeferredSearch
)

RESOLVE_ORDER: Final[tuple[ActionKind, ...]] = (
    ActionKind.ASSOCIATE,
    ActionKind.ATTACH,
    ActionKind.UPDATE,
    ActionKind.SEARCH,
    ActionKind.MORPH,
)


@dataclass(slots=True)
class DeferredActionQueue:
    """Pending actions grouped by type tag, then by owning surrogate id.

    Both groupings keep first-insertion order; within one owner the actions are
    yielded by kind in :data:`RESOLVE_ORDER`, each kind in insertion order.
    """

    _pending: dict[TypeTag, dict[SurrogateId, dict[ActionKind, list[DeferredAction]]]] = field(
        default_factory=dict
    )
    _size: int = 0

    def add(self, action: DeferredAction) -> None:
        by_owner = self._pending.setdefault(action.type_tag, {})
        by_kind = by_owner.setdefault(action.owning_id, {kind: [] for kind in RESOLVE_ORDER})
        by_kind[action.kind].append(action)
        self._size += 1

    def __iter__(self) -> Iterator[tuple[TypeTag, SurrogateId, list[DeferredAction]]]:
        for type_tag, by_owner in self._pending.items():
            for owning_id, by_kind in by_owner.items():
                ordered = [action for kind in RESOLVE_ORDER for action in by_kind[kind]]
                yield type_tag, owning_id, ordered

    def __len__(self) -> int:
        return self._size

    def clear(self) -> None:
        self._pending.clear()
        self._size = 0
