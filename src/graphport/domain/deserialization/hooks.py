"""Subscriber registries for before/after resolve notifications.

Before hooks may veto a write by returning ``False`` exactly; any other return
value lets it through. Every subscriber runs even once one of them vetoed.
After hooks only observe, their return values are ignored.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from .actions import ActionKind

if TYPE_CHECKING:
    from graphport.domain.types import RealId, Record, TypeTag

    from .actions import DeferredAction


type BeforeResolveHook = Callable[[Record, DeferredAction, RealId | None], object]
type AfterResolveHook = Callable[[Record, DeferredAction, RealId], object]


def coerce_kind(kind: ActionKind | str) -> ActionKind:
    try:
        return ActionKind(kind)
    except ValueError:
        valid = ", ".join(member.value for member in ActionKind)
        raise ValueError(f"Invalid action kind {kind!r}, expected one of: {valid}") from None


@dataclass
class HookRegistry[H: Callable[..., object]]:
    _subscribers: dict[tuple[TypeTag, ActionKind], list[H]] = field(default_factory=dict)

    def subscribe(self, type_tag: TypeTag, kind: ActionKind | str, callback: H) -> None:
        key = (type_tag, coerce_kind(kind))
        self._subscribers.setdefault(key, []).append(callback)

    def subscribers(self, type_tag: TypeTag, kind: ActionKind) -> tuple[H, ...]:
        return tuple(self._subscribers.get((type_tag, kind), ()))

    def __len__(self) -> int:
        return sum(len(callbacks) for callbacks in self._subscribers.values())


@dataclass(slots=True)
class ResolveHooks:
    before: HookRegistry[BeforeResolveHook] = field(default_factory=HookRegistry[BeforeResolveHook])
    after: HookRegistry[AfterResolveHook] = field(default_factory=HookRegistry[AfterResolveHook])

    def allow(self, record: Record, action: DeferredAction, real_id: RealId | None) -> bool:
        allowed = True
        for callback in self.before.subscribers(action.type_tag, action.kind):
            if callback(record, action, real_id) is False:
                allowed = False
        return allowed

    def notify(self, record: Record, action: DeferredAction, real_id: RealId) -> None:
        for callback in self.after.subscribers(action.type_tag, action.kind):
            callback(record, action, real_id)
