"""Dual-path writes: apply now when the referred id is bound, defer otherwise."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from .actions import (
    DeferredActionQueue,
    DeferredAssociate,
    DeferredAttach,
    DeferredMorph,
    DeferredSearch,
    DeferredUpdate,
)
from .apply import apply_action, require_relation
from .bindings import BindingTable
from .hooks import ResolveHooks
from .resolver import Resolver

if TYPE_CHECKING:
    from collections.abc import Sequence

    from graphport.domain.ports import RecordStore
    from graphport.domain.types import RealId, Record, SurrogateId

    from .actions import DeferredAction

log = logging.getLogger(__name__)

MORPH_PLACEHOLDER = 0


class ResolutionEngine:
    """Bookkeeping for one deserialize call.

    Every write method returns ``True`` when the write was applied (or vetoed by
    a before hook) and ``False`` when it was queued for :meth:`resolve`.
    """

    def __init__(
        self,
        store: RecordStore,
        *,
        hooks: ResolveHooks | None = None,
        bindings: BindingTable | None = None,
        queue: DeferredActionQueue | None = None,
    ) -> None:
        self.store = store
        self.hooks = hooks or ResolveHooks()
        self.bindings = bindings or BindingTable()
        self.queue = queue or DeferredActionQueue()

    def bind(self, surrogate_id: SurrogateId, real_id: RealId) -> None:
        self.bindings.bind(surrogate_id, real_id)

    def get(self, surrogate_id: SurrogateId, fallback: RealId = None) -> RealId:
        return self.bindings.get(surrogate_id, fallback)

    def is_bound(self, surrogate_id: SurrogateId) -> bool:
        return self.bindings.is_bound(surrogate_id)

    def update(
        self,
        record: Record,
        dot_field: str,
        owning_id: SurrogateId,
        referred_id: SurrogateId,
    ) -> bool:
        action = DeferredUpdate(
            type_tag=self.store.type_tag(record),
            owning_id=owning_id,
            dot_field=dot_field,
            referred_id=referred_id,
        )
        return self._apply_or_defer(record, action)

    def associate(
        self,
        record: Record,
        field: str,
        owning_id: SurrogateId,
        referred_id: SurrogateId,
    ) -> bool:
        action = DeferredAssociate(
            type_tag=self.store.type_tag(record),
            owning_id=owning_id,
            field=field,
            referred_id=referred_id,
        )
        return self._apply_or_defer(record, action)

    def attach(
        self,
        record: Record,
        field: str,
        owning_id: SurrogateId,
        referred_id: SurrogateId,
    ) -> bool:
        action = DeferredAttach(
            type_tag=self.store.type_tag(record),
            owning_id=owning_id,
            field=field,
            referred_id=referred_id,
        )
        return self._apply_or_defer(record, action)

    def morph(
        self,
        record: Record,
        field: str,
        owning_id: SurrogateId,
        target: Sequence[str],
    ) -> bool:
        """Point ``field`` at ``target``, a ``[type_tag, surrogate_id]`` pair.

        When deferred, the discriminator is written right away and the key
        column gets a placeholder so the record can be saved before resolution.
        """

        morph_type, referred_id = target
        action = DeferredMorph(
            type_tag=self.store.type_tag(record),
            owning_id=owning_id,
            field=field,
            morph_type=morph_type,
            referred_id=referred_id,
        )
        if self._apply_or_defer(record, action):
            return True
        relation = require_relation(self.store, action.type_tag, field)
        self.store.set(record, relation.require_type_field(), morph_type)
        self.store.set(record, relation.require_key_field(), MORPH_PLACEHOLDER)
        return False

    def search_and_replace(
        self,
        record: Record,
        dot_field: str,
        owning_id: SurrogateId,
        search: str,
        referred_id: SurrogateId,
        *,
        value_pattern: str | None = None,
    ) -> bool:
        action = DeferredSearch(
            type_tag=self.store.type_tag(record),
            owning_id=owning_id,
            dot_field=dot_field,
            search=search,
            referred_id=referred_id,
            value_pattern=value_pattern,
        )
        return self._apply_or_defer(record, action)

    def resolve(self) -> dict[SurrogateId, RealId]:
        return Resolver(self.store, self.bindings, self.queue, self.hooks).resolve()

    def _apply_or_defer(self, record: Record, action: DeferredAction) -> bool:
        if not self.bindings.is_bound(action.referred_id):
            log.debug(
                "Deferring %s of %s on %s %s",
                action.kind,
                action.referred_id,
                action.type_tag,
                action.owning_id,
            )
            self.queue.add(action)
            return False
        real_id = self.bindings.get(action.referred_id)
        if not self.hooks.allow(record, action, real_id):
            return True
        apply_action(self.store, record, action, real_id)
        self.hooks.notify(record, action, real_id)
        return True
