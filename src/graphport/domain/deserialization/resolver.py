"""Second pass: replay every deferred action once all records are bound."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from graphport.domain.errors import (
    RecordNotFoundError,
    UnresolvedOwnerError,
    UnresolvedReferenceError,
)

from .apply import apply_action

if TYPE_CHECKING:
    from graphport.domain.ports import RecordStore
    from graphport.domain.types import RealId, SurrogateId

    from .actions import DeferredActionQueue
    from .bindings import BindingTable
    from .hooks import ResolveHooks

log = logging.getLogger(__name__)


class Resolver:
    def __init__(
        self,
        store: RecordStore,
        bindings: BindingTable,
        queue: DeferredActionQueue,
        hooks: ResolveHooks,
    ) -> None:
        self._store = store
        self._bindings = bindings
        self._queue = queue
        self._hooks = hooks

    def resolve(self) -> dict[SurrogateId, RealId]:
        """Apply queued actions owner by owner, saving each owner once.

        Raises:
            UnresolvedOwnerError: an owner was never bound.
            RecordNotFoundError: an owner's real id has no stored record.
            UnresolvedReferenceError: a non-vetoed action refers to an unbound id.
        """

        applied = vetoed = 0
        for type_tag, owning_id, actions in self._queue:
            if not self._bindings.is_bound(owning_id):
                raise UnresolvedOwnerError(type_tag, owning_id)
            owner_real_id = self._bindings.get(owning_id)
            record = self._store.find(type_tag, owner_real_id)
            if record is None:
                raise RecordNotFoundError(type_tag, owner_real_id, owning_id)

            for action in actions:
                real_id = self._bindings.get(action.referred_id)
                if not self._hooks.allow(record, action, real_id):
                    vetoed += 1
                    continue
                if not self._bindings.is_bound(action.referred_id):
                    raise UnresolvedReferenceError(
                        type_tag, owning_id, action.referred_id, action.target
                    )
                apply_action(self._store, record, action, real_id)
                self._hooks.notify(record, action, real_id)
                applied += 1
            self._store.save(record)

        self._queue.clear()
        log.info(
            "Resolved %d deferred actions (%d vetoed), %d ids bound",
            applied,
            vetoed,
            len(self._bindings),
        )
        return self._bindings.as_dict()
