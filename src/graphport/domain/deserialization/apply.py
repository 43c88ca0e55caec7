"""Writes performed once a referred surrogate id has a real id."""

from __future__ import annotations

from collections.abc import MutableMapping, MutableSequence
from copy import deepcopy
from typing import TYPE_CHECKING, Any

from graphport.domain.paths import compile_pattern, get_path, replace_group, set_path, split_field

from .actions import DeferredAssociate, DeferredAttach, DeferredSearch, DeferredUpdate

if TYPE_CHECKING:
    from graphport.domain.ports import RecordStore, Relation
    from graphport.domain.types import RealId, Record

    from .actions import DeferredAction


def merge_field_data(store: RecordStore, record: Record, dot_field: str, real_id: RealId) -> None:
    """Set ``real_id`` at ``dot_field``; a bare field name replaces the whole value."""

    name, rest = split_field(dot_field)
    if rest is None:
        store.set(record, name, real_id)
        return
    data = _container_copy(store.get(record, name))
    set_path(data, rest, real_id)
    store.set(record, name, data)


def search_and_replace_field_data(
    store: RecordStore,
    record: Record,
    dot_field: str,
    search: str,
    referred_id: str,
    real_id: RealId,
    *,
    value_pattern: str | None = None,
) -> None:
    """Swap the surrogate id token for the real id inside a string leaf.

    With ``value_pattern``, every match whose first group is exactly
    ``referred_id`` has that group replaced. Without it, every ``search``
    occurrence is replaced by ``search`` with its token swapped. Either way the
    text around the token survives untouched.
    """

    def rewrite(subject: str) -> str:
        if value_pattern is None:
            return subject.replace(search, search.replace(referred_id, str(real_id), 1))
        return replace_reference(value_pattern, subject, referred_id, str(real_id))

    name, rest = split_field(dot_field)
    if rest is None:
        subject = store.get(record, name)
        if isinstance(subject, str):
            store.set(record, name, rewrite(subject))
        return
    data = _container_copy(store.get(record, name))
    subject = get_path(data, rest)
    if isinstance(subject, str):
        set_path(data, rest, rewrite(subject))
    store.set(record, name, data)


def replace_reference(value_pattern: str, text: str, referred_id: str, replacement: str) -> str:
    """Replace group 1 of the ``value_pattern`` matches that captured ``referred_id``."""

    return compile_pattern(value_pattern).sub(
        lambda match: (
            replace_group(match, replacement) if match.group(1) == referred_id else match.group(0)
        ),
        text,
    )


def associate(store: RecordStore, record: Record, relation: Relation, real_id: RealId) -> None:
    store.set(record, relation.require_key_field(), real_id)


def morph(
    store: RecordStore,
    record: Record,
    relation: Relation,
    morph_type: str,
    real_id: RealId,
) -> None:
    store.set(record, relation.require_type_field(), morph_type)
    store.set(record, relation.require_key_field(), real_id)


def apply_action(
    store: RecordStore,
    record: Record,
    action: DeferredAction,
    real_id: RealId,
) -> None:
    if isinstance(action, DeferredUpdate):
        merge_field_data(store, record, action.dot_field, real_id)
    elif isinstance(action, DeferredSearch):
        search_and_replace_field_data(
            store,
            record,
            action.dot_field,
            action.search,
            action.referred_id,
            real_id,
            value_pattern=action.value_pattern,
        )
    elif isinstance(action, DeferredAttach):
        store.attach(record, action.field, real_id)
    elif isinstance(action, DeferredAssociate):
        associate(store, record, require_relation(store, action.type_tag, action.field), real_id)
    else:
        morph(
            store,
            record,
            require_relation(store, action.type_tag, action.field),
            action.morph_type,
            real_id,
        )


def require_relation(store: RecordStore, type_tag: str, field: str) -> Relation:
    relation = store.relation(type_tag, field)
    if relation is None:
        raise LookupError(f"{type_tag}.{field} is not a relation")
    return relation


def _container_copy(value: object) -> Any:
    if isinstance(value, MutableMapping | MutableSequence):
        return deepcopy(value)
    return {}

