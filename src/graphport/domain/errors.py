"""Errors raised by the graph codec.

Every error aborts the running serialize/deserialize call. The only recoverable
path is a before-resolve hook vetoing a single deferred action.
"""

from __future__ import annotations


class GraphPortError(RuntimeError):
    """Base class for codec failures."""


class BindCollisionError(GraphPortError):
    """Raised when a surrogate id is bound to a real id a second time."""

    def __init__(self, surrogate_id: str, bound: object, attempted: object) -> None:
        super().__init__(
            f"Bind collision: surrogate id {surrogate_id} is already bound to {bound!r} "
            f"and can't be re-bound to {attempted!r}"
        )
        self.surrogate_id = surrogate_id
        self.bound = bound
        self.attempted = attempted


class UnresolvedOwnerError(GraphPortError):
    """Raised when deferred actions are queued for a record that was never bound."""

    def __init__(self, type_tag: str, owning_id: str) -> None:
        super().__init__(f"Expected {owning_id} to be bound when resolving a {type_tag} record")
        self.type_tag = type_tag
        self.owning_id = owning_id


class RecordNotFoundError(GraphPortError):
    """Raised when a real id does not correspond to a stored record."""

    def __init__(self, type_tag: str, real_id: object, surrogate_id: str | None = None) -> None:
        suffix = f" (surrogate id {surrogate_id})" if surrogate_id is not None else ""
        super().__init__(f"Expected {type_tag} with real id {real_id!r}{suffix} to exist")
        self.type_tag = type_tag
        self.real_id = real_id
        self.surrogate_id = surrogate_id


class UnresolvedReferenceError(GraphPortError):
    """Raised when a deferred action still points at an unbound surrogate id."""

    def __init__(self, type_tag: str, owning_id: str, referred_id: str, target: str) -> None:
        super().__init__(
            f"Expected referred id {referred_id} to be bound when writing '{target}' "
            f"on the {type_tag} record {owning_id}"
        )
        self.type_tag = type_tag
        self.owning_id = owning_id
        self.referred_id = referred_id
        self.target = target


class MalformedInputError(GraphPortError):
    """Raised when deserialization input is neither a forest nor a fragment provider."""


class InvalidRuleShapeError(GraphPortError):
    """Raised when a blueprint rule has an unsupported shape."""
