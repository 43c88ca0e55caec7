"""Deserialization side of the codec: anonymized forest back to records."""

from .actions import (
    RESOLVE_ORDER,
    ActionKind,
    DeferredAction,
    DeferredActionQueue,
    DeferredAssociate,
    DeferredAttach,
    DeferredMorph,
    DeferredSearch,
    DeferredUpdate,
)
from .bindings import BindingTable
from .deserializer import GraphDeserializer, iter_fragments
from .engine import ResolutionEngine
from .hooks import AfterResolveHook, BeforeResolveHook, HookRegistry, ResolveHooks
from .resolver import Resolver

__all__ = [
    "RESOLVE_ORDER",
    "ActionKind",
    "AfterResolveHook",
    "BeforeResolveHook",
    "BindingTable",
    "DeferredAction",
    "DeferredActionQueue",
    "DeferredAssociate",
    "DeferredAttach",
    "DeferredMorph",
    "DeferredSearch",
    "DeferredUpdate",
    "GraphDeserializer",
    "HookRegistry",
    "ResolutionEngine",
    "ResolveHooks",
    "Resolver",
    "iter_fragments",
]
