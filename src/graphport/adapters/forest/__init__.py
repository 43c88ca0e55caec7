"""Forest file adapter (JSON documents and JSON lines)."""

from __future__ import annotations

from .io import (
    dump_forest,
    iter_forest_fragments,
    open_forest_source,
    parse_forest,
    read_forest,
    write_forest,
    write_forest_fragments,
)
from .schema import ForestDocument

__all__ = [
    "ForestDocument",
    "dump_forest",
    "iter_forest_fragments",
    "open_forest_source",
    "parse_forest",
    "read_forest",
    "write_forest",
    "write_forest_fragments",
]
