"""Read and write anonymized forests as JSON documents or JSON lines.

A ``.jsonl`` file holds one forest fragment per line; any other suffix holds a
single JSON forest.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

from pydantic import ValidationError

from graphport.domain.errors import MalformedInputError

from .schema import DEFAULT_ID_KEY, ForestDocument

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator

    from graphport.domain.types import AnonymizedGraph, Forest, ForestProvider, ForestSource

log = logging.getLogger(__name__)

JSON_LINES_SUFFIX = ".jsonl"


def parse_forest(
    payload: str | bytes,
    *,
    id_key: str = DEFAULT_ID_KEY,
    origin: str = "<memory>",
) -> Forest:
    try:
        document = ForestDocument.model_validate_json(payload, context={"id_key": id_key})
    except ValidationError as exc:
        raise MalformedInputError(f"Invalid forest in {origin}: {exc}") from exc
    return document.root


def read_forest(path: Path, *, id_key: str = DEFAULT_ID_KEY) -> Forest:
    forest = parse_forest(path.read_bytes(), id_key=id_key, origin=str(path))
    log.info("Read %d types from %s", len(forest), path)
    return forest


def iter_forest_fragments(path: Path, *, id_key: str = DEFAULT_ID_KEY) -> ForestProvider:
    """Return a provider re-reading ``path`` lazily, one fragment per non-blank line."""

    def provide() -> Iterator[Forest]:
        with path.open("rb") as handle:
            for number, line in enumerate(handle, start=1):
                if not line.strip():
                    continue
                yield parse_forest(line, id_key=id_key, origin=f"{path}:{number}")

    return provide


def open_forest_source(path: Path, *, id_key: str = DEFAULT_ID_KEY) -> ForestSource:
    if not path.is_file():
        raise FileNotFoundError(path)
    if path.suffix == JSON_LINES_SUFFIX:
        return iter_forest_fragments(path, id_key=id_key)
    return read_forest(path, id_key=id_key)


def write_forest(
    graph: AnonymizedGraph,
    path: Path,
    *,
    id_key: str = DEFAULT_ID_KEY,
    indent: int | None = 2,
) -> Path:
    """Write ``graph`` to ``path``; ``.jsonl`` targets get one line per type."""

    path.parent.mkdir(parents=True, exist_ok=True)
    if path.suffix == JSON_LINES_SUFFIX:
        fragments = ({type_tag: entities} for type_tag, entities in graph.items())
        return write_forest_fragments(fragments, path, id_key=id_key)
    document = _document(graph, id_key)
    path.write_text(document.model_dump_json(indent=indent) + "\n", encoding="utf-8")
    log.info("Wrote %d records of %d types to %s", document.record_count, len(graph), path)
    return path


def dump_forest(
    graph: AnonymizedGraph,
    *,
    id_key: str = DEFAULT_ID_KEY,
    indent: int | None = 2,
) -> str:
    """Validate ``graph`` and render it as JSON; dates and decimals become strings."""

    return _document(graph, id_key).model_dump_json(indent=indent)


def write_forest_fragments(
    fragments: Iterable[AnonymizedGraph],
    path: Path,
    *,
    id_key: str = DEFAULT_ID_KEY,
) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    count = 0
    with path.open("w", encoding="utf-8") as handle:
        for fragment in fragments:
            handle.write(_document(fragment, id_key).model_dump_json())
            handle.write("\n")
            count += 1
    log.info("Wrote %d fragments to %s", count, path)
    return path


def _document(graph: AnonymizedGraph, id_key: str) -> ForestDocument:
    try:
        return ForestDocument.model_validate(graph, context={"id_key": id_key})
    except ValidationError as exc:
        raise MalformedInputError(f"Refusing to write an invalid forest: {exc}") from exc
