"""Dot-path helpers for nested containers and match-rule patterns.

Containers are JSON-like trees of dicts and lists. A dot path addresses a leaf,
list items by their index (``custom_ids.1``).
"""

from __future__ import annotations

import re
from collections.abc import Iterator, Mapping, MutableMapping, MutableSequence
from functools import cache
from typing import Any, Final

_REGEX_DELIMITER: Final[str] = "/"
_FLAG_BY_LETTER: Final[dict[str, re.RegexFlag]] = {
    "i": re.IGNORECASE,
    "m": re.MULTILINE,
    "s": re.DOTALL,
    "x": re.VERBOSE,
}


def iter_leaves(data: object, prefix: str = "") -> Iterator[tuple[str, Any]]:
    """Yield ``(dot_path, value)`` for every non-empty leaf of ``data``."""

    items: Iterator[tuple[object, object]]
    if isinstance(data, Mapping):
        items = iter(data.items())
    elif isinstance(data, list):
        items = iter(enumerate(data))
    else:
        return
    for key, value in items:
        path = f"{prefix}{key}"
        if isinstance(value, Mapping | list) and value:
            yield from iter_leaves(value, f"{path}.")
        else:
            yield path, value


def get_path(data: object, path: str, default: object = None) -> Any:
    current = data
    for segment in path.split("."):
        if isinstance(current, Mapping):
            if segment not in current:
                return default
            current = current[segment]
        elif isinstance(current, list) and segment.isdigit() and int(segment) < len(current):
            current = current[int(segment)]
        else:
            return default
    return current


def set_path(
    data: MutableMapping[str, Any] | MutableSequence[Any],
    path: str,
    value: object,
) -> None:
    """Write ``value`` at ``path``, creating intermediate dicts where missing."""

    segments = path.split(".")
    current: Any = data
    for segment in segments[:-1]:
        child = _child(current, segment)
        if not isinstance(child, MutableMapping | MutableSequence):
            child = {}
            _assign(current, segment, child)
        current = child
    _assign(current, segments[-1], value)


def split_field(dot_path: str) -> tuple[str, str | None]:
    """Split ``data.foo.bar`` into ``("data", "foo.bar")``."""

    field, _, rest = dot_path.partition(".")
    return field, rest or None


def _child(container: Any, segment: str) -> Any:
    if isinstance(container, MutableSequence) and segment.isdigit():
        index = int(segment)
        return container[index] if index < len(container) else None
    if isinstance(container, MutableMapping):
        return container.get(segment)
    return None


def _assign(container: Any, segment: str, value: object) -> None:
    if isinstance(container, MutableSequence) and segment.isdigit():
        index = int(segment)
        while len(container) <= index:
            container.append(None)
        container[index] = value
        return
    container[segment] = value


def is_regex_pattern(pattern: str) -> bool:
    return (
        len(pattern) > 1
        and pattern.startswith(_REGEX_DELIMITER)
        and pattern.rfind(_REGEX_DELIMITER) > 0
    )


@cache
def compile_pattern(pattern: str) -> re.Pattern[str]:
    """Compile ``/body/flags`` style patterns; bare patterns compile as-is."""

    if not is_regex_pattern(pattern):
        return re.compile(pattern)
    end = pattern.rfind(_REGEX_DELIMITER)
    body, letters = pattern[1:end], pattern[end + 1 :]
    flags = 0
    for letter in letters:
        if letter not in _FLAG_BY_LETTER:
            raise ValueError(f"Unsupported regex flag {letter!r} in {pattern!r}")
        flags |= _FLAG_BY_LETTER[letter]
    return re.compile(body, flags)


def path_matches(pattern: str, path: str) -> bool:
    """Exact dot path match, or regex search when ``pattern`` is ``/delimited/``."""

    if path == pattern:
        return True
    return is_regex_pattern(pattern) and compile_pattern(pattern).search(path) is not None


def replace_group(match: re.Match[str], replacement: str) -> str:
    """Return the full match text with only capture group 1 swapped for ``replacement``."""

    text = match.group(0)
    start = match.start(1) - match.start(0)
    end = match.end(1) - match.start(0)
    return f"{text[:start]}{replacement}{text[end:]}"
