from __future__ import annotations

import re

import pytest

from graphport.domain.paths import (
    compile_pattern,
    get_path,
    iter_leaves,
    path_matches,
    replace_group,
    set_path,
    split_field,
)


def test_iter_leaves_flattens_nested_containers() -> None:
    data = {"a": 1, "foo": {"bar": {"id": 5}}, "custom_ids": [7, 8], "empty": {}}

    leaves = dict(iter_leaves(data))

    assert leaves == {
        "a": 1,
        "foo.bar.id": 5,
        "custom_ids.0": 7,
        "custom_ids.1": 8,
        "empty": {},
    }


def test_get_path_returns_default_for_missing_segments() -> None:
    data = {"foo": {"items": [1, 2]}}

    assert get_path(data, "foo.items.1") == 2
    assert get_path(data, "foo.items.5", "missing") == "missing"
    assert get_path(data, "bar.baz") is None


def test_set_path_creates_intermediate_containers() -> None:
    data: dict[str, object] = {"a": 1}

    set_path(data, "foo.bar.id", 9)
    set_path(data, "a", 2)

    assert data == {"a": 2, "foo": {"bar": {"id": 9}}}


def test_set_path_writes_into_lists() -> None:
    data: dict[str, object] = {"custom_ids": ["@2", "@3"]}

    set_path(data, "custom_ids.1", 42)

    assert data == {"custom_ids": ["@2", 42]}


def test_split_field_separates_the_column_from_the_inner_path() -> None:
    assert split_field("data.foo.bar") == ("data", "foo.bar")
    assert split_field("data") == ("data", None)


def test_path_matches_exact_and_delimited_regex() -> None:
    assert path_matches("bar_id", "bar_id")
    assert not path_matches("bar_id", "foo.bar_id")
    assert path_matches(r"/\.bar\.id/", "foo.bar.id")
    assert path_matches(r"/custom_ids\.[\d]+/", "custom_ids.12")
    assert not path_matches(r"/^custom_ids$/", "custom_ids.12")


def test_compile_pattern_supports_flags() -> None:
    pattern = compile_pattern("/HREF=(\\d+)/i")

    assert pattern.flags & re.IGNORECASE
    assert pattern.search("href=5") is not None


def test_compile_pattern_rejects_unknown_flags() -> None:
    with pytest.raises(ValueError, match="Unsupported regex flag"):
        compile_pattern("/abc/q")


def test_replace_group_keeps_surrounding_text() -> None:
    match = re.search(r'href="#/links/(@?\d+)"', '<a href="#/links/@8">x</a>')
    assert match is not None

    assert replace_group(match, "17") == 'href="#/links/17"'
