"""Unit tests for dotted-path helpers."""

from __future__ import annotations

from stepflow.dsl.serialization.paths import (
    flatten,
    get_path,
    set_path,
    unflatten,
)


class TestSetPath:
    def test_creates_intermediate_maps(self) -> None:
        data: dict = {}
        set_path(data, "http.retry.count", 3)
        assert data == {"http": {"retry": {"count": 3}}}

    def test_replaces_scalar_on_the_way(self) -> None:
        data: dict = {"http": 5}
        set_path(data, "http.timeout", 30)
        assert data == {"http": {"timeout": 30}}

    def test_accepts_segment_list(self) -> None:
        data: dict = {}
        set_path(data, ["a", "b"], 1)
        assert data == {"a": {"b": 1}}


class TestGetPath:
    def test_found(self) -> None:
        assert get_path({"a": {"b": 2}}, "a.b") == 2

    def test_missing_returns_default(self) -> None:
        assert get_path({"a": {"b": 2}}, "a.c") is None
        assert get_path({"a": 1}, "a.b", default="x") == "x"


class TestFlatten:
    def test_preserves_insertion_order(self) -> None:
        data = {"z": 1, "a": {"y": 2, "b": 3}}
        assert list(flatten(data)) == ["z", "a.y", "a.b"]

    def test_prefix(self) -> None:
        assert flatten({"timeout": 30}, "step") == {"step.timeout": 30}

    def test_none_is_empty(self) -> None:
        assert flatten(None) == {}

    def test_unflatten_inverts_flatten(self) -> None:
        data = {"http": {"timeout": 30, "retry": {"count": 3}}, "name": "x"}
        assert unflatten(flatten(data)) == data

