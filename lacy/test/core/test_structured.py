"""Tests for lacy.core.structured module."""

from lacy.core.structured import (
    as_obj_list,
    as_str_dict,
    get_bool,
    get_int,
    get_str,
    get_str_list,
    get_table,
)


class TestAccessors:
    def test_as_str_dict_rejects_non_string_keys(self) -> None:
        assert as_str_dict({"a": 1}) == {"a": 1}
        assert as_str_dict({1: "a"}) is None
        assert as_str_dict([1, 2]) is None

    def test_as_obj_list(self) -> None:
        assert as_obj_list([1, "a"]) == [1, "a"]
        assert as_obj_list({"a": 1}) is None

    def test_get_str_strips_and_rejects_empty(self) -> None:
        data: dict[str, object] = {"a": "  x  ", "b": "   ", "c": 3}
        assert get_str(data, "a") == "x"
        assert get_str(data, "b") is None
        assert get_str(data, "c") is None
        assert get_str(data, "missing") is None

    def test_get_int_rejects_bool(self) -> None:
        data: dict[str, object] = {"n": 5, "flag": True, "s": "5"}
        assert get_int(data, "n") == 5
        assert get_int(data, "flag") is None
        assert get_int(data, "s") is None

    def test_get_bool(self) -> None:
        data: dict[str, object] = {"t": True, "i": 1}
        assert get_bool(data, "t") is True
        assert get_bool(data, "i") is None

    def test_get_table(self) -> None:
        data: dict[str, object] = {"t": {"k": "v"}, "x": 1}
        assert get_table(data, "t") == {"k": "v"}
        assert get_table(data, "x") is None

    def test_get_str_list(self) -> None:
        data: dict[str, object] = {"ok": ["a", " b "], "bad": ["a", 2], "empty": ["a", ""]}
        assert get_str_list(data, "ok") == ["a", "b"]
        assert get_str_list(data, "bad") is None
        assert get_str_list(data, "empty") is None
