"""Tests for attribute conversion to OTLP KeyValues."""

import pytest

from meltgen.exporters.attributes import to_any_value, to_key_value_list


def test_scalar_values_keep_their_type() -> None:
    """Strings, bools, ints and floats map to the matching AnyValue field."""
    assert to_any_value("red").WhichOneof("value") == "string_value"
    assert to_any_value(True).WhichOneof("value") == "bool_value"
    assert to_any_value(10).int_value == 10
    assert to_any_value(10).WhichOneof("value") == "int_value"
    assert to_any_value(2.5).double_value == 2.5


def test_bool_is_not_encoded_as_int() -> None:
    """False stays a bool value even though bool subclasses int."""
    value = to_any_value(False)
    assert value.WhichOneof("value") == "bool_value"
    assert value.bool_value is False


def test_nested_values() -> None:
    """Lists become arrays and mappings become key-value lists."""
    value = to_any_value([{"b": 1, "a": "x"}])
    assert value.WhichOneof("value") == "array_value"
    kvlist = value.array_value.values[0].kvlist_value
    assert [kv.key for kv in kvlist.values] == ["a", "b"]


def test_key_value_list_is_sorted_by_key() -> None:
    """KeyValues come out in sorted key order regardless of insertion order."""
    kvs = to_key_value_list({"zeta": "z", "alpha": 1, "mid": True})
    assert [kv.key for kv in kvs] == ["alpha", "mid", "zeta"]


def test_empty_attributes() -> None:
    """No attributes means no KeyValues."""
    assert to_key_value_list({}) == []
    assert to_key_value_list(None) == []


def test_unsupported_value_type() -> None:
    """Values with no AnyValue form are rejected."""
    with pytest.raises(TypeError):
        to_any_value(object())
