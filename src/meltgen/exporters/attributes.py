"""
Convert attribute mappings into OTLP KeyValue lists.

Values keep their type on the wire: str -> string_value, bool -> bool_value,
int -> int_value, float -> double_value. Lists and dicts become array and
kvlist values (used for the entity relationship attribute).
"""

from collections.abc import Mapping
from typing import Any

from opentelemetry.proto.common.v1.common_pb2 import (
    AnyValue,
    ArrayValue,
    KeyValue,
    KeyValueList,
)


def to_any_value(value: Any) -> AnyValue:
    """Wrap a Python value in an AnyValue."""
    # bool before int: bool is an int subclass
    if isinstance(value, bool):
        return AnyValue(bool_value=value)
    if isinstance(value, int):
        return AnyValue(int_value=value)
    if isinstance(value, float):
        return AnyValue(double_value=value)
    if isinstance(value, str):
        return AnyValue(string_value=value)
    if isinstance(value, Mapping):
        return AnyValue(kvlist_value=KeyValueList(values=to_key_value_list(value)))
    if isinstance(value, (list, tuple)):
        return AnyValue(array_value=ArrayValue(values=[to_any_value(v) for v in value]))
    raise TypeError(f"unsupported attribute value type: {type(value).__name__}")


def to_key_value_list(attributes: Mapping[str, Any] | None) -> list[KeyValue]:
    """One KeyValue per key, in sorted key order."""
    if not attributes:
        return []
    return [KeyValue(key=key, value=to_any_value(attributes[key])) for key in sorted(attributes)]
