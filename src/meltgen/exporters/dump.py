"""
Render OTLP export requests for local inspection.

Formats:
- auto:  same as human
- human: protobuf text format under a one-line summary comment
- text:  protobuf text format
- json:  OTLP/JSON (camelCase field names)
- yaml:  the JSON form rendered as YAML
- hex:   hex dump of the binary protobuf encoding
"""

import yaml
from google.protobuf import json_format, text_format
from google.protobuf.message import Message

from ..config import ConfigurationError

FORMAT_AUTO = "auto"
FORMAT_HUMAN = "human"
FORMAT_TEXT = "text"
FORMAT_JSON = "json"
FORMAT_YAML = "yaml"
FORMAT_HEX = "hex"

DUMP_FORMATS = (FORMAT_AUTO, FORMAT_HUMAN, FORMAT_TEXT, FORMAT_JSON, FORMAT_YAML, FORMAT_HEX)

_HEX_LINE_BYTES = 16


def resolve_format(fmt: str | None) -> str:
    """Map None/auto to human; reject unknown formats."""
    if not fmt or fmt == FORMAT_AUTO:
        return FORMAT_HUMAN
    if fmt not in DUMP_FORMATS:
        raise ConfigurationError(
            f"Unknown dump format {fmt!r}; expected one of: {', '.join(DUMP_FORMATS)}"
        )
    return fmt


def _resource_blocks(message: Message) -> list:
    for name in ("resource_metrics", "resource_logs", "resource_spans"):
        if name in message.DESCRIPTOR.fields_by_name:
            return list(getattr(message, name))
    return []


def _record_count(message: Message) -> int:
    count = 0
    for block in _resource_blocks(message):
        for scope_name in ("scope_metrics", "scope_logs", "scope_spans"):
            if scope_name not in block.DESCRIPTOR.fields_by_name:
                continue
            for scope in getattr(block, scope_name):
                for records in ("metrics", "log_records", "spans"):
                    if records in scope.DESCRIPTOR.fields_by_name:
                        count += len(getattr(scope, records))
    return count


def summary(message: Message, kind: str) -> str:
    resources = len(_resource_blocks(message))
    return f"# {kind}: {resources} resources, {_record_count(message)} records"


def to_json(message: Message) -> str:
    return json_format.MessageToJson(message, indent=2)


def to_yaml(message: Message) -> str:
    data = json_format.MessageToDict(message)
    return yaml.safe_dump(data, sort_keys=False, allow_unicode=True)


def to_hex(payload: bytes) -> str:
    """Offset-prefixed hex dump, 16 bytes per line."""
    lines = []
    for offset in range(0, len(payload), _HEX_LINE_BYTES):
        chunk = payload[offset : offset + _HEX_LINE_BYTES]
        lines.append(f"{offset:08x}  {chunk.hex(' ')}")
    return "\n".join(lines)


def render(message: Message, fmt: str | None, kind: str = "") -> str:
    """Render message in the given dump format."""
    fmt = resolve_format(fmt)
    if fmt == FORMAT_HUMAN:
        body = text_format.MessageToString(message, as_utf8=True)
        return f"{summary(message, kind or 'payload')}\n{body}"
    if fmt == FORMAT_TEXT:
        return text_format.MessageToString(message, as_utf8=True)
    if fmt == FORMAT_JSON:
        return to_json(message)
    if fmt == FORMAT_YAML:
        return to_yaml(message)
    return to_hex(message.SerializeToString())
