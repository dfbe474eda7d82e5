"""
Read and write the YAML telemetry data model document.

Document shape (field names are the lower-cased model names):

    melt:
      - typename: geometry:square
        attributes: {geometry.shape.type: square}
        metrics:
          - typename: geometry:area
            contenttype: sum
            type: double
            aggregationtemporality: cumulative
            datapoints: [{starttime: 1000, endtime: 2000, value: 5.0}]
        logs: [...]
        spans: [...]
        relationships: [{attributes: {...}}]

Enum fields accept an integer or a case-insensitive name. Any structural
problem raises DocumentParseError naming the offending path.
"""

import sys
from pathlib import Path
from typing import IO, Any

import yaml

from ..config import MeltError
from .types import (
    AggregationTemporality,
    Attributes,
    DataPoint,
    Entity,
    FsocData,
    Log,
    Metric,
    Relationship,
    Span,
    SpanEvent,
    SpanKind,
    SpanLink,
    SpanStatus,
    SpanStatusCode,
)


INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1
UINT64_MAX = 2**64 - 1


class DocumentParseError(MeltError, ValueError):
    """Raised when a data model document is malformed."""

    def __init__(self, message: str, path: str = ""):
        self.path = path
        super().__init__(f"{path}: {message}" if path else message)


def _mapping(data: Any, path: str) -> dict[str, Any]:
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise DocumentParseError(f"expected a mapping, got {type(data).__name__}", path)
    return data


def _sequence(data: Any, path: str) -> list[Any]:
    if data is None:
        return []
    if not isinstance(data, list):
        raise DocumentParseError(f"expected a sequence, got {type(data).__name__}", path)
    return data


def _string(data: Any, path: str) -> str:
    if data is None:
        return ""
    if isinstance(data, (dict, list)):
        raise DocumentParseError(f"expected a scalar, got {type(data).__name__}", path)
    if isinstance(data, bool):
        return "true" if data else "false"
    return str(data)


def _timestamp(data: Any, path: str) -> int:
    """Nanosecond epoch time; must fit an unsigned 64-bit wire field."""
    if data is None:
        return 0
    if isinstance(data, bool) or not isinstance(data, int):
        raise DocumentParseError(f"expected an integer, got {data!r}", path)
    if not 0 <= data <= UINT64_MAX:
        raise DocumentParseError(f"timestamp out of range: {data}", path)
    return data


def _number(data: Any, path: str) -> float:
    if data is None:
        return 0.0
    if isinstance(data, bool) or not isinstance(data, (int, float)):
        raise DocumentParseError(f"expected a number, got {data!r}", path)
    try:
        return float(data)
    except OverflowError:
        raise DocumentParseError(f"number out of range: {data}", path) from None


def _boolean(data: Any, path: str) -> bool:
    if data is None:
        return False
    if not isinstance(data, bool):
        raise DocumentParseError(f"expected a boolean, got {data!r}", path)
    return data


def _enum(parse, data: Any, path: str) -> Any:
    try:
        return parse(0 if data is None else data)
    except ValueError as e:
        raise DocumentParseError(str(e), path) from None


def _attributes(data: Any, path: str) -> Attributes:
    result: Attributes = {}
    for key, value in _mapping(data, path).items():
        if value is None:
            value = ""
        if not isinstance(value, (str, bool, int, float)):
            raise DocumentParseError(
                f"attribute values must be scalars, got {type(value).__name__}", f"{path}.{key}"
            )
        if isinstance(value, int) and not isinstance(value, bool):
            if not INT64_MIN <= value <= INT64_MAX:
                raise DocumentParseError(
                    f"integer attribute out of 64-bit range: {value}", f"{path}.{key}"
                )
        result[str(key)] = value
    return result


def _parse_data_point(data: Any, path: str) -> DataPoint:
    d = _mapping(data, path)
    return DataPoint(
        start_time=_timestamp(d.get("starttime"), f"{path}.starttime"),
        end_time=_timestamp(d.get("endtime"), f"{path}.endtime"),
        value=_number(d.get("value"), f"{path}.value"),
    )


def _parse_metric(data: Any, path: str) -> Metric:
    d = _mapping(data, path)
    return Metric(
        type_name=_string(d.get("typename"), f"{path}.typename"),
        unit=_string(d.get("unit"), f"{path}.unit"),
        content_type=_string(d.get("contenttype"), f"{path}.contenttype"),
        type=_string(d.get("type"), f"{path}.type"),
        attributes=_attributes(d.get("attributes"), f"{path}.attributes"),
        data_points=[
            _parse_data_point(dp, f"{path}.datapoints[{i}]")
            for i, dp in enumerate(_sequence(d.get("datapoints"), f"{path}.datapoints"))
        ],
        min=_string(d.get("min"), f"{path}.min"),
        max=_string(d.get("max"), f"{path}.max"),
        value=_string(d.get("value"), f"{path}.value"),
        is_monotonic=_boolean(d.get("ismonotonic"), f"{path}.ismonotonic"),
        aggregation_temporality=_enum(
            AggregationTemporality.parse,
            d.get("aggregationtemporality"),
            f"{path}.aggregationtemporality",
        ),
    )


def _parse_log(data: Any, path: str) -> Log:
    d = _mapping(data, path)
    return Log(
        body=_string(d.get("body"), f"{path}.body"),
        severity=_string(d.get("severity"), f"{path}.severity"),
        timestamp=_timestamp(d.get("timestamp"), f"{path}.timestamp"),
        attributes=_attributes(d.get("attributes"), f"{path}.attributes"),
        is_event=_boolean(d.get("isevent"), f"{path}.isevent"),
        type_name=_string(d.get("typename"), f"{path}.typename"),
    )


def _parse_span(data: Any, path: str) -> Span:
    d = _mapping(data, path)
    events = []
    for i, raw in enumerate(_sequence(d.get("events"), f"{path}.events")):
        p = f"{path}.events[{i}]"
        e = _mapping(raw, p)
        events.append(
            SpanEvent(
                name=_string(e.get("name"), f"{p}.name"),
                timestamp=_timestamp(e.get("timestamp"), f"{p}.timestamp"),
                attributes=_attributes(e.get("attributes"), f"{p}.attributes"),
            )
        )
    links = []
    for i, raw in enumerate(_sequence(d.get("links"), f"{path}.links")):
        p = f"{path}.links[{i}]"
        li = _mapping(raw, p)
        links.append(
            SpanLink(
                trace_id=_string(li.get("traceid"), f"{p}.traceid"),
                span_id=_string(li.get("spanid"), f"{p}.spanid"),
                trace_state=_string(li.get("tracestate"), f"{p}.tracestate"),
                attributes=_attributes(li.get("attributes"), f"{p}.attributes"),
            )
        )
    status = None
    if d.get("status") is not None:
        s = _mapping(d["status"], f"{path}.status")
        status = SpanStatus(
            message=_string(s.get("message"), f"{path}.status.message"),
            code=_enum(SpanStatusCode.parse, s.get("code"), f"{path}.status.code"),
        )
    return Span(
        trace_id=_string(d.get("traceid"), f"{path}.traceid"),
        span_id=_string(d.get("spanid"), f"{path}.spanid"),
        name=_string(d.get("name"), f"{path}.name"),
        parent_span_id=_string(d.get("parentspanid"), f"{path}.parentspanid"),
        trace_state=_string(d.get("tracestate"), f"{path}.tracestate"),
        kind=_enum(SpanKind.parse, d.get("kind"), f"{path}.kind"),
        start_time=_timestamp(d.get("starttime"), f"{path}.starttime"),
        end_time=_timestamp(d.get("endtime"), f"{path}.endtime"),
        attributes=_attributes(d.get("attributes"), f"{path}.attributes"),
        events=events,
        links=links,
        status=status,
    )


def _parse_entity(data: Any, path: str) -> Entity:
    d = _mapping(data, path)

    def items(key: str) -> list[tuple[str, Any]]:
        return [
            (f"{path}.{key}[{i}]", item)
            for i, item in enumerate(_sequence(d.get(key), f"{path}.{key}"))
        ]

    return Entity(
        type_name=_string(d.get("typename"), f"{path}.typename"),
        id=_string(d.get("id"), f"{path}.id"),
        attributes=_attributes(d.get("attributes"), f"{path}.attributes"),
        metrics=[_parse_metric(m, p) for p, m in items("metrics")],
        logs=[_parse_log(lg, p) for p, lg in items("logs")],
        spans=[_parse_span(s, p) for p, s in items("spans")],
        relationships=[
            Relationship(
                attributes=_attributes(_mapping(r, p).get("attributes"), f"{p}.attributes")
            )
            for p, r in items("relationships")
        ],
    )


def parse(data: Any) -> FsocData:
    """Build FsocData from an already-decoded YAML/JSON structure."""
    d = _mapping(data, "")
    return FsocData(
        melt=[
            _parse_entity(e, f"melt[{i}]") for i, e in enumerate(_sequence(d.get("melt"), "melt"))
        ]
    )


def load(source: str | bytes | IO[Any]) -> FsocData:
    """Parse a YAML document (text, bytes or readable stream)."""
    try:
        data = yaml.safe_load(source)
    except yaml.YAMLError as e:
        raise DocumentParseError(f"invalid YAML: {e}") from e
    return parse(data)


def load_file(path: str | Path | None) -> FsocData:
    """Load a document from path, or from standard input when path is None or "-"."""
    if path is None or str(path) == "-":
        return load(sys.stdin)
    with open(path, encoding="utf-8") as f:
        return load(f)


def _enum_name(value: Any) -> str:
    return value.name.lower()


def _dump_metric(m: Metric) -> dict[str, Any]:
    d: dict[str, Any] = {
        "typename": m.type_name,
        "contenttype": m.content_type,
        "unit": m.unit,
        "type": m.type,
        "attributes": dict(m.attributes),
    }
    if m.data_points:
        d["datapoints"] = [
            {"starttime": dp.start_time, "endtime": dp.end_time, "value": float(dp.value)}
            for dp in m.data_points
        ]
    for key in ("min", "max", "value"):
        if getattr(m, key):
            d[key] = getattr(m, key)
    if m.is_monotonic:
        d["ismonotonic"] = True
    if m.aggregation_temporality != AggregationTemporality.UNSPECIFIED:
        d["aggregationtemporality"] = _enum_name(m.aggregation_temporality)
    return d


def _dump_log(lg: Log) -> dict[str, Any]:
    d: dict[str, Any] = {
        "body": lg.body,
        "severity": lg.severity,
        "attributes": dict(lg.attributes),
    }
    if lg.timestamp:
        d["timestamp"] = lg.timestamp
    if lg.is_event:
        d["isevent"] = True
    if lg.type_name:
        d["typename"] = lg.type_name
    return d


def _dump_span(s: Span) -> dict[str, Any]:
    d: dict[str, Any] = {
        "traceid": s.trace_id,
        "spanid": s.span_id,
        "tracestate": s.trace_state,
        "parentspanid": s.parent_span_id,
        "name": s.name,
        "kind": _enum_name(s.kind),
        "starttime": s.start_time,
        "endtime": s.end_time,
        "attributes": dict(s.attributes),
    }
    if s.events:
        d["events"] = [
            {"name": e.name, "timestamp": e.timestamp, "attributes": dict(e.attributes)}
            for e in s.events
        ]
    if s.links:
        d["links"] = [
            {
                "traceid": li.trace_id,
                "spanid": li.span_id,
                "tracestate": li.trace_state,
                "attributes": dict(li.attributes),
            }
            for li in s.links
        ]
    if s.status is not None:
        d["status"] = {"message": s.status.message, "code": _enum_name(s.status.code)}
    return d


def _dump_entity(e: Entity) -> dict[str, Any]:
    d: dict[str, Any] = {"typename": e.type_name}
    if e.id:
        d["id"] = e.id
    d["attributes"] = dict(e.attributes)
    if e.metrics:
        d["metrics"] = [_dump_metric(m) for m in e.metrics]
    if e.logs:
        d["logs"] = [_dump_log(lg) for lg in e.logs]
    if e.spans:
        d["spans"] = [_dump_span(s) for s in e.spans]
    if e.relationships:
        d["relationships"] = [{"attributes": dict(r.attributes)} for r in e.relationships]
    return d


def to_dict(data: FsocData) -> dict[str, Any]:
    """Plain-data form of the document, ready for yaml.safe_dump."""
    return {"melt": [_dump_entity(e) for e in data.melt]}


def dump(data: FsocData) -> str:
    """Serialize FsocData to YAML; load(dump(data)) == data."""
    return yaml.safe_dump(to_dict(data), sort_keys=False, allow_unicode=True)


def dump_file(data: FsocData, path: str | Path | None) -> None:
    """Write the YAML document to path, or to standard output when path is None or "-"."""
    text = dump(data)
    if path is None or str(path) == "-":
        sys.stdout.write(text)
        return
    Path(path).write_text(text, encoding="utf-8")
