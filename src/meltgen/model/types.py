"""
In-memory MELT data model.

An Entity describes one observed resource (e.g. a geometry:square instance)
and exclusively owns the metrics, logs/events, spans and relationships
attached to it. FsocData is an ordered list of entities: the unit that is
persisted as YAML and exported as OTLP.

Builder helpers (set_attribute, add_metric, ...) mutate and return self so
calls can be chained.
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any, Union

AttributeValue = Union[str, bool, int, float]
Attributes = dict[str, AttributeValue]


def _parse_int_enum(enum_cls: type[IntEnum], value: Any, prefix: str) -> Any:
    """Parse an int, numeric string or case-insensitive member name into enum_cls.

    Names may carry the protobuf-style prefix (e.g. AGGREGATION_TEMPORALITY_DELTA).
    """
    if isinstance(value, enum_cls):
        return value
    # bool is an int subclass; True must not silently become 1
    if isinstance(value, bool):
        raise ValueError(f"invalid {enum_cls.__name__}: {value!r}")
    if isinstance(value, int):
        try:
            return enum_cls(value)
        except ValueError:
            raise ValueError(f"invalid {enum_cls.__name__}: {value!r}") from None
    if isinstance(value, str):
        text = value.strip()
        if text.lstrip("-").isdigit():
            return _parse_int_enum(enum_cls, int(text), prefix)
        name = text.upper()
        if name.startswith(prefix):
            name = name[len(prefix) :]
        if name in enum_cls.__members__:
            return enum_cls[name]
    raise ValueError(f"invalid {enum_cls.__name__}: {value!r}")


class AggregationTemporality(IntEnum):
    """Aggregation temporality of a sum metric."""

    UNSPECIFIED = 0
    DELTA = 1
    CUMULATIVE = 2

    @classmethod
    def parse(cls, value: Any) -> "AggregationTemporality":
        return _parse_int_enum(cls, value, "AGGREGATION_TEMPORALITY_")


class SpanKind(IntEnum):
    """Span kinds, numbered as on the wire."""

    UNSPECIFIED = 0
    INTERNAL = 1
    SERVER = 2
    CLIENT = 3
    PRODUCER = 4
    CONSUMER = 5

    @classmethod
    def parse(cls, value: Any) -> "SpanKind":
        return _parse_int_enum(cls, value, "SPAN_KIND_")


class SpanStatusCode(IntEnum):
    """Span status codes, numbered as on the wire."""

    UNSET = 0
    OK = 1
    ERROR = 2

    @classmethod
    def parse(cls, value: Any) -> "SpanStatusCode":
        return _parse_int_enum(cls, value, "STATUS_CODE_")


@dataclass
class DataPoint:
    """One metric sample covering [start_time, end_time] (nanosecond epoch)."""

    start_time: int
    end_time: int
    value: float


@dataclass
class Metric:
    """A metric attached to an entity.

    content_type is "sum" or "gauge"; type is "long" or "double". min, max and
    value are generation hints used only when data_points is empty.
    """

    type_name: str
    unit: str = ""
    content_type: str = ""
    type: str = ""
    attributes: Attributes = field(default_factory=dict)
    data_points: list[DataPoint] = field(default_factory=list)
    min: str = ""
    max: str = ""
    value: str = ""
    is_monotonic: bool = False
    aggregation_temporality: AggregationTemporality = AggregationTemporality.UNSPECIFIED

    def set_attribute(self, key: str, value: AttributeValue) -> "Metric":
        self.attributes[key] = value
        return self

    def add_data_point(self, start_time: int, end_time: int, value: float) -> "Metric":
        self.data_points.append(DataPoint(start_time=start_time, end_time=end_time, value=value))
        return self

    def clear_data_points(self) -> "Metric":
        self.data_points = []
        return self


@dataclass
class Log:
    """A log record, or a domain event when is_event is set (type_name is then the event type)."""

    body: str = ""
    severity: str = ""
    timestamp: int = 0
    attributes: Attributes = field(default_factory=dict)
    is_event: bool = False
    type_name: str = ""

    @classmethod
    def new_log(cls) -> "Log":
        return cls()

    @classmethod
    def new_event(cls, type_name: str) -> "Log":
        return cls(is_event=True, type_name=type_name)

    def set_attribute(self, key: str, value: AttributeValue) -> "Log":
        self.attributes[key] = value
        return self


@dataclass
class SpanEvent:
    name: str
    timestamp: int = 0
    attributes: Attributes = field(default_factory=dict)

    def set_attribute(self, key: str, value: AttributeValue) -> "SpanEvent":
        self.attributes[key] = value
        return self


@dataclass
class SpanLink:
    trace_id: str
    span_id: str
    trace_state: str = ""
    attributes: Attributes = field(default_factory=dict)

    def set_attribute(self, key: str, value: AttributeValue) -> "SpanLink":
        self.attributes[key] = value
        return self


@dataclass
class SpanStatus:
    message: str = ""
    code: SpanStatusCode = SpanStatusCode.UNSET


@dataclass
class Span:
    """A span. Trace and span ids are opaque strings, not hex-encoded binary ids."""

    trace_id: str
    span_id: str
    name: str
    parent_span_id: str = ""
    trace_state: str = ""
    kind: SpanKind = SpanKind.UNSPECIFIED
    start_time: int = 0
    end_time: int = 0
    attributes: Attributes = field(default_factory=dict)
    events: list[SpanEvent] = field(default_factory=list)
    links: list[SpanLink] = field(default_factory=list)
    status: SpanStatus | None = None

    def set_attribute(self, key: str, value: AttributeValue) -> "Span":
        self.attributes[key] = value
        return self

    def new_event(self, name: str, timestamp: int) -> SpanEvent:
        """Append a new event and return it (not the span)."""
        event = SpanEvent(name=name, timestamp=timestamp)
        self.events.append(event)
        return event

    def new_link(self, trace_id: str, span_id: str, trace_state: str = "") -> SpanLink:
        """Append a new link and return it (not the span)."""
        link = SpanLink(trace_id=trace_id, span_id=span_id, trace_state=trace_state)
        self.links.append(link)
        return link

    def set_status(self, message: str, code: SpanStatusCode) -> "Span":
        self.status = SpanStatus(message=message, code=code)
        return self


@dataclass
class Relationship:
    """A labeled edge to another entity, described only by its attributes."""

    attributes: Attributes = field(default_factory=dict)

    def set_attribute(self, key: str, value: AttributeValue) -> "Relationship":
        self.attributes[key] = value
        return self


@dataclass
class Entity:
    """An observed resource and the telemetry it owns.

    type_name has the form "<namespace>:<name>".
    """

    type_name: str
    id: str = ""
    attributes: Attributes = field(default_factory=dict)
    metrics: list[Metric] = field(default_factory=list)
    logs: list[Log] = field(default_factory=list)
    spans: list[Span] = field(default_factory=list)
    relationships: list[Relationship] = field(default_factory=list)

    def set_attribute(self, key: str, value: AttributeValue) -> "Entity":
        self.attributes[key] = value
        return self

    def add_metric(self, metric: Metric) -> "Entity":
        self.metrics.append(metric)
        return self

    def clear_metrics(self) -> "Entity":
        self.metrics = []
        return self

    def add_log(self, log: Log) -> "Entity":
        self.logs.append(log)
        return self

    def clear_logs(self) -> "Entity":
        self.logs = []
        return self

    def add_span(self, span: Span) -> "Entity":
        self.spans.append(span)
        return self

    def add_relationship(self, relationship: Relationship) -> "Entity":
        self.relationships.append(relationship)
        return self


@dataclass
class FsocData:
    """Ordered entity list; the unit of persistence and of export."""

    melt: list[Entity] = field(default_factory=list)
