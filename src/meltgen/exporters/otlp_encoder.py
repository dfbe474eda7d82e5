"""
Translate the MELT data model into OTLP export requests.

Each builder walks the entities in document order and emits one resource
block per entity that carries the signal, with a single instrumentation
scope holding that entity's records in insertion order. Entities without
the signal produce no resource block.
"""

import logging
import math
from collections.abc import Iterable

from opentelemetry.proto.collector.logs.v1.logs_service_pb2 import ExportLogsServiceRequest
from opentelemetry.proto.collector.metrics.v1.metrics_service_pb2 import (
    ExportMetricsServiceRequest,
)
from opentelemetry.proto.collector.trace.v1.trace_service_pb2 import ExportTraceServiceRequest
from opentelemetry.proto.common.v1.common_pb2 import InstrumentationScope, KeyValue
from opentelemetry.proto.logs.v1 import logs_pb2
from opentelemetry.proto.metrics.v1 import metrics_pb2
from opentelemetry.proto.resource.v1.resource_pb2 import Resource
from opentelemetry.proto.trace.v1 import trace_pb2

from ..config import MeltError
from ..defaults import (
    KEY_ENTITY_RELATIONSHIPS,
    KEY_EVENT_TYPE,
    KEY_IS_EVENT,
    SCOPE_NAME,
    SCOPE_VERSION,
)
from ..model.types import AggregationTemporality, Entity, Log, Metric, Relationship, Span
from .attributes import to_any_value, to_key_value_list
from .report import ExportIssue, ExportReport

logger = logging.getLogger(__name__)

CONTENT_TYPE_SUM = "sum"
CONTENT_TYPE_GAUGE = "gauge"
VALUE_TYPE_LONG = "long"
VALUE_TYPE_DOUBLE = "double"

INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1

_TEMPORALITY = {
    AggregationTemporality.UNSPECIFIED: metrics_pb2.AGGREGATION_TEMPORALITY_UNSPECIFIED,
    AggregationTemporality.DELTA: metrics_pb2.AGGREGATION_TEMPORALITY_DELTA,
    AggregationTemporality.CUMULATIVE: metrics_pb2.AGGREGATION_TEMPORALITY_CUMULATIVE,
}


class UnsupportedSignalTypeError(MeltError, ValueError):
    """Raised for a metric whose content type or value type cannot be encoded."""

    def __init__(self, metric_name: str, message: str):
        self.metric_name = metric_name
        super().__init__(f"{metric_name}: {message}")


def instrumentation_scope() -> InstrumentationScope:
    return InstrumentationScope(name=SCOPE_NAME, version=SCOPE_VERSION)


def entity_resource(entity: Entity) -> Resource:
    """Resource carrying the entity attributes, plus its relationships if any."""
    resource = Resource(attributes=to_key_value_list(entity.attributes))
    if entity.relationships:
        resource.attributes.append(relationships_attribute(entity.relationships))
    return resource


def relationships_attribute(relationships: Iterable[Relationship]) -> KeyValue:
    """Relationship attribute maps as an array of kvlists under the reserved key."""
    return KeyValue(
        key=KEY_ENTITY_RELATIONSHIPS,
        value=to_any_value([dict(r.attributes) for r in relationships]),
    )


def _long_value(metric: Metric, value: float) -> int:
    if not math.isfinite(value):
        raise UnsupportedSignalTypeError(
            metric.type_name, f"non-finite value {value!r} for a long metric"
        )
    result = int(value)
    if not INT64_MIN <= result <= INT64_MAX:
        raise UnsupportedSignalTypeError(
            metric.type_name, f"value {value!r} out of range for a long metric"
        )
    return result


def _number_data_points(metric: Metric) -> list[metrics_pb2.NumberDataPoint]:
    if metric.type not in (VALUE_TYPE_LONG, VALUE_TYPE_DOUBLE):
        raise UnsupportedSignalTypeError(
            metric.type_name, f"unsupported metric value type: {metric.type!r}"
        )
    attributes = to_key_value_list(metric.attributes)
    points = []
    for dp in metric.data_points:
        point = metrics_pb2.NumberDataPoint(
            start_time_unix_nano=dp.start_time,
            time_unix_nano=dp.end_time,
            attributes=attributes,
        )
        if metric.type == VALUE_TYPE_LONG:
            point.as_int = _long_value(metric, dp.value)
        else:
            point.as_double = float(dp.value)
        points.append(point)
    return points


def encode_metric(metric: Metric) -> metrics_pb2.Metric:
    """Encode one metric as an OTLP Sum or Gauge."""
    otm = metrics_pb2.Metric(name=metric.type_name, unit=metric.unit)
    if metric.content_type == CONTENT_TYPE_SUM:
        otm.sum.CopyFrom(
            metrics_pb2.Sum(
                aggregation_temporality=_TEMPORALITY[metric.aggregation_temporality],
                is_monotonic=metric.is_monotonic,
                data_points=_number_data_points(metric),
            )
        )
    elif metric.content_type == CONTENT_TYPE_GAUGE:
        otm.gauge.CopyFrom(metrics_pb2.Gauge(data_points=_number_data_points(metric)))
    else:
        raise UnsupportedSignalTypeError(
            metric.type_name, f"unsupported metric content type: {metric.content_type!r}"
        )
    return otm


def build_metrics_payload(
    entities: Iterable[Entity], report: ExportReport | None = None
) -> ExportMetricsServiceRequest:
    """Build the metrics export request.

    Metrics that cannot be encoded are logged, dropped and recorded in report.
    """
    request = ExportMetricsServiceRequest()
    for entity in entities:
        encoded = []
        for metric in entity.metrics:
            try:
                encoded.append(encode_metric(metric))
            except UnsupportedSignalTypeError as e:
                logger.error("Dropping metric: %s", e)
                if report is not None:
                    report.add_issue(
                        ExportIssue(kind="metrics", message=str(e), item=metric.type_name)
                    )
        if not encoded:
            continue
        request.resource_metrics.append(
            metrics_pb2.ResourceMetrics(
                resource=entity_resource(entity),
                scope_metrics=[
                    metrics_pb2.ScopeMetrics(scope=instrumentation_scope(), metrics=encoded)
                ],
            )
        )
    return request


def encode_log(log: Log) -> logs_pb2.LogRecord:
    """Encode a log or event; events get the is-event and event-type attributes."""
    attributes = dict(log.attributes)
    if log.is_event:
        attributes[KEY_IS_EVENT] = True
        attributes[KEY_EVENT_TYPE] = log.type_name
    record = logs_pb2.LogRecord(
        time_unix_nano=log.timestamp,
        body=to_any_value(log.body),
        attributes=to_key_value_list(attributes),
    )
    if log.severity:
        record.severity_text = log.severity
    return record


def build_logs_payload(entities: Iterable[Entity]) -> ExportLogsServiceRequest:
    """Build the logs export request (events travel as logs)."""
    request = ExportLogsServiceRequest()
    for entity in entities:
        if not entity.logs:
            continue
        request.resource_logs.append(
            logs_pb2.ResourceLogs(
                resource=Resource(attributes=to_key_value_list(entity.attributes)),
                scope_logs=[
                    logs_pb2.ScopeLogs(
                        scope=instrumentation_scope(),
                        log_records=[encode_log(log) for log in entity.logs],
                    )
                ],
            )
        )
    return request


def _id_bytes(value: str) -> bytes:
    # ids pass through as the raw bytes of the given string, no hex decoding
    return value.encode("utf-8")


def encode_span(span: Span) -> trace_pb2.Span:
    ots = trace_pb2.Span(
        name=span.name,
        trace_id=_id_bytes(span.trace_id),
        span_id=_id_bytes(span.span_id),
        trace_state=span.trace_state,
        parent_span_id=_id_bytes(span.parent_span_id),
        kind=int(span.kind),
        start_time_unix_nano=span.start_time,
        end_time_unix_nano=span.end_time,
        attributes=to_key_value_list(span.attributes),
    )
    for event in span.events:
        ots.events.append(
            trace_pb2.Span.Event(
                time_unix_nano=event.timestamp,
                name=event.name,
                attributes=to_key_value_list(event.attributes),
            )
        )
    for link in span.links:
        ots.links.append(
            trace_pb2.Span.Link(
                trace_id=_id_bytes(link.trace_id),
                span_id=_id_bytes(link.span_id),
                trace_state=link.trace_state,
                attributes=to_key_value_list(link.attributes),
            )
        )
    if span.status is not None:
        ots.status.CopyFrom(
            trace_pb2.Status(message=span.status.message, code=int(span.status.code))
        )
    return ots


def build_spans_payload(entities: Iterable[Entity]) -> ExportTraceServiceRequest:
    """Build the trace export request."""
    request = ExportTraceServiceRequest()
    for entity in entities:
        if not entity.spans:
            continue
        request.resource_spans.append(
            trace_pb2.ResourceSpans(
                resource=Resource(attributes=to_key_value_list(entity.attributes)),
                scope_spans=[
                    trace_pb2.ScopeSpans(
                        scope=instrumentation_scope(),
                        spans=[encode_span(s) for s in entity.spans],
                    )
                ],
            )
        )
    return request
