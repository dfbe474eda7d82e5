"""
Geometry sample document.

Builds a small, fully populated data model around a geometry:square
entity: gauge and sum metrics, edge relationships, logs, operation events
and client spans with events, links and status. Useful as a smoke test
against an ingestion endpoint and as a template for hand-written models.
"""

import random
import time
import uuid

from ..defaults import RANDOM_DATAPOINT_STEP_NS, SAMPLE_RECORD_COUNT
from ..model.types import (
    AggregationTemporality,
    Entity,
    FsocData,
    Log,
    Metric,
    Relationship,
    Span,
    SpanKind,
    SpanStatusCode,
)

ENTITY_TYPE = "geometry:square"
EVENT_TYPE = "geometry:operation"
SQUARE_EDGES = ("AB", "BC", "CD", "DA")


def square_entity(name: str, side: int = 10) -> Entity:
    return (
        Entity(type_name=ENTITY_TYPE)
        .set_attribute("geometry.shape.name", name)
        .set_attribute("geometry.shape.type", "square")
        .set_attribute("geometry.square.side", side)
        .set_attribute("telemetry.sdk.name", "appd-datagen")
    )


def add_metrics(entity: Entity, start_ns: int, end_ns: int, rng: random.Random) -> Entity:
    """Gauge, delta sum and cumulative monotonic sum, one data point each."""
    gauge = Metric("geometry:gauge", unit="count", content_type="gauge", type="double")
    gauge.add_data_point(start_ns, end_ns, rng.random() * 5)

    delta = Metric("geometry:sum_delta", unit="sum", content_type="sum", type="double")
    delta.aggregation_temporality = AggregationTemporality.DELTA
    delta.add_data_point(start_ns, end_ns, rng.random() * 5)

    cumulative = Metric("geometry:sum_cumulative", unit="sum", content_type="sum", type="double")
    cumulative.is_monotonic = True
    cumulative.aggregation_temporality = AggregationTemporality.CUMULATIVE
    cumulative.add_data_point(start_ns, end_ns, rng.random() * 5)

    return entity.add_metric(gauge).add_metric(delta).add_metric(cumulative)


def add_relationships(entity: Entity) -> Entity:
    """One relationship per square edge."""
    for edge in SQUARE_EDGES:
        entity.add_relationship(
            Relationship()
            .set_attribute("geometry.edge.name", edge)
            .set_attribute(
                "geometry.edge.length", entity.attributes.get("geometry.square.side", 0)
            )
        )
    return entity


def add_logs(entity: Entity, now_ns: int) -> Entity:
    for i in range(1, SAMPLE_RECORD_COUNT + 1):
        log = Log.new_log().set_attribute("level", "debug")
        log.severity = "INFO"
        log.body = f"hello world-{i}"
        log.timestamp = now_ns
        entity.add_log(log)
    return entity


def add_events(entity: Entity, now_ns: int) -> Entity:
    for _ in range(SAMPLE_RECORD_COUNT):
        event = Log.new_event(EVENT_TYPE).set_attribute("type", "draw")
        event.timestamp = now_ns
        entity.add_log(event)
    return entity


def add_spans(entity: Entity, start_ns: int, end_ns: int) -> Entity:
    """Client spans with one event, one link and an OK status each.

    Ids are UUID strings, passed through to the wire unchanged.
    """
    for i in range(1, SAMPLE_RECORD_COUNT + 1):
        span = Span(trace_id=str(uuid.uuid4()), span_id=str(uuid.uuid4()), name=f"span-{i}")
        span.start_time = start_ns
        span.end_time = end_ns
        span.kind = SpanKind.CLIENT
        span.set_attribute("span-attribute-1", "value")
        span.new_event(f"span event {i}", end_ns).set_attribute("event-attribute-1", "value")
        span.new_link(str(uuid.uuid4()), str(uuid.uuid4())).set_attribute(
            "link-attribute-1", "value"
        )
        span.set_status(f"span {i} completed", SpanStatusCode.OK)
        entity.add_span(span)
    return entity


def build_sample(now_ns: int | None = None, rng: random.Random | None = None) -> FsocData:
    """A document with one square per signal kind, as the ingestion smoke test sends them."""
    now_ns = time.time_ns() if now_ns is None else now_ns
    rng = rng or random.Random()
    start_ns = now_ns - RANDOM_DATAPOINT_STEP_NS

    metrics_square = add_relationships(
        add_metrics(square_entity("Square entity1"), start_ns, now_ns, rng)
    )
    logs_square = add_logs(square_entity("Square 6"), now_ns)
    events_square = add_events(square_entity("Square 100"), now_ns)
    spans_square = add_spans(square_entity("Square 7"), start_ns, now_ns)
    return FsocData(melt=[metrics_square, logs_square, events_square, spans_square])
