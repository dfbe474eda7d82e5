"""MELT data model and its YAML document format."""

from .document import DocumentParseError, dump, load, load_file
from .types import (
    AggregationTemporality,
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

__all__ = [
    "AggregationTemporality",
    "DataPoint",
    "DocumentParseError",
    "Entity",
    "FsocData",
    "Log",
    "Metric",
    "Relationship",
    "Span",
    "SpanEvent",
    "SpanKind",
    "SpanLink",
    "SpanStatus",
    "SpanStatusCode",
    "dump",
    "load",
    "load_file",
]
