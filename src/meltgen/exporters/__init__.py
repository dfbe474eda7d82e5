"""OTLP encoding, dumping and delivery of MELT data."""

from .dump import DUMP_FORMATS, render
from .exporter import ExportOptions, Exporter, SignalKind, dump, export, load
from .otlp_encoder import (
    UnsupportedSignalTypeError,
    build_logs_payload,
    build_metrics_payload,
    build_spans_payload,
)
from .report import ExportIssue, ExportReport, KindStatus
from .transport import HttpTransport, TransportError

__all__ = [
    "DUMP_FORMATS",
    "ExportIssue",
    "ExportOptions",
    "ExportReport",
    "Exporter",
    "HttpTransport",
    "KindStatus",
    "SignalKind",
    "TransportError",
    "UnsupportedSignalTypeError",
    "build_logs_payload",
    "build_metrics_payload",
    "build_spans_payload",
    "dump",
    "export",
    "load",
    "render",
]
