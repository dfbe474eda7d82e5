"""
meltgen - mock MELT telemetry generator.

This package turns a YAML telemetry data model (entities carrying metrics,
events, logs, traces and relationships) into OTLP protobuf export requests
and sends them to an ingestion API.
"""

__version__ = "1.0.0"
