"""
Export driver: encode entities per signal kind, optionally dump, then send.

Signal kinds are processed one at a time, synchronously. A kind whose
payload has no resource blocks is skipped without contacting the transport.
"""

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from enum import Enum

from google.protobuf import json_format
from google.protobuf.message import Message

from ..config import ConfigurationError
from ..model import document
from ..model.types import Entity, FsocData
from .dump import render, resolve_format
from .otlp_encoder import build_logs_payload, build_metrics_payload, build_spans_payload
from .report import ExportIssue, ExportReport, KindStatus
from .transport import PATH_LOGS, PATH_METRICS, PATH_SPANS, HttpTransport, TransportError

logger = logging.getLogger(__name__)


class SignalKind(Enum):
    """Signal kinds and their ingestion paths. Events travel on the logs path."""

    METRICS = "metrics"
    LOGS = "logs"
    EVENTS = "events"
    SPANS = "spans"

    @property
    def path(self) -> str:
        return _PATHS[self]

    @property
    def title(self) -> str:
        return self.value.capitalize()


_PATHS = {
    SignalKind.METRICS: PATH_METRICS,
    SignalKind.LOGS: PATH_LOGS,
    SignalKind.EVENTS: PATH_LOGS,
    SignalKind.SPANS: PATH_SPANS,
}

# Order used by export_all; events are already part of the logs payload.
EXPORT_ORDER = (SignalKind.METRICS, SignalKind.LOGS, SignalKind.SPANS)


@dataclass
class ExportOptions:
    """How an export run behaves.

    dump_format may only be set together with dump.
    """

    dry_run: bool = False
    dump: bool = False
    dump_format: str | None = None

    def validate(self) -> None:
        if self.dump_format is None:
            return
        if not self.dump:
            raise ConfigurationError(
                "--output format is allowed only when --dump is specified as well"
            )
        resolve_format(self.dump_format)


def _resource_count(message: Message) -> int:
    for name in ("resource_metrics", "resource_logs", "resource_spans"):
        if name in message.DESCRIPTOR.fields_by_name:
            return len(getattr(message, name))
    return 0


class Exporter:
    """Encode and ship MELT data per signal kind."""

    def __init__(
        self,
        transport: HttpTransport | None = None,
        options: ExportOptions | None = None,
        dump_func: Callable[[str], None] = print,
    ):
        self.options = options or ExportOptions()
        self.options.validate()
        self.transport = transport
        self.dump_func = dump_func

    def build(
        self, kind: SignalKind | str, entities: Iterable[Entity], report: ExportReport | None = None
    ) -> Message:
        """Build the export request for one kind without sending it."""
        kind = SignalKind(kind)
        if kind == SignalKind.METRICS:
            return build_metrics_payload(entities, report)
        if kind == SignalKind.SPANS:
            return build_spans_payload(entities)
        return build_logs_payload(entities)

    def export(
        self,
        kind: SignalKind | str,
        entities: Iterable[Entity],
        report: ExportReport | None = None,
    ) -> ExportReport:
        """Export one signal kind.

        Raises TransportError when the payload cannot be delivered; the
        failure is also recorded in the returned/passed report.
        Nothing is synthesized here; see generators.prepare().
        """
        kind = SignalKind(kind)
        report = report if report is not None else ExportReport()
        message = self.build(kind, list(entities), report)

        if _resource_count(message) == 0:
            logger.info("No %s to send", kind.value)
            report.set_status(kind.value, KindStatus.SKIPPED)
            return report

        if logger.isEnabledFor(logging.DEBUG):
            payload_json = json_format.MessageToJson(message, indent=None)
            logger.debug("%s: %s", kind.value.upper(), payload_json)

        if self.options.dump:
            self.dump_func(render(message, self.options.dump_format, kind.title))

        if self.options.dry_run:
            report.set_status(kind.value, KindStatus.DRY_RUN)
            return report

        if self.transport is None:
            raise ConfigurationError(
                "No transport configured; use dry-run to encode without sending"
            )
        try:
            self.transport.send(kind.path, message.SerializeToString())
        except TransportError as e:
            report.set_status(kind.value, KindStatus.FAILED)
            report.add_issue(ExportIssue(kind=kind.value, message=str(e), fatal=True))
            raise
        report.set_status(kind.value, KindStatus.SENT)
        return report

    def export_metrics(self, entities: Iterable[Entity]) -> ExportReport:
        return self.export(SignalKind.METRICS, entities)

    def export_logs(self, entities: Iterable[Entity]) -> ExportReport:
        return self.export(SignalKind.LOGS, entities)

    def export_events(self, entities: Iterable[Entity]) -> ExportReport:
        """Events are exported as logs; OTLP does not distinguish them."""
        return self.export(SignalKind.EVENTS, entities)

    def export_spans(self, entities: Iterable[Entity]) -> ExportReport:
        return self.export(SignalKind.SPANS, entities)

    def export_all(
        self,
        entities: Iterable[Entity],
        fail_fast: bool = False,
        before_kind: Callable[[SignalKind], None] | None = None,
    ) -> ExportReport:
        """Export metrics, logs and spans in that order.

        Every kind is attempted and failures are collected in the report,
        unless fail_fast is set, in which case the first failure stops the run.
        """
        entities = list(entities)
        report = ExportReport()
        for kind in EXPORT_ORDER:
            if before_kind is not None:
                before_kind(kind)
            try:
                self.export(kind, entities, report)
            except TransportError as e:
                logger.error("Error exporting %s: %s", kind.value, e)
                if fail_fast:
                    break
        return report

    def dump(
        self, kind: SignalKind | str, entities: Iterable[Entity], fmt: str | None = None
    ) -> str:
        """Render the payload for one kind; never contacts the transport."""
        return render(self.build(kind, list(entities)), fmt, SignalKind(kind).title)


def load(source) -> FsocData:
    """Parse a YAML data model document (text, bytes or stream)."""
    return document.load(source)


def export(
    kind: SignalKind | str,
    entities: Iterable[Entity],
    options: ExportOptions | None = None,
    transport: HttpTransport | None = None,
) -> ExportReport:
    """Export one signal kind with a one-off Exporter.

    Entities are encoded as given: logs with a zero timestamp go out with
    time_unix_nano 0 and metrics without data points carry none. Run
    generators.prepare() on the document first to fill those in, as the
    send command does.
    """
    return Exporter(transport=transport, options=options).export(kind, entities)


def dump(kind: SignalKind | str, entities: Iterable[Entity], fmt: str | None = None) -> str:
    """Render one kind's payload in fmt without sending it."""
    return Exporter(options=ExportOptions(dry_run=True)).dump(kind, entities, fmt)
