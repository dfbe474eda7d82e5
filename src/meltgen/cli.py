"""
Command-line interface for meltgen.

Provides commands for:
- Sending a MELT data model document (file or stdin) as OTLP
- Sending the built-in geometry sample
- Writing the geometry sample document as a starting template
- Writing a data model document for a solution's fmm domain model
"""

import argparse
import logging
import sys
from pathlib import Path

from .config import ConfigurationError, MeltError, Settings
from .exporters.dump import DUMP_FORMATS, FORMAT_HEX, FORMAT_HUMAN, FORMAT_YAML, resolve_format
from .exporters.exporter import ExportOptions, Exporter, SignalKind
from .exporters.report import ExportReport
from .exporters.transport import HttpTransport
from .generators.datapoints import prepare
from .generators.fmm_model import (
    TYPE_FMM_ENTITY,
    TYPE_FMM_METRIC,
    SolutionManifest,
    build_entities,
)
from .generators.geometry import build_sample
from .model.document import DocumentParseError, dump_file, load_file
from .model.types import FsocData

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_CONFIG = 2

# Formats that carry '#' comment lines; json and text stay machine-readable.
_COMMENTED_FORMATS = (FORMAT_HUMAN, FORMAT_YAML, FORMAT_HEX)


def _status(msg: str) -> None:
    """Progress messages go to stderr so dumps on stdout stay clean."""
    if msg:
        print(msg, file=sys.stderr)


def format_section(section: str, fmt: str | None) -> str:
    """Section header printed before each signal kind."""
    if fmt is None:
        return f"  Sending {section}..."
    if fmt in _COMMENTED_FORMATS:
        return f"\n# {section}"
    return ""


def format_status_msg(msg: str, fmt: str | None) -> str:
    if fmt is None:
        return msg
    if fmt in _COMMENTED_FORMATS:
        return f"# {msg}"
    return ""


def _add_connection_options(parser: argparse.ArgumentParser, default) -> None:
    parser.add_argument(
        "--endpoint",
        type=str,
        default=default,
        help="Ingestion API base URL (default: MELTGEN_ENDPOINT or OTEL_EXPORTER_OTLP_ENDPOINT)",
    )
    parser.add_argument(
        "--token",
        type=str,
        default=default,
        help="Bearer token for the ingestion API (default: MELTGEN_TOKEN)",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=default,
        help="Request timeout in seconds (default: MELTGEN_TIMEOUT; none if unset)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        default=default if default is argparse.SUPPRESS else False,
        help="Enable debug logging",
    )


def _add_export_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Process data but don't send it to the ingestion API",
    )
    parser.add_argument(
        "--dump",
        action="store_true",
        help="Display MELT data protobuf payloads",
    )
    parser.add_argument(
        "-o",
        "--output",
        type=str,
        choices=DUMP_FORMATS,
        default=None,
        help="Output format for --dump (auto, human, text, json, yaml, hex; default: auto)",
    )
    parser.add_argument(
        "--fail-fast",
        action="store_true",
        help="Stop at the first signal kind that fails instead of attempting all of them",
    )


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="meltgen",
        description="Generate MELT telemetry from a data model and send it as OTLP",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Send a data model file
  meltgen send model.yaml --token $TOKEN

  # Read the model from stdin
  cat model.yaml | meltgen send

  # Show the payloads as JSON without sending anything
  meltgen send model.yaml --dry-run --dump -o json

  # Write the geometry sample model as a template
  meltgen sample geometry.yaml

  # Generate a data model from the solution in the current directory
  meltgen model .
        """,
    )
    _add_connection_options(parser, None)

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    send_parser = subparsers.add_parser(
        "send",
        aliases=["push"],
        help="Generate and send OTLP telemetry from a data model file",
    )
    _add_connection_options(send_parser, argparse.SUPPRESS)
    send_parser.add_argument(
        "datafile",
        nargs="?",
        default=None,
        help="Data model YAML file (default: read from stdin)",
    )
    _add_export_options(send_parser)

    geometry_parser = subparsers.add_parser(
        "geometry-test",
        help="Send the built-in geometry sample telemetry",
    )
    _add_connection_options(geometry_parser, argparse.SUPPRESS)
    _add_export_options(geometry_parser)

    sample_parser = subparsers.add_parser(
        "sample",
        help="Write the geometry sample data model as YAML",
    )
    sample_parser.add_argument(
        "file",
        nargs="?",
        default=None,
        help="Output path (default: stdout)",
    )

    model_parser = subparsers.add_parser(
        "model",
        help="Write a data model document from a solution's fmm entities and metrics",
    )
    model_parser.add_argument(
        "solution",
        nargs="?",
        default=".",
        help="Solution directory or manifest.json path (default: current directory)",
    )
    model_parser.add_argument(
        "--output-dir",
        type=str,
        default=".",
        help="Directory for <name>-<version>-melt.yaml (default: current directory)",
    )

    return parser


def build_options(args: argparse.Namespace) -> ExportOptions:
    """Export options from flags; rejects --output without --dump."""
    options = ExportOptions(
        dry_run=args.dry_run,
        dump=args.dump,
        dump_format=args.output,
    )
    options.validate()
    return options


def build_transport(args: argparse.Namespace) -> HttpTransport:
    settings = Settings.from_env().with_overrides(
        endpoint=args.endpoint, token=args.token, timeout=args.timeout
    )
    if not settings.token:
        raise ConfigurationError("A bearer token is required: pass --token or set MELTGEN_TOKEN")
    return HttpTransport(settings.endpoint, settings.token, timeout=settings.timeout)


def export_data(
    data: FsocData, options: ExportOptions, transport: HttpTransport | None, fail_fast: bool
) -> ExportReport:
    """Export metrics, logs and spans, printing a header before each section."""
    fmt = resolve_format(options.dump_format) if options.dump else None
    exporter = Exporter(transport=transport, options=options)

    if not options.dump:
        _status(format_status_msg("Generating new MELT telemetry", fmt))

    def before_kind(kind: SignalKind) -> None:
        header = format_section(kind.title, fmt)
        if header and fmt is None:
            _status(header)
        elif header:
            print(header)

    report = exporter.export_all(data.melt, fail_fast=fail_fast, before_kind=before_kind)

    if not options.dump and report.ok:
        if options.dry_run:
            _status("\nMELT data processed (dry run, nothing sent)")
        else:
            _status("\nMELT data sent")
    return report


def _run_export(args: argparse.Namespace, data_source) -> int:
    options = build_options(args)
    transport = None if options.dry_run else build_transport(args)
    data = data_source()
    try:
        report = export_data(prepare(data), options, transport, args.fail_fast)
    finally:
        if transport is not None:
            transport.close()
    if report.errors or not report.ok:
        _status(str(report))
    return EXIT_OK if report.ok else EXIT_FAILURE


def cmd_send(args: argparse.Namespace) -> int:
    """Load a data model file (or stdin) and export it."""

    def load() -> FsocData:
        if args.datafile is None:
            _status("Reading MELT data from STDIN")
        return load_file(args.datafile)

    return _run_export(args, load)


def cmd_geometry_test(args: argparse.Namespace) -> int:
    """Export the geometry sample."""
    return _run_export(args, build_sample)


def cmd_sample(args: argparse.Namespace) -> int:
    """Write the geometry sample document."""
    dump_file(build_sample(), args.file)
    if args.file:
        _status(f"Generating {args.file}")
    return EXIT_OK


def cmd_model(args: argparse.Namespace) -> int:
    """Write a data model document for the entities of a solution."""
    manifest = SolutionManifest.load(args.solution)
    entity_defs = manifest.definitions(TYPE_FMM_ENTITY)
    _status(f"Adding {len(entity_defs)} entities to the fsoc data model")
    metric_defs = manifest.definitions(TYPE_FMM_METRIC)
    _status(f"Adding {len(metric_defs)} metrics to the fsoc data model")
    data = build_entities(entity_defs, metric_defs)

    target = Path(args.output_dir) / manifest.data_file_name
    _status(f"Generating {target}")
    dump_file(data, target)
    return EXIT_OK


_COMMANDS = {
    "send": cmd_send,
    "push": cmd_send,
    "geometry-test": cmd_geometry_test,
    "sample": cmd_sample,
    "model": cmd_model,
}


def main(argv: list[str] | None = None) -> None:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(EXIT_OK)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        code = _COMMANDS[args.command](args)
    except ConfigurationError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(EXIT_CONFIG)
    except DocumentParseError as e:
        print(f"Error: failed to parse telemetry model: {e}", file=sys.stderr)
        sys.exit(EXIT_FAILURE)
    except OSError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(EXIT_FAILURE)
    except MeltError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(EXIT_FAILURE)
    except KeyboardInterrupt:
        print("\nInterrupted", file=sys.stderr)
        sys.exit(EXIT_FAILURE)
    sys.exit(code)


if __name__ == "__main__":
    main()
