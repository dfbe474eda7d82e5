"""Tests for the command-line interface."""

import io
import json
from unittest.mock import MagicMock

import pytest

from meltgen import cli
from meltgen.exporters import TransportError
from meltgen.model import load_file

DOCUMENT = """
melt:
  - typename: geometry:square
    attributes: {geometry.shape.name: s1}
    metrics:
      - typename: geometry:area
        contenttype: gauge
        type: double
        min: 1
        max: 2
    logs:
      - body: hello
    spans:
      - {traceid: t1, spanid: s1, name: draw, kind: client}
"""


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """No connection settings leak in from the environment."""
    for name in ("MELTGEN_ENDPOINT", "MELTGEN_TOKEN", "MELTGEN_TIMEOUT"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def model_file(tmp_path):
    path = tmp_path / "model.yaml"
    path.write_text(DOCUMENT, encoding="utf-8")
    return str(path)


@pytest.fixture
def fake_transport(monkeypatch: pytest.MonkeyPatch):
    """Replace HttpTransport in the CLI; failing paths are set on the returned mock."""
    transport = MagicMock()
    transport.fail_paths = ()
    created = {}

    def send(path, payload):
        if path in transport.fail_paths:
            raise TransportError(f"Received non-ok response code from x/{path}: 500", url=path)
        return MagicMock(status_code=200)

    def factory(endpoint, token, timeout=None):
        created.update(endpoint=endpoint, token=token, timeout=timeout)
        return transport

    transport.send.side_effect = send
    transport.created = created
    monkeypatch.setattr(cli, "HttpTransport", factory)
    return transport


def _run(argv: list[str]) -> int:
    with pytest.raises(SystemExit) as excinfo:
        cli.main(argv)
    return excinfo.value.code


def test_output_without_dump_is_rejected_before_reading(
    capsys: pytest.CaptureFixture[str],
) -> None:
    """--output without --dump exits with the configuration code and reads nothing."""
    code = _run(["send", "does-not-exist.yaml", "--dry-run", "--output", "json"])

    assert code == 2
    err = capsys.readouterr().err
    assert "--output format is allowed only when --dump is specified as well" in err


def test_missing_token_is_configuration_error(model_file: str) -> None:
    """Sending for real without a token is refused."""
    assert _run(["send", model_file]) == 2


def test_dry_run_json_dump(model_file: str, capsys: pytest.CaptureFixture[str]) -> None:
    """A dry run with a json dump prints one JSON payload per kind and no headers."""
    assert _run(["send", model_file, "--dry-run", "--dump", "-o", "json"]) == 0

    out = capsys.readouterr().out
    decoder = json.JSONDecoder()
    payloads, pos = [], 0
    while pos < len(out):
        if out[pos].isspace():
            pos += 1
            continue
        obj, pos = decoder.raw_decode(out, pos)
        payloads.append(obj)
    assert [next(iter(p)) for p in payloads] == ["resourceMetrics", "resourceLogs", "resourceSpans"]
    resource_attrs = payloads[0]["resourceMetrics"][0]["resource"]["attributes"]
    assert {"key": "telemetry.sdk.name", "value": {"stringValue": "fsoc-melt"}} in resource_attrs
    points = payloads[0]["resourceMetrics"][0]["scopeMetrics"][0]["metrics"][0]["gauge"]
    assert len(points["dataPoints"]) == 5


def test_human_dump_has_section_headers(
    model_file: str, capsys: pytest.CaptureFixture[str]
) -> None:
    """The default dump format prints a commented header per section."""
    assert _run(["push", model_file, "--dry-run", "--dump"]) == 0

    out = capsys.readouterr().out
    assert "\n# Metrics\n" in out
    assert "\n# Logs\n" in out
    assert "\n# Spans\n" in out


def test_send_posts_every_kind(
    model_file: str, fake_transport, capsys: pytest.CaptureFixture[str]
) -> None:
    """A real send posts metrics, logs and trace with the flag token."""
    code = _run(["--endpoint", "http://ingest:4318", "send", model_file, "--token", "abc"])

    assert code == 0
    assert fake_transport.created == {
        "endpoint": "http://ingest:4318",
        "token": "abc",
        "timeout": None,
    }
    paths = [c.args[0] for c in fake_transport.send.call_args_list]
    assert paths == ["metrics", "logs", "trace"]
    err = capsys.readouterr().err
    assert "Generating new MELT telemetry" in err
    assert "  Sending Metrics..." in err
    assert "MELT data sent" in err
    fake_transport.close.assert_called_once()


def test_token_from_environment(
    model_file: str, fake_transport, monkeypatch: pytest.MonkeyPatch
) -> None:
    """MELTGEN_TOKEN is used when no flag is given."""
    monkeypatch.setenv("MELTGEN_TOKEN", "from-env")
    assert _run(["send", model_file]) == 0
    assert fake_transport.created["token"] == "from-env"


def test_failed_kind_exits_nonzero_but_others_are_sent(
    model_file: str, fake_transport, capsys: pytest.CaptureFixture[str]
) -> None:
    """A rejected kind fails the run while the remaining kinds are still attempted."""
    fake_transport.fail_paths = ("metrics",)

    assert _run(["send", model_file, "--token", "abc"]) == 1

    paths = [c.args[0] for c in fake_transport.send.call_args_list]
    assert paths == ["metrics", "logs", "trace"]
    assert "Export failed" in capsys.readouterr().err


def test_fail_fast_stops_after_failure(model_file: str, fake_transport) -> None:
    """--fail-fast halts at the first failing kind."""
    fake_transport.fail_paths = ("metrics",)

    assert _run(["send", model_file, "--token", "abc", "--fail-fast"]) == 1
    assert [c.args[0] for c in fake_transport.send.call_args_list] == ["metrics"]


def test_send_reads_stdin(
    monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    """Without a data file the model is read from standard input."""
    monkeypatch.setattr("sys.stdin", io.StringIO(DOCUMENT))

    assert _run(["send", "--dry-run"]) == 0
    assert "Reading MELT data from STDIN" in capsys.readouterr().err


def test_malformed_document_fails(tmp_path) -> None:
    """A document that does not parse exits with the failure code."""
    path = tmp_path / "bad.yaml"
    path.write_text("melt: {}", encoding="utf-8")
    assert _run(["send", str(path), "--dry-run"]) == 1


def test_missing_file_fails() -> None:
    """A missing data file exits with the failure code."""
    assert _run(["send", "does-not-exist.yaml", "--dry-run"]) == 1


def test_sample_then_send(tmp_path, capsys: pytest.CaptureFixture[str]) -> None:
    """The sample document can be written and then sent in a dry run."""
    target = tmp_path / "geometry.yaml"
    assert _run(["sample", str(target)]) == 0
    assert target.read_text(encoding="utf-8").startswith("melt:")

    assert _run(["send", str(target), "--dry-run", "--dump", "-o", "text"]) == 0
    out = capsys.readouterr().out
    assert 'name: "geometry:sum_cumulative"' in out
    assert "# " not in out


def test_geometry_test_dry_run(capsys: pytest.CaptureFixture[str]) -> None:
    """geometry-test runs end to end without a token in dry-run mode."""
    assert _run(["geometry-test", "--dry-run", "--dump", "-o", "yaml"]) == 0
    out = capsys.readouterr().out
    assert "# Metrics" in out
    assert "resourceSpans" in out


def test_no_command_prints_help(capsys: pytest.CaptureFixture[str]) -> None:
    """Running without a command shows usage."""
    assert _run([]) == 0
    assert "usage: meltgen" in capsys.readouterr().out


def test_non_finite_long_value_is_reported_not_raised(
    tmp_path, capsys: pytest.CaptureFixture[str]
) -> None:
    """A NaN long data point is dropped and reported while the rest is still dumped."""
    path = tmp_path / "nan.yaml"
    path.write_text(
        """
melt:
  - typename: geometry:square
    metrics:
      - typename: geometry:broken
        contenttype: gauge
        type: long
        datapoints: [{starttime: 1, endtime: 2, value: .nan}]
      - typename: geometry:fine
        contenttype: gauge
        type: long
        datapoints: [{starttime: 1, endtime: 2, value: 3}]
""",
        encoding="utf-8",
    )

    assert _run(["send", str(path), "--dry-run", "--dump", "-o", "json"]) == 0

    captured = capsys.readouterr()
    assert '"geometry:fine"' in captured.out
    assert '"geometry:broken"' not in captured.out
    assert "[DROPPED] (metrics) geometry:broken" in captured.err


def test_out_of_range_values_fail_as_parse_errors(
    tmp_path, capsys: pytest.CaptureFixture[str]
) -> None:
    """Oversized attribute ints and negative timestamps exit 1 with the offending path."""
    path = tmp_path / "range.yaml"
    path.write_text(
        "melt: [{typename: a, attributes: {big: 99999999999999999999}}]", encoding="utf-8"
    )
    assert _run(["send", str(path), "--dry-run"]) == 1
    assert "melt[0].attributes.big" in capsys.readouterr().err

    path.write_text("melt: [{typename: a, logs: [{timestamp: -5}]}]", encoding="utf-8")
    assert _run(["send", str(path), "--dry-run"]) == 1
    assert "melt[0].logs[0].timestamp" in capsys.readouterr().err


def test_model_writes_solution_data_file(tmp_path, capsys: pytest.CaptureFixture[str]) -> None:
    """model reads manifest.json and writes <name>-<version>-melt.yaml."""
    solution = tmp_path / "spacefleet"
    (solution / "objects").mkdir(parents=True)
    (solution / "manifest.json").write_text(
        json.dumps(
            {
                "name": "spacefleet",
                "solutionVersion": "1.0.2",
                "objects": [
                    {"type": "fmm:entity", "objectsFile": "objects/entities.json"},
                    {"type": "fmm:metric", "objectsFile": "objects/metrics.json"},
                ],
            }
        ),
        encoding="utf-8",
    )
    (solution / "objects" / "entities.json").write_text(
        json.dumps(
            {
                "namespace": {"name": "spacefleet", "version": 1},
                "name": "ship",
                "metricTypes": ["spacefleet:fuel"],
                "attributeDefinitions": {"attributes": {"callsign": {"type": "string"}}},
            }
        ),
        encoding="utf-8",
    )
    (solution / "objects" / "metrics.json").write_text(
        json.dumps(
            [
                {
                    "namespace": {"name": "spacefleet", "version": 1},
                    "name": "fuel",
                    "contentType": "gauge",
                    "type": "double",
                    "unit": "l",
                }
            ]
        ),
        encoding="utf-8",
    )
    out_dir = tmp_path / "out"
    out_dir.mkdir()

    assert _run(["model", str(solution), "--output-dir", str(out_dir)]) == 0

    err = capsys.readouterr().err
    assert "Adding 1 entities to the fsoc data model" in err
    assert "Adding 1 metrics to the fsoc data model" in err
    data = load_file(out_dir / "spacefleet-1.0.2-melt.yaml")
    entity = data.melt[0]
    assert entity.type_name == "spacefleet:ship"
    assert entity.attributes == {"spacefleet.ship.callsign": ""}
    assert [m.type_name for m in entity.metrics] == ["spacefleet:fuel"]

    assert _run(["send", str(out_dir / "spacefleet-1.0.2-melt.yaml"), "--dry-run"]) == 0


def test_model_without_manifest_fails(tmp_path, capsys: pytest.CaptureFixture[str]) -> None:
    """A directory without manifest.json exits with the failure code."""
    assert _run(["model", str(tmp_path)]) == 1
    assert "manifest.json" in capsys.readouterr().err
