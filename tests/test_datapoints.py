"""Tests for filling in generated data points, sdk names and timestamps."""

import logging
import random

import pytest

from meltgen.generators import fill_data_points, prepare, sample_value
from meltgen.model import Entity, FsocData, Log, Metric

NOW = 1_700_000_000_000_000_000
MINUTE = 60 * 1_000_000_000


@pytest.fixture
def rng() -> random.Random:
    return random.Random(1234)


def test_fills_five_contiguous_minutes_ending_now(rng: random.Random) -> None:
    """A metric without data gets five back-to-back one-minute points ending now."""
    metric = fill_data_points(Metric("geometry:area", content_type="sum", type="double"), NOW, rng)

    points = metric.data_points
    assert len(points) == 5
    assert points[0].start_time == NOW - 5 * MINUTE
    assert points[-1].end_time == NOW
    for prev, cur in zip(points, points[1:]):
        assert cur.start_time == prev.end_time
    assert all(p.end_time - p.start_time == MINUTE for p in points)


def test_existing_data_points_are_kept(rng: random.Random) -> None:
    """Metrics that already have data are left alone."""
    metric = Metric("geometry:area").add_data_point(1, 2, 3.0)
    fill_data_points(metric, NOW, rng)
    assert [(p.start_time, p.end_time, p.value) for p in metric.data_points] == [(1, 2, 3.0)]


def test_value_hint_wins(rng: random.Random) -> None:
    """An explicit value hint is used for every point."""
    metric = Metric("geometry:area", min="1", max="2", value="42.5")
    fill_data_points(metric, NOW, rng)
    assert {p.value for p in metric.data_points} == {42.5}


def test_min_and_max_bound_values(rng: random.Random) -> None:
    """Values stay within [min, max], even when the hints are reversed."""
    for lo, hi in (("10", "20"), ("20", "10")):
        metric = Metric("geometry:area", min=lo, max=hi)
        for _ in range(200):
            assert 10.0 <= sample_value(metric, rng) <= 20.0


def test_max_only_and_min_only(rng: random.Random) -> None:
    """max alone bounds from zero; min alone offsets the default range."""
    only_max = Metric("geometry:area", max="3")
    only_min = Metric("geometry:area", min="100")
    for _ in range(200):
        assert 0.0 <= sample_value(only_max, rng) <= 3.0
        assert 100.0 <= sample_value(only_min, rng) <= 150.0


def test_no_hints_uses_default_range(rng: random.Random) -> None:
    """Without hints values fall in [0, 50]."""
    metric = Metric("geometry:area")
    for _ in range(200):
        assert 0.0 <= sample_value(metric, rng) <= 50.0


def test_unparseable_hint_is_logged_and_ignored(
    rng: random.Random, caplog: pytest.LogCaptureFixture
) -> None:
    """A bad hint logs a warning and falls back to the default range."""
    metric = Metric("geometry:area", value="lots")
    with caplog.at_level(logging.WARNING):
        value = sample_value(metric, rng, owner="geometry:square")
    assert 0.0 <= value <= 50.0
    assert "lots" in caplog.text


def test_same_seed_same_values() -> None:
    """Generation is reproducible with a seeded generator."""
    first = fill_data_points(Metric("m"), NOW, random.Random(7))
    second = fill_data_points(Metric("m"), NOW, random.Random(7))
    assert first.data_points == second.data_points


def test_prepare_sets_sdk_name_and_log_timestamps(rng: random.Random) -> None:
    """prepare sets telemetry.sdk.name if missing and stamps logs without a timestamp."""
    bare = Entity(type_name="geometry:square")
    bare.add_log(Log(body="no time"))
    bare.add_log(Log(body="has time", timestamp=99))
    named = Entity(type_name="geometry:square").set_attribute("telemetry.sdk.name", "custom")
    named.add_metric(Metric("geometry:area", content_type="gauge", type="double"))

    prepare(FsocData(melt=[bare, named]), now_ns=NOW, rng=rng)

    assert bare.attributes["telemetry.sdk.name"] == "fsoc-melt"
    assert named.attributes["telemetry.sdk.name"] == "custom"
    assert [lg.timestamp for lg in bare.logs] == [NOW, 99]
    assert len(named.metrics[0].data_points) == 5
