"""
Fill in the parts of a data model document that are left for generation.

- entities without telemetry.sdk.name get the generator's sdk name
- metrics without data points get RANDOM_DATAPOINT_COUNT contiguous
  one-minute points ending now, valued from the min/max/value hints
- logs without a timestamp are stamped with the current time
"""

import logging
import random
import time

from opentelemetry.sdk.resources import TELEMETRY_SDK_NAME

from ..defaults import (
    RANDOM_DATAPOINT_COUNT,
    RANDOM_DATAPOINT_STEP_NS,
    RANDOM_VALUE_RANGE,
    SDK_NAME,
)
from ..model.types import Entity, FsocData, Metric

logger = logging.getLogger(__name__)


def _parse_hint(raw: str, label: str, owner: str) -> float | None:
    if not raw:
        return None
    try:
        return float(raw)
    except ValueError:
        logger.warning("Could not parse %s value %r for %r.", label, raw, owner)
        return None


def sample_value(metric: Metric, rng: random.Random, owner: str = "") -> float:
    """Draw one value honouring the metric's generation hints.

    min and max: uniform in [min, max] (swapped if reversed)
    max only:    uniform in [0, max]
    min only:    min + uniform in [0, RANDOM_VALUE_RANGE]
    neither:     uniform in [0, RANDOM_VALUE_RANGE]
    An explicit value hint overrides all of the above. Unparseable hints
    are logged and ignored.
    """
    value = rng.random() * RANDOM_VALUE_RANGE
    if metric.min and metric.max:
        lo = _parse_hint(metric.min, "min", owner)
        hi = _parse_hint(metric.max, "max", owner)
        if lo is not None and hi is not None:
            if lo > hi:
                lo, hi = hi, lo
            value = rng.random() * (hi - lo) + lo
    elif metric.max:
        hi = _parse_hint(metric.max, "max", owner)
        if hi is not None:
            value = rng.random() * hi
    elif metric.min:
        lo = _parse_hint(metric.min, "min", owner)
        if lo is not None:
            value = lo + rng.random() * RANDOM_VALUE_RANGE

    fixed = _parse_hint(metric.value, "value", owner)
    if fixed is not None:
        value = fixed
    return value


def fill_data_points(
    metric: Metric, now_ns: int, rng: random.Random, owner: str = ""
) -> Metric:
    """Add contiguous one-minute data points ending at now_ns if the metric has none."""
    if metric.data_points:
        return metric
    start = now_ns - RANDOM_DATAPOINT_COUNT * RANDOM_DATAPOINT_STEP_NS
    for _ in range(RANDOM_DATAPOINT_COUNT):
        end = start + RANDOM_DATAPOINT_STEP_NS
        metric.add_data_point(start, end, sample_value(metric, rng, owner))
        start = end
    return metric


def prepare_entity(entity: Entity, now_ns: int, rng: random.Random) -> Entity:
    if TELEMETRY_SDK_NAME in entity.attributes:
        logger.info("%s already set on %r, skipping", TELEMETRY_SDK_NAME, entity.type_name)
    else:
        entity.set_attribute(TELEMETRY_SDK_NAME, SDK_NAME)
    for metric in entity.metrics:
        fill_data_points(metric, now_ns, rng, owner=entity.type_name)
    for log in entity.logs:
        if log.timestamp == 0:
            log.timestamp = now_ns
    return entity


def prepare(
    data: FsocData, now_ns: int | None = None, rng: random.Random | None = None
) -> FsocData:
    """Complete every entity in place and return data."""
    now_ns = time.time_ns() if now_ns is None else now_ns
    rng = rng or random.Random()
    for entity in data.melt:
        prepare_entity(entity, now_ns, rng)
    return data
