"""
Build a telemetry data model document from a solution's domain model.

The solution manifest (manifest.json) lists its objects by type. Entity
definitions come from the fmm:entity objects and metric definitions from
the fmm:metric objects; each object reference points either at a single
JSON file (objectsFile) or at a directory of JSON files (objectsDir). A
file holds one definition or an array of them.

Every fmm entity becomes an Entity named <namespace>:<name> with:
- its attribute keys, namespaced as <namespace>.<name>.<key> unless the key
  already mentions the namespace, all set to ""
- a copy of every fmm metric listed in its metricTypes
- two INFO logs
"""

import copy
import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from ..config import MeltError
from ..model.types import AggregationTemporality, Entity, FsocData, Log, Metric

logger = logging.getLogger(__name__)

MANIFEST_FILE = "manifest.json"
TYPE_FMM_ENTITY = "fmm:entity"
TYPE_FMM_METRIC = "fmm:metric"
LOGS_PER_ENTITY = 2


class ManifestError(MeltError):
    """Raised when the manifest or one of its object files cannot be read."""

    def __init__(self, message: str, path: Path | str = ""):
        self.path = str(path)
        super().__init__(f"{path}: {message}" if path else message)


def _read_json(path: Path) -> Any:
    try:
        with open(path, encoding="utf-8") as f:
            return json.load(f)
    except OSError as e:
        raise ManifestError(f"cannot open file: {e.strerror or e}", path) from e
    except json.JSONDecodeError as e:
        raise ManifestError(f"invalid JSON: {e}", path) from e


def read_definitions(path: Path) -> list[dict[str, Any]]:
    """Definitions held in one file: a single object or an array of objects."""
    data = _read_json(path)
    items = data if isinstance(data, list) else [data]
    for i, item in enumerate(items):
        if not isinstance(item, dict):
            raise ManifestError(f"definition {i} is not an object", path)
    return items


def _namespace(definition: dict[str, Any]) -> str:
    namespace = definition.get("namespace")
    return str(namespace.get("name", "")) if isinstance(namespace, dict) else ""


def type_name(definition: dict[str, Any]) -> str:
    return f"{_namespace(definition)}:{definition.get('name', '')}"


@dataclass
class SolutionManifest:
    """The parts of a solution manifest needed to build a data model."""

    name: str
    version: str
    base_dir: Path
    objects: list[dict[str, Any]] = field(default_factory=list)

    @classmethod
    def load(cls, path: Path | str) -> "SolutionManifest":
        """Load manifest.json from a file path or from the solution directory."""
        path = Path(path)
        if path.is_dir():
            path = path / MANIFEST_FILE
        data = _read_json(path)
        if not isinstance(data, dict):
            raise ManifestError("manifest is not a JSON object", path)
        objects = data.get("objects") or []
        if not isinstance(objects, list):
            raise ManifestError("objects must be an array", path)
        return cls(
            name=str(data.get("name", "")),
            version=str(data.get("solutionVersion", "")),
            base_dir=path.parent,
            objects=[o for o in objects if isinstance(o, dict)],
        )

    @property
    def data_file_name(self) -> str:
        return f"{self.name}-{self.version}-melt.yaml"

    def definitions(self, object_type: str) -> list[dict[str, Any]]:
        """All definitions of object_type, in manifest order.

        Relative objectsFile/objectsDir paths are resolved against the
        manifest's directory; directories are searched recursively for .json
        files in sorted order.
        """
        found: list[dict[str, Any]] = []
        for obj in self.objects:
            if obj.get("type") != object_type:
                continue
            if obj.get("objectsFile"):
                found.extend(read_definitions(self.base_dir / obj["objectsFile"]))
            if obj.get("objectsDir"):
                directory = self.base_dir / obj["objectsDir"]
                if not directory.is_dir():
                    raise ManifestError("objects directory not found", directory)
                for path in sorted(directory.rglob("*.json")):
                    found.extend(read_definitions(path))
        return found


def to_metric(definition: dict[str, Any]) -> Metric:
    """An fmm metric definition as a data model Metric (no data points)."""
    metric = Metric(
        type_name=type_name(definition),
        unit=str(definition.get("unit") or ""),
        content_type=str(definition.get("contentType") or ""),
        type=str(definition.get("type") or ""),
        is_monotonic=bool(definition.get("isMonotonic", False)),
    )
    temporality = definition.get("aggregationTemporality")
    if temporality:
        try:
            metric.aggregation_temporality = AggregationTemporality.parse(temporality)
        except ValueError:
            logger.warning(
                "Ignoring aggregationTemporality %r on metric %r", temporality, metric.type_name
            )
    return metric


def _attribute_key(namespace: str, entity_name: str, key: str) -> str:
    if namespace in key:
        return key
    return f"{namespace}.{entity_name}.{key}"


def to_entity(definition: dict[str, Any], metrics: list[Metric]) -> Entity:
    """An fmm entity definition as a data model Entity with its metrics and two logs."""
    namespace = _namespace(definition)
    name = str(definition.get("name", ""))
    entity = Entity(type_name=type_name(definition))

    attributes = (definition.get("attributeDefinitions") or {}).get("attributes") or {}
    for key in attributes:
        entity.set_attribute(_attribute_key(namespace, name, key), "")

    for metric_type in definition.get("metricTypes") or []:
        for metric in metrics:
            if metric.type_name == metric_type:
                entity.add_metric(copy.deepcopy(metric))

    for i in range(LOGS_PER_ENTITY):
        log = Log.new_log().set_attribute("level", "info")
        log.severity = "INFO"
        log.body = f"hello world-{i} for an entity of type {entity.type_name}"
        entity.add_log(log)
    return entity


def build_entities(
    entity_defs: list[dict[str, Any]], metric_defs: list[dict[str, Any]]
) -> FsocData:
    """Data model for the given fmm entity and metric definitions."""
    metrics = [to_metric(d) for d in metric_defs]
    return FsocData(melt=[to_entity(d, metrics) for d in entity_defs])


def build_model(manifest: SolutionManifest) -> FsocData:
    """Data model for every fmm entity in the solution."""
    return build_entities(
        manifest.definitions(TYPE_FMM_ENTITY), manifest.definitions(TYPE_FMM_METRIC)
    )
