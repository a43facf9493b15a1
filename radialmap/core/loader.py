"""Dataset loading.

A map is described by a JSON or YAML document:

    center:      {title, description, sources?}
    branches:    {key: {angle, color, label}}
    nodes:       [{id, branch, ring, title, description, evidence?, sources?}]
    connections: [[idA, idB], ...]

The document is validated once at the load boundary; the core only ever sees
the frozen dataclasses from ``models``.
"""

from __future__ import annotations

import json
import logging
from importlib import resources
from pathlib import Path
from typing import Any, Dict, List, Literal, Tuple, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError, model_validator

from .models import (
    ANCHOR_PREFIX,
    CENTER_ID,
    Branch,
    CenterRecord,
    Connection,
    Dataset,
    Evidence,
    Node,
    Source,
)

logger = logging.getLogger(__name__)

SAMPLE_DATASET = "sample_map.yaml"


class DatasetError(ValueError):
    """Raised when a dataset document violates the map's integrity rules."""


class SourceModel(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    label: str
    url: str


class EvidenceModel(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    text: str
    source: str = ""
    tier: Union[str, int] = ""


class NodeModel(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    id: str = Field(..., min_length=1)
    branch: str = Field(..., min_length=1)
    ring: Literal[1, 2]
    title: str
    description: str = ""
    evidence: List[EvidenceModel] = Field(default_factory=list)
    sources: List[SourceModel] = Field(default_factory=list)


class BranchModel(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    angle: float = Field(..., ge=0, lt=360)
    color: str
    label: str


class CenterModel(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    title: str
    description: str = ""
    sources: List[SourceModel] = Field(default_factory=list)


class DatasetModel(BaseModel):
    nodes: List[NodeModel] = Field(default_factory=list)
    branches: Dict[str, BranchModel]
    connections: List[Tuple[str, str]] = Field(default_factory=list)
    center: CenterModel = Field(
        default_factory=lambda: CenterModel(title=""),
        validation_alias=AliasChoices("center", "centerNode"),
    )

    @model_validator(mode="after")
    def _check_integrity(self) -> "DatasetModel":
        reserved = {CENTER_ID} | set(self.branches) | {f"{ANCHOR_PREFIX}{k}" for k in self.branches}
        seen: set[str] = set()
        for n in self.nodes:
            if n.branch not in self.branches:
                raise ValueError(f"node {n.id!r} references unknown branch {n.branch!r}")
            if n.id in reserved:
                raise ValueError(f"node id {n.id!r} is reserved")
            if n.id in seen:
                raise ValueError(f"duplicate node id {n.id!r}")
            seen.add(n.id)
        return self


def _sources(items: List[SourceModel]) -> Tuple[Source, ...]:
    return tuple(Source(label=s.label, url=s.url) for s in items)


def dataset_from_dict(data: Dict[str, Any]) -> Dataset:
    """Validate a raw mapping and convert it into a ``Dataset``."""
    try:
        doc = DatasetModel.model_validate(data or {})
    except ValidationError as e:
        raise DatasetError(str(e)) from e

    nodes = tuple(
        Node(
            id=n.id,
            branch=n.branch,
            ring=n.ring,
            title=n.title,
            description=n.description,
            evidence=tuple(Evidence(text=e.text, source=e.source, tier=str(e.tier)) for e in n.evidence),
            sources=_sources(n.sources),
        )
        for n in doc.nodes
    )
    branches = tuple(
        Branch(key=key, angle=b.angle, color=b.color, label=b.label) for key, b in doc.branches.items()
    )
    connections = tuple(Connection(a, b) for a, b in doc.connections)
    center = CenterRecord(
        title=doc.center.title,
        description=doc.center.description,
        sources=_sources(doc.center.sources),
    )
    return Dataset(nodes=nodes, branches=branches, connections=connections, center=center)


def load_dataset(path: str | Path) -> Dataset:
    """Load a dataset from a ``.json``, ``.yaml`` or ``.yml`` file."""
    p = Path(path)
    try:
        text = p.read_text(encoding="utf-8")
    except OSError as e:
        raise DatasetError(f"cannot read dataset {p}: {e}") from e
    return _parse(text, suffix=p.suffix.lower(), origin=str(p))


def load_sample_dataset() -> Dataset:
    """Load the example map bundled with the package."""
    text = resources.files("radialmap.data").joinpath(SAMPLE_DATASET).read_text(encoding="utf-8")
    return _parse(text, suffix=".yaml", origin=SAMPLE_DATASET)


def _parse(text: str, *, suffix: str, origin: str) -> Dataset:
    if suffix in (".yaml", ".yml"):
        import yaml

        try:
            data = yaml.safe_load(text) or {}
        except yaml.YAMLError as e:
            raise DatasetError(f"invalid YAML in {origin}: {e}") from e
    else:
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise DatasetError(f"invalid JSON in {origin}: {e}") from e

    if not isinstance(data, dict):
        raise DatasetError(f"{origin}: top-level document must be a mapping")

    dataset = dataset_from_dict(data)
    logger.info(
        "Loaded %s: %d nodes, %d branches, %d connections",
        origin,
        len(dataset.nodes),
        len(dataset.branches),
        len(dataset.connections),
    )
    return dataset
