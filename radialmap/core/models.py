from __future__ import annotations

from dataclasses import dataclass, field
from typing import Tuple

CENTER_ID = "center"
ANCHOR_PREFIX = "branch-"

Point = Tuple[float, float]


def anchor_id(branch_key: str) -> str:
    """Entity id of the anchor drawn for a branch (e.g. ``branch-science``)."""
    return f"{ANCHOR_PREFIX}{branch_key}"


@dataclass(frozen=True)
class Evidence:
    text: str
    source: str
    tier: str = ""


@dataclass(frozen=True)
class Source:
    label: str
    url: str


@dataclass(frozen=True)
class Node:
    id: str
    branch: str
    ring: int
    title: str
    description: str = ""
    evidence: Tuple[Evidence, ...] = ()
    sources: Tuple[Source, ...] = ()


@dataclass(frozen=True)
class Branch:
    key: str
    angle: float
    color: str
    label: str


@dataclass(frozen=True)
class Connection:
    """An unordered pair of entity ids."""

    a: str
    b: str

    def key(self) -> str:
        """Order-independent key for deduplication."""
        lo, hi = sorted((self.a, self.b))
        return f"{lo}--{hi}"

    def touches(self, entity_id: str) -> bool:
        return self.a == entity_id or self.b == entity_id


@dataclass(frozen=True)
class CenterRecord:
    title: str
    description: str = ""
    sources: Tuple[Source, ...] = ()


@dataclass(frozen=True)
class Dataset:
    """The immutable content of a map, loaded once per process."""

    nodes: Tuple[Node, ...]
    branches: Tuple[Branch, ...]
    connections: Tuple[Connection, ...] = ()
    center: CenterRecord = field(default_factory=lambda: CenterRecord(title=""))
