"""
Adjacency index over a map dataset.

Built once from the dataset and read-only afterwards. Connections are
undirected, so each resolved pair is recorded on both endpoints. The center is
adjacent to every branch key by definition (spokes), not through connection
entries.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional, Tuple

from .models import CENTER_ID, Branch, Connection, Dataset, Node, anchor_id

logger = logging.getLogger(__name__)


class GraphIndex:
    """
    O(1) lookups for nodes, branches and neighbours.

    Connection endpoints may be node ids, branch anchor ids (``branch-<key>``)
    or the center id. Pairs naming anything else are skipped and kept in
    ``skipped`` for diagnostics.
    """

    def __init__(self, dataset: Dataset):
        self._nodes: Dict[str, Node] = {}
        self._branches: Dict[str, Branch] = {}
        self._members: Dict[str, Tuple[Node, ...]] = {}
        self._adjacency: Dict[str, List[str]] = {}
        self._edges: List[Connection] = []
        self._skipped: List[Connection] = []
        self._build(dataset)

    def _build(self, dataset: Dataset) -> None:
        self._branches = {b.key: b for b in dataset.branches}
        self._nodes = {n.id: n for n in dataset.nodes}

        members: Dict[str, List[Node]] = {k: [] for k in self._branches}
        for n in dataset.nodes:
            # Unknown branches are rejected by the loader; the index does not re-check.
            members.setdefault(n.branch, []).append(n)
        self._members = {k: tuple(v) for k, v in members.items()}

        self._adjacency = {n.id: [] for n in dataset.nodes}
        self._adjacency[CENTER_ID] = list(self._branches)
        for key in self._branches:
            self._adjacency[key] = [CENTER_ID]

        known = set(self._nodes) | {CENTER_ID} | {anchor_id(k) for k in self._branches}
        seen: set = set()
        for conn in dataset.connections:
            if conn.a not in known or conn.b not in known:
                self._skipped.append(conn)
                continue
            key = conn.key()
            if key in seen:
                continue
            seen.add(key)
            self._edges.append(conn)
            self._adjacency.setdefault(conn.a, []).append(conn.b)
            if conn.b != conn.a:
                self._adjacency.setdefault(conn.b, []).append(conn.a)

        if self._skipped:
            logger.warning(
                "Skipped %d connection(s) with unknown endpoints: %s",
                len(self._skipped),
                ", ".join(f"{c.a}<->{c.b}" for c in self._skipped),
            )

    def adjacent(self, entity_id: str) -> List[str]:
        """Ids directly adjacent to ``entity_id``; empty for unknown ids."""
        return list(self._adjacency.get(entity_id, ()))

    def node(self, node_id: str) -> Optional[Node]:
        return self._nodes.get(node_id)

    def branch(self, key: str) -> Optional[Branch]:
        return self._branches.get(key)

    def has_node(self, node_id: str) -> bool:
        return node_id in self._nodes

    def has_branch(self, key: str) -> bool:
        return key in self._branches

    def members(self, key: str) -> Tuple[Node, ...]:
        """Nodes of a branch, in dataset order."""
        return self._members.get(key, ())

    @property
    def nodes(self) -> Tuple[Node, ...]:
        return tuple(self._nodes.values())

    @property
    def branches(self) -> Tuple[Branch, ...]:
        return tuple(self._branches.values())

    @property
    def branch_keys(self) -> Tuple[str, ...]:
        return tuple(self._branches)

    @property
    def edges(self) -> Tuple[Connection, ...]:
        return tuple(self._edges)

    @property
    def skipped(self) -> Tuple[Connection, ...]:
        return tuple(self._skipped)

    def entity_ids(self) -> List[str]:
        """Every drawable entity: center, branch anchors, nodes."""
        return [CENTER_ID] + [anchor_id(k) for k in self._branches] + list(self._nodes)

    def stats(self) -> Dict[str, int]:
        """Return index statistics."""
        return {
            "nodes": len(self._nodes),
            "branches": len(self._branches),
            "ring1": sum(1 for n in self._nodes.values() if n.ring == 1),
            "ring2": sum(1 for n in self._nodes.values() if n.ring == 2),
            "edges": len(self._edges),
            "skipped_edges": len(self._skipped),
        }
