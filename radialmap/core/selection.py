"""Selection state machine and highlight propagation.

Focus is one of: nothing, a topic node, a branch, or the center. The visual
state (a tier per entity, label, edge and spoke) is a pure function of the
focus and the graph index, recomputed from scratch on every transition.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, FrozenSet, List, Mapping, Optional, Set

from .graph import GraphIndex
from .models import CENTER_ID, anchor_id


class FocusKind(str, Enum):
    NONE = "none"
    NODE = "node"
    BRANCH = "branch"
    CENTER = "center"


class Tier(str, Enum):
    """Visual prominence of a node, label or connection."""

    FULL = "full"
    PARTIAL = "partial"
    DIMMED = "dimmed"
    HIGHLIGHT = "highlight"


class SpokeTier(str, Enum):
    DEFAULT = "default"
    DIMMED = "dimmed"
    ACTIVE = "active"  # every spoke, center focused
    ELEVATED = "elevated"  # branch of the focused node
    FOCUSED = "focused"  # the focused branch itself


@dataclass(frozen=True)
class FocusState:
    kind: FocusKind = FocusKind.NONE
    target: Optional[str] = None

    @classmethod
    def none(cls) -> "FocusState":
        return cls()

    @classmethod
    def node(cls, node_id: str) -> "FocusState":
        return cls(FocusKind.NODE, node_id)

    @classmethod
    def branch(cls, key: str) -> "FocusState":
        return cls(FocusKind.BRANCH, key)

    @classmethod
    def center(cls) -> "FocusState":
        return cls(FocusKind.CENTER, CENTER_ID)

    @property
    def is_idle(self) -> bool:
        return self.kind == FocusKind.NONE

    def describe(self) -> str:
        if self.kind == FocusKind.NONE:
            return "none"
        if self.kind == FocusKind.CENTER:
            return "center"
        return f"{self.kind.value}({self.target})"


@dataclass(frozen=True)
class VisualDiff:
    entities: FrozenSet[str] = frozenset()
    labels: FrozenSet[str] = frozenset()
    edges: FrozenSet[str] = frozenset()
    spokes: FrozenSet[str] = frozenset()

    def is_empty(self) -> bool:
        return not (self.entities or self.labels or self.edges or self.spokes)


def _changed(a: Mapping[str, Enum], b: Mapping[str, Enum]) -> FrozenSet[str]:
    return frozenset(k for k in set(a) | set(b) if a.get(k) != b.get(k))


@dataclass(frozen=True)
class VisualState:
    """Tiers keyed by entity id, label id, edge key and branch key."""

    focus: FocusState = field(default_factory=FocusState)
    entities: Mapping[str, Tier] = field(default_factory=dict)
    labels: Mapping[str, Tier] = field(default_factory=dict)
    edges: Mapping[str, Tier] = field(default_factory=dict)
    spokes: Mapping[str, SpokeTier] = field(default_factory=dict)
    # Branch whose color tints highlighted connections.
    accent_branch: Optional[str] = None

    @property
    def highlighted(self) -> FrozenSet[str]:
        """Entities left undimmed; every entity when idle or center-focused."""
        return frozenset(k for k, t in self.entities.items() if t in (Tier.HIGHLIGHT, Tier.FULL))

    @property
    def dimmed(self) -> FrozenSet[str]:
        return frozenset(k for k, t in self.entities.items() if t == Tier.DIMMED)

    def diff(self, other: "VisualState") -> VisualDiff:
        return VisualDiff(
            entities=_changed(self.entities, other.entities),
            labels=_changed(self.labels, other.labels),
            edges=_changed(self.edges, other.edges),
            spokes=_changed(self.spokes, other.spokes),
        )


def _label_ids(index: GraphIndex) -> List[str]:
    # The center draws its own title; only anchors and nodes carry labels.
    return [anchor_id(k) for k in index.branch_keys] + [n.id for n in index.nodes]


def _uniform(index: GraphIndex, focus: FocusState, spoke_tier: SpokeTier) -> VisualState:
    return VisualState(
        focus=focus,
        entities={eid: Tier.FULL for eid in index.entity_ids()},
        labels={lid: Tier.FULL for lid in _label_ids(index)},
        edges={e.key(): Tier.FULL for e in index.edges},
        spokes={k: spoke_tier for k in index.branch_keys},
    )


def _split(index: GraphIndex, highlight: Set[str]) -> tuple:
    entities = {eid: (Tier.HIGHLIGHT if eid in highlight else Tier.DIMMED) for eid in index.entity_ids()}
    labels = {lid: entities[lid] for lid in _label_ids(index)}
    return entities, labels


def compute_visual_state(focus: FocusState, index: GraphIndex) -> VisualState:
    """Derive every tier from ``focus``. Unknown targets yield the idle state."""
    if focus.kind == FocusKind.NODE and focus.target is not None:
        node = index.node(focus.target)
        if node is not None:
            highlight = {node.id, anchor_id(node.branch), *index.adjacent(node.id)}
            entities, labels = _split(index, highlight)
            edges = {e.key(): (Tier.HIGHLIGHT if e.touches(node.id) else Tier.DIMMED) for e in index.edges}
            spokes = {
                k: (SpokeTier.ELEVATED if k == node.branch else SpokeTier.DIMMED) for k in index.branch_keys
            }
            return VisualState(focus, entities, labels, edges, spokes, accent_branch=node.branch)

    if focus.kind == FocusKind.BRANCH and focus.target is not None and index.has_branch(focus.target):
        key = focus.target
        members = {n.id for n in index.members(key)} | {anchor_id(key), CENTER_ID}
        entities, labels = _split(index, members)
        branch_edges: Dict[str, Tier] = {}
        for e in index.edges:
            inside = (e.a in members) + (e.b in members)
            branch_edges[e.key()] = Tier.HIGHLIGHT if inside == 2 else Tier.PARTIAL if inside == 1 else Tier.DIMMED
        spokes = {k: (SpokeTier.FOCUSED if k == key else SpokeTier.DIMMED) for k in index.branch_keys}
        return VisualState(focus, entities, labels, branch_edges, spokes, accent_branch=key)

    if focus.kind == FocusKind.CENTER:
        return _uniform(index, focus, SpokeTier.ACTIVE)

    return _uniform(index, FocusState.none(), SpokeTier.DEFAULT)


Listener = Callable[[VisualState, VisualState], None]


class SelectionController:
    """Owns the current focus and its derived visual state.

    Transitions are total: selecting an unknown node or branch leaves the
    state untouched and returns False.
    """

    def __init__(self, index: GraphIndex):
        self.index = index
        self._focus = FocusState.none()
        self._visual = compute_visual_state(self._focus, index)
        self._listeners: List[Listener] = []

    @property
    def focus(self) -> FocusState:
        return self._focus

    @property
    def visual(self) -> VisualState:
        return self._visual

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call ``listener(previous, current)`` after each applied transition."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def select_node(self, node_id: str) -> bool:
        if not self.index.has_node(node_id):
            return False
        self._apply(FocusState.node(node_id))
        return True

    def select_branch(self, key: str) -> bool:
        if not self.index.has_branch(key):
            return False
        self._apply(FocusState.branch(key))
        return True

    def select_center(self) -> bool:
        self._apply(FocusState.center())
        return True

    def deselect(self) -> bool:
        self._apply(FocusState.none())
        return True

    def _apply(self, focus: FocusState) -> None:
        previous = self._visual
        self._focus = focus
        self._visual = compute_visual_state(focus, self.index)
        for listener in list(self._listeners):
            listener(previous, self._visual)
