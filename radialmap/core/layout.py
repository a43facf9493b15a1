"""Radial layout.

The center sits at the origin, branch anchors on a fixed circle at their
configured angle, and topic nodes on one of two outer rings, fanned out
symmetrically around their branch angle. Placement is a pure function of the
dataset: no randomness, and node order within a branch is the dataset order.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Tuple

from .geometry import Point, Rect, bounding_rect, polar_to_cartesian
from .graph import GraphIndex
from .models import CENTER_ID, anchor_id


@dataclass(frozen=True)
class RingSpec:
    distance: float
    spread_cap: float  # degrees between neighbours, upper bound
    angular_budget: float  # degrees shared by all nodes of the ring

    def spread(self, count: int) -> float:
        return min(self.spread_cap, self.angular_budget / max(count, 1))


@dataclass(frozen=True)
class LayoutConfig:
    branch_radius: float = 180.0
    ring1: RingSpec = RingSpec(distance=280.0, spread_cap=18.0, angular_budget=40.0)
    ring2: RingSpec = RingSpec(distance=440.0, spread_cap=14.0, angular_budget=36.0)
    # Spoke extensions reach this far past the outer ring.
    spoke_overshoot: float = 60.0

    def ring(self, ring: int) -> RingSpec:
        return self.ring1 if ring == 1 else self.ring2


def ring_angles(base_angle: float, count: int, spec: RingSpec) -> List[float]:
    """Angles (degrees) for ``count`` nodes centred on ``base_angle``."""
    spread = spec.spread(count)
    start = base_angle - ((count - 1) * spread) / 2
    return [start + i * spread for i in range(count)]


@dataclass(frozen=True)
class Spoke:
    branch: str
    start: Point
    anchor: Point
    outer: Point


@dataclass(frozen=True)
class Layout:
    positions: Mapping[str, Point] = field(default_factory=dict)
    angles: Mapping[str, float] = field(default_factory=dict)
    spokes: Tuple[Spoke, ...] = ()

    def position(self, entity_id: str) -> Optional[Point]:
        return self.positions.get(entity_id)

    def bounds(self) -> Rect:
        return bounding_rect(self.positions.values())


class LayoutEngine:
    def __init__(self, config: LayoutConfig | None = None):
        self.config = config or LayoutConfig()

    def compute(self, index: GraphIndex) -> Layout:
        cfg = self.config
        positions: Dict[str, Point] = {CENTER_ID: (0.0, 0.0)}
        angles: Dict[str, float] = {}
        spokes: List[Spoke] = []

        for branch in index.branches:
            members = index.members(branch.key)
            for ring in (1, 2):
                ring_nodes = [n for n in members if n.ring == ring]
                spec = cfg.ring(ring)
                for node, angle in zip(ring_nodes, ring_angles(branch.angle, len(ring_nodes), spec)):
                    positions[node.id] = polar_to_cartesian(angle, spec.distance)
                    angles[node.id] = angle

            anchor = polar_to_cartesian(branch.angle, cfg.branch_radius)
            positions[anchor_id(branch.key)] = anchor
            spokes.append(
                Spoke(
                    branch=branch.key,
                    start=positions[CENTER_ID],
                    anchor=anchor,
                    outer=polar_to_cartesian(branch.angle, cfg.ring2.distance + cfg.spoke_overshoot),
                )
            )

        return Layout(positions=positions, angles=angles, spokes=tuple(spokes))
