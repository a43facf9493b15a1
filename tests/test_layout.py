"""Tests for radial placement."""

import math

import pytest

from radialmap.core.graph import GraphIndex
from radialmap.core.layout import LayoutConfig, LayoutEngine, RingSpec, ring_angles
from radialmap.core.loader import dataset_from_dict
from radialmap.core.models import CENTER_ID


def _layout(index):
    return LayoutEngine().compute(index)


def test_layout_is_deterministic(dataset):
    first = LayoutEngine().compute(GraphIndex(dataset))
    second = LayoutEngine().compute(GraphIndex(dataset))
    assert first.positions == second.positions
    assert repr(sorted(first.positions.items())) == repr(sorted(second.positions.items()))


def test_layout_covers_every_entity_once(index):
    layout = _layout(index)
    expected = {CENTER_ID, "branch-green", "branch-water", "branch-health"} | {n.id for n in index.nodes}
    assert set(layout.positions) == expected
    assert len(layout.positions) == len(index.entity_ids())


def test_center_at_origin_and_anchors_on_circle(index):
    layout = _layout(index)
    assert layout.position(CENTER_ID) == (0.0, 0.0)
    for b in index.branches:
        x, y = layout.position(f"branch-{b.key}")
        assert math.hypot(x, y) == pytest.approx(180.0)
        assert math.degrees(math.atan2(y, x)) % 360 == pytest.approx(b.angle % 360, abs=1e-9)


def test_ring_one_mean_angle_equals_base(index):
    layout = _layout(index)
    for b in index.branches:
        ring1 = [n.id for n in index.members(b.key) if n.ring == 1]
        if not ring1:
            continue
        mean = sum(layout.angles[nid] for nid in ring1) / len(ring1)
        assert mean == pytest.approx(b.angle)


def test_ring_distances(index):
    layout = _layout(index)
    for n in index.nodes:
        x, y = layout.position(n.id)
        assert math.hypot(x, y) == pytest.approx(280.0 if n.ring == 1 else 440.0)


def test_spread_is_capped_then_budgeted():
    ring1 = LayoutConfig().ring1
    assert ring1.spread(1) == 18.0
    assert ring1.spread(2) == 18.0
    assert ring1.spread(4) == pytest.approx(10.0)
    assert ring1.spread(0) == 18.0


def test_ring_angles_fan_out_symmetrically():
    spec = RingSpec(distance=280.0, spread_cap=18.0, angular_budget=40.0)
    assert ring_angles(0.0, 2, spec) == [-9.0, 9.0]
    assert ring_angles(90.0, 1, spec) == [90.0]
    assert ring_angles(45.0, 0, spec) == []


def test_scenario_positions(scenario):
    layout = _layout(GraphIndex(scenario))
    assert layout.angles == {"n1": -9.0, "n2": 9.0}
    x1, y1 = layout.position("n1")
    assert x1 == pytest.approx(280 * math.cos(math.radians(9)))
    # y grows downwards: negative angles sit above the x axis.
    assert y1 == pytest.approx(-280 * math.sin(math.radians(9)))
    assert layout.position("branch-b1") == pytest.approx((180.0, 0.0))


def test_node_order_follows_dataset_order(scenario_data):
    scenario_data["nodes"].reverse()
    layout = _layout(GraphIndex(dataset_from_dict(scenario_data)))
    assert layout.angles == {"n2": -9.0, "n1": 9.0}


def test_empty_branch_still_places_anchor():
    data = {"branches": {"solo": {"angle": 90, "color": "#000", "label": "Solo"}}}
    layout = _layout(GraphIndex(dataset_from_dict(data)))
    assert set(layout.positions) == {CENTER_ID, "branch-solo"}
    assert layout.position("branch-solo") == pytest.approx((0.0, 180.0))


def test_spokes_reach_past_outer_ring(index):
    layout = _layout(index)
    assert [s.branch for s in layout.spokes] == ["green", "water", "health"]
    green = layout.spokes[0]
    assert green.start == (0.0, 0.0)
    assert green.anchor == layout.position("branch-green")
    assert green.outer == pytest.approx((500.0, 0.0))


def test_bounds_enclose_positions(index):
    layout = _layout(index)
    rect = layout.bounds().padded(1e-6)
    assert all(rect.contains(p) for p in layout.positions.values())
