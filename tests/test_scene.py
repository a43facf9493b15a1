"""Tests for the SVG scene builder."""

import re
import xml.etree.ElementTree as ET

import pytest

from radialmap.core.geometry import curve_control_point
from radialmap.core.session import MapSession
from radialmap.views import SVGCanvas, label_anchor, render_session, save_png, wrap_title

SVG = "{http://www.w3.org/2000/svg}"


def _cairo_available():
    try:
        import cairosvg  # noqa: F401
    except (ImportError, OSError):
        return False
    return True


requires_cairo = pytest.mark.skipif(not _cairo_available(), reason="cairosvg/cairo not available")


@pytest.fixture
def session(dataset):
    return MapSession(dataset)


def _parse(svg):
    return ET.fromstring(svg.encode("utf-8"))


def _groups(root, attr):
    return {g.get(attr): g for g in root.iter(f"{SVG}g") if g.get(attr) is not None}


def _layer(root, name):
    return next(g for g in root.iter(f"{SVG}g") if g.get("id") == name)


def test_document_frames_view_window(session):
    root = _parse(render_session(session))
    assert root.tag == f"{SVG}svg"
    assert root.get("viewBox") == "-960 -540 1920 1080"
    assert root.get("width") == "1920"

    session.zoom_in()
    root = _parse(render_session(session, width=800, height=450))
    assert root.get("width") == "800"
    assert root.get("viewBox").split()[2] == "1536"


def test_layers_in_draw_order(session):
    root = _parse(render_session(session))
    layers = [g.get("id") for g in root.findall(f"{SVG}g")]
    assert layers == ["layer-connections", "layer-spokes", "layer-nodes", "layer-labels"]


def test_every_entity_drawn_once(session):
    root = _parse(render_session(session))
    drawn = [g.get("data-id") for g in root.iter(f"{SVG}g") if g.get("data-id")]
    assert sorted(drawn) == sorted(session.index.entity_ids())


def test_connections_drawn_as_curves(session):
    root = _parse(render_session(session))
    edges = [g for g in _layer(root, "layer-connections").findall(f"{SVG}g")]
    assert len(edges) == len(session.index.edges)
    assert {g.get("data-tier") for g in edges} == {"full"}
    d = edges[0].find(f"{SVG}path").get("d")
    assert d.startswith("M ") and " Q " in d


def test_focus_dims_and_highlights(session):
    session.select("trees")
    root = _parse(render_session(session))
    entities = _groups(root, "data-id")
    assert entities["trees"].get("opacity") is None
    assert entities["canals"].get("opacity") is None
    assert entities["parks"].get("opacity") == "0.08"
    assert entities["center"].get("opacity") == "0.08"

    tiers = {
        (g.get("data-from"), g.get("data-to")): g.get("data-tier")
        for g in _layer(root, "layer-connections").findall(f"{SVG}g")
    }
    assert tiers[("trees", "canals")] == "highlight"
    assert tiers[("centers", "warnings")] == "dimmed"

    spokes = _groups(_layer(root, "layer-spokes"), "data-branch")
    assert spokes["green"].get("data-tier") == "elevated"
    assert spokes["water"].get("data-tier") == "dimmed"


def test_branch_focus_partial_edges(session):
    session.select_branch("green")
    root = _parse(render_session(session))
    tiers = {g.get("data-from"): g.get("data-tier") for g in _layer(root, "layer-connections").findall(f"{SVG}g")}
    assert tiers["trees"] == "partial"
    assert tiers["roofs"] == "highlight"


def test_hidden_connection_layer(session):
    session.toggle_connections(False)
    root = _parse(render_session(session))
    assert _layer(root, "layer-connections").get("display") == "none"
    assert _layer(root, "layer-nodes").get("display") is None


def test_labels_cover_anchors_and_nodes(session):
    root = _parse(render_session(session))
    labels = _groups(_layer(root, "layer-labels"), "data-label")
    assert set(labels) == set(session.index.entity_ids()) - {"center"}
    forest = labels["forest"].find(f"{SVG}text")
    assert [t.text for t in forest.findall(f"{SVG}tspan")] == ["Urban Forest", "Master Plan"]


def test_center_subtitle(session):
    svg = render_session(session)
    assert "8 nodes · 3 branches" in svg
    assert "Urban Heat" in svg


def test_branch_badge_counts_members(session):
    root = _parse(render_session(session))
    badge = _groups(root, "data-id")["branch-green"].find(f"{SVG}text")
    assert badge.text == "4"


def test_defs_are_all_referenced(session):
    svg = render_session(session)
    root = _parse(svg)
    defined = {el.get("id") for tag in ("filter", "radialGradient") for el in root.iter(f"{SVG}{tag}")}
    assert defined == set(re.findall(r"url\(#([^)]+)\)", svg))

    circles = _groups(root, "data-id")["branch-green"].findall(f"{SVG}circle")
    assert "url(#glow-green)" in [c.get("filter") for c in circles]


def test_text_is_escaped(scenario_data):
    from radialmap.core.loader import dataset_from_dict

    scenario_data["nodes"][0]["title"] = "Salt & <Pepper>"
    svg = render_session(MapSession(dataset_from_dict(scenario_data)))
    assert "Salt &amp; &lt;Pepper&gt;" in svg
    _parse(svg)


def test_wrap_title():
    assert wrap_title("Green Roofs") == ["Green Roofs"]
    assert wrap_title("Urban Forest Master Plan") == ["Urban Forest", "Master Plan"]
    assert wrap_title("Street-Level Sensor Network") == ["Street-Level Sensor", "Network"]
    assert len(wrap_title("x" * 30)) == 1


@pytest.mark.parametrize(
    "angle,anchor",
    [(0, "middle"), (90, "middle"), (180, "middle"), (270, "middle"), (45, "start"), (135, "end"), (225, "end"),
     (315, "start")],
)
def test_label_anchor(angle, anchor):
    assert label_anchor(angle) == anchor


def test_curve_control_point_pulls_toward_center():
    assert curve_control_point((100.0, 0.0), (0.0, 100.0)) == pytest.approx((27.5, 27.5))
    assert curve_control_point((0.0, 0.0), (10.0, 10.0), pull=1.0) == (5.0, 5.0)


def test_canvas_group_data_attributes():
    canvas = SVGCanvas(width=10, height=10)
    with canvas.group("g1", opacity=0.5, node_id="a&b"):
        canvas.add_circle(1, 1, 1)
    svg = canvas.render()
    assert 'id="g1"' in svg
    assert 'opacity="0.5"' in svg
    assert 'data-node-id="a&amp;b"' in svg


def test_canvas_defs_escape_ids():
    canvas = SVGCanvas(width=10, height=10)
    canvas.add_radial_gradient('g"1', [("0%", "#fff")])
    canvas.add_glow_filter("f<1", 2)
    canvas.add_drop_shadow_filter("glow-a&b", "#000")
    root = _parse(canvas.render())
    ids = {el.get("id") for el in root.iter() if el.get("id")}
    assert ids == {'g"1', "f<1", "glow-a&b"}


@requires_cairo
def test_save_png(session, tmp_path):
    out = tmp_path / "nested" / "map.png"
    data = save_png(render_session(session, width=640, height=360), out)
    assert data[:8] == b"\x89PNG\r\n\x1a\n"
    assert out.read_bytes() == data
