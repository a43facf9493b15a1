"""Tests for the map_action API."""

import json

import pytest

from radialmap import server
from radialmap.core.paths import read_manifest
from radialmap.server import map_action


@pytest.fixture(autouse=True)
def fresh_session(tmp_path, monkeypatch):
    monkeypatch.setenv("RADIALMAP_ARTIFACT_DIR", str(tmp_path / "artifacts"))
    server.clear_session()
    yield
    server.clear_session()


@pytest.fixture
def map_file(tmp_path, map_data):
    path = tmp_path / "map.json"
    path.write_text(json.dumps(map_data), encoding="utf-8")
    return str(path)


def test_missing_and_unknown_action():
    assert map_action(action="").text == "Missing action"
    map_action(action="init")
    assert map_action(action="explode").text == "Unknown action: explode"


def test_requires_init():
    result = map_action(action="select", node_id="trees")
    assert result.text.startswith("Not initialized")


def test_init_sample():
    text = map_action(action="init").text
    assert "(bundled sample)" in text
    assert "8 branches" in text
    assert server.get_session() is not None


def test_init_reports_skipped_connections(map_file):
    text = map_action(action="init", dataset_path=map_file).text
    assert "8 nodes (5 ring 1, 3 ring 2)" in text
    assert "Skipped 1 dangling connections: ghost--trees" in text


def test_init_bad_dataset(tmp_path):
    path = tmp_path / "bad.json"
    path.write_text('{"branches": {}, "nodes": [{"id": "x", "branch": "nope", "ring": 1, "title": "X"}]}')
    text = map_action(action="init", dataset_path=str(path)).text
    assert text.startswith("Error loading dataset")
    assert server.get_session() is None


def test_select_flow(map_file):
    map_action(action="init", dataset_path=map_file)
    assert map_action(action="select").text == "select requires node_id"
    assert map_action(action="select", node_id="ghost").text == "Node not found: ghost"

    text = map_action(action="select", node_id="trees").text
    assert text.startswith("Focus: node(trees)")
    assert "highlighted=4" in text

    assert map_action(action="select_branch", branch="water").text.startswith("Focus: branch(water)")
    assert map_action(action="select_center").text == "Focus: center | highlighted=12 dimmed=0"
    assert map_action(action="deselect").text == "Focus: none"


def test_view_actions(map_file):
    map_action(action="init", dataset_path=map_file)
    assert map_action(action="pan").text == "pan requires dx and/or dy"
    assert map_action(action="pan", dx=60).text == "Window: x=-1020 y=-540 width=1920 height=1080"
    assert map_action(action="reset_view").text == "Window: x=-960 y=-540 width=1920 height=1080"
    assert "width=1536" in map_action(action="zoom_in").text
    assert "width=1920" in map_action(action="zoom_out").text
    assert map_action(action="zoom").text == "zoom requires factor"
    assert "zoom rejected" in map_action(action="zoom", factor=0.1).text


def test_jump_to_branch_anchor(map_file):
    map_action(action="init", dataset_path=map_file)
    text = map_action(action="jump", branch="green").text
    # Anchor of a 0° branch sits at (180, 0).
    assert text == "Window: x=-780 y=-540 width=1920 height=1080"
    assert map_action(action="jump", node_id="ghost").text == "Unknown entity: ghost"


def test_search_and_open_result(map_file):
    map_action(action="init", dataset_path=map_file)
    text = map_action(action="search", query="cooling").text
    assert text.splitlines() == [
        "2 matches for 'cooling':",
        "- centers: Cooling Centers",
        "- misting: Misting Stations",
    ]
    assert map_action(action="search", query="volcano").text == "No nodes matching: volcano"
    assert map_action(action="open_result", node_id="centers").text.startswith("Focus: node(centers)")


def test_key_and_toggle(map_file):
    map_action(action="init", dataset_path=map_file)
    assert map_action(action="key", key="/").text.endswith("search_open=True")
    assert map_action(action="key", key="Escape").text == "Focus: none\nsearch_open=False"
    assert map_action(action="key", key="q").text == "Key not bound: q"
    assert map_action(action="toggle_connections").text == "Connections hidden"
    assert map_action(action="toggle_connections", on=True).text == "Connections shown"


def test_describe(map_file):
    map_action(action="init", dataset_path=map_file)
    text = map_action(action="describe", node_id="trees").text
    assert text.splitlines()[0] == "Street Trees [trees]"
    assert "connected: canals, roofs" in text
    branch_text = map_action(action="describe", branch="health").text
    assert "2 nodes:" in branch_text
    assert map_action(action="describe", node_id="branch-health").text == branch_text
    assert map_action(action="describe", node_id="nope").text == "Unknown entity: nope"
    assert map_action(action="describe", node_id="branch-nope").text == "Unknown entity: branch-nope"


def test_describe_center(map_file):
    map_action(action="init", dataset_path=map_file)
    assert map_action(action="describe", node_id="center").text.splitlines() == [
        "Urban Heat [center]",
        "Root topic",
        "3 branches:",
        "- Green [green]: 4 nodes",
        "- Water [water]: 2 nodes",
        "- Health [health]: 2 nodes",
    ]


def test_blank_search_is_rejected(map_file):
    map_action(action="init", dataset_path=map_file)
    map_action(action="search", query="cooling")
    assert map_action(action="search", query="  ").text == "search requires query"
    assert server.get_session().search_results == ["centers", "misting"]


def test_status(map_file):
    map_action(action="init", dataset_path=map_file)
    map_action(action="select", node_id="trees")
    text = map_action(action="status").text
    assert "focus=node(trees)" in text
    assert "skipped=1" in text


def test_render_svg_writes_artifact_and_manifest(map_file, tmp_path):
    map_action(action="init", dataset_path=map_file)
    map_action(action="select", node_id="trees")
    result = map_action(action="render", name="focus")

    artifacts = tmp_path / "artifacts"
    assert (artifacts / "focus.svg").exists()
    assert len(result.images) == 1
    assert result.images[0].mime_type == "image/svg+xml"
    assert result.images[0].data.startswith(b"<?xml")

    manifest = read_manifest(artifacts)
    entry = manifest["renders"]["focus.svg"]
    assert entry["format"] == "svg"
    assert entry["bytes"] == len(result.images[0].data)
    assert entry["view"]["focus"] == "node(trees)"


def test_render_unknown_format(map_file):
    map_action(action="init", dataset_path=map_file)
    assert map_action(action="render", fmt="gif").text.startswith("Unknown format")
