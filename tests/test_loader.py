"""Tests for dataset validation and file loading."""

import json

import pytest

from radialmap.core.loader import DatasetError, dataset_from_dict, load_dataset, load_sample_dataset
from radialmap.core.models import Evidence, Source


def test_dict_converted_to_frozen_models(map_data):
    ds = dataset_from_dict(map_data)
    assert [b.key for b in ds.branches] == ["green", "water", "health"]
    assert [n.id for n in ds.nodes][:3] == ["trees", "roofs", "parks"]
    assert ds.center.title == "Urban Heat"
    assert ds.connections[0].a == "trees"
    with pytest.raises(AttributeError):
        ds.nodes[0].title = "changed"


def test_evidence_and_sources(scenario_data):
    scenario_data["nodes"][0]["evidence"] = [{"text": "Measured", "source": "Survey", "tier": 1}]
    scenario_data["nodes"][0]["sources"] = [{"label": "Report", "url": "https://example.org/r"}]
    node = dataset_from_dict(scenario_data).nodes[0]
    assert node.evidence == (Evidence(text="Measured", source="Survey", tier="1"),)
    assert node.sources == (Source(label="Report", url="https://example.org/r"),)


def test_center_node_alias(scenario_data):
    scenario_data["centerNode"] = scenario_data.pop("center")
    assert dataset_from_dict(scenario_data).center.title == "C"


def test_unknown_branch_rejected(scenario_data):
    scenario_data["nodes"][0]["branch"] = "nope"
    with pytest.raises(DatasetError, match="unknown branch"):
        dataset_from_dict(scenario_data)


def test_duplicate_node_id_rejected(scenario_data):
    scenario_data["nodes"][1]["id"] = "n1"
    with pytest.raises(DatasetError, match="duplicate"):
        dataset_from_dict(scenario_data)


@pytest.mark.parametrize("node_id", ["center", "b1", "branch-b1"])
def test_reserved_ids_rejected(scenario_data, node_id):
    scenario_data["nodes"][0]["id"] = node_id
    with pytest.raises(DatasetError, match="reserved"):
        dataset_from_dict(scenario_data)


@pytest.mark.parametrize("ring", [0, 3, "outer"])
def test_bad_ring_rejected(scenario_data, ring):
    scenario_data["nodes"][0]["ring"] = ring
    with pytest.raises(DatasetError):
        dataset_from_dict(scenario_data)


@pytest.mark.parametrize("angle", [-1, 360, 720])
def test_bad_angle_rejected(scenario_data, angle):
    scenario_data["branches"]["b1"]["angle"] = angle
    with pytest.raises(DatasetError):
        dataset_from_dict(scenario_data)


def test_dangling_connection_is_not_a_load_error(scenario_data):
    scenario_data["connections"].append(["n1", "ghost"])
    ds = dataset_from_dict(scenario_data)
    assert len(ds.connections) == 2


def test_load_json(tmp_path, map_data):
    path = tmp_path / "map.json"
    path.write_text(json.dumps(map_data), encoding="utf-8")
    ds = load_dataset(path)
    assert len(ds.nodes) == 8


def test_load_yaml(tmp_path):
    path = tmp_path / "map.yaml"
    path.write_text(
        """
center:
  title: Tiny
branches:
  b1: {angle: 0, color: "#f00", label: B1}
nodes:
  - {id: n1, branch: b1, ring: 1, title: N1}
connections: []
""",
        encoding="utf-8",
    )
    ds = load_dataset(str(path))
    assert ds.center.title == "Tiny"
    assert ds.nodes[0].ring == 1


def test_invalid_json(tmp_path):
    path = tmp_path / "broken.json"
    path.write_text("{not json", encoding="utf-8")
    with pytest.raises(DatasetError, match="invalid JSON"):
        load_dataset(path)


def test_top_level_must_be_mapping(tmp_path):
    path = tmp_path / "list.json"
    path.write_text("[]", encoding="utf-8")
    with pytest.raises(DatasetError, match="mapping"):
        load_dataset(path)


def test_missing_file(tmp_path):
    with pytest.raises(DatasetError, match="cannot read"):
        load_dataset(tmp_path / "absent.json")


def test_sample_dataset_loads():
    ds = load_sample_dataset()
    assert len(ds.branches) == 8
    assert len(ds.nodes) > 20
    assert {n.ring for n in ds.nodes} == {1, 2}
    assert ds.center.title
