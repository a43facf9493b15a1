"""Shared fixtures: small maps built in code."""

import pytest

from radialmap.core.graph import GraphIndex
from radialmap.core.loader import dataset_from_dict


def _node(node_id, branch, ring, title=None, description=""):
    return {
        "id": node_id,
        "branch": branch,
        "ring": ring,
        "title": title or node_id.upper(),
        "description": description,
    }


@pytest.fixture
def scenario_data():
    """Center, branch b1 at 0° with ring-1 nodes n1 and n2 joined by one connection."""
    return {
        "center": {"title": "C"},
        "branches": {"b1": {"angle": 0, "color": "#ff0000", "label": "B1"}},
        "nodes": [_node("n1", "b1", 1), _node("n2", "b1", 1)],
        "connections": [["n1", "n2"]],
    }


@pytest.fixture
def scenario(scenario_data):
    return dataset_from_dict(scenario_data)


@pytest.fixture
def map_data():
    """Three branches, both rings, cross-branch links, an anchor link and a dangling pair."""
    return {
        "center": {"title": "Urban Heat", "description": "Root topic"},
        "branches": {
            "green": {"angle": 0, "color": "#2ecc71", "label": "Green"},
            "water": {"angle": 120, "color": "#3498db", "label": "Water"},
            "health": {"angle": 240, "color": "#e74c3c", "label": "Health"},
        },
        "nodes": [
            _node("trees", "green", 1, "Street Trees", "Canopy shade along streets"),
            _node("roofs", "green", 1, "Green Roofs", "Vegetated roofs"),
            _node("parks", "green", 1, "Pocket Parks", "Small parks"),
            _node("forest", "green", 2, "Urban Forest Master Plan", "Planting targets"),
            _node("canals", "water", 1, "Blue Corridors", "Cool air along canals"),
            _node("misting", "water", 2, "Misting Stations", "Evaporative cooling for trees and people"),
            _node("centers", "health", 1, "Cooling Centers", "Air conditioned public spaces"),
            _node("warnings", "health", 2, "Heat Warnings", "Alerts issued ahead of heatwaves"),
        ],
        "connections": [
            ["trees", "canals"],
            ["roofs", "trees"],
            ["centers", "warnings"],
            ["misting", "centers"],
            ["branch-green", "forest"],
            ["trees", "roofs"],
            ["ghost", "trees"],
        ],
    }


@pytest.fixture
def dataset(map_data):
    return dataset_from_dict(map_data)


@pytest.fixture
def index(dataset):
    return GraphIndex(dataset)
