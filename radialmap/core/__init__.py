"""Core domain types and algorithms."""

from .graph import GraphIndex
from .layout import Layout, LayoutConfig, LayoutEngine, RingSpec, Spoke, ring_angles
from .loader import DatasetError, dataset_from_dict, load_dataset, load_sample_dataset
from .models import (
    CENTER_ID,
    Branch,
    CenterRecord,
    Connection,
    Dataset,
    Evidence,
    Node,
    Source,
    anchor_id,
)
from .search import search_nodes
from .selection import (
    FocusKind,
    FocusState,
    SelectionController,
    SpokeTier,
    Tier,
    VisualDiff,
    VisualState,
    compute_visual_state,
)
from .session import COMMANDS, MapSession, SessionEvent, UnknownCommandError
from .viewport import ScreenRect, ViewportConfig, ViewportController, ViewWindow

__all__ = [
    # models
    "CENTER_ID",
    "Branch",
    "CenterRecord",
    "Connection",
    "Dataset",
    "Evidence",
    "Node",
    "Source",
    "anchor_id",
    # loader
    "DatasetError",
    "dataset_from_dict",
    "load_dataset",
    "load_sample_dataset",
    # graph + layout
    "GraphIndex",
    "Layout",
    "LayoutConfig",
    "LayoutEngine",
    "RingSpec",
    "Spoke",
    "ring_angles",
    # selection
    "FocusKind",
    "FocusState",
    "SelectionController",
    "SpokeTier",
    "Tier",
    "VisualDiff",
    "VisualState",
    "compute_visual_state",
    # viewport
    "ScreenRect",
    "ViewportConfig",
    "ViewportController",
    "ViewWindow",
    # session
    "COMMANDS",
    "MapSession",
    "SessionEvent",
    "UnknownCommandError",
    "search_nodes",
]
