#!/usr/bin/env python3
"""
radialmap MCP Server - Explorable Radial Knowledge Maps

Exposes the map session as fine-grained tools, one per action. Every tool is
a thin wrapper over `server.map_action`, so the session and its lock are
shared with the single-tool server.

Typical flow:
1. Load a map with radialmap_init
2. Find nodes with radialmap_search
3. Focus with radialmap_select / radialmap_select_branch
4. Frame with radialmap_pan / radialmap_zoom
5. Look with radialmap_render
"""

import json
from enum import Enum
from typing import Optional

from mcp.server.fastmcp import FastMCP
from pydantic import BaseModel, ConfigDict, Field

from .server import get_session, map_action

# Initialize MCP server
mcp = FastMCP("radialmap_mcp")

# Constants
CHARACTER_LIMIT = 25000


class ResponseFormat(str, Enum):
    """Output format for tool responses."""
    TEXT = "text"
    JSON = "json"


class RenderFormat(str, Enum):
    SVG = "svg"
    PNG = "png"
    BOTH = "both"


# ============================================================================
# Input Models
# ============================================================================

class InitInput(BaseModel):
    """Input for loading a map."""
    model_config = ConfigDict(str_strip_whitespace=True, extra='forbid')

    dataset_path: Optional[str] = Field(
        default=None,
        description="Path to a JSON or YAML map file. Omit to load the bundled sample map.",
    )


class StatusInput(BaseModel):
    model_config = ConfigDict(extra='forbid')

    response_format: ResponseFormat = Field(
        default=ResponseFormat.TEXT,
        description="'text' for a readable summary, 'json' for the session snapshot",
    )


class NodeInput(BaseModel):
    """Input naming a topic node."""
    model_config = ConfigDict(str_strip_whitespace=True, extra='forbid')

    node_id: str = Field(..., description="Node id, e.g. 'street-trees'", min_length=1, max_length=200)


class BranchInput(BaseModel):
    """Input naming a branch."""
    model_config = ConfigDict(str_strip_whitespace=True, extra='forbid')

    branch: str = Field(..., description="Branch key, e.g. 'health'", min_length=1, max_length=200)


class EntityInput(BaseModel):
    """Input naming any entity: a node id, a branch key, 'branch-<key>' or 'center'."""
    model_config = ConfigDict(str_strip_whitespace=True, extra='forbid')

    entity_id: str = Field(..., description="Entity id to act on", min_length=1, max_length=200)


class EmptyInput(BaseModel):
    model_config = ConfigDict(extra='forbid')


class PanInput(BaseModel):
    """Input for panning, in screen pixels."""
    model_config = ConfigDict(extra='forbid')

    dx: float = Field(default=0.0, description="Horizontal drag in screen pixels (positive moves content right)")
    dy: float = Field(default=0.0, description="Vertical drag in screen pixels (positive moves content down)")


class ZoomInput(BaseModel):
    """Input for anchored zoom."""
    model_config = ConfigDict(extra='forbid')

    factor: float = Field(..., description="Window scale factor: <1 zooms in, >1 zooms out", gt=0, le=10)
    x: Optional[float] = Field(default=None, description="Anchor screen x (defaults to screen center)")
    y: Optional[float] = Field(default=None, description="Anchor screen y (defaults to screen center)")


class ToggleConnectionsInput(BaseModel):
    model_config = ConfigDict(extra='forbid')

    on: Optional[bool] = Field(default=None, description="Force the layer on/off; omit to toggle")


class SearchInput(BaseModel):
    """Input for searching nodes."""
    model_config = ConfigDict(str_strip_whitespace=True, extra='forbid')

    query: str = Field(
        ...,
        description="Case-insensitive text matched against node titles, ids and descriptions",
        min_length=1,
        max_length=200,
    )


class KeyInput(BaseModel):
    model_config = ConfigDict(extra='forbid')

    key: str = Field(..., description="Key name: 'Escape' or '/'", min_length=1, max_length=20)


class RenderInput(BaseModel):
    """Input for rendering the current view."""
    model_config = ConfigDict(str_strip_whitespace=True, extra='forbid')

    name: str = Field(default="map", description="Output file stem", min_length=1, max_length=100)
    fmt: RenderFormat = Field(default=RenderFormat.SVG, description="svg, png or both")
    width: Optional[int] = Field(default=None, description="Output width in pixels", ge=100, le=8000)
    height: Optional[int] = Field(default=None, description="Output height in pixels", ge=100, le=8000)


# ============================================================================
# Helper Functions
# ============================================================================

def _truncate_response(response: str, message: str = "") -> str:
    """Truncate response if too long."""
    if len(response) <= CHARACTER_LIMIT:
        return response

    truncated = response[:CHARACTER_LIMIT - 200]
    truncated += f"\n\n---\n**TRUNCATED**: Response exceeded {CHARACTER_LIMIT} characters. {message}"
    return truncated


def _jump_target(entity_id: str) -> dict:
    session = get_session()
    if session is not None and session.index.has_branch(entity_id):
        return {"branch": entity_id}
    return {"node_id": entity_id}


_READ_ONLY = {
    "readOnlyHint": True,
    "destructiveHint": False,
    "idempotentHint": True,
    "openWorldHint": False,
}

_VIEW_STATE = {
    "readOnlyHint": False,
    "destructiveHint": False,
    "idempotentHint": True,
    "openWorldHint": False,
}


# ============================================================================
# MCP Tools
# ============================================================================

@mcp.tool(
    name="radialmap_init",
    annotations={"title": "Load Radial Map", **_VIEW_STATE},
)
async def radialmap_init(params: InitInput) -> str:
    """
    Load a map and start a fresh session.

    This MUST be called first. Any previous focus, view window and search
    state are discarded.

    Example:
        radialmap_init(dataset_path="/data/heat.yaml")
    """
    return map_action(action="init", dataset_path=params.dataset_path).text


@mcp.tool(
    name="radialmap_status",
    annotations={"title": "Session Status", **_READ_ONLY},
)
async def radialmap_status(params: StatusInput) -> str:
    """Report the current focus, view window and layer toggles."""
    if params.response_format == ResponseFormat.JSON:
        session = get_session()
        if session is None:
            return "Error: Map not initialized. Call radialmap_init first."
        return json.dumps(session.snapshot(), indent=2)
    return map_action(action="status").text


@mcp.tool(
    name="radialmap_describe",
    annotations={"title": "Describe Map Entity", **_READ_ONLY},
)
async def radialmap_describe(params: EntityInput) -> str:
    """Show a node's description, evidence, sources and connections, a branch's members, or the center overview."""
    return _truncate_response(map_action(action="describe", node_id=params.entity_id).text)


@mcp.tool(
    name="radialmap_select",
    annotations={"title": "Focus Node", **_VIEW_STATE},
)
async def radialmap_select(params: NodeInput) -> str:
    """
    Focus a topic node.

    The node, its direct neighbors and its branch anchor are highlighted;
    everything else is dimmed.
    """
    return map_action(action="select", node_id=params.node_id).text


@mcp.tool(
    name="radialmap_select_branch",
    annotations={"title": "Focus Branch", **_VIEW_STATE},
)
async def radialmap_select_branch(params: BranchInput) -> str:
    """Focus a whole branch: its members, its anchor and the center."""
    return map_action(action="select_branch", branch=params.branch).text


@mcp.tool(
    name="radialmap_select_center",
    annotations={"title": "Focus Center", **_VIEW_STATE},
)
async def radialmap_select_center(params: EmptyInput) -> str:
    """Focus the center node; every spoke becomes active."""
    return map_action(action="select_center").text


@mcp.tool(
    name="radialmap_deselect",
    annotations={"title": "Clear Focus", **_VIEW_STATE},
)
async def radialmap_deselect(params: EmptyInput) -> str:
    """Clear the focus."""
    return map_action(action="deselect").text


@mcp.tool(
    name="radialmap_pan",
    annotations={"title": "Pan View", **_VIEW_STATE, "idempotentHint": False},
)
async def radialmap_pan(params: PanInput) -> str:
    """Drag the view by (dx, dy) screen pixels."""
    return map_action(action="pan", dx=params.dx, dy=params.dy).text


@mcp.tool(
    name="radialmap_zoom",
    annotations={"title": "Zoom View", **_VIEW_STATE, "idempotentHint": False},
)
async def radialmap_zoom(params: ZoomInput) -> str:
    """
    Zoom the view window by `factor`, keeping the world point under (x, y) fixed.

    Zooms that would push the window width outside its bounds are rejected.
    """
    return map_action(action="zoom", factor=params.factor, x=params.x, y=params.y).text


@mcp.tool(
    name="radialmap_reset",
    annotations={"title": "Reset View", **_VIEW_STATE},
)
async def radialmap_reset(params: EmptyInput) -> str:
    """Clear the focus and restore the default view window."""
    return map_action(action="reset").text


@mcp.tool(
    name="radialmap_jump",
    annotations={"title": "Jump To Entity", **_VIEW_STATE},
)
async def radialmap_jump(params: EntityInput) -> str:
    """Center the view on a node, a branch anchor or the center without changing zoom."""
    return map_action(action="jump", **_jump_target(params.entity_id)).text


@mcp.tool(
    name="radialmap_toggle_connections",
    annotations={"title": "Toggle Connections Layer", **_VIEW_STATE},
)
async def radialmap_toggle_connections(params: ToggleConnectionsInput) -> str:
    """Show or hide the cross-connection layer."""
    return map_action(action="toggle_connections", on=params.on).text


@mcp.tool(
    name="radialmap_search",
    annotations={"title": "Search Nodes", **_VIEW_STATE},
)
async def radialmap_search(params: SearchInput) -> str:
    """
    Search nodes by title, id and description.

    Title matches rank first, then id matches, then description matches.
    Use radialmap_open_result to focus a hit.
    """
    return map_action(action="search", query=params.query).text


@mcp.tool(
    name="radialmap_open_result",
    annotations={"title": "Open Search Result", **_VIEW_STATE},
)
async def radialmap_open_result(params: NodeInput) -> str:
    """Focus a search hit, center the view on it and close the search box."""
    return map_action(action="open_result", node_id=params.node_id).text


@mcp.tool(
    name="radialmap_key",
    annotations={"title": "Press Key", **_VIEW_STATE, "idempotentHint": False},
)
async def radialmap_key(params: KeyInput) -> str:
    """Send a keyboard shortcut: 'Escape' clears focus and search, '/' toggles search."""
    return map_action(action="key", key=params.key).text


@mcp.tool(
    name="radialmap_render",
    annotations={"title": "Render Map", **_VIEW_STATE},
)
async def radialmap_render(params: RenderInput) -> str:
    """
    Render the current view to the artifact directory.

    Files land in $RADIALMAP_ARTIFACT_DIR (default ./.radialmap).
    """
    return map_action(
        action="render",
        name=params.name,
        fmt=params.fmt.value,
        width=params.width,
        height=params.height,
    ).text


# Entry point for running the server
def main():
    """Run the MCP server."""
    mcp.run()


if __name__ == "__main__":
    main()
