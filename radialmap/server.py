"""radialmap action API.

Callers provide an `action` and the parameters that action needs. One
`MapSession` lives per process; every action runs under `_session_lock`.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, List, Optional

from .core.loader import DatasetError, load_dataset, load_sample_dataset
from .core.models import ANCHOR_PREFIX, CENTER_ID, anchor_id
from .core.paths import get_artifact_dir, update_manifest
from .core.selection import FocusKind
from .core.session import MapSession
from .views import render_session, save_png

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MapImage:
    name: str
    path: str
    data: bytes
    mime_type: str = "image/png"


@dataclass(frozen=True)
class MapResult:
    text: str
    images: List[MapImage] = field(default_factory=list)


_session: Optional[MapSession] = None
_dataset_origin: str = ""

_session_lock = threading.RLock()

ACTIONS = (
    "init",
    "status",
    "describe",
    "select",
    "select_branch",
    "select_center",
    "deselect",
    "pan",
    "zoom",
    "zoom_in",
    "zoom_out",
    "reset",
    "reset_view",
    "toggle_connections",
    "search",
    "open_result",
    "jump",
    "key",
    "render",
)


def get_session() -> Optional[MapSession]:
    with _session_lock:
        return _session


def clear_session() -> None:
    global _session, _dataset_origin
    with _session_lock:
        _session = None
        _dataset_origin = ""


def map_action(
    *,
    action: str,
    dataset_path: str | None = None,
    node_id: str | None = None,
    branch: str | None = None,
    key: str | None = None,
    dx: float | None = None,
    dy: float | None = None,
    factor: float | None = None,
    x: float | None = None,
    y: float | None = None,
    query: str | None = None,
    on: bool | None = None,
    name: str | None = None,
    fmt: str = "svg",
    width: int | None = None,
    height: int | None = None,
) -> MapResult:
    action = (action or "").strip().lower()
    if not action:
        return MapResult("Missing action")

    with _session_lock:
        if action == "init":
            return _action_init(dataset_path)

        session = _session
        if session is None:
            return MapResult(
                "Not initialized.\n"
                'Hint: Run map(action="init") first, optionally with dataset_path="<map.yaml>".'
            )

        if action == "status":
            return MapResult(_status_text(session))
        if action == "describe":
            target = node_id or branch
            if not target:
                return MapResult("describe requires node_id or branch")
            return MapResult(_describe(session, target))
        if action == "select":
            if not node_id:
                return MapResult("select requires node_id")
            if not session.select(node_id):
                return MapResult(f"Node not found: {node_id}")
            return MapResult(_focus_text(session))
        if action == "select_branch":
            if not branch:
                return MapResult("select_branch requires branch")
            if not session.select_branch(branch):
                return MapResult(f"Branch not found: {branch}")
            return MapResult(_focus_text(session))
        if action == "select_center":
            session.select_center()
            return MapResult(_focus_text(session))
        if action == "deselect":
            session.deselect()
            return MapResult(_focus_text(session))
        if action == "pan":
            if dx is None and dy is None:
                return MapResult("pan requires dx and/or dy")
            session.pan(dx or 0.0, dy or 0.0)
            return MapResult(_window_text(session))
        if action == "zoom":
            if factor is None:
                return MapResult("zoom requires factor")
            changed = session.zoom(factor, x, y)
            return MapResult(_window_text(session, rejected=not changed))
        if action == "zoom_in":
            return MapResult(_window_text(session, rejected=not session.zoom_in()))
        if action == "zoom_out":
            return MapResult(_window_text(session, rejected=not session.zoom_out()))
        if action == "reset":
            session.reset()
            return MapResult(f"{_focus_text(session)}\n{_window_text(session)}")
        if action == "reset_view":
            session.reset_view()
            return MapResult(_window_text(session))
        if action == "toggle_connections":
            shown = session.toggle_connections(on)
            return MapResult(f"Connections {'shown' if shown else 'hidden'}")
        if action == "search":
            if not (query or "").strip():
                return MapResult("search requires query")
            return MapResult(_search_text(session, session.search(query)))
        if action == "open_result":
            if not node_id:
                return MapResult("open_result requires node_id")
            if not session.open_result(node_id):
                return MapResult(f"Node not found: {node_id}")
            return MapResult(f"{_focus_text(session)}\n{_window_text(session)}")
        if action == "jump":
            target = node_id or (anchor_id(branch) if branch else None)
            if not target:
                return MapResult("jump requires node_id or branch")
            if not session.jump(target):
                return MapResult(f"Unknown entity: {target}")
            return MapResult(_window_text(session))
        if action == "key":
            if not key:
                return MapResult("key requires key")
            handled = session.key(key)
            if not handled:
                return MapResult(f"Key not bound: {key}")
            return MapResult(f"{_focus_text(session)}\nsearch_open={session.search_open}")
        if action == "render":
            return _action_render(session, name=name, fmt=fmt, width=width, height=height)

    return MapResult(f"Unknown action: {action}")


def _action_init(dataset_path: str | None) -> MapResult:
    global _session, _dataset_origin

    try:
        if dataset_path:
            dataset = load_dataset(dataset_path)
            origin = str(Path(dataset_path).absolute())
        else:
            dataset = load_sample_dataset()
            origin = "(bundled sample)"
    except DatasetError as e:
        return MapResult(f"Error loading dataset: {e}")

    _session = MapSession(dataset)
    _dataset_origin = origin

    stats = _session.index.stats()
    skipped = ""
    if stats["skipped_edges"]:
        pairs = ", ".join(f"{c.a}--{c.b}" for c in _session.index.skipped)
        skipped = f"\nSkipped {stats['skipped_edges']} dangling connections: {pairs}"
    return MapResult(
        f"Loaded {origin}: {stats['nodes']} nodes ({stats['ring1']} ring 1, {stats['ring2']} ring 2), "
        f"{stats['branches']} branches, {stats['edges']} connections.{skipped}\n"
        'Next: select(node_id="...") or search(query="...") and render to see the map.'
    )


def _action_render(
    session: MapSession,
    *,
    name: str | None,
    fmt: str,
    width: int | None,
    height: int | None,
) -> MapResult:
    fmt = (fmt or "svg").strip().lower()
    if fmt not in ("svg", "png", "both"):
        return MapResult(f"Unknown format: {fmt} (expected svg|png|both)")

    stem = (name or "map").strip() or "map"
    out_dir = get_artifact_dir()
    out_dir.mkdir(parents=True, exist_ok=True)

    svg = render_session(session, width=width, height=height)
    images: List[MapImage] = []
    written: List[str] = []

    if fmt in ("svg", "both"):
        svg_path = out_dir / f"{stem}.svg"
        svg_path.write_text(svg, encoding="utf-8")
        written.append(svg_path.name)
        images.append(MapImage(name=stem, path=str(svg_path), data=svg.encode("utf-8"), mime_type="image/svg+xml"))
    if fmt in ("png", "both"):
        png_path = out_dir / f"{stem}.png"
        png_bytes = save_png(svg, png_path)
        written.append(png_path.name)
        images.append(MapImage(name=stem, path=str(png_path), data=png_bytes))

    update_manifest(out_dir, written, view=session.snapshot())
    logger.info("Rendered %s to %s", ", ".join(written), out_dir)

    paths = "\n".join(f"- {img.path}" for img in images)
    return MapResult(text=f"{_focus_text(session)}\nWrote:\n{paths}", images=images)


def _focus_text(session: MapSession) -> str:
    visual = session.visual
    focus = visual.focus
    if focus.kind == FocusKind.NONE:
        return "Focus: none"
    return f"Focus: {focus.describe()} | highlighted={len(visual.highlighted)} dimmed={len(visual.dimmed)}"


def _window_text(session: MapSession, *, rejected: bool = False) -> str:
    w = session.window
    note = " (zoom rejected: width bound)" if rejected else ""
    return f"Window: x={w.x:g} y={w.y:g} width={w.width:g} height={w.height:g}{note}"


def _search_text(session: MapSession, hits: List[str]) -> str:
    if not hits:
        return f"No nodes matching: {session.search_query}"
    lines = [f"{len(hits)} matches for {session.search_query!r}:"]
    for node_id in hits:
        node = session.index.node(node_id)
        title = node.title if node else ""
        lines.append(f"- {node_id}: {title}")
    return "\n".join(lines)


def _describe(session: MapSession, target: str) -> str:
    index = session.index
    node = index.node(target)
    if node is not None:
        branch = index.branch(node.branch)
        lines = [
            f"{node.title} [{node.id}]",
            f"branch={node.branch} ({branch.label if branch else '?'}) ring={node.ring}",
        ]
        if node.description:
            lines.append(node.description)
        neighbors = index.adjacent(node.id)
        if neighbors:
            lines.append(f"connected: {', '.join(neighbors)}")
        for ev in node.evidence:
            tier = f" (tier {ev.tier})" if ev.tier else ""
            src = f" - {ev.source}" if ev.source else ""
            lines.append(f"evidence{tier}: {ev.text}{src}")
        for src in node.sources:
            lines.append(f"source: {src.label} <{src.url}>")
        return "\n".join(lines)

    if target == CENTER_ID:
        center = session.dataset.center
        lines = [f"{center.title} [{CENTER_ID}]"]
        if center.description:
            lines.append(center.description)
        lines.append(f"{len(index.branches)} branches:")
        lines.extend(f"- {b.label} [{b.key}]: {len(index.members(b.key))} nodes" for b in index.branches)
        for src in center.sources:
            lines.append(f"source: {src.label} <{src.url}>")
        return "\n".join(lines)

    key = target[len(ANCHOR_PREFIX):] if target.startswith(ANCHOR_PREFIX) else target
    b = index.branch(target) or index.branch(key)
    if b is not None:
        members = index.members(b.key)
        lines = [f"{b.label} [{b.key}] angle={b.angle:g} color={b.color}", f"{len(members)} nodes:"]
        lines.extend(f"- {n.id} (ring {n.ring}): {n.title}" for n in members)
        return "\n".join(lines)

    return f"Unknown entity: {target}"


def _status_text(session: MapSession) -> str:
    snap = session.snapshot()
    stats = session.index.stats()
    w = snap["window"]
    lines = [
        f"dataset={_dataset_origin}",
        f"nodes={stats['nodes']} branches={stats['branches']} edges={stats['edges']} "
        f"skipped={stats['skipped_edges']}",
        f"focus={snap['focus']} highlighted={len(snap['highlighted'])} dimmed={snap['dimmed']}",
        f"window={w['x']:g},{w['y']:g},{w['width']:g},{w['height']:g}",
        f"show_connections={snap['show_connections']} search_open={snap['search_open']}",
    ]
    return "\n".join(lines)


# --- MCP Server ---


def _create_mcp_server():
    """Create the single-tool MCP server wrapping `map_action`."""
    import base64

    from mcp.server import Server
    from mcp.types import ImageContent, TextContent, Tool

    server = Server("radialmap")

    @server.list_tools()
    async def list_tools() -> list[Tool]:
        return [
            Tool(
                name="map",
                description="""radialmap: explore a radial knowledge map.

WORKFLOW:
1. init → Load a dataset (bundled sample when dataset_path is omitted)
2. search query="..." → Find nodes by title, id or description
3. select node_id="..." / select_branch branch="..." / select_center → Focus
4. pan / zoom / jump → Frame the view
5. render fmt=png → Look at the result

ACTIONS: init|status|describe|select|select_branch|select_center|deselect|pan|zoom|
zoom_in|zoom_out|reset|reset_view|toggle_connections|search|open_result|jump|key|render""",
                inputSchema={
                    "type": "object",
                    "properties": {
                        "action": {"type": "string", "description": "One of: " + "|".join(ACTIONS)},
                        "dataset_path": {"type": "string", "description": "(init) JSON or YAML map file."},
                        "node_id": {"type": "string", "description": "(select/open_result/jump/describe) Node id."},
                        "branch": {"type": "string", "description": "(select_branch/jump/describe) Branch key."},
                        "key": {"type": "string", "description": "(key) Key name, e.g. Escape or /."},
                        "dx": {"type": "number", "description": "(pan) Screen pixels."},
                        "dy": {"type": "number", "description": "(pan) Screen pixels."},
                        "factor": {"type": "number", "description": "(zoom) <1 zooms in, >1 zooms out."},
                        "x": {"type": "number", "description": "(zoom) Anchor screen x."},
                        "y": {"type": "number", "description": "(zoom) Anchor screen y."},
                        "query": {"type": "string", "description": "(search) Free text."},
                        "on": {"type": "boolean", "description": "(toggle_connections) Force on/off."},
                        "name": {"type": "string", "description": "(render) Output file stem."},
                        "fmt": {"type": "string", "default": "png", "description": "(render) svg|png|both"},
                    },
                    "required": ["action"],
                },
            )
        ]

    @server.call_tool()
    async def call_tool(name: str, arguments: dict[str, Any]) -> list[Any]:
        if name != "map":
            return [TextContent(type="text", text=f"Unknown tool: {name}")]

        try:
            args = arguments or {}
            result = map_action(
                action=(args.get("action") or "").strip(),
                dataset_path=args.get("dataset_path"),
                node_id=args.get("node_id"),
                branch=args.get("branch"),
                key=args.get("key"),
                dx=args.get("dx"),
                dy=args.get("dy"),
                factor=args.get("factor"),
                x=args.get("x"),
                y=args.get("y"),
                query=args.get("query"),
                on=args.get("on"),
                name=args.get("name"),
                fmt=args.get("fmt") or "png",
            )

            contents: list[Any] = [TextContent(type="text", text=result.text)]
            for img in result.images or []:
                if img.mime_type != "image/png":
                    continue
                contents.append(
                    ImageContent(
                        type="image",
                        data=base64.b64encode(img.data).decode("ascii"),
                        mimeType=img.mime_type,
                    )
                )
            return contents
        except Exception as e:
            logger.exception("map tool failed")
            return [TextContent(type="text", text=f"Error: {e}")]

    return server


_mcp_server = None


def get_mcp_server():
    """Get or create the MCP server singleton."""
    global _mcp_server
    if _mcp_server is None:
        _mcp_server = _create_mcp_server()
    return _mcp_server


async def run_mcp_server() -> None:
    """Serve the single `map` tool over stdio."""
    from mcp.server.stdio import stdio_server

    server = get_mcp_server()
    async with stdio_server() as (read_stream, write_stream):
        await server.run(read_stream, write_stream, server.create_initialization_options())


if __name__ == "__main__":
    import asyncio

    asyncio.run(run_mcp_server())
