"""Scene builder - draws the radial map as SVG.

Layers, bottom to top: cross-connections, spokes, nodes, labels. Positions
come from the layout; every opacity and stroke comes from the tiers in the
current ``VisualState``. Nothing here changes where a node sits.
"""

from __future__ import annotations

import math
import re
from typing import Dict, List

from ..core.geometry import curve_control_point, polar_to_cartesian, quad_path_d
from ..core.graph import GraphIndex
from ..core.layout import Layout
from ..core.models import CENTER_ID, CenterRecord, anchor_id
from ..core.selection import SpokeTier, Tier, VisualState
from ..core.session import MapSession
from ..core.viewport import ViewWindow
from .svg import COLORS, Style, SVGCanvas

CENTER_RADIUS = 80
CATEGORY_RADIUS = 32
SUBTOPIC_RADIUS = 14

DIM_OPACITY = 0.08
LINE_DEFAULT_OPACITY = 0.12
LINE_HIGHLIGHT_OPACITY = 0.65
LINE_PARTIAL_OPACITY = 0.25
SPOKE_EXTENSION_OPACITY = 0.05

WRAP_AT = 22
CURVE_PULL = 0.55

ENTITY_OPACITY: Dict[Tier, float] = {
    Tier.FULL: 1.0,
    Tier.HIGHLIGHT: 1.0,
    Tier.PARTIAL: 0.5,
    Tier.DIMMED: DIM_OPACITY,
}

SPOKE_OPACITY: Dict[SpokeTier, float] = {
    SpokeTier.DEFAULT: LINE_DEFAULT_OPACITY,
    SpokeTier.DIMMED: 0.03,
    SpokeTier.ACTIVE: 0.35,
    SpokeTier.ELEVATED: 0.4,
    SpokeTier.FOCUSED: 0.5,
}

_WORD_SPLIT = re.compile(r"[\s—→]+")


def wrap_title(title: str, max_len: int = WRAP_AT) -> List[str]:
    """Split a long title into two lines at the word midpoint."""
    if len(title) <= max_len:
        return [title]
    words = [w for w in _WORD_SPLIT.split(title) if w]
    half = math.ceil(len(words) / 2)
    lines = [" ".join(words[:half]), " ".join(words[half:])]
    return [ln for ln in lines if ln]


def label_anchor(angle: float) -> str:
    """SVG text-anchor for a label placed outward along ``angle``."""
    if angle in (0, 90, 180, 270):
        return "middle"
    if 90 < angle < 270:
        return "end"
    return "start"


def edge_style(tier: Tier, accent: str) -> Style:
    if tier == Tier.HIGHLIGHT:
        return Style(stroke=accent, stroke_width=1.8, stroke_opacity=LINE_HIGHLIGHT_OPACITY)
    if tier == Tier.PARTIAL:
        return Style(stroke=accent, stroke_width=1.2, stroke_opacity=LINE_PARTIAL_OPACITY)
    if tier == Tier.DIMMED:
        return Style(stroke=COLORS["line"], stroke_width=0.5, stroke_opacity=LINE_DEFAULT_OPACITY * 0.3)
    return Style(stroke=COLORS["line"], stroke_width=1.0, stroke_opacity=LINE_DEFAULT_OPACITY)


class SceneBuilder:
    def __init__(self, index: GraphIndex, layout: Layout, center: CenterRecord | None = None):
        self.index = index
        self.layout = layout
        self.center = center or CenterRecord(title="")

    def render(
        self,
        visual: VisualState,
        window: ViewWindow,
        *,
        show_connections: bool = True,
        width: int = 1920,
        height: int = 1080,
    ) -> str:
        """Render the full map as an SVG document framed by ``window``."""
        canvas = SVGCanvas(width=width, height=height, viewbox=(window.x, window.y, window.width, window.height))
        self._add_defs(canvas)

        with canvas.group("layer-connections", visible=show_connections):
            self._draw_connections(canvas, visual)
        with canvas.group("layer-spokes"):
            self._draw_spokes(canvas, visual)
        with canvas.group("layer-nodes"):
            self._draw_branches(canvas, visual)
            self._draw_topics(canvas, visual)
            self._draw_center(canvas, visual)
        with canvas.group("layer-labels"):
            self._draw_labels(canvas, visual)

        return canvas.render()

    def _accent(self, visual: VisualState) -> str:
        branch = self.index.branch(visual.accent_branch) if visual.accent_branch else None
        return branch.color if branch else COLORS["line"]

    def _add_defs(self, canvas: SVGCanvas) -> None:
        canvas.add_radial_gradient("centerGrad", [("0%", COLORS["center_light"]), ("100%", COLORS["center_dark"])])
        canvas.add_glow_filter("glowBig", 18, extent="80%")
        for b in self.index.branches:
            canvas.add_drop_shadow_filter(f"glow-{b.key}", b.color)

    def _draw_connections(self, canvas: SVGCanvas, visual: VisualState) -> None:
        accent = self._accent(visual)
        for edge in self.index.edges:
            p1 = self.layout.position(edge.a)
            p2 = self.layout.position(edge.b)
            if p1 is None or p2 is None:
                continue
            d = quad_path_d(p1, curve_control_point(p1, p2, CURVE_PULL), p2)
            tier = visual.edges.get(edge.key(), Tier.FULL)
            with canvas.group(**{"from": edge.a, "to": edge.b, "tier": tier.value}):
                canvas.add_path(d, edge_style(tier, accent))

    def _draw_spokes(self, canvas: SVGCanvas, visual: VisualState) -> None:
        for spoke in self.layout.spokes:
            tier = visual.spokes.get(spoke.branch, SpokeTier.DEFAULT)
            branch = self.index.branch(spoke.branch)
            color = branch.color if (branch and tier == SpokeTier.FOCUSED) else COLORS["line"]
            with canvas.group(branch=spoke.branch, tier=tier.value):
                canvas.add_line(
                    spoke.start[0], spoke.start[1], spoke.anchor[0], spoke.anchor[1],
                    Style(stroke=color, stroke_width=2, stroke_opacity=SPOKE_OPACITY[tier]),
                )
                canvas.add_line(
                    spoke.anchor[0], spoke.anchor[1], spoke.outer[0], spoke.outer[1],
                    Style(stroke=COLORS["line"], stroke_width=1, stroke_opacity=SPOKE_EXTENSION_OPACITY),
                )

    def _draw_branches(self, canvas: SVGCanvas, visual: VisualState) -> None:
        for b in self.index.branches:
            aid = anchor_id(b.key)
            pos = self.layout.position(aid)
            if pos is None:
                continue
            x, y = pos
            with canvas.group(opacity=ENTITY_OPACITY[visual.entities.get(aid, Tier.FULL)], id=aid, branch=b.key):
                canvas.add_circle(
                    x, y, CATEGORY_RADIUS + 3,
                    Style(stroke=b.color, stroke_width=1.5, stroke_opacity=0.3),
                )
                canvas.add_circle(
                    x, y, CATEGORY_RADIUS,
                    Style(fill=b.color, fill_opacity=0.2, stroke=b.color, stroke_width=2,
                          filter=f"glow-{b.key}"),
                )
                canvas.add_text(
                    x, y + 1, str(len(self.index.members(b.key))),
                    Style(fill=b.color, font_size=14, font_weight="700", text_anchor="middle",
                          dominant_baseline="central"),
                )

    def _draw_topics(self, canvas: SVGCanvas, visual: VisualState) -> None:
        for node in self.index.nodes:
            pos = self.layout.position(node.id)
            branch = self.index.branch(node.branch)
            if pos is None or branch is None:
                continue
            x, y = pos
            r = SUBTOPIC_RADIUS if node.ring == 1 else SUBTOPIC_RADIUS - 2
            with canvas.group(opacity=ENTITY_OPACITY[visual.entities.get(node.id, Tier.FULL)], id=node.id,
                              branch=node.branch):
                canvas.add_circle(
                    x, y, r,
                    Style(fill=branch.color, fill_opacity=0.15, stroke=branch.color, stroke_width=1.5,
                          stroke_opacity=0.6),
                )

    def _draw_center(self, canvas: SVGCanvas, visual: VisualState) -> None:
        with canvas.group(opacity=ENTITY_OPACITY[visual.entities.get(CENTER_ID, Tier.FULL)], id=CENTER_ID):
            canvas.add_circle(
                0, 0, CENTER_RADIUS + 30,
                Style(fill=COLORS["center"], fill_opacity=0.08, filter="glowBig"),
            )
            canvas.add_circle(
                0, 0, CENTER_RADIUS + 4,
                Style(stroke=COLORS["center"], stroke_width=1.5, stroke_opacity=0.3),
            )
            canvas.add_circle(0, 0, CENTER_RADIUS, Style(fill="url(#centerGrad)", stroke=COLORS["center"],
                                                         stroke_width=2.5))
            canvas.add_text_lines(
                0, -12, wrap_title(self.center.title, 14),
                Style(fill=COLORS["text"], font_size=14, font_weight="700", text_anchor="middle",
                      dominant_baseline="central"),
                line_height=18,
            )
            stats = self.index.stats()
            canvas.add_text(
                0, 28, f"{stats['nodes']} nodes · {stats['branches']} branches",
                Style(fill=COLORS["faint"], font_size=9, text_anchor="middle", dominant_baseline="central"),
            )

    def _draw_labels(self, canvas: SVGCanvas, visual: VisualState) -> None:
        for b in self.index.branches:
            aid = anchor_id(b.key)
            pos = self.layout.position(aid)
            if pos is None:
                continue
            lx, ly = polar_to_cartesian(b.angle, math.hypot(*pos) + CATEGORY_RADIUS + 20)
            with canvas.group(opacity=ENTITY_OPACITY[visual.labels.get(aid, Tier.FULL)], label=aid):
                canvas.add_text(
                    lx, ly, b.label,
                    Style(fill=b.color, font_size=11, font_weight="600", text_anchor=label_anchor(b.angle),
                          dominant_baseline="central"),
                )

        for node in self.index.nodes:
            pos = self.layout.position(node.id)
            if pos is None:
                continue
            r = SUBTOPIC_RADIUS if node.ring == 1 else SUBTOPIC_RADIUS - 2
            with canvas.group(opacity=ENTITY_OPACITY[visual.labels.get(node.id, Tier.FULL)], label=node.id):
                canvas.add_text_lines(
                    pos[0], pos[1] + r + 14, wrap_title(node.title),
                    Style(fill=COLORS["muted"], font_size=9 if node.ring == 1 else 8, font_weight="500",
                          text_anchor="middle"),
                    line_height=11,
                )


def render_session(session: MapSession, *, width: int | None = None, height: int | None = None) -> str:
    """Render a session's current focus, window and layer toggles."""
    screen = session.viewport.screen
    builder = SceneBuilder(session.index, session.layout, session.dataset.center)
    return builder.render(
        session.visual,
        session.window,
        show_connections=session.show_connections,
        width=int(width or screen.width),
        height=int(height or screen.height),
    )
