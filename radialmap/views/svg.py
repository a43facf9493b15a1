"""
Radial map SVG engine.

Small string-building SVG primitives plus PNG rasterization via cairosvg.
Only attributes that differ from SVG defaults are written, which keeps maps
with a few hundred elements compact.
"""

from __future__ import annotations

import html
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Sequence, Tuple

# Color Palette (dark map)
COLORS = {
    "bg": "#070b14",
    "text": "#ffffff",
    "muted": "rgba(255,255,255,0.55)",
    "faint": "rgba(255,255,255,0.5)",
    # Lines
    "line": "#d3d3d3",
    # Center node
    "center": "#0065F2",
    "center_light": "#3399ff",
    "center_dark": "#0050cc",
}

FONT_FAMILY = "'Helvetica Neue', Arial, sans-serif"


def num(value: float) -> str:
    """Compact number for attribute values: 3 decimals, no trailing zeros."""
    text = f"{float(value):.3f}".rstrip("0").rstrip(".")
    return "0" if text in ("", "-0") else text


@dataclass
class Style:
    fill: str = "none"
    stroke: Optional[str] = None
    stroke_width: Optional[float] = None
    opacity: float = 1.0
    fill_opacity: Optional[float] = None
    stroke_opacity: Optional[float] = None
    # Text only
    font_size: Optional[float] = None
    font_weight: Optional[str] = None
    text_anchor: Optional[str] = None
    dominant_baseline: Optional[str] = None
    filter: Optional[str] = None

    def attrs(self) -> Dict[str, str]:
        out = {"fill": self.fill}
        if self.stroke:
            out["stroke"] = self.stroke
            if self.stroke_width is not None:
                out["stroke-width"] = num(self.stroke_width)
            if self.stroke_opacity is not None:
                out["stroke-opacity"] = num(self.stroke_opacity)
        if self.opacity != 1.0:
            out["opacity"] = num(self.opacity)
        if self.fill_opacity is not None and self.fill != "none":
            out["fill-opacity"] = num(self.fill_opacity)
        if self.font_size is not None:
            out["font-size"] = f"{num(self.font_size)}px"
        if self.font_weight:
            out["font-weight"] = self.font_weight
        if self.text_anchor:
            out["text-anchor"] = self.text_anchor
        if self.dominant_baseline:
            out["dominant-baseline"] = self.dominant_baseline
        if self.filter:
            out["filter"] = f"url(#{self.filter})"
        return out


def _attr_string(attrs: Dict[str, str]) -> str:
    return " ".join(f'{k}="{html.escape(v, quote=True)}"' for k, v in attrs.items())


class SVGCanvas:
    """
    SVG document over a world-coordinate viewBox.

    Elements are appended in draw order; `group()` nests them.
    """

    def __init__(
        self,
        width: int = 1920,
        height: int = 1080,
        viewbox: Tuple[float, float, float, float] | None = None,
        bg_color: str | None = None,
    ):
        self.width = width
        self.height = height
        self.viewbox = viewbox or (0.0, 0.0, float(width), float(height))
        self.bg_color = bg_color or COLORS["bg"]
        self._defs: List[str] = []
        self._body: List[str] = []

    # --- Defs ---

    def add_radial_gradient(self, gid: str, stops: Sequence[Tuple[str, str]], cx="40%", cy="35%", r="65%"):
        inner = "".join(f"<stop {_attr_string({'offset': off, 'stop-color': color})}/>" for off, color in stops)
        attrs = _attr_string({"id": gid, "cx": cx, "cy": cy, "r": r})
        self._defs.append(f"<radialGradient {attrs}>{inner}</radialGradient>")

    def add_glow_filter(self, fid: str, std_deviation: float, extent: str = "50%"):
        """Blur-and-merge glow around the source graphic."""
        size = f"{100 + 2 * int(extent.rstrip('%'))}%"
        attrs = _attr_string({"id": fid, "x": f"-{extent}", "y": f"-{extent}", "width": size, "height": size})
        self._defs.append(
            f"<filter {attrs}>"
            f'<feGaussianBlur stdDeviation="{num(std_deviation)}" result="blur"/>'
            '<feMerge><feMergeNode in="blur"/><feMergeNode in="SourceGraphic"/></feMerge>'
            "</filter>"
        )

    def add_drop_shadow_filter(self, fid: str, color: str, std_deviation: float = 5, opacity: float = 0.7):
        attrs = _attr_string({"id": fid, "x": "-50%", "y": "-50%", "width": "200%", "height": "200%"})
        shadow = _attr_string({
            "dx": "0",
            "dy": "0",
            "stdDeviation": num(std_deviation),
            "flood-color": color,
            "flood-opacity": num(opacity),
        })
        self._defs.append(f"<filter {attrs}><feDropShadow {shadow}/></filter>")

    # --- Structure ---

    @contextmanager
    def group(self, gid: str | None = None, *, opacity: float = 1.0, visible: bool = True, **data: str) -> Iterator[None]:
        """Wrap elements drawn inside the block in a ``<g>``; ``data`` becomes data-* attributes."""
        attrs: Dict[str, str] = {}
        if gid:
            attrs["id"] = gid
        if opacity != 1.0:
            attrs["opacity"] = num(opacity)
        if not visible:
            attrs["display"] = "none"
        for k, v in data.items():
            attrs[f"data-{k.replace('_', '-')}"] = str(v)
        self._body.append(f"<g {_attr_string(attrs)}>" if attrs else "<g>")
        try:
            yield
        finally:
            self._body.append("</g>")

    # --- Shapes ---

    def _emit(self, tag: str, geometry: Dict[str, float], style: Style | None, inner: str | None = None) -> None:
        attrs = {k: num(v) for k, v in geometry.items()}
        attrs.update((style or Style()).attrs())
        if inner is None:
            self._body.append(f"<{tag} {_attr_string(attrs)}/>")
        else:
            self._body.append(f"<{tag} {_attr_string(attrs)}>{inner}</{tag}>")

    def add_circle(self, cx: float, cy: float, r: float, style: Style | None = None):
        self._emit("circle", {"cx": cx, "cy": cy, "r": r}, style)

    def add_line(self, x1: float, y1: float, x2: float, y2: float, style: Style | None = None):
        self._emit("line", {"x1": x1, "y1": y1, "x2": x2, "y2": y2}, style)

    def add_path(self, d: str, style: Style | None = None):
        attrs = {"d": d, **(style or Style()).attrs()}
        self._body.append(f"<path {_attr_string(attrs)}/>")

    def add_text(self, x: float, y: float, text: str, style: Style | None = None):
        """Single-line label in the map font."""
        self.add_text_lines(x, y, [text], style)

    def add_text_lines(
        self,
        x: float,
        y: float,
        lines: List[str],
        style: Style | None = None,
        line_height: Optional[float] = None,
    ):
        """Stack ``lines`` downwards from (x, y); multi-line text becomes tspans."""
        if not lines:
            return
        s = style or Style(fill=COLORS["text"])
        if len(lines) == 1:
            inner = html.escape(str(lines[0]))
        else:
            step = line_height if line_height is not None else (s.font_size or 12) * 1.25
            inner = "".join(
                f'<tspan x="{num(x)}" dy="{num(0 if i == 0 else step)}">{html.escape(str(line))}</tspan>'
                for i, line in enumerate(lines)
            )
        self._emit("text", {"x": x, "y": y}, s, inner)

    # --- Output ---

    def render(self) -> str:
        vx, vy, vw, vh = (num(v) for v in self.viewbox)
        defs = f"<defs>{''.join(self._defs)}</defs>\n" if self._defs else ""
        body = "\n".join(self._body)
        return (
            '<?xml version="1.0" encoding="UTF-8" standalone="no"?>\n'
            f'<svg xmlns="http://www.w3.org/2000/svg" width="{self.width}" height="{self.height}" '
            f'viewBox="{vx} {vy} {vw} {vh}" font-family="{html.escape(FONT_FAMILY, quote=True)}">\n'
            f"{defs}"
            f'<rect x="{vx}" y="{vy}" width="{vw}" height="{vh}" fill="{html.escape(self.bg_color, quote=True)}"/>\n'
            f"{body}\n"
            "</svg>"
        )


# --- Rasterization helpers ---


def svg_string_to_png_bytes(svg: str, *, output_width: int | None = None) -> bytes:
    """Rasterize an SVG document; ``output_width`` rescales keeping the aspect ratio."""
    import cairosvg

    kwargs = {"output_width": output_width} if output_width else {}
    return cairosvg.svg2png(bytestring=svg.encode("utf-8"), **kwargs)


def save_png(svg: str, png_path: str | Path, *, output_width: int | None = None) -> bytes:
    """Write the rasterized map to ``png_path`` (parents created) and return the bytes."""
    target = Path(png_path)
    target.parent.mkdir(parents=True, exist_ok=True)
    data = svg_string_to_png_bytes(svg, output_width=output_width)
    target.write_bytes(data)
    return data
