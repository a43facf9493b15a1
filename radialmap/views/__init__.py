"""Rendering for radial maps."""

from .scene import SceneBuilder, label_anchor, render_session, wrap_title
from .svg import COLORS, Style, SVGCanvas, save_png, svg_string_to_png_bytes

__all__ = [
    "SceneBuilder",
    "label_anchor",
    "render_session",
    "wrap_title",
    "COLORS",
    "Style",
    "SVGCanvas",
    "save_png",
    "svg_string_to_png_bytes",
]
