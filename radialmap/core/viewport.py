"""Viewport: the world-coordinate window mapped onto the display.

Pan moves the window origin; zoom rescales the window around a screen anchor
so the world point under the anchor stays put. Window width is kept within
``[min_width, max_width]``: a zoom that would leave the bounds is rejected
and the window is left unchanged.

Pointer and touch gestures are explicit begin/move/end transitions. The
in-flight gesture is held in a small struct, and drag positions are always
computed from the pre-gesture snapshot.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, replace
from typing import Optional, Sequence, Tuple

from .geometry import Point


@dataclass(frozen=True)
class ViewWindow:
    x: float
    y: float
    width: float
    height: float

    @property
    def cx(self) -> float:
        return self.x + self.width / 2

    @property
    def cy(self) -> float:
        return self.y + self.height / 2

    def as_viewbox(self) -> str:
        return f"{self.x} {self.y} {self.width} {self.height}"


@dataclass(frozen=True)
class ScreenRect:
    """The physical display area, in screen pixels."""

    left: float = 0.0
    top: float = 0.0
    width: float = 1920.0
    height: float = 1080.0

    @property
    def center(self) -> Point:
        return (self.left + self.width / 2, self.top + self.height / 2)


@dataclass(frozen=True)
class ViewportConfig:
    default_window: ViewWindow = ViewWindow(-960.0, -540.0, 1920.0, 1080.0)
    min_width: float = 400.0
    max_width: float = 8000.0
    zoom_in_factor: float = 0.8
    zoom_out_factor: float = 1.25
    wheel_in_factor: float = 0.92
    wheel_out_factor: float = 1.08


@dataclass(frozen=True)
class DragGesture:
    start_screen: Point
    start_origin: Point


@dataclass(frozen=True)
class PinchGesture:
    last_distance: float


def _distance(a: Point, b: Point) -> float:
    return math.hypot(a[0] - b[0], a[1] - b[1])


def _midpoint(a: Point, b: Point) -> Point:
    return ((a[0] + b[0]) / 2, (a[1] + b[1]) / 2)


class ViewportController:
    def __init__(self, config: ViewportConfig | None = None, screen: ScreenRect | None = None):
        self.config = config or ViewportConfig()
        self.screen = screen or ScreenRect()
        self.window = self.config.default_window
        self._drag: Optional[DragGesture] = None
        self._pinch: Optional[PinchGesture] = None

    # --- Coordinate mapping ---

    def scale(self) -> Tuple[float, float]:
        """World units per screen pixel, per axis."""
        return (self.window.width / self.screen.width, self.window.height / self.screen.height)

    def screen_to_world(self, sx: float, sy: float) -> Point:
        w = self.window
        return (
            w.x + (sx - self.screen.left) / self.screen.width * w.width,
            w.y + (sy - self.screen.top) / self.screen.height * w.height,
        )

    def world_to_screen(self, wx: float, wy: float) -> Point:
        w = self.window
        return (
            self.screen.left + (wx - w.x) / w.width * self.screen.width,
            self.screen.top + (wy - w.y) / w.height * self.screen.height,
        )

    def resize(self, screen: ScreenRect) -> None:
        self.screen = screen

    # --- Commands ---

    def pan(self, dx: float, dy: float, scale: Tuple[float, float] | None = None) -> None:
        """Move the content by a screen-pixel delta (drag right, content moves right)."""
        sx, sy = scale if scale is not None else self.scale()
        self.window = replace(self.window, x=self.window.x - dx * sx, y=self.window.y - dy * sy)

    def zoom_at(self, factor: float, screen_x: float, screen_y: float) -> bool:
        """Scale the window by ``factor`` keeping the world point under the anchor fixed.

        ``factor`` > 1 zooms out, < 1 zooms in. Returns False (and leaves the
        window alone) when the new width would leave the configured bounds.
        """
        if not (factor > 0) or math.isinf(factor):
            return False
        w = self.window
        new_w = w.width * factor
        new_h = w.height * factor
        if new_w < self.config.min_width or new_w > self.config.max_width:
            return False

        px, py = self.screen_to_world(screen_x, screen_y)
        self.window = ViewWindow(
            x=px - (px - w.x) * (new_w / w.width),
            y=py - (py - w.y) * (new_h / w.height),
            width=new_w,
            height=new_h,
        )
        return True

    def zoom_in(self) -> bool:
        cx, cy = self.screen.center
        return self.zoom_at(self.config.zoom_in_factor, cx, cy)

    def zoom_out(self) -> bool:
        cx, cy = self.screen.center
        return self.zoom_at(self.config.zoom_out_factor, cx, cy)

    def wheel(self, delta_y: float, screen_x: float, screen_y: float) -> bool:
        factor = self.config.wheel_out_factor if delta_y > 0 else self.config.wheel_in_factor
        return self.zoom_at(factor, screen_x, screen_y)

    def reset(self) -> None:
        self.window = self.config.default_window
        self._drag = None
        self._pinch = None

    def center_on(self, wx: float, wy: float) -> None:
        """Move the window so the world point sits at its center; size unchanged."""
        w = self.window
        self.window = replace(w, x=wx - w.width / 2, y=wy - w.height / 2)

    # --- Gestures ---

    @property
    def dragging(self) -> bool:
        return self._drag is not None

    @property
    def pinching(self) -> bool:
        return self._pinch is not None

    def begin_drag(self, sx: float, sy: float) -> None:
        self._pinch = None
        self._drag = DragGesture(start_screen=(sx, sy), start_origin=(self.window.x, self.window.y))

    def drag_to(self, sx: float, sy: float) -> bool:
        g = self._drag
        if g is None:
            return False
        scale_x, scale_y = self.scale()
        dx = (sx - g.start_screen[0]) * scale_x
        dy = (sy - g.start_screen[1]) * scale_y
        self.window = replace(self.window, x=g.start_origin[0] - dx, y=g.start_origin[1] - dy)
        return True

    def end_drag(self) -> None:
        self._drag = None

    def begin_touch(self, points: Sequence[Point]) -> None:
        """One finger starts a drag, two start a pinch."""
        if len(points) == 1:
            self.begin_drag(*points[0])
        elif len(points) >= 2:
            self._drag = None
            self._pinch = PinchGesture(last_distance=_distance(points[0], points[1]))

    def touch_move(self, points: Sequence[Point]) -> bool:
        if len(points) == 1 and self._drag is not None:
            return self.drag_to(*points[0])
        if len(points) >= 2 and self._pinch is not None:
            dist = _distance(points[0], points[1])
            if dist <= 0 or self._pinch.last_distance <= 0:
                self._pinch = PinchGesture(last_distance=dist)
                return False
            mx, my = _midpoint(points[0], points[1])
            changed = self.zoom_at(self._pinch.last_distance / dist, mx, my)
            self._pinch = PinchGesture(last_distance=dist)
            return changed
        return False

    def end_touch(self) -> None:
        self._drag = None
        self._pinch = None
