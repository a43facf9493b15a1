from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable, Tuple

Point = Tuple[float, float]


@dataclass(frozen=True)
class Rect:
    x: float
    y: float
    w: float
    h: float

    @property
    def left(self) -> float:
        return self.x

    @property
    def right(self) -> float:
        return self.x + self.w

    @property
    def top(self) -> float:
        return self.y

    @property
    def bottom(self) -> float:
        return self.y + self.h

    @property
    def cx(self) -> float:
        return self.x + self.w / 2

    @property
    def cy(self) -> float:
        return self.y + self.h / 2

    def contains(self, p: Point) -> bool:
        return self.left <= p[0] <= self.right and self.top <= p[1] <= self.bottom

    def padded(self, pad: float) -> "Rect":
        return Rect(self.x - pad, self.y - pad, self.w + 2 * pad, self.h + 2 * pad)


def polar_to_cartesian(angle_deg: float, radius: float, origin: Point = (0.0, 0.0)) -> Point:
    """Convert a (degrees, radius) pair to x/y. y grows downwards, as in SVG."""
    rad = math.radians(angle_deg)
    return (origin[0] + math.cos(rad) * radius, origin[1] + math.sin(rad) * radius)


def bounding_rect(points: Iterable[Point]) -> Rect:
    pts = list(points)
    if not pts:
        return Rect(0.0, 0.0, 0.0, 0.0)
    xs = [p[0] for p in pts]
    ys = [p[1] for p in pts]
    return Rect(min(xs), min(ys), max(xs) - min(xs), max(ys) - min(ys))


def curve_control_point(p1: Point, p2: Point, pull: float = 0.55, origin: Point = (0.0, 0.0)) -> Point:
    """Control point for a connection curve bent towards ``origin``.

    The segment midpoint is scaled towards the origin by ``pull``.
    """
    mx = (p1[0] + p2[0]) / 2
    my = (p1[1] + p2[1]) / 2
    return (origin[0] + (mx - origin[0]) * pull, origin[1] + (my - origin[1]) * pull)


def quad_path_d(p1: Point, control: Point, p2: Point) -> str:
    """SVG path string for a quadratic Bezier."""
    return f"M {p1[0]} {p1[1]} Q {control[0]} {control[1]} {p2[0]} {p2[1]}"
