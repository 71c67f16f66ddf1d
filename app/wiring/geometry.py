"""
geometry.py

Pure geometric helpers for orthogonal schematic wiring. Points are
``models.wire.Point`` (or any ``(x, y)`` pair); nothing here has state.
"""

import math
from typing import NamedTuple, Optional, Sequence

from models.wire import Point


class Projection(NamedTuple):
    """Closest point on a segment and its clamped parameter along it."""

    point: Point
    t: float


class Rect(NamedTuple):
    x: float
    y: float
    w: float
    h: float

    def contains(self, p) -> bool:
        return self.x <= p[0] <= self.x + self.w and self.y <= p[1] <= self.y + self.h


def key_point(p) -> tuple[int, int]:
    """Stable node key: the point rounded (half up) to whole units."""
    return (math.floor(p[0] + 0.5), math.floor(p[1] + 0.5))


def rounded_point(p) -> Point:
    x, y = key_point(p)
    return Point(float(x), float(y))


def same_point(a, b) -> bool:
    return a[0] == b[0] and a[1] == b[1]


def near_equal(a: float, b: float, eps: float = 0.5) -> bool:
    return abs(a - b) <= eps


def points_close(a, b, eps: float = 0.75) -> bool:
    return abs(a[0] - b[0]) <= eps and abs(a[1] - b[1]) <= eps


def dist2(a, b) -> float:
    dx = a[0] - b[0]
    dy = a[1] - b[1]
    return dx * dx + dy * dy


def dist(a, b) -> float:
    return dist2(a, b) ** 0.5


def midpoint(a, b) -> Point:
    return Point((a[0] + b[0]) / 2, (a[1] + b[1]) / 2)


def project(p, a, b) -> Projection:
    """
    Project ``p`` onto segment ``a``-``b``.

    Returns:
        The projected point and ``t`` clamped to [0, 1]. A zero-length
        segment projects everything onto ``a`` with ``t = 0``.
    """
    dx = b[0] - a[0]
    dy = b[1] - a[1]
    len2 = dx * dx + dy * dy
    if len2 == 0:
        return Projection(Point(a[0], a[1]), 0.0)
    t = ((p[0] - a[0]) * dx + (p[1] - a[1]) * dy) / len2
    t = max(0.0, min(1.0, t))
    return Projection(Point(a[0] + t * dx, a[1] + t * dy), t)


def distance(p, a, b) -> float:
    """Distance from point ``p`` to segment ``a``-``b``."""
    return dist(p, project(p, a, b).point)


def axis_of(a, b) -> Optional[str]:
    """'x' for a horizontal segment, 'y' for a vertical one, None otherwise."""
    if a[1] == b[1] and a[0] != b[0]:
        return "x"
    if a[0] == b[0] and a[1] != b[1]:
        return "y"
    return None


def cross(a, b, d) -> float:
    """2D cross product of (b - a) and (d - b)."""
    return (b[0] - a[0]) * (d[1] - b[1]) - (b[1] - a[1]) * (d[0] - b[0])


def along(p, axis: str) -> float:
    """Coordinate of ``p`` along ``axis``."""
    return p[0] if axis == "x" else p[1]


def across(p, axis: str) -> float:
    """Coordinate of ``p`` orthogonal to ``axis``."""
    return p[1] if axis == "x" else p[0]


def on_axis(t: float, fixed: float, axis: str) -> Point:
    """Build the point at position ``t`` along ``axis`` on the line ``fixed``."""
    return Point(t, fixed) if axis == "x" else Point(fixed, t)


def _ccw(a, b, c) -> bool:
    return (c[1] - a[1]) * (b[0] - a[0]) > (b[1] - a[1]) * (c[0] - a[0])


def segments_intersect(p1, p2, q1, q2) -> bool:
    """Proper intersection test for segments p1-p2 and q1-q2."""
    return _ccw(p1, q1, q2) != _ccw(p2, q1, q2) and _ccw(p1, p2, q1) != _ccw(p1, p2, q2)


def rect_intersects_segment(a, b, rect: Rect) -> bool:
    """True if segment a-b touches or crosses ``rect``."""
    if rect.contains(a) or rect.contains(b):
        return True
    x0, y0 = rect.x, rect.y
    x1, y1 = rect.x + rect.w, rect.y + rect.h
    edges = [
        ((x0, y0), (x1, y0)),
        ((x1, y0), (x1, y1)),
        ((x1, y1), (x0, y1)),
        ((x0, y1), (x0, y0)),
    ]
    return any(segments_intersect(a, b, e0, e1) for e0, e1 in edges)


def rects_overlap(r1: tuple, r2: tuple) -> bool:
    """Strict overlap of two (min_x, min_y, max_x, max_y) boxes; touching is not overlap."""
    return r1[0] < r2[2] and r2[0] < r1[2] and r1[1] < r2[3] and r2[1] < r1[3]


def nearest_segment_index(points: Sequence, p) -> int:
    """Index of the polyline segment closest to ``p`` (-1 for fewer than 2 points)."""
    best = -1
    best_d = float("inf")
    for i in range(len(points) - 1):
        d = distance(p, points[i], points[i + 1])
        if d < best_d:
            best_d = d
            best = i
    return best
