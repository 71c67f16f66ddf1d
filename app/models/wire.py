"""
WireData - Pure Python data model for schematic wires.

This module contains no Qt dependencies. A wire is an ordered run of
points with a stroke and a net id. Stored wires are normalized to exactly
two points; longer polylines only appear as drawing input.

WireData is frozen: edits build replacement wires (``dataclasses.replace``)
and the owning model swaps the whole wire list.
"""

from dataclasses import dataclass, field
from typing import NamedTuple, Optional

from .settings import DEFAULT_NET_ID, DEFAULT_WIRE_COLOR
from .stroke import RGBA, Stroke, css_to_rgba, rgba_to_css


class Point(NamedTuple):
    """Immutable planar point. Compares equal to a plain ``(x, y)`` tuple."""

    x: float
    y: float

    def to_dict(self) -> dict:
        return {"x": self.x, "y": self.y}

    @classmethod
    def from_dict(cls, data: dict) -> "Point":
        return cls(float(data["x"]), float(data["y"]))


def as_point(value) -> Point:
    """Coerce an ``(x, y)`` pair or ``{"x", "y"}`` dict into a Point."""
    if isinstance(value, Point):
        return value
    if isinstance(value, dict):
        return Point.from_dict(value)
    x, y = value
    return Point(float(x), float(y))


@dataclass(frozen=True)
class WireData:
    """
    A wire polyline with styling.

    ``color`` is the legacy CSS color mirror kept for older documents; the
    authoritative style lives in ``stroke``.
    """

    id: str
    points: tuple[Point, ...]
    stroke: Stroke = field(default_factory=Stroke)
    net_id: str = DEFAULT_NET_ID
    color: Optional[str] = None

    def __post_init__(self):
        # Accept lists and bare tuples; store an immutable tuple of Points.
        object.__setattr__(self, "points", tuple(as_point(p) for p in self.points))

    @property
    def start(self) -> Point:
        return self.points[0]

    @property
    def end(self) -> Point:
        return self.points[-1]

    @property
    def segment_count(self) -> int:
        return max(0, len(self.points) - 1)

    def segment(self, index: int) -> tuple[Point, Point]:
        """Return the endpoints of segment ``index``."""
        return self.points[index], self.points[index + 1]

    @property
    def display_color(self) -> str:
        """CSS color used for SWP color agreement and the legacy mirror."""
        if self.stroke.color is not None:
            return rgba_to_css(self.stroke.color)
        return self.color or DEFAULT_WIRE_COLOR

    def length(self) -> float:
        total = 0.0
        for a, b in zip(self.points, self.points[1:]):
            total += ((b.x - a.x) ** 2 + (b.y - a.y) ** 2) ** 0.5
        return total

    def to_dict(self) -> dict:
        """
        Serialize wire to dictionary.

        Format matches the schematic JSON document: ``{id, points, stroke,
        netId}`` plus the legacy ``color`` string.
        """
        fallback = self.color or DEFAULT_WIRE_COLOR
        return {
            "id": self.id,
            "points": [p.to_dict() for p in self.points],
            "stroke": self.stroke.to_dict(fallback_color=fallback),
            "netId": self.net_id,
            "color": self.display_color,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "WireData":
        """
        Deserialize wire from dictionary.

        A missing stroke is backfilled from the legacy color (as a fully
        inherited stroke), and a missing net id becomes 'default'.
        """
        stroke_data = data.get("stroke")
        legacy_color = data.get("color")
        if isinstance(stroke_data, dict):
            stroke = Stroke.from_dict(stroke_data)
            if not legacy_color and isinstance(stroke_data.get("color"), dict):
                legacy_color = rgba_to_css(RGBA.from_dict(stroke_data["color"]))
        else:
            stroke = Stroke()
        if legacy_color:
            # Fail early on colors the engine cannot compare later.
            css_to_rgba(legacy_color)
        return cls(
            id=data["id"],
            points=tuple(Point.from_dict(p) for p in data.get("points", [])),
            stroke=stroke,
            net_id=data.get("netId") or DEFAULT_NET_ID,
            color=legacy_color or None,
        )

    def __repr__(self) -> str:
        pts = " -> ".join(f"({p.x:g},{p.y:g})" for p in self.points)
        return f"WireData({self.id}: {pts})"
