"""
wire_ops.py

Wire mutation primitives: normalize, break, mend, bridge removal, split and
isolate. Every function takes the current wire list and returns a new one;
WireData objects are never modified, only replaced. Replacement pieces are
inserted where the wire they replace used to be so the list order (which
decides the "primary" wire in merges) stays stable.
"""

import logging
from dataclasses import replace
from typing import Callable, Iterable, NamedTuple, Optional, Sequence

from models.settings import DEFAULT_SETTINGS, EngineSettings
from models.wire import Point, WireData, as_point

from wiring.geometry import cross, dist, dist2, project, same_point

logger = logging.getLogger(__name__)

# Unique-id generator: called with a prefix ('wire'), returns a fresh id.
IdFactory = Callable[[str], str]

# Two endpoints closer than this are the same endpoint for queries.
_QUERY_EPS = 1e-3
# Bridge wires must match the pins this closely.
_BRIDGE_EPS = 1e-3


class EndpointHit(NamedTuple):
    """A wire and which end of it (0 or len(points) - 1) matched."""

    wire: WireData
    end_index: int

    @property
    def point(self) -> Point:
        return self.wire.points[self.end_index]


# --- Normalization ---


def collapse_duplicate_vertices(points: Iterable) -> list[Point]:
    """Drop consecutive repeated vertices."""
    out: list[Point] = []
    for p in points:
        p = as_point(p)
        if not out or not same_point(out[-1], p):
            out.append(p)
    return out


def normalize_polyline(points: Optional[Sequence]) -> Optional[list[Point]]:
    """
    Reduce a polyline to its minimal form.

    Consecutive duplicates are collapsed and interior vertices exactly
    collinear with their neighbours (cross product == 0) are dropped.

    Returns:
        The reduced point list, or None when fewer than two distinct
        points remain.
    """
    pts = collapse_duplicate_vertices(points or [])
    if len(pts) < 2:
        return None
    out = [pts[0]]
    for i in range(1, len(pts) - 1):
        if cross(out[-1], pts[i], pts[i + 1]) == 0:
            continue
        out.append(pts[i])
    out.append(pts[-1])
    out = collapse_duplicate_vertices(out)
    if len(out) < 2:
        return None
    return out


def _piece(parent: WireData, points: Sequence[Point], new_id: IdFactory) -> WireData:
    """Fresh wire that inherits the parent's styling and net."""
    return WireData(
        id=new_id("wire"),
        points=tuple(points),
        stroke=parent.stroke,
        net_id=parent.net_id,
        color=parent.color,
    )


def normalize_all_wires(wires: Sequence[WireData], new_id: IdFactory) -> list[WireData]:
    """
    Normalize every wire and explode polylines into one wire per segment.

    A wire that normalizes to a single segment keeps its id. Degenerate
    wires are dropped.
    """
    out: list[WireData] = []
    for w in wires:
        pts = normalize_polyline(w.points)
        if pts is None:
            logger.debug("Dropping degenerate wire %s", w.id)
            continue
        if len(pts) == 2:
            out.append(w if tuple(pts) == w.points else replace(w, points=tuple(pts)))
            continue
        for a, b in zip(pts, pts[1:]):
            out.append(_piece(w, (a, b), new_id))
    return out


# --- Queries ---


def _close(a, b, eps: float = _QUERY_EPS) -> bool:
    return abs(a[0] - b[0]) < eps and abs(a[1] - b[1]) < eps


def wires_ending_at(pt, wires: Sequence[WireData]) -> list[WireData]:
    """All wires with either endpoint at ``pt``."""
    return [w for w in wires if len(w.points) >= 2 and (_close(w.start, pt) or _close(w.end, pt))]


def other_endpoint_of(wire: WireData, end_pt) -> Point:
    """The endpoint of ``wire`` that is not ``end_pt``."""
    return wire.end if _close(wire.start, end_pt) else wire.start


def find_wire_endpoint_near(pt, wires: Sequence[WireData], tol: float = 0.9) -> Optional[EndpointHit]:
    """First wire endpoint within ``tol`` of ``pt``."""
    for w in wires:
        if len(w.points) < 2:
            continue
        if dist2(w.start, pt) <= tol * tol:
            return EndpointHit(w, 0)
        if dist2(w.end, pt) <= tol * tol:
            return EndpointHit(w, len(w.points) - 1)
    return None


def replace_endpoint(wire: WireData, old_end, new_end) -> WireData:
    """Return a copy of ``wire`` with the endpoint at ``old_end`` moved to ``new_end``."""
    pts = list(wire.points)
    new_end = as_point(new_end)
    if _close(pts[0], old_end):
        pts[0] = new_end
    elif _close(pts[-1], old_end):
        pts[-1] = new_end
    else:
        return wire
    return replace(wire, points=tuple(collapse_duplicate_vertices(pts)))


def _index_of(wire: WireData, wires: Sequence[WireData]) -> int:
    for i, w in enumerate(wires):
        if w is wire:
            return i
    return -1


# --- Break / mend ---


def _break_candidates(pin: Point, wires: Sequence[WireData], settings: EngineSettings, snap):
    found = []
    band = settings.grid_size / 2
    for w in wires:
        for i in range(len(w.points) - 1):
            a, b = w.points[i], w.points[i + 1]
            if dist(pin, a) < settings.endpoint_epsilon or dist(pin, b) < settings.endpoint_epsilon:
                continue
            proj = project(pin, a, b)
            within_vert = (
                a.x == b.x and abs(pin.x - a.x) <= band and min(a.y, b.y) < pin.y < max(a.y, b.y)
            )
            within_horz = (
                a.y == b.y and abs(pin.y - a.y) <= band and min(a.x, b.x) < pin.x < max(a.x, b.x)
            )
            near_interior = 0.001 < proj.t < 0.999 and dist(pin, proj.point) <= settings.break_distance
            if within_vert or within_horz or near_interior:
                bp = proj.point if near_interior else Point(snap(pin.x), snap(pin.y))
                found.append((w, i, bp))
    return found


def break_at_pin(
    pin,
    wires: Sequence[WireData],
    new_id: IdFactory,
    settings: EngineSettings = DEFAULT_SETTINGS,
    snap: Optional[Callable[[float], float]] = None,
) -> tuple[list[WireData], bool]:
    """
    Split every wire segment whose interior ``pin`` lies on.

    A segment qualifies when the pin is inside an axis-aligned band of
    half a grid around it, or projects onto its interior within
    ``settings.break_distance``. Segment endpoints never qualify.

    Returns:
        (new wire list, whether any split happened)
    """
    snap = snap or settings.snap
    pin = as_point(pin)
    out = list(wires)
    broke = False
    for w, i, bp in _break_candidates(pin, out, settings, snap):
        pos = _index_of(w, out)
        if pos < 0:
            # Already replaced by an earlier split at this pin.
            continue
        left = normalize_polyline(list(w.points[: i + 1]) + [bp])
        right = normalize_polyline([bp] + list(w.points[i + 1:]))
        pieces = [_piece(w, pts, new_id) for pts in (left, right) if pts is not None]
        out[pos:pos + 1] = pieces
        broke = True
        logger.debug("Broke wire %s at (%g, %g) into %d pieces", w.id, bp.x, bp.y, len(pieces))
    return out, broke


def break_at_pins(
    pins: Iterable,
    wires: Sequence[WireData],
    new_id: IdFactory,
    settings: EngineSettings = DEFAULT_SETTINGS,
    snap: Optional[Callable[[float], float]] = None,
) -> tuple[list[WireData], bool]:
    """Apply ``break_at_pin`` for each pin in turn."""
    out = list(wires)
    broke = False
    for pin in pins:
        out, did = break_at_pin(pin, out, new_id, settings, snap)
        broke = broke or did
    return out, broke


def mend_at_points(
    hit_a: Optional[EndpointHit],
    hit_b: Optional[EndpointHit],
    wires: Sequence[WireData],
    new_id: IdFactory,
) -> list[WireData]:
    """
    Join two wire ends into one run.

    ``hit_a``'s wire is oriented to end at its hit and ``hit_b``'s to start
    at its hit; the two are concatenated, duplicate and collinear vertices
    are removed and the result is emitted as one wire per segment. Styling
    comes from the left wire, else the right one, else the default.
    """
    if hit_a is None or hit_b is None or hit_a.wire is hit_b.wire:
        return list(wires)
    wa, wb = hit_a.wire, hit_b.wire
    pos_a, pos_b = _index_of(wa, wires), _index_of(wb, wires)
    if pos_a < 0 or pos_b < 0:
        return list(wires)

    a_pts = list(wa.points) if hit_a.end_index == len(wa.points) - 1 else list(reversed(wa.points))
    b_pts = list(wb.points) if hit_b.end_index == 0 else list(reversed(wb.points))
    merged = normalize_polyline(a_pts + b_pts)

    if not wa.stroke.is_default:
        source = wa
    elif not wb.stroke.is_default:
        source = wb
    else:
        source = None

    out = [w for w in wires if w is not wa and w is not wb]
    if merged is None:
        return out
    pieces = [
        WireData(
            id=new_id("wire"),
            points=(p, q),
            stroke=source.stroke if source else wa.stroke,
            net_id=(source or wa).net_id,
            color=source.color if source else (wa.color or wb.color),
        )
        for p, q in zip(merged, merged[1:])
    ]
    insert_at = min(pos_a, pos_b)
    out[insert_at:insert_at] = pieces
    logger.debug("Mended wires %s and %s into %d segment(s)", wa.id, wb.id, len(pieces))
    return out


def delete_bridge(pins: Sequence, wires: Sequence[WireData]) -> list[WireData]:
    """Remove any 2-point wire that exactly spans the two given pins."""
    if len(pins) != 2:
        return list(wires)
    a, b = as_point(pins[0]), as_point(pins[1])

    def is_bridge(w: WireData) -> bool:
        if len(w.points) != 2:
            return False
        p0, p1 = w.points
        return (_close(p0, a, _BRIDGE_EPS) and _close(p1, b, _BRIDGE_EPS)) or (
            _close(p0, b, _BRIDGE_EPS) and _close(p1, a, _BRIDGE_EPS)
        )

    return [w for w in wires if not is_bridge(w)]


# --- Split / isolate ---


def split_polyline_by_removed_segments(points: Sequence[Point], removed: set[int]) -> list[list[Point]]:
    """Pieces left over after deleting the segments at ``removed`` indices."""
    if len(points) < 2:
        return []
    out = []
    cur = [points[0]]
    for i in range(len(points) - 1):
        if i in removed:
            np = normalize_polyline(cur) if len(cur) >= 2 else None
            if np:
                out.append(np)
            cur = [points[i + 1]]
        else:
            cur.append(points[i + 1])
    np = normalize_polyline(cur) if len(cur) >= 2 else None
    if np:
        out.append(np)
    return out


def isolate_wire_segment(
    wire: WireData, segment_index: int, wires: Sequence[WireData], new_id: IdFactory
) -> tuple[list[WireData], Optional[WireData]]:
    """
    Split a polyline so segment ``segment_index`` becomes its own wire.

    Returns:
        (new wire list, the isolated wire). The isolated wire is ``wire``
        itself if it is already a single segment, or None if the index is
        out of range.
    """
    if not 0 <= segment_index < len(wire.points) - 1:
        return list(wires), None
    if len(wire.points) == 2:
        return list(wires), wire
    pos = _index_of(wire, wires)
    if pos < 0:
        return list(wires), None

    left = normalize_polyline(wire.points[: segment_index + 1])
    mid = normalize_polyline(wire.points[segment_index:segment_index + 2])
    right = normalize_polyline(wire.points[segment_index + 1:])

    pieces = []
    mid_wire = None
    for pts, is_mid in ((left, False), (mid, True), (right, False)):
        if pts is None:
            continue
        piece = _piece(wire, pts, new_id)
        if is_mid:
            mid_wire = piece
        pieces.append(piece)
    out = list(wires)
    out[pos:pos + 1] = pieces
    return out, mid_wire


def remove_wire_segment(
    wire: WireData, segment_index: int, wires: Sequence[WireData], new_id: IdFactory
) -> list[WireData]:
    """Delete one segment of ``wire``, keeping whatever lies on either side."""
    if not 0 <= segment_index < len(wire.points) - 1:
        return list(wires)
    pos = _index_of(wire, wires)
    if pos < 0:
        return list(wires)
    pieces = [
        _piece(wire, pts, new_id)
        for pts in split_polyline_by_removed_segments(wire.points, {segment_index})
    ]
    out = list(wires)
    out[pos:pos + 1] = pieces
    return out
