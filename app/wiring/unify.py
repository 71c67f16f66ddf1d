"""
unify.py

Merge collinear wires that meet end to end.

The merge is a single pass: wire endpoints are grouped by node, every
eligible joint unions its two wires (union-find), and each resulting group
is emitted as one straight wire. Chains of any length collapse in that one
pass, so there is no rescan loop to bound.

A joint is eligible when exactly two different wires end there, it is not
a component pin, both wires are on the same net, and they leave the joint
in opposite directions along the same axis (diagonal wires never merge).
"""

import logging
from collections import defaultdict
from typing import Sequence

from models.component import ComponentData
from models.settings import DEFAULT_SETTINGS, EngineSettings
from models.wire import Point, WireData

from wiring.geometry import axis_of, key_point
from wiring.wire_ops import IdFactory, normalize_all_wires, normalize_polyline

logger = logging.getLogger(__name__)


class _DisjointSet:
    """Union-find whose root is always the smallest index in the set."""

    def __init__(self, size: int):
        self.parent = list(range(size))

    def find(self, i: int) -> int:
        root = i
        while self.parent[root] != root:
            root = self.parent[root]
        while self.parent[i] != root:
            self.parent[i], i = root, self.parent[i]
        return root

    def union(self, i: int, j: int) -> None:
        ri, rj = self.find(i), self.find(j)
        if ri == rj:
            return
        if ri < rj:
            self.parent[rj] = ri
        else:
            self.parent[ri] = rj


def pin_keys(components: Sequence[ComponentData], grid_size: float) -> set[tuple[int, int]]:
    """Rounded keys of every component pin."""
    keys = set()
    for comp in components:
        for pin in comp.get_terminal_positions(grid_size):
            keys.add(key_point(pin))
    return keys


def _direction_from(wire: WireData, end_index: int) -> tuple[float, float]:
    """Vector from the given end of a 2-point wire toward its other end."""
    here = wire.points[end_index]
    there = wire.points[1 - end_index]
    return (there.x - here.x, there.y - here.y)


def _joinable(a: WireData, end_a: int, b: WireData, end_b: int) -> bool:
    if a.net_id != b.net_id:
        return False
    axis = axis_of(a.start, a.end)
    if axis is None or axis != axis_of(b.start, b.end):
        return False
    da = _direction_from(a, end_a)
    db = _direction_from(b, end_b)
    if da[0] * db[1] - da[1] * db[0] != 0:
        return False
    # Collinear; require the wires to continue the line rather than overlap.
    return da[0] * db[0] + da[1] * db[1] < 0


def _merge_group(members: list[WireData]) -> WireData | None:
    """One wire covering a collinear group; the first member is the primary."""
    primary = members[0]
    origin = primary.start
    dx = primary.end.x - origin.x
    dy = primary.end.y - origin.y

    ends: list[Point] = [p for w in members for p in (w.start, w.end)]
    for p in ends:
        if (p.x - origin.x) * dy - (p.y - origin.y) * dx != 0:
            return None

    def t(p: Point) -> float:
        return (p.x - origin.x) * dx + (p.y - origin.y) * dy

    lo = min(ends, key=t)
    hi = max(ends, key=t)
    pts = normalize_polyline([lo, hi])
    if pts is None:
        return None

    stroke_source = next((w for w in members if not w.stroke.is_default), primary)
    color = next((w.color for w in members if w.color), None)
    return WireData(
        id=primary.id,
        points=tuple(pts),
        stroke=stroke_source.stroke,
        net_id=primary.net_id,
        color=color,
    )


def unify_inline_wires(
    wires: Sequence[WireData],
    components: Sequence[ComponentData],
    new_id: IdFactory,
    settings: EngineSettings = DEFAULT_SETTINGS,
) -> list[WireData]:
    """
    Merge collinear end-to-end wires into single wires.

    The input is normalized first. A merged wire keeps the id of its
    earliest member in list order and takes the first explicit stroke found
    from that member onward. Merges never happen at a component pin.

    Returns:
        The new wire list. A group that cannot be reduced to one straight
        segment is logged and left unmerged.
    """
    wires = normalize_all_wires(wires, new_id)
    pins = pin_keys(components, settings.grid_size)

    ends_by_key: dict[tuple[int, int], list[tuple[int, int]]] = defaultdict(list)
    for idx, w in enumerate(wires):
        ends_by_key[key_point(w.start)].append((idx, 0))
        ends_by_key[key_point(w.end)].append((idx, 1))

    groups = _DisjointSet(len(wires))
    for key in sorted(ends_by_key):
        entries = ends_by_key[key]
        if key in pins or len(entries) != 2:
            continue
        (i, end_i), (j, end_j) = entries
        if i == j:
            continue
        if _joinable(wires[i], end_i, wires[j], end_j):
            groups.union(i, j)

    members_by_root: dict[int, list[int]] = defaultdict(list)
    for idx in range(len(wires)):
        members_by_root[groups.find(idx)].append(idx)

    out: list[WireData] = []
    merged_count = 0
    for idx, w in enumerate(wires):
        members = members_by_root.get(idx)
        if members is None:
            continue  # absorbed into an earlier primary
        if len(members) == 1:
            out.append(w)
            continue
        group = [wires[m] for m in members]
        merged = _merge_group(group)
        if merged is None:
            logger.warning(
                "unify_inline_wires: group %s does not reduce to one segment; left unmerged",
                [g.id for g in group],
            )
            out.extend(group)
            continue
        out.append(merged)
        merged_count += len(group) - 1

    if merged_count:
        logger.debug("Unified %d wire(s); %d remain", merged_count, len(out))
    return out
