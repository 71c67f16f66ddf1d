"""
topology_builder.py

Builds the wiring graph from the current components and wires:

1. one edge per wire segment, split where another wire's endpoint forms a
   T-junction on it (the stored wires are left untouched);
2. a bridge edge for each embedded two-pin component;
3. Straight Wire Paths (SWPs): maximal same-axis chains through nodes with
   axis-degree exactly 2;
4. the component -> SWP index;
5. junction dots.

The result is rebuilt from scratch after every topology-affecting edit.
"""

import bisect
import logging
from collections import defaultdict
from typing import Iterable, Optional, Sequence

from models.component import ComponentData
from models.settings import DEFAULT_NET_ID, DEFAULT_SETTINGS, EngineSettings
from models.topology import SWP, ComponentBridge, Edge, Junction, NodeKey, TopoNode, Topology, WireEdge
from models.wire import Point, WireData

from wiring.geometry import across, along, axis_of, key_point, near_equal, rounded_point, same_point
from wiring.wire_ops import find_wire_endpoint_near

logger = logging.getLogger(__name__)


class _Segment:
    __slots__ = ("wire", "index", "a", "b")

    def __init__(self, wire: WireData, index: int, a: Point, b: Point):
        self.wire = wire
        self.index = index
        self.a = a
        self.b = b


def _collect_segments(wires: Sequence[WireData]) -> list[_Segment]:
    segments = []
    for w in wires:
        for i in range(len(w.points) - 1):
            a = rounded_point(w.points[i])
            b = rounded_point(w.points[i + 1])
            if same_point(a, b):
                continue
            segments.append(_Segment(w, i, a, b))
    return segments


def _t_junction_cuts(segments: list[_Segment]) -> dict[int, list[Point]]:
    """
    Interior points where another wire's segment endpoint touches an
    axis-aligned segment, keyed by segment position, ordered from ``a``.
    """
    by_row: dict[float, list[tuple[float, str]]] = defaultdict(list)
    by_col: dict[float, list[tuple[float, str]]] = defaultdict(list)
    for seg in segments:
        for p in (seg.a, seg.b):
            by_row[p.y].append((p.x, seg.wire.id))
            by_col[p.x].append((p.y, seg.wire.id))
    for bucket in (by_row, by_col):
        for values in bucket.values():
            values.sort()
    row_ts = {y: [t for t, _ in values] for y, values in by_row.items()}
    col_ts = {x: [t for t, _ in values] for x, values in by_col.items()}

    cuts: dict[int, list[Point]] = {}
    for pos, seg in enumerate(segments):
        axis = axis_of(seg.a, seg.b)
        if axis is None:
            continue
        fixed = across(seg.a, axis)
        values = (by_row if axis == "x" else by_col).get(fixed, [])
        ts = (row_ts if axis == "x" else col_ts).get(fixed, [])
        lo, hi = sorted((along(seg.a, axis), along(seg.b, axis)))
        start = bisect.bisect_right(ts, lo)
        found = set()
        for t, owner in values[start:]:
            if t >= hi:
                break
            if owner != seg.wire.id:
                found.add(t)
        if found:
            ordered = sorted(found, key=lambda t: abs(t - along(seg.a, axis)))
            cuts[pos] = [Point(t, fixed) if axis == "x" else Point(fixed, t) for t in ordered]
    return cuts


class _GraphBuilder:
    def __init__(self):
        self.nodes: dict[NodeKey, TopoNode] = {}
        self.edges: list[Edge] = []
        self.edge_by_id: dict[str, Edge] = {}

    def _node(self, p: Point) -> TopoNode:
        key = key_point(p)
        node = self.nodes.get(key)
        if node is None:
            node = TopoNode(x=key[0], y=key[1])
            self.nodes[key] = node
        return node

    def attach(self, edge: Edge) -> None:
        self.edges.append(edge)
        self.edge_by_id[edge.id] = edge
        for p in (edge.a, edge.b):
            node = self._node(p)
            node.edges.add(edge.id)
            if edge.axis is not None:
                node.ax_deg[edge.axis] += 1

    def next_along(self, key: NodeKey, axis: str, from_id: str, stops: set[NodeKey]) -> Optional[Edge]:
        """The unique other same-axis edge at a pass-through node, else None."""
        if key in stops:
            return None
        node = self.nodes[key]
        if node.ax_deg[axis] != 2:
            return None
        for eid in node.edges:
            edge = self.edge_by_id[eid]
            if eid != from_id and edge.axis == axis:
                return edge
        return None

    def walk(self, seed: Edge, stops: set[NodeKey]) -> list[Edge]:
        chain = [seed]
        seen = {seed.id}
        for key in (seed.b_key, seed.a_key):
            current = seed
            while True:
                nxt = self.next_along(key, seed.axis, current.id, stops)
                if nxt is None or nxt.id in seen:
                    break
                chain.append(nxt)
                seen.add(nxt.id)
                key = nxt.b_key if nxt.a_key == key else nxt.a_key
                current = nxt
        return chain


def _bridge_for(component: ComponentData, wires: Sequence[WireData],
                settings: EngineSettings) -> Optional[ComponentBridge]:
    """Bridge edge for an embedded two-pin part, or None."""
    if not component.is_two_pin:
        return None
    pins = [rounded_point(p) for p in component.get_terminal_positions(settings.grid_size)]
    if len(pins) != 2:
        return None
    axis = axis_of(pins[0], pins[1])
    if axis is None:
        return None
    for pin in pins:
        if find_wire_endpoint_near(pin, wires, settings.endpoint_tolerance) is None:
            return None
    a, b = sorted(pins, key=lambda p: along(p, axis))
    return ComponentBridge(
        id=f"bridge:{component.component_id}",
        component_id=component.component_id,
        a=a,
        b=b,
        axis=axis,
    )


def _swp_color(wire_ids: Iterable[str], wires_by_id: dict[str, WireData], settings: EngineSettings) -> str:
    colors = {wires_by_id[wid].display_color for wid in wire_ids if wid in wires_by_id}
    if len(colors) == 1:
        return colors.pop()
    return settings.neutral_swp_color


def _swp_from_chain(swp_id: str, axis: str, chain: list[Edge], wires_by_id: dict[str, WireData],
                    settings: EngineSettings) -> Optional[SWP]:
    """Describe a walked chain as an SWP; chains made only of bridges are skipped."""
    if not any(isinstance(e, WireEdge) for e in chain):
        return None
    ordered = sorted(chain, key=lambda e: min(along(e.a, axis), along(e.b, axis)))
    points = [p for e in ordered for p in (e.a, e.b)]
    start = min(points, key=lambda p: along(p, axis))
    end = max(points, key=lambda p: along(p, axis))

    wire_ids: list[str] = []
    indices: dict[str, set[int]] = defaultdict(set)
    for e in ordered:
        if not isinstance(e, WireEdge):
            continue
        if e.wire_id not in indices:
            wire_ids.append(e.wire_id)
        indices[e.wire_id].add(e.segment_index)
    return SWP(
        id=swp_id,
        axis=axis,
        start=start,
        end=end,
        color=_swp_color(wire_ids, wires_by_id, settings),
        edge_wire_ids=tuple(wire_ids),
        edge_indices_by_wire={wid: tuple(sorted(idx)) for wid, idx in indices.items()},
        edge_ids=tuple(e.id for e in ordered),
        bridge_component_ids=tuple(e.component_id for e in ordered if isinstance(e, ComponentBridge)),
    )


def map_components_to_swps(components: Sequence[ComponentData], swps: Sequence[SWP],
                           settings: EngineSettings = DEFAULT_SETTINGS) -> dict[str, str]:
    """
    Map each axis-aligned two-pin component onto the SWP that contains it.

    The SWP must share the component's pin axis and fixed coordinate, and
    its span must contain the pin span (both within ``span_tolerance``).
    """
    tol = settings.span_tolerance
    mapping = {}
    for comp in components:
        if not comp.is_two_pin:
            continue
        pins = comp.get_terminal_positions(settings.grid_size)
        axis = axis_of(rounded_point(pins[0]), rounded_point(pins[1]))
        if axis is None:
            continue
        fixed = across(pins[0], axis)
        lo, hi = sorted(along(p, axis) for p in pins)
        for swp in swps:
            if swp.axis != axis or not near_equal(swp.fixed, fixed, tol):
                continue
            if swp.contains_span(lo, hi, tol):
                mapping[comp.component_id] = swp.id
                break
    return mapping


def detect_junctions(
    nodes: dict[NodeKey, TopoNode],
    edge_by_id: dict[str, Edge],
    wires: Sequence[WireData],
    components: Sequence[ComponentData],
    existing: Iterable[Junction] = (),
    settings: EngineSettings = DEFAULT_SETTINGS,
) -> list[Junction]:
    """
    Junction dots for the current graph.

    A dot appears where two or more wires meet and either one of them
    passes through the node or the node is a component pin. Manual
    junctions are carried over; a suppressed manual junction hides the
    automatic dot at its location.
    """
    manual = [j for j in existing if j.manual]
    suppressed = {key_point(j.at) for j in manual if j.suppressed}
    pins = set()
    for comp in components:
        for p in comp.get_terminal_positions(settings.grid_size):
            pins.add(key_point(p))

    order = {w.id: i for i, w in enumerate(wires)}
    by_id = {w.id: w for w in wires}
    result = list(manual)
    manual_keys = {key_point(j.at) for j in manual}
    for key, node in nodes.items():
        wire_ids = set()
        passes_through = False
        for eid in node.edges:
            edge = edge_by_id[eid]
            if not isinstance(edge, WireEdge):
                continue
            wire_ids.add(edge.wire_id)
            wire = by_id.get(edge.wire_id)
            if wire is not None and key not in (key_point(wire.start), key_point(wire.end)):
                passes_through = True
        if len(wire_ids) < 2 or not (passes_through or key in pins):
            continue
        if key in suppressed or key in manual_keys:
            continue
        first = min(wire_ids, key=lambda wid: order.get(wid, len(order)))
        net_id = by_id[first].net_id if first in by_id else DEFAULT_NET_ID
        result.append(Junction(at=Point(float(node.x), float(node.y)), net_id=net_id))
    return result


def rebuild_topology(
    components: Sequence[ComponentData],
    wires: Sequence[WireData],
    settings: EngineSettings = DEFAULT_SETTINGS,
    junctions: Iterable[Junction] = (),
) -> Topology:
    """
    Rebuild nodes, edges, SWPs, the component index and junctions.

    Args:
        components: Current components.
        wires: Current wires (normally already normalized).
        settings: Grid and tolerances.
        junctions: Existing junctions; only manual ones are kept.

    Returns:
        A fresh Topology.
    """
    graph = _GraphBuilder()
    segments = _collect_segments(wires)
    cuts = _t_junction_cuts(segments)
    for pos, seg in enumerate(segments):
        pts = [seg.a] + cuts.get(pos, []) + [seg.b]
        split = len(pts) > 2
        for k, (p, q) in enumerate(zip(pts, pts[1:])):
            eid = f"{seg.wire.id}:{seg.index}.{k}" if split else f"{seg.wire.id}:{seg.index}"
            graph.attach(WireEdge(id=eid, wire_id=seg.wire.id, segment_index=seg.index,
                                  a=p, b=q, axis=axis_of(p, q)))

    bridged = set()
    for comp in components:
        bridge = _bridge_for(comp, wires, settings)
        if bridge is not None:
            graph.attach(bridge)
            bridged.add(comp.component_id)

    # Walks never pass a pin that is not carried by a bridge.
    stops: set[NodeKey] = set()
    for comp in components:
        if comp.component_id in bridged:
            continue
        for p in comp.get_terminal_positions(settings.grid_size):
            stops.add(key_point(p))

    wires_by_id = {w.id: w for w in wires}
    visited: set[str] = set()
    swps: list[SWP] = []
    for edge in graph.edges:
        if edge.axis is None or edge.id in visited:
            continue
        chain = graph.walk(edge, stops)
        visited.update(e.id for e in chain)
        built = _swp_from_chain(f"swp{len(swps) + 1}", edge.axis, chain, wires_by_id, settings)
        if built is not None:
            swps.append(built)

    comp_to_swp = map_components_to_swps(components, swps, settings)
    found_junctions = detect_junctions(graph.nodes, graph.edge_by_id, wires, components, junctions, settings)

    logger.debug(
        "Topology rebuilt: %d nodes, %d edges, %d SWPs, %d mapped components",
        len(graph.nodes), len(graph.edges), len(swps), len(comp_to_swp),
    )
    return Topology(
        nodes=graph.nodes,
        edges=graph.edges,
        swps=swps,
        comp_to_swp=comp_to_swp,
        junctions=found_junctions,
    )
