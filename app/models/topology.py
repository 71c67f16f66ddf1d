"""
Topology value types - nodes, edges, straight wire paths and junctions.

This module contains no Qt dependencies. Everything here is produced by
``wiring.topology_builder.rebuild_topology`` and is never mutated after a
rebuild; a new Topology replaces the old one wholesale.
"""

from dataclasses import dataclass, field
from typing import Optional, Union

from .wire import Point

Axis = Optional[str]  # 'x' (horizontal), 'y' (vertical) or None (diagonal)
NodeKey = tuple[int, int]


@dataclass
class TopoNode:
    """A graph vertex at a rounded point."""

    x: int
    y: int
    edges: set[str] = field(default_factory=set)
    ax_deg: dict[str, int] = field(default_factory=lambda: {"x": 0, "y": 0})

    @property
    def key(self) -> NodeKey:
        return (self.x, self.y)


@dataclass(frozen=True)
class WireEdge:
    """
    One wire segment (or part of one, when a T-junction splits it).

    ``segment_index`` always refers to the segment of the stored wire.
    """

    id: str
    wire_id: str
    segment_index: int
    a: Point
    b: Point
    axis: Axis

    @property
    def a_key(self) -> NodeKey:
        return (int(self.a.x), int(self.a.y))

    @property
    def b_key(self) -> NodeKey:
        return (int(self.b.x), int(self.b.y))


@dataclass(frozen=True)
class ComponentBridge:
    """Synthetic edge joining the two pins of an embedded two-pin part."""

    id: str
    component_id: str
    a: Point
    b: Point
    axis: Axis

    @property
    def a_key(self) -> NodeKey:
        return (int(self.a.x), int(self.a.y))

    @property
    def b_key(self) -> NodeKey:
        return (int(self.b.x), int(self.b.y))


Edge = Union[WireEdge, ComponentBridge]


@dataclass(frozen=True)
class SWP:
    """
    Straight Wire Path: a maximal chain of same-axis edges.

    ``start`` is the low end along ``axis`` and ``end`` the high end.
    ``edge_wire_ids`` and ``edge_indices_by_wire`` cover wire edges only;
    bridges never contribute.
    """

    id: str
    axis: str
    start: Point
    end: Point
    color: str
    edge_wire_ids: tuple[str, ...]
    edge_indices_by_wire: dict[str, tuple[int, ...]]
    edge_ids: tuple[str, ...] = ()
    bridge_component_ids: tuple[str, ...] = ()

    @property
    def fixed(self) -> float:
        """The orthogonal coordinate shared by every point on the path."""
        return self.start.y if self.axis == "x" else self.start.x

    @property
    def lo(self) -> float:
        return self.start.x if self.axis == "x" else self.start.y

    @property
    def hi(self) -> float:
        return self.end.x if self.axis == "x" else self.end.y

    def contains_span(self, lo: float, hi: float, tolerance: float = 0.0) -> bool:
        return lo >= self.lo - tolerance and hi <= self.hi + tolerance


@dataclass(frozen=True)
class Junction:
    """A junction dot. Manual junctions survive rebuilds; suppressed ones hide auto dots."""

    at: Point
    net_id: str = "default"
    manual: bool = False
    suppressed: bool = False

    def to_dict(self) -> dict:
        data = {"at": self.at.to_dict(), "netId": self.net_id}
        if self.manual:
            data["manual"] = True
        if self.suppressed:
            data["suppressed"] = True
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "Junction":
        return cls(
            at=Point.from_dict(data["at"]),
            net_id=data.get("netId") or "default",
            manual=bool(data.get("manual", False)),
            suppressed=bool(data.get("suppressed", False)),
        )


@dataclass
class Topology:
    """Result of a topology rebuild, with the lookups the UI layer needs."""

    nodes: dict[NodeKey, TopoNode] = field(default_factory=dict)
    edges: list[Edge] = field(default_factory=list)
    swps: list[SWP] = field(default_factory=list)
    comp_to_swp: dict[str, str] = field(default_factory=dict)
    junctions: list[Junction] = field(default_factory=list)

    def swp_by_id(self, swp_id: str) -> Optional[SWP]:
        for swp in self.swps:
            if swp.id == swp_id:
                return swp
        return None

    def swp_for_component(self, component_id: str) -> Optional[SWP]:
        swp_id = self.comp_to_swp.get(component_id)
        return self.swp_by_id(swp_id) if swp_id is not None else None

    def swp_for_wire(self, wire_id: str, segment_index: Optional[int] = None) -> Optional[SWP]:
        """Return the SWP owning a wire (or one of its segments)."""
        for swp in self.swps:
            indices = swp.edge_indices_by_wire.get(wire_id)
            if indices is None:
                continue
            if segment_index is None or segment_index in indices:
                return swp
        return None

    def components_on_swp(self, swp_id: str) -> list[str]:
        return [cid for cid, sid in self.comp_to_swp.items() if sid == swp_id]

    def wire_edges(self) -> list[WireEdge]:
        return [e for e in self.edges if isinstance(e, WireEdge)]

    def bridges(self) -> list[ComponentBridge]:
        return [e for e in self.edges if isinstance(e, ComponentBridge)]
