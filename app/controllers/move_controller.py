"""
SwpMoveController - Collapse/reconstruct protocol for sliding a component
along a Straight Wire Path (SWP).

States: Idle -> Collapsed -> Idle.

begin() replaces every wire segment of the component's SWP with one
collapsed wire and computes the legal center range; update() only moves the
component; finish() carves new wire segments around every component on the
run and restores styling from the pre-collapse segments; abort() puts the
pre-collapse wires and position back.
"""

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, NamedTuple, Optional

from models.settings import DEFAULT_NET_ID
from models.stroke import Stroke
from models.topology import SWP
from models.wire import Point, WireData

from controllers.move_rules import center_along_axis, half_pin_span, is_legal_position, pin_span_along_axis
from wiring.geometry import across, along, distance, midpoint, near_equal, on_axis
from wiring.wire_ops import split_polyline_by_removed_segments

if TYPE_CHECKING:
    from controllers.schematic_controller import SchematicController

logger = logging.getLogger(__name__)


class OriginalSegment(NamedTuple):
    """One pre-collapse SWP segment: its extent along the axis and its source wire."""

    wire_id: str
    index: int
    lo: float
    hi: float
    mid: float
    source: WireData


@dataclass
class MoveCollapseContext:
    """Transient state that exists only while an SWP is collapsed."""

    component_id: str
    swp_id: str
    axis: str
    fixed: float
    min_center: float
    max_center: float
    ends: tuple[float, float]
    color: str
    collapsed_id: str
    last_center: float
    start_position: tuple[float, float]
    original_segments: list[OriginalSegment] = field(default_factory=list)
    orig_wire_snapshot: list[WireData] = field(default_factory=list)
    wires_before: list[WireData] = field(default_factory=list)


def _common(values: list, default):
    return values[0] if values and all(v == values[0] for v in values) else default


class SwpMoveController:
    """
    Runs the collapse/reconstruct protocol against a SchematicController.

    Only one SWP is collapsed at a time. Beginning a move for a different
    component finishes the active collapse first.
    """

    def __init__(self, owner: "SchematicController"):
        self._owner = owner
        self._ctx: Optional[MoveCollapseContext] = None

    @property
    def active(self) -> Optional[MoveCollapseContext]:
        return self._ctx

    def is_collapsed_for(self, component_id: str) -> bool:
        return self._ctx is not None and self._ctx.component_id == component_id

    # --- begin ---

    def begin(self, component_id: str) -> Optional[MoveCollapseContext]:
        """
        Collapse the SWP under ``component_id``.

        Returns:
            The collapse context, or None when the component is not on any
            SWP (the caller should fall back to a slide or free move).
        """
        if self.is_collapsed_for(component_id):
            return self._ctx
        if self._ctx is not None:
            self.finish()

        owner = self._owner
        model = owner.model
        component = model.components.get(component_id)
        if component is None:
            return None

        topology = owner.rebuild_topology()
        swp = topology.swp_for_component(component_id)
        if swp is None:
            logger.debug("No SWP for %s; collapse not applicable", component_id)
            return None

        owner.push_undo()
        grid = owner.settings.grid_size
        axis = swp.axis
        wires_before = list(model.wires)
        kept, removed, original_segments = self._split_off_swp(swp, wires_before)

        collapsed = WireData(
            id=owner.new_id("wire"),
            points=(swp.start, swp.end),
            stroke=_common([w.stroke for w in removed], Stroke()),
            net_id=_common([w.net_id for w in removed], DEFAULT_NET_ID),
            color=swp.color,
        )
        insert_at = next(
            (i for i, w in enumerate(wires_before) if w.id in swp.edge_indices_by_wire),
            len(kept),
        )
        insert_at = min(insert_at, len(kept))
        kept.insert(insert_at, collapsed)

        end_lo, end_hi = swp.lo, swp.hi
        my_half = half_pin_span(component, axis, grid)
        t0 = center_along_axis(component, axis)
        left_bound = end_lo + my_half
        right_bound = end_hi - my_half
        for other_id in topology.components_on_swp(swp.id):
            if other_id == component_id:
                continue
            other = model.components[other_id]
            other_center = center_along_axis(other, axis)
            gap = my_half + half_pin_span(other, axis, grid)
            if other_center <= t0:
                left_bound = max(left_bound, other_center + gap)
            if other_center >= t0:
                right_bound = min(right_bound, other_center - gap)
        if left_bound > right_bound:
            left_bound = right_bound = t0

        start_position = component.position
        component.position = tuple(on_axis(t0, swp.fixed, axis))

        self._ctx = MoveCollapseContext(
            component_id=component_id,
            swp_id=swp.id,
            axis=axis,
            fixed=swp.fixed,
            min_center=left_bound,
            max_center=right_bound,
            ends=(end_lo, end_hi),
            color=swp.color,
            collapsed_id=collapsed.id,
            last_center=t0,
            start_position=start_position,
            original_segments=original_segments,
            orig_wire_snapshot=removed,
            wires_before=wires_before,
        )
        owner.replace_wires(kept)
        if component.position != start_position:
            owner.notify("component_moved", component)
        logger.info(
            "Collapsed %s (%d wire(s)) for %s; center range [%g, %g]",
            swp.id, len(removed), component_id, left_bound, right_bound,
        )
        return self._ctx

    def _split_off_swp(self, swp: SWP, wires: list[WireData]):
        """
        Separate the SWP's segments from the wire list.

        Single-segment wires on the run are removed whole; multi-segment
        hosts keep their off-run legs as fresh wires. A segment that only
        partly lies on the run (the walk stopped at a T node inside it) is
        clipped to the run, and the overhang is kept as a fresh wire.
        """
        tol = self._owner.settings.span_tolerance
        kept: list[WireData] = []
        removed: list[WireData] = []
        segments: list[OriginalSegment] = []

        def fresh(parent: WireData, pts) -> WireData:
            return WireData(
                id=self._owner.new_id("wire"),
                points=tuple(pts),
                stroke=parent.stroke,
                net_id=parent.net_id,
                color=parent.color,
            )

        for w in wires:
            indices = swp.edge_indices_by_wire.get(w.id)
            if indices is None:
                kept.append(w)
                continue
            removed.append(w)
            for i in indices:
                a, b = w.segment(i)
                lo, hi = sorted((along(a, swp.axis), along(b, swp.axis)))
                if lo < swp.lo - tol:
                    kept.append(fresh(w, (on_axis(lo, swp.fixed, swp.axis), swp.start)))
                    lo = swp.lo
                if hi > swp.hi + tol:
                    kept.append(fresh(w, (swp.end, on_axis(hi, swp.fixed, swp.axis))))
                    hi = swp.hi
                segments.append(OriginalSegment(w.id, i, lo, hi, (lo + hi) / 2, w))
            if len(w.points) > 2:
                for pts in split_polyline_by_removed_segments(w.points, set(indices)):
                    kept.append(fresh(w, pts))
        segments.sort(key=lambda s: s.mid)
        return kept, removed, segments

    # --- update ---

    def update(self, component_id: str, candidate: tuple[float, float]) -> bool:
        """
        Move the component toward ``candidate`` along the collapsed run.

        The axis coordinate is snapped and clamped to the legal range; the
        orthogonal coordinate is pinned to the run. No wire is touched.

        Returns:
            True if the new position was committed, False if rejected or if
            no collapse is active for this component.
        """
        ctx = self._ctx
        if ctx is None or ctx.component_id != component_id:
            return False
        owner = self._owner
        component = owner.model.components.get(component_id)
        if component is None:
            return False

        t = owner.snap(along(candidate, ctx.axis))
        t = max(ctx.min_center, min(ctx.max_center, t))
        position = tuple(on_axis(t, ctx.fixed, ctx.axis))
        others = [c for c in owner.model.components.values() if c.component_id != component_id]
        if not is_legal_position(component, position, others, owner.settings, owner.snap):
            return False

        component.position = position
        ctx.last_center = t
        owner.notify("component_moved", component)
        return True

    # --- finish ---

    def finish(self, component_id: Optional[str] = None) -> list[WireData]:
        """
        Rebuild the run's wires around its components and end the collapse.

        Returns:
            The new authoritative wire list.
        """
        ctx = self._ctx
        owner = self._owner
        model = owner.model
        if ctx is None:
            return list(model.wires)
        if component_id is not None and component_id != ctx.component_id:
            logger.warning("finish(%s) while %s owns the collapse; finishing it",
                           component_id, ctx.component_id)

        axis = ctx.axis
        lo, hi = ctx.ends
        grid = owner.settings.grid_size
        tol = owner.settings.span_tolerance

        component = model.components.get(ctx.component_id)
        if component is not None:
            half = half_pin_span(component, axis, grid)
            center = center_along_axis(component, axis)
            center = max(lo + half, min(hi - half, center))
            component.position = tuple(on_axis(center, ctx.fixed, axis))

        on_run = []
        for other in model.components.values():
            if not other.is_two_pin:
                continue
            pins = other.get_terminal_positions(grid)
            if not all(near_equal(across(p, axis), ctx.fixed, tol) for p in pins):
                continue
            span_lo, span_hi = pin_span_along_axis(other, axis, grid)
            if span_lo >= lo - tol and span_hi <= hi + tol:
                on_run.append(other)
        on_run.sort(key=lambda c: center_along_axis(c, axis))

        new_segments = []
        cursor = lo
        for other in on_run:
            span_lo, span_hi = pin_span_along_axis(other, axis, grid)
            if cursor < span_lo:
                new_segments.append(self._segment(ctx, cursor, span_lo))
            cursor = max(cursor, span_hi)
        if cursor < hi:
            new_segments.append(self._segment(ctx, cursor, hi))

        wires = list(model.wires)
        pos = next((i for i, w in enumerate(wires) if w.id == ctx.collapsed_id), len(wires))
        wires[pos:pos + 1] = new_segments

        self._ctx = None
        owner.replace_wires(wires)
        owner.rebuild_topology()
        logger.info("Finished move of %s: %d segment(s) rebuilt", ctx.component_id, len(new_segments))
        return list(model.wires)

    def _segment(self, ctx: MoveCollapseContext, t_from: float, t_to: float) -> WireData:
        a = on_axis(t_from, ctx.fixed, ctx.axis)
        b = on_axis(t_to, ctx.fixed, ctx.axis)
        source = self._best_source(ctx, a, b)
        if source is None:
            return WireData(id=self._owner.new_id("wire"), points=(a, b), color=ctx.color)
        return WireData(
            id=self._owner.new_id("wire"),
            points=(a, b),
            stroke=source.stroke,
            net_id=source.net_id,
            color=source.color,
        )

    def _best_source(self, ctx: MoveCollapseContext, a: Point, b: Point) -> Optional[WireData]:
        """
        Pick the pre-collapse wire whose styling a rebuilt segment inherits.

        Nearest original segment to the new segment's midpoint wins. If even
        that is farther than ``stroke_match_distance``, the original segment
        with the largest overlap along the axis wins, then the one whose
        midpoint is closest. This is a best-effort heuristic.
        """
        mid = midpoint(a, b)
        chosen = None
        best_d = float("inf")
        for wire in ctx.orig_wire_snapshot:
            for p, q in zip(wire.points, wire.points[1:]):
                d = distance(mid, p, q)
                if d < best_d:
                    best_d = d
                    chosen = wire
        if best_d <= self._owner.settings.stroke_match_distance or not ctx.original_segments:
            return chosen

        seg_lo, seg_hi = sorted((along(a, ctx.axis), along(b, ctx.axis)))
        best_overlap = 0.0
        by_overlap = None
        for seg in ctx.original_segments:
            overlap = max(0.0, min(seg_hi, seg.hi) - max(seg_lo, seg.lo))
            if overlap > best_overlap:
                best_overlap = overlap
                by_overlap = seg.source
        if by_overlap is not None:
            return by_overlap
        seg_mid = (seg_lo + seg_hi) / 2
        return min(ctx.original_segments, key=lambda s: abs(seg_mid - s.mid)).source

    # --- abort / cleanup ---

    def abort(self, component_id: Optional[str] = None) -> list[WireData]:
        """
        Cancel the collapse: restore the pre-collapse wires and the
        component's pre-drag position without carving new segments.
        """
        ctx = self._ctx
        owner = self._owner
        if ctx is None:
            return list(owner.model.wires)
        if component_id is not None and component_id != ctx.component_id:
            logger.warning("abort(%s) while %s owns the collapse; aborting it",
                           component_id, ctx.component_id)
        component = owner.model.components.get(ctx.component_id)
        if component is not None:
            component.position = ctx.start_position
            owner.notify("component_moved", component)
        self._ctx = None
        owner.replace_wires(ctx.wires_before)
        owner.rebuild_topology()
        logger.info("Aborted move of %s", ctx.component_id)
        return list(owner.model.wires)

    def ensure_finished(self) -> None:
        """Finish any active collapse (used before unrelated edits)."""
        if self._ctx is not None:
            self.finish()

    def discard(self) -> None:
        """Forget the active collapse without touching wires (model was replaced)."""
        self._ctx = None
