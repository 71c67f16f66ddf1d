"""
SchematicController - Orchestrates every topology-affecting edit.

This module contains no Qt dependencies. It owns the SchematicModel, keeps
the derived Topology current, mints ids, takes undo snapshots and notifies
views of changes through an observer pattern.

Every edit follows the same discipline: finish any in-progress move
collapse, take an undo snapshot, compute a new wire list with the pure
functions in ``wiring``, replace the model's list wholesale and rebuild the
topology.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Optional, Sequence

from models.component import SPICE_SYMBOLS, ComponentData
from models.schematic import SchematicModel, validate_schematic_data
from models.settings import DEFAULT_NET_ID, DEFAULT_SETTINGS, EngineSettings
from models.stroke import ResolvedStroke, Stroke, effective_stroke
from models.topology import SWP, Junction, Topology
from models.wire import WireData, as_point

from controllers.move_controller import SwpMoveController
from controllers.move_rules import is_legal_position
from controllers.slide_context import SlideContext, apply_slide, build_slide_context
from wiring import wire_ops
from wiring.geometry import (
    Rect,
    along,
    nearest_segment_index,
    on_axis,
    points_close,
    rect_intersects_segment,
)
from wiring.topology_builder import rebuild_topology
from wiring.unify import unify_inline_wires

logger = logging.getLogger(__name__)

MOVE_COLLAPSE = "collapse"
MOVE_SLIDE = "slide"
MOVE_FREE = "free"


@dataclass
class _DragState:
    """A slide or free move in progress (collapse moves live in SwpMoveController)."""

    component_id: str
    mode: str
    start_position: tuple[float, float]
    wires_before: list[WireData] = field(default_factory=list)
    slide: Optional[SlideContext] = None


class SchematicController:
    """
    Controller for component, wire and move operations on a schematic.

    Observer events:
        component_added (ComponentData) - A new component was placed
        component_removed (str) - A component was removed (by ID)
        component_rotated (ComponentData) - A component was rotated
        component_moved (ComponentData) - A component's position changed
        wire_added (WireData) - A wire was drawn
        wire_removed (str) - A wire was removed (by ID)
        wires_replaced (list[WireData]) - The wire list was replaced
        topology_rebuilt (Topology) - Nodes, edges and SWPs were recomputed
        junctions_changed (list[Junction]) - Manual junctions changed
        model_loaded (None) - A document was loaded
        schematic_cleared (None) - Everything was removed
    """

    def __init__(
        self,
        model: Optional[SchematicModel] = None,
        settings: Optional[EngineSettings] = None,
        snapshot_callback: Optional[Callable[[], None]] = None,
        snap: Optional[Callable[[float], float]] = None,
        id_factory: Optional[Callable[[str], str]] = None,
    ):
        self.model = model or SchematicModel()
        self.settings = settings or DEFAULT_SETTINGS
        self.snap = snap or self.settings.snap
        self._snapshot_callback = snapshot_callback
        self._id_factory = id_factory
        self._observers: list[Callable[[str, Any], None]] = []
        self._topology = Topology()
        self._drag: Optional[_DragState] = None
        self.moves = SwpMoveController(self)
        self._reseed_counters()
        self.rebuild_topology()

    # --- Observers ---

    def add_observer(self, callback: Callable[[str, Any], None]) -> None:
        """Register a callback for model change events."""
        if callback not in self._observers:
            self._observers.append(callback)

    def remove_observer(self, callback: Callable[[str, Any], None]) -> None:
        """Unregister a previously registered callback."""
        if callback in self._observers:
            self._observers.remove(callback)

    def notify(self, event: str, data: Any) -> None:
        """Notify all observers of a model change."""
        for observer in self._observers:
            try:
                observer(event, data)
            except (TypeError, AttributeError, RuntimeError) as e:
                logger.error("Error notifying observer: %s", e)

    # --- Collaborator hooks ---

    def new_id(self, prefix: str) -> str:
        """Return a fresh unique id such as 'wire12'."""
        if self._id_factory is not None:
            return self._id_factory(prefix)
        return self.model.next_id(prefix)

    def push_undo(self) -> None:
        """Invoke the undo-snapshot callback, if any."""
        if self._snapshot_callback is not None:
            self._snapshot_callback()

    def _reseed_counters(self) -> None:
        self.model.reseed_counter("wire", [w.id for w in self.model.wires])
        for symbol in set(SPICE_SYMBOLS.values()):
            self.model.reseed_counter(symbol, list(self.model.components))

    def _components(self) -> list[ComponentData]:
        return list(self.model.components.values())

    # --- Topology ---

    @property
    def topology(self) -> Topology:
        return self._topology

    def rebuild_topology(self) -> Topology:
        """Recompute nodes, edges, SWPs and junctions from the current model."""
        self._topology = rebuild_topology(
            self._components(), self.model.wires, self.settings, self.model.junctions
        )
        self.notify("topology_rebuilt", self._topology)
        return self._topology

    def replace_wires(self, wires: Sequence[WireData]) -> None:
        """Install a new authoritative wire list."""
        self.model.wires = list(wires)
        self.notify("wires_replaced", self.model.wires)

    def _commit(self, wires: Sequence[WireData]) -> list[WireData]:
        self.replace_wires(wires)
        self.rebuild_topology()
        logger.debug("Committed %d wire(s), %d SWP(s)", len(self.model.wires), len(self._topology.swps))
        return list(self.model.wires)

    def _tidy(self, wires: Sequence[WireData]) -> list[WireData]:
        """Normalize then merge collinear runs."""
        wires = wire_ops.normalize_all_wires(wires, self.new_id)
        return unify_inline_wires(wires, self._components(), self.new_id, self.settings)

    def _attach_pins(self, component: ComponentData, wires: Sequence[WireData]) -> list[WireData]:
        """Break wires running through the component's pins and drop the bridge artifact."""
        pins = component.get_terminal_positions(self.settings.grid_size)
        wires, broke = wire_ops.break_at_pins(pins, wires, self.new_id, self.settings, self.snap)
        if component.is_two_pin:
            wires = wire_ops.delete_bridge(pins, wires)
        if broke:
            logger.debug("Attached %s to the wires under its pins", component.component_id)
        return wires

    def _settle(self) -> None:
        """Finish any in-progress move before an unrelated edit."""
        if self.moves.active is not None:
            self.moves.finish()
        if self._drag is not None:
            self.finish_move(self._drag.component_id)

    # --- Component operations ---

    def add_component(self, component_type: str, position: tuple[float, float],
                      rotation: int = 0) -> ComponentData:
        """
        Place a new component.

        Wires whose interior passes through one of its pins are split there;
        a wire left spanning exactly a two-pin part's pins is removed.

        Returns:
            The newly created ComponentData.
        """
        self._settle()
        self.push_undo()
        symbol = SPICE_SYMBOLS.get(component_type, "X")
        component = ComponentData(
            component_id=self.model.next_id(symbol),
            component_type=component_type,
            position=(self.snap(position[0]), self.snap(position[1])),
            rotation=rotation % 360,
        )
        self.model.components[component.component_id] = component
        self.notify("component_added", component)
        self._commit(self._attach_pins(component, self.model.wires))
        return component

    def remove_component(self, component_id: str) -> list[WireData]:
        """
        Remove a component.

        When each pin of a removed two-pin part terminates exactly one wire,
        the two wires are mended into one run across the gap.
        """
        self._settle()
        component = self.model.components.get(component_id)
        if component is None:
            return list(self.model.wires)
        self.push_undo()
        pins = component.get_terminal_positions(self.settings.grid_size)
        del self.model.components[component_id]
        self.notify("component_removed", component_id)

        wires = list(self.model.wires)
        if component.is_two_pin and all(len(wire_ops.wires_ending_at(p, wires)) == 1 for p in pins):
            hit_a = wire_ops.find_wire_endpoint_near(pins[0], wires, self.settings.endpoint_tolerance)
            hit_b = wire_ops.find_wire_endpoint_near(
                pins[1], [w for w in wires if hit_a is None or w is not hit_a.wire],
                self.settings.endpoint_tolerance,
            )
            wires = wire_ops.mend_at_points(hit_a, hit_b, wires, self.new_id)
        return self._commit(self._tidy(wires))

    def rotate_component(self, component_id: str, clockwise: bool = True) -> None:
        """Rotate a component 90 degrees about its center and attach its new pins."""
        self._settle()
        component = self.model.components.get(component_id)
        if component is None:
            return
        self.push_undo()
        delta = 90 if clockwise else -90
        component.rotation = (component.rotation + delta) % 360
        self.notify("component_rotated", component)
        self._commit(self._tidy(self._attach_pins(component, self.model.wires)))

    def move_component_by(self, component_id: str, dx: float, dy: float) -> bool:
        """
        Move a component by an offset in one complete gesture.

        Routes through the collapse protocol when the part sits on an SWP,
        the slide context when it sits between two lone wires, and a free
        move otherwise.

        Returns:
            True if the move was accepted.
        """
        component = self.model.components.get(component_id)
        if component is None:
            return False
        target = (component.x + dx, component.y + dy)
        if self.begin_move(component_id) is None:
            return False
        accepted = self.update_move(component_id, target)
        self.finish_move(component_id)
        return accepted

    # --- Wire operations ---

    def add_wire(self, points: Sequence, stroke: Optional[Stroke] = None,
                 net_id: str = DEFAULT_NET_ID, color: Optional[str] = None) -> list[WireData]:
        """
        Draw a wire.

        The polyline is normalized into one wire per segment, split at every
        component pin it passes through, and merged with collinear
        neighbours. A degenerate polyline is ignored.
        """
        self._settle()
        pts = wire_ops.normalize_polyline([as_point(p) for p in points])
        if pts is None:
            logger.debug("Ignoring degenerate wire %s", list(points))
            return list(self.model.wires)
        self.push_undo()
        wire = WireData(id=self.new_id("wire"), points=tuple(pts), stroke=stroke or Stroke(),
                        net_id=net_id, color=color)
        wires = wire_ops.normalize_all_wires(self.model.wires + [wire], self.new_id)
        for component in self._components():
            wires = self._attach_pins(component, wires)
        self.notify("wire_added", wire)
        return self._commit(self._tidy(wires))

    def remove_wire(self, wire_id: str) -> list[WireData]:
        """Remove a wire by id."""
        self._settle()
        wire = self.model.wire_by_id(wire_id)
        if wire is None:
            return list(self.model.wires)
        self.push_undo()
        wires = [w for w in self.model.wires if w is not wire]
        self.notify("wire_removed", wire_id)
        return self._commit(self._tidy(wires))

    def remove_wire_segment(self, wire_id: str, segment_index: int) -> list[WireData]:
        """Remove one segment of a wire, keeping the rest of it."""
        self._settle()
        wire = self.model.wire_by_id(wire_id)
        if wire is None or not 0 <= segment_index < wire.segment_count:
            return list(self.model.wires)
        self.push_undo()
        wires = wire_ops.remove_wire_segment(wire, segment_index, self.model.wires, self.new_id)
        return self._commit(self._tidy(wires))

    def isolate_wire_segment(self, wire_id: str, segment_index: int) -> Optional[WireData]:
        """
        Split a wire so one of its segments stands alone, e.g. to restyle it.

        Returns:
            The isolated wire, or None for an unknown wire or segment.
        """
        self._settle()
        wire = self.model.wire_by_id(wire_id)
        if wire is None or not 0 <= segment_index < wire.segment_count:
            return None
        if wire.segment_count == 1:
            return wire
        self.push_undo()
        wires, isolated = wire_ops.isolate_wire_segment(wire, segment_index, self.model.wires, self.new_id)
        self._commit(wires)
        return isolated

    # --- Wire primitives ---

    def break_at_pins(self, pins: Sequence) -> tuple[list[WireData], bool]:
        """Split wires at the given pin locations; returns (wires, whether anything split)."""
        self._settle()
        wires, broke = wire_ops.break_at_pins(pins, self.model.wires, self.new_id, self.settings, self.snap)
        if not broke:
            return list(self.model.wires), False
        self.push_undo()
        return self._commit(wires), True

    def mend_at_points(self, point_a, point_b) -> list[WireData]:
        """Join the wire ending at ``point_a`` with a different wire ending at ``point_b``."""
        self._settle()
        wires = self.model.wires
        tol = self.settings.endpoint_tolerance
        hit_a = wire_ops.find_wire_endpoint_near(point_a, wires, tol)
        if hit_a is None:
            return list(wires)
        hit_b = wire_ops.find_wire_endpoint_near(point_b, [w for w in wires if w is not hit_a.wire], tol)
        if hit_b is None:
            return list(wires)
        self.push_undo()
        return self._commit(wire_ops.mend_at_points(hit_a, hit_b, wires, self.new_id))

    def normalize_all_wires(self) -> list[WireData]:
        self._settle()
        return self._commit(wire_ops.normalize_all_wires(self.model.wires, self.new_id))

    def unify_inline_wires(self) -> list[WireData]:
        self._settle()
        return self._commit(
            unify_inline_wires(self.model.wires, self._components(), self.new_id, self.settings)
        )

    # --- Move gesture ---

    def begin_move(self, component_id: str) -> Optional[str]:
        """
        Start moving a component.

        Returns:
            'collapse', 'slide' or 'free' for the move mode chosen, or None
            for an unknown component. Beginning again for the component
            already being moved is a no-op; beginning for a different one
            finishes the previous move first.
        """
        component = self.model.components.get(component_id)
        if component is None:
            return None
        if self.moves.is_collapsed_for(component_id):
            return MOVE_COLLAPSE
        if self._drag is not None:
            if self._drag.component_id == component_id:
                return self._drag.mode
            self.finish_move(self._drag.component_id)

        if self.moves.begin(component_id) is not None:
            return MOVE_COLLAPSE

        slide = build_slide_context(component, self.model.wires, self.settings)
        self.push_undo()
        mode = MOVE_SLIDE if slide is not None else MOVE_FREE
        self._drag = _DragState(
            component_id=component_id,
            mode=mode,
            start_position=component.position,
            wires_before=list(self.model.wires),
            slide=slide,
        )
        logger.debug("Began %s move of %s", mode, component_id)
        return mode

    def update_move(self, component_id: str, candidate: tuple[float, float]) -> bool:
        """
        Propose a new position during a move.

        Returns:
            True if accepted; False if rejected (the component stays put) or
            no move is in progress for ``component_id``.
        """
        if self.moves.is_collapsed_for(component_id):
            return self.moves.update(component_id, candidate)
        drag = self._drag
        if drag is None or drag.component_id != component_id:
            return False
        component = self.model.components[component_id]
        others = [c for c in self._components() if c is not component]

        if drag.mode == MOVE_SLIDE:
            ctx = drag.slide
            t = ctx.clamp(self.snap(along(candidate, ctx.axis)))
            position = tuple(on_axis(t, ctx.fixed, ctx.axis))
            if not is_legal_position(component, position, others, self.settings, self.snap):
                return False
            wires = apply_slide(ctx, component, t, self.model.wires, self.settings)
            if wires is None:
                return False
            component.position = position
            self.replace_wires(wires)
        else:
            position = (self.snap(candidate[0]), self.snap(candidate[1]))
            if not is_legal_position(component, position, others, self.settings, self.snap):
                return False
            component.position = position
        self.notify("component_moved", component)
        return True

    def finish_move(self, component_id: Optional[str] = None) -> list[WireData]:
        """
        End the current move and return the new authoritative wire list.

        A free move attaches the part to any wire now running through its
        pins.
        """
        if self.moves.active is not None:
            return self.moves.finish(component_id)
        drag = self._drag
        if drag is None:
            return list(self.model.wires)
        self._drag = None
        component = self.model.components.get(drag.component_id)
        wires = self.model.wires
        if drag.mode == MOVE_FREE and component is not None and component.position != drag.start_position:
            wires = self._tidy(self._attach_pins(component, wires))
        logger.debug("Finished %s move of %s", drag.mode, drag.component_id)
        return self._commit(wires)

    def abort_move(self, component_id: Optional[str] = None) -> list[WireData]:
        """Cancel the current move, restoring the pre-move wires and position."""
        if self.moves.active is not None:
            return self.moves.abort(component_id)
        drag = self._drag
        if drag is None:
            return list(self.model.wires)
        self._drag = None
        component = self.model.components.get(drag.component_id)
        if component is not None:
            component.position = drag.start_position
            self.notify("component_moved", component)
        return self._commit(drag.wires_before)

    # --- Queries ---

    def swp_for_wire(self, wire_id: str, segment_index: Optional[int] = None) -> Optional[SWP]:
        return self._topology.swp_for_wire(wire_id, segment_index)

    def swp_for_component(self, component_id: str) -> Optional[SWP]:
        return self._topology.swp_for_component(component_id)

    def segment_index_at(self, wire_id: str, point) -> Optional[int]:
        """Index of the wire segment nearest ``point``, for hit-testing clicks."""
        wire = self.model.wire_by_id(wire_id)
        if wire is None:
            return None
        index = nearest_segment_index(wire.points, point)
        return index if index >= 0 else None

    def effective_stroke_for(self, wire_id: str) -> Optional[ResolvedStroke]:
        """Concrete stroke for a wire after net class and theme defaults."""
        wire = self.model.wire_by_id(wire_id)
        if wire is None:
            return None
        net_class = self.model.net_classes.get(wire.net_id) or self.model.net_classes.get(DEFAULT_NET_ID)
        return effective_stroke(wire.stroke, net_class)

    def wires_in_rect(self, rect: Rect) -> list[WireData]:
        """Wires with at least one segment touching ``rect``."""
        return [
            w for w in self.model.wires
            if any(rect_intersects_segment(a, b, rect) for a, b in zip(w.points, w.points[1:]))
        ]

    # --- Junctions ---

    def add_junction(self, point, net_id: str = DEFAULT_NET_ID) -> None:
        """Place a manual junction dot that survives rebuilds."""
        self._set_manual_junction(Junction(at=as_point(point), net_id=net_id, manual=True))

    def suppress_junction(self, point) -> None:
        """Hide the automatic junction dot at ``point``."""
        self._set_manual_junction(Junction(at=as_point(point), manual=True, suppressed=True))

    def _set_manual_junction(self, junction: Junction) -> None:
        self.push_undo()
        kept = [j for j in self.model.junctions if not points_close(j.at, junction.at)]
        self.model.junctions = kept + [junction]
        self.notify("junctions_changed", self.model.junctions)
        self.rebuild_topology()

    # --- Document ---

    def load_from_dict(self, data: dict) -> None:
        """
        Replace the schematic with a document and repair it.

        Raises:
            ValueError: if the document structure is invalid.
        """
        validate_schematic_data(data)
        loaded = SchematicModel.from_dict(data)
        self.moves.discard()
        self._drag = None

        self.model.components = loaded.components
        self.model.junctions = loaded.junctions
        self.model.net_classes = loaded.net_classes
        self.model.id_counters = loaded.id_counters
        self.model.wires = loaded.wires
        self._reseed_counters()

        short = [w.id for w in loaded.wires if len(w.points) < 2]
        if short:
            logger.warning("Dropping %d wire(s) with fewer than two points: %s", len(short), short)

        wires = wire_ops.normalize_all_wires(loaded.wires, self.new_id)
        for component in self._components():
            wires = self._attach_pins(component, wires)
        self._commit(self._tidy(wires))
        logger.info("Loaded schematic: %d component(s), %d wire(s)",
                    len(self.model.components), len(self.model.wires))
        self.notify("model_loaded", None)

    def to_dict(self) -> dict:
        """Serialize the schematic; an in-progress move is finished first."""
        self._settle()
        return self.model.to_dict()

    def clear(self) -> None:
        """Clear the entire schematic."""
        self.moves.discard()
        self._drag = None
        self.model.clear()
        self._topology = Topology()
        self.notify("schematic_cleared", None)
