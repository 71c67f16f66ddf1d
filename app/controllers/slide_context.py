"""
Slide context - the lightweight move used when a two-pin component is not
part of any SWP.

Each pin must terminate exactly one straight wire lying along the pin axis.
Moving the component drags the touching endpoints of those two wires with
it; the far ends stay put and bound the slide range.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Sequence

from models.component import ComponentData
from models.settings import DEFAULT_SETTINGS, EngineSettings
from models.wire import Point, WireData

from controllers.move_rules import half_pin_span
from wiring.geometry import across, along, axis_of, near_equal, on_axis
from wiring.wire_ops import other_endpoint_of, replace_endpoint, wires_ending_at

logger = logging.getLogger(__name__)


@dataclass
class SlideContext:
    component_id: str
    axis: str
    fixed: float
    min_center: float
    max_center: float
    wire_a_id: str
    wire_b_id: str
    pin_a: Point
    pin_b: Point

    def clamp(self, center: float) -> float:
        return max(self.min_center, min(self.max_center, center))


def _single_axis_wire(pin: Point, wires: Sequence[WireData], axis: str) -> Optional[WireData]:
    touching = wires_ending_at(pin, wires)
    if len(touching) != 1:
        return None
    wire = touching[0]
    if len(wire.points) != 2 or axis_of(wire.start, wire.end) != axis:
        return None
    return wire


def build_slide_context(
    component: ComponentData,
    wires: Sequence[WireData],
    settings: EngineSettings = DEFAULT_SETTINGS,
) -> Optional[SlideContext]:
    """
    Work out whether ``component`` can slide between its two wires.

    Returns:
        A SlideContext, or None if the component is not a straight two-pin
        part with exactly one axis-aligned wire ending at each pin.
    """
    grid = settings.grid_size
    axis = component.pin_axis(grid)
    if axis is None:
        return None
    pins = sorted(component.get_terminal_positions(grid), key=lambda p: along(p, axis))
    pin_a, pin_b = pins
    wire_a = _single_axis_wire(pin_a, wires, axis)
    wire_b = _single_axis_wire(pin_b, wires, axis)
    if wire_a is None or wire_b is None or wire_a is wire_b:
        return None

    far_a = other_endpoint_of(wire_a, pin_a)
    far_b = other_endpoint_of(wire_b, pin_b)
    fixed = across(pin_a, axis)
    if not (near_equal(across(far_a, axis), fixed) and near_equal(across(far_b, axis), fixed)):
        return None
    # Both wires must lead away from the part.
    if along(far_a, axis) >= along(pin_a, axis) or along(far_b, axis) <= along(pin_b, axis):
        return None

    half = half_pin_span(component, axis, grid)
    lo = along(far_a, axis) + half
    hi = along(far_b, axis) - half
    if lo > hi:
        return None
    return SlideContext(
        component_id=component.component_id,
        axis=axis,
        fixed=fixed,
        min_center=lo,
        max_center=hi,
        wire_a_id=wire_a.id,
        wire_b_id=wire_b.id,
        pin_a=pin_a,
        pin_b=pin_b,
    )


def apply_slide(
    ctx: SlideContext,
    component: ComponentData,
    center: float,
    wires: Sequence[WireData],
    settings: EngineSettings = DEFAULT_SETTINGS,
) -> Optional[list[WireData]]:
    """
    Re-attach the two adjacent wires for a component centered at ``center``.

    ``center`` must already be clamped. The context's pin positions are
    updated on success.

    Returns:
        The new wire list, or None if a wire went missing or would shrink
        to zero length.
    """
    grid = settings.grid_size
    position = on_axis(center, ctx.fixed, ctx.axis)
    new_pins = sorted(component.get_terminal_positions(grid, position), key=lambda p: along(p, ctx.axis))
    by_id = {w.id: w for w in wires}
    wire_a = by_id.get(ctx.wire_a_id)
    wire_b = by_id.get(ctx.wire_b_id)
    if wire_a is None or wire_b is None:
        logger.warning("Slide wires for %s are gone; slide abandoned", ctx.component_id)
        return None

    new_a = replace_endpoint(wire_a, ctx.pin_a, new_pins[0])
    new_b = replace_endpoint(wire_b, ctx.pin_b, new_pins[1])
    if len(new_a.points) < 2 or len(new_b.points) < 2:
        return None
    if new_a.length() == 0 or new_b.length() == 0:
        return None

    out = [new_a if w is wire_a else new_b if w is wire_b else w for w in wires]
    ctx.pin_a, ctx.pin_b = new_pins[0], new_pins[1]
    return out
